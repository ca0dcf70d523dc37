"""Quran mushaf typesetting: line justification with kashida, tajweed
colouring and progressive page rendering."""

import logging

from .errors import (ConfigurationError, KhattError, OutOfRangeError,
                     ResourceUnavailableError)
from .settings import (FONTSIZE, INTERLINE, MARGIN, PAGE_WIDTH, TOP,
                       JustStyle, LineType, MushafLayout, Settings, SpaceType,
                       Viewport)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
