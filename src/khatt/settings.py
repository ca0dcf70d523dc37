import enum
from collections import namedtuple

from .errors import ConfigurationError

# All font units below are for a font scaled to FONTSIZE units per em.
PAGE_WIDTH = 17000
INTERLINE = 1800
TOP = 200
MARGIN = 400
FONTSIZE = 1000

# Page aspect of the printed mushaf, width:height.
PAGE_ASPECT = (255, 410)


class MushafLayout(enum.IntEnum):
    NEW_MADINAH = 1
    OLD_MADINAH = 2
    INDOPAK = 3

    @classmethod
    def from_name(cls, name):
        try:
            return LAYOUT_NAMES[name]
        except KeyError:
            raise ConfigurationError("Unknown mushaf layout: %s" % name)

    @property
    def is_madinah(self):
        return self in (MushafLayout.NEW_MADINAH, MushafLayout.OLD_MADINAH)


LAYOUT_NAMES = {
    "newMadinah": MushafLayout.NEW_MADINAH,
    "oldMadinah": MushafLayout.OLD_MADINAH,
    "indoPak15": MushafLayout.INDOPAK,
}


class LineType(enum.IntEnum):
    CONTENT = 0
    SURA = 1
    BASMALA = 2


class SpaceType(enum.IntEnum):
    SIMPLE = 1
    AYA = 2


class JustStyle(enum.IntEnum):
    SAME_SIZE_BY_PAGE = 0
    XSCALE = 1
    XSCALE_ONLY = 2
    SCL_X_AXIS = 3


JUST_STYLE_NAMES = {
    "same-size": JustStyle.SAME_SIZE_BY_PAGE,
    "xscale": JustStyle.XSCALE,
    "xscale-only": JustStyle.XSCALE_ONLY,
    "scale-x-axis": JustStyle.SCL_X_AXIS,
}


Viewport = namedtuple("Viewport", ["width", "height", "font_size"])


class Settings:
    """Class holding document wide settings."""

    def __init__(self):
        # The defaults here roughly match a 15-lines Madinah mushaf page shown
        # at reading size.
        self.font_path      = None
        self.text_path      = None
        self.layout         = MushafLayout.NEW_MADINAH
        self.page_width     = 510   # pixels or points
        self.font_scale     = 1
        self.just_style     = JustStyle.XSCALE
        self.tajweed        = False
        self.tajweed_colors = {}
        # "arabic" keeps the font digits, "english" overlays western digits.
        self.verse_numbers  = "arabic"
        self.cache_size     = 10
        # Wall time one render step may take before yielding, in seconds.
        self.frame_budget   = 0.016

    @property
    def page_height(self):
        return self.page_width * PAGE_ASPECT[1] / PAGE_ASPECT[0]

    def viewport(self):
        font_size = self.page_width / PAGE_WIDTH * FONTSIZE * self.font_scale
        return Viewport(self.page_width, self.page_height, font_size)

    def update(self, **kwargs):
        for name, value in kwargs.items():
            if not hasattr(self, name):
                raise ConfigurationError("Unknown setting: %s" % name)
            if value is not None:
                setattr(self, name, value)
        return self
