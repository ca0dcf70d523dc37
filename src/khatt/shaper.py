import logging

import uharfbuzz as hb
from fontTools.pens.boundsPen import ControlBoundsPen
from fontTools.pens.recordingPen import RecordingPen

from .errors import ConfigurationError, ResourceUnavailableError
from .model import FeatureRange, ShapedGlyph
from .settings import FONTSIZE

logger = logging.getLogger(__name__)

SHAPE_CACHE_SIZE = 10000


class Outline:
    """Class representing a glyph outline in font units, Y up."""

    def __init__(self, commands, y_min=0, y_max=0):
        # (operator, points) tuples as recorded by a fontTools RecordingPen.
        self.commands = tuple(commands)
        self.y_min = y_min
        self.y_max = y_max

    @classmethod
    def from_recording(cls, recording):
        pen = ControlBoundsPen(None)
        recording.replay(pen)
        if pen.bounds is None:
            return cls(recording.value)
        _, y_min, _, y_max = pen.bounds
        return cls(recording.value, y_min, y_max)

    def subpaths(self):
        subpaths, current = [], []
        for command in self.commands:
            current.append(command)
            if command[0] in ("closePath", "endPath"):
                subpaths.append(current)
                current = []
        if current:
            subpaths.append(current)
        return subpaths

    def without_subpaths(self, count):
        """Returns a copy of the outline without its first count sub-paths.
        The Y extent is kept, it describes the whole glyph."""

        if count <= 0:
            return self
        commands = []
        for subpath in self.subpaths()[count:]:
            commands.extend(subpath)
        return Outline(commands, self.y_min, self.y_max)

    def replay(self, pen):
        for operator, points in self.commands:
            getattr(pen, operator)(*points)

    def __bool__(self):
        return bool(self.commands)

    def __repr__(self):
        return "Outline(%d commands, y=%s..%s)" % (len(self.commands),
                                                   self.y_min, self.y_max)


class ShapeCache:
    """Shaped glyph runs keyed by text and feature ranges, the oldest entry is
    dropped first once the cache is full."""

    def __init__(self, size=SHAPE_CACHE_SIZE):
        self.size = size
        self.entries = {}

    def get(self, key):
        return self.entries.get(key)

    def put(self, key, glyphs):
        self.entries[key] = glyphs
        if len(self.entries) > self.size:
            del self.entries[next(iter(self.entries))]

    def clear(self):
        self.entries.clear()

    def __contains__(self, key):
        return key in self.entries

    def __len__(self):
        return len(self.entries)


class Shaper:
    """Class wrapping HarfBuzz for shaping lines of Arabic text.

    Shaping is always right-to-left, Arabic script and language, one
    codepoint per character so that glyph clusters are character indexes.
    Advances and outlines are in FONTSIZE units per em."""

    def __init__(self, path, cache_size=SHAPE_CACHE_SIZE):
        try:
            with open(path, "rb") as fontfile:
                data = fontfile.read()
        except OSError as e:
            raise ConfigurationError("Can’t read font %s: %s" % (path, e))

        logger.debug("Loading font: %s", path)
        self.path = path
        self.face = hb.Face(hb.Blob(data))
        self.font = hb.Font(self.face)
        self.font.scale = (FONTSIZE, FONTSIZE)
        if not self.face.glyph_count:
            raise ConfigurationError("Font has no glyphs: %s" % path)

        self.cache = ShapeCache(cache_size)
        self._space_width = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    @property
    def closed(self):
        return self.font is None

    def close(self):
        self.font = None
        self.face = None
        self.cache.clear()

    def _check(self):
        if self.font is None:
            raise ResourceUnavailableError("Shaper for %s is closed"
                                           % self.path)

    def clear_buffer(self):
        buf = hb.Buffer()
        buf.direction = "rtl"
        buf.script = "Arab"
        buf.language = "ar"
        buf.cluster_level = hb.BufferClusterLevel.MONOTONE_CHARACTERS
        return buf

    def _features(self, text, features):
        result = {}
        for feature in features:
            feature = FeatureRange(*feature)
            end = len(text) if feature.end < 0 else feature.end
            result.setdefault(feature.tag, []).append(
                (feature.start, end, feature.value))
        return result

    def shape(self, text, features=()):
        """Shapes text and returns its glyphs in visual (left to right)
        order."""

        self._check()
        features = tuple(features)
        key = (text, features)
        glyphs = self.cache.get(key)
        if glyphs is None:
            buf = self.clear_buffer()
            buf.add_codepoints([ord(c) for c in text])
            hb.shape(self.font, buf, self._features(text, features))

            glyphs = tuple(
                ShapedGlyph(info.codepoint, info.cluster, pos.x_advance,
                            pos.y_advance, pos.x_offset, pos.y_offset)
                for info, pos in zip(buf.glyph_infos, buf.glyph_positions))
            self.cache.put(key, glyphs)

        return glyphs

    def width(self, text, features=()):
        return sum(g.x_advance for g in self.shape(text, features))

    @property
    def space_width(self):
        if self._space_width is None:
            self._space_width = self.width(" ")
        return self._space_width

    def outline(self, glyph_id):
        self._check()
        pen = RecordingPen()
        self.font.draw_glyph_with_pen(glyph_id, pen)
        return Outline.from_recording(pen)

    def clear_cache(self):
        self.cache.clear()
