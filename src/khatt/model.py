import enum
from collections import namedtuple

from .settings import LineType, SpaceType


class Line(namedtuple("Line", ["text", "line_type", "width_ratio", "sajda"])):
    """Class representing one physical line of a mushaf page."""

    __slots__ = ()

    def __new__(cls, text, line_type=LineType.CONTENT, width_ratio=1,
                sajda=None):
        return super().__new__(cls, text, line_type, width_ratio, sajda)


# Word indexes of a prostration span inside a line, both inclusive.
Sajda = namedtuple("Sajda", ["start_word", "end_word"])

# Base letters of a joined run and their offsets inside the owning word.
Subword = namedtuple("Subword", ["base_text", "base_indexes"])

WordInfo = namedtuple("WordInfo", ["text", "start", "end", "base_text",
                                   "base_indexes", "subwords"])


class LineTextInfo:
    """Class holding the segmentation of a line into words and subwords."""

    def __init__(self, text, words, spaces, features=()):
        self.text = text
        self.words = words
        # Character index to SpaceType.
        self.spaces = spaces
        self.features = tuple(features)

    @property
    def simple_spaces(self):
        return [i for i, t in self.spaces.items() if t == SpaceType.SIMPLE]

    @property
    def aya_spaces(self):
        return [i for i, t in self.spaces.items() if t == SpaceType.AYA]

    def word_at(self, index):
        """Returns the index of the word holding the character, or -1."""
        for i, word in enumerate(self.words):
            if word.start <= index <= word.end:
                return i
        return -1

    def __eq__(self, other):
        if not isinstance(other, LineTextInfo):
            return NotImplemented
        return (self.text, self.words, self.spaces, self.features) == \
               (other.text, other.words, other.spaces, other.features)

    def __repr__(self):
        return "LineTextInfo(%r, %d words)" % (self.text, len(self.words))


ShapedGlyph = namedtuple("ShapedGlyph", ["glyph_id", "cluster", "x_advance",
                                         "y_advance", "x_offset", "y_offset"])


class Feature(str, enum.Enum):
    """The stylistic variants the justification rules switch on."""

    CV01 = "cv01"  # elongation of the first letter, or alternate width
    CV02 = "cv02"  # elongation of the second letter
    CV03 = "cv03"  # kaf elongation
    CV10 = "cv10"
    CV11 = "cv11"
    CV12 = "cv12"
    CV13 = "cv13"
    CV14 = "cv14"
    CV15 = "cv15"
    CV16 = "cv16"
    CV17 = "cv17"
    CV18 = "cv18"

    def __str__(self):
        return self.value


FeatureOverride = namedtuple("FeatureOverride", ["feature", "value"])


class FeatureRange(namedtuple("FeatureRange", ["tag", "value", "start",
                                               "end"])):
    """A shaper feature applied to characters [start, end); end -1 means to
    the end of the text."""

    __slots__ = ()

    def __new__(cls, tag, value=1, start=0, end=-1):
        return super().__new__(cls, str(tag), value, start, end)


class JustificationPlan:
    """Class holding the result of justifying one line."""

    def __init__(self, desired_width, natural_width, space_width):
        self.desired_width = desired_width
        self.natural_width = natural_width
        # Character index to a tuple of FeatureOverride.
        self.features = {}
        self.global_features = ()
        self.simple_spacing = space_width
        self.aya_spacing = space_width
        self.x_scale = 1
        self.word_widths = []
        # Width the line occupies once the plan is applied.
        self.width = natural_width
        # Running line width after every committed search edit.
        self.commits = []
        # Whether the kashida and alternate search ran.
        self.searched = False

    @property
    def shortfall(self):
        return max(0, self.desired_width - self.width)

    def feature_value(self, index, feature):
        for override in self.features.get(index, ()):
            if override.feature == feature:
                return override.value
        return 0

    def feature_ranges(self):
        """Converts the per character overrides to shaper feature ranges."""
        ranges = []
        for index in sorted(self.features):
            for override in self.features[index]:
                ranges.append(FeatureRange(override.feature, override.value,
                                           index, index + 1))
        return ranges

    def __repr__(self):
        return ("JustificationPlan(desired=%.1f, width=%.1f, x_scale=%.3f, "
                "%d overrides)" % (self.desired_width, self.width,
                                   self.x_scale, len(self.features)))
