import logging

from .model import FeatureRange, LineTextInfo, Subword, WordInfo
from .numbers import END_OF_AYA, is_arabic_digit
from .settings import SpaceType

logger = logging.getLogger(__name__)

RIGHT_NO_JOIN = "آاٱأإدذرزوؤءة"
DUAL_JOIN = "بتثجحخسشصضطظعغفقكلمنهيئى"
BASES = frozenset(RIGHT_NO_JOIN + DUAL_JOIN)
HAMZA = "ء"


def space_type(text, index):
    """Classifies the space at index: verse end spaces follow a verse number
    or precede an end of aya sign."""

    if index > 0 and is_arabic_digit(text[index - 1]):
        return SpaceType.AYA
    if index + 1 < len(text) and text[index + 1] == END_OF_AYA:
        return SpaceType.AYA
    return SpaceType.SIMPLE


class _WordBuilder:

    def __init__(self, start):
        self.start = start
        self.text = ""
        self.base_text = ""
        self.base_indexes = []
        self.subwords = []
        self.broken = True

    def add(self, char):
        offset = len(self.text)
        self.text += char
        if char not in BASES:
            return

        self.base_text += char
        self.base_indexes.append(offset)
        # A hamza never joins, neither does the letter after a non-joining
        # one.
        if self.broken or char == HAMZA:
            self.subwords.append(("", []))
        base_text, indexes = self.subwords[-1]
        indexes.append(offset)
        self.subwords[-1] = (base_text + char, indexes)
        self.broken = char in RIGHT_NO_JOIN

    def build(self):
        subwords = [Subword(t, tuple(i)) for t, i in self.subwords]
        if not subwords:
            subwords = [Subword("", ())]
        return WordInfo(self.text, self.start, self.start + len(self.text) - 1,
                        self.base_text, tuple(self.base_indexes),
                        tuple(subwords))


def segment(text, features=()):
    """Splits a line into words and joined subwords, and classifies its
    spaces."""

    words = []
    spaces = {}
    word = _WordBuilder(0)
    for i, char in enumerate(text):
        if char == " ":
            spaces[i] = space_type(text, i)
            words.append(word.build())
            word = _WordBuilder(i + 1)
        else:
            word.add(char)
    words.append(word.build())

    return LineTextInfo(text, tuple(words), spaces, features)


def line_features(page_index, line_index):
    # The opening basmala lines use the font’s dedicated forms.
    if page_index in (0, 1) and line_index == 1:
        return (FeatureRange("bism", 1, 0, -1),)
    return ()


class Segmenter:
    """Class caching line segmentations by page and line index."""

    def __init__(self):
        self.cache = {}

    def line_info(self, text, page_index, line_index):
        key = (page_index, line_index)
        if key not in self.cache:
            logger.debug("Segmenting page %d, line %d", page_index + 1,
                         line_index + 1)
            self.cache[key] = segment(text,
                                      line_features(page_index, line_index))
        return self.cache[key]

    def clear(self):
        self.cache.clear()
