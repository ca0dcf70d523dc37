import json
import logging
from collections import namedtuple

import regex

from .errors import ConfigurationError, OutOfRangeError
from .model import Line, Sajda
from .settings import LineType, MushafLayout

logger = logging.getLogger(__name__)

CGJ = "\u034F"

SURA_WORD = "سُورَةُ"
BASMALA = (
    "بِسْمِ ٱللَّهِ ٱلرَّحْمَٰنِ ٱلرَّحِيمِ",
    "بِّسْمِ ٱللَّهِ ٱلرَّحْمَٰنِ ٱلرَّحِيمِ",
    "بِسْمِ اللّٰهِ الرَّحْمٰنِ الرَّحِيْمِ ۝",  # IndoPak
)
SURA_BASMALA_RE = regex.compile(
    "^(?P<sura>%s .*)|(?P<bism>%s)$" % (SURA_WORD, "|".join(BASMALA)))

# Words that call for a prostration, the capture group is the overlined part.
SAJDA_PATTERNS = (
    "(وَٱسْجُدْ) وَٱقْتَرِب",
    "(خَرُّوا۟ سُجَّدࣰا)",
    "(وَلِلَّهِ يَسْجُدُ)",
    "(يَسْجُدُونَ)۩",
    "(فَٱسْجُدُوا۟ لِلَّهِ)",
    "(وَٱسْجُدُوا۟ لِلَّهِ)",
    "(أَلَّا يَسْجُدُوا۟ لِلَّهِ)",
    "(وَخَرَّ رَاكِعࣰا)",
    "(يَسْجُدُ لَهُ)",
    "(يَخِرُّونَ لِلْأَذْقَانِ سُجَّدࣰا)",
    "(ٱسْجُدُوا۟) لِلرَّحْمَٰنِ",
    "ٱرْكَعُوا۟ (وَٱسْجُدُوا۟)",
)

# Lines narrower than the text block, keyed by 1-based (page, line).
OLD_MADINAH_LINE_WIDTHS = {
    (600, 9): 0.84,
    (602, 5): 0.61,
    (602, 15): 0.59,
    (603, 10): 0.68,
    (604, 4): 0.836,
    (604, 9): 0.836,
    (604, 14): 0.717,
    (604, 15): 0.54,
}

NEW_MADINAH_LINE_WIDTHS = {
    (255, 2): 0.74,
    (528, 9): 0.6,
    (534, 6): 0.7,
    (545, 6): 0.75,
    (586, 1): 0.81,
    (593, 2): 0.81,
    (594, 5): 0.63,
    (600, 10): 0.75,
    (602, 5): 0.63,
    (602, 11): 0.9,
    (602, 15): 0.53,
    (603, 10): 0.66,
    (603, 15): 0.6,
    (604, 4): 0.55,
    (604, 9): 0.55,
    (604, 14): 0.675,
    (604, 15): 0.5,
}

INDOPAK_LINE_WIDTHS = {
    (255, 4): 0.9,
    (312, 4): 0.6,
    (331, 12): 0.7,
    (349, 15): 0.9,
    (396, 8): 0.7,
    (417, 15): 0.8,
    (440, 7): 0.5,
    (452, 11): 0.8,
    (495, 11): 0.8,
    (498, 7): 0.7,
    (510, 15): 0.6,
    (523, 8): 0.8,
    (528, 11): 0.7,
    (531, 7): 0.7,
    (548, 15): 0.5,
    (554, 9): 0.7,
    (569, 10): 0.8,
    (573, 12): 0.3,
    (576, 2): 0.5,
    (577, 15): 0.5,
    (580, 5): 0.7,
    (581, 15): 0.5,
    (584, 2): 0.3,
    (590, 10): 0.8,
    (591, 11): 0.5,
    (592, 8): 0.7,
    (594, 2): 0.8,
    (595, 3): 0.6,
    (596, 4): 0.7,
    (596, 15): 0.6,
    (598, 9): 0.8,
    (599, 15): 0.5,
    (602, 2): 0.5,
    (602, 15): 0.5,
    (605, 10): 0.5,
    (606, 2): 0.5,
    (606, 9): 0.8,
    (606, 15): 0.7,
    (609, 11): 0.7,
    (609, 15): 0.7,
    (610, 5): 0.5,
    (610, 10): 0.7,
}

OutlineItem = namedtuple("OutlineItem", ["name", "page"])
SajdaLocation = namedtuple("SajdaLocation", ["page", "line", "start_word",
                                             "end_word"])


def adjust_text(text):
    """Inserts combining grapheme joiners so that madda and hamza above are
    ordered after the letter they sit on."""

    text = text.replace("\u0627\u0653", "\u0627" + CGJ + "\u0653")
    for letter in "اوي":
        text = text.replace(letter + "\u0654",
                            letter + CGJ + "\u0654" + CGJ)
    return text


SAJDA_RE = regex.compile(adjust_text("|".join(SAJDA_PATTERNS)))


def _opening_widths(layout):
    """Width ratios of the lines of the first two pages, which are set in a
    narrowing block."""

    widths = {}
    for page_index in range(2):
        page = page_index + 1
        if layout == MushafLayout.INDOPAK:
            ratio = 0.7
            shape = (0.8, 1, 1, 1, 1, 1, 1)
        else:
            if layout == MushafLayout.OLD_MADINAH:
                ratio = 0.9
                first = 0.5 if page_index == 0 else 0.43
            else:
                ratio = 0.95
                first = 0.5 if page_index == 0 else 0.45
            shape = (first, 0.7, 0.9, 1, 0.9, 0.7, 0.4)
        for i, value in enumerate(shape):
            widths[(page, i + 2)] = ratio * value
    return widths


def line_widths(layout):
    if layout == MushafLayout.OLD_MADINAH:
        widths = dict(OLD_MADINAH_LINE_WIDTHS)
    elif layout == MushafLayout.NEW_MADINAH:
        widths = dict(NEW_MADINAH_LINE_WIDTHS)
    else:
        widths = dict(INDOPAK_LINE_WIDTHS)
    widths.update(_opening_widths(layout))
    return widths


def find_sajda(text):
    """Returns the Sajda span of the first prostration in text, or None."""

    match = SAJDA_RE.search(text)
    if match is None:
        return None

    for i in range(1, len(match.groups()) + 1):
        start, end = match.span(i)
        if start < 0:
            continue
        start_word = text.count(" ", 0, start)
        # Spaces before the group end, a group reaching the end of the line
        # ends with the last word.
        end_word = text.count(" ", 0, end)
        return Sajda(start_word, end_word)
    return None


class QuranText:
    """Class holding the text of a whole mushaf and per line information."""

    def __init__(self, pages, layout=MushafLayout.NEW_MADINAH):
        self.layout = MushafLayout(layout)
        self.outline = []
        self.sajdas = []
        self.pages = []

        widths = line_widths(self.layout)
        for page_index, page in enumerate(pages):
            lines = []
            for line_index, text in enumerate(page):
                text = adjust_text(text)
                width = widths.get((page_index + 1, line_index + 1), 1)
                line_type = LineType.CONTENT
                match = SURA_BASMALA_RE.search(text)
                if match and match.group("sura"):
                    line_type = LineType.SURA
                    self.outline.append(OutlineItem(match.group("sura"),
                                                    page_index))
                elif match and match.group("bism"):
                    line_type = LineType.BASMALA

                sajda = find_sajda(text)
                if sajda is not None:
                    logger.debug("Prostration at page %d, line %d",
                                 page_index + 1, line_index + 1)
                    self.sajdas.append(SajdaLocation(page_index, line_index,
                                                     *sajda))
                lines.append(Line(text, line_type, width, sajda))
            self.pages.append(tuple(lines))

    @property
    def page_count(self):
        return len(self.pages)

    def page(self, page_index):
        if not 0 <= page_index < len(self.pages):
            raise OutOfRangeError("Page", page_index, len(self.pages))
        return self.pages[page_index]

    def line(self, page_index, line_index):
        page = self.page(page_index)
        if not 0 <= line_index < len(page):
            raise OutOfRangeError("Line", line_index, len(page))
        return page[line_index]

    def page_of_sura(self, number):
        """Returns the page index where the 1-based sura number starts."""
        return self.outline[number - 1].page


def read_data(path):
    """Reads a JSON document holding a list of pages, each a list of line
    strings."""

    try:
        with open(path, "r", encoding="utf-8") as textfile:
            pages = json.load(textfile)
    except FileNotFoundError:
        logger.error("File not found: %s", path)
        raise ConfigurationError("File not found: %s" % path)
    except ValueError as e:
        raise ConfigurationError("Malformed text file %s: %s" % (path, e))

    if not isinstance(pages, list) or \
       not all(isinstance(p, list) and all(isinstance(l, str) for l in p)
               for p in pages):
        raise ConfigurationError("Text file %s is not a list of pages of "
                                 "lines" % path)
    return pages
