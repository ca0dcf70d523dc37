"""Tajweed colouring.

The text of a page is classified by two passes of large alternations of
named groups, one for heavy letters, qalqalah and some silent letters
(tafkhim), and one for nasalisation and madd (others). Both passes run over
the whole page, so that rules can look across line ends, and their positions
are mapped back to lines afterwards.
"""

import enum
import logging

import regex

from .settings import LineType, MushafLayout

logger = logging.getLogger(__name__)


class TajweedClass(str, enum.Enum):
    TAFKIM = "tafkim"      # heavy letters
    LKALKALA = "lkalkala"  # qalqalah
    LGRAY = "lgray"        # silent letters
    GREEN = "green"        # idgham, ikhfa and iqlab
    RED1 = "red1"          # madd of 2 counts
    RED2 = "red2"          # permissible madd, 4 or 5 counts
    RED3 = "red3"          # obligatory madd, 4 or 5 counts
    RED4 = "red4"          # necessary madd, 6 counts

    def __str__(self):
        return self.value


TAFKIM = TajweedClass.TAFKIM
LKALKALA = TajweedClass.LKALKALA
LGRAY = TajweedClass.LGRAY
GREEN = TajweedClass.GREEN
RED1 = TajweedClass.RED1
RED2 = TajweedClass.RED2
RED3 = TajweedClass.RED3
RED4 = TajweedClass.RED4

DEFAULT_COLORS = {
    TAFKIM: "#006694",
    LKALKALA: "#00ADEF",
    LGRAY: "#B4B4B4",
    GREEN: "#00A650",
    RED1: "#C38A08",
    RED2: "#F47216",
    RED3: "#EC008C",
    RED4: "#8C0000",
}

RIGHT_NO_JOIN = "ادذرزوؤأٱإءة"
DUAL_JOIN = "بتثجحخسشصضطظعغفقكلمنهيئى"
BASES = RIGHT_NO_JOIN + DUAL_JOIN
IKFAA_LETTERS = "صذثكجشقسدطزفتضظ"

FATHATAN = "\u064B"
DAMMATAN = "\u064C"
KASRATAN = "\u064D"
FATHA = "\u064E"
DAMMA = "\u064F"
KASRA = "\u0650"
SHADDA = "\u0651"
SUKUNS = "\u0652\u06E1"
OPEN_FATHATAN = "\u08F0"
OPEN_DAMMATAN = "\u08F1"
OPEN_KASRATAN = "\u08F2"
TANWEEN = FATHATAN + DAMMATAN + KASRATAN
OPEN_TANWEEN = OPEN_FATHATAN + OPEN_DAMMATAN + OPEN_KASRATAN
ALL_TANWEEN = TANWEEN + OPEN_TANWEEN
FDK = FATHA + DAMMA + KASRA
FDKT = FDK + ALL_TANWEEN
HARAKAT = FDKT + SUKUNS + SHADDA

PREFER_WASL_INDOPAK = "\u08D5\u0617\u08D7"
MANDATORY_WAQF_INDOPAK = "\u08DE\u08DF\u08DD\u08DB"
PREFER_WAQF_INDOPAK = "\u0615\u08D6"
TAKHALLUS = "\u0614"
DISPUTED_END_OF_AYAH = "\u08E2"

PREFER_WASL = "\u06D6" + PREFER_WASL_INDOPAK
PREFER_WAQF = "\u06D7" + PREFER_WAQF_INDOPAK
MANDATORY_WAQF = "\u06D8" + MANDATORY_WAQF_INDOPAK
FORBIDDEN_WAQF = "\u06D9"
PERMISSIBLE_WAQF = "\u06DA"
WAQF_IN_ONE_OF_TWO = "\u06DB"
WAQF_MARKS = (PREFER_WASL + PREFER_WAQF + MANDATORY_WAQF + FORBIDDEN_WAQF +
              PERMISSIBLE_WAQF + WAQF_IN_ONE_OF_TWO + DISPUTED_END_OF_AYAH)

MADDAH = "\u0653"
MADDA_WAAJIB = "\u089C"
MADD_CLASS = "[" + MADDAH + MADDA_WAAJIB + "]"
ZIADIT_HARF = "\u06DF"
ZIADIT_HARF_WASL = "\u06E0"
MEEM_IQLAB = "\u06E2"
LOW_MEEM_IQLAB = "\u06ED"
DAGGER_ALEF = "\u0670"
SMALL_WAW = "\u06E5"
SMALL_YEH = "\u06E6"
INVERTED_DAMMA = "\u0657"
SUB_ALEF = "\u0656"
SMALL_MADD = DAGGER_ALEF + SMALL_WAW + SMALL_YEH + INVERTED_DAMMA + SUB_ALEF
SMALL_HIGH_YEH = "\u06E7"
SMALL_HIGH_WAW = "\u08F3"
HIGH_CIRCLE = "\u06EC"
LOW_CIRCLE = "\u065C"
HAMZA_ABOVE = "\u0654"
HAMZA_BELOW = "\u0655"
SMALL_HIGH_SEEN = "\u06DC"
SMALL_LOW_SEEN = "\u06E3"
SMALL_HIGH_NOON = "\u06E8"
CGJ = "\u034F"

MARKS = (HARAKAT + WAQF_MARKS + MADDAH + MADDA_WAAJIB + ZIADIT_HARF +
         ZIADIT_HARF_WASL + MEEM_IQLAB + LOW_MEEM_IQLAB + SMALL_MADD +
         SMALL_HIGH_YEH + SMALL_HIGH_WAW + HIGH_CIRCLE + LOW_CIRCLE +
         HAMZA_ABOVE + HAMZA_BELOW + SMALL_HIGH_SEEN + SMALL_LOW_SEEN +
         SMALL_HIGH_NOON + CGJ + TAKHALLUS)

ELEVATION_CHARS = "طقصخغضظ"
LOWERING_CHARS = "".join(c for c in BASES if c not in ELEVATION_CHARS)
DIGITS = "".join(chr(c) for c in range(0x0660, 0x066A))
KASRAS = KASRA + KASRATAN + OPEN_KASRATAN

AYA_COND = r"\s?[۩]?\s?۝"
WAQF_COND = "(?:%s|[%s]|$)" % (AYA_COND, PREFER_WASL + PREFER_WAQF +
                                MANDATORY_WAQF + PERMISSIBLE_WAQF)
END_WORD_COND = r"(?:\s|$)"
END_MARKS_COND_OPT = "(?:[%s]*)" % (WAQF_MARKS + TAKHALLUS +
                                    DISPUTED_END_OF_AYAH)
BEFORE_AYA_COND = r"[%s۞][%s]?\s" % (DIGITS, WAQF_MARKS)
# Lam lam heh of the name of Allah.
LAM_LAM_HEH = "ل[{m}]*ل[{m}]*ه[{m}]*{e}".format(m=MARKS, e=END_WORD_COND)


def _tafkhim_pattern():
    m = MARKS
    parts = [
        "(?P<kalkala1>[طقدجب][%s])" % SUKUNS,
        "(?P<kalkala2>[طقدجب]%s?)(?=[%s]*%s)" % (SHADDA, m, WAQF_COND),
        "(?P<tafkhim1>[%s]%s?[%s]?)" % (ELEVATION_CHARS, SHADDA,
                                        FDK + SUKUNS),
        r"(?<=\sا%s)(?P<tafkhim_reh1>ر[%s])" % (KASRA, SUKUNS),
        "(?<=%s|%s[%s][%s]|[ي][%s]?|ِطْ)ر"
        "(?P<tafkhim2>[%s]*)(?P<tafkhim2_1>%s)" % (
            KASRA, KASRA, LOWERING_CHARS, SUKUNS, SUKUNS, m, WAQF_COND),
        "(?P<tafkhim3>ر)(?P<tafkhim4>[%s]*)(?P<tafkhim4_1>%s)" % (
            m, WAQF_COND),
        "ر(?=%s?[%s])" % (SHADDA, KASRAS),
        "(?<=%s)ر[%s](?![%s]%s)" % (KASRA, SUKUNS, ELEVATION_CHARS, FATHA),
        "(?P<tafkhim5>ر[%s]*)" % (FDK + SUKUNS + SHADDA),
        r"(?<=^|[%s](?:[%s]|ا%s)?[ياى]?\s?|%s|وا[%s]?\s|%s\s|ٰ࢜)"
        "(?:[ٱ]|ا͏?ٓ|اَ?)ل(?P<tafkhim6>ل[%s]*)"
        "ه[%s]*م?[%s]*%s" % (
            FATHA + DAMMA + MANDATORY_WAQF + PREFER_WAQF + PERMISSIBLE_WAQF +
            PREFER_WASL, FORBIDDEN_WAQF, ZIADIT_HARF, BEFORE_AYA_COND,
            ZIADIT_HARF, TAKHALLUS, m, m, m, END_WORD_COND),
        "اٰ࢜ل(?P<tafkhim6_2>ل[%s]*)ه[%s]*م?[%s]*%s" % (
            m, m, m, END_WORD_COND),
        "(?P<gray3>[%s][%s])" % (BASES, ZIADIT_HARF),
        "(?<=[و][%s]?%s?|[و]%s?ٔ%s?[%s%s]|[و][%s]|[%s%s][و][%s])"
        "(?P<gray3_indopak_1>[ا])(?=%s(?:%s|(?:%s)))" % (
            SUKUNS, MADD_CLASS, CGJ, CGJ, DAMMA, DAMMATAN, DAMMA, DAMMA,
            SUKUNS, FATHA, END_MARKS_COND_OPT, END_WORD_COND, AYA_COND),
        "(?<=[%s])(?P<gray3_indopak_2>[ا])(?=[%s])(?!%s)" % (
            KASRA, BASES, LAM_LAM_HEH),
    ]
    return "|".join(parts)


GREY_HAMZAT_WASL_MADINAH = "(?<=[%s][%s]*)(?P<gray1>ٱ)(?!%s)" % (
    BASES, MARKS, LAM_LAM_HEH)
GREY_HAMZAT_WASL_INDOPAK = ("(?<=[%s][%s]*)(?P<gray1>ا)(?!%s)"
                            "(?=[%s][%s%s]|ل[%s])" % (
                                BASES, MARKS, LAM_LAM_HEH, BASES, SUKUNS,
                                SHADDA, BASES))
GREY_WAW_YEH_MADINAH = ("(?P<gray4>[و])(?=%s)|(?P<gray4_1>[ى])(?=%s[%s])" % (
    DAGGER_ALEF, DAGGER_ALEF, BASES))
GREY_WAW_YEH_INDOPAK = ("(?<=%s%s?)(?P<gray4>[و])(?=[%s])"
                        "|(?P<gray4_1>[ى])(?=[%s])"
                        "|(?P<gray4_2>[و](?=[%s]))" % (
                            DAGGER_ALEF, MADDAH, BASES, BASES,
                            BASES.replace("ا", "", 1)))

MADD_JAIZ_ASSERT = ("(?=[وى]?[%s][%s][%s]?%s|هِۛ)"
                    "(?!ا[%s])" % (BASES, HARAKAT, MARKS, WAQF_COND,
                                   ZIADIT_HARF))


def _others_pattern(indopak):
    m = MARKS
    parts = [
        GREY_HAMZAT_WASL_INDOPAK if indopak else GREY_HAMZAT_WASL_MADINAH,
        "(?<=[اٱ])(?P<gray2>ل(?![%s]*ل[%s]*ه[%s]*%s))(?=[%s])" % (
            m, m, m, END_WORD_COND, BASES),
        GREY_WAW_YEH_INDOPAK if indopak else GREY_WAW_YEH_MADINAH,
        "(?<=%s)(?P<gray7>[وي])(?=%s?%s%s?[%s]*(?:ا[%s]?)?%s)" % (
            MADD_CLASS, CGJ, HAMZA_ABOVE, CGJ, m, ZIADIT_HARF,
            END_WORD_COND),
        "(?<=%s)(?P<gray8>ل)(?=ذّ)" % MADD_CLASS,
        "(?P<tanween1>ن%s%s?[%s]?)" % (MEEM_IQLAB, CGJ, SUKUNS),
        "(?<!%s|^)(?P<tanween2>[من]%s(?:[%s]|(?=%s)))(?!%s)" % (
            BEFORE_AYA_COND, SHADDA, FDKT, DAGGER_ALEF, MADDA_WAAJIB),
        "(?P<tanween3>[%s])(?=(?:ا[%s]?)?(?P<tanween3_a>%s)?)" % (
            MEEM_IQLAB + LOW_MEEM_IQLAB, ZIADIT_HARF, AYA_COND),
        r"(?P<tanween4>م[%s]?)(?=\sب)" % SUKUNS,
        "(?P<tanween5>ن[%s])" % BASES,
        r"(?P<tanween6>[ن%s%s][%s]?)[%s]?۟?%s\s"
        "(?P<tanween7>[ينمو](?:[%s]?[%s]|[%s](?=%s)))" % (
            OPEN_TANWEEN, TANWEEN, SUKUNS, BASES, END_MARKS_COND_OPT, SHADDA,
            FDKT, SHADDA, DAGGER_ALEF),
        r"(?P<tanween8>[ن%s%s][%s]?)[%s]?%s\s?[لر][%s]" % (
            OPEN_TANWEEN, TANWEEN, SUKUNS, BASES, END_MARKS_COND_OPT,
            SHADDA),
        r"(?P<tanween9>[%s%s][%s]?)[%s]?%s\s?[%s]" % (
            OPEN_TANWEEN, TANWEEN, SUKUNS, BASES, END_MARKS_COND_OPT,
            IKFAA_LETTERS),
        r"(?P<tanween9_noon>[ن][%s]?)[%s]?\s?[%s]" % (SUKUNS, BASES,
                                                     IKFAA_LETTERS),
        r"(?<=[%s])(?P<gray6>[%s])(?P<gray6_sukuns>[%s]?)"
        r"(?=\s?(?P<gray6_1>[%s]%s))" % (FDK, BASES, SUKUNS, BASES, SHADDA),
        "(?P<tanween10>ـۨ[%s]?)" % SUKUNS,
        r"(?<!\s|^)(?P<madd5>(?:[يو%s%s][%s]?|[ا]))%s" % (
            DAGGER_ALEF, SUB_ALEF, SUKUNS, MADD_JAIZ_ASSERT),
        "(?P<madd4_1>[ى]%s%s)%s(?=(?P<madd4_1_aya>%s)?)" % (
            DAGGER_ALEF, MADD_CLASS, END_WORD_COND, AYA_COND),
        "(?P<madd4_4>%s%s)[ي][ۙ]?%s(?=(?P<madd4_4_aya>%s)?)" % (
            DAGGER_ALEF, MADD_CLASS, END_WORD_COND, AYA_COND),
        "(?<=[ى])%s[%s]?%s" % (DAGGER_ALEF, WAQF_MARKS, END_WORD_COND),
        "(?P<madd1>[او%s]%s?[%s]?%s)(?=[%s][%s%s]|[%s][%s])(?!وا)" % (
            SMALL_MADD, CGJ, SUKUNS, MADD_CLASS, BASES, SHADDA, SUKUNS,
            BASES, BASES),
        "(?P<madd4_2>[اويى%s]%s?[%s]?%s)(?=(?:ا[%s])?(?P<madd4_2_a>%s)?)" % (
            SMALL_MADD, CGJ, SUKUNS, MADD_CLASS, ZIADIT_HARF, WAQF_COND),
        "(?P<madd5_1>ـ[%s])%s" % (SMALL_HIGH_YEH, MADD_JAIZ_ASSERT),
        "(?P<madd2_1>ـ[%s])(?![%s])" % (SMALL_HIGH_YEH, HARAKAT),
        "(?P<madd2>[%s])(?!%s?%s|[%s]|%s)" % (SMALL_MADD, CGJ, HAMZA_ABOVE,
                                              FDKT, AYA_COND),
        "[او%s]%s?[%s]?%s%s" % (SMALL_MADD, CGJ, SUKUNS, MADD_CLASS,
                                AYA_COND),
        "(?P<madd3>[نكعصلمسق][%s]?[%s]?%s)" % (SHADDA, FATHA, MADD_CLASS),
        "(?P<madd4_3>ࣳٓ)",
    ]
    return "|".join(parts)


TAFKHIM_RE = regex.compile(_tafkhim_pattern())
OTHERS_MADINAH_RE = regex.compile(_others_pattern(indopak=False))
OTHERS_INDOPAK_RE = regex.compile(_others_pattern(indopak=True))


def _span(match, name):
    """Returns the span of a named group that took part in the match."""

    if name not in match.re.groupindex:
        return None
    start, end = match.span(name)
    if start < 0:
        return None
    return start, end


def _first_span(match, *names):
    for name in names:
        span = _span(match, name)
        if span is not None:
            return span
    return None


def _first_char(match, name):
    if _span(match, name) is None:
        return None
    return match.group(name)[:1]


def _matches(pattern, text):
    """Yields matches left to right. The consumer may send back the position
    the next search starts at."""

    pos = 0
    while pos <= len(text):
        match = pattern.search(text, pos)
        if match is None:
            return
        next_pos = match.end() if match.end() > match.start() \
            else match.start() + 1
        requested = yield match
        if requested is not None:
            # Acknowledge the send, the next iteration yields the match.
            yield None
            next_pos = requested
        pos = next_pos


def apply_tafkhim(text, set_class):
    for match in _matches(TAFKHIM_RE, text):
        span = _span(match, "tafkhim_reh1")
        if span:
            set_class(span[0], TAFKIM)
            set_class(span[0] + 1, TAFKIM)
            continue

        span = _first_span(match, "tafkhim1", "tafkhim5", "tafkhim6",
                           "tafkhim6_2")
        if span:
            for pos in range(*span):
                set_class(pos, TAFKIM)
            continue

        span = _span(match, "tafkhim2")
        if span:
            first = span[0]
            end = _span(match, "tafkhim2_1")
            end_char = text[end[0]:end[0] + 1] if end else ""
            if end_char != " " and text[first:first + 1] in (FATHA, DAMMA):
                set_class(first, TAFKIM)
            continue

        span = _span(match, "tafkhim3")
        if span:
            set_class(span[0], TAFKIM)
            marks = _span(match, "tafkhim4")
            if marks:
                char = text[marks[0]:marks[0] + 1]
                end = _span(match, "tafkhim4_1")
                end_char = text[end[0]:end[0] + 1] if end else ""
                if end_char != " ":
                    if char and (char in (FATHA, DAMMA) or char in SUKUNS):
                        set_class(marks[0], TAFKIM)
                    elif char == SHADDA:
                        set_class(marks[0], TAFKIM)
                        following = marks[0] + 1
                        if following < marks[1] and \
                           text[following] in (FATHA, DAMMA):
                            set_class(following, TAFKIM)
                elif char and (char in SUKUNS or char == SHADDA):
                    set_class(marks[0], TAFKIM)
            continue

        span = _span(match, "kalkala1")
        if span:
            set_class(span[0], LKALKALA)
            set_class(span[0] + 1, LKALKALA)
            continue

        span = _span(match, "kalkala2")
        if span:
            set_class(span[0], LKALKALA)
            if span[0] + 1 < span[1]:
                set_class(span[0] + 1, LKALKALA)
            continue

        span = _span(match, "gray3")
        if span:
            set_class(span[0], LGRAY)
            set_class(span[0] + 1, LGRAY)
            continue

        span = _first_span(match, "gray3_indopak_1", "gray3_indopak_2")
        if span:
            set_class(span[0], LGRAY)


def _set_run(set_class, span, tajweed, length):
    """Sets the first length positions of span, the first two always."""

    first = span[0]
    set_class(first, tajweed)
    set_class(first + 1, tajweed)
    if length > 2 and first + 2 < span[1]:
        set_class(first + 2, tajweed)


def _set_first(set_class, span, tajweed):
    """Sets the first position of span and the second when inside it."""

    set_class(span[0], tajweed)
    if span[0] + 1 < span[1]:
        set_class(span[0] + 1, tajweed)


def apply_others(text, set_class, indopak=False):
    pattern = OTHERS_INDOPAK_RE if indopak else OTHERS_MADINAH_RE
    matches = _matches(pattern, text)
    for match in matches:
        span = _span(match, "tanween1")
        if span:
            set_class(span[0], LGRAY)
            for pos in range(span[0] + 1, span[1]):
                set_class(pos, GREEN)
            continue

        span = _span(match, "tanween2")
        if span:
            set_class(span[0], GREEN)
            set_class(span[0] + 1, GREEN)
            group = match.group("tanween2")
            if group[2:3] and group[2] in ALL_TANWEEN:
                # The tanween may start the next rule.
                matches.send(match.end() - 1)
            else:
                set_class(span[0] + 2, GREEN)
            continue

        span = _span(match, "tanween3")
        if span:
            if _span(match, "tanween3_a") is None:
                set_class(span[0], GREEN)
            continue

        span = _span(match, "tanween4")
        if span:
            _set_first(set_class, span, GREEN)
            continue

        span = _span(match, "tanween5")
        if span:
            set_class(span[0], GREEN)
            continue

        span = _span(match, "tanween6")
        if span:
            if _first_char(match, "tanween6") != "ن" or \
               _first_char(match, "tanween7") != "ن":
                _set_first(set_class, span, LGRAY)
            green = _span(match, "tanween7")
            if green:
                _set_run(set_class, green, GREEN, 3)
            continue

        span = _span(match, "tanween8")
        if span:
            _set_first(set_class, span, LGRAY)
            continue

        span = _first_span(match, "tanween9", "tanween9_noon")
        if span:
            _set_first(set_class, span, GREEN)
            continue

        span = _span(match, "tanween10")
        if span:
            _set_run(set_class, span, GREEN, 3)
            continue

        span = _first_span(match, "gray1", "gray2", "gray4", "gray4_1",
                           "gray4_2")
        if span:
            set_class(span[0], LGRAY)
            continue

        span = _span(match, "gray6")
        if span:
            first_char = _first_char(match, "gray6")
            second_char = _first_char(match, "gray6_1")
            if match.group("gray6_sukuns"):
                if first_char != second_char:
                    tajweed = TAFKIM if first_char == "ط" else LGRAY
                    set_class(span[0], tajweed)
                    set_class(span[0] + 1, tajweed)
                else:
                    # Full assimilation, the letter is not coloured.
                    set_class(span[0], None)
                    set_class(span[0] + 1, None)
            elif first_char != second_char or first_char == "ي":
                set_class(span[0], LGRAY)
            continue

        span = _first_span(match, "gray7", "gray8")
        if span:
            set_class(span[0], LGRAY)
            continue

        span = _span(match, "madd1")
        if span:
            _set_run(set_class, span, RED4, 3)
            continue

        span = _span(match, "madd2")
        if span:
            set_class(span[0], RED1)
            continue

        span = _span(match, "madd2_1")
        if span:
            _set_run(set_class, span, RED1, 2)
            continue

        span = _span(match, "madd5_1")
        if span:
            _set_run(set_class, span, RED2, 2)
            continue

        span = _span(match, "madd3")
        if span:
            for pos in range(*span):
                set_class(pos, RED4)
            continue

        span = _span(match, "madd4_1")
        if span:
            if _span(match, "madd4_1_aya") is None:
                _set_run(set_class, span, RED3, 3)
            continue

        span = _span(match, "madd4_4")
        if span:
            if _span(match, "madd4_4_aya") is None:
                for pos in range(span[0], span[0] + 3):
                    set_class(pos, RED3)
            continue

        span = _span(match, "madd4_2")
        if span:
            waqf = _span(match, "madd4_2_a")
            if waqf and match.group("madd4_2_a").endswith("۝"):
                continue
            if waqf is None or _first_char(match, "madd4_2") in (
                    SMALL_YEH, SMALL_WAW, INVERTED_DAMMA, SUB_ALEF):
                set_class(span[0], RED3)
            set_class(span[0] + 1, RED3)
            if span[0] + 2 < span[1]:
                set_class(span[0] + 2, RED3)
            continue

        span = _span(match, "madd5")
        if span:
            _set_first(set_class, span, RED2)
            continue

        span = _span(match, "madd4_3")
        if span:
            set_class(span[0], RED3)
            set_class(span[0] + 1, RED3)


class _LineLocator:
    """Maps positions in the concatenated page text back to lines. Positions
    only move forward within a pass."""

    def __init__(self, spans, result):
        # (line index, start, end) in page text order.
        self.spans = spans
        self.result = result
        self.current = 0

    def reset(self):
        self.current = 0

    def __call__(self, pos, tajweed):
        while self.current < len(self.spans):
            line_index, start, end = self.spans[self.current]
            if pos < start:
                # Between two lines.
                return
            if pos < end:
                classes = self.result[line_index]
                if tajweed:
                    classes[pos - start] = tajweed
                else:
                    classes.pop(pos - start, None)
                return
            self.current += 1


def _classify_text(text, locator, indopak):
    apply_tafkhim(text, locator)
    locator.reset()
    apply_others(text, locator, indopak)


def classify(text, indopak=False):
    """Classifies every character of text, returns {index: TajweedClass}."""

    result = [{}]
    _classify_text(text, _LineLocator([(0, 0, len(text))], result), indopak)
    return result[0]


def page_text(lines):
    """Concatenates the lines of a page the way the rules expect them.
    Returns the text and (line index, start, end) spans."""

    text = ""
    spans = []
    for line_index, line in enumerate(lines):
        if line.line_type == LineType.SURA:
            continue
        added = " ۝ " if line.line_type == LineType.BASMALA else " "
        spans.append((line_index, len(text), len(text) + len(line.text)))
        text += line.text + added
    return text, spans


def classify_page(lines, indopak=False):
    """Returns one {index: TajweedClass} map per line of the page."""

    text, spans = page_text(lines)
    result = [{} for _ in lines]
    _classify_text(text, _LineLocator(spans, result), indopak)
    return result


class TajweedCache:
    """Class caching page classifications until the text or ruleset
    changes."""

    def __init__(self, quran_text):
        self.quran_text = quran_text
        self.indopak = quran_text.layout == MushafLayout.INDOPAK
        self.cache = {}

    def page(self, page_index):
        if page_index not in self.cache:
            logger.debug("Tajweed for page %d", page_index + 1)
            self.cache[page_index] = classify_page(
                self.quran_text.page(page_index), self.indopak)
        return self.cache[page_index]

    def clear(self):
        self.cache.clear()


def merge_colors(colors=None):
    merged = dict(DEFAULT_COLORS)
    for name, color in (colors or {}).items():
        merged[TajweedClass(name)] = color
    return merged


def css_rules(colors=None):
    colors = colors or DEFAULT_COLORS
    return "\n".join(".%s { fill: %s; }" % (name, color)
                     for name, color in colors.items())


def css_variables(colors=None, prefix="tajweed"):
    colors = colors or DEFAULT_COLORS
    return "\n".join("--%s-%s: %s;" % (prefix, name, color)
                     for name, color in colors.items())


def css_rules_with_variables(prefix="tajweed"):
    return "\n".join(".%s { fill: var(--%s-%s); }" % (name, prefix, name)
                     for name in TajweedClass)
