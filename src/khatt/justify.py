"""Line justification.

A line is first stretched with its spaces, then by elongating letter
connections (kashida) and switching letters to wider alternates, and finally
by spreading what is left over all spaces. Lines too wide for their measure
are scaled down horizontally, never elongated.

Every elongation is a speculative edit: the word is shaped again with the
new features and the edit is kept only when it widens the word without
making the line reach its desired width.
"""

import enum
import logging

import regex

from .model import Feature, FeatureOverride, FeatureRange, JustificationPlan
from .segment import DUAL_JOIN, RIGHT_NO_JOIN
from .settings import JustStyle, MushafLayout

logger = logging.getLogger(__name__)

FATHA = "\u064E"
SHADDA = "\u0651"

# Space stretch caps, in font units.
MAX_SIMPLE_SPACE_STRETCH = 100
MAX_AYA_SPACE_STRETCH = 200

MAX_KASHIDA = 6
MAX_ALTERNATE = 12


class AppliedResult(enum.Enum):
    NO_CHANGE = 0
    POSITIVE = 1
    OVERFLOW = 2
    FORBIDDEN = 3


class StretchType(enum.IntEnum):
    BEH = 1
    FINA_ASCENDANT = 2
    OTHER_KASHIDAS = 3
    KAF = 4
    SECOND_KASHIDA_NOT_SAME_SUBWORD = 5
    SECOND_KASHIDA_SAME_SUBWORD = 6


FINAL_ASCENDANT = "آادذٱأإكلهة"
BEH_LIKE = "بتثنيئ"
JEEM_LIKE = "جحخ"

RIGHT = BEH_LIKE + JEEM_LIKE + "سشصضطظعغفقمه"
LEFT = "ئبتثني" + JEEM_LIKE + "طظعغفقةلمرز"
LEFT_NO_REH = LEFT.replace("رز", "")

BEH_PATTERN = "^.+(?P<k1>[بتثنيسشصض][بتثنيم]).+$"
FINA_ASCENDANT_PATTERN = "(?P<k1>[%s][%s])$" % (RIGHT, FINAL_ASCENDANT)
REH_PATTERN = "(?P<k1>[%s][رز])" % RIGHT
OTHER_PATTERN = "(?P<k1>[%s](?:[ل]|[%s]))" % (RIGHT, LEFT_NO_REH)
KAF_PATTERN = "^.*(?P<k1>[ك].).*$"


def _compile(*patterns):
    return tuple(regex.compile(p) for p in patterns)


STRETCH_PATTERNS = {
    StretchType.BEH: _compile(BEH_PATTERN),
    StretchType.FINA_ASCENDANT: _compile("^.*" + FINA_ASCENDANT_PATTERN),
    StretchType.OTHER_KASHIDAS: _compile(".*" + REH_PATTERN,
                                         ".*" + OTHER_PATTERN),
    StretchType.KAF: _compile(KAF_PATTERN),
    StretchType.SECOND_KASHIDA_NOT_SAME_SUBWORD: _compile(
        BEH_PATTERN, "^.*" + FINA_ASCENDANT_PATTERN, ".*" + REH_PATTERN,
        ".*" + OTHER_PATTERN),
    StretchType.SECOND_KASHIDA_SAME_SUBWORD: _compile(
        BEH_PATTERN, FINA_ASCENDANT_PATTERN, REH_PATTERN, OTHER_PATTERN),
}

# Patterns of the simple (IndoPak) search.
RIGHT_KASHIDA = regex.sub("[لك]", "", DUAL_JOIN)
LEFT_CHARS = DUAL_JOIN + RIGHT_NO_JOIN.replace("ء", "", 1)
LEFT_KASHIDA_FINA = regex.sub("[وهصضطظ]", "", LEFT_CHARS)
LEFT_KASHIDA_MEDI = LEFT_KASHIDA_FINA.replace("ه", "", 1)

ALT_FINA = "^.*([بتثفكنصضسشقيئى])$"
FINAL_KASHIDA_END_WORD = "^.*([%s][آاٱأإملهة])$" % RIGHT_KASHIDA
FINAL_KASHIDA = "^.*([%s][دذآاٱأإملهة])$" % RIGHT_KASHIDA
HAH_KASHIDA = "^.*([جحخ][%s]).*$|^.*([جحخ][هة])$" % LEFT_KASHIDA_MEDI
BEH_BEH = "^.+([بتثنيسشصض][بتثنيم]).+$"
REH = ".*([%s][رز])" % RIGHT_KASHIDA
OTHER = ".*([%s](?:[ل]|[%s]))" % (RIGHT_KASHIDA, LEFT_KASHIDA_MEDI)
KAF = "^.*([ك].).*$"

ALT_FINA_RE = regex.compile(ALT_FINA)
HAH_FINA_ASCENDANT_RE = regex.compile(HAH_KASHIDA + "|" +
                                      FINAL_KASHIDA_END_WORD)
# Groups: 1 alternate, 2-3 hah, 4 final, 5 beh, 6 reh, 7 other, 8 kaf.
SIMPLE_RE = regex.compile("|".join((ALT_FINA, HAH_KASHIDA, FINAL_KASHIDA,
                                    BEH_BEH, REH, OTHER, KAF)))
SIMPLE_ALTERNATE_GROUP = 1
SIMPLE_KAF_GROUP = 8

# The Madinah search: stretch type or alternate letters, and levels.
MADINAH_CASCADE = (
    (StretchType.BEH, 2),
    ("بتثكن", 2),
    (StretchType.FINA_ASCENDANT, 3),
    (StretchType.OTHER_KASHIDAS, 2),
    ("ىصضسشفقيئ", 2),
    (StretchType.KAF, 1),
    (StretchType.BEH, 1),
    ("بتثكن", 1),
    (StretchType.FINA_ASCENDANT, 1),
    (StretchType.OTHER_KASHIDAS, 1),
    ("ىصضسشفقيئ", 1),
    ("بتثكن", 2),
    ("ىصضسشفقيئبتثكن", 2),
    (StretchType.BEH, 1),
    (StretchType.FINA_ASCENDANT, 1),
    (StretchType.OTHER_KASHIDAS, 1),
    ("ىصضسشفقيئبتثكن", 2),
    (StretchType.SECOND_KASHIDA_NOT_SAME_SUBWORD, 2),
    (StretchType.SECOND_KASHIDA_SAME_SUBWORD, 2),
)

# Stretch types that exclude each other within a word.
EXCLUSIVE_TYPES = {
    StretchType.BEH: (StretchType.FINA_ASCENDANT, StretchType.OTHER_KASHIDAS),
    StretchType.FINA_ASCENDANT: (StretchType.BEH, StretchType.OTHER_KASHIDAS),
    StretchType.OTHER_KASHIDAS: (StretchType.BEH, StretchType.FINA_ASCENDANT),
}


def merge_features(previous, applied):
    """Merges applied (feature, value, combine) triples into a tuple of
    FeatureOverride. combine, when given, computes the new value from the
    previous one (or None) and the applied value."""

    merged = [FeatureOverride(*f) for f in previous or ()]
    for feature, value, combine in applied:
        for i, existing in enumerate(merged):
            if existing.feature == feature:
                if combine is not None:
                    value = combine(existing.value, value)
                merged[i] = FeatureOverride(feature, value)
                break
        else:
            if combine is not None:
                value = combine(None, value)
            merged.append(FeatureOverride(feature, value))
    return tuple(merged)


def _value(features, feature):
    for override in features or ():
        if override.feature == feature:
            return override.value
    return 0


def _capped_increment(cap):
    def combine(previous, value):
        return min((previous or 0) + value, cap)
    return combine


def _fatha_index(text, index):
    """Index of a fatha following the letter at index, directly or after a
    shadda, or None."""

    if text[index + 1:index + 2] == FATHA:
        return index + 1
    if text[index + 1:index + 3] == SHADDA + FATHA:
        return index + 2
    return None


class _WordState:

    def __init__(self, width):
        self.width = width
        # StretchType to (subword index, index in subword) of the last
        # committed kashida.
        self.applied = {}


class _Search:
    """Working state of the kashida and alternate search of one line."""

    def __init__(self, shaper, info, word_widths, width, desired_width):
        self.shaper = shaper
        self.info = info
        self.text = info.text
        self.words = [_WordState(w) for w in word_widths]
        self.width = width
        self.desired_width = desired_width
        self.features = {}
        self.commits = []

    def word_width(self, word_index, features):
        word = self.info.words[word_index]
        ranges = list(self.info.features)
        for i in range(word.start, word.end + 1):
            for override in features.get(i, ()):
                ranges.append(FeatureRange(override.feature, override.value,
                                           i - word.start,
                                           i - word.start + 1))
        return self.shaper.width(word.text, ranges)

    def try_apply(self, word_index, features):
        """Commits features if they widen the word without reaching the
        desired line width."""

        state = self.words[word_index]
        new_width = self.word_width(word_index, features)
        diff = new_width - state.width

        if diff == 0:
            return AppliedResult.NO_CHANGE
        if diff < 0:
            # A narrower form would shrink the line, keep looking.
            return AppliedResult.FORBIDDEN
        if self.width + diff < self.desired_width:
            self.width += diff
            state.width = new_width
            self.features = features
            self.commits.append(self.width)
            return AppliedResult.POSITIVE
        return AppliedResult.OVERFLOW

    def apply_kashida(self, word_index, subword_index, first, second):
        word = self.info.words[word_index]
        subword = word.subwords[subword_index]
        first_match = subword.base_indexes[first]
        second_match = subword.base_indexes[second]
        first_index = word.start + first_match
        second_index = word.start + second_match

        features = dict(self.features)
        first_previous = features.get(first_index)
        second_previous = features.get(second_index)

        if _value(second_previous, Feature.CV01):
            return AppliedResult.FORBIDDEN

        char3 = self.text[first_index]
        char4 = self.text[second_index]
        subword_start = subword.base_indexes[0] == first_match
        subword_end = subword.base_indexes[-1] == second_match

        # Connections that are never elongated.
        if char4 == "ق" and subword_end:
            return AppliedResult.FORBIDDEN
        if char3 == "ل" and (char4 in "كدذة" or (char4 == "ه" and
                                                  subword_end)):
            return AppliedResult.FORBIDDEN
        if char3 in "ئبتثنيى" and not subword_start and char4 in "رز":
            return AppliedResult.FORBIDDEN

        kashida = min(_value(first_previous, Feature.CV01) + 1, MAX_KASHIDA)
        first_applied = [(Feature.CV01, 1, _capped_increment(MAX_KASHIDA))]
        if char3 in BEH_LIKE:
            first_applied.append((Feature.CV10, 1, None))

        decomposition = None
        if char3 == "ه" and char4 == "م" and subword_end:
            decomposition = Feature.CV11
        elif char3 in BEH_LIKE and subword_start and char4 in JEEM_LIKE:
            decomposition = Feature.CV12
        elif char3 == "م" and subword_start and char4 in JEEM_LIKE:
            decomposition = Feature.CV13
        elif char3 in "فق" and subword_start and char4 in JEEM_LIKE:
            decomposition = Feature.CV14
        elif char3 == "ل" and subword_start and char4 in JEEM_LIKE:
            decomposition = Feature.CV15
        elif char3 in "عغ" and subword_start and (
                char4 in "آادذٱأإل" or
                (char4 in BEH_LIKE and (len(subword.base_text) < 3 or
                                      subword.base_text[2] in "سش"))):
            decomposition = Feature.CV16
        elif char3 in JEEM_LIKE:
            if (char4 in "آادذٱأإل" or
                    (char4 in "هة" and subword_end) or
                    (char4 in BEH_LIKE and len(subword.base_indexes) > 1 and
                     subword.base_indexes[-2] == second_match and
                     subword.base_text[-1] in "رزن")):
                decomposition = Feature.CV16
            elif subword_start and char4 == "م":
                decomposition = Feature.CV18
        elif char3 in "سشصض" and char4 in "رز":
            decomposition = Feature.CV17

        second_features = []
        if decomposition is not None:
            first_applied.append((decomposition, 1, None))
            second_features.append(FeatureOverride(decomposition, 1))

        if char4 in FINAL_ASCENDANT and subword_end:
            second_kashida = kashida
        else:
            second_kashida = 2 * kashida
        second_features.append(FeatureOverride(Feature.CV02, second_kashida))

        features[first_index] = merge_features(first_previous, first_applied)
        features[second_index] = tuple(second_features)

        return self.try_apply(word_index, features)

    def apply_kaf(self, word_index, subword_index, first, second):
        word = self.info.words[word_index]
        subword = word.subwords[subword_index]
        first_index = word.start + subword.base_indexes[first]
        second_index = word.start + subword.base_indexes[second]

        features = dict(self.features)
        set_one = [(Feature.CV03, 1, lambda previous, value: 1)]
        features[first_index] = merge_features(features.get(first_index),
                                               set_one)
        second_features = merge_features(features.get(second_index), set_one)
        features[second_index] = second_features

        fatha = _fatha_index(self.text, first_index)
        if fatha is not None:
            kashida = _value(second_features, Feature.CV01)
            features[fatha] = (FeatureOverride(Feature.CV01,
                                               1 + kashida // 3),)

        return self.try_apply(word_index, features)

    def apply_alternate(self, word_index, index):
        features = dict(self.features)
        previous = features.get(index)

        # Letters already elongated as the second of a kashida keep their
        # form.
        if _value(previous, Feature.CV02) > 0:
            return AppliedResult.FORBIDDEN

        new_features = merge_features(
            previous, [(Feature.CV01, 1, _capped_increment(MAX_ALTERNATE))])
        features[index] = new_features

        fatha = _fatha_index(self.text, index)
        if fatha is not None:
            alternate = _value(new_features, Feature.CV01)
            features[fatha] = (FeatureOverride(Feature.CV01,
                                               1 + alternate // 3),)

        return self.try_apply(word_index, features)

    def match_subwords(self, word, patterns):
        """Returns, for every subword, the matches of all patterns."""

        matches = []
        for subword in word.subwords:
            found = []
            for pattern in patterns:
                found.extend(pattern.finditer(subword.base_text))
            matches.append(found)
        return matches

    def kashidas(self, stretch_type, levels):
        """Applies one stretch type over all words, returns True once an
        edit would overflow the line."""

        patterns = STRETCH_PATTERNS[stretch_type]
        matches = [self.match_subwords(w, patterns) for w in self.info.words]

        for level in range(levels):
            for word_index, word_matches in enumerate(matches):
                applied = self.words[word_index].applied
                if any(t in applied
                       for t in EXCLUSIVE_TYPES.get(stretch_type, ())):
                    continue
                earlier = (applied.get(StretchType.BEH) or
                           applied.get(StretchType.FINA_ASCENDANT) or
                           applied.get(StretchType.OTHER_KASHIDAS))
                second = applied.get(
                    StretchType.SECOND_KASHIDA_NOT_SAME_SUBWORD)

                done = False
                for subword_index in reversed(range(len(word_matches))):
                    if done:
                        break
                    for match in word_matches[subword_index]:
                        first = match.start(1)
                        if first < 0:
                            continue

                        if stretch_type == \
                           StretchType.SECOND_KASHIDA_NOT_SAME_SUBWORD:
                            if earlier and earlier[0] == subword_index:
                                continue
                        elif stretch_type == \
                             StretchType.SECOND_KASHIDA_SAME_SUBWORD:
                            if earlier == (subword_index, first):
                                continue
                            if second == (subword_index, first):
                                continue

                        if stretch_type == StretchType.KAF:
                            result = self.apply_kaf(word_index, subword_index,
                                                    first, first + 1)
                        else:
                            result = self.apply_kashida(word_index,
                                                        subword_index,
                                                        first, first + 1)

                        if result == AppliedResult.POSITIVE:
                            applied[stretch_type] = (subword_index, first)
                        elif result == AppliedResult.OVERFLOW:
                            return True
                        elif result == AppliedResult.FORBIDDEN:
                            continue

                        done = True
                        break
        return False

    def alternates(self, chars, levels):
        """Switches the last letter of subwords ending with one of chars to
        wider alternates, returns True once an edit would overflow."""

        pattern = regex.compile("^.*(?P<alt>[%s])$" % chars)
        matches = [self.match_subwords(w, (pattern,))
                   for w in self.info.words]

        for level in range(levels):
            for word_index, word_matches in enumerate(matches):
                word = self.info.words[word_index]
                for subword_index in reversed(range(len(word_matches))):
                    if not word_matches[subword_index]:
                        continue
                    match = word_matches[subword_index][0]
                    subword = word.subwords[subword_index]
                    index = word.start + subword.base_indexes[match.start(1)]

                    result = self.apply_alternate(word_index, index)
                    if result == AppliedResult.OVERFLOW:
                        return True
                    elif result == AppliedResult.FORBIDDEN:
                        continue
                    break
        return False

    def madinah(self):
        for stage, levels in MADINAH_CASCADE:
            if isinstance(stage, StretchType):
                overflow = self.kashidas(stage, levels)
            else:
                overflow = self.alternates(stage, levels)
            if overflow:
                logger.debug("Line full at stage %s", stage)
                return

    def _simple_match(self, word):
        """Returns (subword index, match, kind) of the best stretching
        candidate of a word, kind 1 being a final alternate, 2 a final
        kashida and 3 anything else."""

        last = len(word.subwords) - 1
        match = ALT_FINA_RE.search(word.subwords[last].base_text)
        if match:
            return last, match, 1
        if word.base_text[-1:] in ("ي", "ئ", "ى"):
            return None
        match = HAH_FINA_ASCENDANT_RE.search(word.subwords[last].base_text)
        if match:
            return last, match, 2
        for subword_index in range(last, -1, -1):
            match = SIMPLE_RE.search(word.subwords[subword_index].base_text)
            if match:
                return subword_index, match, 3
        return None

    def simple(self, first_word_included=True, word_by_word=False,
               alternate_levels=2, kashida_levels=2):
        words = self.info.words
        first_word = 0 if first_word_included else 1

        candidates = []
        for word_index, word in enumerate(words):
            if not word.base_text or word_index < first_word:
                candidates.append(None)
            else:
                candidates.append(self._simple_match(word))

        stretched = set()
        for level in range(1, max(alternate_levels, kashida_levels) + 1):
            for word_index in range(len(words) - 1, first_word - 1, -1):
                if word_index + 1 in stretched:
                    continue
                if candidates[word_index] is None:
                    continue

                subword_index, match, kind = candidates[word_index]
                group = max(i for i in range(1, len(match.groups()) + 1)
                            if match.start(i) >= 0)
                start = match.start(group)
                subword = words[word_index].subwords[subword_index]

                result = None
                if kind == 1 or (kind == 3 and
                                 group == SIMPLE_ALTERNATE_GROUP):
                    if level <= alternate_levels:
                        index = words[word_index].start + \
                                subword.base_indexes[start]
                        result = self.apply_alternate(word_index, index)
                elif level <= kashida_levels:
                    if kind == 3 and group == SIMPLE_KAF_GROUP:
                        result = self.apply_kaf(word_index, subword_index,
                                                start, start + 1)
                    else:
                        result = self.apply_kashida(word_index, subword_index,
                                                    start, start + 1)

                if result == AppliedResult.OVERFLOW:
                    return True
                if result == AppliedResult.POSITIVE and word_by_word:
                    stretched.add(word_index)
        return False


class Justifier:
    """Class computing justification plans for lines of a given mushaf
    layout."""

    def __init__(self, shaper, layout=MushafLayout.NEW_MADINAH,
                 style=JustStyle.XSCALE):
        self.shaper = shaper
        self.layout = MushafLayout(layout)
        self.style = JustStyle(style)

    def stretch_line(self, search):
        if self.layout.is_madinah:
            search.madinah()
        else:
            search.simple(first_word_included=True, word_by_word=False,
                          alternate_levels=2, kashida_levels=2)

    def justify(self, info, desired_width, space_width=None, style=None):
        """Computes the plan that makes info fill desired_width font
        units."""

        style = self.style if style is None else JustStyle(style)
        if space_width is None:
            space_width = self.shaper.space_width

        natural_width = self.shaper.width(info.text, info.features)
        plan = JustificationPlan(desired_width, natural_width, space_width)
        plan.word_widths = [self.shaper.width(w.text, info.features)
                            for w in info.words]

        if natural_width <= 0:
            return plan

        if desired_width <= natural_width:
            plan.x_scale = desired_width / natural_width
            plan.width = desired_width
            return plan

        if style == JustStyle.XSCALE_ONLY:
            plan.x_scale = desired_width / natural_width
            plan.width = desired_width
            return plan

        simple_spaces = len(info.simple_spaces)
        aya_spaces = len(info.aya_spaces)
        max_simple = min(MAX_SIMPLE_SPACE_STRETCH, space_width)
        max_aya = min(MAX_AYA_SPACE_STRETCH, 2 * space_width)
        max_stretch = max_simple * simple_spaces + max_aya * aya_spaces

        stretch = min(desired_width - natural_width, max_stretch)
        ratio = stretch / max_stretch if max_stretch else 0
        simple_spacing = space_width + ratio * max_simple
        aya_spacing = space_width + ratio * max_aya
        width = natural_width + stretch

        if desired_width > width:
            plan.searched = True
            search = _Search(self.shaper, info, plan.word_widths, width,
                             desired_width)
            self.stretch_line(search)
            width = search.width
            plan.features = search.features
            plan.word_widths = [w.width for w in search.words]
            plan.commits = search.commits
            logger.debug("%d edits, %.1f of %.1f", len(search.commits),
                         width, desired_width)

        if desired_width > width and info.spaces:
            extra = (desired_width - width) / len(info.spaces)
            simple_spacing += extra
            aya_spacing += extra
            width = desired_width

        plan.simple_spacing = simple_spacing
        plan.aya_spacing = aya_spacing
        plan.width = width
        return plan
