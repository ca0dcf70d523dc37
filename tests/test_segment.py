import pytest

from khatt.model import FeatureRange
from khatt.segment import Segmenter, line_features, segment, space_type
from khatt.settings import SpaceType

from conftest import BASMALA


def test_basmala_words():
    info = segment(BASMALA)
    assert [w.text for w in info.words] == BASMALA.split(" ")
    assert info.simple_spaces == [i for i, c in enumerate(BASMALA)
                                  if c == " "]
    assert info.aya_spaces == []
    for word in info.words:
        assert info.text[word.start:word.end + 1] == word.text


def test_segment_is_pure():
    text = "ٱلرَّحْمَٰنِ ٱلرَّحِيمِ ۝٣ مَٰلِكِ"
    assert segment(text) == segment(text)


@pytest.mark.parametrize("word, subwords", [
    ("ٱلرَّحْمَٰنِ", ["ٱ", "لر", "حمن"]),
    ("بَيْنَ", ["بين"]),
    ("دَارٍ", ["د", "ا", "ر"]),
    ("شَىْءٍ", ["شى", "ء"]),
    ("ٱلسَّمَآءِ", ["ٱ", "لسمآ", "ء"]),
    ("يَسْتَكْبِرُونَ", ["يستكبر", "و", "ن"]),
])
def test_subword_boundaries(word, subwords):
    info = segment(word)
    assert [s.base_text for s in info.words[0].subwords] == subwords


def test_subword_indexes_point_to_base_letters():
    word = segment("ٱلرَّحْمَٰنِ").words[0]
    for subword in word.subwords:
        assert "".join(word.text[i] for i in subword.base_indexes) == \
            subword.base_text
    assert word.base_text == "ٱلرحمن"


def test_hamza_starts_subword():
    word = segment("جَزَآءُ").words[0]
    assert word.subwords[-1].base_text == "ء"


def test_aya_spaces():
    text = "ٱلْعَٰلَمِينَ ۝٢ ٱلرَّحْمَٰنِ"
    info = segment(text)
    first = text.index(" ")
    second = text.index(" ", first + 1)
    assert space_type(text, first) == SpaceType.AYA
    assert space_type(text, second) == SpaceType.AYA
    assert info.aya_spaces == [first, second]
    assert info.simple_spaces == []


def test_word_at():
    info = segment(BASMALA)
    space = BASMALA.index(" ")
    assert info.word_at(0) == 0
    assert info.word_at(space - 1) == 0
    assert info.word_at(space + 1) == 1
    # Spaces belong to no word.
    assert info.word_at(space) == -1
    assert info.word_at(len(BASMALA) - 1) == 3


def test_empty_word_has_one_empty_subword():
    info = segment("۝١")
    assert info.words[0].base_text == ""
    assert info.words[0].subwords[0].base_text == ""


def test_line_features():
    assert line_features(0, 1) == (FeatureRange("bism", 1, 0, -1),)
    assert line_features(1, 1) == (FeatureRange("bism", 1, 0, -1),)
    assert line_features(2, 1) == ()
    assert line_features(0, 2) == ()


def test_segmenter_cache():
    segmenter = Segmenter()
    info = segmenter.line_info(BASMALA, 3, 4)
    assert segmenter.line_info("ignored", 3, 4) is info
    segmenter.clear()
    assert segmenter.line_info("بَيْنَ", 3, 4).text == "بَيْنَ"
