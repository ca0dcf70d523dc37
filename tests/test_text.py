import json

import pytest

from khatt.errors import ConfigurationError, OutOfRangeError
from khatt.model import Sajda
from khatt.settings import LineType, MushafLayout
from khatt.text import (CGJ, QuranText, adjust_text, find_sajda, line_widths,
                        read_data)

from conftest import PAGES


def test_adjust_text():
    assert adjust_text("\u0627\u0653") == "\u0627" + CGJ + "\u0653"
    assert adjust_text("\u0648\u0654") == "\u0648" + CGJ + "\u0654" + CGJ
    # Precomposed letters are left alone.
    assert adjust_text("\u0622") == "\u0622"


def test_line_types(quran_text):
    page = quran_text.page(0)
    assert page[0].line_type == LineType.SURA
    # The basmala of al-Fatiha is a verse.
    assert page[1].line_type == LineType.CONTENT
    assert quran_text.page(1)[1].line_type == LineType.BASMALA
    assert quran_text.page(3)[3].line_type == LineType.BASMALA


def test_outline(quran_text):
    assert [item.page for item in quran_text.outline] == [0, 1, 3]
    assert quran_text.page_of_sura(3) == 3


def test_opening_pages_are_narrower(quran_text):
    assert quran_text.line(0, 1).width_ratio == pytest.approx(0.95 * 0.5)
    assert quran_text.line(1, 2).width_ratio == pytest.approx(0.95 * 0.7)
    assert quran_text.line(2, 1).width_ratio == 1


def test_line_widths_tables():
    assert line_widths(MushafLayout.NEW_MADINAH)[(604, 15)] == 0.5
    assert line_widths(MushafLayout.OLD_MADINAH)[(602, 5)] == 0.61
    assert line_widths(MushafLayout.INDOPAK)[(1, 2)] == pytest.approx(0.56)


def test_sajda(quran_text):
    assert quran_text.line(3, 1).sajda == Sajda(2, 2)
    assert len(quran_text.sajdas) == 1
    assert quran_text.sajdas[0][:2] == (3, 1)


def test_sajda_spanning_words():
    text = "فَٱسْجُدُوا۟ لِلَّهِ وَٱعْبُدُوا۟ ۩ ۝٦٢"
    assert find_sajda(text) == Sajda(0, 1)
    assert find_sajda("ٱلْحَمْدُ لِلَّهِ") is None


def test_out_of_range(quran_text):
    with pytest.raises(OutOfRangeError):
        quran_text.page(len(PAGES))
    with pytest.raises(OutOfRangeError):
        quran_text.page(-1)
    with pytest.raises(OutOfRangeError) as excinfo:
        quran_text.line(0, 3)
    assert excinfo.value.count == 3
    # Still an IndexError for callers that only know about those.
    with pytest.raises(IndexError):
        quran_text.line(0, 10)


def test_read_data(tmp_path):
    path = tmp_path / "quran.json"
    path.write_text(json.dumps(PAGES), encoding="utf-8")
    assert read_data(str(path)) == PAGES


def test_read_data_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        read_data(str(tmp_path / "missing.json"))

    path = tmp_path / "bad.json"
    path.write_text("[[", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        read_data(str(path))

    path.write_text(json.dumps({"pages": []}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        read_data(str(path))
