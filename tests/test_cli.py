import json

from khatt.cli import main, make_settings, parse_args
from khatt.settings import JustStyle, MushafLayout


def test_defaults():
    args = parse_args(["text.json", "font.otf", "out.pdf"])
    assert args.pages is None
    settings = make_settings(args)
    assert settings.layout == MushafLayout.NEW_MADINAH
    assert settings.just_style == JustStyle.XSCALE
    assert settings.page_width == 510
    assert not settings.tajweed


def test_options():
    args = parse_args(["text.json", "font.otf", "out.pdf", "-l", "indoPak15",
                       "-s", "scale-x-axis", "-t", "-p", "1", "3"])
    settings = make_settings(args)
    assert args.pages == [1, 3]
    assert settings.layout == MushafLayout.INDOPAK
    assert settings.just_style == JustStyle.SCL_X_AXIS
    assert settings.tajweed


def test_missing_text(tmp_path):
    assert main([str(tmp_path / "text.json"), "font.otf",
                 str(tmp_path / "out.pdf"), "-q"]) == 1


def test_page_out_of_range(tmp_path):
    textfile = tmp_path / "text.json"
    textfile.write_text(json.dumps([["بِسْمِ ٱللَّهِ"]]), encoding="utf-8")
    assert main([str(textfile), "font.otf", str(tmp_path / "out.pdf"),
                 "-q", "-p", "2"]) == 1


def test_missing_font(tmp_path):
    textfile = tmp_path / "text.json"
    textfile.write_text(json.dumps([["بِسْمِ ٱللَّهِ"]]), encoding="utf-8")
    assert main([str(textfile), str(tmp_path / "font.otf"),
                 str(tmp_path / "out.pdf"), "-q"]) == 1
