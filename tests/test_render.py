import pytest

from khatt.justify import Justifier
from khatt.model import JustificationPlan, Sajda
from khatt.numbers import END_OF_AYA
from khatt.render import (LineRenderer, OutlineCache, PageRenderer, Rect,
                          verse_number_scale)
from khatt.segment import segment
from khatt.settings import JustStyle, LineType, MushafLayout
from khatt.tajweed import GREEN

from conftest import ADVANCE, BASMALA, SPACE

LINE = "ٱلْحَمْدُ لِلَّهِ رَبِّ ٱلْعَٰلَمِينَ ۝٢"


def natural_plan(shaper, text):
    width = shaper.width(text)
    return JustificationPlan(width, width, shaper.space_width)


def test_outline_cache(shaper):
    cache = OutlineCache(shaper)
    outline = cache.get(ord("ب"))
    assert cache.get(ord("ب")) is outline
    frame = cache.get(ord(END_OF_AYA), 14)
    assert len(frame.subpaths()) == 2
    assert len(cache) == 3
    cache.clear()
    assert len(cache) == 0


def test_glyphs_walk_right_to_left(shaper):
    info = segment(BASMALA)
    line = LineRenderer(shaper).render(info, natural_plan(shaper, BASMALA))

    # Spaces have no outline.
    assert len(line.items) == len(BASMALA) - BASMALA.count(" ")
    assert [item.cluster for item in line.items] == \
        [i for i, c in enumerate(BASMALA) if c != " "]
    assert all(item.x < 0 for item in line.items)
    assert line.width == shaper.width(BASMALA)


def test_plan_spacing_and_scale(shaper):
    info = segment(BASMALA)
    plan = Justifier(shaper).justify(info, shaper.width(BASMALA) * 1.2)
    line = LineRenderer(shaper).render(info, plan, glyph_scale=0.5)
    assert line.x_scale == plan.x_scale
    assert line.width == pytest.approx(plan.width * 0.5)


def test_word_bounds_are_contiguous(shaper):
    info = segment(BASMALA)
    line = LineRenderer(shaper).render(info, natural_plan(shaper, BASMALA))
    bounds = line.word_bounds
    assert [b.word_index for b in bounds] == [0, 1, 2, 3]
    # Right to left: every word ends where the previous one starts.
    assert bounds[0].x + bounds[0].width == 0
    for right, left in zip(bounds, bounds[1:]):
        assert left.x + left.width == pytest.approx(right.x)
    assert bounds[-1].x == pytest.approx(-line.width)
    assert bounds[1].width == 4 * ADVANCE + SPACE


def test_line_bounds(shaper):
    info = segment(BASMALA)
    line = LineRenderer(shaper).render(info, natural_plan(shaper, BASMALA),
                                       glyph_scale=0.1)
    # Marks reach 640 units up, letters 100 down; screen Y is down.
    assert line.bounds.min_y == pytest.approx(-64)
    assert line.bounds.max_y == pytest.approx(10)


def test_aya_frame(shaper):
    info = segment(LINE)
    cluster = LINE.index(END_OF_AYA)
    for layout, subpaths in [(MushafLayout.NEW_MADINAH, 2),
                             (MushafLayout.OLD_MADINAH, 13),
                             (MushafLayout.INDOPAK, 16)]:
        line = LineRenderer(shaper, layout).render(info,
                                                   natural_plan(shaper, LINE))
        item = [i for i in line.items if i.cluster == cluster][0]
        assert len(item.outline.subpaths()) == subpaths
        assert line.verse_numbers == []


def test_english_verse_numbers(shaper):
    info = segment(LINE)
    cluster = LINE.index(END_OF_AYA)
    line = LineRenderer(shaper, MushafLayout.NEW_MADINAH,
                        verse_numbers="english").render(
        info, natural_plan(shaper, LINE))
    assert [i for i in line.items if i.cluster == cluster] == []
    number, = line.verse_numbers
    assert number.text == "2"
    assert number.font_size == 400
    assert number.cover_radius == 0

    line = LineRenderer(shaper, MushafLayout.INDOPAK,
                        verse_numbers="english").render(
        info, natural_plan(shaper, LINE))
    # IndoPak keeps the frame and covers its digits.
    assert len([i for i in line.items if i.cluster == cluster]) == 1
    assert line.verse_numbers[0].cover_radius == 240


def test_verse_number_scale():
    assert verse_number_scale(1) == 1
    assert verse_number_scale(2) == 0.95
    assert verse_number_scale(3) == 0.70


def test_tajweed_classes(shaper):
    info = segment(BASMALA)
    line = LineRenderer(shaper).render(info, natural_plan(shaper, BASMALA),
                                       tajweed={0: GREEN})
    assert line.items[0].tajweed == GREEN
    assert all(item.tajweed is None for item in line.items[1:])


def test_sajda(shaper):
    info = segment(BASMALA)
    line = LineRenderer(shaper).render(info, natural_plan(shaper, BASMALA),
                                       sajda=Sajda(1, 2))
    first_word = 3 * ADVANCE + SPACE
    second_word = 4 * ADVANCE + SPACE
    # From the first letter of word 1 to the last mark of word 2.
    assert line.sajda == (-first_word,
                          -(first_word + second_word + 6 * ADVANCE))


def test_place(shaper):
    info = segment(BASMALA)
    line = LineRenderer(shaper).render(info, natural_plan(shaper, BASMALA),
                                       glyph_scale=0.01)
    line.place(Rect(10, 100, 200, 30))
    assert line.origin_x == 210
    ink = line.bounds.max_y - line.bounds.min_y
    assert line.baseline == pytest.approx(100 - line.bounds.min_y +
                                          (30 - ink) / 2)

    line.place(Rect(10, 100, 200, 30), centered=True)
    assert line.origin_x == pytest.approx(210 - (200 - line.width) / 2)

    x, y = line.page_point(-100, 0)
    assert x == pytest.approx(line.origin_x - 1)
    assert y == line.baseline


def test_word_rects(shaper):
    info = segment(BASMALA)
    line = LineRenderer(shaper).render(info, natural_plan(shaper, BASMALA),
                                       glyph_scale=0.01)
    line.place(Rect(0, 0, 100, 30))
    rects = line.word_rects()
    assert [r.text for r in rects] == BASMALA.split(" ")
    assert all(r.height == 30 and r.y == 0 for r in rects)
    assert rects[0].x + rects[0].width == pytest.approx(100)


def test_page_lines(shaper, quran_text, settings):
    renderer = PageRenderer(shaper, quran_text)
    viewport = settings.viewport()
    page = renderer.render_page(2, viewport, settings)
    assert len(page) == 3

    scale = viewport.width / 17000
    line_width = viewport.width - 2 * 400 * scale
    for index, line in enumerate(page):
        assert line.line_type == LineType.CONTENT
        assert line.box.y == pytest.approx(index * 1800 * scale)
        assert line.box.x == pytest.approx(400 * scale)
        # Justified to the full text block.
        assert line.width == pytest.approx(line_width)
        assert line.origin_x == pytest.approx(viewport.width - 400 * scale)


def test_opening_page(shaper, quran_text, settings):
    renderer = PageRenderer(shaper, quran_text)
    viewport = settings.viewport()
    lines = list(renderer.iter_lines(1, viewport, settings))
    scale = viewport.width / 17000
    line_height = 1800 * scale

    sura, basmala, content = lines
    assert sura.centered
    assert sura.glyph_scale == pytest.approx(viewport.font_size / 1000 * 0.9)
    assert sura.word_bounds == []
    # The basmala of the opening pages is justified.
    assert not basmala.centered
    assert basmala.box.y == pytest.approx(3 * line_height)
    assert content.box.y == pytest.approx(4 * line_height)
    assert basmala.width < content.width


def test_centred_basmala(shaper, quran_text, settings):
    renderer = PageRenderer(shaper, quran_text)
    lines = list(renderer.iter_lines(3, settings.viewport(), settings))
    basmala = lines[3]
    assert basmala.centered
    assert basmala.plan.global_features[0].tag == "basm"
    assert lines[1].sajda is not None


@pytest.mark.parametrize("style", list(JustStyle))
def test_styles(shaper, quran_text, settings, style):
    settings.update(just_style=style)
    renderer = PageRenderer(shaper, quran_text)
    page = renderer.render_page(4, settings.viewport(), settings)
    for line in page:
        if style == JustStyle.SAME_SIZE_BY_PAGE:
            assert line.y_scale == line.x_scale
        else:
            assert line.y_scale == 1


def test_tajweed_page(shaper, quran_text, settings):
    settings.update(tajweed=True)
    renderer = PageRenderer(shaper, quran_text)
    page = renderer.render_page(2, settings.viewport(), settings)
    assert any(item.tajweed is not None for line in page for item in line.items)


def test_clear_caches(shaper, quran_text, settings):
    renderer = PageRenderer(shaper, quran_text)
    renderer.render_page(2, settings.viewport(), settings)
    assert len(renderer.outlines)
    renderer.clear_caches()
    assert len(renderer.outlines) == 0
    assert renderer.segmenter.cache == {}
    assert shaper.cleared == 1


def test_page_count(shaper, quran_text):
    assert PageRenderer(shaper, quran_text).page_count == 6
