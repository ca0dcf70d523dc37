import logging
from collections import namedtuple

from .hittest import LineRect, WordRect
from .justify import Justifier
from .model import FeatureRange, JustificationPlan
from .numbers import END_OF_AYA, to_western_digits, verse_number_after
from .segment import Segmenter
from .settings import (FONTSIZE, INTERLINE, MARGIN, PAGE_WIDTH, JustStyle,
                       LineType, MushafLayout, SpaceType)
from .tajweed import TajweedCache
from .text import CGJ

logger = logging.getLogger(__name__)

# Frame sub-paths drawn before the digits of the end of aya glyph.
AYA_FRAME_SUBPATHS = {
    MushafLayout.OLD_MADINAH: 3,
    MushafLayout.NEW_MADINAH: 14,
    MushafLayout.INDOPAK: 0,
}

VersePlacement = namedtuple("VersePlacement", ["y_offset", "font_size",
                                               "center_x", "center_y",
                                               "cover_radius"])

# In font units relative to the end of aya glyph; IndoPak centres on the
# glyph advance and covers the font digits with a circle.
VERSE_NUMBER_PLACEMENT = {
    MushafLayout.OLD_MADINAH: VersePlacement(-800, 500, 586, 230, 0),
    MushafLayout.NEW_MADINAH: VersePlacement(-885, 400, 435, 250, 0),
    MushafLayout.INDOPAK: VersePlacement(0, 350, None, 200, 240),
}

# Prostration rule above the line, font units.
SAJDA_Y = 1200
SAJDA_STROKE = 60

DrawItem = namedtuple("DrawItem", ["outline", "x", "y", "tajweed", "cluster"])
VerseNumber = namedtuple("VerseNumber", ["text", "x", "y", "font_size",
                                         "cover_radius"])
WordBounds = namedtuple("WordBounds", ["word_index", "x", "width"])
LineBounds = namedtuple("LineBounds", ["min_y", "max_y"])
Rect = namedtuple("Rect", ["x", "y", "width", "height"])


def verse_number_scale(digits):
    if digits == 2:
        return 0.95
    if digits >= 3:
        return 0.70
    return 1


class OutlineCache:
    """Class caching glyph outlines by glyph id, shared by all lines."""

    def __init__(self, shaper):
        self.shaper = shaper
        self.cache = {}

    def get(self, glyph_id, skip_subpaths=0):
        key = (glyph_id, skip_subpaths)
        if key not in self.cache:
            if skip_subpaths:
                outline = self.get(glyph_id).without_subpaths(skip_subpaths)
            else:
                outline = self.shaper.outline(glyph_id)
            self.cache[key] = outline
        return self.cache[key]

    def clear(self):
        self.cache.clear()

    def __len__(self):
        return len(self.cache)


class LineLayout:
    """Class representing a positioned line.

    Draw items are in font units, X growing to the left from the right end
    of the line (so always negative), Y up. The consumer scales them with
    glyph_scale * x_scale and glyph_scale * y_scale and flips Y. Word bounds
    and line bounds are already scaled, Y down."""

    def __init__(self, line_index, line_type):
        self.line_index = line_index
        self.line_type = line_type
        self.items = []
        self.verse_numbers = []
        self.glyph_scale = 1
        self.x_scale = 1
        self.y_scale = 1
        self.width = 0
        self.word_bounds = []
        self.bounds = None
        # Start and end X of the prostration rule, font units.
        self.sajda = None
        self.plan = None
        self.text = ""
        self.words = ()

        # Placement on the page, set by the page renderer.
        self.box = None
        self.origin_x = 0
        self.baseline = 0
        self.centered = False

    @property
    def scale_x(self):
        return self.glyph_scale * self.x_scale

    @property
    def scale_y(self):
        return self.glyph_scale * self.y_scale

    def place(self, box, centered=False):
        """Positions the line inside box, right aligned or centred, and
        vertically centred on its ink."""

        self.box = box
        self.centered = centered
        self.origin_x = box.x + box.width
        if centered:
            self.origin_x -= (box.width - self.width) / 2

        if self.bounds is not None:
            ink = self.bounds.max_y - self.bounds.min_y
            padding = (box.height - ink) / 2
            self.baseline = box.y - self.bounds.min_y + padding
        else:
            self.baseline = box.y + box.height * 0.75

    def page_point(self, x, y):
        """Converts a point in font units to page coordinates."""
        return (self.origin_x + x * self.scale_x,
                self.baseline - y * self.scale_y)

    def word_rects(self):
        rects = []
        for bounds in self.word_bounds:
            if bounds is None:
                continue
            rects.append(WordRect(self.line_index, bounds.word_index,
                                  self.origin_x + bounds.x, self.box.y,
                                  bounds.width, self.box.height,
                                  self.word_text(bounds.word_index)))
        return rects

    def line_rect(self):
        return LineRect(self.line_index, *self.box)

    def word_text(self, word_index):
        if 0 <= word_index < len(self.words):
            return self.words[word_index].text
        return ""

    def __repr__(self):
        return "LineLayout(%d, %d items, width=%.1f)" % (
            self.line_index, len(self.items), self.width)


class LineRenderer:
    """Class positioning the glyphs of justified lines."""

    def __init__(self, shaper, layout=MushafLayout.NEW_MADINAH, outlines=None,
                 verse_numbers="arabic"):
        self.shaper = shaper
        self.layout = MushafLayout(layout)
        self.outlines = outlines if outlines is not None \
            else OutlineCache(shaper)
        self.verse_numbers = verse_numbers

    def features(self, info, plan):
        features = list(info.features)
        features.extend(FeatureRange(*f) for f in plan.global_features)
        features.extend(plan.feature_ranges())
        return features

    def verse_number(self, text, glyph, cluster, cursor):
        number = to_western_digits(verse_number_after(text, cluster))
        placement = VERSE_NUMBER_PLACEMENT[self.layout]
        font_size = placement.font_size * verse_number_scale(len(number))
        x = cursor + glyph.x_offset
        if placement.center_x is None:
            x += glyph.x_advance / 2
        else:
            x += placement.center_x
        return VerseNumber(number, x, placement.center_y, font_size,
                           placement.cover_radius)

    def render(self, info, plan, tajweed=None, glyph_scale=1, x_scale=None,
               y_scale=1, sajda=None, line_index=0,
               line_type=LineType.CONTENT, track_words=True):
        """Shapes the line with the plan applied and positions its glyphs,
        right to left."""

        if x_scale is None:
            x_scale = plan.x_scale

        text = info.text
        glyphs = self.shaper.shape(text, self.features(info, plan))

        line = LineLayout(line_index, line_type)
        line.plan = plan
        line.text = text
        line.words = info.words
        line.glyph_scale = glyph_scale
        line.x_scale = x_scale
        line.y_scale = y_scale

        sajda_clusters = None
        if sajda is not None:
            sajda_clusters = (info.words[sajda.start_word].start,
                              info.words[sajda.end_word].end)
        sajda_start = sajda_end = None

        word_bounds = {}
        current_word = -1
        min_y = max_y = None
        cursor = 0

        for glyph_index in range(len(glyphs) - 1, -1, -1):
            glyph = glyphs[glyph_index]
            cluster = glyph.cluster

            if track_words:
                word_index = info.word_at(cluster)
                if word_index != -1:
                    if word_index not in word_bounds:
                        word_bounds[word_index] = [cursor, cursor]
                    current_word = word_index

            outline = self.outlines.get(glyph.glyph_id)
            glyph_min = outline.y_min + glyph.y_offset
            glyph_max = outline.y_max + glyph.y_offset
            if min_y is None or glyph_min < min_y:
                min_y = glyph_min
            if max_y is None or glyph_max > max_y:
                max_y = glyph_max

            if sajda_clusters is not None:
                if cluster == sajda_clusters[0] and sajda_start is None:
                    sajda_start = cursor
                if cluster == sajda_clusters[1] and sajda_end is None:
                    sajda_end = cursor

            space = info.spaces.get(cluster)
            if space == SpaceType.AYA:
                cursor -= plan.aya_spacing
            elif space == SpaceType.SIMPLE:
                cursor -= plan.simple_spacing
            else:
                cursor -= glyph.x_advance

            if current_word in word_bounds:
                bounds = word_bounds[current_word]
                bounds[1] = min(bounds[1], cursor)

            x = cursor + glyph.x_offset
            if text[cluster:cluster + 1] == END_OF_AYA:
                if self.verse_numbers == "english":
                    line.verse_numbers.append(
                        self.verse_number(text, glyph, cluster, cursor))
                    # Only IndoPak keeps its frame, with the digits covered.
                    if self.layout == MushafLayout.INDOPAK and outline:
                        line.items.append(DrawItem(outline, x, glyph.y_offset,
                                                   None, cluster))
                    continue
                outline = self.outlines.get(glyph.glyph_id,
                                            AYA_FRAME_SUBPATHS[self.layout])

            if not outline:
                continue

            tajweed_class = None
            if tajweed:
                tajweed_class = tajweed.get(cluster)
                if tajweed_class is None and text[cluster] == CGJ and \
                   glyph_index > 0 and \
                   glyphs[glyph_index - 1].cluster > cluster + 1:
                    tajweed_class = tajweed.get(cluster + 1)

            line.items.append(DrawItem(outline, x, glyph.y_offset,
                                       tajweed_class, cluster))

        if sajda_start is not None and sajda_end is not None:
            line.sajda = (sajda_start, sajda_end)

        scale_x = glyph_scale * x_scale
        line.width = -scale_x * cursor
        if word_bounds:
            line.word_bounds = [None] * len(info.words)
            for word_index, (start, end) in word_bounds.items():
                line.word_bounds[word_index] = WordBounds(
                    word_index, end * scale_x, (start - end) * scale_x)
        if min_y is not None:
            scale_y = glyph_scale * y_scale
            line.bounds = LineBounds(-max_y * scale_y, -min_y * scale_y)

        return line


class PageLayout:
    """Class holding the positioned lines of a page."""

    def __init__(self, page_index, viewport, lines=None):
        self.page_index = page_index
        self.viewport = viewport
        self.lines = lines or []

    def line_rects(self):
        return [line.line_rect() for line in self.lines]

    def word_rects(self):
        rects = []
        for line in self.lines:
            rects.extend(line.word_rects())
        return rects

    def __iter__(self):
        return iter(self.lines)

    def __len__(self):
        return len(self.lines)


class PageRenderer:
    """Class laying out whole mushaf pages.

    Lines are justified to the text block of the viewport, surah titles
    and basmalas outside of the opening pages are centred at 0.9 of the
    font size."""

    def __init__(self, shaper, quran_text, outlines=None, segmenter=None):
        self.shaper = shaper
        self.text = quran_text
        self.layout = quran_text.layout
        self.outlines = outlines if outlines is not None \
            else OutlineCache(shaper)
        self.segmenter = segmenter if segmenter is not None else Segmenter()
        self.tajweed = TajweedCache(quran_text)

    @property
    def page_count(self):
        return self.text.page_count

    def clear_caches(self):
        self.outlines.clear()
        self.segmenter.clear()
        self.tajweed.clear()
        self.shaper.clear_cache()

    def line_info(self, page_index, line_index):
        line = self.text.line(page_index, line_index)
        return self.segmenter.line_info(line.text, page_index, line_index)

    def is_justified(self, page_index, line):
        return line.line_type == LineType.CONTENT or \
            (line.line_type == LineType.BASMALA and page_index in (0, 1))

    def font_size_ratios(self, page_index, font_size_line_width_ratio):
        """Returns, per line, the ratio of its desired to its natural width;
        0 for lines that are not justified."""

        line_width = FONTSIZE / font_size_line_width_ratio
        ratios = []
        for line in self.text.page(page_index):
            if self.is_justified(page_index, line):
                natural = self.shaper.width(line.text)
                ratios.append(line.width_ratio * line_width / natural
                              if natural else 0)
            else:
                ratios.append(0)
        return ratios

    def iter_lines(self, page_index, viewport, settings):
        """Lays out the lines of a page one at a time."""

        lines = self.text.page(page_index)
        style = JustStyle(settings.just_style)

        scale = viewport.width / PAGE_WIDTH
        default_margin = MARGIN * scale
        line_width = viewport.width - 2 * default_margin
        ratio = viewport.font_size / line_width
        glyph_scale = viewport.font_size / FONTSIZE
        line_height = INTERLINE * scale
        space_width = self.shaper.space_width

        font_size_ratio = 1
        if style == JustStyle.SAME_SIZE_BY_PAGE:
            ratios = [r for r in self.font_size_ratios(page_index, ratio)
                      if r > 0]
            if ratios:
                font_size_ratio = min(min(ratios), 1)

        tajweed = None
        if settings.tajweed:
            tajweed = self.tajweed.page(page_index)

        justifier = Justifier(self.shaper, self.layout, style)
        renderer = LineRenderer(self.shaper, self.layout, self.outlines,
                                settings.verse_numbers)

        top = 0
        for line_index, line in enumerate(lines):
            logger.debug("Page %d, line %d", page_index + 1, line_index + 1)
            info = self.line_info(page_index, line_index)
            line_tajweed = tajweed[line_index] if tajweed else None
            margin = default_margin

            if self.is_justified(page_index, line):
                if line.width_ratio != 1:
                    margin += line_width * (1 - line.width_ratio) / 2
                desired = FONTSIZE / (ratio * font_size_ratio /
                                      line.width_ratio)
                plan = justifier.justify(info, desired, space_width, style)
                if style == JustStyle.SCL_X_AXIS:
                    x_scale = font_size_ratio
                else:
                    x_scale = font_size_ratio * plan.x_scale
                y_scale = x_scale if style == JustStyle.SAME_SIZE_BY_PAGE \
                    else 1
                layout = renderer.render(info, plan, line_tajweed,
                                         glyph_scale, x_scale, y_scale,
                                         line.sajda, line_index,
                                         line.line_type)
                centered = False
            else:
                natural = self.shaper.width(info.text, info.features)
                plan = JustificationPlan(natural, natural, space_width)
                if line.line_type == LineType.BASMALA:
                    plan.global_features = (FeatureRange("basm", 1),)
                layout = renderer.render(info, plan, line_tajweed,
                                         glyph_scale * 0.9, 1, 1, None,
                                         line_index, line.line_type,
                                         track_words=False)
                centered = True

            box = Rect(margin, top, viewport.width - 2 * margin, line_height)
            layout.place(box, centered)
            yield layout

            top += line_height
            if page_index in (0, 1) and line.line_type == LineType.SURA:
                top += 2 * line_height

    def render_page(self, page_index, viewport, settings):
        logger.info("Page %d…", page_index + 1)
        return PageLayout(page_index, viewport,
                          list(self.iter_lines(page_index, viewport,
                                               settings)))
