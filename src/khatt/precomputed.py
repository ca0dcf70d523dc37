"""Pages from a precomputed layout document.

The document holds the glyph outlines of the font, keyed by codepoint, with
the outlines of their most shrunk and most stretched forms, and the position
of every glyph of every line. Glyphs are drawn by interpolating between the
default outline and the limit outlines, marks are then relaxed around their
bases.
"""

import json
import logging
from collections import namedtuple

from fontTools.pens.recordingPen import RecordingPen

from .errors import ConfigurationError, OutOfRangeError
from .force import ITERATIONS, ForceSimulation
from .render import DrawItem, LineLayout, PageLayout, Rect
from .settings import FONTSIZE, INTERLINE, PAGE_WIDTH, TOP
from .shaper import Outline

logger = logging.getLogger(__name__)

# The precomputed pages use a narrower margin than the shaped ones.
MARGIN = 300
LINE_WIDTH = PAGE_WIDTH - 2 * MARGIN
GLYPH_CACHE_SIZE = 5000

PositionedGlyph = namedtuple("PositionedGlyph", ["glyph", "info", "x", "y"])


def load_layout(path):
    try:
        with open(path, "r", encoding="utf-8") as layoutfile:
            document = json.load(layoutfile)
    except FileNotFoundError:
        logger.error("File not found: %s", path)
        raise ConfigurationError("File not found: %s" % path)
    except ValueError as e:
        raise ConfigurationError("Malformed layout file %s: %s" % (path, e))

    if not isinstance(document, dict) or "glyphs" not in document or \
       "pages" not in document:
        raise ConfigurationError("Layout file %s needs glyphs and pages"
                                 % path)
    return document


def _scalar(tatweel, low, high):
    if tatweel < 0 and low != 0:
        return tatweel / low
    if tatweel > 0 and high != 0:
        return tatweel / high
    return 0


def _limit_value(variants, path_index, segment_index, coord_index):
    """Returns the coordinate of a limit outline, None when it has no such
    point."""

    if not variants or path_index >= len(variants):
        return None
    segments = variants[path_index].get("path", [])
    if segment_index >= len(segments):
        return None
    segment = segments[segment_index]
    if not segment or coord_index >= len(segment):
        return None
    return segment[coord_index]


class LayoutService:
    """Class giving access to a precomputed layout document."""

    def __init__(self, document):
        self.glyphs = {int(code): glyph
                       for code, glyph in document["glyphs"].items()}
        self.pages = document["pages"]
        self.classes = document.get("classes") or {}

        for name, codepoints in self.classes.items():
            for code in codepoints or ():
                glyph = self.glyphs.get(code)
                if glyph is not None:
                    glyph.setdefault("classes", {})[name] = True

    @classmethod
    def from_file(cls, path):
        return cls(load_layout(path))

    @property
    def page_count(self):
        return len(self.pages)

    def page(self, page_index):
        if not 0 <= page_index < len(self.pages):
            raise OutOfRangeError("Page", page_index, len(self.pages))
        return self.pages[page_index]

    def line(self, page_index, line_index):
        lines = self.page(page_index)["lines"]
        if not 0 <= line_index < len(lines):
            raise OutOfRangeError("Line", line_index, len(lines))
        return lines[line_index]

    def is_mark(self, codepoint):
        glyph = self.glyphs.get(codepoint)
        return glyph is not None and \
            glyph.get("classes", {}).get("marks") is True

    def is_space(self, codepoint):
        glyph = self.glyphs.get(codepoint)
        return glyph is not None and glyph.get("name") == "space"

    def glyph_path(self, codepoint, left_tatweel=0, right_tatweel=0):
        """Returns the outline of a glyph stretched or shrunk on its left and
        right sides. Tatweel amounts are clamped to the glyph limits."""

        glyph = self.glyphs.get(codepoint)
        if glyph is None:
            return Outline(())

        min_left, max_left, min_right, max_right = \
            glyph.get("limits") or (0, 0, 0, 0)
        left = max(min_left, min(max_left, left_tatweel))
        right = max(min_right, min(max_right, right_tatweel))
        left_scalar = _scalar(left, min_left, max_left)
        right_scalar = _scalar(right, min_right, max_right)

        left_variants = glyph.get("minLeft") if left < 0 else \
            glyph.get("maxLeft") if left > 0 else None
        right_variants = glyph.get("minRight") if right < 0 else \
            glyph.get("maxRight") if right > 0 else None

        def interpolate(value, path_index, segment_index, coord_index):
            result = value
            target = _limit_value(left_variants, path_index, segment_index,
                                  coord_index)
            if target is not None:
                result += (target - value) * left_scalar
            target = _limit_value(right_variants, path_index, segment_index,
                                  coord_index)
            if target is not None:
                result += (target - value) * right_scalar
            return result

        pen = RecordingPen()
        started = False
        for path_index, path in enumerate(glyph.get("default", ())):
            for segment_index, segment in enumerate(path.get("path", ())):
                coords = [interpolate(v, path_index, segment_index, i)
                          for i, v in enumerate(segment)]
                points = list(zip(coords[::2], coords[1::2]))
                if len(segment) == 2:
                    if started:
                        pen.closePath()
                    pen.moveTo(points[0])
                    started = True
                elif len(segment) == 6:
                    pen.curveTo(*points)
        if started:
            pen.closePath()

        return Outline.from_recording(pen)

    def line_glyphs(self, page_index, line_index):
        """Returns the glyphs of a line with their positions, in font units
        from the right end of the line. Unknown codepoints are skipped."""

        line = self.line(page_index, line_index)
        result = []
        cursor = -line.get("x", 0)
        for glyph in line["glyphs"]:
            info = self.glyphs.get(glyph["codepoint"])
            if info is None:
                continue
            cursor -= glyph.get("x_advance", 0)
            result.append(PositionedGlyph(glyph, info,
                                          cursor + glyph.get("x_offset", 0),
                                          glyph.get("y_offset", 0)))
        return result


class GlyphPathCache:
    """Class caching interpolated outlines, dropping the oldest first."""

    def __init__(self, service, size=GLYPH_CACHE_SIZE):
        self.service = service
        self.size = size
        self.cache = {}

    def get(self, codepoint, left_tatweel=0, right_tatweel=0):
        key = (codepoint, left_tatweel, right_tatweel)
        outline = self.cache.get(key)
        if outline is None:
            outline = self.service.glyph_path(codepoint, left_tatweel,
                                              right_tatweel)
            self.cache[key] = outline
            if len(self.cache) > self.size:
                del self.cache[next(iter(self.cache))]
        return outline

    def clear(self):
        self.cache.clear()

    def __len__(self):
        return len(self.cache)


class PrecomputedRenderer:
    """Class laying out pages of a precomputed layout document."""

    def __init__(self, service, iterations=ITERATIONS):
        self.service = service
        self.paths = GlyphPathCache(service)
        self.iterations = iterations

    @property
    def page_count(self):
        return self.service.page_count

    def clear_caches(self):
        self.paths.clear()

    def iter_lines(self, page_index, viewport, settings=None):
        page = self.service.page(page_index)
        scale = viewport.width / PAGE_WIDTH
        glyph_scale = viewport.font_size / FONTSIZE
        line_height = INTERLINE * scale
        start_x = viewport.width - MARGIN * scale

        simulation = ForceSimulation()
        lines = []
        for line_index, line in enumerate(page["lines"]):
            layout = LineLayout(line_index, None)
            layout.glyph_scale = glyph_scale
            layout.x_scale = line.get("xscale") or 1
            layout.origin_x = start_x
            layout.baseline = (TOP + INTERLINE * line_index) * scale

            pending = []
            base = None
            for positioned in self.service.line_glyphs(page_index,
                                                       line_index):
                glyph = positioned.glyph
                codepoint = glyph["codepoint"]
                outline = self.paths.get(codepoint,
                                         glyph.get("lefttatweel", 0),
                                         glyph.get("righttatweel", 0))
                is_mark = self.service.is_mark(codepoint)
                node = simulation.add(positioned.x, positioned.y, is_mark,
                                      base if is_mark else None,
                                      glyph.get("x_offset", 0),
                                      glyph.get("y_offset", 0))
                if not is_mark and not self.service.is_space(codepoint):
                    base = node
                pending.append((outline, node, codepoint))
                layout.width = max(layout.width,
                                   -positioned.x * layout.scale_x)

            lines.append((layout, pending))

        simulation.run(self.iterations)

        for layout, pending in lines:
            xs = []
            for outline, index, codepoint in pending:
                node = simulation[index]
                x, y = node.target_x, node.target_y
                if node.is_mark and node.base is not None:
                    dx, dy = simulation.mark_offset(index)
                    base = simulation[node.base]
                    x, y = base.target_x + dx, base.target_y + dy
                xs.append(layout.origin_x + node.target_x * layout.scale_x)
                if outline:
                    layout.items.append(DrawItem(outline, x, y, None,
                                                 codepoint))
            if xs:
                left, right = min(xs), max(xs)
                layout.box = Rect(left, layout.baseline - line_height / 2,
                                  right - left, line_height)
            else:
                layout.box = Rect(start_x, layout.baseline - line_height / 2,
                                  0, line_height)
            yield layout

    def render_page(self, page_index, viewport, settings=None):
        logger.info("Page %d…", page_index + 1)
        return PageLayout(page_index, viewport,
                          list(self.iter_lines(page_index, viewport,
                                               settings)))
