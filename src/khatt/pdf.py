import logging
import math

import cairo
from fontTools.pens.basePen import BasePen

from .render import SAJDA_STROKE, SAJDA_Y
from .tajweed import merge_colors

logger = logging.getLogger(__name__)

BLACK = (0, 0, 0)
WHITE = (1, 1, 1)


def parse_color(color):
    """Converts a #RRGGBB colour to cairo RGB floats."""

    color = color.lstrip("#")
    if len(color) == 3:
        color = "".join(c * 2 for c in color)
    return tuple(int(color[i:i + 2], 16) / 255 for i in (0, 2, 4))


class CairoPen(BasePen):
    """fontTools pen appending glyph outlines to the current cairo path.
    Quadratic segments are converted by BasePen."""

    def __init__(self, cr):
        super().__init__(None)
        self.cr = cr

    def _moveTo(self, pt):
        self.cr.move_to(*pt)

    def _lineTo(self, pt):
        self.cr.line_to(*pt)

    def _curveToOne(self, pt1, pt2, pt3):
        self.cr.curve_to(*pt1, *pt2, *pt3)

    def _closePath(self):
        self.cr.close_path()


class PdfWriter:
    """Class drawing laid out pages to a PDF file, one mushaf page per PDF
    page."""

    def __init__(self, filename, width, height, tajweed_colors=None):
        logger.info("Initializing the document: %s", filename)
        self.filename = filename
        self.surface = cairo.PDFSurface(filename, width, height)
        self.cr = cairo.Context(self.surface)
        self.colors = {name: parse_color(color) for name, color
                       in merge_colors(tajweed_colors).items()}
        self.pages = 0

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        if self.surface is not None:
            self.surface.finish()
            self.surface = None
            logger.debug("Wrote %d pages to %s", self.pages, self.filename)

    def draw_page(self, page):
        cr = self.cr
        for line in page:
            self.draw_line(line)
        cr.show_page()
        self.pages += 1

    def draw_line(self, line):
        cr = self.cr
        pen = CairoPen(cr)

        cr.save()
        cr.translate(line.origin_x, line.baseline)
        # Font units are Y up.
        cr.scale(line.scale_x, -line.scale_y)
        for item in line.items:
            cr.save()
            cr.translate(item.x, item.y)
            item.outline.replay(pen)
            cr.set_source_rgb(*self.colors.get(item.tajweed, BLACK))
            cr.fill()
            cr.restore()

        if line.sajda is not None:
            start, end = line.sajda
            cr.move_to(start, SAJDA_Y)
            cr.line_to(end, SAJDA_Y)
            cr.set_line_width(SAJDA_STROKE)
            cr.set_source_rgb(*BLACK)
            cr.stroke()
        cr.restore()

        for number in line.verse_numbers:
            self.draw_verse_number(line, number)

    def draw_verse_number(self, line, number):
        cr = self.cr
        x, y = line.page_point(number.x, number.y)

        cr.save()
        if number.cover_radius:
            cr.arc(x, y, number.cover_radius * line.scale_y, 0, 2 * math.pi)
            cr.set_source_rgb(*WHITE)
            cr.fill()

        cr.select_font_face("sans-serif")
        cr.set_font_size(number.font_size * line.scale_y)
        extents = cr.text_extents(number.text)
        cr.move_to(x - extents.x_advance / 2,
                   y - (extents.y_bearing + extents.height / 2))
        cr.set_source_rgb(*BLACK)
        cr.show_text(number.text)
        cr.restore()


def write_pdf(filename, renderer, page_indexes, settings):
    viewport = settings.viewport()
    colors = settings.tajweed_colors if settings.tajweed else None
    with PdfWriter(filename, viewport.width, viewport.height,
                   colors) as writer:
        for page_index in page_indexes:
            writer.draw_page(renderer.render_page(page_index, viewport,
                                                  settings))
    return writer.pages
