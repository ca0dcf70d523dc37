from collections import namedtuple

WordRect = namedtuple("WordRect", ["line_index", "word_index", "x", "y",
                                   "width", "height", "text"])
LineRect = namedtuple("LineRect", ["line_index", "x", "y", "width", "height"])


def point_in_rect(x, y, rect):
    # Edges are inclusive.
    return rect.x <= x <= rect.x + rect.width and \
        rect.y <= y <= rect.y + rect.height


class HitTestManager:
    """Class finding the word and line under a point of a rendered page."""

    def __init__(self, word_rects=(), line_rects=()):
        self.word_rects = list(word_rects)
        self.line_rects = list(line_rects)

    @classmethod
    def for_page(cls, page):
        return cls(page.word_rects(), page.line_rects())

    def set_page(self, page):
        self.word_rects = page.word_rects()
        self.line_rects = page.line_rects()

    def clear(self):
        self.word_rects = []
        self.line_rects = []

    def hit_test_word(self, x, y):
        for rect in self.word_rects:
            if point_in_rect(x, y, rect):
                return rect
        return None

    def hit_test_line(self, x, y):
        for rect in self.line_rects:
            if point_in_rect(x, y, rect):
                return rect
        return None

    def hit_test(self, x, y):
        """Returns the (word, line) rectangles under the point, either may be
        None."""
        return self.hit_test_word(x, y), self.hit_test_line(x, y)

    def word_rects_for_line(self, line_index):
        return [r for r in self.word_rects if r.line_index == line_index]

    def find_word_rect(self, line_index, word_index):
        for rect in self.word_rects:
            if rect.line_index == line_index and rect.word_index == word_index:
                return rect
        return None
