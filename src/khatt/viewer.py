"""Progressive rendering of the pages of a scrolling mushaf.

Only one page is driven forward at a time. A page renders as a generator
that yields whenever it has used its frame budget, the host calls
`Viewer.run_frame()` once per frame. Pausing a page simply stops stepping
its generator, cancelling closes it.
"""

import enum
import logging
import time
from collections import namedtuple

from .errors import OutOfRangeError
from .hittest import HitTestManager
from .render import PageLayout

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 10
FRAME_BUDGET = 0.016


class RenderingState(enum.IntEnum):
    INITIAL = 0
    RUNNING = 1
    PAUSED = 2
    FINISHED = 3


VisiblePage = namedtuple("VisiblePage", ["id", "x", "y", "view", "percent"])
VisiblePages = namedtuple("VisiblePages", ["first", "last", "views"])


class PageCache:
    """Most recently used page views, the least recent first. Views pushed
    out of the cache are destroyed."""

    def __init__(self, size=DEFAULT_CACHE_SIZE):
        self.size = size
        self.views = []

    def push(self, view):
        if view in self.views:
            self.views.remove(view)
        self.views.append(view)
        self._evict()

    def resize(self, size, keep=()):
        """Changes the capacity, views in keep are moved to the recent end
        first so they survive the shrink."""

        self.size = size
        if keep:
            ids = {view.id for view in keep}
            self.views = [v for v in self.views if v.id not in ids] + \
                         [v for v in self.views if v.id in ids]
        self._evict()

    def reset(self):
        while self.views:
            self.views.pop(0).destroy()

    def _evict(self):
        while len(self.views) > self.size:
            view = self.views.pop(0)
            logger.debug("Evicting page %d", view.id)
            view.destroy()

    def __contains__(self, view):
        return view in self.views

    def __len__(self):
        return len(self.views)


class PageView:
    """Class driving the rendering of one page."""

    def __init__(self, page_index, renderer, viewport, frame_budget=None,
                 clock=time.perf_counter):
        self.page_index = page_index
        self.id = page_index + 1
        self.renderer = renderer
        self.viewport = viewport
        self.frame_budget = FRAME_BUDGET if frame_budget is None \
            else frame_budget
        self.clock = clock

        self.state = RenderingState.INITIAL
        self.lines = []
        self.layout = None
        self.error = None
        self.task = None

    @property
    def finished(self):
        return self.state == RenderingState.FINISHED

    def draw(self, settings):
        """Starts rendering; does nothing unless the page is INITIAL."""

        if self.state != RenderingState.INITIAL:
            return False
        self.state = RenderingState.RUNNING
        self.task = self._render(settings)
        return True

    def _render(self, settings):
        start = last = self.clock()
        lines = self.renderer.iter_lines(self.page_index, self.viewport,
                                         settings)
        try:
            for line in lines:
                self.lines.append(line)
                if self.clock() - last > self.frame_budget:
                    yield
                    last = self.clock()
        finally:
            lines.close()

        self.layout = PageLayout(self.page_index, self.viewport, self.lines)
        self.state = RenderingState.FINISHED
        logger.debug("Page %d took %.3f s", self.id, self.clock() - start)

    def step(self):
        """Renders until the next frame boundary. Returns whether the page
        still has work left."""

        if self.state != RenderingState.RUNNING or self.task is None:
            return False
        try:
            next(self.task)
        except StopIteration:
            self.task = None
            return False
        except Exception as e:
            self.task = None
            self.error = e
            self.state = RenderingState.FINISHED
            raise
        return True

    def pause(self):
        if self.state == RenderingState.RUNNING:
            self.state = RenderingState.PAUSED
            return True
        return False

    def resume(self):
        if self.state == RenderingState.PAUSED:
            self.state = RenderingState.RUNNING
            return True
        return False

    def reset(self):
        if self.task is not None:
            self.task.close()
            self.task = None
        self.state = RenderingState.INITIAL
        self.lines = []
        self.layout = None
        self.error = None

    def destroy(self):
        self.reset()

    def update(self, viewport):
        self.viewport = viewport
        self.reset()

    def hit_test(self, x, y):
        if self.layout is None:
            return None, None
        return HitTestManager.for_page(self.layout).hit_test(x, y)

    def __repr__(self):
        return "PageView(%d, %s)" % (self.id, self.state.name)


class Viewer:
    """Class scheduling the rendering of a vertical strip of pages.

    Pages are stacked at multiples of the viewport height, the scroll
    position and the client size are given by the host."""

    def __init__(self, renderer, settings, client_height=None,
                 client_width=None, cache_size=None):
        self.renderer = renderer
        self.settings = settings
        self.viewport = settings.viewport()
        self.item_size = self.viewport.height
        self.client_height = client_height if client_height is not None \
            else self.viewport.height
        self.client_width = client_width if client_width is not None \
            else self.viewport.width
        self.cache = PageCache(cache_size or settings.cache_size or
                               DEFAULT_CACHE_SIZE)

        self.scroll_top = 0
        self.scroll_left = 0
        self.scrolled_down = True
        self.highest = None
        self.views = [self._view(i) for i in range(renderer.page_count)]

    def _view(self, page_index):
        return PageView(page_index, self.renderer, self.viewport,
                        self.settings.frame_budget)

    def view(self, page_index):
        if not 0 <= page_index < len(self.views):
            raise OutOfRangeError("Page", page_index, len(self.views))
        return self.views[page_index]

    @property
    def page_count(self):
        return len(self.views)

    def visible_pages(self):
        top = max(0, self.scroll_top)
        bottom = top + self.client_height
        left = self.scroll_left
        right = left + self.client_width

        first_index = int(top // self.item_size)
        last_index = min(len(self.views) - 1, int(bottom // self.item_size))
        if first_index > last_index:
            return None

        visible = []
        for index in range(first_index, last_index + 1):
            view = self.views[index]
            x, y = 0, index * self.item_size
            width, height = view.viewport.width, view.viewport.height
            hidden_height = max(0, top - y) + max(0, y + height - bottom)
            hidden_width = max(0, left - x) + max(0, x + width - right)
            percent = int((height - hidden_height) * (width - hidden_width) *
                          100 / height / width)
            visible.append(VisiblePage(view.id, x, y, view, percent))

        if not visible:
            return None

        first, last = visible[0], visible[-1]
        visible.sort(key=lambda v: (-v.percent, v.id))
        return VisiblePages(first, last, visible)

    def highest_priority(self, visible, scrolled_down=None):
        """Returns the first unfinished visible page, or the page after (or
        before, when scrolling up) the visible ones."""

        if visible is None or not visible.views:
            return None
        if scrolled_down is None:
            scrolled_down = self.scrolled_down

        for page in visible.views:
            if not page.view.finished:
                return page.view

        # Ids are 1-based, so the id of the last page is the next index.
        if scrolled_down:
            index = visible.last.id
        else:
            index = visible.first.id - 2
        if 0 <= index < len(self.views) and not self.views[index].finished:
            return self.views[index]
        return None

    def render_view(self, view):
        if view.state == RenderingState.FINISHED:
            return False

        old = self.highest
        self.highest = view
        if old is not None and old is not view:
            old.pause()

        if view.state == RenderingState.PAUSED:
            view.resume()
        elif view.state == RenderingState.INITIAL:
            logger.info("Page %d…", view.id)
            view.draw(self.settings)
        return True

    def force_rendering(self, visible=None):
        if visible is None:
            visible = self.visible_pages()
        view = self.highest_priority(visible)
        if view is None:
            return False
        self.cache.push(view)
        return self.render_view(view)

    def handle_scroll(self, top, left=0):
        if top != self.scroll_top:
            self.scrolled_down = top > self.scroll_top
        self.scroll_top = top
        self.scroll_left = left

        visible = self.visible_pages()
        if visible is not None and visible.views:
            size = max(DEFAULT_CACHE_SIZE, 2 * len(visible.views) + 1)
            self.cache.resize(size, [v.view for v in visible.views])
            self.force_rendering(visible)
        return visible

    def run_frame(self):
        """Advances the highest priority page by one frame. Returns False
        when there is nothing left to render."""

        view = self.highest
        if view is None or view.state != RenderingState.RUNNING:
            return self.force_rendering()

        try:
            more = view.step()
        except Exception:
            logger.exception("Error rendering page %d", view.id)
            more = False
        if not more:
            self.force_rendering()
        return True

    def run_until_idle(self, max_frames=None):
        frames = 0
        while max_frames is None or frames < max_frames:
            if not self.run_frame():
                break
            frames += 1
        return frames

    def running(self):
        return [v for v in self.views if v.state == RenderingState.RUNNING]

    def set_viewport(self, viewport):
        self.viewport = viewport
        self.item_size = viewport.height
        for view in self.views:
            view.update(viewport)
        self.highest = None

    def set_page(self, page_number):
        """Scrolls to a 1-based page number."""

        if not 1 <= page_number <= len(self.views):
            raise OutOfRangeError("Page", page_number - 1, len(self.views))
        return self.handle_scroll((page_number - 1) * self.item_size,
                                  self.scroll_left)

    def current_page(self):
        return int(self.scroll_top // self.item_size) + 1

    def clear_caches(self):
        """Drops rendered pages and the renderer caches, needed whenever the
        font or anything affecting layout changes."""

        self.cache.reset()
        self.highest = None
        self.renderer.clear_caches()

    def reset(self):
        self.cache.reset()
        self.highest = None

    def destroy(self):
        # The cache destroys its own views.
        uncached = [v for v in self.views if v not in self.cache]
        self.cache.reset()
        for view in uncached:
            view.destroy()
        self.views = []
        self.highest = None
