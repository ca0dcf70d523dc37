import logging
import random

import pytest

from khatt.errors import OutOfRangeError
from khatt.render import LineLayout, Rect
from khatt.settings import Settings
from khatt.viewer import PageCache, PageView, RenderingState, Viewer

LINES = 3


class FakeRenderer:
    """Renderer stand-in yielding empty lines, records which generators were
    closed before finishing."""

    def __init__(self, page_count=8, failing=()):
        self.page_count = page_count
        self.failing = set(failing)
        self.started = []
        self.closed = []
        self.cleared = 0

    def iter_lines(self, page_index, viewport, settings):
        self.started.append(page_index)
        done = False
        try:
            for index in range(LINES):
                if page_index in self.failing and index == 1:
                    raise ValueError("broken page")
                line = LineLayout(index, None)
                line.box = Rect(0, index * 10, viewport.width, 10)
                yield line
            done = True
        finally:
            if not done:
                self.closed.append(page_index)

    def clear_caches(self):
        self.cleared += 1


class FakeView:
    destroyed = 0

    def __init__(self, id):
        self.id = id

    def destroy(self):
        self.destroyed += 1


@pytest.fixture
def settings():
    # Yield after every line.
    return Settings().update(frame_budget=-1)


def test_page_cache_eviction():
    cache = PageCache(2)
    views = [FakeView(i) for i in range(3)]
    for view in views:
        cache.push(view)
    assert len(cache) == 2
    assert views[0] not in cache
    assert views[0].destroyed == 1

    cache.push(views[1])
    cache.push(FakeView(9))
    assert views[1] in cache and views[2] not in cache


def test_page_cache_resize_keeps_visible():
    cache = PageCache(4)
    views = [FakeView(i) for i in range(4)]
    for view in views:
        cache.push(view)
    cache.resize(2, keep=[views[0]])
    assert views[0] in cache and views[3] in cache
    assert [v.destroyed for v in views] == [0, 1, 1, 0]

    cache.reset()
    assert len(cache) == 0
    assert views[0].destroyed == 1


def test_page_cache_bound():
    rng = random.Random(7)
    views = [FakeView(i) for i in range(20)]
    cache = PageCache(5)
    for _ in range(200):
        cache.push(rng.choice(views))
        assert len(cache) <= 5
    assert len(set(v.id for v in cache.views)) == len(cache)


def test_page_view_states(settings):
    renderer = FakeRenderer()
    view = PageView(0, renderer, settings.viewport(), frame_budget=-1)
    assert view.id == 1
    assert not view.step()
    assert not view.pause()

    assert view.draw(settings)
    assert not view.draw(settings)
    assert view.step()
    assert view.pause()
    assert not view.step()
    assert view.resume()
    while view.step():
        pass
    assert view.finished
    assert len(view.layout) == LINES
    assert renderer.closed == []


def test_page_view_reset_cancels(settings):
    renderer = FakeRenderer()
    view = PageView(0, renderer, settings.viewport(), frame_budget=-1)
    view.draw(settings)
    view.step()
    view.reset()
    assert renderer.closed == [0]
    assert view.state == RenderingState.INITIAL
    assert view.lines == [] and view.layout is None


def test_page_view_error(settings):
    view = PageView(0, FakeRenderer(failing=[0]), settings.viewport(),
                    frame_budget=-1)
    view.draw(settings)
    with pytest.raises(ValueError):
        while view.step():
            pass
    assert view.finished
    assert isinstance(view.error, ValueError)
    assert view.layout is None


def test_page_view_hit_test(settings):
    view = PageView(0, FakeRenderer(), settings.viewport(), frame_budget=-1)
    assert view.hit_test(1, 1) == (None, None)
    view.draw(settings)
    while view.step():
        pass
    word, line = view.hit_test(1, 15)
    assert word is None
    assert line.line_index == 1


def test_renders_visible_pages_first(settings):
    renderer = FakeRenderer()
    viewer = Viewer(renderer, settings)
    assert viewer.page_count == 8
    frames = viewer.run_until_idle()
    assert frames > 0
    # The visible page, the page touching the bottom edge, then the next one.
    assert renderer.started == [0, 1, 2]
    assert [v.finished for v in viewer.views[:4]] == [True] * 3 + [False]
    assert viewer.run_frame() is False


def test_one_page_running_at_a_time(settings):
    viewer = Viewer(FakeRenderer(20), settings)
    rng = random.Random(3)
    height = viewer.item_size
    for _ in range(60):
        viewer.handle_scroll(rng.uniform(0, 19 * height))
        for _ in range(rng.randint(0, 3)):
            viewer.run_frame()
            assert len(viewer.running()) <= 1
        assert len(viewer.running()) <= 1


def test_switching_pages_pauses(settings):
    viewer = Viewer(FakeRenderer(20), settings)
    viewer.run_frame()
    first = viewer.highest
    assert first.state == RenderingState.RUNNING
    viewer.set_page(10)
    assert first.state == RenderingState.PAUSED
    assert viewer.highest.id == 10
    assert viewer.current_page() == 10


def test_scrolling_up_prefers_previous_page(settings):
    renderer = FakeRenderer(20)
    viewer = Viewer(renderer, settings, client_height=settings.page_height / 2)
    viewer.set_page(10)
    viewer.run_until_idle()
    assert renderer.started == [9, 10]
    # Pages 10 and 11 are done, nothing is left below.
    viewer.handle_scroll(viewer.scroll_top + 400)
    assert viewer.run_until_idle() == 0

    renderer.started = []
    viewer.handle_scroll(viewer.scroll_top - 80)
    assert not viewer.scrolled_down
    viewer.run_until_idle()
    assert renderer.started == [8]


def test_cache_grows_with_visible_pages(settings):
    viewer = Viewer(FakeRenderer(40), settings,
                    client_height=settings.page_height * 8)
    visible = viewer.handle_scroll(0)
    assert len(visible.views) == 9
    assert viewer.cache.size == 19

    viewer = Viewer(FakeRenderer(40), settings)
    viewer.handle_scroll(1)
    assert viewer.cache.size == 10


def test_failing_page_is_skipped(settings, caplog):
    renderer = FakeRenderer(failing=[0])
    viewer = Viewer(renderer, settings)
    with caplog.at_level(logging.ERROR):
        viewer.run_until_idle()
    assert "Error rendering page 1" in caplog.text
    assert viewer.views[0].finished
    assert viewer.views[1].finished and viewer.views[2].finished


def test_set_page_range(settings):
    viewer = Viewer(FakeRenderer(), settings)
    with pytest.raises(OutOfRangeError):
        viewer.set_page(0)
    with pytest.raises(OutOfRangeError):
        viewer.set_page(9)
    with pytest.raises(OutOfRangeError):
        viewer.view(8)


def test_clear_caches(settings):
    renderer = FakeRenderer()
    viewer = Viewer(renderer, settings)
    viewer.run_until_idle()
    viewer.clear_caches()
    assert renderer.cleared == 1
    assert not any(v.finished for v in viewer.views)
    assert viewer.highest is None

    viewer.destroy()
    assert viewer.page_count == 0


def test_destroy_once(settings, monkeypatch):
    viewer = Viewer(FakeRenderer(), settings)
    viewer.run_until_idle()
    calls = []
    for view in viewer.views:
        monkeypatch.setattr(view, "destroy",
                            lambda view=view: calls.append(view.id))
    viewer.destroy()
    assert sorted(calls) == list(range(1, 9))
