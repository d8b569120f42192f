import pytest

from textmark.core.page.models import RenderedPage
from textmark.core.page.render_coordinator import PageRenderCoordinator

SIZES = [(100.0, 200.0), (100.0, 150.0), (120.0, 200.0)]


class FakeRenderer:
    def __init__(self, on_render=None):
        self.calls = []
        self.on_render = on_render

    def render_page(self, page_index, scale):
        self.calls.append((page_index, scale))
        if self.on_render:
            self.on_render(page_index)
        return RenderedPage(page_index, scale, round(SIZES[page_index][0] * scale),
                            round(SIZES[page_index][1] * scale))


@pytest.fixture
def coordinator():
    coordinator = PageRenderCoordinator()
    coordinator.load_pages(SIZES)
    return coordinator


def rendered(index, scale):
    width, height = SIZES[index]
    return RenderedPage(index, scale, round(width * scale), round(height * scale))


def test_full_pass_commits_in_order(coordinator):
    generation = coordinator.begin_pass(2.0)

    for page in coordinator.iter_pass(generation, FakeRenderer()):
        assert coordinator.commit_page(generation, page)

    assert coordinator.is_complete(generation)
    assert [(p.rendered_width, p.rendered_height, p.scale) for p in coordinator.pages] == [
        (200, 400, 2.0), (200, 300, 2.0), (240, 400, 2.0),
    ]


def test_superseded_pass_is_never_applied(coordinator):
    old = coordinator.begin_pass(1.0)
    new = coordinator.begin_pass(2.0)

    assert not coordinator.commit_page(old, rendered(0, 1.0))
    assert not coordinator.pages[0].is_rendered

    assert coordinator.commit_page(new, rendered(0, 2.0))
    assert coordinator.pages[0].scale == 2.0


def test_out_of_order_page_is_rejected(coordinator):
    generation = coordinator.begin_pass(1.0)

    assert not coordinator.commit_page(generation, rendered(1, 1.0))
    assert coordinator.commit_page(generation, rendered(0, 1.0))
    assert coordinator.commit_page(generation, rendered(1, 1.0))
    assert not coordinator.is_complete(generation)


def test_iteration_stops_once_superseded(coordinator):
    generation = coordinator.begin_pass(1.0)
    renderer = FakeRenderer(on_render=lambda index: index == 1 and coordinator.begin_pass(3.0))

    pages = list(coordinator.iter_pass(generation, renderer))

    # Page 1 was requested before the new pass started, but is not yielded
    assert [p.page_index for p in pages] == [0]
    assert renderer.calls == [(0, 1.0), (1, 1.0)]


def test_loading_a_document_invalidates_running_pass(coordinator):
    generation = coordinator.begin_pass(1.0)
    coordinator.load_pages([(50.0, 50.0)])

    assert not coordinator.is_current(generation)
    assert coordinator.page_count == 1
    assert coordinator.page(3) is None


def test_layout_offsets(coordinator):
    generation = coordinator.begin_pass(1.0)
    for index in range(3):
        coordinator.commit_page(generation, rendered(index, 1.0))

    assert coordinator.page_offset(0, 10) == 0
    assert coordinator.page_offset(2, 10) == 200 + 10 + 150 + 10
    assert coordinator.content_height(10) == 200 + 150 + 200 + 20


def test_scroll_anchor_keeps_content_under_pointer(coordinator):
    anchor = coordinator.capture_anchor(500, 2000, 400, pointer_y=100)

    assert anchor.fraction == pytest.approx(0.3)
    # Content doubled in height: same fraction stays 100px below the top edge
    assert coordinator.restore_anchor(anchor, 4000) == 1100
    assert coordinator.restore_anchor(anchor, 4000, max_scroll=900) == 900


def test_scroll_anchor_defaults_to_viewport_center(coordinator):
    anchor = coordinator.capture_anchor(0, 1000, 400)

    assert anchor.viewport_offset == 200
    assert coordinator.restore_anchor(anchor, 1000) == 0
    assert coordinator.capture_anchor(0, 0, 400) is None
