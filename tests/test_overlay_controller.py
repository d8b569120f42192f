import random

import pytest

from textmark.controllers.overlay_controller import HitRegion, InteractionMode, OverlayController
from textmark.core.annotations.models import AnnotationStyle
from textmark.core.errors import NoDocumentError
from textmark.core.export.flatten import DrawText, FlatteningEngine

from conftest import LETTER, commit_pass, mono_metrics

WIDTH, HEIGHT = LETTER
STYLE = AnnotationStyle(font_size=14, color=(0, 0, 0), highlight_color=(255, 255, 0))
EPS = 1e-9


@pytest.fixture
def controller(qapp, loaded_session, settings):
    commit_pass(loaded_session.coordinator, 1.0)
    return OverlayController(loaded_session, font_metrics=mono_metrics, settings=settings)


def record(signal):
    calls = []
    signal.connect(lambda *args: calls.append(args))
    return calls


def add(controller, text="Hi", page_index=0, x=0.5, y=0.5):
    return controller.store.create(page_index, x, y, STYLE, text=text)


def test_box_comes_from_ratios_and_text(controller):
    annotation = add(controller)
    box = controller.pixel_box(annotation.id)

    assert (box.x, box.y) == (pytest.approx(0.5 * WIDTH), pytest.approx(0.5 * HEIGHT))
    # "Hi" is narrower than the minimum box width
    assert box.width == 30
    assert box.height == pytest.approx(14 * 1.2 + 2 * 6)


def test_hit_regions(controller):
    box = controller.pixel_box(add(controller).id)
    annotation_id = controller.store.all()[0].id

    assert controller.hit_test(annotation_id, box.x + 2, box.y + 2) is HitRegion.BODY
    assert controller.hit_test(annotation_id, box.right - 1, box.bottom - 1) is HitRegion.RESIZE_HANDLE
    assert controller.hit_test(annotation_id, box.x + 10, box.y + 10) is HitRegion.TEXT
    assert controller.hit_test(annotation_id, box.x - 5, box.y) is HitRegion.NONE


def test_drag_keeps_box_inside_page(controller):
    annotation = add(controller)
    box = controller.pixel_box(annotation.id)
    committed = record(controller.state_committed)

    assert controller.pointer_down(annotation.id, box.x + 2, box.y + 2) is InteractionMode.DRAGGING

    controller.pointer_move(box.x + 10000, box.y + 10000)
    moved = controller.pixel_box(annotation.id)
    assert annotation.x_ratio * WIDTH + moved.width <= WIDTH + EPS
    assert annotation.y_ratio * HEIGHT + moved.height <= HEIGHT + EPS

    controller.pointer_move(box.x - 10000, box.y - 10000)
    assert (annotation.x_ratio, annotation.y_ratio) == (0.0, 0.0)

    assert controller.pointer_up() == annotation.id
    # The text area, without the margins on both sides
    assert annotation.width_ratio == pytest.approx((30 - 12) / WIDTH)
    assert annotation.height_ratio is None
    assert len(committed) == 1
    assert controller.pointer_move(0, 0) is False


def test_resize_respects_minimum_and_page_edge(controller):
    annotation = add(controller)
    box = controller.pixel_box(annotation.id)

    mode = controller.pointer_down(annotation.id, box.right - 1, box.bottom - 1)
    assert mode is InteractionMode.RESIZING

    controller.pointer_move(box.right - 1000, box.bottom - 1000)
    shrunk = controller.pixel_box(annotation.id)
    assert (shrunk.width, shrunk.height) == (30, 20)

    controller.pointer_move(box.right + 10000, box.bottom + 10000)
    grown = controller.pixel_box(annotation.id)
    assert grown.right == pytest.approx(WIDTH)
    assert grown.bottom == pytest.approx(HEIGHT)

    controller.pointer_up()
    assert annotation.x_ratio + annotation.width_ratio <= 1.0 + EPS
    assert annotation.y_ratio + annotation.height_ratio <= 1.0 + EPS
    assert annotation.width_ratio == pytest.approx((306 - 12) / WIDTH)
    assert controller.pixel_box(annotation.id).right == pytest.approx(WIDTH)


def test_press_on_text_enters_editing(controller):
    annotation = add(controller)
    box = controller.pixel_box(annotation.id)

    assert controller.pointer_down(annotation.id, box.x + 10, box.y + 10) is InteractionMode.EDITING
    assert controller.editing_id == annotation.id
    assert controller.mode_of(annotation.id) is InteractionMode.EDITING


def test_unrendered_page_cannot_be_manipulated(qapp, loaded_session, settings):
    controller = OverlayController(loaded_session, font_metrics=mono_metrics, settings=settings)
    annotation = add(controller)

    assert controller.pixel_box(annotation.id) is None
    assert controller.pointer_down(annotation.id, 0, 0) is InteractionMode.IDLE


def test_placement_creates_annotation_and_starts_editing(controller):
    added = record(controller.annotation_added)
    placement = record(controller.placement_changed)

    controller.begin_placement()
    annotation = controller.place_at(0, 0.1 * WIDTH, 0.1 * HEIGHT)

    assert annotation.page_index == 0
    assert (annotation.x_ratio, annotation.y_ratio) == (pytest.approx(0.1), pytest.approx(0.1))
    assert annotation.style == controller.default_style
    assert controller.editing_id == annotation.id
    # First focus cleared the placeholder
    assert annotation.text == ""
    assert not annotation.placeholder
    assert not controller.placement_active
    assert added == [(annotation.id,)]
    assert placement == [(True,), (False,)]


def test_place_without_placement_mode_does_nothing(controller):
    assert controller.place_at(0, 10, 10) is None
    assert len(controller.store) == 0


def test_placement_requires_a_document(qapp, session, settings):
    controller = OverlayController(session, font_metrics=mono_metrics, settings=settings)

    with pytest.raises(NoDocumentError):
        controller.begin_placement()
    assert not controller.placement_active


def test_placement_preview_is_clamped_to_page(controller):
    controller.begin_placement()
    previews = record(controller.preview_moved)

    controller.placement_hover(1, WIDTH + 50, HEIGHT + 50)

    [(page_index, box)] = previews
    assert page_index == 1
    assert box.right == pytest.approx(WIDTH)
    assert box.bottom == pytest.approx(HEIGHT)


def test_placeholder_is_cleared_on_first_focus(controller):
    annotation = controller.store.create(0, 0.2, 0.2, STYLE, text="Edit me", placeholder=True)

    assert controller.begin_edit(annotation.id) == ""
    controller.text_changed(annotation.id, "Typed")
    controller.end_edit(annotation.id)

    assert annotation.text == "Typed"
    assert controller.editing_id is None


def test_deleting_emptied_annotation_keeps_other_ids(controller):
    first = add(controller, text="first")
    second = add(controller, text="second")
    removed = record(controller.annotation_removed)

    controller.begin_edit(first.id)
    assert controller.delete_pressed(first.id) is False

    controller.text_changed(first.id, "")
    assert controller.delete_pressed(first.id) is True

    assert removed == [(first.id,)]
    assert first.id not in controller.store
    assert controller.store.get(second.id) is second
    assert controller.editing_id is None
    assert add(controller).id == second.id + 1


def test_style_applies_to_active_annotation(controller):
    annotation = add(controller)
    box = controller.pixel_box(annotation.id)
    controller.pointer_down(annotation.id, box.x + 2, box.y + 2)
    controller.pointer_up()

    assert controller.apply_style(font_size=24, highlight_color=None) == annotation.id
    assert annotation.font_size == 24.0
    assert annotation.highlight_color is None
    assert controller.default_style.font_size == 14.0


def test_style_without_active_annotation_sets_default(controller):
    changes = record(controller.default_style_changed)

    assert controller.apply_style(color=(255, 0, 0), highlight_color=None) is None
    assert controller.default_style.color == (255, 0, 0)
    assert controller.default_style.highlight_color is None
    assert len(changes) == 1

    controller.begin_placement()
    annotation = controller.place_at(0, 100, 100)
    assert annotation.color == (255, 0, 0)
    assert annotation.highlight_color is None


def test_rerender_reprojects_and_drops_stale_gesture(controller):
    annotation = add(controller)
    box = controller.pixel_box(annotation.id)
    reprojected = record(controller.page_reprojected)
    controller.pointer_down(annotation.id, box.x + 2, box.y + 2)

    commit_pass(controller.session.coordinator, 2.0)
    controller.on_page_rendered(0)

    assert reprojected == [(0,)]
    assert controller.pointer_move(0, 0) is False
    rescaled = controller.pixel_box(annotation.id)
    assert rescaled.x == pytest.approx(2 * box.x)


def assert_box_matches_ratios(controller, annotation):
    page = controller.session.coordinator.page(annotation.page_index)
    page_w, page_h = page.rendered_width, page.rendered_height
    box = controller.pixel_box(annotation.id)

    for ratio in (annotation.x_ratio, annotation.y_ratio,
                  annotation.width_ratio, annotation.height_ratio):
        assert ratio is None or 0.0 <= ratio <= 1.0
    assert box.x == pytest.approx(annotation.x_ratio * page_w)
    assert box.y == pytest.approx(annotation.y_ratio * page_h)
    assert annotation.x_ratio * page_w + box.width <= page_w + 1e-6
    assert annotation.y_ratio * page_h + box.height <= page_h + 1e-6
    if annotation.width_ratio is not None:
        assert annotation.x_ratio + annotation.width_ratio <= 1.0 + EPS
    if annotation.height_ratio is not None:
        assert annotation.y_ratio + annotation.height_ratio <= 1.0 + EPS


def assert_export_fits_page(controller, settings):
    engine = FlatteningEngine(font_metrics=mono_metrics, settings=settings)
    commands = engine.flatten(controller.store.all(), [LETTER, LETTER])
    texts = [command for command in commands if isinstance(command, DrawText)]

    assert texts
    for command in texts:
        assert command.x + mono_metrics(command.text, command.size) <= WIDTH + EPS


def test_text_edit_near_right_edge_moves_stored_position(controller, settings):
    annotation = add(controller, text="Hi", x=0.9)

    controller.text_changed(annotation.id, "The quick brown fox jumps over the lazy dog again and again")

    assert annotation.x_ratio < 0.9
    assert_box_matches_ratios(controller, annotation)
    assert_export_fits_page(controller, settings)


def test_larger_font_near_right_edge_moves_stored_position(controller, settings):
    annotation = add(controller, text="Hello there", x=0.8)
    controller.begin_edit(annotation.id)

    controller.apply_style(font_size=28)

    assert annotation.x_ratio < 0.8
    assert_box_matches_ratios(controller, annotation)
    assert_export_fits_page(controller, settings)


def test_rerender_at_smaller_scale_keeps_ratios_inside_page(controller):
    annotation = add(controller, text="A fairly long line of note text", x=0.7, y=0.97)

    commit_pass(controller.session.coordinator, 0.5)
    controller.on_page_rendered(0)

    assert_box_matches_ratios(controller, annotation)


TEXTS = [
    "",
    "Hi",
    "A short note",
    "x" * 120,
    "First line\nSecond line\n\nFourth line after a blank one",
    "The quick brown fox jumps over the lazy dog " * 4,
]
SCALES = [0.5, 1.0, 1.5, 2.0, 3.0]
STARTS = [(0.0, 0.0), (0.5, 0.5), (0.95, 0.97), (1.0, 1.0), (0.99, 0.0)]


def drag(controller, annotation, rng):
    box = controller.pixel_box(annotation.id)
    if controller.pointer_down(annotation.id, box.x + 2, box.y + 2) is InteractionMode.DRAGGING:
        controller.pointer_move(box.x + 2 + rng.uniform(-900, 900), box.y + 2 + rng.uniform(-900, 900))
        controller.pointer_up()


def resize(controller, annotation, rng):
    box = controller.pixel_box(annotation.id)
    if controller.pointer_down(annotation.id, box.right - 1, box.bottom - 1) is InteractionMode.RESIZING:
        controller.pointer_move(box.right - 1 + rng.uniform(-400, 900),
                                box.bottom - 1 + rng.uniform(-400, 900))
        controller.pointer_up()


def edit_text(controller, annotation, rng):
    controller.text_changed(annotation.id, rng.choice(TEXTS))


def change_font(controller, annotation, rng):
    controller.begin_edit(annotation.id)
    controller.apply_style(font_size=rng.choice([8, 14, 24, 36, 72]))
    controller.end_edit(annotation.id)


def rerender(controller, annotation, rng):
    commit_pass(controller.session.coordinator, rng.choice(SCALES))
    for page_index in range(controller.session.coordinator.page_count):
        controller.on_page_rendered(page_index)


STEPS = [drag, resize, edit_text, change_font, rerender]


@pytest.mark.parametrize("seed", range(12))
def test_mixed_edits_keep_every_box_inside_its_page(controller, seed):
    rng = random.Random(seed)
    x, y = rng.choice(STARTS)
    annotations = [add(controller, text=rng.choice(TEXTS[1:]), page_index=rng.randrange(2), x=x, y=y)]
    controller.on_page_rendered(annotations[0].page_index)
    assert_box_matches_ratios(controller, annotations[0])

    for _ in range(40):
        if rng.random() < 0.1:
            controller.deactivate()
            controller.begin_placement()
            page = controller.session.coordinator.page(0)
            annotations.append(controller.place_at(
                0,
                page.rendered_width * rng.uniform(0.9, 1.1),
                page.rendered_height * rng.uniform(0.9, 1.1),
            ))
        annotation = rng.choice(annotations)
        rng.choice(STEPS)(controller, annotation, rng)

        for each in annotations:
            assert_box_matches_ratios(controller, each)


def test_resized_width_is_the_export_wrap_width(controller, settings):
    annotation = add(controller, text="one two three four five six seven eight", x=0.1, y=0.1)
    box = controller.pixel_box(annotation.id)
    controller.pointer_down(annotation.id, box.right - 1, box.bottom - 1)
    controller.pointer_move(box.right - 1 - (box.width - 100), box.bottom - 1)
    controller.pointer_up()

    box = controller.pixel_box(annotation.id)
    engine = FlatteningEngine(font_metrics=mono_metrics, settings=settings)
    assert box.width == pytest.approx(100)
    assert engine.wrap_width(annotation, WIDTH) == pytest.approx(box.width - 2 * settings.text_margin)

    texts = [c for c in engine.flatten([annotation], [LETTER, LETTER]) if isinstance(c, DrawText)]
    assert len(texts) > 1
    for command in texts:
        assert command.x + mono_metrics(command.text, command.size) <= box.right - settings.text_margin + EPS
