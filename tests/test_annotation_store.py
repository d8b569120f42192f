import pytest

from textmark.core.annotations.models import Annotation, AnnotationStyle, parse_color
from textmark.core.annotations.store import AnnotationStore, IdAllocator

STYLE = AnnotationStyle(font_size=14, color=(0, 0, 0), highlight_color=(255, 255, 0))


@pytest.fixture
def store():
    return AnnotationStore(IdAllocator())


def test_ids_increase_and_are_not_reused(store):
    first = store.create(0, 0.1, 0.1, STYLE)
    second = store.create(0, 0.2, 0.2, STYLE)
    store.remove(second.id)
    third = store.create(0, 0.3, 0.3, STYLE)

    assert (first.id, second.id, third.id) == (1, 2, 3)


def test_stores_do_not_share_counters():
    a = AnnotationStore(IdAllocator())
    b = AnnotationStore(IdAllocator())
    a.create(0, 0, 0, STYLE)
    a.create(0, 0, 0, STYLE)

    assert b.create(0, 0, 0, STYLE).id == 1


def test_create_clamps_ratios_and_copies_style(store):
    annotation = store.create(1, -0.5, 1.5, STYLE, text="Hi")

    assert (annotation.x_ratio, annotation.y_ratio) == (0.0, 1.0)
    assert annotation.style == STYLE
    assert annotation.width_ratio is None


def test_move_and_resize_clamp(store):
    annotation = store.create(0, 0.5, 0.5, STYLE)
    store.move(annotation.id, 2.0, -1.0)
    store.resize(annotation.id, width_ratio=1.3)

    assert (annotation.x_ratio, annotation.y_ratio) == (1.0, 0.0)
    assert annotation.width_ratio == 1.0
    assert annotation.height_ratio is None


def test_set_style_highlight_can_be_removed_or_kept(store):
    annotation = store.create(0, 0, 0, STYLE)

    store.set_style(annotation.id, font_size=24)
    assert annotation.highlight_color == (255, 255, 0)

    store.set_style(annotation.id, highlight_color=None)
    assert annotation.highlight_color is None
    assert annotation.font_size == 24.0


def test_set_text_clears_placeholder(store):
    annotation = store.create(0, 0, 0, STYLE, text="Edit me", placeholder=True)
    store.set_text(annotation.id, "Real text")

    assert annotation.text == "Real text"
    assert not annotation.placeholder


def test_all_is_in_document_order(store):
    store.create(1, 0, 0, STYLE)
    store.create(0, 0, 0, STYLE)
    store.create(1, 0, 0, STYLE)

    assert [(a.page_index, a.id) for a in store.all()] == [(0, 2), (1, 1), (1, 3)]
    assert [a.id for a in store.for_page(1)] == [1, 3]


def test_require_missing_raises(store):
    with pytest.raises(KeyError):
        store.require(42)
    assert store.remove(42) is False


def test_restore_advances_counter_past_restored_ids(store):
    restored = [
        Annotation(id=3, page_index=0, x_ratio=0.1, y_ratio=0.1),
        Annotation(id=7, page_index=1, x_ratio=0.2, y_ratio=0.2),
        Annotation(id=3, page_index=1, x_ratio=0.9, y_ratio=0.9),
    ]

    assert store.restore(restored) == 2
    assert store.get(3).page_index == 0
    assert store.create(0, 0, 0, STYLE).id == 8


def test_annotation_dict_round_trip_keeps_optional_sizes():
    annotation = Annotation(id=5, page_index=2, x_ratio=0.25, y_ratio=0.5, text="x",
                            highlight_color=None, width_ratio=0.3)
    data = annotation.to_dict()

    assert 'height_ratio' not in data
    assert Annotation.from_dict(data) == annotation


@pytest.mark.parametrize("value, expected", [
    ("#ff0000", (255, 0, 0)),
    ("#0f0", (0, 255, 0)),
    ("rgb(1, 2, 3)", (1, 2, 3)),
    ("rgba(0, 0, 0, 0)", None),
    ("transparent", None),
    ([300, -5, 10], (255, 0, 10)),
])
def test_parse_color(value, expected):
    assert parse_color(value) == expected


def test_parse_color_rejects_garbage():
    with pytest.raises(ValueError):
        parse_color("bright pink")
