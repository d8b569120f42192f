import json

import pytest

from textmark.core.annotations.models import Annotation
from textmark.core.annotations.persistence import (
    CURRENT_VERSION,
    KEY_ANNOTATIONS,
    KEY_DOCUMENT,
    KEY_PREFERENCES,
    JsonFileStore,
    Preferences,
    SessionPersistence,
    decode_annotations,
    encode_annotations,
    migrate,
)

from conftest import MemoryStore


@pytest.fixture
def persistence():
    return SessionPersistence(MemoryStore())


def test_session_round_trip(persistence):
    annotations = [
        Annotation(id=1, page_index=0, x_ratio=0.1, y_ratio=0.2, text="One"),
        Annotation(id=4, page_index=1, x_ratio=0.5, y_ratio=0.5, text="Two\nlines",
                   color=(255, 0, 0), highlight_color=None, width_ratio=0.4, height_ratio=0.1),
    ]
    persistence.save_document(b"%PDF-1.7 data", "doc.pdf")
    persistence.save_annotations(annotations)

    saved = persistence.load_session()

    assert saved.document_bytes == b"%PDF-1.7 data"
    assert saved.document_name == "doc.pdf"
    assert saved.annotations == annotations


def test_encoded_payload_is_versioned():
    payload = json.loads(encode_annotations([]))

    assert payload == {'version': CURRENT_VERSION, 'annotations': []}


def test_bare_list_payload_is_migrated():
    raw = json.dumps([
        {'id': 2, 'pageIndex': 0, 'xRatio': 0.3, 'yRatio': 0.4, 'text': 'legacy',
         'fontSize': 18, 'color': '#ff0000', 'highlightColor': 'rgba(0, 0, 0, 0)'},
    ])

    [annotation] = decode_annotations(raw)

    assert annotation.id == 2
    assert (annotation.x_ratio, annotation.y_ratio) == (0.3, 0.4)
    assert annotation.font_size == 18.0
    assert annotation.color == (255, 0, 0)
    assert annotation.highlight_color is None


def test_version_one_payload_is_migrated():
    payload = migrate({'version': 1, 'annotations': [
        {'id': 1, 'pageIndex': 1, 'xRatio': 0.5, 'yRatio': 0.5, 'widthRatio': 0.2,
         'color': 'rgb(0, 0, 255)', 'highlightColor': '#ffff00'},
    ]})

    assert payload['version'] == CURRENT_VERSION
    item = payload['annotations'][0]
    assert item['page_index'] == 1
    assert item['width_ratio'] == 0.2
    assert item['color'] == (0, 0, 255)
    assert item['highlight_color'] == (255, 255, 0)


@pytest.mark.parametrize("raw", [
    None,
    "",
    "{not json",
    json.dumps({'version': 99, 'annotations': []}),
    json.dumps("a string"),
])
def test_malformed_annotation_payload_is_empty(raw):
    assert decode_annotations(raw) == []


def test_malformed_entries_are_skipped():
    raw = json.dumps({'version': CURRENT_VERSION, 'annotations': [
        {'id': 1, 'page_index': 0, 'x_ratio': 0.1, 'y_ratio': 0.1},
        {'id': 'x', 'page_index': 0},
        {'page_index': 0, 'x_ratio': 0.1, 'y_ratio': 0.1},
    ]})

    assert [a.id for a in decode_annotations(raw)] == [1]


def test_malformed_document_discards_saved_session(persistence):
    persistence.store.set(KEY_DOCUMENT, "###not base64###")
    persistence.save_annotations([Annotation(id=1, page_index=0, x_ratio=0, y_ratio=0)])

    assert persistence.load_session() is None
    assert persistence.store.get(KEY_DOCUMENT) is None
    assert persistence.store.get(KEY_ANNOTATIONS) is None


def test_missing_session_is_none(persistence):
    assert persistence.load_session() is None


def test_preferences_round_trip_and_defaults(persistence):
    assert persistence.load_preferences() == Preferences()

    persistence.save_preferences(Preferences(dark_mode=True, save_enabled=False))
    assert persistence.load_preferences() == Preferences(dark_mode=True, save_enabled=False)

    persistence.store.set(KEY_PREFERENCES, "[1, 2]")
    assert persistence.load_preferences() == Preferences()


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "session.json"
    store = JsonFileStore(path)
    store.set("a", "1")
    store.set("b", "2")
    store.remove("a")

    reopened = JsonFileStore(path)
    assert reopened.get("a") is None
    assert reopened.get("b") == "2"


def test_json_file_store_ignores_malformed_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("not json", encoding="utf-8")

    store = JsonFileStore(path)
    assert store.get("anything") is None
    store.set("key", "value")
    assert json.loads(path.read_text(encoding="utf-8")) == {"key": "value"}
