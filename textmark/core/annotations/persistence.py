"""
Saving and restoring the editing session to/from a flat key/value store.

The annotation list is stored as a versioned JSON envelope. Older payloads are
upgraded through the functions in ``MIGRATIONS``, keyed by the version they
upgrade from.
"""
import base64
import binascii
import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol

from .models import Annotation, parse_color

logger = logging.getLogger(__name__)

CURRENT_VERSION = 2

KEY_DOCUMENT = "session.document"
KEY_DOCUMENT_NAME = "session.document_name"
KEY_ANNOTATIONS = "session.annotations"
KEY_PREFERENCES = "preferences"


class KeyValueStore(Protocol):
    """Flat string store used for persistence."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class JsonFileStore:
    """Key/value store backed by a single JSON file."""

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data

        self._data = {}
        if self.file_path.exists():
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    raw = json.load(f)
                if isinstance(raw, dict):
                    self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
                else:
                    logger.warning("Ignoring malformed store file %s", self.file_path)
            except (OSError, ValueError) as e:
                logger.warning("Failed to read store file %s: %s", self.file_path, e)
        return self._data

    def _flush(self) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        # Write to a temp file first so a crash never leaves a truncated store
        fd, temp_path = tempfile.mkstemp(suffix='.json', dir=self.file_path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self._data, f)
            os.replace(temp_path, self.file_path)
        except OSError:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._load().pop(key, None) is not None:
            self._flush()


# ==============================================================================
# Migrations
# ==============================================================================


def _migrate_v0(payload) -> dict:
    """Unversioned payload: a bare list of annotations with version 1 keys."""
    return {'version': 1, 'annotations': payload}


_V1_KEYS = {
    'pageIndex': 'page_index',
    'xRatio': 'x_ratio',
    'yRatio': 'y_ratio',
    'widthRatio': 'width_ratio',
    'heightRatio': 'height_ratio',
    'fontSize': 'font_size',
    'highlightColor': 'highlight_color',
}


def _migrate_v1(payload: dict) -> dict:
    """Version 1 used camelCase keys and CSS color strings."""
    annotations = []
    for item in payload.get('annotations', []):
        converted = {_V1_KEYS.get(k, k): v for k, v in item.items()}
        if 'color' in converted:
            converted['color'] = parse_color(converted['color'])
        if 'highlight_color' in converted:
            converted['highlight_color'] = parse_color(converted['highlight_color'])
        annotations.append(converted)
    return {'version': 2, 'annotations': annotations}


MIGRATIONS: Dict[int, Callable] = {
    0: _migrate_v0,
    1: _migrate_v1,
}


def migrate(payload) -> dict:
    """
    Upgrade a decoded annotation payload to the current version.

    Raises:
        ValueError: If the payload version is unknown
    """
    if isinstance(payload, list):
        version = 0
    elif isinstance(payload, dict):
        version = payload.get('version', 1)
    else:
        raise ValueError(f"Unexpected payload type: {type(payload).__name__}")

    while version != CURRENT_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise ValueError(f"Unknown annotation payload version: {version}")
        payload = step(payload)
        version = payload['version']
    return payload


def encode_annotations(annotations: List[Annotation]) -> str:
    return json.dumps({
        'version': CURRENT_VERSION,
        'annotations': [ann.to_dict() for ann in annotations],
    })


def decode_annotations(raw: Optional[str]) -> List[Annotation]:
    """
    Decode a stored annotation list.

    Missing or malformed data yields an empty list. Individual malformed
    entries are skipped.
    """
    if not raw:
        return []

    try:
        payload = migrate(json.loads(raw))
    except (ValueError, TypeError, AttributeError, KeyError) as e:
        logger.warning("Discarding malformed saved annotations: %s", e)
        return []

    annotations = []
    for item in payload.get('annotations', []):
        try:
            annotations.append(Annotation.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed saved annotation %r: %s", item, e)
    return annotations


# ==============================================================================
# Session state
# ==============================================================================


@dataclass
class Preferences:
    """User preferences kept across sessions."""
    dark_mode: bool = False
    paste_formatting: bool = False
    save_enabled: bool = True


@dataclass
class SavedSession:
    """A restored document with its annotations."""
    document_bytes: bytes
    document_name: str
    annotations: List[Annotation] = field(default_factory=list)


class SessionPersistence:
    """Reads and writes the saved session and preferences."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def save_document(self, document_bytes: bytes, document_name: str) -> None:
        self.store.set(KEY_DOCUMENT, base64.b64encode(document_bytes).decode('ascii'))
        self.store.set(KEY_DOCUMENT_NAME, document_name)

    def save_annotations(self, annotations: List[Annotation]) -> None:
        self.store.set(KEY_ANNOTATIONS, encode_annotations(annotations))

    def load_session(self) -> Optional[SavedSession]:
        """
        Load the saved session.

        Returns:
            The saved session, or None when nothing usable is stored. Malformed
            document bytes discard the whole saved session.
        """
        raw_document = self.store.get(KEY_DOCUMENT)
        if not raw_document:
            return None

        try:
            document_bytes = base64.b64decode(raw_document, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.warning("Discarding saved session with malformed document: %s", e)
            self.clear_session()
            return None

        return SavedSession(
            document_bytes=document_bytes,
            document_name=self.store.get(KEY_DOCUMENT_NAME) or "document.pdf",
            annotations=decode_annotations(self.store.get(KEY_ANNOTATIONS)),
        )

    def clear_session(self) -> None:
        for key in (KEY_DOCUMENT, KEY_DOCUMENT_NAME, KEY_ANNOTATIONS):
            self.store.remove(key)

    def load_preferences(self) -> Preferences:
        raw = self.store.get(KEY_PREFERENCES)
        if not raw:
            return Preferences()
        try:
            data = json.loads(raw)
            defaults = Preferences()
            return Preferences(
                dark_mode=bool(data.get('dark_mode', defaults.dark_mode)),
                paste_formatting=bool(data.get('paste_formatting', defaults.paste_formatting)),
                save_enabled=bool(data.get('save_enabled', defaults.save_enabled)),
            )
        except (ValueError, AttributeError) as e:
            logger.warning("Ignoring malformed preferences: %s", e)
            return Preferences()

    def save_preferences(self, preferences: Preferences) -> None:
        self.store.set(KEY_PREFERENCES, json.dumps(asdict(preferences)))
