"""
Annotation model, store and persistence.
"""
from .models import NO_HIGHLIGHT, Annotation, AnnotationStyle, clamp_ratio, parse_color
from .store import AnnotationStore, IdAllocator
from .persistence import (
    JsonFileStore,
    KeyValueStore,
    Preferences,
    SavedSession,
    SessionPersistence,
)

__all__ = [
    'NO_HIGHLIGHT',
    'Annotation',
    'AnnotationStyle',
    'clamp_ratio',
    'parse_color',
    'AnnotationStore',
    'IdAllocator',
    'JsonFileStore',
    'KeyValueStore',
    'Preferences',
    'SavedSession',
    'SessionPersistence',
]
