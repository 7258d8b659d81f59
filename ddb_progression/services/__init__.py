# Source and reference data services
"""
Services package for the progression engine.

Provides export loading, compendium index and reference document access.
"""

from .compendium import BaseCompendium, InMemoryCompendium, FEATURE_INDEX_FIELDS
from .ddb_source import DDBSourceParser, hit_point_state, load_character_source
from .reference_library import (
    BaseReferenceLibrary,
    InMemoryReferenceLibrary,
    JsonReferenceLibrary,
    get_reference_library,
)

__all__ = [
    'BaseCompendium',
    'InMemoryCompendium',
    'FEATURE_INDEX_FIELDS',
    'DDBSourceParser',
    'hit_point_state',
    'load_character_source',
    'BaseReferenceLibrary',
    'InMemoryReferenceLibrary',
    'JsonReferenceLibrary',
    'get_reference_library',
]
