# Data Models

from .advancement import (
    AdvancementRecord,
    AdvancementType,
    ClassProgression,
    ClassRestriction,
    HitPointState,
    LegacySkills,
    SpellcastingData,
)
from .compendium import CompendiumIndexEntry, IdentityTags
from .source import CharacterClass, CharacterSource, ClassDefinition, ClassFeature, Modifier

__all__ = [
    "AdvancementRecord",
    "AdvancementType",
    "ClassProgression",
    "ClassRestriction",
    "HitPointState",
    "LegacySkills",
    "SpellcastingData",
    "CompendiumIndexEntry",
    "IdentityTags",
    "CharacterClass",
    "CharacterSource",
    "ClassDefinition",
    "ClassFeature",
    "Modifier",
]
