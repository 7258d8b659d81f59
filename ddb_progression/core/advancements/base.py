"""
Leveled Advancement Synthesizers - Shared Pieces.

Every synthesizer takes the run context plus the advancements accumulated so
far and returns only its own contribution; the orchestrator concatenates.
"""
import hashlib
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from ddb_progression.core.dictionary import Dictionary
from ddb_progression.core.features import FeatureScope, proficiency_features
from ddb_progression.core.matcher import ClassIdentity, FeatureMatcher
from ddb_progression.core.modifiers import ClassModifierSelector
from ddb_progression.core.rules_config import RuleMode, SynthesisOptions
from ddb_progression.models.advancement import (
    AdvancementRecord,
    AdvancementType,
    HitPointState,
    MAX_ADVANCEMENT_LEVEL,
    MIN_ADVANCEMENT_LEVEL,
)
from ddb_progression.models.source import (
    CharacterClass,
    CharacterSource,
    ClassDefinition,
    ClassFeature,
)

# Every leveled synthesizer walks these levels
LEVELS = range(MIN_ADVANCEMENT_LEVEL, MAX_ADVANCEMENT_LEVEL + 1)

# availableToMulticlass axis, shared grants first
MULTICLASS_AXIS = (True, False)

ADVANCEMENT_ID_LENGTH = 16


def within_level_bounds(level: int) -> bool:
    return MIN_ADVANCEMENT_LEVEL <= level <= MAX_ADVANCEMENT_LEVEL


def make_advancement_id(*parts: object, taken: Optional[Set[str]] = None) -> str:
    """
    Derive a stable advancement id from its identifying parts.

    Args:
        parts: Values that identify the advancement within a run
        taken: Ids already in use; a counter is mixed in until the id is free

    Returns:
        16-character hex id
    """
    seed = "|".join(str(part) for part in parts)
    candidate = hashlib.sha1(seed.encode("utf-8")).hexdigest()[:ADVANCEMENT_ID_LENGTH]
    counter = 0
    while taken is not None and candidate in taken:
        counter += 1
        candidate = hashlib.sha1(f"{seed}#{counter}".encode("utf-8")).hexdigest()[:ADVANCEMENT_ID_LENGTH]
    return candidate


@dataclass(frozen=True)
class SynthesisContext:
    """Read-only inputs for one class or subclass synthesis run."""
    source: CharacterSource
    character_class: CharacterClass
    definition: ClassDefinition
    scope: FeatureScope
    features: Tuple[ClassFeature, ...]
    options: SynthesisOptions
    dictionary: Dictionary
    matcher: FeatureMatcher
    modifiers: ClassModifierSelector
    hit_points: HitPointState

    @property
    def identity(self) -> ClassIdentity:
        return ClassIdentity(id=self.definition.id, name=self.definition.name)

    @property
    def class_level(self) -> int:
        return self.character_class.level

    @property
    def is_starting_class(self) -> bool:
        return self.character_class.is_starting_class

    @property
    def proficiency_features(self) -> List[ClassFeature]:
        return proficiency_features(self.features)

    def proficiency_feature_at(self, level: int) -> Optional[ClassFeature]:
        """Get the Proficiencies feature granted at exactly this level."""
        for feature in self.proficiency_features:
            if feature.required_level == level:
                return feature
        return None


@dataclass
class SynthesisStep:
    """One synthesizer's contribution."""
    advancements: List[AdvancementRecord] = field(default_factory=list)
    matches: Dict[str, Dict[str, str]] = field(default_factory=dict)


class BaseSynthesizer:
    """
    Base class for a leveled advancement category.

    Subclasses declare which rule modes and feature scopes they run for and
    implement synthesize().
    """

    CATEGORY: AdvancementType
    MODES: FrozenSet[RuleMode] = frozenset({RuleMode.LEGACY, RuleMode.MODERN})
    SCOPES: FrozenSet[FeatureScope] = frozenset({FeatureScope.CLASS, FeatureScope.SUBCLASS})

    @classmethod
    def applies_to(cls, mode: RuleMode, scope: FeatureScope) -> bool:
        return mode in cls.MODES and scope in cls.SCOPES

    def synthesize(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        """Build this category's advancements. Override in subclasses."""
        raise NotImplementedError

    def new_id(self, ctx: SynthesisContext, taken: Set[str], *parts: object) -> str:
        """Allocate an id for a record of this category and mark it taken."""
        advancement_id = make_advancement_id(
            ctx.definition.id, self.CATEGORY.value, *parts, taken=taken
        )
        taken.add(advancement_id)
        return advancement_id


def taken_ids(existing: Iterable[AdvancementRecord]) -> Set[str]:
    return {advancement.id for advancement in existing}
