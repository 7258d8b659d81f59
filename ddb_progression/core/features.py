"""
Feature Set Resolver.

Works out which features belong to a class (or its subclass) for the purpose
of building advancements:
- Features listed on the complementary definition are excluded
- Features replaced by a selected optional class feature are excluded
- Class options scoped to the same definition are merged in
- Result ordered by required level, then display order
"""
from enum import Enum
from typing import Iterable, List, Optional, Set

from ddb_progression.models.source import (
    CharacterClass,
    CharacterSource,
    ClassDefinition,
    ClassFeature,
)

PROFICIENCIES_FEATURE = "Proficiencies"
ABILITY_SCORE_IMPROVEMENT_FEATURE = "Ability Score Improvement"


class FeatureScope(str, Enum):
    """Which half of a class the features are resolved for."""
    CLASS = "class"
    SUBCLASS = "subclass"


def definition_feature_ids(definition: Optional[ClassDefinition]) -> Set[int]:
    """Get the ids of every feature listed on a class or subclass definition."""
    if definition is None or not definition.name:
        return set()
    return {feature.id for feature in definition.class_features}


def replaced_feature_ids(source: CharacterSource) -> Set[int]:
    """Get the ids of features replaced by a selected optional class feature."""
    return {
        optional.affected_class_feature_id
        for optional in source.optional_class_features
        if optional.affected_class_feature_id
    }


def sort_features(features: Iterable[ClassFeature]) -> List[ClassFeature]:
    """
    Order features by required level, ties broken by display order.

    Two stable passes: the required-level pass runs last so it takes
    precedence, leaving display order as the tiebreak.
    """
    ordered = sorted(features, key=lambda f: f.display_order)
    return sorted(ordered, key=lambda f: f.required_level)


class FeatureSetResolver:
    """Resolves the ordered feature list for a class or subclass scope."""

    def __init__(self, source: CharacterSource, character_class: CharacterClass):
        self.source = source
        self.character_class = character_class

    def scope_definition(self, scope: FeatureScope) -> Optional[ClassDefinition]:
        if scope == FeatureScope.SUBCLASS:
            return self.character_class.subclass_definition
        return self.character_class.definition

    def excluded_ids(self, scope: FeatureScope) -> Set[int]:
        """Feature ids owned by the complementary scope."""
        if scope == FeatureScope.SUBCLASS:
            return definition_feature_ids(self.character_class.definition)
        return definition_feature_ids(self.character_class.subclass_definition)

    def resolve(self, scope: FeatureScope = FeatureScope.CLASS) -> List[ClassFeature]:
        """
        Get the de-excluded, ordered features for a scope.

        Args:
            scope: Resolve for the base class or for its subclass

        Returns:
            Ordered feature definitions; empty when the scope has no definition
        """
        definition = self.scope_definition(scope)
        if definition is None or definition.id is None:
            return []

        excluded = self.excluded_ids(scope)
        replaced = replaced_feature_ids(self.source)

        class_features = [
            feature.definition
            for feature in self.character_class.class_features
            if feature.definition.id not in replaced
            and feature.definition.id not in excluded
            and feature.definition.class_id == definition.id
        ]
        option_features = [
            option
            for option in self.source.class_options
            if option.class_id == definition.id and option.id not in excluded
        ]
        return sort_features(class_features + option_features)


def proficiency_features(features: Iterable[ClassFeature]) -> List[ClassFeature]:
    """Get the "Proficiencies" features, which anchor save and skill grants."""
    return [feature for feature in features if feature.name == PROFICIENCIES_FEATURE]
