"""
Class Modifier Selection.

Picks the granted class modifiers that apply to a class at a given level,
the way the character sheet "chooses" them:
- Owning class and level come from the modifier itself when exported, else
  from the class feature its componentId points at
- Features above the class's current level are not chosen yet
- Optionally restricted to modifiers shared (or not) with multiclassing
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ddb_progression.models.source import CharacterSource, ClassFeature, Modifier

logger = logging.getLogger("ddb_progression.modifiers")


def filter_modifiers(
    modifiers: Iterable[Modifier],
    modifier_type: str,
    sub_type: Optional[str] = None,
) -> List[Modifier]:
    """
    Filter modifiers by type and (optionally) subtype.

    Args:
        modifiers: Modifiers to filter
        modifier_type: e.g. "proficiency" or "bonus"
        sub_type: e.g. "strength-saving-throws"; None matches any subtype

    Returns:
        Matching modifiers in input order
    """
    return [
        mod for mod in modifiers
        if mod.type == modifier_type and (sub_type is None or mod.sub_type == sub_type)
    ]


class ClassModifierSelector:
    """Resolves class modifiers against the features that grant them."""

    def __init__(self, source: CharacterSource):
        self.source = source
        self._features: Dict[int, ClassFeature] = {}
        self._class_levels: Dict[int, int] = {}

        for character_class in source.classes:
            owners = [character_class.definition.id]
            if character_class.subclass_definition is not None:
                owners.append(character_class.subclass_definition.id)
            for owner in owners:
                if owner is not None:
                    self._class_levels[owner] = character_class.level
            for feature in character_class.class_features:
                self._features.setdefault(feature.definition.id, feature.definition)
        for option in source.class_options:
            self._features.setdefault(option.id, option)

    def _placement(self, modifier: Modifier) -> Tuple[Optional[int], Optional[int]]:
        """Get (class id, level) for a modifier."""
        feature = self._features.get(modifier.component_id) if modifier.component_id is not None else None
        class_id = modifier.class_id
        level = modifier.level
        if class_id is None and feature is not None:
            class_id = feature.class_id
        if level is None and feature is not None:
            level = feature.required_level
        if feature is None and (class_id is None or level is None):
            logger.debug(f"Modifier {modifier.id} ({modifier.sub_type}) has no owning feature")
        return class_id, level

    def select(
        self,
        class_id: Optional[int] = None,
        exact_level: Optional[int] = None,
        available_to_multiclass: Optional[bool] = None,
    ) -> List[Modifier]:
        """
        Get the chosen class modifiers matching the filters.

        Args:
            class_id: Only modifiers owned by this class (or subclass) id
            exact_level: Only modifiers granted at exactly this level
            available_to_multiclass: True/False to match the modifier's flag
                exactly; None disables the filter

        Returns:
            Matching modifiers in export order
        """
        chosen = []
        for modifier in self.source.modifiers.class_:
            if not modifier.is_granted:
                continue
            owner, level = self._placement(modifier)
            if class_id is not None and owner != class_id:
                continue
            if exact_level is not None and level != exact_level:
                continue
            if owner is not None and level is not None:
                current_level = self._class_levels.get(owner)
                if current_level is not None and level > current_level:
                    continue
            if available_to_multiclass is not None:
                if bool(modifier.available_to_multiclass) != available_to_multiclass:
                    continue
            chosen.append(modifier)
        return chosen
