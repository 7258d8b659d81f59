"""
Progression Engine - Test Configuration and Fixtures
Shared export graphs, compendium indexes and context builders for pytest.
"""
import copy
import pytest
from typing import Any, Callable, Dict, List, Optional

from ddb_progression.core.advancements.base import SynthesisContext
from ddb_progression.core.dictionary import DEFAULT_DICTIONARY
from ddb_progression.core.features import FeatureScope, FeatureSetResolver
from ddb_progression.core.matcher import CompendiumFeatureMatcher
from ddb_progression.core.modifiers import ClassModifierSelector
from ddb_progression.core.rules_config import RuleMode, SynthesisOptions
from ddb_progression.models.compendium import CompendiumIndexEntry
from ddb_progression.models.source import CharacterSource
from ddb_progression.services.compendium import InMemoryCompendium
from ddb_progression.services.ddb_source import hit_point_state
from ddb_progression.services.reference_library import InMemoryReferenceLibrary

from factories import (
    BARBARIAN_ID,
    BERSERKER_ID,
    PROFICIENCIES_HTML,
    SKILL_CHOICE_COMPONENT_TYPE,
    feature,
    index_record,
    modifier,
)

# ==================== Export Fixtures ====================

@pytest.fixture
def barbarian_features() -> List[Dict[str, Any]]:
    """Barbarian 4 class features plus the Berserker's level 3 feature."""
    return [
        feature(101, "Proficiencies", 1, display_order=1, description=PROFICIENCIES_HTML),
        feature(102, "Rage", 1, display_order=2),
        feature(103, "Rage Damage", 1, display_order=3, levelScales=[
            {"id": 1, "level": 1, "description": "+2", "fixedValue": 2},
            {"id": 2, "level": 9, "description": "+3", "fixedValue": 3},
        ]),
        feature(104, "Unarmored Defense", 1, display_order=4),
        feature(105, "Danger Sense", 2, display_order=6),
        feature(106, "Reckless Attack", 2, display_order=5),
        feature(107, "Primal Path", 3, display_order=7),
        feature(108, "Ability Score Improvement", 4, display_order=8),
        feature(201, "Frenzy", 3, class_id=BERSERKER_ID, display_order=1),
    ]


@pytest.fixture
def barbarian_export(barbarian_features) -> Dict[str, Any]:
    """A single-class level 4 Berserker barbarian, as the extension exports it."""
    class_features = [f for f in barbarian_features if f["classId"] == BARBARIAN_ID]
    subclass_features = [f for f in barbarian_features if f["classId"] == BERSERKER_ID]

    return {
        "character": {
            "id": 1001,
            "name": "Grog",
            "baseHitPoints": 32,
            "preferences": {"hitPointType": 1},
            "classes": [
                {
                    "id": 5001,
                    "entityTypeId": 1446578651,
                    "level": 4,
                    "isStartingClass": True,
                    "hitDiceUsed": 1,
                    "definition": {
                        "id": BARBARIAN_ID,
                        "name": "Barbarian",
                        "hitDice": 12,
                        "canCastSpells": False,
                        "classFeatures": [
                            {"id": f["id"], "name": f["name"], "requiredLevel": f["requiredLevel"]}
                            for f in class_features
                        ],
                    },
                    "subclassDefinition": {
                        "id": BERSERKER_ID,
                        "name": "Path of the Berserker",
                        "canCastSpells": False,
                        "classFeatures": [
                            {"id": f["id"], "name": f["name"], "requiredLevel": f["requiredLevel"]}
                            for f in subclass_features
                        ],
                    },
                    "classFeatures": [{"definition": f, "levelScale": None} for f in barbarian_features],
                },
            ],
            "modifiers": {
                "class": [
                    modifier("strength-saving-throws", 101),
                    modifier("constitution-saving-throws", 101),
                    modifier("choose-a-barbarian-skill", 101, n=1),
                    modifier("choose-a-barbarian-skill", 101, n=2),
                    modifier("strength-score", 108, modifier_type="bonus", n=1, value=1),
                    modifier("strength-score", 108, modifier_type="bonus", n=2, value=1),
                ],
            },
            "choices": {
                "class": [
                    {
                        "id": "choice-1",
                        "componentId": 101,
                        "componentTypeId": SKILL_CHOICE_COMPONENT_TYPE,
                        "type": 2,
                        "subType": 1,
                        "optionValue": 3,
                        "optionIds": [1, 3, 5],
                    },
                    {
                        "id": "choice-2",
                        "componentId": 101,
                        "componentTypeId": SKILL_CHOICE_COMPONENT_TYPE,
                        "type": 2,
                        "subType": 1,
                        "optionValue": 5,
                        "optionIds": [1, 3, 5],
                    },
                ],
                "choiceDefinitions": [
                    {
                        "id": f"{SKILL_CHOICE_COMPONENT_TYPE}-2",
                        "options": [
                            {"id": 1, "label": "Animal Handling"},
                            {"id": 3, "label": "Athletics"},
                            {"id": 5, "label": "Intimidation"},
                        ],
                    },
                ],
            },
            "optionalClassFeatures": [],
        },
        "classOptions": [],
    }


@pytest.fixture
def barbarian_source(barbarian_export) -> CharacterSource:
    """The barbarian export validated into the source graph."""
    return CharacterSource.model_validate(barbarian_export["character"])


# ==================== Compendium Fixtures ====================

@pytest.fixture
def compendium_records() -> List[Dict[str, Any]]:
    """Feature compendium documents for the barbarian and berserker."""
    prefix = "Compendium.world.ddb-features.Item"
    return [
        index_record("Rage", f"{prefix}.rage0000", **{"class": "Barbarian", "classId": BARBARIAN_ID}),
        index_record("Unarmored Defense (Barbarian)", f"{prefix}.unarmored", **{"class": "Barbarian"}),
        index_record("Reckless Attack", f"{prefix}.reckless", **{"class": "Barbarian"}),
        index_record("Danger Sense", f"{prefix}.danger00", **{"class": "Barbarian"}),
        index_record("Primal Path", f"{prefix}.primal00", **{"class": "Barbarian"}),
        index_record("Ability Score Improvement", f"{prefix}.asi00000", **{"class": "Barbarian"}),
        index_record("Proficiencies", f"{prefix}.profs000", **{"class": "Barbarian"}),
        index_record(
            "Frenzy", f"{prefix}.frenzy00",
            **{"class": "Barbarian", "subClass": "Path of the Berserker", "parentClassId": BERSERKER_ID},
        ),
    ]


@pytest.fixture
def compendium(compendium_records) -> InMemoryCompendium:
    return InMemoryCompendium(compendium_records, name="ddb-features")


@pytest.fixture
def matcher(compendium_records) -> CompendiumFeatureMatcher:
    return CompendiumFeatureMatcher(CompendiumIndexEntry.from_index(r) for r in compendium_records)


# ==================== Reference Fixtures ====================

@pytest.fixture
def srd_barbarian() -> Dict[str, Any]:
    """Reference barbarian document with two scale values."""
    return {
        "_id": "srdbarbarian0001",
        "name": "Barbarian",
        "type": "class",
        "system": {
            "advancement": [
                {
                    "_id": "srdragedamage001",
                    "type": "ScaleValue",
                    "level": 1,
                    "title": "Rage Damage",
                    "configuration": {
                        "identifier": "rage-damage",
                        "type": "number",
                        "scale": {"1": {"value": 2}, "9": {"value": 3}, "16": {"value": 4}},
                    },
                },
                {
                    "_id": "srdbrutalcrit001",
                    "type": "ScaleValue",
                    "level": 9,
                    "title": "Brutal Critical",
                    "configuration": {
                        "identifier": "brutal-critical",
                        "type": "dice",
                        "scale": {"9": {"n": 1, "die": 12}, "13": {"n": 2, "die": 12}},
                    },
                },
                {
                    "_id": "srdhitpoints0001",
                    "type": "HitPoints",
                    "configuration": {},
                },
            ],
        },
    }


@pytest.fixture
def reference_library(srd_barbarian) -> InMemoryReferenceLibrary:
    return InMemoryReferenceLibrary([srd_barbarian])


# ==================== Options & Context Fixtures ====================

@pytest.fixture
def modern_options() -> SynthesisOptions:
    return SynthesisOptions(rule_mode=RuleMode.MODERN)


@pytest.fixture
def legacy_options() -> SynthesisOptions:
    return SynthesisOptions(rule_mode=RuleMode.LEGACY)


@pytest.fixture
def make_context(matcher) -> Callable[..., SynthesisContext]:
    """Factory for a synthesis context over a source's first class."""

    def _make(
        source: CharacterSource,
        options: Optional[SynthesisOptions] = None,
        scope: FeatureScope = FeatureScope.CLASS,
        class_index: int = 0,
        **overrides: Any,
    ) -> SynthesisContext:
        character_class = source.classes[class_index]
        resolver = FeatureSetResolver(source, character_class)
        values = dict(
            source=source,
            character_class=character_class,
            definition=resolver.scope_definition(scope),
            scope=scope,
            features=tuple(resolver.resolve(scope)),
            options=options or SynthesisOptions(),
            dictionary=DEFAULT_DICTIONARY,
            matcher=matcher,
            modifiers=ClassModifierSelector(source),
            hit_points=hit_point_state(source),
        )
        values.update(overrides)
        return SynthesisContext(**values)

    return _make


@pytest.fixture
def export_copy(barbarian_export) -> Callable[[], Dict[str, Any]]:
    """Factory for independent copies of the barbarian export, for tests that edit it."""
    return lambda: copy.deepcopy(barbarian_export)
