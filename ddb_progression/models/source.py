"""
Exported Character Graph - Data Models.

Pydantic models for the character-builder export consumed by the progression
engine. Field aliases follow the exporter's camelCase keys; unknown keys are
ignored and explicit nulls fall back to field defaults.
"""
from typing import Any, List, Optional, Union
from pydantic import BaseModel, Field, model_validator


class SourceModel(BaseModel):
    """Base for exported records: tolerant of nulls and extra keys."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    class Config:
        populate_by_name = True
        extra = "ignore"


class DiceValue(SourceModel):
    """A dice expression as exported, e.g. 1d6."""
    dice_count: Optional[int] = Field(None, alias="diceCount")
    dice_value: Optional[int] = Field(None, alias="diceValue")
    dice_multiplier: Optional[int] = Field(None, alias="diceMultiplier")
    fixed_value: Optional[float] = Field(None, alias="fixedValue")
    dice_string: Optional[str] = Field(None, alias="diceString")


class LevelScale(SourceModel):
    """The value a scaling feature has from a given level onwards."""
    id: Optional[int] = None
    level: int = 0
    description: str = ""
    dice: Optional[DiceValue] = None
    fixed_value: Optional[float] = Field(None, alias="fixedValue")


class ClassFeature(SourceModel):
    """A class, subclass or class-option feature definition."""
    id: int
    name: str = ""
    required_level: int = Field(0, alias="requiredLevel")
    display_order: int = Field(0, alias="displayOrder")
    description: str = ""
    snippet: str = ""
    level_scales: List[LevelScale] = Field(default_factory=list, alias="levelScales")
    class_id: Optional[int] = Field(None, alias="classId")
    entity_type_id: Optional[int] = Field(None, alias="entityTypeId")


class FeatureReference(SourceModel):
    """A feature as listed on a class definition."""
    id: int
    name: str = ""
    required_level: int = Field(0, alias="requiredLevel")
    display_order: int = Field(0, alias="displayOrder")


class SpellRules(SourceModel):
    multi_class_spell_slot_divisor: Optional[int] = Field(None, alias="multiClassSpellSlotDivisor")


class ClassDefinition(SourceModel):
    """Class or subclass definition. Identity is checked by the engine, not here."""
    id: Optional[int] = None
    name: Optional[str] = None
    description: str = ""
    hit_dice: Optional[int] = Field(None, alias="hitDice")
    can_cast_spells: bool = Field(False, alias="canCastSpells")
    spell_casting_ability_id: Optional[int] = Field(None, alias="spellCastingAbilityId")
    spell_rules: Optional[SpellRules] = Field(None, alias="spellRules")
    class_features: List[FeatureReference] = Field(default_factory=list, alias="classFeatures")


class CharacterClassFeature(SourceModel):
    """A feature the character has through a class, with its current scale."""
    definition: ClassFeature
    level_scale: Optional[LevelScale] = Field(None, alias="levelScale")


class CharacterClass(SourceModel):
    """One class the character has levels in."""
    id: Optional[int] = None
    entity_type_id: Optional[int] = Field(None, alias="entityTypeId")
    level: int = 1
    is_starting_class: bool = Field(False, alias="isStartingClass")
    hit_dice_used: int = Field(0, alias="hitDiceUsed")
    definition: ClassDefinition
    subclass_definition: Optional[ClassDefinition] = Field(None, alias="subclassDefinition")
    class_features: List[CharacterClassFeature] = Field(default_factory=list, alias="classFeatures")

    @property
    def has_subclass(self) -> bool:
        return bool(self.subclass_definition and self.subclass_definition.name)


class OptionalClassFeature(SourceModel):
    """A player-selected optional feature, possibly replacing another."""
    class_feature_id: Optional[int] = Field(None, alias="classFeatureId")
    affected_class_feature_id: Optional[int] = Field(None, alias="affectedClassFeatureId")


class Modifier(SourceModel):
    """A granted rule effect, e.g. a proficiency or an ability score bonus."""
    id: Optional[Union[int, str]] = None
    type: str = ""
    sub_type: str = Field("", alias="subType")
    value: Optional[float] = None
    level: Optional[int] = None
    class_id: Optional[int] = Field(None, alias="classId")
    available_to_multiclass: Optional[bool] = Field(None, alias="availableToMulticlass")
    is_granted: bool = Field(True, alias="isGranted")
    component_id: Optional[int] = Field(None, alias="componentId")
    component_type_id: Optional[int] = Field(None, alias="componentTypeId")


class CharacterModifiers(SourceModel):
    """Modifiers grouped by where they come from. Only class modifiers matter here."""
    class_: List[Modifier] = Field(default_factory=list, alias="class")


class ChoiceOption(SourceModel):
    id: int
    label: str = ""


class ChoiceDefinition(SourceModel):
    """Options dictionary for a family of choices, keyed "<componentTypeId>-<type>"."""
    id: str
    options: List[ChoiceOption] = Field(default_factory=list)


class Choice(SourceModel):
    """A selection the player made for a feature."""
    id: Optional[str] = None
    component_id: Optional[int] = Field(None, alias="componentId")
    component_type_id: Optional[int] = Field(None, alias="componentTypeId")
    type: Optional[int] = None
    sub_type: Optional[int] = Field(None, alias="subType")
    option_value: Optional[int] = Field(None, alias="optionValue")
    option_ids: List[int] = Field(default_factory=list, alias="optionIds")
    label: str = ""

    @property
    def definition_key(self) -> str:
        return f"{self.component_type_id}-{self.type}"


class CharacterChoices(SourceModel):
    class_: List[Choice] = Field(default_factory=list, alias="class")
    choice_definitions: List[ChoiceDefinition] = Field(default_factory=list, alias="choiceDefinitions")

    def definition_for(self, choice: Choice) -> Optional[ChoiceDefinition]:
        for definition in self.choice_definitions:
            if definition.id == choice.definition_key:
                return definition
        return None


class CharacterPreferences(SourceModel):
    # 1 = fixed, 2 = manually rolled
    hit_point_type: int = Field(1, alias="hitPointType")


class CharacterSource(SourceModel):
    """The whole export graph the engine reads from."""
    id: Optional[int] = None
    name: str = ""
    classes: List[CharacterClass] = Field(default_factory=list)
    optional_class_features: List[OptionalClassFeature] = Field(
        default_factory=list, alias="optionalClassFeatures"
    )
    class_options: List[ClassFeature] = Field(default_factory=list, alias="classOptions")
    choices: CharacterChoices = Field(default_factory=CharacterChoices)
    modifiers: CharacterModifiers = Field(default_factory=CharacterModifiers)
    preferences: CharacterPreferences = Field(default_factory=CharacterPreferences)
    base_hit_points: int = Field(0, alias="baseHitPoints")

    def find_class(self, class_id: int) -> Optional[CharacterClass]:
        """Get the character class whose definition has the given id."""
        for character_class in self.classes:
            if character_class.definition.id == class_id:
                return character_class
        return None

    @property
    def total_levels(self) -> int:
        return sum(c.level for c in self.classes)
