"""
Advancement Timeline - Data Models.

Defines the leveled advancement records produced by the synthesizers and the
class/subclass progression fragment handed back to the caller.
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

MIN_ADVANCEMENT_LEVEL = 0
MAX_ADVANCEMENT_LEVEL = 20


class AdvancementType(str, Enum):
    """Advancement categories understood by the document model."""
    SCALE_VALUE = "ScaleValue"
    ITEM_GRANT = "ItemGrant"
    TRAIT = "Trait"
    HIT_POINTS = "HitPoints"
    ABILITY_SCORE_IMPROVEMENT = "AbilityScoreImprovement"


class ClassRestriction(str, Enum):
    """Which class slot an advancement applies to."""
    NONE = ""
    PRIMARY = "primary"      # only when this is the character's first class
    SECONDARY = "secondary"  # only when multiclassing into this class


class AdvancementRecord(BaseModel):
    """A normalized, level-indexed unit describing what a character gains."""
    id: str = Field(..., alias="_id")
    type: AdvancementType
    level: int = Field(1, ge=MIN_ADVANCEMENT_LEVEL, le=MAX_ADVANCEMENT_LEVEL)
    title: str = ""
    icon: str = ""
    class_restriction: ClassRestriction = Field(ClassRestriction.NONE, alias="classRestriction")
    configuration: Dict[str, Any] = Field(default_factory=dict)
    value: Dict[str, Any] = Field(default_factory=dict)

    @property
    def identifier(self) -> Optional[str]:
        """Scale value identifier, if this record has one."""
        return self.configuration.get("identifier")

    def to_document(self) -> Dict[str, Any]:
        """Serialize in the document model's key layout."""
        return self.model_dump(by_alias=True, mode="json")

    class Config:
        populate_by_name = True
        use_enum_values = True


class HitPointState(BaseModel):
    """What the character sheet says about how hit points were determined."""
    rolled_hp: bool = False
    base_hit_points: int = 0
    total_levels: int = 0


class LegacySkills(BaseModel):
    """Flat skill data used by the legacy document model."""
    value: List[str] = Field(default_factory=list)
    number: int = 0
    choices: List[str] = Field(default_factory=list)


class SpellcastingData(BaseModel):
    progression: str
    ability: Optional[str] = None


class ClassProgression(BaseModel):
    """The synthesized progression for one class or subclass."""
    name: str
    type: str = "class"  # "class" or "subclass"
    identifier: str
    class_identifier: Optional[str] = None  # parent class, subclasses only
    levels: Optional[int] = None
    hit_dice: Optional[str] = None
    hit_dice_used: int = 0
    spellcasting: Optional[SpellcastingData] = None
    advancement: List[AdvancementRecord] = Field(default_factory=list)
    advancement_matches: Dict[str, Dict[str, str]] = Field(default_factory=dict)

    # Legacy document model only
    saves: List[str] = Field(default_factory=list)
    skills: Optional[LegacySkills] = None

    flags: Dict[str, Any] = Field(default_factory=dict)

    def advancements_of(self, advancement_type: AdvancementType) -> List[AdvancementRecord]:
        """Get all advancement records of one category, in output order."""
        return [a for a in self.advancement if a.type == advancement_type]

    def to_document(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"advancement"})
        data["advancement"] = [a.to_document() for a in self.advancement]
        return data
