"""
Ability, Skill and Class Dictionary.

Static lookup tables shared by the synthesizers:
- Ability codes <-> long names <-> exporter stat ids
- Skill codes <-> labels <-> exporter modifier subtypes
- Per-class multiclass skill counts
- Spellcasting progression by class/subclass name
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class AbilityEntry:
    """One of the six abilities."""
    value: str  # short code used by the document model, e.g. "str"
    long: str   # exporter modifier prefix, e.g. "strength"
    label: str
    stat_id: int


@dataclass(frozen=True)
class SkillEntry:
    """A skill as known to both sides of the import."""
    name: str      # document-model code, e.g. "ath"
    label: str     # display label used by exporter choice options
    sub_type: str  # exporter modifier subtype, e.g. "athletics"
    ability: str


@dataclass(frozen=True)
class ClassEntry:
    """Class-level facts the exporter does not carry."""
    name: str
    multiclass_skill: int = 0


ABILITIES: List[AbilityEntry] = [
    AbilityEntry("str", "strength", "Strength", 1),
    AbilityEntry("dex", "dexterity", "Dexterity", 2),
    AbilityEntry("con", "constitution", "Constitution", 3),
    AbilityEntry("int", "intelligence", "Intelligence", 4),
    AbilityEntry("wis", "wisdom", "Wisdom", 5),
    AbilityEntry("cha", "charisma", "Charisma", 6),
]

SKILLS: List[SkillEntry] = [
    SkillEntry("acr", "Acrobatics", "acrobatics", "dex"),
    SkillEntry("ani", "Animal Handling", "animal-handling", "wis"),
    SkillEntry("arc", "Arcana", "arcana", "int"),
    SkillEntry("ath", "Athletics", "athletics", "str"),
    SkillEntry("dec", "Deception", "deception", "cha"),
    SkillEntry("his", "History", "history", "int"),
    SkillEntry("ins", "Insight", "insight", "wis"),
    SkillEntry("itm", "Intimidation", "intimidation", "cha"),
    SkillEntry("inv", "Investigation", "investigation", "int"),
    SkillEntry("med", "Medicine", "medicine", "wis"),
    SkillEntry("nat", "Nature", "nature", "int"),
    SkillEntry("prc", "Perception", "perception", "wis"),
    SkillEntry("prf", "Performance", "performance", "cha"),
    SkillEntry("per", "Persuasion", "persuasion", "cha"),
    SkillEntry("rel", "Religion", "religion", "int"),
    SkillEntry("slt", "Sleight of Hand", "sleight-of-hand", "dex"),
    SkillEntry("ste", "Stealth", "stealth", "dex"),
    SkillEntry("sur", "Survival", "survival", "wis"),
]

# Skills granted when multiclassing INTO a class (5e multiclass proficiencies)
CLASSES: List[ClassEntry] = [
    ClassEntry("Artificer"),
    ClassEntry("Barbarian"),
    ClassEntry("Bard", multiclass_skill=1),
    ClassEntry("Blood Hunter"),
    ClassEntry("Cleric"),
    ClassEntry("Druid"),
    ClassEntry("Fighter"),
    ClassEntry("Monk"),
    ClassEntry("Paladin"),
    ClassEntry("Ranger", multiclass_skill=1),
    ClassEntry("Rogue", multiclass_skill=1),
    ClassEntry("Sorcerer"),
    ClassEntry("Warlock"),
    ClassEntry("Wizard"),
]

# Spellcasting progression keyed by class or subclass name
SPELL_PROGRESSION: Dict[str, str] = {
    "Artificer": "artificer",
    "Bard": "full",
    "Cleric": "full",
    "Druid": "full",
    "Sorcerer": "full",
    "Wizard": "full",
    "Paladin": "half",
    "Ranger": "half",
    "Warlock": "pact",
    "Eldritch Knight": "third",
    "Arcane Trickster": "third",
}


@dataclass(frozen=True)
class Dictionary:
    """Bundle of lookup tables injected into a synthesis run."""
    abilities: List[AbilityEntry] = field(default_factory=lambda: list(ABILITIES))
    skills: List[SkillEntry] = field(default_factory=lambda: list(SKILLS))
    classes: List[ClassEntry] = field(default_factory=lambda: list(CLASSES))
    spell_progression: Dict[str, str] = field(default_factory=lambda: dict(SPELL_PROGRESSION))

    def class_entry(self, class_name: str) -> ClassEntry:
        """Get the class entry by name. Unknown classes grant no multiclass skills."""
        for entry in self.classes:
            if entry.name == class_name:
                return entry
        return ClassEntry(class_name)

    def skill_by_label(self, label: Optional[str]) -> Optional[SkillEntry]:
        for skill in self.skills:
            if skill.label == label:
                return skill
        return None

    def skill_sub_types(self) -> List[str]:
        return [skill.sub_type for skill in self.skills]

    def ability_by_stat_id(self, stat_id: Optional[int]) -> Optional[AbilityEntry]:
        for ability in self.abilities:
            if ability.stat_id == stat_id:
                return ability
        return None

    def to_dict(self) -> Dict[str, object]:
        """Serialize the tables for API responses."""
        return {
            "abilities": [
                {"value": a.value, "long": a.long, "label": a.label, "statId": a.stat_id}
                for a in self.abilities
            ],
            "skills": [
                {"name": s.name, "label": s.label, "subType": s.sub_type, "ability": s.ability}
                for s in self.skills
            ],
            "classes": [
                {"name": c.name, "multiclassSkill": c.multiclass_skill}
                for c in self.classes
            ],
            "spellProgression": dict(self.spell_progression),
        }


DEFAULT_DICTIONARY = Dictionary()
