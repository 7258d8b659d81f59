"""
Legacy Flat Proficiency Data.

Document models older than the modern ruleset do not understand Trait
advancements; saves and skills live as flat fields on the class instead.
"""
from typing import List

from ddb_progression.core.advancements.base import SynthesisContext
from ddb_progression.core.advancements.skills import parse_skill_choices_from_options
from ddb_progression.core.modifiers import filter_modifiers
from ddb_progression.models.advancement import LegacySkills

# Skill choices are recorded against the level 1 Proficiencies feature
LEGACY_SKILL_LEVEL = 1


def legacy_saves(ctx: SynthesisContext) -> List[str]:
    """Get ability codes with a saving throw proficiency granted by this class."""
    mods = ctx.modifiers.select(class_id=ctx.definition.id)
    return [
        ability.value
        for ability in ctx.dictionary.abilities
        if filter_modifiers(mods, "proficiency", f"{ability.long}-saving-throws")
    ]


def legacy_skills(ctx: SynthesisContext) -> LegacySkills:
    """Get the player's skill picks as flat data."""
    skills = parse_skill_choices_from_options(ctx, LEGACY_SKILL_LEVEL)
    return LegacySkills(
        value=skills.chosen,
        number=len(skills.chosen),
        choices=skills.choices,
    )
