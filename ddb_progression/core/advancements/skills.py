"""
Skill Proficiency Advancements.

For each level with a Proficiencies feature, emits a Trait advancement
offering a pool of skills to pick from:
- Primary side: count is the number of granted skill modifiers
- Multiclass side: count comes from the class dictionary
- "No modifiers" mode: count comes from the feature text
The player's recorded choices pre-populate value.chosen without changing the
count. Levels with a zero count produce nothing.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from ddb_progression.core.modifiers import filter_modifiers
from ddb_progression.core.rules_config import RuleMode
from ddb_progression.models.advancement import AdvancementRecord, AdvancementType, ClassRestriction

from .base import (
    LEVELS,
    MULTICLASS_AXIS,
    BaseSynthesizer,
    SynthesisContext,
    SynthesisStep,
    taken_ids,
)
from .proficiency_text import parse_html_skills

logger = logging.getLogger("ddb_progression.advancements.skills")

# Exporter choice record shape for a skill proficiency pick
SKILL_CHOICE_TYPE = 2
SKILL_CHOICE_SUB_TYPE = 1


@dataclass
class ChosenSkills:
    chosen: List[str] = field(default_factory=list)
    choices: List[str] = field(default_factory=list)


def parse_skill_choices_from_options(ctx: SynthesisContext, level: int) -> ChosenSkills:
    """
    Read the player's skill picks for the Proficiencies feature at a level.

    Returns:
        chosen: skill codes the player picked
        choices: skill codes offered by those choice records
    """
    feature_ids = {f.id for f in ctx.proficiency_features if f.required_level == level}
    chosen: List[str] = []
    choices: List[str] = []

    for choice in ctx.source.choices.class_:
        if choice.component_id not in feature_ids:
            continue
        if choice.sub_type != SKILL_CHOICE_SUB_TYPE or choice.type != SKILL_CHOICE_TYPE:
            continue

        definition = ctx.source.choices.definition_for(choice)
        if definition is None:
            logger.debug(f"No choice definition {choice.definition_key} for choice {choice.id}")
            continue
        option = next((o for o in definition.options if o.id == choice.option_value), None)
        if option is None:
            continue

        picked = ctx.dictionary.skill_by_label(option.label)
        if picked is not None and picked.name not in chosen:
            chosen.append(picked.name)

        for offered in definition.options:
            if offered.id not in choice.option_ids:
                continue
            skill = ctx.dictionary.skill_by_label(offered.label)
            if skill is not None and skill.name not in choices:
                choices.append(skill.name)

    return ChosenSkills(chosen=chosen, choices=choices)


class SkillProficiencySynthesizer(BaseSynthesizer):
    """Trait advancements offering skill proficiency choices."""

    CATEGORY = AdvancementType.TRAIT
    MODES = frozenset({RuleMode.MODERN})

    def synthesize(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        taken = taken_ids(existing)
        advancements: List[AdvancementRecord] = []
        class_name = ctx.definition.name
        multiclass_skill = ctx.dictionary.class_entry(class_name).multiclass_skill
        skill_sub_types = set(ctx.dictionary.skill_sub_types())

        for level in LEVELS:
            proficiency_feature = ctx.proficiency_feature_at(level)
            if proficiency_feature is None:
                continue

            for available_to_multiclass in MULTICLASS_AXIS:
                if available_to_multiclass and multiclass_skill == 0:
                    continue

                if ctx.options.no_mods:
                    mods = []
                else:
                    mods = ctx.modifiers.select(
                        class_id=ctx.definition.id,
                        exact_level=level,
                        available_to_multiclass=True if available_to_multiclass else None,
                    )
                explicit_mods = [
                    mod for mod in mods
                    if mod.type == "proficiency" and mod.sub_type in skill_sub_types
                ]
                choose_mods = filter_modifiers(mods, "proficiency", f"choose-a-{class_name.lower()}-skill")
                skill_mods = choose_mods + explicit_mods

                parsed = parse_html_skills(proficiency_feature.description, ctx.dictionary)
                chosen = parse_skill_choices_from_options(ctx, level)

                if ctx.options.no_mods:
                    count = parsed.number
                elif available_to_multiclass:
                    count = multiclass_skill
                else:
                    count = len(skill_mods)
                if count == 0:
                    continue

                restriction = ClassRestriction.SECONDARY if available_to_multiclass else ClassRestriction.PRIMARY

                value = {}
                if chosen.chosen:
                    value["chosen"] = [f"skills:{skill}" for skill in chosen.chosen]

                advancements.append(AdvancementRecord(
                    id=self.new_id(ctx, taken, "skills", level, restriction.value),
                    type=AdvancementType.TRAIT,
                    level=level,
                    class_restriction=restriction,
                    configuration={
                        "allowReplacements": False,
                        "choices": [{
                            "count": count,
                            "pool": [f"skills:{skill}" for skill in parsed.choices],
                        }],
                    },
                    value=value,
                ))

        return SynthesisStep(advancements=advancements)
