"""
Saving Throw Proficiency Advancements.

For each level with a Proficiencies feature, collects the granted
"<ability>-saving-throws" proficiency modifiers on both sides of the
multiclass axis and emits one Trait advancement per non-empty side.
"""
import logging
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
from .proficiency_text import parse_html_saves

logger = logging.getLogger("ddb_progression.advancements.saves")


class SaveProficiencySynthesizer(BaseSynthesizer):
    """Trait advancements granting saving throw proficiencies."""

    CATEGORY = AdvancementType.TRAIT
    MODES = frozenset({RuleMode.MODERN})

    def synthesize(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        if ctx.options.no_mods:
            return self._from_descriptions(ctx, existing)

        taken = taken_ids(existing)
        advancements: List[AdvancementRecord] = []

        for level in LEVELS:
            if ctx.proficiency_feature_at(level) is None:
                continue
            for available_to_multiclass in MULTICLASS_AXIS:
                mods = ctx.modifiers.select(
                    class_id=ctx.definition.id,
                    exact_level=level,
                    available_to_multiclass=available_to_multiclass,
                )
                grants = [
                    f"saves:{ability.value}"
                    for ability in ctx.dictionary.abilities
                    if filter_modifiers(mods, "proficiency", f"{ability.long}-saving-throws")
                ]
                if not grants:
                    continue

                restriction = ClassRestriction.NONE if available_to_multiclass else ClassRestriction.PRIMARY
                advancements.append(self._trait(ctx, taken, level, restriction, grants))

        return SynthesisStep(advancements=advancements)

    def _from_descriptions(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        """Without modifiers, saves come from the Proficiencies text and apply to the primary class."""
        taken = taken_ids(existing)
        advancements = []
        for level in LEVELS:
            feature = ctx.proficiency_feature_at(level)
            if feature is None:
                continue
            grants = [f"saves:{code}" for code in parse_html_saves(feature.description, ctx.dictionary)]
            if not grants:
                logger.debug(f"No saving throws in {ctx.definition.name} Proficiencies text at level {level}")
                continue
            advancements.append(self._trait(ctx, taken, level, ClassRestriction.PRIMARY, grants))
        return SynthesisStep(advancements=advancements)

    def _trait(self, ctx, taken, level, restriction, grants) -> AdvancementRecord:
        return AdvancementRecord(
            id=self.new_id(ctx, taken, "saves", level, restriction.value),
            type=AdvancementType.TRAIT,
            level=level,
            class_restriction=restriction,
            configuration={
                "grants": grants,
                "allowReplacements": False,
            },
            value={"chosen": list(grants)},
        )
