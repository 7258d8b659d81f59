"""
Ability Score Improvement Advancements.

One advancement per level that has an "Ability Score Improvement" feature.
Taken improvements show up as "<ability>-score" bonus modifiers at that
level; when there are none the level was spent on a feat, and the feat slot
is left as a placeholder for the downstream resolver.
"""
import logging
from typing import Dict, List, Sequence

from ddb_progression.core.features import ABILITY_SCORE_IMPROVEMENT_FEATURE, FeatureScope
from ddb_progression.core.modifiers import filter_modifiers
from ddb_progression.core.rules_config import RuleMode
from ddb_progression.models.advancement import AdvancementRecord, AdvancementType

from .base import LEVELS, BaseSynthesizer, SynthesisContext, SynthesisStep, taken_ids

logger = logging.getLogger("ddb_progression.advancements.ability_scores")

ASI_POINTS = 2


class AbilityScoreImprovementSynthesizer(BaseSynthesizer):
    """AbilityScoreImprovement advancements with assignments or a feat placeholder."""

    CATEGORY = AdvancementType.ABILITY_SCORE_IMPROVEMENT
    MODES = frozenset({RuleMode.MODERN})
    SCOPES = frozenset({FeatureScope.CLASS})

    def synthesize(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        taken = taken_ids(existing)
        advancements: List[AdvancementRecord] = []
        matches: Dict[str, Dict[str, str]] = {}

        for level in LEVELS:
            feature = next(
                (f for f in ctx.features
                 if f.name == ABILITY_SCORE_IMPROVEMENT_FEATURE and f.required_level == level),
                None,
            )
            if feature is None:
                continue

            mods = ctx.modifiers.select(class_id=ctx.definition.id, exact_level=level)
            assignments = {}
            for ability in ctx.dictionary.abilities:
                count = len(filter_modifiers(mods, "bonus", f"{ability.long}-score"))
                if count > 0:
                    assignments[ability.value] = count

            advancement_id = self.new_id(ctx, taken, level)
            if assignments:
                value = {"type": "asi", "assignments": assignments}
            else:
                value = {"type": "feat", "feat": {}}
                match = ctx.matcher.match(feature, ctx.identity)
                if match is not None:
                    matches[advancement_id] = {match.name: match.uuid}
                else:
                    logger.debug(f"No feat placeholder match for {ctx.definition.name} level {level}")

            advancements.append(AdvancementRecord(
                id=advancement_id,
                type=AdvancementType.ABILITY_SCORE_IMPROVEMENT,
                level=level,
                title=ABILITY_SCORE_IMPROVEMENT_FEATURE,
                configuration={"points": ASI_POINTS},
                value=value,
            ))

        return SynthesisStep(advancements=advancements, matches=matches)
