"""
Feature Grant Advancements.

Each feature that resolves to a compendium entry is granted at its required
level. All features granted at the same level share one ItemGrant record.
"""
import logging
from typing import Dict, List, Sequence

from ddb_progression.models.advancement import AdvancementRecord, AdvancementType

from .base import BaseSynthesizer, SynthesisContext, SynthesisStep, taken_ids, within_level_bounds

logger = logging.getLogger("ddb_progression.advancements.feature_grant")

# Features covered by other advancement types (or not items at all)
EXCLUDED_FEATURE_ADVANCEMENTS = [
    "Ability Score Improvement",
    "Expertise",
    "Bonus Proficiencies",
    "Bonus Proficiency",
    "Tool Proficiency",

    "Speed",
    "Size",
    "Feat",
    "Languages",
    "Hit Points",
    "Proficiencies",
]


class FeatureGrantSynthesizer(BaseSynthesizer):
    """ItemGrant advancements, merged by level."""

    CATEGORY = AdvancementType.ITEM_GRANT

    def synthesize(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        taken = taken_ids(existing)
        by_level: Dict[int, Dict] = {}
        order: List[int] = []
        matches: Dict[str, Dict[str, str]] = {}

        for feature in ctx.features:
            if not ctx.options.legacy_mode and feature.name in EXCLUDED_FEATURE_ADVANCEMENTS:
                continue
            if not within_level_bounds(feature.required_level):
                logger.debug(f"{feature.name} has out of range level {feature.required_level}")
                continue

            match = ctx.matcher.match(feature, ctx.identity)
            if match is None:
                continue

            level = feature.required_level
            grant = by_level.get(level)
            if grant is None:
                grant = {
                    "id": self.new_id(ctx, taken, level),
                    "items": [],
                }
                by_level[level] = grant
                order.append(level)
                matches[grant["id"]] = {}

            if match.uuid not in grant["items"]:
                grant["items"].append(match.uuid)
            matches[grant["id"]][match.name] = match.uuid

        advancements = [
            AdvancementRecord(
                id=by_level[level]["id"],
                type=AdvancementType.ITEM_GRANT,
                level=level,
                title="Features",
                configuration={"items": by_level[level]["items"]},
                value={},
            )
            for level in order
        ]
        logger.debug(f"Granted features at {len(advancements)} levels for {ctx.definition.name}")
        return SynthesisStep(advancements=advancements, matches=matches)
