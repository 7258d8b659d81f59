"""
Hit Points Advancement.

One advancement covering every class level. Levels take "max"/"avg" markers,
unless the character rolled hit points and the max-HP policy is off, in which
case the recorded base hit points are spread evenly across all character
levels and the remainder goes to level 1 of the starting class.
"""
import logging
from typing import Dict, Sequence, Union

from ddb_progression.core.features import FeatureScope
from ddb_progression.models.advancement import (
    AdvancementRecord,
    AdvancementType,
    MAX_ADVANCEMENT_LEVEL,
)

from .base import BaseSynthesizer, SynthesisContext, SynthesisStep, taken_ids

logger = logging.getLogger("ddb_progression.advancements.hit_points")


def hit_point_values(
    levels: int,
    starting_class: bool,
    rolled_hp: bool = False,
    use_max_hp: bool = False,
    base_hp: int = 0,
    total_levels: int = 0,
) -> Dict[str, Union[int, str]]:
    """
    Compute per-level hit point values for a class.

    Args:
        levels: Levels the character has in this class
        starting_class: Whether this is the character's first class
        rolled_hp: Whether hit points were rolled manually
        use_max_hp: Policy to ignore rolled values
        base_hp: Recorded base hit points across all classes
        total_levels: Character level across all classes

    Returns:
        {"1": ..., "2": ...} keyed by class level
    """
    value: Dict[str, Union[int, str]] = {}
    if rolled_hp and not use_max_hp and total_levels > 0:
        hp_per_level = base_hp // total_levels
        left_overs = base_hp % total_levels
        for level in range(1, levels + 1):
            value[str(level)] = hp_per_level + left_overs if level == 1 and starting_class else hp_per_level
        return value

    if rolled_hp and not use_max_hp:
        logger.warning("Rolled hit points recorded without a total level, using max/avg")
    for level in range(1, levels + 1):
        value[str(level)] = "max" if level == 1 and starting_class else "avg"
    return value


class HitPointsSynthesizer(BaseSynthesizer):
    """A single HitPoints advancement for the class."""

    CATEGORY = AdvancementType.HIT_POINTS
    SCOPES = frozenset({FeatureScope.CLASS})

    def synthesize(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        levels = min(ctx.class_level, MAX_ADVANCEMENT_LEVEL)
        value = hit_point_values(
            levels=levels,
            starting_class=ctx.is_starting_class,
            rolled_hp=ctx.hit_points.rolled_hp,
            use_max_hp=ctx.options.use_max_hp_for_rolled_hp,
            base_hp=ctx.hit_points.base_hit_points,
            total_levels=ctx.hit_points.total_levels,
        )
        advancement = AdvancementRecord(
            id=self.new_id(ctx, taken_ids(existing), "hp"),
            type=AdvancementType.HIT_POINTS,
            level=1,
            title="Hit Points",
            configuration={},
            value=value,
        )
        return SynthesisStep(advancements=[advancement])
