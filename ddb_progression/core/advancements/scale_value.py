"""
Scale Value Advancements.

Turns features with per-level scales (rage damage, martial arts die, sneak
attack, ...) into ScaleValue advancements keyed by an identifier derived from
the feature name. Features listed in the special-case table get a fix-up
and/or extra derived advancements.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ddb_progression.models.advancement import AdvancementRecord, AdvancementType
from ddb_progression.models.source import ClassFeature, LevelScale

from .base import BaseSynthesizer, SynthesisContext, SynthesisStep, taken_ids, within_level_bounds

logger = logging.getLogger("ddb_progression.advancements.scale_value")

DISTANCE_PATTERN = re.compile(r"^\s*(\d+)\s*(?:ft\.?|feet)", re.IGNORECASE)

AdvancementTransform = Callable[[AdvancementRecord], AdvancementRecord]


@dataclass(frozen=True)
class SpecialAdvancement:
    """Post-processing for a scale value advancement of one feature."""
    fix: Optional[AdvancementTransform] = None
    additional: Tuple[AdvancementTransform, ...] = ()


# Keyed by the feature's definition id, which survives display-text changes
SPECIAL_ADVANCEMENTS: Dict[int, SpecialAdvancement] = {}


def reference_name(name: str) -> str:
    """Slug used as a scale value identifier, e.g. "Rage Damage" -> "rage-damage"."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _number(value: float) -> Any:
    return int(value) if float(value).is_integer() else value


def scale_type(scales: Sequence[LevelScale]) -> str:
    """
    Infer the scale value type from a feature's level scales.

    Returns:
        "dice", "number", "distance" or "string"
    """
    if any(scale.dice is not None and scale.dice.dice_value for scale in scales):
        return "dice"
    if all(scale.fixed_value is not None for scale in scales):
        return "number"
    if all(DISTANCE_PATTERN.match(scale.description) for scale in scales):
        return "distance"
    return "string"


def scale_entry(scale: LevelScale, value_type: str) -> Dict[str, Any]:
    """Convert one level scale into the document model's scale entry."""
    if value_type == "dice":
        dice = scale.dice
        if dice is None or not dice.dice_value:
            return {"number": None, "faces": None}
        return {"number": dice.dice_count, "faces": dice.dice_value}
    if value_type == "number":
        return {"value": _number(scale.fixed_value)}
    if value_type == "distance":
        return {"value": int(DISTANCE_PATTERN.match(scale.description).group(1))}
    return {"value": scale.description.strip()}


def build_scale_configuration(feature: ClassFeature) -> Dict[str, Any]:
    value_type = scale_type(feature.level_scales)
    scale = {}
    for level_scale in sorted(feature.level_scales, key=lambda s: s.level):
        scale[str(level_scale.level)] = scale_entry(level_scale, value_type)
    return {
        "identifier": reference_name(feature.name),
        "type": value_type,
        "distance": {"units": "ft" if value_type == "distance" else ""},
        "scale": scale,
    }


class ScaleValueSynthesizer(BaseSynthesizer):
    """One ScaleValue advancement per scaling feature."""

    CATEGORY = AdvancementType.SCALE_VALUE

    def __init__(self, special_advancements: Optional[Mapping[int, SpecialAdvancement]] = None):
        self.special_advancements = (
            SPECIAL_ADVANCEMENTS if special_advancements is None else special_advancements
        )

    def synthesize(self, ctx: SynthesisContext, existing: Sequence[AdvancementRecord]) -> SynthesisStep:
        taken = taken_ids(existing)
        identifiers = {a.identifier for a in existing if a.identifier}
        advancements: List[AdvancementRecord] = []
        special_features: List[AdvancementRecord] = []

        for feature in ctx.features:
            if not feature.level_scales:
                continue
            configuration = build_scale_configuration(feature)
            identifier = configuration["identifier"]
            if identifier in identifiers:
                logger.debug(f"Scale value {identifier} already present, skipping {feature.name}")
                continue
            level = feature.required_level if within_level_bounds(feature.required_level) else 0

            advancement = AdvancementRecord(
                id=self.new_id(ctx, taken, identifier),
                type=AdvancementType.SCALE_VALUE,
                level=level,
                title=feature.name,
                configuration=configuration,
            )

            special = self.special_advancements.get(feature.id)
            if special is not None:
                for derive in special.additional:
                    special_features.append(self._claim(derive(advancement), ctx, taken))
                if special.fix is not None:
                    advancement = special.fix(advancement)

            identifiers.add(identifier)
            advancements.append(advancement)

        return SynthesisStep(advancements=advancements + special_features)

    def _claim(self, derived: AdvancementRecord, ctx: SynthesisContext, taken: set) -> AdvancementRecord:
        """Give a derived advancement a free id."""
        if derived.id in taken:
            derived = derived.model_copy(
                update={"id": self.new_id(ctx, taken, derived.identifier or derived.title)}
            )
        else:
            taken.add(derived.id)
        return derived
