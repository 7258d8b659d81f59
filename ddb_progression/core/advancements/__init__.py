"""Leveled advancement synthesizers, in the order a run applies them."""
from .ability_scores import AbilityScoreImprovementSynthesizer
from .base import (
    BaseSynthesizer,
    SynthesisContext,
    SynthesisStep,
    make_advancement_id,
)
from .feature_grant import EXCLUDED_FEATURE_ADVANCEMENTS, FeatureGrantSynthesizer
from .hit_points import HitPointsSynthesizer, hit_point_values
from .saves import SaveProficiencySynthesizer
from .scale_value import SPECIAL_ADVANCEMENTS, ScaleValueSynthesizer, SpecialAdvancement
from .skills import SkillProficiencySynthesizer, parse_skill_choices_from_options

SYNTHESIZER_ORDER = (
    ScaleValueSynthesizer,
    FeatureGrantSynthesizer,
    SaveProficiencySynthesizer,
    SkillProficiencySynthesizer,
    HitPointsSynthesizer,
    AbilityScoreImprovementSynthesizer,
)


def default_synthesizers():
    """Fresh synthesizer instances in run order."""
    return [synthesizer() for synthesizer in SYNTHESIZER_ORDER]


__all__ = [
    "AbilityScoreImprovementSynthesizer",
    "BaseSynthesizer",
    "EXCLUDED_FEATURE_ADVANCEMENTS",
    "FeatureGrantSynthesizer",
    "HitPointsSynthesizer",
    "SPECIAL_ADVANCEMENTS",
    "SYNTHESIZER_ORDER",
    "SaveProficiencySynthesizer",
    "ScaleValueSynthesizer",
    "SkillProficiencySynthesizer",
    "SpecialAdvancement",
    "SynthesisContext",
    "SynthesisStep",
    "default_synthesizers",
    "hit_point_values",
    "make_advancement_id",
    "parse_skill_choices_from_options",
]
