"""
Synthesis Rules Configuration.

Selects between the legacy document model (flat save/skill data, pre 2.4.0)
and the modern one (leveled Trait advancements), plus the policy flags that
change how individual advancements are computed.

The mode is chosen once per synthesis run and handed to every synthesizer;
nothing below the orchestrator reads settings on its own.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Tuple, TYPE_CHECKING

from .errors import ValidationError

if TYPE_CHECKING:
    from ddb_progression.config import Settings


class RuleMode(Enum):
    """Which document model the advancement list is built for."""
    LEGACY = "legacy"  # flat saves/skills on the class document
    MODERN = "modern"  # everything expressed as leveled advancements


# First document-model version that understands Trait advancements
MODERN_SYSTEM_VERSION = "2.4.0"

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


def _version_tuple(version: str) -> Tuple[int, ...]:
    parts = []
    for chunk in str(version).split("."):
        digits = "".join(ch for ch in chunk if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def _option_flag(data: Dict[str, Any], name: str) -> bool:
    """Read a boolean option, accepting JSON booleans and the usual string spellings."""
    value = data.get(name, False)
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in TRUE_VALUES + FALSE_VALUES:
        return value.strip().lower() in TRUE_VALUES
    if value is None:
        return False
    raise ValidationError(name, f"Option '{name}' must be a boolean", value)


def rule_mode_for_version(system_version: str) -> RuleMode:
    """
    Pick the rule mode for a target document-model version.

    Args:
        system_version: Dotted version string, e.g. "2.3.1" or "3.0.0"

    Returns:
        RuleMode.LEGACY for versions older than 2.4.0, else RuleMode.MODERN
    """
    if _version_tuple(system_version) < _version_tuple(MODERN_SYSTEM_VERSION):
        return RuleMode.LEGACY
    return RuleMode.MODERN


@dataclass(frozen=True)
class SynthesisOptions:
    """
    Configuration for one synthesis run.

    Default is the modern document model with rolled hit points kept as rolled.
    """
    rule_mode: RuleMode = RuleMode.MODERN

    # Use "max"/"avg" markers even when the character rolled hit points
    use_max_hp_for_rolled_hp: bool = False

    # Ignore exported modifiers and read proficiency data from feature text
    no_mods: bool = False

    @property
    def legacy_mode(self) -> bool:
        return self.rule_mode is RuleMode.LEGACY

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary for serialization."""
        return {
            "rule_mode": self.rule_mode.value,
            "use_max_hp_for_rolled_hp": self.use_max_hp_for_rolled_hp,
            "no_mods": self.no_mods,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SynthesisOptions":
        """Create options from dictionary."""
        raw_mode = data.get("rule_mode", RuleMode.MODERN.value)
        try:
            rule_mode = RuleMode(raw_mode)
        except ValueError:
            raise ValidationError("rule_mode", f"Unknown rule mode '{raw_mode}'", raw_mode)
        return cls(
            rule_mode=rule_mode,
            use_max_hp_for_rolled_hp=_option_flag(data, "use_max_hp_for_rolled_hp"),
            no_mods=_option_flag(data, "no_mods"),
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SynthesisOptions":
        """Build options from environment settings."""
        return cls(
            rule_mode=rule_mode_for_version(settings.SYSTEM_VERSION),
            use_max_hp_for_rolled_hp=settings.USE_HP_MAX_FOR_ROLLED_HP,
            no_mods=settings.NO_MODS,
        )


# Preset configurations for common targets
PRESET_OPTIONS: Dict[str, SynthesisOptions] = {
    "modern": SynthesisOptions(),
    "legacy": SynthesisOptions(rule_mode=RuleMode.LEGACY),
    "modern_max_hp": SynthesisOptions(use_max_hp_for_rolled_hp=True),
    "modern_no_mods": SynthesisOptions(no_mods=True),
}


def get_preset(name: str) -> SynthesisOptions:
    """Get a preset by name, falling back to the modern default."""
    return PRESET_OPTIONS.get(name, PRESET_OPTIONS["modern"])
