"""
SRD Fallback Merger.

Fills gaps in a synthesized progression with the reference (SRD) class's
ScaleValue advancements. A locally synthesized identifier always wins; the
reference only contributes identifiers that are missing.
"""
import copy
import logging
from typing import Any, Dict, List, Optional, Sequence

from ddb_progression.core.advancements.base import make_advancement_id, taken_ids
from ddb_progression.models.advancement import (
    AdvancementRecord,
    AdvancementType,
    ClassRestriction,
    MAX_ADVANCEMENT_LEVEL,
    MIN_ADVANCEMENT_LEVEL,
)

logger = logging.getLogger("ddb_progression.srd")


def _normalize_scale_entry(entry: Any) -> Any:
    """Older reference data stores dice as {n, die}; the document model uses {number, faces}."""
    if isinstance(entry, dict) and ("n" in entry or "die" in entry):
        normalized = {k: v for k, v in entry.items() if k not in ("n", "die")}
        normalized.setdefault("number", entry.get("n"))
        normalized.setdefault("faces", entry.get("die"))
        return normalized
    return entry


def normalize_reference_advancement(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a reference advancement up to the current record layout.

    Args:
        raw: Advancement as stored in the reference document

    Returns:
        A new dict; the reference document is never modified
    """
    advancement = copy.deepcopy(raw)
    configuration = advancement.setdefault("configuration", {})
    scale = configuration.get("scale")
    if isinstance(scale, dict):
        configuration["scale"] = {level: _normalize_scale_entry(entry) for level, entry in scale.items()}

    advancement.setdefault("title", "")
    advancement.setdefault("icon", "")
    advancement.setdefault("value", {})
    if advancement.get("classRestriction") is None:
        advancement["classRestriction"] = ClassRestriction.NONE.value
    level = advancement.setdefault("level", 0)
    if not isinstance(level, int) or not MIN_ADVANCEMENT_LEVEL <= level <= MAX_ADVANCEMENT_LEVEL:
        advancement["level"] = 0
    return advancement


class SRDFallbackMerger:
    """Appends reference ScaleValue advancements missing from a synthesized list."""

    def merge(
        self,
        synthesized: Sequence[AdvancementRecord],
        reference_document: Optional[Dict[str, Any]],
    ) -> List[AdvancementRecord]:
        """
        Get the reference ScaleValue advancements to append.

        Args:
            synthesized: Advancements built so far
            reference_document: Reference class/subclass document, or None

        Returns:
            Only the new records, in reference order
        """
        if not reference_document:
            return []

        system = reference_document.get("system") or {}
        identifiers = {a.identifier for a in synthesized if a.identifier}
        taken = taken_ids(synthesized)
        added: List[AdvancementRecord] = []

        for raw in system.get("advancement") or []:
            if raw.get("type") != AdvancementType.SCALE_VALUE.value:
                continue
            identifier = (raw.get("configuration") or {}).get("identifier")
            if not identifier or identifier in identifiers:
                continue

            data = normalize_reference_advancement(raw)
            advancement_id = data.get("_id")
            if not advancement_id or advancement_id in taken:
                advancement_id = make_advancement_id(
                    reference_document.get("name"), AdvancementType.SCALE_VALUE.value, identifier, taken=taken
                )
            data["_id"] = advancement_id
            taken.add(advancement_id)
            identifiers.add(identifier)
            added.append(AdvancementRecord.model_validate(data))

        if added:
            logger.info(
                f"Added {len(added)} reference scale values from {reference_document.get('name')}"
            )
        return added
