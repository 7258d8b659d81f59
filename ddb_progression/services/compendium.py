"""
Content Library (Compendium) Sources.

The engine only ever asks a compendium for its index, restricted to the
fields identity matching needs. Index records come back with dotted keys
for nested fields, e.g. {"name": ..., "flags.ddbimporter.classId": 12}.
"""
import logging
from typing import Any, Dict, Iterable, List, Sequence

logger = logging.getLogger("ddb_progression.compendium")

# Fields requested when building the feature identity index
FEATURE_INDEX_FIELDS = [
    "name",
    "flags.ddbimporter.classId",
    "flags.ddbimporter.class",
    "flags.ddbimporter.subClass",
    "flags.ddbimporter.parentClassId",
    "flags.ddbimporter.featureName",
]

# Always present on an index record
INDEX_BASE_FIELDS = ("_id", "uuid", "name")

_MISSING = object()


def _lookup(record: Dict[str, Any], dotted: str) -> Any:
    """Resolve a dotted path in a nested record, accepting pre-flattened keys."""
    if dotted in record:
        return record[dotted]
    current: Any = record
    for part in dotted.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


class BaseCompendium:
    """Base compendium. Override get_index() in subclasses."""

    name: str = "compendium"

    async def get_index(self, fields: Sequence[str] = ()) -> List[Dict[str, Any]]:
        """
        Get the compendium index.

        Args:
            fields: Extra (dotted) fields to include on each record

        Returns:
            Index records in compendium order
        """
        raise NotImplementedError


class InMemoryCompendium(BaseCompendium):
    """Compendium backed by a list of documents or index records."""

    def __init__(self, records: Iterable[Dict[str, Any]], name: str = "in-memory"):
        self.records: List[Dict[str, Any]] = list(records)
        self.name = name

    async def get_index(self, fields: Sequence[str] = ()) -> List[Dict[str, Any]]:
        index = []
        for record in self.records:
            entry = {key: record[key] for key in INDEX_BASE_FIELDS if key in record}
            for field in fields:
                value = _lookup(record, field)
                if value is not _MISSING:
                    entry[field] = value
            index.append(entry)
        logger.debug(f"Built index of {len(index)} entries for {self.name}")
        return index
