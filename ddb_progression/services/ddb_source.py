"""
D&D Beyond Export Loader

Reads a D&D Beyond character export into the source graph the engine works
on. The export can come wrapped in a few ways:
- API response format: {"data": {...}}
- Extension export format: {"character": {...}, "classOptions": [...]}
- Direct character data
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError as PydanticValidationError

from ddb_progression.core.errors import MalformedSourceError
from ddb_progression.models.advancement import HitPointState
from ddb_progression.models.source import CharacterSource

logger = logging.getLogger("ddb_progression.ddb_source")

# preferences.hitPointType
HIT_POINT_TYPE_FIXED = 1
HIT_POINT_TYPE_MANUAL = 2

# Exported beside the character rather than inside it
SIDECAR_KEYS = ("classOptions", "optionalClassFeatures")


class DDBSourceParser:
    """Parse D&D Beyond character exports into a CharacterSource."""

    def unwrap(self, json_data: Any) -> Dict[str, Any]:
        """
        Strip the export envelope.

        Args:
            json_data: Raw decoded export

        Returns:
            The character object, with sidecar lists folded in
        """
        if not isinstance(json_data, dict):
            raise MalformedSourceError("Character export must be a JSON object")

        if "data" in json_data and isinstance(json_data["data"], dict):
            # API response format
            data = dict(json_data["data"])
        elif "character" in json_data and isinstance(json_data["character"], dict):
            # Extension export format
            data = dict(json_data["character"])
        else:
            # Direct character data
            data = dict(json_data)

        for key in SIDECAR_KEYS:
            if key not in data and isinstance(json_data.get(key), list):
                data[key] = json_data[key]
        return data

    def parse(self, json_data: Any) -> CharacterSource:
        """
        Parse a D&D Beyond export.

        Raises:
            MalformedSourceError: not an object, no classes list, or a field
                of the wrong shape
        """
        data = self.unwrap(json_data)
        if not isinstance(data.get("classes"), list):
            raise MalformedSourceError("Character export has no classes", missing=["classes"])

        try:
            source = CharacterSource.model_validate(data)
        except PydanticValidationError as e:
            fields = [".".join(str(part) for part in error.get("loc", ())) for error in e.errors()]
            raise MalformedSourceError("Character export could not be read", missing=fields) from e

        logger.debug(f"Parsed {source.name or 'character'} with {len(source.classes)} classes")
        return source

    def parse_file(self, path: Union[str, Path]) -> CharacterSource:
        """Parse an export saved to disk."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                json_data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedSourceError(f"Character export is not valid JSON: {e}") from e
        return self.parse(json_data)


def hit_point_state(source: CharacterSource) -> HitPointState:
    """Get how the character's hit points were determined."""
    return HitPointState(
        rolled_hp=source.preferences.hit_point_type == HIT_POINT_TYPE_MANUAL,
        base_hit_points=source.base_hit_points,
        total_levels=source.total_levels,
    )


def load_character_source(json_data: Any) -> CharacterSource:
    """Parse a D&D Beyond export with the default parser."""
    return DDBSourceParser().parse(json_data)
