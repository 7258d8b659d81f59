"""
Class Progression API Routes.

Endpoints for synthesizing advancement timelines from a D&D Beyond export:
- Build one class (or its subclass)
- Build every class and subclass of a character
- Read the static ability/skill/class dictionary
"""
import logging
from fastapi import APIRouter
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any

from ddb_progression.config import get_settings
from ddb_progression.core.class_builder import (
    ClassProgressionBuilder,
    SubclassProgressionBuilder,
    build_character_progressions,
)
from ddb_progression.core.dictionary import DEFAULT_DICTIONARY
from ddb_progression.core.errors import ClassNotFoundError, MalformedSourceError
from ddb_progression.core.rules_config import SynthesisOptions
from ddb_progression.models.advancement import HitPointState
from ddb_progression.services.compendium import InMemoryCompendium
from ddb_progression.services.ddb_source import DDBSourceParser
from ddb_progression.services.reference_library import get_reference_library

logger = logging.getLogger("ddb_progression.api.progression")

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================

class SynthesisRequest(BaseModel):
    """Request to synthesize progression from a character export."""
    source: Dict[str, Any] = Field(..., description="D&D Beyond character export (any envelope)")
    compendium_index: List[Dict[str, Any]] = Field(
        default_factory=list, description="Feature compendium index records"
    )
    options: Dict[str, Any] = Field(
        default_factory=dict, description="Overrides for rule_mode, use_max_hp_for_rolled_hp, no_mods"
    )
    hit_points: Optional[HitPointState] = Field(None, description="Override the export's hit point data")
    subclass: bool = Field(False, description="Build the subclass instead of the base class")


class CharacterProgressionResponse(BaseModel):
    """All class and subclass progressions for a character."""
    character_name: str
    options: Dict[str, Any]
    progressions: List[Dict[str, Any]]


# =============================================================================
# Helper Functions
# =============================================================================

def resolve_options(overrides: Dict[str, Any]) -> SynthesisOptions:
    """Layer request overrides on top of the configured defaults."""
    defaults = SynthesisOptions.from_settings(get_settings())
    if not overrides:
        return defaults
    return SynthesisOptions.from_dict({**defaults.to_dict(), **overrides})


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/classes/{class_id}")
async def synthesize_class(class_id: int, request: SynthesisRequest) -> Dict[str, Any]:
    """
    Synthesize the progression of one class in the export.

    class_id is the class definition id. With subclass=true the class's
    subclass is built instead.
    """
    source = DDBSourceParser().parse(request.source)
    character_class = source.find_class(class_id)
    if character_class is None:
        raise ClassNotFoundError(class_id)

    builder_cls = ClassProgressionBuilder
    if request.subclass:
        if not character_class.has_subclass:
            raise MalformedSourceError(
                f"Class {class_id} has no subclass", missing=["subclassDefinition"]
            )
        builder_cls = SubclassProgressionBuilder

    options = resolve_options(request.options)
    builder = builder_cls(
        source,
        character_class,
        compendium=InMemoryCompendium(request.compendium_index, name="request"),
        reference_library=get_reference_library(),
        options=options,
        dictionary=DEFAULT_DICTIONARY,
        hit_points=request.hit_points,
    )
    progression = await builder.build()
    return progression.to_document()


@router.post("/character", response_model=CharacterProgressionResponse)
async def synthesize_character(request: SynthesisRequest):
    """Synthesize every class and subclass progression in the export."""
    source = DDBSourceParser().parse(request.source)
    options = resolve_options(request.options)

    progressions = await build_character_progressions(
        source,
        compendium=InMemoryCompendium(request.compendium_index, name="request"),
        reference_library=get_reference_library(),
        options=options,
        dictionary=DEFAULT_DICTIONARY,
        hit_points=request.hit_points,
    )
    logger.info(f"Synthesized {len(progressions)} progressions for {source.name or 'character'}")

    return CharacterProgressionResponse(
        character_name=source.name,
        options=options.to_dict(),
        progressions=[progression.to_document() for progression in progressions],
    )


@router.get("/dictionary")
async def get_dictionary() -> Dict[str, Any]:
    """Get the ability, skill, class and spell progression tables."""
    return DEFAULT_DICTIONARY.to_dict()
