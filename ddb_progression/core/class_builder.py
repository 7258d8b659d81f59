"""
Class Progression Builder.

Orchestrates one synthesis run for a class (or its subclass):
1. Check the definition carries its identity
2. Build the compendium identity index
3. Resolve the scope's feature set
4. Run the synthesizers in order, each seeing what came before it
5. Append missing reference scale values
6. Fill in the class data stub (and legacy flat data when targeting it)

Everything mutable lives inside one build() call.
"""
import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ddb_progression.core.advancements import BaseSynthesizer, SynthesisContext, default_synthesizers
from ddb_progression.core.advancements.scale_value import reference_name
from ddb_progression.core.dictionary import DEFAULT_DICTIONARY, Dictionary
from ddb_progression.core.errors import MalformedSourceError
from ddb_progression.core.features import FeatureScope, FeatureSetResolver
from ddb_progression.core.legacy import legacy_saves, legacy_skills
from ddb_progression.core.matcher import CompendiumFeatureMatcher, FeatureMatcher
from ddb_progression.core.modifiers import ClassModifierSelector
from ddb_progression.core.rules_config import SynthesisOptions
from ddb_progression.core.srd import SRDFallbackMerger
from ddb_progression.models.advancement import (
    AdvancementRecord,
    AdvancementType,
    ClassProgression,
    HitPointState,
    SpellcastingData,
)
from ddb_progression.models.compendium import CompendiumIndexEntry
from ddb_progression.models.source import CharacterClass, CharacterSource, ClassDefinition
from ddb_progression.services.compendium import FEATURE_INDEX_FIELDS, BaseCompendium
from ddb_progression.services.ddb_source import hit_point_state
from ddb_progression.services.reference_library import BaseReferenceLibrary

logger = logging.getLogger("ddb_progression.class_builder")


def trait_key(advancement: AdvancementRecord) -> Optional[Tuple[str, int, str]]:
    """Get (kind, level, classRestriction) for save and skill Trait records, else None."""
    if advancement.type != AdvancementType.TRAIT:
        return None
    kind = "saves" if "grants" in advancement.configuration else "skills"
    return kind, advancement.level, advancement.class_restriction


async def build_feature_matcher(compendium: Optional[BaseCompendium]) -> FeatureMatcher:
    """Build the identity matcher from a compendium's feature index."""
    if compendium is None:
        logger.debug("No compendium given, no features will be granted")
        return CompendiumFeatureMatcher([])
    raw_index = await compendium.get_index(FEATURE_INDEX_FIELDS)
    return CompendiumFeatureMatcher(CompendiumIndexEntry.from_index(raw) for raw in raw_index)


class ClassProgressionBuilder:
    """Builds the progression of a character's base class."""

    SCOPE = FeatureScope.CLASS
    DOCUMENT_TYPE = "class"

    def __init__(
        self,
        source: CharacterSource,
        character_class: CharacterClass,
        compendium: Optional[BaseCompendium] = None,
        reference_library: Optional[BaseReferenceLibrary] = None,
        options: Optional[SynthesisOptions] = None,
        dictionary: Optional[Dictionary] = None,
        hit_points: Optional[HitPointState] = None,
        synthesizers: Optional[Sequence[BaseSynthesizer]] = None,
        matcher: Optional[FeatureMatcher] = None,
    ):
        self.source = source
        self.character_class = character_class
        self.compendium = compendium
        self.reference_library = reference_library
        self.options = options or SynthesisOptions()
        self.dictionary = dictionary or DEFAULT_DICTIONARY
        self.hit_points = hit_points or hit_point_state(source)
        self.synthesizers = list(synthesizers) if synthesizers is not None else default_synthesizers()
        self.matcher = matcher
        self.resolver = FeatureSetResolver(source, character_class)

    @property
    def definition(self) -> Optional[ClassDefinition]:
        return self.resolver.scope_definition(self.SCOPE)

    def check_identity(self) -> ClassDefinition:
        """Raise MalformedSourceError unless the scope definition has an id and a name."""
        definition = self.definition
        if definition is None:
            raise MalformedSourceError(f"Character class has no {self.DOCUMENT_TYPE} definition", missing=["definition"])
        missing = [field for field in ("id", "name") if not getattr(definition, field)]
        if missing:
            raise MalformedSourceError(
                f"{self.DOCUMENT_TYPE.capitalize()} definition is missing its identity",
                missing=missing,
            )
        return definition

    def context(self, definition: ClassDefinition, matcher: FeatureMatcher) -> SynthesisContext:
        return SynthesisContext(
            source=self.source,
            character_class=self.character_class,
            definition=definition,
            scope=self.SCOPE,
            features=tuple(self.resolver.resolve(self.SCOPE)),
            options=self.options,
            dictionary=self.dictionary,
            matcher=matcher,
            modifiers=ClassModifierSelector(self.source),
            hit_points=self.hit_points,
        )

    def synthesize(self, ctx: SynthesisContext) -> Tuple[List[AdvancementRecord], Dict[str, Dict[str, str]]]:
        """
        Run every applicable synthesizer in order.

        Returns:
            (advancements, placeholder match table)
        """
        advancements: Tuple[AdvancementRecord, ...] = ()
        matches: Dict[str, Dict[str, str]] = {}
        trait_keys: Set[Tuple[str, int, str]] = set()
        for synthesizer in self.synthesizers:
            if not synthesizer.applies_to(ctx.options.rule_mode, self.SCOPE):
                continue
            step = synthesizer.synthesize(ctx, advancements)
            accepted = []
            for advancement in step.advancements:
                key = trait_key(advancement)
                if key is not None:
                    if key in trait_keys:
                        logger.warning(
                            f"Dropping duplicate {key[0]} Trait at level {key[1]} "
                            f"({key[2] or 'any class'}) for {ctx.definition.name}"
                        )
                        continue
                    trait_keys.add(key)
                accepted.append(advancement)
            advancements = advancements + tuple(accepted)
            accepted_ids = {a.id for a in accepted}
            matches.update({k: v for k, v in step.matches.items() if k in accepted_ids})
        return list(advancements), matches

    async def reference_advancements(self, synthesized: Sequence[AdvancementRecord]) -> List[AdvancementRecord]:
        if self.reference_library is None:
            return []
        document = await self.reference_library.find_document(self.definition.name, self.DOCUMENT_TYPE)
        return SRDFallbackMerger().merge(synthesized, document)

    def spellcasting(self, definition: ClassDefinition) -> Tuple[Optional[SpellcastingData], Dict[str, object]]:
        """Get the spellcasting progression and the flags that go with it."""
        if not definition.can_cast_spells:
            return None, {}
        ability = self.dictionary.ability_by_stat_id(definition.spell_casting_ability_id)
        ability_code = ability.value if ability else None
        flags = {"spellCastingAbility": ability_code}
        if definition.spell_rules and definition.spell_rules.multi_class_spell_slot_divisor:
            flags["spellSlotDivisor"] = definition.spell_rules.multi_class_spell_slot_divisor

        progression = self.dictionary.spell_progression.get(definition.name)
        if progression is None:
            logger.debug(f"No spell progression known for {definition.name}")
            return None, flags
        return SpellcastingData(progression=progression, ability=ability_code), flags

    def data_stub(self, definition: ClassDefinition) -> ClassProgression:
        spellcasting, spell_flags = self.spellcasting(definition)
        flags = {
            "id": self.character_class.id,
            "definitionId": definition.id,
            "entityTypeId": self.character_class.entity_type_id,
            "type": self.DOCUMENT_TYPE,
            "isStartingClass": self.character_class.is_starting_class,
            **spell_flags,
        }
        return ClassProgression(
            name=definition.name,
            type=self.DOCUMENT_TYPE,
            identifier=reference_name(definition.name),
            levels=self.character_class.level,
            hit_dice=f"d{definition.hit_dice}" if definition.hit_dice else None,
            hit_dice_used=self.character_class.hit_dice_used,
            spellcasting=spellcasting,
            flags={"ddbimporter": flags},
        )

    def apply_legacy_data(self, progression: ClassProgression, ctx: SynthesisContext):
        """Legacy document models keep saves and skills as flat class data."""
        if not ctx.options.legacy_mode:
            return
        progression.saves = legacy_saves(ctx)
        progression.skills = legacy_skills(ctx)

    async def build(self) -> ClassProgression:
        """
        Synthesize the progression.

        Raises:
            MalformedSourceError: the definition lacks an id or name
        """
        definition = self.check_identity()
        matcher = self.matcher or await build_feature_matcher(self.compendium)
        ctx = self.context(definition, matcher)

        advancements, matches = self.synthesize(ctx)
        advancements = advancements + await self.reference_advancements(advancements)

        progression = self.data_stub(definition)
        progression.advancement = advancements
        progression.advancement_matches = matches
        self.apply_legacy_data(progression, ctx)

        logger.info(
            f"Built {self.DOCUMENT_TYPE} {definition.name}: "
            f"{len(advancements)} advancements, {len(matches)} matched placeholders"
        )
        return progression


class SubclassProgressionBuilder(ClassProgressionBuilder):
    """Builds the progression of a character's subclass."""

    SCOPE = FeatureScope.SUBCLASS
    DOCUMENT_TYPE = "subclass"

    def data_stub(self, definition: ClassDefinition) -> ClassProgression:
        progression = super().data_stub(definition)
        progression.class_identifier = reference_name(self.character_class.definition.name or "")
        progression.levels = None
        progression.hit_dice = None
        progression.hit_dice_used = 0
        return progression

    def apply_legacy_data(self, progression: ClassProgression, ctx: SynthesisContext):
        pass


async def build_character_progressions(
    source: CharacterSource,
    compendium: Optional[BaseCompendium] = None,
    reference_library: Optional[BaseReferenceLibrary] = None,
    options: Optional[SynthesisOptions] = None,
    dictionary: Optional[Dictionary] = None,
    hit_points: Optional[HitPointState] = None,
) -> List[ClassProgression]:
    """
    Build every class in the source, each followed by its subclass.

    The compendium index is built once and shared by all runs.
    """
    matcher = await build_feature_matcher(compendium)
    progressions = []
    for character_class in source.classes:
        builders = [ClassProgressionBuilder]
        if character_class.has_subclass:
            builders.append(SubclassProgressionBuilder)
        for builder in builders:
            progressions.append(await builder(
                source,
                character_class,
                reference_library=reference_library,
                options=options,
                dictionary=dictionary,
                hit_points=hit_points,
                matcher=matcher,
            ).build())
    return progressions
