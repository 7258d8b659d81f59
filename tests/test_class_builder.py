"""Tests for the class progression orchestrator."""
import pytest
from unittest.mock import AsyncMock

from ddb_progression.core.advancements import SaveProficiencySynthesizer, default_synthesizers
from ddb_progression.core.advancements.base import BaseSynthesizer, SynthesisStep, make_advancement_id
from ddb_progression.core.class_builder import (
    ClassProgressionBuilder,
    SubclassProgressionBuilder,
    build_character_progressions,
    build_feature_matcher,
    trait_key,
)
from ddb_progression.core.errors import MalformedSourceError
from ddb_progression.models.advancement import AdvancementType, HitPointState
from ddb_progression.models.source import CharacterSource
from ddb_progression.services.compendium import FEATURE_INDEX_FIELDS, BaseCompendium

from factories import modifier, rogue_class


def _types(progression):
    return [a.type for a in progression.advancement]


class TestAdvancementIds:
    """Test deterministic id derivation."""

    def test_stable(self):
        """The same parts always give the same id."""
        assert make_advancement_id(9, "Trait", 1, "primary") == make_advancement_id(9, "Trait", 1, "primary")

    def test_collision_counter(self):
        """A taken id is never handed out again."""
        first = make_advancement_id(9, "Trait", 1)
        second = make_advancement_id(9, "Trait", 1, taken={first})
        assert first != second
        assert len(second) == 16


class TestClassProgressionBuilder:
    """Test a full class synthesis run."""

    @pytest.mark.asyncio
    async def test_modern_order(self, barbarian_source, compendium, reference_library, modern_options):
        """Synthesizers run in the fixed order, then the SRD merge."""
        builder = ClassProgressionBuilder(
            barbarian_source,
            barbarian_source.classes[0],
            compendium=compendium,
            reference_library=reference_library,
            options=modern_options,
        )
        progression = await builder.build()

        assert _types(progression) == [
            "ScaleValue",
            "ItemGrant", "ItemGrant", "ItemGrant",
            "Trait",
            "Trait",
            "HitPoints",
            "AbilityScoreImprovement",
            "ScaleValue",
        ]
        assert progression.advancement[-1].identifier == "brutal-critical"

    @pytest.mark.asyncio
    async def test_level_bounds(self, barbarian_source, compendium, reference_library, modern_options):
        """Every record lies within levels 0 to 20."""
        progression = await ClassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0],
            compendium=compendium, reference_library=reference_library, options=modern_options,
        ).build()

        assert all(0 <= a.level <= 20 for a in progression.advancement)

    @pytest.mark.asyncio
    async def test_data_stub(self, barbarian_source, compendium, modern_options):
        """Class data carries identity, levels and hit dice."""
        progression = await ClassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0], compendium=compendium, options=modern_options,
        ).build()

        assert progression.name == "Barbarian"
        assert progression.type == "class"
        assert progression.identifier == "barbarian"
        assert progression.levels == 4
        assert progression.hit_dice == "d12"
        assert progression.hit_dice_used == 1
        assert progression.spellcasting is None
        assert progression.flags["ddbimporter"]["definitionId"] == 9
        assert progression.flags["ddbimporter"]["isStartingClass"] is True

    @pytest.mark.asyncio
    async def test_spellcasting(self, export_copy, modern_options):
        """Casters get their progression, ability and slot divisor."""
        data = export_copy()
        definition = data["character"]["classes"][0]["definition"]
        definition.update({
            "name": "Paladin",
            "canCastSpells": True,
            "spellCastingAbilityId": 6,
            "spellRules": {"multiClassSpellSlotDivisor": 2},
        })
        source = CharacterSource.model_validate(data["character"])

        progression = await ClassProgressionBuilder(source, source.classes[0], options=modern_options).build()

        assert progression.spellcasting.progression == "half"
        assert progression.spellcasting.ability == "cha"
        assert progression.flags["ddbimporter"]["spellCastingAbility"] == "cha"
        assert progression.flags["ddbimporter"]["spellSlotDivisor"] == 2

    @pytest.mark.asyncio
    async def test_match_table(self, barbarian_source, compendium, modern_options):
        """Every feature grant record has its match entries."""
        progression = await ClassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0], compendium=compendium, options=modern_options,
        ).build()

        for grant in progression.advancements_of(AdvancementType.ITEM_GRANT):
            assert set(progression.advancement_matches[grant.id].values()) == set(grant.configuration["items"])

    @pytest.mark.asyncio
    async def test_modern_runs_are_identical(self, barbarian_source, compendium, reference_library, modern_options):
        """Repeated modern runs give byte-identical advancement arrays."""
        runs = []
        for _ in range(2):
            progression = await ClassProgressionBuilder(
                barbarian_source, barbarian_source.classes[0],
                compendium=compendium, reference_library=reference_library, options=modern_options,
            ).build()
            runs.append([a.to_document() for a in progression.advancement])

        assert runs[0] == runs[1]
        ids = [a["_id"] for a in runs[0]]
        assert len(ids) == len(set(ids))

    @pytest.mark.asyncio
    async def test_legacy_flat_data(self, barbarian_source, compendium, legacy_options):
        """Legacy runs produce flat saves/skills and no Trait or ASI records."""
        results = []
        for _ in range(2):
            progression = await ClassProgressionBuilder(
                barbarian_source, barbarian_source.classes[0], compendium=compendium, options=legacy_options,
            ).build()
            results.append(progression)

        for progression in results:
            types = _types(progression)
            assert "Trait" not in types
            assert "AbilityScoreImprovement" not in types
            assert "HitPoints" in types
            assert progression.saves == ["str", "con"]
            assert progression.skills.value == ["ath", "itm"]
            assert progression.skills.number == 2
            assert progression.skills.choices == ["ani", "ath", "itm"]

        assert results[0].saves == results[1].saves
        assert results[0].skills == results[1].skills

    @pytest.mark.asyncio
    async def test_modern_has_no_flat_data(self, barbarian_source, compendium, modern_options):
        """Modern runs leave the flat fields empty."""
        progression = await ClassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0], compendium=compendium, options=modern_options,
        ).build()

        assert progression.saves == []
        assert progression.skills is None

    @pytest.mark.asyncio
    async def test_hit_point_override(self, barbarian_source, compendium, modern_options):
        """An explicit hit point state replaces the export's."""
        progression = await ClassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0], compendium=compendium, options=modern_options,
            hit_points=HitPointState(rolled_hp=True, base_hit_points=34, total_levels=4),
        ).build()

        hit_points = progression.advancements_of(AdvancementType.HIT_POINTS)[0]
        assert hit_points.value["1"] == 10

    @pytest.mark.asyncio
    async def test_missing_identity_raises(self, export_copy, compendium):
        """A class definition without an id aborts just that synthesis."""
        data = export_copy()
        data["character"]["classes"][0]["definition"]["id"] = None
        source = CharacterSource.model_validate(data["character"])

        with pytest.raises(MalformedSourceError) as exc_info:
            await ClassProgressionBuilder(source, source.classes[0], compendium=compendium).build()

        assert exc_info.value.details["missing"] == ["id"]
        assert exc_info.value.http_status == 400

    @pytest.mark.asyncio
    async def test_index_built_with_identity_fields(self, barbarian_source):
        """The compendium is asked for exactly the identity fields."""
        compendium = BaseCompendium()
        compendium.get_index = AsyncMock(return_value=[])

        await ClassProgressionBuilder(barbarian_source, barbarian_source.classes[0], compendium=compendium).build()

        compendium.get_index.assert_awaited_once_with(FEATURE_INDEX_FIELDS)

    @pytest.mark.asyncio
    async def test_synthesizers_see_accumulated_list(self, barbarian_source, modern_options):
        """Each synthesizer receives everything emitted before it."""
        seen = []

        class Recorder(BaseSynthesizer):
            CATEGORY = AdvancementType.TRAIT

            def synthesize(self, ctx, existing):
                seen.append(len(existing))
                return SynthesisStep()

        synthesizers = default_synthesizers()
        synthesizers.insert(1, Recorder())
        synthesizers.append(Recorder())

        await ClassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0], options=modern_options, synthesizers=synthesizers,
        ).build()

        # Without a compendium nothing is granted: 1 scale value, then save, skill, HP, ASI
        assert seen == [1, 5]


class TestTraitUniqueness:
    """Test that save and skill Trait records never share a level and restriction."""

    @pytest.mark.asyncio
    async def test_duplicate_trait_dropped(self, barbarian_source, modern_options):
        """A second save synthesizer cannot add a record at an occupied key."""
        synthesizers = default_synthesizers()
        synthesizers.insert(3, SaveProficiencySynthesizer())

        progression = await ClassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0], options=modern_options, synthesizers=synthesizers,
        ).build()

        saves = [a for a in progression.advancements_of(AdvancementType.TRAIT) if "grants" in a.configuration]
        assert len(saves) == 1

    @pytest.mark.asyncio
    async def test_multiclass_keys_unique(self, export_copy, compendium, modern_options):
        """Both classes of a multiclass character keep unique Trait keys."""
        data = export_copy()
        data["character"]["classes"].append(rogue_class(level=1))
        data["character"]["modifiers"]["class"].extend([
            modifier("dexterity-saving-throws", 301, availableToMulticlass=True),
            modifier("choose-a-rogue-skill", 301, n=1, availableToMulticlass=True),
            modifier("choose-a-rogue-skill", 301, n=2),
        ])
        source = CharacterSource.model_validate(data["character"])

        progressions = await build_character_progressions(source, compendium=compendium, options=modern_options)

        for progression in progressions:
            keys = [trait_key(a) for a in progression.advancements_of(AdvancementType.TRAIT)]
            assert len(keys) == len(set(keys))
        rogue_keys = {trait_key(a) for a in progressions[-1].advancements_of(AdvancementType.TRAIT)}
        assert rogue_keys == {
            ("saves", 1, ""),
            ("skills", 1, "secondary"),
            ("skills", 1, "primary"),
        }


class TestSubclassProgressionBuilder:
    """Test the subclass scope."""

    @pytest.mark.asyncio
    async def test_subclass_scope(self, barbarian_source, compendium, reference_library, modern_options):
        """Subclass runs grant subclass features only, with no HP or ASI."""
        progression = await SubclassProgressionBuilder(
            barbarian_source, barbarian_source.classes[0],
            compendium=compendium, reference_library=reference_library, options=modern_options,
        ).build()

        assert progression.type == "subclass"
        assert progression.identifier == "path-of-the-berserker"
        assert progression.class_identifier == "barbarian"
        assert progression.levels is None
        assert _types(progression) == ["ItemGrant"]


class TestBuildCharacterProgressions:
    """Test the whole-character build."""

    @pytest.mark.asyncio
    async def test_classes_then_subclasses(self, export_copy, compendium, modern_options):
        """Each class is followed by its subclass; classes without one stand alone."""
        data = export_copy()
        data["character"]["classes"].append(rogue_class(level=1))
        source = CharacterSource.model_validate(data["character"])

        progressions = await build_character_progressions(source, compendium=compendium, options=modern_options)

        assert [(p.name, p.type) for p in progressions] == [
            ("Barbarian", "class"),
            ("Path of the Berserker", "subclass"),
            ("Rogue", "class"),
        ]
        rogue_hp = progressions[2].advancements_of(AdvancementType.HIT_POINTS)[0]
        assert rogue_hp.value == {"1": "avg"}

    @pytest.mark.asyncio
    async def test_index_built_once(self, barbarian_source, compendium_records, modern_options):
        """All runs share one compendium index."""
        compendium = BaseCompendium()
        compendium.get_index = AsyncMock(return_value=compendium_records)

        await build_character_progressions(barbarian_source, compendium=compendium, options=modern_options)

        assert compendium.get_index.await_count == 1

    @pytest.mark.asyncio
    async def test_matcher_without_compendium(self):
        """No compendium gives a matcher that never matches."""
        matcher = await build_feature_matcher(None)
        assert matcher.entries == []
