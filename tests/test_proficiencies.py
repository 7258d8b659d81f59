"""Tests for save and skill proficiency advancements."""
import pytest

from ddb_progression.core.advancements.proficiency_text import parse_html_saves, parse_html_skills
from ddb_progression.core.advancements.saves import SaveProficiencySynthesizer
from ddb_progression.core.advancements.skills import (
    SkillProficiencySynthesizer,
    parse_skill_choices_from_options,
)
from ddb_progression.core.dictionary import DEFAULT_DICTIONARY
from ddb_progression.core.features import FeatureScope
from ddb_progression.core.rules_config import RuleMode, SynthesisOptions
from ddb_progression.models.advancement import ClassRestriction
from ddb_progression.models.source import CharacterSource

from factories import PROFICIENCIES_HTML, ROGUE_ID, modifier, rogue_class

NO_MODS = SynthesisOptions(no_mods=True)


def _keys(advancements):
    return [(a.level, a.class_restriction) for a in advancements]


def _multiclass_rogue(data):
    """Add a rogue multiclass with shared and primary-only skill modifiers."""
    data["character"]["classes"].append(rogue_class(level=1))
    data["character"]["modifiers"]["class"].extend([
        modifier("dexterity-saving-throws", 301),
        modifier("choose-a-rogue-skill", 301, n=1, availableToMulticlass=True),
        modifier("choose-a-rogue-skill", 301, n=2),
        modifier("choose-a-rogue-skill", 301, n=3),
    ])
    return CharacterSource.model_validate(data["character"])


class TestProficiencyText:
    """Test reading proficiencies from feature descriptions."""

    def test_listed_skills(self):
        """Listed skills come back as codes in text order."""
        parsed = parse_html_skills(PROFICIENCIES_HTML, DEFAULT_DICTIONARY)
        assert parsed.number == 2
        assert parsed.choices == ["ani", "ath", "itm", "nat", "prc", "sur"]

    def test_choose_any(self):
        """"Choose any N" offers every skill."""
        parsed = parse_html_skills("<p>Skills: Choose any three</p>", DEFAULT_DICTIONARY)
        assert parsed.number == 3
        assert len(parsed.choices) == len(DEFAULT_DICTIONARY.skills)

    def test_no_skills_line(self):
        """No skills line, nothing to choose."""
        parsed = parse_html_skills("<p>Armor: none</p>", DEFAULT_DICTIONARY)
        assert parsed.number == 0
        assert parsed.choices == []

    def test_saves(self):
        """Saving throw abilities are read in dictionary order."""
        assert parse_html_saves(PROFICIENCIES_HTML, DEFAULT_DICTIONARY) == ["str", "con"]


class TestSaveProficiencySynthesizer:
    """Test saving throw Trait advancements."""

    def test_primary_saves(self, barbarian_source, make_context):
        """Non-multiclass save modifiers become one primary record."""
        step = SaveProficiencySynthesizer().synthesize(make_context(barbarian_source), ())

        assert len(step.advancements) == 1
        advancement = step.advancements[0]
        assert advancement.level == 1
        assert advancement.class_restriction == ClassRestriction.PRIMARY.value
        assert advancement.configuration == {"grants": ["saves:str", "saves:con"], "allowReplacements": False}
        assert advancement.value == {"chosen": ["saves:str", "saves:con"]}

    def test_multiclass_axis(self, export_copy, make_context):
        """Shared save modifiers become an unrestricted record."""
        data = export_copy()
        data["character"]["modifiers"]["class"][0]["availableToMulticlass"] = True
        source = CharacterSource.model_validate(data["character"])

        step = SaveProficiencySynthesizer().synthesize(make_context(source), ())

        assert _keys(step.advancements) == [(1, ""), (1, "primary")]
        assert step.advancements[0].configuration["grants"] == ["saves:str"]
        assert step.advancements[1].configuration["grants"] == ["saves:con"]

    def test_no_modifiers_no_record(self, export_copy, make_context):
        """An empty grant set emits nothing."""
        data = export_copy()
        data["character"]["modifiers"]["class"] = []
        source = CharacterSource.model_validate(data["character"])

        assert SaveProficiencySynthesizer().synthesize(make_context(source), ()).advancements == []

    def test_no_mods_reads_description(self, export_copy, make_context):
        """Without modifiers, saves come from the Proficiencies text."""
        data = export_copy()
        data["character"]["modifiers"]["class"] = []
        source = CharacterSource.model_validate(data["character"])

        step = SaveProficiencySynthesizer().synthesize(make_context(source, NO_MODS), ())

        assert _keys(step.advancements) == [(1, "primary")]
        assert step.advancements[0].configuration["grants"] == ["saves:str", "saves:con"]

    def test_modern_only(self):
        """Legacy document models keep saves as flat data instead."""
        assert not SaveProficiencySynthesizer.applies_to(RuleMode.LEGACY, FeatureScope.CLASS)
        assert SaveProficiencySynthesizer.applies_to(RuleMode.MODERN, FeatureScope.SUBCLASS)


class TestSkillProficiencySynthesizer:
    """Test skill choice Trait advancements."""

    def test_primary_skills(self, barbarian_source, make_context):
        """Count is the number of skill modifiers; pool comes from the text."""
        step = SkillProficiencySynthesizer().synthesize(make_context(barbarian_source), ())

        assert len(step.advancements) == 1
        advancement = step.advancements[0]
        assert advancement.class_restriction == ClassRestriction.PRIMARY.value
        assert advancement.configuration["choices"] == [{
            "count": 2,
            "pool": ["skills:ani", "skills:ath", "skills:itm", "skills:nat", "skills:prc", "skills:sur"],
        }]
        assert advancement.value == {"chosen": ["skills:ath", "skills:itm"]}

    def test_zero_count_suppressed(self, export_copy, make_context):
        """No skill modifiers means no record, even with a choice pool."""
        data = export_copy()
        data["character"]["modifiers"]["class"] = [
            m for m in data["character"]["modifiers"]["class"] if "skill" not in m["subType"]
        ]
        source = CharacterSource.model_validate(data["character"])

        assert SkillProficiencySynthesizer().synthesize(make_context(source), ()).advancements == []

    def test_no_barbarian_multiclass_record(self, barbarian_source, make_context):
        """Classes granting no multiclass skills skip the secondary axis."""
        step = SkillProficiencySynthesizer().synthesize(make_context(barbarian_source), ())
        assert ClassRestriction.SECONDARY.value not in [a.class_restriction for a in step.advancements]

    def test_rogue_multiclass_axis(self, export_copy, make_context):
        """Rogue emits a secondary record counted from the dictionary."""
        source = _multiclass_rogue(export_copy())
        step = SkillProficiencySynthesizer().synthesize(make_context(source, class_index=1), ())

        assert _keys(step.advancements) == [(1, "secondary"), (1, "primary")]
        secondary, primary = step.advancements
        assert secondary.configuration["choices"][0]["count"] == 1
        assert primary.configuration["choices"][0]["count"] == 3
        assert "skills:slt" in primary.configuration["choices"][0]["pool"]

    def test_no_mods_count_from_text(self, export_copy, make_context):
        """No-modifier mode counts from the description."""
        data = export_copy()
        data["character"]["modifiers"]["class"] = []
        source = CharacterSource.model_validate(data["character"])

        step = SkillProficiencySynthesizer().synthesize(make_context(source, NO_MODS), ())
        assert step.advancements[0].configuration["choices"][0]["count"] == 2

    def test_choices_do_not_change_count(self, export_copy, make_context):
        """Extra player picks populate chosen without changing the count."""
        data = export_copy()
        data["character"]["modifiers"]["class"] = [
            m for m in data["character"]["modifiers"]["class"]
            if m["id"] != "101-choose-a-barbarian-skill-2"
        ]
        source = CharacterSource.model_validate(data["character"])

        advancement = SkillProficiencySynthesizer().synthesize(make_context(source), ()).advancements[0]
        assert advancement.configuration["choices"][0]["count"] == 1
        assert advancement.value["chosen"] == ["skills:ath", "skills:itm"]


class TestSkillChoices:
    """Test reading the player's skill choices."""

    def test_chosen_and_offered(self, barbarian_source, make_context):
        """Chosen and offered skills map through the dictionary labels."""
        skills = parse_skill_choices_from_options(make_context(barbarian_source), 1)
        assert skills.chosen == ["ath", "itm"]
        assert skills.choices == ["ani", "ath", "itm"]

    def test_other_level(self, barbarian_source, make_context):
        """Choices belong to the Proficiencies feature at their level only."""
        skills = parse_skill_choices_from_options(make_context(barbarian_source), 2)
        assert skills.chosen == []
        assert skills.choices == []

    @pytest.mark.parametrize("field,value", [("type", 3), ("subType", 2)])
    def test_non_skill_choices_ignored(self, export_copy, make_context, field, value):
        """Only type 2 / subType 1 choices are skill picks."""
        data = export_copy()
        for choice in data["character"]["choices"]["class"]:
            choice[field] = value
        source = CharacterSource.model_validate(data["character"])

        assert parse_skill_choices_from_options(make_context(source), 1).chosen == []

    def test_rogue_id_unused_by_barbarian_choices(self, export_copy, make_context):
        """Rogue's Proficiencies feature does not pick up barbarian choices."""
        source = _multiclass_rogue(export_copy())
        ctx = make_context(source, class_index=1)

        assert ctx.definition.id == ROGUE_ID
        assert parse_skill_choices_from_options(ctx, 1).chosen == []
