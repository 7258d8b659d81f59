"""
Proficiency text parsing.

Reads the "Proficiencies" feature description when modifiers are unavailable:

    <p><strong>Saving Throws:</strong> Strength, Constitution</p>
    <p><strong>Skills:</strong> Choose two from Animal Handling, Athletics, and Survival</p>
"""
import html
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ddb_progression.core.dictionary import Dictionary

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}

BLOCK_TAGS = re.compile(r"<\s*(?:br|/p|/li|/div|/h\d)\s*/?>", re.IGNORECASE)
ANY_TAG = re.compile(r"<[^>]+>")
CHOOSE_PATTERN = re.compile(r"choose\s+(any\s+)?(\w+)", re.IGNORECASE)


@dataclass
class ParsedSkills:
    number: int = 0
    choices: List[str] = field(default_factory=list)


def html_to_text(description: str) -> str:
    text = BLOCK_TAGS.sub("\n", description or "")
    text = ANY_TAG.sub("", text)
    return html.unescape(text)


def _labelled_line(description: str, label: str) -> Optional[str]:
    match = re.search(rf"{re.escape(label)}\s*:\s*(.+)", html_to_text(description), re.IGNORECASE)
    return match.group(1).strip() if match else None


def _count(word: str) -> int:
    if word.isdigit():
        return int(word)
    return NUMBER_WORDS.get(word.lower(), 0)


def parse_html_skills(description: str, dictionary: Dictionary) -> ParsedSkills:
    """
    Parse the skill choice sentence of a Proficiencies description.

    Returns:
        Number of skills to pick and the pool (skill codes in text order);
        "choose any N" pools every skill
    """
    line = _labelled_line(description, "Skills")
    if not line:
        return ParsedSkills()

    choose = CHOOSE_PATTERN.search(line)
    number = _count(choose.group(2)) if choose else 0

    if choose and choose.group(1):
        return ParsedSkills(number=number, choices=[skill.name for skill in dictionary.skills])

    found = []
    for skill in dictionary.skills:
        position = re.search(rf"\b{re.escape(skill.label)}\b", line, re.IGNORECASE)
        if position:
            found.append((position.start(), skill.name))
    return ParsedSkills(number=number, choices=[name for _, name in sorted(found)])


def parse_html_saves(description: str, dictionary: Dictionary) -> List[str]:
    """Parse the saving throw line of a Proficiencies description into ability codes."""
    line = _labelled_line(description, "Saving Throws")
    if not line:
        return []
    return [
        ability.value
        for ability in dictionary.abilities
        if re.search(rf"\b{re.escape(ability.label)}\b", line, re.IGNORECASE)
    ]
