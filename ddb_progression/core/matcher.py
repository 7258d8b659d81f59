"""
Compendium Identity Matcher.

Links an exported feature to a content-library entry by name and class tags.
A miss is a normal outcome: the feature just cannot be granted as an item.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ddb_progression.models.compendium import CompendiumIndexEntry
from ddb_progression.models.source import ClassFeature

logger = logging.getLogger("ddb_progression.matcher")


@dataclass(frozen=True)
class ClassIdentity:
    """The class (or subclass) a feature is being matched for."""
    id: int
    name: str


def _normalize(name: Optional[str]) -> str:
    return (name or "").strip().lower()


class FeatureMatcher:
    """Base matcher. Override match() in subclasses."""

    def match(self, feature: ClassFeature, identity: ClassIdentity) -> Optional[CompendiumIndexEntry]:
        """Find the index entry for a feature, or None."""
        raise NotImplementedError


class CompendiumFeatureMatcher(FeatureMatcher):
    """
    Name/alias/class-tag matcher over a built index.

    An entry matches when, in index order, the first entry satisfying both:
    1. Its alias equals the feature name; or, without an alias, its own name
       equals the feature name or "<feature> (<class>)" (case-insensitive,
       trimmed)
    2. It carries identity tags naming the class, its id, or its parent id
    """

    def __init__(self, entries: Iterable[CompendiumIndexEntry]):
        self.entries: List[CompendiumIndexEntry] = []
        for entry in entries:
            if not entry.uuid:
                logger.debug(f"Skipping index entry {entry.name!r} with no uuid")
                continue
            self.entries.append(entry)

    @staticmethod
    def name_matches(entry: CompendiumIndexEntry, feature: ClassFeature, identity: ClassIdentity) -> bool:
        feature_name = _normalize(feature.name)
        if entry.alias is not None:
            return feature_name == _normalize(entry.alias)
        entry_name = _normalize(entry.name)
        return (
            feature_name == entry_name
            or _normalize(f"{feature.name} ({identity.name})") == entry_name
        )

    @staticmethod
    def class_matches(entry: CompendiumIndexEntry, identity: ClassIdentity) -> bool:
        tags = entry.identity
        if tags is None:
            return False
        return (
            tags.class_name == identity.name
            or tags.parent_class_id == identity.id
            or tags.class_id == identity.id
        )

    def match(self, feature: ClassFeature, identity: ClassIdentity) -> Optional[CompendiumIndexEntry]:
        for entry in self.entries:
            if self.name_matches(entry, feature, identity) and self.class_matches(entry, identity):
                return entry
        logger.debug(f"No compendium match for {feature.name} ({identity.name})")
        return None
