"""
Content Library Index - Data Models.

Index entries are read-only references into the feature compendium; the
importer tags each with the class it was created for.
"""
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class IdentityTags(BaseModel):
    """Importer identity flags carried by a compendium entry."""
    feature_name: Optional[str] = Field(None, alias="featureName")
    class_name: Optional[str] = Field(None, alias="class")
    class_id: Optional[int] = Field(None, alias="classId")
    parent_class_id: Optional[int] = Field(None, alias="parentClassId")
    sub_class: Optional[str] = Field(None, alias="subClass")

    class Config:
        populate_by_name = True
        extra = "ignore"


class CompendiumIndexEntry(BaseModel):
    """One entry of a content-library index."""
    name: str
    uuid: str
    id: Optional[str] = Field(None, alias="_id")
    identity: Optional[IdentityTags] = None

    class Config:
        populate_by_name = True

    @property
    def alias(self) -> Optional[str]:
        """Explicit feature name the entry should be matched by, if any."""
        if self.identity is None:
            return None
        return self.identity.feature_name

    @classmethod
    def from_index(cls, raw: Dict[str, Any]) -> "CompendiumIndexEntry":
        """
        Build an entry from a raw index record.

        Accepts both nested flags ({"flags": {"ddbimporter": {...}}}) and the
        dotted keys index queries return ({"flags.ddbimporter.classId": ...}).
        """
        tags = None
        flags = raw.get("flags")
        if isinstance(flags, dict) and isinstance(flags.get("ddbimporter"), dict):
            tags = dict(flags["ddbimporter"])
        prefix = "flags.ddbimporter."
        dotted = {key[len(prefix):]: value for key, value in raw.items() if key.startswith(prefix)}
        if dotted:
            tags = {**(tags or {}), **dotted}

        return cls(
            name=raw.get("name", ""),
            uuid=raw.get("uuid", ""),
            id=raw.get("_id"),
            identity=IdentityTags.model_validate(tags) if tags is not None else None,
        )
