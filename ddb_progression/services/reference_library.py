"""
SRD Reference Library.

Reference class and subclass documents used to fill in scale values the
export does not describe. The JSON library loads every document under
SRD_DATA_PATH/classes and SRD_DATA_PATH/subclasses once and caches it for
the life of the process.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ddb_progression.config import get_settings
from ddb_progression.core.errors import ReferenceUnavailableError

logger = logging.getLogger("ddb_progression.reference_library")

# Subdirectory -> document type
REFERENCE_DIRECTORIES = {
    "classes": "class",
    "subclasses": "subclass",
}


def _index_entry(document: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "_id": document.get("_id"),
        "name": document.get("name"),
        "type": document.get("type"),
    }


class BaseReferenceLibrary:
    """Base reference library. Override get_index() and get_document()."""

    async def get_index(self) -> List[Dict[str, Any]]:
        """Get {_id, name, type} for every reference document."""
        raise NotImplementedError

    async def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Get a reference document by id."""
        raise NotImplementedError

    async def find_document(self, name: Optional[str], document_type: str = "class") -> Optional[Dict[str, Any]]:
        """
        Find a reference document by exact name.

        Args:
            name: Class or subclass name
            document_type: "class" or "subclass"

        Returns:
            The document, or None when the library has no such entry
        """
        if not name:
            return None
        for entry in await self.get_index():
            if entry.get("name") == name and entry.get("type") == document_type:
                return await self.get_document(entry["_id"])
        logger.debug(f"No reference {document_type} named {name}")
        return None


class InMemoryReferenceLibrary(BaseReferenceLibrary):
    """Reference library over documents held in memory."""

    def __init__(self, documents: Iterable[Dict[str, Any]] = ()):
        self._documents: Dict[str, Dict[str, Any]] = {}
        for document in documents:
            document_id = document.get("_id") or document.get("name")
            self._documents[document_id] = {"type": "class", **document, "_id": document_id}

    async def get_index(self) -> List[Dict[str, Any]]:
        return [_index_entry(document) for document in self._documents.values()]

    async def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        return self._documents.get(document_id)


class JsonReferenceLibrary(InMemoryReferenceLibrary):
    """Reference library loaded from a directory of JSON documents."""

    _instance: Optional["JsonReferenceLibrary"] = None

    def __init__(self, data_path: Optional[Path] = None, strict: bool = False):
        self.data_path = Path(data_path or get_settings().SRD_DATA_PATH)
        self.strict = strict
        super().__init__(self._load_all_data())

    @classmethod
    def get_instance(cls) -> "JsonReferenceLibrary":
        """Get the process-wide instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls):
        """Drop the cached instance (useful for testing)."""
        cls._instance = None

    def _load_json_file(self, filepath: Path) -> Optional[Dict[str, Any]]:
        """Load a single JSON document."""
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Error loading {filepath}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Skipping {filepath}: not a document")
            return None
        return data

    def _load_directory(self, subdir: str, document_type: str) -> List[Dict[str, Any]]:
        """Load all JSON documents from a subdirectory."""
        documents = []
        dir_path = self.data_path / subdir
        if not dir_path.is_dir():
            logger.info(f"Reference directory not found: {dir_path}")
            return documents

        for filepath in sorted(dir_path.glob("*.json")):
            document = self._load_json_file(filepath)
            if document is None:
                continue
            document.setdefault("_id", document.get("id") or filepath.stem)
            document.setdefault("type", document_type)
            documents.append(document)
        return documents

    def _load_all_data(self) -> List[Dict[str, Any]]:
        if not self.data_path.is_dir():
            if self.strict:
                raise ReferenceUnavailableError(str(self.data_path))
            logger.info(f"No reference data at {self.data_path}, SRD fallback disabled")
            return []

        documents = []
        for subdir, document_type in REFERENCE_DIRECTORIES.items():
            loaded = self._load_directory(subdir, document_type)
            logger.info(f"Loaded {len(loaded)} reference {subdir}")
            documents.extend(loaded)
        return documents


def get_reference_library() -> JsonReferenceLibrary:
    """Get the process-wide reference library."""
    return JsonReferenceLibrary.get_instance()
