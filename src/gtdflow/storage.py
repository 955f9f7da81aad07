"""
Storage backends for the document text.

Provides an abstract interface so the store never cares where the text
lives. Two implementations:

    MarkdownFileStorage - the document as a plain .md file
    JSONStoreStorage    - a ``{"markdown": ...}`` JSON file, the format the
                          sync server keeps on disk

Both write the whole document on every save (last writer wins).
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)


class StorageError(Exception):
    """Reading or writing the backing document failed."""


class DocumentStorage(ABC):
    """Abstract interface for loading and saving the full document text."""

    @abstractmethod
    def read(self) -> Optional[str]:
        """
        Load the document.

        Returns:
            The stored text, or None when nothing has been stored yet

        Raises:
            StorageError: The backing store exists but cannot be read
        """
        pass

    @abstractmethod
    def write(self, text: str) -> None:
        """
        Replace the stored document with ``text``.

        Raises:
            StorageError: The text was not saved
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable location, used in logs and status output."""
        pass


def _atomic_write(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(data, encoding="utf-8")
    os.replace(tmp, path)


class MarkdownFileStorage(DocumentStorage):
    """The document stored verbatim in a markdown file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

    def write(self, text: str) -> None:
        try:
            _atomic_write(self.path, text)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def describe(self) -> str:
        return f"markdown:{self.path}"


class JSONStoreStorage(DocumentStorage):
    """The document wrapped in a JSON object under the ``markdown`` key."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not hold a JSON object")
        markdown = data.get("markdown")
        if markdown is None:
            return None
        if not isinstance(markdown, str):
            raise StorageError(f"{self.path}: 'markdown' is not a string")
        return markdown

    def write(self, text: str) -> None:
        try:
            _atomic_write(self.path, json.dumps({"markdown": text}, ensure_ascii=False, indent=2))
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def describe(self) -> str:
        return f"json:{self.path}"


STORAGE_FORMATS = {
    "markdown": MarkdownFileStorage,
    "json": JSONStoreStorage,
}


def open_storage(path: Path, fmt: str = "markdown") -> DocumentStorage:
    """Build the storage backend for ``fmt`` ("markdown" or "json")."""
    try:
        cls = STORAGE_FORMATS[fmt]
    except KeyError:
        raise ValueError(f"Unknown storage format '{fmt}'") from None
    return cls(path)
