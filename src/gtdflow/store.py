"""
Thread-safe holder of the single active document.

Design:
    Source of truth - the document text (one in-memory copy)
    Parse cache     - DocumentTree of that exact text, rebuilt on every change
    Backend         - DocumentStorage, written through on every change

All reads and writes acquire _lock (threading.RLock), so the REST thread
and the MCP loop never interleave a mutation with a parse.
"""

import logging
import threading
from datetime import date, datetime
from typing import Any, Optional, Tuple

from .engine.mutations import apply_mutation
from .models.task import DocumentTree
from .models.workflow import DEFAULT_LANG, default_template, normalize_lang
from .parsers.document_parser import parse_content
from .storage import DocumentStorage, StorageError

log = logging.getLogger(__name__)

# Mutations whose output depends on the display language
_LANG_AWARE_OPS = {"add_task", "add_project"}


class DocumentStore:
    """The active document snapshot plus write-through persistence."""

    def __init__(
        self,
        storage: DocumentStorage,
        lang: str = DEFAULT_LANG,
        default_timezone: str = "UTC",
    ) -> None:
        self._lock = threading.RLock()
        self.storage = storage
        self.lang = normalize_lang(lang)
        self.default_timezone = default_timezone
        self._text = ""
        self._tree = parse_content("", self.lang)
        self._loaded_at: Optional[datetime] = None
        self._last_saved_at: Optional[datetime] = None
        self._mutation_count = 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Read the document from storage.

        An empty backend starts from the default template, which is not
        saved until the first change.

        Raises:
            StorageError: The backend could not be read
        """
        text = self.storage.read()
        if text is None:
            log.info("No document at %s, starting from template", self.storage.describe())
            text = default_template(self.lang)
        with self._lock:
            self._set(text)
            self._loaded_at = datetime.now()
        log.info("Loaded %d lines from %s", text.count("\n") + 1, self.storage.describe())

    def _set(self, text: str) -> None:
        self._text = text
        self._tree = parse_content(text, self.lang)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def text(self) -> str:
        with self._lock:
            return self._text

    @property
    def tree(self) -> DocumentTree:
        with self._lock:
            return self._tree

    def snapshot(self) -> Tuple[str, DocumentTree]:
        """Text and parse taken together, so positions in one match the other."""
        with self._lock:
            return self._text, self._tree

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _save(self, text: str) -> None:
        try:
            self.storage.write(text)
        except StorageError:
            log.exception("Failed to save document to %s", self.storage.describe())
            raise
        self._set(text)
        self._last_saved_at = datetime.now()

    def apply(self, op: str, today: Optional[date] = None, **kwargs: Any) -> bool:
        """
        Run a mutation against the current snapshot and persist the result.

        Args:
            op: Mutation name (see engine.mutations.MUTATIONS)
            today: Reference day for add_task date phrases
            **kwargs: Arguments of the mutation

        Returns:
            True if the document changed, False when the mutation was a no-op

        Raises:
            StorageError: Saving failed; the previous snapshot stays active
            ValueError: ``op`` is not a known mutation
        """
        if op in _LANG_AWARE_OPS:
            kwargs.setdefault("lang", self.lang)
        if op == "add_task" and today is not None:
            kwargs["today"] = today

        with self._lock:
            new_text = apply_mutation(self._text, op, tree=self._tree, **kwargs)
            if new_text == self._text:
                log.info("Mutation %s left the document unchanged", op)
                return False
            self._save(new_text)
            self._mutation_count += 1
        log.info("Applied %s", op)
        return True

    def replace_text(self, text: str) -> None:
        """Overwrite the whole document (sync upload; last writer wins)."""
        with self._lock:
            self._save(text)
        log.info("Document replaced (%d chars)", len(text))

    # ------------------------------------------------------------------
    # Status / diagnostics
    # ------------------------------------------------------------------

    def status(self) -> dict:
        with self._lock:
            return {
                "storage": self.storage.describe(),
                "lang": self.lang,
                "default_timezone": self.default_timezone,
                "lines": self._text.count("\n") + 1 if self._text else 0,
                "tasks": len(self._tree.all_tasks),
                "projects": sum(1 for _ in self._tree.iter_projects()),
                "mutations": self._mutation_count,
                "loaded_at": self._loaded_at.isoformat() if self._loaded_at else None,
                "last_saved_at": self._last_saved_at.isoformat() if self._last_saved_at else None,
            }
