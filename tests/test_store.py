"""
Tests for storage.py, store.py and config.py.

Uses real files in tmp_path; storage failures are simulated with a fake
backend.
"""

import json
import logging
import sys
from pathlib import Path

# Add src to path so imports work without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from gtdflow.config import DEFAULT_API_PORT, load_settings
from gtdflow.models.workflow import default_template
from gtdflow.storage import (
    DocumentStorage,
    JSONStoreStorage,
    MarkdownFileStorage,
    StorageError,
    open_storage,
)
from gtdflow.store import DocumentStore


class _FailingStorage(DocumentStorage):
    """Reads a fixed document; every write fails."""

    def __init__(self, text: str):
        self.text = text

    def read(self):
        return self.text

    def write(self, text):
        raise StorageError("disk full")

    def describe(self):
        return "failing"


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------

class TestMarkdownFileStorage:
    def test_missing_file_reads_none(self, tmp_path):
        assert MarkdownFileStorage(tmp_path / "gtd.md").read() is None

    def test_write_then_read(self, tmp_path):
        storage = MarkdownFileStorage(tmp_path / "nested" / "gtd.md")
        storage.write("# A\n- [ ] 中文\n")
        assert storage.read() == "# A\n- [ ] 中文\n"
        assert (tmp_path / "nested" / "gtd.md").read_text(encoding="utf-8") == "# A\n- [ ] 中文\n"

    def test_unreadable_path_raises(self, tmp_path):
        directory = tmp_path / "dir.md"
        directory.mkdir()
        with pytest.raises(StorageError):
            MarkdownFileStorage(directory).read()


class TestJSONStoreStorage:
    def test_missing_file_reads_none(self, tmp_path):
        assert JSONStoreStorage(tmp_path / "store.json").read() is None

    def test_round_trip_format(self, tmp_path):
        path = tmp_path / "store.json"
        JSONStoreStorage(path).write("# A\n")
        assert json.loads(path.read_text(encoding="utf-8")) == {"markdown": "# A\n"}
        assert JSONStoreStorage(path).read() == "# A\n"

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            JSONStoreStorage(path).read()

    def test_non_string_markdown_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text('{"markdown": 3}', encoding="utf-8")
        with pytest.raises(StorageError):
            JSONStoreStorage(path).read()

    def test_missing_key_reads_none(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{}", encoding="utf-8")
        assert JSONStoreStorage(path).read() is None


class TestOpenStorage:
    def test_formats(self, tmp_path):
        assert isinstance(open_storage(tmp_path / "a.md"), MarkdownFileStorage)
        assert isinstance(open_storage(tmp_path / "a.json", "json"), JSONStoreStorage)

    def test_unknown_format(self, tmp_path):
        with pytest.raises(ValueError):
            open_storage(tmp_path / "a", "yaml")


# ---------------------------------------------------------------------------
# DocumentStore
# ---------------------------------------------------------------------------

@pytest.fixture
def store(tmp_path):
    path = tmp_path / "gtd.md"
    path.write_text("# Inbox\n- [ ] a\n- [ ] b\n", encoding="utf-8")
    s = DocumentStore(MarkdownFileStorage(path))
    s.load()
    return s


class TestDocumentStore:
    def test_load(self, store):
        assert store.text == "# Inbox\n- [ ] a\n- [ ] b\n"
        assert [t.content for t in store.tree.all_tasks] == ["a", "b"]

    def test_load_empty_uses_template(self, tmp_path):
        s = DocumentStore(MarkdownFileStorage(tmp_path / "new.md"), lang="zh")
        s.load()
        assert s.text == default_template("zh")
        assert not (tmp_path / "new.md").exists()

    def test_apply_writes_through(self, store, tmp_path):
        assert store.apply("toggle", line_index=1) is True
        assert store.text == "# Inbox\n- [x] a\n- [ ] b\n"
        assert store.tree.all_tasks[0].completed is True
        assert (tmp_path / "gtd.md").read_text(encoding="utf-8") == store.text

    def test_noop_returns_false(self, store, tmp_path):
        assert store.apply("toggle", line_index=0) is False
        assert store.status()["mutations"] == 0

    def test_snapshot_is_consistent(self, store):
        text, tree = store.snapshot()
        assert tree.all_tasks[1].line_index == text.split("\n").index("- [ ] b")

    def test_lang_passed_to_add_project(self, tmp_path):
        s = DocumentStore(MarkdownFileStorage(tmp_path / "x.md"), lang="zh")
        s.replace_text("# A")
        s.apply("add_project")
        assert s.tree.projects[-1].name.startswith("新建项目-")

    def test_add_task_with_fixed_today(self, store):
        from datetime import date

        store.apply("add_task", input_text="x tomorrow", today=date(2025, 3, 14))
        assert store.text.split("\n")[1] == "- [ ] x @2025-03-15"

    def test_replace_text(self, store, tmp_path):
        store.replace_text("# New\n")
        assert (tmp_path / "gtd.md").read_text(encoding="utf-8") == "# New\n"
        assert store.tree.projects[0].name == "New"

    def test_failed_write_keeps_snapshot(self, caplog):
        s = DocumentStore(_FailingStorage("- [ ] a"))
        s.load()
        with caplog.at_level(logging.ERROR):
            with pytest.raises(StorageError):
                s.apply("toggle", line_index=0)
        assert s.text == "- [ ] a"
        assert s.tree.all_tasks[0].completed is False
        assert "Failed to save" in caplog.text

    def test_unknown_op(self, store):
        with pytest.raises(ValueError):
            store.apply("explode")

    def test_status(self, store):
        store.apply("delete_task", line_index=2)
        status = store.status()
        assert status["tasks"] == 1
        assert status["projects"] == 1
        assert status["mutations"] == 1
        assert status["last_saved_at"] is not None


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.store_format == "markdown"
        assert settings.lang == "en"
        assert settings.timezone == "UTC"
        assert settings.api_enabled is True
        assert settings.api_port == DEFAULT_API_PORT
        assert settings.document_path.name == "store.md"

    def test_overrides(self, tmp_path):
        settings = load_settings({
            "GTDFLOW_DOCUMENT": str(tmp_path / "doc.json"),
            "GTDFLOW_STORE_FORMAT": "json",
            "GTDFLOW_LANG": "zh",
            "GTDFLOW_TIMEZONE": "Asia/Shanghai",
            "API_ENABLED": "no",
            "API_HOST": "127.0.0.1",
            "API_PORT": "8123",
        })
        assert settings.document_path == tmp_path / "doc.json"
        assert settings.store_format == "json"
        assert settings.lang == "zh"
        assert settings.timezone == "Asia/Shanghai"
        assert settings.api_enabled is False
        assert settings.api_host == "127.0.0.1"
        assert settings.api_port == 8123

    def test_invalid_values_fall_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = load_settings({
                "GTDFLOW_STORE_FORMAT": "yaml",
                "GTDFLOW_LANG": "fr",
                "GTDFLOW_TIMEZONE": "Mars/Olympus",
                "API_PORT": "http",
            })
        assert settings.store_format == "markdown"
        assert settings.lang == "en"
        assert settings.timezone == "UTC"
        assert settings.api_port == DEFAULT_API_PORT
        assert "GTDFLOW_LANG" in caplog.text
