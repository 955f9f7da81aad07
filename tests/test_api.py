"""
Tests for the REST API routes.

Uses FastAPI TestClient against a real DocumentStore backed by a temp file.
"""

import sys
from datetime import date, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from gtdflow.api.app import create_app
from gtdflow.storage import DocumentStorage, MarkdownFileStorage, StorageError
from gtdflow.store import DocumentStore


DOC = (
    "# 📥 Inbox\n"
    "- [ ] Buy milk #errand\n"
    "# Work\n"
    "- [ ] Write report !1 #urgent\n"
    "  - [ ] Outline\n"
    "## Client A\n"
    "- [x] Invoice @done(2025-03-13)\n"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _ReadOnlyStorage(DocumentStorage):
    def read(self):
        return DOC

    def write(self, text):
        raise StorageError("read-only")

    def describe(self):
        return "read-only"


@pytest.fixture
def doc_path(tmp_path):
    path = tmp_path / "gtd.md"
    path.write_text(DOC, encoding="utf-8")
    return path


@pytest.fixture
def store(doc_path):
    s = DocumentStore(MarkdownFileStorage(doc_path))
    s.load()
    return s


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


# ---------------------------------------------------------------------------
# Document sync
# ---------------------------------------------------------------------------

class TestMarkdownSync:
    def test_get(self, client):
        resp = client.get("/api/markdown")
        assert resp.status_code == 200
        assert resp.json() == {"markdown": DOC}
        assert resp.headers["cache-control"] == "no-store"

    def test_post_replaces_document(self, client, doc_path):
        resp = client.post("/api/markdown", json={"markdown": "# New\n"})
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert doc_path.read_text(encoding="utf-8") == "# New\n"
        assert client.get("/api/markdown").json() == {"markdown": "# New\n"}

    @pytest.mark.parametrize("body", [{}, {"markdown": 3}, {"text": "x"}])
    def test_post_requires_markdown(self, client, body):
        resp = client.post("/api/markdown", json=body)
        assert resp.status_code == 400
        assert resp.json() == {"detail": "markdown required"}

    def test_post_invalid_json(self, client):
        resp = client.post("/api/markdown", content=b"{oops", headers={"content-type": "application/json"})
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class TestQueries:
    def test_projects(self, client):
        data = client.get("/api/projects").json()
        assert [p["name"] for p in data] == ["📥 Inbox", "Work"]
        assert data[0]["display_name"] == "Inbox"
        assert data[1]["children"][0]["path"] == "Work / Client A"
        assert data[1]["incomplete_count"] == 1
        assert data[1]["tasks"][0]["subtasks"][0]["content"] == "Outline"

    def test_list_all(self, client):
        data = client.get("/api/tasks").json()
        assert [t["content"] for t in data] == ["Buy milk", "Write report", "Invoice"]
        assert data[1]["id"] == "task-3"
        assert data[1]["line_count"] == 2

    def test_list_filters(self, client):
        assert [t["content"] for t in client.get("/api/tasks?tag=urgent").json()] == ["Write report"]
        assert [t["content"] for t in client.get("/api/tasks?project=Work").json()] == [
            "Write report", "Invoice",
        ]
        assert [t["content"] for t in client.get("/api/tasks?q=MILK").json()] == ["Buy milk"]

    def test_invalid_time_filter(self, client):
        assert client.get("/api/tasks?time=yesterday").status_code == 400

    def test_get_task(self, client):
        assert client.get("/api/tasks/4").json()["content"] == "Outline"

    def test_get_task_not_found(self, client):
        assert client.get("/api/tasks/0").status_code == 404

    def test_stats(self, client):
        data = client.get("/api/stats").json()
        assert data["total"] == 3
        assert data["total_completed"] == 1
        assert data["completion_rate"] == 33
        assert len(data["weekly_trend"]) == 7

    def test_upcoming(self, client):
        assert client.get("/api/tasks/upcoming").json() == []

    def test_status(self, client):
        assert client.get("/api/status").json()["tasks"] == 3


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

class TestTaskMutations:
    def test_add(self, client, store):
        resp = client.post("/api/tasks", json={"text": "call mom"})
        assert resp.status_code == 201
        assert resp.json()["changed"] is True
        assert store.text.split("\n")[1] == "- [ ] call mom"

    def test_add_with_time_filter(self, client, store):
        client.post("/api/tasks", json={"text": "x", "time_filter": "today"})
        assert store.tree.all_tasks[0].date is not None

    def test_add_empty(self, client):
        assert client.post("/api/tasks", json={"text": "  "}).status_code == 400

    def test_add_keeps_one_line(self, client, store):
        client.post("/api/tasks", json={"text": "buy\n# Hijack"})
        assert store.text.split("\n")[1] == "- [ ] buy # Hijack"
        assert len(store.tree.projects) == 2

    def test_toggle(self, client, doc_path):
        resp = client.post("/api/tasks/1/toggle")
        assert resp.status_code == 200
        assert resp.json()["completed"] is True
        assert "- [x] Buy milk #errand" in doc_path.read_text(encoding="utf-8")

    def test_toggle_stale(self, client):
        assert client.post("/api/tasks/2/toggle").status_code == 404

    def test_update(self, client, store):
        resp = client.patch("/api/tasks/3", json={"priority": 0, "date": "2025-04-01", "tags": "a, b"})
        assert resp.status_code == 200
        assert store.text.split("\n")[3] == "- [ ] Write report @2025-04-01 #a #b"
        assert resp.json()["priority"] is None

    def test_update_subtask(self, client, store):
        client.patch("/api/tasks/4", json={"content": "Draft"})
        assert store.text.split("\n")[4] == "  - [ ] Draft"

    def test_update_invalid(self, client):
        assert client.patch("/api/tasks/3", json={"priority": 7}).status_code == 400
        assert client.patch("/api/tasks/3", json={"recurrence": "hourly"}).status_code == 400

    def test_update_date_phrase(self, client):
        resp = client.patch("/api/tasks/3", json={"date": "tomorrow 3pm"})
        assert resp.status_code == 200
        assert resp.json()["date"] == f"{(date.today() + timedelta(days=1)).isoformat()} 15:00"

    @pytest.mark.parametrize("body", [
        {"date": "next friday"},
        {"date": "2025-02-30"},
        {"done_date": "yesterday"},
        {"timezone": "Asia/Shanghai) #x"},
        {"timezone": "New York"},
    ])
    def test_update_rejects_unwritable_values(self, client, store, body):
        before = store.text
        assert client.patch("/api/tasks/3", json=body).status_code == 400
        assert store.text == before

    def test_update_not_found(self, client):
        assert client.patch("/api/tasks/99", json={"content": "x"}).status_code == 404

    def test_delete(self, client, store):
        resp = client.delete("/api/tasks/3")
        assert resp.status_code == 200
        assert resp.json()["task_count"] == 2
        assert "Outline" not in store.text

    def test_move(self, client, store):
        resp = client.post("/api/tasks/4/move", json={"target_line_index": 1})
        assert resp.status_code == 200
        assert store.text.split("\n")[1] == "- [ ] Outline"

    def test_move_out_of_range(self, client):
        assert client.post("/api/tasks/1/move", json={"target_line_index": 50}).status_code == 400

    def test_move_to_project(self, client, store):
        resp = client.post("/api/tasks/1/project", json={"project_path": "Work / Client A"})
        assert resp.status_code == 200
        assert store.tree.find_project("Work / Client A").tasks[0].content == "Buy milk"

    def test_move_to_missing_workflow_project(self, client, store):
        client.post("/api/tasks/1/project", json={"project_path": "⏳ Waiting For"})
        assert store.tree.find_project("⏳ Waiting For").tasks[0].content == "Buy milk"

    def test_move_to_unknown_project(self, client):
        resp = client.post("/api/tasks/1/project", json={"project_path": "Nope"})
        assert resp.status_code == 404

    def test_make_subtask(self, client, store):
        resp = client.post("/api/tasks/1/subtask", json={"target_line_index": 3})
        assert resp.status_code == 200
        report = store.tree.all_tasks[0]
        assert report.content == "Write report"
        assert [s.content for s in report.subtasks] == ["Buy milk", "Outline"]

    def test_make_subtask_self(self, client):
        assert client.post("/api/tasks/3/subtask", json={"target_line_index": 4}).status_code == 400

    def test_storage_failure_is_503(self):
        s = DocumentStore(_ReadOnlyStorage())
        s.load()
        c = TestClient(create_app(s))
        assert c.post("/api/tasks/1/toggle").status_code == 503
        assert s.text == DOC


class TestProjectMutations:
    def test_add_named(self, client, store):
        resp = client.post("/api/projects", json={"name": "Home"})
        assert resp.status_code == 201
        assert resp.json()["project"]["name"] == "Home"
        assert store.text.endswith("\n\n# Home")

    def test_add_generated(self, client):
        resp = client.post("/api/projects", json={})
        assert resp.json()["project"]["name"].startswith("New Project-")

    def test_rename(self, client, store):
        resp = client.patch("/api/projects", json={"path": "Work / Client A", "new_name": "Client B"})
        assert resp.status_code == 200
        assert "## Client B" in store.text

    def test_rename_missing(self, client):
        resp = client.patch("/api/projects", json={"path": "Nope", "new_name": "X"})
        assert resp.status_code == 404

    def test_delete(self, client, store):
        resp = client.delete("/api/projects", params={"path": "Work"})
        assert resp.status_code == 200
        assert store.text == "# 📥 Inbox\n- [ ] Buy milk #errand"

    def test_delete_missing(self, client):
        assert client.delete("/api/projects", params={"path": "Nope"}).status_code == 404
