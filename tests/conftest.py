"""Shared fixtures for the kanban sync tests."""

import json
import sys
from pathlib import Path

import pytest

# Ensure the repo root (kanban_sync package + CLI scripts) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from kanban_sync.config import Config


def make_document(todo=(), progress=(), review=(), done=(), tasks=None, **top):
    """Single project/board document with the four standard columns."""
    tasks = tasks or {}
    doc = {
        "exportedAt": "2026-01-01T00:00:00.000Z",
        "projects": [
            {
                "id": "project-1",
                "name": "Jarvis Lab",
                "boards": [
                    {
                        "id": "board-1",
                        "name": "Research Sprint",
                        "columns": [
                            {"id": "col-todo", "title": "待办", "taskIds": list(todo), "wipLimit": 3},
                            {"id": "col-progress", "title": "进行中", "taskIds": list(progress), "wipLimit": 3},
                            {"id": "col-review", "title": "评审", "taskIds": list(review), "wipLimit": 3},
                            {"id": "col-done", "title": "完成", "taskIds": list(done)},
                        ],
                        "tasks": tasks,
                    }
                ],
            }
        ],
        "activeProjectId": "project-1",
        "activeBoardId": "board-1",
    }
    doc.update(top)
    return doc


def make_task(task_id, title=None, assignee="Jarvis", tags=None, **kw):
    task = {
        "id": task_id,
        "title": title or f"Task {task_id}",
        "description": "",
        "assignee": assignee,
        "priority": "medium",
        "tags": list(tags or []),
        "dueDate": "",
    }
    task.update(kw)
    return task


@pytest.fixture
def sync_env(tmp_path):
    """Config pointing at a board.json + .sync dir inside tmp_path."""
    cfg = Config(
        sync_file=str(tmp_path / "board.json"),
        sync_dir=str(tmp_path / ".sync"),
        interval_ms=10,
    )
    return cfg


def write_board(path: Path, doc: dict) -> None:
    path.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")
