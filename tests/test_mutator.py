"""
Tests for the board mutator: auto-triage, idempotence, single-column invariant.
"""

import json

import pytest

from conftest import make_document, make_task
from kanban_sync.markers import (
    CompletionMarker,
    READ_TAG,
    REVIEWING_TAG,
    has_completion_tag,
    is_agent_assignee,
    is_completion_tag,
)
from kanban_sync.mutator import mutate, triage_progress, triage_todo
from kanban_sync.replies import ReplyQueue
from kanban_sync.schema import parse_document


def _columns(document):
    board = document.active_board()
    return {c.id: list(c.task_ids) for c in board.columns}


def _assert_single_membership(document):
    for project in document.projects:
        for board in project.boards:
            for task_id in board.tasks:
                holders = sum(c.task_ids.count(task_id) for c in board.columns)
                assert holders <= 1, f"{task_id} appears in {holders} columns"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Markers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestMarkers:

    @pytest.mark.parametrize("tag", ["完成", "done", "DONE", "Completed", " done "])
    def test_completion_tags(self, tag):
        assert is_completion_tag(tag)

    @pytest.mark.parametrize("tag", ["doing", "review", "", "已读"])
    def test_non_completion_tags(self, tag):
        assert not is_completion_tag(tag)

    def test_vocabulary(self):
        assert {m.value for m in CompletionMarker} == {"完成", "done", "completed"}

    def test_has_completion_tag(self):
        assert has_completion_tag(["CV", "Done"])
        assert not has_completion_tag([])

    @pytest.mark.parametrize("assignee,expected", [
        ("Jarvis", True),
        ("jarvis-bot", True),
        ("Ask JARVIS", True),
        ("Ko先生", False),
        ("", False),
    ])
    def test_agent_assignee(self, assignee, expected):
        assert is_agent_assignee(assignee) is expected


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Auto-triage
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestTriage:

    def test_jarvis_todo_moves_to_progress(self):
        doc = parse_document(make_document(
            todo=["t1"], progress=["t0"],
            tasks={"t1": make_task("t1", title="整理论文"), "t0": make_task("t0", assignee="Ko先生")},
        ))
        result = mutate(doc)

        assert result.changed
        assert _columns(doc)["col-progress"] == ["t1", "t0"]
        assert _columns(doc)["col-todo"] == []
        board = doc.active_board()
        assert READ_TAG in board.tasks["t1"].tags
        assert board.messages[0].role == "system"
        assert board.messages[0].content == "已读任务：整理论文，已移入进行中。"
        assert result.actions == ["read:t1"]

    def test_other_assignees_untouched(self):
        doc = parse_document(make_document(todo=["t1"], tasks={"t1": make_task("t1", assignee="Ko先生")}))
        result = mutate(doc)
        assert not result.changed
        assert _columns(doc)["col-todo"] == ["t1"]

    def test_already_read_task_stays(self):
        doc = parse_document(make_document(todo=["t1"], tasks={"t1": make_task("t1", tags=[READ_TAG])}))
        assert not mutate(doc).changed
        assert _columns(doc)["col-todo"] == ["t1"]

    def test_completed_progress_moves_to_review(self):
        doc = parse_document(make_document(
            progress=["t1"], tasks={"t1": make_task("t1", title="UI验证", assignee="Ko先生", tags=["Done"])},
        ))
        result = mutate(doc)

        assert result.changed
        assert _columns(doc)["col-review"] == ["t1"]
        board = doc.active_board()
        assert REVIEWING_TAG in board.tasks["t1"].tags
        assert board.messages[0].content == "任务完成：UI验证，已移入评审。"

    def test_one_stage_per_pass(self):
        """A todo task that is also tagged done only reaches in-progress this pass."""
        doc = parse_document(make_document(todo=["t1"], tasks={"t1": make_task("t1", tags=["done"])}))
        mutate(doc)
        assert _columns(doc)["col-progress"] == ["t1"]

        mutate(doc)
        assert _columns(doc)["col-review"] == ["t1"]

    def test_walk_preserves_column_order(self):
        doc = parse_document(make_document(
            todo=["a", "b", "c"],
            tasks={k: make_task(k) for k in "abc"},
        ))
        assert triage_todo(doc.active_board()) == ["a", "b", "c"]
        # each is prepended, so the last walked ends up first
        assert _columns(doc)["col-progress"] == ["c", "b", "a"]

    def test_missing_target_column_skips(self):
        raw = make_document(progress=["t1"], tasks={"t1": make_task("t1", tags=["done"])})
        cols = raw["projects"][0]["boards"][0]["columns"]
        raw["projects"][0]["boards"][0]["columns"] = [c for c in cols if c["id"] != "col-review"]
        doc = parse_document(raw)
        assert triage_progress(doc.active_board()) == []
        assert not mutate(doc).changed

    def test_dangling_task_id_ignored(self):
        doc = parse_document(make_document(todo=["ghost"]))
        assert not mutate(doc).changed


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Properties
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestMutatorProperties:

    def _busy_document(self):
        tasks = {
            "t1": make_task("t1"),
            "t2": make_task("t2", tags=["完成"]),
            "t3": make_task("t3", assignee="Ko先生", tags=["completed"]),
            "t4": make_task("t4", assignee="Ko先生"),
        }
        return parse_document(make_document(todo=["t1", "t4"], progress=["t2", "t3"], tasks=tasks))

    def test_second_pass_is_noop(self):
        doc = self._busy_document()
        assert mutate(doc).changed
        snapshot = json.dumps(doc.to_dict(), sort_keys=True)

        second = mutate(doc)
        assert not second.changed
        assert second.actions == []
        assert json.dumps(doc.to_dict(), sort_keys=True) == snapshot

    def test_single_column_membership(self):
        doc = self._busy_document()
        mutate(doc)
        _assert_single_membership(doc)
        mutate(doc)
        _assert_single_membership(doc)

    def test_dangling_active_board_uses_first(self):
        raw = make_document(todo=["t1"], tasks={"t1": make_task("t1")}, activeBoardId="nope")
        doc = parse_document(raw)
        assert mutate(doc).changed
        assert _columns(doc)["col-progress"] == ["t1"]

    def test_no_board_reports_unchanged(self, tmp_path):
        queue = ReplyQueue(tmp_path / "q.json")
        (tmp_path / "q.json").write_text('[{"content": "hi"}]')
        doc = parse_document({"projects": []})
        assert not mutate(doc, queue, tmp_path / "board.json").changed
        # queue untouched when no board resolves
        assert json.loads((tmp_path / "q.json").read_text()) == [{"content": "hi"}]

    def test_deferred_clear_returns_consumed_replies(self, tmp_path):
        queue = ReplyQueue(tmp_path / "q.json")
        queue.path.write_text('[{"id": "r1", "content": "hi", "taskId": "t1"}]')
        doc = parse_document(make_document(progress=["t1"], tasks={"t1": make_task("t1")}))

        result = mutate(doc, queue, tmp_path / "board.json", clear_queue=False)

        assert result.changed
        assert [r.id for r in result.replies] == ["r1"]
        assert result.actions == ["reply:t1"]
        # caller owns the clear
        assert len(queue.load()) == 1
