"""
Tag vocabulary and message templates for agent-driven column moves.

Tags are stored in the board's display language (zh), matching the UI.
Completion is also recognised in English, case-insensitively.
"""
from enum import Enum
from typing import Iterable


AGENT_NAME = "jarvis"

READ_TAG = "已读"
REVIEWING_TAG = "审核中"
COMPLETE_TAG = "完成"

READ_MESSAGE = "已读任务：{title}，已移入进行中。"
COMPLETE_MESSAGE = "任务完成：{title}，已移入评审。"


class CompletionMarker(Enum):
    """Tags that mark a task as finished by the agent."""
    COMPLETE_ZH = "完成"
    DONE = "done"
    COMPLETED = "completed"

    @classmethod
    def normalized(cls) -> frozenset:
        return frozenset(normalize(m.value) for m in cls)


def normalize(value: str) -> str:
    """Case-insensitive comparison key."""
    return (value or "").strip().casefold()


def is_completion_tag(tag: str) -> bool:
    return normalize(tag) in CompletionMarker.normalized()


def has_completion_tag(tags: Iterable[str]) -> bool:
    return any(is_completion_tag(t) for t in tags)


def is_agent_assignee(assignee: str) -> bool:
    """Agent-owned tasks: assignee contains "jarvis" in any casing."""
    return AGENT_NAME in normalize(assignee)
