"""
Board document schema.

The sync file is a single JSON object shared between the web UI's export path
and the sync agent:

  BoardDocument → Project[] → Board[] → Column[] (task-id order) + {id: Task}

Unknown keys at every level are kept in ``extra`` and written back verbatim,
so fields owned by the UI (theme, lang, ...) survive a round-trip.
"""
import math
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Sequence, TypeVar


COL_TODO = "col-todo"
COL_PROGRESS = "col-progress"
COL_REVIEW = "col-review"
COL_DONE = "col-done"

MESSAGE_LOG_LIMIT = 50

# what the UI assumes for a task exported without a priority
DEFAULT_PRIORITY = "medium"

ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Exceptions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class SyncError(Exception):
    """Base class for sync agent errors."""
    pass


class MalformedDocument(SyncError):
    """Raised when the sync file parses as JSON but not as a board document."""
    pass


class NotFound(SyncError):
    """Raised when an active project/board cannot be resolved."""
    pass


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

T = TypeVar("T")


def utc_now(seconds: Optional[float] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision (matches the UI's toISOString)."""
    moment = datetime.now(timezone.utc) if seconds is None else datetime.fromtimestamp(seconds, timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_id(prefix: str) -> str:
    """Sortable unique ID: ms-precision timestamp + random hex."""
    ts = int(time.time() * 1000)
    return f"{prefix}-{ts}-{uuid.uuid4().hex[:8]}"


def resolve_active(candidates: Sequence[T], active_id: Optional[str]) -> T:
    """
    Pick the active element of a sequence.

    Returns the element whose ``id`` equals ``active_id``; if there is none
    (or ``active_id`` is empty) the first element. Raises NotFound when the
    sequence is empty.
    """
    if not candidates:
        raise NotFound(f"nothing to resolve for id {active_id!r}")
    if active_id:
        for candidate in candidates:
            if getattr(candidate, "id", None) == active_id:
                return candidate
    return candidates[0]


def _split(data: Dict[str, Any], known: Sequence[str]) -> Dict[str, Any]:
    """Return the keys of ``data`` not listed in ``known``."""
    return {k: v for k, v in data.items() if k not in known}


def _expect(value: Any, kind: type, where: str):
    if not isinstance(value, kind):
        raise MalformedDocument(f"{where}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _member(data: Dict[str, Any], key: str, kind: type, where: str):
    """``data[key]`` checked against ``kind``; missing or null gives an empty ``kind``."""
    value = data.get(key)
    if value is None:
        return kind()
    return _expect(value, kind, where)


def _dedupe(values) -> List[str]:
    seen = []
    for v in values:
        v = str(v)
        if v not in seen:
            seen.append(v)
    return seen


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Data model
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass
class Task:
    """A single card."""

    id: str
    title: str = ""
    description: str = ""
    assignee: str = ""
    priority: str = DEFAULT_PRIORITY
    tags: List[str] = field(default_factory=list)
    due_date: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    _KEYS = ("id", "title", "description", "assignee", "priority", "tags", "dueDate")

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def add_tag(self, tag: str) -> bool:
        """Add a tag unless already present. Returns True if added."""
        if tag in self.tags:
            return False
        self.tags.append(tag)
        return True

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "assignee": self.assignee,
            "priority": self.priority,
            "tags": list(self.tags),
            "dueDate": self.due_date,
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], task_id: str = "") -> "Task":
        _expect(data, dict, f"task {task_id}")
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            tags = [tags]
        return cls(
            id=str(data.get("id") or task_id),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            assignee=str(data.get("assignee") or ""),
            priority=DEFAULT_PRIORITY if data.get("priority") is None else str(data["priority"]),
            tags=_dedupe(tags),
            due_date=str(data.get("dueDate") or ""),
            extra=_split(data, cls._KEYS),
        )


@dataclass
class Message:
    """One entry of a board's message log."""

    id: str
    role: str
    content: str
    created_at: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    _KEYS = ("id", "role", "content", "createdAt")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "createdAt": self.created_at,
        }
        data.update(self.extra)
        return data

    @classmethod
    def make(cls, role: str, content: str) -> "Message":
        return cls(id=make_id("msg"), role=role, content=content, created_at=utc_now())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        _expect(data, dict, "message")
        return cls(
            id=str(data.get("id") or ""),
            role=str(data.get("role") or "system"),
            content=str(data.get("content") or ""),
            created_at=str(data.get("createdAt") or ""),
            extra=_split(data, cls._KEYS),
        )


@dataclass
class Column:
    """A workflow stage. ``task_ids`` defines membership and display order."""

    id: str
    title: str = ""
    task_ids: List[str] = field(default_factory=list)
    wip_limit: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    _KEYS = ("id", "title", "taskIds", "wipLimit")

    def has_wip_limit(self) -> bool:
        return isinstance(self.wip_limit, int) and self.wip_limit > 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "taskIds": list(self.task_ids),
        }
        if self.wip_limit is not None:
            data["wipLimit"] = self.wip_limit
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        _expect(data, dict, "column")
        task_ids = _member(data, "taskIds", list, f"column {data.get('id')} taskIds")
        wip = data.get("wipLimit")
        # NaN / Infinity are valid to json.load but not a limit
        if isinstance(wip, bool) or not isinstance(wip, (int, float)) or not math.isfinite(wip):
            wip = None
        else:
            wip = int(wip)
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            task_ids=[str(t) for t in task_ids],
            wip_limit=wip,
            extra=_split(data, cls._KEYS),
        )


@dataclass
class Board:
    """Columns, the task mapping and a bounded, most-recent-first message log."""

    id: str
    name: str = ""
    columns: List[Column] = field(default_factory=list)
    tasks: Dict[str, Task] = field(default_factory=dict)
    messages: List[Message] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)
    _has_messages_key: bool = field(default=False, repr=False)

    _KEYS = ("id", "name", "columns", "tasks", "messages")

    # ── Lookups ──────────────────────────────────────────

    def find_task(self, task_id: Optional[str]) -> Optional[Task]:
        if not task_id:
            return None
        return self.tasks.get(task_id)

    def find_task_by_title(self, title: Optional[str]) -> Optional[Task]:
        """Exact title match across all tasks on the board."""
        if not title:
            return None
        for task in self.tasks.values():
            if task.title == title:
                return task
        return None

    def find_column(self, column_id: str) -> Optional[Column]:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def column_of(self, task_id: str) -> Optional[Column]:
        for column in self.columns:
            if task_id in column.task_ids:
                return column
        return None

    def column_tasks(self, column: Column) -> List[Task]:
        """Tasks of a column in display order; dangling ids are skipped."""
        return [self.tasks[tid] for tid in column.task_ids if tid in self.tasks]

    # ── Mutations ────────────────────────────────────────

    def move_task(self, task_id: str, column_id: str) -> bool:
        """
        Move a task to the front of ``column_id``.

        The id is removed from every column first, so a task never ends up in
        two columns even if the board was already inconsistent.
        """
        target = self.find_column(column_id)
        if target is None:
            return False
        for column in self.columns:
            column.task_ids = [tid for tid in column.task_ids if tid != task_id]
        target.task_ids.insert(0, task_id)
        return True

    def add_message(self, message: Message) -> None:
        """Prepend to the message log, keeping at most MESSAGE_LOG_LIMIT entries."""
        self.messages.insert(0, message)
        del self.messages[MESSAGE_LOG_LIMIT:]

    # ── Serialization ────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "columns": [c.to_dict() for c in self.columns],
            "tasks": {tid: t.to_dict() for tid, t in self.tasks.items()},
        }
        if self.messages or self._has_messages_key:
            data["messages"] = [m.to_dict() for m in self.messages]
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        _expect(data, dict, "board")
        board_id = str(data.get("id") or "")
        columns = _member(data, "columns", list, f"board {board_id} columns")
        tasks = _member(data, "tasks", dict, f"board {board_id} tasks")
        messages = data.get("messages")
        if messages is not None:
            _expect(messages, list, f"board {board_id} messages")
        return cls(
            id=board_id,
            name=str(data.get("name") or ""),
            columns=[Column.from_dict(c) for c in columns],
            tasks={str(tid): Task.from_dict(t, str(tid)) for tid, t in tasks.items()},
            messages=[Message.from_dict(m) for m in (messages or [])][:MESSAGE_LOG_LIMIT],
            extra=_split(data, cls._KEYS),
            _has_messages_key=messages is not None,
        )


@dataclass
class Project:
    id: str
    name: str = ""
    boards: List[Board] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    _KEYS = ("id", "name", "boards")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "boards": [b.to_dict() for b in self.boards],
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        _expect(data, dict, "project")
        boards = _member(data, "boards", list, f"project {data.get('id')} boards")
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            boards=[Board.from_dict(b) for b in boards],
            extra=_split(data, cls._KEYS),
        )


@dataclass
class BoardDocument:
    """Root object of the sync file."""

    projects: List[Project] = field(default_factory=list)
    active_project_id: Optional[str] = None
    active_board_id: Optional[str] = None
    exported_at: str = ""
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    _KEYS = ("projects", "activeProjectId", "activeBoardId", "exportedAt")

    def active_project(self) -> Project:
        return resolve_active(self.projects, self.active_project_id)

    def active_board(self) -> Board:
        return resolve_active(self.active_project().boards, self.active_board_id)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.exported_at:
            data["exportedAt"] = self.exported_at
        data["projects"] = [p.to_dict() for p in self.projects]
        if self.active_project_id is not None:
            data["activeProjectId"] = self.active_project_id
        if self.active_board_id is not None:
            data["activeBoardId"] = self.active_board_id
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoardDocument":
        _expect(data, dict, "document")
        projects = _member(data, "projects", list, "projects")
        active_project_id = data.get("activeProjectId")
        active_board_id = data.get("activeBoardId")
        return cls(
            projects=[Project.from_dict(p) for p in projects],
            active_project_id=str(active_project_id) if active_project_id is not None else None,
            active_board_id=str(active_board_id) if active_board_id is not None else None,
            exported_at=str(data.get("exportedAt") or ""),
            extra=_split(data, cls._KEYS),
        )


def parse_document(raw: Any) -> BoardDocument:
    """Validate a decoded JSON value and build a BoardDocument (MalformedDocument on failure)."""
    return BoardDocument.from_dict(raw)


def find_active_board(document: BoardDocument) -> Optional[Board]:
    """Active board via the fallback rule, or None when nothing resolves."""
    try:
        return document.active_board()
    except NotFound:
        return None


def find_active_project(document: BoardDocument) -> Optional[Project]:
    try:
        return document.active_project()
    except NotFound:
        return None
