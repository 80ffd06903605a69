"""
Assistant reply queue.

Producers (jarvis_reply.py) append entries to a JSON array under the sync
directory. The poller drains it once per cycle: every entry is applied (or
skipped when scoped to another sync file) and the whole file is then replaced
with ``[]``. Nothing is retried; an entry that matched no task is gone after
the pass.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict, Any

from .fileio import read_json, write_json_atomic
from .markers import COMPLETE_TAG, COMPLETE_MESSAGE
from .schema import (
    Board,
    Message,
    Task,
    COL_REVIEW,
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    make_id,
    utc_now,
)

logger = logging.getLogger(__name__)

QUEUE_FILENAME = "assistant-replies.json"


@dataclass
class ReplyQueueEntry:
    """One pending assistant action."""

    content: str
    id: str = field(default_factory=lambda: make_id("reply"))
    task_id: Optional[str] = None
    title: Optional[str] = None
    mark_complete: bool = False
    created_at: str = field(default_factory=utc_now)
    sync_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "title": self.title,
            "content": self.content,
            "markComplete": self.mark_complete,
            "createdAt": self.created_at,
            "syncFile": self.sync_file,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReplyQueueEntry":
        return cls(
            id=str(data.get("id") or ""),
            task_id=data.get("taskId") or None,
            title=data.get("title") or None,
            content=str(data.get("content") or ""),
            mark_complete=bool(data.get("markComplete", False)),
            created_at=str(data.get("createdAt") or ""),
            sync_file=data.get("syncFile") or None,
        )

    def targets(self, source_path: Path) -> bool:
        """False when the entry is scoped to a different sync file."""
        if not self.sync_file:
            return True
        return _abspath(self.sync_file) == _abspath(source_path)


def _abspath(path) -> Path:
    return Path(path).expanduser().resolve()


class ReplyQueue:
    """JSON-array queue file shared between reply producers and the poller."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_raw(self) -> List[Any]:
        if not self.path.exists():
            return []
        try:
            if self.path.stat().st_size == 0:
                return []
            raw = read_json(self.path)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable reply queue {self.path}: {e}")
            return []
        if not isinstance(raw, list):
            logger.warning(f"Ignoring reply queue {self.path}: expected a JSON array")
            return []
        return raw

    def load(self) -> List[ReplyQueueEntry]:
        """All queued entries; malformed files and entries read as empty."""
        return [ReplyQueueEntry.from_dict(e) for e in self._read_raw() if isinstance(e, dict)]

    def append(self, entry: ReplyQueueEntry) -> None:
        """Read the whole array, push one entry, write it back."""
        queue = self._read_raw()
        queue.append(entry.to_dict())
        write_json_atomic(self.path, queue)

    def clear(self) -> None:
        write_json_atomic(self.path, [])

    def drain(self, board: Board, source_path: Path, actions: Optional[List[str]] = None) -> bool:
        """
        Apply every queued entry to ``board`` and empty the queue.

        Returns True when at least one entry was applied. ``actions``, if
        given, collects a short description of each applied entry.
        """
        entries = self.load()
        if not entries:
            return False
        changed = self.apply(board, entries, source_path, actions)
        self.clear()
        logger.info(f"Drained {len(entries)} queued repl{'y' if len(entries) == 1 else 'ies'}")
        return changed

    def apply(self, board: Board, entries: List[ReplyQueueEntry], source_path: Path,
              actions: Optional[List[str]] = None) -> bool:
        """Apply ``entries`` to ``board`` without touching the queue file."""
        changed = False
        for entry in entries:
            if not entry.targets(source_path):
                logger.info(f"Dropping reply {entry.id}: scoped to {entry.sync_file}")
                continue

            board.add_message(Message.make(ROLE_ASSISTANT, entry.content))
            changed = True

            task = board.find_task(entry.task_id) or board.find_task_by_title(entry.title)
            if task is None:
                logger.info(f"Reply {entry.id} posted without a matching task")
                if actions is not None:
                    actions.append(f"reply:{entry.id}")
                continue

            if entry.mark_complete and board.find_column(COL_REVIEW) is not None:
                _complete(board, task)
                if actions is not None:
                    actions.append(f"complete:{task.id}")
            elif actions is not None:
                actions.append(f"reply:{task.id}")
        return changed


def _complete(board: Board, task: Task) -> None:
    task.add_tag(COMPLETE_TAG)
    board.move_task(task.id, COL_REVIEW)
    board.add_message(Message.make(ROLE_SYSTEM, COMPLETE_MESSAGE.format(title=task.title)))
