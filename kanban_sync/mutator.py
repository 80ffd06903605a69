"""
Board mutator: one deterministic pass over the active board.

Order of steps:
  1. to-do → in-progress for Jarvis tasks not yet tagged 已读
  2. in-progress → review for tasks carrying a completion tag
  3. queued assistant replies

Each step walks a snapshot of a single column, so a task advances at most one
stage per pass. The "已读" / "审核中" tags make steps 1 and 2 idempotent.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .markers import (
    READ_TAG,
    REVIEWING_TAG,
    READ_MESSAGE,
    COMPLETE_MESSAGE,
    has_completion_tag,
    is_agent_assignee,
)
from .replies import ReplyQueue, ReplyQueueEntry
from .schema import (
    Board,
    BoardDocument,
    Message,
    COL_TODO,
    COL_PROGRESS,
    COL_REVIEW,
    ROLE_SYSTEM,
    find_active_board,
)

logger = logging.getLogger(__name__)


@dataclass
class MutationResult:
    document: BoardDocument
    changed: bool = False
    actions: List[str] = field(default_factory=list)
    replies: List[ReplyQueueEntry] = field(default_factory=list)


def _advance(board: Board, from_column: str, to_column: str, predicate, tag: str, template: str,
             skip: Iterable[str] = ()) -> List[str]:
    source = board.find_column(from_column)
    if source is None or board.find_column(to_column) is None:
        return []

    moved = []
    for task_id in list(source.task_ids):
        task = board.find_task(task_id)
        if task is None or task_id in skip or not predicate(task):
            continue
        task.add_tag(tag)
        board.move_task(task_id, to_column)
        board.add_message(Message.make(ROLE_SYSTEM, template.format(title=task.title)))
        moved.append(task_id)
    return moved


def triage_todo(board: Board) -> List[str]:
    """Move unread Jarvis tasks from to-do to the front of in-progress."""
    return _advance(
        board,
        COL_TODO,
        COL_PROGRESS,
        lambda t: is_agent_assignee(t.assignee) and not t.has_tag(READ_TAG),
        READ_TAG,
        READ_MESSAGE,
    )


def triage_progress(board: Board, skip: Iterable[str] = ()) -> List[str]:
    """
    Move completion-tagged tasks from in-progress to the front of review.

    Ids in ``skip`` (tasks that just arrived from to-do) wait for the next pass.
    """
    return _advance(
        board,
        COL_PROGRESS,
        COL_REVIEW,
        lambda t: has_completion_tag(t.tags),
        REVIEWING_TAG,
        COMPLETE_MESSAGE,
        skip=frozenset(skip),
    )


def mutate(document: BoardDocument, queue: Optional[ReplyQueue] = None,
           source_path: Optional[Path] = None, clear_queue: bool = True) -> MutationResult:
    """
    Apply auto-triage and queued replies to the document's active board.

    The document is modified in place. With no resolvable board nothing
    happens and ``changed`` is False (the queue is left untouched too).

    With ``clear_queue=False`` the consumed entries are returned in
    ``replies`` and the caller empties the queue once the board is saved.
    """
    result = MutationResult(document=document)
    board = find_active_board(document)
    if board is None:
        logger.debug("No active board; nothing to mutate")
        return result

    read = triage_todo(board)
    for task_id in read:
        result.actions.append(f"read:{task_id}")
    for task_id in triage_progress(board, skip=read):
        result.actions.append(f"review:{task_id}")

    replies_applied = False
    if queue is not None and source_path is not None:
        if clear_queue:
            replies_applied = queue.drain(board, Path(source_path), result.actions)
        else:
            result.replies = queue.load()
            replies_applied = queue.apply(board, result.replies, Path(source_path), result.actions)

    result.changed = bool(result.actions) or replies_applied
    return result
