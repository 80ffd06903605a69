#!/usr/bin/env python3
"""
Jarvis Kanban — reply submission

Queues an assistant reply for the sync agent to post on the board, optionally
moving the task to review.

The target task is resolved here, at submission time, against the active
board: exact id, exact title, title substring, then the most recent Jarvis
task in progress. The poller only re-checks id and exact title.

Usage:
    python jarvis_reply.py --file board.json --message "Draft ready" --taskId task-1
    python jarvis_reply.py --file board.json --message "Done" --title "论文清单" --complete
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from kanban_sync.fileio import read_json
from kanban_sync.markers import is_agent_assignee, normalize
from kanban_sync.replies import QUEUE_FILENAME, ReplyQueue, ReplyQueueEntry
from kanban_sync.schema import (
    BoardDocument,
    MalformedDocument,
    Task,
    COL_PROGRESS,
    find_active_board,
    parse_document,
)

logger = logging.getLogger("jarvis-reply")

USAGE = (
    "Usage: jarvis_reply.py --file <sync.json> --message <text> "
    "[--taskId <id> | --title <title>] [--complete]"
)


def resolve_target(document: BoardDocument, task_id: Optional[str] = None,
                   title: Optional[str] = None) -> Optional[Task]:
    """Best-effort match of a reply to a task on the active board."""
    board = find_active_board(document)
    if board is None:
        return None

    if task_id and board.find_task(task_id):
        return board.find_task(task_id)

    if title:
        wanted = normalize(title)
        for task in board.tasks.values():
            if normalize(task.title) == wanted:
                return task
        for task in board.tasks.values():
            if wanted in normalize(task.title):
                return task

    progress = board.find_column(COL_PROGRESS)
    if progress is not None:
        candidates = [t for t in board.column_tasks(progress) if is_agent_assignee(t.assignee)]
        if candidates:
            return candidates[-1]

    return None


def load_document(path: Path) -> Optional[BoardDocument]:
    if not path.exists():
        return None
    try:
        return parse_document(read_json(path))
    except (OSError, ValueError, MalformedDocument) as e:
        logger.warning(f"Cannot read {path} for task lookup: {e}")
        return None


def touch(path: Path) -> None:
    """Bump the sync file's mtime so the poller picks up the queued reply."""
    try:
        os.utime(path, None)
    except OSError as e:
        logger.warning(f"Could not touch {path}: {e}")


def build_entry(sync_file: str, message: str, task_id: Optional[str] = None,
                title: Optional[str] = None, complete: bool = False) -> ReplyQueueEntry:
    document = load_document(Path(sync_file))
    resolved = resolve_target(document, task_id, title) if document else None
    return ReplyQueueEntry(
        task_id=resolved.id if resolved else task_id,
        title=resolved.title if resolved else title,
        content=message,
        mark_complete=complete,
        sync_file=str(Path(sync_file).expanduser().resolve()),
    )


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Queue a Jarvis reply for the sync agent")
    ap.add_argument("--file", default=None, help="Board sync file (or SYNC_FILE)")
    ap.add_argument("--message", default=None, help="Reply text")
    ap.add_argument("--taskId", dest="task_id", default=None, help="Target task id")
    ap.add_argument("--title", default=None, help="Target task title (exact or partial)")
    ap.add_argument("--complete", action="store_true", help="Mark the task complete (→ review)")
    ap.add_argument("--sync-dir", default=".sync", help="Queue directory (default ./.sync)")
    args = ap.parse_args(argv)

    sync_file = args.file or os.environ.get("SYNC_FILE")
    if not sync_file or not args.message:
        print(USAGE, file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [jarvis-reply] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    entry = build_entry(sync_file, args.message, args.task_id, args.title, args.complete)
    queue = ReplyQueue(Path(args.sync_dir).expanduser().resolve() / QUEUE_FILENAME)
    queue.append(entry)
    if Path(sync_file).exists():
        touch(Path(sync_file))

    print("[jarvis-reply] queued")
    return 0


if __name__ == "__main__":
    sys.exit(main())
