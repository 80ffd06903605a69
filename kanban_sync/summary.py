"""Derived artifacts: the JSON mirror and the markdown summary of the active board."""
from typing import List, Optional, Tuple

from .fileio import dump_json
from .schema import BoardDocument, Task, find_active_board, find_active_project, utc_now


def format_task(task: Task) -> str:
    """``- <title> @<assignee> · <priority> · <dueDate>``, empty segments omitted."""
    who = f" @{task.assignee}" if task.assignee else ""
    priority = f" · {task.priority}" if task.priority else ""
    due = f" · {task.due_date}" if task.due_date else ""
    return f"- {task.title}{who}{priority}{due}"


def render_summary(document: BoardDocument, fallback_time: Optional[str] = None) -> str:
    """Markdown summary. ``fallback_time`` stands in for a missing exportedAt (default: now)."""
    project = find_active_project(document)
    board = find_active_board(document)
    exported_at = document.exported_at or fallback_time or utc_now()

    lines: List[str] = [
        "# Sync Summary",
        f"- Project: {project.name if project else 'N/A'}",
        f"- Board: {board.name if board else 'N/A'}",
        f"- Updated: {exported_at}",
        "",
        "## Columns",
    ]

    if board is None or not board.columns:
        lines.append("- No data")
        return "\n".join(lines)

    for column in board.columns:
        tasks = board.column_tasks(column)
        lines.append(f"### {column.title} ({len(tasks)})")
        if not tasks:
            lines.append("- (empty)")
        else:
            lines.extend(format_task(t) for t in tasks)
        lines.append("")

    return "\n".join(lines)


def render(document: BoardDocument, fallback_time: Optional[str] = None) -> Tuple[str, str]:
    """Return (latest.json text, summary.md text)."""
    return dump_json(document.to_dict()), render_summary(document, fallback_time)
