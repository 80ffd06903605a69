"""Default board document, identical to the one the web UI starts with."""
from typing import Dict

from .schema import (
    Board,
    BoardDocument,
    Column,
    Project,
    Task,
    COL_TODO,
    COL_PROGRESS,
    COL_REVIEW,
    COL_DONE,
    utc_now,
)

COLUMN_TITLES: Dict[str, Dict[str, str]] = {
    "zh": {COL_TODO: "待办", COL_PROGRESS: "进行中", COL_REVIEW: "评审", COL_DONE: "完成"},
    "en": {COL_TODO: "To Do", COL_PROGRESS: "In Progress", COL_REVIEW: "Review", COL_DONE: "Done"},
}


def default_board(lang: str = "zh") -> Board:
    titles = COLUMN_TITLES.get(lang, COLUMN_TITLES["zh"])
    task1 = Task(
        id="task-1",
        title="整理扩散模型论文清单",
        description="优先CVPR/NeurIPS，标注代码与数据集",
        assignee="Jarvis",
        priority="high",
        tags=["CV", "Diffusion"],
    )
    task2 = Task(
        id="task-2",
        title="看板UI交互验证",
        description="确认拖拽与主题切换的体验",
        assignee="Jarvis",
        priority="medium",
        tags=["Product"],
    )
    return Board(
        id="board-1",
        name="Research Sprint",
        columns=[
            Column(id=COL_TODO, title=titles[COL_TODO], task_ids=[task1.id], wip_limit=3),
            Column(id=COL_PROGRESS, title=titles[COL_PROGRESS], task_ids=[task2.id], wip_limit=3),
            Column(id=COL_REVIEW, title=titles[COL_REVIEW], wip_limit=3),
            Column(id=COL_DONE, title=titles[COL_DONE]),
        ],
        tasks={task1.id: task1, task2.id: task2},
    )


def default_document(lang: str = "zh") -> BoardDocument:
    project = Project(id="project-1", name="Jarvis Lab", boards=[default_board(lang)])
    return BoardDocument(
        projects=[project],
        active_project_id=project.id,
        active_board_id=project.boards[0].id,
        exported_at=utc_now(),
        extra={"lang": lang if lang in COLUMN_TITLES else "zh"},
    )
