# taskboard/tree.py — Fully materialised Board → Columns → Tasks snapshot
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models import Board, BoardColumn, Task, utcnow
from taskboard import repository, stats
from taskboard.positions import as_utc
from taskboard.stats import BoardStats


@dataclass
class ColumnNode:
    column: BoardColumn
    tasks: List[Task] = field(default_factory=list)

    @property
    def task_count(self) -> int:
        return len(self.tasks)


@dataclass
class BoardTree:
    board: Board
    columns: List[ColumnNode] = field(default_factory=list)
    stats: Optional[BoardStats] = None

    def find_column(self, column_id: str) -> Optional[ColumnNode]:
        for node in self.columns:
            if node.column.id == column_id:
                return node
        return None


async def load_board_tree(db: AsyncSession, board_id: str, now: Optional[datetime] = None) -> Optional[BoardTree]:
    """Board with its ordered columns and their ordered tasks; None if the board is gone"""
    board = await repository.get_board(db, board_id)
    if board is None:
        return None

    columns = await repository.list_columns_for_board(db, board_id)
    nodes: Dict[str, ColumnNode] = {c.id: ColumnNode(column=c) for c in columns}
    # Tasks arrive in (position, created_at, id) order, so appending keeps each column sorted
    for task in await repository.list_tasks_for_board(db, board_id):
        node = nodes.get(task.column_id)
        if node is not None:
            node.tasks.append(task)

    ordered_nodes = [nodes[c.id] for c in columns]
    counts = [
        stats.ColumnTaskCount(column_id=n.column.id, column_title=n.column.title, count=n.task_count)
        for n in ordered_nodes
    ]
    oldest = min((t.created_at for n in ordered_nodes for t in n.tasks), key=as_utc, default=None)
    return BoardTree(
        board=board,
        columns=ordered_nodes,
        stats=stats.summarise(counts, oldest, now or utcnow()),
    )
