# taskboard/stats.py — Board statistics derived from the current ordered state
"""
Two queries regardless of board size: one grouped outer-join count over the
board's columns, one MIN(created_at) over the tasks of those columns. Nothing
here writes or commits.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models import Board, BoardColumn, Task, utcnow
from taskboard import repository
from taskboard.errors import NotFound
from taskboard.positions import as_utc


@dataclass
class ColumnTaskCount:
    column_id: str
    column_title: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"column_id": self.column_id, "column_title": self.column_title, "count": self.count}


@dataclass
class BoardStats:
    total_tasks: int
    tasks_by_column: List[ColumnTaskCount] = field(default_factory=list)
    average_tasks_per_column: float = 0.0
    oldest_task_age: Optional[int] = None  # whole minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_tasks": self.total_tasks,
            "tasks_by_column": [c.to_dict() for c in self.tasks_by_column],
            "average_tasks_per_column": self.average_tasks_per_column,
            "oldest_task_age": self.oldest_task_age,
        }


def age_in_minutes(created_at: datetime, now: datetime) -> int:
    """Elapsed whole minutes, rounded down and never negative"""
    seconds = (as_utc(now) - as_utc(created_at)).total_seconds()
    return int(max(seconds, 0) // 60)


def summarise(counts: List[ColumnTaskCount], oldest_created_at: Optional[datetime],
              now: datetime) -> BoardStats:
    total = sum(c.count for c in counts)
    return BoardStats(
        total_tasks=total,
        tasks_by_column=counts,
        average_tasks_per_column=(total / len(counts)) if counts else 0.0,
        oldest_task_age=age_in_minutes(oldest_created_at, now) if oldest_created_at is not None else None,
    )


async def column_task_counts(db: AsyncSession, board_id: str) -> List[ColumnTaskCount]:
    """Live task count of every column of the board, zero-task columns included"""
    stmt = (
        select(BoardColumn.id, BoardColumn.title, func.count(Task.id))
        .outerjoin(Task, Task.column_id == BoardColumn.id)
        .where(BoardColumn.board_id == board_id)
        .group_by(BoardColumn.id, BoardColumn.title, BoardColumn.position, BoardColumn.created_at)
        .order_by(BoardColumn.position.asc(), BoardColumn.created_at.asc(), BoardColumn.id.asc())
    )
    result = await db.execute(stmt)
    return [ColumnTaskCount(column_id=cid, column_title=title, count=count or 0) for cid, title, count in result.all()]


async def oldest_task_created_at(db: AsyncSession, board_id: str) -> Optional[datetime]:
    stmt = (
        select(func.min(Task.created_at))
        .join(BoardColumn, Task.column_id == BoardColumn.id)
        .where(BoardColumn.board_id == board_id)
    )
    return (await db.execute(stmt)).scalar()


async def compute_board_stats(db: AsyncSession, board_id: str, now: Optional[datetime] = None) -> BoardStats:
    if not await repository.row_exists(db, Board, board_id):
        raise NotFound("Board", board_id)

    counts = await column_task_counts(db, board_id)
    oldest = await oldest_task_created_at(db, board_id)
    return summarise(counts, oldest, now or utcnow())
