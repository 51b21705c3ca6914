# taskboard/moves.py — Cross-column task moves
"""
A move rewrites a task's ``column_id`` and ``position`` (and ``updated_at``) in
one UPDATE statement. Nothing else in the target column is shifted; a task
landing on an occupied position shares it and is ordered by the tie-break key.

The target column may belong to another board: a task's board is always derived
through its column and is never stored on the task.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import BoardColumn, Task
from taskboard import positions, repository
from taskboard.errors import InvalidArgument
from taskboard.validation import check_position


async def ensure_target_column(db: AsyncSession, column_id: str, field: str = "target_column_id") -> None:
    """A dangling target reference is an argument error, not a missing write target"""
    if not isinstance(column_id, str) or not await repository.row_exists(db, BoardColumn, column_id):
        raise InvalidArgument(field, f"column does not exist: {column_id}")


async def resolve_target_position(db: AsyncSession, task_id: str, column_id: str,
                                  requested: Optional[int] = None) -> int:
    """Position for a task entering ``column_id``.

    An explicit position is used verbatim. Without one, a task already in the
    column keeps its place and any other task is appended after the column's
    current maximum.
    """
    await ensure_target_column(db, column_id, "column_id")
    if requested is not None:
        return requested

    stmt = select(Task.column_id, Task.position).where(Task.id == task_id)
    current = (await db.execute(stmt)).one_or_none()
    if current is not None and current.column_id == column_id:
        return current.position
    return await positions.next_task_position(db, column_id)


async def move_task(db: AsyncSession, task_id: str, target_column_id: str, target_position: int) -> Task:
    target_position = check_position(target_position, "target_position")
    if target_position is None:
        raise InvalidArgument("target_position", "is required")
    await ensure_target_column(db, target_column_id)

    values = {"column_id": target_column_id, "position": target_position}
    return await repository.update_row(
        db, Task, "Task", task_id, values,
        on_integrity_error=InvalidArgument("target_column_id", f"column does not exist: {target_column_id}"),
    )
