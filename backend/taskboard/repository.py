# taskboard/repository.py — CRUD over boards, columns-within-board and tasks-within-column
"""
Every function takes the request's ``AsyncSession`` and re-reads what it needs;
nothing is cached between calls. Mutations issue their statements and commit
once. Validation always runs before the first statement.

Existence of the row being updated or deleted is decided by the statement's
own row count, so there is no window between a check and the write.
"""
from typing import List, Optional

from sqlalchemy import select, func, update, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Board, BoardColumn, Task, utcnow
from taskboard import positions
from taskboard.errors import BoardError, NotFound, InvalidArgument
from taskboard.validation import clean_title, clean_description, check_position, clean_query


# ============================================================
# INTERNAL HELPERS
# ============================================================

def _column_order():
    return (BoardColumn.position.asc(), BoardColumn.created_at.asc(), BoardColumn.id.asc())


def _task_order():
    return (Task.position.asc(), Task.created_at.asc(), Task.id.asc())


async def row_exists(db: AsyncSession, model, entity_id: str) -> bool:
    stmt = select(model.id).where(model.id == entity_id)
    return (await db.execute(stmt)).scalar_one_or_none() is not None


async def _reload(db: AsyncSession, model, entity_id: str):
    """Fetch a row fresh from the store, overwriting any stale identity-map copy"""
    stmt = select(model).where(model.id == entity_id).execution_options(populate_existing=True)
    return (await db.execute(stmt)).scalar_one_or_none()


async def _commit(db: AsyncSession, on_integrity_error: BoardError) -> None:
    """Commit, mapping a foreign-key failure (parent deleted mid-request) to a core error"""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise on_integrity_error from exc


async def _close_unchanged(db: AsyncSession) -> None:
    """End a transaction that matched no row.

    Nothing was written, so committing is a no-op; unlike a rollback it leaves
    the caller's loaded objects unexpired.
    """
    await db.commit()


async def update_row(db: AsyncSession, model, entity: str, entity_id: str, values: dict,
                     on_integrity_error: Optional[BoardError] = None):
    """Single-statement partial update; refreshes updated_at unconditionally"""
    values["updated_at"] = utcnow()
    # Fresh copies come from _reload, so the identity map is not synchronised here
    stmt = (
        update(model)
        .where(model.id == entity_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    try:
        result = await db.execute(stmt)
    except IntegrityError as exc:
        await db.rollback()
        raise (on_integrity_error or NotFound(entity, entity_id)) from exc
    if result.rowcount == 0:
        await _close_unchanged(db)
        raise NotFound(entity, entity_id)
    await _commit(db, on_integrity_error or NotFound(entity, entity_id))
    row = await _reload(db, model, entity_id)
    if row is None:
        raise NotFound(entity, entity_id)
    return row


async def _delete_row(db: AsyncSession, model, entity: str, entity_id: str) -> bool:
    """Delete by id; children go with it through the store's ON DELETE CASCADE"""
    stmt = delete(model).where(model.id == entity_id).execution_options(synchronize_session=False)
    result = await db.execute(stmt)
    if result.rowcount == 0:
        await _close_unchanged(db)
        raise NotFound(entity, entity_id)
    await db.commit()
    return True


# ============================================================
# BOARDS
# ============================================================

async def list_boards(db: AsyncSession) -> List[Board]:
    stmt = select(Board).order_by(Board.created_at.asc(), Board.id.asc())
    return list((await db.execute(stmt)).scalars().all())


async def get_board(db: AsyncSession, board_id: str) -> Optional[Board]:
    return await _reload(db, Board, board_id)


async def create_board(db: AsyncSession, title: str) -> Board:
    title = clean_title(title)
    now = utcnow()
    board = Board(title=title, created_at=now, updated_at=now)
    db.add(board)
    await db.commit()
    return board


async def update_board(db: AsyncSession, board_id: str, title: str) -> Board:
    values = {"title": clean_title(title)}
    return await update_row(db, Board, "Board", board_id, values)


async def delete_board(db: AsyncSession, board_id: str) -> bool:
    return await _delete_row(db, Board, "Board", board_id)


# ============================================================
# COLUMNS
# ============================================================

async def list_columns_for_board(db: AsyncSession, board_id: str) -> List[BoardColumn]:
    stmt = select(BoardColumn).where(BoardColumn.board_id == board_id).order_by(*_column_order())
    return list((await db.execute(stmt)).scalars().all())


async def get_column(db: AsyncSession, column_id: str) -> Optional[BoardColumn]:
    return await _reload(db, BoardColumn, column_id)


async def create_column(db: AsyncSession, board_id: str, title: str, position: Optional[int] = None) -> BoardColumn:
    title = clean_title(title)
    position = check_position(position)
    if not await row_exists(db, Board, board_id):
        raise NotFound("Board", board_id)

    now = utcnow()
    column = BoardColumn(
        board_id=board_id,
        title=title,
        position=await positions.allocate_column_position(db, board_id, position),
        created_at=now,
        updated_at=now,
    )
    db.add(column)
    await _commit(db, NotFound("Board", board_id))
    return column


async def update_column(db: AsyncSession, column_id: str, title: Optional[str] = None,
                        position: Optional[int] = None) -> BoardColumn:
    values = {}
    if title is not None:
        values["title"] = clean_title(title)
    if position is not None:
        values["position"] = check_position(position)
    return await update_row(db, BoardColumn, "Column", column_id, values)


async def delete_column(db: AsyncSession, column_id: str) -> bool:
    return await _delete_row(db, BoardColumn, "Column", column_id)


async def renumber_columns(db: AsyncSession, board_id: str) -> List[BoardColumn]:
    """Repair: compact a board's column positions to 0..n-1 keeping their order"""
    if not await row_exists(db, Board, board_id):
        raise NotFound("Board", board_id)
    columns = await list_columns_for_board(db, board_id)
    if positions.apply_ranks(columns):
        await db.commit()
    return columns


# ============================================================
# TASKS
# ============================================================

async def list_tasks_for_column(db: AsyncSession, column_id: str) -> List[Task]:
    stmt = select(Task).where(Task.column_id == column_id).order_by(*_task_order())
    return list((await db.execute(stmt)).scalars().all())


async def list_tasks_for_board(db: AsyncSession, board_id: str) -> List[Task]:
    """All tasks of a board's columns in one query, in per-column order"""
    stmt = (
        select(Task)
        .join(BoardColumn, Task.column_id == BoardColumn.id)
        .where(BoardColumn.board_id == board_id)
        .order_by(*_task_order())
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_task(db: AsyncSession, task_id: str) -> Optional[Task]:
    return await _reload(db, Task, task_id)


async def count_tasks_for_column(db: AsyncSession, column_id: str) -> int:
    stmt = select(func.count(Task.id)).where(Task.column_id == column_id)
    return (await db.execute(stmt)).scalar() or 0


async def list_sibling_tasks(db: AsyncSession, task_id: str) -> List[Task]:
    """The other tasks sharing this task's column, in column order"""
    column_id = (await db.execute(select(Task.column_id).where(Task.id == task_id))).scalar_one_or_none()
    if column_id is None:
        return []
    stmt = (
        select(Task)
        .where(Task.column_id == column_id, Task.id != task_id)
        .order_by(*_task_order())
    )
    return list((await db.execute(stmt)).scalars().all())


async def create_task(db: AsyncSession, column_id: str, title: str, description: Optional[str] = None,
                      position: Optional[int] = None) -> Task:
    title = clean_title(title)
    description = clean_description(description)
    position = check_position(position)
    if not await row_exists(db, BoardColumn, column_id):
        raise NotFound("Column", column_id)

    now = utcnow()
    task = Task(
        column_id=column_id,
        title=title,
        description=description,
        position=await positions.allocate_task_position(db, column_id, position),
        created_at=now,
        updated_at=now,
    )
    db.add(task)
    await _commit(db, NotFound("Column", column_id))
    return task


async def update_task(db: AsyncSession, task_id: str, title: Optional[str] = None,
                      description: Optional[str] = None, column_id: Optional[str] = None,
                      position: Optional[int] = None) -> Task:
    """Partial update. A blank description clears it; a column_id makes this a move."""
    values = {}
    if title is not None:
        values["title"] = clean_title(title)
    if description is not None:
        values["description"] = clean_description(description)
    position = check_position(position)

    if column_id is not None:
        from taskboard import moves
        values["column_id"] = column_id
        values["position"] = await moves.resolve_target_position(db, task_id, column_id, position)
        return await update_row(
            db, Task, "Task", task_id, values,
            on_integrity_error=InvalidArgument("column_id", f"column does not exist: {column_id}"),
        )

    if position is not None:
        values["position"] = position
    return await update_row(db, Task, "Task", task_id, values)


async def delete_task(db: AsyncSession, task_id: str) -> bool:
    return await _delete_row(db, Task, "Task", task_id)


async def renumber_tasks(db: AsyncSession, column_id: str) -> List[Task]:
    """Repair: compact a column's task positions to 0..n-1 keeping their order"""
    if not await row_exists(db, BoardColumn, column_id):
        raise NotFound("Column", column_id)
    tasks = await list_tasks_for_column(db, column_id)
    if positions.apply_ranks(tasks):
        await db.commit()
    return tasks


# ============================================================
# SEARCH
# ============================================================

async def search_tasks(db: AsyncSession, query: str, board_id: Optional[str] = None) -> List[Task]:
    """Case-insensitive substring match on title or description"""
    query = clean_query(query)
    stmt = select(Task).where(
        or_(
            Task.title.icontains(query, autoescape=True),
            Task.description.icontains(query, autoescape=True),
        )
    )
    if board_id is not None:
        stmt = stmt.join(BoardColumn, Task.column_id == BoardColumn.id).where(BoardColumn.board_id == board_id)
    stmt = stmt.order_by(Task.created_at.asc(), Task.id.asc())
    return list((await db.execute(stmt)).scalars().all())
