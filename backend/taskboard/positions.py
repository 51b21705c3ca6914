# taskboard/positions.py — Position allocation and repair for ordered siblings
"""
Siblings (columns of a board, tasks of a column) carry an integer ``position``.

Inserts never shift other siblings: an omitted position appends after the
current maximum, an explicit one is stored verbatim. Two siblings may therefore
share a position; every read breaks the tie by ``created_at`` and then ``id``.
Contiguous 0..n-1 positions only come from the explicit repair operations.
"""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models import BoardColumn, Task, utcnow
from taskboard.errors import InvalidArgument
from taskboard.validation import MAX_POSITION

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def allocate(existing_positions: Iterable[int], requested: Optional[int] = None) -> int:
    """Pick the position for a new sibling"""
    if requested is not None:
        return requested
    current_max = max(existing_positions, default=None)
    return next_after(current_max)


def next_after(current_max: Optional[int]) -> int:
    if current_max is None:
        return 0
    if current_max >= MAX_POSITION:
        raise InvalidArgument("position", "no room to append after the last sibling; renumber first")
    return current_max + 1


def as_utc(dt: Optional[datetime]) -> datetime:
    """SQLite hands timestamps back naive; they were written as UTC"""
    if dt is None:
        return _EPOCH
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def sort_key(entity) -> Tuple[int, datetime, str]:
    """In-memory equivalent of ORDER BY position, created_at, id"""
    return (entity.position, as_utc(entity.created_at), entity.id)


def ordered(entities: Iterable) -> List:
    return sorted(entities, key=sort_key)


def compact(ordered_ids: Sequence[str]) -> Dict[str, int]:
    """Map each id to its rank, preserving the given order"""
    return {entity_id: rank for rank, entity_id in enumerate(ordered_ids)}


# ============================================================
# STORE-BACKED HELPERS
# ============================================================

async def next_column_position(db: AsyncSession, board_id: str) -> int:
    stmt = select(func.max(BoardColumn.position)).where(BoardColumn.board_id == board_id)
    return next_after((await db.execute(stmt)).scalar())


async def next_task_position(db: AsyncSession, column_id: str) -> int:
    stmt = select(func.max(Task.position)).where(Task.column_id == column_id)
    return next_after((await db.execute(stmt)).scalar())


async def allocate_column_position(db: AsyncSession, board_id: str, requested: Optional[int] = None) -> int:
    if requested is not None:
        return allocate((), requested)
    return await next_column_position(db, board_id)


async def allocate_task_position(db: AsyncSession, column_id: str, requested: Optional[int] = None) -> int:
    if requested is not None:
        return allocate((), requested)
    return await next_task_position(db, column_id)


def apply_ranks(entities: Sequence) -> int:
    """Rewrite positions of already-ordered siblings to 0..n-1.

    Only entities whose position actually changes are touched (and have their
    updated_at refreshed); the caller flushes and commits. Returns the number
    of entities rewritten.
    """
    ranks = compact([e.id for e in entities])
    changed = 0
    now = utcnow()
    for entity in entities:
        rank = ranks[entity.id]
        if entity.position == rank:
            continue
        entity.position = rank
        entity.updated_at = now
        changed += 1
    return changed
