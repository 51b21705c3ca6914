"""Tests for board statistics."""
from datetime import timedelta

import pytest

from taskboard import stats
from taskboard.errors import NotFound
from tests.conftest import FIXED_NOW, insert_task, minutes_ago


@pytest.mark.asyncio
async def test_stats_counts_every_column(service, db_session, board):
    c1 = await service.create_column(board.id, "c1")
    c2 = await service.create_column(board.id, "c2")
    c3 = await service.create_column(board.id, "c3")
    for i in range(3):
        await insert_task(db_session, c1.id, f"c1-{i}", i, minutes_ago(10 + i))
    for i in range(5):
        await insert_task(db_session, c3.id, f"c3-{i}", i, minutes_ago(20 + i))

    result = await service.board_stats(board.id, now=FIXED_NOW)

    assert result.total_tasks == 8
    assert result.average_tasks_per_column == pytest.approx(8 / 3)
    assert [(c.column_id, c.column_title, c.count) for c in result.tasks_by_column] == [
        (c1.id, "c1", 3),
        (c2.id, "c2", 0),
        (c3.id, "c3", 5),
    ]
    assert result.oldest_task_age == 24


@pytest.mark.asyncio
async def test_stats_empty_board(service, board):
    result = await service.board_stats(board.id)
    assert result.total_tasks == 0
    assert result.average_tasks_per_column == 0
    assert result.tasks_by_column == []
    assert result.oldest_task_age is None


@pytest.mark.asyncio
async def test_stats_columns_without_tasks(service, board, columns):
    result = await service.board_stats(board.id)
    assert result.total_tasks == 0
    assert result.average_tasks_per_column == 0
    assert [c.count for c in result.tasks_by_column] == [0, 0, 0]
    assert result.oldest_task_age is None


@pytest.mark.asyncio
async def test_stats_follow_column_order(service, board, columns):
    await service.update_column(columns[2].id, position=-1)
    result = await service.board_stats(board.id)
    assert [c.column_title for c in result.tasks_by_column] == ["Done", "To Do", "Doing"]


@pytest.mark.asyncio
async def test_oldest_task_age_rounds_down(service, db_session, board, columns):
    await insert_task(db_session, columns[0].id, "Recent", 0, FIXED_NOW - timedelta(minutes=3))
    await insert_task(db_session, columns[1].id, "Ancient", 0, FIXED_NOW - timedelta(minutes=90, seconds=59))
    result = await service.board_stats(board.id, now=FIXED_NOW)
    assert result.oldest_task_age == 90


@pytest.mark.asyncio
async def test_oldest_task_age_scoped_to_board(service, db_session, board, columns):
    other = await service.create_board("Other")
    other_column = await service.create_column(other.id, "Inbox")
    await insert_task(db_session, other_column.id, "Elsewhere", 0, minutes_ago(500))
    await insert_task(db_session, columns[0].id, "Here", 0, minutes_ago(7))

    result = await service.board_stats(board.id, now=FIXED_NOW)
    assert result.total_tasks == 1
    assert result.oldest_task_age == 7


@pytest.mark.asyncio
async def test_stats_is_a_pure_read(service, db_session, board, columns):
    task = await insert_task(db_session, columns[0].id, "Untouched", 3, minutes_ago(15))
    before = [(c.id, c.position) for c in await service.list_columns(board.id)]

    await service.board_stats(board.id, now=FIXED_NOW)

    fresh = await service.get_task(task.id)
    assert fresh.position == 3
    assert fresh.updated_at.replace(tzinfo=None) == minutes_ago(15).replace(tzinfo=None)
    assert [(c.id, c.position) for c in await service.list_columns(board.id)] == before


@pytest.mark.asyncio
async def test_stats_missing_board(service):
    with pytest.raises(NotFound):
        await service.board_stats("missing")


def test_age_in_minutes_never_negative():
    assert stats.age_in_minutes(FIXED_NOW + timedelta(minutes=5), FIXED_NOW) == 0


def test_age_in_minutes_accepts_naive_store_values():
    naive = (FIXED_NOW - timedelta(minutes=61)).replace(tzinfo=None)
    assert stats.age_in_minutes(naive, FIXED_NOW) == 61


def test_board_stats_to_dict():
    result = stats.summarise(
        [stats.ColumnTaskCount("c1", "Todo", 2), stats.ColumnTaskCount("c2", "Done", 1)],
        None,
        FIXED_NOW,
    )
    assert result.to_dict() == {
        "total_tasks": 3,
        "tasks_by_column": [
            {"column_id": "c1", "column_title": "Todo", "count": 2},
            {"column_id": "c2", "column_title": "Done", "count": 1},
        ],
        "average_tasks_per_column": 1.5,
        "oldest_task_age": None,
    }
