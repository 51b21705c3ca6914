"""Tests for the service facade: search, board tree and observers."""
import logging

import pytest

from taskboard.errors import NotFound, InvalidArgument
from taskboard.observability import LoggingObserver, OperationOutcome, OperationObserver
from taskboard.service import BoardService
from tests.conftest import FIXED_NOW, insert_task, minutes_ago


# ============================================================
# SEARCH
# ============================================================

@pytest.mark.asyncio
async def test_search_scoped_to_board(service, board, columns):
    other = await service.create_board("Other")
    other_column = await service.create_column(other.id, "Inbox")

    by_title = await service.create_task(columns[0].id, "Fix AUTH redirect")
    by_description = await service.create_task(columns[2].id, "Login", description="OAuth flow")
    await service.create_task(columns[1].id, "Unrelated", description="billing")
    await service.create_task(other_column.id, "auth on the other board")

    found = await service.search_tasks("auth", board_id=board.id)
    assert {t.id for t in found} == {by_title.id, by_description.id}


@pytest.mark.asyncio
async def test_search_without_board_spans_all_boards(service, columns):
    other = await service.create_board("Other")
    other_column = await service.create_column(other.id, "Inbox")
    here = await service.create_task(columns[0].id, "Auth here")
    there = await service.create_task(other_column.id, "auth there")

    found = await service.search_tasks("AUTH")
    assert [t.id for t in found] == [here.id, there.id]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(service, columns):
    literal = await service.create_task(columns[0].id, "Reach 100% coverage")
    await service.create_task(columns[0].id, "Reach 1000 users")
    found = await service.search_tasks("100%")
    assert [t.id for t in found] == [literal.id]


@pytest.mark.asyncio
async def test_search_folds_non_ascii_case(service, board, columns):
    umlaut = await service.create_task(columns[0].id, "\u00c4UTH \u00dcberpr\u00fcfung")
    await service.create_task(columns[1].id, "Plain auth")

    assert [t.id for t in await service.search_tasks("\u00e4uth", board_id=board.id)] == [umlaut.id]
    assert [t.id for t in await service.search_tasks("\u00fcberpr\u00fcfung")] == [umlaut.id]


@pytest.mark.asyncio
async def test_search_query_is_normalised_like_titles(service, columns):
    cafe = await service.create_task(columns[0].id, "Caf\u00e9 opening")
    assert [t.id for t in await service.search_tasks("CAFE\u0301")] == [cafe.id]


@pytest.mark.asyncio
async def test_search_unknown_board_is_empty(service, columns):
    await service.create_task(columns[0].id, "auth")
    assert await service.search_tasks("auth", board_id="missing") == []


# ============================================================
# BOARD TREE
# ============================================================

@pytest.mark.asyncio
async def test_board_tree_is_fully_materialised(service, db_session, board, columns):
    todo, doing, done = columns
    b = await insert_task(db_session, todo.id, "B", 1, minutes_ago(30))
    a = await insert_task(db_session, todo.id, "A", 0, minutes_ago(10))
    c = await insert_task(db_session, done.id, "C", 0, minutes_ago(45))

    tree = await service.board_tree(board.id, now=FIXED_NOW)

    assert tree.board.id == board.id
    assert [n.column.id for n in tree.columns] == [todo.id, doing.id, done.id]
    assert [t.id for t in tree.columns[0].tasks] == [a.id, b.id]
    assert tree.columns[1].tasks == []
    assert [t.id for t in tree.find_column(done.id).tasks] == [c.id]
    assert tree.find_column("missing") is None
    assert [n.task_count for n in tree.columns] == [2, 0, 1]


@pytest.mark.asyncio
async def test_board_tree_stats_match_board_stats(service, db_session, board, columns):
    await insert_task(db_session, columns[0].id, "A", 0, minutes_ago(10))
    await insert_task(db_session, columns[2].id, "B", 0, minutes_ago(45))

    tree = await service.board_tree(board.id, now=FIXED_NOW)
    direct = await service.board_stats(board.id, now=FIXED_NOW)
    assert tree.stats.to_dict() == direct.to_dict()


@pytest.mark.asyncio
async def test_board_tree_missing_board(service):
    assert await service.board_tree("missing") is None


# ============================================================
# OBSERVERS
# ============================================================

@pytest.mark.asyncio
async def test_observer_records_outcomes(service, observer):
    board = await service.create_board("Observed")
    with pytest.raises(InvalidArgument):
        await service.create_board(" ")
    with pytest.raises(NotFound):
        await service.delete_board("missing")

    assert observer.operations() == ["create_board", "create_board", "delete_board"]
    outcomes = [e.outcome for e in observer.events]
    assert outcomes == [OperationOutcome.OK, OperationOutcome.INVALID, OperationOutcome.NOT_FOUND]
    assert observer.events[0].entity_id == board.id
    assert observer.events[2].entity_id == "missing"
    assert all(e.request_id == "test" for e in observer.events)


@pytest.mark.asyncio
async def test_observer_metadata_for_moves(service, observer, columns):
    task = await service.create_task(columns[0].id, "Moving")
    await service.move_task(task.id, columns[1].id, 3)
    event = observer.events[-1]
    assert event.operation == "move_task"
    assert event.metadata == {"target_column_id": columns[1].id, "target_position": 3}
    assert event.to_dict()["outcome"] == "ok"


@pytest.mark.asyncio
async def test_observers_are_not_shared_between_services(db_session, observer):
    first = BoardService(db_session, observer)
    second = BoardService(db_session)
    await second.create_board("Unobserved")
    await first.list_boards()
    assert observer.operations() == ["list_boards"]
    assert isinstance(second.observer, OperationObserver)


@pytest.mark.asyncio
async def test_logging_observer_writes_structured_line(db_session, caplog):
    service = BoardService(db_session, LoggingObserver(request_id="req-1"))
    with caplog.at_level(logging.INFO, logger="taskboard.core"):
        await service.create_board("Logged")
        with pytest.raises(NotFound):
            await service.update_board("missing", "Title")

    records = [r for r in caplog.records if r.name == "taskboard.core"]
    assert len(records) == 2
    assert records[0].levelno == logging.INFO
    assert '"request_id": "req-1"' in records[0].getMessage()
    assert records[1].levelno == logging.WARNING
    assert '"outcome": "not_found"' in records[1].getMessage()
