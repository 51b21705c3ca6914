# taskboard/service.py — Operation facade over the ordered-entity core
"""
``BoardService`` is built per request around that request's session and an
optional observer. It holds no state beyond those two references, so every
call re-reads the store.
"""
from datetime import datetime
from typing import Awaitable, List, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from models import Board, BoardColumn, Task
from taskboard import moves, repository, stats, tree
from taskboard.errors import NotFound, InvalidArgument
from taskboard.observability import OperationObserver, OperationOutcome

T = TypeVar("T")


class BoardService:
    def __init__(self, db: AsyncSession, observer: Optional[OperationObserver] = None):
        self.db = db
        self.observer = observer or OperationObserver()

    async def _observe(self, operation: str, call: Awaitable[T], entity_id: Optional[str] = None, **metadata) -> T:
        started = self.observer.start()
        try:
            result = await call
        except NotFound as exc:
            self.observer.finish(operation, started, OperationOutcome.NOT_FOUND, entity_id, error=exc, **metadata)
            raise
        except InvalidArgument as exc:
            self.observer.finish(operation, started, OperationOutcome.INVALID, entity_id, error=exc, **metadata)
            raise
        except Exception as exc:
            self.observer.finish(operation, started, OperationOutcome.ERROR, entity_id, error=exc, **metadata)
            raise
        self.observer.finish(operation, started, OperationOutcome.OK, entity_id or getattr(result, "id", None), **metadata)
        return result

    # --- Boards ---

    async def list_boards(self) -> List[Board]:
        return await self._observe("list_boards", repository.list_boards(self.db))

    async def get_board(self, board_id: str) -> Optional[Board]:
        return await self._observe("get_board", repository.get_board(self.db, board_id), board_id)

    async def create_board(self, title: str) -> Board:
        return await self._observe("create_board", repository.create_board(self.db, title))

    async def update_board(self, board_id: str, title: str) -> Board:
        return await self._observe("update_board", repository.update_board(self.db, board_id, title), board_id)

    async def delete_board(self, board_id: str) -> bool:
        return await self._observe("delete_board", repository.delete_board(self.db, board_id), board_id)

    async def board_tree(self, board_id: str, now: Optional[datetime] = None) -> Optional[tree.BoardTree]:
        return await self._observe("board_tree", tree.load_board_tree(self.db, board_id, now), board_id)

    async def board_stats(self, board_id: str, now: Optional[datetime] = None) -> stats.BoardStats:
        return await self._observe("board_stats", stats.compute_board_stats(self.db, board_id, now), board_id)

    # --- Columns ---

    async def list_columns(self, board_id: str) -> List[BoardColumn]:
        return await self._observe("list_columns", repository.list_columns_for_board(self.db, board_id), board_id)

    async def get_column(self, column_id: str) -> Optional[BoardColumn]:
        return await self._observe("get_column", repository.get_column(self.db, column_id), column_id)

    async def count_tasks(self, column_id: str) -> int:
        return await self._observe("count_tasks", repository.count_tasks_for_column(self.db, column_id), column_id)

    async def create_column(self, board_id: str, title: str, position: Optional[int] = None) -> BoardColumn:
        return await self._observe(
            "create_column", repository.create_column(self.db, board_id, title, position),
            board_id=board_id, requested_position=position,
        )

    async def update_column(self, column_id: str, title: Optional[str] = None,
                            position: Optional[int] = None) -> BoardColumn:
        return await self._observe(
            "update_column", repository.update_column(self.db, column_id, title, position), column_id,
        )

    async def delete_column(self, column_id: str) -> bool:
        return await self._observe("delete_column", repository.delete_column(self.db, column_id), column_id)

    async def renumber_columns(self, board_id: str) -> List[BoardColumn]:
        return await self._observe("renumber_columns", repository.renumber_columns(self.db, board_id), board_id)

    # --- Tasks ---

    async def list_tasks(self, column_id: str) -> List[Task]:
        return await self._observe("list_tasks", repository.list_tasks_for_column(self.db, column_id), column_id)

    async def get_task(self, task_id: str) -> Optional[Task]:
        return await self._observe("get_task", repository.get_task(self.db, task_id), task_id)

    async def sibling_tasks(self, task_id: str) -> List[Task]:
        return await self._observe("sibling_tasks", repository.list_sibling_tasks(self.db, task_id), task_id)

    async def create_task(self, column_id: str, title: str, description: Optional[str] = None,
                          position: Optional[int] = None) -> Task:
        return await self._observe(
            "create_task", repository.create_task(self.db, column_id, title, description, position),
            column_id=column_id, requested_position=position,
        )

    async def update_task(self, task_id: str, title: Optional[str] = None, description: Optional[str] = None,
                          column_id: Optional[str] = None, position: Optional[int] = None) -> Task:
        return await self._observe(
            "update_task", repository.update_task(self.db, task_id, title, description, column_id, position),
            task_id,
        )

    async def delete_task(self, task_id: str) -> bool:
        return await self._observe("delete_task", repository.delete_task(self.db, task_id), task_id)

    async def move_task(self, task_id: str, target_column_id: str, target_position: int) -> Task:
        return await self._observe(
            "move_task", moves.move_task(self.db, task_id, target_column_id, target_position), task_id,
            target_column_id=target_column_id, target_position=target_position,
        )

    async def renumber_tasks(self, column_id: str) -> List[Task]:
        return await self._observe("renumber_tasks", repository.renumber_tasks(self.db, column_id), column_id)

    async def search_tasks(self, query: str, board_id: Optional[str] = None) -> List[Task]:
        return await self._observe(
            "search_tasks", repository.search_tasks(self.db, query, board_id), board_id=board_id,
        )
