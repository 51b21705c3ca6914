# routers/boards.py — HTTP surface for boards, ordered columns and ordered tasks
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from models import Board, BoardColumn, Task
from taskboard.observability import LoggingObserver
from taskboard.service import BoardService
from taskboard.stats import BoardStats
from taskboard.tree import BoardTree

router = APIRouter(prefix="/api/v1", tags=["Task Board"])


# ============================================================
# SCHEMAS
# ============================================================

# --- Board ---
class BoardCreate(BaseModel):
    title: str


class BoardUpdate(BaseModel):
    title: str


class BoardOut(BaseModel):
    id: str
    title: str
    created_at: str
    updated_at: str


# --- Column ---
class ColumnCreate(BaseModel):
    title: str
    position: Optional[int] = None


class ColumnUpdate(BaseModel):
    title: Optional[str] = None
    position: Optional[int] = None


class ColumnOut(BaseModel):
    id: str
    board_id: str
    title: str
    position: int
    task_count: Optional[int] = None
    created_at: str
    updated_at: str


# --- Task ---
class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    position: Optional[int] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None  # blank clears the description
    column_id: Optional[str] = None
    position: Optional[int] = None


class TaskMove(BaseModel):
    target_column_id: str
    target_position: int


class TaskOut(BaseModel):
    id: str
    column_id: str
    title: str
    description: Optional[str] = None
    position: int
    created_at: str
    updated_at: str


# --- Aggregates ---
class ColumnTaskCountOut(BaseModel):
    column_id: str
    column_title: str
    count: int


class BoardStatsOut(BaseModel):
    total_tasks: int
    tasks_by_column: List[ColumnTaskCountOut] = []
    average_tasks_per_column: float
    oldest_task_age: Optional[int] = None


class ColumnDetailOut(ColumnOut):
    tasks: List[TaskOut] = []


class BoardDetailOut(BoardOut):
    columns: List[ColumnDetailOut] = []
    stats: BoardStatsOut


class RenumberOut(BaseModel):
    ids: List[str]
    positions: List[int] = Field(default_factory=list)


# ============================================================
# HELPERS
# ============================================================

def get_board_service(request: Request, db: AsyncSession = Depends(get_db_session)) -> BoardService:
    """One service and one observer per request"""
    request_id = getattr(request.state, "request_id", None)
    return BoardService(db, LoggingObserver(request_id=request_id))


def _ts(dt) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat() if isinstance(dt, datetime) else str(dt)


def _board_out(board: Board) -> BoardOut:
    return BoardOut(
        id=board.id, title=board.title,
        created_at=_ts(board.created_at), updated_at=_ts(board.updated_at),
    )


def _column_out(col: BoardColumn, task_count: Optional[int] = None) -> ColumnOut:
    return ColumnOut(
        id=col.id, board_id=col.board_id, title=col.title, position=col.position,
        task_count=task_count,
        created_at=_ts(col.created_at), updated_at=_ts(col.updated_at),
    )


def _task_out(task: Task) -> TaskOut:
    return TaskOut(
        id=task.id, column_id=task.column_id, title=task.title,
        description=task.description, position=task.position,
        created_at=_ts(task.created_at), updated_at=_ts(task.updated_at),
    )


def _stats_out(stats: BoardStats) -> BoardStatsOut:
    return BoardStatsOut(**stats.to_dict())


def _tree_out(board_tree: BoardTree) -> BoardDetailOut:
    return BoardDetailOut(
        **_board_out(board_tree.board).model_dump(),
        columns=[
            ColumnDetailOut(
                **_column_out(node.column, node.task_count).model_dump(),
                tasks=[_task_out(t) for t in node.tasks],
            )
            for node in board_tree.columns
        ],
        stats=_stats_out(board_tree.stats),
    )


# ============================================================
# BOARD ENDPOINTS
# ============================================================

@router.get("/boards", response_model=List[BoardOut])
async def list_boards(service: BoardService = Depends(get_board_service)):
    """List all boards, oldest first"""
    return [_board_out(b) for b in await service.list_boards()]


@router.post("/boards", response_model=BoardOut, status_code=201)
async def create_board(data: BoardCreate, service: BoardService = Depends(get_board_service)):
    return _board_out(await service.create_board(data.title))


@router.get("/boards/{board_id}", response_model=BoardDetailOut)
async def get_board(board_id: str, service: BoardService = Depends(get_board_service)):
    """Board with its ordered columns, their ordered tasks and the board stats"""
    board_tree = await service.board_tree(board_id)
    if board_tree is None:
        raise HTTPException(status_code=404, detail="Board not found")
    return _tree_out(board_tree)


@router.patch("/boards/{board_id}", response_model=BoardOut)
async def update_board(board_id: str, data: BoardUpdate, service: BoardService = Depends(get_board_service)):
    return _board_out(await service.update_board(board_id, data.title))


@router.delete("/boards/{board_id}")
async def delete_board(board_id: str, service: BoardService = Depends(get_board_service)):
    """Delete a board together with its columns and tasks"""
    await service.delete_board(board_id)
    return {"status": "deleted", "board_id": board_id}


@router.get("/boards/{board_id}/stats", response_model=BoardStatsOut)
async def get_board_stats(board_id: str, service: BoardService = Depends(get_board_service)):
    return _stats_out(await service.board_stats(board_id))


# ============================================================
# COLUMN ENDPOINTS
# ============================================================

@router.get("/boards/{board_id}/columns", response_model=List[ColumnOut])
async def list_columns(board_id: str, service: BoardService = Depends(get_board_service)):
    return [_column_out(c) for c in await service.list_columns(board_id)]


@router.post("/boards/{board_id}/columns", response_model=ColumnOut, status_code=201)
async def create_column(board_id: str, data: ColumnCreate, service: BoardService = Depends(get_board_service)):
    """Add a column; without a position it goes after the last one"""
    column = await service.create_column(board_id, data.title, data.position)
    return _column_out(column, task_count=0)


@router.post("/boards/{board_id}/columns/renumber", response_model=RenumberOut)
async def renumber_columns(board_id: str, service: BoardService = Depends(get_board_service)):
    """Compact column positions to 0..n-1 without changing their order"""
    columns = await service.renumber_columns(board_id)
    return RenumberOut(ids=[c.id for c in columns], positions=[c.position for c in columns])


@router.get("/columns/{column_id}", response_model=ColumnOut)
async def get_column(column_id: str, service: BoardService = Depends(get_board_service)):
    column = await service.get_column(column_id)
    if column is None:
        raise HTTPException(status_code=404, detail="Column not found")
    return _column_out(column, task_count=await service.count_tasks(column_id))


@router.patch("/columns/{column_id}", response_model=ColumnOut)
async def update_column(column_id: str, data: ColumnUpdate, service: BoardService = Depends(get_board_service)):
    return _column_out(await service.update_column(column_id, data.title, data.position))


@router.delete("/columns/{column_id}")
async def delete_column(column_id: str, service: BoardService = Depends(get_board_service)):
    """Delete a column together with its tasks"""
    await service.delete_column(column_id)
    return {"status": "deleted", "column_id": column_id}


# ============================================================
# TASK ENDPOINTS
# ============================================================

@router.get("/columns/{column_id}/tasks", response_model=List[TaskOut])
async def list_tasks(column_id: str, service: BoardService = Depends(get_board_service)):
    return [_task_out(t) for t in await service.list_tasks(column_id)]


@router.post("/columns/{column_id}/tasks", response_model=TaskOut, status_code=201)
async def create_task(column_id: str, data: TaskCreate, service: BoardService = Depends(get_board_service)):
    """Create a task; without a position it goes after the last one"""
    task = await service.create_task(column_id, data.title, data.description, data.position)
    return _task_out(task)


@router.post("/columns/{column_id}/tasks/renumber", response_model=RenumberOut)
async def renumber_tasks(column_id: str, service: BoardService = Depends(get_board_service)):
    tasks = await service.renumber_tasks(column_id)
    return RenumberOut(ids=[t.id for t in tasks], positions=[t.position for t in tasks])


@router.get("/tasks/search", response_model=List[TaskOut])
async def search_tasks(
    q: str = Query(..., description="Case-insensitive text to find in title or description"),
    board_id: Optional[str] = None,
    service: BoardService = Depends(get_board_service),
):
    return [_task_out(t) for t in await service.search_tasks(q, board_id)]


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(task_id: str, service: BoardService = Depends(get_board_service)):
    task = await service.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return _task_out(task)


@router.get("/tasks/{task_id}/siblings", response_model=List[TaskOut])
async def get_sibling_tasks(task_id: str, service: BoardService = Depends(get_board_service)):
    """Other tasks in the same column, in column order"""
    return [_task_out(t) for t in await service.sibling_tasks(task_id)]


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(task_id: str, data: TaskUpdate, service: BoardService = Depends(get_board_service)):
    task = await service.update_task(task_id, data.title, data.description, data.column_id, data.position)
    return _task_out(task)


@router.post("/tasks/{task_id}/move", response_model=TaskOut)
async def move_task(task_id: str, data: TaskMove, service: BoardService = Depends(get_board_service)):
    """Move a task to a column and position in one update"""
    task = await service.move_task(task_id, data.target_column_id, data.target_position)
    return _task_out(task)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, service: BoardService = Depends(get_board_service)):
    await service.delete_task(task_id)
    return {"status": "deleted", "task_id": task_id}
