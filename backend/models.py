# models.py — Database models for the task board
# - UUID string primary keys
# - Board → BoardColumn → Task hierarchy with store-level cascading deletes
# - Integer positions ordered within the parent, ties broken by created_at, id

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Text, Index
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# TASK BOARD
# ============================================================

class Board(Base):
    """Top-level task board; its columns are ordered, the board itself is not"""
    __tablename__ = "boards"

    id = Column(String, primary_key=True, default=new_uuid)
    title = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    columns = relationship(
        "BoardColumn",
        back_populates="board",
        order_by="BoardColumn.position",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Board {self.id} {self.title!r}>"


class BoardColumn(Base):
    """Ordered column (swim lane) within a board"""
    __tablename__ = "board_columns"

    id = Column(String, primary_key=True, default=new_uuid)
    board_id = Column(String, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    board = relationship("Board", back_populates="columns")
    tasks = relationship(
        "Task",
        back_populates="column",
        order_by="Task.position",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_col_board_pos", "board_id", "position"),
    )

    def __repr__(self):
        return f"<BoardColumn {self.id} {self.title!r} pos={self.position}>"


class Task(Base):
    """Task card; column_id only changes through a move"""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    column_id = Column(String, ForeignKey("board_columns.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)  # Order within column
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    column = relationship("BoardColumn", back_populates="tasks")

    __table_args__ = (
        Index("idx_task_col_pos", "column_id", "position"),
        Index("idx_task_created", "created_at"),
    )

    def __repr__(self):
        return f"<Task {self.id} {self.title!r} pos={self.position}>"
