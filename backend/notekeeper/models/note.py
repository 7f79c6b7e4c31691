"""
Notekeeper Backend: Note SQLAlchemy Model
==========================================

What:  ORM model representing the `notes` table.
How:   Inherits from the shared DeclarativeBase; `create_schema()` emits its DDL.
Who:   Used exclusively by SQLNoteStore. Routes and the in-memory store only
       ever see the pydantic NoteResponse value object.

Table Design:
    - id:          auto-increment integer primary key (BIGINT on PostgreSQL,
                   INTEGER on SQLite so it aliases the rowid)
    - title:       required text
    - content:     required text
    - created_at:  UTC with timezone, defaulted to creation time, never updated
    - updated_at:  UTC with timezone, defaulted to creation time, refreshed on update

    sqlite_autoincrement makes SQLite hand out ids from a monotonic sequence,
    so a deleted id is never assigned again (PostgreSQL sequences already
    behave this way).

    Index on created_at DESC serves the list query (newest first).
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from notekeeper.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A single persisted note row.

    Lifecycle:
        1. Inserted by SQLNoteStore.create (created_at == updated_at)
        2. title/content replaced and updated_at refreshed by SQLNoteStore.update
        3. Removed permanently by SQLNoteStore.delete (no soft-delete)
    """

    __tablename__ = "notes"

    # ── Primary Key ───────────────────────────────────────────────────────
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    # ── Body ──────────────────────────────────────────────────────────────
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Indexes ───────────────────────────────────────────────────────────
    __table_args__ = (
        Index("idx_notes_created_at", created_at.desc()),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        """Developer-friendly string representation for debugging."""
        return f"<Note(id={self.id}, title={self.title!r}, created_at='{self.created_at}')>"
