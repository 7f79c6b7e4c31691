"""
Notekeeper Backend: SQL Note Store
===================================

What:  Durable NoteStore over an async SQLAlchemy engine.
How:   Every operation is one parameterized statement in its own short
       transaction, run under the request deadline.
Who:   Selected with NOTE_STORE=sql (the default). Owns its engine and
       connection pool for its whole lifetime.

Statement mapping:
    create   → INSERT (ORM add + flush), generated id read back
    get_all  → SELECT ... ORDER BY created_at DESC, id DESC
    get      → SELECT ... WHERE id = :id         (no row       → NotFoundError)
    update   → UPDATE ... WHERE id = :id RETURNING ...  (no row → NotFoundError)
    delete   → DELETE ... WHERE id = :id         (rowcount 0   → NotFoundError)

    Existence is decided by the statement itself; there is no separate
    check-then-act query that could race with a concurrent delete.

Error Handling Strategy:
    NotFoundError and StoreTimeoutError propagate as-is. Every other failure
    (driver errors, lost connections, constraint violations, a row that does
    not validate as a NoteResponse) is logged with its traceback and wrapped
    in BackendError. Nothing is retried.

Timeouts:
    run_with_deadline() cancels the operation task when the deadline passes.
    Cancellation interrupts the driver call, the `session.begin()` block
    rolls the transaction back, and the session returns its connection to
    the pool, so a timed-out write is never partially visible.
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, List, TypeVar

from sqlalchemy import case, delete, literal, select, text, update
from sqlalchemy.ext.asyncio import AsyncEngine

from notekeeper.core.context import RequestContext, run_with_deadline
from notekeeper.database import build_engine, build_session_factory
from notekeeper.exceptions import BackendError, NotekeeperError, NotFoundError
from notekeeper.models.note import Note
from notekeeper.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from notekeeper.services.store_base import NoteStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETURNED_COLUMNS = (Note.id, Note.title, Note.content, Note.created_at, Note.updated_at)

# Largest value a BIGINT id column can hold
_MAX_NOTE_ID = 2**63 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SQLNoteStore(NoteStore):
    """
    NoteStore backed by a relational database through SQLAlchemy.

    Args:
        engine: An AsyncEngine whose database already contains the notes
                table (see database.create_schema). The store takes
                ownership and disposes it on shutdown().
    """

    name = "sql"

    def __init__(self, engine: AsyncEngine) -> None:
        super().__init__()
        self._engine = engine
        self._session_factory = build_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SQLNoteStore":
        """Build a store with a fresh engine for `database_url`."""
        return cls(build_engine(database_url))

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @staticmethod
    def _require_storable_id(note_id: int) -> None:
        """Ids outside the column range can never have been assigned."""
        if not 0 < note_id <= _MAX_NOTE_ID:
            logger.debug("Note id %s is outside the id range (sql)", note_id)
            raise NotFoundError(resource="note", resource_id=note_id)

    async def _run(self, ctx: RequestContext, work: Awaitable[T], operation: str) -> T:
        """Run `work` under the deadline and classify anything unexpected."""
        try:
            return await run_with_deadline(ctx, work, operation)
        except NotekeeperError:
            raise
        except Exception as e:
            logger.error(
                "[%s] Database error during %s: %s",
                ctx.request_id,
                operation,
                str(e),
                exc_info=True,
            )
            raise BackendError(
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    # ── Operations ────────────────────────────────────────────────────────

    async def create(self, ctx: RequestContext, data: NoteCreate) -> NoteResponse:
        self._ensure_open("create")
        return await self._run(ctx, self._create(data), "note create")

    async def _create(self, data: NoteCreate) -> NoteResponse:
        now = _utcnow()
        async with self._session_factory() as session:
            async with session.begin():
                note = Note(
                    title=data.title,
                    content=data.content,
                    created_at=now,
                    updated_at=now,
                )
                session.add(note)
                # Flush assigns the auto-increment id inside the transaction
                await session.flush()
            created = NoteResponse.model_validate(note)
        logger.info("Note %d created (sql)", created.id)
        return created

    async def get_all(self, ctx: RequestContext) -> List[NoteResponse]:
        self._ensure_open("get_all")
        return await self._run(ctx, self._get_all(), "note list")

    async def _get_all(self) -> List[NoteResponse]:
        query = select(Note).order_by(Note.created_at.desc(), Note.id.desc())
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(query)
                notes = result.scalars().all()
                # One malformed row fails the whole call
                return [NoteResponse.model_validate(note) for note in notes]

    async def get(self, ctx: RequestContext, note_id: int) -> NoteResponse:
        self._ensure_open("get")
        self._require_storable_id(note_id)
        return await self._run(ctx, self._get(note_id), "note get")

    async def _get(self, note_id: int) -> NoteResponse:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(select(Note).where(Note.id == note_id))
                note = result.scalar_one_or_none()
                if note is None:
                    logger.debug("Note %s not found (sql)", note_id)
                    raise NotFoundError(resource="note", resource_id=note_id)
                return NoteResponse.model_validate(note)

    async def update(self, ctx: RequestContext, note_id: int, data: NoteUpdate) -> NoteResponse:
        self._ensure_open("update")
        self._require_storable_id(note_id)
        return await self._run(ctx, self._update(note_id, data), "note update")

    async def _update(self, note_id: int, data: NoteUpdate) -> NoteResponse:
        now = literal(_utcnow(), Note.updated_at.type)
        # updated_at never moves backwards, even if the wall clock does
        stmt = (
            update(Note)
            .where(Note.id == note_id)
            .values(
                title=data.title,
                content=data.content,
                updated_at=case((Note.updated_at > now, Note.updated_at), else_=now),
            )
            .returning(*_RETURNED_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
                row = result.one_or_none()
                if row is None:
                    logger.debug("Note %s not found for update (sql)", note_id)
                    raise NotFoundError(resource="note", resource_id=note_id)
                updated = NoteResponse.model_validate(dict(row._mapping))
        logger.info("Note %d updated (sql)", note_id)
        return updated

    async def delete(self, ctx: RequestContext, note_id: int) -> None:
        self._ensure_open("delete")
        self._require_storable_id(note_id)
        await self._run(ctx, self._delete(note_id), "note delete")

    async def _delete(self, note_id: int) -> None:
        stmt = (
            delete(Note)
            .where(Note.id == note_id)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    logger.debug("Note %s not found for delete (sql)", note_id)
                    raise NotFoundError(resource="note", resource_id=note_id)
        logger.info("Note %d deleted (sql)", note_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def shutdown(self) -> None:
        """
        Dispose the engine's connection pool.

        Idle pooled connections are closed immediately. Connections checked
        out by operations still running are released when those finish.
        """
        if self._closed:
            logger.debug("SQL note store already shut down")
            return
        self._closed = True
        await self._engine.dispose()
        logger.info("SQL note store shut down; connection pool disposed")

    async def ping(self) -> bool:
        """Execute SELECT 1 to verify connectivity."""
        if self._closed:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False
