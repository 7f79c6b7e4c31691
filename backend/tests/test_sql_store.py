"""
Notekeeper Backend: SQL Store Unit Tests
=========================================

What:  Behavior specific to SQLNoteStore: timestamp round-tripping, error
       classification, deadline cancellation, factory selection.
How:   Runs against a real SQLite database (aiosqlite) in the test's tmp dir.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.config import Settings
from notekeeper.core.context import RequestContext
from notekeeper.exceptions import BackendError, ErrorKind, StoreTimeoutError
from notekeeper.schemas.note import NoteCreate, NoteUpdate
from notekeeper.services.factory import build_note_store
from notekeeper.services.memory_store import InMemoryNoteStore
from notekeeper.services.sql_store import SQLNoteStore


class TestRoundTrip:

    @pytest.mark.asyncio
    async def test_timestamps_round_trip_as_utc(self, sql_store, ctx):
        created = await sql_store.create(ctx, NoteCreate(title="t", content="c"))

        fetched = await sql_store.get(ctx, created.id)

        assert fetched.created_at.tzinfo == timezone.utc
        assert fetched.created_at == created.created_at
        assert fetched.updated_at == created.updated_at

    @pytest.mark.asyncio
    async def test_notes_persist_across_store_instances(self, sqlite_url, sql_store, ctx):
        created = await sql_store.create(ctx, NoteCreate(title="durable", content="yes"))

        reopened = SQLNoteStore.from_url(sqlite_url)
        try:
            fetched = await reopened.get(ctx, created.id)
        finally:
            await reopened.shutdown()

        assert fetched.title == "durable"


class TestErrorClassification:

    @pytest.mark.asyncio
    async def test_missing_table_is_backend_error(self, sqlite_url, ctx):
        store = SQLNoteStore.from_url(sqlite_url)  # schema never created
        try:
            with pytest.raises(BackendError) as exc_info:
                await store.get(ctx, 1)
        finally:
            await store.shutdown()

        assert exc_info.value.kind is ErrorKind.BACKEND
        assert exc_info.value.context["operation"] == "note get"

    @pytest.mark.asyncio
    async def test_malformed_row_aborts_whole_list(self, sql_store, ctx):
        await sql_store.create(ctx, NoteCreate(title="good", content=""))
        async with sql_store.engine.begin() as conn:
            await conn.execute(
                text(
                    "INSERT INTO notes (title, content, created_at, updated_at) "
                    "VALUES ('bad', '', 'not-a-date', 'not-a-date')"
                )
            )

        with pytest.raises(BackendError):
            await sql_store.get_all(ctx)

    @pytest.mark.asyncio
    async def test_backend_error_hides_driver_message(self, sqlite_url, ctx):
        store = SQLNoteStore.from_url(sqlite_url)
        try:
            with pytest.raises(BackendError) as exc_info:
                await store.get_all(ctx)
        finally:
            await store.shutdown()

        assert "notes" not in exc_info.value.message
        assert exc_info.value.__cause__ is not None


class TestDeadline:

    @pytest.mark.asyncio
    async def test_write_cancelled_mid_transaction_leaves_no_row(self, sql_store, ctx, monkeypatch):
        real_flush = AsyncSession.flush
        flushed = asyncio.Event()

        async def flush_then_stall(self, *args, **kwargs):
            await real_flush(self, *args, **kwargs)
            flushed.set()
            await asyncio.sleep(5)

        monkeypatch.setattr(AsyncSession, "flush", flush_then_stall)

        with pytest.raises(StoreTimeoutError) as exc_info:
            await sql_store.create(
                RequestContext.with_timeout(0.1), NoteCreate(title="t", content="c")
            )
        monkeypatch.undo()

        assert flushed.is_set()
        assert exc_info.value.context["operation"] == "note create"
        assert await sql_store.get_all(ctx) == []


class TestUpdatedAtClamp:

    @pytest.mark.asyncio
    async def test_updated_at_never_moves_backwards(self, sql_store, ctx, monkeypatch):
        created = await sql_store.create(ctx, NoteCreate(title="t", content="c"))
        monkeypatch.setattr(
            "notekeeper.services.sql_store._utcnow",
            lambda: datetime(2000, 1, 1, tzinfo=timezone.utc),
        )

        updated = await sql_store.update(ctx, created.id, NoteUpdate(title="t2", content="c2"))

        assert updated.title == "t2"
        assert updated.updated_at == created.updated_at


class TestFactory:

    def test_memory_backend_selected(self):
        store = build_note_store(Settings(note_store="memory"))
        assert isinstance(store, InMemoryNoteStore)

    @pytest.mark.asyncio
    async def test_sql_backend_selected(self, sqlite_url):
        store = build_note_store(Settings(note_store="sql", database_url=sqlite_url))
        try:
            assert isinstance(store, SQLNoteStore)
            assert store.name == "sql"
            assert await store.ping() is True
        finally:
            await store.shutdown()
