"""
Notekeeper Backend: In-Memory Store Unit Tests
===============================================

What:  Concurrency and isolation properties specific to InMemoryNoteStore.
How:   Drives many operations concurrently with asyncio.gather and holds the
       store's lock directly to simulate contention.
"""

import asyncio

import pytest

from notekeeper.core.context import RequestContext
from notekeeper.exceptions import NotFoundError, StoreTimeoutError
from notekeeper.schemas.note import NoteCreate, NoteUpdate


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_ids(self, memory_store, ctx):
        """N concurrent creates yield exactly ids 1..N."""
        n = 100
        notes = await asyncio.gather(
            *(memory_store.create(ctx, NoteCreate(title=f"note {i}", content="")) for i in range(n))
        )

        ids = [note.id for note in notes]
        assert len(set(ids)) == n
        assert set(ids) == set(range(1, n + 1))

    @pytest.mark.asyncio
    async def test_concurrent_updates_leave_one_winner(self, memory_store, ctx):
        created = await memory_store.create(ctx, NoteCreate(title="t", content="c"))

        await asyncio.gather(
            *(
                memory_store.update(ctx, created.id, NoteUpdate(title=f"t{i}", content=f"c{i}"))
                for i in range(20)
            )
        )

        final = await memory_store.get(ctx, created.id)
        # title and content always come from the same update
        assert final.title[1:] == final.content[1:]
        assert final.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_delete_completed_before_get_is_visible(self, memory_store, ctx):
        created = await memory_store.create(ctx, NoteCreate(title="t", content="c"))
        await memory_store.delete(ctx, created.id)

        with pytest.raises(NotFoundError):
            await memory_store.get(ctx, created.id)


class TestSnapshots:

    @pytest.mark.asyncio
    async def test_get_all_returns_independent_snapshot(self, memory_store, ctx):
        await memory_store.create(ctx, NoteCreate(title="a", content=""))
        snapshot = await memory_store.get_all(ctx)

        await memory_store.create(ctx, NoteCreate(title="b", content=""))
        snapshot[0].title = "changed"

        assert len(snapshot) == 1
        assert [n.title for n in await memory_store.get_all(ctx)] == ["b", "a"]


class TestLockDeadline:

    @pytest.mark.asyncio
    async def test_waiting_for_lock_respects_deadline(self, memory_store):
        """A caller stuck behind the lock gives up when its deadline passes."""
        async with memory_store._lock:
            with pytest.raises(StoreTimeoutError):
                await memory_store.get(RequestContext.with_timeout(0.05), 1)

    @pytest.mark.asyncio
    async def test_store_usable_after_timeout(self, memory_store, ctx):
        async with memory_store._lock:
            with pytest.raises(StoreTimeoutError):
                await memory_store.create(
                    RequestContext.with_timeout(0.05), NoteCreate(title="late", content="")
                )

        note = await memory_store.create(ctx, NoteCreate(title="on time", content=""))

        assert note.id == 1
        assert [n.title for n in await memory_store.get_all(ctx)] == ["on time"]
