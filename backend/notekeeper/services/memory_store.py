"""
Notekeeper Backend: In-Memory Note Store
=========================================

What:  Volatile NoteStore backed by a dict, for tests and local development.
How:   A dict `id -> NoteResponse` and an id counter, both owned by the store
       and touched only while holding a single asyncio.Lock. Every operation,
       reads included, holds the lock for its whole duration, so operations
       are linearizable: concurrent creates never share an id, and a delete
       that completed before a get began is always visible to that get.
Who:   Selected with NOTE_STORE=memory, or injected directly by tests.

Copy semantics:
    Stored NoteResponse objects never leave the store. Every return value is
    a `model_copy()`, and get_all() snapshots the live set under the lock,
    so callers cannot observe (or cause) concurrent mutation.

Deadline semantics:
    The request deadline bounds the wait for the lock. Once the lock is
    held the operation runs to completion without suspending.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List

from notekeeper.core.context import RequestContext, run_with_deadline
from notekeeper.exceptions import NotFoundError
from notekeeper.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from notekeeper.services.store_base import NoteStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(note: NoteResponse):
    return (note.created_at, note.id)


class InMemoryNoteStore(NoteStore):
    """Lock-guarded, process-lifetime note storage."""

    name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._notes: Dict[int, NoteResponse] = {}
        self._last_id = 0
        self._lock = asyncio.Lock()

    # ── Operations ────────────────────────────────────────────────────────

    async def create(self, ctx: RequestContext, data: NoteCreate) -> NoteResponse:
        self._ensure_open("create")
        return await run_with_deadline(ctx, self._create(data), "note create")

    async def _create(self, data: NoteCreate) -> NoteResponse:
        async with self._lock:
            self._last_id += 1
            now = _utcnow()
            note = NoteResponse(
                id=self._last_id,
                title=data.title,
                content=data.content,
                created_at=now,
                updated_at=now,
            )
            self._notes[note.id] = note
            logger.info("Note %d created (memory)", note.id)
            return note.model_copy()

    async def get_all(self, ctx: RequestContext) -> List[NoteResponse]:
        self._ensure_open("get_all")
        return await run_with_deadline(ctx, self._get_all(), "note list")

    async def _get_all(self) -> List[NoteResponse]:
        async with self._lock:
            snapshot = [note.model_copy() for note in self._notes.values()]
        snapshot.sort(key=_newest_first, reverse=True)
        return snapshot

    async def get(self, ctx: RequestContext, note_id: int) -> NoteResponse:
        self._ensure_open("get")
        return await run_with_deadline(ctx, self._get(note_id), "note get")

    async def _get(self, note_id: int) -> NoteResponse:
        async with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                logger.debug("Note %s not found (memory)", note_id)
                raise NotFoundError(resource="note", resource_id=note_id)
            return note.model_copy()

    async def update(self, ctx: RequestContext, note_id: int, data: NoteUpdate) -> NoteResponse:
        self._ensure_open("update")
        return await run_with_deadline(ctx, self._update(note_id, data), "note update")

    async def _update(self, note_id: int, data: NoteUpdate) -> NoteResponse:
        async with self._lock:
            current = self._notes.get(note_id)
            if current is None:
                logger.debug("Note %s not found for update (memory)", note_id)
                raise NotFoundError(resource="note", resource_id=note_id)
            # updated_at never moves backwards, even if the wall clock does
            previous = current.updated_at or current.created_at
            updated = current.model_copy(
                update={
                    "title": data.title,
                    "content": data.content,
                    "updated_at": max(_utcnow(), previous),
                }
            )
            self._notes[note_id] = updated
            logger.info("Note %d updated (memory)", note_id)
            return updated.model_copy()

    async def delete(self, ctx: RequestContext, note_id: int) -> None:
        self._ensure_open("delete")
        await run_with_deadline(ctx, self._delete(note_id), "note delete")

    async def _delete(self, note_id: int) -> None:
        async with self._lock:
            if self._notes.pop(note_id, None) is None:
                logger.debug("Note %s not found for delete (memory)", note_id)
                raise NotFoundError(resource="note", resource_id=note_id)
            logger.info("Note %d deleted (memory)", note_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def shutdown(self) -> None:
        """Mark the store closed. Data stays intact for operations already running."""
        if self._closed:
            logger.debug("In-memory note store already shut down")
            return
        self._closed = True
        logger.info("In-memory note store shut down (%d notes discarded)", len(self._notes))
