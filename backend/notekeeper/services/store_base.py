"""
Notekeeper Backend: Abstract Note Store Interface
==================================================

What:  Abstract base class defining the contract every note backend satisfies.
How:   Concrete implementations (SQLNoteStore, InMemoryNoteStore) inherit from
       NoteStore and implement the five CRUD operations plus shutdown().
Who:   Selected once at startup by `build_note_store()` and injected into the
       route handlers; handlers never know which backend is in use.

Uniform contract (both backends):
    - Every operation takes a RequestContext and honors its deadline,
      raising StoreTimeoutError when it elapses.
    - get_all() orders notes newest first (created_at DESC, then id DESC).
    - get/update/delete of an id with no live record raise NotFoundError.
    - Any other backend failure surfaces as BackendError. Nothing is retried.
    - Returned NoteResponse objects are copies; mutating them never affects
      the store.
    - shutdown() is idempotent. Operations started afterwards raise
      BackendError; operations already in flight finish normally.
"""

from abc import ABC, abstractmethod
from typing import List

from notekeeper.core.context import RequestContext
from notekeeper.exceptions import BackendError
from notekeeper.schemas.note import NoteCreate, NoteResponse, NoteUpdate


class NoteStore(ABC):
    """
    Abstract interface for note persistence.

    Implementations:
        - SQLNoteStore: durable, SQLAlchemy async engine (PostgreSQL, SQLite)
        - InMemoryNoteStore: volatile, process memory (tests and development)
    """

    #: Short backend name reported by the health check ("sql", "memory")
    name: str = "abstract"

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise BackendError(
                message="The note store has been shut down.",
                context={"operation": operation, "store": self.name},
            )

    @abstractmethod
    async def create(self, ctx: RequestContext, data: NoteCreate) -> NoteResponse:
        """
        Persist a new note.

        Assigns a new unique id and sets created_at == updated_at == now.

        Returns:
            NoteResponse: the full stored record, including assigned fields.

        Raises:
            StoreTimeoutError: deadline elapsed before the insert completed.
            BackendError: the backend failed.
        """

    @abstractmethod
    async def get_all(self, ctx: RequestContext) -> List[NoteResponse]:
        """
        Return every live note, newest first.

        Raises:
            StoreTimeoutError, BackendError. A failure on any single row aborts
            the whole call; partial lists are never returned.
        """

    @abstractmethod
    async def get(self, ctx: RequestContext, note_id: int) -> NoteResponse:
        """
        Return the live note with `note_id`.

        Raises:
            NotFoundError: no such live note (never created, or deleted).
            StoreTimeoutError, BackendError.
        """

    @abstractmethod
    async def update(self, ctx: RequestContext, note_id: int, data: NoteUpdate) -> NoteResponse:
        """
        Replace title and content of note `note_id` and refresh updated_at.

        id and created_at are left untouched.

        Raises:
            NotFoundError: no such live note.
            StoreTimeoutError, BackendError.
        """

    @abstractmethod
    async def delete(self, ctx: RequestContext, note_id: int) -> None:
        """
        Permanently remove note `note_id`.

        Raises:
            NotFoundError: no such live note (including a second delete).
            StoreTimeoutError, BackendError.
        """

    @abstractmethod
    async def shutdown(self) -> None:
        """Release backend resources. Safe to call more than once."""

    async def ping(self) -> bool:
        """Return True when the backend can serve requests."""
        return not self._closed
