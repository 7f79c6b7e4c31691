"""
Notekeeper Backend: Route Dependencies
=======================================

What:  FastAPI dependencies supplying the configured note store and a
       per-request deadline context to route handlers.
How:   The store lives on `app.state.note_store` (set by create_app or the
       lifespan). The request context combines the configured request
       timeout with the correlation id assigned by RequestIDMiddleware.
"""

from fastapi import Request

from notekeeper.config import settings
from notekeeper.core.context import RequestContext
from notekeeper.exceptions import BackendError
from notekeeper.middleware.request_id import request_id_var
from notekeeper.services.store_base import NoteStore


def get_note_store(request: Request) -> NoteStore:
    """Return the note store selected at startup."""
    store = getattr(request.app.state, "note_store", None)
    if store is None:
        raise BackendError(
            message="The note store is not available.",
            context={"reason": "note store not initialized"},
        )
    return store


def get_request_context(request: Request) -> RequestContext:
    """
    Build the deadline-bearing context for one request.

    The deadline starts when the handler's dependencies are resolved, i.e.
    after the body has been read and validated.
    """
    rid = getattr(request.state, "request_id", "") or request_id_var.get("")
    return RequestContext.with_timeout(settings.request_timeout_seconds, request_id=rid)
