"""
Notekeeper Backend: Notes Route Handlers
=========================================

What:  REST mapping for the note resource under /api/v1/notes.
How:   Each handler receives the injected NoteStore and a RequestContext,
       forwards the call unchanged, and returns the result. Failures are
       raised as NotekeeperError subclasses and turned into status codes
       by the global exception handlers in main.py.

Route Inventory:
    POST   /api/v1/notes          → 201 created note
    GET    /api/v1/notes          → 200 list of notes (X-Total-Count header)
    GET    /api/v1/notes/{id}     → 200 note | 404
    PATCH  /api/v1/notes/{id}     → 200 updated note | 404   (PUT accepted too)
    DELETE /api/v1/notes/{id}     → 204 | 404
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response

from notekeeper.core.context import RequestContext
from notekeeper.routes.dependencies import get_note_store, get_request_context
from notekeeper.schemas.note import ErrorResponse, NoteCreate, NoteResponse, NoteUpdate
from notekeeper.services.store_base import NoteStore

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/v1", tags=["Notes"])

_ERROR_RESPONSES = {
    400: {"description": "Malformed request", "model": ErrorResponse},
    500: {"description": "Storage error", "model": ErrorResponse},
    504: {"description": "Request deadline exceeded", "model": ErrorResponse},
}
_NOT_FOUND = {404: {"description": "Note not found", "model": ErrorResponse}}


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteResponse,
    responses=_ERROR_RESPONSES,
    summary="Create a note",
)
async def create_note(
    payload: NoteCreate,
    store: NoteStore = Depends(get_note_store),
    ctx: RequestContext = Depends(get_request_context),
) -> NoteResponse:
    """Store a new note; the response carries the assigned id and timestamps."""
    return await store.create(ctx, payload)


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses=_ERROR_RESPONSES,
    summary="List all notes, newest first",
)
async def list_notes(
    response: Response,
    store: NoteStore = Depends(get_note_store),
    ctx: RequestContext = Depends(get_request_context),
) -> List[NoteResponse]:
    notes = await store.get_all(ctx)
    response.headers["X-Total-Count"] = str(len(notes))
    return notes


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={**_ERROR_RESPONSES, **_NOT_FOUND},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: int,
    store: NoteStore = Depends(get_note_store),
    ctx: RequestContext = Depends(get_request_context),
) -> NoteResponse:
    """
    Get a single note.

    Args:
        note_id: Integer path parameter. Non-integer values are rejected
                 with 400 before the store is consulted.
    """
    return await store.get(ctx, note_id)


@router.api_route(
    "/notes/{note_id}",
    methods=["PATCH", "PUT"],
    response_model=NoteResponse,
    responses={**_ERROR_RESPONSES, **_NOT_FOUND},
    summary="Replace the title and content of a note",
)
async def update_note(
    note_id: int,
    payload: NoteUpdate,
    store: NoteStore = Depends(get_note_store),
    ctx: RequestContext = Depends(get_request_context),
) -> NoteResponse:
    """
    Update a note.

    Both title and content are replaced with the supplied values (missing
    fields become empty strings); id and created_at never change.
    """
    return await store.update(ctx, note_id, payload)


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    response_class=Response,
    responses={**_ERROR_RESPONSES, **_NOT_FOUND},
    summary="Delete a note",
)
async def delete_note(
    note_id: int,
    store: NoteStore = Depends(get_note_store),
    ctx: RequestContext = Depends(get_request_context),
) -> Response:
    await store.delete(ctx, note_id)
    return Response(status_code=204)
