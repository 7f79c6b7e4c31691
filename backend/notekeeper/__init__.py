"""
Notekeeper Backend: Application Package Initializer
====================================================

What:  Marks the `notekeeper` directory as a Python package.
Who:   Imported by uvicorn (`notekeeper.main:app`), pytest, and the console script.

Architecture Note:
    The backend is a thin HTTP layer over a pluggable note store:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     NoteStore (abstract contract)   │  ← create/get/list/update/delete
    ├──────────────────┬──────────────────┤
    │  SQLNoteStore    │ InMemoryNoteStore│  ← interchangeable backends
    ├──────────────────┴──────────────────┤
    │   Models & Schemas (Data shapes)    │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘

    Routes never talk to a backend directly; they receive whichever store
    was selected at startup through a FastAPI dependency.
"""

__version__ = "1.0.0"
