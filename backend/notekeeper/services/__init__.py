# Services package init
"""
Notekeeper Backend: Note Store Layer
=====================================

What:  Persistence layer sitting between routes (HTTP) and storage.
How:   Routes depend on the abstract NoteStore; the concrete backend is
       chosen once at startup by `build_note_store()` and injected.

Service Inventory:
    - NoteStore (abstract):  contract shared by all backends (store_base.py)
    - SQLNoteStore:          durable backend over async SQLAlchemy (sql_store.py)
    - InMemoryNoteStore:     volatile lock-guarded backend (memory_store.py)
    - build_note_store():    settings-driven backend selection (factory.py)
"""
