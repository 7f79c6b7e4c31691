"""
Notekeeper Backend: Note Store Factory
=======================================

Selects and constructs the NoteStore backend named by NOTE_STORE.
Called once from the app lifespan; the result lives on `app.state.note_store`.
"""

import logging
from typing import Optional

from notekeeper.config import Settings, settings as default_settings
from notekeeper.services.memory_store import InMemoryNoteStore
from notekeeper.services.sql_store import SQLNoteStore
from notekeeper.services.store_base import NoteStore

logger = logging.getLogger(__name__)


def build_note_store(config: Optional[Settings] = None) -> NoteStore:
    """
    Build the configured note store.

    Args:
        config: Settings to read from (defaults to the module singleton).

    Returns:
        SQLNoteStore for "sql", InMemoryNoteStore for "memory".
    """
    config = config or default_settings

    if config.note_store == "memory":
        logger.info("Using in-memory note store (data is lost on restart)")
        return InMemoryNoteStore()

    logger.info("Using SQL note store")
    return SQLNoteStore.from_url(config.database_url)
