"""
Process-wide task store.

The store is in memory unless TRACKER_DATA_FILE points at a CSV file, in
which case it is loaded from (and saved to) that file.
"""

from tracker.config import get_settings
from tracker.logging_config import get_logger
from tracker.services.persistence import FileBackedTaskStore
from tracker.services.store import TaskStore

logger = get_logger(__name__)

_store: TaskStore | None = None


def init_store() -> TaskStore:
    """Create the store from settings, replacing any previous one."""
    global _store
    settings = get_settings()
    if settings.data_file is not None:
        _store = FileBackedTaskStore.load_from_file(
            settings.data_file, datetime_format=settings.datetime_format
        )
        logger.info(f"Using file-backed store at {settings.data_file}")
    else:
        _store = TaskStore()
        logger.info("Using in-memory store")
    return _store


def get_store() -> TaskStore:
    """FastAPI dependency returning the shared store."""
    if _store is None:
        return init_store()
    return _store
