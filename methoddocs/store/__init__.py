"""Store module - Method persistence gateways"""

import logging

from methoddocs.config import Settings

from .method_store import MemoryMethodStore, MethodStore, SQLiteMethodStore

logger = logging.getLogger(__name__)

__all__ = [
    "MethodStore",
    "MemoryMethodStore",
    "SQLiteMethodStore",
    "build_store",
]


def build_store(settings: Settings) -> MethodStore:
    """
    Construct (but do not open) the gateway selected by settings

    Args:
        settings: Loaded settings

    Returns:
        MemoryMethodStore or SQLiteMethodStore
    """
    if settings.store_backend == "memory":
        logger.warning("Using in-memory method store: data is lost on restart")
        return MemoryMethodStore()
    return SQLiteMethodStore(settings.db_path)
