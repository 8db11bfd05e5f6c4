# Core package - Infrastructure components
from .config import settings, Settings
from .store import DocumentStore, DocumentNotFound, StoreError, connect_store

__all__ = [
    # Configuration
    "settings",
    "Settings",
    # Document store
    "DocumentStore",
    "DocumentNotFound",
    "StoreError",
    "connect_store",
]
