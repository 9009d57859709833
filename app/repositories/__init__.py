"""Repository package: expose the storage contract and its backends."""
from .base import Storage
from .memory_storage import InMemoryStorage
from .sql_storage import SQLStorage

__all__ = [
    'Storage',
    'InMemoryStorage',
    'SQLStorage',
]
