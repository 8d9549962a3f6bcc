"""
Store Module

Persistence layer for the random student picker.

This module provides:
- Key-value backends (in-memory, SQLite) holding one serialized record
- Versioned migration of legacy records on every load
- Group and student management, pick history and selection
"""

__version__ = "0.1.0"

from .backends import KeyValueBackend, MemoryBackend, SQLiteBackend
from .migrations import STORAGE_KEY, load_root, migrate_record
from .repository import PickerStore

__all__ = [
    "KeyValueBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "STORAGE_KEY",
    "load_root",
    "migrate_record",
    "PickerStore",
]
