"""Key-value backends holding the serialized picker record."""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import cast

from typing_extensions import override

from .database import connect, initialize_database


class KeyValueBackend(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryBackend(KeyValueBackend):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    @override
    def get(self, key: str) -> str | None:
        return self.data.get(key)

    @override
    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    @override
    def delete(self, key: str) -> None:
        _ = self.data.pop(key, None)


class SQLiteBackend(KeyValueBackend):
    def __init__(self, db_path: str | Path) -> None:
        self.db_path: str = str(db_path)
        initialize_database(self.db_path)

    @override
    def get(self, key: str) -> str | None:
        with connect(self.db_path) as connection:
            row = cast(
                sqlite3.Row | None,
                connection.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone(),
            )
        if row is None:
            return None
        return cast(str, row["value"])

    @override
    def set(self, key: str, value: str) -> None:
        with connect(self.db_path) as connection:
            _ = connection.execute(
                """
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            connection.commit()

    @override
    def delete(self, key: str) -> None:
        with connect(self.db_path) as connection:
            _ = connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            connection.commit()
