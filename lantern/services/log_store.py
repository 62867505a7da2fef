"""
Persistent log store backed by sqlite.

The logger only needs ``save(record)``; anything with that method can be
attached instead.
"""

import os
import sqlite3
from contextlib import contextmanager
from typing import Protocol


class LogStore(Protocol):
    def save(self, record) -> None:
        ...


class SqliteLogStore:
    SCHEMA = """
        CREATE TABLE IF NOT EXISTS logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            code INTEGER NOT NULL,
            level TEXT NOT NULL,
            date TEXT NOT NULL,
            message TEXT NOT NULL,
            context_type TEXT NOT NULL,
            context_name TEXT NOT NULL
        )
    """

    def __init__(self, database_path: str):
        self.database_path = database_path
        directory = os.path.dirname(database_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with self._connection() as conn:
            conn.execute(self.SCHEMA)

    @contextmanager
    def _connection(self):
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def save(self, record) -> None:
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO logs (code, level, date, message, context_type, context_name) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (record.code, record.level, record.date.isoformat(), record.message,
                 record.context_type, record.context_name),
            )

    def find(self, level: str = None, limit: int = 100) -> list[dict]:
        query = "SELECT code, level, date, message, context_type, context_name FROM logs"
        args = ()
        if level:
            query += " WHERE level = ?"
            args = (level,)
        query += " ORDER BY id DESC LIMIT ?"
        with self._connection() as conn:
            rows = conn.execute(query, args + (limit,)).fetchall()
        return [dict(row) for row in rows]
