import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class User:
    email: str
    password_hash: Optional[str] = None
    password_token: Optional[str] = None
    password_token_created_at: Optional[datetime] = None
    id: Optional[int] = None


class SqliteUserStore:
    """Keeps users in the same sqlite database as the log store."""

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT,
            password_token TEXT UNIQUE,
            password_token_created_at TEXT
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

    def _find_one(self, column, value) -> Optional[User]:
        with self._connection() as conn:
            row = conn.execute(f"SELECT * FROM users WHERE {column} = ?", (value,)).fetchone()
        if row is None:
            return None
        created_at = row['password_token_created_at']
        return User(
            id=row['id'],
            email=row['email'],
            password_hash=row['password_hash'],
            password_token=row['password_token'],
            password_token_created_at=datetime.fromisoformat(created_at) if created_at else None,
        )

    def find_by_email(self, email: str) -> Optional[User]:
        return self._find_one('email', email.strip().lower())

    def find_by_password_token(self, token: str) -> Optional[User]:
        return self._find_one('password_token', token)

    def save(self, user: User) -> User:
        created_at = user.password_token_created_at.isoformat() if user.password_token_created_at else None
        user.email = user.email.strip().lower()
        with self._connection() as conn:
            if user.id is None:
                cursor = conn.execute(
                    "INSERT INTO users (email, password_hash, password_token, password_token_created_at) "
                    "VALUES (?, ?, ?, ?)",
                    (user.email, user.password_hash, user.password_token, created_at),
                )
                user.id = cursor.lastrowid
            else:
                conn.execute(
                    "UPDATE users SET email = ?, password_hash = ?, password_token = ?, "
                    "password_token_created_at = ? WHERE id = ?",
                    (user.email, user.password_hash, user.password_token, created_at, user.id),
                )
        return user
