"""
File system helpers used by the logger and the server.

The service itself is stateless; it only keeps one lock per target path so
that "ensure directory, then append" sequences against the same file do not
interleave.
"""

import os
import shutil
import threading
from contextlib import contextmanager


class FileSystemService:

    def __init__(self):
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def lock(self, path: str):
        """Serializes work on a single path across threads."""
        key = os.path.abspath(path)
        with self._locks_guard:
            path_lock = self._locks.setdefault(key, threading.Lock())
        with path_lock:
            yield

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path) and not os.path.islink(path)

    def is_directory(self, path: str) -> bool:
        return os.path.isdir(path) and not os.path.islink(path)

    def is_symlink(self, path: str) -> bool:
        return os.path.islink(path)

    def is_symlink_to_directory(self, path: str) -> bool:
        return os.path.islink(path) and os.path.isdir(path)

    def ensure_dir_exists(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def ensure_file_exists(self, path: str) -> None:
        if os.access(path, os.R_OK):
            return
        self.ensure_dir_exists(os.path.dirname(path) or '.')
        with open(path, 'a', encoding='utf-8'):
            pass

    def append_file(self, path: str, data: str) -> None:
        with open(path, 'a', encoding='utf-8') as fh:
            fh.write(data)

    def read_file(self, path: str) -> str:
        with open(path, 'r', encoding='utf-8') as fh:
            return fh.read()

    def read_bytes(self, path: str) -> bytes:
        with open(path, 'rb') as fh:
            return fh.read()

    def read_directory(self, path: str) -> list[str]:
        return sorted(os.listdir(path))

    def size(self, path: str) -> int:
        try:
            return os.path.getsize(path)
        except OSError:
            return 0

    def rename(self, old_path: str, new_path: str) -> None:
        os.replace(old_path, new_path)

    def remove(self, path: str) -> None:
        """Removes a file, a symlink or a whole directory tree; missing paths are ignored."""
        if os.path.islink(path) or os.path.isfile(path):
            os.unlink(path)
        elif os.path.isdir(path):
            shutil.rmtree(path)
