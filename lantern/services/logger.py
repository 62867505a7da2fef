"""
LoggerService: leveled logging into plain files.

Every record is written to two sinks below ``<root>/var/<app_context>``:

    <level>.log                                  (global, per level)
    <context_type>/<context_name>/<level>.log    (per context, per level)

Usage:
    logger = LoggerService('service', 'server', config, file_system)
    logger.warning('certificate missing', [key_path, cert_path])

    handler_logger = logger.for_context('handler', 'user-sign-in')
"""

import logging
import os
import re
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from logging.handlers import RotatingFileHandler

from ..common.string_utils import cast
from ..config.logging_config import diagnostics_logger, get_logger
from .filesystem import FileSystemService

LEVELS = ('emergency', 'alert', 'critical', 'error', 'warning', 'notice', 'info', 'debug')
DEFAULT_LEVEL = 'notice'

# stdlib levels used when mirroring records to the console
STDLIB_LEVELS = {
    0: logging.CRITICAL,
    1: logging.CRITICAL,
    2: logging.CRITICAL,
    3: logging.ERROR,
    4: logging.WARNING,
    5: logging.INFO,
    6: logging.INFO,
    7: logging.DEBUG,
}

LINE_BREAKS = re.compile(r'\r\n|\r|\n')


class LogFileHandler(RotatingFileHandler):
    """
    One sink file. Rolls over to <file>.1 .. <file>.<backupCount> at maxBytes.

    Write failures propagate to the caller instead of being printed to stderr.
    """

    def __init__(self, path, maxBytes, backupCount):
        super().__init__(path, maxBytes=maxBytes, backupCount=backupCount, encoding='utf-8', delay=True)
        self.setFormatter(logging.Formatter('%(message)s'))

    def handleError(self, record):
        raise


def level_for_code(code: int) -> str:
    if isinstance(code, int) and 0 <= code < len(LEVELS):
        return LEVELS[code]
    return DEFAULT_LEVEL


def sanitize_message(message) -> str:
    """Trims the message and collapses every line break to one space."""
    return LINE_BREAKS.sub(' ', str(message).strip())


@dataclass(frozen=True)
class LogRecord:
    code: int
    date: datetime
    message: str
    context_type: str
    context_name: str

    @property
    def level(self) -> str:
        return level_for_code(self.code)

    def format(self) -> str:
        output = (
            f"[{self.date.strftime('%Y-%m-%d %H:%M:%S')}] "
            f"[{self.level}] "
            f"[{self.context_type}/{self.context_name}] "
            f"[{self.message}]"
        )
        return LINE_BREAKS.sub('', output).strip()

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'level': self.level,
            'date': self.date.isoformat(),
            'message': self.message,
            'context_type': self.context_type,
            'context_name': self.context_name,
        }


class _LoggerState:
    """State shared by a logger and every logger derived from it."""

    def __init__(self, max_history_length):
        self.history = deque(maxlen=max_history_length)
        self.last_messages = {}
        self.handlers = {}
        self.lock = threading.Lock()


class LoggerService:
    max_size_per_log_file = 16 * 1024 * 1024
    max_log_rotations_per_type = 10
    max_history_length = 1000
    duplicate_time = 10.0

    def __init__(self, context_type, context_name, config, file_system: FileSystemService,
                 store=None, clock=datetime.now, _state=None, **limits):
        self.context_type = context_type
        self.context_name = context_name
        self.config = config
        self.file_system = file_system
        self.store = store
        self.clock = clock

        for name, value in limits.items():
            if not hasattr(LoggerService, name):
                raise TypeError(f"unknown logger limit '{name}'")
            setattr(self, name, value)

        self._limits = limits
        self._state = _state or _LoggerState(self.max_history_length)
        self._stdlib_logger = get_logger(context_type)

    @property
    def base_dir(self) -> str:
        return os.path.join(self.config['ROOT_PATH'], 'var', self.config['APP_CONTEXT'])

    @property
    def history(self) -> list[LogRecord]:
        return list(self._state.history)

    def for_context(self, context_type, context_name) -> 'LoggerService':
        return LoggerService(
            context_type,
            context_name,
            self.config,
            self.file_system,
            store=self.store,
            clock=self.clock,
            _state=self._state,
            **self._limits,
        )

    def emergency(self, message, meta=None):
        self.log(0, message, meta)

    def alert(self, message, meta=None):
        self.log(1, message, meta)

    def critical(self, message, meta=None):
        self.log(2, message, meta)

    def error(self, message, meta=None):
        self.log(3, message, meta)

    def warning(self, message, meta=None):
        self.log(4, message, meta)

    def notice(self, message, meta=None):
        self.log(5, message, meta)

    def info(self, message, meta=None):
        self.log(6, message, meta)

    def debug(self, message, meta=None):
        self.log(7, message, meta)

    def log(self, code, message, meta=None, context_type=None, context_name=None):
        text = str(message)
        if meta is not None:
            text = f"{text} {cast(meta)}"

        record = LogRecord(
            code=code,
            date=self.clock(),
            message=sanitize_message(text),
            context_type=context_type or self.context_type,
            context_name=context_name or self.context_name,
        )

        if self._is_duplicate(record):
            return

        self._state.history.append(record)
        self._persist(record)
        self._stdlib_logger.log(
            STDLIB_LEVELS.get(code, logging.INFO),
            '[%s/%s] %s', record.context_type, record.context_name, record.message,
        )
        self.write(record)

    def write(self, record: LogRecord):
        """Appends the record to the global sink, then to the context sink."""
        entry = logging.makeLogRecord({'msg': record.format()})
        for path in self.log_file_paths(record):
            with self.file_system.lock(path):
                self._handler(path).handle(entry)

    def log_file_paths(self, record: LogRecord) -> list[str]:
        file_name = record.level + '.log'
        return [
            os.path.join(self.base_dir, file_name),
            os.path.join(self.base_dir, record.context_type, record.context_name, file_name),
        ]

    def remove_all_log_files(self):
        self.close()
        self.file_system.remove(self.base_dir)

    def close(self):
        """Closes every open sink; the next record reopens its files."""
        with self._state.lock:
            handlers = list(self._state.handlers.values())
            self._state.handlers.clear()
        for handler in handlers:
            handler.close()

    def forget_duplicates(self):
        """Starts a new duplicate window, so the next occurrence of any message is written."""
        with self._state.lock:
            self._state.last_messages.clear()

    def _persist(self, record):
        if self.store is None:
            return
        try:
            self.store.save(record)
        except Exception as e:
            diagnostics_logger.warning(
                'Log store rejected record from %s/%s: %s',
                record.context_type, record.context_name, e,
            )

    def _is_duplicate(self, record) -> bool:
        key = (record.context_type, record.context_name, record.code)
        with self._state.lock:
            previous = self._state.last_messages.get(key)
            duplicate = (
                previous is not None
                and previous[0] == record.message
                and (record.date - previous[1]).total_seconds() < self.duplicate_time
            )
            if not duplicate:
                self._state.last_messages[key] = (record.message, record.date)
        return duplicate

    def _handler(self, path) -> 'LogFileHandler':
        with self._state.lock:
            handler = self._state.handlers.get(path)
            if handler is None:
                self.file_system.ensure_dir_exists(os.path.dirname(path))
                handler = LogFileHandler(
                    path,
                    maxBytes=self.max_size_per_log_file,
                    backupCount=self.max_log_rotations_per_type,
                )
                self._state.handlers[path] = handler
        return handler
