"""
Unit tests for the file based LoggerService.

Covers:
- level mapping and message sanitizing
- global and context sinks
- log store failures
- rotation and duplicate suppression
"""

import logging
import os
from datetime import datetime, timedelta
from logging.handlers import RotatingFileHandler

import pytest

from lantern.services.filesystem import FileSystemService
from lantern.services.log_store import SqliteLogStore
from lantern.services.logger import (
    LEVELS,
    LogFileHandler,
    LoggerService,
    LogRecord,
    level_for_code,
    sanitize_message,
)


class Clock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class RecordingStore:
    def __init__(self):
        self.records = []

    def save(self, record):
        self.records.append(record)


class FailingStore:
    def save(self, record):
        raise RuntimeError("database is locked")


@pytest.fixture
def clock():
    return Clock(datetime(2024, 5, 1, 12, 0, 0))


@pytest.fixture
def file_system():
    return FileSystemService()


@pytest.fixture
def logger(config, file_system, clock):
    logger = LoggerService('service', 'server', config, file_system, clock=clock)
    yield logger
    logger.close()


def read_lines(path):
    with open(path, encoding='utf-8') as fh:
        return fh.read().splitlines()


class TestLevels:

    def test_codes_map_to_levels(self):
        assert [level_for_code(code) for code in range(8)] == list(LEVELS)

    @pytest.mark.parametrize("code", [-1, 8, 42, None, "3"])
    def test_unknown_codes_fall_back_to_notice(self, code):
        assert level_for_code(code) == 'notice'

    def test_record_level_follows_code(self):
        record = LogRecord(3, datetime(2024, 5, 1), 'x', 'service', 'server')
        assert record.level == 'error'


class TestSanitizeMessage:

    def test_collapses_line_breaks(self):
        assert sanitize_message("  first\r\nsecond\rthird\nfourth  ") == "first second third fourth"

    def test_idempotent(self):
        once = sanitize_message(" a\n\nb\r\n c ")
        assert sanitize_message(once) == once

    def test_accepts_non_strings(self):
        assert sanitize_message(42) == "42"


class TestLogRecordFormat:

    def test_format(self):
        record = LogRecord(4, datetime(2024, 5, 1, 12, 30, 5), 'certificate missing', 'service', 'server')
        assert record.format() == '[2024-05-01 12:30:05] [warning] [service/server] [certificate missing]'

    def test_to_dict(self):
        record = LogRecord(6, datetime(2024, 5, 1), 'hello', 'handler', 'index')
        data = record.to_dict()
        assert data['level'] == 'info'
        assert data['context_name'] == 'index'


class TestSinks:

    def test_writes_global_then_context_sink(self, logger, config, monkeypatch):
        written = []
        emit = LogFileHandler.emit

        def recording_emit(handler, entry):
            written.append(handler.baseFilename)
            emit(handler, entry)

        monkeypatch.setattr(LogFileHandler, 'emit', recording_emit)
        logger.warning('certificate missing')

        base = os.path.join(config['ROOT_PATH'], 'var', 'test')
        assert written == [
            os.path.join(base, 'warning.log'),
            os.path.join(base, 'service', 'server', 'warning.log'),
        ]
        for path in written:
            assert read_lines(path) == ['[2024-05-01 12:00:00] [warning] [service/server] [certificate missing]']

    def test_meta_is_appended_as_json(self, logger, config):
        logger.error('mail failed', {'to': 'ada@lantern.test', 'attempt': 1})
        line = read_lines(os.path.join(logger.base_dir, 'error.log'))[0]
        assert line.endswith('[mail failed {"to":"ada@lantern.test","attempt":1}]')

    def test_exception_meta(self, logger):
        logger.critical('handler failed', ValueError('bad input'))
        assert logger.history[-1].message == 'handler failed ValueError: bad input'

    def test_multiline_message_is_one_line(self, logger):
        logger.info('first\nsecond')
        assert read_lines(os.path.join(logger.base_dir, 'info.log')) == [
            '[2024-05-01 12:00:00] [info] [service/server] [first second]'
        ]

    def test_for_context_shares_history(self, logger):
        route_logger = logger.for_context('route', 'index')
        logger.notice('one')
        route_logger.notice('two')

        assert [r.message for r in logger.history] == ['one', 'two']
        assert os.path.isfile(os.path.join(logger.base_dir, 'route', 'index', 'notice.log'))

    def test_history_is_bounded(self, config, file_system, clock):
        logger = LoggerService('service', 'server', config, file_system, clock=clock, max_history_length=3)
        for index in range(5):
            logger.info(f'message {index}')
        assert [r.message for r in logger.history] == ['message 2', 'message 3', 'message 4']

    def test_unknown_limit_is_rejected(self, config, file_system):
        with pytest.raises(TypeError):
            LoggerService('service', 'server', config, file_system, max_files=3)

    def test_file_sink_failure_propagates(self, logger):
        os.makedirs(os.path.join(logger.base_dir, 'error.log'))
        with pytest.raises(OSError):
            logger.error('cannot be written')

    def test_remove_all_log_files(self, logger):
        logger.info('something')
        assert os.path.isdir(logger.base_dir)

        logger.remove_all_log_files()
        assert not os.path.exists(logger.base_dir)

    def test_writes_after_removal_reopen_files(self, logger):
        logger.info('before')
        logger.remove_all_log_files()
        logger.info('after')
        assert read_lines(os.path.join(logger.base_dir, 'info.log'))[0].endswith('[after]')


class TestStore:

    def test_records_are_saved(self, config, file_system, clock):
        store = RecordingStore()
        logger = LoggerService('service', 'server', config, file_system, store=store, clock=clock)
        logger.alert('disk almost full')
        assert [r.message for r in store.records] == ['disk almost full']

    def test_store_failure_is_swallowed(self, config, file_system, clock, caplog):
        logger = LoggerService('service', 'server', config, file_system, store=FailingStore(), clock=clock)

        with caplog.at_level(logging.WARNING, logger='lantern.diagnostics'):
            logger.error('still written')

        assert read_lines(os.path.join(logger.base_dir, 'error.log'))[0].endswith('[still written]')
        assert any('database is locked' in r.getMessage() for r in caplog.records
                   if r.name == 'lantern.diagnostics')

    def test_sqlite_store_persists_level_and_code(self, config, file_system, clock, tmp_path):
        store = SqliteLogStore(str(tmp_path / 'logs.db'))
        logger = LoggerService('service', 'server', config, file_system, store=store, clock=clock)

        logger.error('mail failed')
        logger.for_context('route', 'index').debug('rendered')

        rows = store.find()
        assert [(r['code'], r['level'], r['message']) for r in rows] == [
            (7, 'debug', 'rendered'),
            (3, 'error', 'mail failed'),
        ]
        assert rows[0]['context_type'] == 'route'
        assert rows[1]['date'] == '2024-05-01T12:00:00'

    def test_sqlite_store_filters_by_level(self, config, file_system, clock, tmp_path):
        store = SqliteLogStore(str(tmp_path / 'logs.db'))
        logger = LoggerService('service', 'server', config, file_system, store=store, clock=clock)
        for index in range(3):
            logger.warning(f'warning {index}')
        logger.info('info')

        assert [r['message'] for r in store.find(level='warning', limit=2)] == ['warning 2', 'warning 1']


class TestRotation:

    def test_rotates_at_size_limit(self, config, file_system, clock):
        logger = LoggerService(
            'service', 'server', config, file_system, clock=clock,
            max_size_per_log_file=100, max_log_rotations_per_type=2,
        )
        for index in range(10):
            logger.warning(f'message number {index}')

        path = os.path.join(logger.base_dir, 'warning.log')
        assert os.path.isfile(path + '.1')
        assert os.path.isfile(path + '.2')
        assert not os.path.exists(path + '.3')
        assert read_lines(path)[-1].endswith('[message number 9]')
        assert isinstance(logger._state.handlers[path], RotatingFileHandler)
        logger.close()

    def test_below_limit_does_not_rotate(self, logger):
        logger.warning('small')
        assert not os.path.exists(os.path.join(logger.base_dir, 'warning.log.1'))


class TestDuplicates:

    def test_identical_message_within_window_is_written_once(self, logger, clock):
        logger.error('connection refused')
        clock.advance(5)
        logger.error('connection refused')

        assert len(read_lines(os.path.join(logger.base_dir, 'error.log'))) == 1
        assert len(logger.history) == 1

    def test_window_is_measured_from_first_occurrence(self, logger, clock):
        logger.error('connection refused')
        for _ in range(3):
            clock.advance(4)
            logger.error('connection refused')

        assert len(read_lines(os.path.join(logger.base_dir, 'error.log'))) == 2

    def test_different_messages_are_all_written(self, logger):
        logger.error('first')
        logger.error('second')
        logger.error('first')
        assert len(read_lines(os.path.join(logger.base_dir, 'error.log'))) == 3

    def test_forget_duplicates_opens_a_new_window(self, logger, clock):
        logger.warning('.key and .pem files missing')
        logger.forget_duplicates()
        clock.advance(1)
        logger.warning('.key and .pem files missing')

        assert len(read_lines(os.path.join(logger.base_dir, 'warning.log'))) == 2
