import logging

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

NAMED_LOGGERS = ['lantern', 'lantern.diagnostics']


def setup_logging(config):
    """Configures console output for the stdlib loggers used by the framework."""

    log_level_str = config.get('LOG_LEVEL', 'INFO')
    log_level = getattr(logging, str(log_level_str).upper(), logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    root_logger = logging.getLogger('lantern')
    root_logger.setLevel(log_level)

    if not any(getattr(h, '_lantern_console', False) for h in root_logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler._lantern_console = True
        root_logger.addHandler(console_handler)

    for name in NAMED_LOGGERS[1:]:
        logging.getLogger(name).setLevel(log_level)

    root_logger.debug('Logging configured')


def get_logger(name):
    """Returns a stdlib logger below the lantern namespace."""
    if name == 'lantern' or name.startswith('lantern.'):
        return logging.getLogger(name)
    return logging.getLogger(f'lantern.{name}')


diagnostics_logger = get_logger('diagnostics')
