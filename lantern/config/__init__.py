from .config import PACKAGE_PATH, Config, load_config
from .logging_config import diagnostics_logger, get_logger, setup_logging
