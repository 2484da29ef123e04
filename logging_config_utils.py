# logging_config_utils.py
"""
Utilities for configuring and managing logging for SEMMeasure.

Determines the default log path and sets up the root logger from the saved
application settings (console handler always, file handler when enabled).
"""
import logging
import os
import sys
from typing import Optional

import settings_manager
import config

# Kept at module level so a later reconfiguration can remove and close it.
_custom_file_handler: Optional[logging.FileHandler] = None

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOGGING_LEVELS_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_default_log_path() -> str:
    """
    Returns the default absolute path for the log file.

    The log file (SEMMeasure.log) sits next to the executable when bundled,
    or next to the main script when run from source.
    """
    log_filename = f"{config.APP_NAME}.log"
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        application_path = os.path.dirname(sys.executable)
    else:
        application_path = os.path.abspath(os.path.dirname(sys.argv[0]))
    return os.path.join(application_path, log_filename)


def _make_formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def setup_logging_from_settings() -> None:
    """
    Configures the root logger from settings_manager.

    Sets the root level, makes sure a console StreamHandler exists at that level,
    and (re)creates the file handler in overwrite mode when file logging is enabled.
    An empty saved path resolves to get_default_log_path() and is saved back.
    """
    global _custom_file_handler
    root_logger = logging.getLogger()

    logging_enabled = settings_manager.get_setting(settings_manager.KEY_LOGGING_ENABLED)
    log_file_path_setting = settings_manager.get_setting(settings_manager.KEY_LOGGING_FILE_PATH)
    log_level_str = str(settings_manager.get_setting(settings_manager.KEY_LOGGING_LEVEL))
    log_level = LOGGING_LEVELS_MAP.get(log_level_str.upper(), logging.INFO)

    root_logger.setLevel(log_level)

    console_handler_exists = False
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(log_level)
            console_handler_exists = True
            break
    if not console_handler_exists:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(_make_formatter())
        root_logger.addHandler(console_handler)
        logging.debug(f"Added new StreamHandler with level {log_level_str}.")

    if _custom_file_handler is not None:
        root_logger.removeHandler(_custom_file_handler)
        _custom_file_handler.close()
        _custom_file_handler = None

    if not logging_enabled:
        logging.info("File logging is disabled in settings.")
        return

    actual_log_file_path = log_file_path_setting
    if not actual_log_file_path or not os.path.isabs(actual_log_file_path):
        actual_log_file_path = get_default_log_path()
        if not log_file_path_setting:
            settings_manager.set_setting(settings_manager.KEY_LOGGING_FILE_PATH, actual_log_file_path)
    try:
        log_dir = os.path.dirname(actual_log_file_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(actual_log_file_path, mode='w', encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(_make_formatter())
        root_logger.addHandler(file_handler)
        _custom_file_handler = file_handler
        logging.info(f"File logging enabled to '{actual_log_file_path}' with level {log_level_str}.")
    except OSError as e:
        logging.error(f"Failed to set up file logging to '{actual_log_file_path}': {e}", exc_info=True)


def shutdown_logging() -> None:
    """Closes the custom file handler, if any. Call before application exit."""
    global _custom_file_handler
    root_logger = logging.getLogger()
    if _custom_file_handler is None:
        return
    logging.info(f"Shutting down custom file handler for: {_custom_file_handler.baseFilename}")
    try:
        root_logger.removeHandler(_custom_file_handler)
        _custom_file_handler.close()
    except Exception as e:
        # Logging may already be half torn down here.
        print(f"ERROR: Exception during logging shutdown: {e}", file=sys.stderr)
    finally:
        _custom_file_handler = None
