# main.py
"""
Entry point script for the SEMMeasure application.

Initializes logging, sets up the QApplication instance (handling High DPI),
instantiates and shows the MainWindow, and starts the Qt event loop.
"""

import sys
import logging
from typing import Optional

from PySide6 import QtWidgets, QtCore

import config
import logging_config_utils
from logging_config_utils import shutdown_logging

# Early console logging; setup_logging_from_settings() replaces it once QSettings is usable.
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def main() -> int:
    logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION} (initial log setup)")
    app: Optional[QtWidgets.QApplication] = None
    exit_code = 1
    try:
        app = QtWidgets.QApplication.instance()
        if app is None:
            logger.debug("No existing QApplication found, creating a new one.")
            QtWidgets.QApplication.setHighDpiScaleFactorRoundingPolicy(
                QtCore.Qt.HighDpiScaleFactorRoundingPolicy.PassThrough)
            app = QtWidgets.QApplication(sys.argv)
            logger.info("QApplication instance created.")
        else:
            logger.info("Reusing existing QApplication instance.")

        app.setApplicationName(config.APP_NAME)
        app.setOrganizationName(config.APP_ORGANIZATION)
        app.setApplicationVersion(config.APP_VERSION)

        # QSettings needs the application and organization names set first.
        logging_config_utils.setup_logging_from_settings()
        logger.info(f"{config.APP_NAME} v{config.APP_VERSION} started with full logging configuration.")

        # Imported late so module-level loggers pick up the final configuration.
        from main_window import MainWindow

        window = MainWindow()
        window.show()
        logger.info("MainWindow shown.")

        logger.info("Starting Qt event loop...")
        exit_code = app.exec()
        logger.info(f"Qt event loop finished with exit code {exit_code}.")
    except Exception as e:
        logger.critical(f"An unhandled exception occurred during startup: {e}", exc_info=True)
        if app:
            error_box = QtWidgets.QMessageBox()
            error_box.setIcon(QtWidgets.QMessageBox.Icon.Critical)
            error_box.setWindowTitle("Critical Error")
            error_box.setText(f"A critical error occurred:\n{e}\n\nPlease check the logs.")
            error_box.exec()
        exit_code = 1
    finally:
        logger.info("Application is preparing to exit. Shutting down logging.")
        shutdown_logging()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
