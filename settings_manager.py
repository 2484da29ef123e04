# settings_manager.py
"""
Manages application settings using QSettings, providing type-safe access
and default values.
"""
import logging
import os
from typing import Any, Optional

from PySide6 import QtCore, QtGui

import config

logger = logging.getLogger(__name__)

# --- Define Setting Keys ---
OVERLAY_GROUP = "overlay_visuals"
KEY_MEASUREMENT_LINE_COLOR = f"{OVERLAY_GROUP}/measurementLineColor"
KEY_MEASUREMENT_LINE_WIDTH = f"{OVERLAY_GROUP}/measurementLineWidth"
KEY_GUIDE_LINE_COLOR = f"{OVERLAY_GROUP}/guideLineColor"
KEY_GUIDE_LINE_WIDTH = f"{OVERLAY_GROUP}/guideLineWidth"
KEY_PREVIEW_COLOR = f"{OVERLAY_GROUP}/previewColor"
KEY_TICK_LENGTH = f"{OVERLAY_GROUP}/tickLength"
KEY_SHOW_MEASUREMENT_IDS = f"{OVERLAY_GROUP}/showMeasurementIds"
KEY_LABEL_FONT_SIZE = f"{OVERLAY_GROUP}/labelFontSize"

CALIBRATION_GROUP = "calibration"
KEY_CALIBRATION_COLOR = f"{CALIBRATION_GROUP}/calibrationColor"
KEY_DEFAULT_UNIT = f"{CALIBRATION_GROUP}/defaultUnit"

SESSION_STATE_GROUP = "session_state"
KEY_LAST_IMAGE_DIRECTORY = f"{SESSION_STATE_GROUP}/lastImageDirectory"
KEY_LAST_EXPORT_DIRECTORY = f"{SESSION_STATE_GROUP}/lastExportDirectory"

LOGGING_GROUP = "logging"
KEY_LOGGING_ENABLED = f"{LOGGING_GROUP}/enabled"
KEY_LOGGING_FILE_PATH = f"{LOGGING_GROUP}/filePath"
KEY_LOGGING_LEVEL = f"{LOGGING_GROUP}/level"


DEFAULT_SETTINGS = {
    KEY_MEASUREMENT_LINE_COLOR: QtGui.QColor(255, 255, 255, 217),
    KEY_MEASUREMENT_LINE_WIDTH: 1.5,
    KEY_GUIDE_LINE_COLOR: QtGui.QColor(255, 255, 255, 217),
    KEY_GUIDE_LINE_WIDTH: 1.0,
    KEY_PREVIEW_COLOR: QtGui.QColor(0, 255, 255, 230),
    KEY_TICK_LENGTH: config.TICK_LENGTH_VIEWPORT_PX,
    KEY_SHOW_MEASUREMENT_IDS: True,
    KEY_LABEL_FONT_SIZE: 10,

    KEY_CALIBRATION_COLOR: QtGui.QColor("magenta"),
    KEY_DEFAULT_UNIT: config.DEFAULT_UNIT,

    KEY_LAST_IMAGE_DIRECTORY: "",
    KEY_LAST_EXPORT_DIRECTORY: "",

    KEY_LOGGING_ENABLED: False,
    KEY_LOGGING_FILE_PATH: "",  # Empty means setup_logging uses get_default_log_path
    KEY_LOGGING_LEVEL: "INFO",
}

_settings_instance: Optional[QtCore.QSettings] = None


def _get_settings() -> QtCore.QSettings:
    global _settings_instance
    if _settings_instance is None:
        app = QtCore.QCoreApplication.instance()
        if app:
            if not QtCore.QCoreApplication.organizationName():
                QtCore.QCoreApplication.setOrganizationName(config.APP_ORGANIZATION)
            if not QtCore.QCoreApplication.applicationName():
                QtCore.QCoreApplication.setApplicationName(config.APP_NAME)
        else:
            logger.warning("QCoreApplication instance not found. Using INI format for QSettings.")
            QtCore.QSettings.setDefaultFormat(QtCore.QSettings.Format.IniFormat)
            config_path = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.StandardLocation.AppConfigLocation)
            if config_path and not os.path.exists(config_path):
                os.makedirs(config_path, exist_ok=True)

        _settings_instance = QtCore.QSettings(config.APP_ORGANIZATION, config.APP_NAME)
        logger.info(f"QSettings initialized. Path: {_settings_instance.fileName()} Status: {_settings_instance.status().name}")
    return _settings_instance


def _coerce(key: str, stored_value: Any, effective_default: Any) -> Any:
    """Converts a raw QSettings value to the type of the key's default."""
    expected_type = type(effective_default) if effective_default is not None else str

    if expected_type is QtGui.QColor:
        color = QtGui.QColor(str(stored_value))
        if color.isValid():
            return color
        logger.warning(f"Invalid color string '{stored_value}' retrieved for key '{key}'. Returning default.")
        return effective_default
    if expected_type is bool:
        if isinstance(stored_value, bool):
            return stored_value
        if isinstance(stored_value, str):
            if stored_value.lower() == 'true': return True
            if stored_value.lower() == 'false': return False
        try:
            return bool(int(float(str(stored_value))))
        except (ValueError, TypeError):
            logger.warning(f"Could not convert stored value '{stored_value}' to bool for key '{key}'. Returning default.")
            return effective_default
    if expected_type is float:
        try:
            return float(stored_value)
        except (ValueError, TypeError):
            logger.warning(f"Cannot convert stored value '{stored_value}' to float for key '{key}'. Returning default.")
            return effective_default
    if expected_type is int:
        try:
            return int(float(str(stored_value)))
        except (ValueError, TypeError):
            logger.warning(f"Cannot convert stored value '{stored_value}' to int for key '{key}'. Returning default.")
            return effective_default
    if expected_type is str:
        return stored_value if isinstance(stored_value, str) else str(stored_value)

    if isinstance(stored_value, expected_type):
        return stored_value
    logger.warning(f"Type mismatch for key '{key}'. Expected {expected_type}, got {type(stored_value)}. Returning default.")
    return effective_default


def get_setting(key: str, default_override: Optional[Any] = None) -> Any:
    effective_default = default_override if default_override is not None else DEFAULT_SETTINGS.get(key)
    if effective_default is None:
        if key.startswith(SESSION_STATE_GROUP + "/") or key.startswith(LOGGING_GROUP + "/"):
            effective_default = ""
        else:
            logger.error(f"CRITICAL: No default defined anywhere for key '{key}'. This is a programming error.")
            return None

    stored_value = _get_settings().value(key)
    if stored_value is None:
        return effective_default
    return _coerce(key, stored_value, effective_default)


def set_setting(key: str, value: Any) -> None:
    settings = _get_settings()
    value_to_store = value
    if isinstance(value, QtGui.QColor):
        # HexArgb keeps the alpha channel of overlay colors.
        value_to_store = value.name(QtGui.QColor.NameFormat.HexArgb)
    elif isinstance(value, bool):
        value_to_store = "true" if value else "false"

    logger.debug(f"Saving setting '{key}' with value: {value_to_store} (Original type: {type(value)})")
    settings.setValue(key, value_to_store)
    settings.sync()
    if settings.status() != QtCore.QSettings.Status.NoError:
        logger.error(f"Error saving setting '{key}': {settings.status().name}")
