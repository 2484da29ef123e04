# preferences_dialog.py
"""
Preferences dialog for overlay appearance, calibration defaults and logging.
"""
import logging
from typing import Any, Dict, Optional

from PySide6 import QtCore, QtGui, QtWidgets

import settings_manager
from logging_config_utils import LOGGING_LEVELS_MAP, setup_logging_from_settings

logger = logging.getLogger(__name__)

_LOGGING_KEYS = (settings_manager.KEY_LOGGING_ENABLED, settings_manager.KEY_LOGGING_LEVEL)


class ColorButton(QtWidgets.QPushButton):
    """A button that displays a color and opens a QColorDialog on click."""
    colorChanged = QtCore.Signal(QtGui.QColor)

    def __init__(self, initial_color: QtGui.QColor = QtGui.QColor("white"), parent: Optional[QtWidgets.QWidget] = None):
        super().__init__(parent)
        self._color = QtGui.QColor()
        self.set_color(initial_color)
        self.clicked.connect(self.select_color)
        self.setToolTip("Click to select color")
        self.setFixedSize(QtCore.QSize(50, 25))

    def set_color(self, color: QtGui.QColor) -> None:
        if color.isValid() and color != self._color:
            self._color = QtGui.QColor(color)
            brightness = (self._color.red() * 299 + self._color.green() * 587 + self._color.blue() * 114) / 1000
            text_color = "black" if brightness > 128 else "white"
            self.setStyleSheet(
                f"QPushButton {{ background-color: {self._color.name()}; color: {text_color}; border: 1px solid gray; }}"
            )

    def color(self) -> QtGui.QColor:
        return self._color

    def select_color(self) -> None:
        color = QtWidgets.QColorDialog.getColor(
            self._color, self.window(), "Select Color",
            QtWidgets.QColorDialog.ColorDialogOption.ShowAlphaChannel)
        if color.isValid():
            self.set_color(color)
            self.colorChanged.emit(color)


class PreferencesDialog(QtWidgets.QDialog):
    settingsApplied = QtCore.Signal()

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None):
        super().__init__(parent)
        self.setWindowTitle("Preferences")
        self.setMinimumWidth(420)

        self.setting_widgets: Dict[str, QtWidgets.QWidget] = {}
        self.tab_widget = QtWidgets.QTabWidget()

        self._setup_ui()
        self._load_settings()
        logger.debug("PreferencesDialog initialized.")

    def _setup_ui(self) -> None:
        main_layout = QtWidgets.QVBoxLayout(self)
        main_layout.setSpacing(10)
        main_layout.addWidget(self.tab_widget)

        self._create_overlay_tab()
        self._create_calibration_tab()
        self._create_logging_tab()

        button_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Ok |
            QtWidgets.QDialogButtonBox.StandardButton.Cancel |
            QtWidgets.QDialogButtonBox.StandardButton.Apply
        )
        button_box.accepted.connect(self.accept)
        button_box.rejected.connect(self.reject)
        apply_button = button_box.button(QtWidgets.QDialogButtonBox.StandardButton.Apply)
        if apply_button:
            apply_button.clicked.connect(self._apply_settings)
        main_layout.addWidget(button_box)

    def _new_form_tab(self, title: str) -> QtWidgets.QFormLayout:
        tab = QtWidgets.QWidget()
        form = QtWidgets.QFormLayout(tab)
        form.setRowWrapPolicy(QtWidgets.QFormLayout.RowWrapPolicy.WrapLongRows)
        form.setLabelAlignment(QtCore.Qt.AlignmentFlag.AlignRight)
        form.setHorizontalSpacing(10)
        form.setVerticalSpacing(8)
        self.tab_widget.addTab(tab, title)
        return form

    def _add_setting_to_form(self, form_layout: QtWidgets.QFormLayout,
                             label_text: str, setting_key: str,
                             widget_type: str, widget_params: Optional[Dict] = None) -> None:
        params = widget_params or {}
        widget: Optional[QtWidgets.QWidget] = None
        if widget_type == "color":
            widget = ColorButton()
        elif widget_type == "double_spinbox":
            widget = QtWidgets.QDoubleSpinBox()
            widget.setMinimum(params.get("min_val", 0.0))
            widget.setMaximum(params.get("max_val", 100.0))
            widget.setDecimals(params.get("decimals", 1))
            widget.setSingleStep(params.get("step", 0.5))
        elif widget_type == "int_spinbox":
            widget = QtWidgets.QSpinBox()
            widget.setMinimum(params.get("min_val", 1))
            widget.setMaximum(params.get("max_val", 100))
        elif widget_type == "checkbox":
            widget = QtWidgets.QCheckBox()
        elif widget_type == "line_edit":
            widget = QtWidgets.QLineEdit()
        elif widget_type == "combobox":
            widget = QtWidgets.QComboBox()
            widget.addItems(params.get("items", []))

        if widget is None:
            logger.warning(f"Unsupported widget_type '{widget_type}' for setting '{setting_key}'.")
            return
        if "tooltip" in params:
            widget.setToolTip(params["tooltip"])
        form_layout.addRow(label_text, widget)
        self.setting_widgets[setting_key] = widget

    def _create_overlay_tab(self) -> None:
        form = self._new_form_tab("Overlay")
        self._add_setting_to_form(form, "Measurement Line:", settings_manager.KEY_MEASUREMENT_LINE_COLOR, "color")
        self._add_setting_to_form(form, "Measurement Line Width (px):", settings_manager.KEY_MEASUREMENT_LINE_WIDTH, "double_spinbox", {"min_val": 0.5, "max_val": 10.0, "decimals": 1, "step": 0.5})
        self._add_setting_to_form(form, "Guide Line:", settings_manager.KEY_GUIDE_LINE_COLOR, "color")
        self._add_setting_to_form(form, "Guide Line Width (px):", settings_manager.KEY_GUIDE_LINE_WIDTH, "double_spinbox", {"min_val": 0.5, "max_val": 10.0, "decimals": 1, "step": 0.5})
        self._add_setting_to_form(form, "Preview:", settings_manager.KEY_PREVIEW_COLOR, "color")
        self._add_setting_to_form(form, "Tick Length (screen px):", settings_manager.KEY_TICK_LENGTH, "double_spinbox", {"min_val": 2.0, "max_val": 100.0, "decimals": 1, "step": 1.0, "tooltip": "On-screen length of the perpendicular end ticks."})
        self._add_setting_to_form(form, "Show Measurement IDs:", settings_manager.KEY_SHOW_MEASUREMENT_IDS, "checkbox")
        self._add_setting_to_form(form, "ID Font Size (pt):", settings_manager.KEY_LABEL_FONT_SIZE, "int_spinbox", {"min_val": 6, "max_val": 48})

    def _create_calibration_tab(self) -> None:
        form = self._new_form_tab("Calibration")
        self._add_setting_to_form(form, "Calibration Line:", settings_manager.KEY_CALIBRATION_COLOR, "color")
        self._add_setting_to_form(form, "Default Unit:", settings_manager.KEY_DEFAULT_UNIT, "line_edit", {"tooltip": "Unit pre-filled in the calibration panel, e.g. nm or µm."})

    def _create_logging_tab(self) -> None:
        form = self._new_form_tab("Logging")
        self._add_setting_to_form(form, "Enable Logging to File:", settings_manager.KEY_LOGGING_ENABLED, "checkbox")
        self._add_setting_to_form(form, "Logging Level:", settings_manager.KEY_LOGGING_LEVEL, "combobox", {"items": list(LOGGING_LEVELS_MAP.keys())})

    def _load_settings(self) -> None:
        logger.debug("Loading settings into PreferencesDialog widgets.")
        for key, widget in self.setting_widgets.items():
            value = settings_manager.get_setting(key)
            if isinstance(widget, ColorButton):
                if isinstance(value, QtGui.QColor) and value.isValid():
                    widget.set_color(value)
                else:
                    widget.set_color(settings_manager.DEFAULT_SETTINGS.get(key, QtGui.QColor("black")))
            elif isinstance(widget, QtWidgets.QDoubleSpinBox):
                widget.setValue(float(value))
            elif isinstance(widget, QtWidgets.QSpinBox):
                widget.setValue(int(value))
            elif isinstance(widget, QtWidgets.QCheckBox):
                widget.setChecked(bool(value))
            elif isinstance(widget, QtWidgets.QLineEdit):
                widget.setText(str(value))
            elif isinstance(widget, QtWidgets.QComboBox):
                index = widget.findText(str(value).upper())
                widget.setCurrentIndex(index if index >= 0 else widget.findText("INFO"))

    def _widget_value(self, widget: QtWidgets.QWidget) -> Any:
        if isinstance(widget, ColorButton):
            return widget.color()
        if isinstance(widget, (QtWidgets.QDoubleSpinBox, QtWidgets.QSpinBox)):
            return widget.value()
        if isinstance(widget, QtWidgets.QCheckBox):
            return widget.isChecked()
        if isinstance(widget, QtWidgets.QLineEdit):
            return widget.text().strip()
        if isinstance(widget, QtWidgets.QComboBox):
            return widget.currentText()
        return None

    def _apply_settings(self) -> bool:
        logger.info("Applying preferences...")
        logging_changed = False
        for key, widget in self.setting_widgets.items():
            value_to_save = self._widget_value(widget)
            if value_to_save is None:
                continue
            if key in _LOGGING_KEYS and value_to_save != settings_manager.get_setting(key):
                logging_changed = True
            settings_manager.set_setting(key, value_to_save)
        if logging_changed:
            setup_logging_from_settings()
        logger.info("Preferences applied and saved.")
        self.settingsApplied.emit()
        return True

    def accept(self) -> None:
        if self._apply_settings():
            super().accept()
