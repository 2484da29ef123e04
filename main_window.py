# main_window.py
import logging
import os
from typing import Dict, Optional

from PySide6 import QtCore, QtGui, QtWidgets

import config
import settings_manager
import ui_setup
from calibration import format_length, format_unit_per_px
from export_handler import ExportHandler, SnapshotResolutionMode
from image_handler import ImageHandler
from measure_canvas import MeasureCanvas
from measurement_session import MeasurementSession, Stage
from overlay_geometry import MeasurementMode
from preferences_dialog import PreferencesDialog
from vector_math import Point

logger = logging.getLogger(__name__)


class MainWindow(QtWidgets.QMainWindow):
    session: MeasurementSession
    image_handler: ImageHandler
    canvas: MeasureCanvas
    export_handler: ExportHandler
    modeButtons: Dict[MeasurementMode, QtWidgets.QPushButton]
    _hover_img: Optional[Point]

    def __init__(self) -> None:
        super().__init__()
        logger.info("Initializing MainWindow...")
        self.setWindowTitle(f"{config.APP_NAME} v{config.APP_VERSION}")
        self.resize(1000, 860)

        self.session = MeasurementSession(self)
        self.image_handler = ImageHandler(self)
        self._hover_img = None

        ui_setup.setup_main_window_ui(self)
        self.export_handler = ExportHandler(self.session, self.image_handler, self.canvas, self)

        self.calUnitLineEdit.setText(settings_manager.get_setting(settings_manager.KEY_DEFAULT_UNIT))
        self._connect_signals()
        self._refresh_all()
        logger.info("MainWindow initialized.")

    def _connect_signals(self) -> None:
        self.backButton.clicked.connect(self._go_back)
        self.restartButton.clicked.connect(self._restart)
        self.openImageButton.clicked.connect(self._open_image_dialog)
        self.openImageAction.triggered.connect(self._open_image_dialog)
        self.applyCalibrationButton.clicked.connect(self._apply_calibration)
        self.calValueLineEdit.returnPressed.connect(self._apply_calibration)
        self.calValueLineEdit.textChanged.connect(self._update_calibration_panel)
        self.deleteLastButton.clicked.connect(self.session.delete_last)
        self.deleteLastAction.triggered.connect(self.session.delete_last)
        self.clearAllButton.clicked.connect(self.session.clear_all)
        self.clearAllAction.triggered.connect(self.session.clear_all)
        self.exportCsvButton.clicked.connect(self._export_csv)
        self.exportCsvAction.triggered.connect(self._export_csv)
        self.exportSnapshotButton.clicked.connect(
            lambda: self._export_snapshot(SnapshotResolutionMode.VIEWPORT))
        self.exportSnapshotViewAction.triggered.connect(
            lambda: self._export_snapshot(SnapshotResolutionMode.VIEWPORT))
        self.exportSnapshotOriginalAction.triggered.connect(
            lambda: self._export_snapshot(SnapshotResolutionMode.ORIGINAL_IMAGE))
        self.preferencesAction.triggered.connect(self._show_preferences)
        self.exitAction.triggered.connect(self.close)
        for mode, button in self.modeButtons.items():
            button.clicked.connect(lambda checked=False, m=mode: self.session.set_mode(m))

        self.canvas.pointPicked.connect(self._handle_point_picked)
        self.canvas.hoverChanged.connect(self._handle_hover_changed)

        self.image_handler.imageLoaded.connect(self._handle_image_loaded)
        self.image_handler.imageLoadFailed.connect(self._handle_image_load_failed)
        self.export_handler.exportFinished.connect(self._handle_export_finished)

        self.session.stageChanged.connect(self._handle_stage_changed)
        self.session.calibrationPointsChanged.connect(self._update_calibration_panel)
        self.session.calibrationChanged.connect(self._update_measure_panel)
        self.session.modeChanged.connect(self._update_measure_panel)
        self.session.pendingPointChanged.connect(self._update_preview_label)
        self.session.measurementsChanged.connect(self._update_measure_panel)

    # --- Slots: navigation ---

    @QtCore.Slot()
    def _go_back(self) -> None:
        self.session.go_back()

    @QtCore.Slot()
    def _restart(self) -> None:
        self.session.restart()

    @QtCore.Slot(object)
    def _handle_stage_changed(self, stage: Stage) -> None:
        if stage == Stage.UPLOAD:
            self.image_handler.release_image()
            self.canvas.set_pixmap(None)
            self.calValueLineEdit.clear()
            self.calUnitLineEdit.setText(settings_manager.get_setting(settings_manager.KEY_DEFAULT_UNIT))
            self.imageInfoLabel.setText("No image loaded")
        self._refresh_all()

    # --- Slots: image loading ---

    @QtCore.Slot()
    def _open_image_dialog(self) -> None:
        start_dir = settings_manager.get_setting(settings_manager.KEY_LAST_IMAGE_DIRECTORY) or os.path.expanduser("~")
        filepath, _ = QtWidgets.QFileDialog.getOpenFileName(self, "Open Image", start_dir, config.IMAGE_FILE_FILTER)
        if not filepath:
            return
        settings_manager.set_setting(settings_manager.KEY_LAST_IMAGE_DIRECTORY, os.path.dirname(filepath))
        self.image_handler.open_image(filepath)

    @QtCore.Slot(dict)
    def _handle_image_loaded(self, info: dict) -> None:
        self.canvas.set_pixmap(self.image_handler.pixmap)
        self.calValueLineEdit.clear()
        self.session.load_image(info['width'], info['height'])
        self.imageInfoLabel.setText(f"{info['filename']}  ({info['width']} x {info['height']} px)")
        self._refresh_all()

    @QtCore.Slot(str)
    def _handle_image_load_failed(self, message: str) -> None:
        # No partial image survives a failed decode.
        self.session.restart()
        self.canvas.set_pixmap(None)
        QtWidgets.QMessageBox.critical(self, "Image Load Error",
                                       f"{message}\n\nPlease try another file.")

    # --- Slots: picking ---

    @QtCore.Slot(float, float)
    def _handle_point_picked(self, x: float, y: float) -> None:
        self.session.pick(Point(x, y))

    def _handle_hover_changed(self, p_img: Optional[Point]) -> None:
        self._hover_img = p_img
        self._update_preview_label()

    # --- Slots: calibration ---

    @QtCore.Slot()
    def _apply_calibration(self) -> None:
        if self.session.stage != Stage.CALIBRATE:
            return
        if not self.session.apply_calibration(self.calValueLineEdit.text(), self.calUnitLineEdit.text()):
            self.statusBar().showMessage(
                "Calibration needs two points and a positive real length.", 5000)
            return
        self.statusBar().showMessage(format_unit_per_px(self.session.calibration), 5000)

    # --- Slots: export ---

    def _ask_save_path(self, caption: str, default_name: str, file_filter: str) -> Optional[str]:
        start_dir = settings_manager.get_setting(settings_manager.KEY_LAST_EXPORT_DIRECTORY) or os.path.expanduser("~")
        filepath, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, caption, os.path.join(start_dir, default_name), file_filter)
        if not filepath:
            return None
        settings_manager.set_setting(settings_manager.KEY_LAST_EXPORT_DIRECTORY, os.path.dirname(filepath))
        return filepath

    @QtCore.Slot()
    def _export_csv(self) -> None:
        if self.session.calibration is None:
            QtWidgets.QMessageBox.warning(self, "Export CSV", "Calibrate the image before exporting measurements.")
            return
        filepath = self._ask_save_path("Export Measurements", config.DEFAULT_CSV_FILENAME,
                                       "CSV Files (*.csv);;All Files (*)")
        if filepath is None:
            return
        if self.session.export_csv(filepath):
            self.statusBar().showMessage(f"Exported {len(self.session.measurements)} measurements to {filepath}", 5000)
        else:
            QtWidgets.QMessageBox.critical(self, "Export CSV", f"Could not write CSV file:\n{filepath}")

    def _export_snapshot(self, mode: SnapshotResolutionMode) -> None:
        if not self.image_handler.is_loaded:
            return
        filepath = self._ask_save_path("Export Snapshot", ExportHandler.default_filename(),
                                       "PNG Images (*.png)")
        if filepath is None:
            return
        self.export_handler.save_snapshot(filepath, mode)

    @QtCore.Slot(bool, str)
    def _handle_export_finished(self, success: bool, message: str) -> None:
        if success:
            self.statusBar().showMessage(message, 5000)
        else:
            QtWidgets.QMessageBox.critical(self, "Export Snapshot", message)

    # --- Slots: preferences ---

    @QtCore.Slot()
    def _show_preferences(self) -> None:
        dialog = PreferencesDialog(self)
        dialog.settingsApplied.connect(self.canvas.reload_style)
        dialog.exec()

    # --- UI refresh ---

    def _refresh_all(self) -> None:
        stage = self.session.stage
        self.stageLabel.setText(f"Stage: <b>{stage}</b>")
        self.backButton.setEnabled(stage != Stage.UPLOAD)
        self.uploadPanel.setVisible(stage == Stage.UPLOAD)
        self.calibrationPanel.setVisible(stage == Stage.CALIBRATE)
        self.measurePanel.setVisible(stage == Stage.MEASURE)
        has_image = self.image_handler.is_loaded
        self.exportSnapshotViewAction.setEnabled(has_image)
        self.exportSnapshotOriginalAction.setEnabled(has_image)
        self._update_calibration_panel()
        self._update_measure_panel()

    def _update_calibration_panel(self, *args) -> None:
        px = self.session.calibration_px_distance()
        self.calPxDistanceLabel.setText(format_length(px, "px"))
        cal_p1, cal_p2 = self.session.calibration_points
        self.applyCalibrationButton.setEnabled(
            cal_p1 is not None and cal_p2 is not None and bool(self.calValueLineEdit.text().strip()))

    def _update_measure_panel(self, *args) -> None:
        measurements = self.session.measurements
        calibration = self.session.calibration
        has_measurements = bool(measurements)
        for mode, button in self.modeButtons.items():
            button.setChecked(mode == self.session.mode)
        self.calibrationInfoLabel.setText(format_unit_per_px(calibration))
        self.deleteLastButton.setEnabled(has_measurements)
        self.deleteLastAction.setEnabled(has_measurements)
        self.clearAllButton.setEnabled(has_measurements)
        self.clearAllAction.setEnabled(has_measurements)
        can_export_csv = has_measurements and calibration is not None
        self.exportCsvButton.setEnabled(can_export_csv)
        self.exportCsvAction.setEnabled(can_export_csv)
        self.exportSnapshotButton.setEnabled(self.image_handler.is_loaded)
        self.measurementCountLabel.setText(f"Measured: <b>{len(measurements)}</b>")
        self._populate_measurements_table()
        self._update_preview_label()

    def _populate_measurements_table(self) -> None:
        table = self.measurementsTable
        measurements = self.session.measurements
        unit = self.session.calibration.unit if self.session.calibration else ""
        table.setRowCount(len(measurements))
        for row, m in enumerate(measurements):
            converted = self.session.to_units(m.px_distance)
            cells = {
                config.COL_MEAS_ID: str(m.id),
                config.COL_MEAS_MODE: m.mode.glyph,
                config.COL_MEAS_PX: f"{m.px_distance:.2f}",
                config.COL_MEAS_DISTANCE: format_length(converted, unit, 3),
            }
            for col, text in cells.items():
                item = QtWidgets.QTableWidgetItem(text)
                item.setTextAlignment(QtCore.Qt.AlignmentFlag.AlignRight | QtCore.Qt.AlignmentFlag.AlignVCenter)
                table.setItem(row, col, item)
        if measurements:
            table.scrollToBottom()

    def _update_preview_label(self, *args) -> None:
        px = self.session.preview_px_distance(self._hover_img)
        if px is None:
            self.previewLabel.setText("Preview: -")
            return
        text = f"Preview: <b>{px:.2f}</b> px"
        converted = self.session.to_units(px)
        if converted is not None and self.session.calibration is not None:
            text += f" = {converted:.3f} {self.session.calibration.unit}"
        self.previewLabel.setText(text)

    # --- Qt overrides ---

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        logger.info("MainWindow closing.")
        self.image_handler.release_image()
        super().closeEvent(event)
