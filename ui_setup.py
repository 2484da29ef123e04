# ui_setup.py
"""
Handles the creation and layout of UI elements for the MainWindow.

Separates the UI construction logic from the main application logic
in MainWindow.
"""
import logging
from typing import TYPE_CHECKING

from PySide6 import QtCore, QtGui, QtWidgets

import config
from measure_canvas import MeasureCanvas
from overlay_geometry import MeasurementMode

if TYPE_CHECKING:
    from main_window import MainWindow

logger = logging.getLogger(__name__)

_MONO_FONT_FAMILIES = ["ui-monospace", "Menlo", "Consolas", "DejaVu Sans Mono", "monospace"]


def _panel(title: str) -> QtWidgets.QGroupBox:
    group = QtWidgets.QGroupBox(title)
    group.setSizePolicy(QtWidgets.QSizePolicy.Policy.Preferred, QtWidgets.QSizePolicy.Policy.Maximum)
    return group


def setup_main_window_ui(main_window: 'MainWindow') -> None:
    logger.info("Setting up MainWindow UI elements...")
    central = QtWidgets.QWidget()
    main_window.setCentralWidget(central)
    root_layout = QtWidgets.QVBoxLayout(central)
    root_layout.setContentsMargins(8, 8, 8, 8)
    root_layout.setSpacing(8)

    # --- Navigation row ---
    nav_layout = QtWidgets.QHBoxLayout()
    main_window.backButton = QtWidgets.QPushButton("Back")
    main_window.backButton.setToolTip("Return to the previous stage (discards that stage's work)")
    main_window.restartButton = QtWidgets.QPushButton("Restart")
    main_window.restartButton.setToolTip("Clear everything and load a new image")
    main_window.stageLabel = QtWidgets.QLabel()
    nav_layout.addWidget(main_window.backButton)
    nav_layout.addWidget(main_window.restartButton)
    nav_layout.addSpacing(8)
    nav_layout.addWidget(main_window.stageLabel)
    nav_layout.addStretch()
    root_layout.addLayout(nav_layout)

    # --- Upload panel ---
    main_window.uploadPanel = _panel("Upload Image")
    upload_layout = QtWidgets.QHBoxLayout(main_window.uploadPanel)
    upload_layout.addWidget(QtWidgets.QLabel("Load a micrograph (PNG / JPEG / TIFF)."))
    main_window.openImageButton = QtWidgets.QPushButton("Open Image...")
    upload_layout.addWidget(main_window.openImageButton)
    upload_layout.addStretch()
    root_layout.addWidget(main_window.uploadPanel)

    # --- Canvas ---
    main_window.canvas = MeasureCanvas(main_window.session, central)
    root_layout.addWidget(main_window.canvas, stretch=1)

    # --- Calibration panel ---
    main_window.calibrationPanel = _panel("Scale Calibration")
    cal_layout = QtWidgets.QVBoxLayout(main_window.calibrationPanel)
    cal_hint = QtWidgets.QLabel("Click the two ends of the scale bar. A third click starts a new pair.")
    cal_hint.setStyleSheet("color: gray;")
    cal_layout.addWidget(cal_hint)
    cal_row = QtWidgets.QHBoxLayout()
    cal_row.addWidget(QtWidgets.QLabel("Pixel distance:"))
    main_window.calPxDistanceLabel = QtWidgets.QLabel("-")
    main_window.calPxDistanceLabel.setMinimumWidth(90)
    cal_row.addWidget(main_window.calPxDistanceLabel)
    cal_row.addSpacing(12)
    cal_row.addWidget(QtWidgets.QLabel("Real length:"))
    main_window.calValueLineEdit = QtWidgets.QLineEdit()
    main_window.calValueLineEdit.setPlaceholderText("e.g. 200")
    main_window.calValueLineEdit.setMaximumWidth(120)
    cal_row.addWidget(main_window.calValueLineEdit)
    cal_row.addWidget(QtWidgets.QLabel("Unit:"))
    main_window.calUnitLineEdit = QtWidgets.QLineEdit()
    main_window.calUnitLineEdit.setPlaceholderText("nm / µm")
    main_window.calUnitLineEdit.setMaximumWidth(80)
    cal_row.addWidget(main_window.calUnitLineEdit)
    main_window.applyCalibrationButton = QtWidgets.QPushButton("Apply Calibration")
    main_window.applyCalibrationButton.setToolTip("Store the scale and start measuring")
    cal_row.addWidget(main_window.applyCalibrationButton)
    cal_row.addStretch()
    cal_layout.addLayout(cal_row)
    root_layout.addWidget(main_window.calibrationPanel)

    # --- Measurement panel ---
    main_window.measurePanel = _panel("Measurements")
    measure_layout = QtWidgets.QVBoxLayout(main_window.measurePanel)

    mode_row = QtWidgets.QHBoxLayout()
    mode_row.addWidget(QtWidgets.QLabel("Mode:"))
    mono_font = QtGui.QFont()
    mono_font.setFamilies(_MONO_FONT_FAMILIES)
    main_window.modeButtonGroup = QtWidgets.QButtonGroup(main_window)
    main_window.modeButtonGroup.setExclusive(True)
    main_window.modeButtons = {}
    for mode in MeasurementMode:
        button = QtWidgets.QPushButton(mode.glyph)
        button.setCheckable(True)
        button.setFont(mono_font)
        button.setToolTip(str(mode))
        main_window.modeButtonGroup.addButton(button)
        main_window.modeButtons[mode] = button
        mode_row.addWidget(button)
    mode_row.addSpacing(12)
    mode_row.addWidget(QtWidgets.QLabel("Calibration:"))
    main_window.calibrationInfoLabel = QtWidgets.QLabel("-")
    mode_row.addWidget(main_window.calibrationInfoLabel)
    mode_row.addStretch()
    measure_layout.addLayout(mode_row)

    action_row = QtWidgets.QHBoxLayout()
    main_window.deleteLastButton = QtWidgets.QPushButton("Delete Last")
    main_window.clearAllButton = QtWidgets.QPushButton("Clear All")
    main_window.exportCsvButton = QtWidgets.QPushButton("Export CSV...")
    main_window.exportSnapshotButton = QtWidgets.QPushButton("Export Snapshot...")
    for button in (main_window.deleteLastButton, main_window.clearAllButton,
                   main_window.exportCsvButton, main_window.exportSnapshotButton):
        action_row.addWidget(button)
    action_row.addSpacing(12)
    main_window.measurementCountLabel = QtWidgets.QLabel("Measured: 0")
    action_row.addWidget(main_window.measurementCountLabel)
    action_row.addSpacing(12)
    main_window.previewLabel = QtWidgets.QLabel("Preview: -")
    action_row.addWidget(main_window.previewLabel)
    action_row.addStretch()
    measure_layout.addLayout(action_row)

    main_window.measurementsTable = QtWidgets.QTableWidget(0, config.TOTAL_MEAS_COLUMNS)
    main_window.measurementsTable.setHorizontalHeaderLabels(["ID", "Mode", "Pixels", "Distance"])
    main_window.measurementsTable.setEditTriggers(QtWidgets.QAbstractItemView.EditTrigger.NoEditTriggers)
    main_window.measurementsTable.setSelectionMode(QtWidgets.QAbstractItemView.SelectionMode.NoSelection)
    main_window.measurementsTable.verticalHeader().setVisible(False)
    main_window.measurementsTable.horizontalHeader().setStretchLastSection(True)
    main_window.measurementsTable.setMaximumHeight(160)
    measure_layout.addWidget(main_window.measurementsTable)
    root_layout.addWidget(main_window.measurePanel)

    _setup_menus(main_window)

    main_window.setStatusBar(QtWidgets.QStatusBar())
    main_window.imageInfoLabel = QtWidgets.QLabel("No image loaded")
    main_window.statusBar().addPermanentWidget(main_window.imageInfoLabel)
    logger.info("MainWindow UI setup complete.")


def _setup_menus(main_window: 'MainWindow') -> None:
    menu_bar = main_window.menuBar()

    file_menu = menu_bar.addMenu("&File")
    main_window.openImageAction = QtGui.QAction("&Open Image...", main_window)
    main_window.openImageAction.setShortcut(QtGui.QKeySequence.StandardKey.Open)
    file_menu.addAction(main_window.openImageAction)
    file_menu.addSeparator()
    main_window.exportCsvAction = QtGui.QAction("Export Measurements as &CSV...", main_window)
    file_menu.addAction(main_window.exportCsvAction)
    main_window.exportSnapshotViewAction = QtGui.QAction("Export Snapshot (&View)...", main_window)
    file_menu.addAction(main_window.exportSnapshotViewAction)
    main_window.exportSnapshotOriginalAction = QtGui.QAction("Export Snapshot (&Original Resolution)...", main_window)
    file_menu.addAction(main_window.exportSnapshotOriginalAction)
    file_menu.addSeparator()
    main_window.exitAction = QtGui.QAction("E&xit", main_window)
    main_window.exitAction.setShortcut(QtGui.QKeySequence.StandardKey.Quit)
    file_menu.addAction(main_window.exitAction)

    edit_menu = menu_bar.addMenu("&Edit")
    main_window.deleteLastAction = QtGui.QAction("&Delete Last Measurement", main_window)
    main_window.deleteLastAction.setShortcut(QtGui.QKeySequence(QtCore.Qt.Key.Key_Backspace))
    edit_menu.addAction(main_window.deleteLastAction)
    main_window.clearAllAction = QtGui.QAction("&Clear All Measurements", main_window)
    edit_menu.addAction(main_window.clearAllAction)
    edit_menu.addSeparator()
    main_window.preferencesAction = QtGui.QAction("&Preferences...", main_window)
    main_window.preferencesAction.setShortcut(QtGui.QKeySequence.StandardKey.Preferences)
    edit_menu.addAction(main_window.preferencesAction)
