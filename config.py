# config.py
"""
Central configuration file for SEMMeasure constants.
"""

# --- Geometry Tolerances ---
# Vectors shorter than this have no well-defined direction.
EPS = 1e-9
# Minimum image-space separation between the two picks of a calibration or measurement.
PICK_EPS = 1e-6
# Tolerance used to merge near-coincident boundary hits when clipping guide lines.
CLIP_DEDUPE_TOL = 1e-6

# --- Viewport / Overlay Constants ---
VIEWPORT_PADDING = 16
DEFAULT_SURFACE_WIDTH = 800
DEFAULT_SURFACE_HEIGHT = 520
# Tick length as seen on screen; converted into image units using the viewport scale.
TICK_LENGTH_VIEWPORT_PX = 16.0
# Tick length in image units when no viewport is involved (e.g. native resolution snapshots).
DEFAULT_TICK_LENGTH = 18.0
DOT_RADIUS_PX = 3.0

# --- Calibration Constants ---
DEFAULT_UNIT = "nm"
FALLBACK_UNIT = "unit"

# --- Mode Display Glyphs ---
MODE_GLYPH_POINT_POINT = "●──●"
MODE_GLYPH_POINT_LINE = "●──┃"
MODE_GLYPH_LINE_LINE = "┃──┃"

# --- Export Constants ---
DEFAULT_CSV_FILENAME = "sem_measurements.csv"
DEFAULT_SNAPSHOT_FILENAME = "sem_measurement.png"
CSV_ID_COLUMN = "id"
CSV_DISTANCE_COLUMN_PREFIX = "distance_"

# --- Measurements Table Columns ---
COL_MEAS_ID = 0
COL_MEAS_MODE = 1
COL_MEAS_PX = 2
COL_MEAS_DISTANCE = 3
TOTAL_MEAS_COLUMNS = 4

# --- Image Loading ---
IMAGE_FILE_FILTER = "Images (*.png *.jpg *.jpeg *.tif *.tiff *.bmp);;All Files (*)"

# --- Application Info ---
APP_NAME = "SEMMeasure"
APP_ORGANIZATION = "SEMMeasure"
APP_VERSION = "1.0.0"
