# file_io.py
"""
Handles data-only CSV export of measurements for SEMMeasure.

Rows carry the measurement id and its distance converted with the current
calibration. Stored measurements hold pixel distances only, so the same list
exported after a re-calibration yields rescaled values.
"""
import csv
import io
import logging
from typing import List, Sequence, TYPE_CHECKING

import numpy as np

import config

if TYPE_CHECKING:
    from calibration import Calibration
    from measurement_session import Measurement

logger = logging.getLogger(__name__)

_MICRO_SIGNS = ("µ", "μ")  # MICRO SIGN and GREEK SMALL LETTER MU


def sanitize_unit_for_header(unit: str) -> str:
    """Makes a unit label safe as a header token: 'µ m/s' -> 'um_s'."""
    cleaned = unit or ""
    for micro in _MICRO_SIGNS:
        cleaned = cleaned.replace(micro, "u")
    cleaned = "".join(cleaned.split())
    cleaned = cleaned.replace("/", "_")
    return cleaned or config.FALLBACK_UNIT


def format_decimal(value: float) -> str:
    """Shortest round-trip decimal without exponent notation: 50.0 -> '50', 0.5 -> '0.5'."""
    return np.format_float_positional(value, trim='-')


def _prepare_csv_rows(measurements: Sequence['Measurement'],
                      calibration: 'Calibration') -> List[List[str]]:
    header = [config.CSV_ID_COLUMN,
              f"{config.CSV_DISTANCE_COLUMN_PREFIX}{sanitize_unit_for_header(calibration.unit)}"]
    rows = [header]
    for m in measurements:
        rows.append([str(m.id), format_decimal(calibration.to_units(m.px_distance))])
    return rows


def measurements_to_csv_string(measurements: Sequence['Measurement'],
                               calibration: 'Calibration') -> str:
    """Generates the CSV text (header plus one row per measurement, '\\n' line endings)."""
    rows = _prepare_csv_rows(measurements, calibration)
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerows(rows)
    csv_string = output.getvalue()
    output.close()
    logger.debug(f"Generated CSV string with {len(rows) - 1} data rows.")
    return csv_string


def export_measurements_to_csv(filepath: str,
                               measurements: Sequence['Measurement'],
                               calibration: 'Calibration') -> bool:
    logger.info(f"Exporting {len(measurements)} measurements to CSV file: {filepath}")
    try:
        rows = _prepare_csv_rows(measurements, calibration)
        with open(filepath, 'w', newline='', encoding='utf-8') as csvfile:
            writer = csv.writer(csvfile, lineterminator="\n")
            writer.writerows(rows)
        logger.info(f"Successfully exported {len(rows) - 1} data rows to {filepath}")
        return True
    except OSError as e:
        logger.error(f"OSError during CSV export to '{filepath}': {e}", exc_info=True)
        return False
    except Exception as e:
        logger.error(f"Unexpected error during CSV export to '{filepath}': {e}", exc_info=True)
        return False
