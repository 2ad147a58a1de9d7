"""Facility directory loader for Excel and CSV sources."""

from __future__ import annotations

import csv
import functools
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from openpyxl import load_workbook

from ..config import settings
from ..models.domain import Facility
from ..services.geospatial import is_valid_coordinate

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"id", "name"}


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", ""))
    except ValueError as exc:
        raise ValueError(f"Unable to parse float from value '{value}'") from exc


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _row_to_facility(row: dict[str, Any]) -> Optional[Facility]:
    facility_id = _clean(row.get("id"))
    name = _clean(row.get("name"))
    if not facility_id or not name:
        return None

    coordinates = None
    try:
        lat = _coerce_float(row.get("latitude"))
        lon = _coerce_float(row.get("longitude"))
    except ValueError as exc:
        logger.warning(f"Facility '{facility_id}' has unreadable coordinates, keeping it without them: {exc}")
        lat = lon = None
    if lat is not None and lon is not None:
        if is_valid_coordinate(lat, lon):
            coordinates = (lat, lon)
        else:
            logger.warning(f"Facility '{facility_id}' has out-of-range coordinates ({lat}, {lon}); ignoring them")

    return Facility(
        id=facility_id,
        name=name,
        address=_clean(row.get("address")) or "",
        phone=_clean(row.get("phone")),
        coordinates=coordinates,
    )


def _iter_csv_rows(path: Path) -> Iterator[dict[str, Any]]:
    with path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Facility file '{path}' is missing a header row.")
        _check_columns(path, reader.fieldnames)
        for row in reader:
            yield {str(key).strip().lower(): value for key, value in row.items() if key is not None}


def _iter_workbook_rows(path: Path) -> Iterator[dict[str, Any]]:
    wb = load_workbook(path, data_only=True, read_only=True)
    try:
        sheet = wb.active
        rows = sheet.iter_rows(min_row=1, values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValueError(f"Facility workbook '{path}' is empty.")
        columns = [str(name).strip().lower() if name is not None else "" for name in header]
        _check_columns(path, columns)
        for row in rows:
            yield {column: value for column, value in zip(columns, row) if column}
    finally:
        wb.close()


def _check_columns(path: Path, columns: Iterable[str]) -> None:
    present = {str(column).strip().lower() for column in columns}
    missing = REQUIRED_COLUMNS - present
    if missing:
        raise ValueError(f"Facility file '{path}' missing columns: {', '.join(sorted(missing))}")


@functools.lru_cache(maxsize=4)
def load_facilities(source: Optional[Path] = None) -> tuple[Facility, ...]:
    """Load facilities from the configured directory file.

    Rows without an id or name are skipped; duplicate ids keep the first row.
    Unreadable or out-of-range coordinates leave the facility without coordinates.
    """

    path = source or settings.facilities_file
    if not path.exists():
        raise FileNotFoundError(f"Facility file not found: {path}")

    if path.suffix.lower() in {".xlsx", ".xlsm"}:
        rows = _iter_workbook_rows(path)
    elif path.suffix.lower() == ".csv":
        rows = _iter_csv_rows(path)
    else:
        raise ValueError(f"Unsupported facility file type '{path.suffix}'.")

    facilities: list[Facility] = []
    seen: set[str] = set()
    for row in rows:
        facility = _row_to_facility(row)
        if facility is None:
            continue
        if facility.id in seen:
            logger.warning(f"Skipping duplicate facility id '{facility.id}' in {path.name}")
            continue
        seen.add(facility.id)
        facilities.append(facility)

    logger.info(f"Loaded {len(facilities)} facilities from {path}")
    return tuple(facilities)
