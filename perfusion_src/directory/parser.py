"""Parsing of the delimited hospital dataset."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..models import HospitalRecord

logger = logging.getLogger(__name__)

# Positional columns every data row must have
REQUIRED_COLUMNS = [
    "name",
    "address",
    "city",
    "region_code",
    "zip",
    "phone",
    "facility_type",
]
MIN_COLUMNS = len(REQUIRED_COLUMNS)

# Optional columns, located by header name
ID_HEADERS = ("facility_id", "provider_id", "provider_number", "id")
COUNTY_HEADERS = ("county", "county_name")
EMERGENCY_HEADERS = ("emergency_services", "emergency")

_TRUE_VALUES = {"yes", "y", "true", "t", "1"}
_FALSE_VALUES = {"no", "n", "false", "f", "0"}


def split_row(row: str, delimiter: str = ",") -> list[str]:
    """Split one delimited row into trimmed fields.

    A double quote toggles quoted mode; while quoted the delimiter is part of
    the field. Quote characters themselves are dropped.

        >>> split_row('"Smith, John",10,mg')
        ['Smith, John', '10', 'mg']
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in row:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    # Last field
    if current or fields:
        fields.append("".join(current).strip())

    return fields


def parse_flag(value: str | None) -> bool | None:
    """Parse a yes/no style flag; None when blank or unrecognised."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def _normalize_header(name: str) -> str:
    return name.lstrip("\ufeff").strip().lower().replace(" ", "_").replace("-", "_")


def _find_column(header: list[str], candidates: Iterable[str]) -> int | None:
    for candidate in candidates:
        if candidate in header:
            return header.index(candidate)
    return None


@dataclass
class ParseResult:
    """Outcome of parsing a hospital source."""
    hospitals: list[HospitalRecord] = field(default_factory=list)
    rows_read: int = 0
    skipped_rows: int = 0        # Too few columns
    filtered_rows: int = 0       # Region outside the allow-list
    synthesized_ids: bool = False


def parse_hospitals(
    lines: Iterable[str],
    allowed_regions: Iterable[str],
    delimiter: str = ",",
) -> ParseResult:
    """Parse hospital rows, keeping only allow-listed regions.

    The first line is the header. When it has no identifier column each kept
    row gets a positional ID ("1", "2", ...); those IDs change if the source
    is reordered or the allow-list changes.
    """
    allowed = {r.strip().upper() for r in allowed_regions}
    result = ParseResult()

    iterator = iter(lines)
    header_line = next(iterator, None)
    if header_line is None:
        return result

    header = [_normalize_header(h) for h in split_row(header_line.rstrip("\r\n"), delimiter)]
    id_col = _find_column(header, ID_HEADERS)
    county_col = _find_column(header, COUNTY_HEADERS)
    emergency_col = _find_column(header, EMERGENCY_HEADERS)
    result.synthesized_ids = id_col is None

    def optional(columns: list[str], index: int | None) -> str | None:
        if index is None or index >= len(columns):
            return None
        return columns[index] or None

    for line in iterator:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        result.rows_read += 1

        columns = split_row(line, delimiter)
        if len(columns) < MIN_COLUMNS:
            result.skipped_rows += 1
            continue

        state = columns[3].upper()
        if state not in allowed:
            result.filtered_rows += 1
            continue

        facility_id = optional(columns, id_col) or str(len(result.hospitals) + 1)

        result.hospitals.append(
            HospitalRecord(
                facility_id=facility_id,
                facility_name=columns[0],
                address=columns[1],
                city=columns[2],
                state=state,
                zip_code=columns[4],
                county=optional(columns, county_col),
                phone_number=columns[5] or None,
                hospital_type=columns[6] or None,
                emergency_services=parse_flag(optional(columns, emergency_col)),
            )
        )

    if result.skipped_rows:
        logger.debug(f"Skipped {result.skipped_rows} malformed hospital row(s)")

    return result
