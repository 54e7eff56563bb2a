"""CSV export of a case's medication records."""

import logging
from collections.abc import Iterable
from pathlib import Path

from .models import MedicationRecord

logger = logging.getLogger(__name__)

CSV_HEADER = "Date/Time,Medication,Type,Dose,Unit,Route,Administered By"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def medication_csv_row(record: MedicationRecord) -> str:
    # Fields are joined as-is; values containing commas are not quoted
    return ",".join([
        record.administered_at.strftime(TIMESTAMP_FORMAT),
        record.medication_name,
        record.medication_type.value,
        record.dose,
        record.unit,
        record.route,
        record.administered_by,
    ])


def export_medications_csv(records: Iterable[MedicationRecord]) -> str:
    """Render medication records as CSV text, one line per record."""
    lines = [CSV_HEADER]
    lines.extend(medication_csv_row(r) for r in records)
    return "\n".join(lines) + "\n"


def write_medications_csv(records: Iterable[MedicationRecord], path: str | Path) -> Path:
    """Write the CSV export to a file and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = list(records)
    path.write_text(export_medications_csv(records), encoding="utf-8")
    logger.info(f"Exported {len(records)} medication(s) to {path}")
    return path
