"""Medication summaries as pandas DataFrames."""

from collections.abc import Iterable
from datetime import datetime

import pandas as pd

from .models import MedicationRecord, MedicationStatus, MedicationType

LISTING_COLUMNS = [
    "administered_at",
    "medication_name",
    "medication_type",
    "dose",
    "unit",
    "route",
    "status",
    "administered_by",
    "elapsed_minutes",
]


def medications_dataframe(
    records: Iterable[MedicationRecord],
    now: datetime | None = None,
) -> pd.DataFrame:
    """One row per record, with elapsed minutes where defined."""
    rows = []
    for record in records:
        elapsed = record.elapsed_duration(now)
        rows.append({
            "administered_at": record.administered_at,
            "medication_name": record.medication_name,
            "medication_type": record.medication_type.value,
            "dose": record.dose,
            "unit": record.unit,
            "route": record.route,
            "status": record.status.value,
            "administered_by": record.administered_by,
            "elapsed_minutes": elapsed.total_seconds() / 60 if elapsed is not None else None,
        })
    return pd.DataFrame(rows, columns=LISTING_COLUMNS)


def medication_summary(records: Iterable[MedicationRecord]) -> pd.DataFrame:
    """Counts by medication type (rows) and status (columns).

    Every type and status appears, zero-filled, in enum order.
    """
    df = medications_dataframe(records)
    summary = pd.crosstab(df["medication_type"], df["status"]) if not df.empty else pd.DataFrame()
    summary = summary.reindex(
        index=[t.value for t in MedicationType],
        columns=[s.value for s in MedicationStatus],
        fill_value=0,
    )
    summary.index.name = "medication_type"
    summary.columns.name = "status"
    summary["total"] = summary.sum(axis=1)
    return summary.astype(int)
