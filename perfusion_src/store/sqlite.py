"""SQLite-backed repository for persistent case tracking."""

import logging
import os
import sqlite3
from collections.abc import Iterator
from pathlib import Path

from ..errors import StoreError
from ..models import Case, MedicationRecord
from .base import BaseRepository

logger = logging.getLogger(__name__)

CASE_COLUMNS = [
    "id", "case_label", "status", "external_reference_id",
    "donor_hospital", "transplant_center",
    "omps1", "omps2", "surgeon1", "surgeon2",
    "cross_clamp_time", "flush_start_time", "flush_end_time",
    "pump_on_time", "pump_off_time",
    "date_created", "date_modified",
]

MEDICATION_COLUMNS = [
    "id", "case_id", "medication_name", "medication_type",
    "dose", "unit", "route", "administered_by", "administered_at",
    "status", "stopped_at",
    "concentration", "concentration_unit",
    "infusion_rate", "infusion_rate_unit", "total_dose_infused",
    "administered_by_id", "verified_by", "verified_by_id",
    "indication", "clinical_trigger",
    "associated_lab_value", "associated_lab_parameter",
    "reason_stopped", "reason_held",
    "notes", "adverse_reaction", "effectiveness",
    "device_specific", "device_protocol_name",
    "created_at", "modified_at", "modified_by",
]

# Derived values in to_dict() that are not columns
_CASE_DERIVED = ("perfusion_duration_minutes", "is_complete")


def _case_values(case: Case) -> tuple:
    data = case.to_dict()
    for key in _CASE_DERIVED:
        data.pop(key)
    return tuple(data[col] for col in CASE_COLUMNS)


def _medication_values(record: MedicationRecord) -> tuple:
    data = record.to_dict()
    data["device_specific"] = int(record.device_specific)
    return tuple(data[col] for col in MEDICATION_COLUMNS)


class SQLiteRepository(BaseRepository):
    """Repository persisted to a SQLite database file."""

    def __init__(self, db_path: str | None = None):
        """Initialize the repository.

        Args:
            db_path: Path to SQLite database. Defaults to PERFUSION_DB_PATH
                     env var or ~/.perfusion/perfusion.db
        """
        if db_path:
            self.db_path = os.path.expanduser(db_path)
        else:
            self.db_path = os.path.expanduser(
                os.environ.get("PERFUSION_DB_PATH", "~/.perfusion/perfusion.db")
            )

        # Ensure directory exists
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path) as f:
            schema = f.read()

        with self._connect() as conn:
            conn.executescript(schema)

    def _connect(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: tuple = ()) -> int:
        """Run a write statement and return the affected row count."""
        try:
            with self._connect() as conn:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            logger.error(f"Database write failed: {e}")
            raise StoreError(str(e)) from e

    def _fetch(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            with self._connect() as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Database read failed: {e}")
            raise StoreError(str(e)) from e

    # Cases

    def add_case(self, case: Case) -> None:
        placeholders = ", ".join("?" for _ in CASE_COLUMNS)
        self._execute(
            f"INSERT INTO cases ({', '.join(CASE_COLUMNS)}) VALUES ({placeholders})",
            _case_values(case),
        )

    def get_case(self, case_id: str) -> Case | None:
        rows = self._fetch(
            f"SELECT {', '.join(CASE_COLUMNS)} FROM cases WHERE id = ?",
            (case_id,),
        )
        return Case.from_row(rows[0]) if rows else None

    def save_case(self, case: Case) -> None:
        assignments = ", ".join(f"{col} = ?" for col in CASE_COLUMNS[1:])
        values = _case_values(case)
        updated = self._execute(
            f"UPDATE cases SET {assignments} WHERE id = ?",
            values[1:] + (values[0],),
        )
        if updated == 0:
            raise StoreError(f"Case {case.id} not found")

    def delete_case(self, case_id: str) -> bool:
        return self._execute("DELETE FROM cases WHERE id = ?", (case_id,)) > 0

    def iter_cases(self) -> Iterator[Case]:
        rows = self._fetch(
            f"SELECT {', '.join(CASE_COLUMNS)} FROM cases ORDER BY rowid"
        )
        for row in rows:
            yield Case.from_row(row)

    # Medication records

    def add_medication(self, record: MedicationRecord) -> None:
        placeholders = ", ".join("?" for _ in MEDICATION_COLUMNS)
        self._execute(
            f"INSERT INTO medications ({', '.join(MEDICATION_COLUMNS)}) "
            f"VALUES ({placeholders})",
            _medication_values(record),
        )

    def get_medication(self, record_id: str) -> MedicationRecord | None:
        rows = self._fetch(
            f"SELECT {', '.join(MEDICATION_COLUMNS)} FROM medications WHERE id = ?",
            (record_id,),
        )
        return MedicationRecord.from_row(rows[0]) if rows else None

    def save_medication(self, record: MedicationRecord) -> None:
        assignments = ", ".join(f"{col} = ?" for col in MEDICATION_COLUMNS[1:])
        values = _medication_values(record)
        updated = self._execute(
            f"UPDATE medications SET {assignments} WHERE id = ?",
            values[1:] + (values[0],),
        )
        if updated == 0:
            raise StoreError(f"Medication {record.id} not found")

    def delete_medication(self, record_id: str) -> bool:
        return self._execute("DELETE FROM medications WHERE id = ?", (record_id,)) > 0

    def medications_for_case(self, case_id: str) -> list[MedicationRecord]:
        rows = self._fetch(
            f"SELECT {', '.join(MEDICATION_COLUMNS)} FROM medications "
            "WHERE case_id = ? ORDER BY rowid",
            (case_id,),
        )
        return [MedicationRecord.from_row(row) for row in rows]

    def delete_medications_for_case(self, case_id: str) -> int:
        return self._execute("DELETE FROM medications WHERE case_id = ?", (case_id,))
