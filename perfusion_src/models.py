"""Data models for perfusion cases, medication records and hospitals."""

import math
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


# Infusions are tracked against a 24 hour course
MAX_INFUSION_DURATION = timedelta(hours=24)

NO_DURATION = "—"


def generate_id() -> str:
    """Generate an opaque entity ID."""
    return str(uuid.uuid4())


def generate_case_label(organization_code: str, now: datetime | None = None) -> str:
    """Generate a human-readable case label, e.g. "NEDS-2024-417".

    The numeric suffix is random; labels are not guaranteed unique.
    """
    year = (now or datetime.now()).strftime("%Y")
    return f"{organization_code}-{year}-{random.randint(100, 999)}"


def format_hhmm(total_minutes: int) -> str:
    """Format a minute count as HH:MM."""
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def _parse_datetime(val):
    if val is None:
        return None
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(val)


def _iso(val: datetime | None) -> str | None:
    return val.isoformat() if val else None


class CaseStatus(Enum):
    """Case lifecycle status."""
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"

    @property
    def display_name(self) -> str:
        return {
            CaseStatus.DRAFT: "Draft",
            CaseStatus.IN_PROGRESS: "In Progress",
            CaseStatus.COMPLETE: "Complete",
        }[self]


class MedicationType(Enum):
    """How a medication is administered."""
    BOLUS = "bolus"
    INFUSION = "infusion"
    FLUSH = "flush"
    PRN = "prn"


class MedicationStatus(Enum):
    """Administration status of a medication record."""
    PENDING = "pending"        # Recorded, not yet given/started
    ACTIVE = "active"          # Infusion running
    COMPLETED = "completed"    # Given, or infusion ran to its normal end
    STOPPED = "stopped"        # Infusion terminated early (reason recorded)
    HELD = "held"              # Infusion paused (reason recorded)

    @property
    def is_terminal(self) -> bool:
        return self in (MedicationStatus.COMPLETED, MedicationStatus.STOPPED)


@dataclass
class Case:
    """One tracked perfusion event."""
    id: str
    case_label: str
    status: CaseStatus = CaseStatus.DRAFT
    external_reference_id: str = ""  # e.g. UNOS ID

    # Hospital selections
    donor_hospital: str = ""
    transplant_center: str = ""

    # Team
    omps1: str = ""
    omps2: str = ""
    surgeon1: str = ""
    surgeon2: str = ""

    # Timing milestones
    cross_clamp_time: datetime | None = None
    flush_start_time: datetime | None = None
    flush_end_time: datetime | None = None
    pump_on_time: datetime | None = None
    pump_off_time: datetime | None = None

    # Audit
    date_created: datetime = field(default_factory=datetime.now)
    date_modified: datetime = field(default_factory=datetime.now)

    @property
    def perfusion_duration_minutes(self) -> int:
        """Whole minutes between pump-on and pump-off, 0 if either is unset."""
        if self.pump_on_time is None or self.pump_off_time is None:
            return 0
        seconds = (self.pump_off_time - self.pump_on_time).total_seconds()
        return max(math.floor(seconds / 60), 0)

    @property
    def formatted_duration(self) -> str:
        return format_hhmm(self.perfusion_duration_minutes)

    @property
    def is_complete(self) -> bool:
        """Soft completeness check: reference ID and donor hospital filled in."""
        return bool(self.external_reference_id) and bool(self.donor_hospital)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "case_label": self.case_label,
            "status": self.status.value,
            "external_reference_id": self.external_reference_id,
            "donor_hospital": self.donor_hospital,
            "transplant_center": self.transplant_center,
            "omps1": self.omps1,
            "omps2": self.omps2,
            "surgeon1": self.surgeon1,
            "surgeon2": self.surgeon2,
            "cross_clamp_time": _iso(self.cross_clamp_time),
            "flush_start_time": _iso(self.flush_start_time),
            "flush_end_time": _iso(self.flush_end_time),
            "pump_on_time": _iso(self.pump_on_time),
            "pump_off_time": _iso(self.pump_off_time),
            "date_created": _iso(self.date_created),
            "date_modified": _iso(self.date_modified),
            "perfusion_duration_minutes": self.perfusion_duration_minutes,
            "is_complete": self.is_complete,
        }

    @classmethod
    def from_row(cls, row) -> "Case":
        """Create from a database row (sqlite3.Row or mapping)."""
        return cls(
            id=row["id"],
            case_label=row["case_label"],
            status=CaseStatus(row["status"]),
            external_reference_id=row["external_reference_id"] or "",
            donor_hospital=row["donor_hospital"] or "",
            transplant_center=row["transplant_center"] or "",
            omps1=row["omps1"] or "",
            omps2=row["omps2"] or "",
            surgeon1=row["surgeon1"] or "",
            surgeon2=row["surgeon2"] or "",
            cross_clamp_time=_parse_datetime(row["cross_clamp_time"]),
            flush_start_time=_parse_datetime(row["flush_start_time"]),
            flush_end_time=_parse_datetime(row["flush_end_time"]),
            pump_on_time=_parse_datetime(row["pump_on_time"]),
            pump_off_time=_parse_datetime(row["pump_off_time"]),
            date_created=_parse_datetime(row["date_created"]),
            date_modified=_parse_datetime(row["date_modified"]),
        )


@dataclass
class MedicationRecord:
    """One administration event or course of a drug/fluid tied to a case."""
    id: str
    case_id: str  # Owning case; the case store handles cascade deletes
    medication_name: str
    medication_type: MedicationType
    dose: str  # Kept as text to preserve clinician formatting
    unit: str
    route: str
    administered_by: str
    administered_at: datetime
    status: MedicationStatus = MedicationStatus.PENDING
    stopped_at: datetime | None = None

    # Concentration / infusion details
    concentration: str | None = None
    concentration_unit: str | None = None
    infusion_rate: str | None = None
    infusion_rate_unit: str | None = None
    total_dose_infused: float | None = None

    # Administration details
    administered_by_id: str | None = None
    verified_by: str | None = None
    verified_by_id: str | None = None

    # Clinical context
    indication: str | None = None
    clinical_trigger: str | None = None  # e.g. "pH < 7.2"
    associated_lab_value: float | None = None
    associated_lab_parameter: str | None = None  # e.g. "pH"

    reason_stopped: str | None = None
    reason_held: str | None = None

    notes: str | None = None
    adverse_reaction: str | None = None
    effectiveness: str | None = None

    device_specific: bool = False
    device_protocol_name: str | None = None

    # Audit
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)
    modified_by: str | None = None

    @property
    def is_infusion(self) -> bool:
        return self.medication_type == MedicationType.INFUSION

    @property
    def is_active(self) -> bool:
        return self.status == MedicationStatus.ACTIVE

    def elapsed_duration(self, now: datetime | None = None) -> timedelta | None:
        """Time since administration.

        Uses stopped_at when set; otherwise a live value while active.
        Returns None when neither applies.
        """
        if self.stopped_at is not None:
            return self.stopped_at - self.administered_at
        if self.is_active:
            return (now or datetime.now()) - self.administered_at
        return None

    def infusion_progress_fraction(self, now: datetime | None = None) -> float | None:
        """Fraction of the 24h infusion window elapsed, capped at 1.0."""
        if not self.is_infusion:
            return None
        elapsed = self.elapsed_duration(now)
        if elapsed is None:
            return None
        return min(elapsed / MAX_INFUSION_DURATION, 1.0)

    def formatted_duration(self, now: datetime | None = None) -> str:
        elapsed = self.elapsed_duration(now)
        if elapsed is None:
            return NO_DURATION
        return format_hhmm(int(elapsed.total_seconds()) // 60)

    @property
    def summary_text(self) -> str:
        """One-line summary for reports, e.g. "Heparin 5000units - IV"."""
        summary = f"{self.medication_name} {self.dose}{self.unit}"
        if self.concentration:
            summary += f" ({self.concentration}{self.concentration_unit or ''})"
        if self.infusion_rate:
            summary += f" @ {self.infusion_rate}{self.infusion_rate_unit or ''}"
        summary += f" - {self.route}"
        return summary

    @property
    def audit_trail(self) -> str:
        trail = (
            f"Administered: {self.administered_at:%Y-%m-%d %H:%M}"
            f" by {self.administered_by}"
        )
        if self.verified_by:
            trail += f", verified by {self.verified_by}"
        if self.stopped_at:
            trail += f"\nStopped: {self.stopped_at:%Y-%m-%d %H:%M}"
            if self.reason_stopped:
                trail += f" - {self.reason_stopped}"
        return trail

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "case_id": self.case_id,
            "medication_name": self.medication_name,
            "medication_type": self.medication_type.value,
            "dose": self.dose,
            "unit": self.unit,
            "route": self.route,
            "administered_by": self.administered_by,
            "administered_at": _iso(self.administered_at),
            "status": self.status.value,
            "stopped_at": _iso(self.stopped_at),
            "concentration": self.concentration,
            "concentration_unit": self.concentration_unit,
            "infusion_rate": self.infusion_rate,
            "infusion_rate_unit": self.infusion_rate_unit,
            "total_dose_infused": self.total_dose_infused,
            "administered_by_id": self.administered_by_id,
            "verified_by": self.verified_by,
            "verified_by_id": self.verified_by_id,
            "indication": self.indication,
            "clinical_trigger": self.clinical_trigger,
            "associated_lab_value": self.associated_lab_value,
            "associated_lab_parameter": self.associated_lab_parameter,
            "reason_stopped": self.reason_stopped,
            "reason_held": self.reason_held,
            "notes": self.notes,
            "adverse_reaction": self.adverse_reaction,
            "effectiveness": self.effectiveness,
            "device_specific": self.device_specific,
            "device_protocol_name": self.device_protocol_name,
            "created_at": _iso(self.created_at),
            "modified_at": _iso(self.modified_at),
            "modified_by": self.modified_by,
        }

    @classmethod
    def from_row(cls, row) -> "MedicationRecord":
        """Create from a database row (sqlite3.Row or mapping)."""
        return cls(
            id=row["id"],
            case_id=row["case_id"],
            medication_name=row["medication_name"],
            medication_type=MedicationType(row["medication_type"]),
            dose=row["dose"],
            unit=row["unit"],
            route=row["route"],
            administered_by=row["administered_by"],
            administered_at=_parse_datetime(row["administered_at"]),
            status=MedicationStatus(row["status"]),
            stopped_at=_parse_datetime(row["stopped_at"]),
            concentration=row["concentration"],
            concentration_unit=row["concentration_unit"],
            infusion_rate=row["infusion_rate"],
            infusion_rate_unit=row["infusion_rate_unit"],
            total_dose_infused=row["total_dose_infused"],
            administered_by_id=row["administered_by_id"],
            verified_by=row["verified_by"],
            verified_by_id=row["verified_by_id"],
            indication=row["indication"],
            clinical_trigger=row["clinical_trigger"],
            associated_lab_value=row["associated_lab_value"],
            associated_lab_parameter=row["associated_lab_parameter"],
            reason_stopped=row["reason_stopped"],
            reason_held=row["reason_held"],
            notes=row["notes"],
            adverse_reaction=row["adverse_reaction"],
            effectiveness=row["effectiveness"],
            device_specific=bool(row["device_specific"]),
            device_protocol_name=row["device_protocol_name"],
            created_at=_parse_datetime(row["created_at"]),
            modified_at=_parse_datetime(row["modified_at"]),
            modified_by=row["modified_by"],
        )


@dataclass(frozen=True)
class MedicationTemplate:
    """Protocol template used to pre-fill a new medication record."""
    name: str
    medication_type: MedicationType
    default_dose: str
    default_unit: str
    default_route: str = "IV"
    concentration: str | None = None
    concentration_unit: str | None = None
    infusion_rate: str | None = None
    infusion_rate_unit: str | None = None
    indication: str | None = None
    clinical_trigger: str | None = None
    device_specific: bool = False
    device_type: str | None = None
    order_index: int = 0


@dataclass(frozen=True)
class HospitalRecord:
    """Reference hospital loaded from the external dataset."""
    facility_id: str
    facility_name: str
    address: str
    city: str
    state: str  # 2-letter region code
    zip_code: str
    county: str | None = None
    phone_number: str | None = None
    hospital_type: str | None = None
    emergency_services: bool | None = None  # None when the source doesn't say

    @property
    def searchable_text(self) -> str:
        return f"{self.facility_name} {self.city} {self.state} {self.county or ''}".lower()

    @property
    def display_name(self) -> str:
        return f"{self.facility_name} - {self.city}, {self.state}"

    @property
    def has_emergency_services(self) -> bool:
        return self.emergency_services is True

    def to_dict(self) -> dict[str, Any]:
        return {
            "facility_id": self.facility_id,
            "facility_name": self.facility_name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "county": self.county,
            "phone_number": self.phone_number,
            "hospital_type": self.hospital_type,
            "emergency_services": self.emergency_services,
        }
