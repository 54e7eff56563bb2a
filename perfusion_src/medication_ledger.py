"""Medication administration ledger and its status state machine.

    pending --start--> active --stop()-------> completed
                       ^  |    --stop(reason)--> stopped
                resume |  | hold
                       |  v
                       held --stop()/stop(reason)--> completed/stopped

    pending --complete--> completed            (bolus/flush/prn only)

Only infusions run through active/held. Every transition returns the
updated record; a rejected transition leaves the stored record untouched.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime

from .errors import InvalidTransition, ValidationError
from .models import (
    MedicationRecord,
    MedicationStatus,
    MedicationTemplate,
    MedicationType,
    generate_id,
)
from .store import BaseRepository

logger = logging.getLogger(__name__)

# Fields that only the ledger (or construction) may set
_PROTECTED_FIELDS = ("id", "case_id", "status", "created_at")

# action -> statuses it may be applied from
ALLOWED_FROM: dict[str, tuple[MedicationStatus, ...]] = {
    "start": (MedicationStatus.PENDING,),
    "complete": (MedicationStatus.PENDING,),
    "stop": (MedicationStatus.ACTIVE, MedicationStatus.HELD),
    "hold": (MedicationStatus.ACTIVE,),
    "resume": (MedicationStatus.HELD,),
}


@dataclass
class MedicationStatistics:
    """Per-case medication counts."""
    total: int = 0
    active: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)


class MedicationLedger:
    """Owns medication records attached to cases."""

    def __init__(
        self,
        repository: BaseRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self._clock = clock

    # Creation

    def create(
        self,
        case_id: str,
        medication_name: str,
        medication_type: MedicationType | str,
        dose: str,
        unit: str,
        route: str = "IV",
        administered_by: str = "",
        administered_at: datetime | None = None,
        already_completed: bool = False,
        **details,
    ) -> MedicationRecord:
        """Record a medication for a case.

        Args:
            case_id: ID of the owning case
            medication_name: Drug or fluid name
            medication_type: bolus, infusion, flush or prn
            dose: Dose as entered (kept as text)
            unit: Dose unit
            route: Administration route
            administered_by: Who gave it (required)
            administered_at: Start time, defaults to now
            already_completed: Record a non-infusion dose that has already
                been given; the record starts as completed instead of pending
            **details: Optional MedicationRecord fields (concentration,
                infusion_rate, indication, notes, ...)

        Returns:
            The created MedicationRecord

        Raises:
            ValidationError: unknown case, missing administered_by, an
                unknown detail field, a future administered_at or
                already_completed on an infusion
        """
        medication_type = self._coerce_type(medication_type)

        if self.repository.get_case(case_id) is None:
            raise ValidationError(f"Case {case_id} not found")
        if not administered_by or not administered_by.strip():
            raise ValidationError("administered_by is required")
        if not medication_name or not medication_name.strip():
            raise ValidationError("medication_name is required")
        if already_completed and medication_type == MedicationType.INFUSION:
            raise ValidationError("Infusions must be started and stopped, not pre-recorded")

        unknown = set(details) - _DETAIL_FIELDS
        if unknown:
            raise ValidationError(f"Unknown medication field(s): {', '.join(sorted(unknown))}")

        now = self._clock()
        if administered_at is not None and administered_at > now:
            raise ValidationError("Administration time cannot be in the future")

        record = MedicationRecord(
            id=generate_id(),
            case_id=case_id,
            medication_name=medication_name,
            medication_type=medication_type,
            dose=str(dose),
            unit=unit,
            route=route,
            administered_by=administered_by,
            administered_at=administered_at or now,
            status=MedicationStatus.COMPLETED if already_completed else MedicationStatus.PENDING,
            created_at=now,
            modified_at=now,
            **details,
        )
        self._validate_times(record)
        self.repository.add_medication(record)

        logger.info(
            f"Recorded {medication_type.value} {medication_name} for case {case_id} "
            f"[{record.status.value}]"
        )
        return record

    def record_completed(self, case_id: str, medication_name: str, medication_type, dose: str,
                         unit: str, route: str = "IV", administered_by: str = "",
                         **details) -> MedicationRecord:
        """Record a bolus/flush/prn dose that was already given."""
        return self.create(
            case_id, medication_name, medication_type, dose, unit, route,
            administered_by=administered_by, already_completed=True, **details,
        )

    def create_from_template(
        self,
        case_id: str,
        template: MedicationTemplate,
        administered_by: str,
        **overrides,
    ) -> MedicationRecord:
        """Create a pending record pre-filled from a protocol template."""
        details = {
            "concentration": template.concentration,
            "concentration_unit": template.concentration_unit,
            "infusion_rate": template.infusion_rate,
            "infusion_rate_unit": template.infusion_rate_unit,
            "indication": template.indication,
            "clinical_trigger": template.clinical_trigger,
            "device_specific": template.device_specific,
            "device_protocol_name": template.device_type,
        }
        details.update(overrides)
        dose = details.pop("dose", template.default_dose)
        unit = details.pop("unit", template.default_unit)
        route = details.pop("route", template.default_route)
        return self.create(
            case_id,
            template.name,
            template.medication_type,
            dose,
            unit,
            route,
            administered_by=administered_by,
            **details,
        )

    # State transitions

    def start(self, record: MedicationRecord | str) -> MedicationRecord:
        """Start a pending infusion."""
        current = self._load(record)
        if not current.is_infusion:
            raise InvalidTransition("start", current.status, current.medication_type)
        self._check("start", current)
        return self._transition(current, "start", status=MedicationStatus.ACTIVE)

    def complete(self, record: MedicationRecord | str) -> MedicationRecord:
        """Mark a pending bolus/flush/prn as given."""
        current = self._load(record)
        if current.is_infusion:
            raise InvalidTransition("complete", current.status, current.medication_type)
        self._check("complete", current)
        return self._transition(current, "complete", status=MedicationStatus.COMPLETED)

    def stop(self, record: MedicationRecord | str, reason: str | None = None) -> MedicationRecord:
        """Stop a running or held infusion.

        Without a reason the course ended normally (completed); with a
        reason it was terminated early (stopped).
        """
        current = self._load(record)
        self._check("stop", current)

        now = self._clock()
        if now < current.administered_at:
            raise ValidationError("Stop time cannot be earlier than administration time")

        reason = (reason or "").strip() or None
        return self._transition(
            current,
            "stop",
            status=MedicationStatus.STOPPED if reason else MedicationStatus.COMPLETED,
            stopped_at=now,
            reason_stopped=reason,
        )

    def hold(self, record: MedicationRecord | str, reason: str) -> MedicationRecord:
        """Pause an active infusion."""
        current = self._load(record)
        self._check("hold", current)
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to hold a medication")
        return self._transition(
            current, "hold", status=MedicationStatus.HELD, reason_held=reason.strip()
        )

    def resume(self, record: MedicationRecord | str) -> MedicationRecord:
        """Resume a held infusion."""
        current = self._load(record)
        self._check("resume", current)
        return self._transition(
            current, "resume", status=MedicationStatus.ACTIVE, reason_held=None
        )

    # Edits

    def update(
        self,
        record: MedicationRecord | str,
        mutator: Callable[[MedicationRecord], None],
    ) -> MedicationRecord:
        """Edit record fields outside of status transitions.

        Raises:
            ValidationError: the mutator touched a protected field, set
                stopped_at before administered_at, or moved administered_at
                into the future on a record that is still open
        """
        current = self._load(record)
        working = replace(current)
        mutator(working)

        for name in _PROTECTED_FIELDS:
            if getattr(working, name) != getattr(current, name):
                raise ValidationError(f"Medication field '{name}' cannot be edited directly")
        self._validate_times(working)

        now = self._clock()
        if not working.status.is_terminal and working.administered_at > now:
            raise ValidationError("Administration time cannot be in the future")

        working.modified_at = now
        self.repository.save_medication(working)
        return working

    def update_infusion_rate(
        self,
        record: MedicationRecord | str,
        rate: str,
        unit: str,
    ) -> MedicationRecord:
        def apply(r: MedicationRecord) -> None:
            r.infusion_rate = rate
            r.infusion_rate_unit = unit

        return self.update(record, apply)

    def delete(self, record: MedicationRecord | str) -> bool:
        """Delete a record. Unknown IDs are a no-op."""
        record_id = record if isinstance(record, str) else record.id
        removed = self.repository.delete_medication(record_id)
        if removed:
            logger.info(f"Deleted medication {record_id}")
        return removed

    # Queries

    def get(self, record_id: str) -> MedicationRecord | None:
        return self.repository.get_medication(record_id)

    def records_for(
        self,
        case_id: str,
        medication_type: MedicationType | str | None = None,
    ) -> list[MedicationRecord]:
        """Records for a case in creation order, optionally of one type."""
        records = self.repository.medications_for_case(case_id)
        if medication_type is None:
            return records
        medication_type = self._coerce_type(medication_type)
        return [r for r in records if r.medication_type == medication_type]

    def statistics(self, case_id: str) -> MedicationStatistics:
        stats = MedicationStatistics()
        for record in self.records_for(case_id):
            stats.total += 1
            if record.is_active:
                stats.active += 1
            type_key = record.medication_type.value
            status_key = record.status.value
            stats.by_type[type_key] = stats.by_type.get(type_key, 0) + 1
            stats.by_status[status_key] = stats.by_status.get(status_key, 0) + 1
        return stats

    # Internals

    @staticmethod
    def _coerce_type(medication_type: MedicationType | str) -> MedicationType:
        if isinstance(medication_type, MedicationType):
            return medication_type
        try:
            return MedicationType(str(medication_type).lower())
        except ValueError:
            raise ValidationError(f"Unknown medication type: {medication_type!r}") from None

    def _load(self, record: MedicationRecord | str) -> MedicationRecord:
        record_id = record if isinstance(record, str) else record.id
        current = self.repository.get_medication(record_id)
        if current is None:
            raise ValidationError(f"Medication {record_id} not found")
        return current

    @staticmethod
    def _check(action: str, record: MedicationRecord) -> None:
        if record.status not in ALLOWED_FROM[action]:
            raise InvalidTransition(action, record.status)

    @staticmethod
    def _validate_times(record: MedicationRecord) -> None:
        if record.stopped_at is not None and record.stopped_at < record.administered_at:
            raise ValidationError("Stop time cannot be earlier than administration time")

    def _transition(self, current: MedicationRecord, action: str, **changes) -> MedicationRecord:
        updated = replace(current, modified_at=self._clock(), **changes)
        self.repository.save_medication(updated)
        logger.info(
            f"Medication {updated.id} ({updated.medication_name}) {action}: "
            f"{current.status.value} -> {updated.status.value}"
        )
        return updated


# Optional fields accepted by MedicationLedger.create(**details)
_DETAIL_FIELDS = {
    "stopped_at",
    "concentration",
    "concentration_unit",
    "infusion_rate",
    "infusion_rate_unit",
    "total_dose_infused",
    "administered_by_id",
    "verified_by",
    "verified_by_id",
    "indication",
    "clinical_trigger",
    "associated_lab_value",
    "associated_lab_parameter",
    "notes",
    "adverse_reaction",
    "effectiveness",
    "device_specific",
    "device_protocol_name",
    "modified_by",
}
