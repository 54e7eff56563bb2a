"""Case lifecycle: creation, validated updates and cascading deletes."""

import logging
from collections.abc import Callable, Iterator
from dataclasses import replace
from datetime import datetime

from .config import Config
from .errors import ValidationError
from .models import Case, CaseStatus, generate_case_label, generate_id
from .store import BaseRepository

logger = logging.getLogger(__name__)

# Fields fixed at construction
_IMMUTABLE_FIELDS = ("id", "case_label", "date_created")

SORTABLE_FIELDS = ("date_created", "date_modified", "case_label", "status")


class CaseListing:
    """Lazy, restartable view over stored cases.

    Nothing is read until iteration starts, and each new iteration queries
    the repository again.
    """

    def __init__(self, repository: BaseRepository, sort_by: str, descending: bool):
        self._repository = repository
        self.sort_by = sort_by
        self.descending = descending

    def _sort_key(self, case: Case):
        value = getattr(case, self.sort_by)
        return value.value if isinstance(value, CaseStatus) else value

    def __iter__(self) -> Iterator[Case]:
        cases = sorted(
            self._repository.iter_cases(),
            key=self._sort_key,
            reverse=self.descending,
        )
        return iter(cases)


class CaseStore:
    """Owns Case entities and cascades their deletion to medication records."""

    def __init__(
        self,
        repository: BaseRepository,
        organization_code: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.organization_code = organization_code or Config.ORGANIZATION_CODE
        self._clock = clock

    def create_case(self) -> Case:
        """Create a new draft case with a generated label."""
        now = self._clock()
        case = Case(
            id=generate_id(),
            case_label=generate_case_label(self.organization_code, now),
            status=CaseStatus.DRAFT,
            date_created=now,
            date_modified=now,
        )
        self.repository.add_case(case)
        logger.info(f"Created case {case.case_label} ({case.id})")
        return case

    def get(self, case_id: str) -> Case | None:
        return self.repository.get_case(case_id)

    def update(self, case: Case | str, mutator: Callable[[Case], None]) -> Case:
        """Apply field changes to a case.

        The mutator receives a working copy; the stored case only changes if
        the result validates.

        Raises:
            ValidationError: case not found, pump-off before pump-on, or an
                attempt to change identity/creation fields.
        """
        case_id = case if isinstance(case, str) else case.id
        current = self.repository.get_case(case_id)
        if current is None:
            raise ValidationError(f"Case {case_id} not found")

        working = replace(current)
        mutator(working)
        self._validate(current, working)

        working.date_modified = self._clock()
        self.repository.save_case(working)
        logger.debug(f"Updated case {working.case_label}")
        return working

    def _validate(self, current: Case, updated: Case) -> None:
        for name in _IMMUTABLE_FIELDS:
            if getattr(updated, name) != getattr(current, name):
                raise ValidationError(f"Case field '{name}' cannot be changed")

        if not isinstance(updated.status, CaseStatus):
            raise ValidationError(f"Invalid case status: {updated.status!r}")

        if (
            updated.pump_on_time is not None
            and updated.pump_off_time is not None
            and updated.pump_off_time < updated.pump_on_time
        ):
            raise ValidationError("Pump-off time cannot be earlier than pump-on time")

    def delete(self, case_id: str) -> bool:
        """Delete a case and every medication record it owns.

        Deleting an unknown ID is a no-op and returns False.
        """
        removed_meds = self.repository.delete_medications_for_case(case_id)
        removed = self.repository.delete_case(case_id)
        if removed:
            logger.info(f"Deleted case {case_id} and {removed_meds} medication(s)")
        return removed

    def list(self, sort_by: str = "date_created", descending: bool = True) -> CaseListing:
        """List cases, newest first by default."""
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort cases by '{sort_by}'")
        return CaseListing(self.repository, sort_by, descending)
