"""In-memory repository, used by default and in tests."""

import logging
from collections.abc import Iterator
from dataclasses import replace

from ..errors import StoreError
from ..models import Case, MedicationRecord
from .base import BaseRepository

logger = logging.getLogger(__name__)


class InMemoryRepository(BaseRepository):
    """Dict-backed repository. Dicts keep insertion (creation) order."""

    def __init__(self):
        self._cases: dict[str, Case] = {}
        self._medications: dict[str, MedicationRecord] = {}

    def add_case(self, case: Case) -> None:
        if case.id in self._cases:
            raise StoreError(f"Case {case.id} already exists")
        self._cases[case.id] = replace(case)

    def get_case(self, case_id: str) -> Case | None:
        case = self._cases.get(case_id)
        return replace(case) if case else None

    def save_case(self, case: Case) -> None:
        if case.id not in self._cases:
            raise StoreError(f"Case {case.id} not found")
        self._cases[case.id] = replace(case)

    def delete_case(self, case_id: str) -> bool:
        return self._cases.pop(case_id, None) is not None

    def iter_cases(self) -> Iterator[Case]:
        for case in list(self._cases.values()):
            yield replace(case)

    def add_medication(self, record: MedicationRecord) -> None:
        if record.id in self._medications:
            raise StoreError(f"Medication {record.id} already exists")
        self._medications[record.id] = replace(record)

    def get_medication(self, record_id: str) -> MedicationRecord | None:
        record = self._medications.get(record_id)
        return replace(record) if record else None

    def save_medication(self, record: MedicationRecord) -> None:
        if record.id not in self._medications:
            raise StoreError(f"Medication {record.id} not found")
        self._medications[record.id] = replace(record)

    def delete_medication(self, record_id: str) -> bool:
        return self._medications.pop(record_id, None) is not None

    def medications_for_case(self, case_id: str) -> list[MedicationRecord]:
        return [
            replace(r) for r in self._medications.values() if r.case_id == case_id
        ]

    def delete_medications_for_case(self, case_id: str) -> int:
        doomed = [rid for rid, r in self._medications.items() if r.case_id == case_id]
        for rid in doomed:
            del self._medications[rid]
        if doomed:
            logger.debug(f"Removed {len(doomed)} medication(s) for case {case_id}")
        return len(doomed)
