"""Abstract repository contract for cases and medication records."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from ..models import Case, MedicationRecord


class BaseRepository(ABC):
    """Storage for cases and the medication records they own.

    Implementations store and return copies; mutating a returned object has
    no effect until it is passed back through a save method. Cascading
    deletes are the caller's job (see CaseStore.delete).
    """

    # Cases

    @abstractmethod
    def add_case(self, case: Case) -> None:
        """Insert a new case."""
        pass

    @abstractmethod
    def get_case(self, case_id: str) -> Case | None:
        """Get a case by ID."""
        pass

    @abstractmethod
    def save_case(self, case: Case) -> None:
        """Replace the stored version of an existing case."""
        pass

    @abstractmethod
    def delete_case(self, case_id: str) -> bool:
        """Delete a case. Returns False if it did not exist."""
        pass

    @abstractmethod
    def iter_cases(self) -> Iterator[Case]:
        """Iterate over all stored cases in insertion order."""
        pass

    # Medication records

    @abstractmethod
    def add_medication(self, record: MedicationRecord) -> None:
        """Insert a new medication record."""
        pass

    @abstractmethod
    def get_medication(self, record_id: str) -> MedicationRecord | None:
        """Get a medication record by ID."""
        pass

    @abstractmethod
    def save_medication(self, record: MedicationRecord) -> None:
        """Replace the stored version of an existing medication record."""
        pass

    @abstractmethod
    def delete_medication(self, record_id: str) -> bool:
        """Delete a medication record. Returns False if it did not exist."""
        pass

    @abstractmethod
    def medications_for_case(self, case_id: str) -> list[MedicationRecord]:
        """Get all records referencing a case, in creation order."""
        pass

    @abstractmethod
    def delete_medications_for_case(self, case_id: str) -> int:
        """Delete every record referencing a case. Returns the count removed."""
        pass
