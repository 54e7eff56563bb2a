"""Perfusion Case Tracker core: cases, medication ledger and hospital directory."""

from .case_store import CaseStore
from .directory import HospitalDirectory, split_row
from .errors import (
    InvalidTransition,
    PerfusionError,
    SourceUnavailable,
    StoreError,
    ValidationError,
)
from .medication_ledger import MedicationLedger, MedicationStatistics
from .models import (
    Case,
    CaseStatus,
    HospitalRecord,
    MedicationRecord,
    MedicationStatus,
    MedicationTemplate,
    MedicationType,
)
from .store import BaseRepository, InMemoryRepository, SQLiteRepository, get_repository

__all__ = [
    # Services
    "CaseStore",
    "MedicationLedger",
    "MedicationStatistics",
    "HospitalDirectory",
    "split_row",
    # Models
    "Case",
    "CaseStatus",
    "MedicationRecord",
    "MedicationStatus",
    "MedicationTemplate",
    "MedicationType",
    "HospitalRecord",
    # Storage
    "BaseRepository",
    "InMemoryRepository",
    "SQLiteRepository",
    "get_repository",
    # Errors
    "PerfusionError",
    "ValidationError",
    "InvalidTransition",
    "SourceUnavailable",
    "StoreError",
]
