"""Shared fixtures for perfusion tracker tests."""

from datetime import datetime, timedelta

import pytest

from perfusion_src.case_store import CaseStore
from perfusion_src.medication_ledger import MedicationLedger
from perfusion_src.store import InMemoryRepository


class FakeClock:
    """Deterministic, manually advanced clock."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 15, 8, 0, 0))


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def case_store(repository, clock):
    return CaseStore(repository, organization_code="NEDS", clock=clock)


@pytest.fixture
def ledger(repository, clock):
    return MedicationLedger(repository, clock=clock)


@pytest.fixture
def case(case_store):
    return case_store.create_case()


@pytest.fixture
def hospital_csv(tmp_path):
    """Write a small hospital dataset and return its path."""
    content = "\n".join([
        "name,address,city,state,zip,phone,type",
        '"Tufts Medical Center","800 Washington St, Floor 2",Boston,MA,02111,(617) 636-5000,Acute Care Hospitals',
        "Rhode Island Hospital,593 Eddy St,Providence,RI,02903,(401) 444-4000,Acute Care Hospitals",
        "Mount Sinai Hospital,1 Gustave L Levy Pl,New York,NY,10029,(212) 241-6500,Acute Care Hospitals",
        "Broken Row,Only,Four,MA",
        "University of Vermont Medical Center,111 Colchester Ave,Burlington,VT,05401,(802) 847-0000,Acute Care Hospitals",
        "",
        "Baystate Medical Center,759 Chestnut St,Springfield,MA,01199,(413) 794-0000,Acute Care Hospitals",
    ])
    path = tmp_path / "hospitals.csv"
    path.write_text(content + "\n", encoding="utf-8")
    return path
