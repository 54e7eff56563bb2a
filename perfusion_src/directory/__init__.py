"""Hospital reference directory."""

from .hospital_directory import HospitalDirectory, SEARCH_RESULTS_GROUP
from .parser import MIN_COLUMNS, ParseResult, parse_hospitals, split_row
from .seed import SEED_HOSPITALS

__all__ = [
    "HospitalDirectory",
    "SEARCH_RESULTS_GROUP",
    "MIN_COLUMNS",
    "ParseResult",
    "parse_hospitals",
    "split_row",
    "SEED_HOSPITALS",
]
