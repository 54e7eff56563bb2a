"""Hospital reference directory: load, filter, search and group."""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from ..config import Config
from ..errors import SourceUnavailable
from ..models import HospitalRecord
from .parser import ParseResult, parse_hospitals
from .seed import SEED_HOSPITALS

logger = logging.getLogger(__name__)

SEARCH_RESULTS_GROUP = "Search Results"

# Immutable snapshot: (hospitals sorted by name, lower-cased search text per hospital)
_Snapshot = tuple[tuple[HospitalRecord, ...], tuple[str, ...]]


def _make_snapshot(hospitals: Iterable[HospitalRecord]) -> _Snapshot:
    ordered = tuple(sorted(hospitals, key=lambda h: h.facility_name))
    return ordered, tuple(h.searchable_text for h in ordered)


class HospitalDirectory:
    """Filtered, searchable list of allowed hospitals.

    Readers always see a complete snapshot: a load builds the new list off
    to the side and publishes it with a single reference swap.

    Usage:
        directory = HospitalDirectory()
        directory.load("data/hospitals.csv")
        directory.search("boston")
    """

    def __init__(
        self,
        allowed_regions: Iterable[str] | None = None,
        seed: Iterable[HospitalRecord] | None = None,
        delimiter: str = ",",
    ):
        if allowed_regions is None:
            allowed_regions = Config.ALLOWED_REGIONS
        self.allowed_regions = frozenset(r.strip().upper() for r in allowed_regions)
        self.delimiter = delimiter
        self._seed = tuple(SEED_HOSPITALS if seed is None else seed)

        self._lock = threading.Lock()
        self._snapshot: _Snapshot = ((), ())
        self._executor: ThreadPoolExecutor | None = None

        self.is_loading = False
        self.last_error: str | None = None
        self.skipped_rows = 0

    # Loading

    def load(self, source: str | Path | None = None) -> int:
        """Load hospitals from a delimited file, replacing the current list.

        Never raises: if the source is missing, unreadable or yields no
        hospitals, the built-in seed list is served and last_error is set.

        Returns:
            Number of hospitals now in the directory.
        """
        self.is_loading = True
        self.last_error = None
        try:
            try:
                result = self._read(source)
                if result.hospitals:
                    hospitals = result.hospitals
                    error = None
                else:
                    hospitals = self._seed_hospitals()
                    error = "No hospitals loaded"
                skipped = result.skipped_rows
            except SourceUnavailable as e:
                logger.warning(f"Hospital data unavailable, using built-in list: {e}")
                hospitals = self._seed_hospitals()
                error = str(e)
                skipped = 0

            self._publish(hospitals)
            self.skipped_rows = skipped
            self.last_error = error
        finally:
            self.is_loading = False

        logger.info(f"Loaded {len(hospitals)} hospitals")
        return len(hospitals)

    def load_in_background(self, source: str | Path | None = None) -> Future:
        """Run load() on a worker thread; the future resolves to the count."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="hospital-directory"
            )
        self.is_loading = True
        return self._executor.submit(self.load, source)

    def reload(self, source: str | Path | None = None) -> int:
        return self.load(source)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def _read(self, source: str | Path | None) -> ParseResult:
        source = source or Config.HOSPITAL_DATA_PATH
        if not source:
            raise SourceUnavailable("No hospital data file configured")

        path = Path(source).expanduser()
        try:
            with open(path, encoding="utf-8-sig") as f:
                result = parse_hospitals(f, self.allowed_regions, self.delimiter)
        except (OSError, ValueError) as e:
            raise SourceUnavailable(f"Could not read hospital data from {path}: {e}") from e

        if result.synthesized_ids:
            logger.debug(f"{path} has no identifier column; using positional IDs")
        return result

    def _seed_hospitals(self) -> list[HospitalRecord]:
        return [h for h in self._seed if h.state in self.allowed_regions]

    def _publish(self, hospitals: Iterable[HospitalRecord]) -> None:
        snapshot = _make_snapshot(
            h for h in hospitals if h.state in self.allowed_regions
        )
        with self._lock:
            self._snapshot = snapshot

    # Queries

    @property
    def hospitals(self) -> list[HospitalRecord]:
        """All hospitals, sorted by name."""
        return list(self._snapshot[0])

    def __len__(self) -> int:
        return len(self._snapshot[0])

    def get(self, facility_id: str) -> HospitalRecord | None:
        for hospital in self._snapshot[0]:
            if hospital.facility_id == facility_id:
                return hospital
        return None

    def regions(self) -> list[str]:
        """Region codes present in the directory, sorted."""
        return sorted({h.state for h in self._snapshot[0]})

    def search(self, query: str = "") -> list[HospitalRecord]:
        """Case-insensitive substring search over name, city, state and county."""
        hospitals, texts = self._snapshot
        if not query:
            return list(hospitals)
        needle = query.lower()
        return [h for h, text in zip(hospitals, texts) if needle in text]

    def grouped_by_region(self, query: str = "") -> list[tuple[str, list[HospitalRecord]]]:
        """Group hospitals for display.

        With no query, one group per region code (sorted), hospitals by
        name. With a query, a single "Search Results" group.
        """
        matches = self.search(query)
        if query:
            return [(SEARCH_RESULTS_GROUP, matches)]

        groups: dict[str, list[HospitalRecord]] = {}
        for hospital in matches:
            groups.setdefault(hospital.state, []).append(hospital)
        return [(region, groups[region]) for region in sorted(groups)]
