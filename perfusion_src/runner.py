#!/usr/bin/env python3
"""CLI entry point for the Perfusion Case Tracker.

Examples:
    perfusion-tracker hospitals --source data/hospitals.csv --query boston
    perfusion-tracker hospitals --grouped
    perfusion-tracker cases --db-path ~/.perfusion/perfusion.db
    perfusion-tracker export CASE_ID --output meds.csv
"""

import argparse
import logging
import sys

from .case_store import CaseStore
from .config import config
from .directory import HospitalDirectory
from .exporter import export_medications_csv, write_medications_csv
from .medication_ledger import MedicationLedger
from .reports import medication_summary
from .store import get_repository

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run_hospitals(args) -> int:
    directory = HospitalDirectory(
        allowed_regions=args.regions.split(",") if args.regions else None
    )
    directory.load(args.source)
    if directory.last_error:
        print(f"Warning: {directory.last_error} (showing built-in hospitals)", file=sys.stderr)

    if args.grouped:
        for group, hospitals in directory.grouped_by_region(args.query or ""):
            print(f"{group} ({len(hospitals)})")
            for hospital in hospitals:
                print(f"  {hospital.display_name}")
    else:
        for hospital in directory.search(args.query or ""):
            print(f"{hospital.facility_id}\t{hospital.display_name}")
    return 0


def run_cases(args) -> int:
    repository = get_repository("sqlite", args.db_path)
    cases = CaseStore(repository)
    ledger = MedicationLedger(repository)

    count = 0
    for case in cases.list():
        stats = ledger.statistics(case.id)
        print(
            f"{case.case_label}\t{case.status.display_name}\t"
            f"{case.date_created:%Y-%m-%d %H:%M}\t"
            f"perfusion {case.formatted_duration}\t"
            f"meds {stats.total} ({stats.active} active)\t{case.id}"
        )
        count += 1

    if count == 0:
        print("No cases found")
    return 0


def run_export(args) -> int:
    repository = get_repository("sqlite", args.db_path)
    cases = CaseStore(repository)
    ledger = MedicationLedger(repository)

    case = cases.get(args.case_id)
    if case is None:
        logger.error(f"Case {args.case_id} not found")
        return 1

    records = ledger.records_for(case.id)
    if args.summary:
        print(medication_summary(records).to_string())
        return 0

    if args.output:
        path = write_medications_csv(records, args.output)
        print(f"Wrote {len(records)} medication(s) for {case.case_label} to {path}")
    else:
        sys.stdout.write(export_medications_csv(records))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Perfusion Case Tracker - cases, medications and hospital directory"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    hospitals = subparsers.add_parser("hospitals", help="Search the hospital directory")
    hospitals.add_argument(
        "--source",
        type=str,
        default=None,
        help=f"Hospital CSV path (default: {config.HOSPITAL_DATA_PATH or 'built-in list'})",
    )
    hospitals.add_argument("--query", "-q", type=str, default="", help="Search text")
    hospitals.add_argument("--grouped", action="store_true", help="Group results by region")
    hospitals.add_argument(
        "--regions",
        type=str,
        default=None,
        help=f"Comma-separated region allow-list (default: {','.join(config.ALLOWED_REGIONS)})",
    )
    hospitals.set_defaults(func=run_hospitals)

    cases = subparsers.add_parser("cases", help="List stored cases, newest first")
    cases.add_argument("--db-path", type=str, default=None, help="Case database path")
    cases.set_defaults(func=run_cases)

    export = subparsers.add_parser("export", help="Export a case's medications as CSV")
    export.add_argument("case_id", help="Case ID")
    export.add_argument("--output", "-o", type=str, default=None, help="Output file (default: stdout)")
    export.add_argument("--summary", action="store_true", help="Print counts by type and status instead")
    export.add_argument("--db-path", type=str, default=None, help="Case database path")
    export.set_defaults(func=run_export)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
