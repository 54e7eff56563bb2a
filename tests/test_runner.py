"""Tests for the command line runner."""

from perfusion_src.case_store import CaseStore
from perfusion_src.medication_ledger import MedicationLedger
from perfusion_src.runner import main
from perfusion_src.store import SQLiteRepository


class TestHospitalsCommand:
    """Tests for `hospitals`."""

    def test_search(self, hospital_csv, capsys):
        exit_code = main(["hospitals", "--source", str(hospital_csv), "--query", "boston"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Tufts Medical Center - Boston, MA" in out
        assert "Rhode Island" not in out

    def test_grouped(self, hospital_csv, capsys):
        main(["hospitals", "--source", str(hospital_csv), "--grouped", "--regions", "MA,VT"])

        out = capsys.readouterr().out
        assert "MA (2)" in out
        assert "VT (1)" in out
        assert "RI" not in out

    def test_missing_source_warns(self, tmp_path, capsys):
        main(["hospitals", "--source", str(tmp_path / "nope.csv")])

        captured = capsys.readouterr()
        assert "built-in hospitals" in captured.err
        assert "Massachusetts General Hospital" in captured.out


class TestCaseCommands:
    """Tests for `cases` and `export`."""

    def _seed(self, db_path):
        repository = SQLiteRepository(db_path)
        case = CaseStore(repository).create_case()
        MedicationLedger(repository).create(
            case.id, "Heparin", "bolus", "30000", "units", administered_by="J. Doe"
        )
        return case

    def test_cases_listing(self, tmp_path, capsys):
        db_path = str(tmp_path / "p.db")
        case = self._seed(db_path)

        main(["cases", "--db-path", db_path])

        out = capsys.readouterr().out
        assert case.case_label in out
        assert "meds 1 (0 active)" in out

    def test_export_stdout(self, tmp_path, capsys):
        db_path = str(tmp_path / "p.db")
        case = self._seed(db_path)

        assert main(["export", case.id, "--db-path", db_path]) == 0

        out = capsys.readouterr().out
        assert out.startswith("Date/Time,Medication")
        assert ",Heparin,bolus,30000,units,IV,J. Doe" in out

    def test_export_summary(self, tmp_path, capsys):
        db_path = str(tmp_path / "p.db")
        case = self._seed(db_path)

        main(["export", case.id, "--summary", "--db-path", db_path])
        assert "pending" in capsys.readouterr().out

    def test_export_unknown_case(self, tmp_path):
        assert main(["export", "missing", "--db-path", str(tmp_path / "p.db")]) == 1
