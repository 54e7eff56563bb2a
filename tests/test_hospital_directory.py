"""Tests for hospital data parsing and the hospital directory."""

import pytest

from perfusion_src.directory import (
    SEARCH_RESULTS_GROUP,
    SEED_HOSPITALS,
    HospitalDirectory,
    parse_hospitals,
    split_row,
)
from perfusion_src.directory.parser import _normalize_header, parse_flag

NEW_ENGLAND = ["MA", "ME", "NH", "VT", "RI", "CT"]


class TestSplitRow:
    """Tests for the quote-toggle field splitter."""

    def test_quoted_delimiter(self):
        assert split_row('"Smith, John",10,mg') == ["Smith, John", "10", "mg"]

    def test_trims_whitespace(self):
        assert split_row(" a ,  b,c  ") == ["a", "b", "c"]

    def test_empty_fields_kept(self):
        assert split_row("a,,c,") == ["a", "", "c", ""]

    def test_empty_row(self):
        assert split_row("") == []

    def test_alternate_delimiter(self):
        assert split_row('x;"y;z"', delimiter=";") == ["x", "y;z"]


class TestParseHospitals:
    """Tests for parse_hospitals."""

    def test_filters_and_skips(self, hospital_csv):
        with open(hospital_csv, encoding="utf-8") as f:
            result = parse_hospitals(f, NEW_ENGLAND)

        names = [h.facility_name for h in result.hospitals]
        assert names == [
            "Tufts Medical Center",
            "Rhode Island Hospital",
            "University of Vermont Medical Center",
            "Baystate Medical Center",
        ]
        assert result.skipped_rows == 1
        assert result.filtered_rows == 1
        assert result.rows_read == 6

    def test_quoted_address_kept_whole(self, hospital_csv):
        with open(hospital_csv, encoding="utf-8") as f:
            result = parse_hospitals(f, NEW_ENGLAND)
        tufts = result.hospitals[0]
        assert tufts.address == "800 Washington St, Floor 2"
        assert tufts.city == "Boston"
        assert tufts.state == "MA"

    def test_ordinal_ids_without_id_column(self, hospital_csv):
        with open(hospital_csv, encoding="utf-8") as f:
            result = parse_hospitals(f, NEW_ENGLAND)
        assert result.synthesized_ids is True
        assert [h.facility_id for h in result.hospitals] == ["1", "2", "3", "4"]

    def test_id_county_and_emergency_columns(self):
        lines = [
            "name,address,city,state,zip,phone,type,county,emergency_services,provider_id",
            "Maine Medical Center,22 Bramhall St,Portland,ME,04102,(207) 662-0111,"
            "Acute Care Hospitals,Cumberland,Yes,200009",
            "Small Clinic,1 Main St,Bangor,ME,04401,,Critical Access Hospitals,Penobscot,No,200099",
        ]
        result = parse_hospitals(lines, NEW_ENGLAND)

        assert result.synthesized_ids is False
        mmc, clinic = result.hospitals
        assert mmc.facility_id == "200009"
        assert mmc.county == "Cumberland"
        assert mmc.emergency_services is True
        assert clinic.emergency_services is False
        assert clinic.phone_number is None

    def test_header_only(self):
        result = parse_hospitals(["name,address,city,state,zip,phone,type"], NEW_ENGLAND)
        assert result.hospitals == []

    def test_empty_source(self):
        assert parse_hospitals([], NEW_ENGLAND).hospitals == []

    def test_byte_order_mark_stripped_from_header(self):
        lines = [
            "\ufeffname,address,city,state,zip,phone,type,id",
            "Hospital,1 St,Town,MA,01000,555,Acute,H-1",
        ]
        assert _normalize_header("\ufeffFacility ID") == "facility_id"
        result = parse_hospitals(lines, ["MA"])
        assert result.synthesized_ids is False
        assert result.hospitals[0].facility_id == "H-1"

    def test_region_match_is_case_insensitive(self):
        lines = [
            "name,address,city,state,zip,phone,type",
            "Hospital,1 St,Town,ma,01000,555,Acute",
        ]
        result = parse_hospitals(lines, ["MA"])
        assert result.hospitals[0].state == "MA"


@pytest.mark.parametrize(
    "value,expected",
    [("Yes", True), ("true", True), ("N", False), ("0", False), ("", None), (None, None)],
)
def test_parse_flag(value, expected):
    assert parse_flag(value) is expected


class TestDirectoryLoad:
    """Tests for HospitalDirectory.load."""

    def test_load_sorts_by_name(self, hospital_csv):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        count = directory.load(hospital_csv)

        assert count == 4
        assert directory.last_error is None
        assert directory.is_loading is False
        assert directory.skipped_rows == 1
        assert [h.facility_name for h in directory.hospitals] == [
            "Baystate Medical Center",
            "Rhode Island Hospital",
            "Tufts Medical Center",
            "University of Vermont Medical Center",
        ]

    def test_only_allowed_regions(self, hospital_csv):
        directory = HospitalDirectory(allowed_regions=["MA"])
        directory.load(hospital_csv)
        assert {h.state for h in directory.hospitals} == {"MA"}

    def test_missing_source_falls_back_to_seed(self, tmp_path):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        count = directory.load(tmp_path / "missing.csv")

        assert count == len(SEED_HOSPITALS)
        assert directory.last_error is not None
        assert "missing.csv" in directory.last_error
        assert directory.is_loading is False

    def test_seed_fallback_respects_allow_list(self, tmp_path):
        directory = HospitalDirectory(allowed_regions=["CT"])
        directory.load(tmp_path / "missing.csv")
        assert [h.facility_name for h in directory.hospitals] == ["Yale New Haven Hospital"]

    def test_empty_allow_list_admits_nothing(self, hospital_csv):
        directory = HospitalDirectory(allowed_regions=[])
        assert directory.allowed_regions == frozenset()

        assert directory.load(hospital_csv) == 0
        assert directory.hospitals == []
        assert directory.last_error == "No hospitals loaded"

    def test_unopenable_path_falls_back(self):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        count = directory.load("bad\x00name.csv")

        assert count == len(SEED_HOSPITALS)
        assert directory.last_error is not None
        assert directory.is_loading is False

    def test_is_loading_reset_when_load_raises(self, hospital_csv, monkeypatch):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)

        def explode(hospitals):
            raise RuntimeError("publish failed")

        monkeypatch.setattr(directory, "_publish", explode)
        with pytest.raises(RuntimeError):
            directory.load(hospital_csv)
        assert directory.is_loading is False

    def test_byte_order_mark_file(self, tmp_path):
        source = tmp_path / "bom.csv"
        source.write_text(
            "name,address,city,state,zip,phone,type,provider_id\n"
            "Massachusetts General Hospital,55 Fruit St,Boston,MA,02114,"
            "(617) 726-2000,Acute Care Hospitals,220071\n",
            encoding="utf-8-sig",
        )
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        directory.load(source)

        mgh = directory.get("220071")
        assert mgh is not None
        assert mgh.facility_name == "Massachusetts General Hospital"
        assert directory.last_error is None

    def test_no_matching_rows_falls_back(self, hospital_csv):
        directory = HospitalDirectory(allowed_regions=["NH"])
        directory.load(hospital_csv)
        assert directory.last_error == "No hospitals loaded"
        assert [h.state for h in directory.hospitals] == ["NH"]

    def test_reload_replaces_wholesale(self, hospital_csv, tmp_path):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        directory.load(hospital_csv)

        smaller = tmp_path / "smaller.csv"
        smaller.write_text(
            "name,address,city,state,zip,phone,type\n"
            "Cape Cod Hospital,27 Park St,Hyannis,MA,02601,(508) 771-1800,Acute Care Hospitals\n",
            encoding="utf-8",
        )
        directory.reload(smaller)

        assert [h.facility_name for h in directory.hospitals] == ["Cape Cod Hospital"]
        assert directory.last_error is None

    def test_load_in_background(self, hospital_csv):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        try:
            future = directory.load_in_background(hospital_csv)
            assert future.result(timeout=10) == 4
        finally:
            directory.shutdown()

        assert directory.is_loading is False
        assert len(directory) == 4

    def test_get_and_regions(self, hospital_csv):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        directory.load(hospital_csv)

        assert directory.regions() == ["MA", "RI", "VT"]
        tufts = directory.get("1")
        assert tufts is not None and tufts.facility_name == "Tufts Medical Center"
        assert directory.get("999") is None


class TestDirectoryQueries:
    """Tests for search and grouping."""

    @pytest.fixture
    def directory(self, hospital_csv):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        directory.load(hospital_csv)
        return directory

    def test_empty_query_returns_all(self, directory):
        assert directory.search("") == directory.hospitals

    def test_search_case_insensitive(self, directory):
        names = [h.facility_name for h in directory.search("BOSTON")]
        assert names == ["Tufts Medical Center"]

    def test_search_matches_state(self, directory):
        names = [h.facility_name for h in directory.search("ri")]
        assert "Rhode Island Hospital" in names

    def test_search_no_match(self, directory):
        assert directory.search("zzz") == []

    def test_search_is_idempotent(self, directory):
        assert directory.search("medical") == directory.search("medical")

    def test_search_county_from_seed(self, tmp_path):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        directory.load(tmp_path / "missing.csv")
        names = [h.facility_name for h in directory.search("suffolk")]
        assert names == ["Brigham and Women's Hospital", "Massachusetts General Hospital"]

    def test_grouped_by_region(self, directory):
        groups = directory.grouped_by_region("")

        assert [region for region, _ in groups] == ["MA", "RI", "VT"]
        ma = dict(groups)["MA"]
        assert [h.facility_name for h in ma] == ["Baystate Medical Center", "Tufts Medical Center"]

    def test_grouped_with_query(self, directory):
        groups = directory.grouped_by_region("medical")

        assert len(groups) == 1
        label, hospitals = groups[0]
        assert label == SEARCH_RESULTS_GROUP
        assert [h.facility_name for h in hospitals] == [
            "Baystate Medical Center",
            "Tufts Medical Center",
            "University of Vermont Medical Center",
        ]

    def test_empty_before_load(self):
        directory = HospitalDirectory(allowed_regions=NEW_ENGLAND)
        assert directory.search("") == []
        assert directory.grouped_by_region("") == []
