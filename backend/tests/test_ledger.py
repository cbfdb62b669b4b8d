"""
Tests for the points ledger.

Covers key normalization, atomic record_scan, the total == sum(scans)
invariant under sequential and concurrent writes, and the read operations.
"""

import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from rescan.exceptions import InvalidInputError, PersistenceError
from rescan.models import MaterialClassification, MaterialType, ParseMethod, RecordedScan, RecordFailed
from rescan.services.ledger import LedgerStore, normalize_location_key


def make_classification(
    material: MaterialType = MaterialType.PLASTIC,
    ric_code=1,
    confidence: int = 85,
    uncertain: bool = False,
) -> MaterialClassification:
    return MaterialClassification(
        material_type=material,
        ric_code=ric_code,
        confidence=confidence,
        recyclable=True,
        uncertain=uncertain,
        description="test item",
        parse_method=ParseMethod.STRUCTURED,
    )


class TestNormalizeLocationKey:
    """Test address -> ledger key normalization."""

    def test_collapses_case_and_whitespace(self):
        assert normalize_location_key("  12  Main   St ") == "12 main st"
        assert normalize_location_key("12 MAIN ST") == normalize_location_key("12 main st")

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_empty_rejected(self, value):
        with pytest.raises(InvalidInputError):
            normalize_location_key(value)

    def test_length_limit(self):
        assert len(normalize_location_key("a" * 255)) == 255
        with pytest.raises(InvalidInputError):
            normalize_location_key("a" * 256)


class TestRecordScan:
    """Test atomic scan recording."""

    def test_first_scan_creates_location(self, ledger):
        result = ledger.record_scan("12 Main St", make_classification(), 10, "raw")

        assert isinstance(result, RecordedScan)
        assert result.location_key == "12 main st"
        assert result.points_awarded == 10
        assert result.new_total == 10

        summary = ledger.lookup_location("12 main st")
        assert summary.exists is True
        assert summary.points_total == 10
        assert summary.display_address == "12 Main St"

    def test_totals_accumulate(self, ledger):
        ledger.record_scan("Oak Ave", make_classification(), 10)
        ledger.record_scan("oak ave", make_classification(MaterialType.GLASS, None), 12)
        result = ledger.record_scan("OAK  AVE", make_classification(MaterialType.PAPER, None), 6)

        assert result.new_total == 28
        assert ledger.count_scans("Oak Ave") == 3

    def test_zero_point_scan_keeps_total(self, ledger):
        ledger.record_scan("Elm St", make_classification(), 10)
        result = ledger.record_scan(
            "Elm St", make_classification(MaterialType.UNKNOWN, None, 5, uncertain=True), 0
        )

        assert isinstance(result, RecordedScan)
        assert result.new_total == 10
        assert ledger.count_scans("Elm St") == 2

    def test_each_scan_gets_unique_id(self, ledger):
        ids = {ledger.record_scan("Pine Rd", make_classification(), 1).scan_id for _ in range(5)}
        assert len(ids) == 5

    def test_negative_points_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.record_scan("Pine Rd", make_classification(), -1)

    def test_invalid_key_rejected(self, ledger):
        with pytest.raises(InvalidInputError):
            ledger.record_scan("   ", make_classification(), 10)

    def test_failure_mid_transaction_rolls_back(self, ledger, monkeypatch):
        """Scan row inserted, then the increment fails: nothing is kept."""
        ledger.record_scan("Birch Ln", make_classification(), 10)

        def fail_increment(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(ledger, "_increment_total", fail_increment)
        result = ledger.record_scan("Birch Ln", make_classification(), 10)

        assert isinstance(result, RecordFailed)
        assert "disk I/O error" in result.message
        assert ledger.lookup_location("Birch Ln").points_total == 10
        assert ledger.count_scans("Birch Ln") == 1
        assert ledger.verify_ledger() == []

    def test_failure_on_new_location_leaves_no_row(self, ledger, monkeypatch):
        def fail_insert(*args, **kwargs):
            raise sqlite3.IntegrityError("constraint failed")

        monkeypatch.setattr(ledger, "_insert_scan", fail_insert)
        result = ledger.record_scan("Cedar Ct", make_classification(), 10)

        assert isinstance(result, RecordFailed)
        assert ledger.lookup_location("Cedar Ct").exists is False

    def test_constraint_violation_is_record_failed(self, ledger):
        """An out-of-range RIC is rejected by the schema, not half-written."""
        bad = make_classification(ric_code=9)
        result = ledger.record_scan("Maple Dr", bad, 10)

        assert isinstance(result, RecordFailed)
        assert ledger.lookup_location("Maple Dr").exists is False


class TestConcurrency:
    """Test that concurrent writers never lose an increment."""

    def test_concurrent_scans_same_location(self, ledger):
        n, points = 40, 7

        def scan(_):
            return ledger.record_scan("Busy Blvd", make_classification(), points)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(scan, range(n)))

        assert all(isinstance(r, RecordedScan) for r in results)
        assert ledger.lookup_location("Busy Blvd").points_total == n * points
        assert ledger.count_scans("Busy Blvd") == n
        # Every intermediate total was observed exactly once
        assert sorted(r.new_total for r in results) == [points * (i + 1) for i in range(n)]
        assert ledger.verify_ledger() == []

    def test_concurrent_scans_many_locations(self, ledger):
        addresses = [f"{i} Side St" for i in range(5)]

        def scan(i):
            return ledger.record_scan(addresses[i % 5], make_classification(), 3)

        with ThreadPoolExecutor(max_workers=10) as pool:
            list(pool.map(scan, range(50)))

        for address in addresses:
            assert ledger.lookup_location(address).points_total == 30
        assert ledger.count_scans() == 50
        assert ledger.verify_ledger() == []

    def test_two_stores_share_database(self, temp_db):
        """Separate store instances (separate processes in production) serialize too."""
        first = LedgerStore(str(temp_db))
        second = LedgerStore(str(temp_db), initialize=False)

        def scan(i):
            store = first if i % 2 else second
            return store.record_scan("Shared Way", make_classification(), 2)

        try:
            with ThreadPoolExecutor(max_workers=6) as pool:
                list(pool.map(scan, range(30)))
            assert first.lookup_location("Shared Way").points_total == 60
        finally:
            first.close()
            second.close()


class TestReads:
    """Test lookup, registration, history and audit."""

    def test_lookup_unknown_location(self, ledger):
        summary = ledger.lookup_location("Nowhere")

        assert summary.exists is False
        assert summary.points_total == 0
        assert ledger.lookup_location("Nowhere").exists is False

    def test_ensure_location_registers_once(self, ledger):
        first = ledger.ensure_location("  1 First St ")
        second = ledger.ensure_location("1 FIRST ST")

        assert first.exists is True
        assert first.points_total == 0
        assert first.display_address == "1 First St"
        assert second.display_address == "1 First St"
        assert second.created_at == first.created_at

    def test_list_scans_newest_first(self, ledger):
        for material in (MaterialType.PLASTIC, MaterialType.GLASS, MaterialType.PAPER):
            ledger.record_scan("History Ln", make_classification(material, None), 1)

        scans = ledger.list_scans("History Ln")

        assert [s.material_type for s in scans] == [
            MaterialType.PAPER, MaterialType.GLASS, MaterialType.PLASTIC
        ]
        assert scans[0].parse_method == ParseMethod.STRUCTURED
        assert scans[0].raw_analysis == ""

    def test_list_scans_limit(self, ledger):
        for _ in range(5):
            ledger.record_scan("Limit Rd", make_classification(), 1)
        assert len(ledger.list_scans("Limit Rd", limit=2)) == 2

    def test_verify_ledger_detects_tampering(self, ledger, temp_db):
        ledger.record_scan("Audit Ave", make_classification(), 10)

        conn = sqlite3.connect(str(temp_db))
        conn.execute("UPDATE locations SET points_total = 99 WHERE location_key = 'audit ave'")
        conn.commit()
        conn.close()

        discrepancies = ledger.verify_ledger()
        assert len(discrepancies) == 1
        assert discrepancies[0].points_total == 99
        assert discrepancies[0].scan_points_sum == 10

    def test_read_failure_raises_persistence_error(self, temp_db):
        store = LedgerStore(str(temp_db), initialize=False)
        try:
            with pytest.raises(PersistenceError):
                store.lookup_location("Missing Tables")
        finally:
            store.close()
