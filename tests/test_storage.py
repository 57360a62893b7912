"""
Tests for the storage backends, the audit logger and CSV export.
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import RecordingAuditStorage, make_transaction
from finsight.audit import AuditLogger
from finsight.models.audit import AuditEventBuilder
from finsight.models import TransactionType
from finsight.services.export import CSV_HEADER, export_transactions_csv
from finsight.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    JsonLinesAuditStorage,
    StorageCorruptError,
    StorageError,
)


class TestInMemoryStorage:

    def test_get_set_remove(self):
        storage = InMemoryStorage()
        assert storage.get_item("k") is None
        storage.set_item("k", "[]")
        assert storage.get_item("k") == "[]"
        assert storage.keys() == ["k"]
        storage.remove_item("k")
        storage.remove_item("k")
        assert storage.get_item("k") is None


class TestJsonFileStorage:
    """Tests for the one-file-per-key backend."""

    def test_round_trip(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data")
        assert storage.get_item("finsight_budgets") is None

        storage.set_item("finsight_budgets", '[{"category": "Housing"}]')
        assert storage.get_item("finsight_budgets") == '[{"category": "Housing"}]'
        assert (tmp_path / "data" / "finsight_budgets.json").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.set_item("key", "1")
        storage.set_item("key", "2")
        assert storage.get_item("key") == "2"
        assert [p.name for p in tmp_path.iterdir()] == ["key.json"]

    def test_remove(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.set_item("key", "1")
        storage.remove_item("key")
        storage.remove_item("key")
        assert storage.get_item("key") is None

    def test_undecodable_file_is_corrupt(self, tmp_path):
        (tmp_path / "key.json").write_bytes(b'"\xff"')
        with pytest.raises(StorageCorruptError) as excinfo:
            JsonFileStorage(tmp_path).get_item("key")
        assert excinfo.value.key == "key"

    def test_unsafe_key_rejected(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        with pytest.raises(StorageError):
            storage.set_item("../escape", "x")
        with pytest.raises(StorageError):
            storage.get_item("a/b")


class TestJsonLinesAuditStorage:
    """Tests for the append-only audit log."""

    def test_append_and_read_newest_first(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "logs" / "audit.jsonl")
        assert storage.get_recent_events() == []

        storage.append_event(AuditEventBuilder.transaction_deleted("a"))
        storage.append_event(AuditEventBuilder.transaction_deleted("b"))

        events = storage.get_recent_events()
        assert [e["entity_id"] for e in events] == ["b", "a"]
        assert len(storage.get_recent_events(limit=1)) == 1

    def test_torn_line_is_skipped(self, tmp_path):
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        storage.append_event(AuditEventBuilder.transaction_deleted("a"))
        with path.open("a", encoding="utf-8") as f:
            f.write('{"event_id": "trunc')

        events = storage.get_recent_events()
        assert [e["entity_id"] for e in events] == ["a"]


class FailingAuditStorage(RecordingAuditStorage):

    def append_event(self, event):
        raise OSError("disk full")


class TestAuditLogger:
    """Tests for the audit logger."""

    def test_events_reach_storage(self):
        storage = RecordingAuditStorage()
        logger = AuditLogger(storage)
        logger.log_budget_updated("Housing", "500", "1500")
        logger.log_unknown_category("Crypto Trading", source="ai_fill")

        assert storage.event_types() == ["budget_updated", "unknown_category_ignored"]
        assert storage.events[1].details == {"value": "Crypto Trading", "source": "ai_fill"}

    def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(FailingAuditStorage())
        assert logger.log(AuditEventBuilder.transaction_deleted("a")) is False

    def test_without_storage(self):
        assert AuditLogger().log(AuditEventBuilder.transaction_deleted("a")) is True


class TestCsvExport:
    """Tests for the ledger download format."""

    def test_header_only_for_empty_ledger(self):
        assert export_transactions_csv([]) == CSV_HEADER

    def test_rows(self):
        transactions = [
            make_transaction("85.50", date(2023, 10, 3), description="Grocery Store Run", id="2"),
            make_transaction("2500", date(2023, 10, 10), category="Income",
                             type=TransactionType.INCOME, description="Freelance Payment", id="4"),
        ]
        assert export_transactions_csv(transactions) == "\n".join([
            "ID,Description,Amount,Date,Category,Type",
            '2,"Grocery Store Run",85.5,2023-10-03,Food & Drink,expense',
            '4,"Freelance Payment",2500,2023-10-10,Income,income',
        ])

    def test_quotes_are_doubled(self):
        t = make_transaction("1", date(2024, 1, 1), description='He said "hi"', id="q")
        line = export_transactions_csv([t]).split("\n")[1]
        assert line == 'q,"He said ""hi""",1,2024-01-01,Food & Drink,expense'

    def test_commas_stay_inside_quotes(self):
        t = make_transaction("12.25", date(2024, 1, 1), description="Dinner, drinks", id="c")
        line = export_transactions_csv([t]).split("\n")[1]
        assert line.startswith('c,"Dinner, drinks",12.25,')

    def test_large_amount_is_not_scientific(self):
        t = make_transaction(Decimal("1E+3"), date(2024, 1, 1), id="e")
        assert ",1000," in export_transactions_csv([t])
