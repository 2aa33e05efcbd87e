"""Tests for govaudit-store implementations."""

from __future__ import annotations

import pytest

from govaudit_store.base import ADMIT_CAPACITY_EXHAUSTED, ADMIT_READY
from govaudit_store.codec import decode_payload, encode_payload
from govaudit_store.noop import NoOpStorage
from govaudit_store.sqlite import SQLiteReportStorage


def _save(storage, proposal_id, title="Elect new replica revision"):
    assert storage.admit() == ADMIT_READY
    return storage.save(proposal_id, encode_payload(title), encode_payload({"id": proposal_id, "audit": {"issues": []}}))


# ---------------------------------------------------------------------------
# codec
# ---------------------------------------------------------------------------


class TestCodec:
    def test_encoded_value_is_ascii(self):
        encoded = encode_payload({"issue": "naïve → panic"})
        assert encoded.isascii()

    def test_decode_restores_structure(self):
        value = {"id": "1", "audit": {"issues": [{"line": 3, "severity": "high"}]}}
        assert decode_payload(encode_payload(value)) == value

    def test_plain_string(self):
        assert decode_payload(encode_payload("Elect revision")) == "Elect revision"

    def test_invalid_payload_raises_value_error(self):
        with pytest.raises(ValueError):
            decode_payload("not base64 json!")


# ---------------------------------------------------------------------------
# NoOpStorage
# ---------------------------------------------------------------------------


class TestNoOpStorage:
    def test_always_admits(self):
        assert NoOpStorage().admit() == ADMIT_READY

    def test_has_no_shards(self):
        assert NoOpStorage().list_shards() == []

    def test_save_keeps_nothing(self):
        storage = NoOpStorage()
        assert storage.save("1", "t", "r") is None
        assert list(storage.iter_reports()) == []

    def test_close_does_not_raise(self):
        NoOpStorage().close()


# ---------------------------------------------------------------------------
# SQLiteReportStorage
# ---------------------------------------------------------------------------


class TestSQLiteReportStorage:
    def test_fresh_store_has_no_shards(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"))
        assert storage.list_shards() == []
        storage.close()

    def test_first_admit_creates_a_shard(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"))
        assert storage.admit() == ADMIT_READY
        assert [s.shard_id for s in storage.list_shards()] == ["shard-0"]
        storage.close()

    def test_admit_without_write_does_not_add_shards(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"))
        storage.admit()
        storage.admit()
        assert len(storage.list_shards()) == 1
        storage.close()

    def test_save_returns_shard_id_and_report_is_found(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"))
        assert _save(storage, "131000") == "shard-0"

        [shard] = storage.list_shards()
        item = shard.get_report("131000")
        assert item.proposal_id == "131000"
        assert decode_payload(item.proposal_title) == "Elect new replica revision"
        assert decode_payload(item.report)["id"] == "131000"
        storage.close()

    def test_missing_report_is_none(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"))
        _save(storage, "1")
        assert storage.list_shards()[0].get_report("2") is None
        storage.close()

    def test_autoscales_when_shards_are_full(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"), shard_capacity=2, max_shards=3)
        shard_ids = [_save(storage, str(i)) for i in range(5)]
        assert shard_ids == ["shard-0", "shard-0", "shard-1", "shard-1", "shard-2"]
        assert [s.shard_id for s in storage.list_shards()] == ["shard-0", "shard-1", "shard-2"]
        storage.close()

    def test_capacity_exhausted_when_max_shards_full(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"), shard_capacity=1, max_shards=2)
        _save(storage, "1")
        _save(storage, "2")
        assert storage.admit() == ADMIT_CAPACITY_EXHAUSTED
        assert storage.save("3", "t", "r") is None
        assert len(storage.list_shards()) == 2
        storage.close()

    def test_rejects_invalid_limits(self, tmp_path):
        with pytest.raises(ValueError):
            SQLiteReportStorage(db_path=str(tmp_path / "test.db"), shard_capacity=0)
        with pytest.raises(ValueError):
            SQLiteReportStorage(db_path=str(tmp_path / "test.db"), max_shards=0)

    def test_list_reports_paginates(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"))
        for i in range(5):
            _save(storage, f"p{i}")
        [shard] = storage.list_shards()
        first = shard.list_reports(offset=0, limit=3)
        rest = shard.list_reports(offset=3, limit=3)
        assert len(first) == 3
        assert len(rest) == 2
        assert set(first + rest) == {f"p{i}" for i in range(5)}
        storage.close()

    def test_iter_reports_walks_every_shard_and_page(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"), shard_capacity=120, max_shards=2)
        for i in range(150):
            _save(storage, f"{i:03d}")

        seen = list(storage.iter_reports())
        assert len(seen) == 150
        assert {shard_id for shard_id, _ in seen} == {"shard-0", "shard-1"}
        assert {item.proposal_id for _, item in seen} == {f"{i:03d}" for i in range(150)}
        storage.close()

    def test_resaving_replaces_report_in_same_shard(self, tmp_path):
        storage = SQLiteReportStorage(db_path=str(tmp_path / "test.db"))
        _save(storage, "1", title="first")
        _save(storage, "1", title="second")
        [shard] = storage.list_shards()
        assert shard.count() == 1
        assert decode_payload(shard.get_report("1").proposal_title) == "second"
        storage.close()

    def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        storage = SQLiteReportStorage(db_path=db_path)
        _save(storage, "131000")
        storage.close()

        reopened = SQLiteReportStorage(db_path=db_path)
        [shard] = reopened.list_shards()
        assert shard.get_report("131000") is not None
        reopened.close()
