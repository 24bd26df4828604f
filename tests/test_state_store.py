"""
Tests for the JSON state store.
"""

import json

import pytest

from airalert.models import RegionAlertState
from airalert.state_store import PersistenceError, StateStore


def _st(region="31", active=True):
    return RegionAlertState(region_id=region, is_active=active, event_last_update="2024-01-01T10:00:00Z", alarmed=True)


class TestLoad:
    def test_missing_file_is_empty(self, tmp_path):
        assert StateStore(path=tmp_path / "nope.json").load() == []

    def test_empty_file_is_empty(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text("", encoding="utf-8")
        assert StateStore(path=p).load() == []

    def test_reads_legacy_format(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text(
            json.dumps(
                [{"isActive": True, "eventLastUpdate": "t", "eventRegion": "31", "activeEventType": "AIR", "alarmed": True}]
            ),
            encoding="utf-8",
        )
        states = StateStore(path=p).load()
        assert states == [RegionAlertState("31", True, "t", "AIR", True)]

    def test_corrupt_file_raises(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            StateStore(path=p).load()

    def test_wrong_shape_raises(self, tmp_path):
        p = tmp_path / "state.json"
        p.write_text('{"isActive": true}', encoding="utf-8")
        with pytest.raises(PersistenceError):
            StateStore(path=p).load()


class TestSave:
    def test_round_trip_keeps_order(self, tmp_path):
        store = StateStore(path=tmp_path / "sub" / "state.json")
        store.save([_st("31"), _st("14", active=False)])
        assert [s.region_id for s in store.load()] == ["31", "14"]
        assert not (tmp_path / "sub" / "state.json.tmp").exists()

    def test_failed_save_keeps_pending_state(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = StateStore(path=blocker / "state.json")

        with pytest.raises(PersistenceError):
            store.save([_st()])

        assert store.has_pending
        assert store.load() == [_st()]

    def test_pending_cleared_after_successful_save(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = StateStore(path=blocker / "state.json")
        with pytest.raises(PersistenceError):
            store.save([_st()])

        blocker.unlink()
        store.save([_st(active=False)])
        assert not store.has_pending
        assert StateStore(path=blocker / "state.json").load()[0].is_active is False
