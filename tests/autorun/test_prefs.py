"""
Tests for the persisted autorun record.
"""

import json

import pytest

from src.autorun import AUTORUN_DEFAULTS, AutorunPrefs, AutorunRecordError


class TestAutorunPrefs:
    """Tests for the AutorunPrefs snapshot."""

    def test_defaults(self):
        record = AutorunPrefs.from_dict({})
        assert record == AutorunPrefs(enabled=False, remind=True, backoff=0, next_backoff=1, timestamp=0)

    def test_round_trip_uses_stored_names(self):
        assert AutorunPrefs.from_dict(AUTORUN_DEFAULTS).to_dict() == AUTORUN_DEFAULTS

    def test_negative_counters_clamped(self):
        record = AutorunPrefs.from_dict({"backoff": -3, "nextBackoff": -1})
        assert record.backoff == 0
        assert record.next_backoff == 0


class TestAutorunPreferences:
    """Tests for AutorunPreferences load/save."""

    def test_load_defaults(self, prefs):
        assert prefs.load() == AutorunPrefs()

    def test_save_writes_camel_case(self, prefs, tmp_path):
        prefs.save(next_backoff=4, backoff=0)

        on_disk = json.loads((tmp_path / "prefs.json").read_text())
        assert on_disk == {"autorun": {"nextBackoff": 4, "backoff": 0}}

    def test_save_is_visible_to_next_load(self, prefs):
        prefs.save(remind=False, enabled=True)

        record = prefs.load()
        assert record.remind is False
        assert record.enabled is True
        assert record.next_backoff == 1

    def test_unknown_field_rejected(self, prefs):
        with pytest.raises(AttributeError, match="snooze"):
            prefs.save(snooze=True)

    def test_other_preferences_untouched(self, prefs, store):
        store.set("ui.language", "it")

        prefs.save(backoff=3)

        assert store.get("ui.language") == "it"

    def test_scalar_record_rejected_on_load(self, prefs, store):
        store.set("autorun", "off")

        with pytest.raises(AutorunRecordError, match="off"):
            prefs.load()

    def test_non_numeric_counter_rejected_on_load(self, prefs, store):
        store.set("autorun.backoff", "often")

        with pytest.raises(AutorunRecordError):
            prefs.load()

    def test_scalar_record_rejected_on_save(self, prefs, store):
        store.set("autorun", "off")

        with pytest.raises(AutorunRecordError):
            prefs.save(backoff=1)

        assert store.get("autorun") == "off"
