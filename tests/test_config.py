"""
Tests for settings validation and persistence.
"""

import json
import tempfile
import unittest
from pathlib import Path

from robospline.config import SETTINGS_KEY, THEME_KEY, Settings, SettingsManager, ValidationError
from robospline.storage import JsonFileStore, MemoryStore


class TestSettings(unittest.TestCase):
    """Tests for Settings coercion and validation."""

    def test_defaults_are_valid(self):
        """Default settings validate and span a 200 mm square."""
        settings = Settings().validate()
        self.assertEqual((settings.range_x, settings.range_y), (200.0, 200.0))
        self.assertEqual(settings.max_program_num, 10)

    def test_updated_coerces_values(self):
        """String and float inputs are coerced to the field types."""
        settings = Settings().updated(gridSize="5", enableSnap="false", maxProgramNum=20.0)
        self.assertEqual(settings.grid_size, 5.0)
        self.assertFalse(settings.enable_snap)
        self.assertEqual(settings.max_program_num, 20)

    def test_updated_accepts_attribute_names(self):
        """Attribute names and JSON names address the same field."""
        settings = Settings().updated(grid_size=4, snapSize=2)
        self.assertEqual((settings.grid_size, settings.snap_size), (4.0, 2.0))

    def test_to_dict_uses_json_names(self):
        """Serialized settings carry the camelCase names."""
        data = Settings().to_dict()
        self.assertEqual(data["gridSize"], 10.0)
        self.assertEqual(data["maxProgramNum"], 10)
        self.assertNotIn("grid_size", data)

    def test_rejected_updates(self):
        """Each invalid change raises ValidationError."""
        bad = [
            {"minX": 200},
            {"snapSize": 0},
            {"splineSmoothing": 1.5},
            {"axis2": "X"},
            {"axis1": "W"},
            {"splineColor": "red"},
            {"basename": "1abc"},
            {"maxProgramNum": 0},
            {"maxProgramNum": 2.5},
            {"samplingDistance": "far"},
            {"gridSize": True},
            {"unknown": 1},
        ]
        for changes in bad:
            with self.assertRaises(ValidationError, msg=str(changes)):
                Settings().updated(**changes)

    def test_non_finite_numbers_are_rejected(self):
        """Infinite, NaN and overflowing numbers raise ValidationError."""
        bad = [
            {"minX": "-inf"},
            {"maxX": float("inf")},
            {"gridSize": "nan"},
            {"splineSmoothing": float("nan")},
            {"maxProgramNum": "1e999"},
            {"maxProgramNum": float("inf")},
            {"maxProgramNum": "inf"},
        ]
        for changes in bad:
            with self.assertRaises(ValidationError, msg=str(changes)):
                Settings().updated(**changes)

    def test_validate_rejects_non_finite_fields(self):
        """validate catches non-finite values set directly on the dataclass."""
        with self.assertRaises(ValidationError):
            Settings(min_x=float("-inf")).validate()
        with self.assertRaises(ValidationError):
            Settings(max_program_num=float("inf")).validate()

    def test_bounds_too_far_apart(self):
        """A range that overflows to infinity is rejected."""
        with self.assertRaises(ValidationError):
            Settings().updated(minX=-1e308, maxX=1e308)

    def test_grid_too_dense(self):
        """A grid size producing too many lines is rejected."""
        with self.assertRaises(ValidationError):
            Settings().updated(gridSize=1e-6)
        self.assertEqual(Settings().updated(gridSize=0.5).grid_size, 0.5)

    def test_from_dict_strict(self):
        """Strict loading rejects equal axis labels."""
        with self.assertRaises(ValidationError):
            Settings.from_dict({"axis1": "Z", "axis2": "Z"})

    def test_from_dict_lenient_reassigns_axis(self):
        """Lenient loading reassigns the second axis label."""
        settings = Settings.from_dict({"axis1": "Y", "axis2": "Y"}, strict=False)
        self.assertEqual((settings.axis1, settings.axis2), ("Y", "X"))


class TestSettingsManager(unittest.TestCase):
    """Tests for loading and persisting settings through a store."""

    def test_update_persists(self):
        """A successful update is written and survives a reload."""
        store = MemoryStore()
        manager = SettingsManager(store)
        manager.load()
        manager.update(gridSize=20)
        self.assertEqual(json.loads(store.data[SETTINGS_KEY])["gridSize"], 20.0)
        reloaded = SettingsManager(store).load()
        self.assertEqual(reloaded.grid_size, 20.0)

    def test_stored_values_override_defaults(self):
        """Stored entries win over defaults; missing entries keep them."""
        store = MemoryStore({SETTINGS_KEY: json.dumps({"maxX": 500, "basename": "cut"})})
        settings = SettingsManager(store).load()
        self.assertEqual(settings.max_x, 500.0)
        self.assertEqual(settings.basename, "cut")
        self.assertEqual(settings.min_x, -100.0)

    def test_equal_axes_in_storage_are_repaired(self):
        """Equal stored axis labels are reassigned on load."""
        store = MemoryStore({SETTINGS_KEY: json.dumps({"axis1": "Y", "axis2": "Y"})})
        settings = SettingsManager(store).load()
        self.assertNotEqual(settings.axis1, settings.axis2)

    def test_corrupt_storage_uses_defaults(self):
        """Unparseable stored JSON falls back to defaults."""
        store = MemoryStore({SETTINGS_KEY: "{broken"})
        self.assertEqual(SettingsManager(store).load(), Settings())

    def test_non_finite_storage_entries_use_defaults(self):
        """Stored infinities are skipped and their defaults kept."""
        raw = '{"maxProgramNum": 1e999, "minX": -Infinity, "gridSize": 5}'
        settings = SettingsManager(MemoryStore({SETTINGS_KEY: raw})).load()
        self.assertEqual(settings.max_program_num, 10)
        self.assertEqual(settings.min_x, -100.0)
        self.assertEqual(settings.grid_size, 5.0)

    def test_failed_update_changes_nothing(self):
        """A rejected update neither applies nor persists."""
        store = MemoryStore()
        manager = SettingsManager(store)
        with self.assertRaises(ValidationError):
            manager.update(minY=500)
        self.assertEqual(manager.settings, Settings())
        self.assertNotIn(SETTINGS_KEY, store.data)

    def test_failed_non_finite_update_changes_nothing(self):
        """A non-finite update neither applies nor persists."""
        store = MemoryStore()
        manager = SettingsManager(store)
        for changes in ({"minX": "-inf"}, {"maxProgramNum": "1e999"}):
            with self.assertRaises(ValidationError):
                manager.update(**changes)
        self.assertEqual(manager.settings, Settings())
        self.assertNotIn(SETTINGS_KEY, store.data)

    def test_theme(self):
        """The theme is validated, stored and reloaded."""
        store = MemoryStore()
        manager = SettingsManager(store)
        self.assertEqual(manager.set_theme("dark"), "dark")
        self.assertEqual(store.data[THEME_KEY], "dark")
        with self.assertRaises(ValidationError):
            manager.set_theme("blue")
        other = SettingsManager(store)
        other.load()
        self.assertEqual(other.theme, "dark")


class TestJsonFileStore(unittest.TestCase):
    """Tests for the JSON file backed key-value store."""

    def test_values_survive_a_new_instance(self):
        """Values written by one instance are read by the next."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "state" / "settings.json"
            JsonFileStore(path).set("a", "1")
            JsonFileStore(path).set("b", "2")
            store = JsonFileStore(path)
            self.assertEqual(store.get("a"), "1")
            self.assertEqual(store.get("b"), "2")
            self.assertIsNone(store.get("c"))


if __name__ == "__main__":
    unittest.main()
