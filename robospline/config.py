"""Configuration models for the path authoring core.

Settings are process wide.  They are loaded once at start-up from the
key-value store, with stored values overriding the defaults, and written back
after every successful change.  Stored and exchanged settings use the
camelCase names of :data:`JSON_NAMES`.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional

from .storage import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "splineGenerator_settings"
THEME_KEY = "splineGenerator_theme"
THEMES = ("light", "dark")

AXIS_LABELS = ("X", "Y", "Z")

# Upper bound on grid lines per axis.
MAX_GRID_LINES = 10000

JSON_NAMES = {
    "min_x": "minX",
    "max_x": "maxX",
    "min_y": "minY",
    "max_y": "maxY",
    "grid_size": "gridSize",
    "snap_size": "snapSize",
    "enable_snap": "enableSnap",
    "sampling_distance": "samplingDistance",
    "spline_smoothing": "splineSmoothing",
    "spline_color": "splineColor",
    "shape_color": "shapeColor",
    "axis1": "axis1",
    "axis2": "axis2",
    "basename": "basename",
    "max_program_num": "maxProgramNum",
}
_FIELD_NAMES = {json_name: name for name, json_name in JSON_NAMES.items()}

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ValidationError(ValueError):
    """Raised when user supplied input is rejected before any mutation."""


def _field_name(key: str) -> str:
    """Accept both the JSON name and the attribute name of a setting."""

    return _FIELD_NAMES.get(key, key)


@dataclass
class Settings:
    """World bounds, sampling and export settings."""

    min_x: float = -100.0
    max_x: float = 100.0
    min_y: float = -100.0
    max_y: float = 100.0
    grid_size: float = 10.0
    snap_size: float = 1.0
    enable_snap: bool = True
    sampling_distance: float = 2.0
    spline_smoothing: float = 0.5
    spline_color: str = "#ff0000"
    shape_color: str = "#0066cc"
    axis1: str = "X"
    axis2: str = "Y"
    basename: str = "spline"
    max_program_num: int = 10

    @property
    def range_x(self) -> float:
        return self.max_x - self.min_x

    @property
    def range_y(self) -> float:
        return self.max_y - self.min_y

    def validate(self) -> "Settings":
        """Raise :class:`ValidationError` for the first invalid field."""

        for name in ("min_x", "max_x", "min_y", "max_y", "grid_size", "snap_size",
                     "sampling_distance", "spline_smoothing"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValidationError(f"{JSON_NAMES[name]} must be a finite number")
        if self.min_x >= self.max_x:
            raise ValidationError("minX must be smaller than maxX")
        if self.min_y >= self.max_y:
            raise ValidationError("minY must be smaller than maxY")
        if not (math.isfinite(self.range_x) and math.isfinite(self.range_y)):
            raise ValidationError("world bounds are too far apart")
        for name in ("grid_size", "snap_size", "sampling_distance"):
            if getattr(self, name) <= 0:
                raise ValidationError(f"{JSON_NAMES[name]} must be positive")
        if max(self.range_x, self.range_y) / self.grid_size > MAX_GRID_LINES:
            raise ValidationError(f"gridSize is too small; at most {MAX_GRID_LINES} grid lines per axis")
        if not 0.0 <= self.spline_smoothing <= 1.0:
            raise ValidationError("splineSmoothing must be within [0, 1]")
        for name in ("spline_color", "shape_color"):
            if not _COLOR_RE.match(str(getattr(self, name))):
                raise ValidationError(f"{JSON_NAMES[name]} must be a #rrggbb color")
        if self.axis1 not in AXIS_LABELS or self.axis2 not in AXIS_LABELS:
            raise ValidationError(f"axis labels must be one of {', '.join(AXIS_LABELS)}")
        if self.axis1 == self.axis2:
            raise ValidationError("axis labels must differ")
        if not _NAME_RE.match(self.basename or ""):
            raise ValidationError("basename must be a valid program identifier")
        count = self.max_program_num
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValidationError("maxProgramNum must be a positive integer")
        return self

    def updated(self, **changes: Any) -> "Settings":
        """Return a validated copy with ``changes`` applied.

        Keys may be attribute names or their JSON names.
        """

        known = {f.name for f in fields(self)}
        renamed = {_field_name(key): value for key, value in changes.items()}
        unknown = sorted(key for key in changes if _field_name(key) not in known)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(unknown)}")
        coerced = {key: _coerce(key, value, getattr(self, key)) for key, value in renamed.items()}
        return replace(self, **coerced).validate()

    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {JSON_NAMES[key]: value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, strict: bool = True) -> "Settings":
        """Build settings from a JSON mapping; stored values override defaults.

        With ``strict=False`` invalid entries are skipped and an equal axis pair
        is reassigned instead of rejected.
        """

        base = cls()
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _field_name(key)
            if name not in known:
                continue
            try:
                values[name] = _coerce(name, value, getattr(base, name))
            except ValidationError:
                if strict:
                    raise
                logger.warning("Ignoring invalid stored setting %s=%r", key, value)
        settings = replace(base, **values)
        if not strict:
            settings = _repair(settings)
        return settings.validate()


def _coerce(name: str, value: Any, default: Any) -> Any:
    label = JSON_NAMES.get(name, name)
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if isinstance(default, (int, float)):
            if isinstance(value, bool):
                raise ValueError(value)
            number = float(value)
            if not math.isfinite(number):
                raise ValueError(value)
            if isinstance(default, int):
                if number != int(number):
                    raise ValueError(value)
                return int(number)
            return number
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError(f"{label} must be a finite number, got {value!r}") from exc
    if value is None:
        raise ValidationError(f"{label} must not be empty")
    return str(value)


def _repair(settings: Settings) -> Settings:
    """Fix up stored settings that would otherwise fail validation."""

    defaults = Settings()
    if settings.axis1 not in AXIS_LABELS:
        settings = replace(settings, axis1=defaults.axis1)
    if settings.axis2 not in AXIS_LABELS:
        settings = replace(settings, axis2=defaults.axis2)
    if settings.axis1 == settings.axis2:
        other = next(label for label in AXIS_LABELS if label != settings.axis1)
        logger.warning("Axis labels were equal (%s); reassigning axis2 to %s", settings.axis1, other)
        settings = replace(settings, axis2=other)
    try:
        settings.validate()
    except ValidationError as exc:
        logger.warning("Stored settings invalid (%s); falling back to defaults", exc)
        return defaults
    return settings


class SettingsManager:
    """Load, mutate and persist :class:`Settings` through a key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.settings = Settings()
        self.theme = "light"

    def load(self) -> Settings:
        try:
            raw = self.store.get(SETTINGS_KEY)
        except Exception:
            logger.exception("Error loading settings")
            raw = None
        if raw:
            try:
                data = json.loads(raw)
                if not isinstance(data, dict):
                    raise ValueError("settings payload is not an object")
                self.settings = Settings.from_dict(data, strict=False)
                logger.info("Settings loaded from storage")
            except (ValueError, ValidationError) as exc:
                logger.warning("Stored settings unreadable (%s); using defaults", exc)
                self.settings = Settings()
        try:
            theme = self.store.get(THEME_KEY)
        except Exception:
            logger.exception("Error loading theme preference")
            theme = None
        if theme in THEMES:
            self.theme = theme
        return self.settings

    def update(self, **changes: Any) -> Settings:
        self.settings = self.settings.updated(**changes)
        self.save()
        return self.settings

    def replace(self, settings: Settings) -> Settings:
        self.settings = settings.validate()
        self.save()
        return self.settings

    def reset(self) -> Settings:
        self.settings = Settings()
        self.save()
        return self.settings

    def save(self) -> None:
        try:
            self.store.set(SETTINGS_KEY, json.dumps(self.settings.to_dict()))
            logger.debug("Settings saved to storage")
        except Exception:
            logger.exception("Error saving settings")

    def set_theme(self, theme: Optional[str]) -> str:
        if theme not in THEMES:
            raise ValidationError(f"theme must be one of {', '.join(THEMES)}")
        self.theme = theme
        try:
            self.store.set(THEME_KEY, theme)
        except Exception:
            logger.exception("Error saving theme preference")
        return self.theme


__all__ = [
    "AXIS_LABELS",
    "JSON_NAMES",
    "MAX_GRID_LINES",
    "Settings",
    "SettingsManager",
    "ValidationError",
    "SETTINGS_KEY",
    "THEME_KEY",
]
