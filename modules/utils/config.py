"""
Centralized configuration manager.
Loads config/config.yaml over built-in defaults and provides dot-notation
access. Components receive their section as a plain dict.
"""

import os
import copy
import logging
import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

_DEFAULTS = {
    "system": {"name": "Gesture Particle Field", "version": "1.0.0"},
    "camera": {"device_id": 0, "width": 640, "height": 480, "fps": 30,
               "flip_horizontal": False, "warmup_frames": 5},
    "mediapipe": {"model_complexity": 0, "max_num_hands": 1,
                  "min_detection_confidence": 0.6, "min_tracking_confidence": 0.5},
    "gesture": {
        "extension_margin": 1.2,
        "lock_threshold": 4,
        "idle_on_hand_loss": False,
        "fist_max_fingers": 1,
        "rotation_speed": 3.5,
        "z_rotation_sensitivity": 1.0,
        "cursor_sensitivity": 1.5,
        "fist_scale": 0.2,
        "open_scale": 2.5,
        "scale_lerp": 0.1,
        "cursor_lerp": 0.2,
        "nominal_scale": 1.0,
    },
    "scene": {"variant": "nebula", "seed": None},
    "particles": {"count": 12000, "radius": 5.0, "height": 8.0, "base_radius": 3.5,
                  "noise_amplitude": 0.1, "noise_scale": 0.5, "jitter": 0.2,
                  "base_smoothing": 0.1, "smoothing_spread": 0.05, "rotation_lerp": 0.1,
                  "base_color": "#00f2ff", "burst_colors": ["#ff0055", "#facc15"]},
    "pickables": {"enabled": True, "count": 12, "hit_radius": 1.2, "cursor_depth": 0.0},
    "view": {"camera_position": [0.0, 0.0, 15.0], "fov": 60.0},
    "visualization": {"enabled": True, "window_name": "Gesture Particle Field",
                      "width": 960, "height": 720, "target_fps": 60,
                      "show_camera_preview": True, "show_landmarks": True},
    "logging": {"level": "INFO", "file": None, "max_size_mb": 10, "backup_count": 3},
}

# Schema: sections and the expected type of their critical fields
_CONFIG_SCHEMA = {
    "camera": {"device_id": int, "width": int, "height": int, "fps": int},
    "mediapipe": {"min_detection_confidence": float, "min_tracking_confidence": float},
    "gesture": {
        "extension_margin": float,
        "lock_threshold": int,
        "idle_on_hand_loss": bool,
        "rotation_speed": float,
        "cursor_sensitivity": float,
        "scale_lerp": float,
        "cursor_lerp": float,
    },
    "scene": {"variant": str},
    "particles": {"count": int, "noise_amplitude": float, "base_color": str},
    "pickables": {"count": int, "hit_radius": float},
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = copy.deepcopy(_DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file over the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            loaded = {}

        if not isinstance(loaded, dict):
            logger.warning("Config root should be a mapping, got %s; using defaults",
                           type(loaded).__name__)
            loaded = {}

        self._data = _deep_merge(copy.deepcopy(_DEFAULTS), loaded)
        self._validate()
        return self

    def _validate(self) -> list:
        """Check critical fields against the schema; problems are logged, not raised."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a mapping, "
                                f"got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name not in section:
                    continue
                value = section[field_name]
                if expected_type is float and isinstance(value, (int, float)) \
                        and not isinstance(value, bool):
                    continue
                if expected_type is int and isinstance(value, bool):
                    warnings.append(f"{section_name}.{field_name}: expected int, got bool")
                    continue
                if not isinstance(value, expected_type):
                    warnings.append(
                        f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                        f"got {type(value).__name__} ({value!r})"
                    )

        for w in warnings:
            logger.warning("Config validation: %s", w)
        if not warnings:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'gesture.lock_threshold'."""
        value = self._data
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value):
        """Override a nested value (command-line overrides)."""
        keys = key_path.split(".")
        node = self._data
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def camera(self) -> dict:
        return self._data.get("camera", {})

    @property
    def mediapipe(self) -> dict:
        return self._data.get("mediapipe", {})

    @property
    def gesture(self) -> dict:
        return self._data.get("gesture", {})

    @property
    def scene(self) -> dict:
        return self._data.get("scene", {})

    @property
    def particles(self) -> dict:
        return self._data.get("particles", {})

    @property
    def pickables(self) -> dict:
        return self._data.get("pickables", {})

    @property
    def view(self) -> dict:
        return self._data.get("view", {})

    @property
    def visualization(self) -> dict:
        return self._data.get("visualization", {})

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
