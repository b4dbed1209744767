# config_manager.py
"""JSON backed settings for the engine and both shells.

config.json holds the values, ui_strings.json the descriptions the settings
dialog shows next to them. A missing or unreadable file falls back to
DEFAULT_SETTINGS.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from . import error as E

logger = logging.getLogger(__name__)

config_json = Path(__file__).resolve().parent.parent / "config.json"
ui_strings = Path(__file__).resolve().parent.parent / "ui_strings.json"

DEFAULT_SETTINGS = {
    "precision": 50,
    "max_digits": 1000,
    "max_exponent": 999999,
    "max_power": 100000,
    "decimal_places": 10,
    "degrees": False,
    "darkmode": False,
    "after_paste_enter": False,
    "show_equation": True,
}


@dataclass(frozen=True)
class Settings:
    """The engine relevant part of the configuration."""

    precision: int = DEFAULT_SETTINGS["precision"]
    max_digits: int = DEFAULT_SETTINGS["max_digits"]
    max_exponent: int = DEFAULT_SETTINGS["max_exponent"]
    max_power: int = DEFAULT_SETTINGS["max_power"]
    decimal_places: int = DEFAULT_SETTINGS["decimal_places"]
    degrees: bool = DEFAULT_SETTINGS["degrees"]

    def __post_init__(self):
        for key in ("precision", "max_digits", "max_exponent", "max_power", "decimal_places"):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int):
                raise E.ConfigError(f"'{key}' must be an integer, got {value!r}")
        if self.precision < 2:
            raise E.ConfigError(f"'precision' is too small: {self.precision}. Minimum is 2.")
        if self.max_digits < self.precision:
            raise E.ConfigError("'max_digits' must not be smaller than 'precision'.")
        if self.max_exponent < 1 or self.max_power < 1:
            raise E.ConfigError("'max_exponent' and 'max_power' must be positive.")
        if self.decimal_places < 0:
            raise E.ConfigError(f"'decimal_places' must not be negative: {self.decimal_places}")
        if not isinstance(self.degrees, bool):
            raise E.ConfigError(f"'degrees' must be true or false, got {self.degrees!r}")

    @classmethod
    def from_dict(cls, values):
        known = {key: values[key] for key in cls.__dataclass_fields__ if key in values}
        return cls(**known)


def _load_json(path):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.debug("Could not read %s: %s", path, e)
        return {}


def load_setting_value(key_value):
    settings_dict = dict(DEFAULT_SETTINGS)
    settings_dict.update(_load_json(config_json))

    if key_value == "all":
        return settings_dict

    return settings_dict.get(key_value, 0)


def load_setting_description(key_value):
    descriptions = _load_json(ui_strings)

    if key_value == "all":
        return descriptions

    return descriptions.get(key_value, key_value)


def load_settings(overrides=None):
    """Build Settings from config.json, with optional per-call overrides."""
    values = load_setting_value("all")
    if overrides:
        values.update({key: value for key, value in overrides.items() if value is not None})
    return Settings.from_dict(values)


def save_setting(settings_dict):
    """Write the settings back; returns the dict, or {} when writing failed."""
    try:
        with open(config_json, 'w', encoding='utf-8') as f:
            json.dump(settings_dict, f, indent=4)
            return settings_dict
    except OSError as e:
        logger.error("Could not save settings to %s: %s", config_json, e)
        return {}
