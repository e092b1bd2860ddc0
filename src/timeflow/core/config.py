"""Configuration management for Timeflow."""

import copy
import logging
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "general": {
            "data_dir": "~/.timeflow/data",
        },
        "storage": {
            "snapshot_key": "timeflow.mockdb.v1",
            "seed_on_first_open": True,
        },
        "api": {
            "latency_ms": 0,
            "page_size": 10,
        },
        "timer": {
            "frame_rate": 30,
            "name_max_length": 80,
        },
        "display": {
            "show_milliseconds": False,
        },
        "advanced": {
            "log_level": "WARNING",
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "general": {
                "type": "object",
                "properties": {
                    "data_dir": {"type": "string"},
                },
            },
            "storage": {
                "type": "object",
                "properties": {
                    "snapshot_key": {"type": "string", "minLength": 1},
                    "seed_on_first_open": {"type": "boolean"},
                },
            },
            "api": {
                "type": "object",
                "properties": {
                    "latency_ms": {"type": "integer", "minimum": 0, "maximum": 10000},
                    "page_size": {"type": "integer", "minimum": 1, "maximum": 1000},
                },
            },
            "timer": {
                "type": "object",
                "properties": {
                    "frame_rate": {"type": "integer", "minimum": 1, "maximum": 240},
                    "name_max_length": {"type": "integer", "minimum": 1},
                },
            },
            "display": {
                "type": "object",
                "properties": {
                    "show_milliseconds": {"type": "boolean"},
                },
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "log_level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Load the config file, creating it with defaults when missing.

        Args:
            config_path: Path to config file. Defaults to ~/.timeflow/config.yml

        Raises:
            ValueError: If the file on disk fails validation. The file is
                moved aside to ``config.yml.backup`` and defaults are written.
        """
        self.config_path = config_path or Path.home() / ".timeflow" / "config.yml"
        self._config: dict[str, Any] = copy.deepcopy(self.DEFAULT_CONFIG)

        if not self.config_path.exists():
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            on_disk = yaml.safe_load(f) or {}
        merge_into(self._config, on_disk)

        try:
            self.validate()
        except ValueError as e:
            backup_path = self.backup_path
            self.config_path.replace(backup_path)
            self.reset()
            logger.error(f"Invalid config moved to {backup_path}: {e}")
            raise ValueError(
                f"Config validation failed, backed up to {backup_path}. "
                f"Using defaults. Error: {e}"
            )

    @property
    def backup_path(self) -> Path:
        return self.config_path.with_suffix(".yml.backup")

    @property
    def data_dir(self) -> Path:
        """Expanded data directory."""
        return Path(self.get("general.data_dir", "~/.timeflow/data")).expanduser()

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a value by dotted key.

        Example:
            >>> config.get('api.page_size')
            10
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Store a value by dotted key and save the file.

        Missing intermediate sections are created. An invalid value is
        rejected and the previous configuration stays in place.

        Raises:
            ValueError: If the resulting configuration is invalid
        """
        *sections, leaf = key.split(".")
        candidate = copy.deepcopy(self._config)
        node = candidate
        for section in sections:
            node = node.setdefault(section, {})
        node[leaf] = value

        check(candidate)
        self._config = candidate
        self.save()

    def validate(self) -> bool:
        """Check the current configuration against the schema.

        Raises:
            ValueError: If configuration is invalid
        """
        check(self._config)
        return True

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config, f, sort_keys=False, allow_unicode=True)

    def reset(self) -> None:
        """Restore and save the defaults."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def get_all_keys(self) -> list[str]:
        """Every leaf setting as a dotted key, in file order."""
        return list(flatten(self._config))


def check(config: dict[str, Any]) -> None:
    """Raise ValueError if ``config`` does not match the schema."""
    try:
        validate(instance=config, schema=ConfigManager.CONFIG_SCHEMA)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e.message}")


def merge_into(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Recursively overlay ``override`` onto ``base`` in place."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_into(current, value)
        else:
            base[key] = value


def flatten(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Map dotted keys to leaf values."""
    leaves: dict[str, Any] = {}
    for key, value in config.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            leaves.update(flatten(value, f"{dotted}."))
        else:
            leaves[dotted] = value
    return leaves
