"""Configuration management for Stockroom."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class DataConfig:
    """Data storage configuration."""

    storage_dir: Path
    database: str = "stockroom.db"


@dataclass
class DefaultsConfig:
    """Default values configuration."""

    unit: str = "pcs"
    category: str = "Uncategorized"
    currency: str = "KES"


@dataclass
class NotificationsConfig:
    """Notification feed configuration."""

    max_reminders: int = 5
    low_stock_alerts: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Config:
    """Complete application configuration."""

    data: DataConfig
    defaults: DefaultsConfig
    notifications: NotificationsConfig
    logging: LoggingConfig


class ConfigManager:
    """Manages application configuration from TOML files."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional explicit path to config file.
                        If not provided, searches standard locations.
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        return self._config.data

    @property
    def defaults(self) -> DefaultsConfig:
        return self._config.defaults

    @property
    def notifications(self) -> NotificationsConfig:
        return self._config.notifications

    @property
    def logging(self) -> LoggingConfig:
        return self._config.logging

    @property
    def database_path(self) -> Path:
        """Full path of the SQLite database file."""
        return self.data.storage_dir / self.data.database

    def _find_config(self) -> Path:
        """Find config file in standard locations."""
        locations = [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "stockroom" / "config.toml",
            Path.home() / ".stockroom" / "config.toml",
        ]

        for loc in locations:
            if loc.exists():
                return loc

        # Return default location if none found
        return Path.home() / ".config" / "stockroom" / "config.toml"

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, "rb") as f:
            data = tomllib.load(f)

        data_section = data.get("data", {})
        defaults_section = data.get("defaults", {})
        notifications_section = data.get("notifications", {})

        return Config(
            data=DataConfig(
                storage_dir=Path(data_section.get("storage_dir", "~/stockroom/data")).expanduser(),
                database=data_section.get("database", "stockroom.db"),
            ),
            defaults=DefaultsConfig(
                unit=defaults_section.get("unit", "pcs"),
                category=defaults_section.get("category", "Uncategorized"),
                currency=defaults_section.get("currency", "KES"),
            ),
            notifications=NotificationsConfig(
                max_reminders=int(notifications_section.get("max_reminders", 5)),
                low_stock_alerts=bool(notifications_section.get("low_stock_alerts", True)),
            ),
            logging=LoggingConfig(
                level=str(data.get("logging", {}).get("level", "WARNING")).upper(),
            ),
        )

    def _default_config(self) -> Config:
        """Return default configuration."""
        return Config(
            data=DataConfig(storage_dir=Path.home() / "stockroom" / "data"),
            defaults=DefaultsConfig(),
            notifications=NotificationsConfig(),
            logging=LoggingConfig(),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value by dot-notation path.

        Args:
            key_path: Dot-separated path like 'data.storage_dir'
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        value: Any = self._config

        for key in key_path.split("."):
            if hasattr(value, key):
                value = getattr(value, key)
            elif isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default
