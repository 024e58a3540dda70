"""Configuration management for token and sale parameters.

Settings come from built-in defaults, an optional YAML file and
TOKENSALE_* environment variables, applied in that order.
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigurationError
from .models import SaleLimits

logger = logging.getLogger(__name__)

ENV_PREFIX = "TOKENSALE_"
ETHER = 10**18
DAY = 24 * 60 * 60


@dataclass
class SaleSettings:
    """Token and sale parameters."""

    # Token metadata
    token_name: str = "Sale Token"
    token_symbol: str = "SALE"
    decimals: int = 18

    # Supply, in token base units
    initial_supply: int = 1_000_000_000 * ETHER
    sale_allocation: int = 300_000_000 * ETHER

    # Sale limits, in native value base units
    min_contribution: int = ETHER // 10
    hard_cap: int = 10_000 * ETHER
    participant_cap: int = 50 * ETHER
    duration: int = 30 * DAY

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check cross-field consistency."""
        for name in ("initial_supply", "sale_allocation", "min_contribution",
                     "hard_cap", "participant_cap", "duration"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(name, "must be positive")
        if self.decimals < 0:
            raise ConfigurationError("decimals", "must not be negative")
        if self.sale_allocation > self.initial_supply:
            raise ConfigurationError(
                "sale_allocation", "cannot exceed initial_supply"
            )
        if self.participant_cap > self.hard_cap:
            raise ConfigurationError(
                "participant_cap", "cannot exceed hard_cap"
            )
        if self.min_contribution > self.participant_cap:
            raise ConfigurationError(
                "min_contribution", "cannot exceed participant_cap"
            )

    @property
    def limits(self) -> SaleLimits:
        """Sale limits derived from these settings."""
        return SaleLimits(
            min_contribution=self.min_contribution,
            hard_cap=self.hard_cap,
            participant_cap=self.participant_cap,
            duration=self.duration,
        )

    def with_overrides(self, overrides: dict[str, Any]) -> "SaleSettings":
        """Create new settings with some fields replaced."""
        known = {f.name: f for f in fields(self)}
        updates: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known:
                raise ConfigurationError(key, "unknown setting")
            target_type = str if known[key].type in (str, "str") else int
            try:
                updates[key] = target_type(value)
            except (TypeError, ValueError):
                raise ConfigurationError(key, f"invalid value {value!r}")
        return replace(self, **updates)

    @classmethod
    def from_env(cls, base: Optional["SaleSettings"] = None) -> "SaleSettings":
        """Load settings from environment variables on top of ``base``."""
        base = base or cls()
        overrides = {}
        for f in fields(cls):
            env_value = os.getenv(f"{ENV_PREFIX}{f.name.upper()}")
            if env_value is not None:
                overrides[f.name] = env_value
        return base.with_overrides(overrides)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "SaleSettings":
        """
        Load settings from a YAML file and environment variables.

        Args:
            config_path: Optional path to a YAML file. The file may hold the
                settings at top level or under a ``sale`` key.

        Returns:
            SaleSettings instance with loaded values
        """
        settings = cls()

        if config_path:
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config = yaml.safe_load(f) or {}
            except FileNotFoundError:
                raise ConfigurationError(str(config_path), "config file not found")
            except yaml.YAMLError as e:
                raise ConfigurationError(str(config_path), f"invalid YAML: {e}")

            if not isinstance(config, dict):
                raise ConfigurationError(str(config_path), "expected a mapping")
            section = config.get("sale", config)
            settings = settings.with_overrides(section)
            logger.info(f"Loaded sale settings from {config_path}")

        return cls.from_env(settings)


# Global config instance (lazy loaded)
_config: Optional[SaleSettings] = None


def get_config() -> SaleSettings:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = SaleSettings.load()
    return _config


def reload_config(config_path: Optional[Path] = None) -> SaleSettings:
    """Reload configuration from file and environment."""
    global _config
    _config = SaleSettings.load(config_path)
    return _config
