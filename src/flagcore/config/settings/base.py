"""Config settings – Settings base class and FlagSettings."""
from __future__ import annotations

import dataclasses
import logging
from typing import ClassVar

from flagcore.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings."""

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class FlagSettings(Settings):
    """Settings consumed by :meth:`FeatureFlagManager.from_settings`.

    Read from ``FLAGCORE_*`` environment variables, e.g.
    ``FLAGCORE_STORAGE_PATH=/var/lib/app/flags.json``.
    An empty ``storage_path`` keeps overrides in memory only.
    """

    _prefix: ClassVar[str] = "FLAGCORE"

    persist_overrides: bool = True
    storage_path: str = ""
    storage_prefix: str = "feature-flags"
    environment: str = "development"
    log_level: str = "INFO"

    def _validate(self) -> None:
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidSettingValueError("log_level", self.log_level, "unknown log level")
        if not self.storage_prefix or ":" in self.storage_prefix:
            raise InvalidSettingValueError(
                "storage_prefix", self.storage_prefix, "must be non-empty and contain no ':'"
            )

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level.upper())


__all__ = ["FlagSettings", "Settings"]
