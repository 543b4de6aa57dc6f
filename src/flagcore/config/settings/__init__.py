"""Config settings – 12-factor env-based configuration."""
from flagcore.config.settings.base import FlagSettings, Settings
from flagcore.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "FlagSettings", "Settings", "SettingsLoader"]
