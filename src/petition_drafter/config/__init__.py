"""Runtime configuration schema and loaders."""

from petition_drafter.config.loader import YamlConfigLoader
from petition_drafter.config.models import AppConfig, ConfigLoadRequest

__all__ = ["AppConfig", "ConfigLoadRequest", "YamlConfigLoader"]
