from __future__ import annotations

from typing import Protocol

from petition_drafter.config.models import AppConfig, ConfigLoadRequest


class ConfigLoader(Protocol):
    """
    Loads effective runtime configuration.

    Precedence, lowest first: model defaults, the YAML file, then `<PREFIX>SECTION__KEY`
    environment variables (optionally seeded from a .env file).
    """

    async def load(self, request: ConfigLoadRequest = ConfigLoadRequest()) -> AppConfig:
        ...
