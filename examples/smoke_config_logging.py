from __future__ import annotations

import asyncio
import logging

from petition_drafter.config import ConfigLoadRequest, YamlConfigLoader
from petition_drafter.logging import init_logging


async def main() -> None:
    config = await YamlConfigLoader().load(ConfigLoadRequest(yaml_path="examples/config.yaml"))
    init_logging(config.logging)

    logger = logging.getLogger("smoke")
    logger.info("Config loaded backend=%s api_prefix=%s", config.backend.base_url, config.backend.api_prefix)
    logger.info("Logging level=%s", config.logging.level)


if __name__ == "__main__":
    asyncio.run(main())
