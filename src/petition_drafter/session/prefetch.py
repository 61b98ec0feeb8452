from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from petition_drafter.client.interfaces import DraftingClient
from petition_drafter.client.schemas import CaseTemplate, HealthStatus
from petition_drafter.core.models import Turn
from petition_drafter.errors import TransportError
from petition_drafter.session.store import SessionStore

logger = logging.getLogger(__name__)

HEALTHY_TEXT = "System initialized successfully! Ready to draft petitions."
DEGRADED_TEXT = "Warning: System health check failed. Some features may not work."
UNREACHABLE_TEXT = "Error: Cannot connect to backend server. Please ensure the server is running."


def _log_task_result(task: asyncio.Task) -> None:
    try:
        task.result()
    except asyncio.CancelledError:
        return
    except Exception:
        logger.exception("Session prefetch task failed. task=%s", task.get_name())


class Prefetcher:
    """Checks backend health and loads the template catalog once, in the background."""

    def __init__(self, *, store: SessionStore, client: DraftingClient) -> None:
        self._store = store
        self._client = client
        self._tasks: Tuple[asyncio.Task, ...] = ()

    @property
    def started(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = (
            asyncio.create_task(self.check_health(), name="prefetch-health"),
            asyncio.create_task(self.load_templates(), name="prefetch-templates"),
        )
        for task in self._tasks:
            task.add_done_callback(_log_task_result)

    async def wait(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def run(self) -> None:
        self.start()
        await self.wait()

    async def check_health(self) -> Optional[HealthStatus]:
        try:
            health = await self._client.health_check()
        except Exception as exc:
            if isinstance(exc, TransportError):
                logger.warning("Backend health check failed. error=%s", exc)
            else:
                logger.exception("Unexpected error during backend health check.")
            self._store.append(Turn(role="error", content=UNREACHABLE_TEXT))
            return None

        self._store.health = health
        if health.is_healthy:
            logger.info("Backend healthy. dependencies=%s", health.dependencies)
            self._store.append(Turn(role="system", content=HEALTHY_TEXT))
        else:
            logger.warning("Backend degraded. status=%s dependencies=%s", health.status, health.dependencies)
            self._store.append(Turn(role="warning", content=DEGRADED_TEXT))
        return health

    async def load_templates(self) -> Tuple[CaseTemplate, ...]:
        try:
            catalog = await self._client.list_templates()
        except TransportError as exc:
            logger.warning("Template catalog unavailable. error=%s", exc)
            return ()
        except Exception:
            logger.exception("Unexpected error while loading the template catalog.")
            return ()
        self._store.templates = tuple(catalog.templates)
        logger.info("Template catalog loaded. templates=%s", len(self._store.templates))
        return self._store.templates
