from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from agency_desk.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SyncCompletion:
    """Deferred work item: finish the sync of one integration for one agency."""

    agency_id: str
    integration_id: str


CompletionHandler = Callable[[SyncCompletion], Awaitable[None]]


class SyncScheduler(Protocol):
    def schedule(self, completion: SyncCompletion, delay_seconds: float, handler: CompletionHandler) -> None:
        ...


class AsyncioSyncScheduler:
    """Runs completions as fire-and-forget tasks on the running event loop."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, completion: SyncCompletion, delay_seconds: float, handler: CompletionHandler) -> None:
        task = asyncio.create_task(
            self._run(completion, delay_seconds, handler),
            name=f"integration-sync:{completion.agency_id}:{completion.integration_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(
            "integration.sync.scheduled",
            agency_id=completion.agency_id,
            integration_id=completion.integration_id,
            delay_seconds=delay_seconds,
        )

    async def _run(self, completion: SyncCompletion, delay_seconds: float, handler: CompletionHandler) -> None:
        await asyncio.sleep(delay_seconds)
        try:
            await handler(completion)
        except Exception as exc:  # background task: nothing upstream to propagate to
            logger.exception(
                "integration.sync.task_failed",
                agency_id=completion.agency_id,
                integration_id=completion.integration_id,
                error=str(exc),
            )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for scheduled completions; anything still running after ``timeout`` is cancelled."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        done, still_pending = await asyncio.wait(tasks, timeout=timeout)
        for task in still_pending:
            task.cancel()
        if still_pending:
            logger.warning("integration.sync.abandoned", count=len(still_pending))
            await asyncio.gather(*still_pending, return_exceptions=True)
