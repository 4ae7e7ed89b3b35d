"""
Per-agency integration connection lifecycle.

The catalog defines which integrations exist; each agency's settings document
records how far it got with each one. All mutations go through the settings
store as a read-modify-write of a single integration entry, so concurrent
edits to other integrations (or other settings keys) are never clobbered.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from agency_desk.core.logging import get_logger
from agency_desk.integrations.actions import Configure, Connect, Disconnect, IntegrationAction, Sync
from agency_desk.integrations.catalog import CatalogEntry, get_catalog, get_integration
from agency_desk.integrations.connector import IntegrationConnector, SimulatedConnector
from agency_desk.integrations.errors import IntegrationNotConnected, IntegrationSyncFailed
from agency_desk.integrations.state import DISCONNECTED, IntegrationState, IntegrationStatus
from agency_desk.models.mixins import utcnow
from agency_desk.services.settings_store import SettingsStore, StorageError, Transition
from agency_desk.services.sync_scheduler import SyncCompletion, SyncScheduler

logger = get_logger(__name__)

__all__ = ["Integration", "IntegrationLifecycleManager", "SyncCompletion"]


@dataclass(slots=True)
class Integration:
    """Catalog entry merged with one agency's stored state."""

    id: str
    name: str
    description: str
    category: str
    connected: bool
    status: str
    last_sync: datetime | None = None
    config: dict[str, Any] | None = None
    last_error: str | None = None

    @classmethod
    def merge(cls, entry: CatalogEntry, state: IntegrationState) -> Integration:
        return cls(
            id=entry.id,
            name=entry.name,
            description=entry.description,
            category=entry.category.value,
            connected=state.connected,
            status=state.status.value,
            last_sync=state.last_sync,
            config=dict(state.config) if state.config is not None else None,
            last_error=state.last_error,
        )


class IntegrationLifecycleManager:
    def __init__(
        self,
        store: SettingsStore,
        scheduler: SyncScheduler,
        connector: IntegrationConnector | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
        sync_delay_seconds: float = 3.0,
        sync_timeout_seconds: float = 30.0,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._connector = connector or SimulatedConnector()
        self._clock = clock
        self._sync_delay_seconds = sync_delay_seconds
        self._sync_timeout_seconds = sync_timeout_seconds

    async def list(self, agency_id: str) -> list[Integration]:
        states = await self._store.read_integrations(agency_id)
        return [Integration.merge(entry, states.get(entry.id, DISCONNECTED)) for entry in get_catalog()]

    async def apply(self, agency_id: str, integration_id: str, action: IntegrationAction) -> Integration:
        entry = get_integration(integration_id)
        sync_started = False

        if isinstance(action, Connect):
            transition = self._connect(action)
        elif isinstance(action, Disconnect):
            transition = self._disconnect
        elif isinstance(action, Configure):
            transition = self._configure(action)
        elif isinstance(action, Sync):

            def transition(current: IntegrationState) -> IntegrationState | None:
                nonlocal sync_started
                if not current.connected:
                    raise IntegrationNotConnected(integration_id)
                if current.is_syncing:
                    return None
                sync_started = True
                return current.evolve(status=IntegrationStatus.SYNCING, last_error=None)

        else:
            raise TypeError(f"Unsupported integration action: {action!r}")

        state = await self._store.update_integration(agency_id, integration_id, transition)
        logger.info(
            f"integration.{action.name}",
            agency_id=agency_id,
            integration_id=integration_id,
            status=state.status.value,
        )

        if sync_started:
            self._scheduler.schedule(
                SyncCompletion(agency_id=agency_id, integration_id=integration_id),
                self._sync_delay_seconds,
                self.complete_sync,
            )
        elif isinstance(action, Sync):
            logger.info("integration.sync.already_running", agency_id=agency_id, integration_id=integration_id)

        return Integration.merge(entry, state)

    def _connect(self, action: Connect) -> Transition:
        def transition(current: IntegrationState) -> IntegrationState:
            return current.evolve(
                connected=True,
                status=IntegrationStatus.ACTIVE,
                last_sync=self._clock(),
                config=action.config if action.config is not None else current.config,
                last_error=None,
            )

        return transition

    @staticmethod
    def _disconnect(current: IntegrationState) -> IntegrationState:
        return current.evolve(
            connected=False,
            status=IntegrationStatus.INACTIVE,
            config=None,
            last_error=None,
        )

    @staticmethod
    def _configure(action: Configure) -> Transition:
        def transition(current: IntegrationState) -> IntegrationState:
            return current.evolve(config=action.config)

        return transition

    async def complete_sync(self, completion: SyncCompletion) -> None:
        """
        Finish a scheduled sync.

        The latest stored state is re-read first: if the integration was
        disconnected (or otherwise left ``syncing``) in the meantime this is a
        no-op. A storage failure is logged and the integration stays
        ``syncing``.
        """
        agency_id, integration_id = completion.agency_id, completion.integration_id
        log = logger.bind(agency_id=agency_id, integration_id=integration_id)

        try:
            current = await self._store.read_integration(agency_id, integration_id)
        except StorageError as exc:
            log.error("integration.sync.read_failed", error=str(exc))
            return
        if not current.is_syncing:
            log.info("integration.sync.skipped", status=current.status.value, connected=current.connected)
            return

        entry = get_integration(integration_id)
        failure: str | None = None
        try:
            await asyncio.wait_for(
                self._connector.sync(agency_id, entry, current.config),
                timeout=self._sync_timeout_seconds,
            )
        except IntegrationSyncFailed as exc:
            failure = str(exc) or "Sync failed"
        except asyncio.TimeoutError:
            failure = f"Sync timed out after {self._sync_timeout_seconds:g}s"

        def finish(latest: IntegrationState) -> IntegrationState | None:
            if not latest.is_syncing:
                return None
            if failure is not None:
                return latest.evolve(connected=False, status=IntegrationStatus.ERROR, last_error=failure)
            return latest.evolve(status=IntegrationStatus.ACTIVE, last_sync=self._clock(), last_error=None)

        try:
            state = await self._store.update_integration(agency_id, integration_id, finish)
        except StorageError as exc:
            log.error("integration.sync.write_failed", error=str(exc))
            return

        if failure is not None:
            log.warning("integration.sync.failed", error=failure, status=state.status.value)
        else:
            log.info("integration.sync.completed", status=state.status.value)
