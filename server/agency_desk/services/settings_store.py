"""
Per-agency settings document access for integration state.

Every write is a read-modify-write of a single ``integrations.<id>`` entry;
the rest of the agency's settings document is carried over untouched.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Callable, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency_desk.core.logging import get_logger
from agency_desk.integrations.state import IntegrationState
from agency_desk.models.agency import Agency

logger = get_logger(__name__)

INTEGRATIONS_KEY = "integrations"

# Returns the new state, or None to leave the stored entry untouched.
Transition = Callable[[IntegrationState], IntegrationState | None]


class StorageError(Exception):
    """The settings document could not be read or written."""


class AgencyNotFound(StorageError):
    def __init__(self, agency_id: str) -> None:
        super().__init__(f"Agency not found: {agency_id}")
        self.agency_id = agency_id


class SettingsStore(Protocol):
    async def read_integrations(self, agency_id: str) -> dict[str, IntegrationState]:
        ...

    async def read_integration(self, agency_id: str, integration_id: str) -> IntegrationState:
        ...

    async def update_integration(
        self, agency_id: str, integration_id: str, transition: Transition
    ) -> IntegrationState:
        ...


def _integrations_of(settings: dict[str, Any] | None) -> dict[str, Any]:
    raw = (settings or {}).get(INTEGRATIONS_KEY)
    return dict(raw) if isinstance(raw, dict) else {}


def _apply(settings: dict[str, Any] | None, integration_id: str, transition: Transition):
    """Run ``transition`` against ``settings`` and return (state, merged settings or None)."""
    integrations = _integrations_of(settings)
    current = IntegrationState.from_document(integrations.get(integration_id))
    updated = transition(current)
    if updated is None:
        return current, None
    integrations[integration_id] = updated.to_document()
    merged = dict(settings or {})
    merged[INTEGRATIONS_KEY] = integrations
    return updated, merged


class SqlSettingsStore:
    """Settings document stored in ``agencies.settings``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _load_settings(self, agency_id: str) -> dict[str, Any] | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Agency.id, Agency.settings).where(Agency.id == agency_id))
                row = result.first()
        except SQLAlchemyError as exc:
            logger.error("settings_store.read_failed", agency_id=agency_id, error=str(exc))
            raise StorageError(f"Failed to read settings for agency {agency_id}") from exc
        if row is None:
            raise AgencyNotFound(agency_id)
        return row.settings

    async def read_integrations(self, agency_id: str) -> dict[str, IntegrationState]:
        settings = await self._load_settings(agency_id)
        return {
            integration_id: IntegrationState.from_document(raw)
            for integration_id, raw in _integrations_of(settings).items()
            if isinstance(raw, dict)
        }

    async def read_integration(self, agency_id: str, integration_id: str) -> IntegrationState:
        settings = await self._load_settings(agency_id)
        return IntegrationState.from_document(_integrations_of(settings).get(integration_id))

    async def update_integration(
        self, agency_id: str, integration_id: str, transition: Transition
    ) -> IntegrationState:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    agency = await session.scalar(
                        select(Agency).where(Agency.id == agency_id).with_for_update()
                    )
                    if agency is None:
                        raise AgencyNotFound(agency_id)
                    state, merged = _apply(agency.settings, integration_id, transition)
                    if merged is not None:
                        agency.settings = merged
        except SQLAlchemyError as exc:
            logger.error(
                "settings_store.write_failed",
                agency_id=agency_id,
                integration_id=integration_id,
                error=str(exc),
            )
            raise StorageError(f"Failed to update integration {integration_id}") from exc
        return state


class InMemorySettingsStore:
    """Process-local store keyed by agency id, for tests and local tooling."""

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self._documents: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})
        self._lock = asyncio.Lock()

    def document(self, agency_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._documents.get(agency_id, {}))

    async def read_integrations(self, agency_id: str) -> dict[str, IntegrationState]:
        integrations = _integrations_of(self._documents.get(agency_id))
        return {key: IntegrationState.from_document(raw) for key, raw in integrations.items()}

    async def read_integration(self, agency_id: str, integration_id: str) -> IntegrationState:
        raw = _integrations_of(self._documents.get(agency_id)).get(integration_id)
        return IntegrationState.from_document(raw)

    async def update_integration(
        self, agency_id: str, integration_id: str, transition: Transition
    ) -> IntegrationState:
        async with self._lock:
            settings = copy.deepcopy(self._documents.get(agency_id))
            state, merged = _apply(settings, integration_id, transition)
            if merged is not None:
                self._documents[agency_id] = merged
            return state
