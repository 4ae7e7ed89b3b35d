from __future__ import annotations

from typing import Any, Protocol

from agency_desk.core.logging import get_logger
from agency_desk.integrations.catalog import CatalogEntry

logger = get_logger(__name__)


class IntegrationConnector(Protocol):
    async def sync(self, agency_id: str, integration: CatalogEntry, config: dict[str, Any] | None) -> None:
        """Pull or push data for one integration; raise ``IntegrationSyncFailed`` on failure."""


class SimulatedConnector:
    """Stands in for carrier/marketplace/CRM feeds; every sync succeeds."""

    async def sync(self, agency_id: str, integration: CatalogEntry, config: dict[str, Any] | None) -> None:
        logger.info(
            "integration.sync.simulated",
            agency_id=agency_id,
            integration_id=integration.id,
            configured=bool(config),
        )
