"""
Third-party integrations an agency can connect to.

- ``catalog``: the fixed list of supported integrations
- ``state``: per-agency connection state as stored in agency settings
- ``actions``: connect / disconnect / sync / configure requests
- ``connector``: the external sync call made when a sync completes
"""

from agency_desk.integrations.actions import Configure, Connect, Disconnect, IntegrationAction, Sync, parse_action
from agency_desk.integrations.catalog import CATALOG, CatalogEntry, IntegrationCategory, get_catalog, get_integration
from agency_desk.integrations.errors import (
    IntegrationError,
    IntegrationNotConnected,
    IntegrationSyncFailed,
    InvalidIntegration,
    InvalidIntegrationAction,
)
from agency_desk.integrations.state import DISCONNECTED, IntegrationState, IntegrationStatus

__all__ = [
    "CATALOG",
    "CatalogEntry",
    "Configure",
    "Connect",
    "DISCONNECTED",
    "Disconnect",
    "IntegrationAction",
    "IntegrationCategory",
    "IntegrationError",
    "IntegrationNotConnected",
    "IntegrationState",
    "IntegrationStatus",
    "IntegrationSyncFailed",
    "InvalidIntegration",
    "InvalidIntegrationAction",
    "Sync",
    "get_catalog",
    "get_integration",
    "parse_action",
]
