from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class IntegrationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ERROR = "error"
    SYNCING = "syncing"


@dataclass(frozen=True, slots=True)
class IntegrationState:
    """Connection state of one integration inside an agency's settings document."""

    connected: bool = False
    status: IntegrationStatus = IntegrationStatus.INACTIVE
    last_sync: datetime | None = None
    config: dict[str, Any] | None = None
    last_error: str | None = None

    @property
    def is_syncing(self) -> bool:
        return self.connected and self.status is IntegrationStatus.SYNCING

    def evolve(self, **changes: Any) -> IntegrationState:
        return replace(self, **changes)

    @classmethod
    def from_document(cls, raw: Mapping[str, Any] | None) -> IntegrationState:
        if not raw:
            return cls()
        try:
            status = IntegrationStatus(raw.get("status") or IntegrationStatus.INACTIVE.value)
        except ValueError:
            status = IntegrationStatus.INACTIVE
        last_sync = raw.get("lastSync")
        if isinstance(last_sync, str):
            try:
                last_sync = datetime.fromisoformat(last_sync)
            except ValueError:
                last_sync = None
        elif not isinstance(last_sync, datetime):
            last_sync = None
        config = raw.get("config")
        return cls(
            connected=bool(raw.get("connected", False)),
            status=status,
            last_sync=last_sync,
            config=dict(config) if isinstance(config, Mapping) else None,
            last_error=raw.get("lastError"),
        )

    def to_document(self) -> dict[str, Any]:
        # Keys mirror the stored layout used by existing agency settings.
        document: dict[str, Any] = {"connected": self.connected, "status": self.status.value}
        if self.last_sync is not None:
            document["lastSync"] = self.last_sync.isoformat()
        if self.config is not None:
            document["config"] = dict(self.config)
        if self.last_error is not None:
            document["lastError"] = self.last_error
        return document


DISCONNECTED = IntegrationState()
