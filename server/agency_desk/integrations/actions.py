"""
Mutations an admin can apply to an agency integration.

Each action carries only the payload it needs; ``parse_action`` turns the
``action`` string of a request body into one of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from agency_desk.integrations.errors import InvalidIntegrationAction


@dataclass(frozen=True, slots=True)
class Connect:
    name: ClassVar[str] = "connect"
    config: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class Disconnect:
    name: ClassVar[str] = "disconnect"


@dataclass(frozen=True, slots=True)
class Sync:
    name: ClassVar[str] = "sync"


@dataclass(frozen=True, slots=True)
class Configure:
    name: ClassVar[str] = "configure"
    config: dict[str, Any] | None = None


IntegrationAction = Union[Connect, Disconnect, Sync, Configure]

ACTION_NAMES: tuple[str, ...] = (Connect.name, Disconnect.name, Sync.name, Configure.name)


def parse_action(action: str, config: dict[str, Any] | None = None) -> IntegrationAction:
    if action == Connect.name:
        return Connect(config=config)
    if action == Disconnect.name:
        return Disconnect()
    if action == Sync.name:
        return Sync()
    if action == Configure.name:
        return Configure(config=config)
    raise InvalidIntegrationAction(action)
