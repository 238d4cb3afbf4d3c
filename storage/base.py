"""Contracts shared by the device store backends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, Protocol

DEVICES_PATH = "/devices"


def readings_path(device: str) -> str:
    return f"{DEVICES_PATH}/{device}/readings"


class StoreError(RuntimeError):
    """Raised when the store answers with something we cannot use."""


@dataclass(frozen=True)
class ChangeEvent:
    """A change notification from the store; carries no diff, only existence."""

    event: str
    path: str
    exists: bool


class DeviceStore(Protocol):
    supports_push: bool

    async def read(self, path: str) -> Any:
        ...

    def watch(self, path: str) -> AsyncIterator[ChangeEvent]:
        ...

    async def aclose(self) -> None:
        ...
