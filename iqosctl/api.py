"""Stable public API for building tooling on top of iqosctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from dataclasses import dataclass

from iqosctl.core.characteristics import BATTERY_UUID, CONTROL_POINT_UUID, canonicalize_identifier
from iqosctl.core.device import DeviceHandle, HandleState, Writer
from iqosctl.core.errors import (
    DecodeError,
    DeviceBusyError,
    DeviceDiscoveryError,
    DeviceSelectionError,
    FamilyLoadError,
    FamilyValidationError,
    IqosctlError,
    NotReadyError,
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
    UnsupportedCommandError,
)
from iqosctl.core.identity import IdentityField, IdentityModel
from iqosctl.core.model import (
    CommandResult,
    DetectedDevice,
    DeviceReport,
    Family,
    FamilyKind,
    MatchRules,
    ResolvedTarget,
    TransportSpec,
)
from iqosctl.core.router import CharacteristicRouter, Route
from iqosctl.core.service import IqosService
from iqosctl.transports.base import Transport
from iqosctl.transports.ble_gatt import BLEGATTTransport

__all__ = [
    "IqosctlError",
    "DecodeError",
    "DeviceBusyError",
    "DeviceDiscoveryError",
    "DeviceSelectionError",
    "FamilyLoadError",
    "FamilyValidationError",
    "NotReadyError",
    "UnsupportedCommandError",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "TransportTimeoutError",
    "BATTERY_UUID",
    "CONTROL_POINT_UUID",
    "canonicalize_identifier",
    "CharacteristicRouter",
    "Route",
    "DeviceHandle",
    "HandleState",
    "Writer",
    "IdentityField",
    "IdentityModel",
    "CommandResult",
    "DetectedDevice",
    "DeviceReport",
    "Family",
    "FamilyKind",
    "MatchRules",
    "ResolvedTarget",
    "TransportSpec",
    "Transport",
    "BLEGATTTransport",
    "CommandCatalog",
    "Client",
]


@dataclass(frozen=True)
class CommandCatalog:
    """Commands available for a resolved target device family."""

    target: ResolvedTarget
    commands: tuple[str, ...]


class Client:
    """Public client for interacting with iqosctl core capabilities.

    A `Client` wraps family loading, device discovery/matching, and BLE
    sessions behind a stable API intended for third-party tools.
    """

    def __init__(self, *, transport: Transport | None = None) -> None:
        self._service = IqosService(transport=transport)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def list_families(self) -> list[Family]:
        return self._service.list_families()

    def list_devices(self) -> list[DetectedDevice]:
        return self._service.list_devices()

    def resolve_target(
        self,
        *,
        family_id: str | None = None,
        device_hint: str | None = None,
    ) -> ResolvedTarget:
        return self._service.resolve_target(family_id=family_id, device_hint=device_hint)

    def get_command_catalog(
        self,
        *,
        family_id: str | None = None,
        device_hint: str | None = None,
    ) -> CommandCatalog:
        target, commands = self._service.command_catalog(family_id=family_id, device_hint=device_hint)
        return CommandCatalog(target=target, commands=commands)

    def run_command(
        self,
        command: str,
        *,
        family_id: str | None = None,
        device_hint: str | None = None,
    ) -> CommandResult:
        return self._service.run_command(command, family_id=family_id, device_hint=device_hint)

    def read_info(
        self,
        *,
        family_id: str | None = None,
        device_hint: str | None = None,
    ) -> DeviceReport:
        return self._service.read_info(family_id=family_id, device_hint=device_hint)
