"""Core data models used across loader, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from iqosctl.core.identity import IdentityModel


class FamilyKind(str, Enum):
    BASE = "base"
    ILUMA = "iluma"


@dataclass(frozen=True)
class MatchRules:
    name_contains: tuple[str, ...]
    mac_prefix: tuple[str, ...]


@dataclass(frozen=True)
class TransportSpec:
    write_with_response: bool = True
    timeout_s: float = 10.0


@dataclass(frozen=True)
class Family:
    id: str
    name: str
    kind: FamilyKind
    match: MatchRules
    transport: TransportSpec
    commands: dict[str, tuple[bytes, ...]]


@dataclass(frozen=True)
class DetectedDevice:
    mac: str
    name: str


@dataclass(frozen=True)
class ResolvedTarget:
    device: DetectedDevice
    family: Family


@dataclass(frozen=True)
class SessionReport:
    """What a transport session observed and wrote."""

    identity: IdentityModel
    frames: tuple[bytes, ...] = ()


@dataclass(frozen=True)
class CommandResult:
    target: ResolvedTarget
    command: str
    payload_hex: tuple[str, ...]
    identity: IdentityModel


@dataclass(frozen=True)
class DeviceReport:
    target: ResolvedTarget
    identity: IdentityModel
