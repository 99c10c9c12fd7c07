"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import logging
import re
import subprocess
from collections.abc import Callable, Sequence

from iqosctl.core.device_match import best_family_for_device
from iqosctl.core.errors import DeviceDiscoveryError, DeviceSelectionError, UnsupportedCommandError
from iqosctl.core.family_loader import load_families
from iqosctl.core.model import (
    CommandResult,
    DetectedDevice,
    DeviceReport,
    Family,
    ResolvedTarget,
)
from iqosctl.transports.base import Transport
from iqosctl.transports.ble_gatt import BLEGATTTransport

_DEVICE_LINE_RE = re.compile(r"^Device\s+([0-9A-F:]{17})\s+(.+)$", re.IGNORECASE)
_MAC_RE = re.compile(r"([0-9A-F]{2}(?::[0-9A-F]{2}){5})", re.IGNORECASE)
_UNKNOWN_NAME = "<unknown-device>"
LOGGER = logging.getLogger(__name__)


class IqosService:
    def __init__(self, *, transport: Transport | None = None) -> None:
        loaded = load_families()
        self.families = loaded.families
        self.load_warnings = loaded.warnings
        self.transport = transport or BLEGATTTransport()

    def list_families(self) -> list[Family]:
        return sorted(self.families.values(), key=lambda f: f.id)

    def list_devices(self) -> list[DetectedDevice]:
        return _discover_devices()

    def resolve_target(
        self,
        family_id: str | None,
        device_hint: str | None,
    ) -> ResolvedTarget:
        devices = self.list_devices()
        if not devices:
            raise DeviceSelectionError("No Bluetooth devices found. Ensure your IQOS holder is paired and awake.")

        family_override: Family | None = None
        if family_id:
            family_override = self.families.get(family_id)
            if family_override is None:
                raise DeviceSelectionError(
                    f"Unknown family '{family_id}'. Use 'iqosctl families' to inspect available families."
                )

        candidates: list[ResolvedTarget] = []
        for device in devices:
            pool = {family_override.id: family_override} if family_override else self.families
            family = best_family_for_device(device, pool)
            if family is not None:
                candidates.append(ResolvedTarget(device=device, family=family))

        if device_hint:
            hint = device_hint.lower()
            candidates = [
                c
                for c in candidates
                if hint in c.device.mac.lower()
                or hint in c.device.name.lower()
                or hint in c.family.id.lower()
                or hint in c.family.name.lower()
            ]
            if not candidates:
                raise DeviceSelectionError(f"No device found matching '{device_hint}'")

        if not candidates:
            if family_id:
                raise DeviceSelectionError(f"No known device matched family '{family_id}'.")
            raise DeviceSelectionError(
                "No known device matched any family. Use --family to target explicitly or add a family file."
            )

        if len(candidates) > 1:
            candidate_desc = ", ".join(f"{c.device.mac} ({c.device.name})" for c in candidates)
            raise DeviceSelectionError(
                f"Multiple candidate devices found: {candidate_desc}. Use --device to choose one."
            )

        LOGGER.debug("Resolved %s to family %s", candidates[0].device.mac, candidates[0].family.id)
        return candidates[0]

    def command_catalog(
        self,
        family_id: str | None = None,
        device_hint: str | None = None,
    ) -> tuple[ResolvedTarget, tuple[str, ...]]:
        target = self.resolve_target(family_id=family_id, device_hint=device_hint)
        return target, tuple(sorted(target.family.commands))

    def run_command(
        self,
        command: str,
        family_id: str | None = None,
        device_hint: str | None = None,
    ) -> CommandResult:
        target = self.resolve_target(family_id=family_id, device_hint=device_hint)
        # Checked here as well so an unsupported command never opens a connection.
        if command not in target.family.commands:
            available = ", ".join(sorted(target.family.commands)) or "<none>"
            raise UnsupportedCommandError(
                f"Family '{target.family.id}' does not support command '{command}'. Available: {available}"
            )

        report = self.transport.run(target.device.mac, target.family, command=command)
        return CommandResult(
            target=target,
            command=command,
            payload_hex=tuple(frame.hex() for frame in report.frames),
            identity=report.identity,
        )

    def read_info(
        self,
        family_id: str | None = None,
        device_hint: str | None = None,
    ) -> DeviceReport:
        target = self.resolve_target(family_id=family_id, device_hint=device_hint)
        report = self.transport.run(target.device.mac, target.family)
        return DeviceReport(target=target, identity=report.identity)


def _discover_devices() -> list[DetectedDevice]:
    bluetoothctl_commands = [
        ["bluetoothctl", "devices", "Connected"],
        ["bluetoothctl", "devices"],
        ["bluetoothctl", "devices", "Paired"],
    ]
    fallback_commands = [["hcitool", "con"]]

    seen: set[str] = set()
    devices: list[DetectedDevice] = []
    command_errors: list[str] = []

    def _parse_bluetoothctl(line: str) -> DetectedDevice | None:
        match = _DEVICE_LINE_RE.match(line.strip())
        if not match:
            return None
        return DetectedDevice(mac=match.group(1).upper(), name=match.group(2).strip())

    def _parse_hcitool(line: str) -> DetectedDevice | None:
        match = _MAC_RE.search(line)
        if not match:
            return None
        return DetectedDevice(mac=match.group(1).upper(), name=_UNKNOWN_NAME)

    def _collect(
        commands: list[list[str]],
        parse: Callable[[str], DetectedDevice | None],
    ) -> None:
        for cmd in commands:
            result = _run_discovery_command(cmd)
            if result is None:
                continue
            if result.returncode != 0:
                stderr = (result.stderr or "").strip()
                if stderr:
                    command_errors.append(f"{' '.join(cmd)} -> {stderr}")
                continue
            for line in result.stdout.splitlines():
                device = parse(line)
                if device is None or device.mac in seen:
                    continue
                seen.add(device.mac)
                devices.append(device)

    _collect(bluetoothctl_commands, _parse_bluetoothctl)
    if not devices:
        _collect(fallback_commands, _parse_hcitool)

    if not devices and command_errors:
        joined = " | ".join(command_errors)
        raise DeviceDiscoveryError(
            f"Bluetooth discovery failed. Ensure a working D-Bus/BlueZ session. Details: {joined}"
        )
    return devices


def _run_discovery_command(cmd: Sequence[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        LOGGER.debug("Discovery command %s not available", cmd[0])
        return None
