from __future__ import annotations

import subprocess

import pytest

from iqosctl.core.errors import DeviceDiscoveryError
from iqosctl.core.service import _discover_devices


def _cp(cmd: list[str], rc: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(cmd, rc, stdout=stdout, stderr=stderr)


def test_discovery_parses_bluetoothctl_and_deduplicates(monkeypatch: pytest.MonkeyPatch) -> None:
    listing = "Device C0:E4:34:11:22:33 IQOS ILUMA\nDevice aa:bb:cc:dd:ee:ff Speaker\nnoise\n"

    def fake_run(cmd, check, capture_output, text):
        if cmd[0] == "bluetoothctl":
            return _cp(cmd, 0, stdout=listing)
        raise AssertionError(f"Unexpected cmd: {cmd}")

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = _discover_devices()
    assert [(d.mac, d.name) for d in devices] == [
        ("C0:E4:34:11:22:33", "IQOS ILUMA"),
        ("AA:BB:CC:DD:EE:FF", "Speaker"),
    ]


def test_discovery_falls_back_to_hcitool(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        if cmd[0] == "bluetoothctl":
            return _cp(cmd, -6, stderr="dbus crashed")
        if cmd[:2] == ["hcitool", "con"]:
            return _cp(cmd, 0, stdout="Connections:\n\t< LE C0:E4:34:11:22:33 handle 64 state 1 lm MASTER\n")
        raise AssertionError(f"Unexpected cmd: {cmd}")

    monkeypatch.setattr(subprocess, "run", fake_run)

    devices = _discover_devices()
    assert len(devices) == 1
    assert devices[0].mac == "C0:E4:34:11:22:33"
    assert devices[0].name == "<unknown-device>"


def test_discovery_raises_when_all_commands_fail(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        return _cp(cmd, -6, stderr="dbus crashed")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(DeviceDiscoveryError):
        _discover_devices()


def test_discovery_without_tools_returns_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, check, capture_output, text):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert _discover_devices() == []
