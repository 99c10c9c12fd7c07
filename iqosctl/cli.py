"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import sys

import typer

from iqosctl.core.device_match import best_family_for_device
from iqosctl.core.errors import IqosctlError
from iqosctl.core.service import IqosService

app = typer.Typer(help="IQOS holder control over BLE via packaged command tables")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        envvar="IQOSCTL_LOG_LEVEL",
        help="DEBUG, INFO, WARNING or ERROR",
    ),
) -> None:
    """Control IQOS devices over Bluetooth Low Energy."""
    setup_logging(log_level)


def setup_logging(log_level: str) -> None:
    level = log_level.upper()
    if level not in _LOG_LEVELS:
        typer.echo(f"Warning: Invalid log level '{log_level}', using WARNING", err=True)
        level = "WARNING"

    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("bleak").setLevel(logging.WARNING)


def _build_service() -> IqosService:
    service = IqosService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


@app.command("families")
def list_families() -> None:
    """List known device families and their commands."""
    try:
        service = _build_service()
        families = service.list_families()
        if not families:
            typer.echo("No device families loaded")
            raise typer.Exit(code=1)

        for family in families:
            typer.echo(f"{family.id}: {family.name} [{family.kind.value}]")
            for command, frames in sorted(family.commands.items()):
                typer.echo(f"  {command}: {len(frames)} frame(s)")
    except IqosctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("devices")
def list_devices() -> None:
    """List known Bluetooth devices and the family each one matches."""
    try:
        service = _build_service()
        devices = service.list_devices()
        if not devices:
            typer.echo("No Bluetooth devices found")
            return

        for device in devices:
            family = best_family_for_device(device, service.families)
            matched = family.id if family else "<no-match>"
            typer.echo(f"{device.mac} {device.name} -> {matched}")
    except IqosctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("commands")
def list_commands(
    device: str | None = typer.Option(None, "--device", help="MAC or partial name"),
    family: str | None = typer.Option(None, "--family", help="Family ID"),
) -> None:
    """List the commands supported by the resolved target."""
    try:
        service = _build_service()
        target, commands = service.command_catalog(family_id=family, device_hint=device)
        typer.echo(f"Target: {target.device.mac} ({target.device.name}) via {target.family.id}")
        if not commands:
            typer.echo("  <no commands>")
        for command in commands:
            typer.echo(f"  {command}")
    except IqosctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("info")
def show_info(
    device: str | None = typer.Option(None, "--device", help="MAC or partial name"),
    family: str | None = typer.Option(None, "--family", help="Family ID"),
) -> None:
    """Connect and print the device identity and battery level."""
    try:
        service = _build_service()
        report = service.read_info(family_id=family, device_hint=device)
        identity = report.identity
        typer.echo(f"Target: {report.target.device.mac} ({report.target.device.name}) via {report.target.family.id}")
        typer.echo(f"  manufacturer: {identity.manufacturer_name or '-'}")
        typer.echo(f"  model: {identity.model_number or '-'}")
        typer.echo(f"  serial: {identity.serial_number or '-'}")
        typer.echo(f"  software: {identity.software_revision or '-'}")
        typer.echo(f"  battery: {identity.battery_level}%")
        if not identity.is_fully_populated():
            typer.echo("Warning: device identity is incomplete", err=True)
    except IqosctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("run")
def run_command(
    command: str | None = typer.Argument(None),
    device: str | None = typer.Option(None, "--device", help="MAC or partial name"),
    family: str | None = typer.Option(None, "--family", help="Family ID"),
) -> None:
    """Send a named command to the matched device.

    If COMMAND is omitted, prints the commands available on the resolved target.
    """
    try:
        service = _build_service()
        if command is None:
            target, commands = service.command_catalog(family_id=family, device_hint=device)
            typer.echo(
                f"Available commands on {target.device.mac} ({target.family.id}): "
                f"{', '.join(commands) or '<none>'}"
            )
            return
        result = service.run_command(command, family_id=family, device_hint=device)
        typer.echo(
            f"Sent {result.command} to {result.target.device.mac} ({result.target.family.id}) "
            f"frames={' '.join(result.payload_hex)}"
        )
    except IqosctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
