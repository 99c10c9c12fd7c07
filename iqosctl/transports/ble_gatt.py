"""BLE GATT transport implementation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterator
from typing import Any

from iqosctl.core.characteristics import Role
from iqosctl.core.device import DeviceHandle
from iqosctl.core.errors import (
    IqosctlError,
    TransportConnectError,
    TransportSendError,
    TransportTimeoutError,
)
from iqosctl.core.identity import IdentityModel
from iqosctl.core.model import Family, SessionReport
from iqosctl.core.router import CharacteristicRouter

LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]


class BleakWriter:
    """Writer capability backed by a connected `BleakClient`."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def write(self, control_point: Any, payload: bytes, *, response: bool = True) -> None:
        await self._client.write_gatt_char(control_point, payload, response=response)


class BLEGATTTransport:
    def __init__(self, *, client_factory: ClientFactory | None = None) -> None:
        self._client_factory = client_factory

    def run(
        self,
        mac: str,
        family: Family,
        *,
        command: str | None = None,
    ) -> SessionReport:
        client_factory = self._client_factory or _bleak_client_factory()
        try:
            return asyncio.run(self._session(client_factory, mac, family, command))
        except IqosctlError:
            raise
        except asyncio.TimeoutError as exc:
            raise TransportTimeoutError(f"BLE session with {mac} timed out") from exc
        except Exception as exc:
            raise TransportSendError(f"BLE GATT session with {mac} failed: {exc}") from exc

    async def _session(
        self,
        client_factory: ClientFactory,
        mac: str,
        family: Family,
        command: str | None,
    ) -> SessionReport:
        identity = IdentityModel(on_fully_populated=_log_identity)
        handle = DeviceHandle(family, identity=identity)
        router = CharacteristicRouter(handle)

        async with contextlib.AsyncExitStack() as stack:
            try:
                client = await stack.enter_async_context(
                    client_factory(mac, timeout=family.transport.timeout_s)
                )
            except asyncio.TimeoutError as exc:
                raise TransportTimeoutError(f"BLE connect to {mac} timed out") from exc
            except Exception as exc:
                raise TransportConnectError(f"BLE connect failed for {mac}: {exc}") from exc
            if not client.is_connected:
                raise TransportConnectError(f"BLE connect failed for {mac}")
            handle.bind_writer(BleakWriter(client))

            for characteristic in _iter_characteristics(client):
                role = router.role_of(characteristic.uuid)
                if role is None or role is Role.CONTROL_POINT:
                    router.dispatch(characteristic.uuid, b"", ref=characteristic)
                elif "read" in characteristic.properties:
                    value = await client.read_gatt_char(characteristic)
                    router.dispatch(characteristic.uuid, value, ref=characteristic)

            frames: tuple[bytes, ...] = ()
            if command is not None:
                frames = await handle.execute(command)

        return SessionReport(identity=handle.identity, frames=frames)


def _iter_characteristics(client: Any) -> Iterator[Any]:
    for service in client.services:
        yield from service.characteristics


def _log_identity(identity: IdentityModel) -> None:
    LOGGER.info(
        "Identified %s %s (serial %s, software %s)",
        identity.manufacturer_name,
        identity.model_number,
        identity.serial_number,
        identity.software_revision,
    )


def _bleak_client_factory() -> ClientFactory:
    try:
        from bleak import BleakClient  # type: ignore
    except Exception as exc:  # pragma: no cover - import failure path
        raise TransportConnectError(
            "BLE transport requires 'bleak'. Install dependency and retry."
        ) from exc
    return BleakClient
