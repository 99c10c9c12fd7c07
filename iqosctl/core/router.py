"""Routes characteristic updates onto a device handle."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from iqosctl.core.characteristics import IDENTITY_FIELDS, ROLES, Role, canonicalize_identifier
from iqosctl.core.device import DeviceHandle
from iqosctl.core.errors import DecodeError
from iqosctl.core.identity import extract_battery_level

LOGGER = logging.getLogger(__name__)


class Route(str, Enum):
    IDENTITY = "identity"
    BATTERY = "battery"
    CONTROL_POINT = "control_point"
    UNRECOGNIZED = "unrecognized"
    REJECTED = "rejected"


class CharacteristicRouter:
    def __init__(self, handle: DeviceHandle) -> None:
        self.handle = handle

    def role_of(self, identifier: object) -> Role | None:
        return ROLES.get(canonicalize_identifier(identifier))

    def dispatch(self, identifier: object, payload: bytes | bytearray | None, ref: Any = None) -> Route:
        """Apply one `(identifier, payload)` update.

        `ref` is the transport's characteristic object; it becomes the bound
        control point when the identifier names one (the identifier itself is
        bound when no ref is given).
        """
        canonical = canonicalize_identifier(identifier)
        role = ROLES.get(canonical)
        data = bytes(payload or b"")

        if role is Role.IDENTITY:
            identity_field = IDENTITY_FIELDS[canonical]
            self.handle.identity.update(identity_field, _decode_text(data, canonical))
            return Route.IDENTITY

        if role is Role.BATTERY:
            try:
                level = extract_battery_level(data)
            except DecodeError as exc:
                LOGGER.warning("Ignoring battery update from %s: %s", canonical, exc)
                return Route.REJECTED
            self.handle.identity.set_battery(level)
            return Route.BATTERY

        if role is Role.CONTROL_POINT:
            self.handle.bind_control_point(ref if ref is not None else canonical)
            return Route.CONTROL_POINT

        LOGGER.debug("Unknown characteristic %s", identifier)
        return Route.UNRECOGNIZED


def _decode_text(data: bytes, source: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        LOGGER.warning("Characteristic %s is not valid UTF-8 (%s)", source, data.hex())
        return ""
