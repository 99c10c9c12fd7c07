"""Characteristic identifiers recognised on IQOS peripherals.

Identifiers reach us either as raw UUID strings (any case, 16/32/128-bit) or as
the human-readable names some stacks print for standard attributes. Everything
is canonicalised to a lower-case 128-bit UUID before lookup.
"""

from __future__ import annotations

import re
from enum import Enum

from iqosctl.core.identity import IdentityField

_BASE_UUID_SUFFIX = "-0000-1000-8000-00805f9b34fb"
_SHORT_UUID_RE = re.compile(r"^(?:0x)?([0-9a-f]{4}|[0-9a-f]{8})$")


def _expand(short: str) -> str:
    return short.rjust(8, "0") + _BASE_UUID_SUFFIX


# Device Information Service
MODEL_NUMBER_UUID = _expand("2a24")
SERIAL_NUMBER_UUID = _expand("2a25")
SOFTWARE_REVISION_UUID = _expand("2a28")
MANUFACTURER_NAME_UUID = _expand("2a29")

# Vendor characteristics
BATTERY_UUID = "f8a54120-b041-11e4-9be7-0002a5d5c51b"
CONTROL_POINT_UUID = "e16c6e20-b041-11e4-a4c3-0002a5d5c51b"

_ALIASES = {
    "model number string": MODEL_NUMBER_UUID,
    "serial number string": SERIAL_NUMBER_UUID,
    "software revision string": SOFTWARE_REVISION_UUID,
    "manufacturer name string": MANUFACTURER_NAME_UUID,
}


class Role(str, Enum):
    IDENTITY = "identity"
    BATTERY = "battery"
    CONTROL_POINT = "control_point"


IDENTITY_FIELDS: dict[str, IdentityField] = {
    MODEL_NUMBER_UUID: IdentityField.MODEL_NUMBER,
    SERIAL_NUMBER_UUID: IdentityField.SERIAL_NUMBER,
    SOFTWARE_REVISION_UUID: IdentityField.SOFTWARE_REVISION,
    MANUFACTURER_NAME_UUID: IdentityField.MANUFACTURER_NAME,
}

ROLES: dict[str, Role] = {
    **{uuid: Role.IDENTITY for uuid in IDENTITY_FIELDS},
    BATTERY_UUID: Role.BATTERY,
    CONTROL_POINT_UUID: Role.CONTROL_POINT,
}


def canonicalize_identifier(identifier: object) -> str:
    normalized = str(identifier).strip().lower()
    alias = _ALIASES.get(normalized)
    if alias is not None:
        return alias
    match = _SHORT_UUID_RE.match(normalized)
    if match:
        return _expand(match.group(1))
    return normalized
