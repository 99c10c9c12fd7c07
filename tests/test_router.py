from __future__ import annotations

import pytest

from iqosctl.core.characteristics import (
    BATTERY_UUID,
    CONTROL_POINT_UUID,
    MODEL_NUMBER_UUID,
    Role,
    canonicalize_identifier,
)
from iqosctl.core.device import DeviceHandle, HandleState
from iqosctl.core.identity import IdentityModel
from iqosctl.core.model import Family, FamilyKind, MatchRules, TransportSpec
from iqosctl.core.router import CharacteristicRouter, Route


def _router() -> CharacteristicRouter:
    family = Family(
        id="iqos",
        name="IQOS",
        kind=FamilyKind.BASE,
        match=MatchRules(name_contains=("IQOS",), mac_prefix=()),
        transport=TransportSpec(),
        commands={},
    )
    return CharacteristicRouter(DeviceHandle(family))


@pytest.mark.parametrize(
    ("identifier", "expected"),
    [
        ("Model Number String", MODEL_NUMBER_UUID),
        ("model number string", MODEL_NUMBER_UUID),
        ("2A24", MODEL_NUMBER_UUID),
        ("0x2a24", MODEL_NUMBER_UUID),
        ("00002A24", MODEL_NUMBER_UUID),
        ("F8A54120-B041-11E4-9BE7-0002A5D5C51B", BATTERY_UUID),
        (" e16c6e20-b041-11e4-a4c3-0002a5d5c51b ", CONTROL_POINT_UUID),
    ],
)
def test_canonicalize_identifier(identifier: str, expected: str) -> None:
    assert canonicalize_identifier(identifier) == expected


def test_identity_aliases_fill_distinct_fields() -> None:
    router = _router()
    events = [
        ("Model Number String", b"M1"),
        ("Serial Number String", b"S1"),
        ("Software Revision String", b"R1"),
        ("Manufacturer Name String", b"Mfg1"),
    ]
    fired: list[IdentityModel] = []
    identity = router.handle.identity
    identity.on_fully_populated = fired.append

    for index, (identifier, payload) in enumerate(events, start=1):
        assert router.dispatch(identifier, payload) is Route.IDENTITY
        assert identity.is_fully_populated() is (index == len(events))

    assert fired == [identity]
    assert identity.model_number == "M1"
    assert identity.serial_number == "S1"
    assert identity.software_revision == "R1"
    assert identity.manufacturer_name == "Mfg1"


def test_invalid_utf8_becomes_empty_string() -> None:
    router = _router()
    router.handle.identity.model_number = "old"
    assert router.dispatch("00002a24-0000-1000-8000-00805f9b34fb", b"\xff\xfe") is Route.IDENTITY
    assert router.handle.identity.model_number == ""


def test_battery_byte_at_offset_two() -> None:
    router = _router()
    route = router.dispatch("F8A54120-B041-11E4-9BE7-0002A5D5C51B", bytes.fromhex("0f004b18540f64"))
    assert route is Route.BATTERY
    assert router.handle.identity.battery_level == 0x4B


def test_short_battery_payload_is_rejected_without_raising() -> None:
    router = _router()
    router.handle.identity.battery_level = 42
    assert router.dispatch(BATTERY_UUID, b"\x0f\x00") is Route.REJECTED
    assert router.dispatch(BATTERY_UUID, None) is Route.REJECTED
    assert router.handle.identity.battery_level == 42


def test_control_point_binds_reference() -> None:
    router = _router()
    characteristic = object()
    assert router.dispatch("E16C6E20-B041-11E4-A4C3-0002A5D5C51B", b"\x01\x02", ref=characteristic) is Route.CONTROL_POINT
    assert router.handle.control_point is characteristic
    assert router.handle.state is HandleState.UNBOUND


def test_control_point_without_ref_binds_canonical_identifier() -> None:
    router = _router()
    router.dispatch("E16C6E20-B041-11E4-A4C3-0002A5D5C51B", b"")
    assert router.handle.control_point == CONTROL_POINT_UUID


def test_unrecognized_identifier_leaves_identity_untouched() -> None:
    router = _router()
    before = IdentityModel(model_number="M1", serial_number="S1")
    router.handle.identity.model_number = "M1"
    router.handle.identity.serial_number = "S1"

    assert router.dispatch("Battery Level", b"\x64") is Route.UNRECOGNIZED
    assert router.dispatch("0000ffe9-0000-1000-8000-00805f9b34fb", b"garbage") is Route.UNRECOGNIZED
    assert router.handle.identity == before
    assert router.handle.control_point is None


def test_role_of() -> None:
    router = _router()
    assert router.role_of("Serial Number String") is Role.IDENTITY
    assert router.role_of(BATTERY_UUID.upper()) is Role.BATTERY
    assert router.role_of(CONTROL_POINT_UUID) is Role.CONTROL_POINT
    assert router.role_of("2a19") is None
