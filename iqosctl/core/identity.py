"""Device identity profile assembled from characteristic reads."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from iqosctl.core.errors import DecodeError

BATTERY_LEVEL_OFFSET = 2


class IdentityField(str, Enum):
    MODEL_NUMBER = "model_number"
    CUSTOM_NAME = "custom_name"
    SERIAL_NUMBER = "serial_number"
    SOFTWARE_REVISION = "software_revision"
    MANUFACTURER_NAME = "manufacturer_name"


REQUIRED_FIELDS = (
    IdentityField.MODEL_NUMBER,
    IdentityField.SERIAL_NUMBER,
    IdentityField.SOFTWARE_REVISION,
    IdentityField.MANUFACTURER_NAME,
)


@dataclass
class IdentityModel:
    """Descriptive attributes and battery level of one connected device.

    `on_fully_populated` is called with the model the first time all required
    fields hold non-empty text. It never fires a second time, even if a field
    is later overwritten with "" and set again.
    """

    model_number: str = ""
    custom_name: str = ""
    serial_number: str = ""
    software_revision: str = ""
    manufacturer_name: str = ""
    battery_level: int = 0
    on_fully_populated: Callable[[IdentityModel], None] | None = field(
        default=None, repr=False, compare=False
    )
    _populated_notified: bool = field(default=False, init=False, repr=False, compare=False)

    def update(self, name: IdentityField | str, value: str) -> None:
        identity_field = IdentityField(name)
        was_populated = self.is_fully_populated()
        setattr(self, identity_field.value, value)
        if not was_populated and self.is_fully_populated() and not self._populated_notified:
            self._populated_notified = True
            if self.on_fully_populated is not None:
                self.on_fully_populated(self)

    def set_battery(self, raw: int) -> None:
        if not 0 <= raw <= 0xFF:
            raise DecodeError(f"Battery level {raw} does not fit in a single byte")
        self.battery_level = raw

    def is_fully_populated(self) -> bool:
        return all(getattr(self, f.value) != "" for f in REQUIRED_FIELDS)


def extract_battery_level(payload: bytes) -> int:
    """Return the battery percentage carried at offset 2 of a battery payload.

    Example payload: ``0f 00 4b 18 54 0f 64`` carries 0x4b (75%).
    """
    if len(payload) <= BATTERY_LEVEL_OFFSET:
        raise DecodeError(
            f"Battery payload needs at least {BATTERY_LEVEL_OFFSET + 1} bytes, got {len(payload)}"
        )
    return payload[BATTERY_LEVEL_OFFSET]
