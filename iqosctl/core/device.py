"""Device handle: owns the identity profile and writes family commands."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Protocol

from iqosctl.core.errors import DeviceBusyError, NotReadyError, UnsupportedCommandError
from iqosctl.core.identity import IdentityModel
from iqosctl.core.model import Family

LOGGER = logging.getLogger(__name__)


class Writer(Protocol):
    async def write(self, control_point: Any, payload: bytes, *, response: bool = True) -> None:
        """Write one frame and return once the transport accepted it."""


class HandleState(str, Enum):
    UNBOUND = "unbound"
    READY = "ready"


class DeviceHandle:
    def __init__(
        self,
        family: Family,
        *,
        writer: Writer | None = None,
        identity: IdentityModel | None = None,
    ) -> None:
        self.family = family
        self.identity = identity or IdentityModel()
        self._writer = writer
        self._control_point: Any = None
        self._write_lock = asyncio.Lock()

    @property
    def state(self) -> HandleState:
        if self._writer is None or self._control_point is None:
            return HandleState.UNBOUND
        return HandleState.READY

    @property
    def control_point(self) -> Any:
        return self._control_point

    @property
    def commands(self) -> tuple[str, ...]:
        return tuple(sorted(self.family.commands))

    def supports(self, command: str) -> bool:
        return command in self.family.commands

    def bind_writer(self, writer: Writer) -> None:
        self._ensure_idle("writer")
        self._writer = writer

    def bind_control_point(self, control_point: Any) -> None:
        self._ensure_idle("control point")
        if self._control_point is not None and self._control_point is not control_point:
            LOGGER.debug("Rebinding control point for family %s", self.family.id)
        self._control_point = control_point

    async def execute(self, command: str) -> tuple[bytes, ...]:
        """Write every frame of `command` to the control point, in order.

        Each write is awaited before the next one is issued. Writer errors
        propagate unchanged and frames already written are not undone.
        """
        frames = self.family.commands.get(command)
        if frames is None:
            available = ", ".join(self.commands) or "<none>"
            raise UnsupportedCommandError(
                f"Family '{self.family.id}' does not support command '{command}'. Available: {available}"
            )

        response = self.family.transport.write_with_response
        # One command is one multi-frame transaction; overlapping calls queue here.
        async with self._write_lock:
            writer, control_point = self._writer, self._control_point
            if writer is None or control_point is None:
                missing = [
                    name
                    for name, ref in (("writer", writer), ("control point", control_point))
                    if ref is None
                ]
                raise NotReadyError(
                    f"Cannot run '{command}' on family '{self.family.id}': {' and '.join(missing)} not bound"
                )
            for index, frame in enumerate(frames, start=1):
                LOGGER.debug("%s frame %d/%d: %s", command, index, len(frames), frame.hex())
                await writer.write(control_point, frame, response=response)
        LOGGER.info("Sent %s (%d frame(s)) to %s", command, len(frames), self.family.id)
        return frames

    def _ensure_idle(self, what: str) -> None:
        if self._write_lock.locked():
            raise DeviceBusyError(f"Cannot rebind {what} while a command is being written")
