"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from iqosctl.core.model import Family, SessionReport


class Transport(Protocol):
    def run(
        self,
        mac: str,
        family: Family,
        *,
        command: str | None = None,
    ) -> SessionReport:
        """Connect, build the identity profile, and optionally execute `command`."""
