"""Domain-specific errors for iqosctl."""


class IqosctlError(Exception):
    """Base error for iqosctl."""


class FamilyValidationError(IqosctlError):
    """Raised when a family file does not conform to schema or semantics."""


class FamilyLoadError(IqosctlError):
    """Raised when loading family sources fails."""


class DeviceSelectionError(IqosctlError):
    """Raised when device matching cannot resolve a single target."""


class DeviceDiscoveryError(IqosctlError):
    """Raised when Bluetooth device discovery command(s) fail."""


class UnsupportedCommandError(IqosctlError):
    """Raised when a command is not registered for a device family."""


class DecodeError(IqosctlError):
    """Raised when a characteristic payload is too short or malformed."""


class NotReadyError(IqosctlError):
    """Raised when a command runs before writer and control point are bound."""


class DeviceBusyError(IqosctlError):
    """Raised when bindings change while a command is being written."""


class TransportError(IqosctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised on BLE connect failures."""


class TransportSendError(TransportError):
    """Raised when reading or writing a characteristic fails."""


class TransportTimeoutError(TransportError):
    """Raised when the peripheral does not answer in time."""
