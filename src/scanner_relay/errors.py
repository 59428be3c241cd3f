"""
Error types for the scanner relay service.
None of these are fatal: each one is caught at the seam where it happens and logged.
"""


class ScannerRelayError(Exception):
    """Base class for every error raised inside the relay"""


class ConfigError(ScannerRelayError):
    """Configuration file or value is unusable"""


class DeviceOpenError(ScannerRelayError):
    """A matching HID device could not be opened; retried on the next refresh"""

    def __init__(self, path, cause=None):
        super().__init__(f"could not open device at path {path}: {cause}")
        self.path = path
        self.cause = cause


class DeviceFaultError(ScannerRelayError):
    """An open device reported an I/O fault and was dropped"""

    def __init__(self, path, cause=None):
        super().__init__(f"error with device {path}: {cause}")
        self.path = path
        self.cause = cause


class DecodeError(ScannerRelayError):
    """A single raw report could not be decoded"""


class DeliveryError(ScannerRelayError):
    """A batch could not be delivered to the collection endpoint"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ResetInvocationError(ScannerRelayError):
    """The network reset command could not be run"""
