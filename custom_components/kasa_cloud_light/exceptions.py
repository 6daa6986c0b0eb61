"""Exceptions raised by the Kasa Cloud Light client."""


class KasaCloudError(Exception):
    """Base exception for Kasa cloud client errors."""


class KasaCloudAuthError(KasaCloudError):
    """Exception raised for bad credentials or a malformed login response."""


class KasaCloudDirectoryError(KasaCloudError):
    """Exception raised when the device list cannot be fetched or validated."""


class KasaCloudTargetNotFound(KasaCloudError):
    """Exception raised when no device matches the configured target name.

    This is not fatal: the bulb may simply not be registered yet.
    """


class KasaCloudDecodeError(KasaCloudError):
    """Exception raised when a response matches neither light state shape."""


class KasaCloudCommandError(KasaCloudError):
    """Exception raised when a passthrough command fails."""
