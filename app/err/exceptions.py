"""Simple wrappers for the failure states a modem fetch can end in.

Callers of a vendor client never see the exceptions; they get the ModemError kind instead.
"""

from enum import Enum


class ModemError(Enum):
    """Error kinds surfaced to whoever asked for a fetch."""

    # Low-level connect/read failure or a non-200 reply
    HTTP_CONNECTION = "http_connection"
    # Authentication problem or a vendor error document
    ACCESS = "access"
    # Required field missing or unparsable
    DATA_PARSING = "data_parsing"
    # Everything else, e.g. an unknown vendor selector
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Short human-readable label."""
        return _ERROR_LABELS[self]


_ERROR_LABELS = {
    ModemError.HTTP_CONNECTION: "HTTP Error",
    ModemError.ACCESS: "Access Error",
    ModemError.DATA_PARSING: "Data Parsing Error",
    ModemError.UNKNOWN: "Unknown error",
}


class ModemFetchError(Exception):
    """Base for anything that goes wrong while talking to the modem."""

    kind = ModemError.UNKNOWN

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message, status_code, payload)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ModemNotOkError(ModemFetchError):
    """Exception for failed connections and non-200/OK responses from modem."""

    kind = ModemError.HTTP_CONNECTION


class ModemAccessError(ModemFetchError):
    """Exception for error documents returned by the modem's web API."""

    kind = ModemError.ACCESS

    def __init__(self, message, code=None, detail=None):
        super().__init__(message, payload={"code": code, "message": detail})
        self.code = code
        self.detail = detail


class ModemDataError(ModemFetchError):
    """Exception for replies that lack a required field or can't be decoded."""

    kind = ModemError.DATA_PARSING
