"""Exception hierarchy for the syslog receiver"""

from typing import Optional


class SyslogReceiverError(Exception):
    """Base class for all receiver errors"""


class DecodeError(SyslogReceiverError):
    """A single message could not be decoded. Never fatal for the connection."""


class MalformedHeader(DecodeError):
    """Message does not start with a valid <PRI> block"""


class IncompleteHeader(DecodeError):
    """Header is missing one of its fixed tokens or the structured data token"""


class UnsupportedVersion(DecodeError):
    """VERSION token is anything other than 1"""

    def __init__(self, version: str) -> None:
        super().__init__(f"unsupported syslog version: {version!r}")
        self.version = version


class InvalidTimestamp(DecodeError):
    """TIMESTAMP token is not an RFC 3339 date-time"""

    def __init__(self, token: str, reason: Optional[str] = None) -> None:
        message = f"invalid timestamp: {token!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.token = token


class StructuredDataError(DecodeError):
    """Structured data section is syntactically broken"""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} at offset {offset}")
        self.offset = offset


class UnterminatedValue(StructuredDataError):
    """A quoted parameter value is never closed"""


class UnbalancedBracket(StructuredDataError):
    """An element is never closed, or a ] arrives where it cannot"""


class ConnectionIOError(SyslogReceiverError):
    """Read failure on a client connection other than a clean EOF"""
