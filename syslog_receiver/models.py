from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .errors import DecodeError
from .structured_data import SDElement

# Syslog severity levels
SEVERITY_MAP: Dict[int, str] = {
    0: 'emergency',
    1: 'alert',
    2: 'critical',
    3: 'error',
    4: 'warning',
    5: 'notice',
    6: 'info',
    7: 'debug'
}

# Syslog facilities
FACILITY_MAP: Dict[int, str] = {
    0: 'kern', 1: 'user', 2: 'mail', 3: 'daemon',
    4: 'auth', 5: 'syslog', 6: 'lpr', 7: 'news',
    8: 'uucp', 9: 'cron', 10: 'authpriv', 11: 'ftp',
    12: 'ntp', 13: 'security', 14: 'console', 15: 'solaris-cron',
    16: 'local0', 17: 'local1', 18: 'local2', 19: 'local3',
    20: 'local4', 21: 'local5', 22: 'local6', 23: 'local7'
}

Peer = Tuple[str, int]


@dataclass(frozen=True)
class DecodedMessage:
    """
    A decoded RFC 5424 message.
    Header fields sent as the nil value '-' are None, never the string '-'.
    """
    priority: int
    version: int
    timestamp: Optional[datetime]
    hostname: Optional[str]
    app_name: Optional[str]
    proc_id: Optional[str]
    msg_id: Optional[str]
    structured_data: Tuple[SDElement, ...] = field(default_factory=tuple)
    message: str = ''

    @property
    def facility(self) -> int:
        return self.priority >> 3

    @property
    def severity(self) -> int:
        return self.priority & 0x07

    @property
    def facility_name(self) -> str:
        return FACILITY_MAP.get(self.facility, 'unknown')

    @property
    def severity_name(self) -> str:
        return SEVERITY_MAP.get(self.severity, 'unknown')

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe representation"""
        return {
            'priority': self.priority,
            'facility': self.facility_name,
            'severity': self.severity_name,
            'version': self.version,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'hostname': self.hostname,
            'app_name': self.app_name,
            'proc_id': self.proc_id,
            'msg_id': self.msg_id,
            'structured_data': [element.to_dict() for element in self.structured_data],
            'message': self.message,
        }


@dataclass(frozen=True)
class ParsedReport:
    """A message that decoded successfully"""
    peer: Peer
    received_at: datetime
    message: DecodedMessage


@dataclass(frozen=True)
class DecodeFailureReport:
    """A message that looked like syslog but failed to decode"""
    peer: Peer
    received_at: datetime
    error: DecodeError
    raw: str


@dataclass(frozen=True)
class RawLineReport:
    """Input that does not start with '<' and was never decoded"""
    peer: Peer
    received_at: datetime
    line: str
