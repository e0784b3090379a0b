"""
Syslog Receiver Application Package

Receives RFC 5424 syslog messages over TCP, decodes header, timestamp and
structured data, and reports each message to a pluggable sink.
"""

from .connection_handler import ConnectionHandler
from .errors import (
    ConnectionIOError,
    DecodeError,
    IncompleteHeader,
    InvalidTimestamp,
    MalformedHeader,
    StructuredDataError,
    SyslogReceiverError,
    UnbalancedBracket,
    UnsupportedVersion,
    UnterminatedValue,
)
from .framing import FramingMode, create_framer
from .models import DecodedMessage, DecodeFailureReport, ParsedReport, RawLineReport
from .rfc5424_decoder import RFC5424Decoder, decode
from .structured_data import SDElement, StructuredDataParser, parse_structured_data
from .syslog_writer import LoggingSink, SyslogWriter
from .tcp_syslog_receiver import TCPSyslogReceiver
from .timestamp_parser import parse_timestamp

__all__ = [
    'ConnectionHandler',
    'ConnectionIOError',
    'DecodeError',
    'DecodedMessage',
    'DecodeFailureReport',
    'FramingMode',
    'IncompleteHeader',
    'InvalidTimestamp',
    'LoggingSink',
    'MalformedHeader',
    'ParsedReport',
    'RawLineReport',
    'RFC5424Decoder',
    'SDElement',
    'StructuredDataError',
    'StructuredDataParser',
    'SyslogReceiverError',
    'SyslogWriter',
    'TCPSyslogReceiver',
    'UnbalancedBracket',
    'UnsupportedVersion',
    'UnterminatedValue',
    'create_framer',
    'decode',
    'parse_structured_data',
    'parse_timestamp',
]

__version__ = '1.0.0'
