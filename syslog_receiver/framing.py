"""
Message framing for syslog over a TCP stream (RFC 6587)

Splits the byte stream of one connection into individual messages:
- READ: every read is exactly one message (no reassembly, no splitting)
- NEWLINE: non-transparent framing, messages end with LF
- OCTET_COUNTING: transparent framing, "MSG-LEN SP MSG"
- AUTO: pick OCTET_COUNTING or NEWLINE from the start of the stream
"""

import logging
import re
from enum import Enum
from typing import List, Optional, Pattern, Union

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

MAX_BUFFER_SIZE = 10 * 1024 * 1024  # 10 MB
MAX_MESSAGE_LENGTH = 65535  # 64KB
INTER_FRAME_WHITESPACE = b' \t\r\n'


class FramingMode(Enum):
    READ = 'read'
    NEWLINE = 'newline'
    OCTET_COUNTING = 'octet_counting'
    AUTO = 'auto'


class ReadFramer:
    """One read equals one message"""

    def feed(self, data: bytes) -> List[bytes]:
        return [data] if data else []

    def flush(self) -> List[bytes]:
        return []


class NewlineFramer:
    """Split on LF, dropping an optional CR before it and empty lines"""

    def __init__(self, max_frame_size: int = MAX_MESSAGE_LENGTH) -> None:
        self.buffer: bytes = b''
        self.max_frame_size = max_frame_size
        self.discarding: bool = False

    def feed(self, data: bytes) -> List[bytes]:
        self.buffer += data
        frames: List[bytes] = []

        while True:
            newline_idx = self.buffer.find(b'\n')
            if newline_idx == -1:
                break

            frame = self.buffer[:newline_idx]
            self.buffer = self.buffer[newline_idx + 1:]
            if self.discarding:
                # Tail of an oversized frame
                self.discarding = False
                continue
            if frame.endswith(b'\r'):
                frame = frame[:-1]
            if frame:
                frames.append(frame)

        if len(self.buffer) > self.max_frame_size:
            logger.warning(f"Frame exceeds {self.max_frame_size} bytes without newline, discarding")
            self.buffer = b''
            self.discarding = True

        return frames

    def flush(self) -> List[bytes]:
        """Emit an unterminated last line at end of stream"""
        frame = self.buffer.rstrip(b'\r')
        self.buffer = b''
        if self.discarding:
            self.discarding = False
            return []
        return [frame] if frame else []


class OctetCountingReader:
    """Handle octet-counted framing for syslog messages over TCP"""

    def __init__(self,
                 max_msg_len: int = MAX_MESSAGE_LENGTH,
                 max_buffer_size: int = MAX_BUFFER_SIZE) -> None:
        self.buffer: bytes = b''
        self.max_msg_len = max_msg_len
        self.max_buffer_size = max_buffer_size

    def feed(self, data: bytes) -> List[bytes]:
        """Feed data and return complete messages"""
        self.buffer += data

        if not self._check_buffer_size():
            return []

        return self._extract_all_messages()

    def flush(self) -> List[bytes]:
        """End of stream: hand back an incomplete frame as it was received"""
        residual = self.buffer.strip(INTER_FRAME_WHITESPACE)
        self.buffer = b''
        if not residual:
            return []
        logger.warning(f"Incomplete octet-counted frame at end of stream ({len(residual)} bytes)")
        return [residual]

    def _check_buffer_size(self) -> bool:
        """Internal: Check buffer doesn't exceed limit"""
        if len(self.buffer) > self.max_buffer_size:
            logger.error(f"Buffer overflow: {len(self.buffer)} bytes, resetting")
            self.buffer = b''
            return False
        return True

    def _extract_all_messages(self) -> List[bytes]:
        """Internal: Extract all complete messages from buffer"""
        messages: List[bytes] = []

        while self.buffer:
            result = self._try_extract_one_message()
            if result is None:
                # Need more data
                break
            if isinstance(result, bytes):
                messages.append(result)

        return messages

    def _try_extract_one_message(self) -> Union[bytes, bool, None]:
        """
        Try to extract one message.
        Returns: bytes (message), None (need more data), False (skip/recovery)
        """
        # Some senders terminate octet-counted frames with a newline anyway
        self.buffer = self.buffer.lstrip(INTER_FRAME_WHITESPACE)
        if not self.buffer:
            return None

        space_idx = self.buffer.find(b' ')
        if space_idx == -1:
            if not self.buffer.isdigit():
                logger.warning("Invalid octet count, skipping byte")
                self.buffer = self.buffer[1:]
                return False
            return None

        prefix = self.buffer[:space_idx]
        if not prefix.isdigit():
            logger.warning("Invalid octet count, skipping byte")
            self.buffer = self.buffer[1:]
            return False  # Recovery mode

        message_length = int(prefix)

        if message_length > self.max_msg_len:
            logger.warning(f"Message too large: {message_length}, skipping")
            self._skip_to_next_frame(space_idx)
            return False

        frame_length = space_idx + 1 + message_length
        if len(self.buffer) < frame_length:
            return None

        message = self.buffer[space_idx + 1:frame_length]
        self.buffer = self.buffer[frame_length:]
        return message

    def _skip_to_next_frame(self, space_idx: int) -> None:
        """Internal: Skip malformed frame"""
        next_newline = self.buffer.find(b'\n', space_idx)
        if next_newline > 0:
            self.buffer = self.buffer[next_newline + 1:]
        else:
            self.buffer = b''


class AutoFramer:
    """
    Detect the framing from the start of the stream: "DIGITS SP <" means
    octet counting, anything else newline framing. Undecided input is held
    until enough bytes arrive and is emitted as-is at end of stream.
    """
    OCTET_PREFIX: Pattern[bytes] = re.compile(rb'\d{1,6} <')
    UNDECIDED_PREFIX: Pattern[bytes] = re.compile(rb'\d{1,6} ?')

    def __init__(self) -> None:
        self.delegate: Optional[Union[NewlineFramer, OctetCountingReader]] = None
        self.pending: bytes = b''

    def feed(self, data: bytes) -> List[bytes]:
        if self.delegate is None:
            self.pending += data
            head = self.pending.lstrip(INTER_FRAME_WHITESPACE)
            if not head:
                return []
            if self.OCTET_PREFIX.match(head):
                logger.debug("Detected octet-counting framing")
                self.delegate = OctetCountingReader()
            elif self.UNDECIDED_PREFIX.fullmatch(head):
                # Only digits so far, wait for the byte that settles it
                return []
            else:
                logger.debug("Detected newline framing")
                self.delegate = NewlineFramer()
            data, self.pending = self.pending, b''

        return self.delegate.feed(data)

    def flush(self) -> List[bytes]:
        if self.delegate is None:
            residual = self.pending.strip(INTER_FRAME_WHITESPACE)
            self.pending = b''
            return [residual] if residual else []
        return self.delegate.flush()


Framer = Union[ReadFramer, NewlineFramer, OctetCountingReader, AutoFramer]


def create_framer(mode: Union[FramingMode, str]) -> Framer:
    """Build a fresh framer for one connection"""
    mode = FramingMode(mode)
    if mode is FramingMode.READ:
        return ReadFramer()
    if mode is FramingMode.NEWLINE:
        return NewlineFramer()
    if mode is FramingMode.OCTET_COUNTING:
        return OctetCountingReader()
    return AutoFramer()
