import logging
import socket
from datetime import datetime, timezone
from typing import Any, Optional, Union

from .errors import ConnectionIOError, DecodeError
from .framing import FramingMode, create_framer
from .models import DecodeFailureReport, ParsedReport, Peer, RawLineReport
from .rfc5424_decoder import RFC5424Decoder

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

BUFFER_SIZE = 8192


class ConnectionHandler:
    """
    Read one client connection until EOF and report every message to a sink.

    Each frame produced by the framer is reported exactly once, in read order:
    - frames not starting with '<' as RawLineReport (the decoder is not called)
    - frames that decode as ParsedReport
    - frames that fail to decode as DecodeFailureReport with the raw text
    A decode failure never ends the connection; a read error does.
    """

    def __init__(self, sock: socket.socket, peer: Peer, sink: Any,
                 decoder: Optional[RFC5424Decoder] = None,
                 framing: Union[FramingMode, str] = FramingMode.READ,
                 buffer_size: int = BUFFER_SIZE) -> None:
        self.sock: socket.socket = sock
        self.peer: Peer = peer
        self.sink: Any = sink
        self.decoder: RFC5424Decoder = decoder or RFC5424Decoder()
        self.framer = create_framer(framing)
        self.buffer_size: int = buffer_size
        self.messages_handled: int = 0

    def run(self) -> None:
        """Handle the connection until the peer closes it or a read fails"""
        try:
            while True:
                try:
                    data = self._read()
                except ConnectionIOError as e:
                    logger.error(f"Error reading from {self._peer_label()}: {e}")
                    break

                if not data:
                    for frame in self.framer.flush():
                        self.process_frame(frame)
                    break

                for frame in self.framer.feed(data):
                    self.process_frame(frame)
        finally:
            try:
                self.sock.close()
            except OSError:
                pass
            logger.info(f"Connection closed from {self._peer_label()} "
                        f"({self.messages_handled} messages)")

    def process_frame(self, frame: bytes) -> None:
        """Classify, decode and report a single framed message"""
        if not frame:
            return

        text = frame.decode('utf-8', errors='replace')
        received_at = datetime.now(timezone.utc)

        if not text.startswith('<'):
            report = RawLineReport(self.peer, received_at, text)
        else:
            try:
                report = ParsedReport(self.peer, received_at, self.decoder.decode(text))
            except DecodeError as e:
                report = DecodeFailureReport(self.peer, received_at, e, text)

        self.messages_handled += 1
        try:
            self.sink.write(report)
        except Exception as e:
            logger.error(f"Sink failed for message from {self._peer_label()}: {e}", exc_info=True)

    def _read(self) -> bytes:
        try:
            return self.sock.recv(self.buffer_size)
        except OSError as e:
            raise ConnectionIOError(str(e)) from e

    def _peer_label(self) -> str:
        return f"{self.peer[0]}:{self.peer[1]}"
