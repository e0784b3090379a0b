import logging
import select
import socket
import threading
import time
from typing import Any, Dict, Optional, Tuple, Union

from .connection_handler import BUFFER_SIZE, ConnectionHandler
from .framing import FramingMode
from .rfc5424_decoder import RFC5424Decoder
from .syslog_writer import SyslogWriter

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ACCEPT_ERROR_BACKOFF = 0.1  # seconds


class TCPSyslogReceiver:
    """Receive syslog messages over plain TCP, one handler thread per connection"""

    def __init__(self, host: str = '0.0.0.0', port: int = 6601,
                 sink: Optional[Any] = None,
                 framing: Union[FramingMode, str] = FramingMode.READ,
                 buffer_size: int = BUFFER_SIZE,
                 max_connections: Optional[int] = None,
                 merge_duplicate_ids: bool = False) -> None:
        """
        Initialize TCP syslog receiver.

        Args:
            host: Interface to bind to
            port: TCP port to listen on (0 picks a free port, see server_address)
            sink: Object with a write(report) method receiving every report
                  (defaults to JSON lines on stdout)
            framing: How each connection's stream is split into messages
            buffer_size: Bytes requested per read
            max_connections: Connections served at once; extra ones are
                             closed on accept. None means unbounded.
            merge_duplicate_ids: Fold structured data elements sharing an SD-ID
        """
        self.host: str = host
        self.port: int = port
        self.sink: Any = sink if sink is not None else SyslogWriter()
        self.framing: FramingMode = FramingMode(framing)
        self.buffer_size: int = buffer_size
        self.max_connections: Optional[int] = max_connections
        self.decoder: RFC5424Decoder = RFC5424Decoder(merge_duplicate_ids)
        self.running: bool = False
        self.connections: Dict[Tuple[str, int], Tuple[socket.socket, threading.Thread]] = {}
        self.lock: threading.Lock = threading.Lock()
        self._server_address: Optional[Tuple[str, int]] = None

    @property
    def server_address(self) -> Optional[Tuple[str, int]]:
        """(host, port) actually bound, None until start() has bound the socket"""
        return self._server_address

    @property
    def active_connections(self) -> int:
        with self.lock:
            return len(self.connections)

    def start(self) -> None:
        """Bind, listen and accept connections until stop() is called"""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.host, self.port))
        sock.listen(128)
        sock.setblocking(False)
        self._server_address = sock.getsockname()[:2]
        self.running = True

        logger.info(f"TCP syslog receiver listening on {self._server_address[0]}:{self._server_address[1]} "
                    f"(framing: {self.framing.value}, buffer: {self.buffer_size} bytes)")

        try:
            while self.running:
                try:
                    readable, _, _ = select.select([sock], [], [], 1.0)
                except OSError as e:
                    if self.running:
                        logger.error(f"Error waiting for connections: {e}")
                        time.sleep(ACCEPT_ERROR_BACKOFF)
                    continue
                if readable:
                    self._accept(sock)
        finally:
            sock.close()

    def _accept(self, sock: socket.socket) -> None:
        """Accept one pending connection; a failure is logged and followed by a short pause"""
        try:
            client_sock, client_addr = sock.accept()
        except BlockingIOError:
            return
        except OSError as e:
            if self.running:
                # Errors such as EMFILE leave the socket readable, avoid spinning
                logger.error(f"Error accepting connection: {e}")
                time.sleep(ACCEPT_ERROR_BACKOFF)
            return
        self._admit(client_sock, client_addr[:2])

    def _admit(self, client_sock: socket.socket, client_addr: Tuple[str, int]) -> None:
        """Start a handler thread for a new connection, or refuse it when at capacity"""
        with self.lock:
            if self.max_connections is not None and len(self.connections) >= self.max_connections:
                logger.warning(f"Connection limit ({self.max_connections}) reached, "
                               f"refusing {client_addr[0]}:{client_addr[1]}")
                client_sock.close()
                return

            logger.info(f"New connection from {client_addr[0]}:{client_addr[1]}")
            client_sock.setblocking(True)

            handler = ConnectionHandler(
                client_sock,
                client_addr,
                self.sink,
                decoder=self.decoder,
                framing=self.framing,
                buffer_size=self.buffer_size,
            )
            thread = threading.Thread(
                target=self._run_handler,
                args=(handler,),
                name=f"syslog-conn-{client_addr[0]}:{client_addr[1]}",
                daemon=True
            )
            self.connections[client_addr] = (client_sock, thread)

        thread.start()

    def _run_handler(self, handler: ConnectionHandler) -> None:
        try:
            handler.run()
        finally:
            with self.lock:
                self.connections.pop(handler.peer, None)

    def stop(self) -> None:
        """Stop accepting and close every open connection"""
        self.running = False
        with self.lock:
            for client_sock, _ in self.connections.values():
                try:
                    client_sock.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass
