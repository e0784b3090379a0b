"""Pytest configuration and shared fixtures for test suite"""

import socket
import threading
import time
from typing import Generator, List, Tuple

import pytest

from syslog_receiver.framing import FramingMode
from syslog_receiver.tcp_syslog_receiver import TCPSyslogReceiver


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests requiring network")


class CollectingSink:
    """Sink that keeps every report in memory, safe to share between connections"""

    def __init__(self) -> None:
        self.reports: List[object] = []
        self.lock = threading.Lock()

    def write(self, report: object) -> None:
        with self.lock:
            self.reports.append(report)

    def close(self) -> None:
        pass

    def wait_for(self, count: int, timeout: float = 3.0) -> List[object]:
        """Wait until at least count reports arrived and return a snapshot"""
        deadline = time.time() + timeout
        while time.time() < deadline:
            with self.lock:
                if len(self.reports) >= count:
                    break
            time.sleep(0.02)
        with self.lock:
            return list(self.reports)


@pytest.fixture
def collecting_sink() -> CollectingSink:
    """In-memory sink for handler and receiver tests"""
    return CollectingSink()


def _start_receiver(sink: CollectingSink, **kwargs) -> TCPSyslogReceiver:
    receiver = TCPSyslogReceiver(host='127.0.0.1', port=0, sink=sink, **kwargs)

    thread = threading.Thread(target=receiver.start, daemon=True)
    thread.start()

    # Wait for receiver to bind
    for _ in range(60):
        if receiver.server_address is not None:
            break
        time.sleep(0.05)
    else:
        raise RuntimeError("Receiver failed to bind")

    return receiver


@pytest.fixture
def tcp_receiver_with_port(
    collecting_sink: CollectingSink
) -> Generator[Tuple[TCPSyslogReceiver, int], None, None]:
    """TCP receiver on an OS-assigned port using per-read framing"""
    receiver = _start_receiver(collecting_sink, framing=FramingMode.READ)

    yield receiver, receiver.server_address[1]

    receiver.stop()
    time.sleep(0.1)  # Give it time to stop


@pytest.fixture
def receiver_factory(collecting_sink: CollectingSink):
    """Start receivers with custom options; all are stopped after the test"""
    receivers: List[TCPSyslogReceiver] = []

    def factory(**kwargs) -> Tuple[TCPSyslogReceiver, int]:
        receiver = _start_receiver(collecting_sink, **kwargs)
        receivers.append(receiver)
        return receiver, receiver.server_address[1]

    yield factory

    for receiver in receivers:
        receiver.stop()
    time.sleep(0.1)


@pytest.fixture
def connect():
    """Open client connections to the local receiver, closed after the test"""
    sockets: List[socket.socket] = []

    def _connect(port: int) -> socket.socket:
        sock = socket.create_connection(('127.0.0.1', port), timeout=5)
        sockets.append(sock)
        return sock

    yield _connect

    for sock in sockets:
        try:
            sock.close()
        except OSError:
            pass


@pytest.fixture
def sample_syslog_messages() -> dict:
    """Sample RFC 5424 messages for testing various scenarios"""
    return {
        'basic': '<13>1 2023-10-10T14:48:00Z myhost myapp 1234 ID47 - Test message',
        'nil_fields': '<13>1 2023-10-10T14:48:00Z myhost myapp - - - Test message',
        'with_structured': (
            '<13>1 2023-10-10T14:48:00Z myhost myapp 1234 ID47 '
            '[exampleSDID@32473 iut="3" eventSource="Application" eventID="1011"] Test message'
        ),
        'rfc_example_1': (
            '<34>1 2003-10-11T22:14:15.003Z mymachine.example.com su - ID47 - '
            "'su root' failed for lonvick on /dev/pts/8"
        ),
        'rfc_example_2': (
            '<165>1 2003-08-24T05:14:15.000003-07:00 192.0.2.1 myproc 8710 - - '
            '% It\'s time to make the do-nuts.'
        ),
        'rfc_example_4': (
            '<165>1 2003-10-11T22:14:15.003Z mymachine.example.com evntslog - ID47 '
            '[exampleSDID@32473 iut="3" eventSource="Application" eventID="1011"]'
            '[examplePriority@32473 class="high"]'
        ),
        'all_nil': '<14>1 - - - - - -',
        'missing_sd': '<13>1 2023-10-10T14:48:00Z myhost myapp 1234 ID47 Test message',
        'plain_text': 'hello from a shell script',
    }
