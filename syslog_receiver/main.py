#!/usr/bin/env python3
"""
Syslog Receiver Application - Main Entry Point
Receives RFC 5424 syslog messages over TCP, decodes them and reports every
message (parsed, failed or raw) as JSON lines on stdout or through logging.
"""

import logging
import socket
import threading
import time
from typing import Optional

from .config import Config, load_config
from .syslog_writer import LoggingSink, SyslogWriter
from .tcp_syslog_receiver import TCPSyslogReceiver

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_receiver(config: Config) -> TCPSyslogReceiver:
    """Wire sink and receiver from configuration"""
    sink = SyslogWriter() if config.output == 'json' else LoggingSink()
    return TCPSyslogReceiver(
        host=config.host,
        port=config.port,
        sink=sink,
        framing=config.framing,
        buffer_size=config.buffer_size,
        max_connections=config.max_connections,
        merge_duplicate_ids=config.merge_sd_ids,
    )


def main(config: Optional[Config] = None) -> None:
    """Main entry point"""
    config = config or load_config()
    logging.getLogger().setLevel(config.log_level)

    logger.info("Starting Syslog Receiver Application")
    logger.info(f"Hostname: {socket.gethostname()}")
    logger.info(f"TCP Port: {config.port} (framing: {config.framing.value})")
    logger.info(f"Buffer Size: {config.buffer_size} bytes")
    if config.max_connections is not None:
        logger.info(f"Max Connections: {config.max_connections}")

    receiver = build_receiver(config)
    receiver_thread = threading.Thread(target=receiver.start, daemon=True)
    receiver_thread.start()

    # Keep running
    try:
        while receiver_thread.is_alive():
            time.sleep(1)
        logger.error("Receiver stopped unexpectedly")
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        receiver.stop()
        receiver.sink.close()


if __name__ == '__main__':
    main()
