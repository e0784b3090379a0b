import json
import logging
import sys
import threading
from typing import Any, Dict, Optional, TextIO, Union

from .models import DecodeFailureReport, ParsedReport, RawLineReport

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

Report = Union[ParsedReport, DecodeFailureReport, RawLineReport]


def report_to_dict(report: Report) -> Dict[str, Any]:
    """
    Render a report as a JSON-safe dict.
    The 'kind' field tells the three shapes apart: parsed, decode_error, raw.
    """
    data: Dict[str, Any] = {
        'peer': f"{report.peer[0]}:{report.peer[1]}",
        'received_at': report.received_at.isoformat(),
    }

    if isinstance(report, ParsedReport):
        data['kind'] = 'parsed'
        data.update(report.message.to_dict())
    elif isinstance(report, DecodeFailureReport):
        data['kind'] = 'decode_error'
        data['error'] = type(report.error).__name__
        data['detail'] = str(report.error)
        data['raw'] = report.raw
    elif isinstance(report, RawLineReport):
        data['kind'] = 'raw'
        data['line'] = report.line
    else:
        raise TypeError(f"Unsupported report type: {type(report).__name__}")

    return data


class SyslogWriter:
    """Write one JSON object per report to a text stream (stdout by default)"""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream: TextIO = stream if stream is not None else sys.stdout

        # Connections write concurrently, one line at a time
        self.lock: threading.Lock = threading.Lock()

        # Flag to prevent writes after close
        self.is_closed: bool = False

    def write(self, report: Report) -> None:
        """Serialize and write a single report. Thread-safe."""
        if self.is_closed:
            logger.warning("Attempted write to closed SyslogWriter")
            return

        line = json.dumps(report_to_dict(report), ensure_ascii=False)

        with self.lock:
            # Double-check after acquiring lock
            if self.is_closed:
                return
            self.stream.write(line + '\n')
            self.stream.flush()

    def close(self) -> None:
        """Flush the stream and refuse further writes. The stream itself is not closed."""
        with self.lock:
            if self.is_closed:
                logger.debug("SyslogWriter already closed")
                return
            self.is_closed = True
            try:
                self.stream.flush()
            except (OSError, ValueError) as e:
                logger.error(f"Error flushing output stream: {e}")

    def __enter__(self) -> 'SyslogWriter':
        """Context manager entry"""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        """Context manager exit - flushes and closes the writer"""
        self.close()
        return False  # Don't suppress exceptions


class LoggingSink:
    """Report through the logging module, one line per message"""

    def __init__(self, sink_logger: Optional[logging.Logger] = None) -> None:
        self.logger: logging.Logger = sink_logger or logging.getLogger('syslog_receiver.messages')

    def write(self, report: Report) -> None:
        peer = f"{report.peer[0]}:{report.peer[1]}"
        received_at = report.received_at.strftime('%Y-%m-%d %H:%M:%S')

        if isinstance(report, ParsedReport):
            msg = report.message
            self.logger.info(
                f"[{received_at}] {peer} {msg.facility_name}.{msg.severity_name} "
                f"host={msg.hostname or '-'} app={msg.app_name or '-'} "
                f"procid={msg.proc_id or '-'} msgid={msg.msg_id or '-'} "
                f"sd={[element.to_dict() for element in msg.structured_data]} "
                f"msg={msg.message!r}"
            )
        elif isinstance(report, DecodeFailureReport):
            self.logger.warning(
                f"[{received_at}] {peer} {type(report.error).__name__}: {report.error} "
                f"raw={report.raw!r}"
            )
        else:
            self.logger.info(f"[{received_at}] Message from {peer}: {report.line!r}")

    def close(self) -> None:
        """Nothing to release, the logger outlives the sink"""
