"""Receiver configuration, loaded from environment variables"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .framing import FramingMode

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
OUTPUT_FORMATS = ('json', 'log')


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('true', '1', 'yes')


def _parse_optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    return int(value)


@dataclass(frozen=True)
class Config:
    host: str = '0.0.0.0'
    port: int = 6601
    buffer_size: int = 8192
    framing: FramingMode = FramingMode.READ
    max_connections: Optional[int] = None
    merge_sd_ids: bool = False
    output: str = 'json'
    log_level: str = 'INFO'

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            raise ValueError(f"port out of range: {self.port}")
        if self.buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive: {self.buffer_size}")
        if self.max_connections is not None and self.max_connections <= 0:
            raise ValueError(f"max_connections must be positive: {self.max_connections}")
        if self.output not in OUTPUT_FORMATS:
            raise ValueError(f"output must be one of {OUTPUT_FORMATS}: {self.output!r}")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}: {self.log_level!r}")


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build Config from environment variables with sensible defaults."""
    env = os.environ if environ is None else environ
    return Config(
        host=env.get('SYSLOG_HOST', Config.host),
        port=int(env.get('SYSLOG_TCP_PORT', Config.port)),
        buffer_size=int(env.get('SYSLOG_BUFFER_SIZE', Config.buffer_size)),
        framing=FramingMode(env.get('SYSLOG_FRAMING', Config.framing.value).lower()),
        max_connections=_parse_optional_int(env.get('SYSLOG_MAX_CONNECTIONS')),
        merge_sd_ids=_parse_bool(env.get('SYSLOG_MERGE_SD_IDS', 'false')),
        output=env.get('SYSLOG_OUTPUT', Config.output).lower(),
        log_level=env.get('SYSLOG_LOG_LEVEL', Config.log_level).upper(),
    )
