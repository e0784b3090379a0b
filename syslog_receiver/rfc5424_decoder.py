import re
from typing import List, Optional, Pattern, Tuple, Union

from .errors import IncompleteHeader, MalformedHeader, UnbalancedBracket, UnsupportedVersion
from .models import DecodedMessage
from .structured_data import SDElement, StructuredDataParser
from .timestamp_parser import NIL_VALUE, parse_timestamp

MAX_PRIORITY = 191
SUPPORTED_VERSION = '1'
BOM = '\ufeff'


class RFC5424Decoder:
    """
    Decode RFC 5424 syslog messages

        <PRI>VERSION SP TIMESTAMP SP HOSTNAME SP APP-NAME SP PROCID SP MSGID
            SP STRUCTURED-DATA [SP MSG]

    Header tokens may be separated by any run of whitespace. The message body
    is everything after the structured data minus one separator, verbatim.
    """
    PRI_PATTERN: Pattern[str] = re.compile(r'<(?P<pri>\d{1,3})>', re.ASCII)
    TOKEN_PATTERN: Pattern[str] = re.compile(r'\s*(\S+)')
    HEADER_FIELDS: Tuple[str, ...] = (
        'version', 'timestamp', 'hostname', 'app_name', 'proc_id', 'msg_id'
    )

    def __init__(self, merge_duplicate_ids: bool = False) -> None:
        self.sd_parser: StructuredDataParser = StructuredDataParser(merge_duplicate_ids)

    def decode(self, raw: Union[bytes, str]) -> DecodedMessage:
        """
        Decode one message. Raises a DecodeError subclass on malformed input;
        never returns a partially filled message.
        """
        text = raw.decode('utf-8', errors='replace') if isinstance(raw, bytes) else raw

        priority, pos = self._parse_priority(text)
        tokens, pos = self._read_header_tokens(text, pos)
        version, timestamp, hostname, app_name, proc_id, msg_id = tokens

        if version != SUPPORTED_VERSION:
            raise UnsupportedVersion(version)

        instant = parse_timestamp(timestamp)
        structured_data, pos = self._parse_structured_data(text, pos)

        return DecodedMessage(
            priority=priority,
            version=int(version),
            timestamp=instant,
            hostname=self._nil_to_none(hostname),
            app_name=self._nil_to_none(app_name),
            proc_id=self._nil_to_none(proc_id),
            msg_id=self._nil_to_none(msg_id),
            structured_data=structured_data,
            message=self._extract_body(text, pos),
        )

    def _parse_priority(self, text: str) -> Tuple[int, int]:
        match = self.PRI_PATTERN.match(text)
        if not match:
            raise MalformedHeader(f'missing or invalid <PRI> in {text[:16]!r}')

        digits = match.group('pri')
        if len(digits) > 1 and digits.startswith('0'):
            raise MalformedHeader(f'leading zero in priority {digits!r}')

        priority = int(digits)
        if priority > MAX_PRIORITY:
            raise MalformedHeader(f'priority {priority} out of range 0-{MAX_PRIORITY}')

        return priority, match.end()

    def _read_header_tokens(self, text: str, pos: int) -> Tuple[List[str], int]:
        tokens: List[str] = []
        for name in self.HEADER_FIELDS:
            match = self.TOKEN_PATTERN.match(text, pos)
            if not match:
                raise IncompleteHeader(
                    f'header ends before {name.upper()} ({len(tokens)} of '
                    f'{len(self.HEADER_FIELDS)} tokens)'
                )
            tokens.append(match.group(1))
            pos = match.end()
        return tokens, pos

    def _parse_structured_data(self, text: str, pos: int) -> Tuple[Tuple[SDElement, ...], int]:
        start = pos
        while start < len(text) and text[start].isspace():
            start += 1

        if start == pos or start >= len(text):
            raise IncompleteHeader('missing STRUCTURED-DATA')

        if text[start] == NIL_VALUE:
            end = start + 1
            if end == len(text) or text[end].isspace():
                return (), end
        elif text[start] == '[':
            elements, end = self.sd_parser.parse(text, start)
            if end == len(text) or text[end].isspace():
                return elements, end
            if text[end] == ']':
                raise UnbalancedBracket("']' without an open element", end)
            raise IncompleteHeader(
                f'expected a space after STRUCTURED-DATA, got {text[end:end + 16]!r}'
            )

        raise IncompleteHeader(
            f"expected STRUCTURED-DATA or '-', got {text[start:start + 16]!r}"
        )

    @staticmethod
    def _extract_body(text: str, pos: int) -> str:
        if pos < len(text) and text[pos].isspace():
            pos += 1
        body = text[pos:]
        if body.startswith(BOM):
            body = body[len(BOM):]
        return body

    @staticmethod
    def _nil_to_none(token: str) -> Optional[str]:
        return None if token == NIL_VALUE else token


_default_decoder = RFC5424Decoder()


def decode(raw: Union[bytes, str]) -> DecodedMessage:
    """Decode with the default (non-merging) decoder"""
    return _default_decoder.decode(raw)
