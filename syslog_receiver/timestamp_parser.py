import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Pattern

from .errors import InvalidTimestamp

NIL_VALUE = '-'

"""
RFC 3339 date-time as used by RFC 5424 TIMESTAMP:
    2003-10-11T22:14:15.003Z
    2003-08-24T05:14:15.000003-07:00
RFC 5424 caps the fraction at 6 digits; longer fractions are accepted here
and truncated to microseconds, the precision of datetime.
"""
RFC3339_PATTERN: Pattern[str] = re.compile(
    r'^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})'
    r'T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})'
    r'(?:\.(?P<fraction>\d+))?'
    r'(?P<offset>Z|[+-]\d{2}:\d{2})$',
    re.ASCII
)


def _parse_offset(offset: str, token: str) -> timezone:
    if offset == 'Z':
        return timezone.utc

    sign = -1 if offset[0] == '-' else 1
    hours = int(offset[1:3])
    minutes = int(offset[4:6])
    if hours > 23 or minutes > 59:
        raise InvalidTimestamp(token, 'offset out of range')

    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def parse_timestamp(token: str) -> Optional[datetime]:
    """
    Parse an RFC 5424 TIMESTAMP token.
    Returns None for the nil value '-', a timezone-aware datetime otherwise.
    Raises InvalidTimestamp (carrying the token) for anything else.
    """
    if token == NIL_VALUE:
        return None

    match = RFC3339_PATTERN.match(token)
    if not match:
        raise InvalidTimestamp(token)

    fields = match.groupdict()
    fraction = fields['fraction'] or ''
    microsecond = int(fraction[:6].ljust(6, '0'))
    tzinfo = _parse_offset(fields['offset'], token)

    try:
        return datetime(
            int(fields['year']),
            int(fields['month']),
            int(fields['day']),
            int(fields['hour']),
            int(fields['minute']),
            int(fields['second']),
            microsecond,
            tzinfo=tzinfo,
        )
    except ValueError as e:
        raise InvalidTimestamp(token, str(e)) from e
