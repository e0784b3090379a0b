"""Unit tests for parse_timestamp"""

from datetime import datetime, timedelta, timezone

import pytest

from syslog_receiver.errors import InvalidTimestamp
from syslog_receiver.timestamp_parser import parse_timestamp

pytestmark = pytest.mark.unit


class TestParseTimestamp:
    """Tests for RFC 3339 timestamps"""

    def test_nil_value(self):
        """Test that '-' is an absent timestamp, not an error"""
        assert parse_timestamp('-') is None

    def test_utc(self):
        """Test a plain UTC timestamp"""
        assert parse_timestamp('2023-10-10T14:48:00Z') == datetime(
            2023, 10, 10, 14, 48, 0, tzinfo=timezone.utc
        )

    def test_result_is_timezone_aware(self):
        """Test that parsed timestamps always carry a timezone"""
        assert parse_timestamp('2023-10-10T14:48:00Z').tzinfo is not None

    def test_positive_offset(self):
        """Test a timestamp with a positive UTC offset"""
        parsed = parse_timestamp('2023-10-10T16:48:00+02:00')

        assert parsed.utcoffset() == timedelta(hours=2)
        assert parsed == datetime(2023, 10, 10, 14, 48, 0, tzinfo=timezone.utc)

    def test_negative_offset_with_minutes(self):
        """Test a timestamp with a negative offset including minutes"""
        parsed = parse_timestamp('2023-10-10T10:18:00-04:30')
        assert parsed == datetime(2023, 10, 10, 14, 48, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize('fraction,microsecond', [
        ('1', 100000),
        ('003', 3000),
        ('000003', 3),
        ('123456', 123456),
        ('123456789', 123456),
        ('9999999999999', 999999),
    ])
    def test_fraction_truncated_to_microseconds(self, fraction, microsecond):
        """Test that fractions of any length are accepted and truncated"""
        parsed = parse_timestamp(f'2023-10-10T14:48:00.{fraction}Z')
        assert parsed.microsecond == microsecond

    @pytest.mark.parametrize('token', [
        'not-a-time',
        '',
        '2023-10-10',
        '2023-10-10 14:48:00Z',
        '2023-10-10T14:48:00',
        '2023-10-10T14:48Z',
        '2023-10-10T14:48:00.Z',
        '2023-10-10T14:48:00+0200',
        '2023-10-10t14:48:00z',
        '23-10-10T14:48:00Z',
        'Oct 10 14:48:00',
    ])
    def test_malformed_shapes(self, token):
        """Test that anything not shaped like RFC 3339 is rejected"""
        with pytest.raises(InvalidTimestamp) as exc_info:
            parse_timestamp(token)

        assert exc_info.value.token == token

    @pytest.mark.parametrize('token', [
        '2023-13-10T14:48:00Z',
        '2023-02-30T14:48:00Z',
        '2023-10-10T24:00:00Z',
        '2023-10-10T14:60:00Z',
        '2016-12-31T23:59:60Z',
        '2023-10-10T14:48:00+24:00',
        '2023-10-10T14:48:00+01:60',
    ])
    def test_out_of_range_values(self, token):
        """Test that well-shaped but impossible values are rejected"""
        with pytest.raises(InvalidTimestamp):
            parse_timestamp(token)

    def test_error_message_names_token(self):
        """Test that the error is useful in diagnostics"""
        with pytest.raises(InvalidTimestamp, match='not-a-time'):
            parse_timestamp('not-a-time')
