# daycare/utils/datetime_utils.py
"""
Central date/time helpers.

Customer records carry date-only strings (YYYY-MM-DD) while photo uploads and
health checks use full ISO-8601 timestamps in UTC. Everything that produces
those strings goes through this module so the formats stay consistent.
"""

import logging
import time
from datetime import datetime, date, timezone
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """Date/time helpers shared across the application."""

    @staticmethod
    def now() -> datetime:
        """Current time as a UTC timezone-aware datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def today() -> date:
        return datetime.now(timezone.utc).date()

    @staticmethod
    def today_iso() -> str:
        """Today's date as YYYY-MM-DD (the created-date format of customer records)."""
        return DateTimeUtils.to_date_string(DateTimeUtils.today())

    @staticmethod
    def now_ms() -> int:
        return int(time.time() * 1000)

    @staticmethod
    def parse_date_string(date_string: str) -> date:
        """
        Parses a date string into a date object.

        Supported formats:
        - 2024-01-15
        - 2024/01/15
        - 2024-01-15T10:30:00Z (time part dropped)
        """
        try:
            if not date_string:
                raise ValueError("empty string cannot be parsed")
            return dateutil_parser.parse(date_string).date()
        except Exception as e:
            logger.error(f"Date string parse failed: {date_string} - {e}")
            raise ValueError(f"Invalid date format: {date_string}")

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime -> ISO-8601 string in UTC with a 'Z' suffix."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')

    @staticmethod
    def to_date_string(d: date) -> str:
        return d.strftime('%Y-%m-%d')

