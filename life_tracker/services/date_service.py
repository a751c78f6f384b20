"""
Date calculation service.
Handles the UTC "today" used for streaks and calendar-day parsing.
"""
import calendar
from datetime import datetime, date, timezone
from typing import Tuple

from life_tracker.exceptions import ValidationException


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def get_today() -> date:
        """
        Get today's calendar date in UTC.

        Habit logs are keyed by UTC day, so streaks compare against this
        rather than the server's local date.
        """
        return datetime.now(timezone.utc).date()

    @staticmethod
    def parse_date(date_str: str) -> date:
        """
        Parse a "YYYY-MM-DD" string into a date.

        Raises:
            ValidationException: If the string is not a valid ISO date
        """
        try:
            return date.fromisoformat(date_str)
        except (TypeError, ValueError):
            raise ValidationException("date", f"Invalid date '{date_str}'. Use YYYY-MM-DD")

    @staticmethod
    def days_between(later: date, earlier: date) -> int:
        """Whole days from earlier to later (negative if earlier is in the future)"""
        return (later - earlier).days

    @staticmethod
    def get_month_range(year: int, month: int) -> Tuple[date, date]:
        """
        Get first and last day of a month.

        Raises:
            ValidationException: If month is outside 1-12
        """
        if not 1 <= month <= 12:
            raise ValidationException("month", "Must be between 1 and 12")
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)
