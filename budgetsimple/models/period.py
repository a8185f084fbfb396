"""
Calendar-month periods for projections and month-over-month comparisons.

A :class:`Period` identifies a year and month with no day component. It is
immutable, hashable and totally ordered, and supports "N months after"
arithmetic with year rollover.
"""

import re
from datetime import date, datetime
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from .exceptions import InvalidPeriodFormat

PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-\d{2}$")


class Period(BaseModel):
    """A calendar month (year + month)."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999, description="Calendar year")
    month: int = Field(..., ge=1, le=12, description="Calendar month (1-12)")

    @classmethod
    def parse(cls, token: str) -> "Period":
        """
        Parse a strict ``YYYY-MM`` token.

        Args:
            token: The month token, e.g. ``"2025-05"``

        Returns:
            The parsed period

        Raises:
            InvalidPeriodFormat: If the token is not a valid calendar month
        """
        if not isinstance(token, str):
            raise InvalidPeriodFormat(f"Expected a YYYY-MM string, got {token!r}")

        match = PERIOD_PATTERN.fullmatch(token)
        if match is None:
            raise InvalidPeriodFormat(f"'{token}' must be in YYYY-MM format")

        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise InvalidPeriodFormat(f"'{token}' has an invalid month")
        if year < 1:
            raise InvalidPeriodFormat(f"'{token}' has an invalid year")
        return cls(year=year, month=month)

    @classmethod
    def coerce(cls, value: Union["Period", str, date]) -> "Period":
        """
        Build a period from a period, a ``YYYY-MM`` token, an ISO date
        string or a date.

        Milestone target dates arrive either as months or as full dates; the
        day is dropped.
        """
        if isinstance(value, Period):
            return value
        if isinstance(value, (date, datetime)):
            return cls.from_date(value)
        if isinstance(value, str) and DATE_PATTERN.fullmatch(value):
            try:
                return cls.from_date(date.fromisoformat(value))
            except ValueError as e:
                raise InvalidPeriodFormat(f"'{value}' is not a valid date") from e
        return cls.parse(value)

    @classmethod
    def from_date(cls, value: date) -> "Period":
        """Get the period containing a date."""
        return cls(year=value.year, month=value.month)

    @classmethod
    def current(cls) -> "Period":
        """Get the current calendar month."""
        return cls.from_date(date.today())

    @property
    def ordinal(self) -> int:
        """Months since year 0, used for arithmetic and ordering."""
        return self.year * 12 + (self.month - 1)

    def add_months(self, months: int) -> "Period":
        """Get the period ``months`` months after this one (may be negative)."""
        year, month_index = divmod(self.ordinal + months, 12)
        return Period(year=year, month=month_index + 1)

    def previous(self) -> "Period":
        """Get the month before this one."""
        return self.add_months(-1)

    def months_until(self, other: "Period") -> int:
        """Signed number of months from this period to ``other``."""
        return other.ordinal - self.ordinal

    def contains(self, value: date) -> bool:
        """Check whether a date falls within this month."""
        return value.year == self.year and value.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def __lt__(self, other: "Period") -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal < other.ordinal

    def __le__(self, other: "Period") -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal <= other.ordinal

    def __gt__(self, other: "Period") -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal > other.ordinal

    def __ge__(self, other: "Period") -> bool:
        if not isinstance(other, Period):
            return NotImplemented
        return self.ordinal >= other.ordinal

    @model_serializer
    def serialize(self) -> str:
        return str(self)
