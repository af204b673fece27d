"""Calendar-day value used for provider as-of dates."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from functools import total_ordering

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S%z"
NULL_LITERAL = "null"

# Provider timestamps look like ``2024-12-26 12:43:00+00``; the offset may
# carry hours only, hours and minutes, or be the literal ``Z``.
_TIMESTAMP_RE = re.compile(
    r"^(?P<stamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})"
    r"(?P<offset>Z|[+-]\d{2}(?::?\d{2})?)$"
)


class InvalidDate(ValueError):
    """Raised when a date string matches none of the accepted layouts."""


@total_ordering
class BusinessDate:
    """A calendar day without time of day, or the distinguished zero value."""

    __slots__ = ("_day",)

    def __init__(self, day: date | None = None) -> None:
        if isinstance(day, datetime):
            day = _utc_day(day)
        self._day = day

    @classmethod
    def zero(cls) -> "BusinessDate":
        return cls(None)

    @classmethod
    def parse(cls, raw: str | None) -> "BusinessDate":
        """Parse ``YYYY-MM-DD`` or a provider timestamp; ``null``/empty give zero."""

        if raw is None:
            return cls.zero()
        value = raw.strip().strip('"').strip()
        if not value or value == NULL_LITERAL:
            return cls.zero()

        try:
            return cls(datetime.strptime(value, DATE_FORMAT).date())
        except ValueError:
            pass

        match = _TIMESTAMP_RE.match(value)
        if match is None:
            raise InvalidDate(f"parse date {raw!r}: expected YYYY-MM-DD or YYYY-MM-DD HH:MM:SS+ZZ")
        offset = match.group("offset")
        if offset == "Z":
            offset = "+0000"
        elif len(offset) == 3:
            offset = f"{offset}00"
        try:
            parsed = datetime.strptime(f"{match.group('stamp')}{offset}", DATETIME_FORMAT)
        except ValueError as exc:
            raise InvalidDate(f"parse date {raw!r}: {exc}") from exc
        return cls(_utc_day(parsed))

    @classmethod
    def parse_day(cls, raw: str | None) -> "BusinessDate":
        """Parse a bare ``YYYY-MM-DD`` day; empty input and timestamps are rejected."""

        value = (raw or "").strip()
        try:
            return cls(datetime.strptime(value, DATE_FORMAT).date())
        except ValueError as exc:
            raise InvalidDate(f"parse date {raw!r}: expected YYYY-MM-DD") from exc

    def is_zero(self) -> bool:
        return self._day is None

    def to_date(self) -> date | None:
        return self._day

    def format(self) -> str:
        if self._day is None:
            return NULL_LITERAL
        return self._day.strftime(DATE_FORMAT)

    def to_json(self) -> str | None:
        """Return the JSON-friendly form: ``None`` for zero, ISO day otherwise."""

        if self._day is None:
            return None
        return self.format()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BusinessDate):
            return NotImplemented
        return self._day == other._day

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BusinessDate):
            return NotImplemented
        if self._day is None:
            return other._day is not None
        if other._day is None:
            return False
        return self._day < other._day

    def __hash__(self) -> int:
        return hash(self._day)

    def __bool__(self) -> bool:
        return self._day is not None

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"BusinessDate({self.format()})"


def _utc_day(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


__all__ = ["BusinessDate", "InvalidDate", "DATE_FORMAT"]
