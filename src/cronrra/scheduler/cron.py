"""Cron expression parser and evaluator.

Supports 5, 6 and 7 field expressions:
    - 5 fields: minute hour day-of-month month day-of-week
    - 6 fields: second minute hour day-of-month month day-of-week
    - 7 fields: second minute hour day-of-month month day-of-week year

A 5 field expression fires at second 0 of every matching minute.

Special characters:
    - * (any value), ? (no specific value, day fields only)
    - , (value list separator)
    - - (range of values, wraps around when start > end)
    - / (step values)
    - L, W, # (last, nearest weekday, nth weekday; day fields only)

Day-of-month and day-of-week combine like crontab: when both are restricted
a date matching either one matches.

Examples:
    "*/5 * * * *" - Every 5 minutes
    "*/15 * * * * *" - Every 15 seconds
    "0 9 * * MON-FRI" - 9 AM on weekdays
    "0 0 L * *" - Midnight on the last day of every month
    "0 12 ? * 5#3" - Noon on the third Friday of every month
    "0 0 0 1 1 ? 2030" - New Year 2030
"""

from datetime import date, datetime, timedelta
from typing import Iterator, NamedTuple

from cronrra.exceptions import CronSyntaxError
from cronrra.scheduler.fields import CronField, FieldKind, parse_field

FIELD_ORDER = (
    FieldKind.SECOND,
    FieldKind.MINUTE,
    FieldKind.HOUR,
    FieldKind.DAY_OF_MONTH,
    FieldKind.MONTH,
    FieldKind.DAY_OF_WEEK,
    FieldKind.YEAR,
)

# How far next_match() looks ahead before giving up
HORIZON_YEARS = 5


class CalendarFields(NamedTuple):
    """Calendar components of one instant, as cron sees them."""

    second: int
    minute: int
    hour: int
    day_of_month: int
    month: int
    day_of_week: int
    year: int

    @classmethod
    def from_datetime(cls, dt: datetime) -> "CalendarFields":
        # Python: Mon=0 ... Sun=6, cron: Sun=0, Mon=1 ... Sat=6
        return cls(
            dt.second,
            dt.minute,
            dt.hour,
            dt.day,
            dt.month,
            (dt.weekday() + 1) % 7,
            dt.year,
        )


class CronPattern:
    """Immutable compiled cron expression."""

    def __init__(self, expression: str):
        """Parse a cron expression.

        Args:
            expression: Cron expression string with 5, 6 or 7 fields

        Raises:
            CronSyntaxError: If expression format is invalid
        """
        if not isinstance(expression, str):
            raise CronSyntaxError(repr(expression), "expression must be a string")

        self._expression = expression.strip()
        parts = self._expression.split()

        if len(parts) not in (5, 6, 7):
            raise CronSyntaxError(
                expression,
                f"expected 5, 6 or 7 fields, got {len(parts)}",
            )

        self._field_count = len(parts)
        if len(parts) == 5:
            parts = ["0", *parts, "*"]
        elif len(parts) == 6:
            parts = [*parts, "*"]

        self._fields: tuple[CronField, ...] = tuple(
            parse_field(text, kind, expression) for kind, text in zip(FIELD_ORDER, parts)
        )

        if self.day_of_month.unspecified and self.day_of_week.unspecified:
            raise CronSyntaxError(
                expression, "'?' cannot be used in both day-of-month and day-of-week"
            )

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def fields(self) -> tuple[CronField, ...]:
        return self._fields

    @property
    def field_count(self) -> int:
        return self._field_count

    @property
    def has_second(self) -> bool:
        """Whether the expression carries its own second field."""
        return self._field_count >= 6

    @property
    def second(self) -> CronField:
        return self._fields[0]

    @property
    def minute(self) -> CronField:
        return self._fields[1]

    @property
    def hour(self) -> CronField:
        return self._fields[2]

    @property
    def day_of_month(self) -> CronField:
        return self._fields[3]

    @property
    def month(self) -> CronField:
        return self._fields[4]

    @property
    def day_of_week(self) -> CronField:
        return self._fields[5]

    @property
    def year(self) -> CronField:
        return self._fields[6]

    def matches(
        self,
        second: int,
        minute: int,
        hour: int,
        day_of_month: int,
        month: int,
        day_of_week: int,
        year: int,
    ) -> bool:
        """Check a calendar vector against the pattern.

        Args:
            day_of_week: 0-7, both 0 and 7 meaning Sunday

        Returns:
            True if every field accepts its component
        """
        return (
            self.second.matches(second)
            and self.minute.matches(minute)
            and self.hour.matches(hour)
            and self.month.matches(month)
            and self.year.matches(year)
            and self._matches_day(year, month, day_of_month, day_of_week % 7)
        )

    def matches_datetime(self, dt: datetime) -> bool:
        """Check if datetime matches the cron expression."""
        return self.matches(*CalendarFields.from_datetime(dt))

    def _matches_day(self, year: int, month: int, day_of_month: int, day_of_week: int) -> bool:
        dom, dow = self.day_of_month, self.day_of_week

        dom_ok = dom.matches(day_of_month, year, month, day_of_month)
        dow_ok = dow.matches(day_of_week, year, month, day_of_month)

        if dom.is_any:
            return dow_ok
        if dow.is_any:
            return dom_ok
        return dom_ok or dow_ok

    def _matches_date(self, day: date) -> bool:
        return (
            self.year.matches(day.year)
            and self.month.matches(day.month)
            and self._matches_day(day.year, day.month, day.day, (day.weekday() + 1) % 7)
        )

    def next_match(self, after: datetime | None = None) -> datetime | None:
        """Calculate the first matching time strictly after ``after``.

        The search walks forward day by day and only enumerates the time of
        day on matching dates, so second granularity costs no more than
        minute granularity.

        Args:
            after: Starting datetime (defaults to now). Its tzinfo is kept.

        Returns:
            Next matching datetime, or None when nothing matches within
            HORIZON_YEARS (e.g. February 30th)
        """
        if after is None:
            after = datetime.now()

        start = after.replace(microsecond=0) + timedelta(seconds=1)
        day = start.date()
        horizon = day + timedelta(days=366 * HORIZON_YEARS)

        hours = self.hour.candidates()
        minutes = self.minute.candidates()
        seconds = self.second.candidates()

        while day <= horizon:
            if not self.year.matches(day.year):
                day = date(day.year + 1, 1, 1) if day.year < 9999 else horizon + timedelta(days=1)
                continue
            if not self.month.matches(day.month):
                day = (day.replace(day=28) + timedelta(days=4)).replace(day=1)
                continue

            if self._matches_date(day):
                floor = (start.hour, start.minute, start.second) if day == start.date() else (0, 0, 0)
                for hour in hours:
                    if hour < floor[0]:
                        continue
                    for minute in minutes:
                        if (hour, minute) < floor[:2]:
                            continue
                        for second in seconds:
                            if (hour, minute, second) < floor:
                                continue
                            return datetime(
                                day.year, day.month, day.day, hour, minute, second,
                                tzinfo=after.tzinfo,
                            )

            day += timedelta(days=1)

        return None

    def iter_matches(
        self,
        start: datetime,
        end: datetime | None = None,
        count: int | None = None,
    ) -> Iterator[datetime]:
        """Yield successive matching times after ``start``.

        Args:
            start: Exclusive lower bound
            end: Inclusive upper bound (optional)
            count: Maximum number of results (optional)
        """
        produced = 0
        current = start
        while count is None or produced < count:
            current = self.next_match(current)
            if current is None or (end is not None and current > end):
                return
            yield current
            produced += 1

    def __eq__(self, other) -> bool:
        if not isinstance(other, CronPattern):
            return NotImplemented
        return (self._field_count, self._fields) == (other._field_count, other._fields)

    def __hash__(self) -> int:
        return hash((self._field_count, self._fields))

    def __str__(self) -> str:
        """String representation."""
        return self._expression

    def __repr__(self) -> str:
        """Developer representation."""
        return f"CronPattern('{self._expression}')"


def parse(expression: "str | CronPattern") -> CronPattern:
    """Compile an expression, passing already compiled patterns through.

    Raises:
        CronSyntaxError: If the expression is malformed
    """
    if isinstance(expression, CronPattern):
        return expression
    return CronPattern(expression)
