"""Cron field parsing.

Each whitespace-separated part of a cron expression compiles to one
:class:`CronField`. Ranges and steps are expanded into a frozenset of values
up front so matching is a set lookup; the day fields additionally carry
calendar-dependent markers that need the year and month to evaluate.

Per-field grammar (comma-separated tokens):
    - * (any value), ? (no specific value, day fields only)
    - n, n-m (inclusive, wraps around when n > m), n/s, */s, n-m/s
    - L (last day of month), LW (last weekday of month), nW (nearest weekday)
    - d#n (nth weekday d of the month), dL (last weekday d of the month)
"""

import calendar
from dataclasses import dataclass
from enum import Enum

from cronrra.exceptions import CronSyntaxError


class FieldKind(Enum):
    """Calendar component constrained by a cron field, with its domain."""

    SECOND = ("second", 0, 59)
    MINUTE = ("minute", 0, 59)
    HOUR = ("hour", 0, 23)
    DAY_OF_MONTH = ("day of month", 1, 31)
    MONTH = ("month", 1, 12)
    DAY_OF_WEEK = ("day of week", 0, 7)
    YEAR = ("year", 1970, 2099)

    def __init__(self, label: str, min_value: int, max_value: int):
        self.label = label
        self.min_value = min_value
        self.max_value = max_value

    @property
    def is_day(self) -> bool:
        return self in (FieldKind.DAY_OF_MONTH, FieldKind.DAY_OF_WEEK)


MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"),
        start=1,
    )
}

WEEKDAY_NAMES = {
    name: number
    for number, name in enumerate(("SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"))
}

SATURDAY = 6


@dataclass(frozen=True)
class CronField:
    """Compiled matcher for one cron field.

    Attributes:
        kind: Calendar component this field constrains
        values: Exact accepted values (ranges and steps already expanded)
        is_any: True for ``*`` and ``?``, the field accepts everything
        unspecified: True for ``?`` only
        last_day: ``L`` in day-of-month
        last_weekday: ``LW`` in day-of-month
        nearest_weekday: Days given as ``nW`` in day-of-month
        nth_weekday: ``(weekday, occurrence)`` pairs given as ``d#n``
        last_of_weekday: Weekdays given as ``dL`` in day-of-week
    """

    kind: FieldKind
    values: frozenset[int] = frozenset()
    is_any: bool = False
    unspecified: bool = False
    last_day: bool = False
    last_weekday: bool = False
    nearest_weekday: frozenset[int] = frozenset()
    nth_weekday: frozenset[tuple[int, int]] = frozenset()
    last_of_weekday: frozenset[int] = frozenset()

    @property
    def has_special(self) -> bool:
        return bool(
            self.last_day
            or self.last_weekday
            or self.nearest_weekday
            or self.nth_weekday
            or self.last_of_weekday
        )

    def matches(self, value: int, year: int = 0, month: int = 0, day_of_month: int = 0) -> bool:
        """Check whether the field accepts ``value``.

        ``year``, ``month`` and ``day_of_month`` are only consulted by the
        calendar-dependent markers of the day fields.
        """
        if self.is_any or value in self.values:
            return True
        if not self.has_special:
            return False

        last = calendar.monthrange(year, month)[1]

        if self.kind is FieldKind.DAY_OF_MONTH:
            if self.last_day and value == last:
                return True
            if self.last_weekday and value == _last_weekday_of_month(year, month, last):
                return True
            return any(
                _nearest_weekday(year, month, day, last) == value
                for day in self.nearest_weekday
            )

        # Day of week: ``value`` is the weekday, ``day_of_month`` locates it
        occurrence = (day_of_month - 1) // 7 + 1
        if (value, occurrence) in self.nth_weekday:
            return True
        return value in self.last_of_weekday and day_of_month + 7 > last

    def candidates(self) -> tuple[int, ...]:
        """Sorted accepted values, for fields without calendar markers."""
        if self.is_any:
            return tuple(range(self.kind.min_value, self.kind.max_value + 1))
        return tuple(sorted(self.values))


def _last_weekday_of_month(year: int, month: int, last: int) -> int:
    weekday = calendar.weekday(year, month, last)
    if weekday == 5:
        return last - 1
    if weekday == 6:
        return last - 2
    return last


def _nearest_weekday(year: int, month: int, day: int, last: int) -> int | None:
    """Weekday closest to ``day`` without leaving the month."""
    if day > last:
        return None
    weekday = calendar.weekday(year, month, day)
    if weekday == 5:
        return day - 1 if day > 1 else day + 2
    if weekday == 6:
        return day + 1 if day < last else day - 2
    return day


def parse_field(text: str, kind: FieldKind, expression: str) -> CronField:
    """Compile one field of ``expression``.

    Raises:
        CronSyntaxError: If the field is malformed
    """
    parser = _FieldParser(kind, expression)
    return parser.parse(text)


class _FieldParser:
    def __init__(self, kind: FieldKind, expression: str):
        self.kind = kind
        self.expression = expression

    def error(self, reason: str) -> CronSyntaxError:
        return CronSyntaxError(self.expression, f"{self.kind.label} field: {reason}")

    def parse(self, text: str) -> CronField:
        tokens = text.upper().split(",")
        if any(not token for token in tokens):
            raise self.error(f"empty value in '{text}'")

        if "?" in tokens:
            if not self.kind.is_day:
                raise self.error("'?' is only allowed in day-of-month and day-of-week")
            if len(tokens) > 1:
                raise self.error("'?' cannot be combined with other values")
            return CronField(self.kind, is_any=True, unspecified=True)

        if tokens == ["*"]:
            return CronField(self.kind, is_any=True)

        values: set[int] = set()
        specials: dict = {
            "last_day": False,
            "last_weekday": False,
            "nearest_weekday": set(),
            "nth_weekday": set(),
            "last_of_weekday": set(),
        }
        special_count = 0

        for token in tokens:
            if self._parse_special(token, values, specials):
                special_count += 1
            else:
                values.update(self._parse_token(token))

        if special_count and len(tokens) > 1:
            raise self.error(f"special values cannot be combined with other values in '{text}'")

        if self.kind is FieldKind.DAY_OF_WEEK and 7 in values:
            values.discard(7)
            values.add(0)

        return CronField(
            self.kind,
            values=frozenset(values),
            last_day=specials["last_day"],
            last_weekday=specials["last_weekday"],
            nearest_weekday=frozenset(specials["nearest_weekday"]),
            nth_weekday=frozenset(specials["nth_weekday"]),
            last_of_weekday=frozenset(specials["last_of_weekday"]),
        )

    def _parse_special(self, token: str, values: set[int], specials: dict) -> bool:
        if self.kind is FieldKind.DAY_OF_MONTH:
            if token == "L":
                specials["last_day"] = True
                return True
            if token == "LW":
                specials["last_weekday"] = True
                return True
            if token.endswith("W"):
                specials["nearest_weekday"].add(self._parse_value(token[:-1]))
                return True

        elif self.kind is FieldKind.DAY_OF_WEEK:
            if "#" in token:
                weekday_text, _, occurrence_text = token.partition("#")
                weekday = self._parse_value(weekday_text) % 7
                if not occurrence_text.isdigit() or not 1 <= int(occurrence_text) <= 5:
                    raise self.error(f"occurrence in '{token}' must be between 1 and 5")
                specials["nth_weekday"].add((weekday, int(occurrence_text)))
                return True
            if token == "L":
                values.add(SATURDAY)
                return True
            if token.endswith("L"):
                specials["last_of_weekday"].add(self._parse_value(token[:-1]) % 7)
                return True

        is_name = token in MONTH_NAMES or token in WEEKDAY_NAMES
        if "#" in token or (token[-1] in ("L", "W") and not is_name):
            raise self.error(f"'{token}' is not supported in this field")
        return False

    def _parse_token(self, token: str) -> list[int]:
        kind = self.kind
        # Open-ended day-of-week ranges stop at Saturday, 7 is only an alias
        upper = SATURDAY if kind is FieldKind.DAY_OF_WEEK else kind.max_value

        if "/" in token:
            range_part, _, step_text = token.partition("/")
            if not step_text.isdigit():
                raise self.error(f"invalid step in '{token}'")
            step = int(step_text)
            span = kind.max_value - kind.min_value + 1
            if step < 1 or step > span:
                raise self.error(f"step in '{token}' must be between 1 and {span}")

            if range_part == "*":
                start, end = kind.min_value, upper
            elif "-" in range_part:
                start, end = self._parse_range(range_part)
            else:
                start, end = self._parse_value(range_part), upper

            return self._expand(start, end)[::step]

        if token == "*":
            return list(range(kind.min_value, kind.max_value + 1))

        if "-" in token:
            start, end = self._parse_range(token)
            return self._expand(start, end)

        return [self._parse_value(token)]

    def _parse_range(self, text: str) -> tuple[int, int]:
        start_text, _, end_text = text.partition("-")
        return self._parse_value(start_text), self._parse_value(end_text)

    def _expand(self, start: int, end: int) -> list[int]:
        upper = self.kind.max_value
        if self.kind is FieldKind.DAY_OF_WEEK:
            upper = SATURDAY
            if start == 7 and end < 7:
                start = 0

        if start <= end:
            return list(range(start, end + 1))

        # Wrap around the domain, e.g. hours 22-2 or FRI-MON
        return list(range(start, upper + 1)) + list(range(self.kind.min_value, end + 1))

    def _parse_value(self, text: str) -> int:
        names = {}
        if self.kind is FieldKind.MONTH:
            names = MONTH_NAMES
        elif self.kind is FieldKind.DAY_OF_WEEK:
            names = WEEKDAY_NAMES

        if text in names:
            return names[text]
        if not text.isdigit():
            raise self.error(f"invalid value '{text}'")

        value = int(text)
        if not self.kind.min_value <= value <= self.kind.max_value:
            raise self.error(
                f"value {value} out of range [{self.kind.min_value}, {self.kind.max_value}]"
            )
        return value
