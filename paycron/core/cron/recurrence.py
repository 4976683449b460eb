"""RecurrenceRule — seconds-resolution cron expressions on top of APScheduler's CronTrigger."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Iterator

from apscheduler.triggers.cron import CronTrigger

from paycron.errors import ConfigurationError

# sec min hour day month day_of_week [year]
CRON_FIELDS = ("second", "minute", "hour", "day", "month", "day_of_week", "year")

# Numeric day_of_week: 1 = Sunday .. 7 = Saturday
WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")
_NUMERIC_RANGE = re.compile(r"\d+(-\d+)?")

_TICK = timedelta(microseconds=1)


class RecurrenceRule:
    """An infinite (or finite, with a bounded year field) schedule of UTC fire times.

    Holds no cursor: every ``upcoming`` call re-derives the sequence from
    the anchor it is given, so a host that slept through several slots
    simply resumes at the first slot after "now".
    """

    def __init__(self, expression: str):
        self.expression = expression
        self._trigger = _build_trigger(expression)

    def __repr__(self) -> str:
        return f"RecurrenceRule({self.expression!r})"

    def upcoming(self, after: datetime) -> Iterator[datetime]:
        """Yield fire times strictly after ``after``, ascending, lazily."""
        cursor = after
        while True:
            fire = self._trigger.get_next_fire_time(None, cursor + _TICK)
            if fire is None:
                return
            fire = fire.astimezone(timezone.utc)
            yield fire
            cursor = fire

    def next_after(self, after: datetime) -> datetime | None:
        """First fire time strictly after ``after``, or None when exhausted."""
        return next(self.upcoming(after), None)


def _build_trigger(expression: str) -> CronTrigger:
    """Parse a 6/7-field cron expression into a UTC ``CronTrigger``.

    Raises ``ConfigurationError`` on a wrong field count or any value
    APScheduler rejects.
    """
    fields = expression.split()
    if len(fields) not in (6, 7):
        raise ConfigurationError(
            f"Invalid schedule {expression!r}: expected 6 or 7 fields "
            f"(sec min hour day month day_of_week [year]), got {len(fields)}"
        )
    try:
        values = {name: _normalize(value) for name, value in zip(CRON_FIELDS, fields)}
        values["day_of_week"] = _weekday_names(values["day_of_week"])
        return CronTrigger(timezone=timezone.utc, **values)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid schedule {expression!r}: {e}") from e


def _normalize(value: str) -> str:
    # "?" (no specific value) behaves like "*"
    return "*" if value == "?" else value.lower()


def _weekday_names(value: str) -> str:
    """Rewrite numeric day_of_week entries (1 = Sunday .. 7 = Saturday) as names.

    Ranges and steps are expanded to explicit name lists. Named entries
    pass through unchanged.
    """
    names: list[str] = []
    for token in value.split(","):
        names.extend(_expand_weekday(token))
    return ",".join(names)


def _expand_weekday(token: str) -> list[str]:
    base, slash, step = token.partition("/")
    if base == "*":
        if not slash:
            return [token]
        first, last = 1, 7
    elif _NUMERIC_RANGE.fullmatch(base):
        start, _, end = base.partition("-")
        first = int(start)
        # "n/step" runs from n to the end of the week
        last = int(end) if end else (7 if slash else first)
    else:
        return [token]

    if slash and not step.isdigit():
        raise ValueError(f"invalid day_of_week step {token!r}")
    every = int(step) if slash else 1
    if every < 1 or not 1 <= first <= last <= 7:
        raise ValueError(f"day_of_week {token!r} out of range 1-7 (1 = Sunday)")
    return [WEEKDAYS[day - 1] for day in range(first, last + 1, every)]
