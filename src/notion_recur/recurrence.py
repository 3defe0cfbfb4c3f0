"""Interval parsing and next-due date arithmetic.

Month and year additions clamp to the last valid day of the target month,
so 2024-01-31 plus one month is 2024-02-29 and 2024-02-29 plus one year is
2025-02-28.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from notion_recur.errors import InvalidRecurringFormat
from notion_recur.tasks.model import IntervalUnit, ParsedInterval

_SPEC_RE = re.compile(r"^(\d+)\s+(\w+)")

_UNIT_WORDS: dict[str, IntervalUnit] = {
    "day": IntervalUnit.DAYS,
    "days": IntervalUnit.DAYS,
    "week": IntervalUnit.WEEKS,
    "weeks": IntervalUnit.WEEKS,
    "month": IntervalUnit.MONTHS,
    "months": IntervalUnit.MONTHS,
    "year": IntervalUnit.YEARS,
    "years": IntervalUnit.YEARS,
}

DUE_DATE_FORMAT = "%Y-%m-%d"


def parse_interval(spec: str | None) -> ParsedInterval:
    """Parse ``"<integer> <unit>"`` into a :class:`ParsedInterval`.

    Text after the unit word is ignored. Raises
    :class:`InvalidRecurringFormat` when the string does not start with a
    positive integer followed by a known unit.
    """
    match = _SPEC_RE.match(spec or "")
    if not match:
        raise InvalidRecurringFormat(spec)

    unit = _UNIT_WORDS.get(match.group(2).lower())
    amount = int(match.group(1))
    if unit is None or amount <= 0:
        raise InvalidRecurringFormat(spec)
    return ParsedInterval(amount=amount, unit=unit)


def compute_next_due(completed_on: date, interval: ParsedInterval) -> date:
    """Return *completed_on* shifted forward by *interval*.

    Raises :class:`InvalidRecurringFormat` when the result falls outside
    the supported calendar range.
    """
    if isinstance(completed_on, datetime):
        completed_on = completed_on.date()
    try:
        return completed_on + relativedelta(**{interval.unit.value: interval.amount})
    except (ValueError, OverflowError):
        # The shifted date falls outside the representable calendar.
        raise InvalidRecurringFormat(f"{interval.amount} {interval.unit.value}") from None


def format_due(due: date) -> str:
    return due.strftime(DUE_DATE_FORMAT)
