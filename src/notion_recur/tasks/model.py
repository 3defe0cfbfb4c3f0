"""Task and interval data models used across the recurrence pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class IntervalUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


@dataclass(frozen=True)
class ParsedInterval:
    amount: int
    unit: IntervalUnit


@dataclass
class Task:
    id: str
    name: str = ""
    recurring_spec: str | None = None
    date_recurring: date | None = None
    date_completed: date | None = None
    status: str | None = None
    raw_properties: dict[str, Any] = field(default_factory=dict)

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurring_spec) or self.date_recurring is not None

    def is_due(self, today: date) -> bool:
        """Return ``True`` when the task should recur on *today*."""
        if self.date_recurring is None:
            return False
        return today >= self.date_recurring
