from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

from dateutil.relativedelta import relativedelta

QUARTER_MONTHS = 3


@dataclass(frozen=True)
class DateContext:
    """Date boundaries the prompt offers for relative phrases ("last quarter", "this year")."""
    today: date
    quarter_start: date
    quarter_end: date
    year_start: date

    def as_prompt_vars(self) -> Dict[str, str]:
        return {
            "today": self.today.isoformat(),
            "quarter_start": self.quarter_start.isoformat(),
            "quarter_end": self.quarter_end.isoformat(),
            "year_start": self.year_start.isoformat(),
        }


def compute_date_context(today: Optional[date] = None) -> DateContext:
    """
    Derive the boundaries from `today` (defaults to the current date).

    quarter_start is the first day of the month three months back and
    quarter_end the first day of the current month, so "last quarter" means
    the three whole months before this one.
    """
    t = today or date.today()
    return DateContext(
        today=t,
        quarter_start=(t - relativedelta(months=QUARTER_MONTHS)).replace(day=1),
        quarter_end=t.replace(day=1),
        year_start=t.replace(month=1, day=1),
    )
