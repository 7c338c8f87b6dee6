"""
Request date windows.
"""

from datetime import date, timedelta
from typing import Optional

from services.errors import ConfigurationIncomplete


def parse_date(value: str, name: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ConfigurationIncomplete(
            f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}",
            error="Invalid date",
            code="INVALID_DATE",
        ) from e


def resolve_window(
    start_date: Optional[str],
    end_date: Optional[str],
    default_days: int,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """
    Current reporting window from optional query parameters.

    With neither bound the window is the trailing `default_days` ending today.
    A single bound is completed using the same length.
    """
    today = today or date.today()
    start = parse_date(start_date, "startDate") if start_date else None
    end = parse_date(end_date, "endDate") if end_date else None

    if start is None and end is None:
        end = today
    if end is None:
        end = start + timedelta(days=default_days)
    if start is None:
        start = end - timedelta(days=default_days)

    if start > end:
        raise ConfigurationIncomplete(
            f"startDate {start.isoformat()} is after endDate {end.isoformat()}",
            error="Invalid date",
            code="INVALID_DATE",
        )
    return start, end


def trailing_days(end: date, days: int) -> list[date]:
    """The `days` calendar days ending at `end`, oldest first."""
    return [end - timedelta(days=i) for i in range(days - 1, -1, -1)]
