"""
Period-over-period trends.
"""

from datetime import date, timedelta


def percent_change(current: float, previous: float) -> float:
    """
    Percentage change from `previous` to `current`.

    A zero previous value gives 100 when something happened this period and
    0 otherwise. Values are neither rounded nor clamped.
    """
    if previous == 0:
        return 100 if current > 0 else 0
    return (current - previous) / previous * 100


def compute_trends(current: dict, previous: dict, fields: dict) -> dict:
    """
    Trends for same-named fields of two aggregates.

    Args:
        current: Current-window record
        previous: Prior-window record of the same shape
        fields: {output name: record field}, e.g. {"costTrend": "spend"}
    """
    return {
        out: percent_change(current.get(name, 0), previous.get(name, 0))
        for out, name in fields.items()
    }


def previous_period(start: date, end: date) -> tuple[date, date]:
    """The window of equal length ending the day before `start`."""
    length = end - start
    prev_end = start - timedelta(days=1)
    return prev_end - length, prev_end
