"""
Small numeric and clock helpers shared by the insight calculators.

Timestamps are compared on the reference clock (``now``): aware values are
converted into its zone and naive values are read as wall-clock time there.
"""

import math
from collections.abc import Iterable
from datetime import datetime, timedelta


def local_now() -> datetime:
    """Current time as an aware datetime in the system zone."""
    return datetime.now().astimezone()


def align(ts: datetime, now: datetime) -> datetime:
    """Express ``ts`` in the same zone (or naivety) as ``now``."""
    if now.tzinfo is None:
        if ts.tzinfo is None:
            return ts
        return ts.astimezone().replace(tzinfo=None)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=now.tzinfo)
    return ts.astimezone(now.tzinfo)


def days_ago(now: datetime, days: int) -> datetime:
    return now - timedelta(days=days)


def mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def safe_div(a: float, b: float) -> float:
    return 0.0 if b == 0 else a / b


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator does (2.5 -> 3), not banker's rounding."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def whole_hours_between(later: datetime, earlier: datetime) -> int:
    """Whole hours from ``earlier`` to ``later``, truncated toward zero."""
    return int((later - earlier).total_seconds() / 3600)
