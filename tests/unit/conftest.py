"""Shared fixtures: a fixed clock and small record factories."""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

import pytest

from insights.domain.models import Symptom

# Monday, noon UTC
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

_ids = itertools.count(1)


def make_symptom(
    name: str, severity: int, at: datetime, tags: Iterable[str] = ()
) -> Symptom:
    return Symptom(
        id=f"symptom-{next(_ids)}",
        name=name,
        severity=severity,
        timestamp=at,
        tags=frozenset(tags),
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def symptom_factory() -> Callable[..., Symptom]:
    return make_symptom
