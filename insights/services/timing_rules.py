"""
Medication timing-interaction rules.

A fixed, ordered rule table maps medication-name fragments and context-tag
conditions to timing hints. Matching is case-insensitive substring matching on
both the medication name and each tag, so "Iron supplement" matches "iron"
and a "low-fat dairy" tag counts as dairy.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import structlog

from insights.domain.models import Confidence, RecentMedication, TimingHint

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TimingRule:
    """One row of the interaction table."""

    rule_id: str
    medications: tuple[str, ...]
    tags: tuple[str, ...]
    confidence: Confidence
    message: str
    window: str
    fires_when_tag_absent: bool = False

    def matches(self, medication: str, tags: Sequence[str]) -> bool:
        if not any(fragment in medication for fragment in self.medications):
            return False
        tag_present = any(fragment in tag for tag in tags for fragment in self.tags)
        return not tag_present if self.fires_when_tag_absent else tag_present

    def to_hint(self) -> TimingHint:
        return TimingHint(
            rule_id=self.rule_id,
            confidence=self.confidence,
            message=self.message,
            window=self.window,
        )


TIMING_RULES: tuple[TimingRule, ...] = (
    TimingRule(
        rule_id="tetracycline-dairy",
        medications=("doxycycline", "tetracycline"),
        tags=("dairy", "calcium"),
        confidence=Confidence.HIGH,
        message="Space tetracycline and dairy by 2+ hours for better absorption",
        window="2+ hours",
    ),
    TimingRule(
        rule_id="iron-coffee",
        medications=("iron",),
        tags=("coffee", "tea"),
        confidence=Confidence.HIGH,
        message="Space iron and coffee/tea by 1-2 hours for better absorption",
        window="1-2 hours",
    ),
    TimingRule(
        rule_id="levothyroxine-food",
        medications=("levothyroxine", "synthroid"),
        tags=("meal", "food", "breakfast"),
        confidence=Confidence.HIGH,
        message="Take levothyroxine 30-60 min before food for best absorption",
        window="30-60 min before",
    ),
    TimingRule(
        rule_id="iron-calcium",
        medications=("iron",),
        tags=("dairy", "calcium"),
        confidence=Confidence.HIGH,
        message="Space iron and calcium/dairy by 1-2 hours",
        window="1-2 hours",
    ),
    TimingRule(
        rule_id="ppi-meal",
        medications=("omeprazole", "ppi", "pantoprazole", "lansoprazole"),
        tags=("meal",),
        confidence=Confidence.MEDIUM,
        message="Take PPI 30-60 min before meal for best effect",
        window="30-60 min before",
    ),
    TimingRule(
        rule_id="nsaid-food",
        medications=("ibuprofen", "naproxen", "nsaid"),
        tags=("meal", "food"),
        confidence=Confidence.MEDIUM,
        message="Take NSAIDs with food to reduce stomach irritation",
        window="with food",
        fires_when_tag_absent=True,
    ),
)


def evaluate_timing_hints(
    current_med: str | None = None,
    current_tags: Iterable[str] | None = None,
    recent_meds: Sequence[RecentMedication] | None = None,
    max_hints: int = 2,
) -> list[TimingHint]:
    """
    Evaluate the rule table for one medication against the current context.

    Every matching rule fires, in table order; the result is truncated to
    ``max_hints``. With no medication and no recent medications the result is
    empty.
    """
    recent_meds = recent_meds or []
    if not current_med and not recent_meds:
        return []

    medication = (current_med or "").lower()
    tags = [tag.lower() for tag in current_tags or ()]

    hints = [rule.to_hint() for rule in TIMING_RULES if rule.matches(medication, tags)]
    if hints:
        logger.debug(
            "timing_rules_matched",
            medication=medication,
            rule_ids=[hint.rule_id for hint in hints],
        )
    return hints[:max_hints]


def evaluate_timing_rules(medication: str, contexts: Iterable[str]) -> list[TimingHint]:
    """Shorthand for evaluating one medication against a list of context tags."""
    return evaluate_timing_hints(current_med=medication, current_tags=contexts)


def merge_timing_hints(
    batches: Iterable[Iterable[TimingHint]], limit: int | None = None
) -> list[TimingHint]:
    """
    Merge hint batches from several medications.

    Keeps one hint per rule id (the highest-confidence one, first seen on
    ties), sorted by confidence descending and optionally truncated.
    """
    unique: dict[str, TimingHint] = {}
    for batch in batches:
        for hint in batch:
            existing = unique.get(hint.rule_id)
            if existing is None or hint.confidence.rank > existing.confidence.rank:
                unique[hint.rule_id] = hint

    merged = sorted(unique.values(), key=lambda hint: hint.confidence.rank, reverse=True)
    return merged if limit is None else merged[:limit]
