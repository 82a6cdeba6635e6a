"""
Subrental suggestions — what to rent in to cover the conflicts.

Conflicts of one item are merged by the same rule as the analyzer
(overlapping or adjacent ranges become one), so feeding the output of
several analyses in is safe. Each merged range becomes one suggestion
whose quantity is the worst shortfall passed through the RentalPolicy
(buffer, then rounding up to the pack size).

Urgency (0-100):
    severity   critical 40 · high 30 · medium 20 · low 10
    proximity  starts within 3 days 30 · 7 days 20 · 14 days 10
    deficit    shortfall/committed ≥ 0.5 → 30 · ≥ 0.3 → 20 · ≥ 0.1 → 10
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from quincy.dates import merge_date_ranges, utc_today
from quincy.types import (
    ConflictAnalysis,
    ConflictRecord,
    ConflictSeverity,
    RentalPolicy,
    SubrentalSuggestion,
    SuggestionFilters,
)

logger = logging.getLogger('quincy')

SEVERITY_POINTS = {
    ConflictSeverity.CRITICAL: 40,
    ConflictSeverity.HIGH: 30,
    ConflictSeverity.MEDIUM: 20,
    ConflictSeverity.LOW: 10,
}

# (days until start, points), checked in order
PROXIMITY_POINTS = ((3, 30), (7, 20), (14, 10))

# (shortfall / committed, points), checked in order
DEFICIT_POINTS = ((0.5, 30), (0.3, 20), (0.1, 10))


def calculate_urgency_score(severity: ConflictSeverity,
                            start_date: date,
                            worst: ConflictRecord,
                            today: date) -> int:
    score = SEVERITY_POINTS[severity]

    days_until = (start_date - today).days
    for limit, points in PROXIMITY_POINTS:
        if days_until <= limit:
            score += points
            break

    committed = worst.worst_day.committed_quantity
    ratio = worst.shortfall / committed if committed > 0 else 1.0
    for threshold, points in DEFICIT_POINTS:
        if ratio >= threshold:
            score += points
            break

    return min(100, score)


def estimate_subrental_cost(quantity: int, days: int, daily_unit_cost: Decimal) -> Decimal:
    """Rough cost: units × days × per-unit daily rate."""
    return Decimal(quantity) * Decimal(days) * daily_unit_cost


def suggestion_priority(suggestion: SubrentalSuggestion) -> tuple:
    return (-suggestion.urgency_score, -suggestion.quantity, suggestion.start_date, suggestion.item_id)


def _group_by_range(conflicts: list[ConflictRecord]) -> list[tuple[date, date, list[ConflictRecord]]]:
    ranges = merge_date_ranges((c.start_date, c.end_date) for c in conflicts)
    groups = [(start, end, []) for start, end in ranges]
    for conflict in conflicts:
        for start, end, members in groups:
            if start <= conflict.start_date <= end:
                members.append(conflict)
                break
    return groups


def generate_subrental_suggestions(conflicts: ConflictAnalysis | Iterable[ConflictRecord],
                                   filters: SuggestionFilters | None = None,
                                   policy: RentalPolicy | None = None,
                                   today: date | None = None) -> list[SubrentalSuggestion]:
    """
    Propose external rentals for conflicts.

    Args:
        conflicts: ConflictAnalysis or any iterable of ConflictRecord
        filters: Scope (items, dates, min_deficit) and result limits
                 (max_cost, urgency_threshold)
        policy: Rounding/buffer/min severity/cost (defaults to RentalPolicy())
        today: Reference day for urgency (defaults to today in UTC)

    Returns:
        Suggestions, most urgent first
    """
    policy = policy or RentalPolicy()
    today = today or utc_today()
    if isinstance(conflicts, ConflictAnalysis):
        conflicts = conflicts.conflicts

    by_item: dict[str, list[ConflictRecord]] = defaultdict(list)
    for conflict in conflicts:
        if conflict.severity.rank < policy.min_severity.rank:
            continue
        if filters is not None and not filters.allows_conflict(conflict):
            continue
        by_item[conflict.item_id].append(conflict)

    suggestions = []
    for item_id, item_conflicts in by_item.items():
        for start, end, members in _group_by_range(item_conflicts):
            worst = max(members, key=lambda c: (c.shortfall, -c.start_date.toordinal()))
            severity = max((c.severity for c in members), key=lambda s: s.rank)
            quantity = policy.rental_quantity(worst.shortfall)
            days = (end - start).days + 1

            suggestion = SubrentalSuggestion(
                item_id=item_id,
                item_name=worst.item_name,
                start_date=start,
                end_date=end,
                shortfall=worst.shortfall,
                quantity=quantity,
                severity=severity,
                urgency_score=calculate_urgency_score(severity, start, worst, today),
                estimated_cost=estimate_subrental_cost(quantity, days, policy.daily_unit_cost),
                conflicts=tuple(sorted(members, key=lambda c: c.start_date)),
            )
            if filters is not None and not filters.allows_suggestion(suggestion):
                continue
            suggestions.append(suggestion)

    suggestions.sort(key=suggestion_priority)
    logger.debug("stock.suggestions.generated", extra={"suggestions": len(suggestions)})
    return suggestions
