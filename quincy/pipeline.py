"""
Engine pipeline — one call from (equipment, commitments, timeframe) to
stock matrix, conflicts and suggestions.

Pure: same inputs, same result. Caching belongs to whoever calls this
(see quincy.services.cache).

Usage:
    result = run_engine(items, commitments, WarningTimeframe.starting(today, 30))
    result.analysis.total_conflicts
    result.get_availability('spk-a', today)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from quincy.availability import get_available_quantity, is_equipment_overbooked
from quincy.calculations import StockMatrix, calculate_batch_effective_stock, index_booking_details
from quincy.conflicts import analyze_conflicts
from quincy.dates import parse_day
from quincy.suggestions import generate_subrental_suggestions
from quincy.types import (
    BookingCommitment,
    ConflictAnalysis,
    ConflictFilters,
    ConflictRecord,
    EffectiveStock,
    EquipmentItem,
    RentalPolicy,
    SeverityPolicy,
    SubrentalSuggestion,
    SuggestionFilters,
    WarningTimeframe,
)


@dataclass(frozen=True)
class EngineResult:
    """Everything the engine derived from one input snapshot."""

    timeframe: WarningTimeframe
    items: tuple[EquipmentItem, ...]
    stock: StockMatrix
    analysis: ConflictAnalysis = field(default_factory=ConflictAnalysis)
    suggestions: tuple[SubrentalSuggestion, ...] = ()

    @property
    def conflicts(self) -> tuple[ConflictRecord, ...]:
        return self.analysis.conflicts

    def get_effective_stock(self, item_id: str, day) -> EffectiveStock | None:
        return self.stock.get(item_id, {}).get(parse_day(day))

    def is_overbooked(self, item_id: str, day, additional_usage: int = 0) -> bool:
        stock = self.get_effective_stock(item_id, day)
        if stock is None:
            return False
        return is_equipment_overbooked(stock, additional_usage)

    def get_availability(self, item_id: str, day) -> int:
        stock = self.get_effective_stock(item_id, day)
        if stock is None:
            return 0
        return get_available_quantity(stock)

    def get_conflicts(self, filters: ConflictFilters | None = None) -> list[ConflictRecord]:
        """Conflicts narrowed by filters (a date range keeps overlapping conflicts)."""
        if filters is None:
            return list(self.conflicts)
        items = {item.id: item for item in self.items}
        result = []
        for conflict in self.conflicts:
            item = items.get(conflict.item_id)
            if item is not None and not filters.allows_item(item):
                continue
            if not filters.allows_severity(conflict.severity):
                continue
            if filters.start_date and conflict.end_date < filters.start_date:
                continue
            if filters.end_date and conflict.start_date > filters.end_date:
                continue
            result.append(conflict)
        return result

    def get_suggestions(self, filters: SuggestionFilters | None = None) -> list[SubrentalSuggestion]:
        if filters is None:
            return list(self.suggestions)
        return [
            s for s in self.suggestions
            if any(filters.allows_conflict(c) for c in s.conflicts) and filters.allows_suggestion(s)
        ]

    def as_dict(self) -> dict:
        """JSON-safe representation (dates as ISO strings, costs as strings)."""
        return {
            'timeframe': {
                'start_date': self.timeframe.start_date.isoformat(),
                'end_date': self.timeframe.end_date.isoformat(),
            },
            'stock': {
                item_id: [stock.as_dict() for stock in days.values()]
                for item_id, days in self.stock.items()
            },
            'analysis': self.analysis.as_dict(),
            'suggestions': [s.as_dict() for s in self.suggestions],
        }


def run_engine(items: Iterable[EquipmentItem],
               commitments: Iterable[BookingCommitment],
               timeframe: WarningTimeframe,
               conflict_filters: ConflictFilters | None = None,
               suggestion_filters: SuggestionFilters | None = None,
               severity_policy: SeverityPolicy | None = None,
               rental_policy: RentalPolicy | None = None,
               include_conflicts: bool = True,
               include_suggestions: bool = True,
               today: date | None = None) -> EngineResult:
    """
    Run the whole pipeline.

    Suggestions need conflicts; include_suggestions is ignored when
    include_conflicts is False. today defaults to timeframe.start_date.
    """
    items = tuple(items)
    commitments = list(commitments)
    stock = calculate_batch_effective_stock(items, commitments, timeframe.start_date, timeframe.end_date)

    if not include_conflicts:
        return EngineResult(timeframe=timeframe, items=items, stock=stock)

    bookings = index_booking_details(
        commitments,
        item_ids={item.id for item in items},
        start=timeframe.start_date,
        end=timeframe.end_date,
    )
    analysis = analyze_conflicts(
        stock, items, timeframe,
        filters=conflict_filters,
        policy=severity_policy,
        bookings=bookings,
        daily_unit_cost=rental_policy.daily_unit_cost if rental_policy else None,
    )

    suggestions: tuple[SubrentalSuggestion, ...] = ()
    if include_suggestions:
        suggestions = tuple(generate_subrental_suggestions(
            analysis,
            filters=suggestion_filters,
            policy=rental_policy,
            today=today or timeframe.start_date,
        ))

    return EngineResult(
        timeframe=timeframe,
        items=items,
        stock=stock,
        analysis=analysis,
        suggestions=suggestions,
    )
