"""
Conflict analysis — turn negative availability into conflict ranges.

For each item, the overbooked days inside the scanned window are merged
into maximal runs of consecutive days. Each run becomes one
ConflictRecord whose shortfall is the worst day of the run, because
that is what a caller has to provision for.

Severity is delegated to a SeverityPolicy; the analyzer itself holds no
thresholds.

Every conflict also carries its possible solutions, most feasible first:
    subrental        85  (cost = shortfall × days × daily unit cost)
    reduce_quantity  60  (only for a shortfall of 2 units or less)
    substitute       50
    reschedule       40
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal

from quincy.calculations import StockMatrix
from quincy.dates import contiguous_runs, generate_date_range
from quincy.suggestions import estimate_subrental_cost
from quincy.types import (
    BookingDetail,
    ConflictAnalysis,
    ConflictFilters,
    ConflictRecord,
    ConflictSolution,
    EquipmentItem,
    RentalPolicy,
    SeverityPolicy,
    SolutionType,
    WarningTimeframe,
)

logger = logging.getLogger('quincy')

BookingIndex = Mapping[tuple[str, date], tuple[BookingDetail, ...]]

REDUCE_QUANTITY_MAX_SHORTFALL = 2


def conflict_priority(conflict: ConflictRecord) -> tuple:
    """Sort key: severity, then shortfall (both worst first), then earliest, then item."""
    return (-conflict.severity.rank, -conflict.shortfall, conflict.start_date, conflict.item_id)


def generate_conflict_solutions(shortfall: int, days: int, daily_unit_cost: Decimal) -> tuple[ConflictSolution, ...]:
    """Possible ways to resolve a conflict, most feasible first."""
    solutions = [
        ConflictSolution(
            type=SolutionType.SUBRENTAL,
            description=f"Rent {shortfall} additional unit(s) from an external provider",
            feasibility_score=85,
            estimated_cost=estimate_subrental_cost(shortfall, days, daily_unit_cost),
        ),
        ConflictSolution(
            type=SolutionType.SUBSTITUTE,
            description="Use alternative compatible equipment",
            feasibility_score=50,
        ),
        ConflictSolution(
            type=SolutionType.RESCHEDULE,
            description="Reschedule conflicting events to different dates",
            feasibility_score=40,
        ),
    ]
    if shortfall <= REDUCE_QUANTITY_MAX_SHORTFALL:
        solutions.append(ConflictSolution(
            type=SolutionType.REDUCE_QUANTITY,
            description=f"Reduce equipment requirements by {shortfall} unit(s)",
            feasibility_score=60,
        ))
    return tuple(sorted(solutions, key=lambda s: -s.feasibility_score))


def _scan_window(timeframe: WarningTimeframe, filters: ConflictFilters | None) -> WarningTimeframe:
    if filters is None:
        return timeframe
    return timeframe.clip(filters.start_date, filters.end_date)


def _item_conflicts(item: EquipmentItem,
                    day_map: Mapping,
                    window: WarningTimeframe,
                    policy: SeverityPolicy,
                    bookings: BookingIndex | None,
                    daily_unit_cost: Decimal) -> list[ConflictRecord]:
    overbooked = [
        day for day, stock in day_map.items()
        if window.contains(day) and stock.available_quantity < 0
    ]

    records = []
    for start, end in contiguous_runs(overbooked):
        run = [day_map[day] for day in generate_date_range(start, end)]
        # max() keeps the first of equal elements, i.e. the earliest worst day
        worst = max(run, key=lambda stock: stock.deficit)

        affected: tuple[BookingDetail, ...] = ()
        if bookings:
            affected = tuple(
                detail
                for stock in run
                for detail in bookings.get((item.id, stock.date), ())
            )

        records.append(ConflictRecord(
            item_id=item.id,
            item_name=item.name,
            folder_id=item.folder_id,
            start_date=start,
            end_date=end,
            shortfall=worst.deficit,
            severity=policy.classify(worst),
            worst_day=worst,
            affected_events=affected,
            solutions=generate_conflict_solutions(
                worst.deficit, (end - start).days + 1, daily_unit_cost,
            ),
        ))
    return records


def analyze_conflicts(matrix: StockMatrix,
                      items: Iterable[EquipmentItem],
                      timeframe: WarningTimeframe,
                      filters: ConflictFilters | None = None,
                      policy: SeverityPolicy | None = None,
                      bookings: BookingIndex | None = None,
                      daily_unit_cost: Decimal | None = None) -> ConflictAnalysis:
    """
    Find every overbooked range in the matrix.

    Args:
        matrix: {item_id: {day: EffectiveStock}} from the batch calculator
        items: Equipment to scan (their matrix rows are looked up by id)
        timeframe: Warning window; only days inside it are scanned
        filters: Item/folder allow-lists, a date range that narrows the
                 scan window, and a severity allow-list
        policy: Severity thresholds (defaults to SeverityPolicy())
        bookings: Optional (item, day) → bookings index for affected_events
        daily_unit_cost: Rate for the subrental solution's cost estimate
                         (defaults to RentalPolicy().daily_unit_cost)

    Returns:
        ConflictAnalysis with conflicts in priority order
    """
    policy = policy or SeverityPolicy()
    if daily_unit_cost is None:
        daily_unit_cost = RentalPolicy().daily_unit_cost
    window = _scan_window(timeframe, filters)
    if window.is_empty:
        return ConflictAnalysis()

    conflicts = []
    for item in items:
        if filters is not None and not filters.allows_item(item):
            continue
        day_map = matrix.get(item.id)
        if not day_map:
            continue
        for record in _item_conflicts(item, day_map, window, policy, bookings, daily_unit_cost):
            if filters is not None and not filters.allows_severity(record.severity):
                continue
            conflicts.append(record)

    conflicts.sort(key=conflict_priority)
    logger.debug(
        "stock.conflicts.analyzed",
        extra={
            "window_start": str(window.start_date),
            "window_end": str(window.end_date),
            "conflicts": len(conflicts),
        },
    )
    return ConflictAnalysis(conflicts=tuple(conflicts))
