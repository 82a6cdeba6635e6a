"""
Stock calculations — effective stock per item per day.

    available = base_stock - committed

Nothing else touches the number. Subrentals, repairs and the like are
expected to be folded into base_stock upstream if a caller wants them.

The single-item form is handy for one-off checks. The batch form indexes
commitments by (item, day) once and then fills the item × day matrix
from the index, so it scales with items × days + commitments instead of
rescanning the commitment list for every cell.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from quincy.dates import ONE_DAY, generate_date_range, parse_day
from quincy.exceptions import EngineError
from quincy.types import BookingCommitment, BookingDetail, EffectiveStock, EquipmentItem, StockBreakdown

StockMatrix = dict[str, dict[date, EffectiveStock]]


def _effective(item: EquipmentItem, day: date, committed: int) -> EffectiveStock:
    return EffectiveStock(
        item_id=item.id,
        date=day,
        base_stock=item.base_stock,
        committed_quantity=committed,
        available_quantity=item.base_stock - committed,
    )


def _covered_days(commitment: BookingCommitment, start: date | None, end: date | None):
    first = max(commitment.start_date, start) if start else commitment.start_date
    last = min(commitment.end_date, end) if end else commitment.end_date
    day = first
    while day <= last:
        yield day
        day += ONE_DAY


def calculate_effective_stock(item: EquipmentItem,
                              commitments: Iterable[BookingCommitment],
                              day) -> EffectiveStock:
    """
    Effective stock for one item on one day.

    Args:
        item: Equipment being checked
        commitments: Any commitments; those for other items are ignored
        day: date or ISO string

    Returns:
        EffectiveStock (committed_quantity is 0 when nothing is booked)

    Raises:
        EngineError('INVALID_TIMEFRAME'): If day can't be read as a date
    """
    target = parse_day(day)
    if target is None:
        raise EngineError('INVALID_TIMEFRAME', day=day)

    committed = sum(
        c.quantity for c in commitments
        if c.equipment_id == item.id and c.covers(target)
    )
    return _effective(item, target, committed)


def index_commitments(commitments: Iterable[BookingCommitment],
                      item_ids: set[str] | None = None,
                      start: date | None = None,
                      end: date | None = None) -> dict[tuple[str, date], int]:
    """
    Sum committed quantity per (item, day).

    Commitments for items outside item_ids are skipped, and ranges are
    clipped to [start, end] when given.
    """
    index: dict[tuple[str, date], int] = defaultdict(int)
    for commitment in commitments:
        if item_ids is not None and commitment.equipment_id not in item_ids:
            continue
        for day in _covered_days(commitment, start, end):
            index[(commitment.equipment_id, day)] += commitment.quantity
    return dict(index)


def index_booking_details(commitments: Iterable[BookingCommitment],
                          item_ids: set[str] | None = None,
                          start: date | None = None,
                          end: date | None = None) -> dict[tuple[str, date], tuple[BookingDetail, ...]]:
    """Bookings behind each (item, day), in input order."""
    index: dict[tuple[str, date], list[BookingDetail]] = defaultdict(list)
    for commitment in commitments:
        if item_ids is not None and commitment.equipment_id not in item_ids:
            continue
        for day in _covered_days(commitment, start, end):
            index[(commitment.equipment_id, day)].append(commitment.detail(day))
    return {key: tuple(details) for key, details in index.items()}


def calculate_batch_effective_stock(items: Iterable[EquipmentItem],
                                    commitments: Iterable[BookingCommitment],
                                    start,
                                    end) -> StockMatrix:
    """
    Effective stock for many items over [start, end].

    Returns:
        {item_id: {day: EffectiveStock}} with items in input order and
        days ascending. Empty when end < start. Commitments for unknown
        items are ignored.
    """
    items = list(items)
    days = list(generate_date_range(start, end))
    if not days:
        return {item.id: {} for item in items}

    index = index_commitments(
        commitments,
        item_ids={item.id for item in items},
        start=days[0],
        end=days[-1],
    )

    return {
        item.id: {day: _effective(item, day, index.get((item.id, day), 0)) for day in days}
        for item in items
    }


def get_stock_breakdown(item: EquipmentItem,
                        commitments: Iterable[BookingCommitment],
                        day) -> StockBreakdown:
    """EffectiveStock for one item/day together with the bookings behind it."""
    commitments = list(commitments)
    stock = calculate_effective_stock(item, commitments, day)
    bookings = tuple(
        c.detail(stock.date) for c in commitments
        if c.equipment_id == item.id and c.covers(stock.date)
    )
    return StockBreakdown(effective_stock=stock, bookings=bookings)
