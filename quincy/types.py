"""
Engine types — plain, immutable records shared by every engine step.

Quincy defines these, the persistence layer fills them. Nothing in here
knows about the ORM, so the engine can be exercised with bare data:

    item = EquipmentItem(id='spk-a', name='Speaker-A', base_stock=10)
    booking = BookingCommitment.on('spk-a', date(2026, 5, 4), 12)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from quincy.exceptions import EngineError


class ConflictSeverity(str, Enum):
    """How bad an overbooking is. Ordered low → critical."""

    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value) -> ConflictSeverity:
        try:
            return cls(value)
        except ValueError:
            raise EngineError('INVALID_POLICY', severity=value) from None


_SEVERITY_RANK = {
    ConflictSeverity.LOW: 1,
    ConflictSeverity.MEDIUM: 2,
    ConflictSeverity.HIGH: 3,
    ConflictSeverity.CRITICAL: 4,
}


# ══════════════════════════════════════════════════════════════
# INPUTS
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EquipmentItem:
    """One inventory line. base_stock is whatever the backend declares."""

    id: str
    name: str
    base_stock: int
    code: str = ''
    folder_id: str | None = None
    folder_name: str = ''


@dataclass(frozen=True)
class BookingCommitment:
    """
    Quantity of an item committed by a scheduled event.

    Covers every calendar day from start_date to end_date, both inclusive.
    Single-day bookings have start_date == end_date.
    """

    equipment_id: str
    start_date: date
    end_date: date
    quantity: int
    event_id: str | None = None
    event_name: str = ''
    project_name: str = ''

    @classmethod
    def on(cls, equipment_id: str, day: date, quantity: int, **labels) -> BookingCommitment:
        """Single-day commitment."""
        return cls(equipment_id=equipment_id, start_date=day, end_date=day,
                   quantity=quantity, **labels)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def detail(self, day: date) -> BookingDetail:
        return BookingDetail(
            event_id=self.event_id,
            event_name=self.event_name,
            project_name=self.project_name,
            quantity=self.quantity,
            date=day,
        )


@dataclass(frozen=True)
class BookingDetail:
    """What a single commitment contributes to one day."""

    event_id: str | None
    event_name: str
    project_name: str
    quantity: int
    date: date

    def as_dict(self) -> dict:
        return {
            'event_id': self.event_id,
            'event_name': self.event_name,
            'project_name': self.project_name,
            'quantity': self.quantity,
            'date': self.date.isoformat(),
        }


@dataclass(frozen=True)
class WarningTimeframe:
    """Inclusive [start_date, end_date] window conflicts are looked for in."""

    start_date: date
    end_date: date

    @classmethod
    def starting(cls, today: date, days: int) -> WarningTimeframe:
        return cls(start_date=today, end_date=today + timedelta(days=days))

    @property
    def is_empty(self) -> bool:
        return self.end_date < self.start_date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def clip(self, start: date | None = None, end: date | None = None) -> WarningTimeframe:
        """Intersect with an optional [start, end] range."""
        return WarningTimeframe(
            start_date=max(self.start_date, start) if start else self.start_date,
            end_date=min(self.end_date, end) if end else self.end_date,
        )


# ══════════════════════════════════════════════════════════════
# DERIVED
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class EffectiveStock:
    """
    Stock left for one item on one day.

    available_quantity = base_stock - committed_quantity, and may be
    negative. A negative value is an overbooking.
    """

    item_id: str
    date: date
    base_stock: int
    committed_quantity: int
    available_quantity: int

    @property
    def is_overbooked(self) -> bool:
        return self.available_quantity < 0

    @property
    def deficit(self) -> int:
        return max(0, -self.available_quantity)

    def as_dict(self) -> dict:
        return {
            'item_id': self.item_id,
            'date': self.date.isoformat(),
            'base_stock': self.base_stock,
            'committed_quantity': self.committed_quantity,
            'available_quantity': self.available_quantity,
        }


@dataclass(frozen=True)
class StockBreakdown:
    """EffectiveStock plus the bookings that produced it."""

    effective_stock: EffectiveStock
    bookings: tuple[BookingDetail, ...] = ()


class SolutionType(str, Enum):
    SUBRENTAL = 'subrental'
    REDUCE_QUANTITY = 'reduce_quantity'
    SUBSTITUTE = 'substitute'
    RESCHEDULE = 'reschedule'


@dataclass(frozen=True)
class ConflictSolution:
    """One way out of a conflict, scored 0-100 by how feasible it usually is."""

    type: SolutionType
    description: str
    feasibility_score: int
    estimated_cost: Decimal = field(default_factory=lambda: Decimal('0'))

    def as_dict(self) -> dict:
        return {
            'type': self.type.value,
            'description': self.description,
            'feasibility_score': self.feasibility_score,
            'estimated_cost': str(self.estimated_cost),
        }


@dataclass(frozen=True)
class ConflictRecord:
    """
    Maximal run of consecutive overbooked days for one item.

    shortfall is the worst day of the run; worst_day is the EffectiveStock
    of that day (first one on ties). solutions are ordered most feasible first.
    """

    item_id: str
    item_name: str
    folder_id: str | None
    start_date: date
    end_date: date
    shortfall: int
    severity: ConflictSeverity
    worst_day: EffectiveStock
    affected_events: tuple[BookingDetail, ...] = ()
    solutions: tuple[ConflictSolution, ...] = ()

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def deficit_percentage(self) -> float:
        committed = self.worst_day.committed_quantity
        if committed <= 0:
            return 0.0
        return self.shortfall / committed * 100

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def as_dict(self) -> dict:
        return {
            'item_id': self.item_id,
            'item_name': self.item_name,
            'folder_id': self.folder_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'shortfall': self.shortfall,
            'severity': self.severity.value,
            'deficit_percentage': round(self.deficit_percentage, 2),
            'worst_day': self.worst_day.as_dict(),
            'affected_events': [event.as_dict() for event in self.affected_events],
            'solutions': [solution.as_dict() for solution in self.solutions],
        }


@dataclass(frozen=True)
class ConflictAnalysis:
    """Conflicts plus the counts dashboards show."""

    conflicts: tuple[ConflictRecord, ...] = ()

    @property
    def total_conflicts(self) -> int:
        return len(self.conflicts)

    @property
    def total_deficit(self) -> int:
        return sum(c.shortfall for c in self.conflicts)

    @property
    def affected_equipment_count(self) -> int:
        return len({c.item_id for c in self.conflicts})

    @property
    def urgent_conflict_count(self) -> int:
        return sum(1 for c in self.conflicts if c.severity.rank >= ConflictSeverity.HIGH.rank)

    def for_item(self, item_id: str) -> list[ConflictRecord]:
        return [c for c in self.conflicts if c.item_id == item_id]

    def for_date(self, day: date) -> list[ConflictRecord]:
        return [c for c in self.conflicts if c.covers(day)]

    def by_date(self) -> dict[date, list[ConflictRecord]]:
        """Conflicts keyed by every day they cover, days in order."""
        result: dict[date, list[ConflictRecord]] = {}
        for conflict in self.conflicts:
            day = conflict.start_date
            while day <= conflict.end_date:
                result.setdefault(day, []).append(conflict)
                day += timedelta(days=1)
        return dict(sorted(result.items()))

    def as_dict(self) -> dict:
        return {
            'conflicts': [c.as_dict() for c in self.conflicts],
            'total_conflicts': self.total_conflicts,
            'total_deficit': self.total_deficit,
            'affected_equipment_count': self.affected_equipment_count,
            'urgent_conflict_count': self.urgent_conflict_count,
        }


@dataclass(frozen=True)
class SubrentalSuggestion:
    """External rental proposed to cover one item's shortfall range."""

    item_id: str
    item_name: str
    start_date: date
    end_date: date
    shortfall: int
    quantity: int
    severity: ConflictSeverity
    urgency_score: int
    estimated_cost: Decimal
    conflicts: tuple[ConflictRecord, ...] = ()

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def as_dict(self) -> dict:
        return {
            'item_id': self.item_id,
            'item_name': self.item_name,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'shortfall': self.shortfall,
            'quantity': self.quantity,
            'severity': self.severity.value,
            'urgency_score': self.urgency_score,
            'estimated_cost': str(self.estimated_cost),
        }


# ══════════════════════════════════════════════════════════════
# FILTERS
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ConflictFilters:
    """Optional allow-lists. None means "no restriction"."""

    item_ids: frozenset[str] | None = None
    folder_ids: frozenset[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    severities: frozenset[ConflictSeverity] | None = None

    def allows_item(self, item: EquipmentItem) -> bool:
        if self.item_ids is not None and item.id not in self.item_ids:
            return False
        if self.folder_ids is not None and item.folder_id not in self.folder_ids:
            return False
        return True

    def allows_severity(self, severity: ConflictSeverity) -> bool:
        return self.severities is None or severity in self.severities

    def cache_key(self) -> tuple:
        return (
            tuple(sorted(self.item_ids)) if self.item_ids is not None else None,
            tuple(sorted(self.folder_ids)) if self.folder_ids is not None else None,
            self.start_date,
            self.end_date,
            tuple(sorted(s.value for s in self.severities)) if self.severities is not None else None,
        )


@dataclass(frozen=True)
class SuggestionFilters:
    """
    Narrow suggestion generation.

    item_ids, the date window and min_deficit are applied to conflicts
    before any suggestion is built; max_cost and urgency_threshold apply
    to the finished suggestions.
    """

    item_ids: frozenset[str] | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_deficit: int | None = None
    max_cost: Decimal | None = None
    urgency_threshold: int | None = None

    def allows_conflict(self, conflict: ConflictRecord) -> bool:
        if self.item_ids is not None and conflict.item_id not in self.item_ids:
            return False
        if self.start_date and conflict.end_date < self.start_date:
            return False
        if self.end_date and conflict.start_date > self.end_date:
            return False
        if self.min_deficit is not None and conflict.shortfall < self.min_deficit:
            return False
        return True

    def allows_suggestion(self, suggestion: SubrentalSuggestion) -> bool:
        if self.max_cost is not None and suggestion.estimated_cost > self.max_cost:
            return False
        if self.urgency_threshold is not None and suggestion.urgency_score < self.urgency_threshold:
            return False
        return True

    def cache_key(self) -> tuple:
        return (
            tuple(sorted(self.item_ids)) if self.item_ids is not None else None,
            self.start_date,
            self.end_date,
            self.min_deficit,
            str(self.max_cost) if self.max_cost is not None else None,
            self.urgency_threshold,
        )


# ══════════════════════════════════════════════════════════════
# POLICIES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SeverityPolicy:
    """
    Thresholds for classifying a conflict from its worst day.

    Ratios compare shortfall and committed quantity against base stock.
    """

    critical_ratio: float = 1.0
    high_ratio: float = 0.5
    medium_ratio: float = 0.2
    high_usage: float = 2.0
    medium_usage: float = 1.5

    def __post_init__(self):
        if not (0 <= self.medium_ratio <= self.high_ratio <= self.critical_ratio):
            raise EngineError(
                'INVALID_POLICY',
                medium_ratio=self.medium_ratio,
                high_ratio=self.high_ratio,
                critical_ratio=self.critical_ratio,
            )
        if not (0 <= self.medium_usage <= self.high_usage):
            raise EngineError(
                'INVALID_POLICY',
                medium_usage=self.medium_usage,
                high_usage=self.high_usage,
            )

    def classify(self, stock: EffectiveStock) -> ConflictSeverity:
        base = stock.base_stock
        if base <= 0:
            return ConflictSeverity.CRITICAL

        deficit_ratio = stock.deficit / base
        usage_ratio = stock.committed_quantity / base

        if deficit_ratio > self.critical_ratio:
            return ConflictSeverity.CRITICAL
        if deficit_ratio > self.high_ratio or usage_ratio > self.high_usage:
            return ConflictSeverity.HIGH
        if deficit_ratio > self.medium_ratio or usage_ratio > self.medium_usage:
            return ConflictSeverity.MEDIUM
        return ConflictSeverity.LOW


@dataclass(frozen=True)
class RentalPolicy:
    """
    How shortfalls turn into rental quantities.

    quantity = shortfall + buffer, rounded up to a multiple of pack_size.
    Conflicts below min_severity get no suggestion.
    """

    pack_size: int = 1
    buffer: int = 0
    min_severity: ConflictSeverity = ConflictSeverity.LOW
    daily_unit_cost: Decimal = field(default_factory=lambda: Decimal('150'))

    def __post_init__(self):
        if self.pack_size < 1 or self.buffer < 0 or self.daily_unit_cost < 0:
            raise EngineError(
                'INVALID_POLICY',
                pack_size=self.pack_size,
                buffer=self.buffer,
                daily_unit_cost=self.daily_unit_cost,
            )

    def rental_quantity(self, shortfall: int) -> int:
        needed = shortfall + self.buffer
        return -(-needed // self.pack_size) * self.pack_size
