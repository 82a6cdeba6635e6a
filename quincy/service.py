"""
Stock Engine Service — The single public interface for stock availability.

Usage:
    from quincy import engine, EngineError

    engine.available(speaker, friday)         # 4
    engine.is_overbooked(speaker, friday, 5)  # True
    result = engine.analyze()                 # next 30 days
    result.analysis.total_conflicts
    engine.suggestions()
"""

import logging
from dataclasses import replace
from datetime import date

from django.db import DatabaseError

from quincy.availability import get_available_quantity, is_equipment_overbooked
from quincy.calculations import StockMatrix, calculate_batch_effective_stock, get_stock_breakdown
from quincy.conf import get_quincy_settings
from quincy.dates import parse_day, utc_today
from quincy.exceptions import EngineError
from quincy.models import Equipment
from quincy.pipeline import EngineResult, run_engine
from quincy.records import coerce_equipment_row
from quincy.services.cache import EngineCache
from quincy.services.queries import StockQueries
from quincy.types import (
    ConflictAnalysis,
    ConflictFilters,
    ConflictRecord,
    EffectiveStock,
    EquipmentItem,
    RentalPolicy,
    SeverityPolicy,
    StockBreakdown,
    SubrentalSuggestion,
    SuggestionFilters,
    WarningTimeframe,
)

logger = logging.getLogger('quincy')


class StockEngine:
    """
    Single interface for stock and conflict queries.

    Parameter convention: (equipment, day, ...)
    Follows natural language: "Is the speaker overbooked on Friday?"

    Everything here is read-only. Data is fetched through StockQueries,
    computed by the pure engine, and (for analyze) cached per input
    snapshot until equipment or bookings change.
    """

    # ══════════════════════════════════════════════════════════════
    # CONFIGURATION
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def timeframe(cls, today: date | None = None, days: int | None = None) -> WarningTimeframe:
        """
        Warning timeframe: today .. today + WARNING_DAYS (inclusive).

        Args:
            today: Reference day (None = today in UTC)
            days: Override WARNING_DAYS
        """
        if days is None:
            days = get_quincy_settings().WARNING_DAYS
        return WarningTimeframe.starting(today or utc_today(), days)

    @classmethod
    def window(cls, start, end) -> WarningTimeframe:
        """
        Arbitrary [start, end] window from dates or ISO strings.

        Raises:
            EngineError('INVALID_TIMEFRAME'): If a bound can't be parsed
        """
        start_day, end_day = parse_day(start), parse_day(end)
        if start_day is None or end_day is None:
            raise EngineError('INVALID_TIMEFRAME', start=str(start), end=str(end))
        return WarningTimeframe(start_date=start_day, end_date=end_day)

    @classmethod
    def severity_policy(cls) -> SeverityPolicy:
        return get_quincy_settings().severity_policy()

    @classmethod
    def rental_policy(cls) -> RentalPolicy:
        return get_quincy_settings().rental_policy()

    # ══════════════════════════════════════════════════════════════
    # SINGLE ITEM
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _item(cls, equipment) -> EquipmentItem:
        if not isinstance(equipment, Equipment):
            try:
                equipment = Equipment.objects.with_serial_count().select_related('folder').get(pk=equipment)
            except (Equipment.DoesNotExist, ValueError, TypeError):
                raise EngineError('EQUIPMENT_NOT_FOUND', equipment_id=str(equipment)) from None

        return coerce_equipment_row({
            'id': equipment.pk,
            'name': equipment.name,
            'code': equipment.code,
            'base_stock': equipment.base_stock,
            'folder_id': equipment.folder_id,
        })

    @classmethod
    def _day(cls, day) -> date:
        target = parse_day(day) if day is not None else utc_today()
        if target is None:
            raise EngineError('INVALID_TIMEFRAME', day=str(day))
        return target

    @classmethod
    def effective_stock(cls, equipment, day=None) -> EffectiveStock:
        """
        Effective stock of one equipment on one day.

        Args:
            equipment: Equipment instance or pk
            day: date or ISO string (None = today)

        Returns:
            EffectiveStock (available_quantity may be negative)
        """
        return cls.breakdown(equipment, day).effective_stock

    @classmethod
    def breakdown(cls, equipment, day=None) -> StockBreakdown:
        """Effective stock plus the event bookings behind it."""
        item = cls._item(equipment)
        target = cls._day(day)
        commitments = cls._fetch(
            lambda: StockQueries.commitments(target, target, equipment_ids=[item.id])
        )
        return get_stock_breakdown(item, commitments, target)

    @classmethod
    def is_overbooked(cls, equipment, day=None, additional_usage: int = 0) -> bool:
        """Is (or would booking additional_usage more make) the day overbooked?"""
        return is_equipment_overbooked(cls.effective_stock(equipment, day), additional_usage)

    @classmethod
    def available(cls, equipment, day=None) -> int:
        """Units still bookable on the day. Never negative."""
        return get_available_quantity(cls.effective_stock(equipment, day))

    # ══════════════════════════════════════════════════════════════
    # BATCH
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def batch_effective_stock(cls, start=None, end=None,
                              equipment_ids=None, folder_ids=None) -> StockMatrix:
        """
        {equipment_id: {day: EffectiveStock}} over [start, end].

        Defaults to the warning timeframe. Equipment ids are strings.
        """
        timeframe = cls.timeframe()
        window = cls.window(start or timeframe.start_date, end or timeframe.end_date)
        items, commitments = cls._fetch_inputs(window, equipment_ids, folder_ids)
        return calculate_batch_effective_stock(items, commitments, window.start_date, window.end_date)

    @classmethod
    def analyze(cls, timeframe: WarningTimeframe | None = None,
                conflict_filters: ConflictFilters | None = None,
                suggestion_filters: SuggestionFilters | None = None,
                owner=None,
                use_cache: bool = True,
                today: date | None = None) -> EngineResult:
        """
        Full engine run: stock matrix, conflicts and subrental suggestions.

        Args:
            timeframe: Window to analyze (None = warning timeframe)
            conflict_filters: Items/folders/dates/severities to keep
            suggestion_filters: Scope and limits for suggestions
            owner: Only count bookings from this user's projects
            use_cache: Reuse a cached result for identical inputs
            today: Reference day for urgency (None = today in UTC)

        Returns:
            EngineResult

        Raises:
            EngineError('FETCH_ERROR'): If the database can't be read
            EngineError('INVALID_POLICY'): If QUINCY settings are invalid
        """
        timeframe = timeframe or cls.timeframe(today)
        today = today or utc_today()
        severity_policy = cls.severity_policy()
        rental_policy = cls.rental_policy()

        def compute() -> EngineResult:
            equipment_ids = conflict_filters.item_ids if conflict_filters else None
            folder_ids = conflict_filters.folder_ids if conflict_filters else None
            items, commitments = cls._fetch_inputs(timeframe, equipment_ids, folder_ids, owner)
            # Folder scope, sub-folders included, is already applied by the query
            engine_filters = replace(conflict_filters, folder_ids=None) if conflict_filters else None
            result = run_engine(
                items, commitments, timeframe,
                conflict_filters=engine_filters,
                suggestion_filters=suggestion_filters,
                severity_policy=severity_policy,
                rental_policy=rental_policy,
                today=today,
            )
            logger.info(
                "stock.analyze",
                extra={
                    "start": str(timeframe.start_date),
                    "end": str(timeframe.end_date),
                    "equipment": len(items),
                    "commitments": len(commitments),
                    "conflicts": result.analysis.total_conflicts,
                    "suggestions": len(result.suggestions),
                },
            )
            return result

        if not use_cache:
            return compute()

        key = (
            'analyze',
            timeframe,
            conflict_filters.cache_key() if conflict_filters else None,
            suggestion_filters.cache_key() if suggestion_filters else None,
            getattr(owner, 'pk', owner),
            severity_policy,
            rental_policy,
            today,
        )
        return EngineCache().get_or_compute(key, compute)

    @classmethod
    def conflicts(cls, **kwargs) -> ConflictAnalysis:
        """Shortcut for analyze(...).analysis."""
        return cls.analyze(**kwargs).analysis

    @classmethod
    def suggestions(cls, **kwargs) -> list[SubrentalSuggestion]:
        """Shortcut for analyze(...).suggestions."""
        return list(cls.analyze(**kwargs).suggestions)

    @classmethod
    def check_conflicts(cls, **kwargs) -> list[ConflictRecord]:
        """
        Analyze and log every conflict found.

        Run periodically (celery beat, cron) or after booking changes.
        """
        analysis = cls.conflicts(**kwargs)
        for conflict in analysis.conflicts:
            logger.warning(
                "stock.conflict.detected",
                extra={
                    "equipment_id": conflict.item_id,
                    "equipment": conflict.item_name,
                    "start": str(conflict.start_date),
                    "end": str(conflict.end_date),
                    "shortfall": conflict.shortfall,
                    "severity": conflict.severity.value,
                },
            )
        return list(analysis.conflicts)

    # ══════════════════════════════════════════════════════════════
    # INTERNAL
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _fetch(cls, query):
        try:
            return query()
        except DatabaseError as exc:
            logger.error("stock.fetch.failed", extra={"error": str(exc)})
            raise EngineError('FETCH_ERROR', error=str(exc)) from exc

    @classmethod
    def _fetch_inputs(cls, window: WarningTimeframe, equipment_ids=None, folder_ids=None, owner=None):
        if window.is_empty:
            return [], []

        def query():
            try:
                items = StockQueries.items(equipment_ids, folder_ids)
            except (ValueError, TypeError) as exc:
                raise EngineError(
                    'EQUIPMENT_NOT_FOUND',
                    error=str(exc),
                    equipment_ids=sorted(map(str, equipment_ids or ())),
                    folder_ids=sorted(map(str, folder_ids or ())),
                ) from exc
            scoped = None
            if equipment_ids is not None or folder_ids is not None:
                scoped = [item.id for item in items]
            commitments = StockQueries.commitments(
                window.start_date, window.end_date, equipment_ids=scoped, owner=owner,
            )
            return items, commitments

        return cls._fetch(query)
