"""
Tests for conflict analysis.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from quincy.calculations import calculate_batch_effective_stock, index_booking_details
from quincy.conflicts import analyze_conflicts, generate_conflict_solutions
from quincy.exceptions import EngineError
from quincy.types import (
    BookingCommitment,
    ConflictFilters,
    ConflictSeverity,
    EffectiveStock,
    EquipmentItem,
    SeverityPolicy,
    SolutionType,
    WarningTimeframe,
)


def analyze(items, commitments, timeframe, **kwargs):
    matrix = calculate_batch_effective_stock(items, commitments, timeframe.start_date, timeframe.end_date)
    return analyze_conflicts(matrix, items, timeframe, **kwargs)


class TestAnalyzeConflicts:
    """Tests for analyze_conflicts()."""

    def test_speaker_scenario(self, speaker_a, speaker_commitments, window, days):
        """Exactly one conflict: day 4, shortfall 2."""
        analysis = analyze([speaker_a], speaker_commitments, window)

        assert analysis.total_conflicts == 1
        [conflict] = analysis.conflicts
        assert conflict.item_id == 'spk-a'
        assert conflict.item_name == 'Speaker-A'
        assert (conflict.start_date, conflict.end_date) == (days[4], days[4])
        assert conflict.shortfall == 2

    def test_no_commitments_no_conflicts(self, speaker_a, window):
        assert analyze([speaker_a], [], window).total_conflicts == 0

    def test_conflict_iff_negative(self, speaker_a, light_b, days, window):
        """A conflict covers (item, day) exactly when available < 0."""
        commitments = [
            BookingCommitment('spk-a', days[2], days[4], 11),
            BookingCommitment.on('spk-a', days[6], 10),
            BookingCommitment.on('spk-a', days[7], 13),
            BookingCommitment('lgt-b', days[1], days[12], 3),
            BookingCommitment('lgt-b', days[10], days[11], 2),
        ]
        items = [speaker_a, light_b]
        matrix = calculate_batch_effective_stock(items, commitments, window.start_date, window.end_date)
        analysis = analyze_conflicts(matrix, items, window)

        for item in items:
            for day, stock in matrix[item.id].items():
                covered = any(c.covers(day) for c in analysis.for_item(item.id))
                assert covered == (stock.available_quantity < 0)

    def test_maximal_ranges(self, speaker_a, days, window):
        """Consecutive overbooked days form one range; shortfall is the worst day."""
        commitments = [
            BookingCommitment.on('spk-a', days[2], 11),
            BookingCommitment.on('spk-a', days[3], 14),
            BookingCommitment.on('spk-a', days[4], 12),
            BookingCommitment.on('spk-a', days[6], 11),
        ]
        analysis = analyze([speaker_a], commitments, window)
        ranges = sorted((c.start_date, c.end_date, c.shortfall) for c in analysis.conflicts)

        assert ranges == [(days[2], days[4], 4), (days[6], days[6], 1)]
        for first, second in zip(ranges, ranges[1:]):
            assert second[0] > first[1] + timedelta(days=1)

    def test_worst_day_is_earliest_on_ties(self, speaker_a, days, window):
        commitments = [BookingCommitment('spk-a', days[2], days[4], 13)]
        [conflict] = analyze([speaker_a], commitments, window).conflicts
        assert conflict.worst_day.date == days[2]

    def test_only_days_in_timeframe(self, speaker_a, days):
        """Overbookings outside the warning timeframe are not reported."""
        commitments = [BookingCommitment('spk-a', days[1], days[10], 20)]
        timeframe = WarningTimeframe(days[3], days[5])
        [conflict] = analyze([speaker_a], commitments, timeframe).conflicts
        assert (conflict.start_date, conflict.end_date) == (days[3], days[5])

    def test_reversed_timeframe_is_empty(self, speaker_a, speaker_commitments, days):
        timeframe = WarningTimeframe(days[10], days[1])
        assert analyze([speaker_a], speaker_commitments, timeframe).conflicts == ()

    def test_affected_events(self, speaker_a, speaker_commitments, window, days):
        matrix = calculate_batch_effective_stock([speaker_a], speaker_commitments, window.start_date, window.end_date)
        bookings = index_booking_details(speaker_commitments)
        [conflict] = analyze_conflicts(matrix, [speaker_a], window, bookings=bookings).conflicts

        assert [(e.event_id, e.event_name, e.quantity) for e in conflict.affected_events] == [('ev-2', 'Show', 12)]

    def test_negative_base_stock_is_reported(self, days, window):
        item = EquipmentItem(id='bad', name='Bad data', base_stock=-1)
        [conflict] = analyze([item], [], WarningTimeframe(days[1], days[1])).conflicts
        assert conflict.shortfall == 1
        assert conflict.severity == ConflictSeverity.CRITICAL


class TestSeverity:
    """Tests for SeverityPolicy classification."""

    @pytest.mark.parametrize('base, committed, expected', [
        (10, 12, ConflictSeverity.LOW),       # deficit 0.2, usage 1.2
        (10, 13, ConflictSeverity.MEDIUM),    # deficit 0.3
        (10, 16, ConflictSeverity.HIGH),      # deficit 0.6
        (10, 21, ConflictSeverity.CRITICAL),  # deficit 1.1
        (0, 1, ConflictSeverity.CRITICAL),
    ])
    def test_default_thresholds(self, day1, base, committed, expected):
        stock = EffectiveStock('x', day1, base, committed, base - committed)
        assert SeverityPolicy().classify(stock) == expected

    def test_usage_thresholds(self, day1):
        """Heavy usage raises severity even for a small deficit."""
        stock = EffectiveStock('x', day1, 10, 12, -2)
        assert SeverityPolicy(medium_usage=1.1).classify(stock) == ConflictSeverity.MEDIUM
        assert SeverityPolicy(medium_usage=1.0, high_usage=1.1).classify(stock) == ConflictSeverity.HIGH

    def test_injected_policy(self, speaker_a, speaker_commitments, window):
        analysis = analyze([speaker_a], speaker_commitments, window, policy=SeverityPolicy(medium_ratio=0.1))
        assert analysis.conflicts[0].severity == ConflictSeverity.MEDIUM

    def test_out_of_order_thresholds_raise(self):
        with pytest.raises(EngineError) as exc:
            SeverityPolicy(high_ratio=0.1, medium_ratio=0.2)
        assert exc.value.code == 'INVALID_POLICY'

    def test_parse_unknown_severity_raises(self):
        with pytest.raises(EngineError) as exc:
            ConflictSeverity.parse('apocalyptic')
        assert exc.value.code == 'INVALID_POLICY'


class TestConflictFilters:
    """Tests for conflict filters and ordering."""

    @pytest.fixture
    def commitments(self, days):
        return [
            BookingCommitment.on('spk-a', days[4], 12),       # low, shortfall 2
            BookingCommitment('spk-a', days[10], days[11], 30),  # critical, shortfall 20
            BookingCommitment.on('lgt-b', days[2], 7),        # high, shortfall 3
        ]

    def test_priority_order(self, speaker_a, light_b, commitments, window):
        """Severity first, then shortfall, then start date."""
        analysis = analyze([speaker_a, light_b], commitments, window)
        assert [(c.item_id, c.severity) for c in analysis.conflicts] == [
            ('spk-a', ConflictSeverity.CRITICAL),
            ('lgt-b', ConflictSeverity.HIGH),
            ('spk-a', ConflictSeverity.LOW),
        ]

    def test_item_filter(self, speaker_a, light_b, commitments, window):
        filters = ConflictFilters(item_ids=frozenset({'lgt-b'}))
        analysis = analyze([speaker_a, light_b], commitments, window, filters=filters)
        assert [c.item_id for c in analysis.conflicts] == ['lgt-b']

    def test_folder_filter(self, speaker_a, light_b, commitments, window):
        filters = ConflictFilters(folder_ids=frozenset({'sound'}))
        analysis = analyze([speaker_a, light_b], commitments, window, filters=filters)
        assert {c.item_id for c in analysis.conflicts} == {'spk-a'}

    def test_severity_filter(self, speaker_a, light_b, commitments, window):
        filters = ConflictFilters(severities=frozenset({ConflictSeverity.HIGH, ConflictSeverity.CRITICAL}))
        analysis = analyze([speaker_a, light_b], commitments, window, filters=filters)
        assert analysis.total_conflicts == 2
        assert analysis.urgent_conflict_count == 2

    def test_date_filter_clips_window(self, speaker_a, light_b, commitments, window, days):
        filters = ConflictFilters(start_date=days[11], end_date=days[20])
        [conflict] = analyze([speaker_a, light_b], commitments, window, filters=filters).conflicts
        assert (conflict.start_date, conflict.end_date) == (days[11], days[11])

    def test_summary(self, speaker_a, light_b, commitments, window, days):
        analysis = analyze([speaker_a, light_b], commitments, window)

        assert analysis.total_conflicts == 3
        assert analysis.total_deficit == 2 + 20 + 3
        assert analysis.affected_equipment_count == 2
        assert analysis.urgent_conflict_count == 2
        assert [c.item_id for c in analysis.for_date(days[10])] == ['spk-a']
        assert list(analysis.by_date()) == [days[2], days[4], days[10], days[11]]

    def test_deficit_percentage(self, speaker_a, speaker_commitments, window):
        [conflict] = analyze([speaker_a], speaker_commitments, window).conflicts
        assert conflict.deficit_percentage == pytest.approx(2 / 12 * 100)
        assert conflict.as_dict()['deficit_percentage'] == 16.67


class TestConflictSolutions:
    """Tests for the resolution options attached to each conflict."""

    def test_speaker_scenario(self, speaker_a, speaker_commitments, window):
        [conflict] = analyze([speaker_a], speaker_commitments, window).conflicts

        assert [(s.type, s.feasibility_score) for s in conflict.solutions] == [
            (SolutionType.SUBRENTAL, 85),
            (SolutionType.REDUCE_QUANTITY, 60),
            (SolutionType.SUBSTITUTE, 50),
            (SolutionType.RESCHEDULE, 40),
        ]
        # 2 units x 1 day at the default 150/day
        assert conflict.solutions[0].estimated_cost == Decimal('300')
        assert all(s.estimated_cost == 0 for s in conflict.solutions[1:])

    def test_large_shortfall_cannot_be_reduced(self):
        solutions = generate_conflict_solutions(3, 2, Decimal('10'))
        assert SolutionType.REDUCE_QUANTITY not in {s.type for s in solutions}
        assert solutions[0].estimated_cost == Decimal('60')

    def test_cost_covers_whole_range(self, speaker_a, days, window):
        commitments = [BookingCommitment('spk-a', days[2], days[4], 11)]
        [conflict] = analyze([speaker_a], commitments, window, daily_unit_cost=Decimal('7.50')).conflicts
        assert conflict.solutions[0].estimated_cost == Decimal('22.50')

    def test_in_as_dict(self, speaker_a, speaker_commitments, window):
        [conflict] = analyze([speaker_a], speaker_commitments, window).conflicts
        assert conflict.as_dict()['solutions'][0] == {
            'type': 'subrental',
            'description': 'Rent 2 additional unit(s) from an external provider',
            'feasibility_score': 85,
            'estimated_cost': '300',
        }
