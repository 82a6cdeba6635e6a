"""
Tests for subrental suggestions.
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from quincy.calculations import calculate_batch_effective_stock
from quincy.conflicts import analyze_conflicts
from quincy.exceptions import EngineError
from quincy.suggestions import calculate_urgency_score, estimate_subrental_cost, generate_subrental_suggestions
from quincy.types import (
    BookingCommitment,
    ConflictSeverity,
    EquipmentItem,
    RentalPolicy,
    SuggestionFilters,
)


def conflicts_for(items, commitments, timeframe):
    matrix = calculate_batch_effective_stock(items, commitments, timeframe.start_date, timeframe.end_date)
    return analyze_conflicts(matrix, items, timeframe)


class TestGenerateSubrentalSuggestions:
    """Tests for generate_subrental_suggestions()."""

    def test_speaker_scenario(self, speaker_a, speaker_commitments, window, days, day1):
        """One suggestion covering day 4 with at least 2 units."""
        analysis = conflicts_for([speaker_a], speaker_commitments, window)
        [suggestion] = generate_subrental_suggestions(analysis, today=day1)

        assert suggestion.item_id == 'spk-a'
        assert (suggestion.start_date, suggestion.end_date) == (days[4], days[4])
        assert suggestion.shortfall == 2
        assert suggestion.quantity == 2
        assert suggestion.estimated_cost == Decimal('300')
        assert suggestion.urgency_score == 50

    def test_pack_size_rounds_up(self, speaker_a, speaker_commitments, window, day1):
        analysis = conflicts_for([speaker_a], speaker_commitments, window)
        [suggestion] = generate_subrental_suggestions(analysis, policy=RentalPolicy(pack_size=4), today=day1)
        assert suggestion.quantity == 4

    def test_buffer_added_before_rounding(self, speaker_a, speaker_commitments, window, day1):
        analysis = conflicts_for([speaker_a], speaker_commitments, window)
        [suggestion] = generate_subrental_suggestions(
            analysis, policy=RentalPolicy(pack_size=2, buffer=1), today=day1,
        )
        assert suggestion.quantity == 4

    def test_no_conflicts_no_suggestions(self, speaker_a, window, day1):
        assert generate_subrental_suggestions(conflicts_for([speaker_a], [], window), today=day1) == []

    def test_adjacent_conflicts_merge(self, speaker_a, days, window, day1):
        """Conflicts from separate analyses that touch become one suggestion."""
        commitments = [
            BookingCommitment('spk-a', days[5], days[6], 13),
            BookingCommitment.on('spk-a', days[7], 15),
        ]
        [conflict] = conflicts_for([speaker_a], commitments, window).conflicts
        first = replace(conflict, end_date=days[6], shortfall=3)
        second = replace(conflict, start_date=days[7], shortfall=5)

        [suggestion] = generate_subrental_suggestions([second, first], today=day1)

        assert (suggestion.start_date, suggestion.end_date) == (days[5], days[7])
        assert suggestion.quantity == 5
        assert suggestion.days == 3
        assert suggestion.estimated_cost == Decimal('2250')
        assert [c.start_date for c in suggestion.conflicts] == [days[5], days[7]]

    def test_separate_ranges_stay_separate(self, speaker_a, days, window, day1):
        commitments = [BookingCommitment.on('spk-a', days[3], 11), BookingCommitment.on('spk-a', days[9], 12)]
        suggestions = generate_subrental_suggestions(conflicts_for([speaker_a], commitments, window), today=day1)
        assert sorted((s.start_date, s.quantity) for s in suggestions) == [(days[3], 1), (days[9], 2)]

    def test_min_severity(self, speaker_a, speaker_commitments, window, day1):
        """Conflicts below the policy's minimum severity get no suggestion."""
        analysis = conflicts_for([speaker_a], speaker_commitments, window)
        policy = RentalPolicy(min_severity=ConflictSeverity.MEDIUM)
        assert generate_subrental_suggestions(analysis, policy=policy, today=day1) == []

    def test_ordered_by_urgency(self, speaker_a, light_b, days, window, day1):
        commitments = [
            BookingCommitment.on('spk-a', days[20], 11),
            BookingCommitment.on('lgt-b', days[1], 8),
        ]
        suggestions = generate_subrental_suggestions(
            conflicts_for([speaker_a, light_b], commitments, window), today=day1,
        )
        assert [s.item_id for s in suggestions] == ['lgt-b', 'spk-a']
        assert suggestions[0].urgency_score > suggestions[1].urgency_score


class TestSuggestionFilters:
    """Tests for SuggestionFilters."""

    @pytest.fixture
    def analysis(self, speaker_a, light_b, days, window):
        commitments = [
            BookingCommitment.on('spk-a', days[4], 12),
            BookingCommitment('lgt-b', days[20], days[24], 6),
        ]
        return conflicts_for([speaker_a, light_b], commitments, window)

    def test_item_filter(self, analysis, day1):
        filters = SuggestionFilters(item_ids=frozenset({'lgt-b'}))
        assert [s.item_id for s in generate_subrental_suggestions(analysis, filters, today=day1)] == ['lgt-b']

    def test_date_filter(self, analysis, days, day1):
        filters = SuggestionFilters(start_date=days[1], end_date=days[5])
        assert [s.item_id for s in generate_subrental_suggestions(analysis, filters, today=day1)] == ['spk-a']

    def test_min_deficit(self, analysis, day1):
        filters = SuggestionFilters(min_deficit=2)
        assert {s.item_id for s in generate_subrental_suggestions(analysis, filters, today=day1)} == {'spk-a', 'lgt-b'}
        filters = SuggestionFilters(min_deficit=3)
        assert generate_subrental_suggestions(analysis, filters, today=day1) == []

    def test_max_cost(self, analysis, day1):
        """lgt-b needs 2 units for 5 days (1500); spk-a 2 units for 1 day (300)."""
        filters = SuggestionFilters(max_cost=Decimal('1000'))
        assert [s.item_id for s in generate_subrental_suggestions(analysis, filters, today=day1)] == ['spk-a']

    def test_urgency_threshold(self, analysis, day1):
        """spk-a: low 10 + 3 days out 30 + deficit 2/12 10; lgt-b: medium 20 + 19 days out 0 + 2/6 20."""
        suggestions = generate_subrental_suggestions(analysis, today=day1)
        assert {s.item_id: s.urgency_score for s in suggestions} == {'spk-a': 50, 'lgt-b': 40}
        threshold = max(s.urgency_score for s in suggestions)
        filtered = generate_subrental_suggestions(analysis, SuggestionFilters(urgency_threshold=threshold), today=day1)
        assert filtered and all(s.urgency_score >= threshold for s in filtered)
        assert len(filtered) < len(suggestions)


class TestScoring:
    """Tests for urgency and cost helpers."""

    def test_urgency_is_capped(self, days, window, day1):
        """critical 40 + imminent 30 + full deficit 30 = 100."""
        item = EquipmentItem(id='x', name='X', base_stock=0)
        commitments = [BookingCommitment.on('x', days[1], 5)]
        [conflict] = conflicts_for([item], commitments, window).conflicts
        assert calculate_urgency_score(conflict.severity, conflict.start_date, conflict, day1) == 100

    def test_far_conflicts_get_no_proximity_points(self, speaker_a, days, window, day1):
        commitments = [BookingCommitment.on('spk-a', days[25], 12)]
        [conflict] = conflicts_for([speaker_a], commitments, window).conflicts
        # low 10 + deficit 2/12 → 10
        assert calculate_urgency_score(conflict.severity, conflict.start_date, conflict, day1) == 20

    def test_cost(self):
        assert estimate_subrental_cost(3, 2, Decimal('150')) == Decimal('900')
        assert estimate_subrental_cost(1, 1, Decimal('99.50')) == Decimal('99.50')

    def test_rental_quantity_is_exact_for_large_shortfalls(self):
        assert RentalPolicy().rental_quantity(10**17 + 1) == 10**17 + 1
        assert RentalPolicy(pack_size=3).rental_quantity(7) == 9
        assert RentalPolicy(pack_size=3, buffer=2).rental_quantity(7) == 9
        assert RentalPolicy(pack_size=4).rental_quantity(8) == 8

    @pytest.mark.parametrize('kwargs', [
        {'pack_size': 0},
        {'buffer': -1},
        {'daily_unit_cost': Decimal('-1')},
    ])
    def test_invalid_rental_policy(self, kwargs):
        with pytest.raises(EngineError) as exc:
            RentalPolicy(**kwargs)
        assert exc.value.code == 'INVALID_POLICY'
