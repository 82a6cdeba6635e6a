"""
Management command to report equipment conflicts.

Usage:
    python manage.py equipment_conflicts
    python manage.py equipment_conflicts --days 14 --severity high --severity critical
    python manage.py equipment_conflicts --equipment 12 --suggestions
    python manage.py equipment_conflicts --json
"""

import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from quincy.exceptions import EngineError
from quincy.service import StockEngine
from quincy.types import ConflictFilters, ConflictSeverity


class Command(BaseCommand):
    """Report overbooked equipment in the warning timeframe."""

    help = 'Lists equipment conflicts (overbookings) and subrental suggestions'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, help='Warning timeframe length (default: WARNING_DAYS)')
        parser.add_argument('--equipment', action='append', help='Only this equipment id (repeatable)')
        parser.add_argument('--folder', action='append', help='Only this folder id (repeatable)')
        parser.add_argument(
            '--severity',
            action='append',
            choices=[s.value for s in ConflictSeverity],
            help='Only this severity (repeatable)',
        )
        parser.add_argument('--suggestions', action='store_true', help='Also list subrental suggestions')
        parser.add_argument('--json', action='store_true', help='Print the full result as JSON')
        parser.add_argument('--no-cache', action='store_true', help='Bypass the engine result cache')

    def handle(self, *args, **options):
        filters = None
        if options['equipment'] or options['folder'] or options['severity']:
            filters = ConflictFilters(
                item_ids=frozenset(options['equipment']) if options['equipment'] else None,
                folder_ids=frozenset(options['folder']) if options['folder'] else None,
                severities=(
                    frozenset(ConflictSeverity(s) for s in options['severity'])
                    if options['severity'] else None
                ),
            )

        try:
            result = StockEngine.analyze(
                timeframe=StockEngine.timeframe(days=options['days']),
                conflict_filters=filters,
                use_cache=not options['no_cache'],
            )
        except EngineError as e:
            raise CommandError(f'{e.code}: {e.message}') from e

        if options['json']:
            self.stdout.write(json.dumps(result.as_dict(), cls=DjangoJSONEncoder, indent=2))
            return

        analysis = result.analysis
        self.stdout.write(
            f'{result.timeframe.start_date} .. {result.timeframe.end_date}: '
            f'{analysis.total_conflicts} conflict(s), {analysis.total_deficit} unit(s) short'
        )
        for conflict in analysis.conflicts:
            line = (
                f'[{conflict.severity.value}] {conflict.item_name}: '
                f'{conflict.start_date} .. {conflict.end_date} short {conflict.shortfall}'
            )
            style = self.style.ERROR if conflict.severity.rank >= ConflictSeverity.HIGH.rank else self.style.WARNING
            self.stdout.write(style(line))

        if options['suggestions']:
            for suggestion in result.suggestions:
                self.stdout.write(
                    f'Subrent {suggestion.quantity} x {suggestion.item_name} '
                    f'{suggestion.start_date} .. {suggestion.end_date} '
                    f'(urgency {suggestion.urgency_score}, ~{suggestion.estimated_cost})'
                )

        if not analysis.total_conflicts:
            self.stdout.write(self.style.SUCCESS('No conflicts'))
