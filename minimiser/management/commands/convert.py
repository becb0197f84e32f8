import logging

from django.core.management.base import BaseCommand, CommandError

from minimiser.automata import MinimiserError
from minimiser.conf import get_setting
from minimiser.fsm_transformations import convert, remove_unreachable_states
from minimiser.table_io import load_table, save_table

logger = logging.getLogger(__name__)

CONVERSIONS = {
    'mealy-to-moore': ('mealy', 'moore'),
    'moore-to-mealy': ('moore', 'mealy'),
}


class Command(BaseCommand):
    help = "Converts a Mealy transition table into a Moore one or the other way round."

    def add_arguments(self, parser):
        parser.add_argument('conversion', choices=sorted(CONVERSIONS), help="Direction of the conversion")
        parser.add_argument('input', help="Path of the table to convert")
        parser.add_argument('output', help="Path the converted table is written to")

    def handle(self, *args, **options):
        source_kind, target_kind = CONVERSIONS[options['conversion']]
        delimiter = get_setting('TABLE_DELIMITER')
        separator = get_setting('MEALY_CELL_SEPARATOR')

        try:
            automaton = load_table(options['input'], source_kind, delimiter, separator)
            pruned = remove_unreachable_states(automaton)
            converted = convert(pruned, target_kind, prefix=get_setting('MOORE_STATE_PREFIX'))
            save_table(converted, options['output'], delimiter, separator)
        except MinimiserError as e:
            raise CommandError(str(e)) from e
        except OSError as e:
            raise CommandError(f"Cannot access table: {e}") from e

        logger.info("Converted %s (%s) to %s", options['input'], source_kind, options['output'])
        self.stdout.write(self.style.SUCCESS(
            f"Converted {source_kind} automaton with {len(pruned)} states "
            f"to {target_kind} automaton with {len(converted)} states"
        ))
