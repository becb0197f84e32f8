import logging

from django.core.management.base import BaseCommand, CommandError

from minimiser.automata import MinimiserError
from minimiser.conf import get_setting
from minimiser.fsm_transformations import minimise_with_details
from minimiser.table_io import load_table, save_table

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Removes unreachable states from a Mealy or Moore transition table, "
        "minimises it and writes the result as a table of the same kind."
    )

    def add_arguments(self, parser):
        parser.add_argument('kind', choices=['mealy', 'moore'], help="Automaton kind of the input table")
        parser.add_argument('input', help="Path of the table to minimise")
        parser.add_argument('output', help="Path the minimised table is written to")

    def handle(self, *args, **options):
        delimiter = get_setting('TABLE_DELIMITER')
        separator = get_setting('MEALY_CELL_SEPARATOR')

        try:
            automaton = load_table(options['input'], options['kind'], delimiter, separator)
            result = minimise_with_details(automaton, prefix=get_setting('CLASS_PREFIX'))
            save_table(result.automaton, options['output'], delimiter, separator)
        except MinimiserError as e:
            raise CommandError(str(e)) from e
        except OSError as e:
            raise CommandError(f"Cannot access table: {e}") from e

        logger.info(
            "Minimised %s: %d states, %d reachable, %d after minimisation",
            options['input'], result.original_states, result.reachable_states, result.final_states,
        )
        self.stdout.write(self.style.SUCCESS(
            f"Minimised {options['kind']} automaton: {result.original_states} -> {result.final_states} states"
        ))
