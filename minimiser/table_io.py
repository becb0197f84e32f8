"""
Reading and writing automata as delimiter-separated transition tables.

Moore table::

    ;y1;y2;y1
    ;q0;q1;q2
    a;q1;q2;q0
    b;q2;q2;q1

Mealy table::

    ;q0;q1
    a;q1/y1;q0/y2
    b;q0/y2;

The first column holds input symbols, every other column belongs to one state.
Empty cells are undefined transitions (or outputs).
"""
import csv
import logging
from pathlib import Path
from typing import IO, List, Union

from .automata import (
    UNDEFINED,
    Automaton,
    MalformedAutomaton,
    MealyAutomaton,
    MooreAutomaton,
)

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = ';'
DEFAULT_CELL_SEPARATOR = '/'


def _read_rows(stream: IO[str], delimiter: str) -> List[List[str]]:
    rows = []
    for row in csv.reader(stream, delimiter=delimiter):
        # Skip blank lines
        if not row or (len(row) == 1 and not row[0].strip()):
            continue
        rows.append([cell.strip() for cell in row])
    return rows


def _header_cells(row: List[str], what: str) -> List[str]:
    if len(row) < 2:
        raise MalformedAutomaton(f"{what} row must list at least one state")
    return row[1:]


def _state_names(row: List[str]) -> List[str]:
    states = _header_cells(row, 'State')
    if any(not state for state in states):
        raise MalformedAutomaton("State names must not be empty")
    return states


def _transition_rows(rows: List[List[str]], width: int):
    inputs = []
    cells = []
    for row in rows:
        if len(row) != width + 1:
            raise MalformedAutomaton(
                f"Row for input '{row[0]}' has {len(row) - 1} cells, expected {width}"
            )
        inputs.append(row[0])
        cells.append(row[1:])
    return inputs, cells


def read_moore_table(stream: IO[str], delimiter: str = DEFAULT_DELIMITER) -> MooreAutomaton:
    """
    Parses a Moore transition table.

    Raises:
        MalformedAutomaton: If the headers are missing or a row is ragged.
    """
    rows = _read_rows(stream, delimiter)
    if len(rows) < 2:
        raise MalformedAutomaton("A Moore table needs an output row and a state row")

    outputs = _header_cells(rows[0], 'Output')
    states = _state_names(rows[1])
    if len(outputs) != len(states):
        raise MalformedAutomaton(f"Output row has {len(outputs)} cells, expected {len(states)}")

    inputs, cells = _transition_rows(rows[2:], len(states))
    return MooreAutomaton(states, inputs, outputs, cells)


def _parse_mealy_cell(cell: str, separator: str):
    if not cell:
        return None
    if separator not in cell:
        raise MalformedAutomaton(f"Mealy cell '{cell}' must have the form target{separator}output")
    target, output = cell.split(separator, 1)
    return (target.strip(), output.strip())


def read_mealy_table(stream: IO[str], delimiter: str = DEFAULT_DELIMITER,
                     separator: str = DEFAULT_CELL_SEPARATOR) -> MealyAutomaton:
    """
    Parses a Mealy transition table whose cells read ``target/output``.

    Raises:
        MalformedAutomaton: If the header is missing, a row is ragged or a cell has no separator.
    """
    rows = _read_rows(stream, delimiter)
    if not rows:
        raise MalformedAutomaton("A Mealy table needs a state row")

    states = _state_names(rows[0])
    inputs, cells = _transition_rows(rows[1:], len(states))
    transitions = [[_parse_mealy_cell(cell, separator) for cell in row] for row in cells]
    return MealyAutomaton(states, inputs, transitions)


def _text(value) -> str:
    return '' if value is UNDEFINED else value


def write_moore_table(automaton: MooreAutomaton, stream: IO[str], delimiter: str = DEFAULT_DELIMITER) -> None:
    writer = csv.writer(stream, delimiter=delimiter, lineterminator='\n')
    writer.writerow([''] + [_text(output) for output in automaton.outputs])
    writer.writerow([''] + list(automaton.states))
    for symbol, row in zip(automaton.inputs, automaton.rows):
        writer.writerow([symbol] + [_text(target) for target in row])


def write_mealy_table(automaton: MealyAutomaton, stream: IO[str], delimiter: str = DEFAULT_DELIMITER,
                      separator: str = DEFAULT_CELL_SEPARATOR) -> None:
    writer = csv.writer(stream, delimiter=delimiter, lineterminator='\n')
    writer.writerow([''] + list(automaton.states))
    for symbol, row in zip(automaton.inputs, automaton.rows):
        cells = []
        for transition in row:
            if transition.target is UNDEFINED and transition.output is UNDEFINED:
                cells.append('')
            else:
                cells.append(f"{_text(transition.target)}{separator}{_text(transition.output)}")
        writer.writerow([symbol] + cells)


def load_table(path: Union[str, Path], kind: str, delimiter: str = DEFAULT_DELIMITER,
               separator: str = DEFAULT_CELL_SEPARATOR) -> Automaton:
    """Reads a 'moore' or 'mealy' table from ``path``."""
    if kind not in ('moore', 'mealy'):
        raise ValueError(f"Unknown automaton type: {kind!r}")
    path = Path(path)
    logger.debug("Loading %s table from %s", kind, path)
    with path.open(newline='', encoding='utf-8') as stream:
        if kind == 'moore':
            return read_moore_table(stream, delimiter)
        return read_mealy_table(stream, delimiter, separator)


def save_table(automaton: Automaton, path: Union[str, Path], delimiter: str = DEFAULT_DELIMITER,
               separator: str = DEFAULT_CELL_SEPARATOR) -> None:
    """Writes ``automaton`` to ``path`` in the table format of its kind."""
    path = Path(path)
    logger.debug("Saving %s table to %s", automaton.kind, path)
    with path.open('w', newline='', encoding='utf-8') as stream:
        if isinstance(automaton, MooreAutomaton):
            write_moore_table(automaton, stream, delimiter)
        else:
            write_mealy_table(automaton, stream, delimiter, separator)
