"""
Shared data model for Moore and Mealy automata.

Both variants are stored the way the transition tables are written: one row per
input symbol (in alphabet order) holding one cell per state (in declaration
order). The first declared state is the initial state. Instances are treated as
immutable; every transformation in this package returns a new automaton.
"""
from typing import Dict, Iterable, List, Mapping, NamedTuple, Sequence, Tuple, Union


class _Undefined:
    """Marker for a missing transition target or a missing output."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNDEFINED'

    def __bool__(self):
        return False

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


class MinimiserError(Exception):
    """Base class for every error raised by the minimiser."""


class MalformedAutomaton(MinimiserError, ValueError):
    """The automaton description violates the structural invariants of the model."""


class UnknownStateReference(MinimiserError, ValueError):
    """A reachable transition names a state that was never declared."""

    def __init__(self, state: str, source: str = None, symbol: str = None):
        self.state = state
        self.source = source
        self.symbol = symbol
        if source is not None:
            message = f"Transition from '{source}' on '{symbol}' references unknown state '{state}'"
        else:
            message = f"Reference to unknown state '{state}'"
        super().__init__(message)


class InconsistentPartition(MinimiserError, AssertionError):
    """A partition handed to the builder groups states that are not equivalent."""


class MealyTransition(NamedTuple):
    """A single Mealy cell: where the machine goes and what it emits on the way."""
    target: object
    output: object

    @property
    def is_defined(self) -> bool:
        return self.target is not UNDEFINED


UNDEFINED_TRANSITION = MealyTransition(UNDEFINED, UNDEFINED)


def _normalise_symbol(value, what: str):
    # None and '' both mean "nothing here"
    if value is None or value is UNDEFINED or value == '':
        return UNDEFINED
    if not isinstance(value, str):
        raise MalformedAutomaton(f"{what} must be a string, got {type(value).__name__}")
    return value


def _check_identifiers(values: Sequence[str], what: str) -> Tuple[str, ...]:
    values = tuple(values)
    seen = set()
    for value in values:
        if not isinstance(value, str) or not value:
            raise MalformedAutomaton(f"{what} names must be non-empty strings, got {value!r}")
        if value in seen:
            raise MalformedAutomaton(f"Duplicate {what.lower()} '{value}'")
        seen.add(value)
    return values


class _Automaton:
    """Alphabet and state-set shape shared by both automaton kinds."""

    kind = None

    def __init__(self, states: Sequence[str], inputs: Sequence[str], rows: Sequence[Sequence]):
        self._states = _check_identifiers(states, 'State')
        if not self._states:
            raise MalformedAutomaton("An automaton needs at least one state")
        self._inputs = _check_identifiers(inputs, 'Input')

        rows = list(rows)
        if len(rows) != len(self._inputs):
            raise MalformedAutomaton(
                f"Expected {len(self._inputs)} transition rows (one per input), got {len(rows)}"
            )
        for symbol, row in zip(self._inputs, rows):
            if len(row) != len(self._states):
                raise MalformedAutomaton(
                    f"Transition row for input '{symbol}' has {len(row)} cells, "
                    f"expected {len(self._states)}"
                )

        # Lookup tables built once per instance
        self._state_index: Dict[str, int] = {state: i for i, state in enumerate(self._states)}
        self._input_index: Dict[str, int] = {symbol: i for i, symbol in enumerate(self._inputs)}

    @property
    def states(self) -> Tuple[str, ...]:
        return self._states

    @property
    def inputs(self) -> Tuple[str, ...]:
        return self._inputs

    @property
    def initial_state(self) -> str:
        return self._states[0]

    @property
    def rows(self) -> Tuple[Tuple, ...]:
        return self._rows

    def has_state(self, state) -> bool:
        return state in self._state_index

    def index_of(self, state: str) -> int:
        try:
            return self._state_index[state]
        except KeyError:
            raise UnknownStateReference(state) from None

    def row(self, symbol: str) -> Tuple:
        try:
            return self._rows[self._input_index[symbol]]
        except KeyError:
            raise MalformedAutomaton(f"Symbol '{symbol}' is not in the alphabet") from None

    def cell(self, state: str, symbol: str):
        return self.row(symbol)[self.index_of(state)]

    def target(self, state: str, symbol: str):
        """Return the state reached from ``state`` on ``symbol`` or ``UNDEFINED``."""
        raise NotImplementedError

    def output_signature(self, state: str) -> Tuple:
        """The observable output of ``state`` used to seed the partition."""
        raise NotImplementedError

    def edge_label(self, state: str, symbol: str):
        """Output attached to the transition itself (Mealy only)."""
        return None

    def _key(self):
        return (self.kind, self._states, self._inputs, self._rows)

    def __eq__(self, other):
        if not isinstance(other, _Automaton):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __len__(self):
        return len(self._states)


class MooreAutomaton(_Automaton):
    """
    Moore machine: the output depends on the current state only.

    Args:
        states: State names in declaration order; the first one is initial.
        inputs: Input symbols in alphabet order.
        outputs: One output per state, either aligned with ``states`` or as a mapping.
        transitions: One row per input symbol, each with one target per state.
    """

    kind = 'moore'

    def __init__(self, states: Sequence[str], inputs: Sequence[str],
                 outputs: Union[Sequence, Mapping[str, object]],
                 transitions: Sequence[Sequence]):
        self._rows = tuple(
            tuple(_normalise_symbol(cell, 'Transition target') for cell in row)
            for row in transitions
        )
        super().__init__(states, inputs, self._rows)

        if isinstance(outputs, Mapping):
            unknown = [state for state in outputs if state not in self._state_index]
            if unknown:
                raise MalformedAutomaton(f"Outputs declared for unknown states: {unknown}")
            missing = [state for state in self._states if state not in outputs]
            if missing:
                raise MalformedAutomaton(f"No output declared for states: {missing}")
            outputs = [outputs[state] for state in self._states]
        outputs = list(outputs)
        if len(outputs) != len(self._states):
            raise MalformedAutomaton(
                f"Expected {len(self._states)} outputs (one per state), got {len(outputs)}"
            )
        self._outputs = tuple(_normalise_symbol(output, 'Output') for output in outputs)

    @property
    def outputs(self) -> Tuple:
        return self._outputs

    def output_of(self, state: str):
        return self._outputs[self.index_of(state)]

    def target(self, state: str, symbol: str):
        return self.cell(state, symbol)

    def output_signature(self, state: str) -> Tuple:
        return (self.output_of(state),)

    def _key(self):
        return super()._key() + (self._outputs,)

    def __repr__(self):
        return f"MooreAutomaton(states={list(self._states)}, inputs={list(self._inputs)})"


class MealyAutomaton(_Automaton):
    """
    Mealy machine: outputs are attached to transitions.

    Each cell of ``transitions`` is a ``(target, output)`` pair, or ``None`` /
    ``UNDEFINED`` when the state has no edge for that input.
    """

    kind = 'mealy'

    def __init__(self, states: Sequence[str], inputs: Sequence[str], transitions: Sequence[Sequence]):
        self._rows = tuple(tuple(self._normalise_cell(cell) for cell in row) for row in transitions)
        super().__init__(states, inputs, self._rows)

    @staticmethod
    def _normalise_cell(cell) -> MealyTransition:
        if cell is None or cell is UNDEFINED:
            return UNDEFINED_TRANSITION
        try:
            target, output = cell
        except (TypeError, ValueError):
            raise MalformedAutomaton(f"Mealy cell must be a (target, output) pair, got {cell!r}") from None
        return MealyTransition(
            _normalise_symbol(target, 'Transition target'),
            _normalise_symbol(output, 'Output'),
        )

    def transition(self, state: str, symbol: str) -> MealyTransition:
        return self.cell(state, symbol)

    def target(self, state: str, symbol: str):
        return self.cell(state, symbol).target

    def output(self, state: str, symbol: str):
        return self.cell(state, symbol).output

    def output_signature(self, state: str) -> Tuple:
        index = self.index_of(state)
        return tuple(row[index].output for row in self._rows)

    def edge_label(self, state: str, symbol: str):
        return self.output(state, symbol)

    def __repr__(self):
        return f"MealyAutomaton(states={list(self._states)}, inputs={list(self._inputs)})"


Automaton = Union[MooreAutomaton, MealyAutomaton]


def _to_json_symbol(value):
    return None if value is UNDEFINED else value


def _require_list(data: Dict, key: str) -> List:
    value = data.get(key)
    if not isinstance(value, list):
        raise MalformedAutomaton(f"'{key}' must be a list")
    return value


def _transition_table(data: Dict, states: List[str], inputs: List[str]) -> Dict[str, Dict]:
    table = data.get('transitions', {})
    if not isinstance(table, dict):
        raise MalformedAutomaton("'transitions' must be a dictionary")
    declared_states = set(states)
    declared_inputs = set(inputs)
    for source, by_symbol in table.items():
        if source not in declared_states:
            raise MalformedAutomaton(f"Transitions declared for unknown state '{source}'")
        if not isinstance(by_symbol, dict):
            raise MalformedAutomaton(f"Transitions of state '{source}' must be a dictionary")
        for symbol in by_symbol:
            if symbol not in declared_inputs:
                raise MalformedAutomaton(f"Symbol '{symbol}' used by state '{source}' is not in the inputs")
    return table


def automaton_from_dict(data: Dict) -> Automaton:
    """
    Builds an automaton from its JSON form.

    Args:
        data: A dictionary with the following keys:
            - type: 'moore' or 'mealy'
            - states: List of states, the first one is initial
            - inputs: List of input symbols
            - outputs: (Moore only) Dictionary state -> output
            - transitions: Dictionary state -> symbol -> target (Moore)
              or state -> symbol -> {'target': ..., 'output': ...} (Mealy)

    Returns:
        The corresponding MooreAutomaton or MealyAutomaton.

    Raises:
        MalformedAutomaton: If the dictionary does not describe a valid automaton.
    """
    if not isinstance(data, dict):
        raise MalformedAutomaton("Automaton must be a dictionary")

    kind = data.get('type')
    states = list(_check_identifiers(_require_list(data, 'states'), 'State'))
    inputs = list(_check_identifiers(_require_list(data, 'inputs'), 'Input'))
    table = _transition_table(data, states, inputs)

    if kind == 'moore':
        outputs = data.get('outputs')
        if not isinstance(outputs, dict):
            raise MalformedAutomaton("'outputs' must be a dictionary")
        rows = [[table.get(state, {}).get(symbol) for state in states] for symbol in inputs]
        return MooreAutomaton(states, inputs, outputs, rows)

    if kind == 'mealy':
        rows = []
        for symbol in inputs:
            row = []
            for state in states:
                cell = table.get(state, {}).get(symbol)
                if cell is None:
                    row.append(None)
                elif isinstance(cell, dict):
                    row.append((cell.get('target'), cell.get('output')))
                else:
                    raise MalformedAutomaton(
                        f"Mealy transition of '{state}' on '{symbol}' must be a dictionary"
                    )
            rows.append(row)
        return MealyAutomaton(states, inputs, rows)

    raise MalformedAutomaton(f"Unknown automaton type: {kind!r}")


def automaton_to_dict(automaton: Automaton) -> Dict:
    """Returns the JSON form of ``automaton``; undefined cells are left out."""
    transitions: Dict[str, Dict] = {}
    for state in automaton.states:
        by_symbol = {}
        for symbol in automaton.inputs:
            cell = automaton.cell(state, symbol)
            if automaton.kind == 'moore':
                if cell is not UNDEFINED:
                    by_symbol[symbol] = cell
            elif cell != UNDEFINED_TRANSITION:
                by_symbol[symbol] = {
                    'target': _to_json_symbol(cell.target),
                    'output': _to_json_symbol(cell.output),
                }
        transitions[state] = by_symbol

    result = {
        'type': automaton.kind,
        'states': list(automaton.states),
        'inputs': list(automaton.inputs),
        'transitions': transitions,
    }
    if automaton.kind == 'moore':
        result['outputs'] = {
            state: _to_json_symbol(output) for state, output in zip(automaton.states, automaton.outputs)
        }
    return result


def iter_transitions(automaton: Automaton) -> Iterable[Tuple[str, str, object]]:
    """Yields ``(state, symbol, target)`` for every cell, undefined ones included."""
    for symbol in automaton.inputs:
        for state in automaton.states:
            yield state, symbol, automaton.target(state, symbol)
