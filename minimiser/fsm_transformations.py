import logging
from collections import deque
from typing import Dict, List, NamedTuple, Set, Tuple

from .automata import (
    UNDEFINED,
    Automaton,
    MalformedAutomaton,
    MealyAutomaton,
    MooreAutomaton,
    UnknownStateReference,
)
from .canonical_builder import build_minimised
from .partition_refinement import Partition, refine_with_trace

logger = logging.getLogger(__name__)


class MinimisationResult(NamedTuple):
    """Result of a minimisation with metadata about the process"""
    automaton: Automaton
    original_states: int
    reachable_states: int
    final_states: int
    rounds: int
    partition: Partition
    is_already_minimal: bool


def find_reachable_states(automaton: Automaton) -> Set[str]:
    """
    Breadth-first search from the initial state over every input symbol.

    Raises:
        UnknownStateReference: If a reachable transition names an undeclared state.
    """
    initial = automaton.initial_state
    reachable = {initial}
    queue = deque([initial])

    while queue:
        current = queue.popleft()
        for symbol in automaton.inputs:
            target = automaton.target(current, symbol)
            if target is UNDEFINED or target in reachable:
                continue
            if not automaton.has_state(target):
                raise UnknownStateReference(target, current, symbol)
            reachable.add(target)
            queue.append(target)

    return reachable


def remove_unreachable_states(automaton: Automaton) -> Automaton:
    """
    Remove states that are unreachable from the initial state.

    The surviving states keep their original order, and transitions and outputs
    are restricted to them.
    """
    reachable = find_reachable_states(automaton)
    if len(reachable) == len(automaton):
        return automaton

    kept = [index for index, state in enumerate(automaton.states) if state in reachable]
    states = [automaton.states[index] for index in kept]
    rows = [[row[index] for index in kept] for row in automaton.rows]

    logger.debug(
        "Removed unreachable states: %s",
        [state for state in automaton.states if state not in reachable],
    )

    if isinstance(automaton, MooreAutomaton):
        outputs = [automaton.outputs[index] for index in kept]
        return MooreAutomaton(states, automaton.inputs, outputs, rows)
    return MealyAutomaton(states, automaton.inputs, rows)


def minimise_with_details(automaton: Automaton, prefix: str = 'X') -> MinimisationResult:
    """
    Prunes unreachable states, refines the state partition to its fixed point
    and rebuilds the automaton with one canonically named state per class.

    Args:
        automaton: A Moore or Mealy automaton.
        prefix: Prefix of the canonical state names.

    Returns:
        MinimisationResult: The minimised automaton and statistics about the run.
    """
    pruned = remove_unreachable_states(automaton)
    trace = refine_with_trace(pruned)
    minimised = build_minimised(pruned, trace.partition, prefix)

    logger.debug(
        "Minimised %s automaton: %d -> %d reachable -> %d states in %d rounds",
        automaton.kind, len(automaton), len(pruned), len(minimised), trace.rounds,
    )

    return MinimisationResult(
        automaton=minimised,
        original_states=len(automaton),
        reachable_states=len(pruned),
        final_states=len(minimised),
        rounds=trace.rounds,
        partition=trace.partition,
        is_already_minimal=len(automaton) == len(minimised),
    )


def minimise(automaton: Automaton, prefix: str = 'X') -> Automaton:
    """Minimises a Moore or Mealy automaton; see ``minimise_with_details``."""
    return minimise_with_details(automaton, prefix).automaton


def moore_to_mealy(moore: MooreAutomaton) -> MealyAutomaton:
    """
    Converts a Moore automaton into an equivalent Mealy automaton.

    Every transition emits the output of the state it enters. States and the
    alphabet are kept as they are.
    """
    rows = []
    for symbol in moore.inputs:
        row = []
        for state in moore.states:
            target = moore.target(state, symbol)
            if target is UNDEFINED:
                row.append(None)
            else:
                row.append((target, moore.output_of(target)))
        rows.append(row)
    return MealyAutomaton(moore.states, moore.inputs, rows)


def _output_sort_key(output) -> Tuple[bool, str]:
    return (output is UNDEFINED, '' if output is UNDEFINED else output)


def mealy_to_moore(mealy: MealyAutomaton, prefix: str = 'R') -> MooreAutomaton:
    """
    Converts a Mealy automaton into an equivalent Moore automaton.

    Each distinct ``(target, output)`` pair found in the transition table becomes
    a Moore state emitting ``output``. Pairs are ordered by target state in
    declaration order, then by output. When no transition enters the initial
    state, a leading state without output stands in for it.

    Args:
        mealy: The Mealy automaton to convert.
        prefix: Prefix of the generated state names (R0, R1, ...).
    """
    outputs_by_state: Dict[str, Set] = {state: set() for state in mealy.states}
    for symbol in mealy.inputs:
        for state in mealy.states:
            transition = mealy.transition(state, symbol)
            if not transition.is_defined:
                continue
            if not mealy.has_state(transition.target):
                raise UnknownStateReference(transition.target, state, symbol)
            outputs_by_state[transition.target].add(transition.output)

    if not outputs_by_state[mealy.initial_state]:
        outputs_by_state[mealy.initial_state].add(UNDEFINED)

    pairs: List[Tuple[str, object]] = []
    for state in mealy.states:
        for output in sorted(outputs_by_state[state], key=_output_sort_key):
            pairs.append((state, output))
    names = {pair: f"{prefix}{position}" for position, pair in enumerate(pairs)}

    rows = []
    for symbol in mealy.inputs:
        row = []
        for state, _ in pairs:
            transition = mealy.transition(state, symbol)
            row.append(names[tuple(transition)] if transition.is_defined else None)
        rows.append(row)

    return MooreAutomaton([names[pair] for pair in pairs], mealy.inputs, [output for _, output in pairs], rows)


def convert(automaton: Automaton, target_kind: str, prefix: str = 'R') -> Automaton:
    """
    Converts ``automaton`` to ``target_kind`` ('mealy' or 'moore'). An automaton
    already of that kind is returned unchanged; ``prefix`` names generated Moore states.
    """
    if target_kind not in ('mealy', 'moore'):
        raise MalformedAutomaton(f"Unknown automaton type: {target_kind!r}")
    if automaton.kind == target_kind:
        return automaton
    if target_kind == 'mealy':
        return moore_to_mealy(automaton)
    return mealy_to_moore(automaton, prefix)
