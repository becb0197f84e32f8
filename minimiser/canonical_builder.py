import logging
from typing import Dict, List

from .automata import (
    UNDEFINED,
    Automaton,
    InconsistentPartition,
    MealyAutomaton,
    MooreAutomaton,
)
from .partition_refinement import Partition, next_class_signature, partition_index

logger = logging.getLogger(__name__)


def class_names(partition: Partition, prefix: str = 'X') -> List[str]:
    """Canonical names for the classes of ``partition``: X1, X2, ..."""
    return [f"{prefix}{position}" for position in range(1, len(partition) + 1)]


def _check_cover(automaton: Automaton, partition: Partition) -> None:
    seen = set()
    for group in partition:
        if not group:
            raise InconsistentPartition("Partition contains an empty class")
        for state in group:
            if not automaton.has_state(state):
                raise InconsistentPartition(f"Partition contains unknown state '{state}'")
            if state in seen:
                raise InconsistentPartition(f"State '{state}' belongs to more than one class")
            seen.add(state)
    missing = [state for state in automaton.states if state not in seen]
    if missing:
        raise InconsistentPartition(f"Partition does not cover states: {missing}")


def _check_consistency(automaton: Automaton, partition: Partition, class_of: Dict[str, int]) -> None:
    for group in partition:
        representative = group[0]
        expected_output = automaton.output_signature(representative)
        expected_next = next_class_signature(automaton, representative, class_of)
        for state in group[1:]:
            if automaton.output_signature(state) != expected_output:
                raise InconsistentPartition(
                    f"States '{representative}' and '{state}' share a class but differ in output"
                )
            if next_class_signature(automaton, state, class_of) != expected_next:
                raise InconsistentPartition(
                    f"States '{representative}' and '{state}' share a class but lead to different classes"
                )


def build_minimised(automaton: Automaton, partition: Partition, prefix: str = 'X') -> Automaton:
    """
    Rebuilds ``automaton`` with one state per class of ``partition``.

    Each class is named ``{prefix}1``, ``{prefix}2``, ... in partition order and
    takes its transitions and outputs from its first member.

    Raises:
        InconsistentPartition: If the partition does not cover the states exactly
            once, or if two members of a class are distinguishable in one step.
    """
    _check_cover(automaton, partition)
    class_of = partition_index(partition)
    _check_consistency(automaton, partition, class_of)

    names = class_names(partition, prefix)
    representatives = [group[0] for group in partition]

    def class_name(target):
        if target is UNDEFINED or target not in class_of:
            return UNDEFINED
        return names[class_of[target]]

    if isinstance(automaton, MooreAutomaton):
        outputs = [automaton.output_of(state) for state in representatives]
        rows = [
            [class_name(automaton.target(state, symbol)) for state in representatives]
            for symbol in automaton.inputs
        ]
        minimised = MooreAutomaton(names, automaton.inputs, outputs, rows)
    elif isinstance(automaton, MealyAutomaton):
        rows = []
        for symbol in automaton.inputs:
            row = []
            for state in representatives:
                transition = automaton.transition(state, symbol)
                row.append((class_name(transition.target), transition.output))
            rows.append(row)
        minimised = MealyAutomaton(names, automaton.inputs, rows)
    else:
        raise TypeError(f"Unsupported automaton type: {type(automaton).__name__}")

    logger.debug("Built %s automaton with %d states from %d", automaton.kind, len(names), len(automaton))
    return minimised
