"""
Equivalence partition refinement for Moore and Mealy automata.

The partition starts from the observable outputs of each state and is split
round by round until no group splits any more. Each round reads a frozen
state -> class snapshot taken before any signature is computed, so the result
does not depend on the order in which groups are visited.

Ordering is deterministic: classes appear in the order their first member is
met while scanning states in declaration order, and a group that splits is
replaced in place by its sub-groups. Members keep declaration order, so the
first member of a class is its representative and the class holding the
initial state is always the first class.
"""
import logging
from typing import Callable, Dict, Hashable, Iterable, List, NamedTuple, Tuple

from .automata import UNDEFINED, Automaton

logger = logging.getLogger(__name__)

# Class id used for undefined targets and for targets outside the state set
UNDEFINED_CLASS = -1

Partition = Tuple[Tuple[str, ...], ...]
Signature = Tuple[Tuple[Hashable, int], ...]


class RefinementTrace(NamedTuple):
    """Final partition plus the number of classes after every round."""
    partition: Partition
    rounds: int
    class_counts: Tuple[int, ...]


def partition_index(partition: Partition) -> Dict[str, int]:
    """Maps every state to the position of its class in ``partition``."""
    index = {}
    for class_id, group in enumerate(partition):
        for state in group:
            index[state] = class_id
    return index


def _group_by(states: Iterable[str], key: Callable[[str], Hashable]) -> List[Tuple[str, ...]]:
    # dict keeps insertion order, so groups come out by first member
    groups: Dict[Hashable, List[str]] = {}
    for state in states:
        groups.setdefault(key(state), []).append(state)
    return [tuple(group) for group in groups.values()]


def initial_partition(automaton: Automaton) -> Partition:
    """
    Groups states by their observable output.

    Moore states are grouped by their own output, Mealy states by the tuple of
    outputs over the whole alphabet. Missing outputs are ``UNDEFINED``, which
    never equals a real output symbol.
    """
    return tuple(_group_by(automaton.states, automaton.output_signature))


def next_class_signature(automaton: Automaton, state: str, class_of: Dict[str, int]) -> Signature:
    """
    For each input symbol, the transition label (Mealy only) paired with the
    class of the target according to ``class_of``.
    """
    signature = []
    for symbol in automaton.inputs:
        target = automaton.target(state, symbol)
        if target is UNDEFINED:
            class_id = UNDEFINED_CLASS
        else:
            class_id = class_of.get(target, UNDEFINED_CLASS)
        signature.append((automaton.edge_label(state, symbol), class_id))
    return tuple(signature)


def refine_once(automaton: Automaton, partition: Partition) -> Tuple[Partition, bool]:
    """
    Runs a single refinement round.

    Args:
        automaton: The automaton whose states are partitioned.
        partition: The partition at the start of the round.

    Returns:
        Tuple of the refined partition and whether any group was split.
    """
    class_of = partition_index(partition)

    refined: List[Tuple[str, ...]] = []
    split = False
    for group in partition:
        sub_groups = _group_by(group, lambda state: next_class_signature(automaton, state, class_of))
        if len(sub_groups) != 1:
            split = True
        refined.extend(sub_groups)

    return tuple(refined), split


def refine_with_trace(automaton: Automaton) -> RefinementTrace:
    """Refines to the fixed point and records how the class count evolved."""
    partition = initial_partition(automaton)
    class_counts = [len(partition)]
    rounds = 0

    while True:
        rounds += 1
        partition, split = refine_once(automaton, partition)
        logger.debug("Refinement round %d: %d classes", rounds, len(partition))
        if not split:
            break
        class_counts.append(len(partition))

    return RefinementTrace(partition, rounds, tuple(class_counts))


def refine(automaton: Automaton) -> Partition:
    """
    Computes the coarsest partition in which states of the same class have the
    same output and, for every input, move into the same class.

    Returns:
        Tuple of classes, each a tuple of state names in declaration order.
    """
    return refine_with_trace(automaton).partition
