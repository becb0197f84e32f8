from typing import Dict, List, Optional, Sequence, Tuple

from .automata import UNDEFINED, Automaton, MealyAutomaton, MooreAutomaton, UnknownStateReference


def _rejected(path: List, outputs: List, current: str, reason: str, position: int) -> Dict:
    return {
        'completed': False,
        'path': path,
        'outputs': outputs,
        'final_state': current,
        'rejection_reason': reason,
        'rejection_position': position
    }


def simulate_automaton(automaton: Automaton, word: Sequence[str], start: Optional[str] = None) -> Dict:
    """
    Runs ``word`` through a Moore or Mealy automaton.

    Args:
        automaton: The automaton to run
        word: Sequence of input symbols; a plain string is read one character per symbol
        start: State to start from, the initial state by default

    Returns:
        A dictionary with:
        {
            'completed': bool,  # Whether every symbol was consumed
            'path': [(current_state, symbol, next_state), ...],
            'outputs': [output, ...],  # One output per consumed symbol
            'final_state': str,
            'rejection_reason': str,  # Only when not completed
            'rejection_position': int  # Only when not completed
        }
        A Moore step emits the output of the state entered, a Mealy step the
        output of the transition taken.

    Raises:
        UnknownStateReference: If ``start`` or a visited target is not a declared state.
    """
    current = automaton.initial_state if start is None else start
    if not automaton.has_state(current):
        raise UnknownStateReference(current)

    path: List[Tuple[str, str, str]] = []
    outputs: List = []

    for position, symbol in enumerate(word):
        if symbol not in automaton.inputs:
            return _rejected(path, outputs, current, f"Symbol '{symbol}' not in alphabet", position)

        target = automaton.target(current, symbol)
        if target is UNDEFINED:
            return _rejected(
                path, outputs, current,
                f"No transition defined for symbol '{symbol}' from state '{current}'",
                position
            )
        if not automaton.has_state(target):
            raise UnknownStateReference(target, current, symbol)

        if isinstance(automaton, MooreAutomaton):
            outputs.append(automaton.output_of(target))
        else:
            outputs.append(automaton.output(current, symbol))
        path.append((current, symbol, target))
        current = target

    return {
        'completed': True,
        'path': path,
        'outputs': outputs,
        'final_state': current
    }


def simulate_moore(automaton: MooreAutomaton, word: Sequence[str], start: Optional[str] = None) -> Dict:
    if not isinstance(automaton, MooreAutomaton):
        raise TypeError("simulate_moore requires a MooreAutomaton")
    return simulate_automaton(automaton, word, start)


def simulate_mealy(automaton: MealyAutomaton, word: Sequence[str], start: Optional[str] = None) -> Dict:
    if not isinstance(automaton, MealyAutomaton):
        raise TypeError("simulate_mealy requires a MealyAutomaton")
    return simulate_automaton(automaton, word, start)
