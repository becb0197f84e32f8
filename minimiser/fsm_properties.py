from typing import Dict

from .automata import UNDEFINED, Automaton, MinimiserError, automaton_from_dict, iter_transitions
from .fsm_transformations import find_reachable_states, minimise_with_details


def is_complete(automaton: Automaton) -> bool:
    """
    Checks if the automaton is complete.

    An automaton is complete if for each state and each symbol a transition is
    defined. Outputs are not considered.

    Args:
        automaton: A Moore or Mealy automaton

    Returns:
        bool: True if the automaton is complete, False otherwise
    """
    return all(target is not UNDEFINED for _, _, target in iter_transitions(automaton))


def is_connected(automaton: Automaton) -> bool:
    """
    Checks if the automaton is connected, that is if all states are reachable
    from the initial state.
    """
    return len(find_reachable_states(automaton)) == len(automaton)


def is_minimal(automaton: Automaton) -> bool:
    """
    Checks if the automaton is minimal: connected and with no two equivalent states.
    """
    return minimise_with_details(automaton).is_already_minimal


def check_all_properties(automaton: Automaton) -> Dict:
    """
    Check all automaton properties at once.

    Returns:
        Dict: Dictionary containing all property check results:
        {
            'complete': bool,
            'connected': bool,
            'minimal': bool
        }
    """
    return {
        'complete': is_complete(automaton),
        'connected': is_connected(automaton),
        'minimal': is_minimal(automaton)
    }


def validate_automaton_structure(data: Dict) -> Dict:
    """
    Validates that a JSON automaton can be turned into a Moore or Mealy automaton.

    Args:
        data: The automaton dictionary to validate

    Returns:
        Dict: Validation result with 'valid' boolean and optional 'error' message
    """
    if not isinstance(data, dict):
        return {'valid': False, 'error': 'Automaton must be a dictionary'}

    required_keys = ['type', 'states', 'inputs', 'transitions']
    if data.get('type') == 'moore':
        required_keys.append('outputs')

    # Check all required keys exist
    for key in required_keys:
        if key not in data:
            return {'valid': False, 'error': f'Missing required key: {key}'}

    try:
        automaton_from_dict(data)
    except MinimiserError as e:
        return {'valid': False, 'error': str(e)}

    return {'valid': True}
