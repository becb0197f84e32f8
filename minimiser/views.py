import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .automata import UNDEFINED, automaton_from_dict, automaton_to_dict
from .conf import get_setting
from .fsm_properties import check_all_properties, validate_automaton_structure
from .fsm_simulation import simulate_automaton
from .fsm_transformations import (
    convert,
    find_reachable_states,
    minimise_with_details,
    remove_unreachable_states,
)

logger = logging.getLogger(__name__)


def _read_automaton(request):
    """
    Parses the request body and returns ``(data, automaton, error_response)``.
    Exactly one of ``automaton`` and ``error_response`` is set.
    """
    data = json.loads(request.body)
    if not isinstance(data, dict):
        return data, None, JsonResponse({'error': 'Request body must be a JSON object'}, status=400)

    definition = data.get('automaton')
    if not definition:
        return data, None, JsonResponse({'error': 'Missing automaton definition'}, status=400)

    # Validate automaton structure
    validation = validate_automaton_structure(definition)
    if not validation['valid']:
        return data, None, JsonResponse({'error': validation['error']}, status=400)

    return data, automaton_from_dict(definition), None


def _json_symbol(value):
    return None if value is UNDEFINED else value


def _server_error(e: Exception) -> JsonResponse:
    logger.exception("Unexpected error while handling request")
    return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def minimise_automaton(request):
    """
    Django view to handle Moore and Mealy minimisation requests.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton definition (see ``automaton_from_dict``)

    Returns a JSON response with the minimised automaton, the equivalence
    classes it was built from and reduction statistics.
    """
    try:
        data, automaton, error = _read_automaton(request)
        if error:
            return error

        result = minimise_with_details(automaton, prefix=get_setting('CLASS_PREFIX'))
        minimised = result.automaton

        reduction_stats = {
            'states_reduced': result.original_states - result.final_states,
            'unreachable_states_removed': result.original_states - result.reachable_states,
            'equivalent_states_merged': result.reachable_states - result.final_states,
            'states_reduction_percentage': round(
                ((result.original_states - result.final_states) / result.original_states) * 100, 2
            ),
            'is_already_minimal': result.is_already_minimal
        }

        classes = {
            name: list(group) for name, group in zip(minimised.states, result.partition)
        }

        return JsonResponse({
            'success': True,
            'type': automaton.kind,
            'original_automaton': data['automaton'],
            'minimised_automaton': automaton_to_dict(minimised),
            'classes': classes,
            'statistics': {
                'original_states': result.original_states,
                'reachable_states': result.reachable_states,
                'minimised_states': result.final_states,
                'refinement_rounds': result.rounds,
                'reduction': reduction_stats
            },
            'message': f'{automaton.kind.capitalize()} automaton minimised successfully'
                       if not result.is_already_minimal
                       else f'{automaton.kind.capitalize()} automaton was already minimal'
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        return _server_error(e)


@csrf_exempt
@require_POST
def remove_unreachable(request):
    """
    Django view returning the automaton restricted to the states reachable
    from its initial state.
    """
    try:
        data, automaton, error = _read_automaton(request)
        if error:
            return error

        pruned = remove_unreachable_states(automaton)
        removed = [state for state in automaton.states if not pruned.has_state(state)]

        return JsonResponse({
            'success': True,
            'pruned_automaton': automaton_to_dict(pruned),
            'removed_states': removed,
            'message': f'Removed {len(removed)} unreachable state(s)'
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        return _server_error(e)


@csrf_exempt
@require_POST
def convert_automaton(request):
    """
    Django view to handle Mealy <-> Moore conversion requests.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton definition
    - target: 'mealy' or 'moore'

    Unreachable states are removed before converting.
    """
    try:
        data, automaton, error = _read_automaton(request)
        if error:
            return error

        target = data.get('target')
        if target not in ('mealy', 'moore'):
            return JsonResponse({'error': "target must be 'mealy' or 'moore'"}, status=400)

        pruned = remove_unreachable_states(automaton)
        converted = convert(pruned, target, prefix=get_setting('MOORE_STATE_PREFIX'))

        return JsonResponse({
            'success': True,
            'converted_automaton': automaton_to_dict(converted),
            'statistics': {
                'original_states': len(automaton),
                'converted_states': len(converted)
            },
            'message': f'Converted {automaton.kind} automaton to {target}'
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        return _server_error(e)


@csrf_exempt
@require_POST
def check_properties(request):
    """
    Django view to check completeness, connectivity and minimality at once.
    """
    try:
        data, automaton, error = _read_automaton(request)
        if error:
            return error

        properties = check_all_properties(automaton)
        reachable = find_reachable_states(automaton)

        return JsonResponse({
            'type': automaton.kind,
            'properties': properties,
            'unreachable_states': [state for state in automaton.states if state not in reachable]
        })

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        return _server_error(e)


@csrf_exempt
@require_POST
def simulate(request):
    """
    Django view to run an input word through an automaton.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton definition
    - input: A list of input symbols, or a string read one character per symbol
    - start: (optional) The state to start from

    Returns a JSON response with the visited path and the emitted outputs.
    """
    try:
        data, automaton, error = _read_automaton(request)
        if error:
            return error

        word = data.get('input', [])
        if not isinstance(word, (list, str)):
            return JsonResponse({'error': 'input must be a list of symbols or a string'}, status=400)

        start = data.get('start')
        if start is not None and not isinstance(start, str):
            return JsonResponse({'error': 'start must be a state name'}, status=400)

        result = simulate_automaton(automaton, word, start)
        result['outputs'] = [_json_symbol(output) for output in result['outputs']]
        result['path'] = [list(step) for step in result['path']]

        return JsonResponse(result)

    except ValueError as e:
        return JsonResponse({'error': str(e)}, status=400)
    except Exception as e:
        return _server_error(e)
