import json
from unittest.mock import patch

from django.test import TestCase, Client
from django.urls import reverse


class AutomatonViewTestCase(TestCase):
    """Base test case with common automaton definitions and utilities"""

    def setUp(self):
        self.client = Client()

        # q0 and q1 are equivalent, q3 is unreachable
        self.sample_moore = {
            'type': 'moore',
            'states': ['q0', 'q1', 'q2', 'q3'],
            'inputs': ['a', 'b'],
            'outputs': {'q0': '0', 'q1': '0', 'q2': '1', 'q3': '1'},
            'transitions': {
                'q0': {'a': 'q1', 'b': 'q2'},
                'q1': {'a': 'q1', 'b': 'q2'},
                'q2': {'a': 'q1', 'b': 'q2'},
                'q3': {'a': 'q0', 'b': 'q0'}
            }
        }

        # s0 and s2 are equivalent, s1 has no 'b' transition
        self.sample_mealy = {
            'type': 'mealy',
            'states': ['s0', 's1', 's2'],
            'inputs': ['a', 'b'],
            'transitions': {
                's0': {'a': {'target': 's1', 'output': 'x'}, 'b': {'target': 's2', 'output': 'y'}},
                's1': {'a': {'target': 's1', 'output': 'x'}},
                's2': {'a': {'target': 's1', 'output': 'x'}, 'b': {'target': 's2', 'output': 'y'}}
            }
        }

        # Invalid automaton (missing required keys)
        self.invalid_automaton = {
            'type': 'moore',
            'states': ['q0'],
            'inputs': ['a']
            # Missing outputs and transitions
        }

    def post_json(self, url, data):
        """Helper method to send JSON POST requests"""
        return self.client.post(
            url,
            data=json.dumps(data),
            content_type='application/json'
        )


class MinimiseViewTests(AutomatonViewTestCase):
    """Tests for the minimisation endpoint"""

    def test_minimise_moore(self):
        response = self.post_json(reverse('minimise'), {'automaton': self.sample_moore})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['type'], 'moore')
        self.assertEqual(data['original_automaton'], self.sample_moore)
        self.assertEqual(data['minimised_automaton'], {
            'type': 'moore',
            'states': ['X1', 'X2'],
            'inputs': ['a', 'b'],
            'outputs': {'X1': '0', 'X2': '1'},
            'transitions': {
                'X1': {'a': 'X1', 'b': 'X2'},
                'X2': {'a': 'X1', 'b': 'X2'}
            }
        })
        self.assertEqual(data['classes'], {'X1': ['q0', 'q1'], 'X2': ['q2']})
        self.assertEqual(data['message'], 'Moore automaton minimised successfully')

    def test_minimise_statistics(self):
        response = self.post_json(reverse('minimise'), {'automaton': self.sample_moore})

        statistics = response.json()['statistics']
        self.assertEqual(statistics['original_states'], 4)
        self.assertEqual(statistics['reachable_states'], 3)
        self.assertEqual(statistics['minimised_states'], 2)
        self.assertEqual(statistics['refinement_rounds'], 1)
        self.assertEqual(statistics['reduction'], {
            'states_reduced': 2,
            'unreachable_states_removed': 1,
            'equivalent_states_merged': 1,
            'states_reduction_percentage': 50.0,
            'is_already_minimal': False
        })

    def test_minimise_mealy_keeps_missing_transitions_out(self):
        response = self.post_json(reverse('minimise'), {'automaton': self.sample_mealy})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['classes'], {'X1': ['s0', 's2'], 'X2': ['s1']})
        self.assertEqual(data['minimised_automaton']['transitions'], {
            'X1': {'a': {'target': 'X2', 'output': 'x'}, 'b': {'target': 'X1', 'output': 'y'}},
            'X2': {'a': {'target': 'X2', 'output': 'x'}}
        })

    def test_already_minimal(self):
        automaton = {
            'type': 'moore',
            'states': ['q0', 'q1'],
            'inputs': ['a'],
            'outputs': {'q0': '0', 'q1': '1'},
            'transitions': {'q0': {'a': 'q1'}, 'q1': {'a': 'q0'}}
        }

        data = self.post_json(reverse('minimise'), {'automaton': automaton}).json()

        self.assertTrue(data['statistics']['reduction']['is_already_minimal'])
        self.assertEqual(data['message'], 'Moore automaton was already minimal')

    def test_missing_automaton(self):
        response = self.post_json(reverse('minimise'), {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Missing automaton definition')

    def test_invalid_automaton_structure(self):
        response = self.post_json(reverse('minimise'), {'automaton': self.invalid_automaton})

        self.assertEqual(response.status_code, 400)
        self.assertIn('Missing required key', response.json()['error'])

    def test_reachable_reference_to_unknown_state(self):
        self.sample_moore['transitions']['q2']['a'] = 'q9'

        response = self.post_json(reverse('minimise'), {'automaton': self.sample_moore})

        self.assertEqual(response.status_code, 400)
        self.assertIn('q9', response.json()['error'])

    def test_state_and_input_names_must_be_strings(self):
        for key, value in [('states', ['q0', ['q1']]), ('inputs', ['a', {'b': 1}])]:
            automaton = dict(self.sample_moore, **{key: value})

            response = self.post_json(reverse('minimise'), {'automaton': automaton})

            self.assertEqual(response.status_code, 400, key)
            self.assertIn('must be non-empty strings', response.json()['error'])

    def test_get_request_not_allowed(self):
        response = self.client.get(reverse('minimise'))
        self.assertEqual(response.status_code, 405)

    @patch('minimiser.views.minimise_with_details')
    def test_unexpected_exception(self, mock_minimise):
        mock_minimise.side_effect = Exception("Refinement error")

        response = self.post_json(reverse('minimise'), {'automaton': self.sample_moore})

        self.assertEqual(response.status_code, 500)
        self.assertIn('Server error', response.json()['error'])


class RemoveUnreachableViewTests(AutomatonViewTestCase):
    """Tests for the unreachable state removal endpoint"""

    def test_remove_unreachable(self):
        response = self.post_json('/api/remove-unreachable/', {'automaton': self.sample_moore})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['removed_states'], ['q3'])
        self.assertEqual(data['pruned_automaton']['states'], ['q0', 'q1', 'q2'])
        self.assertNotIn('q3', data['pruned_automaton']['outputs'])
        self.assertEqual(data['message'], 'Removed 1 unreachable state(s)')

    def test_nothing_to_remove(self):
        data = self.post_json('/api/remove-unreachable/', {'automaton': self.sample_mealy}).json()
        self.assertEqual(data['removed_states'], [])


class ConvertViewTests(AutomatonViewTestCase):
    """Tests for the Mealy <-> Moore conversion endpoint"""

    def test_moore_to_mealy(self):
        response = self.post_json('/api/convert/', {'automaton': self.sample_moore, 'target': 'mealy'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        converted = data['converted_automaton']
        self.assertEqual(converted['type'], 'mealy')
        self.assertEqual(converted['states'], ['q0', 'q1', 'q2'])
        self.assertEqual(converted['transitions']['q0']['b'], {'target': 'q2', 'output': '1'})
        self.assertEqual(data['statistics'], {'original_states': 4, 'converted_states': 3})

    def test_mealy_to_moore(self):
        response = self.post_json('/api/convert/', {'automaton': self.sample_mealy, 'target': 'moore'})

        self.assertEqual(response.status_code, 200)
        converted = response.json()['converted_automaton']
        self.assertEqual(converted['type'], 'moore')
        # s0 is never entered, then (s1, x) and (s2, y)
        self.assertEqual(converted['states'], ['R0', 'R1', 'R2'])
        self.assertEqual(converted['outputs'], {'R0': None, 'R1': 'x', 'R2': 'y'})

    def test_invalid_target(self):
        response = self.post_json('/api/convert/', {'automaton': self.sample_mealy, 'target': 'dfa'})
        self.assertEqual(response.status_code, 400)


class CheckPropertiesViewTests(AutomatonViewTestCase):
    """Tests for the property checking endpoint"""

    def test_check_properties(self):
        response = self.post_json('/api/check-properties/', {'automaton': self.sample_moore})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['type'], 'moore')
        self.assertEqual(data['properties'], {'complete': True, 'connected': False, 'minimal': False})
        self.assertEqual(data['unreachable_states'], ['q3'])

    def test_incomplete_mealy(self):
        data = self.post_json('/api/check-properties/', {'automaton': self.sample_mealy}).json()
        self.assertFalse(data['properties']['complete'])
        self.assertTrue(data['properties']['connected'])


class SimulateViewTests(AutomatonViewTestCase):
    """Tests for the simulation endpoint"""

    def test_simulate_moore(self):
        response = self.post_json('/api/simulate/', {'automaton': self.sample_moore, 'input': 'ab'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['completed'])
        self.assertEqual(data['path'], [['q0', 'a', 'q1'], ['q1', 'b', 'q2']])
        self.assertEqual(data['outputs'], ['0', '1'])

    def test_simulate_mealy_rejected(self):
        response = self.post_json('/api/simulate/', {'automaton': self.sample_mealy, 'input': ['a', 'b']})

        data = response.json()
        self.assertFalse(data['completed'])
        self.assertEqual(data['rejection_position'], 1)
        self.assertEqual(data['final_state'], 's1')

    def test_undefined_output_is_null(self):
        automaton = {
            'type': 'mealy',
            'states': ['s0'],
            'inputs': ['a'],
            'transitions': {'s0': {'a': {'target': 's0', 'output': None}}}
        }

        data = self.post_json('/api/simulate/', {'automaton': automaton, 'input': 'a'}).json()

        self.assertEqual(data['outputs'], [None])

    def test_unknown_start_state(self):
        response = self.post_json('/api/simulate/', {
            'automaton': self.sample_moore,
            'input': 'a',
            'start': 'q9'
        })
        self.assertEqual(response.status_code, 400)

    def test_start_state_must_be_a_name(self):
        response = self.post_json('/api/simulate/', {
            'automaton': self.sample_moore,
            'input': 'a',
            'start': ['q0']
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'start must be a state name')

    def test_invalid_input_type(self):
        response = self.post_json('/api/simulate/', {'automaton': self.sample_moore, 'input': 5})
        self.assertEqual(response.status_code, 400)


class JSONParsingErrorTests(AutomatonViewTestCase):
    """Tests for malformed request bodies"""

    def test_malformed_json(self):
        endpoints = [
            '/api/minimise/',
            '/api/remove-unreachable/',
            '/api/convert/',
            '/api/check-properties/',
            '/api/simulate/'
        ]

        for endpoint in endpoints:
            response = self.client.post(
                endpoint,
                data='{"invalid": json}',
                content_type='application/json'
            )
            self.assertEqual(response.status_code, 400, endpoint)
            self.assertIn('error', response.json())

    def test_body_is_not_an_object(self):
        response = self.post_json('/api/minimise/', ['q0'])
        self.assertEqual(response.status_code, 400)
