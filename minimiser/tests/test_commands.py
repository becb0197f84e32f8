import tempfile
from io import StringIO
from pathlib import Path

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings


class CommandTestCase(TestCase):
    """Base test case running management commands against files in a temporary directory"""

    def setUp(self):
        self._directory = tempfile.TemporaryDirectory()
        self.addCleanup(self._directory.cleanup)
        self.directory = Path(self._directory.name)

    def write(self, name, content):
        path = self.directory / name
        path.write_text(content)
        return str(path)

    def run_command(self, *args):
        stdout = StringIO()
        call_command(*args, stdout=stdout)
        return stdout.getvalue()


class MinimiseCommandTests(CommandTestCase):
    """Tests for the ``minimise`` management command"""

    def test_minimise_moore_table(self):
        source = self.write('moore.csv', ";0;0;1;1\n;q0;q1;q2;q3\na;q1;q1;q1;q0\nb;q2;q2;q2;q0\n")
        target = str(self.directory / 'minimised.csv')

        output = self.run_command('minimise', 'moore', source, target)

        self.assertIn('Minimised moore automaton: 4 -> 2 states', output)
        self.assertEqual(Path(target).read_text(), ";0;1\n;X1;X2\na;X1;X1\nb;X2;X2\n")

    def test_minimise_mealy_table(self):
        source = self.write('mealy.csv', ";s0;s1;s2\na;s1/x;s1/x;s1/x\nb;s2/y;;s2/y\n")
        target = str(self.directory / 'minimised.csv')

        self.run_command('minimise', 'mealy', source, target)

        self.assertEqual(Path(target).read_text(), ";X1;X2\na;X2/x;X2/x\nb;X1/y;\n")

    @override_settings(FSM_MINIMISER={'TABLE_DELIMITER': ',', 'CLASS_PREFIX': 'S'})
    def test_settings_control_format_and_names(self):
        source = self.write('moore.csv', ",0,1\n,q0,q1\na,q1,q0\n")
        target = str(self.directory / 'minimised.csv')

        self.run_command('minimise', 'moore', source, target)

        self.assertEqual(Path(target).read_text(), ",0,1\n,S1,S2\na,S2,S1\n")

    def test_malformed_table(self):
        source = self.write('broken.csv', ";s0\na;s0\n")
        with self.assertRaises(CommandError):
            self.run_command('minimise', 'mealy', source, str(self.directory / 'out.csv'))

    def test_reachable_unknown_state(self):
        source = self.write('broken.csv', ";0;1\n;q0;q1\na;q9;q0\n")
        with self.assertRaises(CommandError) as raised:
            self.run_command('minimise', 'moore', source, str(self.directory / 'out.csv'))
        self.assertIn('q9', str(raised.exception))

    def test_missing_input_file(self):
        with self.assertRaises(CommandError):
            self.run_command('minimise', 'moore', str(self.directory / 'absent.csv'),
                             str(self.directory / 'out.csv'))

    def test_unknown_kind(self):
        with self.assertRaises(CommandError):
            self.run_command('minimise', 'dfa', 'in.csv', 'out.csv')


class ConvertCommandTests(CommandTestCase):
    """Tests for the ``convert`` management command"""

    def test_mealy_to_moore(self):
        source = self.write('mealy.csv', ";s0;s1\na;s1/x;s1/x\nb;s0/y;s0/x\n")
        target = str(self.directory / 'moore.csv')

        output = self.run_command('convert', 'mealy-to-moore', source, target)

        self.assertIn('Converted mealy automaton with 2 states to moore automaton with 3 states', output)
        self.assertEqual(
            Path(target).read_text(),
            ";x;y;x\n;R0;R1;R2\na;R2;R2;R2\nb;R1;R1;R0\n"
        )

    def test_moore_to_mealy_drops_unreachable_states(self):
        source = self.write('moore.csv', ";0;1;1\n;q0;q1;q2\na;q1;q0;q0\n")
        target = str(self.directory / 'mealy.csv')

        output = self.run_command('convert', 'moore-to-mealy', source, target)

        self.assertIn('with 2 states to mealy automaton with 2 states', output)
        self.assertEqual(Path(target).read_text(), ";q0;q1\na;q1/1;q0/0\n")

    def test_unknown_conversion(self):
        with self.assertRaises(CommandError):
            self.run_command('convert', 'dfa-to-nfa', 'in.csv', 'out.csv')
