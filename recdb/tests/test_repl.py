#!/usr/bin/env python3
"""
Shell tests for RecDB

Run: python -m pytest recdb/tests/test_repl.py -v
"""

import io
import os
import shutil
import sys
import tempfile
import unittest
from contextlib import redirect_stdout

# Add parent directories to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from recdb.core.repl import REPL, main


class TestREPL(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.repl = REPL(self.test_dir)

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def run_command(self, line):
        out = io.StringIO()
        with redirect_stdout(out):
            self.repl.execute(line)
        return out.getvalue()

    def setup_table(self):
        self.run_command('.create shop')
        self.run_command('.use shop')
        self.run_command('.createtable items [{"name": "id", "type": "integer", "autoIncrement": true},'
                         ' {"name": "name", "type": "string"}]')

    def test_unknown_command(self):
        self.assertIn('Unknown command', self.run_command('.frobnicate'))

    def test_requires_database(self):
        self.assertIn('No database selected', self.run_command('.tables'))

    def test_use_missing_database(self):
        self.assertIn('does not exist', self.run_command('.use ghost'))
        self.assertIsNone(self.repl.current_db)

    def test_table_workflow(self):
        self.setup_table()
        self.assertIn('"id": 1', self.run_command('.insert items {"name": "lamp desk"}'))
        self.run_command('.insert items {"name": "chair"}')

        output = self.run_command('.rows items')
        self.assertIn('lamp desk', output)
        self.assertIn('2 row(s) total', output)

        self.assertIn('(1 row(s) updated)',
                      self.run_command('.update items {"id": 2} {"name": "stool"}'))
        self.assertIn('(1 row(s) deleted)', self.run_command('.delete items {"name": "lamp desk"}'))

        output = self.run_command('.project items name')
        self.assertIn('stool', output)
        self.assertNotIn('lamp', output)

    def test_schema_and_tables(self):
        self.setup_table()
        self.assertIn('AUTO_INCREMENT', self.run_command('.schema items'))
        self.assertIn('items', self.run_command('.tables'))
        self.assertIn('shop', self.run_command('.databases'))

    def test_errors_are_printed(self):
        self.setup_table()
        self.assertIn('Extra fields found: color',
                      self.run_command('.insert items {"name": "x", "color": "red"}'))
        self.assertIn('Invalid JSON', self.run_command('.insert items {name}'))
        self.assertIn('No filter criteria', self.run_command('.delete items {}'))

    def test_drop(self):
        self.setup_table()
        self.run_command('.droptable items')
        self.assertIn('No tables found', self.run_command('.tables'))
        self.run_command('.dropdb shop')
        self.assertIsNone(self.repl.current_db)
        self.assertIn('No databases found', self.run_command('.databases'))

    def test_quit(self):
        self.repl.running = True
        self.assertIn('Goodbye', self.run_command('.quit'))
        self.assertFalse(self.repl.running)

    def test_main_runs_commands(self):
        out = io.StringIO()
        with redirect_stdout(out):
            main(['-d', self.test_dir, '-c', '.create cli', '-c', '.databases'])
        self.assertIn("Database 'cli' created.", out.getvalue())
        self.assertTrue(os.path.isdir(os.path.join(self.test_dir, 'cli')))


if __name__ == '__main__':
    unittest.main()
