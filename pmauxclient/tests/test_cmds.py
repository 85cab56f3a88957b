# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

import contextlib
import io
import json
import logging
import os
import shutil
import socket
import tempfile
import unittest
import urllib.error
from unittest import mock

from bitcoin.core import x, b2x

from pmauxclient.args import parse_pmaux_args, DEFAULT_ROUNDS_FILE
from pmauxclient.pmaux import verbosity_to_log_level

BLOCK_HASH = x('7624778dedc75f8b322b9fa1632a610d40b85e106c7d9bf0e743a9ce291b9c6f')
AUX_DATA = b'\x00'*31 + b'\x05' + BLOCK_HASH

class PmauxCommandTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp(prefix='tmpPmaux')
        self.rounds_file = os.path.join(self.temp_dir, 'rounds.json')
        self.write_rounds(5, {5: BLOCK_HASH})

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_rounds(self, last_initialized_round, block_hashes):
        with open(self.rounds_file, 'w') as fd:
            json.dump({'last_initialized_round': last_initialized_round,
                       'block_hashes': {str(n): b2x(h) for n, h in block_hashes.items()}},
                      fd)

    def run_pmaux(self, *raw_args):
        """Run a command, returning what it printed"""
        args = parse_pmaux_args(['--rounds-file', self.rounds_file] + list(raw_args))

        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            args.cmd_func(args)
        return stdout.getvalue()

    def assertFails(self, *raw_args):
        with self.assertLogs(level='ERROR') as logs:
            with self.assertRaises(SystemExit) as cm:
                self.run_pmaux(*raw_args)
        self.assertEqual(cm.exception.code, 1)
        return logs.output


class Test_create(PmauxCommandTestCase):
    def test_create(self):
        self.assertEqual(self.run_pmaux('create'), b2x(AUX_DATA) + '\n')

    def test_create_round_zero(self):
        self.write_rounds(0, {0: b'\x00'*32})
        self.assertEqual(self.run_pmaux('create'), '00'*64 + '\n')

    def test_create_unknown_round(self):
        self.write_rounds(6, {5: BLOCK_HASH})
        output = self.assertFails('create')
        self.assertIn('no block hash known for round 6', output[0])

    def test_missing_rounds_file(self):
        os.remove(self.rounds_file)
        output = self.assertFails('create')
        self.assertIn('Could not open rounds file', output[0])

    def test_bad_rounds_file(self):
        with open(self.rounds_file, 'w') as fd:
            fd.write('{')
        output = self.assertFails('create')
        self.assertIn('Could not load rounds file', output[0])


class Test_validate(PmauxCommandTestCase):
    def test_valid(self):
        with self.assertLogs(level='INFO') as logs:
            self.run_pmaux('validate', b2x(AUX_DATA))
        self.assertIn('Success!', logs.output[0])

    def test_valid_0x_prefix(self):
        with self.assertLogs(level='INFO'):
            self.run_pmaux('validate', '0x' + b2x(AUX_DATA))

    def test_valid_0X_prefix(self):
        with self.assertLogs(level='INFO'):
            self.run_pmaux('validate', '0X' + b2x(AUX_DATA))

    def test_valid_from_file(self):
        path = os.path.join(self.temp_dir, 'aux_data')
        with open(path, 'wb') as fd:
            fd.write(AUX_DATA)

        with self.assertLogs(level='INFO') as logs:
            self.run_pmaux('validate', '-f', path)
        self.assertIn('Success!', logs.output[0])

    def test_invalid_length(self):
        output = self.assertFails('validate', b2x(AUX_DATA[:-1]))
        self.assertIn('invalid ticket aux data length', output[0])

    def test_invalid_creation_round(self):
        self.write_rounds(6, {6: BLOCK_HASH})
        output = self.assertFails('validate', b2x(AUX_DATA))
        self.assertIn('invalid ticket creation round;', output[0])

    def test_invalid_creation_round_block_hash(self):
        self.write_rounds(5, {5: b'\x00'*32})
        output = self.assertFails('validate', b2x(AUX_DATA))
        self.assertIn('invalid ticket creation round block hash', output[0])

    def test_unknown_round(self):
        self.write_rounds(5, {})
        output = self.assertFails('validate', b2x(AUX_DATA))
        self.assertIn('Could not get current round', output[0])

    def test_not_hex(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                self.run_pmaux('validate', 'not hex')
        self.assertEqual(cm.exception.code, 2)


class Test_info(PmauxCommandTestCase):
    def test_info(self):
        # The rounds file isn't consulted
        os.remove(self.rounds_file)

        output = self.run_pmaux('info', b2x(AUX_DATA))
        self.assertEqual(output,
                         'Creation round: 5\n'
                         'Creation round block hash: %s\n' % b2x(BLOCK_HASH))

    def test_info_invalid_length(self):
        output = self.assertFails('info', '00'*65)
        self.assertIn('expected 64 bytes, got 65', output[0])


class Test_rounds_server(unittest.TestCase):
    def run_failing(self, *raw_args):
        args = parse_pmaux_args(['--rounds-server', 'http://example.com'] + list(raw_args))

        with self.assertLogs(level='ERROR') as logs:
            with self.assertRaises(SystemExit) as cm:
                with contextlib.redirect_stdout(io.StringIO()):
                    args.cmd_func(args)
        self.assertEqual(cm.exception.code, 1)
        return logs.output

    @mock.patch('urllib.request.urlopen')
    def test_validate_timeout(self, urlopen):
        urlopen.side_effect = socket.timeout('timed out')
        output = self.run_failing('validate', b2x(AUX_DATA))
        self.assertIn('Could not get current round', output[0])
        self.assertIn('timed out', output[0])

    @mock.patch('urllib.request.urlopen')
    def test_create_connection_reset(self, urlopen):
        urlopen.side_effect = ConnectionResetError('Connection reset by peer')
        output = self.run_failing('create')
        self.assertIn('Could not get current round', output[0])

    @mock.patch('urllib.request.urlopen')
    def test_validate_server_error(self, urlopen):
        urlopen.side_effect = urllib.error.HTTPError('http://example.com/round',
                                                     500, 'Internal Server Error', {}, None)
        output = self.run_failing('validate', b2x(AUX_DATA))
        self.assertIn('500', output[0])


class Test_args(unittest.TestCase):
    def test_defaults(self):
        args = parse_pmaux_args(['create'])
        self.assertEqual(args.rounds_file, os.path.normpath(DEFAULT_ROUNDS_FILE))
        self.assertIsNone(args.rounds_server)
        self.assertEqual(args.verbosity, 0)

    def test_verbosity(self):
        args = parse_pmaux_args(['-vv', '-q', 'create'])
        self.assertEqual(args.verbosity, 1)

        self.assertEqual(verbosity_to_log_level(0), logging.INFO)
        self.assertEqual(verbosity_to_log_level(2), logging.DEBUG)
        self.assertEqual(verbosity_to_log_level(-1), logging.WARNING)
        self.assertEqual(verbosity_to_log_level(-3), logging.ERROR)

    def test_rounds_server(self):
        args = parse_pmaux_args(['--rounds-server', 'http://example.com', '--timeout', '3', 'create'])
        rm = args.setup_rounds_manager()
        self.assertEqual(rm.url, 'http://example.com')
        self.assertEqual(rm.timeout, 3)

    def test_rounds_source_exclusive(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                parse_pmaux_args(['--rounds-file', 'foo', '--rounds-server', 'http://example.com', 'create'])

    def test_validate_needs_aux_data(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                parse_pmaux_args(['validate'])
