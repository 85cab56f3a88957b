# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

import argparse
import logging
import os
import socket
import sys

import appdirs

import pmaux.rounds

import pmauxclient
import pmauxclient.cmds

DEFAULT_ROUNDS_FILE = os.path.join(appdirs.user_config_dir('pmaux'), 'rounds.json')


def make_common_options_arg_parser():
    parser = argparse.ArgumentParser(description="Probabilistic micropayment ticket aux data tool.")
    parser.add_argument('--version', action='version', version='v%s' % pmauxclient.__version__)

    parser.add_argument("-q", "--quiet", action="count", default=0,
                        help="Be more quiet.")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Be more verbose. Both -v and -q may be used multiple times.")

    rounds_group = parser.add_mutually_exclusive_group()
    rounds_group.add_argument("--rounds-file", action="store", type=str,
                              dest='rounds_file',
                              default=DEFAULT_ROUNDS_FILE,
                              help="JSON snapshot of the current round and its block hash. "
                                   "Default: %(default)s")
    rounds_group.add_argument("--rounds-server", metavar='URL', action="store", type=str,
                              dest='rounds_server',
                              default=None,
                              help="Fetch the current round and its block hash from a remote round server")

    parser.add_argument("--timeout", type=int, default=10,
                        help="Timeout before giving up on the round server. "
                             "Default: %(default)d")

    parser.add_argument("--socks5-proxy", type=str,
                        help="Route all traffic through a socks5 proxy, "
                              "including DNS queries. The default port is 1080. "
                              "Format: domain[:port] (e.g. localhost:9050)")

    return parser

def handle_common_options(args, parser):
    args.parser = parser
    args.verbosity = args.verbose - args.quiet

    if args.rounds_file is not None:
        args.rounds_file = os.path.normpath(os.path.expanduser(args.rounds_file))

    if args.socks5_proxy is not None:
        try:
            import socks
        except ImportError as exp:
            logging.error("Can not use SOCKS5 proxy: %s" % exp)
            sys.exit(1)

        e = args.socks5_proxy.split(':')
        s5_hostname = e[0]
        if len(e) > 1:
            if e[1].isdigit():
                s5_port = int(e[1])
            else:
                args.parser.error("SOCKS5 proxy port must be an integer; got %s" % e[1])
        else:
            s5_port = 1080

        socks.set_default_proxy(socks.SOCKS5,
                                s5_hostname,
                                s5_port)

        # Monkey patch socket to use SOCKS5 proxy
        socket.socket = socks.socksocket

        # This should prevent DNS leaks
        def create_connection(address, timeout=None, source_address=None):
            sock = socks.socksocket()
            sock.connect(address)
            return sock
        socket.create_connection = create_connection

    def setup_rounds_manager():
        """Setup the configured rounds manager

        Exits if it can't be set up.
        """
        if args.rounds_server is not None:
            return pmaux.rounds.RemoteRoundsManager(args.rounds_server,
                                                    user_agent="pmaux/%s" % pmauxclient.__version__,
                                                    timeout=args.timeout)

        try:
            with open(args.rounds_file, 'r') as fd:
                return pmaux.rounds.StaticRoundsManager.from_json_fd(fd)
        except IOError as exp:
            logging.error("Could not open rounds file: %s" % exp)
            sys.exit(1)
        except pmaux.rounds.RoundsManagerError as exp:
            logging.error("Could not load rounds file %r: %s" % (args.rounds_file, exp))
            sys.exit(1)

    args.setup_rounds_manager = setup_rounds_manager

    return args

def parse_pmaux_args(raw_args):
    parser = make_common_options_arg_parser()

    subparsers = parser.add_subparsers(title='Subcommands',
                                       description='All operations are done through subcommands:')

    # ----- create -----
    parser_create = subparsers.add_parser('create', aliases=['c'],
                                          help='Create aux data for the current round')

    # ----- validate -----
    parser_validate = subparsers.add_parser('validate', aliases=['v'],
                                            help='Validate aux data against the current round')

    validate_source_group = parser_validate.add_mutually_exclusive_group(required=True)
    validate_source_group.add_argument('-f', metavar='FILE', dest='aux_data_fd', type=argparse.FileType('rb'),
                                       default=None,
                                       help='Read raw aux data bytes from a file')
    validate_source_group.add_argument('hex_aux_data', metavar='HEX', type=str, nargs='?',
                                       default=None,
                                       help='Hex-encoded aux data')

    # ----- info -----
    parser_info = subparsers.add_parser('info', aliases=['i'],
                                        help='Show the round and block hash encoded in aux data')
    parser_info.add_argument('hex_aux_data', metavar='HEX', type=str,
                             help='Hex-encoded aux data')

    parser_create.set_defaults(cmd_func=pmauxclient.cmds.create_command)
    parser_validate.set_defaults(cmd_func=pmauxclient.cmds.validate_command)
    parser_info.set_defaults(cmd_func=pmauxclient.cmds.info_command)

    args = parser.parse_args(raw_args)
    args = handle_common_options(args, parser)

    return args
