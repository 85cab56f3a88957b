# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

import logging
import sys

import pmauxclient.args


def verbosity_to_log_level(verbosity):
    if verbosity == 0:
        return logging.INFO
    elif verbosity > 0:
        return logging.DEBUG
    elif verbosity == -1:
        return logging.WARNING
    else:
        return logging.ERROR


def main():
    args = pmauxclient.args.parse_pmaux_args(sys.argv[1:])

    logging.basicConfig(format='%(message)s', level=verbosity_to_log_level(args.verbosity))

    if not hasattr(args, 'cmd_func'):
        args.parser.error('No command specified')

    args.cmd_func(args)
