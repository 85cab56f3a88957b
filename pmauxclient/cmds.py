# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

import binascii
import logging
import sys

from bitcoin.core import b2x

from pmaux.core.auxdata import *
from pmaux.core.serialize import SerializerTypeError, SerializerValueError
from pmaux.rounds import RoundsManagerError


def parse_hex_aux_data(hex_aux_data, args):
    """Decode hex-encoded aux data given on the command line"""
    if hex_aux_data[:2].lower() == '0x':
        hex_aux_data = hex_aux_data[2:]

    try:
        return binascii.unhexlify(hex_aux_data.encode('utf8'))
    except ValueError:
        args.parser.error('Aux data must be hexadecimal')


def create_command(args):
    rounds_manager = args.setup_rounds_manager()
    creator = RoundAuxDataCreator(rounds_manager)

    try:
        aux_data = creator.create()
    except RoundsManagerError as exp:
        logging.error("Could not get current round from %r: %s" % (rounds_manager, exp))
        sys.exit(1)
    except (SerializerTypeError, SerializerValueError) as exp:
        logging.error("Rounds manager %r returned bad round state: %s" % (rounds_manager, exp))
        sys.exit(1)

    logging.debug("Created aux data for round %d" % RoundAuxData.from_bytes(aux_data).round)
    print(b2x(aux_data))


def validate_command(args):
    if args.aux_data_fd is not None:
        with args.aux_data_fd as fd:
            aux_data = fd.read()
    else:
        aux_data = parse_hex_aux_data(args.hex_aux_data, args)

    rounds_manager = args.setup_rounds_manager()
    validator = RoundAuxDataValidator(rounds_manager)

    try:
        creation = validator.validate(aux_data)
    except InvalidAuxDataLengthError as exp:
        logging.error("Invalid aux data: %s" % exp)
        sys.exit(1)
    except RoundsManagerError as exp:
        logging.error("Could not get current round from %r: %s" % (rounds_manager, exp))
        sys.exit(1)
    except VerificationError as exp:
        logging.error("Validation failed: %s" % exp)
        sys.exit(1)

    logging.info("Success! Aux data matches round %d, block hash %s" %
                 (creation.round, b2x(creation.block_hash)))


def info_command(args):
    aux_data = parse_hex_aux_data(args.hex_aux_data, args)

    try:
        decoded = RoundAuxData.from_bytes(aux_data)
    except InvalidAuxDataLengthError as exp:
        logging.error("Invalid aux data: %s" % exp)
        sys.exit(1)

    print("Creation round: %d" % decoded.round)
    print("Creation round block hash: %s" % b2x(decoded.block_hash))
