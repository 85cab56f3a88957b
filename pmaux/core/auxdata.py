# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Ticket auxiliary data creation and validation

Ticket aux data binds a ticket to the round it was created in:

    creation round (32 bytes) || creation round block hash (32 bytes)

The round is an unsigned big-endian integer, zero-padded on the left. The
block hash is opaque; an all-zero hash is a perfectly good block hash, not a
placeholder for a missing one.
"""

import binascii

from pmaux.core.serialize import (UINT256_LENGTH,
                                  SerializerValueError,
                                  BytesSerializationContext,
                                  BytesDeserializationContext)

BLOCK_HASH_LENGTH = 32
AUX_DATA_LENGTH = UINT256_LENGTH + BLOCK_HASH_LENGTH

class AuxDataError(Exception):
    """Base class for ticket aux data errors"""

class InvalidAuxDataLengthError(AuxDataError):
    """Aux data is not exactly AUX_DATA_LENGTH bytes long"""

    def __init__(self, length):
        self.length = length
        super().__init__('invalid ticket aux data length; expected %d bytes, got %d' %
                         (AUX_DATA_LENGTH, length))

class VerificationError(AuxDataError):
    """Aux data is well-formed, but doesn't match the current round"""

class InvalidCreationRoundError(VerificationError):
    def __init__(self, creation_round, current_round):
        self.creation_round = creation_round
        self.current_round = current_round
        super().__init__('invalid ticket creation round; created in round %d, current round is %d' %
                         (creation_round, current_round))

class InvalidCreationRoundBlockHashError(VerificationError):
    def __init__(self, creation_block_hash, current_block_hash):
        self.creation_block_hash = creation_block_hash
        self.current_block_hash = current_block_hash
        super().__init__('invalid ticket creation round block hash; got %s, expected %s' %
                         (binascii.hexlify(creation_block_hash).decode('utf8'),
                          binascii.hexlify(current_block_hash).decode('utf8')))


class RoundsManager:
    """Source of truth for the protocol's current round

    Implementations are consulted synchronously, and any exception they raise
    is passed through to the caller untouched.

    Note that callers query last_initialized_round() and then
    block_hash_for_round() as two separate calls. If the round can advance in
    between, the pair returned may not describe a single point in time;
    implementations backed by a live chain should answer both from the same
    snapshot.
    """

    def last_initialized_round(self):
        """Return the last initialized round, as an int"""
        raise NotImplementedError

    def block_hash_for_round(self, round):
        """Return the 32 byte hash of the block in which round was initialized"""
        raise NotImplementedError


class RoundAuxData:
    """A creation round and the hash of the block that round began in"""

    __slots__ = ['__round', '__block_hash']

    @property
    def round(self):
        return self.__round

    @property
    def block_hash(self):
        return self.__block_hash

    def __init__(self, round, block_hash):
        if not isinstance(round, int) or isinstance(round, bool):
            raise TypeError("round must be an int; got %r" % round.__class__)
        elif not 0 <= round < 2**256:
            raise ValueError("round must be in range [0, 2**256); got %d" % round)

        if not isinstance(block_hash, (bytes, bytearray)):
            raise TypeError("block hash must be bytes; got %r" % block_hash.__class__)
        elif len(block_hash) != BLOCK_HASH_LENGTH:
            raise ValueError("block hash must be exactly %d bytes long; got %d" %
                             (BLOCK_HASH_LENGTH, len(block_hash)))

        self.__round = round
        self.__block_hash = bytes(block_hash)

    def __eq__(self, other):
        if isinstance(other, RoundAuxData):
            return self.round == other.round and self.block_hash == other.block_hash
        else:
            return NotImplemented

    def __hash__(self):
        return hash((self.round, self.block_hash))

    def __repr__(self):
        return 'RoundAuxData(%d, <%s>)' % (self.round, binascii.hexlify(self.block_hash).decode('utf8'))

    def serialize(self, ctx):
        ctx.write_uint256(self.round)
        ctx.write_bytes(self.block_hash)

    @classmethod
    def deserialize(cls, ctx):
        round = ctx.read_uint256()
        block_hash = ctx.read_bytes(BLOCK_HASH_LENGTH)
        return cls(round, block_hash)

    def to_bytes(self):
        ctx = BytesSerializationContext()
        self.serialize(ctx)
        return ctx.getbytes()

    @classmethod
    def from_bytes(cls, buf):
        """Decode aux data

        Raises InvalidAuxDataLengthError unless buf is exactly AUX_DATA_LENGTH
        bytes long.
        """
        if len(buf) != AUX_DATA_LENGTH:
            raise InvalidAuxDataLengthError(len(buf))

        ctx = BytesDeserializationContext(buf)
        r = cls.deserialize(ctx)
        ctx.assert_eof()
        return r


class AuxDataCreator:
    """Creates ticket aux data"""

    def create(self):
        raise NotImplementedError

class AuxDataValidator:
    """Validates ticket aux data"""

    def validate(self, aux_data):
        raise NotImplementedError

class RoundAuxDataCreator(AuxDataCreator):
    """Creates aux data from the last initialized round and its block hash"""

    def __init__(self, rounds_manager):
        self.rounds_manager = rounds_manager

    def create(self):
        """Create aux data for the current round

        Returns AUX_DATA_LENGTH bytes. Errors from the rounds manager are
        propagated as-is.
        """
        round = self.rounds_manager.last_initialized_round()
        block_hash = self.rounds_manager.block_hash_for_round(round)

        ctx = BytesSerializationContext()
        ctx.write_uint256(round)
        ctx.write_bytes(block_hash)

        r = ctx.getbytes()
        if len(r) != AUX_DATA_LENGTH:
            raise SerializerValueError("block hash must be exactly %d bytes long; got %d" %
                                       (BLOCK_HASH_LENGTH, len(block_hash)))
        return r

class RoundAuxDataValidator(AuxDataValidator):
    """Validates aux data against the last initialized round and its block hash

    There is no grace period: aux data created in round N stops validating as
    soon as round N+1 is initialized.
    """

    def __init__(self, rounds_manager):
        self.rounds_manager = rounds_manager

    def validate(self, aux_data):
        """Validate aux data

        Returns the decoded RoundAuxData on success; raises AuxDataError on
        failure. Errors from the rounds manager are propagated as-is.
        """
        # Rejected before touching the rounds manager.
        creation = RoundAuxData.from_bytes(aux_data)

        round = self.rounds_manager.last_initialized_round()
        block_hash = self.rounds_manager.block_hash_for_round(round)

        if creation.round != round:
            raise InvalidCreationRoundError(creation.round, round)

        if creation.block_hash != bytes(block_hash):
            raise InvalidCreationRoundBlockHashError(creation.block_hash, bytes(block_hash))

        return creation
