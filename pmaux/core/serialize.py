# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Consensus-critical fixed-width serialization/deserialization"""

import io

UINT256_LENGTH = 32
"""Length of a serialized 256-bit unsigned integer, in bytes"""

class DeserializationError(Exception):
    """Base class for all errors encountered during deserialization"""

class TruncationError(DeserializationError):
    """Truncated data encountered while deserializing"""

class TrailingGarbageError(DeserializationError):
    """Trailing garbage found after deserialization finished

    Raised when deserialization otherwise succeeds without errors, but excess
    data is present after the data we expected to get.
    """

class SerializerTypeError(TypeError):
    """Wrong type for specified serializer"""

class SerializerValueError(ValueError):
    """Inappropriate value to be serialized (of correct type)"""


class SerializationContext:
    """Context for serialization

    Allows multiple serialization targets to share the same codebase, for
    instance bytes, streams, etc.
    """

    def write_uint256(self, value):
        """Write a fixed-width 256-bit unsigned integer"""
        raise NotImplementedError

    def write_bytes(self, value):
        """Write fixed-length bytes"""
        raise NotImplementedError

class DeserializationContext:
    """Context for deserialization

    Allows multiple deserialization sources to share the same codebase, for
    instance bytes, streams, etc.
    """

    def read_uint256(self):
        """Read a fixed-width 256-bit unsigned integer"""
        raise NotImplementedError

    def read_bytes(self, expected_length):
        """Read fixed-length bytes"""
        raise NotImplementedError

    def assert_eof(self):
        """Assert that we have reached the end of the data

        Raises TrailingGarbageError(msg) if the end of file has not been reached.

        Note that this isn't an assertion in the Python sense: debug/production
        does not change the behavior of this function.
        """
        raise NotImplementedError

class StreamSerializationContext(SerializationContext):
    def __init__(self, fd):
        """Serialize to a stream"""
        self.fd = fd

    def write_uint256(self, value):
        # bool is an int subclass, but never a valid round or amount
        if not isinstance(value, int) or isinstance(value, bool):
            raise SerializerTypeError('Expected int; got %r' % value.__class__)

        if not 0 <= value < 2**256:
            raise SerializerValueError('uint256 out of range; got %d' % value)

        # unsigned big-endian, zero-padded on the left
        self.fd.write(value.to_bytes(UINT256_LENGTH, 'big'))

    def write_bytes(self, value):
        if not isinstance(value, (bytes, bytearray)):
            raise SerializerTypeError('Expected bytes; got %r' % value.__class__)
        self.fd.write(value)

class StreamDeserializationContext(DeserializationContext):
    def __init__(self, fd):
        """Deserialize from a stream"""
        self.fd = fd

    def fd_read(self, l):
        r = self.fd.read(l)
        if len(r) != l:
            raise TruncationError('Tried to read %d bytes but got only %d bytes' % \
                                  (l, len(r)))
        return r

    def read_uint256(self):
        # Any 32 bytes are a valid encoding; leading zeros carry no meaning.
        return int.from_bytes(self.fd_read(UINT256_LENGTH), 'big')

    def read_bytes(self, expected_length):
        return self.fd_read(expected_length)

    def assert_eof(self):
        excess = self.fd.read(1)
        if excess:
            raise TrailingGarbageError("Trailing garbage found after end of deserialized data")

class BytesSerializationContext(StreamSerializationContext):
    def __init__(self):
        """Serialize to bytes"""
        super().__init__(io.BytesIO())

    def getbytes(self):
        """Return the bytes serialized to date"""
        return self.fd.getvalue()

class BytesDeserializationContext(StreamDeserializationContext):
    def __init__(self, buf):
        """Deserialize from bytes"""
        super().__init__(io.BytesIO(buf))
