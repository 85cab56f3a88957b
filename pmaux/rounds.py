# Copyright (C) 2026 The pmaux developers
#
# This file is part of pmaux.
#
# It is subject to the license terms in the LICENSE file found in the top-level
# directory of this distribution.
#
# No part of pmaux including this file, may be copied, modified, propagated,
# or distributed except according to the terms contained in the LICENSE file.

"""Rounds manager implementations"""

import binascii
import http.client
import json
import logging
import urllib.error
import urllib.request

from pmaux.core.auxdata import BLOCK_HASH_LENGTH, RoundsManager

MAX_RESPONSE_SIZE = 10000
"""Maximum size of a round server response, in bytes"""

class RoundsManagerError(Exception):
    """Base class for errors fetching round state"""

class UnknownRoundError(RoundsManagerError, KeyError):
    """No block hash is known for the requested round"""

    def __init__(self, round):
        self.round = round
        super().__init__(round)

    def __str__(self):
        return 'no block hash known for round %d' % self.round


def _parse_block_hash(hex_block_hash):
    try:
        block_hash = binascii.unhexlify(hex_block_hash.encode('utf8'))
    except (AttributeError, ValueError) as exp:
        raise RoundsManagerError("Invalid block hash %r: %s" % (hex_block_hash, exp))

    if len(block_hash) != BLOCK_HASH_LENGTH:
        raise RoundsManagerError("Block hash must be %d bytes; got %d" % (BLOCK_HASH_LENGTH, len(block_hash)))
    return block_hash

def _parse_round(round):
    if not isinstance(round, int) or isinstance(round, bool) or round < 0:
        raise RoundsManagerError("Invalid round %r" % (round,))
    return round


class StaticRoundsManager(RoundsManager):
    """Fixed snapshot of round state

    Both queries are answered from the same snapshot, so they're always
    consistent with each other.
    """

    def __init__(self, last_initialized_round, block_hashes):
        self.__last_initialized_round = _parse_round(last_initialized_round)

        self.__block_hashes = {}
        for round, block_hash in block_hashes.items():
            round = _parse_round(round)
            if len(block_hash) != BLOCK_HASH_LENGTH:
                raise ValueError("Block hash for round %d must be %d bytes; got %d" %
                                 (round, BLOCK_HASH_LENGTH, len(block_hash)))
            self.__block_hashes[round] = bytes(block_hash)

    def __repr__(self):
        return 'StaticRoundsManager(%d, <%d block hashes>)' % (self.__last_initialized_round, len(self.__block_hashes))

    @classmethod
    def from_json_fd(cls, fd):
        """Load a snapshot from a JSON file

        The expected format is:

            {"last_initialized_round": 5,
             "block_hashes": {"5": "<hex-encoded 32 byte hash>"}}

        Raises RoundsManagerError if the file is malformed.
        """
        try:
            doc = json.load(fd)
        except ValueError as exp:
            raise RoundsManagerError("Invalid rounds file: %s" % exp)

        if not isinstance(doc, dict):
            raise RoundsManagerError("Invalid rounds file: expected an object")

        try:
            last_initialized_round = _parse_round(doc['last_initialized_round'])
            hex_block_hashes = doc.get('block_hashes', {})
        except KeyError as exp:
            raise RoundsManagerError("Invalid rounds file: missing %s" % exp)

        if not isinstance(hex_block_hashes, dict):
            raise RoundsManagerError("Invalid rounds file: block_hashes must be an object")

        block_hashes = {}
        for str_round, hex_block_hash in hex_block_hashes.items():
            try:
                round = int(str_round)
            except ValueError:
                raise RoundsManagerError("Invalid rounds file: bad round %r" % str_round)
            block_hashes[_parse_round(round)] = _parse_block_hash(hex_block_hash)

        return cls(last_initialized_round, block_hashes)

    def last_initialized_round(self):
        return self.__last_initialized_round

    def block_hash_for_round(self, round):
        try:
            return self.__block_hashes[round]
        except KeyError:
            raise UnknownRoundError(round)


class RemoteRoundsManager(RoundsManager):
    """Remote round server interface

    The server exposes the current round at /round, and the block hash for a
    given round at /round/<n>/blockhash, both as JSON.
    """

    def __init__(self, url, user_agent="pmaux", timeout=None):
        if not isinstance(url, str):
            raise TypeError("URL must be a string")
        self.url = url.rstrip('/')
        self.timeout = timeout

        self.request_headers = {"Accept": "application/json",
                                "User-Agent": user_agent}

    def __repr__(self):
        return 'RemoteRoundsManager(%r)' % self.url

    def _get_json(self, path, round=None):
        """Fetch a JSON object from the round server

        If round is given, a 404 means the server doesn't know that round.
        """
        req = urllib.request.Request(self.url + path, headers=self.request_headers)

        logging.debug("Fetching %s" % req.full_url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                if resp.status != 200:
                    raise RoundsManagerError("Unknown response from round server: %d" % resp.status)

                resp_bytes = resp.read(MAX_RESPONSE_SIZE + 1)
                if len(resp_bytes) > MAX_RESPONSE_SIZE:
                    raise RoundsManagerError("Round server response exceeded size limit")

        except urllib.error.HTTPError as exp:
            if exp.code == 404 and round is not None:
                raise UnknownRoundError(round)
            raise RoundsManagerError("Unknown response from round server: %d" % exp.code)

        # Timeouts and connection resets aren't always wrapped in URLError
        except (OSError, http.client.HTTPException) as exp:
            raise RoundsManagerError("Could not reach round server %s: %s" % (self.url, exp))

        try:
            doc = json.loads(resp_bytes.decode('utf8'))
        except ValueError as exp:
            raise RoundsManagerError("Invalid response from round server: %s" % exp)

        if not isinstance(doc, dict):
            raise RoundsManagerError("Invalid response from round server: expected an object")
        return doc

    def last_initialized_round(self):
        doc = self._get_json('/round')
        try:
            return _parse_round(doc['round'])
        except KeyError:
            raise RoundsManagerError("Invalid response from round server: missing round")

    def block_hash_for_round(self, round):
        doc = self._get_json('/round/%d/blockhash' % round, round=round)
        try:
            return _parse_block_hash(doc['block_hash'])
        except KeyError:
            raise RoundsManagerError("Invalid response from round server: missing block_hash")
