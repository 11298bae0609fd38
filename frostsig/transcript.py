"""A domain-separated transcript hash, with commitments built on top of it."""

from __future__ import annotations

import hashlib
import hmac
import secrets

from frostsig.curve import Scalar

DIGEST_LENGTH = 32
_INIT = b"frostsig transcript hash"


class CommitmentError(ValueError):
    """A commitment or decommitment is malformed."""


def _frame(data):
    return len(data).to_bytes(8, "big") + data


def _encode(item):
    if isinstance(item, (bytes, bytearray, memoryview)):
        return "bytes", bytes(item)
    if isinstance(item, str):
        return "str", item.encode("utf-8")
    if isinstance(item, bool):
        raise TypeError("booleans cannot be written to a transcript")
    if isinstance(item, int):
        length = (item.bit_length() + 8) // 8
        return "int", item.to_bytes(length, "big", signed=True)
    domain = getattr(item, "domain", None)
    if isinstance(domain, str):
        return domain, bytes(item)
    raise TypeError(f"cannot write {type(item).__name__} to a transcript")


def validate_commitment(commitment):
    """Raise CommitmentError unless the value is a well-formed commitment."""
    if not isinstance(commitment, (bytes, bytearray)):
        raise CommitmentError("commitment must be bytes")
    if len(commitment) != DIGEST_LENGTH:
        raise CommitmentError(
            f"expected {DIGEST_LENGTH} bytes, found {len(commitment)}"
        )
    if not any(commitment):
        raise CommitmentError("commitment is all zero")


class Hash:
    """An extendable-output hash over domain-tagged, length-prefixed items."""

    def __init__(self):
        self._state = hashlib.shake_256(_INIT)

    def write(self, *args):
        """Absorb each item, tagged with its domain."""
        for item in args:
            domain, payload = _encode(item)
            self._state.update(_frame(domain.encode("utf-8")) + _frame(payload))

    def clone(self):
        other = Hash.__new__(Hash)
        other._state = self._state.copy()
        return other

    def fork(self, *args):
        """A copy of this hash with extra items written to it."""
        other = self.clone()
        other.write(*args)
        return other

    def digest(self, size=64):
        return self._state.digest(size)

    def sum(self):
        return self.digest(DIGEST_LENGTH)

    def scalar(self):
        """A scalar derived from the current state."""
        return Scalar.from_bytes(self.digest(64))

    def _commitment(self, decommitment, args):
        h = self.clone()
        h.write(*args)
        h.write(decommitment)
        return h.sum()

    def commit(self, *args):
        """Commit to the items; return (commitment, decommitment)."""
        decommitment = secrets.token_bytes(DIGEST_LENGTH)
        return self._commitment(decommitment, args), decommitment

    def decommit(self, commitment, decommitment, *args):
        """Whether the decommitment opens the commitment to these items."""
        try:
            validate_commitment(commitment)
            validate_commitment(decommitment)
            expected = self._commitment(bytes(decommitment), args)
        except (CommitmentError, TypeError):
            return False
        return hmac.compare_digest(expected, bytes(commitment))