"""Non-hardened BIP-32 child derivation, expressed as an additive scalar tweak."""

from __future__ import annotations

import hashlib
import hmac

from frostsig.curve import N, Point, Scalar

HARDENED_OFFSET = 0x80000000


def derive_scalar(public_key, chain_key, index):
    """Return (tweak, new_chain_key) for child index of a public key and chain key.

    The child public key is public_key + tweak·G.
    """
    if not isinstance(public_key, Point):
        raise TypeError("derivation needs a curve point")
    if public_key.is_identity():
        raise ValueError("cannot derive from the identity point")
    if not 0 <= index < HARDENED_OFFSET:
        raise ValueError("hardened derivation is not supported")
    data = public_key.to_bytes() + index.to_bytes(4, "big")
    digest = hmac.new(bytes(chain_key), data, hashlib.sha512).digest()
    tweak = int.from_bytes(digest[:32], "big")
    if tweak >= N:
        raise ValueError("derived tweak is out of range")
    return Scalar(tweak), digest[32:]