"""BIP-340 tagged hashes and Schnorr signature verification."""

from __future__ import annotations

import hashlib

from frostsig.curve import N, P, Point, Scalar

SIGNATURE_LENGTH = 64
PUBLIC_KEY_LENGTH = 32
CHALLENGE_TAG = "BIP0340/challenge"


def tagged_hash(tag, *args):
    """SHA-256(SHA-256(tag) ‖ SHA-256(tag) ‖ args…)."""
    if isinstance(tag, str):
        tag = tag.encode("utf-8")
    tag_digest = hashlib.sha256(tag).digest()
    h = hashlib.sha256(tag_digest + tag_digest)
    for data in args:
        h.update(bytes(data))
    return h.digest()


def verify(public_key, signature, message):
    """Whether signature is a valid BIP-340 signature of message under the x-only public key."""
    public_key = bytes(public_key)
    signature = bytes(signature)
    if len(signature) != SIGNATURE_LENGTH or len(public_key) != PUBLIC_KEY_LENGTH:
        return False
    try:
        public = Point.lift_x(public_key)
    except ValueError:
        return False
    r_bytes, s_bytes = signature[:32], signature[32:]
    r = int.from_bytes(r_bytes, "big")
    s = int.from_bytes(s_bytes, "big")
    if r >= P or s >= N:
        return False
    e = Scalar.from_bytes(tagged_hash(CHALLENGE_TAG, r_bytes, public_key, bytes(message)))
    point = Scalar(s).act_on_base() - e.act(public)
    if point.is_identity() or not point.has_even_y():
        return False
    return point.x == r