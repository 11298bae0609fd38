"""FROST threshold Schnorr signing, with an optional BIP-340 (Taproot) variant."""

from __future__ import annotations

import functools
import hashlib
import operator
import secrets
from dataclasses import dataclass
from typing import ClassVar, Dict

from frostsig import taproot as bip340
from frostsig.curve import Point, Scalar, identity
from frostsig.polynomial import lagrange
from frostsig.round import (
    Helper,
    Info,
    InvalidContentError,
    NilFieldsError,
    ProtocolError,
    Round,
)
from frostsig.transcript import Hash

PROTOCOL_ID = "frost/sign-threshold"
PROTOCOL_ID_TAPROOT = "frost/sign-threshold-taproot"
PROTOCOL_ROUNDS = 3

_DERIVE_HASH_KEY_CONTEXT = b"frostsig frost 2021-07-30T09:48+00:00 Derive hash Key"


class _MessageHash:
    """Wraps a message hash so that it is domain-separated inside a transcript."""

    domain = "messageHash"

    def __init__(self, data):
        if data is None:
            raise ValueError("message hash is missing")
        self._data = bytes(data)

    def __bytes__(self):
        return self._data


@dataclass(frozen=True)
class Signature:
    """A Schnorr signature (R, z) claiming z·G = R + H(R, Y, m)·Y for a public key Y."""

    r: Point
    z: Scalar

    def verify(self, public, message_hash):
        """Whether the signature equation holds; message_hash is the hash of the message."""
        if not isinstance(public, Point) or not isinstance(self.r, Point):
            return False
        if not isinstance(self.z, Scalar):
            return False
        challenge_hash = Hash()
        challenge_hash.write(self.r, public, _MessageHash(message_hash))
        challenge = challenge_hash.scalar()
        expected = challenge.act(public) + self.r
        actual = self.z.act_on_base()
        return expected == actual


@dataclass(frozen=True)
class _Broadcast2:
    d_i: Point
    e_i: Point
    round_number: ClassVar[int] = 2


@dataclass(frozen=True)
class _Broadcast3:
    z_i: Scalar
    round_number: ClassVar[int] = 3


@dataclass
class _SignState:
    taproot: bool
    message_hash: bytes
    public_key: Point
    verification_shares: Dict[str, Point]
    private_share: Scalar


def _unit_scalars(seed):
    """An endless stream of non-zero scalars read from an extendable-output hash of seed."""
    stream = hashlib.shake_256(seed)
    length = 0
    while True:
        length += 64
        value = Scalar.from_bytes(stream.digest(length)[-64:])
        if not value.is_zero():
            yield value


class SignRound1(Round):
    """Generate two nonces with hedged randomness and broadcast their commitments."""

    number = 1

    def __init__(self, helper, state):
        super().__init__(helper)
        self.state = state

    def finalize(self, out):
        state = self.state
        # Nonces depend on the secret share, the session and the message, plus fresh
        # randomness: weak randomness alone cannot make them predictable.
        hash_key = hashlib.blake2b(
            len(_DERIVE_HASH_KEY_CONTEXT).to_bytes(8, "big")
            + _DERIVE_HASH_KEY_CONTEXT
            + state.private_share.to_bytes(),
            digest_size=32,
        ).digest()
        nonce_hasher = hashlib.blake2b(key=hash_key, digest_size=64)
        nonce_hasher.update(self.helper.hash().sum())
        nonce_hasher.update(state.message_hash)
        nonce_hasher.update(secrets.token_bytes(32))
        nonces = _unit_scalars(nonce_hasher.digest())

        d_i = next(nonces)
        e_i = next(nonces)
        big_d_i = d_i.act_on_base()
        big_e_i = e_i.act_on_base()

        self.helper.broadcast_message(out, _Broadcast2(big_d_i, big_e_i))
        return SignRound2(
            self.helper,
            state,
            d_i=d_i,
            e_i=e_i,
            d={self.self_id: big_d_i},
            e={self.self_id: big_e_i},
        )


class SignRound2(Round):
    """Collect nonce commitments, compute the group commitment and our response."""

    number = 2

    def __init__(self, helper, state, d_i, e_i, d, e):
        super().__init__(helper)
        self.state = state
        self.d_i = d_i
        self.e_i = e_i
        self.d = dict(d)
        self.e = dict(e)

    def store_broadcast_message(self, msg):
        body = msg.content
        if not isinstance(body, _Broadcast2):
            raise InvalidContentError()
        if not isinstance(body.d_i, Point) or not isinstance(body.e_i, Point):
            raise NilFieldsError()
        if body.d_i.is_identity() or body.e_i.is_identity():
            raise ProtocolError("nonce commitment is the identity point")
        self.d[msg.sender] = body.d_i
        self.e[msg.sender] = body.e_i

    def finalize(self, out):
        state = self.state
        party_ids = self.helper.party_ids()
        missing = [p for p in party_ids if p not in self.d or p not in self.e]
        if missing:
            raise ProtocolError(f"missing nonce commitments from {missing}")

        message = _MessageHash(state.message_hash)
        rho_pre_hash = Hash()
        rho_pre_hash.write(message)
        for party_id in party_ids:
            rho_pre_hash.write(self.d[party_id], self.e[party_id])
        rho = {party_id: rho_pre_hash.fork(party_id).scalar() for party_id in party_ids}

        r_shares = {
            party_id: rho[party_id].act(self.e[party_id]) + self.d[party_id]
            for party_id in party_ids
        }
        big_r = functools.reduce(operator.add, r_shares.values(), identity())
        if big_r.is_identity():
            raise ProtocolError("group commitment is the identity point")

        d_i, e_i = self.d_i, self.e_i
        if state.taproot:
            # BIP-340 needs R with even y: negate every nonce share if it is odd.
            if not big_r.has_even_y():
                d_i, e_i = -d_i, -e_i
                r_shares = {k: -v for k, v in r_shares.items()}
            c_hash = bip340.tagged_hash(
                bip340.CHALLENGE_TAG,
                big_r.x_bytes(),
                state.public_key.x_bytes(),
                state.message_hash,
            )
            c = Scalar.from_bytes(c_hash)
        else:
            c_hash = Hash()
            c_hash.write(big_r, state.public_key, message)
            c = c_hash.scalar()

        lambdas = lagrange(party_ids)
        z_i = lambdas[self.self_id] * state.private_share * c + d_i + rho[self.self_id] * e_i

        self.helper.broadcast_message(out, _Broadcast3(z_i))
        return SignRound3(
            self.helper,
            state,
            r=big_r,
            r_shares=r_shares,
            c=c,
            z={self.self_id: z_i},
            lambdas=lambdas,
        )


class SignRound3(Round):
    """Check every response and combine them into the final signature."""

    number = 3

    def __init__(self, helper, state, r, r_shares, c, z, lambdas):
        super().__init__(helper)
        self.state = state
        self.r = r
        self.r_shares = dict(r_shares)
        self.c = c
        self.z = dict(z)
        self.lambdas = dict(lambdas)

    def store_broadcast_message(self, msg):
        sender = msg.sender
        body = msg.content
        if not isinstance(body, _Broadcast3):
            raise InvalidContentError()
        if not isinstance(body.z_i, Scalar):
            raise NilFieldsError()
        y_share = self.state.verification_shares.get(sender)
        if y_share is None or sender not in self.lambdas or sender not in self.r_shares:
            raise ProtocolError(f"no verification data for party {sender}")

        expected = self.c.act(self.lambdas[sender].act(y_share)) + self.r_shares[sender]
        actual = body.z_i.act_on_base()
        if actual != expected:
            raise ProtocolError(f"failed to verify response from {sender}")
        self.z[sender] = body.z_i

    def finalize(self, out):
        state = self.state
        z = functools.reduce(operator.add, self.z.values(), Scalar(0))

        if state.taproot:
            signature = self.r.x_bytes() + z.to_bytes()
            if not bip340.verify(state.public_key.x_bytes(), signature, state.message_hash):
                return self.helper.abort_round(
                    ProtocolError("generated signature failed to verify")
                )
            return self.helper.result_round(signature)

        signature = Signature(self.r, z)
        if not signature.verify(state.public_key, state.message_hash):
            return self.helper.abort_round(
                ProtocolError("generated signature failed to verify")
            )
        return self.helper.result_round(signature)


def start_sign(taproot, config, signers, message_hash):
    """Return a function that starts signing message_hash for a session ID.

    config holds this party's key material; signers lists every signer, ourselves included.
    """
    signers = tuple(signers)
    message_hash = bytes(message_hash)

    def start(session_id=None):
        info = Info(
            PROTOCOL_ID_TAPROOT if taproot else PROTOCOL_ID,
            PROTOCOL_ROUNDS,
            config.id,
            signers,
            config.threshold,
        )
        try:
            helper = Helper(info, session_id)
        except ValueError as error:
            raise ValueError(f"sign: {error}") from error
        state = _SignState(
            taproot=taproot,
            message_hash=message_hash,
            public_key=config.public_key,
            verification_shares=dict(config.verification_shares),
            private_share=config.private_share,
        )
        return SignRound1(helper, state)

    return start