"""FROST distributed key generation, with optional refresh and BIP-340 keys."""

from __future__ import annotations

import functools
import operator
import secrets
from dataclasses import dataclass
from typing import ClassVar, Dict, Optional

from frostsig.config import Config, TaprootConfig
from frostsig.curve import Point, Scalar, identity, random_scalar
from frostsig.polynomial import Exponent, Polynomial, party_scalar, sum_exponents
from frostsig.round import (
    Helper,
    Info,
    InvalidContentError,
    NilFieldsError,
    ProtocolError,
    Round,
)
from frostsig.schnorr_proof import Proof
from frostsig.transcript import CommitmentError, validate_commitment

PROTOCOL_ID = "frost/keygen-threshold"
PROTOCOL_ID_TAPROOT = "frost/keygen-threshold-taproot"
PROTOCOL_ROUNDS = 3
RID_LENGTH = 32


@dataclass(frozen=True)
class _Broadcast2:
    phi_i: Exponent
    sigma_i: Optional[Proof]
    commitment: bytes
    round_number: ClassVar[int] = 2


@dataclass(frozen=True)
class _Message3:
    f_li: Scalar
    round_number: ClassVar[int] = 3


@dataclass(frozen=True)
class _Broadcast3:
    c_l: bytes
    decommitment: bytes
    round_number: ClassVar[int] = 3


@dataclass
class _KeygenState:
    taproot: bool
    threshold: int
    refresh: bool
    private_share: Scalar
    public_key: Point
    verification_shares: Dict[str, Point]


def _validate_rid(value):
    if not isinstance(value, (bytes, bytearray)) or len(value) != RID_LENGTH:
        raise ProtocolError(f"chain key contribution must be {RID_LENGTH} bytes")
    if not any(value):
        raise ProtocolError("chain key contribution is zero")


class KeygenRound1(Round):
    """Sample a secret polynomial and broadcast commitments to it."""

    number = 1

    def __init__(self, helper, state):
        super().__init__(helper)
        self.state = state

    def finalize(self, out):
        state = self.state
        # A refresh shares zero, so the shared secret stays the same.
        if state.refresh:
            a_i0 = Scalar(0)
            a_i0_g = identity()
        else:
            a_i0 = random_scalar()
            a_i0_g = a_i0.act_on_base()
        f_i = Polynomial.random(state.threshold, a_i0)

        sigma_i = None
        if not state.refresh:
            sigma_i = Proof.create(self.helper.hash_for_id(self.self_id), a_i0_g, a_i0)

        phi_i = Exponent.from_polynomial(f_i)

        c_i = secrets.token_bytes(RID_LENGTH)
        commitment, decommitment = self.helper.hash_for_id(self.self_id).commit(c_i)

        self.helper.broadcast_message(out, _Broadcast2(phi_i, sigma_i, commitment))
        return KeygenRound2(
            self.helper,
            state,
            polynomial=f_i,
            phi={self.self_id: phi_i},
            chain_keys={self.self_id: c_i},
            decommitment=decommitment,
        )


class KeygenRound2(Round):
    """Check everyone's commitments, then send each party its share."""

    number = 2

    def __init__(self, helper, state, polynomial, phi, chain_keys, decommitment):
        super().__init__(helper)
        self.state = state
        self.polynomial = polynomial
        self.phi = dict(phi)
        self.chain_keys = dict(chain_keys)
        self.decommitment = decommitment
        self.chain_key_commitments = {}

    def store_broadcast_message(self, msg):
        sender = msg.sender
        body = msg.content
        if not isinstance(body, _Broadcast2):
            raise InvalidContentError()
        if body.phi_i is None or (
            not self.state.refresh
            and (body.sigma_i is None or not body.sigma_i.is_valid())
        ):
            raise NilFieldsError()
        try:
            validate_commitment(body.commitment)
        except CommitmentError as error:
            raise ProtocolError(f"commitment: {error}") from error
        if body.phi_i.degree != self.state.threshold:
            raise ProtocolError(f"party {sender} sent a polynomial of the wrong degree")

        if self.state.refresh:
            if not body.phi_i.constant().is_identity():
                raise ProtocolError(
                    f"party {sender} sent a non-zero constant while refreshing"
                )
        elif not body.sigma_i.verify(
            self.helper.hash_for_id(sender), body.phi_i.constant()
        ):
            raise ProtocolError(f"failed to verify Schnorr proof for party {sender}")

        self.phi[sender] = body.phi_i
        self.chain_key_commitments[sender] = body.commitment

    def finalize(self, out):
        self.helper.broadcast_message(
            out, _Broadcast3(self.chain_keys[self.self_id], self.decommitment)
        )
        for other in self.helper.other_party_ids():
            share = self.polynomial.evaluate(party_scalar(other))
            self.helper.send_message(out, _Message3(share), other)
        self_share = self.polynomial.evaluate(party_scalar(self.self_id))
        return KeygenRound3(self, self_share)


class KeygenRound3(Round):
    """Check the received shares and assemble the final key material."""

    number = 3

    def __init__(self, previous, self_share):
        super().__init__(previous.helper)
        self.state = previous.state
        self.phi = previous.phi
        self.chain_keys = previous.chain_keys
        self.chain_key_commitments = previous.chain_key_commitments
        self.share_from = {self.self_id: self_share}

    def store_broadcast_message(self, msg):
        sender = msg.sender
        body = msg.content
        if not isinstance(body, _Broadcast3):
            raise InvalidContentError()
        _validate_rid(body.c_l)
        commitment = self.chain_key_commitments.get(sender)
        if not self.helper.hash_for_id(sender).decommit(
            commitment, body.decommitment, bytes(body.c_l)
        ):
            raise ProtocolError("failed to verify chain key commitment")
        self.chain_keys[sender] = bytes(body.c_l)

    def verify_message(self, msg):
        body = msg.content
        if not isinstance(body, _Message3):
            raise InvalidContentError()
        if body.f_li is None:
            raise NilFieldsError()

    def store_message(self, msg):
        sender = msg.sender
        body = msg.content
        if sender not in self.phi:
            raise ProtocolError(f"no polynomial commitment from party {sender}")
        expected = body.f_li.act_on_base()
        actual = self.phi[sender].evaluate(party_scalar(self.self_id))
        if expected != actual:
            raise ProtocolError("VSS failed to validate")
        self.share_from[sender] = body.f_li

    def finalize(self, out):
        party_ids = self.helper.party_ids()
        missing = [p for p in party_ids if p not in self.chain_keys]
        if missing:
            raise ProtocolError(f"missing chain key contributions from {missing}")
        chain_key_int = 0
        for party_id in party_ids:
            chain_key_int ^= int.from_bytes(self.chain_keys[party_id], "big")
        chain_key = chain_key_int.to_bytes(RID_LENGTH, "big")

        state = self.state
        private_share = functools.reduce(
            operator.add, self.share_from.values(), state.private_share
        )
        self.share_from.clear()

        public_key = functools.reduce(
            operator.add, (phi.constant() for phi in self.phi.values()), state.public_key
        )

        verification_exponent = sum_exponents(self.phi.values())
        verification_shares = {
            k: v + verification_exponent.evaluate(party_scalar(k))
            for k, v in state.verification_shares.items()
        }

        if state.taproot:
            # BIP-340 wants an even key; negating every share negates the secret.
            if not public_key.has_even_y():
                private_share = -private_share
                verification_shares = {k: -v for k, v in verification_shares.items()}
            return self.helper.result_round(
                TaprootConfig(
                    id=self.self_id,
                    threshold=state.threshold,
                    private_share=private_share,
                    public_key=public_key.x_bytes(),
                    chain_key=chain_key,
                    verification_shares=verification_shares,
                )
            )

        return self.helper.result_round(
            Config(
                id=self.self_id,
                threshold=state.threshold,
                private_share=private_share,
                public_key=public_key,
                chain_key=chain_key,
                verification_shares=verification_shares,
            )
        )


def start_keygen(
    taproot,
    participants,
    threshold,
    self_id,
    private_share=None,
    public_key=None,
    verification_shares=None,
):
    """Return a function that starts key generation for a session ID.

    Passing an existing private share and public key runs a refresh instead.
    """
    participants = tuple(participants)

    def start(session_id=None):
        info = Info(
            PROTOCOL_ID_TAPROOT if taproot else PROTOCOL_ID,
            PROTOCOL_ROUNDS,
            self_id,
            participants,
            threshold,
        )
        try:
            helper = Helper(info, session_id)
        except ValueError as error:
            raise ValueError(f"keygen: {error}") from error

        shares = dict(verification_shares or {})
        refresh = private_share is not None and public_key is not None
        if refresh:
            secret, public = private_share, public_key
        else:
            secret, public = Scalar(0), identity()
            shares.update({k: identity() for k in participants})

        state = _KeygenState(
            taproot=taproot,
            threshold=threshold,
            refresh=refresh,
            private_share=secret,
            public_key=public,
            verification_shares=shares,
        )
        return KeygenRound1(helper, state)

    return start