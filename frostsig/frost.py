"""Entry points for FROST threshold key generation, refresh and signing."""

from __future__ import annotations

from frostsig.config import Config, TaprootConfig
from frostsig.curve import Point, Scalar, identity
from frostsig.keygen import start_keygen
from frostsig.round import run_rounds
from frostsig.sign import Signature, start_sign

__all__ = [
    "Config",
    "TaprootConfig",
    "Signature",
    "empty_config",
    "keygen",
    "keygen_taproot",
    "refresh",
    "refresh_taproot",
    "sign",
    "sign_taproot",
    "run",
]


def _failing_start(error):
    """A start function that reports an error found while preparing the protocol."""

    def start(session_id=None):
        raise ValueError(str(error)) from error

    return start


def empty_config():
    """A config with a zero share, the identity key and no verification shares."""
    return Config(
        id="",
        threshold=0,
        private_share=Scalar(0),
        public_key=identity(),
        verification_shares={},
    )


def keygen(self_id, participants, threshold):
    """Start FROST key generation among participants.

    threshold + 1 of the participants will later be needed to sign.
    """
    return start_keygen(False, participants, threshold, self_id)


def keygen_taproot(self_id, participants, threshold):
    """Like keygen, but producing BIP-340 compatible keys and a TaprootConfig."""
    return start_keygen(True, participants, threshold, self_id)


def refresh(config, participants):
    """Start a refresh of the shares in config, keeping the shared public key."""
    return start_keygen(
        False,
        participants,
        config.threshold,
        config.id,
        config.private_share,
        config.public_key,
        config.verification_shares,
    )


def refresh_taproot(config, participants):
    """Like refresh, for a TaprootConfig."""
    try:
        public_key = Point.lift_x(config.public_key)
    except ValueError as error:
        return _failing_start(error)
    return start_keygen(
        True,
        participants,
        config.threshold,
        config.id,
        config.private_share,
        public_key,
        dict(config.verification_shares),
    )


def sign(config, signers, message_hash):
    """Start threshold signing of message_hash; signers includes this party."""
    return start_sign(False, config, signers, message_hash)


def sign_taproot(config, signers, message_hash):
    """Like sign, producing a 64-byte BIP-340 signature from a TaprootConfig."""
    try:
        public_key = Point.lift_x(config.public_key)
    except ValueError as error:
        return _failing_start(error)
    normal = Config(
        id=config.id,
        threshold=config.threshold,
        private_share=config.private_share,
        public_key=public_key,
        chain_key=config.chain_key,
        verification_shares=dict(config.verification_shares),
    )
    return start_sign(True, normal, signers, message_hash)


def run(start_funcs, session_id=None):
    """Run one protocol for every party locally; return each party's result by ID."""
    rounds = [start(session_id) for start in start_funcs]
    outputs = run_rounds(rounds)
    return {output.self_id: output.result for output in outputs}