"""Key material held by one participant after threshold key generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from frostsig.bip32 import derive_scalar
from frostsig.curve import Point, Scalar

SEC_BYTES = 32


def _check_chain_key(chain_key):
    if len(chain_key) != SEC_BYTES:
        raise ValueError(
            f"expected {SEC_BYTES} bytes for chain key, found {len(chain_key)}"
        )


@dataclass
class Config:
    """One participant's share of a threshold key.

    verification_shares maps every participant to the commitment sᵢ·G of its
    private share.
    """

    id: str
    threshold: int
    private_share: Scalar
    public_key: Point
    chain_key: bytes = b""
    verification_shares: Dict[str, Point] = field(default_factory=dict)

    def __post_init__(self):
        self.chain_key = bytes(self.chain_key or b"")
        self.verification_shares = dict(self.verification_shares)

    def derive(self, adjust, new_chain_key=None):
        """A config for the key shifted by adjust·G, optionally with a new chain key."""
        chain_key = bytes(new_chain_key) if new_chain_key else self.chain_key
        _check_chain_key(chain_key)
        adjust_g = adjust.act_on_base()
        return Config(
            id=self.id,
            threshold=self.threshold,
            private_share=self.private_share + adjust,
            public_key=self.public_key + adjust_g,
            chain_key=chain_key,
            verification_shares={
                k: v + adjust_g for k, v in self.verification_shares.items()
            },
        )

    def derive_child(self, index):
        """The config for non-hardened BIP-32 child number index."""
        tweak, new_chain_key = derive_scalar(self.public_key, self.chain_key, index)
        return self.derive(tweak, new_chain_key)


@dataclass
class TaprootConfig:
    """Like Config, but the public key is a 32-byte BIP-340 x-only key."""

    id: str
    threshold: int
    private_share: Scalar
    public_key: bytes
    chain_key: bytes = b""
    verification_shares: Dict[str, Point] = field(default_factory=dict)

    def __post_init__(self):
        self.public_key = bytes(self.public_key)
        self.chain_key = bytes(self.chain_key or b"")
        self.verification_shares = dict(self.verification_shares)

    def clone(self):
        """An independent copy of this config."""
        return TaprootConfig(
            id=self.id,
            threshold=self.threshold,
            private_share=Scalar(self.private_share.value),
            public_key=bytes(self.public_key),
            chain_key=bytes(self.chain_key),
            verification_shares=dict(self.verification_shares),
        )

    def derive(self, adjust, new_chain_key=None):
        """A config for the key shifted by adjust·G, kept with an even y coordinate."""
        if new_chain_key:
            _check_chain_key(new_chain_key)
            chain_key = bytes(new_chain_key)
        else:
            chain_key = self.chain_key

        adjust_g = adjust.act_on_base()
        shares = {k: v + adjust_g for k, v in self.verification_shares.items()}
        private_share = self.private_share + adjust
        public = Point.lift_x(self.public_key) + adjust_g
        # An odd key means the secret, and with it every share, must be negated.
        if not public.has_even_y():
            private_share = -private_share
            shares = {k: -v for k, v in shares.items()}
        return TaprootConfig(
            id=self.id,
            threshold=self.threshold,
            private_share=private_share,
            public_key=public.x_bytes(),
            chain_key=chain_key,
            verification_shares=shares,
        )

    def derive_child(self, index):
        """The config for BIP-32 child index, reading the key as having even y."""
        public = Point.lift_x(self.public_key)
        tweak, new_chain_key = derive_scalar(public, self.chain_key, index)
        return self.derive(tweak, new_chain_key)