"""Schnorr proofs of knowledge of a discrete logarithm, bound to a transcript."""

from __future__ import annotations

from dataclasses import dataclass

from frostsig.curve import Point, Scalar, generator, random_unit_scalar


def _challenge(transcript, public, commitment):
    return transcript.fork(generator(), public, commitment).scalar()


@dataclass(frozen=True)
class Proof:
    """A proof (A, z) that z·G = A + e·X, with e derived from the transcript."""

    commitment: Point
    response: Scalar

    @classmethod
    def create(cls, transcript, public, secret):
        """Prove knowledge of secret with public = secret·G; the transcript is not modified."""
        nonce = random_unit_scalar()
        commitment = nonce.act_on_base()
        e = _challenge(transcript, public, commitment)
        return cls(commitment, nonce + e * secret)

    def is_valid(self):
        return (
            isinstance(self.commitment, Point)
            and isinstance(self.response, Scalar)
            and not self.commitment.is_identity()
            and not self.response.is_zero()
        )

    def verify(self, transcript, public):
        """Whether the proof holds for public against this transcript."""
        if not self.is_valid() or not isinstance(public, Point) or public.is_identity():
            return False
        e = _challenge(transcript, public, self.commitment)
        return self.response.act_on_base() == self.commitment + e.act(public)