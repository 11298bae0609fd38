"""A two-round example protocol in which the parties agree on the XOR of random values."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import ClassVar

from frostsig.round import Helper, Info, InvalidContentError, ProtocolError, Round

PROTOCOL_ID = "example/xor"
PROTOCOL_ROUNDS = 2
RID_LENGTH = 32


@dataclass(frozen=True)
class Round2Message:
    """The random value a party contributes."""

    xor: bytes
    round_number: ClassVar[int] = 2


class Round1(Round):
    """Sample a random value and send it to everyone."""

    number = 1

    def finalize(self, out):
        value = secrets.token_bytes(RID_LENGTH)
        self.helper.send_message(out, Round2Message(value))
        return Round2(self.helper, {self.self_id: value})


class Round2(Round):
    """Collect everyone's values and output their XOR."""

    number = 2

    def __init__(self, helper, received):
        super().__init__(helper)
        self.received = dict(received)

    def verify_message(self, msg):
        body = msg.content
        if not isinstance(body, Round2Message):
            raise InvalidContentError()
        if len(body.xor) != RID_LENGTH:
            raise ProtocolError(f"xor should be {RID_LENGTH} bytes long")

    def store_message(self, msg):
        self.received[msg.sender] = msg.content.xor

    def finalize(self, out):
        result = 0
        for value in self.received.values():
            result ^= int.from_bytes(value, "big")
        return self.helper.result_round(result.to_bytes(RID_LENGTH, "big"))


def start_xor(self_id, party_ids):
    """Return a function that starts the protocol for a session ID."""

    def start(session_id=None):
        info = Info(PROTOCOL_ID, PROTOCOL_ROUNDS, self_id, tuple(party_ids))
        try:
            helper = Helper(info, session_id)
        except ValueError as error:
            raise ValueError(f"xor: {error}") from error
        return Round1(helper)

    return start