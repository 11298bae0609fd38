"""The round-based framework that the protocols run on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Sequence

from frostsig.transcript import Hash

GROUP_NAME = "secp256k1"


class ProtocolError(Exception):
    """A protocol run failed."""


class InvalidContentError(ProtocolError):
    """A message carried content of the wrong kind."""

    def __init__(self, message="invalid message content"):
        super().__init__(message)


class NilFieldsError(ProtocolError):
    """A message was missing required fields."""

    def __init__(self, message="message contains empty fields"):
        super().__init__(message)


@dataclass(frozen=True)
class Info:
    """The public description of a protocol session."""

    protocol_id: str
    final_round_number: int
    self_id: str
    party_ids: Sequence[str]
    threshold: int = 0


@dataclass(frozen=True)
class Message:
    """A message from one party; to is None for messages meant for everyone."""

    sender: str
    to: Optional[str]
    content: Any
    broadcast: bool = False

    @property
    def round_number(self):
        return self.content.round_number


@dataclass(frozen=True)
class Output:
    """The terminal state of a party that finished successfully."""

    self_id: str
    result: Any


@dataclass(frozen=True)
class Abort:
    """The terminal state of a party that gave up."""

    self_id: str
    error: Exception
    culprits: tuple = field(default=())


class Helper:
    """Session data shared by every round of one party's protocol run."""

    def __init__(self, info, session_id=None):
        ids = tuple(info.party_ids)
        if any(not isinstance(i, str) or not i for i in ids):
            raise ValueError("party IDs must be non-empty strings")
        if len(set(ids)) != len(ids):
            raise ValueError("party IDs contain duplicates")
        if info.self_id not in ids:
            raise ValueError(f"party {info.self_id!r} is not among the participants")
        if not 0 <= info.threshold < len(ids):
            raise ValueError(
                f"threshold {info.threshold} is invalid for {len(ids)} parties"
            )
        if info.final_round_number < 1:
            raise ValueError("a protocol needs at least one round")
        self.info = info
        self._party_ids = tuple(sorted(ids))
        self._hash = Hash()
        self._hash.write(
            info.protocol_id,
            GROUP_NAME,
            info.threshold,
            info.final_round_number,
            *self._party_ids,
        )
        if session_id is not None:
            self._hash.write(bytes(session_id))

    @property
    def self_id(self):
        return self.info.self_id

    @property
    def threshold(self):
        return self.info.threshold

    @property
    def protocol_id(self):
        return self.info.protocol_id

    @property
    def final_round_number(self):
        return self.info.final_round_number

    def party_ids(self):
        return self._party_ids

    def other_party_ids(self):
        return tuple(i for i in self._party_ids if i != self.self_id)

    def hash(self):
        """A fresh copy of the session transcript."""
        return self._hash.clone()

    def hash_for_id(self, party_id):
        return self._hash.fork(party_id)

    def send_message(self, out, content, to=None):
        """Append a direct message, to one party or, with to None, to every other party."""
        if to is not None:
            if to == self.self_id:
                raise ValueError("cannot send a message to oneself")
            if to not in self._party_ids:
                raise ValueError(f"unknown recipient {to!r}")
        out.append(Message(self.self_id, to, content, broadcast=False))

    def broadcast_message(self, out, content):
        out.append(Message(self.self_id, None, content, broadcast=True))

    def result_round(self, result):
        return Output(self.self_id, result)

    def abort_round(self, error):
        return Abort(self.self_id, error)


class Round(ABC):
    """One step of a protocol from one party's point of view."""

    number: ClassVar[int] = 1

    def __init__(self, helper):
        self.helper = helper

    @property
    def self_id(self):
        return self.helper.self_id

    def verify_message(self, msg):
        """Check a direct message; rounds that expect none accept anything."""
        return None

    def store_message(self, msg):
        """Keep what is needed from a verified direct message."""
        return None

    def store_broadcast_message(self, msg):
        raise InvalidContentError(f"round {self.number} does not expect broadcasts")

    @abstractmethod
    def finalize(self, out):
        """Append outgoing messages to out and return the next state."""


def _deliver(msg, session):
    if msg.round_number != session.number:
        raise ProtocolError(
            f"message for round {msg.round_number} reached round {session.number}"
        )
    if msg.broadcast:
        session.store_broadcast_message(msg)
    else:
        session.verify_message(msg)
        session.store_message(msg)


def _check_aborts(sessions):
    for session in sessions:
        if isinstance(session, Abort):
            raise ProtocolError(
                f"party {session.self_id} aborted: {session.error}"
            ) from session.error


def run_rounds(rounds):
    """Run all parties in lockstep until each reaches an Output; return the outputs."""
    sessions = list(rounds)
    _check_aborts(sessions)
    while not all(isinstance(s, Output) for s in sessions):
        outgoing = []
        next_sessions = []
        for session in sessions:
            if isinstance(session, Round):
                out = []
                next_sessions.append(session.finalize(out))
                outgoing.extend(out)
            elif isinstance(session, Output):
                next_sessions.append(session)
            else:
                raise TypeError(f"unexpected session {session!r}")
        _check_aborts(next_sessions)
        for msg in outgoing:
            for session in next_sessions:
                if not isinstance(session, Round) or session.self_id == msg.sender:
                    continue
                if msg.to is not None and msg.to != session.self_id:
                    continue
                _deliver(msg, session)
        sessions = next_sessions
    return sessions