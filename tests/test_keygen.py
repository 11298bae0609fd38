import dataclasses
import functools
import operator

import pytest

from frostsig.config import Config, TaprootConfig
from frostsig.curve import Point, Scalar, generator, random_scalar
from frostsig.keygen import KeygenRound3, start_keygen
from frostsig.polynomial import lagrange
from frostsig.round import (
    InvalidContentError,
    Message,
    NilFieldsError,
    Output,
    ProtocolError,
    run_rounds,
)
from frostsig.schnorr_proof import Proof
from frostsig.transcript import Hash

PARTY_IDS = ("a", "b", "c", "d", "e")


def _run(starts):
    outputs = run_rounds([start(None) for start in starts])
    assert all(isinstance(o, Output) for o in outputs)
    return {o.self_id: o.result for o in outputs}


def _keygen(taproot, ids, threshold):
    return _run([start_keygen(taproot, ids, threshold, i) for i in ids])


def _combined_secret(results, ids):
    coefficients = lagrange(ids)
    return functools.reduce(
        operator.add,
        (coefficients[i] * results[i].private_share for i in ids),
        Scalar(0),
    )


def _check_shares(results, ids):
    for result in results.values():
        for i in ids:
            assert result.verification_shares[i] == results[i].private_share.act_on_base()


def _check_output(results, ids):
    for party_id, result in results.items():
        assert isinstance(result, Config)
        assert result.id == party_id
    assert len({r.public_key for r in results.values()}) == 1
    assert len({r.chain_key for r in results.values()}) == 1
    public = results[ids[0]].public_key
    assert _combined_secret(results, ids).act_on_base() == public
    _check_shares(results, ids)


def _check_output_taproot(results, ids):
    for party_id, result in results.items():
        assert isinstance(result, TaprootConfig)
        assert result.id == party_id
    assert len({r.public_key for r in results.values()}) == 1
    assert len({r.chain_key for r in results.values()}) == 1
    effective = Point.lift_x(results[ids[0]].public_key)
    assert _combined_secret(results, ids).act_on_base() == effective
    _check_shares(results, ids)


def test_keygen():
    results = _keygen(False, PARTY_IDS, len(PARTY_IDS) - 1)
    _check_output(results, PARTY_IDS)
    assert len(results["a"].chain_key) == 32


def test_keygen_taproot():
    results = _keygen(True, PARTY_IDS, len(PARTY_IDS) - 1)
    _check_output_taproot(results, PARTY_IDS)


def test_refresh_keeps_public_key():
    ids = ("a", "b", "c")
    first = _keygen(False, ids, 1)
    refreshed = _run(
        [
            start_keygen(
                False, ids, 1, i, first[i].private_share, first[i].public_key,
                first[i].verification_shares,
            )
            for i in ids
        ]
    )
    _check_output(refreshed, ids)
    assert refreshed["a"].public_key == first["a"].public_key
    assert refreshed["a"].private_share != first["a"].private_share


def test_refresh_taproot_keeps_public_key():
    ids = ("a", "b", "c")
    first = _keygen(True, ids, 1)
    refreshed = _run(
        [
            start_keygen(
                True, ids, 1, i, first[i].private_share,
                Point.lift_x(first[i].public_key), first[i].verification_shares,
            )
            for i in ids
        ]
    )
    _check_output_taproot(refreshed, ids)
    assert refreshed["b"].public_key == first["b"].public_key


def test_threshold_too_large_is_rejected():
    with pytest.raises(ValueError, match="keygen"):
        start_keygen(False, ("a", "b"), 2, "a")(None)


def _step(rounds):
    outs, nexts = {}, {}
    for r in rounds:
        out = []
        nexts[r.self_id] = r.finalize(out)
        outs[r.self_id] = out
    return outs, nexts


def _two_party_round2():
    ids = ("a", "b")
    return _step([start_keygen(False, ids, 1, i)(None) for i in ids])


def test_wrong_broadcast_content_is_rejected():
    _, rounds = _two_party_round2()
    with pytest.raises(InvalidContentError):
        rounds["b"].store_broadcast_message(Message("a", None, "junk", broadcast=True))


def test_missing_proof_is_rejected():
    outs, rounds = _two_party_round2()
    msg = outs["a"][0]
    bad = dataclasses.replace(msg, content=dataclasses.replace(msg.content, sigma_i=None))
    with pytest.raises(NilFieldsError):
        rounds["b"].store_broadcast_message(bad)


def test_invalid_proof_is_rejected():
    outs, rounds = _two_party_round2()
    msg = outs["a"][0]
    secret = random_scalar()
    proof = Proof.create(Hash(), secret.act_on_base(), secret)
    bad = dataclasses.replace(msg, content=dataclasses.replace(msg.content, sigma_i=proof))
    with pytest.raises(ProtocolError, match="Schnorr"):
        rounds["b"].store_broadcast_message(bad)


def test_refresh_rejects_nonzero_constant():
    ids = ("a", "b")
    fresh = start_keygen(False, ids, 1, "a")(None)
    share = Scalar(5)
    refreshing = start_keygen(
        False, ids, 1, "b", share, generator(), {"a": generator(), "b": share.act_on_base()}
    )(None)
    outs, rounds = _step([fresh, refreshing])
    with pytest.raises(ProtocolError, match="non-zero constant"):
        rounds["b"].store_broadcast_message(outs["a"][0])


def _two_party_round3():
    outs, rounds = _two_party_round2()
    rounds["b"].store_broadcast_message(outs["a"][0])
    rounds["a"].store_broadcast_message(outs["b"][0])
    return _step([rounds["a"], rounds["b"]])


def test_tampered_share_fails_vss():
    outs, rounds = _two_party_round3()
    assert isinstance(rounds["b"], KeygenRound3)
    broadcast, direct = outs["a"]
    assert direct.to == "b"
    tampered = dataclasses.replace(
        direct, content=dataclasses.replace(direct.content, f_li=direct.content.f_li + Scalar(1))
    )
    rounds["b"].verify_message(tampered)
    with pytest.raises(ProtocolError, match="VSS"):
        rounds["b"].store_message(tampered)


def test_tampered_chain_key_is_rejected():
    outs, rounds = _two_party_round3()
    broadcast = outs["a"][0]
    tampered = dataclasses.replace(
        broadcast, content=dataclasses.replace(broadcast.content, c_l=bytes([1]) * 32)
    )
    with pytest.raises(ProtocolError):
        rounds["b"].store_broadcast_message(tampered)


def test_wrong_direct_content_is_rejected():
    _, rounds = _two_party_round3()
    with pytest.raises(InvalidContentError):
        rounds["b"].verify_message(Message("a", "b", "junk"))


def test_manual_steps_finish_with_config():
    outs, rounds = _two_party_round3()
    broadcast, direct = outs["a"]
    rounds["b"].store_broadcast_message(broadcast)
    rounds["b"].verify_message(direct)
    rounds["b"].store_message(direct)
    output = rounds["b"].finalize([])
    assert isinstance(output, Output)
    assert output.result.id == "b"
    assert output.result.verification_shares["b"] == output.result.private_share.act_on_base()