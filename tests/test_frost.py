import pytest

from frostsig import taproot
from frostsig.config import Config, TaprootConfig
from frostsig.frost import (
    empty_config,
    keygen,
    keygen_taproot,
    refresh,
    refresh_taproot,
    run,
    sign,
    sign_taproot,
)
from frostsig.sign import Signature

PARTY_IDS = ["a", "b", "c", "d", "e"]
THRESHOLD = len(PARTY_IDS) - 1
MESSAGE = b"hello"


@pytest.fixture(scope="module")
def configs():
    return run([keygen(i, PARTY_IDS, THRESHOLD) for i in PARTY_IDS])


@pytest.fixture(scope="module")
def taproot_configs():
    return run([keygen_taproot(i, PARTY_IDS, THRESHOLD) for i in PARTY_IDS])


def test_keygen_produces_configs_with_shared_key(configs):
    assert set(configs) == set(PARTY_IDS)
    keys = {c.public_key for c in configs.values()}
    assert len(keys) == 1
    assert all(isinstance(c, Config) for c in configs.values())
    assert all(c.id == party for party, c in configs.items())
    assert not next(iter(keys)).is_identity()


def test_refresh_preserves_public_key(configs):
    refreshed = run([refresh(configs[i], PARTY_IDS) for i in PARTY_IDS])
    for party in PARTY_IDS:
        assert refreshed[party].public_key == configs[party].public_key
        assert refreshed[party].private_share != configs[party].private_share


def test_sign_after_refresh_verifies(configs):
    refreshed = run([refresh(configs[i], PARTY_IDS) for i in PARTY_IDS])
    results = run([sign(refreshed[i], PARTY_IDS, MESSAGE) for i in PARTY_IDS])
    public = refreshed["a"].public_key
    for signature in results.values():
        assert isinstance(signature, Signature)
        assert signature.verify(public, MESSAGE)
        assert not signature.verify(public, b"other")


def test_keygen_taproot_and_refresh(taproot_configs):
    assert all(isinstance(c, TaprootConfig) for c in taproot_configs.values())
    keys = {c.public_key for c in taproot_configs.values()}
    assert len(keys) == 1
    assert len(next(iter(keys))) == 32
    refreshed = run(
        [refresh_taproot(taproot_configs[i], PARTY_IDS) for i in PARTY_IDS]
    )
    for party in PARTY_IDS:
        assert isinstance(refreshed[party], TaprootConfig)
        assert refreshed[party].public_key == taproot_configs[party].public_key


def test_sign_taproot_verifies(taproot_configs):
    refreshed = run(
        [refresh_taproot(taproot_configs[i], PARTY_IDS) for i in PARTY_IDS]
    )
    results = run([sign_taproot(refreshed[i], PARTY_IDS, MESSAGE) for i in PARTY_IDS])
    public_key = refreshed["a"].public_key
    for signature in results.values():
        assert len(signature) == 64
        assert taproot.verify(public_key, signature, MESSAGE)
        assert not taproot.verify(public_key, signature, b"other")


def test_subset_of_signers_can_sign():
    ids = ["a", "b", "c"]
    configs = run([keygen(i, ids, 1) for i in ids], b"session")
    signers = ["a", "c"]
    results = run([sign(configs[i], signers, MESSAGE) for i in signers], b"session")
    assert set(results) == set(signers)
    for signature in results.values():
        assert signature.verify(configs["b"].public_key, MESSAGE)


def test_empty_config():
    config = empty_config()
    assert config.private_share.is_zero()
    assert config.public_key.is_identity()
    assert config.verification_shares == {}
    assert config.chain_key == b""


def test_refresh_taproot_rejects_invalid_public_key(taproot_configs):
    bad = taproot_configs["a"].clone()
    bad.public_key = b"\xff" * 32
    start = refresh_taproot(bad, PARTY_IDS)
    with pytest.raises(ValueError):
        start(None)


def test_sign_taproot_rejects_invalid_public_key(taproot_configs):
    bad = taproot_configs["a"].clone()
    bad.public_key = b"\xff" * 32
    start = sign_taproot(bad, PARTY_IDS, MESSAGE)
    with pytest.raises(ValueError):
        start(None)


def test_keygen_rejects_unknown_self_id():
    start = keygen("z", PARTY_IDS, THRESHOLD)
    with pytest.raises(ValueError):
        start(None)