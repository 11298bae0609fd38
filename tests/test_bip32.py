import pytest

from frostsig.bip32 import derive_scalar
from frostsig.curve import Point, random_unit_scalar

CHAIN_KEY = bytes(range(32))


def _public():
    return random_unit_scalar().act_on_base()


def test_derivation_is_deterministic():
    public = _public()
    first = derive_scalar(public, CHAIN_KEY, 1)
    second = derive_scalar(public, CHAIN_KEY, 1)
    assert first == second
    assert len(first[1]) == 32


def test_index_and_chain_key_change_result():
    public = _public()
    base = derive_scalar(public, CHAIN_KEY, 1)
    assert derive_scalar(public, CHAIN_KEY, 2) != base
    assert derive_scalar(public, bytes(32), 1) != base
    assert derive_scalar(_public(), CHAIN_KEY, 1) != base


def test_empty_chain_key_is_accepted():
    tweak, new_chain_key = derive_scalar(_public(), b"", 1)
    assert not tweak.is_zero()
    assert len(new_chain_key) == 32


@pytest.mark.parametrize("index", [0x80000000, 0xFFFFFFFF, -1])
def test_hardened_or_invalid_index_rejected(index):
    with pytest.raises(ValueError):
        derive_scalar(_public(), CHAIN_KEY, index)


def test_identity_rejected():
    with pytest.raises(ValueError):
        derive_scalar(Point(), CHAIN_KEY, 0)


def test_non_point_rejected():
    with pytest.raises(TypeError):
        derive_scalar(b"\x02" * 33, CHAIN_KEY, 0)