# frostsig

Threshold Schnorr signatures with FROST over secp256k1, in pure Python with
no dependencies beyond the standard library.

A group of parties runs distributed key generation so that each holds a
share of a secret key. Any `threshold + 1` of them can later produce a
signature for the shared public key. Both plain Schnorr signatures and
Taproot / BIP-340 signatures are supported, as well as share refresh and
non-hardened BIP-32 style key derivation.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Usage

Each protocol is started by a function in `frostsig.frost` that returns a
start function for one party. `frost.run(start_funcs, session_id=None)`
drives all of those parties to completion in memory and returns a dict
mapping each party ID to its result.

```python
from frostsig import frost

parties = ["a", "b", "c", "d", "e"]
threshold = 2

configs = frost.run(
    [frost.keygen(pid, parties, threshold) for pid in parties],
    b"keygen session",
)

message_hash = bytes(32)
signers = parties[: threshold + 1]
signatures = frost.run(
    [frost.sign(configs[pid], signers, message_hash) for pid in signers],
    b"sign session",
)
signature = signatures["a"]
assert signature.verify(configs["a"].public_key, message_hash)
```

Key generation yields a `Config` per party (`id`, `threshold`,
`private_share`, `public_key`, `chain_key`, `verification_shares`).
Signing yields a `Signature` with fields `r` and `z`, checked with
`Signature.verify(public, message_hash)`.

### Taproot

`frost.keygen_taproot` yields a `TaprootConfig`, whose `public_key` is a
32-byte x-only key with an even y coordinate. `frost.sign_taproot` yields a
64-byte BIP-340 signature, which `frostsig.taproot.verify(public_key,
signature, message)` accepts.

### Refresh and derivation

`frost.refresh(config, participants)` and
`frost.refresh_taproot(config, participants)` re-share the secret key; the
public key stays the same and a new chain key is agreed on.

`Config.derive(adjust, new_chain_key=None)` shifts the key by `adjust·G`,
and `Config.derive_child(index)` does this with a BIP-32 tweak from
`frostsig.bip32.derive_scalar`. `TaprootConfig` has the same methods and
keeps the derived key's y coordinate even, plus `clone()`. A chain key must
be 32 bytes; hardened indexes are refused.

### Errors

A party that receives a bad message raises `frostsig.round.ProtocolError`
(or one of its subclasses `InvalidContentError` and `NilFieldsError`).
`run` also raises `ProtocolError` if any party aborts, for example when the
combined signature fails to verify.

## Modules

- `frostsig.curve` — secp256k1 `Scalar` and `Point`, `generator()`,
  `identity()`, `random_scalar()`, `random_unit_scalar()`
- `frostsig.transcript` — `Hash`, a SHAKE-256 based domain-separated
  transcript, with `commit` / `decommit`
- `frostsig.round` — `Helper`, `Round`, `Message`, `Output`, `Abort` and
  `run_rounds`, the lockstep round machinery
- `frostsig.polynomial` — `Polynomial`, `Exponent`, `sum_exponents`,
  `party_scalar` and `lagrange`
- `frostsig.schnorr_proof` — `Proof` of knowledge of a discrete logarithm
- `frostsig.taproot` — `tagged_hash` and BIP-340 `verify`
- `frostsig.bip32` — `derive_scalar`
- `frostsig.config` — `Config` and `TaprootConfig`
- `frostsig.keygen`, `frostsig.sign` — the FROST rounds and their
  `start_keygen` / `start_sign` functions
- `frostsig.frost` — the entry points listed above, and `empty_config()`
- `frostsig.xor` — `start_xor(self_id, party_ids)`, a two-round example
  protocol whose parties output the XOR of 32-byte random values

## What it does not do

- There is no network transport. All parties run in one process through
  `run` / `run_rounds`; carrying messages between machines is left to the
  caller.
- There is no serialization or storage of configs; key material lives only
  in the Python objects.
- There is no command-line tool.
- Hardened BIP-32 derivation is not supported.