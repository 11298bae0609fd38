"""FROST threshold Schnorr signatures over secp256k1, with BIP-340 support."""

__version__ = "0.1.0"