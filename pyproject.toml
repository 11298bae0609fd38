[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "frostsig"
version = "0.1.0"
description = "FROST threshold Schnorr signatures over secp256k1, with Taproot (BIP-340) support"
requires-python = ">=3.10"
dependencies = []
keywords = ["frost", "threshold", "schnorr", "secp256k1", "taproot", "bip340", "mpc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["frostsig"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
