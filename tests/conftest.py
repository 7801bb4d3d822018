import hashlib
import itertools

import pytest

from issuer.eddsa import IssuerIdentity

# Fixed test seed, never use outside tests
TEST_PRIVATE_KEY = bytes(range(32))


def counter_rng(seed: bytes = b"test"):
    """Deterministic byte source: SHA-256 over an incrementing counter"""
    counter = itertools.count()

    def draw(num_bytes: int) -> bytes:
        out = b""
        while len(out) < num_bytes:
            out += hashlib.sha256(seed + next(counter).to_bytes(8, 'big')).digest()
        return out[:num_bytes]

    return draw


@pytest.fixture
def issuer_identity():
    return IssuerIdentity.from_private_key(TEST_PRIVATE_KEY)


@pytest.fixture
def rng():
    return counter_rng()


@pytest.fixture
def raw_proof():
    """snarkjs-shaped proof.json"""
    return {
        "pi_a": ["1", "2", "1"],
        "pi_b": [["5", "6"], ["7", "8"], ["1", "0"]],
        "pi_c": ["3", "4", "1"],
        "protocol": "groth16",
        "curve": "bn128",
    }


@pytest.fixture
def public_signals():
    return ["111", "222", "333", "444"]


@pytest.fixture
def rng_factory():
    return counter_rng
