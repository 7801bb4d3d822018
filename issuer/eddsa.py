"""
EdDSA over Baby Jubjub keyed off Poseidon (circomlib EdDSAPoseidonVerifier).

Signing is deterministic: the nonce is derived from the expanded private key
and the message, so re-signing the same message hash yields the same
signature.

    h = Poseidon(R8x, R8y, Ax, Ay, M)
    S = r + h * s  (mod l)
    verify: Base8 * S == R8 + A * (8 * h)
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from cryptography.hazmat.primitives import hashes

from zk.errors import KeyFormatError, SignatureVerificationError
from zk.field import (FieldElement, FIELD_BYTES, parse_field_element,
                      to_canonical_string, validate)
from zk.poseidon import poseidon_hash

from .babyjub import (BASE8, SUB_ORDER, Point, add_points, in_curve,
                      mul_point_scalar)

logger = logging.getLogger(__name__)

PRIVATE_KEY_BYTES = 32


# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass(frozen=True)
class PublicKey:
    """Issuer public point (Ax, Ay)"""
    ax: FieldElement
    ay: FieldElement

    def __post_init__(self):
        object.__setattr__(self, 'ax', validate(self.ax))
        object.__setattr__(self, 'ay', validate(self.ay))

    @property
    def point(self) -> Point:
        return Point(int(self.ax), int(self.ay))

    def to_json(self) -> Dict[str, str]:
        return {'Ax': to_canonical_string(self.ax), 'Ay': to_canonical_string(self.ay)}

    @classmethod
    def from_json(cls, data: Dict[str, str]) -> 'PublicKey':
        return cls(parse_field_element(data['Ax']), parse_field_element(data['Ay']))


@dataclass(frozen=True)
class Signature:
    """EdDSA signature (R8x, R8y, S)"""
    r8x: FieldElement
    r8y: FieldElement
    s: FieldElement

    def __post_init__(self):
        for name in ('r8x', 'r8y', 's'):
            object.__setattr__(self, name, validate(getattr(self, name)))

    @property
    def r8(self) -> Point:
        return Point(int(self.r8x), int(self.r8y))

    def to_json(self) -> Dict[str, str]:
        return {
            'R8x': to_canonical_string(self.r8x),
            'R8y': to_canonical_string(self.r8y),
            'S': to_canonical_string(self.s),
        }

    @classmethod
    def from_json(cls, data: Dict[str, str]) -> 'Signature':
        return cls(
            parse_field_element(data['R8x']),
            parse_field_element(data['R8y']),
            parse_field_element(data['S']),
        )


@dataclass(frozen=True)
class KeyPair:
    """Issuer keypair; the private key never leaves issuer custody"""
    private_key: bytes = field(repr=False)
    public_key: PublicKey


# ============================================================================
# KEY DERIVATION
# ============================================================================


def _blake512(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.BLAKE2b(64))
    digest.update(data)
    return digest.finalize()


def _check_private_key(private_key: bytes) -> bytes:
    if not isinstance(private_key, (bytes, bytearray)):
        raise KeyFormatError(
            f"Private key must be bytes, got {type(private_key).__name__}")
    if len(private_key) != PRIVATE_KEY_BYTES:
        raise KeyFormatError(
            f"Private key must be {PRIVATE_KEY_BYTES} bytes, got {len(private_key)}")
    return bytes(private_key)


def _expand_private_key(private_key: bytes) -> Tuple[int, bytes]:
    """Return (pruned secret scalar s, nonce prefix)"""
    expanded = bytearray(_blake512(_check_private_key(private_key)))
    expanded[0] &= 0xF8
    expanded[31] &= 0x7F
    expanded[31] |= 0x40
    scalar = int.from_bytes(expanded[:32], 'little')
    return scalar, bytes(expanded[32:])


def derive_public_key(private_key: bytes) -> PublicKey:
    """A = Base8 * (s >> 3)"""
    scalar, _ = _expand_private_key(private_key)
    point = mul_point_scalar(BASE8, scalar >> 3)
    return PublicKey(FieldElement(point.x), FieldElement(point.y))


def generate_keypair(rng: Optional[Callable[[int], bytes]] = None) -> KeyPair:
    """Create a keypair from PRIVATE_KEY_BYTES of secure randomness"""
    draw = rng or secrets.token_bytes
    private_key = _check_private_key(draw(PRIVATE_KEY_BYTES))
    return KeyPair(private_key=private_key, public_key=derive_public_key(private_key))


# ============================================================================
# SIGN / VERIFY
# ============================================================================


def _challenge(r8: Point, public_key: PublicKey, message_hash: FieldElement) -> int:
    return int(poseidon_hash([r8.x, r8.y, public_key.ax, public_key.ay, message_hash]))


def sign(private_key: bytes, message_hash: int) -> Signature:
    """Sign a MessageHash; out-of-range hashes fail before any key material is used"""
    message = validate(message_hash)
    scalar, prefix = _expand_private_key(private_key)
    public_point = mul_point_scalar(BASE8, scalar >> 3)
    public_key = PublicKey(FieldElement(public_point.x), FieldElement(public_point.y))

    nonce_input = prefix + int(message).to_bytes(FIELD_BYTES, 'little')
    r = int.from_bytes(_blake512(nonce_input), 'little') % SUB_ORDER
    r8 = mul_point_scalar(BASE8, r)

    h = _challenge(r8, public_key, message)
    s = (r + h * scalar) % SUB_ORDER
    return Signature(FieldElement(r8.x), FieldElement(r8.y), FieldElement(s))


def verify(public_key: PublicKey, message_hash: int, signature: Signature) -> bool:
    """Check a signature; malformed inputs verify as False"""
    try:
        message = validate(message_hash)
    except ValueError:
        return False

    if not in_curve(signature.r8) or not in_curve(public_key.point):
        return False
    if signature.s >= SUB_ORDER:
        return False

    h = _challenge(signature.r8, public_key, message)
    left = mul_point_scalar(BASE8, int(signature.s))
    right = add_points(signature.r8, mul_point_scalar(public_key.point, 8 * h))
    return left == right


def verify_or_raise(public_key: PublicKey, message_hash: int, signature: Signature) -> None:
    if not verify(public_key, message_hash, signature):
        raise SignatureVerificationError(
            f"Signature does not verify for message hash {message_hash}")


class IssuerIdentity:
    """Issuer-side keypair holder"""

    def __init__(self, keypair: KeyPair):
        self._keypair = keypair

    @classmethod
    def generate(cls, rng: Optional[Callable[[int], bytes]] = None) -> 'IssuerIdentity':
        return cls(generate_keypair(rng))

    @classmethod
    def from_private_key(cls, private_key: bytes) -> 'IssuerIdentity':
        private_key = _check_private_key(private_key)
        return cls(KeyPair(private_key, derive_public_key(private_key)))

    @property
    def public_key(self) -> PublicKey:
        return self._keypair.public_key

    @property
    def private_key_hex(self) -> str:
        return self._keypair.private_key.hex()

    def sign(self, message_hash: int) -> Signature:
        signature = sign(self._keypair.private_key, message_hash)
        logger.debug(f"Signed message hash {str(message_hash)[:10]}...")
        return signature

    def verify(self, message_hash: int, signature: Signature) -> bool:
        return verify(self.public_key, message_hash, signature)
