"""
Certificate canonicalization and digest folding.

A certificate of any size is bound by a wide collision-resistant hash outside
the circuit, split into two equal big-endian chunks, and folded into a single
field element with Poseidon:

    H = keccak256(certificate_bytes)           # 256 bits
    high, low = H[:16], H[16:]                 # 128 bits each
    M = Poseidon(high, low)

Chunks are range-checked, never reduced.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Tuple, Union

from Crypto.Hash import keccak
from cryptography.hazmat.primitives import hashes

from zk.errors import MalformedCertificateError
from zk.field import FieldElement, to_canonical_string, validate
from zk.poseidon import poseidon_hash

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "keccak256"
DEFAULT_CHUNK_BITS = 128


def _keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def _cryptography_hash(algorithm: hashes.HashAlgorithm) -> Callable[[bytes], bytes]:
    def _hash(data: bytes) -> bytes:
        digest = hashes.Hash(algorithm)
        digest.update(data)
        return digest.finalize()
    return _hash


HASH_FUNCTIONS: Dict[str, Callable[[bytes], bytes]] = {
    'keccak256': _keccak256,
    'sha256': _cryptography_hash(hashes.SHA256()),
    'sha3_256': _cryptography_hash(hashes.SHA3_256()),
    'blake2s': _cryptography_hash(hashes.BLAKE2s(32)),
    'sha512': _cryptography_hash(hashes.SHA512()),
}


# ============================================================================
# CERTIFICATE PAYLOAD
# ============================================================================


def canonical_json(payload: Any) -> bytes:
    """Sorted keys, no whitespace, UTF-8"""
    return json.dumps(payload, sort_keys=True, separators=(',', ':'),
                      ensure_ascii=False).encode('utf-8')


@dataclass(frozen=True)
class Certificate:
    """Issuer attestation about a subject"""
    subject: str
    issuer: str
    type: str
    details: Dict[str, Any] = field(default_factory=dict)
    issuance_date: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat())
    context: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subject': self.subject,
            'issuer': self.issuer,
            'issuanceDate': self.issuance_date,
            'type': self.type,
            'details': self.details,
            'context': self.context,
        }

    def to_bytes(self) -> bytes:
        return canonical_json(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Certificate':
        try:
            return cls(
                subject=data['subject'],
                issuer=data['issuer'],
                type=data['type'],
                details=dict(data.get('details', {})),
                issuance_date=data['issuanceDate'],
                context=data.get('context', ''),
            )
        except KeyError as e:
            raise MalformedCertificateError(
                f"Certificate missing field {e.args[0]!r}") from e

    def attribute(self, name: str) -> Any:
        if name not in self.details:
            raise KeyError(f"Certificate has no attribute {name!r}")
        return self.details[name]


# ============================================================================
# DIGEST
# ============================================================================


@dataclass(frozen=True)
class DigestChunks:
    """Two big-endian halves of the wide hash"""
    high: FieldElement
    low: FieldElement

    def as_tuple(self) -> Tuple[FieldElement, FieldElement]:
        return (self.high, self.low)


@dataclass(frozen=True)
class DigestResult:
    wide_hash: bytes
    chunks: DigestChunks
    message_hash: FieldElement

    def to_json(self) -> Dict[str, str]:
        return {
            'wideHash': '0x' + self.wide_hash.hex(),
            'chunkHigh': to_canonical_string(self.chunks.high),
            'chunkLow': to_canonical_string(self.chunks.low),
            'messageHash': to_canonical_string(self.message_hash),
        }


def split_digest(wide_hash: bytes, chunk_bits: int = DEFAULT_CHUNK_BITS) -> DigestChunks:
    """Split a 2*chunk_bits hash into two validated field elements"""
    if chunk_bits <= 0 or chunk_bits % 8:
        raise MalformedCertificateError(
            f"Chunk width must be a positive multiple of 8 bits, got {chunk_bits}")
    chunk_bytes = chunk_bits // 8
    if len(wide_hash) != 2 * chunk_bytes:
        raise MalformedCertificateError(
            f"Hash output is {len(wide_hash) * 8} bits, expected {2 * chunk_bits}")

    high = int.from_bytes(wide_hash[:chunk_bytes], 'big')
    low = int.from_bytes(wide_hash[chunk_bytes:], 'big')
    return DigestChunks(validate(high), validate(low))


class CertificateDigest:
    """Folds certificate bytes into a single MessageHash"""

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM, chunk_bits: int = DEFAULT_CHUNK_BITS):
        if algorithm not in HASH_FUNCTIONS:
            raise MalformedCertificateError(
                f"Unsupported certificate hash {algorithm!r}; "
                f"choose one of {sorted(HASH_FUNCTIONS)}")
        self.algorithm = algorithm
        self.chunk_bits = chunk_bits
        self._hash = HASH_FUNCTIONS[algorithm]

    def digest_with_trace(self, certificate: Union[bytes, Certificate]) -> DigestResult:
        payload = certificate.to_bytes() if isinstance(certificate, Certificate) else certificate
        if not isinstance(payload, (bytes, bytearray)):
            raise TypeError(
                f"Certificate payload must be bytes, got {type(payload).__name__}")

        wide_hash = self._hash(bytes(payload))
        chunks = split_digest(wide_hash, self.chunk_bits)
        message_hash = poseidon_hash([chunks.high, chunks.low])

        logger.debug(
            f"Certificate {self.algorithm} hash 0x{wide_hash.hex()[:16]}... folded "
            f"to {str(message_hash)[:10]}...")
        return DigestResult(wide_hash, chunks, message_hash)

    def digest(self, certificate: Union[bytes, Certificate]) -> FieldElement:
        return self.digest_with_trace(certificate).message_hash


def digest(certificate: Union[bytes, Certificate], algorithm: str = DEFAULT_ALGORITHM,
           chunk_bits: int = DEFAULT_CHUNK_BITS) -> FieldElement:
    """certificate bytes -> MessageHash"""
    return CertificateDigest(algorithm, chunk_bits).digest(certificate)
