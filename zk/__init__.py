"""
Circuit-side primitives for anonymous attribute credentials:
field arithmetic, Poseidon, commitments and Groth16 proof transcoding.
"""

from .errors import (
    CredentialError,
    FieldRangeError,
    MalformedCertificateError,
    KeyFormatError,
    SignatureVerificationError,
    ProofFormatError,
    ProofGenerationError,
    RevertError,
)
from .field import SNARK_SCALAR_FIELD, FieldElement, validate, random_field_element
from .poseidon import CircomPoseidon, poseidon_hash
from .commitment import CommitmentOpening, commit, create_commitment
from .transcoder import Groth16Proof, PublicSignals, ProofTranscoder, TranscodedProof

__version__ = "1.0.0"

__all__ = [
    # Field
    'SNARK_SCALAR_FIELD',
    'FieldElement',
    'validate',
    'random_field_element',

    # Hashing and commitments
    'CircomPoseidon',
    'poseidon_hash',
    'CommitmentOpening',
    'commit',
    'create_commitment',

    # Proofs
    'Groth16Proof',
    'PublicSignals',
    'ProofTranscoder',
    'TranscodedProof',

    # Exceptions
    'CredentialError',
    'FieldRangeError',
    'MalformedCertificateError',
    'KeyFormatError',
    'SignatureVerificationError',
    'ProofFormatError',
    'ProofGenerationError',
    'RevertError',
]
