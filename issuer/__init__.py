"""Issuer side: certificate digests and EdDSA-Poseidon keys over Baby Jubjub."""

from .certificate import Certificate, CertificateDigest, digest
from .eddsa import IssuerIdentity, KeyPair, PublicKey, Signature, sign, verify

__all__ = ['Certificate', 'CertificateDigest', 'digest', 'IssuerIdentity',
           'KeyPair', 'PublicKey', 'Signature', 'sign', 'verify']
