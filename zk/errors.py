"""
Exception taxonomy for the credential core.

Every failure raised by the core is a ``CredentialError`` subclass so callers
can pick a recovery strategy by kind (reject a credential, abort a submission,
surface a contract revert) without parsing messages.
"""

from typing import Optional


class CredentialError(Exception):
    """Base exception for credential operations"""
    pass


class FieldRangeError(CredentialError, ValueError):
    """Value outside [0, prime) or malformed numeric string"""
    pass


class MalformedCertificateError(CredentialError):
    """Certificate hash output does not match the configured chunk layout"""
    pass


class KeyFormatError(CredentialError, ValueError):
    """Private key has the wrong byte width"""
    pass


class SignatureVerificationError(CredentialError):
    """Signature does not verify against the claimed key and message"""
    pass


class ProofFormatError(CredentialError, ValueError):
    """Proof or public signals do not have the expected shape"""
    pass


class ProofGenerationError(CredentialError):
    """External prover failed"""
    pass


class RevertError(CredentialError):
    """Registry or verifier rejected the transaction"""

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason

    def __str__(self) -> str:
        base = super().__str__()
        if self.reason:
            return f"{base} (reason: {self.reason})"
        return base
