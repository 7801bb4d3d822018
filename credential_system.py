#!/usr/bin/env python3
"""
Integrated Anonymous Attribute Credential System
================================================
Issuer, holder and registry wired together:

1. Issuer: certificate -> MessageHash -> EdDSA-Poseidon signature
2. Holder: Poseidon commitment to the attribute, circuit witness, Groth16 proof
3. Registry: transcoded proof submitted as a claim
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from config.config import SystemConfig
from issuer.certificate import Certificate, CertificateDigest, DigestResult
from issuer.eddsa import IssuerIdentity, PublicKey, Signature, verify_or_raise
from registry.client import ClaimRegistryClient, InMemoryClaimRegistry, TransactionReceipt
from utils import artifacts
from utils.artifacts import ParamsForUser
from utils.utils import PerformanceMonitor
from zk.commitment import CommitmentOpening, create_commitment
from zk.errors import MalformedCertificateError
from zk.field import FieldElement, RandomSource, parse_field_element
from zk.prover import CircuitInputs, ProofResult, SnarkjsProver
from zk.transcoder import ProofTranscoder, TranscodedProof

logger = logging.getLogger(__name__)


# ============================================================================
# ISSUER
# ============================================================================


@dataclass(frozen=True)
class IssuedCredential:
    """Everything the issuer produces for one certificate"""
    certificate: Certificate
    attribute_name: str
    digest: DigestResult
    signature: Signature
    params: ParamsForUser
    issued_at: float = field(default_factory=time.time)

    @property
    def message_hash(self) -> FieldElement:
        return self.digest.message_hash


def attribute_as_field_element(certificate: Certificate, attribute_name: str) -> FieldElement:
    """Circuit-visible value of a certificate attribute"""
    try:
        raw = certificate.attribute(attribute_name)
    except KeyError as e:
        raise MalformedCertificateError(str(e)) from e
    if isinstance(raw, bool) or not isinstance(raw, (int, str)) or (
            isinstance(raw, str) and not (raw.isascii() and raw.isdigit())):
        raise MalformedCertificateError(
            f"Attribute {attribute_name!r} must be an integer, got {type(raw).__name__}")
    return parse_field_element(raw)


class CredentialIssuer:
    """Hashes and signs certificates under one issuer key"""

    def __init__(self, identity: IssuerIdentity, digest: Optional[CertificateDigest] = None):
        self.identity = identity
        self.digest = digest or CertificateDigest()

    @property
    def public_key(self) -> PublicKey:
        return self.identity.public_key

    def issue(self, certificate: Certificate, attribute_name: str) -> IssuedCredential:
        attribute_value = attribute_as_field_element(certificate, attribute_name)
        digest = self.digest.digest_with_trace(certificate)
        signature = self.identity.sign(digest.message_hash)

        params = ParamsForUser(
            issuer_public_key=self.public_key,
            message_hash=digest.message_hash,
            signature=signature,
            attribute_value=attribute_value,
        )
        logger.info(
            f"Issued {attribute_name!r} credential to {certificate.subject} "
            f"(message hash {str(digest.message_hash)[:10]}...)")
        return IssuedCredential(certificate, attribute_name, digest, signature, params)

    def export(self, credential: IssuedCredential, output_dir: Path):
        """Write the issuer-side artifact set"""
        output_dir = Path(output_dir)
        artifacts.save_public_key(self.public_key, output_dir / artifacts.PUBLIC_KEY_FILE)
        artifacts.save_certificate(credential.certificate, output_dir / artifacts.CERTIFICATE_FILE)
        artifacts.save_message_hash(credential.message_hash, output_dir / artifacts.MESSAGE_HASH_FILE)
        artifacts.save_signature(credential.signature, output_dir / artifacts.SIGNATURE_FILE)
        artifacts.save_params(credential.params, output_dir / artifacts.PARAMS_FILE)
        logger.info(f"Issuer artifacts written to {output_dir}")


# ============================================================================
# HOLDER
# ============================================================================


class CredentialHolder:
    """Turns issuer parameters into a registry claim"""

    def __init__(self, params: ParamsForUser, prover: Optional[SnarkjsProver] = None,
                 transcoder: Optional[ProofTranscoder] = None):
        # refuse to build a witness the circuit would reject
        verify_or_raise(params.issuer_public_key, params.message_hash, params.signature)
        self.params = params
        self.prover = prover
        self.transcoder = transcoder or ProofTranscoder()
        self.opening: Optional[CommitmentOpening] = None

    def commit(self, rng: Optional[RandomSource] = None) -> CommitmentOpening:
        self.opening = create_commitment(self.params.attribute_value, rng)
        logger.info(f"Committed to attribute (commitment {str(self.opening.commitment)[:10]}...)")
        return self.opening

    def circuit_inputs(self) -> CircuitInputs:
        if self.opening is None:
            self.commit()
        return CircuitInputs.build(self.opening, self.params.signature,
                                   self.params.issuer_public_key, self.params.message_hash)

    def prove(self) -> ProofResult:
        if self.prover is None:
            raise RuntimeError("No prover configured for this holder")
        return self.prover.prove(self.circuit_inputs())

    def transcode(self, proof_result: ProofResult) -> TranscodedProof:
        return self.transcoder.encode(proof_result.proof, proof_result.public_signals)

    def submit(self, registry: ClaimRegistryClient, attribute_name: str,
               transcoded: TranscodedProof) -> TransactionReceipt:
        receipt = registry.submit_claim(*transcoded.as_contract_args(attribute_name))
        logger.info(f"Claim {attribute_name!r} submitted in tx {receipt.tx_hash[:18]}...")
        return receipt


# ============================================================================
# INTEGRATED SYSTEM
# ============================================================================


class IntegratedCredentialSystem:
    """Issuer, holder and registry for a single run"""

    def __init__(self, config: Optional[SystemConfig] = None,
                 issuer_identity: Optional[IssuerIdentity] = None,
                 registry: Optional[ClaimRegistryClient] = None,
                 prover: Optional[SnarkjsProver] = None):
        self.config = config or SystemConfig()
        self.monitor = PerformanceMonitor()

        digest_config = self.config.digest_config
        self.issuer = CredentialIssuer(
            issuer_identity or IssuerIdentity.generate(),
            CertificateDigest(digest_config.algorithm, digest_config.chunk_bits),
        )

        prover_config = self.config.prover_config
        self.prover = prover or SnarkjsProver(
            prover_config.wasm_file, prover_config.zkey_file,
            timeout=prover_config.proof_timeout, snarkjs_cmd=prover_config.snarkjs_cmd)

        self.registry = registry or InMemoryClaimRegistry(
            sender=self.config.registry_config.subject_address)

        logger.info("Integrated Credential System initialized")

    def register_issuer(self) -> TransactionReceipt:
        key = self.issuer.public_key
        with self.monitor.start_operation("register_issuer"):
            return self.registry.register_issuer(
                self.config.issuer_config.issuer_address, int(key.ax), int(key.ay))

    def run(self, certificate: Certificate, attribute_name: str,
            output_dir: Optional[Path] = None) -> Dict[str, Any]:
        """Issue, commit, prove and submit one credential"""
        results: Dict[str, Any] = {'integrity_checks': {}}

        with self.monitor.start_operation("issue_credential"):
            credential = self.issuer.issue(certificate, attribute_name)
        if output_dir is not None:
            self.issuer.export(credential, output_dir)

        with self.monitor.start_operation("holder_commit"):
            holder = CredentialHolder(credential.params, self.prover)
            opening = holder.commit()
            inputs = holder.circuit_inputs()
        if output_dir is not None:
            artifacts.write_json(inputs.to_json(), Path(output_dir) / artifacts.INPUT_FILE)

        results['credential'] = {
            'subject': certificate.subject,
            'attribute': attribute_name,
            'message_hash': str(credential.message_hash),
            'commitment': str(opening.commitment),
        }
        results['integrity_checks']['signature_valid'] = self.issuer.identity.verify(
            credential.message_hash, credential.signature)
        results['integrity_checks']['commitment_opens'] = opening.verify()

        if not self.prover.is_available():
            logger.warning("Prover artifacts not found; stopping before proof generation")
            results['claim'] = None
            return results

        with self.monitor.start_operation("generate_proof"):
            proof_result = holder.prove()
        with self.monitor.start_operation("transcode_proof"):
            transcoded = holder.transcode(proof_result)
        with self.monitor.start_operation("submit_claim"):
            receipt = holder.submit(self.registry, attribute_name, transcoded)

        claim = self.registry.get_claim(self.config.registry_config.subject_address, attribute_name)
        results['integrity_checks']['claim_stored'] = claim.exists and claim.commitment == opening.commitment
        results['claim'] = {
            'tx_hash': receipt.tx_hash,
            'block_number': receipt.block_number,
            'commitment': str(claim.commitment),
        }
        return results

    def get_system_metrics(self) -> Dict[str, Any]:
        return {
            'issuer_public_key': self.issuer.public_key.to_json(),
            'prover_available': self.prover.is_available(),
            'performance': self.monitor.get_summary(),
        }


def demo_certificate(subject: str = "0x0000000000000000000000000000000000000002",
                     issuer: str = "did:example:issuer") -> Certificate:
    return Certificate(
        subject=subject,
        issuer=issuer,
        type="AgeCredential",
        details={'age': 42, 'country': 'NL'},
        context="https://www.w3.org/2018/credentials/v1",
    )
