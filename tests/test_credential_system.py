import json

import pytest

from config.config import SystemConfig
from credential_system import (CredentialHolder, CredentialIssuer,
                               IntegratedCredentialSystem, attribute_as_field_element,
                               demo_certificate)
from issuer.certificate import Certificate, digest
from registry.client import InMemoryClaimRegistry
from utils import artifacts
from utils.artifacts import ParamsForUser
from zk.errors import MalformedCertificateError, RevertError, SignatureVerificationError
from zk.prover import ProofResult
from zk.transcoder import Groth16Proof

SUBJECT = SystemConfig().registry_config.subject_address


class StubProver:
    """Returns a fixed proof carrying the witness' public signals"""

    def __init__(self, raw_proof, available=True):
        self.raw_proof = raw_proof
        self.available = available
        self.seen = []

    def is_available(self):
        return self.available

    def prove(self, inputs):
        self.seen.append(inputs)
        return ProofResult(Groth16Proof.from_json(self.raw_proof),
                           inputs.expected_public_signals(), 0.01)


@pytest.fixture
def certificate():
    return demo_certificate(subject=SUBJECT)


@pytest.fixture
def credential_issuer(issuer_identity):
    return CredentialIssuer(issuer_identity)


class TestIssuer:

    def test_issue_signs_certificate_digest(self, credential_issuer, certificate):
        credential = credential_issuer.issue(certificate, "age")

        assert credential.message_hash == digest(certificate)
        assert credential_issuer.identity.verify(credential.message_hash, credential.signature)
        assert credential.params.attribute_value == 42

    def test_missing_attribute(self, credential_issuer, certificate):
        with pytest.raises(MalformedCertificateError):
            credential_issuer.issue(certificate, "height")

    def test_non_integer_attribute(self, credential_issuer, certificate):
        with pytest.raises(MalformedCertificateError):
            credential_issuer.issue(certificate, "country")

    def test_attribute_from_decimal_string(self):
        cert = Certificate("s", "i", "t", {"score": "17"}, "2024-01-01")
        assert attribute_as_field_element(cert, "score") == 17

    def test_boolean_attribute_rejected(self):
        cert = Certificate("s", "i", "t", {"adult": True}, "2024-01-01")
        with pytest.raises(MalformedCertificateError):
            attribute_as_field_element(cert, "adult")

    def test_export_writes_artifacts(self, tmp_path, credential_issuer, certificate):
        credential = credential_issuer.issue(certificate, "age")
        credential_issuer.export(credential, tmp_path)

        assert artifacts.load_params(tmp_path / artifacts.PARAMS_FILE) == credential.params
        assert artifacts.load_message_hash(tmp_path / artifacts.MESSAGE_HASH_FILE) == \
            credential.message_hash
        assert artifacts.load_certificate(tmp_path / artifacts.CERTIFICATE_FILE) == certificate


class TestHolder:

    def test_rejects_bad_issuer_signature(self, credential_issuer, certificate):
        params = credential_issuer.issue(certificate, "age").params
        forged = ParamsForUser(params.issuer_public_key, params.message_hash ^ 1,
                               params.signature, params.attribute_value)
        with pytest.raises(SignatureVerificationError):
            CredentialHolder(forged)

    def test_circuit_inputs_match_params(self, credential_issuer, certificate, rng):
        params = credential_issuer.issue(certificate, "age").params
        holder = CredentialHolder(params)
        opening = holder.commit(rng)
        data = holder.circuit_inputs().to_json()

        assert data['attributeValue'] == "42"
        assert data['commitmentHash'] == str(opening.commitment)
        assert data['signature_S'] == str(params.signature.s)
        assert data['messageHash'] == str(params.message_hash)

    def test_prove_without_prover(self, credential_issuer, certificate):
        holder = CredentialHolder(credential_issuer.issue(certificate, "age").params)
        with pytest.raises(RuntimeError):
            holder.prove()


class TestIntegratedSystem:

    def test_end_to_end(self, tmp_path, issuer_identity, certificate, raw_proof):
        prover = StubProver(raw_proof)
        system = IntegratedCredentialSystem(issuer_identity=issuer_identity, prover=prover)
        system.register_issuer()

        results = system.run(certificate, "age", output_dir=tmp_path)

        assert all(results['integrity_checks'].values())
        assert results['integrity_checks']['claim_stored']
        claim = system.registry.get_claim(SUBJECT, "age")
        assert claim.exists
        assert str(claim.commitment) == results['credential']['commitment']
        assert (claim.issuer_ax, claim.issuer_ay) == \
            (issuer_identity.public_key.ax, issuer_identity.public_key.ay)

        written = json.loads((tmp_path / artifacts.INPUT_FILE).read_text())
        assert written == prover.seen[0].to_json()

        operations = system.monitor.get_summary()['operations']
        assert {'issue_credential', 'holder_commit', 'generate_proof',
                'transcode_proof', 'submit_claim'} <= set(operations)

    def test_second_submission_reverts(self, issuer_identity, certificate, raw_proof):
        system = IntegratedCredentialSystem(issuer_identity=issuer_identity,
                                            prover=StubProver(raw_proof))
        system.register_issuer()
        system.run(certificate, "age")

        with pytest.raises(RevertError, match="Claim already exists"):
            system.run(certificate, "age")

    def test_unregistered_issuer_reverts(self, issuer_identity, certificate, raw_proof):
        system = IntegratedCredentialSystem(issuer_identity=issuer_identity,
                                            prover=StubProver(raw_proof))
        with pytest.raises(RevertError, match="Issuer not registered"):
            system.run(certificate, "age")

    def test_stops_before_proof_without_prover(self, issuer_identity, certificate, raw_proof):
        system = IntegratedCredentialSystem(
            issuer_identity=issuer_identity,
            prover=StubProver(raw_proof, available=False),
            registry=InMemoryClaimRegistry(sender=SUBJECT))
        results = system.run(certificate, "age")

        assert results['claim'] is None
        assert results['integrity_checks'] == {'signature_valid': True, 'commitment_opens': True}

    def test_metrics(self, issuer_identity, raw_proof):
        system = IntegratedCredentialSystem(issuer_identity=issuer_identity,
                                            prover=StubProver(raw_proof))
        metrics = system.get_system_metrics()
        assert metrics['issuer_public_key'] == issuer_identity.public_key.to_json()
        assert metrics['prover_available']
