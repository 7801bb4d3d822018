"""
Adapter for the external Groth16 prover (circom wasm + snarkjs).

The circuit itself is out of scope; this module only writes the witness input
in the circuit's expected layout, shells out to snarkjs, and parses its
output back into in-process structures. Nothing here retries: a failed or
timed-out prover run surfaces as ProofGenerationError.
"""

import json
import logging
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .commitment import CommitmentOpening
from .errors import ProofFormatError, ProofGenerationError
from .field import FieldElement, parse_field_element, to_canonical_string
from .transcoder import Groth16Proof, PublicSignals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CircuitInputs:
    """Witness for the attribute-signature circuit"""
    attribute_value: FieldElement
    salt: FieldElement
    signature_r8x: FieldElement
    signature_r8y: FieldElement
    signature_s: FieldElement
    commitment_hash: FieldElement
    issuer_ax: FieldElement
    issuer_ay: FieldElement
    message_hash: FieldElement

    @classmethod
    def build(cls, opening: CommitmentOpening, signature, public_key,
              message_hash: int) -> 'CircuitInputs':
        return cls(
            attribute_value=opening.attribute_value,
            salt=opening.salt,
            signature_r8x=signature.r8x,
            signature_r8y=signature.r8y,
            signature_s=signature.s,
            commitment_hash=opening.commitment,
            issuer_ax=public_key.ax,
            issuer_ay=public_key.ay,
            message_hash=parse_field_element(message_hash),
        )

    def to_json(self) -> Dict[str, str]:
        return {
            'attributeValue': to_canonical_string(self.attribute_value),
            'salt': to_canonical_string(self.salt),
            'signature_R8x': to_canonical_string(self.signature_r8x),
            'signature_R8y': to_canonical_string(self.signature_r8y),
            'signature_S': to_canonical_string(self.signature_s),
            'commitmentHash': to_canonical_string(self.commitment_hash),
            'issuerAx': to_canonical_string(self.issuer_ax),
            'issuerAy': to_canonical_string(self.issuer_ay),
            'messageHash': to_canonical_string(self.message_hash),
        }

    def expected_public_signals(self) -> PublicSignals:
        return PublicSignals(self.commitment_hash, self.issuer_ax,
                             self.issuer_ay, self.message_hash)


@dataclass(frozen=True)
class ProofResult:
    proof: Groth16Proof
    public_signals: PublicSignals
    generation_time: float


class SnarkjsProver:
    """Runs ``snarkjs groth16 fullprove`` against a compiled circuit"""

    def __init__(self, wasm_file: Path, zkey_file: Path, timeout: int = 60,
                 snarkjs_cmd: str = 'snarkjs'):
        self.wasm_file = Path(wasm_file)
        self.zkey_file = Path(zkey_file)
        self.timeout = timeout
        self.snarkjs_cmd = snarkjs_cmd

    def is_available(self) -> bool:
        return (shutil.which(self.snarkjs_cmd) is not None
                and self.wasm_file.exists() and self.zkey_file.exists())

    def _command(self, input_file: Path, proof_file: Path, public_file: Path) -> List[str]:
        return [
            self.snarkjs_cmd, 'groth16', 'fullprove',
            str(input_file),
            str(self.wasm_file),
            str(self.zkey_file),
            str(proof_file),
            str(public_file),
        ]

    def prove(self, inputs: CircuitInputs) -> ProofResult:
        start_time = time.time()

        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            input_file = temp_path / "input.json"
            proof_file = temp_path / "proof.json"
            public_file = temp_path / "public.json"
            input_file.write_text(json.dumps(inputs.to_json(), indent=2))

            cmd = self._command(input_file, proof_file, public_file)
            try:
                result = subprocess.run(cmd, capture_output=True, text=True,
                                        timeout=self.timeout)
            except FileNotFoundError as e:
                raise ProofGenerationError(
                    f"Prover executable not found: {self.snarkjs_cmd}") from e
            except subprocess.TimeoutExpired as e:
                raise ProofGenerationError(
                    f"Proof generation timed out after {self.timeout}s") from e

            if result.returncode != 0:
                raise ProofGenerationError(
                    f"Proof generation failed: {result.stderr.strip()}")

            try:
                proof_data = json.loads(proof_file.read_text())
                public_data = json.loads(public_file.read_text())
            except (OSError, json.JSONDecodeError) as e:
                raise ProofFormatError(f"Prover output unreadable: {e}") from e

        proof = Groth16Proof.from_json(proof_data)
        signals = PublicSignals.from_list(public_data)

        if signals != inputs.expected_public_signals():
            raise ProofGenerationError(
                "Prover public signals do not match the supplied witness")

        generation_time = time.time() - start_time
        logger.info(f"Generated proof in {generation_time:.2f}s")
        return ProofResult(proof, signals, generation_time)


def load_prover_output(proof_data: Dict[str, Any], public_data: List[Any],
                       generation_time: float = 0.0) -> ProofResult:
    """Wrap already-produced proof.json / public.json contents"""
    return ProofResult(Groth16Proof.from_json(proof_data),
                       PublicSignals.from_list(public_data), generation_time)
