"""
File adapters for the artifacts exchanged between issuer, holder and prover.

    issuer_private_key.hex          hex-encoded 32-byte EdDSA seed
    issuer_public_key.json          {"Ax", "Ay"}
    certificate_data.json           certificate payload
    certificate_poseidon_hash.txt   MessageHash, decimal
    certificate_signature.json      {"R8x", "R8y", "S"}
    params_for_user.json            everything the holder needs from the issuer
    input.json                      circuit witness
    proof.json / public.json        snarkjs output
    deployed_addresses.json         {"<ContractName>": "0x..."}
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from issuer.certificate import Certificate
from issuer.eddsa import PublicKey, Signature
from zk.errors import KeyFormatError, MalformedCertificateError
from zk.field import FieldElement, from_canonical_string, parse_field_element, to_canonical_string

logger = logging.getLogger(__name__)

PRIVATE_KEY_FILE = "issuer_private_key.hex"
PUBLIC_KEY_FILE = "issuer_public_key.json"
CERTIFICATE_FILE = "certificate_data.json"
MESSAGE_HASH_FILE = "certificate_poseidon_hash.txt"
SIGNATURE_FILE = "certificate_signature.json"
PARAMS_FILE = "params_for_user.json"
INPUT_FILE = "input.json"
PROOF_FILE = "proof.json"
PUBLIC_FILE = "public.json"


def read_json(path: Path) -> Any:
    with open(path, 'r') as f:
        return json.load(f)


def write_json(data: Any, path: Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)
    logger.debug(f"Wrote {path}")


# ============================================================================
# ISSUER ARTIFACTS
# ============================================================================


def save_private_key(private_key: bytes, path: Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    # created owner-only; an existing file is tightened before the key is written
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(private_key.hex())


def load_private_key(path: Path) -> bytes:
    text = Path(path).read_text().strip()
    if text.startswith(('0x', '0X')):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise KeyFormatError(f"Private key file {path} is not valid hex") from e


def save_public_key(public_key: PublicKey, path: Path):
    write_json(public_key.to_json(), path)


def load_public_key(path: Path) -> PublicKey:
    data = read_json(path)
    try:
        return PublicKey.from_json(data)
    except (KeyError, TypeError) as e:
        raise KeyFormatError(f"Public key file {path} is malformed: {e}") from e


def save_certificate(certificate: Certificate, path: Path):
    write_json(certificate.to_dict(), path)


def load_certificate(path: Path) -> Certificate:
    try:
        data = read_json(path)
    except json.JSONDecodeError as e:
        raise MalformedCertificateError(f"Certificate file {path} is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedCertificateError(f"Certificate file {path} must hold an object")
    return Certificate.from_dict(data)


def save_message_hash(message_hash: int, path: Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_canonical_string(message_hash))


def load_message_hash(path: Path) -> FieldElement:
    return from_canonical_string(Path(path).read_text().strip())


def save_signature(signature: Signature, path: Path):
    write_json(signature.to_json(), path)


def load_signature(path: Path) -> Signature:
    data = read_json(path)
    try:
        return Signature.from_json(data)
    except (KeyError, TypeError) as e:
        raise KeyFormatError(f"Signature file {path} is malformed: {e}") from e


@dataclass(frozen=True)
class ParamsForUser:
    """Issuer hand-off to the credential holder"""
    issuer_public_key: PublicKey
    message_hash: FieldElement
    signature: Signature
    attribute_value: FieldElement

    def to_json(self) -> Dict[str, str]:
        return {
            'issuerAx': to_canonical_string(self.issuer_public_key.ax),
            'issuerAy': to_canonical_string(self.issuer_public_key.ay),
            'messageHash': to_canonical_string(self.message_hash),
            'signature_R8x': to_canonical_string(self.signature.r8x),
            'signature_R8y': to_canonical_string(self.signature.r8y),
            'signature_S': to_canonical_string(self.signature.s),
            'attributeValueFromCert': to_canonical_string(self.attribute_value),
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'ParamsForUser':
        try:
            return cls(
                issuer_public_key=PublicKey.from_json(
                    {'Ax': data['issuerAx'], 'Ay': data['issuerAy']}),
                message_hash=parse_field_element(data['messageHash']),
                signature=Signature.from_json({
                    'R8x': data['signature_R8x'],
                    'R8y': data['signature_R8y'],
                    'S': data['signature_S'],
                }),
                attribute_value=parse_field_element(data['attributeValueFromCert']),
            )
        except KeyError as e:
            raise KeyFormatError(f"params_for_user is missing {e.args[0]!r}") from e


def save_params(params: ParamsForUser, path: Path):
    write_json(params.to_json(), path)


def load_params(path: Path) -> ParamsForUser:
    return ParamsForUser.from_json(read_json(path))


# ============================================================================
# PROVER AND REGISTRY ARTIFACTS
# ============================================================================


def load_proof_files(proof_path: Path, public_path: Path):
    """Raw proof.json object and public.json list"""
    return read_json(proof_path), read_json(public_path)


def load_deployed_addresses(path: Path) -> Dict[str, str]:
    path = Path(path)
    if not path.exists():
        return {}
    data = read_json(path)
    if not isinstance(data, dict):
        logger.warning(f"Ignoring malformed deployment file {path}")
        return {}
    return {str(k): str(v) for k, v in data.items()}


def save_deployed_addresses(addresses: Dict[str, str], path: Path):
    write_json(dict(addresses), path)


def list_artifacts(directory: Path) -> List[str]:
    directory = Path(directory)
    if not directory.exists():
        return []
    return sorted(p.name for p in directory.iterdir() if p.is_file())
