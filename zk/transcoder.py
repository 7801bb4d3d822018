"""
Groth16 proof transcoding for the on-chain pairing verifier.

snarkjs emits G2 points with each Fp2 coordinate as [c0, c1]; the Solidity
verifier's pairing precompile expects [c1, c0]. The swap is unconditional:

    pi_b = [[x0, x1], [y0, y1]]  ->  b = [[x1, x0], [y1, y0]]

pi_a and pi_c pass through as (x, y); their projective z coordinate is
dropped. Public signals keep the circuit's fixed order:

    [commitmentHash, issuerAx, issuerAy, messageHash]
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple, Union

from .errors import FieldRangeError, ProofFormatError
from .field import (BN254_BASE_FIELD, FieldElement, parse_field_element,
                    parse_integer, to_canonical_string)

logger = logging.getLogger(__name__)

NUM_PUBLIC_SIGNALS = 4

G1Pair = Tuple[str, str]
G2Pair = Tuple[Tuple[str, str], Tuple[str, str]]


def _coordinate(value: Any, label: str) -> str:
    """Range-check one proof coordinate against the BN254 base field"""
    try:
        return str(parse_integer(value, BN254_BASE_FIELD))
    except FieldRangeError as e:
        raise ProofFormatError(f"Invalid proof element {label}: {e}") from e


def _sequence(value: Any, min_length: int, label: str) -> Sequence[Any]:
    if not isinstance(value, (list, tuple)) or len(value) < min_length:
        raise ProofFormatError(
            f"{label} must be a list of at least {min_length} entries")
    return value


# ============================================================================
# PROOF AND SIGNAL CONTAINERS
# ============================================================================


@dataclass(frozen=True)
class Groth16Proof:
    """Raw prover output in snarkjs' native layout (affine coordinates)"""
    pi_a: G1Pair
    pi_b: G2Pair
    pi_c: G1Pair
    protocol: str = "groth16"
    curve: str = "bn128"

    def __post_init__(self):
        # directly constructed proofs get the same checks as parsed ones
        if self.protocol != 'groth16':
            raise ProofFormatError(f"Unsupported proof protocol: {self.protocol}")
        pi_a = _sequence(self.pi_a, 2, 'pi_a')
        pi_c = _sequence(self.pi_c, 2, 'pi_c')
        pi_b = _sequence(self.pi_b, 2, 'pi_b')
        b_rows = [_sequence(pi_b[i], 2, f'pi_b[{i}]') for i in range(2)]

        object.__setattr__(self, 'pi_a', (_coordinate(pi_a[0], 'pi_a[0]'),
                                          _coordinate(pi_a[1], 'pi_a[1]')))
        object.__setattr__(self, 'pi_b', tuple(
            (_coordinate(row[0], f'pi_b[{i}][0]'), _coordinate(row[1], f'pi_b[{i}][1]'))
            for i, row in enumerate(b_rows)))
        object.__setattr__(self, 'pi_c', (_coordinate(pi_c[0], 'pi_c[0]'),
                                          _coordinate(pi_c[1], 'pi_c[1]')))

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Groth16Proof':
        if not isinstance(data, dict):
            raise ProofFormatError("Proof must be a JSON object")
        for key in ('pi_a', 'pi_b', 'pi_c'):
            if key not in data:
                raise ProofFormatError(f"Proof is missing {key}")

        return cls(
            pi_a=data['pi_a'],
            pi_b=data['pi_b'],
            pi_c=data['pi_c'],
            protocol=data.get('protocol', 'groth16'),
            curve=data.get('curve', 'bn128'),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            'pi_a': [self.pi_a[0], self.pi_a[1], "1"],
            'pi_b': [list(self.pi_b[0]), list(self.pi_b[1]), ["1", "0"]],
            'pi_c': [self.pi_c[0], self.pi_c[1], "1"],
            'protocol': self.protocol,
            'curve': self.curve,
        }


@dataclass(frozen=True)
class PublicSignals:
    """The four public signals, in protocol order"""
    commitment: FieldElement
    issuer_ax: FieldElement
    issuer_ay: FieldElement
    message_hash: FieldElement

    def __post_init__(self):
        for name in ('commitment', 'issuer_ax', 'issuer_ay', 'message_hash'):
            try:
                value = parse_field_element(getattr(self, name))
            except FieldRangeError as e:
                raise ProofFormatError(f"Invalid public signal {name}: {e}") from e
            object.__setattr__(self, name, value)

    @classmethod
    def from_list(cls, signals: Sequence[Union[str, int]]) -> 'PublicSignals':
        if not isinstance(signals, (list, tuple)) or len(signals) != NUM_PUBLIC_SIGNALS:
            count = len(signals) if isinstance(signals, (list, tuple)) else 'invalid format'
            raise ProofFormatError(
                f"Expected {NUM_PUBLIC_SIGNALS} public signals, got {count}")
        return cls(*signals)

    def as_tuple(self) -> Tuple[FieldElement, FieldElement, FieldElement, FieldElement]:
        return (self.commitment, self.issuer_ax, self.issuer_ay, self.message_hash)

    def to_json(self) -> List[str]:
        return [to_canonical_string(s) for s in self.as_tuple()]


# ============================================================================
# TRANSCODING
# ============================================================================


def swap_g2_coordinates(b: Sequence[Sequence[Any]]) -> G2Pair:
    """Reverse both Fp2 coordinate pairs; applying it twice is the identity"""
    return ((b[0][1], b[0][0]), (b[1][1], b[1][0]))


def _hex(value: str) -> str:
    return '0x' + format(int(value), '064x')


@dataclass(frozen=True)
class TranscodedProof:
    """Verifier-ready proof arguments"""
    a: G1Pair
    b: G2Pair
    c: G1Pair
    public_signals: PublicSignals

    @property
    def signals(self) -> Tuple[FieldElement, FieldElement, FieldElement, FieldElement]:
        return self.public_signals.as_tuple()

    def as_contract_args(self, attribute_name: str) -> Tuple[Any, ...]:
        """addClaim(name, issuerAx, issuerAy, messageHash, commitmentHash, a, b, c)"""
        ps = self.public_signals
        return (
            attribute_name,
            int(ps.issuer_ax),
            int(ps.issuer_ay),
            int(ps.message_hash),
            int(ps.commitment),
            [int(x) for x in self.a],
            [[int(x) for x in row] for row in self.b],
            [int(x) for x in self.c],
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            'a': list(self.a),
            'b': [list(row) for row in self.b],
            'c': list(self.c),
            'publicSignals': self.public_signals.to_json(),
        }

    def to_solidity_calldata(self) -> str:
        """Same layout as ``snarkjs zkey export soliditycalldata``"""
        a = f'["{_hex(self.a[0])}", "{_hex(self.a[1])}"]'
        b = '[' + ', '.join(
            f'["{_hex(row[0])}", "{_hex(row[1])}"]' for row in self.b) + ']'
        c = f'["{_hex(self.c[0])}", "{_hex(self.c[1])}"]'
        signals = '[' + ', '.join(f'"{_hex(s)}"' for s in self.public_signals.to_json()) + ']'
        return f'{a},{b},{c},{signals}'


class ProofTranscoder:
    """Converts prover output into the verifier's argument layout"""

    def encode(self, raw_proof: Union[Groth16Proof, Dict[str, Any]],
               public_signals: Union[PublicSignals, Sequence[Union[str, int]]]) -> TranscodedProof:
        proof = raw_proof if isinstance(raw_proof, Groth16Proof) else Groth16Proof.from_json(raw_proof)
        signals = (public_signals if isinstance(public_signals, PublicSignals)
                   else PublicSignals.from_list(public_signals))

        transcoded = TranscodedProof(
            a=proof.pi_a,
            b=swap_g2_coordinates(proof.pi_b),
            c=proof.pi_c,
            public_signals=signals,
        )
        logger.debug(
            f"Transcoded proof for commitment {str(signals.commitment)[:10]}...")
        return transcoded


def encode(raw_proof: Union[Groth16Proof, Dict[str, Any]],
           public_signals: Union[PublicSignals, Sequence[Union[str, int]]]) -> TranscodedProof:
    return ProofTranscoder().encode(raw_proof, public_signals)
