"""
Circom-compatible Poseidon hash over the BN254 scalar field.

Round constants and MDS matrices are derived with the reference Grain LFSR
parameter generator (field=prime, S-box x^5, 254-bit field), which is how the
circomlib constant tables were produced. Parameters are generated once per
state width and cached.
"""

import logging
from collections import deque
from functools import lru_cache
from typing import List, Sequence, Tuple

from .field import SNARK_SCALAR_FIELD, FieldElement, validate

logger = logging.getLogger(__name__)

# ============================================================================
# PARAMETER GENERATION
# ============================================================================

FULL_ROUNDS = 8
# Partial rounds indexed by t - 2 (circomlib table)
PARTIAL_ROUNDS = [56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68]
MAX_INPUTS = 8

FIELD_SIZE = SNARK_SCALAR_FIELD.bit_length()


class GrainLFSR:
    """80-bit Grain LFSR in self-shrinking mode"""

    def __init__(self, field_size: int, width: int, full_rounds: int, partial_rounds: int,
                 field_type: int = 1, sbox_type: int = 0):
        bits = []
        for value, length in ((field_type, 2), (sbox_type, 4), (field_size, 12),
                              (width, 12), (full_rounds, 10), (partial_rounds, 10)):
            bits.extend(int(b) for b in format(value, f'0{length}b'))
        bits.extend([1] * 30)
        self._state = deque(bits)

        for _ in range(160):
            self._clock()

    def _clock(self) -> int:
        s = self._state
        new_bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.popleft()
        s.append(new_bit)
        return new_bit

    def next_bit(self) -> int:
        while True:
            selector = self._clock()
            candidate = self._clock()
            if selector == 1:
                return candidate

    def random_bits(self, count: int) -> int:
        value = 0
        for _ in range(count):
            value = (value << 1) | self.next_bit()
        return value


@lru_cache(maxsize=None)
def get_parameters(width: int) -> Tuple[Tuple[int, ...], Tuple[Tuple[int, ...], ...], int]:
    """Return (round_constants, mds_matrix, partial_rounds) for state width t"""
    if width < 2 or width - 2 >= len(PARTIAL_ROUNDS):
        raise ValueError(f"Unsupported Poseidon width {width}")

    partial_rounds = PARTIAL_ROUNDS[width - 2]
    prime = SNARK_SCALAR_FIELD
    grain = GrainLFSR(FIELD_SIZE, width, FULL_ROUNDS, partial_rounds)

    constants = []
    for _ in range((FULL_ROUNDS + partial_rounds) * width):
        value = grain.random_bits(FIELD_SIZE)
        while value >= prime:
            value = grain.random_bits(FIELD_SIZE)
        constants.append(value)

    # Cauchy matrix M[i][j] = 1 / (x_i + y_j)
    while True:
        samples = [grain.random_bits(FIELD_SIZE) % prime for _ in range(2 * width)]
        if len(set(samples)) != len(samples):
            continue
        xs, ys = samples[:width], samples[width:]
        if any((x + y) % prime == 0 for x in xs for y in ys):
            continue
        mds = tuple(
            tuple(pow((x + y) % prime, -1, prime) for y in ys)
            for x in xs
        )
        break

    logger.debug(
        f"Generated Poseidon parameters for t={width}: {len(constants)} constants")
    return tuple(constants), mds, partial_rounds


# ============================================================================
# PERMUTATION
# ============================================================================


class CircomPoseidon:
    """Poseidon hash matching circomlib's Poseidon(nInputs) template"""

    PRIME = SNARK_SCALAR_FIELD
    FULL_ROUNDS = FULL_ROUNDS

    @staticmethod
    def ark(state: List[int], constants: Sequence[int], constant_idx: int) -> List[int]:
        """Add round constants"""
        return [(x + constants[constant_idx + i]) % CircomPoseidon.PRIME
                for i, x in enumerate(state)]

    @staticmethod
    def sbox(state: List[int], full_round: bool) -> List[int]:
        """Apply S-box (x^5 mod p)"""
        if full_round:
            return [pow(x, 5, CircomPoseidon.PRIME) for x in state]
        return [pow(state[0], 5, CircomPoseidon.PRIME)] + state[1:]

    @staticmethod
    def mix(state: List[int], mds: Sequence[Sequence[int]]) -> List[int]:
        """Apply MDS matrix multiplication"""
        prime = CircomPoseidon.PRIME
        return [sum(row[j] * x for j, x in enumerate(state)) % prime for row in mds]

    @staticmethod
    def permute(state: List[int]) -> List[int]:
        width = len(state)
        constants, mds, partial_rounds = get_parameters(width)
        half_full = CircomPoseidon.FULL_ROUNDS // 2

        for r in range(CircomPoseidon.FULL_ROUNDS + partial_rounds):
            state = CircomPoseidon.ark(state, constants, r * width)
            full_round = r < half_full or r >= half_full + partial_rounds
            state = CircomPoseidon.sbox(state, full_round)
            state = CircomPoseidon.mix(state, mds)
        return state

    @staticmethod
    def hash(inputs: Sequence[int]) -> FieldElement:
        """Hash 1..8 field elements; inputs are validated, never reduced"""
        if not 1 <= len(inputs) <= MAX_INPUTS:
            raise ValueError(
                f"Poseidon expects 1 to {MAX_INPUTS} inputs, got {len(inputs)}")

        state = [0] + [int(validate(x)) for x in inputs]
        return FieldElement(CircomPoseidon.permute(state)[0])


poseidon_hash = CircomPoseidon.hash
