"""
BN254 scalar field arithmetic.

Every value that enters the proving pipeline (digest chunks, commitment
inputs, signature components, public signals) passes through this module.
Out-of-range values are rejected, never reduced.
"""

import secrets
from typing import Callable, Optional, Union

from .errors import FieldRangeError

# BN254 scalar field prime (circom / snarkjs native field)
SNARK_SCALAR_FIELD = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# BN254 base field prime, the coordinate field of Groth16 proof points
BN254_BASE_FIELD = 21888242871839275222246405745257275088696311157297823662689037894645226208583

FIELD_BYTES = 32
FIELD_BITS = SNARK_SCALAR_FIELD.bit_length()

RandomSource = Callable[[int], bytes]


class FieldElement(int):
    """Integer guaranteed to lie in [0, SNARK_SCALAR_FIELD)"""

    def __new__(cls, value):
        if isinstance(value, FieldElement):
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise FieldRangeError(
                f"Field element must be an integer, got {type(value).__name__}")
        if value < 0 or value >= SNARK_SCALAR_FIELD:
            raise FieldRangeError(f"Value {value} outside field bounds")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"FieldElement({int(self)})"

    def __str__(self) -> str:
        return to_canonical_string(self)


def _check_range(value: int, modulus: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise FieldRangeError(
            f"Expected an integer, got {type(value).__name__}")
    if value < 0 or value >= modulus:
        raise FieldRangeError(f"Value {value} outside [0, {modulus})")
    return value


def validate(value: int) -> FieldElement:
    """Return ``value`` as a FieldElement or raise FieldRangeError"""
    return FieldElement(value)


def is_valid(value) -> bool:
    """Non-raising variant of validate()"""
    try:
        validate(value)
    except FieldRangeError:
        return False
    return True


def random_field_element(rng: Optional[RandomSource] = None) -> FieldElement:
    """Draw a uniform element of [0, prime) by rejection sampling.

    ``rng`` takes a byte count and returns that many bytes; it defaults to
    ``secrets.token_bytes``. Candidates >= prime are discarded and redrawn.
    """
    draw = rng or secrets.token_bytes
    while True:
        raw = draw(FIELD_BYTES)
        if len(raw) != FIELD_BYTES:
            raise ValueError(
                f"Random source returned {len(raw)} bytes, expected {FIELD_BYTES}")
        candidate = int.from_bytes(raw, 'big')
        if candidate < SNARK_SCALAR_FIELD:
            return FieldElement(candidate)


def to_canonical_string(value: int) -> str:
    """Decimal string form used at every serialization boundary"""
    return str(int(validate(value)))


def _parse_decimal(text: str) -> int:
    if not isinstance(text, str):
        raise FieldRangeError(
            f"Expected a decimal string, got {type(text).__name__}")
    # isdigit() alone accepts non-ASCII digits such as superscripts
    if not text or not text.isascii() or not text.isdigit():
        raise FieldRangeError(f"Malformed decimal string: {text!r}")
    try:
        return int(text, 10)
    except ValueError as e:
        # interpreter digit limit on very long strings
        raise FieldRangeError(f"Decimal string too long: {len(text)} digits") from e


def from_canonical_string(text: str) -> FieldElement:
    """Parse a decimal string into a FieldElement"""
    return FieldElement(_parse_decimal(text))


def parse_integer(value: Union[str, int], modulus: int = SNARK_SCALAR_FIELD) -> int:
    """Parse a decimal string or int coming from JSON and range-check it"""
    if isinstance(value, str):
        value = _parse_decimal(value)
    return _check_range(value, modulus)


def parse_field_element(value: Union[str, int]) -> FieldElement:
    """JSON boundary helper: decimal string or int to FieldElement"""
    return FieldElement(parse_integer(value))


def to_hex(value: int) -> str:
    """0x-prefixed, zero-padded hex form for debug output"""
    return '0x' + format(int(validate(value)), '064x')


def from_hex(text: str) -> FieldElement:
    body = text[2:] if text.lower().startswith('0x') else text
    try:
        return FieldElement(int(body, 16))
    except ValueError as e:
        raise FieldRangeError(f"Malformed hex string: {text!r}") from e

