"""
Baby Jubjub twisted Edwards curve over the BN254 scalar field.

    a*x^2 + y^2 = 1 + d*x^2*y^2   (mod p)

Parameters match circomlib's babyjub.circom so that points and signatures
produced here can be checked inside the proving circuit.
"""

from typing import NamedTuple

from zk.errors import FieldRangeError
from zk.field import SNARK_SCALAR_FIELD, FieldElement

PRIME = SNARK_SCALAR_FIELD
A = 168700
D = 168696

ORDER = 21888242871839275222246405745257275088614511777268538073601725287587578984328
SUB_ORDER = ORDER // 8


class Point(NamedTuple):
    """Affine curve point"""
    x: int
    y: int


IDENTITY = Point(0, 1)

GENERATOR = Point(
    995203441582195749578291179787384436505546430278305826713579947235728471134,
    5472060717959818805561601436314318772137091100104008585924551046643952123905,
)

# Generator of the prime-order subgroup, 8 * GENERATOR
BASE8 = Point(
    5299619240641551281634865583518297030282874472190772894086521144482721001553,
    16950150798460657717958625567821834550301663161624707787222815936182638968203,
)


def add_points(p1: Point, p2: Point) -> Point:
    """Unified twisted Edwards addition (also valid for doubling)"""
    x1, y1 = p1
    x2, y2 = p2
    tau = D * x1 * x2 * y1 * y2 % PRIME
    x3 = (x1 * y2 + y1 * x2) * pow(1 + tau, -1, PRIME) % PRIME
    y3 = (y1 * y2 - A * x1 * x2) * pow(1 - tau, -1, PRIME) % PRIME
    return Point(x3, y3)


def negate_point(point: Point) -> Point:
    return Point((-point.x) % PRIME, point.y)


def mul_point_scalar(point: Point, scalar: int) -> Point:
    """Double-and-add scalar multiplication"""
    if scalar < 0:
        raise ValueError("Scalar must be non-negative")

    result = IDENTITY
    addend = point
    while scalar:
        if scalar & 1:
            result = add_points(result, addend)
        addend = add_points(addend, addend)
        scalar >>= 1
    return result


def in_curve(point: Point) -> bool:
    x, y = point
    if not (0 <= x < PRIME and 0 <= y < PRIME):
        return False
    x2 = x * x % PRIME
    y2 = y * y % PRIME
    return (A * x2 + y2) % PRIME == (1 + D * x2 * y2) % PRIME


def in_subgroup(point: Point) -> bool:
    return in_curve(point) and mul_point_scalar(point, SUB_ORDER) == IDENTITY


def to_point(x: int, y: int) -> Point:
    """Build a point from field elements, rejecting off-curve coordinates"""
    point = Point(int(FieldElement(x)), int(FieldElement(y)))
    if not in_curve(point):
        raise FieldRangeError(f"Point ({x}, {y}) is not on Baby Jubjub")
    return point
