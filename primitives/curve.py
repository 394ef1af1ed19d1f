"""
Baby JubJub twisted Edwards curve arithmetic over the BN254 scalar field.

Points are plain affine ``(x, y)`` tuples. Addition is the complete twisted
Edwards law, so the identity ``(0, 1)`` and arbitrary field pairs are handled
without special casing.
"""

import logging
from typing import Iterable, Tuple

logger = logging.getLogger(__name__)

Point = Tuple[int, int]

# ============================================================================
# CURVE PARAMETERS
# ============================================================================

FIELD_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

A = 168700
D = 168696

BASE8: Point = (
    5299619240641551281634865583518297030282874472190772894086521144482721001553,
    16950150798460657717958625567821834550301663161624707787222815936182638968203,
)

# Order of the prime subgroup generated by BASE8
SUBGROUP_ORDER = 2736030358979909402780800718157159386076813972158567259200215660948447373041

IDENTITY: Point = (0, 1)


# ============================================================================
# POINT OPERATIONS
# ============================================================================

def _inv(value: int) -> int:
    return pow(value % FIELD_PRIME, -1, FIELD_PRIME)


def point_add(p1: Point, p2: Point) -> Point:
    """Add two points with the twisted Edwards addition law"""
    x1, y1 = p1
    x2, y2 = p2

    x1x2 = x1 * x2 % FIELD_PRIME
    y1y2 = y1 * y2 % FIELD_PRIME
    dxy = D * x1x2 * y1y2 % FIELD_PRIME

    x3 = (x1 * y2 + y1 * x2) * _inv(1 + dxy) % FIELD_PRIME
    y3 = (y1y2 - A * x1x2) * _inv(1 - dxy) % FIELD_PRIME
    return (x3, y3)


def point_neg(p: Point) -> Point:
    return ((-p[0]) % FIELD_PRIME, p[1] % FIELD_PRIME)


def point_sub(p1: Point, p2: Point) -> Point:
    return point_add(p1, point_neg(p2))


def scalar_mul(scalar: int, p: Point) -> Point:
    """Double-and-add scalar multiplication. Negative scalars negate the point."""
    if scalar < 0:
        return scalar_mul(-scalar, point_neg(p))

    result = IDENTITY
    addend = p
    while scalar:
        if scalar & 1:
            result = point_add(result, addend)
        addend = point_add(addend, addend)
        scalar >>= 1
    return result


def base_mul(scalar: int) -> Point:
    """Multiply the subgroup generator, reducing the scalar mod the subgroup order"""
    return scalar_mul(scalar % SUBGROUP_ORDER, BASE8)


def point_sum(points: Iterable[Point]) -> Point:
    total = IDENTITY
    for p in points:
        total = point_add(total, p)
    return total


def is_on_curve(p: Point) -> bool:
    """Check a*x^2 + y^2 == 1 + d*x^2*y^2"""
    x, y = p
    x2 = x * x % FIELD_PRIME
    y2 = y * y % FIELD_PRIME
    return (A * x2 + y2) % FIELD_PRIME == (1 + D * x2 * y2) % FIELD_PRIME


def normalize_point(p) -> Point:
    """Coerce a two-element sequence into a canonical point tuple"""
    if len(p) != 2:
        raise ValueError(f"Point must have two coordinates, got {len(p)}")
    return (int(p[0]) % FIELD_PRIME, int(p[1]) % FIELD_PRIME)
