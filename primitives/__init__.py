"""Curve, hash and encoding primitives for the ZK multisig."""

from .curve import (
    Point,
    FIELD_PRIME,
    SUBGROUP_ORDER,
    BASE8,
    IDENTITY,
    point_add,
    point_neg,
    point_sub,
    scalar_mul,
    base_mul,
    point_sum,
    is_on_curve,
    normalize_point,
)
from .poseidon import CircomPoseidon, poseidon_hash
from .hashing import (
    KeyType,
    keccak256,
    keccak256_int,
    encode_uint256,
    address_to_int,
    to_field,
    encode_key_leaf,
)

__all__ = [
    'Point',
    'FIELD_PRIME',
    'SUBGROUP_ORDER',
    'BASE8',
    'IDENTITY',
    'point_add',
    'point_neg',
    'point_sub',
    'scalar_mul',
    'base_mul',
    'point_sum',
    'is_on_curve',
    'normalize_point',
    'CircomPoseidon',
    'poseidon_hash',
    'KeyType',
    'keccak256',
    'keccak256_int',
    'encode_uint256',
    'address_to_int',
    'to_field',
    'encode_key_leaf',
]
