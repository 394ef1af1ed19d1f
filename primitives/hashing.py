"""Keccak-256 domain hashing and key-leaf encoding"""

from enum import IntEnum
from typing import Union

from Crypto.Hash import keccak

from .curve import FIELD_PRIME, Point
from .poseidon import poseidon_hash

UINT256_MAX = (1 << 256) - 1


class KeyType(IntEnum):
    """Domain tag mixed into membership leaves"""
    PERMANENT = 1
    ROTATION = 2


def keccak256(data: bytes) -> bytes:
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def keccak256_int(data: bytes) -> int:
    return int.from_bytes(keccak256(data), 'big')


def encode_uint256(*values: Union[int, bytes]) -> bytes:
    """Concatenate values as 32-byte big-endian words (ABI static encoding)"""
    out = bytearray()
    for value in values:
        if isinstance(value, (bytes, bytearray)):
            if len(value) > 32:
                raise ValueError(f"Cannot encode {len(value)} bytes into one word")
            out += bytes(value).rjust(32, b'\x00')
            continue
        if value < 0 or value > UINT256_MAX:
            raise ValueError(f"Value {value} does not fit into uint256")
        out += int(value).to_bytes(32, 'big')
    return bytes(out)


def address_to_int(address: str) -> int:
    """Interpret a 0x-prefixed 20-byte hex address as an integer"""
    return int(address, 16)


def to_field(value: int) -> int:
    return value % FIELD_PRIME


def encode_key_leaf(key: Point, key_type: KeyType) -> int:
    """Membership leaf: poseidon(x, y, type)"""
    return poseidon_hash([key[0], key[1], int(key_type)])
