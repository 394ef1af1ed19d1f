"""
Circom-compatible Poseidon hash over the BN254 scalar field

Supports 1 to 3 field inputs (state width t = inputs + 1) with the x^5 S-box,
8 full rounds and circomlib's partial-round counts. Round constants and the
Cauchy MDS matrix come from the Grain LFSR parameter generator of the Poseidon
reference implementation (field=1, sbox=0, n=254), the same procedure that
produced circomlib's poseidon_constants.js.
"""

import logging
from functools import lru_cache
from typing import Iterator, List, Sequence, Tuple

from .curve import FIELD_PRIME

logger = logging.getLogger(__name__)


class GrainLFSR:
    """80-bit Grain LFSR seeded with the permutation parameters"""

    STATE_BITS = 80
    WARMUP_CLOCKS = 160

    def __init__(self, field_bits: int, width: int, full_rounds: int, partial_rounds: int):
        seed = (
            format(1, '02b')                 # prime field
            + format(0, '04b')               # x^alpha S-box
            + format(field_bits, '012b')
            + format(width, '012b')
            + format(full_rounds, '010b')
            + format(partial_rounds, '010b')
            + '1' * 30
        )
        self._state = [int(bit) for bit in seed]
        for _ in range(self.WARMUP_CLOCKS):
            self._clock()
        self._bits = self._filtered_bits()

    def _clock(self) -> int:
        s = self._state
        bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.pop(0)
        s.append(bit)
        return bit

    def _filtered_bits(self) -> Iterator[int]:
        # Bits come in pairs; the second is kept only when the first is 1
        while True:
            keep = self._clock()
            bit = self._clock()
            if keep:
                yield bit

    def random_int(self, num_bits: int) -> int:
        value = 0
        for _ in range(num_bits):
            value = (value << 1) | next(self._bits)
        return value

    def field_element(self, num_bits: int, prime: int) -> int:
        """Rejection-sample an element below `prime`"""
        while True:
            value = self.random_int(num_bits)
            if value < prime:
                return value


class CircomPoseidon:
    """Poseidon permutation parametrised by state width"""

    PRIME = FIELD_PRIME
    FIELD_BITS = 254

    FULL_ROUNDS = 8
    # Partial rounds indexed by width t = 2..4
    PARTIAL_ROUNDS = {2: 56, 3: 57, 4: 56}

    MAX_INPUTS = 3

    @staticmethod
    @lru_cache(maxsize=None)
    def parameters(width: int) -> Tuple[Tuple[int, ...], Tuple[Tuple[int, ...], ...]]:
        """Round constants and MDS matrix for one state width"""
        p = CircomPoseidon.PRIME
        n = CircomPoseidon.FIELD_BITS
        full = CircomPoseidon.FULL_ROUNDS
        partial = CircomPoseidon.PARTIAL_ROUNDS[width]

        grain = GrainLFSR(n, width, full, partial)
        constants = tuple(grain.field_element(n, p) for _ in range(width * (full + partial)))

        while True:
            points = [grain.random_int(n) % p for _ in range(2 * width)]
            while len(set(points)) != len(points):
                points = [grain.random_int(n) % p for _ in range(2 * width)]
            xs, ys = points[:width], points[width:]
            if any((x + y) % p == 0 for x in xs for y in ys):
                continue
            matrix = tuple(tuple(pow(x + y, -1, p) for y in ys) for x in xs)
            break

        logger.debug(f"Generated Poseidon parameters for t={width}")
        return constants, matrix

    @staticmethod
    def round_constants(width: int) -> Tuple[int, ...]:
        return CircomPoseidon.parameters(width)[0]

    @staticmethod
    def mds_matrix(width: int) -> Tuple[Tuple[int, ...], ...]:
        return CircomPoseidon.parameters(width)[1]

    @staticmethod
    def ark(state: List[int], constants: Sequence[int], constant_idx: int) -> List[int]:
        return [(s + constants[constant_idx + i]) % CircomPoseidon.PRIME for i, s in enumerate(state)]

    @staticmethod
    def sbox(state: List[int], full_round: bool) -> List[int]:
        """Apply S-box (x^5 mod p)"""
        p = CircomPoseidon.PRIME
        if full_round:
            return [pow(x, 5, p) for x in state]
        return [pow(state[0], 5, p)] + state[1:]

    @staticmethod
    def mix(state: List[int], matrix: Sequence[Sequence[int]]) -> List[int]:
        """Apply MDS matrix multiplication"""
        p = CircomPoseidon.PRIME
        return [sum(m * s for m, s in zip(row, state)) % p for row in matrix]

    @staticmethod
    def hash(inputs: Sequence[int]) -> int:
        """Hash 1..3 field elements to one field element"""
        if not 1 <= len(inputs) <= CircomPoseidon.MAX_INPUTS:
            raise ValueError(
                f"Poseidon expects 1 to {CircomPoseidon.MAX_INPUTS} inputs, got {len(inputs)}")

        width = len(inputs) + 1
        constants, matrix = CircomPoseidon.parameters(width)
        half_full = CircomPoseidon.FULL_ROUNDS // 2

        state = [0] + [int(x) % CircomPoseidon.PRIME for x in inputs]
        constant_idx = 0

        for _ in range(half_full):
            state = CircomPoseidon.ark(state, constants, constant_idx)
            constant_idx += width
            state = CircomPoseidon.sbox(state, True)
            state = CircomPoseidon.mix(state, matrix)

        for _ in range(CircomPoseidon.PARTIAL_ROUNDS[width]):
            state = CircomPoseidon.ark(state, constants, constant_idx)
            constant_idx += width
            state = CircomPoseidon.sbox(state, False)
            state = CircomPoseidon.mix(state, matrix)

        for _ in range(half_full):
            state = CircomPoseidon.ark(state, constants, constant_idx)
            constant_idx += width
            state = CircomPoseidon.sbox(state, True)
            state = CircomPoseidon.mix(state, matrix)

        return state[0]


poseidon_hash = CircomPoseidon.hash
