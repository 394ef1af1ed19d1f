import pytest

from primitives import (
    BASE8,
    FIELD_PRIME,
    CircomPoseidon,
    IDENTITY,
    SUBGROUP_ORDER,
    KeyType,
    base_mul,
    encode_key_leaf,
    encode_uint256,
    is_on_curve,
    keccak256,
    point_add,
    point_neg,
    point_sub,
    point_sum,
    poseidon_hash,
    scalar_mul,
)


class TestCurve:

    def test_base_point_and_identity_on_curve(self):
        assert is_on_curve(BASE8)
        assert is_on_curve(IDENTITY)

    def test_identity_is_neutral(self):
        assert point_add(BASE8, IDENTITY) == BASE8
        assert point_add(IDENTITY, BASE8) == BASE8

    def test_negation_cancels(self):
        assert point_add(BASE8, point_neg(BASE8)) == IDENTITY
        assert point_sub(BASE8, BASE8) == IDENTITY

    def test_subgroup_order_annihilates_base(self):
        assert scalar_mul(SUBGROUP_ORDER, BASE8) == IDENTITY

    def test_scalar_multiplication_is_linear(self):
        assert base_mul(7) == point_add(base_mul(3), base_mul(4))
        assert base_mul(2) == point_add(BASE8, BASE8)
        assert base_mul(0) == IDENTITY

    def test_multiples_stay_on_curve(self):
        for k in (1, 2, 3, 12345, SUBGROUP_ORDER - 1):
            assert is_on_curve(base_mul(k))

    def test_point_sum(self):
        assert point_sum([base_mul(1), base_mul(2), base_mul(3)]) == base_mul(6)
        assert point_sum([]) == IDENTITY


class TestHashing:

    def test_keccak_empty_string(self):
        assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"

    def test_encode_uint256_words(self):
        encoded = encode_uint256(1, 2**256 - 1, b"\x01\x02")
        assert len(encoded) == 96
        assert encoded[:32] == (1).to_bytes(32, 'big')
        assert encoded[64:] == b"\x00" * 30 + b"\x01\x02"

    def test_encode_uint256_rejects_overflow(self):
        with pytest.raises(ValueError):
            encode_uint256(2**256)
        with pytest.raises(ValueError):
            encode_uint256(-1)

    def test_poseidon_matches_circomlib(self):
        assert poseidon_hash([1, 2]) == \
            7853200120776062878684798364095072458815029376092732009249414926327459813530

    def test_poseidon_t3_parameters_match_circomlib(self):
        constants = CircomPoseidon.round_constants(3)
        assert len(constants) == 3 * (8 + 57)
        assert constants[:2] == (
            0x0ee9a592ba9a9518d05986d656f40c2114c4993c11bb29938d21d47304cd8e6e,
            0x00f1445235f2148c5986587169fc1bcd887b08d4d00868df5696fff40956e864,
        )
        assert CircomPoseidon.mds_matrix(3) == (
            (0x109b7f411ba0e4c9b2b70caf5c36a7b194be7c11ad24378bfedb68592ba8118b,
             0x2969f27eed31a480b9c36c764379dbca2cc8fdd1415c3dded62940bcde0bd771,
             0x16ed41e13bb9c0c66ae119424fddbcbc9314dc9fdbdeea55d6c64543dc4903e0),
            (0x2e2419f9ec02ec394c9871c832963dc1b89d743c8c7b964029b2311687b1fe23,
             0x176cc029695ad02582a70eff08a6fd99d057e12e58e7d7b6b16cdfabc8ee2911,
             0x19a3fc0a56702bf417ba7fee3802593fa644470307043f7773279cd71d25d5e0),
            (0x2b90bba00fca0589f617e7dcbfe82e0df706ab640ceb247b791a93b74e36736d,
             0x101071f0032379b697315876690f053d148d4e109f5fb065c8aacc55a0f89bfa,
             0x0ee972cfc5375bf0dfca69bb79fb73c7a687c3d2f966b3d68a3725f0292e4c5d),
        )

    @pytest.mark.parametrize("width", [2, 3, 4])
    def test_poseidon_constants_in_field(self, width):
        constants = CircomPoseidon.round_constants(width)
        assert len(constants) == width * (8 + CircomPoseidon.PARTIAL_ROUNDS[width])
        assert all(0 <= c < FIELD_PRIME for c in constants)
        assert len(CircomPoseidon.mds_matrix(width)) == width

    def test_poseidon_is_deterministic_and_in_field(self):
        digest = poseidon_hash([1, 2])
        assert digest == poseidon_hash([1, 2])
        assert 0 <= digest < FIELD_PRIME

    def test_poseidon_separates_inputs_and_arity(self):
        assert poseidon_hash([1, 2]) != poseidon_hash([2, 1])
        assert poseidon_hash([1]) != poseidon_hash([1, 0])
        assert poseidon_hash([1, 2, 3]) != poseidon_hash([1, 2])

    def test_poseidon_reduces_inputs(self):
        assert poseidon_hash([FIELD_PRIME + 5]) == poseidon_hash([5])

    @pytest.mark.parametrize("inputs", [[], [1, 2, 3, 4]])
    def test_poseidon_rejects_unsupported_arity(self, inputs):
        with pytest.raises(ValueError):
            poseidon_hash(inputs)

    def test_key_leaf_is_type_tagged(self):
        key = base_mul(5)
        assert encode_key_leaf(key, KeyType.PERMANENT) != encode_key_leaf(key, KeyType.ROTATION)
        assert encode_key_leaf(key, KeyType.PERMANENT) == poseidon_hash([key[0], key[1], 1])
