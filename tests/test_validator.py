"""Tests for the key material validator and its lookup tables."""

import pytest

from devcrypt.errors import InvalidKeyMaterialError, InvalidOperationForKeyError
from devcrypt.models import Algorithm, CipherMode, KeyPair, Operation
from devcrypt.validator import (
    ALLOWED_OPERATIONS,
    BLOCK_SIZES,
    KEY_LENGTHS,
    RSA_BIT_SIZES,
    SUPPORTED_MODES,
    validate,
    validate_ecdsa_private_key,
    validate_ecdsa_public_key,
    validate_keypair,
    validate_keypair_request,
    validate_operation,
    validate_rsa_bit_size,
)

SYMMETRIC = [alg for alg in Algorithm if alg.is_symmetric]


def test_tables_cover_every_algorithm():
    for alg in Algorithm:
        assert alg in ALLOWED_OPERATIONS
        if alg.is_symmetric:
            assert alg in KEY_LENGTHS and alg in BLOCK_SIZES and alg in SUPPORTED_MODES
        elif alg.is_rsa:
            assert RSA_BIT_SIZES[alg] == alg.bit_size


def test_key_length_table_values():
    assert KEY_LENGTHS == {
        Algorithm.AES128: 16,
        Algorithm.AES192: 24,
        Algorithm.AES256: 32,
        Algorithm.DES: 8,
        Algorithm.TRIPLE_DES: 24,
    }


@pytest.mark.parametrize("alg", SYMMETRIC)
def test_exact_key_length_accepted_others_rejected(alg):
    size = KEY_LENGTHS[alg]
    material = validate(alg, CipherMode.ECB, b"k" * size)
    assert material.key == b"k" * size
    for bad in (size - 1, size + 1, 0):
        with pytest.raises(InvalidKeyMaterialError):
            validate(alg, CipherMode.ECB, b"k" * bad)


def test_des_seven_byte_key_rejected():
    with pytest.raises(InvalidKeyMaterialError):
        validate(Algorithm.DES, CipherMode.ECB, b"1234567")


@pytest.mark.parametrize("alg", SYMMETRIC)
def test_cbc_requires_block_sized_iv(alg):
    key = b"k" * KEY_LENGTHS[alg]
    block = BLOCK_SIZES[alg]
    with pytest.raises(InvalidKeyMaterialError):
        validate(alg, CipherMode.CBC, key, None)
    with pytest.raises(InvalidKeyMaterialError):
        validate(alg, CipherMode.CBC, key, b"i" * (block + 1))
    with pytest.raises(InvalidKeyMaterialError):
        validate(alg, CipherMode.CBC, key, b"i" * (block - 1))
    assert validate(alg, CipherMode.CBC, key, b"i" * block).iv == b"i" * block


def test_ecb_ignores_iv():
    material = validate(Algorithm.AES128, CipherMode.ECB, b"k" * 16, b"anything at all")
    assert material.iv is None


def test_missing_mode_is_invalid_key_material():
    with pytest.raises(InvalidKeyMaterialError):
        validate(Algorithm.AES256, None, b"k" * 32)


def test_non_bytes_key_rejected():
    with pytest.raises(InvalidKeyMaterialError):
        validate(Algorithm.AES128, CipherMode.ECB, "k" * 16)


def test_asymmetric_algorithm_rejected_by_symmetric_validate():
    with pytest.raises(InvalidKeyMaterialError):
        validate(Algorithm.RSA2048, CipherMode.ECB, b"k" * 16)


def test_key_bytes_are_not_in_repr():
    material = validate(Algorithm.AES128, CipherMode.CBC, b"\x01" * 16, b"\x02" * 16)
    text = repr(material)
    assert "\\x01" not in text and "\\x02" not in text


def test_rsa_bit_size():
    assert validate_rsa_bit_size(Algorithm.RSA3072) == 3072
    assert validate_rsa_bit_size(Algorithm.RSA2048, 2048) == 2048
    with pytest.raises(InvalidKeyMaterialError):
        validate_rsa_bit_size(Algorithm.RSA2048, 1000)
    with pytest.raises(InvalidKeyMaterialError):
        validate_rsa_bit_size(Algorithm.AES128)


def test_keypair_request():
    assert validate_keypair_request(Algorithm.ECDSA) == 256
    with pytest.raises(InvalidKeyMaterialError):
        validate_keypair_request(Algorithm.ECDSA, 384)
    with pytest.raises(InvalidOperationForKeyError):
        validate_keypair_request(Algorithm.AES256)


def test_ecdsa_shapes():
    assert validate_ecdsa_private_key(b"\x01" * 32)
    with pytest.raises(InvalidKeyMaterialError):
        validate_ecdsa_private_key(b"\x00" * 32)
    with pytest.raises(InvalidKeyMaterialError):
        validate_ecdsa_private_key(b"\x01" * 31)
    assert validate_ecdsa_public_key(b"\x04" + b"\x01" * 64)
    assert validate_ecdsa_public_key(b"\x02" + b"\x01" * 32)
    with pytest.raises(InvalidKeyMaterialError):
        validate_ecdsa_public_key(b"\x05" + b"\x01" * 64)
    with pytest.raises(InvalidKeyMaterialError):
        validate_ecdsa_public_key(b"\x04" + b"\x01" * 10)


def test_validate_keypair_rejects_mislabelled_pair(ecdsa_pair):
    assert validate_keypair(ecdsa_pair) is ecdsa_pair
    bad = KeyPair(Algorithm.ECDSA, 256, ecdsa_pair.public_key, "zz")
    with pytest.raises(InvalidKeyMaterialError):
        validate_keypair(bad)
    with pytest.raises(InvalidKeyMaterialError):
        validate_keypair(KeyPair(Algorithm.RSA2048, 2048, "not pem", "not pem"))


@pytest.mark.parametrize(
    "alg, op",
    [
        (Algorithm.AES128, Operation.SIGN),
        (Algorithm.DES, Operation.VERIFY),
        (Algorithm.ECDSA, Operation.ENCRYPT),
        (Algorithm.ECDSA, Operation.DECRYPT),
    ],
)
def test_disallowed_operations(alg, op):
    with pytest.raises(InvalidOperationForKeyError):
        validate_operation(alg, op)


def test_rsa_allows_everything():
    for op in Operation:
        validate_operation(Algorithm.RSA2048, op)
