"""Tests for the symmetric cipher engine."""

import pytest

from devcrypt import keygen, symmetric
from devcrypt.errors import DecryptionFailedError, InvalidKeyMaterialError
from devcrypt.models import Algorithm, CipherMode, KeyMaterial
from devcrypt.validator import BLOCK_SIZES, validate

SYMMETRIC = [alg for alg in Algorithm if alg.is_symmetric]
CASES = [(alg, mode) for alg in SYMMETRIC for mode in CipherMode]


@pytest.mark.parametrize("alg, mode", CASES)
def test_roundtrip(alg, mode):
    material = keygen.generate_symmetric_key(alg, mode)
    for size in (0, 1, BLOCK_SIZES[alg] - 1, BLOCK_SIZES[alg], 100):
        plaintext = bytes(i % 256 for i in range(size))
        assert symmetric.decrypt(material, symmetric.encrypt(material, plaintext)) == plaintext


@pytest.mark.parametrize("alg, mode", CASES)
def test_ciphertext_is_padded_to_block(alg, mode):
    material = keygen.generate_symmetric_key(alg, mode)
    block = BLOCK_SIZES[alg]
    assert len(symmetric.encrypt(material, b"")) == block
    assert len(symmetric.encrypt(material, b"x" * block)) == 2 * block


def test_deterministic():
    material = keygen.generate_symmetric_key(Algorithm.AES256, CipherMode.CBC)
    assert symmetric.encrypt(material, b"same input") == symmetric.encrypt(material, b"same input")


def test_aes128_known_answer():
    key = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
    block = bytes.fromhex("00112233445566778899aabbccddeeff")
    material = validate(Algorithm.AES128, CipherMode.ECB, key)
    assert symmetric.encrypt(material, block)[:16].hex() == "69c4e0d86a7b0430d8cdb78070b4c55a"


def test_des_is_single_des():
    key = bytes.fromhex("133457799bbcdff1")
    block = bytes.fromhex("0123456789abcdef")
    material = validate(Algorithm.DES, CipherMode.ECB, key)
    assert symmetric.encrypt(material, block)[:8].hex() == "85e813540f0ab405"


def test_cbc_iv_changes_ciphertext():
    key = keygen.generate_symmetric_key(Algorithm.AES128, CipherMode.ECB).key
    a = validate(Algorithm.AES128, CipherMode.CBC, key, b"\x00" * 16)
    b = validate(Algorithm.AES128, CipherMode.CBC, key, b"\x01" * 16)
    assert symmetric.encrypt(a, b"hello") != symmetric.encrypt(b, b"hello")


@pytest.mark.parametrize("alg, mode", CASES)
def test_tampering_never_returns_plaintext(alg, mode):
    material = keygen.generate_symmetric_key(alg, mode)
    plaintext = b"attack at dawn, bring snacks"
    ciphertext = symmetric.encrypt(material, plaintext)
    for i in range(len(ciphertext)):
        tampered = bytearray(ciphertext)
        tampered[i] ^= 0x01
        try:
            assert symmetric.decrypt(material, bytes(tampered)) != plaintext
        except DecryptionFailedError:
            pass


def test_wrong_key_never_returns_plaintext():
    material = keygen.generate_symmetric_key(Algorithm.AES256, CipherMode.CBC)
    other = validate(
        Algorithm.AES256,
        CipherMode.CBC,
        keygen.generate_symmetric_key(Algorithm.AES256, CipherMode.ECB).key,
        material.iv,
    )
    ciphertext = symmetric.encrypt(material, b"secret message")
    try:
        assert symmetric.decrypt(other, ciphertext) != b"secret message"
    except DecryptionFailedError:
        pass


@pytest.mark.parametrize("size", [0, 15, 17, 33])
def test_bad_ciphertext_length(size):
    material = keygen.generate_symmetric_key(Algorithm.AES128, CipherMode.CBC)
    with pytest.raises(DecryptionFailedError):
        symmetric.decrypt(material, b"\x00" * size)


def test_inputs_are_not_mutated():
    material = keygen.generate_symmetric_key(Algorithm.TRIPLE_DES, CipherMode.CBC)
    plaintext = bytearray(b"mutable input")
    snapshot = bytes(plaintext)
    ciphertext = bytearray(symmetric.encrypt(material, plaintext))
    ct_snapshot = bytes(ciphertext)
    symmetric.decrypt(material, ciphertext)
    assert plaintext == snapshot
    assert ciphertext == ct_snapshot


def test_hand_built_material_is_revalidated():
    with pytest.raises(InvalidKeyMaterialError):
        symmetric.encrypt(KeyMaterial(Algorithm.AES128, CipherMode.CBC, b"k" * 16, None), b"x")
    with pytest.raises(InvalidKeyMaterialError):
        symmetric.encrypt(KeyMaterial(Algorithm.DES, CipherMode.ECB, b"1234567"), b"x")
    with pytest.raises(InvalidKeyMaterialError):
        symmetric.encrypt(b"k" * 16, b"x")


def test_with_helpers():
    key, iv = b"k" * 24, b"i" * 8
    ct = symmetric.encrypt_with(Algorithm.TRIPLE_DES, CipherMode.CBC, key, iv, b"payload")
    assert symmetric.decrypt_with(Algorithm.TRIPLE_DES, CipherMode.CBC, key, iv, ct) == b"payload"
    with pytest.raises(InvalidKeyMaterialError):
        symmetric.encrypt_with(Algorithm.AES256, None, b"k" * 32, None, b"payload")
