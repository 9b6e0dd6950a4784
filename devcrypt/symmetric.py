"""
devcrypt Symmetric Cipher Engine
================================

AES-128/192/256, DES and Triple-DES in ECB or CBC mode with PKCS#7
padding, built on the ``cryptography`` library.

The functions are pure: the same key material and input always give the
same bytes back, and inputs are never mutated or retained.  CBC uses the
IV carried by the validated :class:`~devcrypt.models.KeyMaterial`; there
is no default IV.

DES runs on the Triple-DES primitive with ``K1 = K2 = K3``, which is
single DES by construction.
"""

from __future__ import annotations

import functools
import logging
from typing import Optional

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from devcrypt.errors import DecryptionFailedError, InvalidKeyMaterialError
from devcrypt.models import Algorithm, CipherMode, KeyMaterial
from devcrypt.validator import BLOCK_SIZES, validate

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def _warn_legacy(algorithm: Algorithm) -> None:
    logger.warning("%s is a legacy cipher; prefer AES for new data.", algorithm.label)


def _checked(material: KeyMaterial) -> KeyMaterial:
    """Re-validate *material* so hand-built instances cannot slip through."""
    if not isinstance(material, KeyMaterial):
        raise InvalidKeyMaterialError(
            f"Expected validated KeyMaterial, got {type(material).__name__}."
        )
    return validate(material.algorithm, material.mode, material.key, material.iv)


def _cipher(material: KeyMaterial) -> Cipher:
    alg = material.algorithm
    if alg is Algorithm.DES:
        _warn_legacy(alg)
        primitive = TripleDES(material.key * 3)
    elif alg is Algorithm.TRIPLE_DES:
        _warn_legacy(alg)
        primitive = TripleDES(material.key)
    else:
        primitive = algorithms.AES(material.key)

    if material.mode is CipherMode.CBC:
        mode = modes.CBC(material.iv)
    else:
        mode = modes.ECB()
    return Cipher(primitive, mode)


def _block_bits(algorithm: Algorithm) -> int:
    return BLOCK_SIZES[algorithm] * 8


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def encrypt(material: KeyMaterial, plaintext: bytes) -> bytes:
    """
    Pad *plaintext* with PKCS#7 and encrypt it.

    Raises
    ------
    InvalidKeyMaterialError
        If *material* is not valid key material.
    """
    material = _checked(material)
    padder = padding.PKCS7(_block_bits(material.algorithm)).padder()
    padded = padder.update(bytes(plaintext)) + padder.finalize()
    encryptor = _cipher(material).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    logger.debug(
        "%s/%s encrypted %d bytes", material.algorithm.label, material.mode.value, len(plaintext)
    )
    return ciphertext


def decrypt(material: KeyMaterial, ciphertext: bytes) -> bytes:
    """
    Decrypt *ciphertext* and strip its PKCS#7 padding.

    Raises
    ------
    InvalidKeyMaterialError
        If *material* is not valid key material.
    DecryptionFailedError
        Wrong key, wrong IV, truncated or corrupted ciphertext.
    """
    material = _checked(material)
    data = bytes(ciphertext)
    block = BLOCK_SIZES[material.algorithm]
    if not data or len(data) % block:
        raise DecryptionFailedError(
            f"Ciphertext length {len(data)} is not a positive multiple of the "
            f"{block}-byte block size."
        )
    decryptor = _cipher(material).decryptor()
    padded = decryptor.update(data) + decryptor.finalize()
    unpadder = padding.PKCS7(_block_bits(material.algorithm)).unpadder()
    try:
        plaintext = unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise DecryptionFailedError("Invalid padding: wrong key or corrupted data.") from exc
    logger.debug(
        "%s/%s decrypted %d bytes", material.algorithm.label, material.mode.value, len(data)
    )
    return plaintext


def encrypt_with(
    algorithm: Algorithm,
    mode: Optional[CipherMode],
    key: bytes,
    iv: Optional[bytes],
    plaintext: bytes,
) -> bytes:
    """Validate then :func:`encrypt` in one call."""
    return encrypt(validate(algorithm, mode, key, iv), plaintext)


def decrypt_with(
    algorithm: Algorithm,
    mode: Optional[CipherMode],
    key: bytes,
    iv: Optional[bytes],
    ciphertext: bytes,
) -> bytes:
    """Validate then :func:`decrypt` in one call."""
    return decrypt(validate(algorithm, mode, key, iv), ciphertext)
