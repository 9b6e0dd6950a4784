"""
devcrypt Key Generator
======================

Random symmetric keys and IVs (fast, synchronous) and RSA / ECDSA key
pairs (slow for large RSA moduli; called from the scheduler's workers).

All randomness comes from ``os.urandom``.  Every value is re-validated
before it is returned, so a generated key always passes
:mod:`devcrypt.validator` for the algorithm it was made for.

``cryptography`` will not generate RSA moduli below 1024 bits, so RSA-512
primes come from the pure-Python ``rsa`` package and are then loaded into
``cryptography`` like any other key.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import rsa as pyrsa
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from devcrypt.errors import (
    GenerationFailedError,
    InvalidKeyMaterialError,
    InvalidOperationForKeyError,
)
from devcrypt.models import Algorithm, CipherMode, KeyMaterial, KeyPair
from devcrypt.validator import (
    BLOCK_SIZES,
    ECDSA_PRIVATE_KEY_SIZE,
    KEY_LENGTHS,
    validate,
    validate_keypair,
    validate_keypair_request,
)

logger = logging.getLogger(__name__)

RSA_PUBLIC_EXPONENT: int = 65537

# Smallest modulus cryptography's generator accepts.
NATIVE_RSA_MIN_BITS: int = 1024


def _random_bytes(size: int) -> bytes:
    try:
        return os.urandom(size)
    except (OSError, NotImplementedError) as exc:
        raise GenerationFailedError("System random source is unavailable.") from exc


# ---------------------------------------------------------------------------
# Symmetric
# ---------------------------------------------------------------------------


def generate_iv(algorithm: Algorithm, mode: CipherMode = CipherMode.CBC) -> bytes:
    """Return a fresh block-sized IV for CBC mode."""
    if not algorithm.is_symmetric:
        raise InvalidOperationForKeyError(f"{algorithm.label} does not use an IV.")
    if mode is not CipherMode.CBC:
        raise InvalidOperationForKeyError(f"{mode.value} mode does not use an IV.")
    return _random_bytes(BLOCK_SIZES[algorithm])


def generate_symmetric_key(
    algorithm: Algorithm,
    mode: CipherMode = CipherMode.CBC,
) -> KeyMaterial:
    """
    Generate a random key for *algorithm*, plus a fresh IV for CBC.

    Raises
    ------
    InvalidOperationForKeyError
        If *algorithm* is asymmetric.
    GenerationFailedError
        If the random source fails or the result does not validate.
    """
    if not algorithm.is_symmetric:
        raise InvalidOperationForKeyError(
            f"{algorithm.label} needs a key pair; submit it to the scheduler."
        )
    key = _random_bytes(KEY_LENGTHS[algorithm])
    iv = generate_iv(algorithm, mode) if mode is CipherMode.CBC else None
    try:
        return validate(algorithm, mode, key, iv)
    except InvalidKeyMaterialError as exc:
        raise GenerationFailedError(f"Generated {algorithm.label} key failed validation.") from exc


# ---------------------------------------------------------------------------
# Key pairs
# ---------------------------------------------------------------------------


def _small_rsa_key(bits: int) -> rsa.RSAPrivateKey:
    """Build a sub-1024-bit key from primes found by the ``rsa`` package."""
    _, priv = pyrsa.newkeys(bits, exponent=RSA_PUBLIC_EXPONENT)
    numbers = rsa.RSAPrivateNumbers(
        p=priv.p,
        q=priv.q,
        d=priv.d,
        dmp1=rsa.rsa_crt_dmp1(priv.d, priv.p),
        dmq1=rsa.rsa_crt_dmq1(priv.d, priv.q),
        iqmp=rsa.rsa_crt_iqmp(priv.p, priv.q),
        public_numbers=rsa.RSAPublicNumbers(priv.e, priv.n),
    )
    return numbers.private_key()


def _rsa_keypair(algorithm: Algorithm, bits: int) -> KeyPair:
    try:
        if bits < NATIVE_RSA_MIN_BITS:
            private_key = _small_rsa_key(bits)
        else:
            private_key = rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=bits)
    except ValueError as exc:
        raise GenerationFailedError(f"Failed to generate {algorithm.label} key pair: {exc}") from exc
    if private_key.key_size != bits:
        raise GenerationFailedError(
            f"Generated {algorithm.label} modulus is {private_key.key_size} bits."
        )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(algorithm, bits, public_pem.decode("ascii"), private_pem.decode("ascii"))


def _ecdsa_keypair() -> KeyPair:
    private_key = ec.generate_private_key(ec.SECP256R1())
    scalar = private_key.private_numbers().private_value.to_bytes(ECDSA_PRIVATE_KEY_SIZE, "big")
    point = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    return KeyPair(Algorithm.ECDSA, 256, point.hex(), scalar.hex())


def generate_keypair(algorithm: Algorithm, bit_size: Optional[int] = None) -> KeyPair:
    """
    Generate a key pair synchronously.

    This blocks for as long as the prime search takes (seconds for
    RSA-4096); interactive callers go through
    :class:`devcrypt.scheduler.KeyGenScheduler` instead.

    Raises
    ------
    InvalidKeyMaterialError, InvalidOperationForKeyError
        If the request itself is invalid.
    GenerationFailedError
        If the primitive fails or refuses the size.
    """
    bits = validate_keypair_request(algorithm, bit_size)
    t0 = time.perf_counter()
    if algorithm is Algorithm.ECDSA:
        keypair = _ecdsa_keypair()
    else:
        keypair = _rsa_keypair(algorithm, bits)
    try:
        validate_keypair(keypair)
    except InvalidKeyMaterialError as exc:
        raise GenerationFailedError(f"Generated {algorithm.label} key pair failed validation.") from exc
    logger.info(
        "Generated %s key pair %s in %.2fs",
        algorithm.label,
        keypair.key_id,
        time.perf_counter() - t0,
    )
    return keypair
