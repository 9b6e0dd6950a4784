"""
devcrypt Asymmetric Cipher Engine
=================================

RSA encrypt / decrypt / sign / verify and ECDSA (P-256) sign / verify.

Key formats
-----------
RSA keys are PEM: ``PUBLIC KEY`` (SubjectPublicKeyInfo) or ``RSA PUBLIC
KEY`` (PKCS#1) for the public half, ``PRIVATE KEY`` (PKCS#8) or ``RSA
PRIVATE KEY`` (PKCS#1) for the private half.  ECDSA keys are hex (SEC1
point, 32-byte private scalar) or PEM.

Cost
----
Private-key RSA operations grow roughly with the cube of the modulus size
and public-key operations with its square, so an RSA-4096 decrypt costs
about eight times an RSA-2048 one.  For a single message that is still
well under one redraw cycle, which is why encrypt, decrypt, sign and
verify run synchronously.  Only key-pair *generation* (prime search) is
slow enough to need :mod:`devcrypt.scheduler`.

Signatures
----------
RSA signs with PKCS#1 v1.5 over SHA-256.  ECDSA on P-256 first reduces the
message to its SHA-256 digest and then signs that digest with
ECDSA-SHA-256, so the signature covers SHA-256(SHA-256(message)).  A
signature over the plain message will not verify.  Signatures use the
fixed-width ``r || s`` form (64 bytes).  :func:`verify` returns ``False``
for a well-formed signature that does not match, and raises only for
malformed input.
"""

from __future__ import annotations

import logging
import time
from typing import Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from devcrypt.errors import (
    DecryptionFailedError,
    InvalidKeyMaterialError,
    InvalidOperationForKeyError,
    MalformedEncodingError,
    PlaintextTooLargeError,
)
from devcrypt.models import Algorithm, RsaPadding
from devcrypt.validator import (
    ECDSA_COMPRESSED_POINT_SIZE,
    ECDSA_PRIVATE_KEY_SIZE,
    ECDSA_SIGNATURE_SIZE,
    ECDSA_UNCOMPRESSED_POINT_SIZE,
    RSA_BIT_SIZES,
    is_private_pem,
    is_public_pem,
    validate_ecdsa_private_key,
    validate_ecdsa_public_key,
)

logger = logging.getLogger(__name__)

PublicKeyType = Union[RSAPublicKey, ec.EllipticCurvePublicKey]
PrivateKeyType = Union[RSAPrivateKey, ec.EllipticCurvePrivateKey]

CURVE = ec.SECP256R1()
_COORD_SIZE = ECDSA_SIGNATURE_SIZE // 2


def _message_digest(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()

# Bytes of modulus consumed by padding.
OAEP_OVERHEAD: int = 2 * hashes.SHA256.digest_size + 2
PKCS1V15_OVERHEAD: int = 11


def _padding(kind: RsaPadding):
    if kind is RsaPadding.PKCS1V15:
        return asym_padding.PKCS1v15()
    return asym_padding.OAEP(
        mgf=asym_padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def max_plaintext_size(bit_size: int, kind: RsaPadding = RsaPadding.OAEP) -> int:
    """Largest plaintext an RSA key of *bit_size* bits can encrypt (may be <= 0)."""
    overhead = PKCS1V15_OVERHEAD if kind is RsaPadding.PKCS1V15 else OAEP_OVERHEAD
    return (bit_size + 7) // 8 - overhead


# ---------------------------------------------------------------------------
# Key loading
# ---------------------------------------------------------------------------


def _check_rsa_size(algorithm: Algorithm, key_size: int) -> None:
    expected = RSA_BIT_SIZES[algorithm]
    if key_size != expected:
        raise InvalidKeyMaterialError(
            f"{algorithm.label} needs a {expected}-bit key; this key is {key_size} bits."
        )


def _ecdsa_hex(text: str, what: str) -> bytes:
    try:
        return bytes.fromhex(text.strip())
    except ValueError:
        raise InvalidKeyMaterialError(f"ECDSA {what} must be hex or PEM encoded.") from None


def _check_curve(key) -> None:
    if not isinstance(key.curve, ec.SECP256R1):
        raise InvalidKeyMaterialError(
            f"ECDSA keys must be on P-256, got {key.curve.name}."
        )


def load_public_key(algorithm: Algorithm, text: str) -> PublicKeyType:
    """
    Parse the public key text for *algorithm*.

    A private key is accepted too; its public half is returned.
    """
    if algorithm.is_symmetric:
        raise InvalidKeyMaterialError(f"{algorithm.label} has no public key.")
    if not isinstance(text, str) or not text.strip():
        raise InvalidKeyMaterialError(f"A public key is required for {algorithm.label}.")

    if is_private_pem(text) or (
        algorithm is Algorithm.ECDSA
        and not is_public_pem(text)
        and len(text.strip()) == ECDSA_PRIVATE_KEY_SIZE * 2
    ):
        return load_private_key(algorithm, text).public_key()

    if algorithm.is_rsa:
        if not is_public_pem(text):
            raise InvalidKeyMaterialError("Invalid public key format. Must be PEM format.")
        key = _load_pem_public(text)
        if not isinstance(key, RSAPublicKey):
            raise InvalidKeyMaterialError("PEM does not contain an RSA public key.")
        _check_rsa_size(algorithm, key.key_size)
        return key

    if is_public_pem(text):
        key = _load_pem_public(text)
        if not isinstance(key, ec.EllipticCurvePublicKey):
            raise InvalidKeyMaterialError("PEM does not contain an ECDSA public key.")
        _check_curve(key)
        return key
    point = validate_ecdsa_public_key(_ecdsa_hex(text, "public key"))
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, point)
    except ValueError as exc:
        raise InvalidKeyMaterialError("ECDSA public key is not a point on P-256.") from exc


def load_private_key(algorithm: Algorithm, text: str) -> PrivateKeyType:
    """
    Parse the private key text for *algorithm*.

    Raises
    ------
    InvalidOperationForKeyError
        If *text* holds only a public key.
    InvalidKeyMaterialError
        If *text* is not a usable private key for *algorithm*.
    """
    if algorithm.is_symmetric:
        raise InvalidKeyMaterialError(f"{algorithm.label} has no private key.")
    if not isinstance(text, str) or not text.strip():
        raise InvalidOperationForKeyError(f"A private key is required for {algorithm.label}.")
    if is_public_pem(text):
        raise InvalidOperationForKeyError(
            "A public key was supplied where a private key is required."
        )

    if algorithm.is_rsa:
        if not is_private_pem(text):
            raise InvalidKeyMaterialError("Invalid private key format. Must be PEM format.")
        key = _load_pem_private(text)
        if not isinstance(key, RSAPrivateKey):
            raise InvalidKeyMaterialError("PEM does not contain an RSA private key.")
        _check_rsa_size(algorithm, key.key_size)
        return key

    if is_private_pem(text):
        key = _load_pem_private(text)
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise InvalidKeyMaterialError("PEM does not contain an ECDSA private key.")
        _check_curve(key)
        return key
    raw = _ecdsa_hex(text, "private key")
    if len(raw) in (ECDSA_COMPRESSED_POINT_SIZE, ECDSA_UNCOMPRESSED_POINT_SIZE):
        raise InvalidOperationForKeyError(
            "A public key was supplied where a private key is required."
        )
    scalar = validate_ecdsa_private_key(raw)
    try:
        return ec.derive_private_key(int.from_bytes(scalar, "big"), CURVE)
    except ValueError as exc:
        raise InvalidKeyMaterialError("ECDSA private key is out of range for P-256.") from exc


def _load_pem_public(text: str):
    try:
        return serialization.load_pem_public_key(text.strip().encode("ascii"))
    except (ValueError, UnsupportedAlgorithm, UnicodeEncodeError) as exc:
        raise InvalidKeyMaterialError("Failed to parse public key PEM.") from exc


def _load_pem_private(text: str):
    try:
        return serialization.load_pem_private_key(text.strip().encode("ascii"), password=None)
    except TypeError as exc:
        raise InvalidKeyMaterialError("Encrypted private keys are not supported.") from exc
    except (ValueError, UnsupportedAlgorithm, UnicodeEncodeError) as exc:
        raise InvalidKeyMaterialError("Failed to parse private key PEM.") from exc


# ---------------------------------------------------------------------------
# RSA encrypt / decrypt
# ---------------------------------------------------------------------------


def encrypt(
    public_key: PublicKeyType,
    plaintext: bytes,
    padding: RsaPadding = RsaPadding.OAEP,
) -> bytes:
    """
    Encrypt *plaintext* under an RSA public key.

    Raises
    ------
    PlaintextTooLargeError
        If *plaintext* does not fit the modulus after padding.
    """
    if isinstance(public_key, RSAPrivateKey):
        public_key = public_key.public_key()
    if not isinstance(public_key, RSAPublicKey):
        raise InvalidOperationForKeyError("Only RSA keys can encrypt.")
    data = bytes(plaintext)
    limit = max_plaintext_size(public_key.key_size, padding)
    if len(data) > limit:
        raise PlaintextTooLargeError(len(data), max(limit, 0))
    return public_key.encrypt(data, _padding(padding))


def decrypt(
    private_key: PrivateKeyType,
    ciphertext: bytes,
    padding: RsaPadding = RsaPadding.OAEP,
) -> bytes:
    """
    Decrypt RSA *ciphertext*.

    Raises
    ------
    DecryptionFailedError
        Wrong key, wrong padding, or corrupted ciphertext.
    """
    if isinstance(private_key, RSAPublicKey):
        raise InvalidOperationForKeyError("Decryption requires the private key.")
    if not isinstance(private_key, RSAPrivateKey):
        raise InvalidOperationForKeyError("Only RSA keys can decrypt.")
    data = bytes(ciphertext)
    size = (private_key.key_size + 7) // 8
    if len(data) != size:
        raise DecryptionFailedError(
            f"RSA-{private_key.key_size} ciphertext must be {size} bytes, got {len(data)}."
        )
    t0 = time.perf_counter()
    try:
        plaintext = private_key.decrypt(data, _padding(padding))
    except ValueError as exc:
        raise DecryptionFailedError("RSA decryption failed: wrong key or corrupted data.") from exc
    logger.debug("RSA-%d decrypt took %.3fs", private_key.key_size, time.perf_counter() - t0)
    return plaintext


# ---------------------------------------------------------------------------
# Sign / verify
# ---------------------------------------------------------------------------


def sign(private_key: PrivateKeyType, message: bytes) -> bytes:
    """Sign *message*; returns raw signature bytes."""
    data = bytes(message)
    if isinstance(private_key, RSAPrivateKey):
        return private_key.sign(data, asym_padding.PKCS1v15(), hashes.SHA256())
    if isinstance(private_key, ec.EllipticCurvePrivateKey):
        _check_curve(private_key)
        der = private_key.sign(_message_digest(data), ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        return r.to_bytes(_COORD_SIZE, "big") + s.to_bytes(_COORD_SIZE, "big")
    if isinstance(private_key, (RSAPublicKey, ec.EllipticCurvePublicKey)):
        raise InvalidOperationForKeyError("Signing requires the private key.")
    raise InvalidKeyMaterialError(f"Unsupported key type {type(private_key).__name__}.")


def verify(public_key: PublicKeyType, message: bytes, signature: bytes) -> bool:
    """
    Check *signature* over *message*.

    Returns ``False`` for a well-formed signature that does not match.

    Raises
    ------
    MalformedEncodingError
        If *signature* has the wrong width for the key.
    InvalidKeyMaterialError
        If *public_key* is not an RSA or P-256 key.
    """
    if isinstance(public_key, (RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        public_key = public_key.public_key()
    data = bytes(message)
    sig = bytes(signature)

    if isinstance(public_key, RSAPublicKey):
        size = (public_key.key_size + 7) // 8
        if len(sig) != size:
            raise MalformedEncodingError(
                f"RSA-{public_key.key_size} signatures are {size} bytes, got {len(sig)}."
            )
        try:
            public_key.verify(sig, data, asym_padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True

    if isinstance(public_key, ec.EllipticCurvePublicKey):
        _check_curve(public_key)
        if len(sig) != ECDSA_SIGNATURE_SIZE:
            raise MalformedEncodingError(
                f"ECDSA P-256 signatures are {ECDSA_SIGNATURE_SIZE} bytes, got {len(sig)}."
            )
        r = int.from_bytes(sig[:_COORD_SIZE], "big")
        s = int.from_bytes(sig[_COORD_SIZE:], "big")
        try:
            public_key.verify(
                encode_dss_signature(r, s), _message_digest(data), ec.ECDSA(hashes.SHA256())
            )
        except InvalidSignature:
            return False
        return True

    raise InvalidKeyMaterialError(f"Unsupported key type {type(public_key).__name__}.")
