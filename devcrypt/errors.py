"""
devcrypt Error Taxonomy
=======================

Every failure the engine can report maps to exactly one :class:`ErrorKind`.
Engine layers raise the matching exception with developer-facing detail;
only :mod:`devcrypt.facade` turns a kind into user-facing text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced to the GUI panel."""

    INVALID_KEY_MATERIAL = "invalid_key_material"
    INVALID_OPERATION_FOR_KEY = "invalid_operation_for_key"
    PLAINTEXT_TOO_LARGE = "plaintext_too_large"
    DECRYPTION_FAILED = "decryption_failed"
    MALFORMED_ENCODING = "malformed_encoding"
    GENERATION_FAILED = "generation_failed"


class CryptoEngineError(Exception):
    """Base exception for all devcrypt errors."""

    kind: ErrorKind


class InvalidKeyMaterialError(CryptoEngineError):
    """Key or IV fails length/shape validation for the algorithm and mode."""

    kind = ErrorKind.INVALID_KEY_MATERIAL


class InvalidOperationForKeyError(CryptoEngineError):
    """Operation needs a capability the supplied key does not have."""

    kind = ErrorKind.INVALID_OPERATION_FOR_KEY


class PlaintextTooLargeError(CryptoEngineError):
    """Asymmetric plaintext exceeds the capacity of the key."""

    kind = ErrorKind.PLAINTEXT_TOO_LARGE

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Plaintext is {size} bytes; this key accepts at most {limit}."
        )
        self.size = size
        self.limit = limit


class DecryptionFailedError(CryptoEngineError):
    """Wrong key, bad padding, or corrupted ciphertext."""

    kind = ErrorKind.DECRYPTION_FAILED


class MalformedEncodingError(CryptoEngineError):
    """Text could not be decoded from its declared encoding."""

    kind = ErrorKind.MALFORMED_ENCODING


class GenerationFailedError(CryptoEngineError):
    """The key, IV, or key-pair generation primitive failed."""

    kind = ErrorKind.GENERATION_FAILED
