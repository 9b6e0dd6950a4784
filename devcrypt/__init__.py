"""
devcrypt Cryptography Processing Engine
=======================================

Symmetric ciphers (AES-128/192/256, DES, Triple-DES in ECB/CBC), RSA and
ECDSA operations, key/IV generation, and background key-pair generation
for the developer-tools cryptography panel.

Uses the ``cryptography`` library exclusively for primitives.
"""

from __future__ import annotations

import logging

from devcrypt.errors import (
    CryptoEngineError,
    DecryptionFailedError,
    ErrorKind,
    GenerationFailedError,
    InvalidKeyMaterialError,
    InvalidOperationForKeyError,
    MalformedEncodingError,
    PlaintextTooLargeError,
)
from devcrypt.models import (
    Algorithm,
    CipherMode,
    KeyMaterial,
    KeyPair,
    Operation,
    OperationDescriptor,
    OperationResult,
    OutputEncoding,
    PublicKey,
    RsaPadding,
    TaskState,
    TaskStatus,
)
from devcrypt.facade import CryptoFacade, message_for
from devcrypt.scheduler import KeyGenScheduler

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.3.0"

__all__ = [
    "Algorithm",
    "CipherMode",
    "CryptoEngineError",
    "CryptoFacade",
    "DecryptionFailedError",
    "ErrorKind",
    "GenerationFailedError",
    "InvalidKeyMaterialError",
    "InvalidOperationForKeyError",
    "KeyGenScheduler",
    "KeyMaterial",
    "KeyPair",
    "MalformedEncodingError",
    "Operation",
    "OperationDescriptor",
    "OperationResult",
    "OutputEncoding",
    "PlaintextTooLargeError",
    "PublicKey",
    "RsaPadding",
    "TaskState",
    "TaskStatus",
    "message_for",
]
