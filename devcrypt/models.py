"""
devcrypt Data Model
===================

Enumerations and immutable value types exchanged between the GUI panel,
the facade, and the engines.  Nothing here performs cryptographic work.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from devcrypt.errors import CryptoEngineError, ErrorKind

# Text typed by the user or raw bytes handed over programmatically.
BytesOrText = Union[str, bytes]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Algorithm(str, Enum):
    """Every algorithm the engine knows about.  Closed set."""

    AES128 = "AES-128"
    AES192 = "AES-192"
    AES256 = "AES-256"
    DES = "DES"
    TRIPLE_DES = "Triple DES"
    RSA512 = "RSA-512"
    RSA1024 = "RSA-1024"
    RSA2048 = "RSA-2048"
    RSA3072 = "RSA-3072"
    RSA4096 = "RSA-4096"
    ECDSA = "ECDSA"

    @property
    def label(self) -> str:
        return self.value

    @property
    def is_symmetric(self) -> bool:
        return self in _SYMMETRIC

    @property
    def is_asymmetric(self) -> bool:
        return not self.is_symmetric

    @property
    def is_rsa(self) -> bool:
        return self in _RSA_BITS

    @property
    def bit_size(self) -> int:
        """Key size in bits (RSA modulus, P-256 order, or symmetric key)."""
        return _BIT_SIZES[self]

    @classmethod
    def rsa_for_bits(cls, bits: int) -> "Algorithm":
        for alg, size in _RSA_BITS.items():
            if size == bits:
                return alg
        raise ValueError(f"No RSA algorithm with a {bits}-bit modulus.")


_SYMMETRIC = frozenset(
    {Algorithm.AES128, Algorithm.AES192, Algorithm.AES256, Algorithm.DES, Algorithm.TRIPLE_DES}
)

_RSA_BITS = {
    Algorithm.RSA512: 512,
    Algorithm.RSA1024: 1024,
    Algorithm.RSA2048: 2048,
    Algorithm.RSA3072: 3072,
    Algorithm.RSA4096: 4096,
}

_BIT_SIZES = {
    Algorithm.AES128: 128,
    Algorithm.AES192: 192,
    Algorithm.AES256: 256,
    Algorithm.DES: 64,
    Algorithm.TRIPLE_DES: 192,
    Algorithm.ECDSA: 256,
    **_RSA_BITS,
}


class CipherMode(str, Enum):
    """Block chaining modes for the symmetric algorithms."""

    ECB = "ECB"
    CBC = "CBC"


class Operation(str, Enum):
    ENCRYPT = "Encrypt"
    DECRYPT = "Decrypt"
    SIGN = "Sign"
    VERIFY = "Verify"


class OutputEncoding(str, Enum):
    """Text rendering of raw ciphertext, signatures, keys and IVs."""

    HEX = "hex"
    BASE64 = "base64"


class RsaPadding(str, Enum):
    OAEP = "oaep"
    PKCS1V15 = "pkcs1v15"


class TaskState(str, Enum):
    """Lifecycle of one background key-pair generation."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELLED)


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyMaterial:
    """
    Symmetric key (and IV, for CBC) validated for one algorithm and mode.

    Build instances through :func:`devcrypt.validator.validate`; the raw
    bytes are kept out of ``repr`` so they never reach a log line.
    """

    algorithm: Algorithm
    mode: CipherMode
    key: bytes = field(repr=False)
    iv: Optional[bytes] = field(default=None, repr=False)


def _new_key_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class PublicKey:
    """The public half of a :class:`KeyPair`; never holds private data."""

    algorithm: Algorithm
    bit_size: int
    public_key: str
    key_id: str


@dataclass(frozen=True)
class KeyPair:
    """
    Public and private halves generated together.

    RSA halves are PEM text (SubjectPublicKeyInfo / PKCS#8); ECDSA halves
    are lowercase hex (SEC1 point / 32-byte scalar).
    """

    algorithm: Algorithm
    bit_size: int
    public_key: str
    private_key: str = field(repr=False)
    key_id: str = field(default_factory=_new_key_id)

    def public_half(self) -> PublicKey:
        return PublicKey(self.algorithm, self.bit_size, self.public_key, self.key_id)


# ---------------------------------------------------------------------------
# Requests and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OperationDescriptor:
    """
    One encrypt / decrypt / sign / verify request, as built by the GUI panel.

    Parameters
    ----------
    operation, algorithm
        What to do, and with which algorithm.
    data
        Plaintext for Encrypt/Sign/Verify; encoded ciphertext (in
        *encoding*) for Decrypt.  ``str`` is taken as UTF-8 text.
    mode
        Required for symmetric algorithms, ignored otherwise.
    key, iv
        Symmetric key and IV; ``str`` values are decoded with
        *key_encoding*, ``bytes`` are used as-is.
    public_key, private_key, keypair
        Asymmetric key text.  Explicit ``public_key`` / ``private_key``
        take precedence over the halves of *keypair*.
    signature
        Encoded signature (in *encoding*) for Verify.
    encoding
        Output encoding for Encrypt/Sign and input encoding for
        Decrypt ciphertext and Verify signatures.
    """

    operation: Operation
    algorithm: Algorithm
    data: BytesOrText = ""
    mode: Optional[CipherMode] = None
    key: Optional[BytesOrText] = field(default=None, repr=False)
    iv: Optional[BytesOrText] = field(default=None, repr=False)
    public_key: Optional[str] = None
    private_key: Optional[str] = field(default=None, repr=False)
    keypair: Optional[KeyPair] = None
    signature: Optional[str] = None
    encoding: OutputEncoding = OutputEncoding.HEX
    key_encoding: OutputEncoding = OutputEncoding.HEX
    rsa_padding: Optional[RsaPadding] = None

    def resolved_public_key(self) -> Optional[str]:
        if self.public_key is not None:
            return self.public_key
        return self.keypair.public_key if self.keypair else None

    def resolved_private_key(self) -> Optional[str]:
        if self.private_key is not None:
            return self.private_key
        return self.keypair.private_key if self.keypair else None


@dataclass(frozen=True)
class OperationResult:
    """Either a complete success payload or one typed error, never both."""

    ok: bool
    output: Optional[str] = None
    verified: Optional[bool] = None
    data: Optional[bytes] = field(default=None, repr=False)
    error: Optional[CryptoEngineError] = None
    message: Optional[str] = None

    @classmethod
    def success(
        cls,
        output: Optional[str] = None,
        *,
        verified: Optional[bool] = None,
        data: Optional[bytes] = None,
    ) -> "OperationResult":
        return cls(ok=True, output=output, verified=verified, data=data)

    @classmethod
    def failure(cls, error: CryptoEngineError, message: str) -> "OperationResult":
        return cls(ok=False, error=error, message=message)

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None


@dataclass(frozen=True)
class TaskStatus:
    """Snapshot of a key-generation task as seen by one ``poll`` call."""

    handle: str
    algorithm: Algorithm
    state: TaskState
    keypair: Optional[KeyPair] = None
    error: Optional[CryptoEngineError] = None
    elapsed: float = 0.0

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal
