"""
devcrypt Crypto Request/Response Facade
=======================================

The single entry point used by the cryptography panel.

* :meth:`CryptoFacade.process` runs Encrypt / Decrypt / Sign / Verify for
  one :class:`~devcrypt.models.OperationDescriptor` and always returns an
  :class:`~devcrypt.models.OperationResult`.
* :meth:`CryptoFacade.generate_symmetric_key` and
  :meth:`CryptoFacade.generate_iv` are the synchronous fast path.
* :meth:`CryptoFacade.submit_keypair`, :meth:`CryptoFacade.poll` and
  :meth:`CryptoFacade.cancel` front the background scheduler.

Text in, text out: keys, IVs, ciphertexts and signatures are decoded here
and the engines only ever see raw bytes.  This is also the only module
that turns an :class:`~devcrypt.errors.ErrorKind` into user-facing text.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from devcrypt import asymmetric, keygen, symmetric
from devcrypt.config import EngineSettings, load_settings
from devcrypt.encoding import decode, encode
from devcrypt.errors import (
    CryptoEngineError,
    DecryptionFailedError,
    ErrorKind,
    InvalidKeyMaterialError,
    InvalidOperationForKeyError,
    MalformedEncodingError,
)
from devcrypt.models import (
    Algorithm,
    BytesOrText,
    CipherMode,
    Operation,
    OperationDescriptor,
    OperationResult,
    OutputEncoding,
    RsaPadding,
    TaskState,
    TaskStatus,
)
from devcrypt.scheduler import KeyGenScheduler
from devcrypt.validator import RSA_BIT_SIZES, validate, validate_operation

logger = logging.getLogger(__name__)

ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_KEY_MATERIAL: "Invalid key or IV for the selected algorithm and mode.",
    ErrorKind.INVALID_OPERATION_FOR_KEY: "This operation is not possible with the supplied key.",
    ErrorKind.PLAINTEXT_TOO_LARGE: "The input is too large for this key size.",
    ErrorKind.DECRYPTION_FAILED: "Decryption failed: wrong key or corrupted data.",
    ErrorKind.MALFORMED_ENCODING: "The input is not valid for the selected text encoding.",
    ErrorKind.GENERATION_FAILED: "Key generation failed.",
}


def message_for(error: CryptoEngineError, detail: bool = True) -> str:
    """User-facing text for *error*; *detail* appends the engine's reason."""
    base = ERROR_MESSAGES[error.kind]
    reason = str(error)
    if detail and reason:
        return f"{base} {reason}"
    return base


class CryptoFacade:
    """
    Request/response front end of the cryptography engine.

    Parameters
    ----------
    scheduler : KeyGenScheduler, optional
        Shared scheduler; one is created (and owned) when omitted.
    settings : EngineSettings, optional
        Defaults for encoding and RSA padding; read from the
        environment when omitted.
    """

    def __init__(
        self,
        scheduler: Optional[KeyGenScheduler] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._settings = settings or load_settings()
        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler or KeyGenScheduler(max_workers=self._settings.keygen_workers)

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def scheduler(self) -> KeyGenScheduler:
        return self._scheduler

    def close(self) -> None:
        if self._owns_scheduler:
            self._scheduler.shutdown(wait=False)

    def __enter__(self) -> "CryptoFacade":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Synchronous operations
    # ------------------------------------------------------------------

    def process(self, descriptor: OperationDescriptor) -> OperationResult:
        """Run one encrypt / decrypt / sign / verify request."""
        if not isinstance(descriptor, OperationDescriptor):
            raise TypeError(
                f"Expected OperationDescriptor, got {type(descriptor).__name__}."
            )
        try:
            validate_operation(descriptor.algorithm, descriptor.operation)
            if descriptor.algorithm.is_symmetric:
                return self._process_symmetric(descriptor)
            return self._process_asymmetric(descriptor)
        except CryptoEngineError as exc:
            logger.info(
                "%s %s failed (%s)",
                descriptor.algorithm.label,
                descriptor.operation.value,
                exc.kind.value,
            )
            return OperationResult.failure(exc, message_for(exc))

    def _process_symmetric(self, d: OperationDescriptor) -> OperationResult:
        if d.key is None or d.key == "" or d.key == b"":
            raise InvalidKeyMaterialError(f"A key is required for {d.algorithm.label}.")
        key = _raw(d.key, d.key_encoding)
        iv = None
        if d.mode is CipherMode.CBC and d.iv not in (None, "", b""):
            iv = _raw(d.iv, d.key_encoding)
        material = validate(d.algorithm, d.mode, key, iv)

        if d.operation is Operation.ENCRYPT:
            ciphertext = symmetric.encrypt(material, _plain(d.data))
            return OperationResult.success(encode(ciphertext, d.encoding), data=ciphertext)

        plaintext = symmetric.decrypt(material, _raw(d.data, d.encoding))
        return OperationResult.success(_utf8(plaintext), data=plaintext)

    def _process_asymmetric(self, d: OperationDescriptor) -> OperationResult:
        alg = d.algorithm
        padding = self._rsa_padding(d)

        if d.operation is Operation.ENCRYPT:
            public_key = asymmetric.load_public_key(alg, self._public_text(d))
            ciphertext = asymmetric.encrypt(public_key, _plain(d.data), padding)
            return OperationResult.success(encode(ciphertext, d.encoding), data=ciphertext)

        if d.operation is Operation.VERIFY:
            public_key = asymmetric.load_public_key(alg, self._public_text(d))
            if d.signature is None or not d.signature.strip():
                raise MalformedEncodingError("A signature is required for verification.")
            signature = decode(d.signature, d.encoding)
            verified = asymmetric.verify(public_key, _plain(d.data), signature)
            return OperationResult.success(
                f"Signature valid: {str(verified).lower()}", verified=verified
            )

        private_key = asymmetric.load_private_key(alg, self._private_text(d))
        if d.operation is Operation.DECRYPT:
            plaintext = asymmetric.decrypt(private_key, _raw(d.data, d.encoding), padding)
            return OperationResult.success(_utf8(plaintext), data=plaintext)

        signature = asymmetric.sign(private_key, _plain(d.data))
        return OperationResult.success(encode(signature, d.encoding), data=signature)

    def _rsa_padding(self, d: OperationDescriptor) -> RsaPadding:
        """
        Padding for an RSA request: the descriptor's, else the configured one.

        A configured OAEP that leaves no room for plaintext on the key size
        (RSA-512) gives way to PKCS#1 v1.5.  An explicit request is kept as is.
        """
        if d.rsa_padding is not None:
            return d.rsa_padding
        padding = self._settings.rsa_padding
        bits = RSA_BIT_SIZES.get(d.algorithm)
        if (
            padding is RsaPadding.OAEP
            and bits is not None
            and asymmetric.max_plaintext_size(bits, padding) <= 0
        ):
            return RsaPadding.PKCS1V15
        return padding

    @staticmethod
    def _public_text(d: OperationDescriptor) -> str:
        text = d.resolved_public_key() or d.resolved_private_key()
        if not text:
            raise InvalidKeyMaterialError(
                f"A public key is required for {d.algorithm.label} {d.operation.value}."
            )
        return text

    @staticmethod
    def _private_text(d: OperationDescriptor) -> str:
        text = d.resolved_private_key()
        if text:
            return text
        if d.resolved_public_key():
            raise InvalidOperationForKeyError(
                f"{d.operation.value} requires the private key; only a public key was supplied."
            )
        raise InvalidKeyMaterialError(
            f"A private key is required for {d.algorithm.label} {d.operation.value}."
        )

    # ------------------------------------------------------------------
    # Key and IV generation
    # ------------------------------------------------------------------

    def generate_symmetric_key(
        self,
        algorithm: Algorithm,
        encoding: Optional[OutputEncoding] = None,
    ) -> OperationResult:
        """Fresh random key for *algorithm*, encoded as text."""
        enc = encoding or self._settings.default_encoding
        try:
            material = keygen.generate_symmetric_key(algorithm, CipherMode.ECB)
        except CryptoEngineError as exc:
            return OperationResult.failure(exc, message_for(exc))
        return OperationResult.success(encode(material.key, enc), data=material.key)

    def generate_iv(
        self,
        algorithm: Algorithm,
        mode: CipherMode = CipherMode.CBC,
        encoding: Optional[OutputEncoding] = None,
    ) -> OperationResult:
        """Fresh random IV for *algorithm* in *mode*, encoded as text."""
        enc = encoding or self._settings.default_encoding
        try:
            iv = keygen.generate_iv(algorithm, mode)
        except CryptoEngineError as exc:
            return OperationResult.failure(exc, message_for(exc))
        return OperationResult.success(encode(iv, enc), data=iv)

    def submit_keypair(
        self,
        algorithm: Algorithm,
        bit_size: Optional[int] = None,
    ) -> OperationResult:
        """Start background generation; ``output`` holds the task handle."""
        try:
            handle = self._scheduler.submit(algorithm, bit_size)
        except CryptoEngineError as exc:
            return OperationResult.failure(exc, message_for(exc))
        return OperationResult.success(handle)

    def poll(self, handle: str) -> TaskStatus:
        return self._scheduler.poll(handle)

    def cancel(self, handle: str) -> bool:
        return self._scheduler.cancel(handle)

    @staticmethod
    def status_message(status: TaskStatus) -> str:
        """One-line progress text for a polled task."""
        label = status.algorithm.label
        if status.state is TaskState.PENDING:
            return f"Waiting to generate {label} key pair..."
        if status.state is TaskState.RUNNING:
            return f"Generating {label} key pair... {status.elapsed:.1f}s"
        if status.state is TaskState.COMPLETED:
            return f"{label} key pair ready ({status.elapsed:.1f}s)."
        if status.state is TaskState.CANCELLED:
            return f"{label} key generation cancelled."
        return message_for(status.error) if status.error else ERROR_MESSAGES[ErrorKind.GENERATION_FAILED]


# ---------------------------------------------------------------------------
# Boundary helpers (module-private)
# ---------------------------------------------------------------------------


def _plain(data: BytesOrText) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _raw(value: BytesOrText, encoding: OutputEncoding) -> bytes:
    if isinstance(value, str):
        return decode(value, encoding)
    return bytes(value)


def _utf8(plaintext: bytes) -> str:
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionFailedError(
            "Decrypted bytes are not valid UTF-8 text: wrong key or corrupted data."
        ) from exc
