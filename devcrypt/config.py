"""
devcrypt Settings
=================

Engine-wide knobs, read from the environment once per facade.  None of
them carries key material: there is no default key, IV, or key cache.

Environment variables
---------------------
DEVCRYPT_KEYGEN_WORKERS     Worker threads for key-pair generation (2).
DEVCRYPT_POLL_INTERVAL_MS   Qt bridge polling period in milliseconds (50).
DEVCRYPT_DEFAULT_ENCODING   ``hex`` or ``base64`` (hex).
DEVCRYPT_RSA_PADDING        ``oaep`` or ``pkcs1v15`` (oaep).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from devcrypt.models import OutputEncoding, RsaPadding

DEFAULT_KEYGEN_WORKERS: int = 2
DEFAULT_POLL_INTERVAL_MS: int = 50  # ~20 polls/sec, one per redraw
DEFAULT_ENCODING: OutputEncoding = OutputEncoding.HEX
DEFAULT_RSA_PADDING: RsaPadding = RsaPadding.OAEP


@dataclass(frozen=True)
class EngineSettings:
    keygen_workers: int = DEFAULT_KEYGEN_WORKERS
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    default_encoding: OutputEncoding = DEFAULT_ENCODING
    rsa_padding: RsaPadding = DEFAULT_RSA_PADDING


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None
    if value < 1:
        raise ValueError(f"{name} must be at least 1, got {value}.")
    return value


def _choice(env: Mapping[str, str], name: str, enum_cls, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"{name} must be one of {allowed}; got {raw!r}.") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> EngineSettings:
    """Build :class:`EngineSettings` from *env* (defaults to ``os.environ``)."""
    if env is None:
        env = os.environ
    return EngineSettings(
        keygen_workers=_positive_int(env, "DEVCRYPT_KEYGEN_WORKERS", DEFAULT_KEYGEN_WORKERS),
        poll_interval_ms=_positive_int(env, "DEVCRYPT_POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS),
        default_encoding=_choice(env, "DEVCRYPT_DEFAULT_ENCODING", OutputEncoding, DEFAULT_ENCODING),
        rsa_padding=_choice(env, "DEVCRYPT_RSA_PADDING", RsaPadding, DEFAULT_RSA_PADDING),
    )
