"""
devcrypt Output Encoder
=======================

Hex / Base64 rendering of raw bytes and the strict inverse used for
decrypt and verify inputs.  ``decode(encode(b, f), f) == b`` for every
byte string *b* and every format *f*.
"""

from __future__ import annotations

import base64
import binascii

from devcrypt.errors import MalformedEncodingError
from devcrypt.models import OutputEncoding


def encode(data: bytes, encoding: OutputEncoding = OutputEncoding.HEX) -> str:
    """Render *data* as lowercase hex or padded standard Base64."""
    if encoding is OutputEncoding.HEX:
        return bytes(data).hex()
    if encoding is OutputEncoding.BASE64:
        return base64.b64encode(bytes(data)).decode("ascii")
    raise ValueError(f"Unknown output encoding {encoding!r}.")


def decode(text: str, encoding: OutputEncoding = OutputEncoding.HEX) -> bytes:
    """
    Parse *text* written in *encoding*.

    Whitespace anywhere in *text* is ignored, so wrapped or grouped output
    (``"ab cd"``, Base64 split over lines) decodes like the compact form.

    Raises
    ------
    MalformedEncodingError
        Odd-length or non-hex input, or Base64 with characters outside the
        standard alphabet or bad padding.
    """
    if not isinstance(text, str):
        raise MalformedEncodingError(f"Expected text, got {type(text).__name__}.")
    value = "".join(text.split())
    if encoding is OutputEncoding.HEX:
        if len(value) % 2:
            raise MalformedEncodingError(
                f"Invalid hex encoding: odd number of digits ({len(value)})."
            )
        try:
            return bytes.fromhex(value)
        except ValueError as exc:
            raise MalformedEncodingError(f"Invalid hex encoding: {exc}") from exc
    if encoding is OutputEncoding.BASE64:
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MalformedEncodingError(f"Invalid Base64 encoding: {exc}") from exc
    raise ValueError(f"Unknown output encoding {encoding!r}.")
