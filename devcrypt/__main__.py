"""
devcrypt Self-Test
==================

Quick end-to-end check of the engine (run with: python -m devcrypt).
"""

from __future__ import annotations

import logging
import sys
import time

from devcrypt import asymmetric, keygen, symmetric
from devcrypt.encoding import decode, encode
from devcrypt.errors import (
    DecryptionFailedError,
    InvalidKeyMaterialError,
    MalformedEncodingError,
)
from devcrypt.models import Algorithm, CipherMode, OutputEncoding, TaskState
from devcrypt.scheduler import KeyGenScheduler
from devcrypt.validator import validate

passed = 0
failed = 0


def _test(name: str, fn) -> None:
    global passed, failed
    try:
        fn()
        print(f"  [PASS] {name}")
        passed += 1
    except Exception as exc:
        print(f"  [FAIL] {name}: {exc}")
        failed += 1


def _expect(exc_type, fn) -> None:
    try:
        fn()
    except exc_type:
        return
    raise AssertionError(f"expected {exc_type.__name__}")


def main() -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("devcrypt Engine Self-Test")
    print("=" * 60)

    print("\n-- Symmetric --")

    def test_symmetric_roundtrip():
        for alg in (Algorithm.AES128, Algorithm.AES192, Algorithm.AES256, Algorithm.DES, Algorithm.TRIPLE_DES):
            for mode in CipherMode:
                material = keygen.generate_symmetric_key(alg, mode)
                ct = symmetric.encrypt(material, b"hello world")
                assert symmetric.decrypt(material, ct) == b"hello world", f"{alg.label}/{mode.value}"

    _test("Every cipher/mode round-trips", test_symmetric_roundtrip)

    def test_short_des_key():
        _expect(InvalidKeyMaterialError, lambda: validate(Algorithm.DES, CipherMode.ECB, b"1234567"))

    _test("7-byte DES key raises InvalidKeyMaterialError", test_short_des_key)

    def test_wrong_key():
        material = keygen.generate_symmetric_key(Algorithm.AES256, CipherMode.CBC)
        other = validate(Algorithm.AES256, CipherMode.CBC, keygen.generate_symmetric_key(Algorithm.AES256).key, material.iv)
        ct = symmetric.encrypt(material, b"secret message, long enough")
        try:
            assert symmetric.decrypt(other, ct) != b"secret message, long enough"
        except DecryptionFailedError:
            pass

    _test("Wrong key never yields the plaintext", test_wrong_key)

    print("\n-- Encoding --")

    def test_encoding():
        data = bytes(range(256))
        for fmt in OutputEncoding:
            assert decode(encode(data, fmt), fmt) == data
        _expect(MalformedEncodingError, lambda: decode("not-valid-base64===", OutputEncoding.BASE64))
        _expect(MalformedEncodingError, lambda: decode("abc", OutputEncoding.HEX))

    _test("Hex/Base64 round-trip and rejection", test_encoding)

    print("\n-- Asymmetric (background generation) --")

    def test_rsa_async():
        with KeyGenScheduler() as scheduler:
            handle = scheduler.submit(Algorithm.RSA2048)
            status = scheduler.poll(handle)
            while not status.is_terminal:
                time.sleep(0.05)
                status = scheduler.poll(handle)
            assert status.state is TaskState.COMPLETED, status.state
            pair = status.keypair
        public = asymmetric.load_public_key(Algorithm.RSA2048, pair.public_key)
        private = asymmetric.load_private_key(Algorithm.RSA2048, pair.private_key)
        assert asymmetric.decrypt(private, asymmetric.encrypt(public, b"test")) == b"test"
        sig = asymmetric.sign(private, b"message")
        assert asymmetric.verify(public, b"message", sig)
        assert not asymmetric.verify(public, b"other message", sig)

    _test("RSA-2048 async generate, encrypt/decrypt, sign/verify", test_rsa_async)

    def test_ecdsa_cross_key():
        a = keygen.generate_keypair(Algorithm.ECDSA)
        b = keygen.generate_keypair(Algorithm.ECDSA)
        sig = asymmetric.sign(asymmetric.load_private_key(Algorithm.ECDSA, a.private_key), b"msg")
        assert asymmetric.verify(asymmetric.load_public_key(Algorithm.ECDSA, a.public_key), b"msg", sig)
        assert not asymmetric.verify(asymmetric.load_public_key(Algorithm.ECDSA, b.public_key), b"msg", sig)

    _test("ECDSA verify with another key returns False", test_ecdsa_cross_key)

    print("\n" + "=" * 60)
    total = passed + failed
    print(f"Results: {passed}/{total} passed, {failed} failed")
    if failed:
        print("SOME TESTS FAILED!")
    else:
        print("ALL TESTS PASSED!")
    print("=" * 60)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
