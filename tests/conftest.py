"""Shared fixtures: one key pair per algorithm per session, fresh schedulers per test."""

from typing import Iterator

import pytest

from devcrypt import keygen
from devcrypt.config import EngineSettings
from devcrypt.facade import CryptoFacade
from devcrypt.models import Algorithm, KeyPair
from devcrypt.scheduler import KeyGenScheduler


@pytest.fixture(scope="session")
def rsa2048_pair() -> KeyPair:
    return keygen.generate_keypair(Algorithm.RSA2048)


@pytest.fixture(scope="session")
def rsa512_pair() -> KeyPair:
    return keygen.generate_keypair(Algorithm.RSA512)


@pytest.fixture(scope="session")
def rsa1024_pair() -> KeyPair:
    return keygen.generate_keypair(Algorithm.RSA1024)


@pytest.fixture(scope="session")
def ecdsa_pair() -> KeyPair:
    return keygen.generate_keypair(Algorithm.ECDSA)


@pytest.fixture(scope="session")
def other_ecdsa_pair() -> KeyPair:
    return keygen.generate_keypair(Algorithm.ECDSA)


@pytest.fixture
def scheduler() -> Iterator[KeyGenScheduler]:
    sched = KeyGenScheduler(max_workers=2)
    yield sched
    sched.shutdown(wait=True)


@pytest.fixture
def facade(scheduler) -> Iterator[CryptoFacade]:
    with CryptoFacade(scheduler=scheduler, settings=EngineSettings()) as f:
        yield f
