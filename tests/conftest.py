import base64

import pytest

from fastapi_jwtware.settings import SECRET_KEY_PROPERTY, MapSettings
from fastapi_jwtware.signers import JwtSigner

RAW_KEY = b"0123456789abcdef0123456789abcdef"
ENCODED_KEY = base64.b64encode(RAW_KEY).decode("ascii")


class FakeClock:
    def __init__(self, now: int = 1000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


class SequentialIds:
    def __init__(self, prefix: str = "token") -> None:
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def settings():
    return MapSettings({SECRET_KEY_PROPERTY: ENCODED_KEY})


@pytest.fixture
def signer(settings, clock, ids):
    jwt_signer = JwtSigner(settings, clock=clock, id_generator=ids)
    jwt_signer.start()
    yield jwt_signer
    jwt_signer.stop()


@pytest.fixture
def raw_key():
    return RAW_KEY


@pytest.fixture
def encoded_key():
    return ENCODED_KEY
