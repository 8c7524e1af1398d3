import abc

from fastapi_jwtware.models import DecodedClaims, SessionRequest


class BaseTokenSigner(abc.ABC):
    @abc.abstractmethod
    def start(self) -> None: ...

    @abc.abstractmethod
    def stop(self) -> None: ...

    @abc.abstractmethod
    def encode(self, session: SessionRequest) -> str: ...

    @abc.abstractmethod
    def decode(self, token: str) -> DecodedClaims | None: ...

    @abc.abstractmethod
    def refresh(self, claims: DecodedClaims, expiration_seconds: int) -> str: ...
