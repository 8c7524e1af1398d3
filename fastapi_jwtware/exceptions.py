from dataclasses import dataclass
from typing import ClassVar

from fastapi import HTTPException, status


@dataclass(frozen=True)
class Source:
    """
    Identifies which authentication mechanism produced an error.
    """

    method: str
    provider: str = "local"
    provider_name: str = "local"

    @classmethod
    def token(cls) -> "Source":
        return cls(method="token")


class JwtwareError(Exception):
    """
    Base class for every error raised by this package, easy to catch at the
    edge of an application.
    """


class SignerNotStartedError(JwtwareError, RuntimeError):
    def __init__(self, signer_name: str) -> None:
        super().__init__(f"{signer_name} not started")
        self.signer_name: str = signer_name


class SigningKeyDecodeError(JwtwareError, ValueError):
    """
    The configured signing key could not be decoded. Raised at startup and
    never retried.
    """


class TokenAuthenticationError(JwtwareError):
    """
    A token was well-formed enough to reach the signer but cannot be trusted:
    the structure is broken, the algorithm is unsupported or a mandatory claim
    is missing despite a valid signature.

    Expired tokens and signature mismatches are *not* reported through this
    error, `decode` returns `None` for those.
    """

    def __init__(
        self,
        message: str,
        *,
        source: Source | None = None,
        login: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.source: Source = source or Source.token()
        self.login: str | None = login

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(source={self.source.method!r}, "
            f"login={self.login!r}, message={self.message!r})"
        )


class JwtwareHttpException(HTTPException):
    """
    Base class easy to put in exception handler
    """


class HttpTokenRejected(JwtwareHttpException):
    _ERROR_DEFAULT: ClassVar[str] = "You are not authorized to access this resource"

    def __init__(
        self,
        detail: str | None = None,
        scheme: str | None = None,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=(detail or self._ERROR_DEFAULT),
            headers={
                "WWW-Authenticate": scheme or "Bearer",
            },
        )


class HttpSignerUnavailable(JwtwareHttpException):
    _ERROR_DEFAULT: ClassVar[str] = (
        "This service is currently unavailable. Please try again later."
    )

    def __init__(
        self,
        detail: str | None = None,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=(detail or self._ERROR_DEFAULT),
        )
