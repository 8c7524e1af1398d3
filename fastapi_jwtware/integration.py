from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import Response

from fastapi_jwtware.exceptions import (
    HttpSignerUnavailable,
    HttpTokenRejected,
    SignerNotStartedError,
    TokenAuthenticationError,
)
from fastapi_jwtware.logging import get_logger
from fastapi_jwtware.signers import BaseTokenSigner

logger = get_logger("integration")

SIGNER_STATE_ATTRIBUTE = "token_signer"


def signer_lifespan(
    signer: BaseTokenSigner,
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """
    Builds a FastAPI `lifespan` that starts `signer` before the first request,
    publishes it on `app.state` and stops it on shutdown.

    Parameters
    ----------
    signer : BaseTokenSigner

    Returns
    -------
    Callable[[FastAPI], AbstractAsyncContextManager[None]]
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        signer.start()
        setattr(app.state, SIGNER_STATE_ATTRIBUTE, signer)
        try:
            yield
        finally:
            setattr(app.state, SIGNER_STATE_ATTRIBUTE, None)
            signer.stop()

    return lifespan


def get_token_signer(request: Request) -> BaseTokenSigner:
    signer: BaseTokenSigner | None = getattr(
        request.app.state, SIGNER_STATE_ATTRIBUTE, None
    )
    if signer is None:
        raise SignerNotStartedError(SIGNER_STATE_ATTRIBUTE)
    return signer


TokenSignerDep = Annotated[BaseTokenSigner, Depends(get_token_signer)]


async def _on_token_rejected(request: Request, exc: Exception) -> Response:
    login = getattr(exc, "login", None)
    logger.info("request_rejected", path=request.url.path, login=login)
    return await http_exception_handler(request, HttpTokenRejected())


async def _on_signer_unavailable(request: Request, exc: Exception) -> Response:
    logger.error("token_signer_unavailable", path=request.url.path, error=str(exc))
    return await http_exception_handler(request, HttpSignerUnavailable())


def register_exception_handlers(app: FastAPI) -> None:
    """
    Turns signer errors into HTTP responses: malformed tokens become a 401 and
    a signer that isn't started becomes a 500.
    """
    app.add_exception_handler(TokenAuthenticationError, _on_token_rejected)
    app.add_exception_handler(SignerNotStartedError, _on_signer_unavailable)
