import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fastapi_jwtware.exceptions import HttpTokenRejected
from fastapi_jwtware.integration import (
    TokenSignerDep,
    register_exception_handlers,
    signer_lifespan,
)
from fastapi_jwtware.models import SessionRequest
from fastapi_jwtware.signers import JwtSigner


def _build_app(signer: JwtSigner) -> FastAPI:
    app = FastAPI(lifespan=signer_lifespan(signer))
    register_exception_handlers(app)

    @app.post("/sessions/refresh")
    def refresh(token: str, signer: TokenSignerDep) -> dict:
        claims = signer.decode(token)
        if claims is None:
            raise HttpTokenRejected()
        return {"token": signer.refresh(claims, 7200)}

    @app.post("/sessions/{login}")
    def open_session(login: str, signer: TokenSignerDep) -> dict:
        request = SessionRequest(login=login, expiration_seconds=3600)
        return {"token": signer.encode(request)}

    @app.get("/whoami")
    def whoami(token: str, signer: TokenSignerDep) -> dict:
        claims = signer.decode(token)
        if claims is None:
            raise HttpTokenRejected()
        return {"login": claims.sub, "exp": claims.exp}

    return app


@pytest.fixture
def stopped_signer(settings, clock, ids):
    return JwtSigner(settings, clock=clock, id_generator=ids)


class TestSignerLifespan:
    def test_starts_and_stops_signer(self, stopped_signer):
        app = _build_app(stopped_signer)

        with TestClient(app):
            assert stopped_signer.started is True
            assert app.state.token_signer is stopped_signer

        assert stopped_signer.started is False
        assert app.state.token_signer is None

    def test_round_trip_through_endpoints(self, stopped_signer):
        with TestClient(_build_app(stopped_signer)) as client:
            token = client.post("/sessions/alice").json()["token"]
            resp = client.get("/whoami", params={"token": token})

        assert resp.status_code == 200
        assert resp.json() == {"login": "alice", "exp": 4600}

    def test_refresh_endpoint(self, stopped_signer, clock):
        with TestClient(_build_app(stopped_signer)) as client:
            token = client.post("/sessions/alice").json()["token"]
            clock.now = 2000
            refreshed = client.post("/sessions/refresh", params={"token": token}).json()["token"]
            resp = client.get("/whoami", params={"token": refreshed})

        assert resp.json() == {"login": "alice", "exp": 9200}


class TestExceptionHandlers:
    def test_expired_token_is_unauthorized(self, stopped_signer, clock):
        with TestClient(_build_app(stopped_signer)) as client:
            token = client.post("/sessions/alice").json()["token"]
            clock.now = 10_000
            resp = client.get("/whoami", params={"token": token})

        assert resp.status_code == 401

    def test_malformed_token_is_unauthorized(self, stopped_signer):
        with TestClient(_build_app(stopped_signer)) as client:
            resp = client.get("/whoami", params={"token": "garbage"})

        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"
        assert resp.json()["detail"] == "You are not authorized to access this resource"

    def test_missing_signer_is_server_error(self, stopped_signer):
        client = TestClient(_build_app(stopped_signer))

        resp = client.post("/sessions/alice")

        assert resp.status_code == 500
        assert "currently unavailable" in resp.json()["detail"]
