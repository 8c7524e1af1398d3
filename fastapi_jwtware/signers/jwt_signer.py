import binascii
import json
import threading
from typing import Any, Final

import jwt
from jwt.utils import base64url_decode
from pydantic import ValidationError

from fastapi_jwtware.exceptions import (
    SignerNotStartedError,
    Source,
    TokenAuthenticationError,
)
from fastapi_jwtware.keys import SigningKey
from fastapi_jwtware.logging import get_logger
from fastapi_jwtware.models import (
    EXPIRATION_CLAIM,
    ISSUED_AT_CLAIM,
    NOT_BEFORE_CLAIM,
    SUBJECT_CLAIM,
    TOKEN_ID_CLAIM,
    DecodedClaims,
    SessionRequest,
)
from fastapi_jwtware.settings import SECRET_KEY_PROPERTY, Settings
from fastapi_jwtware.signers.interface import BaseTokenSigner
from fastapi_jwtware.utils import Clock, IdGenerator, new_unique_id, utc_seconds

logger = get_logger("signer")

# Expiration and not-before are checked against the injected clock, not PyJWT's wall clock.
_DECODE_OPTIONS: Final[dict[str, Any]] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
}

_REQUIRED_CLAIMS: Final[tuple[tuple[str, str], ...]] = (
    (TOKEN_ID_CLAIM, "Token id hasn't been found"),
    (SUBJECT_CLAIM, "Token subject hasn't been found"),
    (EXPIRATION_CLAIM, "Token expiration date hasn't been found"),
    (ISSUED_AT_CLAIM, "Token creation date hasn't been found"),
)


class JwtSigner(BaseTokenSigner):
    """
    Encodes, decodes and refreshes HS256 signed JWTs with a single process-wide
    key.

    The key is loaded by `start()`, either restored from the base64 value of
    `SECRET_KEY_PROPERTY` or freshly generated when that property is unset, and
    dropped by `stop()`. Every operation reads the key reference once, so a call
    racing with `stop()` finishes with the old key or fails with
    `SignerNotStartedError`, it never sees a half-built key.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        clock: Clock = utc_seconds,
        id_generator: IdGenerator = new_unique_id,
    ) -> None:
        self._settings: Settings = settings
        self._clock: Clock = clock
        self._id_generator: IdGenerator = id_generator
        self._signing_key: SigningKey | None = None
        self._lifecycle_lock = threading.Lock()

    @property
    def signing_key(self) -> SigningKey | None:
        """
        The active key, exposed for diagnostics and tests only.
        """
        return self._signing_key

    @property
    def started(self) -> bool:
        return self._signing_key is not None

    def start(self) -> None:
        """
        Loads the signing key.

        Raises
        ------
        SigningKeyDecodeError
            _the configured key isn't valid base64_
        """
        with self._lifecycle_lock:
            encoded_key = self._settings.get_string(SECRET_KEY_PROPERTY)
            if encoded_key is None:
                key, mode = SigningKey.generate(), "generated"
            else:
                key, mode = SigningKey.from_base64(encoded_key), "restored"
            self._signing_key = key

        logger.info(
            "signing_key_loaded",
            mode=mode,
            algorithm=key.algorithm,
            key_length=len(key),
        )

    def stop(self) -> None:
        with self._lifecycle_lock:
            self._signing_key = None
        logger.info("signing_key_discarded")

    def encode(self, session: SessionRequest) -> str:
        key = self._require_key()
        now = self._clock()
        payload: dict[str, Any] = {
            TOKEN_ID_CLAIM: self._id_generator(),
            SUBJECT_CLAIM: session.login,
            ISSUED_AT_CLAIM: now,
            EXPIRATION_CLAIM: now + session.expiration_seconds,
        }
        payload.update(session.properties)
        return self._sign(payload, key)

    def decode(self, token: str) -> DecodedClaims | None:
        """
        Verifies `token` and returns its claims.

        Parameters
        ----------
        token : str
            _the compact JWT sent back by the client_

        Returns
        -------
        DecodedClaims | None
            _None when the signature doesn't match or the token expired_

        Raises
        ------
        TokenAuthenticationError
            _the token is malformed, uses another algorithm, or a mandatory
            claim is missing despite a valid signature_
        """
        key = self._require_key()
        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                key.material,
                algorithms=[key.algorithm],
                options=_DECODE_OPTIONS,
            )
        except jwt.InvalidSignatureError:
            logger.debug("token_signature_mismatch")
            return None
        except jwt.DecodeError as e:
            if _only_signature_unreadable(token, key.algorithm):
                logger.debug("token_signature_mismatch")
                return None
            raise self._rejected(str(e)) from e
        except jwt.InvalidTokenError as e:
            raise self._rejected(str(e)) from e

        subject = claims.get(SUBJECT_CLAIM)
        login = subject if isinstance(subject, str) else None
        now = self._clock()

        expiration = claims.get(EXPIRATION_CLAIM)
        if expiration is not None:
            if not _is_number(expiration):
                raise self._rejected("Token expiration date must be a number", login)
            if now > expiration:
                logger.debug("token_expired", login=login, exp=expiration)
                return None

        not_before = claims.get(NOT_BEFORE_CLAIM)
        if not_before is not None:
            if not _is_number(not_before):
                raise self._rejected("Token not-before date must be a number", login)
            if now < not_before:
                raise self._rejected("Token is not yet valid", login)

        for claim, message in _REQUIRED_CLAIMS:
            if claims.get(claim) is None:
                raise self._rejected(message, login)

        try:
            return DecodedClaims.model_validate(claims)
        except ValidationError as e:
            raise self._rejected(f"Token claims are invalid: {e}", login) from e

    def refresh(self, claims: DecodedClaims, expiration_seconds: int) -> str:
        """
        Re-signs already decoded `claims` with a new expiration. The signature of
        the original token isn't checked again, call `decode` first.

        `jti`, `sub`, `iat` and every extra claim are carried over unchanged.
        """
        key = self._require_key()
        payload = claims.to_payload()
        payload[EXPIRATION_CLAIM] = self._clock() + expiration_seconds
        return self._sign(payload, key)

    def _require_key(self) -> SigningKey:
        key = self._signing_key
        if key is None:
            raise SignerNotStartedError(self.__class__.__name__)
        return key

    @staticmethod
    def _sign(payload: dict[str, Any], key: SigningKey) -> str:
        return jwt.encode(payload, key.material, algorithm=key.algorithm)

    @staticmethod
    def _rejected(message: str, login: str | None = None) -> TokenAuthenticationError:
        logger.warning("token_rejected", login=login, reason=message)
        return TokenAuthenticationError(message, source=Source.token(), login=login)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _only_signature_unreadable(token: Any, algorithm: str = "HS256") -> bool:
    """
    True when the header and payload segments of `token` parse but the
    signature segment isn't valid base64url, i.e. the signature was altered
    after signing. Such a token is a signature mismatch, not a malformed token.
    """
    if not isinstance(token, str):
        return False
    segments = token.split(".")
    if len(segments) != 3:
        return False

    header_segment, payload_segment, signature_segment = segments
    try:
        header = json.loads(base64url_decode(header_segment.encode("utf-8")))
        base64url_decode(payload_segment.encode("utf-8"))
    except (binascii.Error, ValueError):
        return False
    if not isinstance(header, dict) or header.get("alg") != algorithm:
        return False

    try:
        base64url_decode(signature_segment.encode("utf-8"))
    except (binascii.Error, ValueError):
        return True
    return False
