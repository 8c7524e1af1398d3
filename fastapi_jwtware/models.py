from typing import Annotated, Any, Final, TypeAlias

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

ClaimValue: TypeAlias = StrictStr | StrictBool | StrictInt | StrictFloat

TOKEN_ID_CLAIM: Final[str] = "jti"
SUBJECT_CLAIM: Final[str] = "sub"
ISSUED_AT_CLAIM: Final[str] = "iat"
EXPIRATION_CLAIM: Final[str] = "exp"
NOT_BEFORE_CLAIM: Final[str] = "nbf"

RESERVED_CLAIMS: Final[frozenset[str]] = frozenset(
    {TOKEN_ID_CLAIM, SUBJECT_CLAIM, ISSUED_AT_CLAIM, EXPIRATION_CLAIM, NOT_BEFORE_CLAIM}
)


class SessionRequest(BaseModel):
    """
    What the caller wants encoded in a new token. Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    login: Annotated[
        str,
        Field(
            min_length=1,
            description="Login of the authenticated user, becomes the `sub` claim.",
            title="User Login",
        ),
    ]

    expiration_seconds: Annotated[
        int,
        Field(
            description="How long the token stays valid, counted from its issue time.",
            title="Expiration Time In Seconds",
        ),
    ]

    properties: Annotated[
        dict[str, ClaimValue],
        Field(
            default_factory=dict,
            description="Extra claims written as top-level fields of the payload, in order.",
            title="Extra Claims",
        ),
    ]

    @field_validator("properties")
    @classmethod
    def _reject_reserved_claims(cls, value: dict[str, ClaimValue]) -> dict[str, ClaimValue]:
        reserved = RESERVED_CLAIMS.intersection(value)
        if reserved:
            raise ValueError(
                f"properties cannot override reserved claims: {', '.join(sorted(reserved))}"
            )
        return value


class DecodedClaims(BaseModel):
    """
    Claims of a token whose signature and expiration were verified. The four
    identity claims are always present, every other claim is kept as an extra
    field in payload order.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    jti: StrictStr
    sub: StrictStr
    iat: StrictInt
    exp: StrictInt

    @property
    def properties(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()
