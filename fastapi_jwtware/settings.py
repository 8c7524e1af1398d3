from collections.abc import Mapping
from typing import Annotated, Any, ClassVar, Final, Literal, Protocol, TypeAlias

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SECRET_KEY_PROPERTY: Final[str] = "jwtware.auth.jwtBase64Hs256Secret"

LogLevel: TypeAlias = Literal["debug", "info", "warning", "error", "critical"]


class Settings(Protocol):
    def get_string(self, key: str) -> str | None: ...


class MapSettings:
    """
    In-memory settings source, handy when embedding the signer or in tests.
    """

    def __init__(self, properties: Mapping[str, str] | None = None) -> None:
        self._properties: dict[str, str] = dict(properties or {})

    def set_property(self, key: str, value: str | None) -> "MapSettings":
        if value is None:
            self._properties.pop(key, None)
        else:
            self._properties[key] = value
        return self

    def get_string(self, key: str) -> str | None:
        return self._properties.get(key)


class EnvironmentSettings(BaseSettings):
    """
    Reads settings from `JWTWARE_*` environment variables (or a `.env` file).
    """

    model_config = SettingsConfigDict(
        env_prefix="JWTWARE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    jwt_base64_hs256_secret: Annotated[
        str | None,
        Field(
            description=(
                "Base64 encoded HS256 key shared between server instances. "
                "A random key is generated at startup when unset."
            ),
            title="JWT Signing Key",
        ),
    ] = None

    log_level: Annotated[
        LogLevel,
        Field(
            description="Minimum level of the structured logs.",
            title="Log Level",
        ),
    ] = "info"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    PROPERTY_FIELDS: ClassVar[dict[str, str]] = {
        SECRET_KEY_PROPERTY: "jwt_base64_hs256_secret",
    }

    def get_string(self, key: str) -> str | None:
        field_name = self.PROPERTY_FIELDS.get(key)
        if field_name is None:
            return None
        return getattr(self, field_name)
