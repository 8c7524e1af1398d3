import base64
import binascii
import secrets
from dataclasses import dataclass, field
from typing import Final

from fastapi_jwtware.exceptions import SigningKeyDecodeError

SIGNATURE_ALGORITHM: Final[str] = "HS256"

# HS256 keys are sized to the SHA-256 block output.
HS256_KEY_LENGTH: Final[int] = 32


@dataclass(frozen=True)
class SigningKey:
    """
    The symmetric secret used to both produce and verify token signatures.

    The raw material is deliberately kept out of `repr` so the key can't leak
    into logs or tracebacks.
    """

    material: bytes = field(repr=False)
    algorithm: str = SIGNATURE_ALGORITHM

    def __post_init__(self) -> None:
        if not self.material:
            raise SigningKeyDecodeError("SigningKey: key material cannot be empty")

    @classmethod
    def generate(cls) -> "SigningKey":
        """
        Creates a key from cryptographically random bytes sized for HS256.

        Returns
        -------
        SigningKey
        """
        return cls(material=secrets.token_bytes(HS256_KEY_LENGTH))

    @classmethod
    def from_base64(cls, encoded_key: str) -> "SigningKey":
        """
        Restores a key previously shared as a standard base64 string, this lets
        several server instances (or restarts) verify each other's tokens.

        Parameters
        ----------
        encoded_key : str
            _the base64 encoded key material_

        Returns
        -------
        SigningKey

        Raises
        ------
        SigningKeyDecodeError
            _the value isn't valid base64 or decodes to nothing_
        """
        try:
            decoded = base64.b64decode(encoded_key.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise SigningKeyDecodeError(
                f"SigningKey: unable to decode base64 key ({e})"
            ) from e
        return cls(material=decoded)

    def to_base64(self) -> str:
        return base64.b64encode(self.material).decode("ascii")

    def __len__(self) -> int:
        return len(self.material)
