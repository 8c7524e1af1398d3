from .interface import BaseTokenSigner
from .jwt_signer import JwtSigner

__all__ = [
    "BaseTokenSigner",
    "JwtSigner",
]
