"""Verifies ID tokens issued by securetoken.google.com for a project."""

from .domain import Token
from .exceptions import VerificationError
from .factory import create_verifier
from .keys import KeyCache, SigningKey
from .verifier import TokenVerifier

__all__ = [
    "Token",
    "VerificationError",
    "create_verifier",
    "KeyCache",
    "SigningKey",
    "TokenVerifier",
]
