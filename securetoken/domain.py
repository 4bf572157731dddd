"""The verified identity produced from an ID token."""

import math
from types import MappingProxyType
from typing import Any, Mapping, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

JSONValue = Union[None, bool, int, float, str, Sequence[Any], Mapping[str, Any]]
"""Any value a JSON claim can hold."""

RESERVED_CLAIMS = frozenset(["iss", "aud", "exp", "iat", "sub", "uid"])
"""Claim names that never appear in :attr:`Token.claims`."""


def _string_claim(claims: Mapping[str, Any], name: str) -> str:
    value = claims.get(name)
    return value if isinstance(value, str) else ""


def _time_claim(claims: Mapping[str, Any], name: str) -> int:
    value = claims.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


def _read_only(value: Any) -> Any:
    """Objects become read-only mappings and arrays become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _read_only(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_read_only(v) for v in value)
    return value


class Token(BaseModel):
    """A decoded and verified ID token."""

    model_config = ConfigDict(frozen=True)

    issuer: str
    """Issuer URL, ``https://securetoken.google.com/<project ID>``."""

    audience: str
    """Project ID the token was issued for."""

    subject: str
    """Stable user ID."""

    issued_at: int
    """Epoch seconds."""

    expires: int
    """Epoch seconds."""

    uid: str = ""
    """Same as :attr:`subject` once verified."""

    claims: Mapping[str, JSONValue] = Field(default_factory=dict)
    """Custom claims, i.e. everything except the reserved ones. Read-only:
    nested objects are mappings and arrays are tuples."""

    @field_validator("claims", mode="after")
    @classmethod
    def _freeze_claims(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return _read_only(value)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Token":
        """Split a raw claim set into the standard fields and custom claims.

        ``uid`` is left empty; it is only set once validation has passed.
        """
        audience = claims.get("aud")
        if isinstance(audience, list):
            audience = audience[0] if audience else ""
        return cls(
            issuer=_string_claim(claims, "iss"),
            audience=audience if isinstance(audience, str) else "",
            subject=_string_claim(claims, "sub"),
            issued_at=_time_claim(claims, "iat"),
            expires=_time_claim(claims, "exp"),
            claims={name: value for name, value in claims.items()
                    if name not in RESERVED_CLAIMS},
        )
