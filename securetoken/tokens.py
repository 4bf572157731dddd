"""Parsing and signature checking of compact-serialized ID tokens."""

import json
import logging
from typing import Any, Dict, NamedTuple, Sequence

from jwt.algorithms import RSAAlgorithm
from jwt.utils import base64url_decode

from .exceptions import MalformedTokenError, SignatureVerificationError
from .keys import SigningKey

log = logging.getLogger(__name__)

RS256 = RSAAlgorithm(RSAAlgorithm.SHA256)


class ParsedToken(NamedTuple):
    """A token split into its parts, not yet trusted."""

    header: Dict[str, Any]
    claims: Dict[str, Any]
    signing_input: bytes
    signature: bytes

    @property
    def key_id(self) -> str:
        """The ``kid`` header, or an empty string."""
        kid = self.header.get("kid")
        return kid if isinstance(kid, str) else ""

    @property
    def algorithm(self) -> str:
        """The ``alg`` header, or an empty string."""
        alg = self.header.get("alg")
        return alg if isinstance(alg, str) else ""


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def _decode_object(segment: str, name: str) -> Dict[str, Any]:
    try:
        data = json.loads(base64url_decode(segment).decode("utf-8"),
                          parse_constant=_reject_constant)
    except ValueError as exc:
        raise MalformedTokenError(f"invalid token {name} encoding") from exc
    if not isinstance(data, dict):
        raise MalformedTokenError(f"token {name} is not a JSON object")
    return data


def parse(token: str) -> ParsedToken:
    """Split ``header.claims.signature`` and decode each segment."""
    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedTokenError(
            f"token has {len(segments)} segments; expected 3"
        )
    header_segment, claims_segment, signature_segment = segments
    header = _decode_object(header_segment, "header")
    claims = _decode_object(claims_segment, "claims")
    try:
        signature = base64url_decode(signature_segment)
    except ValueError as exc:
        raise MalformedTokenError("invalid token signature encoding") from exc
    signing_input = f"{header_segment}.{claims_segment}".encode("utf-8")
    return ParsedToken(header, claims, signing_input, signature)


def verify_signature(parsed: ParsedToken,
                     keys: Sequence[SigningKey]) -> SigningKey:
    """
    Find the key that signed ``parsed``.

    Every key is tried in order, regardless of the token's ``kid``; the
    issuer's key IDs are advisory.

    Returns
    -------
    :class:`.SigningKey`
        The first key whose RS256 signature check passes.

    Raises
    ------
    :class:`.SignatureVerificationError`
        When no key matches.

    """
    for key in keys:
        if RS256.verify(parsed.signing_input, key.public_key, parsed.signature):
            if key.key_id != parsed.key_id:
                log.debug("Token with kid %r verified by key %r",
                          parsed.key_id, key.key_id)
            return key
    raise SignatureVerificationError(
        parsed.key_id, tuple(key.key_id for key in keys)
    )
