"""
Verification of ID tokens issued for a project.

A token is accepted only if it parses, is signed by one of the issuer's
current keys, and its claims name the configured project. See
:meth:`TokenVerifier.verify` for the checks and the order they run in.
"""
import logging
import time
from typing import Callable, Optional

import requests

from . import tokens
from .domain import Token
from .exceptions import AudienceMismatchError, ConfigurationError, \
    CustomTokenGivenError, EmptySubjectError, EmptyTokenError, \
    IssuerMismatchError, MissingKeyIDError, SubjectTooLongError, \
    TokenExpiredError, TokenNotYetValidError, UnsupportedAlgorithmError, \
    VerificationError
from .keys import KeyCache

log = logging.getLogger(__name__)

ISSUER_PREFIX = "https://securetoken.google.com/"
CUSTOM_TOKEN_AUDIENCE = (
    "https://identitytoolkit.googleapis.com/"
    "google.identity.identitytoolkit.v1.IdentityToolkit"
)
"""Audience of custom (minting) tokens, which are not ID tokens."""

MAX_SUBJECT_BYTES = 128


def validate_claims(token: Token, key_id: str, algorithm: str,
                    project_id: str, now: int) -> None:
    """
    Check a decoded token against the expected project.

    Checks run in a fixed order and the first failure is raised, so that a
    token from the wrong project is reported as such even if it has also
    expired.

    Raises
    ------
    :class:`.ClaimsError`
        The specific subclass names the failed check.

    """
    issuer = ISSUER_PREFIX + project_id
    if not key_id:
        if token.audience == CUSTOM_TOKEN_AUDIENCE:
            raise CustomTokenGivenError()
        raise MissingKeyIDError()
    if algorithm != "RS256":
        raise UnsupportedAlgorithmError(algorithm)
    if token.audience != project_id:
        raise AudienceMismatchError(project_id, token.audience)
    if token.issuer != issuer:
        raise IssuerMismatchError(issuer, token.issuer)
    if token.issued_at > now:
        raise TokenNotYetValidError(token.issued_at)
    if token.expires < now:
        raise TokenExpiredError(token.expires)
    if not token.subject:
        raise EmptySubjectError()
    if len(token.subject.encode("utf-8")) > MAX_SUBJECT_BYTES:
        raise SubjectTooLongError()


class TokenVerifier:
    """
    Verifies ID tokens for one project against a shared :class:`.KeyCache`.

    Parameters
    ----------
    project_id : str
        Expected ``aud``; also determines the expected ``iss``.
    key_cache : :class:`.KeyCache`
        Usually one instance per process, shared by all verifiers.
    session : :class:`requests.Session` or None
        Used to fetch keys when :meth:`verify` is not given one.
    clock : callable
        Returns the current time in epoch seconds.

    """

    def __init__(self, project_id: str, key_cache: KeyCache,
                 session: Optional[requests.Session] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.project_id = project_id
        self.key_cache = key_cache
        self.session = session
        self._clock = clock

    def verify(self, id_token: str,
               session: Optional[requests.Session] = None) -> Token:
        """
        Verify ``id_token`` and return the identity it asserts.

        Parameters
        ----------
        id_token : str
            Compact-serialized token, as sent by the client.
        session : :class:`requests.Session` or None
            HTTP session for a key refresh; defaults to the verifier's own.

        Returns
        -------
        :class:`.Token`
            With :attr:`.Token.uid` set to the subject.

        Raises
        ------
        :class:`.VerificationError`
            A subclass naming why the token was rejected.

        """
        if not self.project_id:
            raise ConfigurationError("project id not available")
        if not id_token:
            raise EmptyTokenError("id token must be a non-empty string")
        session = session or self.session
        if session is None:
            raise ConfigurationError("no HTTP session to fetch public keys with")

        try:
            parsed = tokens.parse(id_token)
            keys = self.key_cache.get_keys(session)
            tokens.verify_signature(parsed, keys)

            token = Token.from_claims(parsed.claims)
            validate_claims(token, parsed.key_id, parsed.algorithm,
                            self.project_id, int(self._clock()))
        except VerificationError as exc:
            log.info("Rejected ID token: %s", exc)
            raise

        token = token.model_copy(update={"uid": token.subject})
        log.debug("Verified ID token for uid %s", token.uid)
        return token
