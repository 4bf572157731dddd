"""Exceptions."""

from typing import Optional, Tuple


VERIFY_TOKEN_DOCS = (
    "see https://firebase.google.com/docs/auth/admin/verify-id-tokens for"
    " details on how to retrieve a valid ID token"
)
PROJECT_ID_HINT = (
    "make sure the ID token comes from the same Firebase project as the"
    " credential used to authenticate this SDK"
)


class VerificationError(RuntimeError):
    """Base class for every reason an ID token can be rejected."""


class ConfigurationError(VerificationError):
    """The verifier is missing required configuration (e.g. project ID)."""


class EmptyTokenError(VerificationError):
    """An empty string was passed where an ID token was expected."""


class KeyCacheError(VerificationError):
    """The issuer's signing keys could not be obtained."""


class FetchError(KeyCacheError):
    """The key-distribution endpoint could not be reached or returned non-200."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class KeyParseError(KeyCacheError):
    """The key-distribution response held an unusable certificate."""


class MissingTTLError(KeyCacheError):
    """The key-distribution response carried no usable max-age directive."""


class MalformedTokenError(VerificationError):
    """The token is not a valid three-segment compact serialization."""


class SignatureVerificationError(VerificationError):
    """No cached signing key validates the token's signature."""

    def __init__(self, key_id: str, tried: Tuple[str, ...] = ()) -> None:
        super().__init__(
            f"failed to verify token signature; kid = {key_id!r},"
            f" tried keys {list(tried)}"
        )
        self.key_id = key_id
        self.tried = tried


class ClaimsError(VerificationError):
    """The token is authentic but violates the expected claims."""


class CustomTokenGivenError(ClaimsError):
    """A custom (minting) token was passed instead of an ID token."""

    def __init__(self) -> None:
        super().__init__("expected an ID token but got a custom token")


class MissingKeyIDError(ClaimsError):
    """The token header has no ``kid``."""

    def __init__(self) -> None:
        super().__init__("ID token has no 'kid' header")


class UnsupportedAlgorithmError(ClaimsError):
    """The token header names an algorithm other than RS256."""

    def __init__(self, algorithm: str) -> None:
        super().__init__(
            f"ID token has invalid algorithm; expected 'RS256' but got"
            f" {algorithm!r}; {VERIFY_TOKEN_DOCS}"
        )
        self.algorithm = algorithm


class _MismatchError(ClaimsError):
    claim = ""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"ID token has invalid {self.claim} claim; expected {expected!r}"
            f" but got {actual!r}; {PROJECT_ID_HINT}; {VERIFY_TOKEN_DOCS}"
        )
        self.expected = expected
        self.actual = actual


class AudienceMismatchError(_MismatchError):
    """The ``aud`` claim is not the configured project ID."""

    claim = "'aud' (audience)"


class IssuerMismatchError(_MismatchError):
    """The ``iss`` claim is not the issuer URL of the configured project."""

    claim = "'iss' (issuer)"


class TokenNotYetValidError(ClaimsError):
    """The ``iat`` claim lies in the future."""

    def __init__(self, issued_at: int) -> None:
        super().__init__(f"ID token issued at future timestamp: {issued_at}")
        self.issued_at = issued_at


class TokenExpiredError(ClaimsError):
    """The ``exp`` claim lies in the past."""

    def __init__(self, expires: int) -> None:
        super().__init__(f"ID token has expired at: {expires}")
        self.expires = expires


class EmptySubjectError(ClaimsError):
    """The ``sub`` claim is missing or empty."""

    def __init__(self) -> None:
        super().__init__(
            f"ID token has empty 'sub' (subject) claim; {VERIFY_TOKEN_DOCS}"
        )


class SubjectTooLongError(ClaimsError):
    """The ``sub`` claim exceeds 128 bytes."""

    def __init__(self) -> None:
        super().__init__(
            "ID token has a 'sub' (subject) claim longer than 128 characters;"
            f" {VERIFY_TOKEN_DOCS}"
        )
