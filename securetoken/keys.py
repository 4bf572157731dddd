"""
Cache of the token issuer's public signing keys.

The issuer publishes its current certificates as a JSON object mapping key IDs
to PEM-encoded X.509 certificates, and says how long they may be cached with a
``Cache-Control: max-age=N`` response header. :class:`KeyCache` holds the
parsed keys until that window closes and then fetches them again.

One :class:`KeyCache` is meant to be created at process start and shared by
every :class:`.TokenVerifier`. Its lock is held across "check expiry, refresh
if needed, return snapshot", so concurrent callers hitting an expired cache
trigger a single fetch and then all observe the new keys.

To use it directly:

.. code-block:: python

   import requests
   from securetoken.keys import KeyCache

   cache = KeyCache()
   keys = cache.get_keys(requests.Session())

"""
import logging
import re
import time
from threading import Lock
from typing import Callable, NamedTuple, Optional, Tuple

import requests
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from .exceptions import FetchError, KeyCacheError, KeyParseError, \
    MissingTTLError

log = logging.getLogger(__name__)

PUBLIC_KEY_URL = ("https://www.googleapis.com/robot/v1/metadata/x509/"
                  "securetoken@system.gserviceaccount.com")
"""Where the issuer publishes the certificates for its ID token keys."""

_DECIMAL = re.compile(r"[+-]?[0-9]+")


class SigningKey(NamedTuple):
    """An issuer public key and the ID it is published under."""

    key_id: str
    public_key: RSAPublicKey


class RefreshResult(NamedTuple):
    """Outcome of one attempt to fetch the key set.

    Exactly one of ``keys`` and ``error`` is meaningful: ``error`` is None on
    success.
    """

    keys: Tuple[SigningKey, ...] = ()
    max_age: int = 0
    error: Optional[KeyCacheError] = None


def parse_public_key(key_id: str, pem: str) -> SigningKey:
    """Extract the RSA public key from a PEM-encoded X.509 certificate."""
    try:
        cert = x509.load_pem_x509_certificate(pem.encode("utf-8"))
    except ValueError as exc:
        log.debug("Certificate for kid %s does not parse: %s", key_id, exc)
        raise KeyParseError(
            f"invalid certificate for key {key_id!r}: {exc}"
        ) from exc
    public_key = cert.public_key()
    if not isinstance(public_key, RSAPublicKey):
        log.debug("Certificate for kid %s holds a %s", key_id,
                  type(public_key).__name__)
        raise KeyParseError(f"certificate for key {key_id!r} is not an RSA key")
    return SigningKey(key_id, public_key)


def parse_public_keys(response: requests.Response) -> Tuple[SigningKey, ...]:
    """Parse every certificate in a key-distribution response body.

    All-or-nothing: one bad certificate fails the whole set.
    """
    try:
        data = response.json()
    except ValueError as exc:
        raise KeyParseError(f"public keys response is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise KeyParseError("public keys response is not a JSON object")
    keys = []
    for key_id, pem in data.items():
        if not isinstance(pem, str):
            raise KeyParseError(f"certificate for key {key_id!r} is not a string")
        keys.append(parse_public_key(key_id, pem))
    return tuple(keys)


def find_max_age(cache_control: Optional[str]) -> int:
    """
    Get the ``max-age`` seconds from a ``Cache-Control`` header value.

    The first ``max-age=`` directive wins; the directive name is matched
    case-sensitively.

    Raises
    ------
    :class:`.MissingTTLError`
        If there is no such directive, or its value is not a non-negative
        integer.

    """
    for directive in (cache_control or "").split(","):
        directive = directive.strip()
        if directive.startswith("max-age="):
            value = directive[len("max-age="):]
            if not _DECIMAL.fullmatch(value):
                raise MissingTTLError(
                    f"invalid max-age in Cache-Control: {value!r}"
                )
            seconds = int(value)
            if seconds < 0:
                raise MissingTTLError(f"negative max-age in Cache-Control: {seconds}")
            return seconds
    raise MissingTTLError("could not find expiry time from HTTP headers")


def fetch_keys(session: requests.Session, url: str = PUBLIC_KEY_URL,
               timeout: Optional[float] = None) -> Tuple[Tuple[SigningKey, ...], int]:
    """
    Fetch and parse the current key set.

    Returns
    -------
    tuple
        The parsed keys and the number of seconds they may be cached.

    Raises
    ------
    :class:`.FetchError`
        Network failure or a non-200 response.
    :class:`.KeyParseError`
        The body is not a JSON object of PEM certificates holding RSA keys.
    :class:`.MissingTTLError`
        No usable ``max-age`` in the response's ``Cache-Control``.

    """
    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"failed to retrieve public keys: {exc}") from exc
    if response.status_code != 200:
        raise FetchError(
            f"invalid response ({response.status_code}) while retrieving"
            f" public keys: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )
    keys = parse_public_keys(response)
    max_age = find_max_age(response.headers.get("Cache-Control"))
    return keys, max_age


def refresh(session: requests.Session, url: str = PUBLIC_KEY_URL,
            timeout: Optional[float] = None) -> RefreshResult:
    """Attempt a fetch, reporting failure as a value instead of raising."""
    try:
        keys, max_age = fetch_keys(session, url, timeout)
    except KeyCacheError as exc:
        return RefreshResult(error=exc)
    return RefreshResult(keys=keys, max_age=max_age)


class KeyCache:
    """
    Thread-safe holder of the issuer's current signing keys.

    Parameters
    ----------
    url : str
        Key-distribution endpoint.
    timeout : float or None
        Passed to ``session.get``; None leaves timeouts to the session.
    clock : callable
        Returns the current time in epoch seconds.

    """

    def __init__(self, url: str = PUBLIC_KEY_URL,
                 timeout: Optional[float] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.url = url
        self.timeout = timeout
        self._clock = clock
        self._lock = Lock()
        self._keys: Tuple[SigningKey, ...] = ()
        self._expires_at = 0.0

    @property
    def expires_at(self) -> float:
        """When the current key set goes stale, in epoch seconds."""
        return self._expires_at

    def get_keys(self, session: requests.Session) -> Tuple[SigningKey, ...]:
        """
        Get the current keys, refreshing them first if they have expired.

        If a refresh fails but keys from an earlier refresh are held, those
        are returned instead of raising.

        Raises
        ------
        :class:`.KeyCacheError`
            Only when no key set has ever been fetched successfully.

        """
        with self._lock:
            if self._keys and self._clock() < self._expires_at:
                return self._keys

            result = refresh(session, self.url, self.timeout)
            if result.error is None:
                self._keys = result.keys
                self._expires_at = self._clock() + result.max_age
                log.info("Refreshed %d public keys, valid for %d seconds",
                         len(result.keys), result.max_age)
                return self._keys

            if self._keys:
                log.warning("Public key refresh failed, using stale keys: %s",
                            result.error)
                return self._keys
            raise result.error
