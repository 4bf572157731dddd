"""Special pytest fixture configuration file.

This file automatically provides all fixtures defined in it to all
pytest tests in this directory and sub directories.

Keys and certificates are generated fresh for the test session; tokens are
signed with PyJWT the same way the real issuer signs them. No test talks to
the network: the HTTP session is a mock whose ``get`` returns real
``requests.Response`` objects.
"""
import datetime
import json
from typing import Optional

import jwt
import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID
from jwt.algorithms import RSAAlgorithm
from jwt.utils import base64url_encode

from securetoken.keys import KeyCache

PROJECT_ID = "proj1"
NOW = 1_700_000_000


def make_cert(private_key) -> str:
    """A self-signed PEM certificate for ``private_key``'s public key."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken")])
    start = datetime.datetime(2020, 1, 1)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(start)
        .not_valid_after(start + datetime.timedelta(days=3650))
        .sign(private_key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM).decode("utf-8")


def make_response(status_code: int = 200, body="",
                  cache_control: Optional[str] = "public, max-age=3600"):
    """A real ``requests.Response``, as the key endpoint would return."""
    response = requests.Response()
    response.status_code = status_code
    if not isinstance(body, str):
        body = json.dumps(body)
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    if cache_control is not None:
        response.headers["Cache-Control"] = cache_control
    return response


def sign(private_key, claims: dict, kid: Optional[str] = "k1",
         alg: str = "RS256") -> str:
    """Sign ``claims`` with RS256, whatever ``alg`` the header claims."""
    headers = {"alg": alg, "typ": "JWT"}
    if kid is not None:
        headers["kid"] = kid
    if alg == "RS256":
        return jwt.encode(claims, private_key, algorithm="RS256",
                          headers=headers)
    # PyJWT refuses to sign with an algorithm other than the header's, so
    # build the segments by hand.
    segments = [
        base64url_encode(json.dumps(part, separators=(",", ":")).encode("utf-8"))
        for part in (headers, claims)
    ]
    signing_input = b".".join(segments)
    signature = RSAAlgorithm(RSAAlgorithm.SHA256).sign(signing_input,
                                                       private_key)
    return b".".join(segments + [base64url_encode(signature)]).decode("ascii")


@pytest.fixture(scope="session")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def cert(private_key):
    return make_cert(private_key)


@pytest.fixture(scope="session")
def other_cert(other_private_key):
    return make_cert(other_private_key)


class Clock:
    """Settable stand-in for ``time.time``."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def session(mocker, cert):
    """HTTP session serving ``{"k1": cert}`` with max-age=3600."""
    session = mocker.Mock(spec=requests.Session)
    session.get.return_value = make_response(200, {"k1": cert})
    return session


@pytest.fixture
def key_cache(clock):
    return KeyCache(clock=clock)


@pytest.fixture
def claims():
    return {
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "aud": PROJECT_ID,
        "sub": "user-42",
        "iat": NOW - 10,
        "exp": NOW + 3600,
    }
