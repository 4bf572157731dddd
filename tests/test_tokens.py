import pytest

from conftest import sign
from securetoken import tokens
from securetoken.exceptions import MalformedTokenError, \
    SignatureVerificationError
from securetoken.keys import SigningKey


@pytest.fixture
def signing_keys(private_key, other_private_key):
    return (
        SigningKey("old", other_private_key.public_key()),
        SigningKey("k1", private_key.public_key()),
    )


def test_parse(private_key, claims):
    parsed = tokens.parse(sign(private_key, claims))
    assert parsed.key_id == "k1"
    assert parsed.algorithm == "RS256"
    assert parsed.claims == claims
    assert parsed.signature


def test_parse_missing_header_values(private_key, claims):
    parsed = tokens.parse(sign(private_key, claims, kid=None))
    assert parsed.key_id == ""


@pytest.mark.parametrize("token", [
    "abc",
    "a.b",
    "a.b.c.d",
    "!!!.e30.sig",
    "e30.!!!.sig",
    "bm90IGpzb24.e30.c2ln",     # header is "not json"
    "WzFd.e30.c2ln",            # header is [1]
    "e30.WzFd.c2ln",            # claims are [1]
])
def test_parse_malformed(token):
    with pytest.raises(MalformedTokenError):
        tokens.parse(token)


def test_verify_signature_tries_every_key(private_key, claims, signing_keys):
    parsed = tokens.parse(sign(private_key, claims, kid="unknown"))
    key = tokens.verify_signature(parsed, signing_keys)
    assert key.key_id == "k1"


def test_verify_signature_no_match(other_private_key, private_key, claims):
    parsed = tokens.parse(sign(other_private_key, claims, kid="k1"))
    with pytest.raises(SignatureVerificationError) as excinfo:
        tokens.verify_signature(
            parsed, (SigningKey("k1", private_key.public_key()),))
    assert excinfo.value.key_id == "k1"
    assert excinfo.value.tried == ("k1",)


def test_verify_signature_tampered_claims(private_key, claims, signing_keys):
    header, _, signature = sign(private_key, claims).split(".")
    forged = sign(private_key, dict(claims, sub="admin")).split(".")[1]
    parsed = tokens.parse(".".join([header, forged, signature]))
    with pytest.raises(SignatureVerificationError):
        tokens.verify_signature(parsed, signing_keys)


def test_verify_signature_empty_key_set(private_key, claims):
    parsed = tokens.parse(sign(private_key, claims))
    with pytest.raises(SignatureVerificationError):
        tokens.verify_signature(parsed, ())
