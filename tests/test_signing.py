"""
Tests for HMAC request signing.
"""
import base64

from zapbroker.core.json_utils import loads
from zapbroker.infra.signing import SIGNATURE_HEADER, build_signed_request, sign, verify


def test_rfc4231_vector():
    sig = sign("Jefe", b"what do ya want for nothing?")
    assert base64.b64decode(sig).hex() == "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"


def test_signature_is_deterministic():
    body = b'{"api_key":"k","nonce":1}'
    assert sign("secret", body) == sign("secret", body)


def test_one_byte_changes_signature():
    assert sign("secret", b'{"nonce":1}') != sign("secret", b'{"nonce":2}')


def test_secret_changes_signature():
    body = b'{"nonce":1}'
    assert sign("secret-a", body) != sign("secret-b", body)


def test_verify():
    body = b'{"nonce":1}'
    assert verify("secret", body, sign("secret", body))
    assert not verify("secret", body + b" ", sign("secret", body))


def test_signed_request_signs_transmitted_bytes():
    req = build_signed_request("secret", {"api_key": "k", "nonce": 17, "token": "abc"})
    assert verify("secret", req.body, req.signature)
    assert req.headers == {SIGNATURE_HEADER: req.signature}
    # field order is preserved as given
    assert list(loads(req.body)) == ["api_key", "nonce", "token"]


def test_reordered_body_does_not_verify():
    req = build_signed_request("secret", {"api_key": "k", "nonce": 17})
    reordered = build_signed_request("secret", {"nonce": 17, "api_key": "k"}).body
    assert reordered != req.body
    assert not verify("secret", reordered, req.signature)
