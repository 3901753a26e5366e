"""Password hashing helpers."""

from gensheet.core.security import hash_password, verify_password


def test_hash_uses_pbkdf2_sha256_with_configured_rounds():
    hashed = hash_password("s3cret-pass")
    assert hashed.startswith("$pbkdf2-sha256$1000$")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_hashes_are_salted():
    assert hash_password("same") != hash_password("same")


def test_malformed_hash_never_matches():
    assert not verify_password("anything", "not-a-hash")
    assert not verify_password("anything", "")
