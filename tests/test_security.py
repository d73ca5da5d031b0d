import pytest

from olda.utils.security import hash_password, verify_password


def test_hash_is_salted_bcrypt():
    first = hash_password("123456")
    second = hash_password("123456")
    assert first.startswith("$2")
    assert first != second
    assert verify_password("123456", first)
    assert verify_password("123456", second)


def test_wrong_password_is_rejected():
    assert not verify_password("654321", hash_password("123456"))


@pytest.mark.parametrize("stored", ["", "pbkdf2_sha256$x$s$d", "not-a-hash", None])
def test_malformed_hash_is_rejected(stored):
    assert verify_password("123456", stored) is False
