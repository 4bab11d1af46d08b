from __future__ import annotations

from vidtube.services.credentials import hash_password, verify_password


def test_hash_is_salted_and_not_plaintext() -> None:
    first = hash_password("correct horse")
    second = hash_password("correct horse")
    assert first != "correct horse"
    assert first != second
    assert first.startswith("$2")


def test_verify_matches_only_the_hashed_password() -> None:
    hashed = hash_password("correct horse")
    assert verify_password("correct horse", hashed) is True
    assert verify_password("correct horsf", hashed) is False
    assert verify_password("", hashed) is False


def test_verify_returns_false_for_unreadable_hash() -> None:
    assert verify_password("anything", "not-a-bcrypt-hash") is False
    assert verify_password("anything", "") is False
