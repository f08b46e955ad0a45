"""
tests/test_passwords.py -- Unit tests for auth/passwords.py.

Covers:
  - hash then verify with the same secret is True; any other secret is False
  - two hashes of the same secret differ (fresh salt) and both verify
  - the stored form never contains the plaintext
  - malformed hashes are a mismatch, not an error
"""

from __future__ import annotations

from auth.passwords import BCRYPT_ROUNDS, DUMMY_HASH, hash_secret, verify_secret


def test_hash_then_verify_round_trip():
    stored = hash_secret("correct horse")
    assert verify_secret("correct horse", stored) is True


def test_verify_rejects_other_secret():
    stored = hash_secret("correct horse")
    assert verify_secret("correct horsf", stored) is False
    assert verify_secret("", stored) is False


def test_same_secret_hashes_differently():
    first = hash_secret("abcde")
    second = hash_secret("abcde")
    assert first != second
    assert verify_secret("abcde", first)
    assert verify_secret("abcde", second)


def test_hash_does_not_contain_plaintext():
    stored = hash_secret("plaintext-marker")
    assert "plaintext-marker" not in stored


def test_hash_uses_fixed_cost_factor():
    # bcrypt format: $2b$<cost>$<salt+hash>
    assert hash_secret("abcde").split("$")[2] == str(BCRYPT_ROUNDS)


def test_malformed_hash_is_mismatch():
    assert verify_secret("abcde", "not-a-bcrypt-hash") is False


def test_dummy_hash_is_a_real_bcrypt_hash():
    assert DUMMY_HASH.startswith("$2")
    assert verify_secret("anything-else", DUMMY_HASH) is False
