"""
auth/passwords.py -- One-way salted hashing of user secrets (bcrypt).

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection trips bcrypt 4.x's 72-byte limit. Secrets longer than 72 UTF-8 bytes
never reach here; auth/accounts.validate_secret() rejects them as InvalidInput.

Cost factor is fixed at 12. Each hash_secret() call draws a fresh salt from
bcrypt.gensalt(), so hashing the same secret twice yields two different
strings that both verify.

Neither function logs its input.

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12


def hash_secret(secret: str) -> str:
    """Return a salted bcrypt hash of the given plaintext secret."""
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_secret(secret: str, secret_hash: str) -> bool:
    """Return True if the secret matches the hash.

    Any mismatch is False, never an error. bcrypt raises ValueError for a
    malformed hash or an over-long secret; both are treated as a mismatch.
    """
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), secret_hash.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash [C1].
# Computed once at import so the first login attempt is not measurably slower
# than later ones. Login runs verify_secret() against this when the email is
# unknown, so response time does not reveal which emails are registered.
DUMMY_HASH: str = hash_secret("inkwell_timing_dummy")
