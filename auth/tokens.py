"""
auth/tokens.py -- Stateless bearer tokens (JWT, HS256) for the JSON surface.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (user id as a string, as RFC 7519 requires), email, name, iat and
       exp. Lifetime defaults to one hour.

  Stateless: verify() never touches storage. Validity is purely signature +
       expiry, so there is no revocation -- a leaked token stays usable until
       exp. Accepted trade-off; there is no blacklist table.

  SECRET_KEY: passed in by the caller (the lifespan builds one service from
       Settings and stores it on app.state). Nothing here reads module-level
       config, and the key is never logged.

  Expiry: python-jose's own exp check is disabled and replaced by an explicit
       comparison against the service clock, so "now > exp" is decided in one
       place and tests can move time without sleeping.

Layer rule: no imports from api/, web/, or feed/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import BearerToken, Identity
from core.errors import SignatureInvalid, TokenExpired

logger = logging.getLogger("inkwell.auth")

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("sub", "email", "iat", "exp")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _has_canonical_signature(value: str) -> bool:
    """True if the signature segment re-encodes to itself.

    The last base64url character of an HMAC-SHA256 signature carries two
    padding bits the decoder ignores, so several spellings decode to the same
    bytes. Only the one encoding the issuer produced is accepted.
    """
    signature = value.rsplit(".", 1)[-1]
    try:
        raw = signature.encode("ascii")
        return base64url_encode(base64url_decode(raw)) == raw
    except ValueError:
        return False


class BearerTokenService:
    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = 3600,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret_key = secret_key
        self._expire_seconds = expire_seconds
        self._now = now

    @property
    def expire_seconds(self) -> int:
        return self._expire_seconds

    def issue(self, identity: Identity) -> BearerToken:
        """Encode a signed JWT for identity, valid for expire_seconds from now."""
        issued_at = self._now().replace(microsecond=0)
        expires_at = issued_at + timedelta(seconds=self._expire_seconds)
        payload = {
            "sub": str(identity.user_id),
            "email": identity.email,
            "name": identity.display_name,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        value = jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)
        return BearerToken(
            value=value,
            user_id=identity.user_id,
            email=identity.email,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def verify(self, value: str) -> Identity:
        """Return the Identity embedded in a token.

        Raises:
            SignatureInvalid: bad signature, malformed token, wrong algorithm,
                              or missing/ill-typed claims.
            TokenExpired:     signature fine, but now > exp.
        """
        if not _has_canonical_signature(value):
            raise SignatureInvalid("Token signature is invalid.")
        try:
            payload = jwt.decode(
                value,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise SignatureInvalid("Token signature is invalid.") from exc

        if any(claim not in payload for claim in _REQUIRED_CLAIMS):
            raise SignatureInvalid("Token is missing required claims.")
        try:
            user_id = int(payload["sub"])
            exp = int(payload["exp"])
        except (TypeError, ValueError) as exc:
            raise SignatureInvalid("Token claims are malformed.") from exc

        if self._now().timestamp() > exp:
            raise TokenExpired("Token has expired.")

        return Identity(user_id=user_id, email=payload["email"], display_name=payload.get("name") or "")
