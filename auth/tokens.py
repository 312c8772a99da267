"""
auth/tokens.py -- Signed, time-bounded session tokens.

Security design decisions:
  JWT: python-jose with HS256 (symmetric MAC). A token carries exactly two
       claims, "sub" (the user id as a string) and "exp" (unix seconds).
       Changing either one invalidates the signature.

  Secret: passed to TokenService at construction. Nothing in this module
       reads Settings or the environment, so tests can build a service with
       a known key and production builds exactly one in the lifespan.

  Clock: injectable. parse() checks "exp" against the service clock rather
       than letting jose compare against the wall clock, which keeps issue()
       and parse() on the same time source and makes expiry testable.

  Failure kinds: parse() raises MalformedToken, InvalidSignature or
       ExpiredToken. jose folds all of these into JWTError, so the structure
       is decoded first without verification to tell "cannot decode" apart
       from "decodes but the MAC is wrong".

  Signature encoding: base64url decoding ignores the unused low bits of the
       last character, so several spellings map to the same MAC bytes. Only
       the canonical spelling is accepted; any other is MalformedToken.

Layer rule: no imports from api/ or posts/.
"""

from __future__ import annotations

import hmac
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import jwt
from jose.exceptions import JWTClaimsError, JWTError
from jose.utils import base64url_decode, base64url_encode

from auth.errors import ExpiredToken, InvalidSignature, MalformedToken
from auth.models import SessionToken

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue and parse session tokens for a single process-wide secret."""

    def __init__(
        self,
        secret_key: str,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        self._secret_key = secret_key
        self.ttl = ttl
        self._clock = clock

    def issue(self, user_id: int) -> SessionToken:
        """Sign a token for user_id that expires ttl from now."""
        # JWT NumericDate is whole seconds; truncate so expires_at matches the claim.
        expires_at = (self._clock() + self.ttl).replace(microsecond=0)
        payload = {
            "sub": str(user_id),
            "exp": int(expires_at.timestamp()),
        }
        value = jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)
        return SessionToken(value=value, user_id=user_id, expires_at=expires_at)

    def parse(self, token: str) -> int:
        """Return the user id carried by a valid, unexpired token.

        Raises:
            MalformedToken:   token structure or claims cannot be decoded.
            InvalidSignature: structure is fine but the MAC does not verify.
            ExpiredToken:     MAC verifies but "exp" is in the past.
        """
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken(str(exc)) from exc
        _check_canonical_signature(token)

        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTClaimsError as exc:
            # Only reachable once the MAC has verified: jose checks claims
            # after the signature.
            raise MalformedToken(str(exc)) from exc
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        user_id = _parse_subject(claims.get("sub"))
        expires = claims.get("exp")
        if not isinstance(expires, int) or isinstance(expires, bool):
            raise MalformedToken("exp claim must be an integer")
        if expires < self._clock().timestamp():
            raise ExpiredToken("token expired")
        return user_id


def _parse_subject(sub: object) -> int:
    if not isinstance(sub, str) or not (sub.isascii() and sub.isdigit()):
        raise MalformedToken("sub claim must be a numeric string")
    return int(sub)


def _check_canonical_signature(token: str) -> None:
    segment = token.rsplit(".", 1)[-1].encode("ascii", errors="replace")
    try:
        canonical = base64url_encode(base64url_decode(segment))
    except (ValueError, TypeError) as exc:
        raise MalformedToken("signature is not valid base64url") from exc
    if not hmac.compare_digest(canonical, segment):
        raise MalformedToken("signature is not canonically encoded")
