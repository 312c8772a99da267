"""
auth/errors.py -- Failure taxonomy for credentials and session tokens.

Two families:

  TokenError (internal): why TokenService.parse() rejected a token.
      MalformedToken    -- the structure cannot be decoded
      InvalidSignature  -- decodes, but the MAC does not verify
      ExpiredToken      -- MAC verifies, but "exp" is in the past
      These are kept apart for logs and tests. They never reach a client.

  AuthError (client-facing): every subclass maps to HTTP 401 with a fixed
      message. The API layer registers one exception handler for the base
      class, so adding a new auth failure never needs a new handler.
"""

from __future__ import annotations


class TokenError(Exception):
    kind = "invalid"


class MalformedToken(TokenError):
    kind = "malformed"


class InvalidSignature(TokenError):
    kind = "invalid_signature"


class ExpiredToken(TokenError):
    kind = "expired"


class AuthError(Exception):
    status_code = 401
    message = "Unauthorized"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)


class CredentialMismatch(AuthError):
    """Existing username, wrong password."""

    message = "Invalid username or password"


class MissingToken(AuthError):
    message = "Missing token"


class InvalidToken(AuthError):
    """Any TokenError, collapsed. The original is kept on .reason."""

    message = "Invalid token"

    def __init__(self, reason: TokenError | None = None) -> None:
        super().__init__(reason.kind if reason is not None else None)
        self.reason = reason
