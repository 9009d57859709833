"""Issue and validate signed account tokens."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from ..errors import AuthConfigurationError, UnauthenticatedError
from ..models import Account

logger = logging.getLogger('gymrate.auth')

TOKEN_HEADER = 'x-jwt-token'
ALGORITHM = 'HS256'
ACCOUNT_CLAIM = 'accountID'


class TokenService:
    """Signs tokens that assert an account id, and verifies them.

    Tokens are HS256 JWTs with ``accountID``, ``iat`` and ``exp`` claims.
    Validation accepts only HS256, so a token re-signed with another
    algorithm (or ``none``) is rejected, and expiry is always enforced.
    There is no revocation: a token stays valid until ``exp``.
    """

    def __init__(self, secret: Optional[str], ttl_seconds: int = 900) -> None:
        """
        Args:
            secret:      HMAC signing key.  ``None`` or empty leaves the
                         service unable to issue or validate tokens.
            ttl_seconds: Lifetime of issued tokens.
        """
        self._secret = secret or None
        self._ttl = timedelta(seconds=ttl_seconds)

    @classmethod
    def from_config(cls, config) -> 'TokenService':
        return cls(config.jwt_secret, config.jwt_ttl_seconds)

    def _require_secret(self) -> str:
        if not self._secret:
            raise AuthConfigurationError("JWT secret is not configured")
        return self._secret

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def issue_token(self, account: Account) -> str:
        """Return a signed token for *account*.

        Raises:
            AuthConfigurationError: No signing secret is configured.
        """
        secret = self._require_secret()
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            ACCOUNT_CLAIM: account.id,
            'iat': now,
            'exp': now + self._ttl,
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def validate_token(self, token: Optional[str]) -> int:
        """Verify *token* and return the account id it carries.

        Raises:
            UnauthenticatedError: Token missing, malformed, tampered with,
                signed with another algorithm, expired, or without a usable
                ``accountID`` claim.
            AuthConfigurationError: No signing secret is configured.
        """
        if not token:
            raise UnauthenticatedError("Missing token")
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={'require': ['exp', ACCOUNT_CLAIM]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise UnauthenticatedError("Token has expired")
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected invalid token: %s", exc)
            raise UnauthenticatedError("Invalid token")

        account_id = payload.get(ACCOUNT_CLAIM)
        if isinstance(account_id, bool) or not isinstance(account_id, int):
            logger.info("Rejected token with malformed %s claim", ACCOUNT_CLAIM)
            raise UnauthenticatedError("Invalid token")
        return account_id
