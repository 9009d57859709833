"""Business logic for account signup, login and listing."""
import logging
from typing import List, Tuple

from ..errors import NotFoundError, UnauthenticatedError
from ..models import Account, CreateAccountRequest, LoginRequest
from ..repositories.base import Storage
from .token_service import TokenService

logger = logging.getLogger('gymrate.services.accounts')

INVALID_CREDENTIALS = "Invalid username or password"


class AccountService:
    """Wraps account storage and token issuance.

    Unknown usernames and wrong passwords produce the same error so a
    login attempt does not reveal which accounts exist.
    """

    def __init__(self, storage: Storage, tokens: TokenService) -> None:
        """
        Args:
            storage: Backend holding the accounts.
            tokens:  Issues the token returned by signup and login.
        """
        self._storage = storage
        self._tokens = tokens

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def sign_up(self, request: CreateAccountRequest) -> Tuple[Account, str]:
        """Create an account and issue its first token.

        Returns:
            ``(account, token)``.

        Raises:
            DuplicateError: The username is taken.
            AuthConfigurationError: No signing secret is configured.  The
                account has already been stored at that point.
        """
        account = self._storage.create_account(request.to_account())
        token = self._tokens.issue_token(account)
        logger.info("Issued token for new account %d", account.id)
        return account, token

    def login(self, request: LoginRequest) -> Tuple[str, int]:
        """Verify credentials and return ``(token, account_id)``.

        Raises:
            UnauthenticatedError: Unknown username or wrong password.
        """
        try:
            account = self._storage.get_account_by_username(request.username)
        except NotFoundError:
            logger.info("Login failed: unknown user %r", request.username)
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        if not self._storage.verify_credential(request.password, account.password):
            logger.info("Login failed: bad password for %r", request.username)
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        return self._tokens.issue_token(account), account.id

    def list_accounts(self) -> List[Account]:
        """Return every account (serialised without password hashes)."""
        return self._storage.get_accounts()
