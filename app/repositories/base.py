"""Storage contract implemented by every persistence backend."""
from abc import ABC, abstractmethod
from typing import List

from ..credentials import verify_password
from ..errors import ConstraintViolationError
from ..models import MAX_NAME_LENGTH, Account, Gym, Rating

# Primary keys are 32-bit INTEGER columns.
MAX_ID = 2 ** 31 - 1


def valid_id(value: int) -> bool:
    """True when *value* can name a row; larger ids cannot exist."""
    return 1 <= value <= MAX_ID


def check_rating_value(value: int) -> None:
    if not 1 <= value <= 5:
        raise ConstraintViolationError("rating must be between 1 and 5")


def check_name_length(label: str, value: str) -> None:
    if len(value) > MAX_NAME_LENGTH:
        raise ConstraintViolationError(
            f"{label} must be at most {MAX_NAME_LENGTH} characters")


class Storage(ABC):
    """Persistence boundary between the HTTP layer and the database.

    All methods raise :class:`~app.errors.StorageError` subclasses:

    * :class:`~app.errors.NotFoundError` when a looked-up row is absent.
    * :class:`~app.errors.ConstraintViolationError` when a write breaks a
      constraint (unknown ``gym_id``, rating outside 1-5, ...);
      :class:`~app.errors.DuplicateError` for a taken username.
    * :class:`~app.errors.StoreUnavailableError` on connection failures.

    Each mutating call is a single-row unit of work; nothing here spans
    several entities in one transaction.
    """

    # ------------------------------------------------------------------
    # Gyms
    # ------------------------------------------------------------------

    @abstractmethod
    def create_gym(self, gym: Gym) -> Gym:
        """Persist *gym* and return the stored copy with its new ``id``."""

    @abstractmethod
    def get_gym_by_id(self, gym_id: int) -> Gym:
        """Return the gym, rating left at ``0``.  Raises NotFoundError."""

    @abstractmethod
    def get_gyms(self) -> List[Gym]:
        """Return every gym with ``rating`` set to its average."""

    @abstractmethod
    def update_gym(self, gym: Gym) -> Gym:
        """Store *gym*'s name and description.  Raises NotFoundError."""

    @abstractmethod
    def delete_gym(self, gym_id: int) -> bool:
        """Delete the gym and its ratings.

        Returns:
            ``True`` if a row was removed, ``False`` if none existed.
            A missing gym is not an error.
        """

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    @abstractmethod
    def create_rating(self, rating: Rating) -> Rating:
        """Persist *rating*.  The referenced gym must exist."""

    @abstractmethod
    def get_average_rating(self, gym_id: int) -> float:
        """Mean of the gym's ratings, ``0.0`` when it has none."""

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    @abstractmethod
    def create_account(self, account: Account) -> Account:
        """Hash ``account.password`` and persist the account.

        The returned account carries the hash in ``password``; the plaintext
        is not retained.
        """

    @abstractmethod
    def get_accounts(self) -> List[Account]:
        """Return every account."""

    @abstractmethod
    def get_account_by_id(self, account_id: int) -> Account:
        """Raises NotFoundError when absent."""

    @abstractmethod
    def get_account_by_username(self, username: str) -> Account:
        """Raises NotFoundError when absent."""

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def verify_credential(self, password: str, password_hash: str) -> bool:
        """Check *password* against a hash produced by :meth:`create_account`.

        Never raises on a mismatch.
        """
        return verify_password(password, password_hash)
