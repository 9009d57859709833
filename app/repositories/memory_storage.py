"""In-process :class:`Storage` used by tests and local demos."""
import itertools
import logging
import threading
from dataclasses import replace
from typing import Dict, List

from ..credentials import hash_password
from ..errors import ConstraintViolationError, DuplicateError, NotFoundError
from ..models import Account, Gym, Rating, utcnow
from .base import Storage, check_name_length, check_rating_value


class InMemoryStorage(Storage):
    """Dict-backed storage that enforces the same invariants as the schema.

    * ratings must reference an existing gym and lie in 1-5;
    * gym names and usernames fit their 100-character columns;
    * deleting a gym drops its ratings;
    * usernames are unique.

    Returned entities are copies, so callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._gyms: Dict[int, Gym] = {}
        self._ratings: Dict[int, Rating] = {}
        self._accounts: Dict[int, Account] = {}
        self._gym_ids = itertools.count(1)
        self._rating_ids = itertools.count(1)
        self._account_ids = itertools.count(1)
        self._lock = threading.Lock()
        self._log = logging.getLogger(f'gymrate.storage.{type(self).__name__}')

    # ------------------------------------------------------------------
    # Gyms
    # ------------------------------------------------------------------

    def create_gym(self, gym: Gym) -> Gym:
        if not gym.name:
            raise ConstraintViolationError("Gym name is required")
        check_name_length("Gym name", gym.name)
        with self._lock:
            stored = replace(gym, id=next(self._gym_ids), rating=0.0)
            self._gyms[stored.id] = stored
        self._log.info("Created gym %d", stored.id)
        return replace(stored)

    def get_gym_by_id(self, gym_id: int) -> Gym:
        with self._lock:
            gym = self._gyms.get(gym_id)
            if gym is None:
                raise NotFoundError(f"Gym with ID {gym_id} not found")
            return replace(gym)

    def get_gyms(self) -> List[Gym]:
        with self._lock:
            gyms = [replace(g) for _, g in sorted(self._gyms.items())]
        for gym in gyms:
            gym.rating = self.get_average_rating(gym.id)
        return gyms

    def update_gym(self, gym: Gym) -> Gym:
        if not gym.name:
            raise ConstraintViolationError("Gym name is required")
        check_name_length("Gym name", gym.name)
        with self._lock:
            current = self._gyms.get(gym.id)
            if current is None:
                raise NotFoundError(f"Gym with ID {gym.id} not found")
            updated = replace(current, name=gym.name, description=gym.description,
                              updated_at=utcnow())
            self._gyms[gym.id] = updated
        self._log.info("Updated gym %d", gym.id)
        return replace(updated)

    def delete_gym(self, gym_id: int) -> bool:
        with self._lock:
            existed = self._gyms.pop(gym_id, None) is not None
            if existed:
                self._ratings = {
                    rid: r for rid, r in self._ratings.items() if r.gym_id != gym_id
                }
        return existed

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    def create_rating(self, rating: Rating) -> Rating:
        check_rating_value(rating.rating)
        with self._lock:
            if rating.gym_id not in self._gyms:
                raise ConstraintViolationError(
                    f"Gym with ID {rating.gym_id} does not exist")
            stored = replace(rating, id=next(self._rating_ids))
            self._ratings[stored.id] = stored
        return replace(stored)

    def get_average_rating(self, gym_id: int) -> float:
        with self._lock:
            values = [r.rating for r in self._ratings.values() if r.gym_id == gym_id]
        if not values:
            return 0.0
        return sum(values) / len(values)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> Account:
        check_name_length("Username", account.user_name)
        password_hash = hash_password(account.password)
        with self._lock:
            if any(a.user_name == account.user_name for a in self._accounts.values()):
                raise DuplicateError(f"Username {account.user_name!r} already exists")
            stored = replace(account, id=next(self._account_ids), password=password_hash)
            self._accounts[stored.id] = stored
        return replace(stored)

    def get_accounts(self) -> List[Account]:
        with self._lock:
            return [replace(a) for _, a in sorted(self._accounts.items())]

    def get_account_by_id(self, account_id: int) -> Account:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise NotFoundError(f"Account with ID {account_id} not found")
            return replace(account)

    def get_account_by_username(self, username: str) -> Account:
        with self._lock:
            for account in self._accounts.values():
                if account.user_name == username:
                    return replace(account)
        raise NotFoundError(f"Account {username!r} not found")
