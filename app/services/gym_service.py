"""Business logic for gyms and their ratings."""
import logging
from typing import List

from ..errors import NotFoundError, UnauthenticatedError
from ..models import (
    CreateGymRequest, CreateRatingRequest, Gym, Rating, UpdateGymRequest,
)
from ..repositories.base import Storage

logger = logging.getLogger('gymrate.services.gyms')


class GymService:
    """Composes storage calls for the gym endpoints.

    Rules
    -----
    * A gym's ``rating`` is always the live average of its ratings and is
      attached here, on read; it is never written back.
    * A new rating takes its ``user_name`` from the caller's account, never
      from the request body.
    """

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_gyms(self) -> List[Gym]:
        """Return every gym with its average rating."""
        return self._storage.get_gyms()

    def get_gym(self, gym_id: int) -> Gym:
        """Return one gym with its average rating.

        Raises:
            NotFoundError: No gym has *gym_id*.
        """
        gym = self._storage.get_gym_by_id(gym_id)
        gym.rating = self._storage.get_average_rating(gym_id)
        return gym

    def create_gym(self, request: CreateGymRequest) -> Gym:
        """Persist a new gym; its rating starts at ``0``."""
        return self._storage.create_gym(request.to_gym())

    def update_gym(self, gym_id: int, request: UpdateGymRequest) -> Gym:
        """Apply a partial update and return the gym with its rating.

        Raises:
            NotFoundError: No gym has *gym_id*.
        """
        gym = self._storage.get_gym_by_id(gym_id)
        if request.name is not None:
            gym.name = request.name
        if request.description is not None:
            gym.description = request.description
        updated = self._storage.update_gym(gym)
        updated.rating = self._storage.get_average_rating(gym_id)
        return updated

    def delete_gym(self, gym_id: int) -> bool:
        """Delete a gym and its ratings.  ``False`` if it did not exist."""
        return self._storage.delete_gym(gym_id)

    def rate_gym(self, account_id: int, gym_id: int,
                 request: CreateRatingRequest) -> Rating:
        """Record a rating for *gym_id* on behalf of *account_id*.

        Args:
            account_id: Caller identity resolved from the request token.
            gym_id:     Gym being rated.
            request:    Decoded rating body.

        Returns:
            The stored :class:`~app.models.Rating`.

        Raises:
            UnauthenticatedError: The token's account no longer exists.
            NotFoundError: No gym has *gym_id*.
            ConstraintViolationError: ``rating`` is outside 1-5.
        """
        try:
            account = self._storage.get_account_by_id(account_id)
        except NotFoundError:
            logger.info("Token refers to missing account %d", account_id)
            raise UnauthenticatedError("Account no longer exists")

        self._storage.get_gym_by_id(gym_id)

        rating = Rating(
            gym_id=gym_id,
            rating=request.rating,
            user_name=account.user_name,
            review=request.review,
        )
        return self._storage.create_rating(rating)
