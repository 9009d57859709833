"""Relational :class:`Storage` backed by SQLAlchemy sessions."""
import logging
from contextlib import contextmanager
from typing import Iterator, List

from sqlalchemy import func
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import AccountRow, GymRow, RatingRow, utcnow

from ..credentials import hash_password
from ..errors import (
    ConstraintViolationError, DuplicateError, NotFoundError,
    StoreUnavailableError,
)
from ..models import Account, Gym, Rating, as_utc
from .base import Storage, check_name_length, check_rating_value, valid_id


def _is_unique_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig).lower()
    return 'unique' in text or 'duplicate' in text


def _to_gym(row: GymRow) -> Gym:
    return Gym(
        id=row.id,
        name=row.name,
        description=row.description or '',
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _to_rating(row: RatingRow) -> Rating:
    return Rating(
        id=row.id,
        gym_id=row.gym_id,
        rating=row.rating,
        user_name=row.user_name,
        review=row.review or '',
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _to_account(row: AccountRow) -> Account:
    return Account(
        id=row.id,
        user_name=row.username,
        password=row.password_hash,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SQLStorage(Storage):
    """Stores gyms, ratings and accounts in a relational database.

    Every public call opens its own session from *session_factory*, commits
    on success and rolls back on failure, so one instance can be shared by
    concurrent request threads.  Referential integrity (ratings pointing at
    live gyms, cascade on gym delete, unique usernames, the 1-5 range) is
    enforced by the schema declared in :mod:`database`; the rating range,
    name widths and id bounds are also checked up front, since a value that
    does not fit its column fails in the driver before any constraint runs.
    """

    def __init__(self, session_factory) -> None:
        """
        Args:
            session_factory: Zero-argument callable returning a SQLAlchemy
                :class:`~sqlalchemy.orm.Session`, usually the result of
                :func:`database.make_session_factory`.
        """
        self._session_factory = session_factory
        self._log = logging.getLogger(f'gymrate.storage.{type(self).__name__}')

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            self._log.info("Constraint violation: %s", exc.orig)
            if _is_unique_violation(exc):
                raise DuplicateError("Value already exists") from exc
            raise ConstraintViolationError(f"Constraint violation: {exc.orig}") from exc
        except (DataError, OverflowError) as exc:
            # Value does not fit its column (over-long text, out-of-range integer).
            db.rollback()
            self._log.info("Value rejected by database: %s", getattr(exc, "orig", exc))
            raise ConstraintViolationError("Value out of range for column") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            self._log.error("Database error: %s", exc)
            raise StoreUnavailableError("Database unavailable") from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Gyms
    # ------------------------------------------------------------------

    def create_gym(self, gym: Gym) -> Gym:
        check_name_length("Gym name", gym.name)
        with self._session() as db:
            row = GymRow(
                name=gym.name,
                description=gym.description,
                created_at=gym.created_at,
                updated_at=gym.updated_at,
            )
            db.add(row)
            db.flush()
            created = _to_gym(row)
        self._log.info("Created gym %d", created.id)
        return created

    def get_gym_by_id(self, gym_id: int) -> Gym:
        if not valid_id(gym_id):
            raise NotFoundError(f"Gym with ID {gym_id} not found")
        with self._session() as db:
            row = db.get(GymRow, gym_id)
            if row is None:
                raise NotFoundError(f"Gym with ID {gym_id} not found")
            return _to_gym(row)

    def get_gyms(self) -> List[Gym]:
        with self._session() as db:
            gyms = [_to_gym(row) for row in db.query(GymRow).order_by(GymRow.id).all()]
        # One aggregate query per gym; not batched.
        for gym in gyms:
            gym.rating = self.get_average_rating(gym.id)
        return gyms

    def update_gym(self, gym: Gym) -> Gym:
        if not valid_id(gym.id):
            raise NotFoundError(f"Gym with ID {gym.id} not found")
        check_name_length("Gym name", gym.name)
        with self._session() as db:
            row = db.get(GymRow, gym.id)
            if row is None:
                raise NotFoundError(f"Gym with ID {gym.id} not found")
            row.name = gym.name
            row.description = gym.description
            row.updated_at = utcnow()
            db.flush()
            updated = _to_gym(row)
        self._log.info("Updated gym %d", updated.id)
        return updated

    def delete_gym(self, gym_id: int) -> bool:
        if not valid_id(gym_id):
            self._log.info("Delete requested for missing gym %d", gym_id)
            return False
        with self._session() as db:
            # Bulk delete so the ON DELETE CASCADE on ratings does the work.
            deleted = db.query(GymRow).filter(GymRow.id == gym_id).delete(
                synchronize_session=False)
        if deleted:
            self._log.info("Gym with id %d successfully deleted", gym_id)
        else:
            self._log.info("Delete requested for missing gym %d", gym_id)
        return bool(deleted)

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    def create_rating(self, rating: Rating) -> Rating:
        check_rating_value(rating.rating)
        if not valid_id(rating.gym_id):
            raise ConstraintViolationError(f"Gym with ID {rating.gym_id} does not exist")
        with self._session() as db:
            row = RatingRow(
                gym_id=rating.gym_id,
                rating=rating.rating,
                user_name=rating.user_name,
                review=rating.review,
                created_at=rating.created_at,
                updated_at=rating.updated_at,
            )
            db.add(row)
            db.flush()
            created = _to_rating(row)
        self._log.info("Created rating %d for gym %d", created.id, created.gym_id)
        return created

    def get_average_rating(self, gym_id: int) -> float:
        if not valid_id(gym_id):
            return 0.0
        with self._session() as db:
            avg = db.query(func.coalesce(func.avg(RatingRow.rating), 0)).filter(
                RatingRow.gym_id == gym_id).scalar()
        return float(avg or 0)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> Account:
        check_name_length("Username", account.user_name)
        password_hash = hash_password(account.password)
        try:
            with self._session() as db:
                row = AccountRow(
                    username=account.user_name,
                    password_hash=password_hash,
                    created_at=account.created_at,
                    updated_at=account.updated_at,
                )
                db.add(row)
                db.flush()
                created = _to_account(row)
        except DuplicateError as exc:
            raise DuplicateError(f"Username {account.user_name!r} already exists") from exc
        self._log.info("Created account %d (%s)", created.id, created.user_name)
        return created

    def get_accounts(self) -> List[Account]:
        with self._session() as db:
            return [_to_account(row) for row in db.query(AccountRow).order_by(AccountRow.id).all()]

    def get_account_by_id(self, account_id: int) -> Account:
        if not valid_id(account_id):
            raise NotFoundError(f"Account with ID {account_id} not found")
        with self._session() as db:
            row = db.get(AccountRow, account_id)
            if row is None:
                raise NotFoundError(f"Account with ID {account_id} not found")
            return _to_account(row)

    def get_account_by_username(self, username: str) -> Account:
        with self._session() as db:
            row = db.query(AccountRow).filter(AccountRow.username == username).first()
            if row is None:
                raise NotFoundError(f"Account {username!r} not found")
            return _to_account(row)
