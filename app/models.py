"""Domain entities and request shapes.

Entities are plain data.  ``to_dict`` produces the JSON wire form (camelCase
keys, ISO-8601 UTC timestamps); ``from_json`` on the request classes checks
the decoded body and raises :class:`~app.errors.DecodeError` on bad input.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .errors import DecodeError

# Column width of gym names and usernames.
MAX_NAME_LENGTH = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass
class Gym:
    name: str
    description: str = ''
    id: int = 0
    rating: float = 0.0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'rating': float(self.rating),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


@dataclass
class Rating:
    gym_id: int
    rating: int
    user_name: str
    review: str = ''
    id: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'gymId': self.gym_id,
            'rating': self.rating,
            'userName': self.user_name,
            'review': self.review,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


@dataclass
class Account:
    """A user account.

    ``password`` holds the plaintext only between construction and
    ``Storage.create_account``; every account returned by storage carries
    the hash instead.  It is never part of :meth:`to_dict`.
    """

    user_name: str
    password: str = field(default='', repr=False)
    id: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'userName': self.user_name,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


# ---------------------------------------------------------------------------
# Request shapes
# ---------------------------------------------------------------------------

def _require_object(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError("Request body must be a JSON object")
    return data


def _required_str(data: Dict[str, Any], *keys: str, max_length: Optional[int] = None) -> str:
    for key in keys:
        if key in data and data[key] is not None:
            value = data[key]
            if not isinstance(value, str):
                raise DecodeError(f"{keys[0]} must be a string")
            if not value.strip():
                raise DecodeError(f"{keys[0]} must not be empty")
            if max_length is not None and len(value) > max_length:
                raise DecodeError(f"{keys[0]} must be at most {max_length} characters")
            return value
    raise DecodeError(f"{keys[0]} is required")


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError(f"{key} must be a string")
    return value


@dataclass
class CreateGymRequest:
    name: str
    description: str = ''

    @classmethod
    def from_json(cls, data: Any) -> 'CreateGymRequest':
        data = _require_object(data)
        return cls(
            name=_required_str(data, 'name', max_length=MAX_NAME_LENGTH),
            description=_optional_str(data, 'description') or '',
        )

    def to_gym(self) -> Gym:
        return Gym(name=self.name, description=self.description)


@dataclass
class UpdateGymRequest:
    """Partial update; ``None`` means "leave unchanged"."""
    name: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> 'UpdateGymRequest':
        data = _require_object(data)
        name = None
        if data.get('name') is not None:
            name = _required_str(data, 'name', max_length=MAX_NAME_LENGTH)
        request = cls(name=name, description=_optional_str(data, 'description'))
        if request.name is None and request.description is None:
            raise DecodeError("Nothing to update: provide name and/or description")
        return request


@dataclass
class CreateRatingRequest:
    rating: int
    review: str = ''

    @classmethod
    def from_json(cls, data: Any) -> 'CreateRatingRequest':
        data = _require_object(data)
        rating = data.get('rating')
        if rating is None:
            raise DecodeError("rating is required (1-5)")
        # bool is an int subclass; reject it explicitly.
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise DecodeError("rating must be an integer")
        return cls(rating=rating, review=_optional_str(data, 'review') or '')


@dataclass
class CreateAccountRequest:
    user_name: str
    password: str = field(repr=False)

    @classmethod
    def from_json(cls, data: Any) -> 'CreateAccountRequest':
        data = _require_object(data)
        return cls(
            user_name=_required_str(data, 'userName', 'username', max_length=MAX_NAME_LENGTH),
            password=_required_str(data, 'password'),
        )

    def to_account(self) -> Account:
        return Account(user_name=self.user_name, password=self.password)


@dataclass
class LoginRequest:
    username: str
    password: str = field(repr=False)

    @classmethod
    def from_json(cls, data: Any) -> 'LoginRequest':
        data = _require_object(data)
        return cls(
            username=_required_str(data, 'username', 'userName'),
            password=_required_str(data, 'password'),
        )
