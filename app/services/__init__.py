"""Services package: expose all concrete services from one import."""
from .account_service import AccountService
from .gym_service import GymService
from .token_service import TOKEN_HEADER, TokenService

__all__ = [
    'AccountService',
    'GymService',
    'TokenService',
    'TOKEN_HEADER',
]
