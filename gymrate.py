#!/usr/bin/env python3
"""
GymRate - gyms, ratings and accounts over a small JSON API.

This module holds the pieces every other layer needs at startup: the
:class:`Config` object built once from the environment and the logging setup.
Nothing here touches the database or the web framework.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def setup_logging(level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """Configure the root GymRate logger.

    Args:
        level:    Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path of an additional log file.  The parent
                  directory is created when missing.

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logger = logging.getLogger('gymrate')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    if log_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.FileHandler(log_file)
        fh.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        logger.addHandler(fh)
    logger.setLevel(numeric)
    return logger


logger = logging.getLogger('gymrate')


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def _env(name: str, fallback: str) -> str:
    value = os.getenv(name)
    return fallback if value is None else value


def _env_int(name: str, fallback: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return fallback
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, fallback)
        return fallback


@dataclass
class Config:
    """Runtime settings, constructed once and handed to each component.

    ``database_url`` is any SQLAlchemy URL.  ``jwt_secret`` may be ``None``,
    in which case the service starts but refuses to issue or check tokens.
    """

    database_url: str
    jwt_secret: Optional[str] = None
    jwt_ttl_seconds: int = 900
    db_timeout_seconds: int = 5
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    host: str = '0.0.0.0'
    port: int = 8000

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'Config':
        """Build a :class:`Config` from environment variables.

        A ``.env`` file is loaded first (values already present in the
        environment win).  ``DATABASE_URL`` takes precedence over the
        individual ``DB_*`` variables.
        """
        load_dotenv(dotenv_path)

        database_url = os.getenv('DATABASE_URL')
        if not database_url:
            database_url = build_postgres_url(
                user=_env('DB_USER', 'postgres'),
                password=_env('DB_PASSWORD', 'gogym'),
                name=_env('DB_NAME', 'postgres'),
                host=_env('DB_HOST', 'localhost'),
                port=_env('DB_PORT', '5432'),
            )

        return cls(
            database_url=database_url,
            jwt_secret=os.getenv('JWT_SECRET') or None,
            jwt_ttl_seconds=_env_int('JWT_TTL_SECONDS', 900),
            db_timeout_seconds=_env_int('DB_TIMEOUT_SECONDS', 5),
            log_level=_env('GYMRATE_LOG_LEVEL', 'INFO'),
            log_file=os.getenv('GYMRATE_LOG_FILE') or None,
            host=_env('GYMRATE_HOST', '0.0.0.0'),
            port=_env_int('GYMRATE_PORT', 8000),
        )


def build_postgres_url(user: str, password: str, name: str,
                       host: str = 'localhost', port: str = '5432') -> str:
    """Return a ``postgresql://`` URL with the credentials URL-quoted."""
    return (
        f"postgresql://{quote_plus(user)}:{quote_plus(password)}"
        f"@{host}:{port}/{name}"
    )
