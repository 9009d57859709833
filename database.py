#!/usr/bin/env python3
"""
Database models and configuration for GymRate.
Builds the SQLAlchemy engine from a :class:`gymrate.Config` and defines the
gyms, ratings and accounts tables.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text,
    create_engine, event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger('gymrate.database')

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GymRow(Base):
    """A rateable venue.  The average rating is never stored here."""
    __tablename__ = "gyms"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    ratings = relationship("RatingRow", back_populates="gym",
                           cascade="all, delete-orphan", passive_deletes=True)


class RatingRow(Base):
    """A 1-5 review of one gym by one user."""
    __tablename__ = "ratings"
    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='ck_ratings_rating_range'),
    )

    id = Column(Integer, primary_key=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    user_name = Column(String(100), nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    gym = relationship("GymRow", back_populates="ratings")


class AccountRow(Base):
    """Credentialed user; only the password hash is kept."""
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


TABLES = ('gyms', 'ratings', 'accounts')


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_config(config) -> Engine:
    """Create an engine for ``config.database_url``.

    Every connection gets a deadline of ``config.db_timeout_seconds``:
    PostgreSQL via ``connect_timeout`` and ``statement_timeout``, SQLite via
    the driver's lock timeout.  In-memory SQLite URLs share one connection
    so every session sees the same database.
    """
    url = config.database_url
    timeout = int(config.db_timeout_seconds)

    if url.startswith('sqlite'):
        kwargs = {'connect_args': {'check_same_thread': False, 'timeout': timeout}}
        if url in ('sqlite://', 'sqlite:///:memory:'):
            kwargs['poolclass'] = StaticPool
        engine = create_engine(url, echo=False, **kwargs)
        event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
    elif url.startswith('postgresql'):
        engine = create_engine(
            url,
            echo=False,
            pool_pre_ping=True,
            connect_args={
                'connect_timeout': timeout,
                'options': f'-c statement_timeout={timeout * 1000}',
            },
        )
    else:
        engine = create_engine(url, echo=False, pool_pre_ping=True)

    logger.debug("Created engine for %s", engine.url.render_as_string(hide_password=True))
    return engine


def make_session_factory(engine: Engine):
    """Return a ``sessionmaker`` bound to *engine*."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> bool:
    """Create any missing tables."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables initialized successfully")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


def drop_db(engine: Engine) -> bool:
    """Drop every GymRate table (ratings first, they reference gyms)."""
    try:
        Base.metadata.drop_all(bind=engine)
        logger.info("Database tables dropped")
        return True
    except Exception as e:
        logger.error(f"Failed to drop database tables: {e}")
        return False
