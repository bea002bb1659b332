"""Utility classes and functions for :mod:`.services.store`."""

import logging
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, TypeVar

from flask import Flask
from retry.api import retry_call
from sqlalchemy.engine import Engine
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.orm.session import Session
from flask_sqlalchemy import SQLAlchemy

from ... import config
from ...context import get_setting
from ...exceptions import ConcurrencyConflict, SubmissionError
from .exceptions import StoreBaseException, TransactionFailed

logger = logging.getLogger(__name__)

T = TypeVar('T')


class SiteSQLAlchemy(SQLAlchemy):
    """SQLAlchemy integration for the site database."""

    def init_app(self, app: Flask) -> None:
        """Set default configuration."""
        app.config.setdefault(
            'SQLALCHEMY_DATABASE_URI',
            app.config.get('SUBMISSION_DATABASE_URI', 'sqlite://')
        )
        app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)
        super(SiteSQLAlchemy, self).init_app(app)


db: SQLAlchemy = SiteSQLAlchemy()


def current_engine() -> Engine:
    """Get/create :class:`.Engine` for this context."""
    return db.engine


def current_session() -> Session:
    """Get/create :class:`.Session` for this context."""
    return db.session()


@contextmanager
def transaction() -> Generator:
    """
    Context manager for database transaction.

    A version-token mismatch (another writer got there first) is raised as
    :class:`.ConcurrencyConflict`; workflow errors propagate unchanged.
    """
    session = current_session()
    try:
        yield session
        session.commit()
    except StaleDataError as e:
        logger.debug('Lost a write race, rolling back: %s', str(e))
        session.rollback()
        raise ConcurrencyConflict('Row was changed by another writer') from e
    except (StoreBaseException, SubmissionError) as e:
        logger.debug('Command failed, rolling back: %s', str(e))
        session.rollback()
        raise   # Propagate exceptions raised from this package.
    except Exception as e:
        logger.debug('Command failed, rolling back: %s', str(e))
        session.rollback()
        raise TransactionFailed('Failed to execute transaction') from e


def retry_on_conflict(func: Callable[..., T]) -> Callable[..., T]:
    """
    Retry a secondary write that loses a write race.

    Uses exponential backoff (initial delay doubling up to a cap). Must not
    wrap claim or publish writes: those fail fast instead.
    """
    @wraps(func)
    def inner(*args: Any, **kwargs: Any) -> T:
        return retry_call(
            func, fargs=args, fkwargs=kwargs,
            exceptions=ConcurrencyConflict,
            tries=get_setting('CONFLICT_RETRY_TRIES',
                              config.CONFLICT_RETRY_TRIES),
            delay=get_setting('CONFLICT_RETRY_DELAY',
                              config.CONFLICT_RETRY_DELAY),
            max_delay=get_setting('CONFLICT_RETRY_MAX_DELAY',
                                  config.CONFLICT_RETRY_MAX_DELAY),
            backoff=2,
            logger=logger
        )
    return inner
