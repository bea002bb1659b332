"""
Integration with the site database, where workflow state is persisted.

Every mutating workflow operation runs inside :func:`.util.transaction`. The
submission and publication tables carry a version token (see
:mod:`.store.models`), so a write based on a stale read is refused by the
database rather than silently overwriting a concurrent change. Callers that
must re-validate a precondition against the latest committed state should
load the row with ``for_update=True``; this refreshes any identity-mapped
copy and, on databases that support it, takes a row lock until the
transaction ends.

Post-commit side effects are recorded as :class:`.models.OutboxTask` rows in
the same transaction as the change that caused them (see :mod:`.tasks`).
"""

from functools import wraps
from typing import Any, Callable, Dict, Iterable, List, Optional

from flask import Flask
from retry import retry
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import selectinload

import logging

from ...domain.status import SubmissionStatus
from .exceptions import StoreBaseException, TransactionFailed, Unavailable, \
    NoSuchSubmission, NoSuchPublication, NoSuchGame
from .models import Base
from .util import transaction, current_session, current_engine, db, \
    retry_on_conflict
from . import models, load

logger = logging.getLogger(__name__)


def handle_operational_errors(func: Callable) -> Callable:
    """Catch SQLAlchemy OperationalErrors and raise :class:`.Unavailable`."""
    @wraps(func)
    def inner(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            raise Unavailable('Site database unavailable') from e
    return inner


@handle_operational_errors
def get_submission(submission_id: int,
                   for_update: bool = False) -> models.Submission:
    """
    Get the database row for a submission.

    Parameters
    ----------
    submission_id : int
    for_update : bool
        If ``True``, re-read the row from the database even if it is already
        present in the session, and lock it where the backend supports it.

    Raises
    ------
    :class:`.store.exceptions.NoSuchSubmission`

    """
    query = current_session().query(models.Submission) \
        .filter(models.Submission.id == submission_id)
    if for_update:
        query = query.populate_existing().with_for_update()
    row = query.one_or_none()
    if row is None:
        raise NoSuchSubmission(f'No submission with id {submission_id}')
    return row


@handle_operational_errors
def get_publication(publication_id: int,
                    for_update: bool = False) -> models.Publication:
    """
    Get the database row for a publication.

    Raises
    ------
    :class:`.store.exceptions.NoSuchPublication`

    """
    query = current_session().query(models.Publication) \
        .filter(models.Publication.id == publication_id)
    if for_update:
        query = query.populate_existing().with_for_update()
    row = query.one_or_none()
    if row is None:
        raise NoSuchPublication(f'No publication with id {publication_id}')
    return row


@handle_operational_errors
def get_game(game_id: int) -> models.Game:
    """Get a game, or raise :class:`.NoSuchGame`."""
    row = current_session().get(models.Game, game_id)
    if row is None:
        raise NoSuchGame(f'No game with id {game_id}')
    return row


@handle_operational_errors
def get_publications_for_game(game_id: int) -> List[models.Publication]:
    """Get every publication of a game, with class, goal and flags loaded."""
    return list(
        current_session().query(models.Publication)
        .options(selectinload(models.Publication.publication_class),
                 selectinload(models.Publication.game_goal),
                 selectinload(models.Publication.flags))
        .filter(models.Publication.game_id == game_id)
        .order_by(models.Publication.id)
    )


@handle_operational_errors
def movie_filename_exists(movie_file_name: str) -> bool:
    """Check whether a publication already uses ``movie_file_name``."""
    query = current_session().query(models.Publication.id) \
        .filter(models.Publication.movie_file_name == movie_file_name)
    return query.first() is not None


@retry(Unavailable, tries=3, delay=1)
@handle_operational_errors
def count_submissions(user_id: int) -> int:
    """Number of submissions ``user_id`` has submitted."""
    return current_session().query(models.Submission) \
        .filter(models.Submission.submitter_id == user_id) \
        .count()


@handle_operational_errors
def get_users_by_name(usernames: Iterable[str]) -> List[models.User]:
    """
    Get the users with the given names, in the order they were given.

    Names that do not belong to a user are skipped.
    """
    usernames = [name.strip() for name in usernames if name and name.strip()]
    if not usernames:
        return []
    rows = current_session().query(models.User) \
        .filter(models.User.username.in_(usernames))
    by_name = {row.username.lower(): row for row in rows}
    users: List[models.User] = []
    for name in usernames:
        user = by_name.get(name.lower())
        if user is not None and user not in users:
            users.append(user)
    return users


@handle_operational_errors
def get_user(user_id: int) -> Optional[models.User]:
    return current_session().get(models.User, user_id)


@handle_operational_errors
def get_system_by_code(code: str) -> Optional[models.GameSystem]:
    """Get a game system by its (case-insensitive) code."""
    if not code:
        return None
    return current_session().query(models.GameSystem) \
        .filter(models.GameSystem.code == code.upper()) \
        .one_or_none()


@handle_operational_errors
def get_default_frame_rate(system_id: int, region_code: str) \
        -> Optional[models.GameSystemFrameRate]:
    """The frame rate a system runs at by default in a region."""
    return current_session().query(models.GameSystemFrameRate) \
        .filter(models.GameSystemFrameRate.game_system_id == system_id) \
        .filter(models.GameSystemFrameRate.region_code == region_code) \
        .order_by(models.GameSystemFrameRate.id) \
        .first()


def _find_frame_rate(system_id: int, frame_rate: float,
                     region_code: str) -> Optional[models.GameSystemFrameRate]:
    return current_session().query(models.GameSystemFrameRate) \
        .filter(models.GameSystemFrameRate.game_system_id == system_id) \
        .filter(models.GameSystemFrameRate.frame_rate == frame_rate) \
        .filter(models.GameSystemFrameRate.region_code == region_code) \
        .one_or_none()


@handle_operational_errors
def find_or_create_frame_rate(system_id: int, frame_rate: float,
                              region_code: str) -> models.GameSystemFrameRate:
    """
    Get the frame rate row for an exact system/rate/region triple.

    The row is created if it does not exist. Creation happens in a savepoint:
    if a concurrent writer created the same triple first, the unique
    constraint rejects our insert and we use their row instead.
    """
    session = current_session()
    row = _find_frame_rate(system_id, frame_rate, region_code)
    if row is not None:
        return row
    try:
        with session.begin_nested():
            row = models.GameSystemFrameRate(game_system_id=system_id,
                                             frame_rate=frame_rate,
                                             region_code=region_code)
            session.add(row)
    except IntegrityError:
        logger.debug('Frame rate %s/%s/%s created concurrently',
                     system_id, frame_rate, region_code)
        row = _find_frame_rate(system_id, frame_rate, region_code)
        if row is None:
            raise
    return row


def append_history(submission_id: int, status: SubmissionStatus) -> None:
    """Record that a submission is leaving ``status``."""
    current_session().add(
        models.SubmissionStatusHistory(submission_id=submission_id,
                                       status=status)
    )


def get_history(submission_id: int) -> List[models.SubmissionStatusHistory]:
    return list(
        current_session().query(models.SubmissionStatusHistory)
        .filter(models.SubmissionStatusHistory.submission_id == submission_id)
        .order_by(models.SubmissionStatusHistory.id)
    )


def add_outbox_task(kind: str, payload: Dict[str, Any]) -> models.OutboxTask:
    """Queue a post-commit side effect in the current transaction."""
    task = models.OutboxTask(kind=kind, payload=payload,
                             status=models.OutboxTask.PENDING, attempts=0)
    current_session().add(task)
    return task


def init_app(app: Flask) -> None:
    """Register the SQLAlchemy extension to an application."""
    db.init_app(app)

    @app.teardown_request
    def teardown_request(exception):
        if exception:
            db.session.rollback()
        db.session.remove()


def create_all() -> None:
    """Create all tables in the database."""
    Base.metadata.create_all(current_engine())


def drop_all() -> None:
    """Drop all tables in the database."""
    Base.metadata.drop_all(current_engine())
