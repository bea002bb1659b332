"""Loading of workflow state, and the boundary of exposed operations."""

import traceback
from functools import wraps
from typing import Any, Callable, List, Type

import logging

from .domain.publication import Publication
from .domain.result import Failure, Result
from .domain.submission import Submission, StatusHistoryEntry
from .domain.util import as_utc
from .exceptions import NotFound, PreconditionFailed, ValidationFailed, \
    ConcurrencyConflict
from .services import store

logger = logging.getLogger(__name__)


def boundary(result_type: Type[Result]) -> Callable:
    """
    Convert everything an operation raises into a failed ``result_type``.

    Expected workflow errors become the matching :class:`.Failure`; a lost
    write race is reported as a failed precondition. Anything else is
    logged, and returned as :attr:`.Failure.UNEXPECTED` with the traceback
    as diagnostic detail.
    """
    def deco(func: Callable[..., Result]) -> Callable[..., Result]:
        @wraps(func)
        def inner(*args: Any, **kwargs: Any) -> Result:
            try:
                return func(*args, **kwargs)
            except NotFound as e:
                return result_type.failed(str(e), Failure.NOT_FOUND)
            except (PreconditionFailed, ConcurrencyConflict) as e:
                return result_type.failed(str(e),
                                          Failure.PRECONDITION_FAILED)
            except ValidationFailed as e:
                return result_type.failed(str(e), Failure.VALIDATION_FAILED)
            except Exception as e:
                logger.exception('Unexpected failure in %s', func.__name__)
                return result_type.failed(str(e) or type(e).__name__,
                                          Failure.UNEXPECTED,
                                          detail=traceback.format_exc())
        return inner
    return deco


def load(submission_id: int) -> Submission:
    """
    Load the current state of a submission.

    Raises
    ------
    :class:`.exceptions.NotFound`

    """
    try:
        return store.load.to_submission(store.get_submission(submission_id))
    except store.NoSuchSubmission as e:
        raise NotFound(f'Submission {submission_id} not found') from e


def load_publication(publication_id: int) -> Publication:
    """
    Load the current state of a publication.

    Raises
    ------
    :class:`.exceptions.NotFound`

    """
    try:
        row = store.get_publication(publication_id)
    except store.NoSuchPublication as e:
        raise NotFound(f'Publication {publication_id} not found') from e
    return store.load.to_publication(row)


def load_history(submission_id: int) -> List[StatusHistoryEntry]:
    """Statuses the submission has passed through, oldest first."""
    return [StatusHistoryEntry(submission_id=row.submission_id,
                               status=row.status,
                               created=as_utc(row.created))
            for row in store.get_history(submission_id)]
