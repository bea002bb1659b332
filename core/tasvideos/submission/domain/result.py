"""
Results returned by the workflow operations.

Expected business failures never escape an operation as exceptions; they
come back as a result with ``error`` set and a :class:`.Failure` kind.
"""

from enum import Enum
from typing import Optional, Type, TypeVar

from dataclasses import dataclass

from .status import SubmissionStatus

R = TypeVar('R', bound='Result')


class Failure(Enum):
    """Why an operation did not succeed."""

    NOT_FOUND = 'not_found'
    PRECONDITION_FAILED = 'precondition_failed'
    VALIDATION_FAILED = 'validation_failed'
    UNEXPECTED = 'unexpected'


@dataclass
class Result:
    error: Optional[str] = None
    failure: Optional[Failure] = None
    detail: Optional[str] = None
    """Diagnostic detail for unexpected failures."""

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls: Type[R], error: str, failure: Failure,
               detail: Optional[str] = None) -> R:
        return cls(error=error, failure=failure, detail=detail)


@dataclass
class SubmitResult(Result):
    submission_id: Optional[int] = None
    title: Optional[str] = None


@dataclass
class UpdateSubmissionResult(Result):
    previous_status: Optional[SubmissionStatus] = None
    title: Optional[str] = None


@dataclass
class ClaimResult(Result):
    title: Optional[str] = None


@dataclass
class PublishResult(Result):
    publication_id: Optional[int] = None
    title: Optional[str] = None


@dataclass
class ObsoleteResult(Result):
    publication_id: Optional[int] = None
    obsoleted_by_id: Optional[int] = None
