"""
Which statuses an actor may move a submission to.

The rules are independent guards. Each guard looks at the same
:class:`StatusContext` and contributes the statuses it allows; the legal
next statuses are the union of the current status and every contribution.
Two rules short-circuit the guards: a published submission can only stay
published, and holders of
:attr:`.PermissionTo.OVERRIDE_SUBMISSION_CONSTRAINTS` may set any status
except Published (publishing always goes through :func:`.publish.publish`).

Nothing here touches the database; given the same inputs (including
``now``) the result is always the same.
"""

from datetime import datetime, timedelta
from functools import reduce
from operator import or_
from typing import Callable, FrozenSet, Iterable, Optional, Tuple

from dataclasses import dataclass

from . import config
from .context import get_setting
from .domain.agent import PermissionTo
from .domain.status import SubmissionStatus, JUDGEABLE, WORK_IN_PROGRESS
from .domain.submission import Submission
from .domain.util import as_utc, get_tzaware_utc_now

NEW = SubmissionStatus.NEW
DELAYED = SubmissionStatus.DELAYED
NEEDS_MORE_INFO = SubmissionStatus.NEEDS_MORE_INFO
JUDGING_UNDERWAY = SubmissionStatus.JUDGING_UNDERWAY
ACCEPTED = SubmissionStatus.ACCEPTED
PUBLICATION_UNDERWAY = SubmissionStatus.PUBLICATION_UNDERWAY
PUBLISHED = SubmissionStatus.PUBLISHED
REJECTED = SubmissionStatus.REJECTED
CANCELLED = SubmissionStatus.CANCELLED
PLAYGROUND = SubmissionStatus.PLAYGROUND

NOTHING: FrozenSet[SubmissionStatus] = frozenset()


@dataclass(frozen=True)
class StatusContext:
    """Everything the guards may consider."""

    current: SubmissionStatus
    can_judge: bool
    can_publish: bool
    is_author_or_submitter: bool
    is_judge: bool
    """The actor is the judge who claimed the submission."""
    is_publisher: bool
    """The actor is the publisher who claimed the submission."""
    judging_window_open: bool


Guard = Callable[[StatusContext], FrozenSet[SubmissionStatus]]


def _allow(condition: bool,
           *statuses: SubmissionStatus) -> FrozenSet[SubmissionStatus]:
    return frozenset(statuses) if condition else NOTHING


def back_to_new(ctx: StatusContext) -> FrozenSet[SubmissionStatus]:
    """
    The claiming judge may reset to New, e.g. to opt out of their claim.

    This includes reviving rejected or shelved submissions and undoing a
    verdict. Authors may reopen a submission they cancelled.

    Unlike the verdicts, a reset is not held to the judging window: a judge
    must be able to drop a claim at any time. Do not gate it on
    :attr:`.StatusContext.judging_window_open`.
    """
    reset_by_judge = ctx.is_judge and ctx.current in (
        JUDGING_UNDERWAY, REJECTED, ACCEPTED, PUBLICATION_UNDERWAY, DELAYED,
        NEEDS_MORE_INFO, CANCELLED, PLAYGROUND
    )
    reopened_by_author = ctx.is_author_or_submitter \
        and ctx.current == CANCELLED
    return _allow(reset_by_judge or reopened_by_author, NEW)


def judge_can_claim(ctx: StatusContext) -> FrozenSet[SubmissionStatus]:
    """Any judge who did not make the movie may claim it for judging."""
    return _allow(ctx.can_judge and not ctx.is_author_or_submitter
                  and ctx.current != PUBLISHED, JUDGING_UNDERWAY)


def claiming_judge_can_hold(ctx: StatusContext) \
        -> FrozenSet[SubmissionStatus]:
    """The claiming judge may delay or ask for more information."""
    return _allow(ctx.is_judge and ctx.judging_window_open and ctx.current in (
        JUDGING_UNDERWAY, DELAYED, NEEDS_MORE_INFO, ACCEPTED,
        PUBLICATION_UNDERWAY
    ), JUDGING_UNDERWAY, DELAYED, NEEDS_MORE_INFO)


def claiming_judge_can_rule(ctx: StatusContext) \
        -> FrozenSet[SubmissionStatus]:
    """The claiming judge may deliver a verdict."""
    return _allow(ctx.is_judge and ctx.judging_window_open and ctx.current in (
        JUDGING_UNDERWAY, DELAYED, NEEDS_MORE_INFO, PUBLICATION_UNDERWAY
    ), ACCEPTED, REJECTED)


def claiming_judge_can_overrule(ctx: StatusContext) \
        -> FrozenSet[SubmissionStatus]:
    """The claiming judge may reject a movie they accepted."""
    return _allow(ctx.is_judge and ctx.judging_window_open
                  and ctx.current == ACCEPTED, REJECTED)


def publisher_can_claim(ctx: StatusContext) -> FrozenSet[SubmissionStatus]:
    return _allow(ctx.can_publish and ctx.current == ACCEPTED,
                  PUBLICATION_UNDERWAY)


def publisher_can_retract(ctx: StatusContext) \
        -> FrozenSet[SubmissionStatus]:
    """The claiming publisher may hand the submission back."""
    return _allow(ctx.is_publisher and ctx.current == PUBLICATION_UNDERWAY,
                  ACCEPTED)


def can_cancel(ctx: StatusContext) -> FrozenSet[SubmissionStatus]:
    """Authors and the claiming judge may cancel unfinished submissions."""
    return _allow((ctx.is_judge or ctx.is_author_or_submitter)
                  and ctx.current in WORK_IN_PROGRESS, CANCELLED)


def judge_can_shelve(ctx: StatusContext) -> FrozenSet[SubmissionStatus]:
    """The claiming judge may move the submission to the playground."""
    return _allow(ctx.is_judge and ctx.judging_window_open and ctx.current in (
        JUDGING_UNDERWAY, DELAYED, NEEDS_MORE_INFO
    ), PLAYGROUND)


GUARDS: Tuple[Guard, ...] = (
    back_to_new,
    judge_can_claim,
    claiming_judge_can_hold,
    claiming_judge_can_rule,
    claiming_judge_can_overrule,
    publisher_can_claim,
    publisher_can_retract,
    can_cancel,
    judge_can_shelve,
)


def _minimum_hours(minimum_hours: Optional[int]) -> int:
    if minimum_hours is not None:
        return minimum_hours
    return get_setting('MINIMUM_HOURS_BEFORE_JUDGMENT',
                       config.MINIMUM_HOURS_BEFORE_JUDGMENT)


def judging_window_open(submit_date: datetime, now: Optional[datetime] = None,
                        minimum_hours: Optional[int] = None) -> bool:
    """Enough time has passed since submission for a verdict."""
    now = as_utc(now) if now is not None else get_tzaware_utc_now()
    window = timedelta(hours=_minimum_hours(minimum_hours))
    return now >= as_utc(submit_date) + window


def available_statuses(current_status: SubmissionStatus,
                       permissions: Iterable[PermissionTo],
                       submit_date: datetime,
                       is_author_or_submitter: bool,
                       is_judge: bool,
                       is_publisher: bool,
                       now: Optional[datetime] = None,
                       minimum_hours: Optional[int] = None) \
        -> FrozenSet[SubmissionStatus]:
    """
    Get the statuses the actor may set on a submission.

    Parameters
    ----------
    current_status : :class:`.SubmissionStatus`
    permissions : iterable
        The actor's :class:`.PermissionTo` facts.
    submit_date : datetime
        When the submission was created.
    is_author_or_submitter : bool
    is_judge : bool
        The actor is the submission's (claiming) judge.
    is_publisher : bool
        The actor is the submission's (claiming) publisher.
    now : datetime
        Defaults to the current time.
    minimum_hours : int
        Length of the judging window. Defaults to the
        ``MINIMUM_HOURS_BEFORE_JUDGMENT`` setting.

    Returns
    -------
    frozenset
        Legal next statuses, including ``current_status``.

    """
    if current_status == PUBLISHED:
        return frozenset({PUBLISHED})
    permissions = frozenset(permissions)
    if PermissionTo.OVERRIDE_SUBMISSION_CONSTRAINTS in permissions:
        return frozenset(s for s in SubmissionStatus if s != PUBLISHED)
    ctx = StatusContext(
        current=current_status,
        can_judge=PermissionTo.JUDGE_SUBMISSIONS in permissions,
        can_publish=PermissionTo.PUBLISH_MOVIES in permissions,
        is_author_or_submitter=is_author_or_submitter,
        is_judge=is_judge,
        is_publisher=is_publisher,
        judging_window_open=judging_window_open(submit_date, now,
                                                minimum_hours)
    )
    return reduce(or_, (guard(ctx) for guard in GUARDS),
                  frozenset({current_status}))


def hours_remaining_for_judging(submission: Submission,
                                now: Optional[datetime] = None,
                                minimum_hours: Optional[int] = None) -> int:
    """Whole hours until a verdict may be given; 0 once it cannot be."""
    if submission.status not in JUDGEABLE:
        return 0
    now = as_utc(now) if now is not None else get_tzaware_utc_now()
    elapsed = (now - as_utc(submission.created)).total_seconds() / 3600
    return max(0, _minimum_hours(minimum_hours) - int(elapsed))
