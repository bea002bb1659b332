"""Submission workflow statuses."""

from enum import Enum
from typing import FrozenSet


class SubmissionStatus(Enum):
    """Where a submission is in the judging and publication workflow."""

    NEW = 'New'
    """Submitted, waiting for a judge."""
    DELAYED = 'Delayed'
    """On hold, usually awaiting a fix from the authors."""
    NEEDS_MORE_INFO = 'NeedsMoreInfo'
    JUDGING_UNDERWAY = 'JudgingUnderWay'
    """Claimed by a judge."""
    ACCEPTED = 'Accepted'
    PUBLICATION_UNDERWAY = 'PublicationUnderway'
    """Claimed by a publisher."""
    PUBLISHED = 'Published'
    """Terminal; the submission has become a publication."""
    REJECTED = 'Rejected'
    CANCELLED = 'Cancelled'
    PLAYGROUND = 'Playground'
    """Dormant sandbox for runs that will not be published."""

    @property
    def can_be_judged(self) -> bool:
        """The judging window applies to submissions in this status."""
        return self in JUDGEABLE

    @property
    def is_work_in_progress(self) -> bool:
        """The submission is still moving through the workflow."""
        return self in WORK_IN_PROGRESS

    @property
    def is_grue_food(self) -> bool:
        """The submission was turned down or withdrawn."""
        return self in (SubmissionStatus.REJECTED, SubmissionStatus.CANCELLED)


JUDGEABLE: FrozenSet[SubmissionStatus] = frozenset({
    SubmissionStatus.NEW,
    SubmissionStatus.DELAYED,
    SubmissionStatus.NEEDS_MORE_INFO,
    SubmissionStatus.JUDGING_UNDERWAY,
})

WORK_IN_PROGRESS: FrozenSet[SubmissionStatus] = frozenset({
    SubmissionStatus.NEW,
    SubmissionStatus.DELAYED,
    SubmissionStatus.NEEDS_MORE_INFO,
    SubmissionStatus.JUDGING_UNDERWAY,
    SubmissionStatus.ACCEPTED,
    SubmissionStatus.PUBLICATION_UNDERWAY,
})


def judge_is_claiming(old: SubmissionStatus, new: SubmissionStatus) -> bool:
    """A status change that assigns the acting judge."""
    return old != SubmissionStatus.JUDGING_UNDERWAY \
        and new == SubmissionStatus.JUDGING_UNDERWAY


def judge_is_unclaiming(new: SubmissionStatus) -> bool:
    """A status change that releases the judge."""
    return new == SubmissionStatus.NEW


def publisher_is_claiming(old: SubmissionStatus,
                          new: SubmissionStatus) -> bool:
    """A status change that assigns the acting publisher."""
    return old != SubmissionStatus.PUBLICATION_UNDERWAY \
        and new == SubmissionStatus.PUBLICATION_UNDERWAY


def publisher_is_unclaiming(old: SubmissionStatus,
                            new: SubmissionStatus) -> bool:
    """A publisher retracts their claim."""
    return old == SubmissionStatus.PUBLICATION_UNDERWAY \
        and new == SubmissionStatus.ACCEPTED
