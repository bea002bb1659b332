"""
Exclusive claims of a submission by a judge or a publisher.

A claim only succeeds from one exact status, checked against the row as it
was last committed. The write is conditional on the row's version token, so
when two actors race for the same submission exactly one claim commits; the
other observes either the changed status or a version mismatch, and fails
without changing anything. Claims are never retried.
"""

from dataclasses import dataclass

import logging

from .core import boundary
from .domain.result import ClaimResult
from .domain.status import SubmissionStatus
from .exceptions import ConcurrencyConflict, NotFound, PreconditionFailed
from .services import store, WikiPages, TopicWatcher
from .services.wiki import submission_page_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimKind:
    """What a claim requires and does."""

    required_status: SubmissionStatus
    target_status: SubmissionStatus
    assign_to_judge: bool
    wiki_message: str
    revision_message: str
    watch_topic: bool


JUDGING = ClaimKind(
    required_status=SubmissionStatus.NEW,
    target_status=SubmissionStatus.JUDGING_UNDERWAY,
    assign_to_judge=True,
    wiki_message='Claiming for judging.',
    revision_message='Claimed for judging',
    watch_topic=True
)

PUBLISHING = ClaimKind(
    required_status=SubmissionStatus.ACCEPTED,
    target_status=SubmissionStatus.PUBLICATION_UNDERWAY,
    assign_to_judge=False,
    wiki_message='Processing...',
    revision_message='Claimed for publication',
    watch_topic=False
)


def _claim(submission_id: int, user_id: int, username: str,
           kind: ClaimKind) -> ClaimResult:
    try:
        with store.transaction():
            try:
                row = store.get_submission(submission_id, for_update=True)
            except store.NoSuchSubmission as e:
                raise NotFound('Submission not found') from e
            if row.status != kind.required_status:
                raise PreconditionFailed('Submission can not be claimed')

            store.append_history(row.id, row.status)
            row.status = kind.target_status
            if kind.assign_to_judge:
                row.judge_id = user_id
            else:
                row.publisher_id = user_id

            wiki = WikiPages.current_session()
            page = wiki.submission_page(row.id)
            markup = page.markup if page else ''
            wiki.add(submission_page_name(row.id),
                     f'{markup}\n----\n[user:{username}]: {kind.wiki_message}',
                     user_id, revision_message=kind.revision_message)

            if kind.watch_topic and row.topic_id is not None:
                TopicWatcher.current_session() \
                    .watch_topic(row.topic_id, user_id, True)
            title = row.title
    except ConcurrencyConflict as e:
        logger.info('Lost the race to claim submission %i: %s',
                    submission_id, e)
        raise PreconditionFailed('Unable to claim') from e
    logger.info('Submission %i claimed by %s: %s', submission_id, username,
                kind.target_status.value)
    return ClaimResult(title=title)


@boundary(ClaimResult)
def claim_for_judging(submission_id: int, user_id: int,
                      username: str) -> ClaimResult:
    """
    Claim a new submission for judging.

    The judge is assigned, a note is added to the submission's wiki page,
    and the judge starts watching the discussion topic.
    """
    return _claim(submission_id, user_id, username, JUDGING)


@boundary(ClaimResult)
def claim_for_publishing(submission_id: int, user_id: int,
                         username: str) -> ClaimResult:
    """Claim an accepted submission for publication."""
    return _claim(submission_id, user_id, username, PUBLISHING)
