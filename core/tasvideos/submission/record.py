"""
Creation and editing of submissions.

:func:`submit` takes a movie that has already been through
:mod:`.ingest`. :func:`update_submission` edits game and movie details, and
is also how judges and publishers move a submission through the workflow:
any status change is checked against :func:`.authorization.available_statuses`
before anything is written.
"""

from typing import List, Optional

import logging

from . import config, ingest, tasks
from .authorization import available_statuses
from .context import get_setting
from .core import boundary
from .domain.parse import ParseResult, ParsedSubmissionData
from .domain.request import SubmitRequest, UpdateSubmissionRequest
from .domain.result import SubmitResult, UpdateSubmissionResult
from .domain.status import SubmissionStatus, judge_is_claiming, \
    judge_is_unclaiming, publisher_is_claiming, publisher_is_unclaiming
from .domain.util import normalize_csv
from .exceptions import NotFound, PreconditionFailed, ValidationFailed
from .services import store, forum, WikiPages, AutomationAgent, VideoSync
from .services.parser import is_deprecated
from .services.store import models
from .services.wiki import submission_page_name
from .titles import submission_title

logger = logging.getLogger(__name__)


def _check_parse_result(result: ParseResult) -> None:
    if not result.success:
        raise ValidationFailed('Movie file parsing failed: '
                               + '; '.join(result.errors))
    if is_deprecated(result.file_extension):
        raise ValidationFailed(f'.{result.file_extension} is no longer'
                               ' submittable')


def _map(result: ParseResult) -> ParsedSubmissionData:
    mapped = ingest.map_parsed_result(result)
    if mapped is None:
        raise ValidationFailed(f'Unknown system type of {result.system_code}')
    return mapped


def _apply_movie(row: models.Submission, mapped: ParsedSubmissionData,
                 result: ParseResult) -> None:
    session = store.current_session()
    row.movie_start_type = mapped.start_type
    row.frames = mapped.frames
    row.rerecord_count = mapped.rerecord_count
    row.movie_extension = mapped.movie_extension
    row.system = session.get(models.GameSystem, mapped.system_id)
    row.system_frame_rate = session.get(models.GameSystemFrameRate,
                                        mapped.system_frame_rate_id) \
        if mapped.system_frame_rate_id is not None else None
    row.cycle_count = mapped.cycle_count
    row.annotations = mapped.annotations
    row.warnings = mapped.warnings
    primary_hash = result.primary_hash
    row.hash_type = primary_hash['type'] if primary_hash else None
    row.hash = primary_hash['value'] if primary_hash else None


def _set_authors(row: models.Submission, usernames: List[str]) -> None:
    """Replace the credited authors, keeping the given order."""
    existing = {author.user_id: author for author in row.authors}
    authors = []
    for ordinal, user in enumerate(store.get_users_by_name(usernames)):
        author = existing.get(user.id) \
            or models.SubmissionAuthor(user_id=user.id, author=user)
        author.ordinal = ordinal
        authors.append(author)
    row.authors = authors


@boundary(SubmitResult)
def submit(request: SubmitRequest) -> SubmitResult:
    """
    Create a new submission.

    Creates the submission's wiki page from the submitted markup and opens
    its discussion topic.

    Parameters
    ----------
    request : :class:`.SubmitRequest`

    Returns
    -------
    :class:`.SubmitResult`

    """
    result = request.parse_result
    _check_parse_result(result)
    goal = request.goal_name.strip('"') if request.goal_name else None
    embed_link = VideoSync.current_session() \
        .convert_to_embed_link(request.encode_embed_link)

    with store.transaction() as session:
        mapped = _map(result)
        row = models.Submission(
            status=SubmissionStatus.NEW,
            submitter_id=request.submitter.user_id,
            submitted_game_version=request.game_version,
            game_name=request.game_name,
            branch=goal,
            rom_name=request.rom_name,
            emulator_version=request.emulator,
            encode_embed_link=embed_link,
            additional_authors=normalize_csv(request.external_authors),
            movie_file=request.movie_file
        )
        _apply_movie(row, mapped, result)
        session.add(row)
        session.flush()

        WikiPages.current_session().add(
            submission_page_name(row.id), request.markup,
            request.submitter.user_id,
            revision_message=f'Auto-generated from Submission #{row.id}'
        )
        _set_authors(row, request.authors)
        session.flush()

        row.title = submission_title(row)
        row.topic_id = AutomationAgent.current_session() \
            .post_submission_topic(row.id, row.title)
        submission_id, title = row.id, row.title
    logger.info('Submission %i created: %s', submission_id, title)
    return SubmitResult(submission_id=submission_id, title=title)


def _check_status_change(row: models.Submission,
                         request: UpdateSubmissionRequest) -> None:
    if request.status == row.status:
        return
    submission = store.load.to_submission(row)
    user_id = request.user.user_id
    allowed = available_statuses(
        submission.status, request.user.permissions, submission.created,
        submission.is_author_or_submitter(user_id),
        submission.is_judge(user_id),
        submission.is_publisher(user_id)
    )
    if request.status not in allowed:
        raise PreconditionFailed(f'Status can not be changed from'
                                 f' {row.status.value} to'
                                 f' {request.status.value}')


def _move_topic(row: models.Submission, status: SubmissionStatus) -> None:
    """Keep the discussion topic in the forum that matches the status."""
    topic = forum.get_topic(row.topic_id)
    if topic is None:
        return
    playground = get_setting('PLAYGROUND_FORUM_ID',
                             config.PLAYGROUND_FORUM_ID)
    workbench = get_setting('WORKBENCH_FORUM_ID', config.WORKBENCH_FORUM_ID)
    if status == SubmissionStatus.PLAYGROUND \
            and topic.forum_id != playground:
        forum.move_topic(topic, playground)
    elif status.is_work_in_progress and topic.forum_id != workbench:
        forum.move_topic(topic, workbench)


@store.retry_on_conflict
def _sync_topic_title(topic_id: Optional[int], title: str) -> None:
    with store.transaction():
        topic = forum.get_topic(topic_id)
        if topic is not None and topic.title != title:
            topic.title = title


@boundary(UpdateSubmissionResult)
def update_submission(request: UpdateSubmissionRequest) \
        -> UpdateSubmissionResult:
    """
    Edit a submission, possibly changing its status.

    A status change that claims the submission assigns the acting user as
    judge or publisher; one that releases it clears them. Published
    submissions are frozen.

    Parameters
    ----------
    request : :class:`.UpdateSubmissionRequest`

    Returns
    -------
    :class:`.UpdateSubmissionResult`

    """
    parsed: Optional[ParseResult] = None
    movie_file: Optional[bytes] = None
    if request.replace_movie_file is not None:
        parsed, movie_file = \
            ingest.parse_movie_file_or_zip(request.replace_movie_file)
        _check_parse_result(parsed)
    embed_link = VideoSync.current_session() \
        .convert_to_embed_link(request.encode_embed_link)

    outbox: List[models.OutboxTask] = []
    with store.transaction() as session:
        try:
            row = store.get_submission(request.submission_id,
                                       for_update=True)
        except store.NoSuchSubmission as e:
            raise NotFound('Submission not found') from e
        if row.status == SubmissionStatus.PUBLISHED:
            raise PreconditionFailed('Published submissions can not be'
                                     ' edited')
        _check_status_change(row, request)
        previous = row.status
        status = request.status
        user_id = request.user.user_id

        if parsed is not None:
            _apply_movie(row, _map(parsed), parsed)
            row.movie_file = movie_file
            row.synced_on = None
            row.synced_by_user_id = None

        if judge_is_claiming(previous, status):
            row.judge_id = user_id
        elif judge_is_unclaiming(status):
            row.judge_id = None
        if publisher_is_claiming(previous, status):
            row.publisher_id = user_id
        elif publisher_is_unclaiming(previous, status):
            row.publisher_id = None

        status_changed = previous != status
        if status_changed:
            store.append_history(row.id, previous)
            _move_topic(row, status)

        row.rejection_reason_id = request.rejection_reason \
            if status == SubmissionStatus.REJECTED else None
        intended_class = session.get(models.PublicationClass,
                                     request.intended_publication_class) \
            if request.intended_publication_class is not None else None
        row.intended_class = intended_class

        row.submitted_game_version = request.game_version
        row.game_name = request.game_name
        row.emulator_version = request.emulator
        row.branch = request.goal
        row.rom_name = request.rom_name
        row.encode_embed_link = embed_link
        row.status = status
        row.additional_authors = normalize_csv(request.external_authors)
        _set_authors(row, request.authors)
        session.flush()
        row.title = submission_title(row)

        if request.markup_changed:
            WikiPages.current_session().add(
                submission_page_name(row.id), request.markup or '', user_id,
                revision_message=request.revision_message,
                minor_edit=request.minor_edit
            )
        if status_changed and status.is_grue_food:
            outbox.append(tasks.enqueue(tasks.GRUE_FOOD,
                                        {'submission_id': row.id}))
        session.flush()
        title, topic_id = row.title, row.topic_id
        task_ids = [task.id for task in outbox]

    try:
        _sync_topic_title(topic_id, title)
    except Exception:
        logger.exception('Could not update the title of topic %s', topic_id)
    tasks.dispatch(task_ids)
    logger.info('Submission %i updated: %s -> %s', request.submission_id,
                previous.value, status.value)
    return UpdateSubmissionResult(previous_status=previous, title=title)


def get_submission_count(user_id: int) -> int:
    """Number of submissions ``user_id`` has submitted."""
    return store.count_submissions(user_id)
