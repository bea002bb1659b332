"""
Publication of an accepted submission.

Everything that makes up the publication is written in one transaction:
the publication with its URLs, authors, flags, tags and movie file, its
wiki page, the submission's final status, and (optionally) the obsoletion
of an older publication. If any of it fails, none of it is kept.

Video syncs, role grants and the announcement in the discussion topic are
queued in the same transaction but carried out only after it commits
(see :mod:`.tasks`); their failure never undoes a publication.
"""

from typing import List, Optional

import logging

from . import ingest, tasks
from .core import boundary
from .domain.publication import UrlType
from .domain.request import PublishRequest
from .domain.result import PublishResult
from .domain.status import SubmissionStatus
from .exceptions import NotFound, PreconditionFailed
from .history import obsolete, queue_video_sync
from .services import store, WikiPages
from .services.store import models
from .services.wiki import publication_page_name
from .titles import publication_title

logger = logging.getLogger(__name__)


def _urls(request: PublishRequest) -> List[models.PublicationUrlRow]:
    urls = [models.PublicationUrlRow(url=request.online_watching_url,
                                     type=UrlType.STREAMING)]
    if request.mirror_site_url and request.mirror_site_url.strip():
        urls.append(models.PublicationUrlRow(url=request.mirror_site_url,
                                             type=UrlType.MIRROR))
    if request.alternate_online_watching_url \
            and request.alternate_online_watching_url.strip():
        urls.append(models.PublicationUrlRow(
            url=request.alternate_online_watching_url,
            type=UrlType.STREAMING,
            display_name=request.alternate_online_watch_url_name
        ))
    return urls


def _authors(submission: models.Submission) \
        -> List[models.PublicationAuthor]:
    return [models.PublicationAuthor(user_id=author.user_id,
                                     author=author.author,
                                     ordinal=author.ordinal)
            for author in sorted(submission.authors,
                                 key=lambda author: author.ordinal)]


def _by_ids(model: type, ids: List[int]) -> list:
    if not ids:
        return []
    return list(store.current_session().query(model)
                .filter(model.id.in_(ids)).order_by(model.id))


@boundary(PublishResult)
def publish(request: PublishRequest) -> PublishResult:
    """
    Turn a submission claimed for publication into a publication.

    Parameters
    ----------
    request : :class:`.PublishRequest`

    Returns
    -------
    :class:`.PublishResult`
        Carries the new publication's id and title.

    """
    movie_file_name = request.movie_file_name
    with store.transaction() as session:
        try:
            submission = store.get_submission(request.submission_id,
                                              for_update=True)
        except store.NoSuchSubmission as e:
            raise NotFound('Submission not found') from e
        if not submission.can_publish():
            raise PreconditionFailed('Submission cannot be published')
        if store.movie_filename_exists(movie_file_name):
            raise PreconditionFailed(f'Movie filename {movie_file_name}'
                                     ' already exists')
        to_obsolete: Optional[models.Publication] = None
        if request.movie_to_obsolete is not None:
            try:
                to_obsolete = store.get_publication(request.movie_to_obsolete,
                                                    for_update=True)
            except store.NoSuchPublication as e:
                raise NotFound('Publication to obsolete does not exist') \
                    from e

        movie_data = ingest.copy_zip(submission.movie_file or b'',
                                     movie_file_name)
        publication = models.Publication(
            submission=submission,
            publication_class=submission.intended_class,
            system=submission.system,
            system_frame_rate=submission.system_frame_rate,
            game=submission.game,
            game_version=submission.game_version,
            game_goal=submission.game_goal,
            emulator_version=submission.emulator_version,
            frames=submission.frames,
            rerecord_count=submission.rerecord_count,
            additional_authors=submission.additional_authors,
            movie_file_name=movie_file_name,
            movie_file=models.MovieFile(file_name=movie_file_name,
                                        file_data=movie_data,
                                        original_length=len(movie_data)),
            urls=_urls(request),
            authors=_authors(submission),
            flags=_by_ids(models.Flag, request.selected_flags),
            tags=_by_ids(models.Tag, request.selected_tags)
        )
        session.add(publication)
        session.flush()     # The title includes the id.
        publication.title = publication_title(publication)

        page = WikiPages.current_session().add(
            publication_page_name(publication.id), request.movie_description,
            request.user_id,
            revision_message=f'Auto-generated from Movie #{publication.id}'
        )

        store.append_history(submission.id, submission.status)
        submission.status = SubmissionStatus.PUBLISHED

        outbox: List[models.OutboxTask] = []
        if to_obsolete is not None:
            outbox += obsolete(to_obsolete, publication)
        outbox.append(tasks.enqueue(tasks.GRANT_ROLES, {
            'author_ids': [author.user_id for author in publication.authors],
            'publication_title': publication.title
        }))
        outbox.append(tasks.enqueue(tasks.NOTIFY_PUBLISHED, {
            'submission_id': submission.id,
            'publication_id': publication.id
        }))
        outbox += queue_video_sync(publication, publication.urls, page.markup)
        session.flush()
        publication_id, title = publication.id, publication.title
        task_ids = [task.id for task in outbox]

    logger.info('Submission %i published as %i: %s',
                request.submission_id, publication_id, title)
    tasks.dispatch(task_ids)
    return PublishResult(publication_id=publication_id, title=title)
