"""Tests for :mod:`tasvideos.submission.publish`."""

import io
import zipfile
from unittest import TestCase, mock

from .. import publish, tasks, load, load_publication, load_history
from ..domain.publication import UrlType
from ..domain.request import PublishRequest
from ..domain.result import Failure
from ..domain.status import SubmissionStatus
from ..exceptions import DependencyFailure
from ..services import WikiPages, forum
from ..services.store import models
from ..services.store.tests.util import in_memory_db, seed_catalog, \
    make_submission, make_publication, JUDGE_ID, PUBLISHER_ID

PRIMARY = 'https://www.youtube.com/watch?v=abcdefgh'
ALTERNATE = 'https://youtu.be/zyxwvuts'
MIRROR = 'https://archive.org/details/megaman-tas'


def publish_request(submission_id, **kwargs):
    values = dict(submission_id=submission_id, user_id=PUBLISHER_ID,
                  movie_filename='megaman-tas', movie_extension='bk2',
                  online_watching_url=PRIMARY,
                  movie_description='Published description',
                  alternate_online_watching_url=ALTERNATE,
                  alternate_online_watch_url_name='Commentary',
                  mirror_site_url=MIRROR, selected_flags=[1],
                  selected_tags=[1, 2])
    values.update(kwargs)
    return PublishRequest(**values)


def claimed_submission(session):
    return make_submission(session, SubmissionStatus.PUBLICATION_UNDERWAY,
                           judge_id=JUDGE_ID, publisher_id=PUBLISHER_ID)


@mock.patch(f'{tasks.__name__}.VideoSync')
class TestPublish(TestCase):
    """Test :func:`.publish.publish`."""

    def test_publish(self, mock_videosync):
        """The submission becomes a publication."""
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = claimed_submission(session)
            result = publish.publish(publish_request(submission_id))
            self.assertTrue(result.success, result.error)
            self.assertEqual(result.title,
                             'NES Mega Man "100%" by alice & bob in 01:00.00')

            publication = load_publication(result.publication_id)
            self.assertEqual(publication.submission_id, submission_id)
            self.assertEqual(publication.movie_file_name, 'megaman-tas.bk2')
            self.assertEqual(publication.publication_class_id, 1)
            self.assertEqual(publication.system_frame_rate_id, 1)
            self.assertEqual([(url.url, url.type, url.display_name)
                              for url in publication.urls],
                             [(PRIMARY, UrlType.STREAMING, None),
                              (MIRROR, UrlType.MIRROR, None),
                              (ALTERNATE, UrlType.STREAMING, 'Commentary')])
            self.assertEqual([(a.username, a.ordinal)
                              for a in publication.authors],
                             [('alice', 0), ('bob', 1)])
            self.assertEqual(publication.flag_ids, [1])
            self.assertEqual(sorted(publication.tag_ids), [1, 2])

            row = session.get(models.Publication, result.publication_id)
            with zipfile.ZipFile(io.BytesIO(row.movie_file.file_data)) as z:
                self.assertEqual(z.namelist(), ['megaman-tas.bk2'])

            submission = load(submission_id)
            self.assertEqual(submission.status, SubmissionStatus.PUBLISHED)
            self.assertEqual([entry.status
                              for entry in load_history(submission_id)],
                             [SubmissionStatus.PUBLICATION_UNDERWAY])

            page = WikiPages.current_session() \
                .publication_page(result.publication_id)
            self.assertEqual(page.markup, 'Published description')
            self.assertEqual(page.revision_message,
                             f'Auto-generated from Movie'
                             f' #{result.publication_id}')

    def test_side_effects(self, mock_videosync):
        """Roles, the announcement and video syncs follow the commit."""
        sync = mock_videosync.current_session.return_value.sync
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = claimed_submission(session)
            result = publish.publish(publish_request(submission_id))
            self.assertTrue(result.success, result.error)

            self.assertIsNotNone(session.get(models.UserRole, (1, 1)))
            self.assertIsNotNone(session.get(models.UserRole, (2, 1)))
            self.assertIsNone(session.get(models.UserRole, (1, 2)))

            topic = forum.get_topic(load(submission_id).topic_id)
            self.assertIn(f'[publication]{result.publication_id}'
                          '[/publication]', topic.posts[-1].text)

            self.assertEqual(sync.call_count, 2)
            first = sync.call_args_list[0][0][0]
            self.assertEqual(first.url, PRIMARY)
            self.assertEqual(first.publication_id, result.publication_id)
            self.assertEqual(first.title, result.title)
            self.assertEqual(first.wiki_markup, 'Published description')
            self.assertEqual(first.authors, ['alice', 'bob'])
            self.assertEqual(first.system_code, 'NES')
            self.assertEqual(sync.call_args_list[1][0][0].display_name,
                             'Commentary')

            statuses = {task.status
                        for task in session.query(models.OutboxTask)}
            self.assertEqual(statuses, {models.OutboxTask.DONE})

    def test_video_sync_fails(self, mock_videosync):
        """A failed sync is recorded; the publication stands."""
        sync = mock_videosync.current_session.return_value.sync
        sync.side_effect = DependencyFailure('Video sync refused')
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = claimed_submission(session)
            result = publish.publish(publish_request(submission_id))
            self.assertTrue(result.success, result.error)
            self.assertEqual(load(submission_id).status,
                             SubmissionStatus.PUBLISHED)

            failed = session.query(models.OutboxTask) \
                .filter(models.OutboxTask.status == models.OutboxTask.FAILED)
            self.assertEqual([task.kind for task in failed],
                             [tasks.VIDEO_SYNC, tasks.VIDEO_SYNC])
            self.assertEqual(failed.first().last_error, 'Video sync refused')
            self.assertIsNotNone(session.get(models.UserRole, (1, 1)))

    def test_wiki_fails(self, mock_videosync):
        """Nothing is kept if any part of the publication fails."""
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = claimed_submission(session)
            with mock.patch(f'{publish.__name__}.WikiPages') as mock_wiki:
                mock_wiki.current_session.return_value.add.side_effect = \
                    RuntimeError('wiki down')
                result = publish.publish(publish_request(submission_id))

            self.assertFalse(result.success)
            self.assertEqual(result.failure, Failure.UNEXPECTED)
            self.assertIn('RuntimeError', result.detail)
            self.assertEqual(session.query(models.Publication).count(), 0)
            self.assertEqual(session.query(models.MovieFile).count(), 0)
            self.assertEqual(session.query(models.OutboxTask).count(), 0)
            self.assertEqual(load(submission_id).status,
                             SubmissionStatus.PUBLICATION_UNDERWAY)
            self.assertEqual(load_history(submission_id), [])
            self.assertEqual(
                mock_videosync.current_session.return_value.sync.call_count,
                0
            )

    def test_duplicate_filename(self, mock_videosync):
        """A movie filename can only be used once."""
        with in_memory_db() as session:
            seed_catalog(session)
            make_publication(session, movie_file_name='megaman-tas.bk2')
            submission_id = claimed_submission(session)
            result = publish.publish(publish_request(submission_id))
            self.assertEqual(result.failure, Failure.PRECONDITION_FAILED)
            self.assertEqual(session.query(models.Publication).count(), 1)
            self.assertEqual(load(submission_id).status,
                             SubmissionStatus.PUBLICATION_UNDERWAY)

    def test_not_claimed(self, mock_videosync):
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = make_submission(session,
                                            SubmissionStatus.ACCEPTED,
                                            judge_id=JUDGE_ID)
            result = publish.publish(publish_request(submission_id))
            self.assertEqual(result.failure, Failure.PRECONDITION_FAILED)
            self.assertEqual(result.error, 'Submission cannot be published')

    def test_not_found(self, mock_videosync):
        with in_memory_db() as session:
            seed_catalog(session)
            result = publish.publish(publish_request(1234))
            self.assertEqual(result.failure, Failure.NOT_FOUND)

    def test_obsolete(self, mock_videosync):
        """An older publication can be obsoleted along the way."""
        sync = mock_videosync.current_session.return_value.sync
        with in_memory_db() as session:
            seed_catalog(session)
            old_id = make_publication(session, urls=[
                ('https://www.youtube.com/watch?v=oldvideo1',
                 UrlType.STREAMING),
                ('https://archive.org/details/old', UrlType.MIRROR)
            ])
            submission_id = claimed_submission(session)
            result = publish.publish(publish_request(
                submission_id, movie_to_obsolete=old_id
            ))
            self.assertTrue(result.success, result.error)
            self.assertEqual(load_publication(old_id).obsoleted_by_id,
                             result.publication_id)

            synced = [call[0][0] for call in sync.call_args_list]
            self.assertEqual(len(synced), 3)
            old = [video for video in synced
                   if video.publication_id == old_id]
            self.assertEqual(len(old), 1)
            self.assertEqual(old[0].url,
                             'https://www.youtube.com/watch?v=oldvideo1')
            self.assertEqual(old[0].obsoleted_by_id, result.publication_id)
            self.assertEqual(old[0].wiki_markup, 'Publication description')

    def test_obsolete_missing(self, mock_videosync):
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = claimed_submission(session)
            result = publish.publish(publish_request(
                submission_id, movie_to_obsolete=1234
            ))
            self.assertEqual(result.failure, Failure.NOT_FOUND)
            self.assertEqual(session.query(models.Publication).count(), 0)

    def test_obsolete_other_game(self, mock_videosync):
        """Only a publication of the same game can be obsoleted."""
        with in_memory_db() as session:
            seed_catalog(session)
            old_id = make_publication(session, game_id=2)
            submission_id = claimed_submission(session)
            result = publish.publish(publish_request(
                submission_id, movie_to_obsolete=old_id
            ))
            self.assertEqual(result.failure, Failure.PRECONDITION_FAILED)
            self.assertEqual(session.query(models.Publication).count(), 1)
            self.assertIsNone(load_publication(old_id).obsoleted_by_id)
