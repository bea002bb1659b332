"""Tests for the site services kept in the site database."""

from unittest import TestCase

from ...domain.status import SubmissionStatus
from .. import WikiPages, TopicWatcher, AutomationAgent, RoleGrantor, forum
from ..store import models
from ..store.tests.util import in_memory_db, seed_catalog, make_submission


class TestWikiPages(TestCase):
    """Test :class:`.WikiPages`."""

    def test_revisions(self):
        """Each write adds a revision; the latest one is current."""
        with in_memory_db() as session:
            seed_catalog(session)
            wiki = WikiPages.current_session()
            first = wiki.add('GameResources/NES/MegaMan', 'One', 1)
            second = wiki.add('GameResources/NES/MegaMan', 'Two', 2,
                              revision_message='Typo', minor_edit=True)
            self.assertEqual(first.revision, 1)
            self.assertEqual(second.revision, 2)
            page = wiki.page('GameResources/NES/MegaMan')
            self.assertEqual(page.markup, 'Two')
            self.assertEqual(page.author_id, 2)
            self.assertTrue(page.minor_edit)
            self.assertEqual(page.revision_message, 'Typo')

    def test_missing_page(self):
        with in_memory_db():
            self.assertIsNone(WikiPages.current_session().page('Nope'))

    def test_submission_page(self):
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = make_submission(session, markup='Hello')
            page = WikiPages.current_session().submission_page(submission_id)
            self.assertEqual(page.page_name,
                             f'InternalSystem/SubmissionContent/S'
                             f'{submission_id}')
            self.assertEqual(page.markup, 'Hello')

    def test_name_required(self):
        with in_memory_db():
            with self.assertRaises(ValueError):
                WikiPages.current_session().add('', 'Markup', 1)


class TestForum(TestCase):
    """Test topic watching and moving."""

    def test_watch(self):
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = make_submission(session)
            topic_id = session.get(models.Submission,
                                   submission_id).topic_id
            watcher = TopicWatcher.current_session()
            watcher.watch_topic(topic_id, 3, True)
            session.flush()
            watcher.watch_topic(topic_id, 3, True)
            session.flush()
            self.assertTrue(watcher.is_watching(topic_id, 3))
            watcher.watch_topic(topic_id, 3, False)
            session.flush()
            self.assertFalse(watcher.is_watching(topic_id, 3))

    def test_move_topic(self):
        """Posts move along with their topic."""
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = make_submission(session)
            topic = forum.get_topic(
                session.get(models.Submission, submission_id).topic_id
            )
            forum.add_post(topic, 1, 'Nice run!')
            forum.move_topic(topic, 96)
            session.commit()
            self.assertEqual(topic.forum_id, 96)
            self.assertEqual({post.forum_id for post in topic.posts}, {96})
            self.assertEqual(len(topic.posts), 2)

    def test_no_topic(self):
        with in_memory_db():
            self.assertIsNone(forum.get_topic(None))
            self.assertIsNone(forum.get_topic(1234))


class TestAutomationAgent(TestCase):
    """Test :class:`.AutomationAgent`."""

    def test_post_submission_topic(self):
        with in_memory_db() as session:
            seed_catalog(session)
            agent = AutomationAgent.current_session()
            topic_id = agent.post_submission_topic(12, '#12: alice\'s run')
            topic = session.get(models.ForumTopic, topic_id)
            self.assertEqual(topic.forum_id, 7)
            self.assertEqual(topic.poster_id, 505)
            self.assertEqual(topic.posts[0].text,
                             '[submission]12[/submission]')

    def test_post_submission_published(self):
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = make_submission(
                session, SubmissionStatus.PUBLISHED
            )
            agent = AutomationAgent.current_session()
            post_id = agent.post_submission_published(submission_id, 3)
            post = session.get(models.ForumPost, post_id)
            self.assertIn('[publication]3[/publication]', post.text)
            self.assertEqual(post.poster_id, 505)

    def test_reject_and_move(self):
        """Rejected submissions are fed to the grue."""
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = make_submission(session,
                                            SubmissionStatus.REJECTED)
            agent = AutomationAgent.current_session()
            post_id = agent.reject_and_move(submission_id)
            post = session.get(models.ForumPost, post_id)
            self.assertEqual(post.text, 'This submission has been rejected.')
            self.assertEqual(post.topic.forum_id, 24)

    def test_cancelled(self):
        with in_memory_db() as session:
            seed_catalog(session)
            submission_id = make_submission(session,
                                            SubmissionStatus.CANCELLED)
            agent = AutomationAgent.current_session()
            post = session.get(models.ForumPost,
                               agent.reject_and_move(submission_id))
            self.assertEqual(post.text,
                             'This submission has been cancelled.')


class TestRoleGrantor(TestCase):
    """Test :class:`.RoleGrantor`."""

    def test_assign(self):
        """Only missing auto-assignable roles are granted."""
        with in_memory_db() as session:
            seed_catalog(session)
            session.add(models.UserRole(user_id=2, role_id=1))
            session.commit()
            grantor = RoleGrantor.current_session()
            granted = grantor.assign_auto_assignable_roles_by_publication(
                [1, 2, 1], 'NES Mega Man by alice & bob in 01:00.00'
            )
            session.commit()
            self.assertEqual([(grant.user_id, grant.role_id)
                              for grant in granted], [(1, 1)])
            self.assertIsNone(session.get(models.UserRole, (1, 2)))
