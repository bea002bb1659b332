"""Tests for :mod:`tasvideos.submission.tasks`."""

from unittest import TestCase, mock

from flask import Flask

from .. import tasks
from ..services import store
from ..services.store import models
from ..services.store.tests.util import in_memory_db, seed_catalog, \
    make_submission
from ..domain.status import SubmissionStatus


def queue(kind, payload):
    with store.transaction():
        task = tasks.enqueue(kind, payload)
        store.current_session().flush()
        return task.id


class TestEnqueue(TestCase):
    def test_unknown_kind(self):
        with in_memory_db():
            with self.assertRaises(ValueError):
                tasks.enqueue('send_email', {})


class TestDrain(TestCase):
    """Test :func:`.tasks.drain`."""

    def test_drain(self):
        """Pending tasks are carried out and marked done."""
        with in_memory_db() as session:
            seed_catalog(session)
            task_id = queue(tasks.GRANT_ROLES, {'author_ids': [1],
                                                'publication_title': 'Run'})
            self.assertEqual(tasks.drain(), [task_id])
            task = session.get(models.OutboxTask, task_id)
            self.assertEqual(task.status, models.OutboxTask.DONE)
            self.assertEqual(task.attempts, 1)
            self.assertIsNotNone(session.get(models.UserRole, (1, 1)))
            self.assertEqual(tasks.drain(), [])

    def test_failure(self):
        """A failed task is marked failed, and the others still run."""
        with in_memory_db() as session:
            seed_catalog(session)
            missing = queue(tasks.GRUE_FOOD, {'submission_id': 1234})
            submission_id = make_submission(session,
                                            SubmissionStatus.CANCELLED)
            fed = queue(tasks.GRUE_FOOD, {'submission_id': submission_id})

            self.assertEqual(tasks.drain([missing, fed]), [fed])
            failed = session.get(models.OutboxTask, missing)
            self.assertEqual(failed.status, models.OutboxTask.FAILED)
            self.assertIn('1234', failed.last_error)
            self.assertEqual(session.get(models.OutboxTask, fed).status,
                             models.OutboxTask.DONE)

    def test_handler_changes_rolled_back(self):
        """What a failing handler wrote is not kept."""
        def grant_then_fail(payload):
            store.current_session().add(models.UserRole(user_id=1,
                                                        role_id=2))
            store.current_session().flush()
            raise RuntimeError('halfway')

        with in_memory_db() as session:
            seed_catalog(session)
            task_id = queue(tasks.GRANT_ROLES, {'author_ids': [1],
                                                'publication_title': 'Run'})
            with mock.patch.dict(tasks.HANDLERS,
                                 {tasks.GRANT_ROLES: grant_then_fail}):
                self.assertEqual(tasks.drain([task_id]), [])
            self.assertIsNone(session.get(models.UserRole, (1, 2)))
            self.assertEqual(session.get(models.OutboxTask, task_id).status,
                             models.OutboxTask.FAILED)


class TestDispatch(TestCase):
    """Test :func:`.tasks.dispatch`."""

    def test_in_thread(self):
        with in_memory_db() as session:
            seed_catalog(session)
            task_id = queue(tasks.GRANT_ROLES, {'author_ids': [2],
                                                'publication_title': 'Run'})
            tasks.dispatch([task_id])
            self.assertEqual(session.get(models.OutboxTask, task_id).status,
                             models.OutboxTask.DONE)

    @mock.patch(f'{tasks.__name__}.get_or_create_worker_app')
    def test_async(self, mock_get_worker):
        """Tasks are sent to the worker once committed."""
        app = Flask('test')
        app.config['ENABLE_ASYNC'] = '1'
        with in_memory_db(app) as session:
            seed_catalog(session)
            task_id = queue(tasks.GRANT_ROLES, {'author_ids': [2],
                                                'publication_title': 'Run'})
            tasks.dispatch([task_id])
            mock_get_worker.return_value.send_task.assert_called_once_with(
                tasks.DRAIN, ([task_id],)
            )
            self.assertEqual(session.get(models.OutboxTask, task_id).status,
                             models.OutboxTask.PENDING)

    @mock.patch(f'{tasks.__name__}.get_or_create_worker_app')
    def test_broker_down(self, mock_get_worker):
        """Tasks that can not be handed over stay pending."""
        mock_get_worker.return_value.send_task.side_effect = \
            ConnectionError('broker down')
        app = Flask('test')
        app.config['ENABLE_ASYNC'] = True
        with in_memory_db(app) as session:
            seed_catalog(session)
            task_id = queue(tasks.GRANT_ROLES, {'author_ids': [2],
                                                'publication_title': 'Run'})
            tasks.dispatch([task_id])
            self.assertEqual(session.get(models.OutboxTask, task_id).status,
                             models.OutboxTask.PENDING)

    def test_nothing_to_do(self):
        with mock.patch(f'{tasks.__name__}.drain') as mock_drain:
            tasks.dispatch([])
        self.assertEqual(mock_drain.call_count, 0)


class TestWorkerApp(TestCase):
    def test_create(self):
        app = Flask('test')
        app.config['BROKER_URL'] = 'redis://broker:6379/0'
        with app.app_context():
            worker = tasks.get_or_create_worker_app()
            self.assertIs(tasks.get_or_create_worker_app(), worker)
        self.assertIn(tasks.DRAIN, worker.tasks)
        self.assertEqual(worker.conf.task_default_queue, 'submission-worker')
