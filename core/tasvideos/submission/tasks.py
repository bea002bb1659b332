"""
Post-commit side effects, carried out from an outbox.

Operations record side effects with :func:`enqueue` inside the transaction
of the change that causes them, and call :func:`dispatch` once that
transaction has committed. If ``ENABLE_ASYNC=0`` on the app config, the
tasks are carried out in-thread right away; otherwise the ids are sent to the
``outbox.drain`` task of the worker application.

Each task runs on its own. A task that fails is logged and marked failed,
and never affects the operation that queued it or the other tasks.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from celery import Celery

import logging

from . import config
from .context import get_application_global, get_setting
from .domain.publication import VideoDescriptor
from .services import store, VideoSync, RoleGrantor, AutomationAgent
from .services.store import models

logger = logging.getLogger(__name__)

VIDEO_SYNC = 'video_sync'
GRANT_ROLES = 'grant_roles'
NOTIFY_PUBLISHED = 'notify_published'
GRUE_FOOD = 'grue_food'

DRAIN = 'outbox.drain'

Handler = Callable[[Dict[str, Any]], None]


def sync_video(payload: Dict[str, Any]) -> None:
    VideoSync.current_session().sync(VideoDescriptor.from_dict(payload))


def grant_roles(payload: Dict[str, Any]) -> None:
    RoleGrantor.current_session().assign_auto_assignable_roles_by_publication(
        payload['author_ids'], payload['publication_title']
    )


def notify_published(payload: Dict[str, Any]) -> None:
    AutomationAgent.current_session().post_submission_published(
        payload['submission_id'], payload['publication_id']
    )


def feed_grue(payload: Dict[str, Any]) -> None:
    AutomationAgent.current_session().reject_and_move(
        payload['submission_id']
    )


HANDLERS: Dict[str, Handler] = {
    VIDEO_SYNC: sync_video,
    GRANT_ROLES: grant_roles,
    NOTIFY_PUBLISHED: notify_published,
    GRUE_FOOD: feed_grue,
}


def enqueue(kind: str, payload: Dict[str, Any]) -> models.OutboxTask:
    """Record a side effect in the current transaction."""
    if kind not in HANDLERS:
        raise ValueError(f'No handler for outbox tasks of kind {kind}')
    return store.add_outbox_task(kind, payload)


@store.retry_on_conflict
def _mark(task_id: int, status: str, error: Optional[str] = None) -> None:
    with store.transaction() as session:
        task = session.get(models.OutboxTask, task_id)
        task.status = status
        task.attempts = (task.attempts or 0) + 1
        task.last_error = error


def run(task_id: int) -> bool:
    """
    Carry out a single pending outbox task.

    Returns ``True`` if the task was carried out.
    """
    session = store.current_session()
    task = session.get(models.OutboxTask, task_id)
    if task is None or task.status != models.OutboxTask.PENDING:
        logger.debug('Outbox task %s is not pending', task_id)
        return False
    kind, payload = task.kind, dict(task.payload)
    try:
        with store.transaction():
            HANDLERS[kind](payload)
    except Exception as e:
        logger.exception('Outbox task %i (%s) failed', task_id, kind)
        _mark(task_id, models.OutboxTask.FAILED, str(e.__cause__ or e))
        return False
    _mark(task_id, models.OutboxTask.DONE)
    logger.debug('Outbox task %i (%s) done', task_id, kind)
    return True


def drain(task_ids: Optional[Iterable[int]] = None) -> List[int]:
    """
    Carry out pending outbox tasks, in the order they were queued.

    Parameters
    ----------
    task_ids : iterable
        Tasks to carry out. If not provided, all pending tasks are.

    Returns
    -------
    list
        Ids of the tasks that were carried out.

    """
    if task_ids is None:
        task_ids = [task_id for task_id, in (
            store.current_session().query(models.OutboxTask.id)
            .filter(models.OutboxTask.status == models.OutboxTask.PENDING)
            .order_by(models.OutboxTask.id)
        )]
    return [task_id for task_id in task_ids if run(task_id)]


def dispatch(task_ids: Iterable[int]) -> None:
    """
    Hand committed outbox tasks over for execution.

    Tasks that can not be handed over stay pending, and are picked up by
    the next :func:`drain` without arguments.
    """
    task_ids = list(task_ids)
    if not task_ids:
        return
    try:
        if get_setting('ENABLE_ASYNC', config.ENABLE_ASYNC):
            get_or_create_worker_app().send_task(DRAIN, (task_ids,))
        else:
            drain(task_ids)
    except Exception:
        logger.exception('Could not dispatch outbox tasks %s', task_ids)


def create_worker_app() -> Celery:
    """Initialize the worker application."""
    result_backend = get_setting('RESULT_BACKEND', config.RESULT_BACKEND)
    broker = get_setting('BROKER_URL', config.BROKER_URL)
    celery_app = Celery('submission',
                        backend=result_backend,
                        broker=broker)
    celery_app.conf.task_default_queue = 'submission-worker'
    celery_app.task(name=DRAIN)(drain)
    return celery_app


def get_or_create_worker_app() -> Celery:
    """
    Get the current worker app, or create one.

    Uses the Flask application global to keep track of the worker app.
    """
    g = get_application_global()
    if not g:
        return create_worker_app()
    if 'worker' not in g:
        g.worker = create_worker_app()
    return g.worker
