"""Discussion topics attached to submissions."""

from typing import Optional

import logging

from ..context import get_application_global
from .store import models, current_session

logger = logging.getLogger(__name__)


class TopicWatcher:
    """Manages which users are notified of new posts in a topic."""

    @classmethod
    def get_session(cls) -> 'TopicWatcher':
        return cls()

    @classmethod
    def current_session(cls) -> 'TopicWatcher':
        """Get/create :class:`.TopicWatcher` for this context."""
        g = get_application_global()
        if not g:
            return cls.get_session()
        elif 'topic_watcher' not in g:
            g.topic_watcher = cls.get_session()   # type: ignore
        return g.topic_watcher    # type: ignore

    def is_watching(self, topic_id: int, user_id: int) -> bool:
        session = current_session()
        return session.get(models.TopicWatch, (topic_id, user_id)) is not None

    def watch_topic(self, topic_id: int, user_id: int, enabled: bool) -> None:
        """Start (``enabled``) or stop watching a topic."""
        session = current_session()
        watch = session.get(models.TopicWatch, (topic_id, user_id))
        if enabled and watch is None:
            session.add(models.TopicWatch(topic_id=topic_id, user_id=user_id))
        elif not enabled and watch is not None:
            session.delete(watch)


def get_topic(topic_id: Optional[int]) -> Optional[models.ForumTopic]:
    if topic_id is None:
        return None
    return current_session().get(models.ForumTopic, topic_id)


def move_topic(topic: models.ForumTopic, forum_id: int) -> None:
    """Move a topic, and every post in it, to another forum."""
    logger.debug('Moving topic %i from forum %i to %i',
                 topic.id, topic.forum_id, forum_id)
    topic.forum_id = forum_id
    for post in topic.posts:
        post.forum_id = forum_id


def add_post(topic: models.ForumTopic, poster_id: int, text: str,
             subject: Optional[str] = None) -> models.ForumPost:
    post = models.ForumPost(topic=topic, forum_id=topic.forum_id,
                            poster_id=poster_id, subject=subject, text=text)
    current_session().add(post)
    return post
