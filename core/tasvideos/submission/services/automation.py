"""
The site automation account.

Posts workflow notices to submission discussion topics, opens the topic of
new submissions, and moves topics of rejected or cancelled submissions to
the grue-food forum.
"""

from typing import Optional

import logging

from .. import config
from ..context import get_application_config, get_application_global
from ..domain.status import SubmissionStatus
from .store import models, current_session
from . import forum

logger = logging.getLogger(__name__)


class AutomationAgent:
    """Posts on behalf of the site automation user."""

    def __init__(self, user_id: int, workbench_forum_id: int,
                 grue_food_forum_id: int) -> None:
        self.user_id = user_id
        self.workbench_forum_id = workbench_forum_id
        self.grue_food_forum_id = grue_food_forum_id

    @classmethod
    def init_app(cls, app: object = None) -> None:
        """Set default configuration params for an application instance."""
        config_ = get_application_config(app)
        config_.setdefault('AUTOMATION_USER_ID', config.AUTOMATION_USER_ID)
        config_.setdefault('WORKBENCH_FORUM_ID', config.WORKBENCH_FORUM_ID)
        config_.setdefault('GRUE_FOOD_FORUM_ID', config.GRUE_FOOD_FORUM_ID)

    @classmethod
    def get_session(cls, app: object = None) -> 'AutomationAgent':
        """Get a new automation agent."""
        config_ = get_application_config(app)
        return cls(
            int(config_.get('AUTOMATION_USER_ID', config.AUTOMATION_USER_ID)),
            int(config_.get('WORKBENCH_FORUM_ID', config.WORKBENCH_FORUM_ID)),
            int(config_.get('GRUE_FOOD_FORUM_ID', config.GRUE_FOOD_FORUM_ID))
        )

    @classmethod
    def current_session(cls) -> 'AutomationAgent':
        """Get/create :class:`.AutomationAgent` for this context."""
        g = get_application_global()
        if not g:
            return cls.get_session()
        elif 'automation' not in g:
            g.automation = cls.get_session()   # type: ignore
        return g.automation    # type: ignore

    def _submission(self, submission_id: int) -> models.Submission:
        row = current_session().get(models.Submission, submission_id)
        if row is None:
            raise LookupError(f'No submission with id {submission_id}')
        return row

    def post_submission_topic(self, submission_id: int, title: str) -> int:
        """Open the discussion topic of a new submission."""
        session = current_session()
        topic = models.ForumTopic(forum_id=self.workbench_forum_id,
                                  title=title, poster_id=self.user_id)
        session.add(topic)
        forum.add_post(topic, self.user_id,
                       f'[submission]{submission_id}[/submission]',
                       subject=title)
        session.flush()
        logger.debug('Opened topic %i for submission %i',
                     topic.id, submission_id)
        return topic.id

    def post_submission_published(self, submission_id: int,
                                  publication_id: int) -> Optional[int]:
        """Announce a publication in its submission's discussion topic."""
        submission = self._submission(submission_id)
        topic = forum.get_topic(submission.topic_id)
        if topic is None:
            logger.debug('Submission %i has no topic, nothing to announce',
                         submission_id)
            return None
        post = forum.add_post(
            topic, self.user_id,
            f'This movie has been published.\n'
            f'[publication]{publication_id}[/publication]',
            subject='Movie published'
        )
        current_session().flush()
        return post.id

    def reject_and_move(self, submission_id: int) -> Optional[int]:
        """Post the verdict and move the topic to the grue-food forum."""
        submission = self._submission(submission_id)
        topic = forum.get_topic(submission.topic_id)
        if topic is None:
            return None
        if submission.status == SubmissionStatus.CANCELLED:
            text = 'This submission has been cancelled.'
        else:
            text = 'This submission has been rejected.'
        post = forum.add_post(topic, self.user_id, text)
        if topic.forum_id != self.grue_food_forum_id:
            forum.move_topic(topic, self.grue_food_forum_id)
        current_session().flush()
        return post.id
