"""Data structures for agents."""

import hashlib
from enum import Enum
from typing import Any, FrozenSet

from dataclasses import dataclass, field

__all__ = ('PermissionTo', 'Agent', 'User', 'System')


class PermissionTo(Enum):
    """Permission facts consumed by the workflow; granted elsewhere."""

    SUBMIT_MOVIES = 'SubmitMovies'
    JUDGE_SUBMISSIONS = 'JudgeSubmissions'
    PUBLISH_MOVIES = 'PublishMovies'
    OVERRIDE_SUBMISSION_CONSTRAINTS = 'OverrideSubmissionConstraints'
    """Set any status other than Published, regardless of workflow rules."""


@dataclass
class Agent:
    """
    Base class for agents in the submission system.

    An agent is an actor/system that is responsible for a change.
    """

    native_id: int
    """Type-specific identifier for the agent (a user id)."""

    def __post_init__(self) -> None:
        """Set derivative fields."""
        self.agent_type = self.__class__.get_agent_type()
        self.agent_identifier = self.get_agent_identifier()

    @classmethod
    def get_agent_type(cls) -> str:
        """Get the name of the instance's class."""
        return cls.__name__

    def get_agent_identifier(self) -> str:
        """
        Get the unique identifier for this agent instance.

        Based on both the agent type and native ID.
        """
        h = hashlib.new('sha1')
        h.update(b'%s:%s' % (self.agent_type.encode('utf-8'),
                             str(self.native_id).encode('utf-8')))
        return h.hexdigest()

    def __eq__(self, other: Any) -> bool:
        """Equality comparison for agents based on type and identifier."""
        if not isinstance(other, self.__class__):
            return False
        return self.agent_identifier == other.agent_identifier

    def __hash__(self) -> int:
        return hash(self.agent_identifier)


@dataclass(eq=False)
class User(Agent):
    """A (human) site user."""

    username: str = field(default_factory=str)
    permissions: FrozenSet[PermissionTo] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        """Set derivative fields."""
        super(User, self).__post_init__()
        self.permissions = frozenset(self.permissions)

    @property
    def user_id(self) -> int:
        return self.native_id

    def has(self, permission: PermissionTo) -> bool:
        """Check whether the user holds ``permission``."""
        return permission in self.permissions


@dataclass(eq=False)
class System(Agent):
    """The site automation account that posts on behalf of the system."""

    username: str = field(default='TASVideoAgent')
