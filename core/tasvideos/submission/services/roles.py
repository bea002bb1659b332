"""Grants roles that authors earn by having a movie published."""

from typing import Iterable, List

import logging

from ..context import get_application_global
from .store import models, current_session

logger = logging.getLogger(__name__)


class RoleGrantor:
    """Assigns auto-assignable roles to users."""

    @classmethod
    def get_session(cls) -> 'RoleGrantor':
        return cls()

    @classmethod
    def current_session(cls) -> 'RoleGrantor':
        """Get/create :class:`.RoleGrantor` for this context."""
        g = get_application_global()
        if not g:
            return cls.get_session()
        elif 'role_grantor' not in g:
            g.role_grantor = cls.get_session()   # type: ignore
        return g.role_grantor    # type: ignore

    def assign_auto_assignable_roles_by_publication(
            self, author_ids: Iterable[int],
            publication_title: str) -> List[models.UserRole]:
        """
        Give each author every publication role they do not have yet.

        Returns the newly created grants.
        """
        session = current_session()
        roles = list(
            session.query(models.Role)
            .filter(models.Role.auto_assign_publications.is_(True))
        )
        granted: List[models.UserRole] = []
        for user_id in dict.fromkeys(author_ids):
            for role in roles:
                if session.get(models.UserRole, (user_id, role.id)):
                    continue
                grant = models.UserRole(user_id=user_id, role_id=role.id)
                session.add(grant)
                granted.append(grant)
                logger.info('Granted role %s to user %i for "%s"',
                            role.name, user_id, publication_title)
        return granted
