"""
Revisioned wiki pages that hold submission and publication descriptions.

Each call to :meth:`WikiPages.add` appends a revision; the highest revision
of a page is its current content. Revisions are written in the caller's
transaction, so a wiki write that fails takes the whole operation with it.
"""

from datetime import datetime
from typing import Optional

from dataclasses import dataclass

import logging

from ..context import get_application_global
from ..domain.util import as_utc
from .store import models, current_session

logger = logging.getLogger(__name__)

SUBMISSION_PAGE_PREFIX = 'InternalSystem/SubmissionContent/S'
PUBLICATION_PAGE_PREFIX = 'InternalSystem/PublicationContent/M'


def submission_page_name(submission_id: int) -> str:
    return f'{SUBMISSION_PAGE_PREFIX}{submission_id}'


def publication_page_name(publication_id: int) -> str:
    return f'{PUBLICATION_PAGE_PREFIX}{publication_id}'


@dataclass
class WikiPage:
    """A single revision of a wiki page."""

    page_name: str
    revision: int
    markup: str
    author_id: Optional[int]
    revision_message: Optional[str]
    minor_edit: bool
    created: datetime


def _to_page(row: models.WikiPage) -> WikiPage:
    return WikiPage(page_name=row.page_name, revision=row.revision,
                    markup=row.markup, author_id=row.author_id,
                    revision_message=row.revision_message,
                    minor_edit=bool(row.minor_edit),
                    created=as_utc(row.created))


class WikiPages:
    """Reads and writes wiki page revisions in the site database."""

    @classmethod
    def get_session(cls) -> 'WikiPages':
        return cls()

    @classmethod
    def current_session(cls) -> 'WikiPages':
        """Get/create :class:`.WikiPages` for this context."""
        g = get_application_global()
        if not g:
            return cls.get_session()
        elif 'wiki' not in g:
            g.wiki = cls.get_session()   # type: ignore
        return g.wiki    # type: ignore

    def _current_row(self, page_name: str) -> Optional[models.WikiPage]:
        return current_session().query(models.WikiPage) \
            .filter(models.WikiPage.page_name == page_name) \
            .order_by(models.WikiPage.revision.desc()) \
            .first()

    def add(self, page_name: str, markup: str, author_id: Optional[int],
            revision_message: Optional[str] = None,
            minor_edit: bool = False) -> WikiPage:
        """
        Add a new revision of ``page_name``.

        Parameters
        ----------
        page_name : str
        markup : str
            Full content of the new revision.
        author_id : int or None
            User responsible for the revision.
        revision_message : str
        minor_edit : bool

        Returns
        -------
        :class:`.WikiPage`
            The revision that was added.

        """
        if not page_name:
            raise ValueError('A wiki page needs a name')
        session = current_session()
        current = self._current_row(page_name)
        row = models.WikiPage(
            page_name=page_name,
            revision=current.revision + 1 if current else 1,
            markup=markup or '',
            revision_message=revision_message,
            minor_edit=minor_edit,
            author_id=author_id
        )
        session.add(row)
        session.flush()
        logger.debug('Added revision %i of %s', row.revision, page_name)
        return _to_page(row)

    def page(self, page_name: str) -> Optional[WikiPage]:
        """Get the current revision of ``page_name``, if it exists."""
        row = self._current_row(page_name)
        return _to_page(row) if row else None

    def submission_page(self, submission_id: int) -> Optional[WikiPage]:
        return self.page(submission_page_name(submission_id))

    def publication_page(self, publication_id: int) -> Optional[WikiPage]:
        return self.page(publication_page_name(publication_id))
