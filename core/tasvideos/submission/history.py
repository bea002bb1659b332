"""
The obsolescence graph of publications.

A publication is obsoleted by at most one newer publication of the same
game. :func:`obsolete_with` records such an edge and re-syncs the videos of
the obsoleted publication; :func:`for_game` reads a game's publications
back as trees rooted at the publications that are still current.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

import logging

from . import tasks
from .core import boundary
from .domain.publication import FlagEntry, ObsoletePublication, \
    PublicationHistoryGroup, PublicationHistoryNode, UrlType, \
    VideoDescriptor
from .domain.result import ObsoleteResult
from .domain.util import as_utc
from .exceptions import NotFound, PreconditionFailed
from .services import store, VideoSync, WikiPages
from .services.store import models

logger = logging.getLogger(__name__)


def _check_edge(to_obsolete: models.Publication,
                obsoleting: models.Publication) -> None:
    if to_obsolete.id == obsoleting.id:
        raise PreconditionFailed('A publication can not obsolete itself')
    if to_obsolete.game_id != obsoleting.game_id:
        raise PreconditionFailed('Only a publication of the same game can'
                                 ' obsolete another')
    # Walk up from the obsoleting publication; meeting the target would
    # close a cycle.
    seen = {obsoleting.id}
    parent_id = obsoleting.obsoleted_by_id
    while parent_id is not None and parent_id not in seen:
        if parent_id == to_obsolete.id:
            raise PreconditionFailed(f'Publication {to_obsolete.id} already'
                                     f' obsoletes {obsoleting.id}')
        seen.add(parent_id)
        parent_id = store.get_publication(parent_id).obsoleted_by_id


def video_descriptor(row: models.Publication, url: models.PublicationUrlRow,
                     wiki_markup: str) -> VideoDescriptor:
    """Describe the video at ``url`` of a publication."""
    return VideoDescriptor(
        publication_id=row.id,
        created=as_utc(row.created),
        url=url.url,
        display_name=url.display_name,
        title=row.title,
        wiki_markup=wiki_markup,
        system_code=row.system.code if row.system else '',
        authors=[author.author.username for author in row.authors
                 if author.author is not None],
        obsoleted_by_id=row.obsoleted_by_id
    )


def queue_video_sync(row: models.Publication,
                     urls: Iterable[models.PublicationUrlRow],
                     wiki_markup: Optional[str]) -> List[models.OutboxTask]:
    """Queue one sync task per recognized streaming URL."""
    videosync = VideoSync.current_session()
    return [
        tasks.enqueue(tasks.VIDEO_SYNC,
                      video_descriptor(row, url, wiki_markup or '').to_dict())
        for url in urls
        if url.type == UrlType.STREAMING
        and videosync.is_recognized_url(url.url)
    ]


def obsolete(to_obsolete: models.Publication,
             obsoleting: models.Publication) -> List[models.OutboxTask]:
    """
    Record that ``obsoleting`` supersedes ``to_obsolete``.

    Runs inside the caller's transaction. Returns the queued video sync
    tasks, to be dispatched once the transaction has committed.
    """
    _check_edge(to_obsolete, obsoleting)
    to_obsolete.obsoleted_by_id = obsoleting.id
    page = WikiPages.current_session().publication_page(to_obsolete.id)
    logger.info('Publication %i obsoleted by %i',
                to_obsolete.id, obsoleting.id)
    return queue_video_sync(to_obsolete, to_obsolete.urls,
                            page.markup if page else None)


@store.retry_on_conflict
def _obsolete_with(to_obsolete_id: int, obsoleting_id: int) -> List[int]:
    with store.transaction() as session:
        try:
            to_obsolete = store.get_publication(to_obsolete_id,
                                                for_update=True)
            obsoleting = store.get_publication(obsoleting_id)
        except store.NoSuchPublication as e:
            raise NotFound(str(e)) from e
        outbox = obsolete(to_obsolete, obsoleting)
        session.flush()
        return [task.id for task in outbox]


@boundary(ObsoleteResult)
def obsolete_with(to_obsolete_id: int, obsoleting_id: int) -> ObsoleteResult:
    """
    Mark a publication as obsoleted by another.

    Re-obsoleting an already obsolete publication moves the edge. Each
    recognized streaming video of the obsoleted publication is re-synced
    on its own after the change has committed.

    Parameters
    ----------
    to_obsolete_id : int
    obsoleting_id : int

    Returns
    -------
    :class:`.ObsoleteResult`

    """
    tasks.dispatch(_obsolete_with(to_obsolete_id, obsoleting_id))
    return ObsoleteResult(publication_id=to_obsolete_id,
                          obsoleted_by_id=obsoleting_id)


def _to_node(row: models.Publication) -> PublicationHistoryNode:
    return PublicationHistoryNode(
        publication_id=row.id,
        title=row.title,
        created=as_utc(row.created),
        class_name=row.publication_class.name if row.publication_class
        else '',
        class_icon_path=row.publication_class.icon_path
        if row.publication_class else None,
        goal=row.game_goal.display_name if row.game_goal else None,
        flags=[FlagEntry(icon_path=flag.icon_path, link_path=flag.link_path,
                         name=flag.name) for flag in row.flags],
        obsoleted_by_id=row.obsoleted_by_id
    )


def group_history(nodes: List[PublicationHistoryNode]) \
        -> List[PublicationHistoryNode]:
    """
    Attach each node to the node that obsoleted it.

    Children are indexed by their ``obsoleted_by_id`` in a single pass, so
    attaching is linear in the number of nodes. Returns the current
    (non-obsolete) nodes.
    """
    obsoleted_by: Dict[int, List[PublicationHistoryNode]] = defaultdict(list)
    for node in nodes:
        if node.obsoleted_by_id is not None:
            obsoleted_by[node.obsoleted_by_id].append(node)
    for node in nodes:
        node.obsoletes = obsoleted_by.get(node.publication_id, [])
    return [node for node in nodes if node.obsoleted_by_id is None]


def for_game(game_id: int) -> Optional[PublicationHistoryGroup]:
    """Publication history of a game, or ``None`` if there is no such game."""
    try:
        game = store.get_game(game_id)
    except store.NoSuchGame:
        return None
    nodes = [_to_node(row) for row in store.get_publications_for_game(game_id)]
    return PublicationHistoryGroup(game_id=game.id,
                                   game_display_name=game.display_name,
                                   goals=group_history(nodes))


def for_game_by_publication(publication_id: int) \
        -> Optional[PublicationHistoryGroup]:
    """Publication history of the game of a publication."""
    try:
        row = store.get_publication(publication_id)
    except store.NoSuchPublication:
        return None
    return for_game(row.game_id)


def get_obsolete_publication_tags(publication_id: int) \
        -> Optional[ObsoletePublication]:
    """What a publisher carries over from a publication being obsoleted."""
    try:
        row = store.get_publication(publication_id)
    except store.NoSuchPublication:
        return None
    page = WikiPages.current_session().publication_page(publication_id)
    return ObsoletePublication(title=row.title,
                               tag_ids=[tag.id for tag in row.tags],
                               markup=page.markup if page else None)
