"""Display titles of submissions and publications."""

from typing import List, Optional, Union

from .domain.util import format_movie_time, join_names, split_csv
from .services.store import models

Row = Union[models.Submission, models.Publication]


def _game_name(row: Row) -> str:
    if row.game_version is not None and row.game_version.title_override:
        return row.game_version.title_override
    if row.game is not None:
        return row.game.display_name
    return getattr(row, 'game_name', None) or ''


def _goal(row: Row) -> Optional[str]:
    if row.game_goal is not None:
        goal = row.game_goal.display_name
    else:
        goal = getattr(row, 'branch', None)
    if not goal or goal.strip().lower() == 'baseline':
        return None
    return goal.strip()


def _author_names(row: Row) -> List[str]:
    names = [author.author.username for author in row.authors
             if author.author is not None]
    return names + split_csv(row.additional_authors)


def _time(row: Row) -> str:
    frame_rate = row.system_frame_rate.frame_rate \
        if row.system_frame_rate is not None else None
    return format_movie_time(row.frames or 0, frame_rate)


def _system(row: Row) -> str:
    return row.system.code if row.system is not None else 'Unknown'


def submission_title(row: models.Submission) -> str:
    """E.g. ``#42: Alice & Bob's NES Mega Man "100%" in 23:05.12``."""
    goal = _goal(row)
    parts = [f"#{row.id}: {join_names(_author_names(row))}'s",
             _system(row), _game_name(row)]
    if goal:
        parts.append(f'"{goal}"')
    parts.append(f'in {_time(row)}')
    return ' '.join(part for part in parts if part)


def publication_title(row: models.Publication) -> str:
    """E.g. ``NES Mega Man "100%" by Alice & Bob in 23:05.12``."""
    goal = _goal(row)
    parts = [_system(row), _game_name(row)]
    if goal:
        parts.append(f'"{goal}"')
    parts.append(f'by {join_names(_author_names(row))}')
    parts.append(f'in {_time(row)}')
    return ' '.join(part for part in parts if part)
