"""Data structures for publications and their obsolescence history."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from dataclasses import dataclass, field, asdict
from dateutil.parser import parse as parse_date

from .util import get_tzaware_utc_now


class UrlType(Enum):
    """Kinds of links attached to a publication."""

    STREAMING = 'streaming'
    MIRROR = 'mirror'


@dataclass
class PublicationUrl:
    url: str
    type: UrlType = UrlType.STREAMING
    display_name: Optional[str] = None


@dataclass
class PublicationAuthor:
    user_id: int
    username: str = field(default_factory=str)
    ordinal: int = 0


@dataclass
class Publication:
    """An accepted, released TAS movie."""

    publication_id: int
    submission_id: int
    title: str = field(default_factory=str)
    game_id: Optional[int] = None
    game_version_id: Optional[int] = None
    game_goal_id: Optional[int] = None
    system_id: Optional[int] = None
    system_code: Optional[str] = None
    system_frame_rate_id: Optional[int] = None
    publication_class_id: Optional[int] = None
    emulator_version: Optional[str] = None
    frames: int = 0
    rerecord_count: int = 0
    movie_file_name: str = field(default_factory=str)
    additional_authors: Optional[str] = None
    authors: List[PublicationAuthor] = field(default_factory=list)
    urls: List[PublicationUrl] = field(default_factory=list)
    flag_ids: List[int] = field(default_factory=list)
    tag_ids: List[int] = field(default_factory=list)
    obsoleted_by_id: Optional[int] = None
    created: datetime = field(default_factory=get_tzaware_utc_now)

    @property
    def obsolete(self) -> bool:
        return self.obsoleted_by_id is not None

    @property
    def streaming_urls(self) -> List[PublicationUrl]:
        return [url for url in self.urls if url.type == UrlType.STREAMING]


@dataclass
class VideoDescriptor:
    """Everything the video host needs to describe a publication's video."""

    publication_id: int
    created: datetime
    url: str
    display_name: Optional[str]
    title: str
    wiki_markup: str
    system_code: str
    authors: List[str] = field(default_factory=list)
    obsoleted_by_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, for outbox payloads and the sync API."""
        data = asdict(self)
        data['created'] = self.created.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VideoDescriptor':
        data = dict(data)
        if isinstance(data.get('created'), str):
            data['created'] = parse_date(data['created'])
        return cls(**data)


@dataclass
class FlagEntry:
    icon_path: Optional[str]
    link_path: Optional[str]
    name: str


@dataclass
class PublicationHistoryNode:
    """A publication together with the publications it obsoleted."""

    publication_id: int
    title: str
    created: datetime
    class_name: str = field(default_factory=str)
    class_icon_path: Optional[str] = None
    goal: Optional[str] = None
    flags: List[FlagEntry] = field(default_factory=list)
    obsoleted_by_id: Optional[int] = None
    obsoletes: List['PublicationHistoryNode'] = field(default_factory=list)


@dataclass
class PublicationHistoryGroup:
    """Publication history of a game, grouped under current publications."""

    game_id: int
    game_display_name: str
    goals: List[PublicationHistoryNode] = field(default_factory=list)


@dataclass
class ObsoletePublication:
    """What a publisher copies over from a publication being obsoleted."""

    title: str
    tag_ids: List[int]
    markup: Optional[str]
