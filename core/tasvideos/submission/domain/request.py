"""Inputs to the workflow operations."""

from typing import List, Optional

from dataclasses import dataclass, field

from .agent import User
from .parse import ParseResult
from .status import SubmissionStatus


@dataclass
class SubmitRequest:
    """A new movie submission, already parsed by the ingest adapter."""

    submitter: User
    parse_result: ParseResult
    movie_file: bytes
    """Canonical (zip-wrapped) movie file."""
    markup: str = field(default_factory=str)
    game_name: str = field(default_factory=str)
    game_version: Optional[str] = None
    goal_name: Optional[str] = None
    rom_name: Optional[str] = None
    emulator: Optional[str] = None
    encode_embed_link: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    """User names of credited authors, in display order."""
    external_authors: Optional[str] = None


@dataclass
class MovieUpload:
    """An uploaded movie file as received from the client."""

    data: bytes
    filename: str
    content_type: Optional[str] = None
    """MIME type declared by the client, if any."""


@dataclass
class UpdateSubmissionRequest:
    """An edit of a submission, possibly including a status change."""

    submission_id: int
    user: User
    status: SubmissionStatus
    game_name: str = field(default_factory=str)
    game_version: Optional[str] = None
    goal: Optional[str] = None
    rom_name: Optional[str] = None
    emulator: Optional[str] = None
    encode_embed_link: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    external_authors: Optional[str] = None
    intended_publication_class: Optional[int] = None
    rejection_reason: Optional[int] = None
    replace_movie_file: Optional[MovieUpload] = None
    markup_changed: bool = False
    markup: Optional[str] = None
    minor_edit: bool = False
    revision_message: Optional[str] = None


@dataclass
class PublishRequest:
    """The publisher's input for turning a submission into a publication."""

    submission_id: int
    user_id: int
    movie_filename: str
    movie_extension: str
    online_watching_url: str
    movie_description: str = field(default_factory=str)
    alternate_online_watching_url: Optional[str] = None
    alternate_online_watch_url_name: Optional[str] = None
    mirror_site_url: Optional[str] = None
    selected_flags: List[int] = field(default_factory=list)
    selected_tags: List[int] = field(default_factory=list)
    movie_to_obsolete: Optional[int] = None

    @property
    def movie_file_name(self) -> str:
        return f'{self.movie_filename}.{self.movie_extension}'
