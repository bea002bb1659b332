"""Data structures for submissions."""

from datetime import datetime
from typing import List, Optional

from dataclasses import dataclass, field

from .parse import MovieStartType
from .status import SubmissionStatus
from .util import get_tzaware_utc_now


@dataclass
class SubmissionAuthor:
    """A registered user credited as an author, in display order."""

    user_id: int
    username: str = field(default_factory=str)
    ordinal: int = 0


@dataclass
class MovieMetadata:
    """What the movie parser told us about the submitted movie file."""

    frames: int = 0
    rerecord_count: int = 0
    extension: Optional[str] = None
    system_id: Optional[int] = None
    system_code: Optional[str] = None
    system_frame_rate_id: Optional[int] = None
    frame_rate: Optional[float] = None
    start_type: MovieStartType = MovieStartType.POWER_ON
    cycle_count: Optional[int] = None
    hash_type: Optional[str] = None
    hash: Optional[str] = None
    annotations: Optional[str] = None
    warnings: Optional[str] = None


@dataclass
class Submission:
    """A candidate TAS movie moving through judgment and publication."""

    submission_id: int
    status: SubmissionStatus
    submitter_id: int
    created: datetime = field(default_factory=get_tzaware_utc_now)
    updated: Optional[datetime] = None
    title: str = field(default_factory=str)

    judge_id: Optional[int] = None
    publisher_id: Optional[int] = None

    game_id: Optional[int] = None
    game_version_id: Optional[int] = None
    game_goal_id: Optional[int] = None
    game_name: Optional[str] = None
    submitted_game_version: Optional[str] = None
    branch: Optional[str] = None
    rom_name: Optional[str] = None
    emulator_version: Optional[str] = None
    encode_embed_link: Optional[str] = None

    authors: List[SubmissionAuthor] = field(default_factory=list)
    additional_authors: Optional[str] = None
    """Comma-separated names of authors without site accounts."""

    movie: MovieMetadata = field(default_factory=MovieMetadata)
    topic_id: Optional[int] = None
    intended_class_id: Optional[int] = None
    rejection_reason_id: Optional[int] = None
    version: int = 1
    """Version token; bumped by every persisted change."""

    @property
    def published(self) -> bool:
        return self.status == SubmissionStatus.PUBLISHED

    def is_author_or_submitter(self, user_id: int) -> bool:
        """Check whether ``user_id`` submitted or co-authored the movie."""
        return user_id == self.submitter_id \
            or any(author.user_id == user_id for author in self.authors)

    def is_judge(self, user_id: int) -> bool:
        return self.judge_id is not None and self.judge_id == user_id

    def is_publisher(self, user_id: int) -> bool:
        return self.publisher_id is not None and self.publisher_id == user_id


@dataclass
class StatusHistoryEntry:
    """Append-only record of the status a submission left."""

    submission_id: int
    status: SubmissionStatus
    created: datetime
