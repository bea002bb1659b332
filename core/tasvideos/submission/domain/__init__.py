"""Core data structures for the submission and publication workflow."""

from .agent import Agent, User, System, PermissionTo
from .status import SubmissionStatus
from .parse import ParseResult, ParsedSubmissionData, Region, HashType, \
    MovieStartType
from .submission import Submission, SubmissionAuthor, MovieMetadata, \
    StatusHistoryEntry
from .publication import Publication, PublicationAuthor, PublicationUrl, \
    UrlType, VideoDescriptor, PublicationHistoryNode, \
    PublicationHistoryGroup, FlagEntry, ObsoletePublication
from .request import SubmitRequest, UpdateSubmissionRequest, PublishRequest, \
    MovieUpload
from .result import Failure, Result, SubmitResult, UpdateSubmissionResult, \
    ClaimResult, PublishResult, ObsoleteResult
