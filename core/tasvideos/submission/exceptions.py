"""Exceptions raised during submission workflow operations."""


class SubmissionError(Exception):
    """Base for expected workflow failures."""


class NotFound(SubmissionError):
    """A referenced submission, publication or game does not exist."""


class PreconditionFailed(SubmissionError):
    """The operation is not allowed in the current status or claim state."""


class ValidationFailed(SubmissionError):
    """Input could not be accepted, e.g. an unparseable movie file."""


class DecompressionLimitExceeded(ValidationFailed):
    """A decompressed upload exceeds the configured size ceiling."""


class ConcurrencyConflict(SubmissionError):
    """Another writer changed the row since it was loaded."""


class DependencyFailure(SubmissionError):
    """A best-effort collaborator failed after the state change committed."""
