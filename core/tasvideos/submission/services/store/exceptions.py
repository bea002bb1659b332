"""Exceptions raised by :mod:`tasvideos.submission.services.store`."""


class StoreBaseException(RuntimeError):
    """Base for store service exceptions."""


class TransactionFailed(StoreBaseException):
    """Raised when there was a problem committing changes to the database."""


class Unavailable(StoreBaseException):
    """The site database is not available."""


class NoSuchSubmission(StoreBaseException):
    """A request was made for a submission that does not exist."""


class NoSuchPublication(StoreBaseException):
    """A request was made for a publication that does not exist."""


class NoSuchGame(StoreBaseException):
    """A request was made for a game that does not exist."""
