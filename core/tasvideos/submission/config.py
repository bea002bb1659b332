"""Submission core configuration parameters."""

from os import environ
import warnings

LOGLEVEL = int(environ.get('LOGLEVEL', '20'))
"""
Logging verbosity.

See `https://docs.python.org/3/library/logging.html#levels`_.
"""

CORE_VERSION = "0.1.0"

# --- WORKFLOW ---

MINIMUM_HOURS_BEFORE_JUDGMENT = int(
    environ.get('MINIMUM_HOURS_BEFORE_JUDGMENT', '72')
)
"""Hours that must pass after submission before a verdict may be given."""

MAX_DECOMPRESSED_SIZE = int(
    environ.get('MAX_DECOMPRESSED_SIZE', str(100 * 1024 * 1024))
)
"""Ceiling, in bytes, for decompressed movie uploads (zip-bomb defense)."""

ANNOTATIONS_MAX_LENGTH = int(environ.get('ANNOTATIONS_MAX_LENGTH', '3500'))
"""Parser annotations longer than this are truncated with an ellipsis."""

WARNINGS_MAX_LENGTH = int(environ.get('WARNINGS_MAX_LENGTH', '500'))
"""Joined parser warnings longer than this are truncated."""

DEPRECATED_MOVIE_FORMATS = environ.get('DEPRECATED_MOVIE_FORMATS', '')
"""Comma-separated movie file extensions that may no longer be submitted."""

# --- DATABASE CONFIGURATION ---

SUBMISSION_DATABASE_URI = environ.get('SUBMISSION_DATABASE_URI', 'sqlite://')
"""Full database URI for the site database."""

SQLALCHEMY_DATABASE_URI = SUBMISSION_DATABASE_URI
"""Full database URI for the site database."""

SQLALCHEMY_TRACK_MODIFICATIONS = False
"""Track modifications feature should always be disabled."""

CONFLICT_RETRY_TRIES = int(environ.get('CONFLICT_RETRY_TRIES', '3'))
"""Attempts for secondary writes that lose a write race."""

CONFLICT_RETRY_DELAY = float(environ.get('CONFLICT_RETRY_DELAY', '0.05'))
"""Initial delay (seconds) between attempts; doubles after each one."""

CONFLICT_RETRY_MAX_DELAY = float(
    environ.get('CONFLICT_RETRY_MAX_DELAY', '1.0')
)
"""Upper bound (seconds) for the delay between attempts."""

# --- ASYNC WORKER ---

ENABLE_ASYNC = bool(int(environ.get('ENABLE_ASYNC', '0')))
"""
Send post-commit outbox tasks to the worker.

If disabled, outbox tasks are drained in-thread right after commit.
"""

BROKER_URL = environ.get('SUBMISSION_BROKER_URL', 'redis://localhost:6379/0')
"""Celery broker for the submission worker."""

RESULT_BACKEND = environ.get('SUBMISSION_RESULT_BACKEND',
                             'redis://localhost:6379/0')
"""Celery result backend for the submission worker."""

# --- UPSTREAM SERVICE INTEGRATIONS ---

VIDEOSYNC_ENABLED = bool(int(environ.get('VIDEOSYNC_ENABLED', '1')))
"""Enable/disable pushing publication details to the video host."""

VIDEOSYNC_ENDPOINT = environ.get('VIDEOSYNC_ENDPOINT',
                                 'http://localhost:8000/videosync/')
"""Root of the video-sync service API."""

VIDEOSYNC_VERIFY = bool(int(environ.get('VIDEOSYNC_VERIFY', '1')))
"""Enable/disable SSL certificate verification for the video-sync service."""

if VIDEOSYNC_ENDPOINT.startswith('https') and not VIDEOSYNC_VERIFY:
    warnings.warn('Certificate verification for video sync is disabled; this'
                  ' should not be disabled in production.')

VIDEOSYNC_TIMEOUT = float(environ.get('VIDEOSYNC_TIMEOUT', '10'))
"""Seconds to wait for the video-sync service."""

# --- FORUM ---

WORKBENCH_FORUM_ID = int(environ.get('WORKBENCH_FORUM_ID', '7'))
"""Forum holding discussion topics of work-in-progress submissions."""

PLAYGROUND_FORUM_ID = int(environ.get('PLAYGROUND_FORUM_ID', '96'))
"""Forum holding discussion topics of playground submissions."""

GRUE_FOOD_FORUM_ID = int(environ.get('GRUE_FOOD_FORUM_ID', '24'))
"""Forum holding discussion topics of rejected or cancelled submissions."""

AUTOMATION_USER_ID = int(environ.get('AUTOMATION_USER_ID', '505'))
"""User id of the automation account that posts workflow notices."""
