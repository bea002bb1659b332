"""
Submission lifecycle and publication workflow for TASVideos.

This package governs a tool-assisted speedrun submission from intake,
through judgment, to publication.

Overview
========

Data structures live in :mod:`.domain`; they do no I/O. Workflow state is
persisted in the site database through :mod:`.services.store`. The
operations are:

- :func:`.record.submit` and :func:`.record.update_submission` create and
  edit submissions. Status changes are checked against
  :func:`.authorization.available_statuses` before anything is written.
- :func:`.claim.claim_for_judging` and :func:`.claim.claim_for_publishing`
  hand a submission to exactly one judge or publisher.
- :func:`.publish.publish` turns a claimed submission into a publication,
  optionally obsoleting an older one.
- :func:`.history.obsolete_with`, :func:`.history.for_game` and
  :func:`.history.for_game_by_publication` maintain and read the
  obsolescence graph of publications.

Uploaded movie files are turned into parse results by :mod:`.ingest`.

.. code-block:: python

   from tasvideos.submission import claim_for_judging

   result = claim_for_judging(42, user_id=7, username='judge')
   if not result.success:
       print(result.failure, result.error)

Mutating operations never raise for expected failures. They return a result
with ``error`` set and a :class:`.domain.Failure` describing what went
wrong; see :func:`.core.boundary`.

Side effects on other systems (video sync, role grants, topic notices) are
queued in an outbox and carried out after commit, in-thread or by the worker
in :mod:`.worker`. See :mod:`.tasks`.
"""

import logging

from flask import Flask

from . import config
from .authorization import available_statuses, hours_remaining_for_judging
from .claim import claim_for_judging, claim_for_publishing
from .core import load, load_publication, load_history
from .domain import *
from .history import obsolete_with, for_game, for_game_by_publication, \
    get_obsolete_publication_tags
from .ingest import parse_movie_file, parse_movie_file_or_zip, \
    map_parsed_result
from .publish import publish
from .record import submit, update_submission, get_submission_count
from .services import store, AutomationAgent, VideoSync


def init_app(app: Flask) -> None:
    """Configure an application to use the submission workflow."""
    for key in dir(config):
        if key.isupper():
            app.config.setdefault(key, getattr(config, key))
    store.init_app(app)
    AutomationAgent.init_app(app)
    VideoSync.init_app(app)
    logging.getLogger(__name__).setLevel(
        int(app.config.get('LOGLEVEL', config.LOGLEVEL))
    )
