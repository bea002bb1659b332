"""
Entry-point for the submission worker application.

The heart of the worker is a Celery application that listens for tasks on a
Redis queue. The only task is ``outbox.drain`` (see :mod:`.tasks`), which
carries out the side effects that operations queued before they committed.
"""

from flask import Flask

from . import init_app, config
from .tasks import get_or_create_worker_app

app = Flask(__name__)
app.config.from_object(config)
init_app(app)
app.app_context().push()
worker_app = get_or_create_worker_app()
