import io
import zipfile
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

from flask import Flask
from pytz import UTC

from .... import init_app
from ....domain.publication import UrlType
from ....domain.status import SubmissionStatus
from ... import store
from .. import models

JUDGE_ID = 3
PUBLISHER_ID = 4
AUTOMATION_ID = 505


@contextmanager
def in_memory_db(app: Optional[Flask] = None):
    """Provide an in-memory sqlite database for testing purposes."""
    if app is None:
        app = Flask('foo')
    app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite://'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config.setdefault('ENABLE_ASYNC', False)
    app.config.setdefault('VIDEOSYNC_ENABLED', False)
    app.config.setdefault('CONFLICT_RETRY_DELAY', 0.)
    app.config.setdefault('CONFLICT_RETRY_MAX_DELAY', 0.)
    init_app(app)

    with app.app_context():
        store.create_all()
        try:
            yield store.current_session()
        except Exception:
            raise
        finally:
            store.current_session().rollback()
            store.drop_all()


def seed_catalog(session) -> None:
    """Users, forums and the catalog entries the workflow refers to."""
    session.add_all([
        models.User(id=1, username='alice'),
        models.User(id=2, username='bob'),
        models.User(id=JUDGE_ID, username='judge'),
        models.User(id=PUBLISHER_ID, username='publisher'),
        models.User(id=AUTOMATION_ID, username='TASVideoAgent'),
        models.Forum(id=7, name='Workbench'),
        models.Forum(id=96, name='Playground'),
        models.Forum(id=24, name='Grue food'),
        models.GameSystem(id=1, code='NES', display_name='Nintendo'),
        models.GameSystem(id=2, code='SNES', display_name='Super Nintendo'),
        models.GameSystemFrameRate(id=1, game_system_id=1,
                                   frame_rate=60.0988, region_code='NTSC'),
        models.GameSystemFrameRate(id=2, game_system_id=1,
                                   frame_rate=50.007, region_code='PAL'),
        models.Game(id=1, display_name='Mega Man'),
        models.Game(id=2, display_name='The Legend of Zelda'),
        models.GameVersion(id=1, game_id=1, name='USA'),
        models.GameVersion(id=2, game_id=2, name='USA'),
        models.GameGoal(id=1, game_id=1, display_name='baseline'),
        models.GameGoal(id=2, game_id=1, display_name='100%'),
        models.GameGoal(id=3, game_id=2, display_name='baseline'),
        models.PublicationClass(id=1, name='Standard',
                                icon_path='images/standard.png'),
        models.Flag(id=1, name='Recommended', icon_path='images/star.png',
                    link_path='Recommended'),
        models.Tag(id=1, code='1p', display_name='1 Player'),
        models.Tag(id=2, code='genre-platform', display_name='Platform'),
        models.Role(id=1, name='Experienced Player',
                    auto_assign_publications=True),
        models.Role(id=2, name='Judge', auto_assign_publications=False),
    ])
    session.commit()


def zipped(content: bytes = b'movie', filename: str = 'movie.bk2') -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        archive.writestr(filename, content)
    return buffer.getvalue()


def make_submission(session, status: SubmissionStatus = SubmissionStatus.NEW,
                    judge_id: Optional[int] = None,
                    publisher_id: Optional[int] = None,
                    created: Optional[datetime] = None,
                    game_id: int = 1, goal_id: int = 2,
                    author_ids: Iterable[int] = (1, 2),
                    markup: str = 'Run description') -> int:
    """Add a fully catalogued submission with a topic and a wiki page."""
    if created is None:
        created = datetime.now(UTC) - timedelta(days=7)
    topic = models.ForumTopic(forum_id=7, title='Submission topic',
                              poster_id=AUTOMATION_ID)
    session.add(topic)
    session.flush()
    session.add(models.ForumPost(topic=topic, forum_id=7,
                                 poster_id=AUTOMATION_ID, text='Topic'))
    row = models.Submission(
        status=status, submitter_id=1, created=created,
        judge_id=judge_id, publisher_id=publisher_id,
        game_id=game_id, game_version_id=game_id, game_goal_id=goal_id,
        game_name='Mega Man', system_id=1, system_frame_rate_id=1,
        frames=3606, rerecord_count=1200, movie_extension='bk2',
        emulator_version='BizHawk 2.9', intended_class_id=1,
        movie_file=zipped(), topic_id=topic.id, title='Pending title'
    )
    row.authors = [models.SubmissionAuthor(user_id=user_id, ordinal=ordinal)
                   for ordinal, user_id in enumerate(author_ids)]
    session.add(row)
    session.flush()
    session.add(models.WikiPage(
        page_name=f'InternalSystem/SubmissionContent/S{row.id}',
        revision=1, markup=markup, author_id=1
    ))
    session.commit()
    return row.id


def make_publication(session, game_id: int = 1,
                     obsoleted_by_id: Optional[int] = None,
                     urls: Iterable[Tuple[str, UrlType]] = (),
                     movie_file_name: Optional[str] = None,
                     markup: str = 'Publication description') -> int:
    """Add a publication of ``game_id`` from a published submission."""
    submission_id = make_submission(session, SubmissionStatus.PUBLISHED,
                                    judge_id=JUDGE_ID,
                                    publisher_id=PUBLISHER_ID,
                                    game_id=game_id,
                                    goal_id=2 if game_id == 1 else 3)
    count = session.query(models.Publication).count()
    row = models.Publication(
        submission_id=submission_id, title=f'Publication {count + 1}',
        publication_class_id=1, system_id=1, system_frame_rate_id=1,
        game_id=game_id, game_version_id=game_id,
        game_goal_id=2 if game_id == 1 else 3, frames=3606,
        rerecord_count=1200,
        movie_file_name=movie_file_name or f'movie-{count + 1}.bk2',
        obsoleted_by_id=obsoleted_by_id
    )
    row.authors = [models.PublicationAuthor(user_id=1, ordinal=0)]
    row.urls = [models.PublicationUrlRow(url=url, type=url_type)
                for url, url_type in urls]
    session.add(row)
    session.flush()
    session.add(models.WikiPage(
        page_name=f'InternalSystem/PublicationContent/M{row.id}',
        revision=1, markup=markup, author_id=PUBLISHER_ID
    ))
    session.commit()
    return row.id
