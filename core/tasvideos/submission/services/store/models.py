"""SQLAlchemy ORM classes for the site database."""

from datetime import datetime

from pytz import UTC
from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, \
    Integer, JSON, LargeBinary, String, Table, Text, UniqueConstraint, text
from sqlalchemy.orm import declarative_base, relationship

from ...domain.parse import MovieStartType
from ...domain.publication import UrlType
from ...domain.status import SubmissionStatus

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


def _values(enum: type) -> list:
    return [member.value for member in enum]


class User(Base):    # type: ignore
    """A site user."""

    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True)


class Role(Base):    # type: ignore
    __tablename__ = 'roles'

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False, unique=True)
    auto_assign_publications = Column(Boolean, nullable=False,
                                      server_default=text('0'))
    """Granted automatically to authors once they have a publication."""


class UserRole(Base):    # type: ignore
    __tablename__ = 'user_roles'

    user_id = Column(ForeignKey('users.id'), primary_key=True)
    role_id = Column(ForeignKey('roles.id'), primary_key=True)


class GameSystem(Base):    # type: ignore
    __tablename__ = 'game_systems'

    id = Column(Integer, primary_key=True)
    code = Column(String(8), nullable=False, unique=True)
    display_name = Column(String(100), nullable=False, server_default='')

    frame_rates = relationship('GameSystemFrameRate', back_populates='system')


class GameSystemFrameRate(Base):    # type: ignore
    """A frame rate a system runs at in a given region."""

    __tablename__ = 'game_system_frame_rates'
    __table_args__ = (
        UniqueConstraint('game_system_id', 'frame_rate', 'region_code'),
    )

    id = Column(Integer, primary_key=True)
    game_system_id = Column(ForeignKey('game_systems.id'), nullable=False,
                            index=True)
    frame_rate = Column(Float, nullable=False)
    region_code = Column(String(8), nullable=False)

    system = relationship('GameSystem', back_populates='frame_rates')


class Game(Base):    # type: ignore
    __tablename__ = 'games'

    id = Column(Integer, primary_key=True)
    display_name = Column(String(100), nullable=False)


class GameVersion(Base):    # type: ignore
    __tablename__ = 'game_versions'

    id = Column(Integer, primary_key=True)
    game_id = Column(ForeignKey('games.id'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    title_override = Column(String(255))
    """Shown in titles instead of the game's display name, if set."""

    game = relationship('Game')


class GameGoal(Base):    # type: ignore
    __tablename__ = 'game_goals'

    id = Column(Integer, primary_key=True)
    game_id = Column(ForeignKey('games.id'), nullable=False, index=True)
    display_name = Column(String(50), nullable=False)


class PublicationClass(Base):    # type: ignore
    __tablename__ = 'publication_classes'

    id = Column(Integer, primary_key=True)
    name = Column(String(20), nullable=False)
    icon_path = Column(String(100))


class Flag(Base):    # type: ignore
    __tablename__ = 'flags'

    id = Column(Integer, primary_key=True)
    name = Column(String(32), nullable=False)
    icon_path = Column(String(48))
    link_path = Column(String(48))


class Tag(Base):    # type: ignore
    __tablename__ = 'tags'

    id = Column(Integer, primary_key=True)
    code = Column(String(25), nullable=False, unique=True)
    display_name = Column(String(50), nullable=False)


class Forum(Base):    # type: ignore
    __tablename__ = 'forums'

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)


class ForumTopic(Base):    # type: ignore
    __tablename__ = 'forum_topics'

    id = Column(Integer, primary_key=True)
    forum_id = Column(ForeignKey('forums.id'), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    poster_id = Column(ForeignKey('users.id'))
    created = Column(DateTime, default=_now)

    posts = relationship('ForumPost', back_populates='topic',
                         order_by='ForumPost.id')


class ForumPost(Base):    # type: ignore
    __tablename__ = 'forum_posts'

    id = Column(Integer, primary_key=True)
    topic_id = Column(ForeignKey('forum_topics.id'), nullable=False,
                      index=True)
    forum_id = Column(ForeignKey('forums.id'), nullable=False, index=True)
    poster_id = Column(ForeignKey('users.id'))
    subject = Column(String(500))
    text = Column(Text, nullable=False)
    created = Column(DateTime, default=_now)

    topic = relationship('ForumTopic', back_populates='posts')


class TopicWatch(Base):    # type: ignore
    __tablename__ = 'forum_topic_watches'

    topic_id = Column(ForeignKey('forum_topics.id'), primary_key=True)
    user_id = Column(ForeignKey('users.id'), primary_key=True)


class WikiPage(Base):    # type: ignore
    """One revision of a wiki page; the highest revision is current."""

    __tablename__ = 'wiki_pages'
    __table_args__ = (UniqueConstraint('page_name', 'revision'),)

    id = Column(Integer, primary_key=True)
    page_name = Column(String(250), nullable=False, index=True)
    revision = Column(Integer, nullable=False, server_default=text('1'))
    markup = Column(Text, nullable=False, server_default='')
    revision_message = Column(String(1000))
    minor_edit = Column(Boolean, nullable=False, server_default=text('0'))
    author_id = Column(ForeignKey('users.id'))
    created = Column(DateTime, default=_now)


class MovieFile(Base):    # type: ignore
    """Stored (zipped) movie file bytes."""

    __tablename__ = 'movie_files'

    id = Column(Integer, primary_key=True)
    file_name = Column(String(250), nullable=False)
    file_data = Column(LargeBinary, nullable=False)
    original_length = Column(Integer, nullable=False,
                             server_default=text('0'))
    created = Column(DateTime, default=_now)


class Submission(Base):    # type: ignore
    """A submitted TAS movie."""

    __tablename__ = 'submissions'

    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False)
    """Version token; the mapper refuses to write over a newer row."""

    status = Column(Enum(SubmissionStatus, values_callable=_values,
                         native_enum=False, length=32),
                    nullable=False, index=True,
                    default=SubmissionStatus.NEW)
    title = Column(String(500), nullable=False, server_default='')
    created = Column(DateTime, default=_now)
    updated = Column(DateTime, default=_now, onupdate=_now)

    submitter_id = Column(ForeignKey('users.id'), nullable=False, index=True)
    judge_id = Column(ForeignKey('users.id'), index=True)
    publisher_id = Column(ForeignKey('users.id'), index=True)

    game_id = Column(ForeignKey('games.id'))
    game_version_id = Column(ForeignKey('game_versions.id'))
    game_goal_id = Column(ForeignKey('game_goals.id'))
    game_name = Column(String(100))
    submitted_game_version = Column(String(100))
    branch = Column(String(50))
    rom_name = Column(String(250))
    emulator_version = Column(String(50))
    encode_embed_link = Column(String(100))
    additional_authors = Column(String(200))

    system_id = Column(ForeignKey('game_systems.id'))
    system_frame_rate_id = Column(ForeignKey('game_system_frame_rates.id'))
    frames = Column(Integer, nullable=False, server_default=text('0'))
    rerecord_count = Column(Integer, nullable=False, server_default=text('0'))
    movie_extension = Column(String(16))
    movie_start_type = Column(Enum(MovieStartType, native_enum=False,
                                   length=16),
                              default=MovieStartType.POWER_ON)
    cycle_count = Column(Integer)
    hash_type = Column(String(16))
    hash = Column(String(128))
    annotations = Column(String(3500))
    warnings = Column(String(500))
    movie_file = Column(LargeBinary)
    synced_on = Column(DateTime)
    synced_by_user_id = Column(ForeignKey('users.id'))

    topic_id = Column(ForeignKey('forum_topics.id'))
    intended_class_id = Column(ForeignKey('publication_classes.id'))
    rejection_reason_id = Column(Integer)

    __mapper_args__ = {'version_id_col': version}

    submitter = relationship('User', foreign_keys=[submitter_id])
    judge = relationship('User', foreign_keys=[judge_id])
    publisher = relationship('User', foreign_keys=[publisher_id])
    game = relationship('Game')
    game_version = relationship('GameVersion')
    game_goal = relationship('GameGoal')
    system = relationship('GameSystem')
    system_frame_rate = relationship('GameSystemFrameRate')
    topic = relationship('ForumTopic')
    intended_class = relationship('PublicationClass')
    authors = relationship('SubmissionAuthor', back_populates='submission',
                           order_by='SubmissionAuthor.ordinal',
                           cascade='all, delete-orphan')

    def can_publish(self) -> bool:
        """Claimed by a publisher and fully catalogued."""
        return self.status == SubmissionStatus.PUBLICATION_UNDERWAY \
            and self.publisher_id is not None \
            and self.system_id is not None \
            and self.system_frame_rate_id is not None \
            and self.game_id is not None \
            and self.game_version_id is not None \
            and self.game_goal_id is not None \
            and self.intended_class_id is not None


class SubmissionAuthor(Base):    # type: ignore
    __tablename__ = 'submission_authors'

    submission_id = Column(ForeignKey('submissions.id'), primary_key=True)
    user_id = Column(ForeignKey('users.id'), primary_key=True)
    ordinal = Column(Integer, nullable=False, server_default=text('0'))

    submission = relationship('Submission', back_populates='authors')
    author = relationship('User')


class SubmissionStatusHistory(Base):    # type: ignore
    """Append-only audit log of the statuses a submission has left."""

    __tablename__ = 'submission_status_history'

    id = Column(Integer, primary_key=True)
    submission_id = Column(ForeignKey('submissions.id'), nullable=False,
                           index=True)
    status = Column(Enum(SubmissionStatus, values_callable=_values,
                         native_enum=False, length=32), nullable=False)
    created = Column(DateTime, default=_now)


class Publication(Base):    # type: ignore
    """A published TAS movie."""

    __tablename__ = 'publications'

    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False)
    submission_id = Column(ForeignKey('submissions.id'), nullable=False,
                           index=True)
    title = Column(String(500), nullable=False, server_default='')
    created = Column(DateTime, default=_now)

    publication_class_id = Column(ForeignKey('publication_classes.id'),
                                  nullable=False)
    system_id = Column(ForeignKey('game_systems.id'), nullable=False)
    system_frame_rate_id = Column(ForeignKey('game_system_frame_rates.id'),
                                  nullable=False)
    game_id = Column(ForeignKey('games.id'), nullable=False, index=True)
    game_version_id = Column(ForeignKey('game_versions.id'), nullable=False)
    game_goal_id = Column(ForeignKey('game_goals.id'))
    emulator_version = Column(String(50))
    frames = Column(Integer, nullable=False, server_default=text('0'))
    rerecord_count = Column(Integer, nullable=False, server_default=text('0'))
    additional_authors = Column(String(200))
    movie_file_name = Column(String(250), nullable=False, unique=True)
    movie_file_id = Column(ForeignKey('movie_files.id'))
    obsoleted_by_id = Column(ForeignKey('publications.id'), index=True)

    __mapper_args__ = {'version_id_col': version}

    submission = relationship('Submission')
    publication_class = relationship('PublicationClass')
    system = relationship('GameSystem')
    system_frame_rate = relationship('GameSystemFrameRate')
    game = relationship('Game')
    game_version = relationship('GameVersion')
    game_goal = relationship('GameGoal')
    movie_file = relationship('MovieFile')
    authors = relationship('PublicationAuthor', back_populates='publication',
                           order_by='PublicationAuthor.ordinal',
                           cascade='all, delete-orphan')
    urls = relationship('PublicationUrlRow', back_populates='publication',
                        order_by='PublicationUrlRow.id',
                        cascade='all, delete-orphan')
    flags = relationship('Flag', secondary='publication_flags')
    tags = relationship('Tag', secondary='publication_tags')


class PublicationAuthor(Base):    # type: ignore
    __tablename__ = 'publication_authors'

    publication_id = Column(ForeignKey('publications.id'), primary_key=True)
    user_id = Column(ForeignKey('users.id'), primary_key=True)
    ordinal = Column(Integer, nullable=False, server_default=text('0'))

    publication = relationship('Publication', back_populates='authors')
    author = relationship('User')


class PublicationUrlRow(Base):    # type: ignore
    __tablename__ = 'publication_urls'

    id = Column(Integer, primary_key=True)
    publication_id = Column(ForeignKey('publications.id'), nullable=False,
                            index=True)
    url = Column(String(500), nullable=False)
    type = Column(Enum(UrlType, values_callable=_values, native_enum=False,
                       length=16), nullable=False)
    display_name = Column(String(100))

    publication = relationship('Publication', back_populates='urls')


publication_flags = Table(
    'publication_flags', Base.metadata,
    Column('publication_id', ForeignKey('publications.id'), primary_key=True),
    Column('flag_id', ForeignKey('flags.id'), primary_key=True)
)

publication_tags = Table(
    'publication_tags', Base.metadata,
    Column('publication_id', ForeignKey('publications.id'), primary_key=True),
    Column('tag_id', ForeignKey('tags.id'), primary_key=True)
)


class OutboxTask(Base):    # type: ignore
    """A post-commit side effect waiting to be carried out."""

    __tablename__ = 'outbox_tasks'

    PENDING = 'pending'
    DONE = 'done'
    FAILED = 'failed'

    id = Column(Integer, primary_key=True)
    kind = Column(String(32), nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    status = Column(String(16), nullable=False, index=True, default=PENDING)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    created = Column(DateTime, default=_now)
    updated = Column(DateTime, default=_now, onupdate=_now)
