"""Supports loading domain objects from database rows."""

from ... import domain
from ...domain.util import as_utc
from . import models


def to_submission(row: models.Submission) -> domain.Submission:
    """Build a :class:`.domain.Submission` snapshot from its row."""
    frame_rate = row.system_frame_rate
    movie = domain.MovieMetadata(
        frames=row.frames,
        rerecord_count=row.rerecord_count,
        extension=row.movie_extension,
        system_id=row.system_id,
        system_code=row.system.code if row.system else None,
        system_frame_rate_id=row.system_frame_rate_id,
        frame_rate=frame_rate.frame_rate if frame_rate else None,
        start_type=row.movie_start_type or domain.MovieStartType.POWER_ON,
        cycle_count=row.cycle_count,
        hash_type=row.hash_type,
        hash=row.hash,
        annotations=row.annotations,
        warnings=row.warnings
    )
    return domain.Submission(
        submission_id=row.id,
        status=row.status,
        submitter_id=row.submitter_id,
        created=as_utc(row.created),
        updated=as_utc(row.updated),
        title=row.title,
        judge_id=row.judge_id,
        publisher_id=row.publisher_id,
        game_id=row.game_id,
        game_version_id=row.game_version_id,
        game_goal_id=row.game_goal_id,
        game_name=row.game_name,
        submitted_game_version=row.submitted_game_version,
        branch=row.branch,
        rom_name=row.rom_name,
        emulator_version=row.emulator_version,
        encode_embed_link=row.encode_embed_link,
        authors=[
            domain.SubmissionAuthor(user_id=author.user_id,
                                    username=author.author.username,
                                    ordinal=author.ordinal)
            for author in row.authors
        ],
        additional_authors=row.additional_authors,
        movie=movie,
        topic_id=row.topic_id,
        intended_class_id=row.intended_class_id,
        rejection_reason_id=row.rejection_reason_id,
        version=row.version
    )


def to_publication(row: models.Publication) -> domain.Publication:
    """Build a :class:`.domain.Publication` snapshot from its row."""
    return domain.Publication(
        publication_id=row.id,
        submission_id=row.submission_id,
        title=row.title,
        game_id=row.game_id,
        game_version_id=row.game_version_id,
        game_goal_id=row.game_goal_id,
        system_id=row.system_id,
        system_code=row.system.code if row.system else None,
        system_frame_rate_id=row.system_frame_rate_id,
        publication_class_id=row.publication_class_id,
        emulator_version=row.emulator_version,
        frames=row.frames,
        rerecord_count=row.rerecord_count,
        movie_file_name=row.movie_file_name,
        additional_authors=row.additional_authors,
        authors=[
            domain.PublicationAuthor(user_id=author.user_id,
                                     username=author.author.username,
                                     ordinal=author.ordinal)
            for author in row.authors
        ],
        urls=[
            domain.PublicationUrl(url=url.url, type=url.type,
                                  display_name=url.display_name)
            for url in row.urls
        ],
        flag_ids=[flag.id for flag in row.flags],
        tag_ids=[tag.id for tag in row.tags],
        obsoleted_by_id=row.obsoleted_by_id,
        created=as_utc(row.created)
    )
