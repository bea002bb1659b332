"""
Turns uploaded movie files into parse results and canonical stored bytes.

Uploads may arrive gzip-compressed by the client. Whatever arrives, the
decompressed payload is held to ``MAX_DECOMPRESSED_SIZE`` bytes; anything
larger is refused rather than truncated. Movie files are always stored
zip-wrapped.

An upload is a zip archive only if it is named and typed as one, never by
its bytes: BizHawk ``.bk2`` movies are zip containers too.
"""

import gzip
import io
import zipfile
import zlib
from typing import Optional, Tuple

import logging

from . import config
from .context import get_setting
from .domain.parse import ParseResult, ParsedSubmissionData
from .domain.request import MovieUpload
from .domain.util import cap
from .exceptions import DecompressionLimitExceeded, ValidationFailed
from .services import MovieParser
from .services import store

logger = logging.getLogger(__name__)

ZIP_CONTENT_TYPES = ('application/x-zip-compressed', 'application/zip')


def _max_size() -> int:
    return get_setting('MAX_DECOMPRESSED_SIZE', config.MAX_DECOMPRESSED_SIZE)


def decompress_or_take_raw(data: bytes,
                           max_size: Optional[int] = None) -> bytes:
    """
    Gunzip ``data``, or return it unchanged if it is not gzip-compressed.

    Raises
    ------
    :class:`.DecompressionLimitExceeded`
        If the (decompressed) payload is larger than ``max_size``.

    """
    max_size = _max_size() if max_size is None else max_size
    try:
        with gzip.GzipFile(fileobj=io.BytesIO(data)) as f:
            payload = f.read(max_size + 1)
    except (OSError, EOFError, zlib.error):
        logger.debug('Upload is not gzip-compressed, using raw bytes')
        payload = data
    if len(payload) > max_size:
        raise DecompressionLimitExceeded(f'Movie file exceeds the limit of'
                                         f' {max_size} bytes')
    return payload


def is_zip(data: bytes) -> bool:
    """Sniff whether ``data`` is a zip archive."""
    return zipfile.is_zipfile(io.BytesIO(data))


def is_zip_upload(upload: MovieUpload) -> bool:
    """Check whether the client sent a zip archive rather than a movie file."""
    return upload.filename.lower().endswith('.zip') \
        and upload.content_type in ZIP_CONTENT_TYPES


def zip_file(data: bytes, filename: str) -> bytes:
    """Wrap ``data`` in a zip archive with a single entry ``filename``."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(filename, data)
    return buffer.getvalue()


def copy_zip(data: bytes, filename: str) -> bytes:
    """
    Copy a stored movie file, naming its (first) entry ``filename``.

    Bytes that are not a zip archive are wrapped in a new one.
    """
    if not is_zip(data):
        return zip_file(data, filename)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        entries = [info for info in archive.infolist() if not info.is_dir()]
        if not entries:
            raise ValidationFailed('Stored movie file is an empty archive')
        content = archive.read(entries[0])
    return zip_file(content, filename)


def parse_movie_file_or_zip(upload: MovieUpload) -> Tuple[ParseResult, bytes]:
    """
    Parse an uploaded movie file or a zip archive containing one.

    Returns
    -------
    :class:`.ParseResult`
    bytes
        The movie file, zip-wrapped, for storage.

    """
    payload = decompress_or_take_raw(upload.data)
    parser = MovieParser.current_session()
    if is_zip_upload(upload):
        return parser.parse_zip(payload), payload
    return parser.parse(payload, upload.filename), \
        zip_file(payload, upload.filename)


def parse_movie_file(upload: MovieUpload) -> Tuple[ParseResult, bytes]:
    """Parse an uploaded movie file; archives are not looked into."""
    payload = decompress_or_take_raw(upload.data)
    result = MovieParser.current_session().parse(payload, upload.filename)
    return result, zip_file(payload, upload.filename)


def map_parsed_result(result: ParseResult) -> Optional[ParsedSubmissionData]:
    """
    Resolve a parse result against the known systems and frame rates.

    Returns ``None`` if the system code is unknown. An explicit frame rate
    from the parser selects (or creates) that exact system/rate/region
    frame rate; otherwise the system's default rate for the region is used.
    """
    if not result.success:
        raise ValidationFailed('Cannot map a failed parse result')
    system = store.get_system_by_code(result.system_code)
    if system is None:
        return None

    annotations = cap(result.annotations,
                      get_setting('ANNOTATIONS_MAX_LENGTH',
                                  config.ANNOTATIONS_MAX_LENGTH),
                      ellipsis=True) or None
    warnings = None
    if result.warnings:
        warnings = cap(','.join(result.warnings),
                       get_setting('WARNINGS_MAX_LENGTH',
                                   config.WARNINGS_MAX_LENGTH))

    if result.frame_rate_override is not None:
        frame_rate = store.find_or_create_frame_rate(
            system.id, result.frame_rate_override, result.region.code
        )
    else:
        frame_rate = store.get_default_frame_rate(system.id,
                                                  result.region.code)

    return ParsedSubmissionData(
        start_type=result.start_type,
        frames=result.frames,
        rerecord_count=result.rerecord_count,
        movie_extension=result.file_extension,
        system_id=system.id,
        system_code=system.code,
        cycle_count=result.cycle_count,
        annotations=annotations,
        warnings=warnings,
        system_frame_rate_id=frame_rate.id if frame_rate else None,
        frame_rate=frame_rate.frame_rate if frame_rate else None
    )
