"""
Dispatch of movie files to format parsers.

The byte-level parsers for each movie format live outside of this package.
They are registered here by file extension with :func:`register`; a parser
is a callable that takes the file content and returns a
:class:`.domain.ParseResult`.
"""

import io
import zipfile
import zlib
from typing import Callable, Dict, Optional

import logging

from .. import config
from ..context import get_application_config, get_application_global
from ..domain.parse import ParseResult
from ..domain.util import split_csv
from ..exceptions import DecompressionLimitExceeded

logger = logging.getLogger(__name__)

ParseFunc = Callable[[bytes], ParseResult]

parsers: Dict[str, ParseFunc] = {}
"""Registered parsers, keyed by lower-case file extension."""


def _extension(filename: str) -> str:
    if '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[-1].lower()


def register(extension: str) -> Callable[[ParseFunc], ParseFunc]:
    """Register the decorated callable as the parser for ``extension``."""
    def deco(func: ParseFunc) -> ParseFunc:
        parsers[extension.lstrip('.').lower()] = func
        return func
    return deco


def is_deprecated(extension: str) -> bool:
    """Check whether movies with ``extension`` may no longer be submitted."""
    formats = get_application_config().get('DEPRECATED_MOVIE_FORMATS',
                                           config.DEPRECATED_MOVIE_FORMATS)
    deprecated = {fmt.lstrip('.').lower() for fmt in split_csv(formats)}
    return extension.lstrip('.').lower() in deprecated


class MovieParser:
    """Parses movie files with the registered format parsers."""

    def __init__(self, max_size: int,
                 registry: Optional[Dict[str, ParseFunc]] = None) -> None:
        self.max_size = max_size
        self.registry = parsers if registry is None else registry

    @classmethod
    def get_session(cls, app: object = None) -> 'MovieParser':
        config_ = get_application_config(app)
        return cls(int(config_.get('MAX_DECOMPRESSED_SIZE',
                                   config.MAX_DECOMPRESSED_SIZE)))

    @classmethod
    def current_session(cls) -> 'MovieParser':
        """Get/create :class:`.MovieParser` for this context."""
        g = get_application_global()
        if not g:
            return cls.get_session()
        elif 'movie_parser' not in g:
            g.movie_parser = cls.get_session()   # type: ignore
        return g.movie_parser    # type: ignore

    def parse(self, data: bytes, filename: str) -> ParseResult:
        """Parse a single movie file, chosen by the extension of its name."""
        extension = _extension(filename)
        func = self.registry.get(extension)
        if func is None:
            return ParseResult.error(f'.{extension} is not a supported'
                                     ' movie format')
        try:
            result = func(data)
        except ValueError as e:
            logger.debug('Parser for .%s failed: %s', extension, e)
            return ParseResult.error(str(e))
        if not result.file_extension:
            result.file_extension = extension
        return result

    def parse_zip(self, data: bytes) -> ParseResult:
        """
        Parse the first movie file in a zip archive.

        Raises
        ------
        :class:`.DecompressionLimitExceeded`
            If the movie file is larger than the decompressed size ceiling.

        """
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile:
            return ParseResult.error('Invalid zip file')
        with archive:
            entries = [info for info in archive.infolist()
                       if not info.is_dir()]
            if not entries:
                return ParseResult.error('Zip file contains no movie file')
            entry = entries[0]
            if entry.file_size > self.max_size:
                raise DecompressionLimitExceeded(
                    f'{entry.filename} exceeds {self.max_size} bytes'
                )
            try:
                with archive.open(entry) as f:
                    content = f.read(self.max_size + 1)
            except (zipfile.BadZipFile, zlib.error, RuntimeError) as e:
                logger.debug('Could not read %s: %s', entry.filename, e)
                return ParseResult.error(f'Invalid zip file: {e}')
            if len(content) > self.max_size:
                raise DecompressionLimitExceeded(
                    f'{entry.filename} exceeds {self.max_size} bytes'
                )
        return self.parse(content, entry.filename)
