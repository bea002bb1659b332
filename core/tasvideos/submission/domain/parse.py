"""The parse-result contract between movie parsers and the workflow."""

from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Optional

from dataclasses import dataclass, field


class Region(Enum):
    """Console region the movie was recorded against."""

    UNKNOWN = 'unknown'
    NTSC = 'ntsc'
    PAL = 'pal'

    @property
    def code(self) -> str:
        """Region code as stored on system frame rates."""
        return self.value.upper()


class MovieStartType(Enum):
    """How the emulator state was initialized when the movie starts."""

    POWER_ON = 0
    SRAM = 1
    SAVESTATE = 2


class HashType(Enum):
    """ROM/content hash algorithms reported by parsers."""

    MD5 = 'md5'
    SHA1 = 'sha1'
    SHA256 = 'sha256'
    CRC32 = 'crc32'
    OPENBOR = 'openbor'
    UNKNOWN = 'unknown'


@dataclass
class ParseResult:
    """Outcome of parsing a single movie file."""

    success: bool = True
    errors: List[str] = field(default_factory=list)
    file_extension: str = field(default_factory=str)
    system_code: str = field(default_factory=str)
    frames: int = 0
    rerecord_count: int = 0
    region: Region = Region.UNKNOWN
    frame_rate_override: Optional[float] = None
    start_type: MovieStartType = MovieStartType.POWER_ON
    cycle_count: Optional[int] = None
    hashes: Dict[HashType, str] = field(default_factory=OrderedDict)
    """Ordered; the first entry is recorded on the submission."""
    annotations: str = field(default_factory=str)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def error(cls, message: str) -> 'ParseResult':
        """A failed parse carrying ``message``."""
        return cls(success=False, errors=[message])

    @property
    def primary_hash(self) -> Optional[Dict[str, str]]:
        """The first reported hash, as ``{'type': ..., 'value': ...}``."""
        for hash_type, value in self.hashes.items():
            return {'type': hash_type.value, 'value': value}
        return None


@dataclass
class ParsedSubmissionData:
    """A parse result resolved against known systems and frame rates."""

    start_type: MovieStartType
    frames: int
    rerecord_count: int
    movie_extension: str
    system_id: int
    system_code: str
    cycle_count: Optional[int] = None
    annotations: Optional[str] = None
    warnings: Optional[str] = None
    system_frame_rate_id: Optional[int] = None
    frame_rate: Optional[float] = None
