"""
Integration with the video-sync service.

The video-sync service keeps the title, description and obsolescence notice
of videos on the video host in line with the publications they show. Only
URLs of the supported host are synced; anything else is left alone.
"""

import re
from typing import Optional
from urllib.parse import urlparse, parse_qs

import requests

import logging

from .. import config
from ..context import get_application_config, get_application_global
from ..domain.publication import VideoDescriptor
from ..exceptions import DependencyFailure

logger = logging.getLogger(__name__)

VIDEO_HOSTS = ('youtube.com', 'www.youtube.com', 'm.youtube.com',
               'youtu.be', 'www.youtu.be')
VIDEO_ID = re.compile(r'^[A-Za-z0-9_-]{6,}$')


def get_video_id(url: Optional[str]) -> Optional[str]:
    """Extract the video id from a URL of the video host, if it is one."""
    if not url:
        return None
    parsed = urlparse(url.strip())
    if parsed.scheme not in ('http', 'https') \
            or parsed.netloc.lower() not in VIDEO_HOSTS:
        return None
    path = parsed.path.strip('/').split('/')
    if parsed.netloc.lower().endswith('youtu.be'):
        candidate = path[0] if path else ''
    elif path and path[0] == 'watch':
        candidate = parse_qs(parsed.query).get('v', [''])[0]
    elif len(path) > 1 and path[0] in ('embed', 'v', 'shorts', 'live'):
        candidate = path[1]
    else:
        return None
    return candidate if VIDEO_ID.match(candidate) else None


class VideoSync:
    """Encapsulates a connection with the video-sync service."""

    def __init__(self, endpoint: str, verify: bool = True,
                 timeout: float = 10., enabled: bool = True) -> None:
        self.endpoint = endpoint
        self.verify = verify
        self.timeout = timeout
        self.enabled = enabled
        self._session = requests.Session()

    @classmethod
    def init_app(cls, app: object = None) -> None:
        """Set default configuration params for an application instance."""
        config_ = get_application_config(app)
        config_.setdefault('VIDEOSYNC_ENABLED', config.VIDEOSYNC_ENABLED)
        config_.setdefault('VIDEOSYNC_ENDPOINT', config.VIDEOSYNC_ENDPOINT)
        config_.setdefault('VIDEOSYNC_VERIFY', config.VIDEOSYNC_VERIFY)
        config_.setdefault('VIDEOSYNC_TIMEOUT', config.VIDEOSYNC_TIMEOUT)

    @classmethod
    def get_session(cls, app: object = None) -> 'VideoSync':
        """Get a new session with the video-sync service."""
        config_ = get_application_config(app)
        return cls(
            config_.get('VIDEOSYNC_ENDPOINT', config.VIDEOSYNC_ENDPOINT),
            verify=bool(int(config_.get('VIDEOSYNC_VERIFY',
                                        config.VIDEOSYNC_VERIFY))),
            timeout=float(config_.get('VIDEOSYNC_TIMEOUT',
                                      config.VIDEOSYNC_TIMEOUT)),
            enabled=bool(int(config_.get('VIDEOSYNC_ENABLED',
                                         config.VIDEOSYNC_ENABLED)))
        )

    @classmethod
    def current_session(cls) -> 'VideoSync':
        """Get/create :class:`.VideoSync` for this context."""
        g = get_application_global()
        if not g:
            return cls.get_session()
        elif 'videosync' not in g:
            g.videosync = cls.get_session()   # type: ignore
        return g.videosync    # type: ignore

    def is_recognized_url(self, url: Optional[str]) -> bool:
        """Check whether ``url`` points to a video on the synced host."""
        return get_video_id(url) is not None

    def convert_to_embed_link(self, url: Optional[str]) -> Optional[str]:
        """Rewrite a recognized video URL as its embeddable form."""
        video_id = get_video_id(url)
        if video_id is None:
            return url
        return f'https://www.youtube.com/embed/{video_id}'

    def sync(self, video: VideoDescriptor) -> None:
        """
        Push the current description of a publication's video.

        Raises
        ------
        :class:`.DependencyFailure`
            If the service could not be reached or refused the update.

        """
        video_id = get_video_id(video.url)
        if video_id is None:
            logger.debug('Not a recognized video URL: %s', video.url)
            return
        if not self.enabled:
            logger.debug('Video sync disabled; skipping %s', video_id)
            return
        url = f'{self.endpoint.rstrip("/")}/videos/{video_id}'
        try:
            resp = self._session.put(url, json=video.to_dict(),
                                     verify=self.verify, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise DependencyFailure(f'Could not reach video sync: {e}') from e
        if resp.status_code >= 400:
            raise DependencyFailure(f'Video sync refused {video_id}: '
                                    f'{resp.status_code}')
        logger.debug('Synced video %s for publication %i',
                     video_id, video.publication_id)
