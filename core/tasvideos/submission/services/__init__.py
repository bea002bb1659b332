"""External service integrations."""

from .wiki import WikiPages
from .forum import TopicWatcher
from .automation import AutomationAgent
from .roles import RoleGrantor
from .videosync import VideoSync
from .parser import MovieParser
