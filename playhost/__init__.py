"""Mini-game runtime host: session lifecycle, module registry, failure handling."""

from playhost.api.session import Difficulty, SessionResult, SessionSettings, SessionState
from playhost.runtime.play_host import PlayHost, build_play_host

__all__ = [
    "Difficulty",
    "PlayHost",
    "SessionResult",
    "SessionSettings",
    "SessionState",
    "build_play_host",
]
