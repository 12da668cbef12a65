"""
Soundy

Organize named audio clips into boards, keep them across runs, and play,
loop and stop them from a console.

The audio engine (soundy.audio) is imported on demand so the board model
can be used without an audio device.
"""

from .controller import BoardController
from .errors import (
    DuplicateNameError,
    PersistenceError,
    PlaybackError,
    ProtectedBoardError,
    SoundyError,
    UnknownBoardError,
    UnknownSoundError,
    ValidationError,
)
from .models import Board, SoundRecord
from .playback import PlaybackRegistry
from .store import BoardStore

__all__ = [
    "Board",
    "BoardController",
    "BoardStore",
    "DuplicateNameError",
    "PersistenceError",
    "PlaybackError",
    "PlaybackRegistry",
    "ProtectedBoardError",
    "SoundRecord",
    "SoundyError",
    "UnknownBoardError",
    "UnknownSoundError",
    "ValidationError",
]
__version__ = "1.0.0"
