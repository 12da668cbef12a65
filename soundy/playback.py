"""
Playback and loop state tracking for Soundy.

The registry is the single authority over which sounds are audible. Entries
are keyed by (board name, sound name) rather than by clip handle, so a clip
that gets reloaded never leaves a stale entry behind.

A clip is anything exposing play(), stop(), set_repeat(bool) and
is_playing(); see soundy.audio.AudioClip for the real one.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple, Union

from .errors import PlaybackError
from .models import SoundRecord

logger = logging.getLogger(__name__)

SoundKey = Tuple[str, str]  # (board name, sound name)


@dataclass
class PlaybackState:
    """Live state for one sound."""

    clip: Any
    path: str
    is_looping: bool = False
    is_playing: bool = False


class PlaybackRegistry:
    """
    Tracks playing and looping sounds and mediates their transitions.

    Each sound is either Idle/OneShot or Looping. Transitions for one sound
    are exclusive; different sounds play independently.
    """

    def __init__(self, load_clip: Callable[[str], Any]):
        self._load_clip = load_clip
        self._clips: Dict[SoundKey, Tuple[str, Any]] = {}  # key -> (path, clip)
        self._states: Dict[SoundKey, PlaybackState] = {}

    @staticmethod
    def _key(board_name: str, sound: Union[SoundRecord, str]) -> SoundKey:
        name = sound.name if isinstance(sound, SoundRecord) else sound
        return (board_name, name)

    def _clip_for(self, key: SoundKey, record: SoundRecord):
        """Return the cached clip for a sound, loading it on first use."""
        cached = self._clips.get(key)
        if cached is not None and cached[0] == record.path:
            return cached[1]
        if cached is not None:
            # Path changed since the clip was loaded
            self._discard(key)

        try:
            clip = self._load_clip(record.path)
        except PlaybackError:
            raise
        except Exception as e:
            raise PlaybackError(f"Cannot load '{record.name}' from {record.path}: {e}") from e
        self._clips[key] = (record.path, clip)
        logger.debug("Loaded clip for %s from %s", key, record.path)
        return clip

    def _discard(self, key: SoundKey):
        self.stop(*key)
        self._clips.pop(key, None)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def play(self, board_name: str, record: SoundRecord):
        """Play a sound once. A looping sound is stopped and reset first."""
        key = self._key(board_name, record)
        clip = self._clip_for(key, record)

        state = self._states.get(key)
        if state is not None and state.is_looping:
            logger.debug("Cancelled loop for %s before one-shot", key)
        # Cleared before play so a failed start never leaves a stale loop entry
        self._states.pop(key, None)
        clip.stop()
        clip.set_repeat(False)

        clip.play()
        self._states[key] = PlaybackState(clip=clip, path=record.path, is_playing=True)
        logger.debug("Playing %s once", key)

    def toggle_loop(self, board_name: str, record: SoundRecord) -> bool:
        """Switch a sound between Idle and Looping. Returns True if now looping."""
        key = self._key(board_name, record)

        state = self._states.get(key)
        if state is not None and state.is_looping:
            self.stop(board_name, record)
            return False

        clip = self._clip_for(key, record)
        self._states.pop(key, None)
        clip.stop()
        clip.set_repeat(True)
        clip.play()
        self._states[key] = PlaybackState(
            clip=clip, path=record.path, is_looping=True, is_playing=True
        )
        logger.debug("Looping %s", key)
        return True

    def stop(self, board_name: str, sound: Union[SoundRecord, str]):
        """Stop a sound and clear its entry. No-op if it is idle."""
        key = self._key(board_name, sound)
        state = self._states.pop(key, None)
        if state is None:
            return
        state.clip.stop()
        state.clip.set_repeat(False)
        logger.debug("Stopped %s", key)

    def stop_all(self):
        for key in list(self._states):
            self.stop(*key)

    def forget(self, board_name: str, sound: Union[SoundRecord, str]):
        """Stop a sound and drop its cached clip (used when it is deleted or edited)."""
        self._discard(self._key(board_name, sound))

    def forget_board(self, board_name: str):
        keys = {k for k in list(self._states) + list(self._clips) if k[0] == board_name}
        for key in keys:
            self._discard(key)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _prune(self, key: SoundKey):
        """Drop a one-shot entry whose clip has finished on its own."""
        state = self._states.get(key)
        if state is not None and not state.is_looping and not state.clip.is_playing():
            del self._states[key]

    def is_looping(self, board_name: str, sound: Union[SoundRecord, str]) -> bool:
        state = self._states.get(self._key(board_name, sound))
        return state is not None and state.is_looping

    def is_playing(self, board_name: str, sound: Union[SoundRecord, str]) -> bool:
        key = self._key(board_name, sound)
        self._prune(key)
        state = self._states.get(key)
        return state is not None and state.is_playing

    def active(self) -> List[SoundKey]:
        """Keys of every sound currently playing or looping."""
        for key in list(self._states):
            self._prune(key)
        return list(self._states)

    def __contains__(self, key: object) -> bool:
        return key in self._states
