"""
UI event handling for Soundy.

BoardController is the only thing a front end talks to. Destructive actions
always run in the same order: stop affected playback, mutate the store,
persist, then notify refresh listeners. Switching boards never stops sounds
that are playing from another board.
"""

import logging
import os
from pathlib import Path
from typing import Callable, List

from .constants import SUPPORTED_FORMATS
from .errors import PersistenceError, UnknownSoundError, ValidationError
from .models import SoundRecord
from .playback import PlaybackRegistry
from .store import BoardStore

logger = logging.getLogger(__name__)

RefreshListener = Callable[["BoardController"], None]


class BoardController:
    """Routes UI events to the BoardStore and PlaybackRegistry."""

    def __init__(self, store: BoardStore, registry: PlaybackRegistry):
        self.store = store
        self.registry = registry
        self._listeners: List[RefreshListener] = []

    # -------------------------------------------------------------------------
    # Refresh signalling
    # -------------------------------------------------------------------------

    def subscribe(self, listener: RefreshListener):
        self._listeners.append(listener)

    def unsubscribe(self, listener: RefreshListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _refresh(self):
        for listener in list(self._listeners):
            listener(self)

    def _commit(self, action, *args):
        """Run a store mutation and refresh, even when only the save failed."""
        try:
            result = action(*args)
        except PersistenceError as e:
            logger.warning("Change kept in memory but not saved: %s", e)
            self._refresh()
            raise
        self._refresh()
        return result

    @property
    def current_board(self) -> str:
        return self.store.current_board

    def current_sounds(self) -> List[SoundRecord]:
        return self.store.sounds(self.store.current_board)

    def _require_sound(self, board_name: str, sound_name: str) -> SoundRecord:
        record = self.store.find_sound(board_name, sound_name)
        if record is None:
            raise UnknownSoundError(f"No sound named '{sound_name}' on board '{board_name}'")
        return record

    @staticmethod
    def _check_audio_path(path: str):
        if not path:
            raise ValidationError("Choose an audio file first")
        if Path(path).suffix.lower() not in SUPPORTED_FORMATS:
            raise ValidationError(
                f"Unsupported audio format '{Path(path).suffix}' "
                f"(expected one of {', '.join(SUPPORTED_FORMATS)})"
            )
        if not os.path.isfile(path):
            raise ValidationError(f"Audio file not found: {path}")

    # -------------------------------------------------------------------------
    # Boards
    # -------------------------------------------------------------------------

    def on_add_board(self, name: str):
        self._commit(self.store.add_board, name.strip())

    def on_delete_board(self, name: str):
        self.store.check_removable(name)
        self.registry.forget_board(name)
        self._commit(self.store.remove_board, name)

    def on_rename_board(self, old_name: str, new_name: str):
        new_name = new_name.strip()
        self.store.check_removable(old_name)
        if new_name == old_name:
            return
        self.store.check_board_name(new_name)
        # Playback is keyed by board name
        self.registry.forget_board(old_name)
        self._commit(self.store.rename_board, old_name, new_name)

    def on_select_board(self, name: str):
        self.store.set_current_board(name)
        logger.debug("Switched to board '%s'", name)
        self._refresh()

    # -------------------------------------------------------------------------
    # Sounds
    # -------------------------------------------------------------------------

    def on_add_sound(self, name: str, path: str) -> SoundRecord:
        """Add a sound to the current board."""
        name = name.strip()
        if not name:
            raise ValidationError("Please enter a sound name before adding.")
        path = path.strip()
        self._check_audio_path(path)

        record = SoundRecord(name=name, path=os.path.abspath(path))
        self._commit(self.store.add_sound, self.store.current_board, record)
        return record

    def on_delete_sound(self, board_name: str, sound_name: str):
        self._require_sound(board_name, sound_name)
        self.registry.forget(board_name, sound_name)
        self._commit(self.store.remove_sound, board_name, sound_name)

    def on_edit_sound(
        self, board_name: str, sound_name: str, new_name: str, new_path: str
    ) -> SoundRecord:
        """Replace a sound with a new name and/or path, keeping its position."""
        self._require_sound(board_name, sound_name)
        new_name = new_name.strip()
        new_path = new_path.strip()
        self._check_audio_path(new_path)
        record = SoundRecord(name=new_name, path=os.path.abspath(new_path))

        self.store.check_sound(board_name, record, ignore=sound_name)
        self.registry.forget(board_name, sound_name)
        self._commit(self.store.replace_sound, board_name, sound_name, record)
        return record

    def on_move_sound(self, board_name: str, sound_name: str, to_board: str):
        record = self._require_sound(board_name, sound_name)
        if board_name == to_board:
            return
        self.store.check_sound(to_board, record)
        self.registry.forget(board_name, sound_name)
        self._commit(self.store.move_sound, board_name, sound_name, to_board)

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    def on_play(self, board_name: str, sound_name: str):
        record = self._require_sound(board_name, sound_name)
        self.registry.play(board_name, record)
        self._refresh()

    def on_toggle_loop(self, board_name: str, sound_name: str) -> bool:
        record = self._require_sound(board_name, sound_name)
        looping = self.registry.toggle_loop(board_name, record)
        self._refresh()
        return looping

    def on_stop(self, board_name: str, sound_name: str):
        self.registry.stop(board_name, sound_name)
        self._refresh()

    def on_stop_all(self):
        self.registry.stop_all()
        self._refresh()
