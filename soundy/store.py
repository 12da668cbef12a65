"""
Board storage and persistence for Soundy.

The store keeps every board in memory, in insertion order, and writes the
whole document back to disk after each structural change. The document is a
JSON array of ``{"board": ..., "sounds": [{"name": ..., "path": ...}]}``
objects. The current board cursor is transient and never written.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from .constants import DEFAULT_BOARD_NAME
from .errors import (
    DuplicateNameError,
    PersistenceError,
    ProtectedBoardError,
    UnknownBoardError,
    UnknownSoundError,
    ValidationError,
)
from .models import Board, SoundRecord

logger = logging.getLogger(__name__)


class BoardStore:
    """
    In-memory mapping of board name to Board, backed by a JSON file.

    - Always holds at least the reserved default board
    - current_board always names an existing board
    - Every mutation is saved synchronously before returning
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._boards: Dict[str, Board] = {DEFAULT_BOARD_NAME: Board(DEFAULT_BOARD_NAME)}
        self._current = DEFAULT_BOARD_NAME

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def current_board(self) -> str:
        return self._current

    def board_names(self) -> List[str]:
        return list(self._boards)

    def get_board(self, name: str) -> Board:
        try:
            return self._boards[name]
        except KeyError:
            raise UnknownBoardError(f"No board named '{name}'") from None

    def sounds(self, board_name: str) -> List[SoundRecord]:
        """Return a copy of a board's sounds in display order."""
        return list(self.get_board(board_name).sounds)

    def find_sound(self, board_name: str, sound_name: str) -> Optional[SoundRecord]:
        return self.get_board(board_name).find(sound_name)

    def __contains__(self, name: object) -> bool:
        return name in self._boards

    def __len__(self) -> int:
        return len(self._boards)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> Optional[PersistenceError]:
        """
        Load boards from disk.

        A missing file initializes a fresh default board and writes it
        immediately. Any read or parse error degrades to the same fresh
        default store (without overwriting the bad file) and is returned
        instead of raised, so startup always succeeds.
        """
        self._current = DEFAULT_BOARD_NAME

        if not self.path.exists():
            logger.info("No board file at %s, creating default board", self.path)
            self._reset()
            try:
                self.save()
            except PersistenceError as e:
                return e
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                document = json.load(f)
            boards = self._parse(document)
        except (OSError, ValueError, RecursionError) as e:
            error = PersistenceError(f"Failed to load boards from {self.path}: {e}")
            logger.warning("%s; starting with a fresh default board", error)
            self._reset()
            return error

        self._boards = boards
        self._current = next(iter(self._boards))
        logger.info(
            "Loaded %d boards (%d sounds) from %s",
            len(self._boards),
            sum(len(b.sounds) for b in self._boards.values()),
            self.path,
        )
        return None

    def _parse(self, document) -> Dict[str, Board]:
        """Build the board mapping from a decoded document."""
        if not isinstance(document, list):
            raise ValueError("board document must be a JSON array")

        boards: Dict[str, Board] = {}
        for entry in document:
            try:
                board = Board.from_dict(entry)
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed board entry %r: %s", entry, e)
                continue
            if not board.name.strip():
                logger.warning("Skipping board with empty name")
                continue
            if board.name in boards:
                logger.warning("Skipping duplicate board '%s'", board.name)
                continue
            boards[board.name] = board

        if DEFAULT_BOARD_NAME not in boards:
            boards = {DEFAULT_BOARD_NAME: Board(DEFAULT_BOARD_NAME), **boards}
        return boards

    def _reset(self):
        self._boards = {DEFAULT_BOARD_NAME: Board(DEFAULT_BOARD_NAME)}
        self._current = DEFAULT_BOARD_NAME

    def to_document(self) -> List[dict]:
        return [b.to_dict() for b in self._boards.values()]

    def save(self):
        """Save all boards using an atomic write to prevent corruption."""
        temp_file = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(self.to_document(), f, indent=2, ensure_ascii=False)

            os.replace(temp_file, self.path)
        except OSError as e:
            logger.error("Error saving boards to %s: %s", self.path, e)
            # Clean up temp file if it exists
            try:
                temp_file.unlink()
            except OSError:
                pass
            raise PersistenceError(f"Failed to save boards to {self.path}: {e}") from e

    # -------------------------------------------------------------------------
    # Board mutations
    # -------------------------------------------------------------------------

    def check_board_name(self, name: str):
        """Raise DuplicateNameError unless name is usable for a new board."""
        if not name or not name.strip():
            raise DuplicateNameError("Board name must not be empty")
        if name in self._boards:
            raise DuplicateNameError(f"A board named '{name}' already exists")

    def add_board(self, name: str) -> Board:
        self.check_board_name(name)
        board = Board(name)
        self._boards[name] = board
        logger.info("Added board '%s'", name)
        self.save()
        return board

    def check_removable(self, name: str) -> Board:
        """Return the board, or raise if it is the reserved default or absent."""
        if name == DEFAULT_BOARD_NAME:
            raise ProtectedBoardError(f"'{DEFAULT_BOARD_NAME}' cannot be deleted or renamed")
        return self.get_board(name)

    def remove_board(self, name: str) -> Board:
        """Delete a board. The cursor moves to the first board if it pointed here."""
        board = self.check_removable(name)

        del self._boards[name]
        if self._current == name:
            self._current = next(iter(self._boards))
        logger.info("Removed board '%s' (%d sounds)", name, len(board.sounds))
        self.save()
        return board

    def rename_board(self, old_name: str, new_name: str) -> Board:
        """Rename a board in place, keeping its position and the cursor on it."""
        board = self.check_removable(old_name)
        if new_name == old_name:
            return board
        self.check_board_name(new_name)

        board.name = new_name
        self._boards = {
            (new_name if key == old_name else key): value for key, value in self._boards.items()
        }
        if self._current == old_name:
            self._current = new_name
        logger.info("Renamed board '%s' to '%s'", old_name, new_name)
        self.save()
        return board

    def set_current_board(self, name: str):
        """Move the transient cursor. Not persisted."""
        if name not in self._boards:
            raise UnknownBoardError(f"No board named '{name}'")
        self._current = name

    # -------------------------------------------------------------------------
    # Sound mutations
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_record(board: Board, record: SoundRecord, ignore: Optional[str] = None):
        """Raise unless record can join board (ignore: name being replaced)."""
        if not record.name or not record.name.strip():
            raise ValidationError("Sound name must not be empty")
        if record.name != ignore and board.find(record.name) is not None:
            raise DuplicateNameError(
                f"Board '{board.name}' already has a sound named '{record.name}'"
            )

    def check_sound(self, board_name: str, record: SoundRecord, ignore: Optional[str] = None):
        """Raise ValidationError unless record could be stored on the board."""
        self._check_record(self.get_board(board_name), record, ignore=ignore)

    def add_sound(self, board_name: str, record: SoundRecord):
        board = self.get_board(board_name)
        self._check_record(board, record)

        board.sounds.append(record)
        logger.info("Added sound '%s' to board '%s'", record.name, board_name)
        self.save()

    def remove_sound(self, board_name: str, sound_name: str) -> Optional[SoundRecord]:
        """Remove the named sound. Absent sounds are a no-op; the store is saved either way."""
        board = self.get_board(board_name)

        idx = board.index_of(sound_name)
        removed = board.sounds.pop(idx) if idx >= 0 else None
        if removed is not None:
            logger.info("Removed sound '%s' from board '%s'", sound_name, board_name)
        self.save()
        return removed

    def replace_sound(self, board_name: str, sound_name: str, record: SoundRecord) -> SoundRecord:
        """Swap a sound for a new record at the same position. Returns the old one."""
        board = self.get_board(board_name)
        idx = board.index_of(sound_name)
        if idx < 0:
            raise UnknownSoundError(f"No sound named '{sound_name}' on board '{board_name}'")
        self._check_record(board, record, ignore=sound_name)

        old = board.sounds[idx]
        board.sounds[idx] = record
        logger.info("Replaced sound '%s' on board '%s'", sound_name, board_name)
        self.save()
        return old

    def move_sound(self, from_board: str, sound_name: str, to_board: str) -> SoundRecord:
        """Move a sound to the end of another board."""
        source = self.get_board(from_board)
        target = self.get_board(to_board)
        idx = source.index_of(sound_name)
        if idx < 0:
            raise UnknownSoundError(f"No sound named '{sound_name}' on board '{from_board}'")
        if source is target:
            return source.sounds[idx]
        record = source.sounds[idx]
        self._check_record(target, record)

        source.sounds.pop(idx)
        target.sounds.append(record)
        logger.info("Moved sound '%s' from '%s' to '%s'", sound_name, from_board, to_board)
        self.save()
        return record
