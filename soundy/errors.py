"""
Exception types raised by the Soundy core.

Every error derives from SoundyError, so a front end can report any failure
with a single except clause and keep running.
"""


class SoundyError(Exception):
    """Base class for all Soundy errors."""


class ValidationError(SoundyError):
    """Bad user input: empty name, unusable path or unsupported format."""


class DuplicateNameError(ValidationError):
    """A board or sound name is already taken (or is empty)."""


class UnknownBoardError(SoundyError):
    """The named board does not exist."""


class UnknownSoundError(SoundyError):
    """The named sound does not exist on the given board."""


class ProtectedBoardError(SoundyError):
    """Attempted to delete or rename the reserved default board."""


class PersistenceError(SoundyError):
    """Reading or writing the board document failed."""


class PlaybackError(SoundyError):
    """A clip could not be loaded, decoded or sent to the output device."""
