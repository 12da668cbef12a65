"""
Data models for Soundy.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoundRecord:
    """A named sound on a board. Replaced wholesale on edit."""

    name: str
    path: str  # Audio file path; may be stale in stored data

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "path": self.path}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SoundRecord":
        """Create a SoundRecord from a dictionary."""
        name = data["name"]
        path = data["path"]
        if not isinstance(name, str) or not isinstance(path, str):
            raise TypeError("sound name and path must be strings")
        if not name.strip():
            raise ValueError("sound name must not be empty")
        return cls(name=name, path=path)


@dataclass
class Board:
    """A named, ordered collection of sounds."""

    name: str
    sounds: List[SoundRecord] = field(default_factory=list)

    def find(self, sound_name: str) -> Optional[SoundRecord]:
        """Return the first sound with the given name, or None."""
        for record in self.sounds:
            if record.name == sound_name:
                return record
        return None

    def index_of(self, sound_name: str) -> int:
        """Return the position of the named sound, or -1 if absent."""
        for idx, record in enumerate(self.sounds):
            if record.name == sound_name:
                return idx
        return -1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "board": self.name,
            "sounds": [s.to_dict() for s in self.sounds],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Board":
        """Create a Board from a dictionary.

        Malformed sounds are skipped with a warning; duplicate sound names
        keep their first occurrence.
        """
        name = data["board"]
        if not isinstance(name, str):
            raise TypeError("board name must be a string")
        sounds: List[SoundRecord] = []
        seen = set()
        sound_list = data.get("sounds", [])
        if not isinstance(sound_list, list):
            logger.warning("Board '%s' has no sound list, loading it empty", name)
            sound_list = []
        for sound_data in sound_list:
            try:
                record = SoundRecord.from_dict(sound_data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "Skipping malformed sound %r on board '%s': %s", sound_data, name, e
                )
                continue
            if record.name in seen:
                logger.warning("Skipping duplicate sound '%s' on board '%s'", record.name, name)
                continue
            seen.add(record.name)
            sounds.append(record)
        return cls(name=name, sounds=sounds)
