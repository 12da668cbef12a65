"""
Constants and configuration values for Soundy.
"""

# =============================================================================
# BOARD SETTINGS
# =============================================================================

# Reserved board, always present and never deletable
DEFAULT_BOARD_NAME = "Default Board"


# =============================================================================
# AUDIO SETTINGS
# =============================================================================

AUDIO = {
    "sample_rate": 48000,
    "block_size": 1024,
    "channels": 2,
    "fade_ms": 30,  # Fade applied when a one-shot is cut off at its end
}


# =============================================================================
# FILE/PATH SETTINGS
# =============================================================================

STORE_FILE = "soundy_boards.json"
LOG_FILE = "debug.log"

# Supported audio formats (checked when a sound is added)
SUPPORTED_FORMATS = (
    ".wav",
    ".mp3",
    ".aiff",
    ".aif",
    ".m4a",
    ".ogg",
    ".flac",
)

# Formats libsndfile decodes directly; everything else goes through pydub
SOUNDFILE_FORMATS = (".wav", ".flac", ".aiff", ".aif", ".ogg", ".mp3")
