"""
Audio decoding and playback for Soundy.

AudioEngine decodes files into memory, hands out AudioClip handles and mixes
every active clip into a single sounddevice output stream. The stream is
opened lazily on the first play so that loading boards never touches the
audio device.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import soundfile as sf

from .constants import AUDIO, SOUNDFILE_FORMATS
from .errors import PlaybackError

logger = logging.getLogger(__name__)


def _read_with_pydub(file_path: str) -> Tuple[np.ndarray, int]:
    """Decode formats libsndfile can't handle (M4A, AAC, WMA...) through ffmpeg."""
    import imageio_ffmpeg
    from pydub import AudioSegment

    ffmpeg_path = imageio_ffmpeg.get_ffmpeg_exe()
    AudioSegment.converter = ffmpeg_path
    AudioSegment.ffmpeg = ffmpeg_path  # type: ignore[attr-defined]

    audio = AudioSegment.from_file(file_path)
    samples = np.array(audio.get_array_of_samples(), dtype=np.float32)

    # Normalize to [-1.0, 1.0] range
    max_val = float(2 ** (audio.sample_width * 8 - 1))
    samples = samples / max_val

    if audio.channels > 1:
        samples = samples.reshape((-1, audio.channels))

    return samples, audio.frame_rate


def read_audio_file(file_path: str) -> Tuple[np.ndarray, int]:
    """
    Read an audio file, using pydub as fallback for formats
    that soundfile doesn't support.

    Returns:
        Tuple of (audio_data as numpy array, sample_rate)

    Raises:
        PlaybackError if the file cannot be loaded
    """
    if not os.path.exists(file_path):
        raise PlaybackError(f"Audio file not found: {file_path}")

    ext = Path(file_path).suffix.lower()
    if ext in SOUNDFILE_FORMATS:
        try:
            data, sr = sf.read(file_path, dtype="float32")
            return data, sr
        except RuntimeError as e:
            logger.debug("soundfile failed on %s, trying pydub: %s", file_path, e)

    try:
        return _read_with_pydub(file_path)
    except Exception as e:
        raise PlaybackError(f"Failed to load audio file '{file_path}': {e}") from e


def _resample_audio(data: np.ndarray, orig_sr: int, target_sr: int) -> np.ndarray:
    """
    Resample audio using numpy linear interpolation.

    Quality is lower than FFT-based methods but fast and dependency free.
    """
    if orig_sr == target_sr or len(data) == 0:
        return data

    ratio = target_sr / orig_sr
    new_length = max(1, int(len(data) * ratio))
    old_indices = np.arange(len(data))
    new_indices = np.linspace(0, len(data) - 1, new_length)

    if data.ndim == 1:
        return np.interp(new_indices, old_indices, data).astype(np.float32)

    result = np.zeros((new_length, data.shape[1]), dtype=np.float32)
    for ch in range(data.shape[1]):
        result[:, ch] = np.interp(new_indices, old_indices, data[:, ch])
    return result


def _to_stereo(data: np.ndarray) -> np.ndarray:
    """Return float32 audio shaped (frames, 2)."""
    if data.ndim == 1:
        data = np.column_stack([data, data])
    elif data.shape[1] == 1:
        data = np.column_stack([data[:, 0], data[:, 0]])
    elif data.shape[1] > 2:
        data = data[:, :2]
    return np.ascontiguousarray(data, dtype=np.float32)


def _apply_fade_out(data: np.ndarray, sample_rate: int, fade_ms: int) -> np.ndarray:
    """Return a copy of the audio with a short fade-out at the end."""
    fade_samples = int(sample_rate * fade_ms / 1000)
    faded = data.copy()

    if fade_samples <= 0 or len(faded) < fade_samples:
        return faded

    fade_curve = np.linspace(1.0, 0.0, fade_samples).astype(np.float32)
    faded[-fade_samples:] *= fade_curve[:, np.newaxis]
    return faded


def _soft_clip(x: np.ndarray) -> np.ndarray:
    """Soft-limit peaks above 1.0 instead of hard clipping when clips overlap."""
    max_abs = np.max(np.abs(x)) if x.size else 0.0
    if max_abs <= 1.0:
        return x.astype(np.float32)

    abs_x = np.abs(x)
    result = np.copy(x)
    hot = abs_x > 1.0
    # 1.0 + 0.4 * tanh(excess) approaches 1.4 asymptotically
    result[hot] = np.sign(x[hot]) * (1.0 + 0.4 * np.tanh(abs_x[hot] - 1.0))
    return result.astype(np.float32)


class AudioClip:
    """
    Handle for one decoded sound.

    Playing a clip that is already playing restarts it, so a clip never has
    more than one voice in the mix.
    """

    def __init__(self, engine: "AudioEngine", path: str, data: np.ndarray, faded: np.ndarray):
        self.engine = engine
        self.path = path
        self.data = data
        self._faded = faded  # One-shot variant
        self.repeat = False

    @property
    def duration(self) -> float:
        return len(self.data) / self.engine.sample_rate

    def play(self):
        self.engine._start_voice(self)

    def stop(self):
        self.engine._stop_voice(self)

    def set_repeat(self, repeat: bool):
        self.repeat = repeat
        self.engine._set_voice_loop(self, repeat)

    def is_playing(self) -> bool:
        return self.engine._has_voice(self)

    def __repr__(self):
        return f"AudioClip({self.path!r}, {self.duration:.2f}s)"


class AudioEngine:
    """
    Mixes active clips into one output stream.

    Decoded audio is cached per file path at the engine sample rate, so
    reloading a clip for the same file costs nothing.
    """

    def __init__(
        self,
        device: Optional[int] = None,
        sample_rate: Optional[int] = None,
        block_size: Optional[int] = None,
    ):
        self.device = device
        self.sample_rate = sample_rate or AUDIO["sample_rate"]
        self.block_size = block_size or AUDIO["block_size"]
        self.channels = AUDIO["channels"]

        self.running = False
        self.stream = None
        self.voices: List[Dict] = []
        self.lock = threading.Lock()
        self._cache: Dict[str, np.ndarray] = {}  # filepath -> resampled stereo data

    # -------------------------------------------------------------------------
    # Clip loading
    # -------------------------------------------------------------------------

    def load_clip(self, path: str) -> AudioClip:
        """Decode a file (or reuse the cached decode) and return a clip handle."""
        data = self._cache.get(path)
        if data is None:
            raw, sr = read_audio_file(path)
            if len(raw) == 0:
                raise PlaybackError(f"Audio file is empty: {path}")
            if sr != self.sample_rate:
                raw = _resample_audio(raw, sr, self.sample_rate)
            data = _to_stereo(raw)
            self._cache[path] = data
            logger.debug("Decoded %s: %d frames", path, len(data))

        faded = _apply_fade_out(data, self.sample_rate, AUDIO["fade_ms"])
        return AudioClip(self, path, data, faded)

    # -------------------------------------------------------------------------
    # Stream lifecycle
    # -------------------------------------------------------------------------

    def start(self):
        """Open the output stream. Raises PlaybackError if the device fails."""
        if self.running:
            return

        try:
            import sounddevice as sd
        except OSError as e:
            raise PlaybackError(f"PortAudio library not available: {e}") from e

        try:
            self.stream = sd.OutputStream(
                device=self.device,
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                channels=self.channels,
                callback=self._output_callback,
                dtype=np.float32,
            )
            self.stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self.stream = None
            raise PlaybackError(f"Cannot open audio output: {e}") from e

        self.running = True
        logger.info("Audio output started (device=%s, %d Hz)", self.device, self.sample_rate)

    def stop(self):
        """Close the output stream and drop every voice."""
        self.running = False
        if self.stream is not None:
            try:
                self.stream.abort()
                self.stream.close()
            except Exception as e:
                logger.warning("Error closing audio stream: %s", e)
            self.stream = None

        with self.lock:
            self.voices.clear()

    # -------------------------------------------------------------------------
    # Voices (called through AudioClip)
    # -------------------------------------------------------------------------

    def _start_voice(self, clip: AudioClip):
        if not self.running:
            self.start()

        voice = {
            "clip": clip,
            "data": clip.data if clip.repeat else clip._faded,
            "position": 0,
            "loop": clip.repeat,
        }
        with self.lock:
            self.voices = [v for v in self.voices if v["clip"] is not clip]
            self.voices.append(voice)

    def _stop_voice(self, clip: AudioClip):
        with self.lock:
            self.voices = [v for v in self.voices if v["clip"] is not clip]

    def _set_voice_loop(self, clip: AudioClip, loop: bool):
        with self.lock:
            for voice in self.voices:
                if voice["clip"] is clip:
                    voice["loop"] = loop

    def _has_voice(self, clip: AudioClip) -> bool:
        with self.lock:
            return any(v["clip"] is clip for v in self.voices)

    # -------------------------------------------------------------------------
    # Mixing
    # -------------------------------------------------------------------------

    def _output_callback(self, outdata, frames, time, status):
        """
        Real-time mixing callback for the output stream.

        Called by sounddevice for each audio block.
        Keep this minimal - no blocking operations!
        """
        if status:
            logger.debug("Output stream status: %s", status)

        mixed = np.zeros((frames, self.channels), dtype=np.float32)

        with self.lock:
            finished = []
            for i, voice in enumerate(self.voices):
                data = voice["data"]
                filled = 0
                while filled < frames:
                    remaining = len(data) - voice["position"]
                    if remaining <= 0:
                        if not voice["loop"]:
                            break
                        voice["position"] = 0
                        remaining = len(data)

                    chunk_size = min(frames - filled, remaining)
                    pos = voice["position"]
                    mixed[filled : filled + chunk_size] += data[pos : pos + chunk_size]
                    voice["position"] += chunk_size
                    filled += chunk_size

                if not voice["loop"] and voice["position"] >= len(data):
                    finished.append(i)

            for i in reversed(finished):
                self.voices.pop(i)

        outdata[:] = _soft_clip(mixed)
