"""Audio loading utilities."""

import numpy as np
import librosa
from pathlib import Path
from typing import Tuple


class AudioLoader:
    """Loads audio files as mono float32 at their native sample rate."""

    SUPPORTED_FORMATS = {".wav", ".flac", ".ogg", ".mp3", ".m4a", ".aiff", ".aif"}

    def __init__(self, normalize: bool = False):
        """
        Initialize AudioLoader.

        Args:
            normalize: Peak-normalize audio to [-1, 1] if True
        """
        self.normalize = normalize

    def load(self, path: str) -> Tuple[np.ndarray, int]:
        """
        Load an audio file, downmixed to mono, without resampling.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (audio array, sample rate)

        Raises:
            ValueError: If file format not supported
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        # sr=None keeps the file's own rate
        audio, sr = librosa.load(str(path), sr=None, mono=True)

        if self.normalize:
            audio = self._normalize(audio)

        return audio.astype(np.float32, copy=False), int(sr)

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max() if len(audio) else 0.0
        if peak > 0:
            audio = audio / peak
        return audio

    @staticmethod
    def get_duration(audio: np.ndarray, sr: int) -> float:
        """Get duration in seconds."""
        return len(audio) / sr
