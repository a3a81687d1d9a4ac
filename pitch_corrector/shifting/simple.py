"""Dependency-free shifters for previews and tests."""

import numpy as np

from .base import PitchShifter


class IdentityShifter(PitchShifter):
    """Pass every frame through unchanged."""

    name = "identity"

    def _shift(self, frame: np.ndarray, ratio: float) -> np.ndarray:
        return frame.copy()


class ResampleShifter(PitchShifter):
    """Pitch shift by reading the frame faster or slower.

    Reads the frame at `ratio` samples per output sample with linear
    interpolation, then pads or trims back to the frame length. Cheap, but
    raising pitch leaves a silent tail in each frame.
    """

    name = "resample"

    def _shift(self, frame: np.ndarray, ratio: float) -> np.ndarray:
        n = len(frame)
        positions = np.arange(0, n - 1, ratio)
        if len(positions) == 0:
            return frame.copy()

        shifted = np.interp(positions, np.arange(n), frame).astype(np.float32)

        # Pad or trim to original length
        if len(shifted) < n:
            shifted = np.pad(shifted, (0, n - len(shifted)))
        return shifted[:n]
