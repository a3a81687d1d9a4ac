"""Base classes for pitch-shift backends."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..core import ShifterUnavailableError


class PitchShifter(ABC):
    """Duration-preserving pitch shift of a fixed-length frame.

    A ratio above 1 raises pitch, below 1 lowers it, and exactly 1.0
    returns the frame unchanged.
    """

    name = "base"

    def __init__(self, sample_rate: Optional[int] = None):
        self.sample_rate = sample_rate

    def shift(self, frame: np.ndarray, ratio: float) -> np.ndarray:
        """
        Shift the pitch of one frame.

        Args:
            frame: Sample frame
            ratio: Frequency ratio (> 0)

        Returns:
            Shifted frame of the same nominal length
        """
        if not ratio > 0:
            raise ValueError(f"Shift ratio must be positive, got {ratio}")
        if ratio == 1.0:
            return np.array(frame, dtype=np.float32, copy=True)
        return self._shift(np.asarray(frame, dtype=np.float32), float(ratio))

    @abstractmethod
    def _shift(self, frame: np.ndarray, ratio: float) -> np.ndarray:
        pass

    @staticmethod
    def ratio_to_semitones(ratio: float) -> float:
        return 12.0 * float(np.log2(ratio))


def ensure_shifter(shifter, sample_rate: Optional[int] = None):
    """
    Check a shifter once at setup time.

    Args:
        shifter: Object exposing shift(frame, ratio)
        sample_rate: Rate of the audio it will process

    Returns:
        The shifter, unchanged

    Raises:
        ShifterUnavailableError: If it has no callable shift() or was built
            for a different sample rate
    """
    if not callable(getattr(shifter, "shift", None)):
        raise ShifterUnavailableError(
            f"{type(shifter).__name__} does not provide shift(frame, ratio)"
        )
    bound_sr = getattr(shifter, "sample_rate", None)
    if sample_rate is not None and bound_sr is not None and bound_sr != sample_rate:
        raise ShifterUnavailableError(
            f"Shifter was set up for {bound_sr} Hz but audio is {sample_rate} Hz"
        )
    return shifter
