"""Rubber Band pitch shifting via pyrubberband."""

import shutil

import numpy as np

from ..core import ShifterUnavailableError
from .base import PitchShifter


class RubberBandShifter(PitchShifter):
    """Shift pitch with the Rubber Band command-line tool.

    Requires the `pyrubberband` package and the `rubberband` executable;
    both are checked when the shifter is created.
    """

    name = "rubberband"

    def __init__(self, sample_rate: int):
        super().__init__(sample_rate)
        try:
            import pyrubberband
        except ImportError as e:
            raise ShifterUnavailableError(
                "pyrubberband is required for the rubberband shifter. "
                "Run: pip install pyrubberband"
            ) from e
        if shutil.which("rubberband") is None:
            raise ShifterUnavailableError(
                "rubberband executable not found on PATH"
            )
        self._pyrb = pyrubberband

    def _shift(self, frame: np.ndarray, ratio: float) -> np.ndarray:
        shifted = self._pyrb.pitch_shift(
            frame, self.sample_rate, self.ratio_to_semitones(ratio)
        )
        return np.asarray(shifted, dtype=np.float32)
