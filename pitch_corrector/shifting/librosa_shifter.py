"""Phase-vocoder pitch shifting via librosa."""

import numpy as np
import librosa

from .base import PitchShifter


class LibrosaShifter(PitchShifter):
    """Shift pitch with librosa.effects.pitch_shift (keeps duration)."""

    name = "librosa"

    def __init__(
        self,
        sample_rate: int,
        bins_per_octave: int = 12,
        res_type: str = "soxr_hq",
    ):
        """
        Initialize LibrosaShifter.

        Args:
            sample_rate: Sample rate of the frames
            bins_per_octave: Steps per octave for n_steps
            res_type: Resampler used by librosa after time stretching
        """
        super().__init__(sample_rate)
        self.bins_per_octave = bins_per_octave
        self.res_type = res_type

    def _shift(self, frame: np.ndarray, ratio: float) -> np.ndarray:
        n_steps = self.bins_per_octave * float(np.log2(ratio))
        shifted = librosa.effects.pitch_shift(
            y=frame,
            sr=self.sample_rate,
            n_steps=n_steps,
            bins_per_octave=self.bins_per_octave,
            res_type=self.res_type,
        )
        return shifted.astype(np.float32, copy=False)
