"""Frame-level fundamental frequency estimation.

Two interchangeable strategies share one contract:
- AutocorrelationEstimator: Hann-windowed autocorrelation peak search
- AMDFEstimator: average magnitude difference minimum search (cheaper)

Both gate on frame energy, refine the winning lag with parabolic
interpolation, and never return NaN or infinite frequencies.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from ..core import InvalidConfigurationError, PitchEstimate
from ..core.constants import (
    AMDF_RELIABILITY_FACTOR,
    OUT_OF_RANGE_CONFIDENCE_FACTOR,
    VOICING_RMS,
)
from .framing import iter_frames, rms


def lag_range(
    sr: int, n: int, fmin: float, fmax: float
) -> Optional[Tuple[int, int]]:
    """
    Convert frequency bounds to an inclusive lag search range.

    Returns:
        (min_lag, max_lag) clipped to [1, n - 2], or None if empty
    """
    min_lag = max(1, int(np.floor(sr / fmax)))
    max_lag = min(n - 2, int(np.floor(sr / fmin)))
    if max_lag < min_lag:
        return None
    return min_lag, max_lag


def parabolic_shift(y0: float, y1: float, y2: float) -> float:
    """Vertex offset of the parabola through three equally spaced points."""
    denom = y0 - 2.0 * y1 + y2
    if denom == 0:
        return 0.0
    shift = 0.5 * (y0 - y2) / denom
    # A vertex more than one lag away is not a local extremum
    if not np.isfinite(shift) or abs(shift) > 1.0:
        return 0.0
    return float(shift)


class PitchEstimator(ABC):
    """Abstract base class for single-frame pitch estimation."""

    name = "base"

    def __init__(self, voicing_rms: float = VOICING_RMS):
        """
        Args:
            voicing_rms: Frames quieter than this (RMS, full scale 1.0)
                are reported unvoiced without searching
        """
        self.voicing_rms = voicing_rms

    @abstractmethod
    def estimate(
        self,
        frame: np.ndarray,
        sr: int,
        fmin: float,
        fmax: float,
    ) -> PitchEstimate:
        """
        Estimate the fundamental frequency of one frame.

        Args:
            frame: Fixed-length sample frame
            sr: Sample rate
            fmin: Lowest accepted frequency (Hz)
            fmax: Highest accepted frequency (Hz)

        Returns:
            PitchEstimate (frequency None when unvoiced)
        """
        pass

    def estimate_frames(
        self,
        audio: np.ndarray,
        sr: int,
        frame_length: int,
        hop_length: int,
        fmin: float,
        fmax: float,
    ) -> List[PitchEstimate]:
        """Estimate every hop position of a buffer, in temporal order."""
        return [
            self.estimate(frame, sr, fmin, fmax)
            for _, frame in iter_frames(audio, frame_length, hop_length)
        ]

    def _finish(
        self,
        refined_lag: float,
        confidence: float,
        sr: int,
        fmin: float,
        fmax: float,
    ) -> PitchEstimate:
        if refined_lag <= 0:
            return PitchEstimate.unvoiced()
        freq = sr / refined_lag
        if not np.isfinite(freq):
            return PitchEstimate.unvoiced()
        if freq < fmin or freq > fmax:
            return PitchEstimate.unvoiced(
                OUT_OF_RANGE_CONFIDENCE_FACTOR * confidence
            )
        return PitchEstimate(frequency=float(freq), confidence=confidence)


class AutocorrelationEstimator(PitchEstimator):
    """Autocorrelation pitch detector with a peak-to-energy confidence.

    Larger frames give steadier low-frequency estimates at the cost of
    temporal resolution.
    """

    name = "autocorrelation"

    def estimate(
        self,
        frame: np.ndarray,
        sr: int,
        fmin: float,
        fmax: float,
    ) -> PitchEstimate:
        x = np.asarray(frame, dtype=np.float64)
        n = len(x)
        if n < 3:
            return PitchEstimate.unvoiced()

        # Remove DC + apply Hann
        windowed = (x - x.mean()) * np.hanning(n)

        # Energy gate
        if rms(windowed) < self.voicing_rms:
            return PitchEstimate.unvoiced()

        lags = lag_range(sr, n, fmin, fmax)
        if lags is None:
            return PitchEstimate.unvoiced()
        min_lag, max_lag = lags

        ac = self._autocorrelation(windowed)
        lag = min_lag + int(np.argmax(ac[min_lag : max_lag + 1]))

        shift = parabolic_shift(ac[lag - 1], ac[lag], ac[lag + 1])

        zero = ac[0]
        confidence = float(np.clip(ac[lag] / zero, 0.0, 1.0)) if zero > 0 else 0.0

        return self._finish(lag + shift, confidence, sr, fmin, fmax)

    @staticmethod
    def _autocorrelation(x: np.ndarray) -> np.ndarray:
        """Unnormalized autocorrelation for lags 0..n-1 (zero-padded FFT)."""
        n = len(x)
        n_fft = 1 << (2 * n - 1).bit_length()
        spectrum = np.fft.rfft(x, n_fft)
        return np.fft.irfft(spectrum * np.conj(spectrum), n_fft)[:n]


class AMDFEstimator(PitchEstimator):
    """Average magnitude difference pitch detector.

    Cheaper and less robust than autocorrelation. The winning lag must dip
    below twice the frame RMS to count as periodic.

    Unlike a plain argmin, the earliest dip within `octave_tolerance` of the
    global minimum wins, so a multiple of the period is not reported as the
    period. `octave_tolerance=0.0` selects the global minimum lag.
    """

    name = "amdf"

    def __init__(
        self,
        voicing_rms: float = VOICING_RMS,
        octave_tolerance: float = 0.05,
    ):
        """
        Args:
            voicing_rms: Energy gate (RMS of the de-meaned frame)
            octave_tolerance: Fraction of the difference range within which
                an earlier dip is preferred over the global minimum, so
                multiples of the period are not picked
        """
        super().__init__(voicing_rms)
        self.octave_tolerance = octave_tolerance

    def estimate(
        self,
        frame: np.ndarray,
        sr: int,
        fmin: float,
        fmax: float,
    ) -> PitchEstimate:
        x = np.asarray(frame, dtype=np.float64)
        n = len(x)
        if n < 3:
            return PitchEstimate.unvoiced()

        x = x - x.mean()
        level = rms(x)
        if level < self.voicing_rms:
            return PitchEstimate.unvoiced()

        lags = lag_range(sr, n, fmin, fmax)
        if lags is None:
            return PitchEstimate.unvoiced()
        min_lag, max_lag = lags

        diffs = np.array(
            [self._amd(x, lag) for lag in range(min_lag, max_lag + 1)]
        )
        best = self._first_dip(diffs)
        lag = min_lag + best
        best_score = diffs[best]

        # Reliability check
        if best_score > AMDF_RELIABILITY_FACTOR * level:
            return PitchEstimate.unvoiced()

        shift = 0.0
        if lag - 1 >= 1 and lag + 1 <= n - 2:
            shift = parabolic_shift(
                self._amd(x, lag - 1), best_score, self._amd(x, lag + 1)
            )

        confidence = float(
            np.clip(1.0 - best_score / (AMDF_RELIABILITY_FACTOR * level), 0.0, 1.0)
        )
        return self._finish(lag + shift, confidence, sr, fmin, fmax)

    @staticmethod
    def _amd(x: np.ndarray, lag: int) -> float:
        return float(np.mean(np.abs(x[:-lag] - x[lag:])))

    def _first_dip(self, diffs: np.ndarray) -> int:
        """Index of the earliest local minimum close to the global minimum."""
        lowest = diffs.min()
        threshold = lowest + self.octave_tolerance * (diffs.max() - lowest)
        idx = int(np.argmax(diffs <= threshold))
        while idx + 1 < len(diffs) and diffs[idx + 1] < diffs[idx]:
            idx += 1
        return idx


ESTIMATORS = {
    AutocorrelationEstimator.name: AutocorrelationEstimator,
    AMDFEstimator.name: AMDFEstimator,
}


def get_estimator(name: str) -> PitchEstimator:
    """Create a pitch estimator by strategy name."""
    try:
        return ESTIMATORS[name]()
    except KeyError:
        raise InvalidConfigurationError(
            f"Unknown pitch estimator: {name}. Available: {sorted(ESTIMATORS)}"
        ) from None
