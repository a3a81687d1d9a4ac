"""Analysis layer - Low-level signal analysis.

This layer works on raw samples:
- Frame slicing (fixed length, zero-padded tail)
- Per-frame pitch estimation (autocorrelation, AMDF)
"""

from .framing import slice_frame, frame_starts, iter_frames, rms, db_to_linear
from .pitch import (
    PitchEstimator,
    AutocorrelationEstimator,
    AMDFEstimator,
    get_estimator,
)

__all__ = [
    "slice_frame",
    "frame_starts",
    "iter_frames",
    "rms",
    "db_to_linear",
    "PitchEstimator",
    "AutocorrelationEstimator",
    "AMDFEstimator",
    "get_estimator",
]
