"""Shifting layer - Pitch-shift backends behind one interface.

The correction pipeline only calls shift(frame, ratio). Backends:
- librosa: phase vocoder + resampling (default)
- rubberband: Rubber Band library through pyrubberband
- resample: naive interpolated resampling, no extra dependencies
- identity: pass-through
"""

from typing import Optional

from ..core import ShifterUnavailableError
from .base import PitchShifter, ensure_shifter
from .simple import IdentityShifter, ResampleShifter

SHIFTER_NAMES = ("librosa", "rubberband", "resample", "identity")


def get_shifter(name: str, sample_rate: Optional[int] = None) -> PitchShifter:
    """
    Resolve a pitch-shift backend once, at setup time.

    Args:
        name: One of SHIFTER_NAMES
        sample_rate: Sample rate of the audio to process

    Raises:
        ShifterUnavailableError: Unknown name or backend cannot load
    """
    if name == "identity":
        return IdentityShifter(sample_rate)
    if name == "resample":
        return ResampleShifter(sample_rate)
    if name in ("librosa", "rubberband") and sample_rate is None:
        raise ShifterUnavailableError(f"The {name} shifter needs a sample rate")
    if name == "librosa":
        from .librosa_shifter import LibrosaShifter
        return LibrosaShifter(sample_rate)
    if name == "rubberband":
        from .rubberband import RubberBandShifter
        return RubberBandShifter(sample_rate)
    raise ShifterUnavailableError(
        f"Unknown shifter: {name}. Available: {', '.join(SHIFTER_NAMES)}"
    )


__all__ = [
    "PitchShifter",
    "IdentityShifter",
    "ResampleShifter",
    "SHIFTER_NAMES",
    "ensure_shifter",
    "get_shifter",
]
