"""Scale quantization - Snap pitches to the nearest in-scale note."""

from typing import Optional

from ..core import hz_to_midi, midi_to_hz, round_half_up
from ..core.constants import MAX_SCALE_DISTANCE
from ..inference.key import Scale


def nearest_in_scale(target_midi: float, scale: Scale) -> int:
    """
    Find the nearest MIDI note that belongs to the scale.

    Searches outward from the rounded pitch; at each distance the upper
    candidate is checked first, so equidistant notes resolve upward.

    Args:
        target_midi: Fractional MIDI pitch
        scale: Scale to snap into

    Returns:
        Integer MIDI pitch in the scale
    """
    center = round_half_up(target_midi)
    for d in range(MAX_SCALE_DISTANCE + 1):
        if scale.contains(center + d):
            return center + d
        if scale.contains(center - d):
            return center - d
    # Unreachable for any scale with at least one pitch class
    return center


class ScaleQuantizer:
    """Quantize frequencies to a scale and compute shift ratios."""

    def __init__(self, scale: Scale):
        """
        Initialize ScaleQuantizer.

        Args:
            scale: Target scale
        """
        self.scale = scale

    def quantize_midi(self, midi: float) -> int:
        return nearest_in_scale(midi, self.scale)

    def target_midi(self, freq: float) -> Optional[int]:
        """In-scale MIDI pitch for a frequency, None if not positive."""
        if freq is None or freq <= 0:
            return None
        return nearest_in_scale(hz_to_midi(freq), self.scale)

    def target_frequency(self, freq: float) -> Optional[float]:
        """Frequency (Hz) of the in-scale note nearest to `freq`."""
        midi = self.target_midi(freq)
        if midi is None:
            return None
        return midi_to_hz(midi)

    def shift_ratio(self, freq: float) -> float:
        """Multiplicative pitch shift that moves `freq` onto the scale."""
        target = self.target_frequency(freq)
        if target is None:
            return 1.0
        return target / freq
