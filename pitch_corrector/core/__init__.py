"""Core types and constants for Pitch Corrector."""

from .pitch import (
    PitchEstimate,
    hz_to_midi,
    midi_to_hz,
    midi_to_name,
    name_to_pitch_class,
    pitch_class,
    pitch_class_name,
    round_half_up,
)
from .constants import (
    PITCH_NAMES,
    MAJOR_INTERVALS,
    DEFAULT_ROOT,
)
from .errors import (
    PitchCorrectionError,
    InvalidConfigurationError,
    ShiftPrimitiveError,
    ShifterUnavailableError,
    UnvoicedPassWarning,
)

__all__ = [
    "PitchEstimate",
    "hz_to_midi",
    "midi_to_hz",
    "midi_to_name",
    "name_to_pitch_class",
    "pitch_class",
    "pitch_class_name",
    "round_half_up",
    "PITCH_NAMES",
    "MAJOR_INTERVALS",
    "DEFAULT_ROOT",
    "PitchCorrectionError",
    "InvalidConfigurationError",
    "ShiftPrimitiveError",
    "ShifterUnavailableError",
    "UnvoicedPassWarning",
]
