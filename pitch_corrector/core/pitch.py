"""Pitch estimate data class and Hz/MIDI conversions."""

import math
from dataclasses import dataclass
from typing import Optional

from .constants import A4_FREQ, A4_MIDI, PITCH_NAMES


@dataclass(frozen=True)
class PitchEstimate:
    """Fundamental frequency estimate for one frame."""

    frequency: Optional[float] = None  # Hz, None when unvoiced/undetermined
    confidence: float = 0.0  # 0.0 - 1.0

    @property
    def voiced(self) -> bool:
        """True when a frequency was determined."""
        return self.frequency is not None

    @property
    def midi(self) -> Optional[float]:
        """Fractional MIDI pitch, or None when unvoiced."""
        if self.frequency is None:
            return None
        return hz_to_midi(self.frequency)

    @property
    def pitch_name(self) -> Optional[str]:
        """Nearest note name (e.g., 'A3'), or None when unvoiced."""
        if self.frequency is None:
            return None
        return midi_to_name(round_half_up(hz_to_midi(self.frequency)))

    @classmethod
    def unvoiced(cls, confidence: float = 0.0) -> "PitchEstimate":
        return cls(frequency=None, confidence=confidence)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (6.5 -> 7, -0.5 -> 0)."""
    return int(math.floor(value + 0.5))


def hz_to_midi(freq: float) -> float:
    """Convert frequency (Hz) to fractional MIDI pitch."""
    if freq <= 0:
        raise ValueError(f"Frequency must be positive, got {freq}")
    return A4_MIDI + 12.0 * math.log2(freq / A4_FREQ)


def midi_to_hz(midi: float) -> float:
    """Convert MIDI pitch to frequency (Hz)."""
    return A4_FREQ * (2.0 ** ((midi - A4_MIDI) / 12.0))


def pitch_class(midi: int) -> int:
    """Get pitch class (0-11, where 0=C)."""
    return midi % 12


def pitch_class_name(pc: int) -> str:
    return PITCH_NAMES[pc % 12]


def midi_to_name(midi: int) -> str:
    """Get note name (e.g., 'C4', 'A#3')."""
    octave = (midi // 12) - 1
    return f"{PITCH_NAMES[midi % 12]}{octave}"


def name_to_pitch_class(name: str) -> int:
    """Parse a pitch-class name ('A', 'c#', 'Bb') into 0-11."""
    flats = {"Db": "C#", "Eb": "D#", "Gb": "F#", "Ab": "G#", "Bb": "A#"}
    key = name.strip()
    if not key:
        raise ValueError("Empty note name")
    key = key[0].upper() + key[1:]
    key = flats.get(key, key)
    if key not in PITCH_NAMES:
        raise ValueError(f"Unknown note name: {name}")
    return PITCH_NAMES.index(key)
