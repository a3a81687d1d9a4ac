"""Key inference - Pick the tonal center of a monophonic take.

The root is the pitch class of the earliest confident pitch estimate.
When nothing is confident the pass still runs on a fixed default root,
so callers that need a real key must check the voiced frame count.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Sequence

from ..core import (
    PitchEstimate,
    hz_to_midi,
    midi_to_hz,
    pitch_class_name,
    round_half_up,
)
from ..core.constants import DEFAULT_ROOT, DEFAULT_ROOT_CONFIDENCE, MAJOR_INTERVALS


@dataclass(frozen=True)
class Scale:
    """A major scale anchored on a root pitch class."""

    root: int  # Pitch class 0-11
    intervals: FrozenSet[int] = field(default=MAJOR_INTERVALS)

    def __post_init__(self):
        if not 0 <= self.root <= 11:
            raise ValueError(f"Root pitch class must be in [0, 11], got {self.root}")

    @property
    def name(self) -> str:
        """Key name (e.g., 'A major')."""
        return f"{pitch_class_name(self.root)} major"

    @property
    def pitch_classes(self) -> List[int]:
        """Absolute pitch classes (0-11) in the scale, ascending."""
        return sorted((self.root + i) % 12 for i in self.intervals)

    def contains(self, midi: int) -> bool:
        """Whether an integer MIDI pitch belongs to the scale."""
        return (midi - self.root) % 12 in self.intervals


@dataclass
class KeyInference:
    """Container for root inference results."""

    root: int  # Pitch class 0-11
    midi: Optional[int] = None  # Rounded MIDI pitch of the deciding frame
    frequency: Optional[float] = None  # Hz of the deciding frame
    frame_index: Optional[int] = None
    fallback: bool = False  # True when no frame was confident enough

    @property
    def root_name(self) -> str:
        return pitch_class_name(self.root)

    @property
    def root_hz(self) -> float:
        """Frequency of the root note (deciding octave, else octave 4)."""
        if self.midi is not None:
            return midi_to_hz(self.midi)
        return midi_to_hz(60 + self.root)

    @property
    def scale(self) -> Scale:
        return Scale(self.root)


class KeyInferrer:
    """Infer a major-scale root from the first confident pitch."""

    def __init__(
        self,
        confidence_threshold: float = DEFAULT_ROOT_CONFIDENCE,
        default_root: int = DEFAULT_ROOT,
    ):
        """
        Initialize KeyInferrer.

        Args:
            confidence_threshold: Minimum estimate confidence to decide the root
            default_root: Pitch class used when no estimate qualifies (A)
        """
        self.confidence_threshold = confidence_threshold
        self.default_root = default_root

    def infer(self, estimates: Sequence[PitchEstimate]) -> KeyInference:
        """
        Scan estimates in temporal order for the first confident pitch.

        Args:
            estimates: Per-frame pitch estimates

        Returns:
            KeyInference (fallback=True when nothing qualified)
        """
        for i, estimate in enumerate(estimates):
            if estimate.frequency is None:
                continue
            if estimate.confidence < self.confidence_threshold:
                continue
            midi = round_half_up(hz_to_midi(estimate.frequency))
            return KeyInference(
                root=midi % 12,
                midi=midi,
                frequency=estimate.frequency,
                frame_index=i,
            )

        return KeyInference(root=self.default_root, fallback=True)

    def infer_root(self, estimates: Sequence[PitchEstimate]) -> int:
        """Root pitch class (0-11) of the first confident estimate."""
        return self.infer(estimates).root


def infer_root(
    estimates: Sequence[PitchEstimate],
    confidence_threshold: float = DEFAULT_ROOT_CONFIDENCE,
) -> int:
    """Functional form of KeyInferrer.infer_root."""
    return KeyInferrer(confidence_threshold).infer_root(estimates)
