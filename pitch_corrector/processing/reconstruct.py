"""Overlap-add reconstruction - Stitch pitch-shifted frames into one signal.

Each frame's leading overlap is crossfaded against the previous frame's
trailing overlap; the rest of the frame is written as is. Frames are laid
out at hop = chunk - overlap, so beyond the crossfade nothing overlaps.
A soft limiter runs over the finished buffer.
"""

from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from ..analysis.framing import slice_frame
from ..core import InvalidConfigurationError, ShiftPrimitiveError
from ..core.constants import DEFAULT_LIMIT
from .planner import ChunkPlan, ChunkPlanEntry

CrossfadeCurve = Callable[[int], Tuple[np.ndarray, np.ndarray]]


def linear_crossfade(length: int) -> Tuple[np.ndarray, np.ndarray]:
    """(fade_out, fade_in) weights with t = n / (length - 1)."""
    t = np.arange(length, dtype=np.float64) / max(1, length - 1)
    return 1.0 - t, t


def equal_power_crossfade(length: int) -> Tuple[np.ndarray, np.ndarray]:
    """Quarter-wave sine/cosine weights; constant power for uncorrelated material."""
    t = np.arange(length, dtype=np.float64) / max(1, length - 1)
    return np.cos(0.5 * np.pi * t), np.sin(0.5 * np.pi * t)


CROSSFADES: Dict[str, CrossfadeCurve] = {
    "linear": linear_crossfade,
    "equal_power": equal_power_crossfade,
}


def soft_limit(audio: np.ndarray, limit: float = DEFAULT_LIMIT) -> np.ndarray:
    """Smooth saturation y = x / (1 + |x| / limit); silence stays silent."""
    x = np.asarray(audio, dtype=np.float64)
    return (x / (1.0 + np.abs(x) / limit)).astype(np.float32)


def fit_length(frame: np.ndarray, length: int) -> np.ndarray:
    """Truncate or zero-pad a frame to exactly `length` samples."""
    if len(frame) == length:
        return frame
    if len(frame) > length:
        return frame[:length]
    return np.pad(frame, (0, length - len(frame)))


@dataclass
class FrameDiagnostic:
    """What happened to one frame during reconstruction."""

    index: int
    start: int
    voiced: bool
    frequency: Optional[float]
    confidence: float
    shift_ratio: float
    target_midi: Optional[int]
    shifted_length: int  # Samples returned by the shifter before fitting

    def to_dict(self) -> dict:
        return asdict(self)


class OverlapAddReconstructor:
    """Drive a pitch shifter frame by frame and crossfade the results."""

    def __init__(
        self,
        crossfade: Union[str, CrossfadeCurve] = "linear",
        limit: float = DEFAULT_LIMIT,
    ):
        """
        Initialize OverlapAddReconstructor.

        Args:
            crossfade: Curve name ('linear', 'equal_power') or a callable
                returning (fade_out, fade_in) weights for a length
            limit: Soft limiter ceiling
        """
        if callable(crossfade):
            self.crossfade = crossfade
        elif crossfade in CROSSFADES:
            self.crossfade = CROSSFADES[crossfade]
        else:
            raise InvalidConfigurationError(
                f"Unknown crossfade: {crossfade}. Available: {sorted(CROSSFADES)}"
            )
        self.limit = limit

    def reconstruct(
        self,
        audio: np.ndarray,
        plan: ChunkPlan,
        shifter,
    ) -> Tuple[np.ndarray, List[FrameDiagnostic]]:
        """
        Shift every planned frame and overlap-add into a new buffer.

        Args:
            audio: Source buffer the plan was built from
            plan: Chunk plan, consumed in order
            shifter: Object with shift(frame, ratio) -> frame

        Returns:
            Tuple of (output buffer, same length as audio; frame diagnostics)

        Raises:
            ShiftPrimitiveError: If the shifter fails on any frame
        """
        n = len(audio)
        chunk = plan.chunk_length
        overlap = plan.overlap_length
        out = np.zeros(n, dtype=np.float32)
        fade_out, fade_in = self.crossfade(overlap)

        diagnostics = []
        prev_tail = None

        for entry in plan.entries:
            frame = slice_frame(audio, entry.start, chunk)
            raw = self._shift(shifter, frame, entry)
            shifted = fit_length(raw, chunk)

            start = entry.start
            span = min(chunk, n - start)

            # Crossfade region (first frame has nothing to blend with)
            fade = min(overlap, span) if prev_tail is not None else 0
            if fade:
                out[start : start + fade] = (
                    prev_tail[:fade] * fade_out[:fade] + shifted[:fade] * fade_in[:fade]
                )

            # Non-overlap region (rest of chunk)
            out[start + fade : start + span] = shifted[fade:span]

            # Trailing overlap, which sits under the next frame's start
            prev_tail = fit_length(shifted[plan.hop_length :], overlap)

            diagnostics.append(
                FrameDiagnostic(
                    index=entry.index,
                    start=entry.start,
                    voiced=entry.voiced,
                    frequency=entry.frequency,
                    confidence=entry.confidence,
                    shift_ratio=entry.shift_ratio,
                    target_midi=entry.target_midi,
                    shifted_length=len(raw),
                )
            )

        return soft_limit(out, self.limit), diagnostics

    @staticmethod
    def _shift(shifter, frame: np.ndarray, entry: ChunkPlanEntry) -> np.ndarray:
        """Call the shifter and coerce its output to a finite 1-D float array."""
        try:
            result = shifter.shift(frame, entry.shift_ratio)
        except Exception as e:
            raise ShiftPrimitiveError(
                f"Pitch shifter failed on frame {entry.index} "
                f"(ratio {entry.shift_ratio:.4f}): {e}",
                frame_index=entry.index,
            ) from e

        try:
            shifted = np.asarray(result, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise ShiftPrimitiveError(
                f"Pitch shifter returned non-numeric output on frame {entry.index}: "
                f"{type(result).__name__}",
                frame_index=entry.index,
            ) from e

        if shifted.ndim > 1:
            shifted = np.squeeze(shifted)
        if shifted.ndim != 1 or len(shifted) == 0:
            raise ShiftPrimitiveError(
                f"Pitch shifter returned unusable shape {np.shape(result)} "
                f"on frame {entry.index}",
                frame_index=entry.index,
            )
        if not np.all(np.isfinite(shifted)):
            raise ShiftPrimitiveError(
                f"Pitch shifter returned non-finite samples on frame {entry.index}",
                frame_index=entry.index,
            )
        return shifted


def reconstruct(
    audio: np.ndarray,
    plan: ChunkPlan,
    shifter,
    crossfade: Union[str, CrossfadeCurve] = "linear",
    limit: float = DEFAULT_LIMIT,
) -> Tuple[np.ndarray, List[FrameDiagnostic]]:
    """Functional form of OverlapAddReconstructor.reconstruct."""
    return OverlapAddReconstructor(crossfade, limit).reconstruct(audio, plan, shifter)
