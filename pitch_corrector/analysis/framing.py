"""Frame slicing over a sample buffer."""

from typing import Iterator, Tuple

import numpy as np


def slice_frame(buffer: np.ndarray, start: int, length: int) -> np.ndarray:
    """
    Extract a fixed-length frame, zero-filling past the end of the buffer.

    Args:
        buffer: 1-D sample buffer
        start: Offset of the first sample
        length: Frame length in samples

    Returns:
        New array of exactly `length` samples

    Raises:
        ValueError: If length is not positive or start is negative
    """
    if length <= 0:
        raise ValueError(f"Frame length must be positive, got {length}")
    if start < 0:
        raise ValueError(f"Frame start must be non-negative, got {start}")

    frame = np.zeros(length, dtype=np.float32)
    end = min(len(buffer), start + length)
    if start < end:
        frame[: end - start] = buffer[start:end]
    return frame


def frame_starts(n_samples: int, hop: int) -> range:
    """Start offsets 0, hop, 2*hop, ... while inside the buffer."""
    if hop <= 0:
        raise ValueError(f"Hop must be positive, got {hop}")
    return range(0, n_samples, hop)


def iter_frames(
    buffer: np.ndarray, length: int, hop: int
) -> Iterator[Tuple[int, np.ndarray]]:
    """Yield (start, frame) for every hop position, tail frames padded."""
    for start in frame_starts(len(buffer), hop):
        yield start, slice_frame(buffer, start, length)


def rms(frame: np.ndarray) -> float:
    """Root-mean-square level of a frame (0.0 for empty input)."""
    if len(frame) == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(frame, dtype=np.float64))))


def db_to_linear(db: float) -> float:
    return 10.0 ** (db / 20.0)
