"""Chunk planning - Decide a voiced flag and shift ratio for every frame."""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ..analysis.framing import frame_starts, rms, slice_frame
from ..analysis.pitch import PitchEstimator, get_estimator
from ..core import PitchEstimate
from ..inference.key import KeyInference, KeyInferrer, Scale
from .config import CorrectionConfig
from .quantize import ScaleQuantizer

ROOT_INFERRED = "inferred"
ROOT_FORCED = "forced"
ROOT_FALLBACK = "fallback"


@dataclass(frozen=True)
class ChunkPlanEntry:
    """Correction decision for one frame."""

    index: int
    start: int  # Offset of the first sample
    length: int  # Frame length in samples
    overlap: int  # Crossfade length in samples
    voiced: bool
    shift_ratio: float = 1.0  # Always 1.0 when not voiced
    frequency: Optional[float] = None  # Estimated f0 (Hz)
    confidence: float = 0.0
    target_midi: Optional[int] = None  # In-scale target, voiced frames only

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass
class ChunkPlan:
    """Per-frame plan for one pass, plus the scale it was built against."""

    sample_rate: int
    chunk_length: int
    overlap_length: int
    hop_length: int
    key: KeyInference
    root_source: str
    entries: List[ChunkPlanEntry] = field(default_factory=list)
    estimates: List[PitchEstimate] = field(default_factory=list)

    @property
    def scale(self) -> Scale:
        return self.key.scale

    @property
    def total_frames(self) -> int:
        return len(self.entries)

    @property
    def voiced_count(self) -> int:
        return sum(1 for e in self.entries if e.voiced)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class ChunkPlanner:
    """Build a chunk plan from a sample buffer.

    Pitch is estimated once per hop position. Those estimates pick the
    root and then decide, per frame, whether it is corrected and by how
    much. Frame boundaries are uniform and never snap to zero crossings.
    """

    def __init__(
        self,
        config: Optional[CorrectionConfig] = None,
        estimator: Optional[PitchEstimator] = None,
    ):
        """
        Initialize ChunkPlanner.

        Args:
            config: Correction configuration (validated here)
            estimator: Override the estimator named by the config
        """
        self.config = (config or CorrectionConfig()).validate()
        self.estimator = estimator or get_estimator(self.config.estimator)
        self.key_inferrer = KeyInferrer(
            confidence_threshold=self.config.root_confidence
        )

    def build_plan(self, audio: np.ndarray, sr: int) -> ChunkPlan:
        """
        Plan every frame of a buffer.

        Args:
            audio: 1-D sample buffer
            sr: Sample rate

        Returns:
            ChunkPlan with one entry per hop position
        """
        cfg = self.config
        _check_sample_rate(sr)
        if audio.ndim != 1:
            raise ValueError(f"Expected mono (1-D) audio, got shape {audio.shape}")

        chunk_length = cfg.chunk_length(sr)
        overlap_length = cfg.overlap_length(sr)
        hop_length = cfg.hop_length(sr)
        if overlap_length >= chunk_length:
            raise ValueError(
                f"Overlap ({overlap_length} samples) must be shorter than the "
                f"chunk ({chunk_length} samples) at {sr} Hz"
            )

        starts = list(frame_starts(len(audio), hop_length))
        levels = []
        estimates = []
        for start in starts:
            frame = slice_frame(audio, start, chunk_length)
            levels.append(rms(frame))
            estimates.append(
                self.estimator.estimate(
                    frame, sr, cfg.min_frequency, cfg.max_frequency
                )
            )

        key, root_source = self._choose_root(estimates)
        quantizer = ScaleQuantizer(key.scale)
        gate = cfg.gate_linear

        entries = []
        for i, (start, level, estimate) in enumerate(zip(starts, levels, estimates)):
            voiced = (
                level >= gate
                and estimate.frequency is not None
                and cfg.min_frequency <= estimate.frequency <= cfg.max_frequency
                and estimate.confidence >= cfg.voicing_confidence
            )
            target_midi = None
            ratio = 1.0
            if voiced:
                target_midi = quantizer.target_midi(estimate.frequency)
                ratio = quantizer.shift_ratio(estimate.frequency)

            entries.append(
                ChunkPlanEntry(
                    index=i,
                    start=start,
                    length=chunk_length,
                    overlap=overlap_length,
                    voiced=voiced,
                    shift_ratio=ratio,
                    frequency=estimate.frequency,
                    confidence=estimate.confidence,
                    target_midi=target_midi,
                )
            )

        return ChunkPlan(
            sample_rate=sr,
            chunk_length=chunk_length,
            overlap_length=overlap_length,
            hop_length=hop_length,
            key=key,
            root_source=root_source,
            entries=entries,
            estimates=estimates,
        )

    def _choose_root(self, estimates: List[PitchEstimate]):
        if self.config.root is not None:
            return KeyInference(root=self.config.root), ROOT_FORCED
        key = self.key_inferrer.infer(estimates)
        return key, ROOT_FALLBACK if key.fallback else ROOT_INFERRED


def build_plan(
    audio: np.ndarray, sr: int, config: Optional[CorrectionConfig] = None
) -> ChunkPlan:
    """Functional form of ChunkPlanner.build_plan."""
    return ChunkPlanner(config).build_plan(audio, sr)


def _check_sample_rate(sr: int) -> None:
    if isinstance(sr, bool) or not isinstance(sr, (int, np.integer)) or sr <= 0:
        raise ValueError(f"Sample rate must be a positive integer, got {sr!r}")
