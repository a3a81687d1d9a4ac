"""Correction pipeline - One synchronous pass from samples to corrected audio.

    output, diagnostics = process(audio, sr, config, shifter)

Estimation, root inference and planning run first over the whole buffer;
reconstruction then walks the plan strictly in order, since every
crossfade depends on the frame before it.
"""

import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .analysis.framing import db_to_linear, rms
from .analysis.pitch import AMDFEstimator, PitchEstimator
from .core.constants import ANALYSIS_VOICING_RMS
from .core import (
    UnvoicedPassWarning,
    hz_to_midi,
    midi_to_name,
    pitch_class_name,
    round_half_up,
)
from .inference.key import Scale
from .processing.config import CorrectionConfig
from .processing.planner import ChunkPlan, ChunkPlanner
from .processing.quantize import nearest_in_scale
from .processing.reconstruct import FrameDiagnostic, OverlapAddReconstructor
from .shifting import ensure_shifter

PREVIEW_LENGTH = 10


@dataclass
class PassDiagnostics:
    """Diagnostic record of one correction pass (display/logging only)."""

    sample_rate: int
    chunk_length: int
    overlap_length: int
    hop_length: int
    root: int  # Pitch class 0-11
    root_source: str  # 'inferred', 'forced' or 'fallback'
    root_midi: Optional[int] = None
    root_hz: Optional[float] = None
    frames: List[FrameDiagnostic] = field(default_factory=list)

    @property
    def root_name(self) -> str:
        return pitch_class_name(self.root)

    @property
    def key_name(self) -> str:
        return f"{self.root_name} major"

    @property
    def total_frames(self) -> int:
        return len(self.frames)

    @property
    def voiced_count(self) -> int:
        return sum(1 for f in self.frames if f.voiced)

    @property
    def is_unvoiced(self) -> bool:
        """True when nothing was corrected and the audio passed through."""
        return self.voiced_count == 0

    @property
    def corrected_count(self) -> int:
        """Voiced frames whose ratio actually moves the pitch."""
        return sum(1 for f in self.frames if f.voiced and f.shift_ratio != 1.0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "sample_rate": self.sample_rate,
            "chunk_length": self.chunk_length,
            "overlap_length": self.overlap_length,
            "hop_length": self.hop_length,
            "root": self.root,
            "root_name": self.root_name,
            "key": self.key_name,
            "root_source": self.root_source,
            "root_midi": self.root_midi,
            "root_hz": self.root_hz,
            "voiced_count": self.voiced_count,
            "total_frames": self.total_frames,
            "frames": [f.to_dict() for f in self.frames],
        }


@dataclass
class AnalysisSummary:
    """Quick voicing/key overview of a take, without any shifting."""

    total_chunks: int = 0
    voiced_count: int = 0
    first_hz: Optional[float] = None
    first_note_name: Optional[str] = None
    key_root_midi: Optional[int] = None
    key_name: Optional[str] = None
    preview: List[str] = field(default_factory=list)  # e.g. 'C#4→D4'

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_chunks": self.total_chunks,
            "voiced_count": self.voiced_count,
            "first_hz": self.first_hz,
            "first_note_name": self.first_note_name,
            "key_root_midi": self.key_root_midi,
            "key_name": self.key_name,
            "preview": list(self.preview),
        }


class PitchCorrector:
    """Scale-quantized pitch correction for monophonic takes."""

    def __init__(
        self,
        config: Optional[CorrectionConfig] = None,
        shifter=None,
        estimator: Optional[PitchEstimator] = None,
    ):
        """
        Initialize PitchCorrector.

        Args:
            config: Correction configuration (validated immediately)
            shifter: Pitch-shift backend with shift(frame, ratio); required
                for correct(), not for plan() or analyze()
            estimator: Override the estimator named by the config
        """
        self.config = (config or CorrectionConfig()).validate()
        self.shifter = ensure_shifter(shifter) if shifter is not None else None
        self.planner = ChunkPlanner(self.config, estimator)
        self.reconstructor = OverlapAddReconstructor(
            crossfade=self.config.crossfade,
            limit=self.config.limit,
        )

    def plan(self, audio: np.ndarray, sr: int) -> ChunkPlan:
        """Estimate pitch and plan every frame without rendering audio."""
        return self.planner.build_plan(_as_mono_float(audio), sr)

    def correct(
        self, audio: np.ndarray, sr: int
    ) -> Tuple[np.ndarray, PassDiagnostics]:
        """
        Run one full correction pass.

        Args:
            audio: Mono sample buffer (float, or integer PCM)
            sr: Sample rate

        Returns:
            Tuple of (corrected float32 buffer, same length; diagnostics)

        Raises:
            ShiftPrimitiveError: If the shifter fails; no output is returned
        """
        if self.shifter is None:
            raise ValueError("PitchCorrector.correct() needs a shifter")
        ensure_shifter(self.shifter, sr)

        samples = _as_mono_float(audio)
        plan = self.planner.build_plan(samples, sr)
        output, frames = self.reconstructor.reconstruct(samples, plan, self.shifter)

        diagnostics = PassDiagnostics(
            sample_rate=sr,
            chunk_length=plan.chunk_length,
            overlap_length=plan.overlap_length,
            hop_length=plan.hop_length,
            root=plan.key.root,
            root_source=plan.root_source,
            root_midi=plan.key.midi,
            root_hz=plan.key.root_hz,
            frames=frames,
        )

        if diagnostics.is_unvoiced:
            warnings.warn(
                f"No voiced frames in {diagnostics.total_frames} "
                f"(gate {self.config.gate_db:g} dB); audio passed through uncorrected",
                UnvoicedPassWarning,
                stacklevel=2,
            )

        return output, diagnostics

    def analyze(self, audio: np.ndarray, sr: int) -> AnalysisSummary:
        """
        Summarize voicing and key using whole, non-overlapping chunks.

        Uses the cheaper AMDF estimator; the root is the first voiced
        chunk's nearest note.
        """
        cfg = self.config
        samples = _as_mono_float(audio)
        # Whole chunks, floored to samples
        chunk = max(1, int(cfg.chunk_ms * sr / 1000.0))
        gate = db_to_linear(cfg.gate_db)
        estimator = AMDFEstimator(voicing_rms=ANALYSIS_VOICING_RMS)

        summary = AnalysisSummary()
        first_midi = None

        for start in range(0, len(samples) - chunk + 1, chunk):
            summary.total_chunks += 1
            frame = samples[start : start + chunk]
            if rms(frame) < gate:
                continue

            estimate = estimator.estimate(frame, sr, cfg.min_frequency, cfg.max_frequency)
            if estimate.frequency is None:
                continue

            summary.voiced_count += 1
            midi = hz_to_midi(estimate.frequency)
            if first_midi is None:
                summary.first_hz = estimate.frequency
                first_midi = midi
            if len(summary.preview) < PREVIEW_LENGTH:
                scale = Scale(round_half_up(first_midi) % 12)
                snapped = nearest_in_scale(midi, scale)
                summary.preview.append(
                    f"{midi_to_name(round_half_up(midi))}→{midi_to_name(snapped)}"
                )

        if first_midi is not None:
            root_midi = round_half_up(first_midi)
            summary.key_root_midi = root_midi
            summary.first_note_name = midi_to_name(root_midi)
            summary.key_name = f"{pitch_class_name(root_midi)} major"

        return summary


def process(
    audio: np.ndarray,
    sr: int,
    config: Optional[CorrectionConfig] = None,
    shifter=None,
) -> Tuple[np.ndarray, PassDiagnostics]:
    """
    Correct a buffer in one call.

    Args:
        audio: Mono sample buffer
        sr: Sample rate
        config: Correction configuration (defaults if None)
        shifter: Pitch-shift backend with shift(frame, ratio)

    Returns:
        Tuple of (corrected buffer, diagnostics)
    """
    return PitchCorrector(config, shifter).correct(audio, sr)


def _as_mono_float(audio: np.ndarray) -> np.ndarray:
    """Float32 1-D view of the input; integer PCM is scaled to [-1, 1)."""
    audio = np.asarray(audio)
    if audio.ndim != 1:
        raise ValueError(f"Expected mono (1-D) audio, got shape {audio.shape}")
    if np.issubdtype(audio.dtype, np.integer):
        scale = float(np.iinfo(audio.dtype).max) + 1.0
        return (audio.astype(np.float64) / scale).astype(np.float32)
    return audio.astype(np.float32, copy=False)
