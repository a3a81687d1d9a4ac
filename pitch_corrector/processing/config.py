"""Correction configuration and validation."""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from ..core import InvalidConfigurationError, round_half_up
from ..core.constants import (
    CHUNK_MS_RANGE,
    DEFAULT_CHUNK_MS,
    DEFAULT_GATE_DB,
    DEFAULT_LIMIT,
    DEFAULT_MAX_FREQUENCY,
    DEFAULT_MIN_FREQUENCY,
    DEFAULT_OVERLAP_MS,
    DEFAULT_ROOT_CONFIDENCE,
    DEFAULT_VOICING_CONFIDENCE,
    GATE_DB_RANGE,
    MAX_FREQUENCY_RANGE,
    MIN_FREQUENCY_RANGE,
    OVERLAP_MS_MIN,
)

ESTIMATOR_NAMES = ("autocorrelation", "amdf")
CROSSFADE_NAMES = ("linear", "equal_power")


@dataclass
class CorrectionConfig:
    """Configuration for one correction pass.

    Attributes:
        chunk_ms: Frame duration in milliseconds, 50-200 (default: 120)
        overlap_ms: Crossfade duration, 5 to chunk_ms/2 (default: 12)
        gate_db: Voicing gate on frame RMS in dBFS, -80 to -10 (default: -45)
        min_frequency: Lowest accepted f0 in Hz, 40-200 (default: 70)
        max_frequency: Highest accepted f0 in Hz, 200-1200 (default: 900)
        root_confidence: Confidence needed to pick the root (default: 0.4)
        voicing_confidence: Confidence needed to correct a frame (default: 0.35)
        estimator: Pitch estimator, 'autocorrelation' or 'amdf'
        crossfade: Crossfade curve, 'linear' or 'equal_power'
        limit: Soft limiter ceiling, 0-1 (default: 0.98)
        root: Force the root pitch class (0-11) instead of inferring it
    """

    chunk_ms: float = DEFAULT_CHUNK_MS
    overlap_ms: float = DEFAULT_OVERLAP_MS
    gate_db: float = DEFAULT_GATE_DB
    min_frequency: float = DEFAULT_MIN_FREQUENCY
    max_frequency: float = DEFAULT_MAX_FREQUENCY
    root_confidence: float = DEFAULT_ROOT_CONFIDENCE
    voicing_confidence: float = DEFAULT_VOICING_CONFIDENCE
    estimator: str = "autocorrelation"
    crossfade: str = "linear"
    limit: float = DEFAULT_LIMIT
    root: Optional[int] = None

    def validate(self) -> "CorrectionConfig":
        """
        Check every field against its bounds.

        Returns:
            self, for chaining

        Raises:
            InvalidConfigurationError: On the first field out of bounds
        """
        _check_range("chunk_ms", self.chunk_ms, *CHUNK_MS_RANGE)
        _check_range("overlap_ms", self.overlap_ms, OVERLAP_MS_MIN, self.chunk_ms / 2)
        _check_range("gate_db", self.gate_db, *GATE_DB_RANGE)
        _check_range("min_frequency", self.min_frequency, *MIN_FREQUENCY_RANGE)
        _check_range("max_frequency", self.max_frequency, *MAX_FREQUENCY_RANGE)
        if self.max_frequency <= self.min_frequency:
            raise InvalidConfigurationError(
                f"max_frequency ({self.max_frequency}) must exceed "
                f"min_frequency ({self.min_frequency})"
            )
        _check_range("root_confidence", self.root_confidence, 0.0, 1.0)
        _check_range("voicing_confidence", self.voicing_confidence, 0.0, 1.0)
        if self.estimator not in ESTIMATOR_NAMES:
            raise InvalidConfigurationError(
                f"Unknown estimator: {self.estimator}. Supported: {ESTIMATOR_NAMES}"
            )
        if self.crossfade not in CROSSFADE_NAMES:
            raise InvalidConfigurationError(
                f"Unknown crossfade: {self.crossfade}. Supported: {CROSSFADE_NAMES}"
            )
        if not 0.0 < self.limit <= 1.0:
            raise InvalidConfigurationError(f"limit must be in (0, 1], got {self.limit}")
        if self.root is not None and (
            isinstance(self.root, bool)
            or not isinstance(self.root, int)
            or not 0 <= self.root <= 11
        ):
            raise InvalidConfigurationError(
                f"root must be a pitch class in [0, 11], got {self.root!r}"
            )
        return self

    def chunk_length(self, sr: int) -> int:
        """Frame length in samples."""
        return max(1, round_half_up(self.chunk_ms * sr / 1000.0))

    def overlap_length(self, sr: int) -> int:
        """Crossfade length in samples, never longer than a frame."""
        overlap = max(1, round_half_up(self.overlap_ms * sr / 1000.0))
        return min(overlap, self.chunk_length(sr))

    def hop_length(self, sr: int) -> int:
        """Distance between frame starts in samples."""
        return max(1, self.chunk_length(sr) - self.overlap_length(sr))

    @property
    def gate_linear(self) -> float:
        return 10.0 ** (self.gate_db / 20.0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CorrectionConfig":
        """Build a config from a plain dict (e.g., parsed JSON)."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidConfigurationError(
                f"Unknown configuration fields: {sorted(unknown)}"
            )
        return cls(**data)


def _check_range(name: str, value: float, low: float, high: float) -> None:
    try:
        ok = low <= float(value) <= high
    except (TypeError, ValueError):
        ok = False
    if not ok:
        raise InvalidConfigurationError(
            f"{name} must be in [{low:g}, {high:g}], got {value!r}"
        )
