"""Pitch Corrector - Scale-quantized pitch correction for monophonic audio.

Architecture Layers:
    1. input/      - Audio loading
    2. analysis/   - Frame slicing and per-frame pitch estimation
    3. inference/  - Root/key inference, major scales
    4. processing/ - Quantization, configuration, chunk planning, overlap-add
    5. shifting/   - Pitch-shift backends (librosa, Rubber Band, ...)
    6. output/     - Export (audio, MIDI, JSON diagnostics)
"""

__version__ = "0.1.0"

# Core types
from .core import (
    PitchEstimate,
    PitchCorrectionError,
    InvalidConfigurationError,
    ShiftPrimitiveError,
    ShifterUnavailableError,
    UnvoicedPassWarning,
)

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import (
    slice_frame,
    PitchEstimator,
    AutocorrelationEstimator,
    AMDFEstimator,
    get_estimator,
)

# Inference layer
from .inference import Scale, KeyInferrer, infer_root

# Processing layer
from .processing import (
    CorrectionConfig,
    ScaleQuantizer,
    nearest_in_scale,
    ChunkPlanner,
    build_plan,
    OverlapAddReconstructor,
    reconstruct,
)

# Shifting layer
from .shifting import PitchShifter, get_shifter

# Pipeline
from .pipeline import PitchCorrector, PassDiagnostics, AnalysisSummary, process

# Output layer
from .output import AudioExporter, MIDIExporter

__all__ = [
    # Core
    "PitchEstimate",
    "PitchCorrectionError",
    "InvalidConfigurationError",
    "ShiftPrimitiveError",
    "ShifterUnavailableError",
    "UnvoicedPassWarning",
    # Input
    "AudioLoader",
    # Analysis
    "slice_frame",
    "PitchEstimator",
    "AutocorrelationEstimator",
    "AMDFEstimator",
    "get_estimator",
    # Inference
    "Scale",
    "KeyInferrer",
    "infer_root",
    # Processing
    "CorrectionConfig",
    "ScaleQuantizer",
    "nearest_in_scale",
    "ChunkPlanner",
    "build_plan",
    "OverlapAddReconstructor",
    "reconstruct",
    # Shifting
    "PitchShifter",
    "get_shifter",
    # Pipeline
    "PitchCorrector",
    "PassDiagnostics",
    "AnalysisSummary",
    "process",
    # Output
    "AudioExporter",
    "MIDIExporter",
]
