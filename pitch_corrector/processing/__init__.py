"""Processing layer - Turn pitch estimates into corrected audio.

This layer plans and renders the correction:
- Scale quantization (snap to the nearest in-scale note)
- Configuration and bounds checking
- Chunk planning (voiced flag + shift ratio per frame)
- Overlap-add reconstruction with crossfades and soft limiting
"""

from .quantize import ScaleQuantizer, nearest_in_scale
from .config import CorrectionConfig
from .planner import ChunkPlan, ChunkPlanEntry, ChunkPlanner, build_plan
from .reconstruct import (
    FrameDiagnostic,
    OverlapAddReconstructor,
    reconstruct,
    soft_limit,
    linear_crossfade,
    equal_power_crossfade,
)

__all__ = [
    "ScaleQuantizer",
    "nearest_in_scale",
    "CorrectionConfig",
    "ChunkPlan",
    "ChunkPlanEntry",
    "ChunkPlanner",
    "build_plan",
    "FrameDiagnostic",
    "OverlapAddReconstructor",
    "reconstruct",
    "soft_limit",
    "linear_crossfade",
    "equal_power_crossfade",
]
