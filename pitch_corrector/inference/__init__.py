"""Inference layer - Musical understanding.

This layer derives musical context from pitch estimates:
- Root/key inference from the first confident pitch
- Major scale membership
"""

from .key import Scale, KeyInference, KeyInferrer, infer_root

__all__ = [
    "Scale",
    "KeyInference",
    "KeyInferrer",
    "infer_root",
]
