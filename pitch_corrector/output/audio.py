"""Audio export functionality."""

import numpy as np
import soundfile as sf
from pathlib import Path


class AudioExporter:
    """Write corrected buffers to disk."""

    def __init__(self, subtype: str = "PCM_16"):
        """
        Initialize AudioExporter.

        Args:
            subtype: libsndfile subtype (e.g., 'PCM_16', 'PCM_24', 'FLOAT')
        """
        self.subtype = subtype

    def export(self, audio: np.ndarray, sr: int, output_path: str) -> None:
        """
        Export a mono buffer.

        Args:
            audio: Sample buffer in [-1, 1]
            sr: Sample rate
            output_path: Destination file; format follows the extension
        """
        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        sf.write(output_path, np.asarray(audio, dtype=np.float32), sr, subtype=self.subtype)
