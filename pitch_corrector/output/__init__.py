"""Output layer - Export corrected audio, melody and diagnostics.

Supports:
- Audio (WAV/FLAC via soundfile)
- MIDI (corrected melody via pretty_midi)
- JSON diagnostics report
"""

from .audio import AudioExporter
from .midi import MIDIExporter, MelodyNote
from .report import write_report

__all__ = [
    "AudioExporter",
    "MIDIExporter",
    "MelodyNote",
    "write_report",
]
