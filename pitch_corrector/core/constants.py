"""Global constants for Pitch Corrector."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Tuning reference
A4_MIDI = 69
A4_FREQ = 440.0

# Major scale, semitones above the root
MAJOR_INTERVALS = frozenset({0, 2, 4, 5, 7, 9, 11})

# Root used when no frame is confident enough to pick one (A)
DEFAULT_ROOT = 9

# Pitch estimation
VOICING_RMS = 0.01  # RMS of the windowed frame, full scale = 1.0
ANALYSIS_VOICING_RMS = 1e-6  # Digital silence only; the dB gate runs first
OUT_OF_RANGE_CONFIDENCE_FACTOR = 0.1
AMDF_RELIABILITY_FACTOR = 2.0

# Correction defaults
DEFAULT_CHUNK_MS = 120.0
DEFAULT_OVERLAP_MS = 12.0
DEFAULT_GATE_DB = -45.0
DEFAULT_MIN_FREQUENCY = 70.0
DEFAULT_MAX_FREQUENCY = 900.0
DEFAULT_ROOT_CONFIDENCE = 0.4
DEFAULT_VOICING_CONFIDENCE = 0.35
DEFAULT_LIMIT = 0.98

# Configuration bounds (inclusive)
CHUNK_MS_RANGE = (50.0, 200.0)
OVERLAP_MS_MIN = 5.0
GATE_DB_RANGE = (-80.0, -10.0)
MIN_FREQUENCY_RANGE = (40.0, 200.0)
MAX_FREQUENCY_RANGE = (200.0, 1200.0)

# Quantizer search radius in semitones
MAX_SCALE_DISTANCE = 12
