"""Exceptions and warnings raised by the correction pipeline."""


class PitchCorrectionError(Exception):
    """Base class for pitch correction errors."""


class InvalidConfigurationError(PitchCorrectionError, ValueError):
    """A configuration value is outside its declared bounds."""


class ShiftPrimitiveError(PitchCorrectionError, RuntimeError):
    """The pitch-shift backend failed or returned unusable audio.

    Aborts the whole pass; no partial output is produced.
    """

    def __init__(self, message: str, frame_index: int = -1):
        super().__init__(message)
        self.frame_index = frame_index


class ShifterUnavailableError(PitchCorrectionError, RuntimeError):
    """A pitch-shift backend could not be set up."""


class UnvoicedPassWarning(UserWarning):
    """No frame passed the voicing gate; audio was passed through."""
