"""MIDI export of the corrected melody."""

import pretty_midi
from dataclasses import dataclass
from typing import List
from pathlib import Path


@dataclass
class MelodyNote:
    """One corrected note, merged from consecutive frames."""

    pitch: int  # MIDI pitch
    onset: float  # Seconds
    offset: float  # Seconds
    velocity: int = 90


class MIDIExporter:
    """Export the per-frame target notes of a pass to MIDI."""

    def __init__(
        self,
        tempo: float = 120.0,
        instrument_name: str = "Voice Oohs",
        instrument_program: int = 53,
        velocity: int = 90,
    ):
        """
        Initialize MIDIExporter.

        Args:
            tempo: Tempo in BPM
            instrument_name: MIDI instrument name
            instrument_program: MIDI program number (0-127)
            velocity: Velocity for every note (1-127)
        """
        self.tempo = tempo
        self.instrument_name = instrument_name
        self.instrument_program = instrument_program
        self.velocity = velocity

    def melody_notes(self, diagnostics) -> List[MelodyNote]:
        """
        Merge runs of voiced frames with the same target into notes.

        Each frame contributes one hop of time, starting at its offset.
        """
        sr = diagnostics.sample_rate
        hop = diagnostics.hop_length
        notes: List[MelodyNote] = []

        for frame in diagnostics.frames:
            if not frame.voiced or frame.target_midi is None:
                continue
            onset = frame.start / sr
            offset = (frame.start + hop) / sr
            last = notes[-1] if notes else None
            if last and last.pitch == frame.target_midi and abs(last.offset - onset) < 1e-9:
                last.offset = offset
            else:
                notes.append(
                    MelodyNote(
                        pitch=frame.target_midi,
                        onset=onset,
                        offset=offset,
                        velocity=self.velocity,
                    )
                )

        return notes

    def to_pretty_midi(self, diagnostics) -> pretty_midi.PrettyMIDI:
        """Convert a pass to a PrettyMIDI object without saving."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=self.tempo)

        instrument = pretty_midi.Instrument(
            program=self.instrument_program,
            name=self.instrument_name,
        )

        for note in self.melody_notes(diagnostics):
            instrument.notes.append(
                pretty_midi.Note(
                    velocity=note.velocity,
                    pitch=note.pitch,
                    start=note.onset,
                    end=note.offset,
                )
            )

        midi.instruments.append(instrument)
        return midi

    def export(self, diagnostics, output_path: str) -> None:
        """
        Export the corrected melody to a MIDI file.

        Args:
            diagnostics: PassDiagnostics of a correction pass
            output_path: Path to output MIDI file
        """
        midi = self.to_pretty_midi(diagnostics)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        midi.write(output_path)
