"""Command-line interface for Pitch Corrector.

Provides commands for:
- correct: Snap a monophonic take to its major scale
- analyze: Voicing and key overview without shifting
- info: Show audio file information
"""

import typer
import time
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="pitch-corrector",
    help="Chunk-based, scale-quantized pitch correction",
    rich_markup_mode="markdown",
)
console = Console()


@dataclass
class StageTimings:
    """Track timing of processing stages."""

    stages: Dict[str, float] = field(default_factory=dict)
    _current_stage: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        """Start timing a stage."""
        self._current_stage = stage
        self._start_time = time.time()

    def stop(self) -> float:
        """Stop timing the current stage, return duration."""
        if self._current_stage is None:
            return 0.0
        duration = time.time() - self._start_time
        self.stages[self._current_stage] = duration
        self._current_stage = None
        return duration

    @property
    def total_time(self) -> float:
        """Get total time across all stages."""
        return sum(self.stages.values())

    def print_summary(self) -> None:
        """Print timing summary to console."""
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, duration in self.stages.items():
            console.print(f"  {stage}: {duration:.2f}s")
        console.print(f"  [bold]Total: {self.total_time:.2f}s[/bold]")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "stages": self.stages,
            "total_time": self.total_time,
        }


def _build_config(
    config_file: Optional[Path],
    chunk_ms: Optional[float],
    overlap_ms: Optional[float],
    gate_db: Optional[float],
    min_f0: Optional[float],
    max_f0: Optional[float],
    estimator: Optional[str],
    crossfade: Optional[str],
    root: Optional[str],
):
    """Merge a JSON config file with command-line overrides and validate."""
    from .core import name_to_pitch_class
    from .processing import CorrectionConfig

    data: Dict[str, Any] = {}
    if config_file is not None:
        with open(config_file, encoding="utf-8") as f:
            data = json.load(f)

    overrides = {
        "chunk_ms": chunk_ms,
        "overlap_ms": overlap_ms,
        "gate_db": gate_db,
        "min_frequency": min_f0,
        "max_frequency": max_f0,
        "estimator": estimator,
        "crossfade": crossfade,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    if root is not None:
        data["root"] = name_to_pitch_class(root)

    return CorrectionConfig.from_dict(data).validate()


def _load(input_file: Path):
    from .input import AudioLoader

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    loader = AudioLoader()
    audio, sr = loader.load(str(input_file))
    return loader, audio, sr


@app.command()
def correct(
    input_file: Path = typer.Argument(..., help="Input audio file (mono or downmixed)"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output audio path (default: <input>_corrected.wav)"
    ),
    midi: Optional[Path] = typer.Option(
        None, "--midi", help="Also export the corrected melody as MIDI"
    ),
    report: Optional[Path] = typer.Option(
        None, "--report", help="Write per-frame diagnostics as JSON"
    ),
    shifter_name: str = typer.Option(
        "librosa", "--shifter", help="Pitch shifter: librosa/rubberband/resample/identity"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="JSON file with configuration fields"
    ),
    chunk_ms: Optional[float] = typer.Option(
        None, "--chunk-ms", help="Chunk duration in ms (50-200)"
    ),
    overlap_ms: Optional[float] = typer.Option(
        None, "--overlap-ms", help="Crossfade duration in ms (5 to chunk/2)"
    ),
    gate_db: Optional[float] = typer.Option(
        None, "--gate-db", help="Voicing gate in dBFS (-80 to -10)"
    ),
    min_f0: Optional[float] = typer.Option(
        None, "--min-f0", help="Lowest pitch in Hz (40-200)"
    ),
    max_f0: Optional[float] = typer.Option(
        None, "--max-f0", help="Highest pitch in Hz (200-1200)"
    ),
    estimator: Optional[str] = typer.Option(
        None, "--estimator", help="Pitch estimator: autocorrelation/amdf"
    ),
    crossfade: Optional[str] = typer.Option(
        None, "--crossfade", help="Crossfade curve: linear/equal_power"
    ),
    root: Optional[str] = typer.Option(
        None, "--root", "-r", help="Force the key root (e.g. 'A', 'F#') instead of inferring it"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Show per-frame table"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
):
    """Correct the pitch of a monophonic recording to its major scale.

    **Examples:**

        pitch-corrector correct take.wav

        pitch-corrector correct take.wav -o tuned.wav --root A --midi tuned.mid
    """
    from .core import PitchCorrectionError
    from .pipeline import PitchCorrector
    from .shifting import get_shifter
    from .output import AudioExporter, MIDIExporter, write_report

    timings = StageTimings()

    if output is None:
        output = input_file.with_name(f"{input_file.stem}_corrected.wav")

    try:
        config = _build_config(
            config_file, chunk_ms, overlap_ms, gate_db,
            min_f0, max_f0, estimator, crossfade, root,
        )

        if not json_output:
            console.print(f"[blue]Loading audio:[/blue] {input_file}")
        timings.start("Load")
        loader, audio, sr = _load(input_file)
        timings.stop()

        if not json_output:
            console.print(
                f"   Duration: {loader.get_duration(audio, sr):.2f}s @ {sr} Hz"
            )

        shifter = get_shifter(shifter_name, sr)
        corrector = PitchCorrector(config, shifter)

        if not json_output:
            console.print(f"[cyan]Correcting with {shifter_name} shifter...[/cyan]")
        timings.start("Correct")
        corrected, diagnostics = corrector.correct(audio, sr)
        timings.stop()

        timings.start("Export")
        AudioExporter().export(corrected, sr, str(output))
        if midi is not None:
            MIDIExporter().export(diagnostics, str(midi))
        if report is not None:
            write_report(
                diagnostics,
                str(report),
                extra={"config": config.to_dict(), "timings": timings.to_dict()},
            )
        timings.stop()

    except (PitchCorrectionError, ValueError, OSError) as e:
        if json_output:
            print(json.dumps({"status": "error", "message": str(e)}))
        else:
            console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        result = {
            "status": "ok",
            "results": {
                "key": diagnostics.key_name,
                "root_source": diagnostics.root_source,
                "voiced_count": diagnostics.voiced_count,
                "total_frames": diagnostics.total_frames,
                "corrected_frames": diagnostics.corrected_count,
                "duration": round(len(audio) / sr, 3),
            },
            "output_files": [str(p) for p in (output, midi, report) if p is not None],
            "timings": timings.to_dict(),
        }
        print(json.dumps(result))
        return

    console.print(f"   Key: [green]{diagnostics.key_name}[/green] ({diagnostics.root_source})")
    console.print(
        f"   Voiced chunks: {diagnostics.voiced_count}/{diagnostics.total_frames}, "
        f"corrected: {diagnostics.corrected_count}"
    )
    if diagnostics.is_unvoiced:
        console.print("[yellow]No voiced chunks - audio passed through unchanged[/yellow]")

    if verbose:
        _show_frames_table(diagnostics)
        timings.print_summary()

    console.print(f"\n[green][OK] Saved:[/green] {output}")
    if midi is not None:
        console.print(f"[green][OK] Saved:[/green] {midi}")
    if report is not None:
        console.print(f"[green][OK] Saved:[/green] {report}")


@app.command()
def analyze(
    input_file: Path = typer.Argument(..., help="Input audio file"),
    chunk_ms: Optional[float] = typer.Option(
        None, "--chunk-ms", help="Chunk duration in ms (50-200)"
    ),
    gate_db: Optional[float] = typer.Option(
        None, "--gate-db", help="Voicing gate in dBFS (-80 to -10)"
    ),
    min_f0: Optional[float] = typer.Option(
        None, "--min-f0", help="Lowest pitch in Hz (40-200)"
    ),
    max_f0: Optional[float] = typer.Option(
        None, "--max-f0", help="Highest pitch in Hz (200-1200)"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
):
    """Show voiced chunks, first note, inferred key and a mapping preview."""
    from .core import PitchCorrectionError
    from .pipeline import PitchCorrector

    try:
        config = _build_config(
            None, chunk_ms, None, gate_db, min_f0, max_f0, None, None, None
        )
        _, audio, sr = _load(input_file)
        summary = PitchCorrector(config).analyze(audio, sr)
    except (PitchCorrectionError, ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps({"status": "ok", "results": summary.to_dict()}))
        return

    console.print(f"\n[bold]Analysis:[/bold] {input_file.name}")
    console.print(f"  Voiced chunks: {summary.voiced_count}/{summary.total_chunks}")
    if summary.first_hz is None:
        console.print("  [yellow]No voiced chunks detected[/yellow]")
        return
    console.print(f"  First voiced f0: {summary.first_hz:.2f} Hz → {summary.first_note_name}")
    console.print(f"  Key inferred: [green]{summary.key_name}[/green] (root MIDI {summary.key_root_midi})")
    if summary.preview:
        console.print(f"  Mapping: {'  '.join(summary.preview)}")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    try:
        loader, audio, sr = _load(input_file)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {loader.get_duration(audio, sr):.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")


def _show_frames_table(diagnostics):
    """Display per-frame decisions in a table."""
    from .core import midi_to_name

    table = Table(title="Chunks")
    table.add_column("#", style="dim")
    table.add_column("Start (s)", style="green")
    table.add_column("f0 (Hz)", style="cyan")
    table.add_column("Conf", style="magenta")
    table.add_column("Target", style="yellow")
    table.add_column("Ratio")

    sr = diagnostics.sample_rate
    for frame in diagnostics.frames:
        table.add_row(
            str(frame.index),
            f"{frame.start / sr:.3f}",
            f"{frame.frequency:.1f}" if frame.frequency is not None else "-",
            f"{frame.confidence:.2f}",
            midi_to_name(frame.target_midi) if frame.target_midi is not None else "-",
            f"{frame.shift_ratio:.4f}",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
