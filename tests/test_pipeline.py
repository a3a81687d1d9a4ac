"""End-to-end tests for configuration, chunk planning and correction passes."""

import json

import pytest
import numpy as np

from pitch_corrector import PitchCorrector, process
from pitch_corrector.core import (
    InvalidConfigurationError,
    ShifterUnavailableError,
    UnvoicedPassWarning,
    midi_to_hz,
)
from pitch_corrector.inference import Scale
from pitch_corrector.processing import ChunkPlanner, CorrectionConfig, build_plan, soft_limit
from pitch_corrector.shifting import IdentityShifter, ResampleShifter

from generate_test_audio import generate_note_sequence, generate_sine_wave

SR = 48000
HOP = 5184  # 120 ms chunk minus 12 ms overlap at 48 kHz


def sine(freq, n_samples=10 * HOP, amplitude=0.5):
    return generate_sine_wave(freq, n_samples / SR, SR, amplitude)[:n_samples]


class TestCorrectionConfig:
    """Tests for configuration bounds and sample conversions."""

    def test_defaults_are_valid(self):
        config = CorrectionConfig().validate()
        assert config.chunk_ms == 120
        assert config.overlap_ms == 12
        assert config.gate_db == -45

    def test_sample_lengths_at_48k(self):
        config = CorrectionConfig()
        assert config.chunk_length(SR) == 5760
        assert config.overlap_length(SR) == 576
        assert config.hop_length(SR) == HOP

    def test_sample_lengths_round_half_up(self):
        config = CorrectionConfig(chunk_ms=120, overlap_ms=12)
        assert config.chunk_length(44100) == 5292
        assert config.overlap_length(44100) == 529
        assert config.hop_length(44100) == 4763

    @pytest.mark.parametrize(
        "field,value",
        [
            ("chunk_ms", 49),
            ("chunk_ms", 201),
            ("overlap_ms", 4),
            ("overlap_ms", 61),
            ("gate_db", -81),
            ("gate_db", -9),
            ("min_frequency", 39),
            ("min_frequency", 201),
            ("max_frequency", 199),
            ("max_frequency", 1201),
            ("root_confidence", 1.5),
            ("voicing_confidence", -0.1),
            ("estimator", "yin"),
            ("crossfade", "cubic"),
            ("limit", 0.0),
            ("root", 12),
            ("root", True),
        ],
    )
    def test_out_of_bounds_rejected(self, field, value):
        with pytest.raises(InvalidConfigurationError):
            CorrectionConfig(**{field: value}).validate()

    def test_overlap_bound_follows_chunk(self):
        CorrectionConfig(chunk_ms=200, overlap_ms=100).validate()
        with pytest.raises(InvalidConfigurationError, match="overlap_ms"):
            CorrectionConfig(chunk_ms=50, overlap_ms=30).validate()

    def test_max_must_exceed_min(self):
        with pytest.raises(InvalidConfigurationError, match="exceed"):
            CorrectionConfig(min_frequency=200, max_frequency=200).validate()

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            CorrectionConfig(chunk_ms=10).validate()

    def test_dict_round_trip(self):
        config = CorrectionConfig(chunk_ms=80, root=2)
        assert CorrectionConfig.from_dict(config.to_dict()) == config

    def test_unknown_fields_rejected(self):
        with pytest.raises(InvalidConfigurationError, match="chunk_size"):
            CorrectionConfig.from_dict({"chunk_size": 120})


class TestChunkPlanner:
    """Tests for per-frame voiced flags and shift ratios."""

    def test_frames_cover_buffer(self):
        plan = build_plan(sine(220.0), SR)
        assert [e.start for e in plan] == list(range(0, 10 * HOP, HOP))
        assert all(e.length == 5760 and e.overlap == 576 for e in plan)
        assert plan.entries[-1].end > 10 * HOP

    def test_in_key_sine_barely_moves(self):
        plan = build_plan(sine(220.0), SR)
        assert plan.key.root == 9
        assert plan.root_source == "inferred"
        assert plan.voiced_count == plan.total_frames == 10
        for entry in plan:
            assert entry.target_midi == 57
            assert entry.shift_ratio == pytest.approx(1.0, rel=0.01)

    def test_unvoiced_frames_keep_unit_ratio(self):
        audio = np.concatenate([np.zeros(3 * HOP, dtype=np.float32), sine(220.0)])
        plan = build_plan(audio, SR)
        for entry in plan.entries[:2]:
            assert not entry.voiced
            assert entry.shift_ratio == 1.0
            assert entry.target_midi is None
        assert plan.entries[-2].voiced

    def test_first_confident_frame_sets_root(self):
        audio = np.concatenate([sine(261.63, 4 * HOP), sine(220.0, 6 * HOP)])
        plan = build_plan(audio, SR)
        assert plan.key.root == 0
        assert plan.key.frame_index == 0
        assert plan.scale == Scale(0)

    def test_gate_marks_quiet_frames_unvoiced(self):
        quiet = sine(220.0, amplitude=0.002)  # about -57 dBFS
        plan = build_plan(quiet, SR, CorrectionConfig(gate_db=-45))
        assert plan.voiced_count == 0
        assert plan.root_source == "fallback"
        assert plan.key.root == 9

    def test_forced_root(self):
        plan = build_plan(sine(233.0), SR, CorrectionConfig(root=9))
        assert plan.root_source == "forced"
        voiced = [e for e in plan if e.voiced]
        assert voiced
        for entry in voiced:
            assert entry.target_midi in (57, 59)
            assert entry.frequency * entry.shift_ratio == pytest.approx(
                midi_to_hz(entry.target_midi)
            )

    def test_inferred_root_from_a_sharp(self):
        plan = build_plan(sine(233.0), SR)
        assert plan.key.root == 10
        assert plan.key.scale.name == "A# major"

    def test_amdf_strategy(self):
        plan = build_plan(sine(220.0), SR, CorrectionConfig(estimator="amdf"))
        assert plan.key.root == 9
        assert plan.voiced_count >= 9

    def test_estimates_kept_per_frame(self):
        plan = ChunkPlanner().build_plan(sine(220.0), SR)
        assert len(plan.estimates) == len(plan.entries)
        assert plan.estimates[0].frequency == plan.entries[0].frequency

    def test_melody_targets_stay_in_key(self):
        cents_flat = 2 ** (-30 / 1200)
        freqs = [261.63, 293.66, 329.63, 0.0, 349.23, 392.00]
        audio = generate_note_sequence(
            [f * cents_flat for f in freqs], [0.5, 0.5, 0.5, 0.25, 0.5, 1.0]
        )
        plan = build_plan(audio, SR)
        assert plan.key.root == 0
        targets = {e.target_midi for e in plan if e.voiced}
        assert {60, 62, 64, 65, 67} <= targets
        assert all(Scale(0).contains(t) for t in targets)
        assert plan.voiced_count < plan.total_frames

    @pytest.mark.parametrize("sr", [0, -48000, 44100.0, True])
    def test_bad_sample_rate(self, sr):
        with pytest.raises(ValueError, match="Sample rate"):
            build_plan(sine(220.0), sr)

    def test_stereo_rejected(self):
        with pytest.raises(ValueError, match="mono"):
            build_plan(np.zeros((2, 1000), dtype=np.float32), SR)

    def test_overlap_must_be_shorter_than_chunk(self):
        # At 20 Hz both 50 ms and 25 ms round to one sample
        config = CorrectionConfig(chunk_ms=50, overlap_ms=25)
        with pytest.raises(ValueError, match="shorter than the chunk"):
            build_plan(np.zeros(100, dtype=np.float32), 20, config)


class TestPitchCorrector:
    """Tests for complete correction passes."""

    def test_silence_passes_through(self):
        audio = np.zeros(SR, dtype=np.float32)
        with pytest.warns(UnvoicedPassWarning):
            out, diagnostics = process(audio, SR, shifter=ResampleShifter(SR))
        assert len(out) == len(audio)
        assert not out.any()
        assert diagnostics.voiced_count == 0
        assert diagnostics.is_unvoiced
        assert diagnostics.root_source == "fallback"
        assert diagnostics.key_name == "A major"

    def test_empty_buffer(self):
        with pytest.warns(UnvoicedPassWarning):
            out, diagnostics = process(np.zeros(0, dtype=np.float32), SR, shifter=IdentityShifter())
        assert len(out) == 0
        assert diagnostics.total_frames == 0

    def test_identity_shifter_only_limits(self):
        audio = sine(233.0)
        out, diagnostics = process(audio, SR, shifter=IdentityShifter())
        np.testing.assert_allclose(out, soft_limit(audio), atol=1e-6)
        assert diagnostics.voiced_count == diagnostics.total_frames

    def test_resample_shifter_corrects_toward_target(self):
        from pitch_corrector.analysis import AutocorrelationEstimator

        audio = sine(233.0)
        out, diagnostics = process(
            audio, SR, CorrectionConfig(root=9), ResampleShifter(SR)
        )
        assert len(out) == len(audio)
        assert diagnostics.corrected_count > 0
        assert all(f.target_midi == 59 for f in diagnostics.frames if f.voiced)

        # Head of the first frame is rendered straight from the shifter
        head = out[:HOP]
        est = AutocorrelationEstimator().estimate(head, SR, 70.0, 900.0)
        assert est.frequency == pytest.approx(midi_to_hz(59), rel=0.02)

    def test_output_stays_below_limit(self):
        loud = sine(220.0, amplitude=1.5)
        out, _ = process(loud, SR, shifter=IdentityShifter())
        assert np.max(np.abs(out)) < 0.98

    def test_integer_pcm_input(self):
        audio = (sine(220.0) * 32767).astype(np.int16)
        out, diagnostics = process(audio, SR, shifter=IdentityShifter())
        assert out.dtype == np.float32
        assert diagnostics.key_name == "A major"

    def test_correct_needs_shifter(self):
        with pytest.raises(ValueError, match="shifter"):
            PitchCorrector().correct(sine(220.0), SR)

    def test_shifter_sample_rate_checked(self):
        corrector = PitchCorrector(shifter=ResampleShifter(44100))
        with pytest.raises(ShifterUnavailableError):
            corrector.correct(sine(220.0), SR)

    def test_invalid_config_rejected_at_setup(self):
        with pytest.raises(InvalidConfigurationError):
            PitchCorrector(CorrectionConfig(gate_db=0))

    def test_plan_without_shifter(self):
        plan = PitchCorrector().plan(sine(220.0), SR)
        assert plan.key.root == 9

    def test_diagnostics_serialize(self):
        _, diagnostics = process(sine(220.0), SR, shifter=IdentityShifter())
        data = json.loads(json.dumps(diagnostics.to_dict()))
        assert data["key"] == "A major"
        assert data["root_midi"] == 57
        assert data["root_hz"] == pytest.approx(220.0)
        assert data["hop_length"] == HOP
        assert len(data["frames"]) == 10
        assert data["frames"][0]["target_midi"] == 57


class TestAnalyze:
    """Tests for the quick voicing/key overview."""

    def test_sine_summary(self):
        summary = PitchCorrector().analyze(generate_sine_wave(220.0, 1.0), SR)
        assert summary.total_chunks == 8
        assert summary.voiced_count == 8
        assert summary.first_hz == pytest.approx(220.0, rel=0.01)
        assert summary.first_note_name == "A3"
        assert summary.key_root_midi == 57
        assert summary.key_name == "A major"
        assert summary.preview[0] == "A3→A3"

    def test_preview_is_capped(self):
        summary = PitchCorrector().analyze(generate_sine_wave(220.0, 3.0), SR)
        assert summary.voiced_count > 10
        assert len(summary.preview) == 10

    def test_silence_summary(self):
        summary = PitchCorrector().analyze(np.zeros(SR, dtype=np.float32), SR)
        assert summary.voiced_count == 0
        assert summary.first_hz is None
        assert summary.key_name is None
        assert summary.to_dict()["preview"] == []

    def test_low_gate_reaches_quiet_take(self):
        """A -43 dBFS take is voiced when the gate sits at -60 dB."""
        quiet = generate_sine_wave(220.0, 1.0, amplitude=0.01)
        summary = PitchCorrector(CorrectionConfig(gate_db=-60)).analyze(quiet, SR)
        assert summary.voiced_count == summary.total_chunks == 8
        assert summary.key_name == "A major"

    def test_gate_still_applies(self):
        quiet = generate_sine_wave(220.0, 1.0, amplitude=0.01)
        summary = PitchCorrector(CorrectionConfig(gate_db=-20)).analyze(quiet, SR)
        assert summary.voiced_count == 0

    def test_chunk_length_floors(self):
        # 51 ms at 22050 Hz is 1124.55 samples
        audio = generate_sine_wave(220.0, 1124 / 22050, 22050)[:1124]
        summary = PitchCorrector(CorrectionConfig(chunk_ms=51, overlap_ms=5)).analyze(
            audio, 22050
        )
        assert summary.total_chunks == 1
        assert summary.voiced_count == 1
