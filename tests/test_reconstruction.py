"""Tests for overlap-add reconstruction, limiting and shifter backends."""

import pytest
import numpy as np

from pitch_corrector.core import ShiftPrimitiveError, ShifterUnavailableError
from pitch_corrector.inference import KeyInference
from pitch_corrector.processing import (
    ChunkPlanner,
    CorrectionConfig,
    OverlapAddReconstructor,
    equal_power_crossfade,
    linear_crossfade,
    reconstruct,
    soft_limit,
)
from pitch_corrector.processing.planner import ChunkPlan, ChunkPlanEntry
from pitch_corrector.shifting import (
    IdentityShifter,
    ResampleShifter,
    ensure_shifter,
    get_shifter,
)

from generate_test_audio import generate_sine_wave, generate_vocal_like

SR = 48000


def make_plan(n, chunk, overlap, ratio=1.0):
    """Hand-built plan with every frame voiced at the same ratio."""
    hop = chunk - overlap
    entries = [
        ChunkPlanEntry(
            index=i, start=start, length=chunk, overlap=overlap,
            voiced=True, shift_ratio=ratio,
        )
        for i, start in enumerate(range(0, n, hop))
    ]
    return ChunkPlan(
        sample_rate=SR,
        chunk_length=chunk,
        overlap_length=overlap,
        hop_length=hop,
        key=KeyInference(root=9),
        root_source="forced",
        entries=entries,
    )


class ConstantShifter:
    """Returns frame i as a constant block of value i + 1."""

    def __init__(self):
        self.calls = 0

    def shift(self, frame, ratio):
        self.calls += 1
        return np.full(len(frame), float(self.calls), dtype=np.float32)


class FixedOutputShifter:
    def __init__(self, output):
        self.output = output

    def shift(self, frame, ratio):
        return self.output


class TestCrossfadeCurves:
    """Tests for crossfade weight curves."""

    def test_linear_sums_to_one(self):
        fade_out, fade_in = linear_crossfade(5)
        np.testing.assert_allclose(fade_in, [0.0, 0.25, 0.5, 0.75, 1.0])
        np.testing.assert_allclose(fade_out + fade_in, 1.0)

    def test_equal_power_constant_power(self):
        fade_out, fade_in = equal_power_crossfade(64)
        np.testing.assert_allclose(fade_out ** 2 + fade_in ** 2, 1.0)
        assert fade_out[0] == pytest.approx(1.0)
        assert fade_in[-1] == pytest.approx(1.0)

    def test_single_sample_crossfade(self):
        fade_out, fade_in = linear_crossfade(1)
        assert len(fade_out) == len(fade_in) == 1


class TestSoftLimit:
    """Tests for the output soft limiter."""

    def test_silence_stays_silent(self):
        out = soft_limit(np.zeros(100))
        assert not out.any()
        assert out.dtype == np.float32

    def test_bounded_by_limit(self):
        x = np.linspace(-50.0, 50.0, 1001)
        y = soft_limit(x, 0.98)
        assert np.all(np.abs(y) < 0.98)

    def test_monotonic_and_odd(self):
        x = np.linspace(-2.0, 2.0, 401)
        y = soft_limit(x)
        assert np.all(np.diff(y) > 0)
        np.testing.assert_allclose(y, -y[::-1], atol=1e-7)

    def test_formula(self):
        assert soft_limit(np.array([0.5]), 1.0)[0] == pytest.approx(0.5 / 1.5)


class TestOverlapAddReconstructor:
    """Tests for stitching shifted frames back together."""

    def test_output_length_matches_input(self):
        for n in (1, 7, 20, 1001):
            audio = np.ones(n, dtype=np.float32) * 0.1
            out, diagnostics = reconstruct(audio, make_plan(n, 8, 4), IdentityShifter())
            assert len(out) == n
            assert len(diagnostics) == len(range(0, n, 4))

    def test_crossfade_blends_previous_tail(self):
        n, chunk, overlap = 20, 8, 4
        audio = np.zeros(n, dtype=np.float32)
        out, _ = reconstruct(audio, make_plan(n, chunk, overlap), ConstantShifter())

        ramp = np.array([0.0, 1 / 3, 2 / 3, 1.0])
        expected = np.empty(n)
        expected[0:4] = 1.0
        expected[4:8] = 1.0 + ramp
        expected[8:12] = 2.0 + ramp
        expected[12:16] = 3.0 + ramp
        expected[16:20] = 4.0 + ramp
        np.testing.assert_allclose(out, soft_limit(expected), rtol=1e-5)

    def test_first_frame_has_no_fade_in(self):
        n = 20
        audio = np.ones(n, dtype=np.float32) * 0.5
        out, _ = reconstruct(audio, make_plan(n, 8, 4), IdentityShifter())
        assert out[0] == pytest.approx(soft_limit(np.array([0.5]))[0])

    @pytest.mark.parametrize("crossfade", ["linear", "equal_power"])
    def test_identity_shift_only_applies_limiter(self, crossfade):
        audio = generate_vocal_like(220.0, 1.0)
        config = CorrectionConfig(crossfade=crossfade)
        plan = ChunkPlanner(config).build_plan(audio, SR)
        reconstructor = OverlapAddReconstructor(crossfade, config.limit)
        out, _ = reconstructor.reconstruct(audio, plan, IdentityShifter())
        if crossfade == "linear":
            np.testing.assert_allclose(out, soft_limit(audio), atol=1e-6)
        else:
            # Equal-power gain exceeds 1 mid-fade for correlated frames
            assert len(out) == len(audio)
            assert np.all(np.abs(out) < config.limit)

    def test_short_shifter_output_is_padded(self):
        n = 20
        audio = np.ones(n, dtype=np.float32) * 0.5
        shifter = FixedOutputShifter(np.ones(3, dtype=np.float32))
        out, diagnostics = reconstruct(audio, make_plan(n, 8, 4), shifter)
        assert len(out) == n
        assert diagnostics[0].shifted_length == 3
        # Samples past the returned block are zero-filled
        assert out[3] == 0.0

    def test_long_shifter_output_is_truncated(self):
        n = 20
        audio = np.zeros(n, dtype=np.float32)
        shifter = FixedOutputShifter(np.full(50, 0.25, dtype=np.float32))
        out, diagnostics = reconstruct(audio, make_plan(n, 8, 4), shifter)
        assert len(out) == n
        assert diagnostics[0].shifted_length == 50
        np.testing.assert_allclose(out, soft_limit(np.full(n, 0.25)), rtol=1e-5)

    def test_row_vector_output_accepted(self):
        n = 20
        shifter = FixedOutputShifter(np.full((1, 8), 0.1, dtype=np.float32))
        out, _ = reconstruct(np.zeros(n, dtype=np.float32), make_plan(n, 8, 4), shifter)
        assert len(out) == n

    def test_diagnostics_mirror_plan(self):
        n = 20
        plan = make_plan(n, 8, 4, ratio=1.5)
        _, diagnostics = reconstruct(np.zeros(n, dtype=np.float32), plan, IdentityShifter())
        assert [d.start for d in diagnostics] == [0, 4, 8, 12, 16]
        assert all(d.shift_ratio == 1.5 for d in diagnostics)
        assert diagnostics[0].to_dict()["index"] == 0

    def test_unknown_crossfade(self):
        from pitch_corrector.core import InvalidConfigurationError

        with pytest.raises(InvalidConfigurationError):
            OverlapAddReconstructor("cubic")

    def test_custom_crossfade_callable(self):
        def hard_cut(length):
            return np.zeros(length), np.ones(length)

        n = 20
        out, _ = OverlapAddReconstructor(hard_cut, limit=1.0).reconstruct(
            np.zeros(n, dtype=np.float32), make_plan(n, 8, 4), ConstantShifter()
        )
        expected = np.repeat([1.0, 2.0, 3.0, 4.0, 5.0], 4)
        np.testing.assert_allclose(out, soft_limit(expected, 1.0), rtol=1e-5)


class TestShiftPrimitiveErrors:
    """Tests for rejecting broken shifter output."""

    def test_raising_shifter_aborts(self):
        class Broken:
            def shift(self, frame, ratio):
                raise RuntimeError("backend crashed")

        with pytest.raises(ShiftPrimitiveError, match="backend crashed") as info:
            reconstruct(np.zeros(20, dtype=np.float32), make_plan(20, 8, 4), Broken())
        assert info.value.frame_index == 0

    @pytest.mark.parametrize(
        "output",
        [
            None,
            "not audio",
            np.array([], dtype=np.float32),
            np.zeros((2, 8), dtype=np.float32),
            np.array([0.0, np.nan, 0.0], dtype=np.float32),
            np.array([np.inf] * 8, dtype=np.float32),
        ],
    )
    def test_unusable_output(self, output):
        with pytest.raises(ShiftPrimitiveError):
            reconstruct(
                np.zeros(20, dtype=np.float32),
                make_plan(20, 8, 4),
                FixedOutputShifter(output),
            )

    def test_error_reports_failing_frame(self):
        class FailsLater:
            def __init__(self):
                self.calls = 0

            def shift(self, frame, ratio):
                self.calls += 1
                if self.calls == 3:
                    return np.full(len(frame), np.nan)
                return frame

        with pytest.raises(ShiftPrimitiveError) as info:
            reconstruct(np.zeros(20, dtype=np.float32), make_plan(20, 8, 4), FailsLater())
        assert info.value.frame_index == 2


class TestShifters:
    """Tests for the bundled shift backends."""

    def test_identity_returns_copy(self):
        frame = np.ones(16, dtype=np.float32)
        out = IdentityShifter().shift(frame, 1.2)
        np.testing.assert_array_equal(out, frame)
        out[0] = 0.0
        assert frame[0] == 1.0

    @pytest.mark.parametrize("ratio", [0.0, -1.0])
    def test_non_positive_ratio_rejected(self, ratio):
        with pytest.raises(ValueError):
            ResampleShifter().shift(np.ones(16), ratio)

    def test_resample_keeps_length(self):
        frame = generate_sine_wave(220.0, 0.12, SR)
        for ratio in (0.8, 1.0, 1.25):
            assert len(ResampleShifter(SR).shift(frame, ratio)) == len(frame)

    def test_resample_raises_pitch(self):
        from pitch_corrector.analysis import AutocorrelationEstimator

        frame = generate_sine_wave(220.0, 0.24, SR)
        shifted = ResampleShifter(SR).shift(frame, 1.1)
        # Raising pitch leaves a silent tail; measure the filled part
        head = shifted[: int(len(frame) / 1.1) - 1]
        est = AutocorrelationEstimator().estimate(head, SR, 70.0, 900.0)
        assert est.frequency == pytest.approx(242.0, rel=0.01)

    def test_ratio_to_semitones(self):
        assert IdentityShifter.ratio_to_semitones(2.0) == pytest.approx(12.0)

    def test_ensure_shifter_requires_shift(self):
        with pytest.raises(ShifterUnavailableError):
            ensure_shifter(object())

    def test_ensure_shifter_checks_sample_rate(self):
        with pytest.raises(ShifterUnavailableError, match="44100"):
            ensure_shifter(ResampleShifter(44100), 48000)
        shifter = ResampleShifter(48000)
        assert ensure_shifter(shifter, 48000) is shifter

    def test_get_shifter(self):
        assert isinstance(get_shifter("identity"), IdentityShifter)
        assert get_shifter("resample", SR).sample_rate == SR

    def test_get_shifter_unknown(self):
        with pytest.raises(ShifterUnavailableError, match="Unknown shifter"):
            get_shifter("autotune", SR)

    def test_librosa_needs_sample_rate(self):
        with pytest.raises(ShifterUnavailableError):
            get_shifter("librosa")

    def test_librosa_shifter_keeps_length(self):
        shifter = get_shifter("librosa", SR)
        frame = generate_sine_wave(220.0, 0.12, SR)
        out = shifter.shift(frame, 2 ** (1 / 12))
        assert len(out) == len(frame)
        assert np.all(np.isfinite(out))
