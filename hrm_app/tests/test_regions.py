import numpy as np

from hrm_app.engine.models import MeltRegions
from hrm_app.engine.regions import detect_melt_regions, normalize_curve, window_mean


def _melt_curve(pre=10.0, post=2.0):
    return np.concatenate([np.full(10, pre), np.linspace(pre, post, 80), np.full(10, post)])


def test_auto_regions_use_first_and_last_tenth():
    assert detect_melt_regions(100) == MeltRegions(0, 10, 90, 100)
    assert detect_melt_regions(5) == MeltRegions(0, 0, 4, 5)
    assert detect_melt_regions(37) == MeltRegions(0, 3, 33, 37)


def test_auto_regions_respect_ordering_invariant():
    for n in range(1, 60):
        regions = detect_melt_regions(n)
        assert regions.is_valid_for(n)


def test_normalization_maps_baselines_to_one_and_zero():
    raw = _melt_curve()
    regions = detect_melt_regions(raw.size)
    normalized = normalize_curve(raw, regions)

    assert np.allclose(normalized[:10], 1.0)
    assert np.allclose(normalized[90:], 0.0)
    assert normalized.shape == raw.shape


def test_normalization_does_not_clip():
    raw = _melt_curve()
    raw[20] = 12.0
    raw[70] = 0.0
    normalized = normalize_curve(raw, detect_melt_regions(raw.size))

    assert normalized[20] == 1.25
    assert normalized[70] == -0.25


def test_normalization_is_affine_for_constant_curves():
    regions = MeltRegions(0, 2, 3, 5)
    reference = np.array([8.0, 8.0, 5.0, 4.0, 4.0])
    pre_avg, post_avg = 8.0, 4.0
    normalized = normalize_curve(reference, regions)
    inverted = normalized * (pre_avg - post_avg) + post_avg
    assert np.allclose(inverted, reference)


def test_equal_baselines_yield_non_finite_values():
    raw = np.full(20, 3.0)
    normalized = normalize_curve(raw, detect_melt_regions(raw.size))
    assert not np.any(np.isfinite(normalized))


def test_empty_window_mean_is_nan():
    values = np.array([1.0, 2.0, 3.0])
    assert np.isnan(window_mean(values, 0, 0))
    assert window_mean(values, 1, 3) == 2.5
