import math

import numpy as np
import pytest

from hrm_app.engine.derivative import (
    calculate_derivative,
    find_tm,
    moving_average,
    negative_derivative,
)


def test_window_of_one_is_identity():
    values = np.array([3.0, -1.0, 4.0, 1.0, 5.0])
    assert np.array_equal(moving_average(values, 1), values)


def test_moving_average_shrinks_window_at_edges():
    smoothed = moving_average([1.0, 2.0, 3.0, 4.0, 5.0], 3)
    assert np.allclose(smoothed, [1.5, 2.0, 3.0, 4.0, 4.5])

    smoothed = moving_average([0.0, 0.0, 10.0, 0.0, 0.0], 5)
    assert np.allclose(smoothed, [10 / 3, 2.5, 2.0, 2.5, 10 / 3])


def test_even_window_uses_floor_half_width():
    assert np.allclose(moving_average([1.0, 2.0, 3.0], 2), moving_average([1.0, 2.0, 3.0], 3))


def test_moving_average_rejects_zero_window():
    with pytest.raises(ValueError):
        moving_average([1.0, 2.0], 0)


def test_nan_stays_local_to_its_windows():
    smoothed = moving_average([1.0, 1.0, np.nan, 1.0, 1.0, 1.0, 1.0], 3)
    assert np.isnan(smoothed[1:4]).all()
    assert np.allclose(smoothed[[0, 4, 5, 6]], 1.0)


def test_derivative_of_line_is_slope():
    x = np.array([0.0, 1.0, 3.0, 4.0, 7.0])
    y = 2.0 * x + 1.0
    assert np.allclose(calculate_derivative(x, y), 2.0)


def test_derivative_uses_one_sided_differences_at_ends():
    x = np.array([0.0, 1.0, 2.0, 3.0])
    y = np.array([0.0, 1.0, 4.0, 9.0])
    assert np.allclose(calculate_derivative(x, y), [1.0, 2.0, 4.0, 5.0])


def test_single_point_derivative_is_undefined():
    result = calculate_derivative([60.0], [1.0])
    assert result.shape == (1,)
    assert np.isnan(result[0])


def test_negative_derivative_turns_melt_into_positive_peak():
    temps = np.array([60.0, 61.0, 62.0, 63.0, 64.0])
    fluorescence = np.array([1.0, 0.9, 0.5, 0.1, 0.0])
    neg = negative_derivative(temps, fluorescence)
    assert np.all(neg >= 0)
    assert find_tm(temps, neg) == 62.0


def test_find_tm_returns_known_peak():
    temps = np.linspace(70.0, 80.0, 11)
    peak = np.exp(-0.5 * ((temps - 76.0) / 1.0) ** 2)
    assert find_tm(temps, peak) == pytest.approx(76.0)


def test_find_tm_keeps_first_of_equal_peaks():
    temps = np.array([60.0, 61.0, 62.0, 63.0, 64.0])
    assert find_tm(temps, [0.0, 3.0, 1.0, 3.0, 0.0]) == 61.0


def test_find_tm_uses_absolute_value():
    temps = np.array([60.0, 61.0, 62.0])
    assert find_tm(temps, [0.5, -2.0, 1.0]) == 61.0


def test_find_tm_of_non_finite_curve_is_nan():
    temps = np.array([60.0, 61.0, 62.0])
    assert math.isnan(find_tm(temps, [np.nan, np.nan, np.nan]))


def test_find_tm_keeps_temperature_of_infinite_slope():
    temps = np.array([60.0, 60.0, 61.0, 62.0])
    assert find_tm(temps, [np.inf, 1.0, 0.5, 0.2]) == 60.0
    assert find_tm(temps, [0.1, -np.inf, 0.5, 0.2]) == 60.0
