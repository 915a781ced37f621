"""Moving-average smoothing, finite differences and Tm peak picking."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

__all__ = ["moving_average", "calculate_derivative", "negative_derivative", "find_tm"]


def moving_average(values: Sequence[float], window: int) -> np.ndarray:
    """Centered moving average with windows that shrink at the edges.

    Edge points average fewer samples instead of padding the curve.
    """

    y = np.asarray(values, dtype=float)
    window = int(window)
    if window < 1:
        raise ValueError("Smoothing window must be at least 1")
    n = y.size
    half = window // 2
    if half == 0:
        return y.copy()
    smoothed = np.empty(n, dtype=float)
    for idx in range(n):
        start = max(0, idx - half)
        stop = min(n, idx + half + 1)
        smoothed[idx] = y[start:stop].mean()
    return smoothed


def calculate_derivative(x: Sequence[float], y: Sequence[float]) -> np.ndarray:
    """dy/dx with central differences inside, one-sided at both ends."""

    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError("Axis and values must have the same length")
    n = x.size
    if n < 2:
        return np.full(n, np.nan, dtype=float)

    dx = np.empty(n, dtype=float)
    dy = np.empty(n, dtype=float)
    dx[0] = x[1] - x[0]
    dy[0] = y[1] - y[0]
    dx[-1] = x[-1] - x[-2]
    dy[-1] = y[-1] - y[-2]
    dx[1:-1] = x[2:] - x[:-2]
    dy[1:-1] = y[2:] - y[:-2]
    with np.errstate(divide="ignore", invalid="ignore"):
        return dy / dx


def negative_derivative(temperatures: Sequence[float], values: Sequence[float]) -> np.ndarray:
    """-dF/dT, so a fluorescence drop shows up as a positive peak."""

    return -calculate_derivative(temperatures, values)


def find_tm(temperatures: Sequence[float], derivative: Sequence[float]) -> float:
    """Temperature at the largest ``|derivative|``; ties keep the first index.

    Returns NaN when the selected derivative value is NaN; an infinite slope
    still marks its temperature.
    """

    temps = np.asarray(temperatures, dtype=float)
    deriv = np.asarray(derivative, dtype=float)
    if deriv.size == 0:
        return float("nan")
    best_idx = 0
    best_abs = abs(deriv[0])
    for idx in range(1, deriv.size):
        current = abs(deriv[idx])
        if current > best_abs:
            best_abs = current
            best_idx = idx
    if math.isnan(deriv[best_idx]):
        return float("nan")
    return float(temps[best_idx])
