"""
Autocorrelation Master.

Linear memory of the z-scored series: autocorrelation at short lags and the
lags where it first decays through 1/e and through zero.
"""

import numpy as np
from typing import Dict

MIN_SAMPLES = 4
LAGS = (1, 2, 3, 5, 10)


def acf(y: np.ndarray) -> np.ndarray:
    """
    Biased autocorrelation function via FFT, normalized so acf[0] == 1.

    Returns all-NaN when y contains non-finite values or has zero variance.
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    n = len(y)
    if not np.all(np.isfinite(y)):
        return np.full(n, np.nan)

    centered = y - np.mean(y)
    n_fft = 1 << (2 * n - 1).bit_length()
    spectrum = np.fft.rfft(centered, n=n_fft)
    raw = np.fft.irfft(spectrum * np.conj(spectrum), n=n_fft)[:n]

    if raw[0] == 0:
        return np.full(n, np.nan)
    return raw / raw[0]


def _first_below(values: np.ndarray, threshold: float) -> float:
    """First lag (>= 1) where values drop below threshold; NaN if never."""
    below = np.nonzero(values[1:] < threshold)[0]
    return float(below[0] + 1) if below.size else np.nan


def compute(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """
    Compute autocorrelation summary of the z-scored series.

    Returns:
        dict with ac_1, ac_2, ac_3, ac_5, ac_10, first_zero, first_e
        (lags beyond the series length are NaN)

    Raises:
        ValueError: fewer than MIN_SAMPLES samples
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    if len(y) < MIN_SAMPLES:
        raise ValueError(f"Need {MIN_SAMPLES} samples, got {len(y)}")

    r = acf(y)
    result = {f'ac_{lag}': float(r[lag]) if lag < len(r) else np.nan for lag in LAGS}

    if np.isnan(r[0]):
        result['first_zero'] = np.nan
        result['first_e'] = np.nan
    else:
        result['first_zero'] = _first_below(r, 0.0)
        result['first_e'] = _first_below(r, 1.0 / np.e)

    return result
