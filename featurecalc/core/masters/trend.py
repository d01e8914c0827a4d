"""
Trend Master.

Linear trend of the raw series against sample index.
"""

import numpy as np
from typing import Dict
from scipy.stats import linregress

MIN_SAMPLES = 3


def compute(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """
    Compute trend properties.

    Returns:
        dict with trend_slope, trend_r2, detrend_std, cusum_range

    Raises:
        ValueError: fewer than MIN_SAMPLES samples
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    x = x[~np.isnan(x)]
    if len(x) < MIN_SAMPLES:
        raise ValueError(f"Need {MIN_SAMPLES} samples, got {len(x)}")

    t = np.arange(len(x), dtype=float)
    fit = linregress(t, x)

    detrended = x - (fit.slope * t + fit.intercept)

    cusum = np.cumsum(x - np.mean(x))

    return {
        'trend_slope': float(fit.slope),
        'trend_r2': float(fit.rvalue ** 2),
        'detrend_std': float(np.std(detrended)),
        'cusum_range': float(np.max(cusum) - np.min(cusum)),
    }
