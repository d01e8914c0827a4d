"""
Statistics Master.

Location, spread and shape of the raw value distribution.
"""

import numpy as np
from typing import Dict
from scipy.stats import iqr, kurtosis, skew

MIN_SAMPLES = 4


def _clean(x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype=np.float64).ravel()
    return x[np.isfinite(x)]


def compute(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """
    Compute distribution statistics of the raw series.

    Args:
        x: Raw series values
        y: Z-scored series values (unused)

    Returns:
        dict with mean, median, std, iqr, kurtosis, skewness, crest_factor

    Raises:
        ValueError: fewer than MIN_SAMPLES finite values
    """
    x = _clean(x)
    if len(x) < MIN_SAMPLES:
        raise ValueError(f"Need {MIN_SAMPLES} finite samples, got {len(x)}")

    rms = np.sqrt(np.mean(x ** 2))

    with np.errstate(divide='ignore', invalid='ignore'):
        return {
            'mean': float(np.mean(x)),
            'median': float(np.median(x)),
            'std': float(np.std(x, ddof=1)),
            'iqr': float(iqr(x)),
            # Excess kurtosis; NaN for a constant series
            'kurtosis': float(kurtosis(x, fisher=True)),
            'skewness': float(skew(x)),
            'crest_factor': float(np.max(np.abs(x)) / rms),
        }


def compute_rms(x: np.ndarray, y: np.ndarray) -> float:
    """Root mean square of the raw series (single-valued master)."""
    x = _clean(x)
    if len(x) == 0:
        raise ValueError("No finite samples")
    return float(np.sqrt(np.mean(x ** 2)))
