"""
Normalization Engine
====================

Z-score transform applied once per series before any master operation runs.

    y = (x - mean(x)) / std(x, ddof=1)

The sample standard deviation (ddof=1) is used. A constant series (or a
series of length 1) has no spread: the division is left to IEEE semantics,
so y is all NaN and master operations reading y report NaN outputs.
"""

import warnings

import numpy as np

# Sample standard deviation
ZSCORE_DDOF = 1


def compute_zscore(data: np.ndarray, ddof: int = ZSCORE_DDOF) -> np.ndarray:
    """
    Z-score normalization: (x - mean) / std

    Args:
        data: 1D input array
        ddof: Degrees of freedom for std calculation

    Returns:
        Normalized array, same length as data. NaN everywhere when the
        standard deviation is zero or undefined.
    """
    data = np.asarray(data, dtype=np.float64).ravel()

    with warnings.catch_warnings():
        # std with ddof >= n warns about degrees of freedom
        warnings.simplefilter("ignore", RuntimeWarning)
        with np.errstate(divide="ignore", invalid="ignore"):
            mean = np.mean(data)
            std = np.std(data, ddof=ddof)
            return (data - mean) / std

