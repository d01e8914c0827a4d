"""
Spectral Master.

Periodogram summary of the z-scored series (sample rate 1).
"""

import numpy as np
from typing import Dict

MIN_SAMPLES = 8

OUTPUTS = (
    'dominant_freq',
    'spectral_centroid',
    'spectral_bandwidth',
    'spectral_entropy',
    'spectral_slope',
)


def compute(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """
    Compute spectral properties of the z-scored series.

    Returns:
        dict with dominant_freq, spectral_centroid, spectral_bandwidth,
        spectral_entropy (normalized), spectral_slope (log-log)

    Raises:
        ValueError: fewer than MIN_SAMPLES samples
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    if len(y) < MIN_SAMPLES:
        raise ValueError(f"Need {MIN_SAMPLES} samples, got {len(y)}")

    if not np.all(np.isfinite(y)):
        return {name: np.nan for name in OUTPUTS}

    power = np.abs(np.fft.rfft(y)) ** 2
    freqs = np.fft.rfftfreq(len(y))

    # Drop DC
    power = power[1:]
    freqs = freqs[1:]
    total_power = np.sum(power)

    p = power / total_power
    centroid = float(np.sum(freqs * p))
    nonzero = p[p > 0]

    positive = power > 0
    if np.sum(positive) > 2:
        slope = float(np.polyfit(np.log10(freqs[positive]), np.log10(power[positive]), 1)[0])
    else:
        slope = np.nan

    return {
        'dominant_freq': float(freqs[np.argmax(power)]),
        'spectral_centroid': centroid,
        'spectral_bandwidth': float(np.sqrt(np.sum(((freqs - centroid) ** 2) * p))),
        'spectral_entropy': float(-np.sum(nonzero * np.log2(nonzero)) / np.log2(len(p))),
        'spectral_slope': slope,
    }
