"""
Entropy Master.

Complexity and regularity of the z-scored series.

Outputs:
    permutation_entropy  - Shannon entropy of ordinal patterns, normalized to [0, 1]
    sample_entropy       - -log(A/B) for template matches of length m+1 (A) and m (B)

sample_entropy is +Inf when no (m+1)-length matches exist and NaN when
no m-length matches exist. Both are valid, classified outputs.
"""

import math

import numpy as np
from typing import Dict

MIN_SAMPLES = 10
ORDER = 3
DELAY = 1
M = 2
R = 0.2  # tolerance, in units of y's standard deviation (y is z-scored)


def permutation_entropy(y: np.ndarray, order: int = ORDER, delay: int = DELAY) -> float:
    """Normalized permutation entropy."""
    n_patterns = len(y) - (order - 1) * delay
    if n_patterns < 1:
        return np.nan

    embedded = np.stack([y[i * delay:i * delay + n_patterns] for i in range(order)], axis=1)
    patterns = np.argsort(embedded, axis=1, kind='stable')
    _, counts = np.unique(patterns, axis=0, return_counts=True)

    p = counts / counts.sum()
    return float(-np.sum(p * np.log2(p)) / math.log2(math.factorial(order)))


def _count_matches(y: np.ndarray, m: int, r: float, n_templates: int) -> int:
    """Pairs of m-length templates (i < j) within Chebyshev distance r."""
    templates = np.stack([y[i:i + n_templates] for i in range(m)], axis=1)
    count = 0
    for i in range(n_templates - 1):
        distance = np.max(np.abs(templates[i + 1:] - templates[i]), axis=1)
        count += int(np.sum(distance <= r))
    return count


def sample_entropy(y: np.ndarray, m: int = M, r: float = R) -> float:
    """Sample entropy with tolerance r (absolute units of y)."""
    n_templates = len(y) - m
    if n_templates < 2:
        return np.nan

    b = _count_matches(y, m, r, n_templates)
    a = _count_matches(y, m + 1, r, n_templates)

    if b == 0:
        return np.nan
    if a == 0:
        return np.inf
    return float(-np.log(a / b))


def compute(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """
    Compute entropy measures of the z-scored series.

    Raises:
        ValueError: fewer than MIN_SAMPLES samples
    """
    y = np.asarray(y, dtype=np.float64).ravel()
    if len(y) < MIN_SAMPLES:
        raise ValueError(f"Need {MIN_SAMPLES} samples, got {len(y)}")

    if not np.all(np.isfinite(y)):
        return {'permutation_entropy': np.nan, 'sample_entropy': np.nan}

    return {
        'permutation_entropy': permutation_entropy(y),
        'sample_entropy': sample_entropy(y),
    }
