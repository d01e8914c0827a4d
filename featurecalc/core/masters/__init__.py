"""
Default master operation library.

Each master takes (x, y): the raw series and its z-score, both 1D float64
arrays. It returns a dict of named outputs or, for single-valued masters,
one number. Masters raise on input they cannot handle; the master
evaluator turns that into a failure marker.

featurecalc computes numbers. Interpretation happens downstream.
"""

from . import statistics      # mean, std, moments, crest factor, rms
from . import autocorrelation  # acf lags, first zero, e-folding lag
from . import entropy         # permutation and sample entropy
from . import spectral        # dominant freq, centroid, bandwidth, spectral entropy
from . import trend           # slope, r2, detrended std, cusum range

__all__ = [
    'statistics',
    'autocorrelation',
    'entropy',
    'spectral',
    'trend',
]
