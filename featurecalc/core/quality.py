"""
Output quality coding.

Every operation output is classified once all outputs are in:

    code  meaning                               stored value
    ----  ------------------------------------  ------------
    0     finite real number                    the number
    1     evaluation failed                     0
    2     NaN                                   0
    3     +Inf                                  0
    4     -Inf                                  0
    5     non-zero imaginary component          0

FATAL_ERROR is decided by the evaluators, never from the value. For the
numeric codes an imaginary part that is not exactly zero (NaN included)
makes the output COMPLEX_OUTPUT; otherwise the real part is inspected.
New output domains get new codes rather than reusing these.
"""

from enum import IntEnum
from typing import Tuple

import numpy as np


class QualityCode(IntEnum):
    """Classification of a single operation output."""
    OK = 0
    FATAL_ERROR = 1
    NAN_OUTPUT = 2
    POS_INF_OUTPUT = 3
    NEG_INF_OUTPUT = 4
    COMPLEX_OUTPUT = 5


def classify(value: complex) -> QualityCode:
    """Classify a single successfully evaluated output."""
    value = complex(value)
    if value.imag != 0 or np.isnan(value.imag):
        return QualityCode.COMPLEX_OUTPUT
    real = value.real
    if np.isnan(real):
        return QualityCode.NAN_OUTPUT
    if np.isinf(real):
        return QualityCode.POS_INF_OUTPUT if real > 0 else QualityCode.NEG_INF_OUTPUT
    return QualityCode.OK


def classify_outputs(
    raw: np.ndarray,
    fatal: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorized classification of all outputs of a run.

    Args:
        raw: complex array of raw outputs (ignored where fatal)
        fatal: bool array, True where evaluation failed

    Returns:
        (values, quality): finite float64 values with exceptional outputs
        zeroed, and int8 quality codes
    """
    raw = np.asarray(raw, dtype=np.complex128)
    fatal = np.asarray(fatal, dtype=bool)

    imag = raw.imag
    real = raw.real
    numeric = ~fatal

    quality = np.zeros(raw.shape, dtype=np.int8)
    quality[fatal] = QualityCode.FATAL_ERROR

    is_complex = numeric & ((imag != 0) | np.isnan(imag))
    is_real = numeric & ~is_complex

    quality[is_real & np.isnan(real)] = QualityCode.NAN_OUTPUT
    quality[is_real & np.isposinf(real)] = QualityCode.POS_INF_OUTPUT
    quality[is_real & np.isneginf(real)] = QualityCode.NEG_INF_OUTPUT
    quality[is_complex] = QualityCode.COMPLEX_OUTPUT

    values = np.where(quality == QualityCode.OK, real, 0.0).astype(np.float64)
    return values, quality
