"""
Input Series Validation

A time series enters the engine as a single column of real values. Bare
numeric data gets default identity metadata; a row vector is transposed;
anything multivariate is rejected before any computation starts.

PRINCIPLE: "Check before compute, not after failure"

Usage:
    from featurecalc.core.series import normalize_input

    x, y = normalize_input([1.0, 2.0, 4.0, 8.0])
    # x: Series (name='Input Timeseries', id=1, length=4)
    # y: z-scored values of x
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

import numpy as np

from featurecalc.core.exceptions import ShapeError
from featurecalc.core.normalization import compute_zscore

logger = logging.getLogger(__name__)

DEFAULT_SERIES_NAME = "Input Timeseries"
DEFAULT_SERIES_ID = 1


@dataclass(frozen=True)
class Series:
    """Univariate time series: 1D values plus identity metadata."""

    data: np.ndarray = field(repr=False)
    name: str = DEFAULT_SERIES_NAME
    id: int = DEFAULT_SERIES_ID

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", as_column(self.data, self.name))

    @property
    def length(self) -> int:
        return int(self.data.size)

    def __len__(self) -> int:
        return self.length


def as_column(data: Any, name: str = DEFAULT_SERIES_NAME) -> np.ndarray:
    """
    Coerce data to a 1D float64 column.

    Accepted shapes: (n,), (n, 1) and (1, n). A row is transposed with a
    warning.

    Raises:
        ShapeError: if the data is empty, scalar, multivariate, complex or non-numeric
    """
    if np.iscomplexobj(data):
        raise ShapeError(f"Time series '{name}' is complex, need real values")
    try:
        arr = np.asarray(data, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ShapeError(f"Time series '{name}' is not numeric: {e}") from e

    if arr.ndim == 2:
        n_rows, n_cols = arr.shape
        if n_cols != 1:
            if n_rows != 1:
                raise ShapeError(
                    f"Time series '{name}' has shape {arr.shape}: "
                    f"is it multivariate? Need a single column or row."
                )
            logger.warning(
                "Time series '%s' is a row vector of length %d, transposing to a column",
                name, n_cols,
            )
        arr = arr.reshape(-1)
    elif arr.ndim != 1:
        raise ShapeError(
            f"Time series '{name}' has {arr.ndim} dimensions, need a single column or row"
        )

    if arr.size == 0:
        raise ShapeError(f"Time series '{name}' is empty")

    return arr


def normalize_input(
    data: Any,
    name: Optional[str] = None,
    series_id: Optional[int] = None,
) -> Tuple[Series, np.ndarray]:
    """
    Validate the raw input and build the standardized series.

    Args:
        data: Series instance or array-like numeric data
        name: Series name when data is bare (default 'Input Timeseries')
        series_id: Series ID when data is bare (default 1)

    Returns:
        (x, y) where x is the validated Series and y is z-score(x.data)

    Raises:
        ShapeError: if the data cannot be read as a single column
    """
    if isinstance(data, Series):
        x = data
    else:
        x = Series(
            data=data,
            name=DEFAULT_SERIES_NAME if name is None else name,
            id=DEFAULT_SERIES_ID if series_id is None else series_id,
        )

    y = compute_zscore(x.data)
    return x, y
