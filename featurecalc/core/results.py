"""
Feature vector result: values, quality codes and calculation times, all
parallel to the operation list the run was given.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
import polars as pl

from featurecalc.core.catalog import Operation
from featurecalc.core.quality import QualityCode
from featurecalc.core.series import Series


@dataclass
class FeatureVectorResult:
    """Output of one feature vector calculation."""
    values: np.ndarray
    quality: np.ndarray
    calc_times: np.ndarray
    operations: List[Operation] = field(repr=False)
    series: Series = field(repr=False)

    def __post_init__(self):
        n = len(self.operations)
        for name in ("values", "quality", "calc_times"):
            if len(getattr(self, name)) != n:
                raise ValueError(
                    f"{name} has length {len(getattr(self, name))}, expected {n}"
                )

    def __len__(self) -> int:
        return len(self.operations)

    @property
    def n_ok(self) -> int:
        return int(np.sum(self.quality == QualityCode.OK))

    def quality_counts(self) -> Dict[QualityCode, int]:
        """Number of operations per quality code (codes with zero count omitted)."""
        return {QualityCode(code): count for code, count in sorted(Counter(self.quality.tolist()).items())}

    def to_frame(self) -> pl.DataFrame:
        """One row per operation."""
        return pl.DataFrame({
            'operation_id': [op.id for op in self.operations],
            'name': [op.name for op in self.operations],
            'master_id': [op.master_id for op in self.operations],
            'value': self.values.astype(np.float64),
            'quality': self.quality.astype(np.int8),
            'calc_time': self.calc_times.astype(np.float64),
        }, schema={
            'operation_id': pl.Int64,
            'name': pl.Utf8,
            'master_id': pl.Int64,
            'value': pl.Float64,
            'quality': pl.Int8,
            'calc_time': pl.Float64,
        })
