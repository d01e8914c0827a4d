"""
featurecalc: time-series feature vector calculation.

Public API:
    from featurecalc import calculate_feature_vector
    result = calculate_feature_vector(series)
    result.values, result.quality, result.calc_times

Two tiers of computation:
    master operations   expensive, evaluated once per series (featurecalc.core.masters)
    operations          one scalar read from a master's output

Also:
    featurecalc.core.catalog   YAML catalogs, linking, selection
    featurecalc.core.quality   output quality codes
    featurecalc.config         run configuration
"""

from featurecalc.config import CalculationConfig, load_config
from featurecalc.core import (
    CatalogCorruptError,
    FeatureCalcError,
    FeatureVectorResult,
    MasterOperation,
    Operation,
    QualityCode,
    Series,
    ShapeError,
)
from featurecalc.run import calculate_feature_vector, load_catalog

__version__ = "0.1.0"

__all__ = [
    "calculate_feature_vector",
    "load_catalog",
    "CalculationConfig",
    "load_config",
    "FeatureVectorResult",
    "MasterOperation",
    "Operation",
    "QualityCode",
    "Series",
    "FeatureCalcError",
    "ShapeError",
    "CatalogCorruptError",
]
