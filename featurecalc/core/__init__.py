"""
Core feature calculation engine (no file output, no CLI).

    series         input validation and z-scoring
    catalog        master operations, operations, YAML loading, linking
    resolver       which masters a run needs
    master         master evaluation with failure capture
    operation      per-operation value extraction
    quality        output quality codes
    parallel       serial / joblib fan-out
    results        FeatureVectorResult
    masters        default master library
"""

from .catalog import (
    MasterOperation,
    Operation,
    default_catalog,
    link_operations,
    load_master_operations,
    load_operations,
    select_operations,
)
from .exceptions import (
    CatalogCorruptError,
    ConfigError,
    ExtractionError,
    FeatureCalcError,
    FieldMissingError,
    MasterEvaluationFailure,
    ShapeError,
)
from .master import MasterResult, evaluate_master
from .operation import OperationOutput, evaluate_operation
from .quality import QualityCode, classify, classify_outputs
from .resolver import ExecutionPlan, resolve_dependencies
from .results import FeatureVectorResult
from .series import Series, normalize_input

__all__ = [
    # catalog
    'MasterOperation',
    'Operation',
    'default_catalog',
    'link_operations',
    'load_master_operations',
    'load_operations',
    'select_operations',

    # errors
    'CatalogCorruptError',
    'ConfigError',
    'ExtractionError',
    'FeatureCalcError',
    'FieldMissingError',
    'MasterEvaluationFailure',
    'ShapeError',

    # evaluation
    'MasterResult',
    'evaluate_master',
    'OperationOutput',
    'evaluate_operation',
    'ExecutionPlan',
    'resolve_dependencies',

    # output
    'QualityCode',
    'classify',
    'classify_outputs',
    'FeatureVectorResult',

    # input
    'Series',
    'normalize_input',
]
