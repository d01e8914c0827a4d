"""
Feature calculation errors.

Two conditions stop a run outright:
    ShapeError           the input series is not a single column or row
    CatalogCorruptError  an operation cannot be linked to a master operation

Everything else is contained and shows up as a quality code:
    MasterEvaluationFailure  one master callable raised
    ExtractionError          one operation could not read its value
    FieldMissingError        ...because the named field is absent
"""


class FeatureCalcError(Exception):
    """Base error for featurecalc."""


class ShapeError(FeatureCalcError, ValueError):
    """Raised when the input series is multivariate, empty or non-numeric."""


class CatalogCorruptError(FeatureCalcError):
    """Raised when the operation/master catalog is structurally invalid."""


class ConfigError(FeatureCalcError, ValueError):
    """Raised when a configuration file or value is invalid."""


class MasterEvaluationFailure(FeatureCalcError):
    """
    Failure marker for a single master operation.

    Stored on the MasterResult rather than raised. Arguments are kept in
    ``args`` so the instance survives pickling between worker processes.
    """

    def __init__(self, master_id: int, label: str, reason: str):
        super().__init__(master_id, label, reason)
        self.master_id = master_id
        self.label = label
        self.reason = reason

    def __str__(self) -> str:
        return f"Master operation {self.master_id} ({self.label}) failed: {self.reason}"


class ExtractionError(FeatureCalcError):
    """Raised when an operation's value cannot be read from its master output."""


class FieldMissingError(ExtractionError, KeyError):
    """Raised when an operation names a field its master did not return."""

    def __init__(self, field: str, label: str, available=()):
        super().__init__(field, label, tuple(available))
        self.field = field
        self.label = label
        self.available = tuple(available)

    def __str__(self) -> str:
        available = ", ".join(self.available) or "none"
        return f"'{self.field}' not in output of '{self.label}' (available: {available})"
