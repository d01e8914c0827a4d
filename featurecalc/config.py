"""
featurecalc Configuration
=========================

One CalculationConfig is built per run. Defaults:

    parallel                False    fan master evaluation out across workers
    n_jobs                  -1       joblib worker count (-1 = all cores)
    backend                 loky     joblib backend
    verbose                 True     narrate at INFO instead of DEBUG
    operations_path         None     operations YAML (None = default library)
    master_operations_path  None     master operations YAML (None = default library)

Usage:
    from featurecalc.config import load_config

    config = load_config('featurecalc.yaml')   # YAML with any of the keys above

Environment:
    FEATURECALC_WORKERS  overrides n_jobs (0 = all cores)
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from featurecalc.core.exceptions import ConfigError
from featurecalc.core.parallel import BACKENDS

WORKERS_ENV_VAR = "FEATURECALC_WORKERS"


@dataclass(frozen=True)
class CalculationConfig:
    """Settings for one feature vector calculation."""
    parallel: bool = False
    n_jobs: int = -1
    backend: str = "loky"
    verbose: bool = True
    operations_path: Optional[str] = None
    master_operations_path: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.n_jobs, int) or isinstance(self.n_jobs, bool) or self.n_jobs == 0:
            raise ConfigError(f"n_jobs must be a non-zero integer, got {self.n_jobs!r}")
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"Unknown backend '{self.backend}'. Available: {', '.join(BACKENDS)}"
            )

    def with_overrides(self, **overrides) -> "CalculationConfig":
        """Copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def config_from_dict(raw: Dict[str, Any]) -> CalculationConfig:
    """
    Build a config from a plain dict, rejecting unknown keys.

    Raises:
        ConfigError: on unknown keys or invalid values
    """
    known = {f.name for f in fields(CalculationConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    values = dict(raw)
    for key in ("parallel", "verbose"):
        if key in values and not isinstance(values[key], bool):
            raise ConfigError(f"{key} must be true or false, got {values[key]!r}")
    for key in ("operations_path", "master_operations_path"):
        if values.get(key) is not None:
            values[key] = str(values[key])

    return CalculationConfig(**values)


def apply_environment(config: CalculationConfig) -> CalculationConfig:
    """Apply FEATURECALC_WORKERS, if set."""
    env_workers = os.environ.get(WORKERS_ENV_VAR, "")
    if not env_workers:
        return config
    try:
        n_jobs = int(env_workers)
    except ValueError:
        raise ConfigError(f"{WORKERS_ENV_VAR} must be an integer, got {env_workers!r}")
    return replace(config, n_jobs=n_jobs or -1)


def load_config(path: Optional[str] = None) -> CalculationConfig:
    """
    Load configuration from YAML, falling back to defaults.

    Args:
        path: YAML file path. None returns the defaults.

    Returns:
        CalculationConfig with environment overrides applied
    """
    if path is None:
        return apply_environment(CalculationConfig())

    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_file}")

    with open(config_file) as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {config_file}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_file}: expected a mapping of config keys")

    return apply_environment(config_from_dict(raw))
