"""
featurecalc Sequencer
=====================

Computes the feature vector of one time series. Pure orchestration, no
numerics here.

    series ──► normalize_input ──► (x, y)
                                     │
    operations, masters ──► resolve_dependencies ──► plan
                                     │
    Phase 1: evaluate_master  × plan.masters      (fan-out, join)
    Phase 2: evaluate_operation × operations      (fan-out, join)
                                     │
                      classify_outputs ──► FeatureVectorResult

Only ShapeError and CatalogCorruptError abort a run. Everything else
ends up as a quality code in a fully populated result.

Usage:
    python -m featurecalc compute series.txt
    python -m featurecalc compute series.csv --parallel -j 4
    python -m featurecalc compute series.txt --keyword entropy --keyword spectral
    python -m featurecalc catalog
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import polars as pl

from featurecalc.config import CalculationConfig, load_config
from featurecalc.core.catalog import (
    MasterOperation,
    Operation,
    default_catalog,
    link_operations,
    load_master_operations,
    load_operations,
    select_operations,
)
from featurecalc.core.exceptions import FeatureCalcError
from featurecalc.core.master import evaluate_master
from featurecalc.core.operation import evaluate_operation_batch
from featurecalc.core.parallel import chunked, fan_out, n_workers, parallel_available
from featurecalc.core.quality import classify_outputs
from featurecalc.core.resolver import resolve_dependencies
from featurecalc.core.results import FeatureVectorResult
from featurecalc.core.series import Series, normalize_input

logger = logging.getLogger(__name__)

OperationsArg = Union[None, str, Path, Sequence[Operation]]
MastersArg = Union[None, str, Path, Sequence[MasterOperation]]


def load_catalog(
    operations: OperationsArg = None,
    master_operations: MastersArg = None,
    config: Optional[CalculationConfig] = None,
) -> Tuple[List[Operation], List[MasterOperation]]:
    """
    Resolve the operation and master libraries for a run.

    Arguments may be objects, YAML paths, or None (config path, else the
    default library). Operations are linked by label whenever either side
    comes from a file; objects passed for both are taken as already linked.
    """
    config = config or CalculationConfig()

    if master_operations is None:
        master_operations = config.master_operations_path
    if operations is None:
        operations = config.operations_path

    if operations is None and master_operations is None:
        return default_catalog()

    link = False
    if master_operations is None:
        _, master_operations = default_catalog()
        link = True
    elif isinstance(master_operations, (str, Path)):
        master_operations = load_master_operations(master_operations)
        link = True

    if operations is None or isinstance(operations, (str, Path)):
        operations = load_operations(operations)
        link = True

    operations = list(operations)
    master_operations = list(master_operations)
    if link:
        operations = link_operations(operations, master_operations)

    return operations, master_operations


def calculate_feature_vector(
    series,
    operations: OperationsArg = None,
    master_operations: MastersArg = None,
    config: Optional[CalculationConfig] = None,
    *,
    parallel: Optional[bool] = None,
    verbose: Optional[bool] = None,
    n_jobs: Optional[int] = None,
) -> FeatureVectorResult:
    """
    Compute the feature vector of a single time series.

    Args:
        series: Series instance or numeric column/row data
        operations: Operations (objects or YAML path); None = default library
        master_operations: Master operations (objects or YAML path);
            None = default library
        config: Run configuration (default: load_config())
        parallel: Override config.parallel
        verbose: Override config.verbose
        n_jobs: Override config.n_jobs

    Returns:
        FeatureVectorResult with values, quality codes and calc times,
        parallel to the operation list

    Raises:
        ShapeError: the series is not a single column or row
        CatalogCorruptError: an operation cannot be linked to a master
    """
    if config is None:
        config = load_config()
    config = config.with_overrides(parallel=parallel, verbose=verbose, n_jobs=n_jobs)
    narrate = logging.INFO if config.verbose else logging.DEBUG

    x, y = normalize_input(series)
    operations, masters = load_catalog(operations, master_operations, config)
    plan = resolve_dependencies(operations, masters)

    use_parallel = config.parallel and parallel_available(config.n_jobs, config.backend)
    if use_parallel:
        logger.log(narrate, "Computation will be performed across %d workers (%s)",
                   n_workers(config.n_jobs), config.backend)
    else:
        logger.log(narrate, "Computation will be performed serially")

    # Phase 1: each needed master exactly once
    logger.log(narrate, "Evaluating %d master operations for '%s' (%d samples)...",
               plan.n_masters, x.name, x.length)
    phase_start = time.perf_counter()
    master_results = fan_out(
        evaluate_master,
        [(master, x.data, y, config.verbose) for master in plan.masters],
        parallel=use_parallel,
        n_jobs=config.n_jobs,
        backend=config.backend,
    )
    n_failed = sum(1 for result in master_results if not result.ok)
    logger.log(narrate, "%d master operations evaluated in %.3fs (%d failed)",
               plan.n_masters, time.perf_counter() - phase_start, n_failed)

    # Phase 2: read every operation from the completed master results
    pairs = [(op, master_results[i]) for op, i in zip(operations, plan.master_index)]
    n_chunks = n_workers(config.n_jobs) if use_parallel else 1
    batches = fan_out(
        evaluate_operation_batch,
        [(chunk,) for chunk in chunked(pairs, n_chunks)],
        parallel=use_parallel,
        n_jobs=config.n_jobs,
        backend=config.backend,
    )
    outputs = [output for batch in batches for output in batch]

    raw = np.array([output.raw for output in outputs], dtype=np.complex128)
    fatal = np.array([output.fatal for output in outputs], dtype=bool)
    calc_times = np.array([output.elapsed for output in outputs], dtype=np.float64)
    values, quality = classify_outputs(raw, fatal)

    result = FeatureVectorResult(
        values=values,
        quality=quality,
        calc_times=calc_times,
        operations=list(operations),
        series=x,
    )
    logger.log(narrate, "%d/%d operations returned good values", result.n_ok, len(result))
    return result


# ═══════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════

def _read_series(path: Path) -> np.ndarray:
    """Read a numeric text file (whitespace or comma separated)."""
    delimiter = ',' if path.suffix.lower() == '.csv' else None
    return np.loadtxt(path, delimiter=delimiter, ndmin=1)


def _cmd_compute(args) -> int:
    config = load_config(args.config).with_overrides(
        parallel=True if args.parallel else None,
        n_jobs=args.jobs,
        verbose=False if args.quiet else None,
        operations_path=args.operations,
        master_operations_path=args.masters,
    )

    series_path = Path(args.series)
    if not series_path.exists():
        raise FileNotFoundError(f"Series file not found: {series_path}")

    operations, masters = load_catalog(config=config)
    if args.keyword:
        operations = select_operations(operations, keywords=args.keyword)

    result = calculate_feature_vector(
        Series(_read_series(series_path), name=series_path.stem),
        operations,
        masters,
        config,
    )

    with pl.Config(tbl_rows=len(result), fmt_str_lengths=60):
        print(result.to_frame())

    print()
    for code, count in result.quality_counts().items():
        print(f"  {code.name:<16} {count}")
    print(f"  {'TOTAL':<16} {len(result)}")
    return 0


def _cmd_catalog(args) -> int:
    config = load_config(args.config).with_overrides(
        operations_path=args.operations,
        master_operations_path=args.masters,
    )
    operations, masters = load_catalog(config=config)
    labels = {master.id: master.label for master in masters}

    for master in masters:
        print(f"[{master.id:>4}] {master.label}  ({master.code or master.func.__name__})")
    print()
    for op in operations:
        master = labels.get(op.master_id, '<unlinked>')
        keywords = ', '.join(op.keywords)
        print(f"[{op.id:>4}] {op.name:<40} {master:<20} {keywords}")
    print(f"\n{len(operations)} operations, {len(masters)} master operations")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='featurecalc',
        description="Time-series feature vector calculation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Quality codes:
  0 OK  1 FATAL_ERROR  2 NAN_OUTPUT  3 POS_INF_OUTPUT  4 NEG_INF_OUTPUT  5 COMPLEX_OUTPUT

Usage:
  featurecalc compute series.txt
  featurecalc compute series.csv --parallel -j 4 --keyword entropy
  featurecalc catalog --operations my_ops.yaml --masters my_mops.yaml
"""
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', help='YAML config file')
    common.add_argument('--operations', help='Operations YAML (default: packaged library)')
    common.add_argument('--masters', help='Master operations YAML (default: packaged library)')
    common.add_argument('-q', '--quiet', action='store_true', help='Only warnings and results')

    sub = parser.add_subparsers(dest='command', required=True)

    compute = sub.add_parser('compute', parents=[common], help='Compute the feature vector of a series file')
    compute.add_argument('series', help='Numeric text/CSV file, one column or one row')
    compute.add_argument('--parallel', action='store_true', help='Evaluate across workers')
    compute.add_argument('-j', '--jobs', type=int, help='Worker count (-1 = all cores)')
    compute.add_argument('-k', '--keyword', action='append',
                         help='Only operations with this keyword (repeatable)')
    compute.set_defaults(func=_cmd_compute)

    catalog = sub.add_parser('catalog', parents=[common], help='List the linked operation library')
    catalog.set_defaults(func=_cmd_catalog)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    try:
        return args.func(args)
    except (FeatureCalcError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
