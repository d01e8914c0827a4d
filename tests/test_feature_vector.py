"""
End-to-end tests for calculate_feature_vector.

Synthetic masters live at module level; parallel runs use the threading
backend so they behave the same on every platform.
"""

import math
import time

import numpy as np
import pytest

from featurecalc import calculate_feature_vector
from featurecalc.config import CalculationConfig
from featurecalc.core.catalog import MasterOperation, Operation, reset_default_catalog
from featurecalc.core.exceptions import CatalogCorruptError, ShapeError
from featurecalc.core.quality import QualityCode
from featurecalc.core.series import Series

SERIAL = CalculationConfig(verbose=False)
PARALLEL = CalculationConfig(parallel=True, n_jobs=2, backend="threading", verbose=False)
SLEEP_SECONDS = 0.02


def _pair(x, y):
    return {"a": 1.0, "b": float("nan")}


def _slow_pair(x, y):
    time.sleep(SLEEP_SECONDS)
    return _pair(x, y)


def _huge(x, y):
    return {"huge": 10 ** 400, "ok": 1.0}


def _moments(x, y):
    return {"mean": float(np.mean(x)), "max_z": float(np.max(y)), "inf": float("inf")}


def _always_fails(x, y):
    raise RuntimeError("master exploded")


def _sum(x, y):
    return float(np.sum(x))


def _complex(x, y):
    return 1 + 2j


def make_series(n=64, seed=42):
    rng = np.random.default_rng(seed)
    return np.cumsum(rng.normal(size=n))


def make_library():
    masters = [
        MasterOperation(id=1, label="pair", func=_pair, outputs=("a", "b")),
        MasterOperation(id=2, label="moments", func=_moments),
        MasterOperation(id=3, label="fails", func=_always_fails),
        MasterOperation(id=4, label="sum", func=_sum),
        MasterOperation(id=5, label="complex", func=_complex),
    ]
    operations = [
        Operation(id=1, master_id=1, field="a"),
        Operation(id=2, master_id=1, field="b"),
        Operation(id=3, master_id=2, field="mean"),
        Operation(id=4, master_id=3, field="x"),
        Operation(id=5, master_id=2, field="max_z"),
        Operation(id=6, master_id=3, field="y"),
        Operation(id=7, master_id=4),
        Operation(id=8, master_id=2, field="inf"),
        Operation(id=9, master_id=3, field="z"),
        Operation(id=10, master_id=5),
        Operation(id=11, master_id=2, field="absent"),
    ]
    return operations, masters


class TestSpecExamples:

    def test_pair_with_nan(self):
        """Master returning {a: 1.0, b: NaN} with operations on a and b."""
        masters = [MasterOperation(id=1, label="pair", func=_pair)]
        ops = [Operation(id=1, master_id=1, field="a"), Operation(id=2, master_id=1, field="b")]

        result = calculate_feature_vector(make_series(), ops, masters, SERIAL)

        np.testing.assert_array_equal(result.values, [1.0, 0.0])
        assert result.quality.tolist() == [QualityCode.OK, QualityCode.NAN_OUTPUT]

    def test_pair_times_are_master_elapsed(self):
        """Both operations of the pair report the master's own elapsed time."""
        masters = [MasterOperation(id=1, label="pair", func=_slow_pair)]
        ops = [Operation(id=1, master_id=1, field="a"), Operation(id=2, master_id=1, field="b")]

        result = calculate_feature_vector(make_series(), ops, masters, SERIAL)

        assert result.calc_times[0] == result.calc_times[1]
        assert result.calc_times[0] >= SLEEP_SECONDS
        assert np.isfinite(result.calc_times[0])

    def test_unconvertible_number_isolated(self):
        masters = [MasterOperation(id=1, label="huge", func=_huge)]
        ops = [Operation(id=1, master_id=1, field="huge"), Operation(id=2, master_id=1, field="ok")]

        result = calculate_feature_vector(make_series(), ops, masters, SERIAL)

        assert result.quality.tolist() == [QualityCode.FATAL_ERROR, QualityCode.OK]
        np.testing.assert_array_equal(result.values, [0.0, 1.0])
        assert math.isnan(result.calc_times[0])

    def test_failing_master_isolated(self):
        masters = [
            MasterOperation(id=1, label="fails", func=_always_fails),
            MasterOperation(id=2, label="sum", func=_sum),
        ]
        ops = [
            Operation(id=1, master_id=1, field="a"),
            Operation(id=2, master_id=1, field="b"),
            Operation(id=3, master_id=1, field="c"),
            Operation(id=4, master_id=2),
        ]
        x = make_series()

        result = calculate_feature_vector(x, ops, masters, SERIAL)

        assert result.quality.tolist()[:3] == [QualityCode.FATAL_ERROR] * 3
        np.testing.assert_array_equal(result.values[:3], 0.0)
        np.testing.assert_array_equal(result.calc_times[:3], 0.0)
        assert result.quality[3] == QualityCode.OK
        assert result.values[3] == pytest.approx(np.sum(x))

    def test_missing_field_is_fatal(self):
        ops, masters = make_library()
        result = calculate_feature_vector(make_series(), ops, masters, SERIAL)

        assert result.quality[10] == QualityCode.FATAL_ERROR
        assert result.values[10] == 0.0
        assert math.isnan(result.calc_times[10])

    def test_unlinked_operation_stops_run(self):
        masters = [MasterOperation(id=1, label="pair", func=_pair)]
        ops = [Operation(id=1, master_id=1, field="a"), Operation(id=2, field="b")]
        with pytest.raises(CatalogCorruptError):
            calculate_feature_vector(make_series(), ops, masters, SERIAL)

    def test_multivariate_input_rejected(self):
        ops, masters = make_library()
        with pytest.raises(ShapeError):
            calculate_feature_vector(np.ones((2, 3)), ops, masters, SERIAL)


class TestProperties:

    @pytest.mark.parametrize("config", [SERIAL, PARALLEL], ids=["serial", "parallel"])
    def test_lengths_match_operations(self, config):
        ops, masters = make_library()
        result = calculate_feature_vector(make_series(), ops, masters, config)

        assert len(result) == len(ops)
        assert len(result.values) == len(result.quality) == len(result.calc_times) == len(ops)
        assert result.operations == ops

    def test_values_always_finite(self):
        ops, masters = make_library()
        result = calculate_feature_vector(make_series(), ops, masters, SERIAL)
        assert np.all(np.isfinite(result.values))
        np.testing.assert_array_equal(result.values[result.quality != QualityCode.OK], 0.0)

    def test_every_code_reached(self):
        ops, masters = make_library()
        result = calculate_feature_vector(make_series(), ops, masters, SERIAL)

        assert result.quality.tolist() == [
            QualityCode.OK,
            QualityCode.NAN_OUTPUT,
            QualityCode.OK,
            QualityCode.FATAL_ERROR,
            QualityCode.OK,
            QualityCode.FATAL_ERROR,
            QualityCode.OK,
            QualityCode.POS_INF_OUTPUT,
            QualityCode.FATAL_ERROR,
            QualityCode.COMPLEX_OUTPUT,
            QualityCode.FATAL_ERROR,
        ]

    def test_siblings_share_master_time(self):
        ops, masters = make_library()
        result = calculate_feature_vector(make_series(), ops, masters, SERIAL)

        moments = [i for i, op in enumerate(ops) if op.master_id == 2 and op.field != "absent"]
        times = result.calc_times[moments]
        assert np.all(times == times[0])
        assert times[0] > 0.0
        assert np.isfinite(times[0])

    def test_idempotent(self):
        ops, masters = make_library()
        x = make_series()
        first = calculate_feature_vector(x, ops, masters, SERIAL)
        second = calculate_feature_vector(x, ops, masters, SERIAL)

        np.testing.assert_array_equal(first.values, second.values)
        np.testing.assert_array_equal(first.quality, second.quality)

    def test_serial_parallel_equivalence(self):
        ops, masters = make_library()
        x = make_series()
        serial = calculate_feature_vector(x, ops, masters, SERIAL)
        parallel = calculate_feature_vector(x, ops, masters, PARALLEL)

        np.testing.assert_array_equal(serial.values, parallel.values)
        np.testing.assert_array_equal(serial.quality, parallel.quality)

    def test_row_input_equals_column_input(self):
        ops, masters = make_library()
        x = make_series()
        column = calculate_feature_vector(x.reshape(-1, 1), ops, masters, SERIAL)
        row = calculate_feature_vector(x.reshape(1, -1), ops, masters, SERIAL)

        np.testing.assert_array_equal(column.values, row.values)
        np.testing.assert_array_equal(column.quality, row.quality)

    def test_keyword_overrides(self, caplog):
        ops, masters = make_library()
        config = CalculationConfig(backend="threading", verbose=False)
        with caplog.at_level("INFO", logger="featurecalc.run"):
            result = calculate_feature_vector(
                make_series(), ops, masters, config,
                parallel=True, n_jobs=2, verbose=True,
            )
        assert len(result) == len(ops)
        assert "master operations" in caplog.text


class TestSeriesHandling:

    def test_series_identity_kept(self):
        ops, masters = make_library()
        series = Series(make_series(), name="sensor_7", id=7)
        result = calculate_feature_vector(series, ops, masters, SERIAL)

        assert result.series is series
        assert result.series.name == "sensor_7"

    def test_default_identity(self):
        ops, masters = make_library()
        result = calculate_feature_vector(make_series(32), ops, masters, SERIAL)

        assert result.series.name == "Input Timeseries"
        assert result.series.id == 1
        assert result.series.length == 32


class TestDefaultLibrary:

    def setup_method(self):
        reset_default_catalog()

    @pytest.mark.parametrize("config", [SERIAL, PARALLEL], ids=["serial", "parallel"])
    def test_random_walk_mostly_ok(self, config):
        result = calculate_feature_vector(make_series(256), config=config)

        assert len(result) > 0
        assert QualityCode.FATAL_ERROR not in result.quality_counts()
        assert result.n_ok >= len(result) - 2

    def test_constant_series_propagates_nan(self):
        result = calculate_feature_vector(np.full(64, 3.0), config=SERIAL)
        by_name = dict(zip((op.name for op in result.operations), result.quality.tolist()))

        assert by_name["statistics.mean"] == QualityCode.OK
        assert by_name["autocorrelation.ac_1"] == QualityCode.NAN_OUTPUT
        assert by_name["entropy.permutation_entropy"] == QualityCode.NAN_OUTPUT
        assert by_name["spectral.dominant_freq"] == QualityCode.NAN_OUTPUT
        assert np.all(np.isfinite(result.values))

    def test_short_series_fails_softly(self):
        result = calculate_feature_vector(np.array([1.0, 2.0, 4.0]), config=SERIAL)
        by_name = dict(zip((op.name for op in result.operations), result.quality.tolist()))

        assert by_name["statistics.mean"] == QualityCode.FATAL_ERROR
        assert by_name["rms"] == QualityCode.OK
        assert by_name["trend.trend_slope"] == QualityCode.OK

    def test_frame_matches_result(self):
        result = calculate_feature_vector(make_series(128), config=SERIAL)
        frame = result.to_frame()

        assert frame.height == len(result)
        assert frame.columns == ["operation_id", "name", "master_id", "value", "quality", "calc_time"]
        assert frame["quality"].to_list() == result.quality.tolist()
