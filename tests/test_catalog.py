"""
Tests for catalog loading, linking and selection.
"""

import textwrap

import pytest

from featurecalc.core.catalog import (
    UNLINKED_MASTER_ID,
    MasterOperation,
    Operation,
    default_catalog,
    link_operations,
    load_master_operations,
    load_operations,
    parse_code_string,
    reset_default_catalog,
    resolve_code,
    select_operations,
)
from featurecalc.core.exceptions import CatalogCorruptError
from featurecalc.core.masters import statistics


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(textwrap.dedent(text))
    return path


def _master(master_id, label, outputs=()):
    return MasterOperation(id=master_id, label=label, func=lambda x, y: {}, outputs=outputs)


class TestRecords:

    def test_operation_name_defaults_to_code_string(self):
        op = Operation(id=1, field="kurtosis", master_label="statistics")
        assert op.code_string == "statistics.kurtosis"
        assert op.name == "statistics.kurtosis"

    def test_direct_output_code_string(self):
        op = Operation(id=2, master_label="rms")
        assert op.code_string == "rms"
        assert op.field == ""

    def test_unlinked_by_default(self):
        op = Operation(id=3, field="a")
        assert op.master_id == UNLINKED_MASTER_ID
        assert not op.is_linked

    def test_master_requires_callable(self):
        with pytest.raises(CatalogCorruptError):
            MasterOperation(id=1, label="broken", func=None)

    def test_master_is_callable(self):
        master = MasterOperation(id=1, label="sum", func=lambda x, y: x + y)
        assert master(2, 3) == 5

    def test_parse_code_string(self):
        assert parse_code_string("statistics.kurtosis") == ("statistics", "kurtosis")
        assert parse_code_string("rms") == ("rms", "")


class TestResolveCode:

    def test_resolves_function(self):
        assert resolve_code("featurecalc.core.masters.statistics:compute") is statistics.compute

    def test_missing_attribute(self):
        with pytest.raises(CatalogCorruptError):
            resolve_code("featurecalc.core.masters.statistics:does_not_exist")

    def test_missing_module(self):
        with pytest.raises(CatalogCorruptError):
            resolve_code("featurecalc.no_such_module:compute")

    def test_bad_format(self):
        with pytest.raises(CatalogCorruptError):
            resolve_code("featurecalc.core.masters.statistics.compute")


class TestLoading:

    def test_load_masters(self, tmp_path):
        path = _write(tmp_path, "mops.yaml", """
            master_operations:
              - id: 10
                label: stats
                code: featurecalc.core.masters.statistics:compute
                outputs: [mean, std]
              - id: 11
                label: rms
                code: featurecalc.core.masters.statistics:compute_rms
        """)
        masters = load_master_operations(path)

        assert [m.id for m in masters] == [10, 11]
        assert masters[0].outputs == ("mean", "std")
        assert masters[0].func is statistics.compute
        assert masters[1].outputs == ()

    def test_reserved_master_id_rejected(self, tmp_path):
        path = _write(tmp_path, "mops.yaml", """
            master_operations:
              - id: 0
                label: stats
                code: featurecalc.core.masters.statistics:compute
        """)
        with pytest.raises(CatalogCorruptError):
            load_master_operations(path)

    def test_duplicate_master_id_rejected(self, tmp_path):
        path = _write(tmp_path, "mops.yaml", """
            master_operations:
              - {id: 1, label: a, code: "featurecalc.core.masters.statistics:compute"}
              - {id: 1, label: b, code: "featurecalc.core.masters.statistics:compute_rms"}
        """)
        with pytest.raises(CatalogCorruptError):
            load_master_operations(path)

    def test_missing_key_rejected(self, tmp_path):
        path = _write(tmp_path, "mops.yaml", """
            master_operations:
              - id: 1
                label: a
        """)
        with pytest.raises(CatalogCorruptError, match="code"):
            load_master_operations(path)

    def test_missing_list_rejected(self, tmp_path):
        path = _write(tmp_path, "mops.yaml", "something_else: []\n")
        with pytest.raises(CatalogCorruptError):
            load_master_operations(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_operations(tmp_path / "nope.yaml")

    def test_load_operations(self, tmp_path):
        path = _write(tmp_path, "ops.yaml", """
            operations:
              - id: 1
                code_string: stats.mean
                keywords: [location]
              - id: 2
                code_string: rms
                name: root_mean_square
        """)
        ops = load_operations(path)

        assert [op.id for op in ops] == [1, 2]
        assert ops[0].master_label == "stats"
        assert ops[0].field == "mean"
        assert ops[0].keywords == ("location",)
        assert ops[1].field == ""
        assert ops[1].name == "root_mean_square"
        assert all(not op.is_linked for op in ops)

    def test_duplicate_operation_id_rejected(self, tmp_path):
        path = _write(tmp_path, "ops.yaml", """
            operations:
              - {id: 1, code_string: a.x}
              - {id: 1, code_string: a.y}
        """)
        with pytest.raises(CatalogCorruptError):
            load_operations(path)


class TestLinking:

    def test_links_by_label(self):
        masters = [_master(5, "a"), _master(9, "b")]
        ops = [
            Operation(id=1, field="x", master_label="b"),
            Operation(id=2, field="y", master_label="a"),
        ]
        linked = link_operations(ops, masters)
        assert [op.master_id for op in linked] == [9, 5]

    def test_unknown_label_left_unlinked(self, caplog):
        ops = [Operation(id=1, field="x", master_label="missing")]
        with caplog.at_level("WARNING", logger="featurecalc.core.catalog"):
            linked = link_operations(ops, [_master(1, "a")])
        assert linked[0].master_id == UNLINKED_MASTER_ID
        assert "missing" in caplog.text

    def test_undeclared_field_rejected(self):
        masters = [_master(1, "a", outputs=("x",))]
        ops = [Operation(id=1, field="z", master_label="a")]
        with pytest.raises(CatalogCorruptError):
            link_operations(ops, masters)

    def test_duplicate_label_rejected(self):
        with pytest.raises(CatalogCorruptError):
            link_operations([], [_master(1, "a"), _master(2, "a")])

    def test_operations_without_label_pass_through(self):
        op = Operation(id=1, master_id=4, field="x")
        assert link_operations([op], [_master(1, "a")]) == [op]


class TestSelection:

    def setup_method(self):
        self.ops = [
            Operation(id=1, master_id=1, field="a", keywords=("entropy",)),
            Operation(id=2, master_id=1, field="b", keywords=("spectral",)),
            Operation(id=3, master_id=1, field="c", keywords=("entropy", "spectral")),
        ]

    def test_by_keyword(self):
        assert [op.id for op in select_operations(self.ops, keywords=["entropy"])] == [1, 3]

    def test_by_id_preserves_order(self):
        assert [op.id for op in select_operations(self.ops, ids=[3, 1])] == [1, 3]

    def test_no_filter_returns_all(self):
        assert select_operations(self.ops) == self.ops


class TestDefaultCatalog:

    def setup_method(self):
        reset_default_catalog()

    def test_all_operations_linked(self):
        ops, masters = default_catalog()
        master_ids = {m.id for m in masters}
        assert ops
        assert all(op.master_id in master_ids for op in ops)

    def test_returns_fresh_lists(self):
        ops, _ = default_catalog()
        ops.clear()
        again, _ = default_catalog()
        assert again

    def test_direct_output_operation_present(self):
        ops, masters = default_catalog()
        rms = [op for op in ops if op.code_string == "rms"]
        assert len(rms) == 1
        assert rms[0].field == ""
