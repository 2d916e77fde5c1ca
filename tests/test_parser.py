"""
Tests for the plan loader.

Test philosophy:
- Test the happy path (valid plan documents load correctly)
- Test the accepted shapes (full document, bare batch list, single batch)
- Test error cases (invalid JSON, wrong structure, limits exceeded)
- Round-trip an annotated plan through dump_plan
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from plansense import analyze
from plansense.parser import (
    STRICT_CONFIG,
    LoaderConfig,
    ParsedPlan,
    ParseError,
    PlanWarningSeverity,
    dump_plan,
    load_plan,
)


# =============================================================================
# Fixtures
# =============================================================================

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    """Load a JSON fixture file."""
    path = FIXTURES_DIR / f"{name}.json"
    return json.loads(path.read_text())


def make_chain(depth: int) -> dict:
    """A raw plan document whose single operator chain is `depth` deep."""
    node: dict = {"NodeId": depth, "PhysicalOp": "Table Scan"}
    for node_id in range(depth - 1, 0, -1):
        node = {"NodeId": node_id, "PhysicalOp": "Compute Scalar", "Children": [node]}
    return {"Batches": [{"Statements": [{"RootNode": node}]}]}


@pytest.fixture
def spill_fixture() -> dict:
    """Serial plan with an oversized grant and a large hash spill."""
    return load_fixture("serial_plan_with_spill")


# =============================================================================
# Happy Path Tests
# =============================================================================

class TestLoadValidPlan:
    def test_load_from_dict(self, spill_fixture: dict) -> None:
        plan = load_plan(spill_fixture)

        assert isinstance(plan, ParsedPlan)
        statement = plan.statements[0]
        assert statement.non_parallel_plan_reason == "MaxDOPSetToOne"
        assert statement.memory_grant.granted_memory_kb == 20480
        assert statement.root_node.physical_op == "Hash Match"
        assert [c.node_id for c in statement.root_node.children] == [1, 2]

    def test_preattached_warnings_loaded(self, spill_fixture: dict) -> None:
        plan = load_plan(spill_fixture)

        warning = plan.statements[0].root_node.warnings[0]
        assert warning.is_spill
        assert warning.severity == PlanWarningSeverity.WARNING
        assert warning.spill_details.writes_to_temp_db == 1500
        assert warning.spill_details.spill_type == "Hash"

    def test_load_from_path(self) -> None:
        plan = load_plan(FIXTURES_DIR / "clean_seek.json")

        assert len(plan.all_nodes) == 1
        assert plan.all_warnings() == []

    def test_load_from_path_string(self) -> None:
        plan = load_plan(str(FIXTURES_DIR / "clean_seek.json"))
        assert plan.statements[0].root_node.physical_op == "Clustered Index Seek"

    def test_load_from_json_string(self, spill_fixture: dict) -> None:
        plan = load_plan(json.dumps(spill_fixture))
        assert len(plan.all_nodes) == 3

    def test_single_batch_shape(self) -> None:
        plan = load_plan(FIXTURES_DIR / "parallel_udf_batch.json")

        assert len(plan.batches) == 1
        assert len(plan.statements) == 2
        assert plan.statements[1].root_node is None

    def test_bare_batch_list_shape(self) -> None:
        plan = load_plan([{"Statements": [{"StatementText": "SELECT 1"}]}])
        assert plan.statements[0].statement_text == "SELECT 1"

    def test_snake_case_keys_accepted(self) -> None:
        plan = load_plan({"batches": [{"statements": [{"root_node": {"physical_op": "Filter"}}]}]})
        assert plan.statements[0].root_node.physical_op == "Filter"

    def test_utf8_bom_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bom.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps({"Batches": []}).encode())

        assert load_plan(path).batches == []

    def test_unknown_fields_ignored(self) -> None:
        plan = load_plan({"Batches": [{"Statements": [{"RootNode": {"PhysicalOp": "Sort", "EstimatedCPU": 0.1}}]}]})
        assert plan.statements[0].root_node.physical_op == "Sort"


class TestIterators:
    def test_all_nodes_pre_order(self, spill_fixture: dict) -> None:
        plan = load_plan(spill_fixture)
        assert [n.node_id for n in plan.all_nodes] == [0, 1, 2]

    def test_iter_nodes_deep_chain(self) -> None:
        plan = load_plan(make_chain(120))
        assert [n.node_id for n in plan.statements[0].root_node.iter_nodes()] == list(range(1, 121))


# =============================================================================
# Error Tests
# =============================================================================

class TestLoadErrors:
    def test_invalid_json(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            load_plan("{not valid json")

        assert exc_info.value.source == "json_decode"
        assert "Line 1" in exc_info.value.detail

    def test_scalar_json(self, tmp_path: Path) -> None:
        path = tmp_path / "number.json"
        path.write_text("42")

        with pytest.raises(ParseError) as exc_info:
            load_plan(path)

        assert exc_info.value.source == "json_decode"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParseError) as exc_info:
            load_plan(tmp_path / "missing.json")

        assert exc_info.value.source == "file_read"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.json"
        path.write_text("   \n")

        with pytest.raises(ParseError) as exc_info:
            load_plan(path)

        assert exc_info.value.source == "file_read"

    def test_wrong_structure(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            load_plan({"Plan": {"Node Type": "Seq Scan"}})

        assert exc_info.value.source == "structure"

    def test_validation_error_has_location(self) -> None:
        bad = {"Batches": [{"Statements": [{"RootNode": {"PhysicalOp": "Scan", "EstimateRows": "many"}}]}]}

        with pytest.raises(ParseError) as exc_info:
            load_plan(bad)

        assert exc_info.value.source == "validation"
        assert "EstimateRows" in exc_info.value.detail

    def test_negative_counter_rejected(self) -> None:
        bad = {"Statements": [{"MemoryGrant": {"GrantedMemoryKB": -1}}]}

        with pytest.raises(ParseError) as exc_info:
            load_plan(bad)

        assert exc_info.value.source == "validation"

    def test_unsupported_source_type(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            load_plan(42)  # type: ignore[arg-type]

        assert exc_info.value.source == "type_check"

    def test_str_includes_detail(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            load_plan("[1, 2")

        assert "Details:" in str(exc_info.value)


class TestResourceLimits:
    def test_depth_limit(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            load_plan(make_chain(101), config=STRICT_CONFIG)

        assert exc_info.value.source == "resource_limit"
        assert "deeply nested" in exc_info.value.message

    def test_depth_at_limit_loads(self) -> None:
        plan = load_plan(make_chain(100), config=STRICT_CONFIG)
        assert len(plan.all_nodes) == 100

    def test_node_limit(self) -> None:
        children = [{"NodeId": i, "PhysicalOp": "Constant Scan"} for i in range(1, 20)]
        doc = {"Statements": [{"RootNode": {"NodeId": 0, "PhysicalOp": "Concatenation", "Children": children}}]}

        with pytest.raises(ParseError) as exc_info:
            load_plan(doc, config=LoaderConfig(max_nodes=10))

        assert exc_info.value.source == "resource_limit"

    def test_file_size_limit(self, tmp_path: Path) -> None:
        path = tmp_path / "big.json"
        path.write_text(json.dumps({"Batches": [], "Padding": "x" * 20_000}))

        with pytest.raises(ParseError) as exc_info:
            load_plan(path, config=LoaderConfig(max_file_size_mb=0.01))

        assert exc_info.value.source == "resource_limit"


class TestDumpPlan:
    def test_annotated_plan_round_trips(self, spill_fixture: dict) -> None:
        plan = load_plan(spill_fixture)
        analyze(plan)

        reloaded = load_plan(dump_plan(plan))

        assert dump_plan(reloaded) == dump_plan(plan)
        spill = reloaded.statements[0].root_node.warnings[0]
        assert spill.severity == PlanWarningSeverity.CRITICAL

    def test_dump_uses_plan_field_names(self, spill_fixture: dict) -> None:
        data = json.loads(dump_plan(load_plan(spill_fixture)))

        statement = data["Batches"][0]["Statements"][0]
        assert statement["NonParallelPlanReason"] == "MaxDOPSetToOne"
        assert statement["RootNode"]["Warnings"][0]["SpillDetails"]["WritesToTempDb"] == 1500
