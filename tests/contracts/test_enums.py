"""Tests for contract enums."""

import pytest


class TestPipelineStatus:
    """PipelineStatus discriminator values."""

    def test_values_match_ui_labels(self) -> None:
        from flowbench.contracts import PipelineStatus

        assert [s.value for s in PipelineStatus] == ["idle", "running", "completed", "error", "stopped"]

    def test_only_running_is_not_resting(self) -> None:
        from flowbench.contracts import PipelineStatus

        assert not PipelineStatus.RUNNING.is_resting
        for status in PipelineStatus:
            if status is not PipelineStatus.RUNNING:
                assert status.is_resting


class TestRunType:
    def test_dry_run_value(self) -> None:
        from flowbench.contracts import RunType

        assert RunType.DRY_RUN.value == "dryRun"
        assert RunType("run") is RunType.RUN


class TestTableKind:
    """Table kinds map to graph node types."""

    @pytest.mark.parametrize(
        ("kind_value", "node_type"),
        [
            ("Streaming table", "streaming"),
            ("Materialized view", "materialized"),
            ("Persisted view", "persisted"),
            ("View", "view"),
        ],
    )
    def test_node_type(self, kind_value: str, node_type: str) -> None:
        from flowbench.contracts import TableKind

        assert TableKind(kind_value).node_type == node_type


class TestNodeStatus:
    def test_from_table_status(self) -> None:
        from flowbench.contracts import NodeStatus, TableStatus

        for status in TableStatus:
            assert NodeStatus.from_table_status(status).value == status.value

    def test_placeholder_has_no_table_status(self) -> None:
        from flowbench.contracts import NodeStatus, TableStatus

        assert "placeholder" not in {s.value for s in TableStatus}
        assert NodeStatus.PLACEHOLDER.value == "placeholder"


class TestSourceLanguage:
    """Language detection from file names and labels."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("orders.py", "python"),
            ("transformations/orders.PY", "python"),
            ("orders.sql", "sql"),
            ("README.md", "other"),
            ("Makefile", "other"),
        ],
    )
    def test_from_filename(self, name: str, expected: str) -> None:
        from flowbench.contracts import SourceLanguage

        assert SourceLanguage.from_filename(name).value == expected

    def test_from_label_is_case_insensitive(self) -> None:
        from flowbench.contracts import SourceLanguage

        assert SourceLanguage.from_label("SQL") is SourceLanguage.SQL
        assert SourceLanguage.from_label(" python ") is SourceLanguage.PYTHON

    def test_unknown_label_is_other(self) -> None:
        from flowbench.contracts import SourceLanguage

        assert SourceLanguage.from_label("scala") is SourceLanguage.OTHER
        assert not SourceLanguage.OTHER.is_parseable
        assert SourceLanguage.SQL.is_parseable
