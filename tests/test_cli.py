"""Tests for the Typer command line interface."""

import json

import pytest
from typer.testing import CliRunner

from registration_desk.cli import app

runner = CliRunner()


@pytest.fixture
def duckdb_env(tmp_path, monkeypatch, restore_root_logger):
    """Point the CLI at a DuckDB file under tmp_path."""
    monkeypatch.setenv("RD_DB_TYPE", "duckdb")
    monkeypatch.setenv("RD_DB_PATH", str(tmp_path / "registrations.duckdb"))
    monkeypatch.setenv("RD_LOG_LEVEL", "WARNING")
    return tmp_path


@pytest.fixture
def visit_file(tmp_path):
    path = tmp_path / "visit.json"
    path.write_text(json.dumps({
        "patient_id": "P001",
        "visit_date": "2025-01-15",
        "department": "736",
        "insurers": [{"company": "628", "copay_percent": 20}],
        "demographics": {"region": "39", "district": "0508", "city": "Kutaisi"},
    }))
    return path


class TestOptionCommands:
    """Test suite for the catalog browsing commands."""

    def test_options_for_ambulatory(self, restore_root_logger):
        """Test ambulatory options list only ambulatory departments."""
        result = runner.invoke(app, ["options", "3"])

        assert result.exit_code == 0
        assert "Ambulatory oncology" in result.output
        assert "Cardiac surgery" not in result.output
        assert "Planned ambulatory (default)" in result.output

    def test_options_rejects_unknown_classification(self, restore_root_logger):
        """Test an unknown classification code is a usage error."""
        result = runner.invoke(app, ["options", "9"])
        assert result.exit_code != 0

    def test_districts(self, restore_root_logger):
        """Test districts are listed for their own region only."""
        result = runner.invoke(app, ["districts", "39"])

        assert result.exit_code == 0
        assert "Kutaisi" in result.output
        assert "Vake" not in result.output


class TestRecordCommands:
    """Test suite for load, register and tree."""

    def test_register_then_inspect(self, duckdb_env, visit_file):
        """Test a registered visit can be loaded and its tree printed."""
        result = runner.invoke(app, ["register", str(visit_file)])
        assert result.exit_code == 0, result.output
        assert "Created visit" in result.output

        result = runner.invoke(app, ["load", "P001"])
        assert result.exit_code == 0, result.output
        assert "Ambulatory" in result.output
        assert "Visits:" in result.output

        result = runner.invoke(app, ["tree", "P001"])
        assert result.exit_code == 0, result.output
        assert "insurance-1" in result.output
        assert "admission-type" in result.output

    def test_register_twice_updates(self, duckdb_env, visit_file):
        """Test a second registration updates the most recent visit."""
        runner.invoke(app, ["register", str(visit_file)])
        result = runner.invoke(app, ["register", str(visit_file)])

        assert result.exit_code == 0, result.output
        assert "Updated visit" in result.output

    def test_register_reports_validation_errors(self, duckdb_env, tmp_path):
        """Test validation problems are listed and the command fails."""
        path = tmp_path / "invalid.json"
        path.write_text(json.dumps({"patient_id": "P001", "department": "18"}))

        result = runner.invoke(app, ["register", str(path)])

        assert result.exit_code == 1
        assert "visit_date" in result.output

    def test_register_requires_patient(self, duckdb_env, tmp_path):
        """Test a file without patient_id is rejected."""
        path = tmp_path / "anonymous.json"
        path.write_text(json.dumps({"department": "736"}))

        result = runner.invoke(app, ["register", str(path)])

        assert result.exit_code == 1

    def test_tree_without_visits(self, duckdb_env):
        """Test tree fails for a patient without visits."""
        result = runner.invoke(app, ["tree", "P404"])
        assert result.exit_code == 1
        assert "No visits" in result.output

    def test_load_with_memory_store(self, monkeypatch, restore_root_logger):
        """Test load works against the in-memory store."""
        monkeypatch.setenv("RD_DB_TYPE", "memory")

        result = runner.invoke(app, ["load", "P001"])

        assert result.exit_code == 0, result.output
        assert "none" in result.output


class TestInfo:
    """Test suite for info and --version."""

    def test_version(self, restore_root_logger):
        """Test --version prints the package version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "Registration-Desk v" in result.output
