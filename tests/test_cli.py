"""Tests for the assocquery CLI."""

import json

import pytest
from typer.testing import CliRunner

from assocquery.cli import app

runner = CliRunner()


def test_cli_help():
    """--help lists the subcommands."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "serve" in result.output
    assert "query" in result.output


def test_cli_version():
    """--version shows the package version."""
    import assocquery

    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert assocquery.__version__ in result.output


def test_cli_serve_help():
    result = runner.invoke(app, ["serve", "--help"])
    assert result.exit_code == 0
    assert "--bfile" in result.output
    assert "--port" in result.output


@pytest.mark.tier1
def test_cli_query(plink_files, tmp_path):
    """query answers one request file from PLINK data."""
    bfile, cov_path = plink_files
    request = tmp_path / "request.json"
    request.write_text(
        json.dumps(
            {
                "api_version": 1,
                "passback": "cli",
                "variant_filters": [
                    {"operand": "pos", "operator": "eq", "value": "5", "operand_type": "integer"}
                ],
            }
        )
    )
    result = runner.invoke(
        app,
        ["query", "--bfile", str(bfile), "--covariates", str(cov_path), "--request", str(request)],
    )
    assert result.exit_code == 0
    body = json.loads(result.stdout)
    assert "Loaded 40 samples" in result.stderr
    assert body["passback"] == "cli"
    assert [(s["pos"], s["alt"]) for s in body["stats"]] == [(5, "C"), (5, "T")]


@pytest.mark.tier1
def test_cli_query_error_exit_code(plink_files, tmp_path):
    """A rejected request prints the error result and exits 1."""
    bfile, cov_path = plink_files
    request = tmp_path / "request.json"
    request.write_text(json.dumps({"api_version": 1, "limit": -5}))
    result = runner.invoke(
        app,
        ["query", "--bfile", str(bfile), "--covariates", str(cov_path), "--request", str(request)],
    )
    assert result.exit_code == 1
    assert json.loads(result.stdout)["is_error"] is True


def test_cli_query_missing_bfile(tmp_path):
    """A missing PLINK fileset fails gracefully."""
    request = tmp_path / "request.json"
    request.write_text("{}")
    cov = tmp_path / "cov.tsv"
    cov.write_text("IID\tT2D\n")
    result = runner.invoke(
        app,
        [
            "query",
            "--bfile",
            str(tmp_path / "absent"),
            "--covariates",
            str(cov),
            "--request",
            str(request),
        ],
    )
    assert result.exit_code == 1
    assert "PLINK file not found" in result.output
