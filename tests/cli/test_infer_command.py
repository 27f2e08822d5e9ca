"""Tests for the infer command, with an in-memory catalog session."""

import json

import pytest

from pgquerygen.cli.main import app
from pgquerygen.core.exit_codes import ExitCode
from tests.fakes import author_session


@pytest.fixture(autouse=True)
def fake_client(monkeypatch):
    session = author_session()
    monkeypatch.setattr(
        "pgquerygen.cli.commands.infer.PgClient", lambda config: session
    )
    return session


@pytest.fixture
def config_args(temp_dir):
    config_file = temp_dir / "config.toml"
    config_file.write_text("")
    return ["--config", str(config_file)]


@pytest.mark.unit
class TestInferCommand:
    def test_json_output(self, runner, config_args, fixtures_dir):
        result = runner.invoke(
            app,
            [
                *config_args,
                "--format",
                "json",
                "infer",
                str(fixtures_dir / "author_queries.sql"),
            ],
        )
        assert result.exit_code == 0, result.output
        queries = json.loads(result.stdout)
        assert len(queries) == 4
        literals = queries[0]
        assert literals["outputs"] == [
            {
                "pg_name": "one",
                "pg_type": {"oid": 23, "name": "int4", "kind": "base", "elem": None},
                "nullable": False,
            },
            {
                "pg_name": "two",
                "pg_type": {"oid": 25, "name": "text", "kind": "base", "elem": None},
                "nullable": False,
            },
        ]

    def test_csv_output(self, runner, config_args, fixtures_dir):
        result = runner.invoke(
            app,
            [
                *config_args,
                "--format",
                "csv",
                "--no-header",
                "infer",
                str(fixtures_dir / "author_queries.sql"),
            ],
        )
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert "FindFirstNames,:many,$1,FirstName,text," in lines
        assert "FindFirstNames,:many,column,first_name,text,no" in lines
        assert "DeleteAuthor,:exec,$1,AuthorID,int4," in lines

    def test_table_output(self, runner, config_args, fixtures_dir):
        result = runner.invoke(
            app,
            [
                *config_args,
                "--format",
                "table",
                "infer",
                str(fixtures_dir / "author_queries.sql"),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "DeleteAuthorReturning :many" in result.stdout

    def test_failure_exit_code(self, runner, config_args, temp_dir):
        path = temp_dir / "bad.sql"
        path.write_text("-- name: Missing :one\nSELECT * FROM missing;\n")
        result = runner.invoke(app, [*config_args, "infer", str(path)])
        assert result.exit_code == ExitCode.INFERENCE_ERROR
        assert 'query Missing: relation "missing" does not exist' in result.output

    def test_keep_going_prints_successes(self, runner, config_args, temp_dir):
        path = temp_dir / "mixed.sql"
        path.write_text(
            "-- name: Missing :one\nSELECT * FROM missing;\n\n"
            "-- name: Literals :one\nSELECT 1 as one, 'foo' as two;\n"
        )
        result = runner.invoke(
            app,
            [*config_args, "--format", "json", "infer", "--keep-going", str(path)],
        )
        assert result.exit_code == ExitCode.INFERENCE_ERROR
        assert [q["name"] for q in json.loads(result.stdout)] == ["Literals"]

    def test_malformed_query_file(self, runner, config_args, temp_dir):
        path = temp_dir / "bad.sql"
        path.write_text("SELECT 1;\n")
        result = runner.invoke(app, [*config_args, "infer", str(path)])
        assert result.exit_code == ExitCode.INPUT_ERROR
        assert "missing a '-- name: <Name> <:kind>' annotation" in result.output
