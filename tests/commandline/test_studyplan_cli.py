"""Tests for the study planner CLI commands."""

import json

from typer.testing import CliRunner

from cli.cli import app

runner = CliRunner()


class TestPreviewCommand:
    def test_preview_csv(self, tmp_path):
        file_path = tmp_path / "sessions.csv"
        file_path.write_text("title,category,duration\nAlgebra,school,45\n,school,30\n", encoding="utf-8")

        result = runner.invoke(app, ["preview", str(file_path)])

        assert result.exit_code == 0
        assert "Total: 2" in result.output

    def test_preview_unsupported_file(self, tmp_path):
        file_path = tmp_path / "notes.txt"
        file_path.write_text("hello", encoding="utf-8")

        result = runner.invoke(app, ["preview", str(file_path)])

        assert result.exit_code == 1
        assert "UNSUPPORTED_FORMAT" in result.output


class TestSampleCommand:
    def test_prints_json_sample(self):
        result = runner.invoke(app, ["sample", "json"])
        assert result.exit_code == 0
        assert "Learn React Fundamentals" in result.output

    def test_writes_sample_file(self, tmp_path):
        output = tmp_path / "sample.json"
        result = runner.invoke(app, ["sample", "json", "--output", str(output)])

        assert result.exit_code == 0
        assert len(json.loads(output.read_text(encoding="utf-8"))) == 3


class TestExpandCommand:
    def test_daily_count(self):
        result = runner.invoke(
            app,
            ["expand", "--frequency", "daily", "--start", "2025-01-15T10:00:00Z", "--end-type", "count", "--count", "3"],
        )
        assert result.exit_code == 0
        assert "2025-01-17T10:00:00.000Z" in result.output
        assert "3 occurrences" in result.output

    def test_count_without_value_is_rejected(self):
        result = runner.invoke(app, ["expand", "--frequency", "daily", "--end-type", "count"])
        assert result.exit_code == 1
        assert "Invalid recurrence rule" in result.output


class TestCommitCommand:
    def test_commits_valid_rows(self, tmp_path, monkeypatch, recording_store):
        monkeypatch.setattr("cli.cli.init_db", lambda: None)
        monkeypatch.setattr("cli.cli.SqlSessionStore", lambda: recording_store)
        file_path = tmp_path / "sessions.csv"
        file_path.write_text(
            "title,category,duration,priority\nAlgebra,school,45,high\nChess,other,30,whenever\n,school,30,low\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["commit", str(file_path), "--user-id", "user-9"])

        assert result.exit_code == 0
        assert "Created: 2" in result.output
        assert [draft.title for _, draft in recording_store.calls] == ["Algebra", "Chess"]
        assert all(owner == "user-9" for owner, _ in recording_store.calls)

    def test_skip_warnings(self, tmp_path, monkeypatch, recording_store):
        monkeypatch.setattr("cli.cli.init_db", lambda: None)
        monkeypatch.setattr("cli.cli.SqlSessionStore", lambda: recording_store)
        file_path = tmp_path / "sessions.csv"
        file_path.write_text(
            "title,category,duration,priority\nAlgebra,school,45,high\nChess,other,30,whenever\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["commit", str(file_path), "--user-id", "user-9", "--skip-warnings"])

        assert result.exit_code == 0
        assert [draft.title for _, draft in recording_store.calls] == ["Algebra"]
