# ABOUTME: Verifies the engine CLI exposes its commands and maps engine errors to exit code 1.
# ABOUTME: Exercises the commands through Typer's test runner with the language model mocked out.

import json
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from scripts import engine_cli

runner = CliRunner()


def test_engine_cli_has_all_commands():
    command_names = {cmd.name or cmd.callback.__name__ for cmd in engine_cli.app.registered_commands}
    assert {"path", "recommend", "progress", "adapt"} <= command_names


def test_adapt_prints_decision(tmp_path):
    performance = tmp_path / "performance.json"
    performance.write_text(json.dumps({"accuracy": 0.5, "completionTime": 0.4, "difficulty": "advanced"}))

    result = runner.invoke(engine_cli.app, ["adapt", "--student-id", "s1", "--performance", str(performance)])

    assert result.exit_code == 0
    assert "decrease" in result.output


def test_adapt_without_accuracy_exits_with_error(tmp_path):
    performance = tmp_path / "performance.json"
    performance.write_text("{}")

    result = runner.invoke(engine_cli.app, ["adapt", "--student-id", "s1", "--performance", str(performance)])

    assert result.exit_code == 1
    assert "InvalidInput" in result.output


def test_progress_json_output(tmp_path):
    activity = tmp_path / "activity.json"
    activity.write_text(json.dumps({"totalModules": 4, "completedModules": 1, "assessmentScores": [65, 75]}))

    result = runner.invoke(
        engine_cli.app,
        [
            "progress",
            "--student-id",
            "s1",
            "--course-id",
            "btc-101",
            "--activity",
            str(activity),
            "--as-of",
            "2024-05-01",
            "--json",
        ],
    )

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["currentProgress"]["completionRate"] == 0.25
    assert payload["courseId"] == "btc-101"


def test_missing_input_file_exits_with_error(tmp_path):
    result = runner.invoke(
        engine_cli.app, ["adapt", "--student-id", "s1", "--performance", str(tmp_path / "missing.json")]
    )
    assert result.exit_code == 1


def test_progress_rejects_malformed_as_of(tmp_path):
    activity = tmp_path / "activity.json"
    activity.write_text(json.dumps({"totalModules": 4, "completedModules": 1}))

    result = runner.invoke(
        engine_cli.app,
        ["progress", "--student-id", "s1", "--activity", str(activity), "--as-of", "garbage"],
    )

    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)


def test_recommend_upstream_timeout_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    monkeypatch.delenv("LLM_MODEL", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    store = tmp_path / "store.json"
    store.write_text(json.dumps({"students": {"s1": {"profile": {"learningStyle": "visual"}}}}))

    with patch("src.common.content_generator.openai.AsyncOpenAI") as mock_client:
        mock_client.return_value.chat.completions.create = AsyncMock(side_effect=TimeoutError("upstream timed out"))
        result = runner.invoke(
            engine_cli.app,
            ["recommend", "--student-id", "s1", "--topic", "what-is-bitcoin", "--store", str(store)],
        )

    assert result.exit_code == 1
    assert "UpstreamUnavailable" in result.output
