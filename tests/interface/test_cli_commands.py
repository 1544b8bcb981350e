"""Tests for CLI commands: decks, practice, stats, known, reset, serve and config."""

import json
import os
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from flashdeck import server
from flashdeck.interface.cli import app

runner = CliRunner()


@pytest.fixture
def invoke(cards_file, tmp_path, mock_home):
    """Run the CLI against the sample cards file and a throwaway SQLite store."""
    db = tmp_path / "stats.db"

    def _invoke(*args, input=None):
        base = ["-c", str(cards_file), "--backend", "sqlite", "--db-path", str(db)]
        return runner.invoke(app, [*base, *args], input=input)

    return _invoke


def _stats_json(invoke, deck_id=1):
    result = invoke("stats", str(deck_id), "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


# --- Help ---


def test_cli_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "flashdeck" in result.stdout
    assert "practice" in result.stdout
    assert "stats" in result.stdout


# --- Decks ---


def test_decks_lists_progress(invoke):
    invoke("known", "1", "11")

    result = invoke("decks")

    assert result.exit_code == 0
    assert "Spanish basics  (1/2 known, 50%)" in result.stdout
    assert "Empty deck  (0/0 known, 0%)" in result.stdout
    assert "Total: 0 sessions (0 today), 0 cards viewed (0 today)" in result.stdout


def test_decks_without_cards_file(mock_home):
    result = runner.invoke(app, ["decks"])
    assert result.exit_code == 0
    assert "No decks found." in result.stdout


def test_bad_cards_file_is_reported(tmp_path, mock_home):
    bad = tmp_path / "bad.yaml"
    bad.write_text("decks: 3\n", encoding="utf-8")
    result = runner.invoke(app, ["-c", str(bad), "decks"])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_invalid_backend_is_reported(mock_home):
    result = runner.invoke(app, ["--backend", "redis", "decks"])
    assert result.exit_code == 1
    assert "Invalid configuration for 'backend'" in result.output


# --- Practice ---


def test_practice_records_session(invoke):
    # reveal, know / reveal, hard / decline repeat
    result = invoke("practice", "1", "--ordered", input="\nk\n\nh\nn\n")

    assert result.exit_code == 0, result.output
    assert "=== Spanish basics ===" in result.stdout
    assert "[1/2] hola" in result.stdout
    assert "hello" in result.stdout
    assert "e.g. ¡Hola, amigo!" in result.stdout
    assert "Session complete!" in result.stdout
    assert "Viewed: 2  Know: 1  Hard: 1  Repeat: 0" in result.stdout

    data = _stats_json(invoke)
    assert data["known_card_ids"] == [11]
    assert data["daily"][0]["sessions"] == 1
    assert data["daily"][0]["viewed"] == 2
    assert data["aggregate"]["hard_all"] == 1


def test_practice_back_to_front(invoke):
    result = invoke(
        "practice", "1", "--ordered", "--direction", "back_to_front", "-n", "1", input="\nk\n"
    )
    assert result.exit_code == 0, result.output
    assert "[1/1] hello" in result.stdout


def test_practice_repeat_failed_cards(invoke):
    result = invoke("practice", "1", "--ordered", input="\nh\n\nr\ny\n\nk\n\nk\n")

    assert result.exit_code == 0, result.output
    assert "Repeat 2 failed cards?" in result.stdout
    assert result.stdout.count("Session complete!") == 2

    data = _stats_json(invoke)
    assert data["daily"][0]["sessions"] == 2
    assert data["known_card_ids"] == [11, 12]


def test_practice_invalid_choice_reprompts(invoke):
    result = invoke("practice", "1", "--ordered", "-n", "1", input="\nx\nk\n")
    assert result.exit_code == 0, result.output
    assert "Invalid choice." in result.stdout


def test_practice_quit_records_nothing(invoke):
    result = invoke("practice", "1", "--ordered", input="\nk\nq\n")

    assert result.exit_code == 0, result.output
    assert "Session abandoned; nothing recorded." in result.stdout
    assert _stats_json(invoke)["daily"] == []


def test_practice_empty_selection(invoke):
    result = invoke("practice", "2")
    assert result.exit_code == 0
    assert "Nothing to practice" in result.stdout


def test_practice_all_known_cards_skipped(invoke):
    invoke("known", "1", "11")
    invoke("known", "1", "12")
    result = invoke("practice", "1")
    assert "Nothing to practice" in result.stdout


def test_practice_unknown_deck(invoke):
    result = invoke("practice", "9")
    assert result.exit_code == 1
    assert "Deck not found: 9" in result.output


# --- Stats ---


def test_stats_table(invoke):
    invoke("practice", "1", "--ordered", input="\nk\n\nk\n")

    result = invoke("stats", "1")

    assert result.exit_code == 0
    assert "Sessions: 1 (today 1)" in result.stdout
    assert "Known cards: 2" in result.stdout
    assert "Date" in result.stdout


def test_default_config_keeps_stats_between_runs(cards_file, mock_home):
    base = ["-c", str(cards_file)]
    practiced = runner.invoke(app, [*base, "practice", "1", "--ordered", "-n", "1"], input="\nk\n")
    assert practiced.exit_code == 0, practiced.output

    result = runner.invoke(app, [*base, "stats", "1"])

    assert "Sessions: 1 (today 1)" in result.stdout
    assert "Known cards: 1" in result.stdout
    assert (mock_home / ".config/flashdeck/stats.db").exists()
    assert "Total: 1 sessions (1 today)" in runner.invoke(app, [*base, "decks"]).stdout


def test_stats_empty(invoke):
    result = invoke("stats", "1")
    assert result.exit_code == 0
    assert "No sessions recorded yet." in result.stdout


# --- Known ---


def test_known_set_unset_and_toggle(invoke):
    assert "Card 11 in deck 1: known" in invoke("known", "1", "11").stdout
    assert "Card 11 in deck 1: unknown" in invoke("known", "1", "11", "--unknown").stdout
    assert "Card 11 in deck 1: known" in invoke("known", "1", "11", "--toggle").stdout
    assert _stats_json(invoke)["known_card_ids"] == [11]


# --- Reset ---


def test_reset_requires_confirmation(invoke):
    invoke("known", "1", "11")

    result = invoke("reset", "1", input="n\n")

    assert result.exit_code == 1
    assert "Reset cancelled." in result.stdout
    assert _stats_json(invoke)["known_card_ids"] == [11]


def test_reset_force_keeps_history(invoke, mock_home):
    invoke("practice", "1", "--ordered", input="\nk\n\nk\n")

    result = invoke("reset", "1", "--force")

    assert result.exit_code == 0
    assert "Cleared 2 known cards from deck 1." in result.stdout
    data = _stats_json(invoke)
    assert data["known_card_ids"] == []
    assert data["daily"][0]["viewed"] == 2

    audit = mock_home / ".config/flashdeck/logs/audit.log"
    assert "Deck progress reset: deck_id=1, title='Spanish basics'" in audit.read_text()


def test_reset_unknown_deck(invoke):
    result = invoke("reset", "9", "--force")
    assert result.exit_code == 1
    assert "Deck not found: 9" in result.output


# --- Server ---


@patch("uvicorn.run")
def test_serve_command(mock_run, mock_home):
    with patch.dict(os.environ):
        result = runner.invoke(app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    mock_run.assert_called_once_with(
        "flashdeck.server:app", host="127.0.0.1", port=9000, reload=False
    )


def test_serve_hands_global_options_to_server(cards_file, tmp_path, mock_home):
    db = tmp_path / "served.db"
    served = {}

    def fake_run(*args, **kwargs):
        services = server.get_services()
        served["decks"] = [d.id for d in services.practice.list_decks()]

    with (
        patch.dict(os.environ),
        patch("flashdeck.server._services", None),
        patch("uvicorn.run", side_effect=fake_run),
    ):
        result = runner.invoke(
            app, ["-c", str(cards_file), "--backend", "sqlite", "--db-path", str(db), "serve"]
        )
        assert os.environ["FLASHDECK_CARDS_FILE"] == str(cards_file.resolve())

    assert result.exit_code == 0, result.output
    assert served["decks"] == [1, 2]
    assert db.exists()


def test_serve_rejects_invalid_config(mock_home):
    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(app, ["--backend", "redis", "serve"])
    assert result.exit_code == 1
    assert "Invalid configuration for 'backend'" in result.output
    mock_run.assert_not_called()


# --- Config ---


def test_config_show_command(mock_home, cards_file):
    result = runner.invoke(app, ["-c", str(cards_file), "config", "show"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["backend"] == "sqlite"
    assert data["cards_file"] == str(cards_file.resolve())
    assert data["default_count"] == 10


def test_config_path_marks_existing(mock_home):
    (mock_home / ".flashdeck.toml").write_text("verbose = 1\n")

    result = runner.invoke(app, ["config", "path"])

    assert result.exit_code == 0
    assert f"* {mock_home / '.flashdeck.toml'}" in result.stdout
    assert f"  {mock_home / '.config/flashdeck/config.toml'}" in result.stdout
