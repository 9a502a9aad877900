"""
Unit Tests for the Command-Line Interface

Tests for argument handling, output and exit codes.
"""

import io
import json

import pytest

from carryon import __version__
from carryon.app.main import main, parse_fact_arguments


@pytest.fixture(autouse=True)
def data_folder(tmp_path, monkeypatch):
    """Keeps history in a temporary folder and stdin non-interactive."""
    folder = tmp_path / "data"
    monkeypatch.setenv("CARRYON_DATA_FOLDER", str(folder))
    monkeypatch.delenv("CARRYON_HISTORY_LIMIT", raising=False)
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    return folder


class TestParseFactArguments:
    """Tests for parse_fact_arguments."""

    def test_pairs(self):
        """Tests KEY=VALUE parsing."""
        assert parse_fact_arguments(["volume_ml=250", " liquid_kind = regular "]) == {
            "volume_ml": "250",
            "liquid_kind": "regular",
        }

    def test_empty(self):
        """Tests no facts."""
        assert parse_fact_arguments(None) == {}

    @pytest.mark.parametrize("pair", ["volume_ml", "=5"])
    def test_invalid(self, pair):
        """Tests malformed pairs."""
        with pytest.raises(ValueError):
            parse_fact_arguments([pair])


class TestMain:
    """Tests for main."""

    def test_list(self, capsys):
        """Tests listing categories."""
        assert main(["--list"]) == 0

        out = capsys.readouterr().out
        assert "battery-spare" in out
        assert "Always Prohibited" in out

    def test_no_arguments(self):
        """Tests that a command is required."""
        assert main([]) == 2

    def test_version(self, capsys):
        """Tests the version flag."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_check_json(self, capsys):
        """Tests a manual check with JSON output."""
        code = main([
            "-c", "battery-spare",
            "-f", "capacity_mAh=20000",
            "-f", "voltage_V=3.7",
            "--json",
        ])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["categoryId"] == "battery-spare"
        assert payload["result"]["handBaggage"]["status"] == "conditional"
        assert payload["result"]["checkedBaggage"]["status"] == "not_allowed"

    def test_check_text(self, capsys):
        """Tests human-readable output."""
        assert main(["-c", "lighter", "--no-save"]) == 0

        out = capsys.readouterr().out
        assert "Lighter" in out
        assert "Hand baggage: NOT ALLOWED" in out

    def test_missing_facts(self, capsys):
        """Tests that missing facts fail without a terminal."""
        assert main(["-c", "battery-spare"]) == 1
        assert "Missing facts: capacity_mAh, voltage_V" in capsys.readouterr().out

    def test_unknown_category(self, capsys):
        """Tests an unknown category."""
        assert main(["-c", "spaceship"]) == 1
        assert "Unknown category" in capsys.readouterr().out

    def test_bad_fact(self):
        """Tests a malformed --fact value."""
        assert main(["-c", "knife", "-f", "blade_length_cm"]) == 2

    def test_interactive(self, capsys, mocker):
        """Tests prompting for a missing fact."""
        terminal = mocker.MagicMock()
        terminal.isatty.return_value = True
        mocker.patch("sys.stdin", terminal)
        mock_input = mocker.patch("builtins.input", side_effect=["long", "7"])

        assert main(["-c", "knife", "--json"]) == 0

        assert mock_input.call_count == 2
        out = capsys.readouterr().out
        assert "not valid" in out
        assert '"status": "not_allowed"' in out

    def test_extraction_file(self, tmp_path, capsys):
        """Tests checking classifier output from a file."""
        path = tmp_path / "response.txt"
        path.write_text(
            '```json\n{"identified": true, "categoryId": "liquids", '
            '"detectedFacts": {"volume_ml": 150}, "verdict": "allowed"}\n```',
            encoding="utf-8",
        )

        assert main(["-e", str(path), "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["result"]["handBaggage"]["status"] == "not_allowed"

    def test_extraction_unidentified(self, tmp_path, capsys):
        """Tests classifier output without an item."""
        path = tmp_path / "response.txt"
        path.write_text('{"identified": false, "summary": "Blurry photo"}', encoding="utf-8")

        assert main(["-e", str(path)]) == 1
        assert "Blurry photo" in capsys.readouterr().out

    def test_extraction_missing_file(self, tmp_path):
        """Tests an unreadable classifier file."""
        assert main(["-e", str(tmp_path / "missing.json")]) == 1

    def test_history(self, capsys):
        """Tests that checks are recorded and listed."""
        main(["-c", "knife", "-f", "blade_length_cm=3"])
        main(["-c", "matches", "--no-save"])
        capsys.readouterr()

        assert main(["--history"]) == 0
        out = capsys.readouterr().out
        assert "Knife" in out
        assert "Matches" not in out
        assert "Last 1 of 1 check(s):" in out

    def test_clear_history(self, capsys):
        """Tests clearing the history."""
        main(["-c", "fireworks"])
        capsys.readouterr()

        assert main(["--clear-history"]) == 0
        assert "Removed 1 record(s)." in capsys.readouterr().out

        main(["--history"])
        assert "No checks recorded." in capsys.readouterr().out
