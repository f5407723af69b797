"""
Tests for the command line interface.
"""

import io
import json
import logging

import pytest
from typer.testing import CliRunner

from factories import sample_history
from roundsight import __version__
from roundsight.cli import app, configure_logging
from roundsight.core.config import LoggingConfig
from roundsight.core.schemas import load_history

runner = CliRunner()


@pytest.fixture
def history_file(tmp_path, monkeypatch):
    """Sample history written as camelCase JSON; cwd isolated from config files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    path = tmp_path / "history.json"
    payload = [entry.model_dump(mode="json", by_alias=True) for entry in sample_history()]
    path.write_text(json.dumps(payload))
    return path


class TestGlobalOptions:
    """Tests for app-level options."""

    def test_version(self):
        """--version prints the version and exits cleanly."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self):
        """Every command is listed in the help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("stats", "scores", "role", "profile", "rate"):
            assert command in result.output


class TestQueryCommands:
    """Tests for stats, scores and role."""

    def test_stats_table(self, history_file):
        """The stats table shows the round count."""
        result = runner.invoke(app, ["stats", str(history_file), "--player", "p1"])
        assert result.exit_code == 0
        assert "Rounds" in result.output
        assert "ADR" in result.output

    def test_stats_json(self, history_file):
        """--json prints totals and rates."""
        result = runner.invoke(
            app, ["stats", str(history_file), "-p", "p1", "--side", "CT", "--json"]
        )
        assert result.exit_code == 0
        assert '"rounds_played": 2' in result.output
        assert '"rates"' in result.output

    def test_scores(self, history_file):
        """All seven abilities are printed."""
        result = runner.invoke(app, ["scores", str(history_file), "-p", "p1"])
        assert result.exit_code == 0
        for ability in ("Firepower", "Entry", "Trade", "Opening", "Clutch", "Sniper", "Utility"):
            assert ability in result.output

    def test_role(self, history_file):
        """The role panel is printed."""
        result = runner.invoke(app, ["role", str(history_file), "-p", "p1"])
        assert result.exit_code == 0
        assert "(" in result.output

    def test_bad_side(self, history_file):
        """An unknown side is a usage error."""
        result = runner.invoke(app, ["stats", str(history_file), "-p", "p1", "--side", "X"])
        assert result.exit_code != 0


class TestProfileCommand:
    """Tests for profile output."""

    def test_profile_table(self, history_file):
        """The profile table includes the role."""
        result = runner.invoke(app, ["profile", str(history_file), "-p", "p1"])
        assert result.exit_code == 0
        assert "Role" in result.output

    def test_profile_json(self, history_file, tmp_path):
        """Profiles export to JSON with metadata."""
        output = tmp_path / "profile.json"
        result = runner.invoke(app, ["profile", str(history_file), "-p", "p1", "-o", str(output)])
        assert result.exit_code == 0
        payload = json.loads(output.read_text())
        assert payload["data"]["player_id"] == "p1"
        assert payload["data"]["overall"]["rounds"] == 3

    def test_profile_csv(self, history_file, tmp_path):
        """Profiles export to CSV."""
        output = tmp_path / "profile.csv"
        result = runner.invoke(app, ["profile", str(history_file), "-p", "p1", "-o", str(output)])
        assert result.exit_code == 0
        assert output.read_text().startswith("player_id,")

    def test_profile_unknown_format(self, history_file, tmp_path):
        """Unsupported output formats exit with an error."""
        output = tmp_path / "profile.xlsx"
        result = runner.invoke(app, ["profile", str(history_file), "-p", "p1", "-o", str(output)])
        assert result.exit_code == 1
        assert not output.exists()


class TestRateCommand:
    """Tests for re-rating a history."""

    def test_rate_writes_history(self, history_file, tmp_path):
        """The re-rated history is valid input again."""
        output = tmp_path / "rated.json"
        result = runner.invoke(app, ["rate", str(history_file), "-o", str(output)])
        assert result.exit_code == 0

        rated = load_history(json.loads(output.read_text()))
        assert len(rated) == 2
        p1 = rated[0].match.rounds[0].player_stats["p1"]
        assert p1.rating != 1.2
        assert p1.impact > 0


class TestBadInput:
    """Tests for unreadable or invalid history files."""

    def test_invalid_json(self, tmp_path):
        """Malformed JSON exits with code 1."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["stats", str(path), "-p", "p1"])
        assert result.exit_code == 1

    def test_invalid_structure(self, tmp_path):
        """Structurally invalid history exits with code 1."""
        path = tmp_path / "invalid.json"
        path.write_text(json.dumps([{"match": {"rounds": "nope"}}]))
        result = runner.invoke(app, ["stats", str(path), "-p", "p1"])
        assert result.exit_code == 1
        assert "Invalid match history" in result.output

    def test_missing_file(self, tmp_path):
        """A missing file is a usage error."""
        result = runner.invoke(app, ["stats", str(tmp_path / "nope.json"), "-p", "p1"])
        assert result.exit_code == 2

    def test_single_entry_object(self, tmp_path):
        """A single {match, stats} object is accepted as a one-entry history."""
        payload = sample_history()[1].model_dump(mode="json", by_alias=True)
        path = tmp_path / "single.json"
        path.write_text(json.dumps(payload))
        result = runner.invoke(app, ["stats", str(path), "-p", "p1", "--json"])
        assert result.exit_code == 0
        assert '"rounds_played": 1' in result.output


class TestLoggingSetup:
    """Tests for applying the logging config."""

    @pytest.fixture
    def root_handler(self):
        root = logging.getLogger()
        level = root.level
        formatters = {handler: handler.formatter for handler in root.handlers}
        handler = logging.StreamHandler(io.StringIO())
        root.addHandler(handler)
        yield handler
        root.removeHandler(handler)
        root.setLevel(level)
        for other, formatter in formatters.items():
            other.setFormatter(formatter)

    def test_configured_format_and_level(self, root_handler):
        """Root handlers use the configured format and level."""
        configure_logging(LoggingConfig(level="WARNING", format="%(levelname)s|%(message)s"))
        log = logging.getLogger("roundsight.analysis")
        log.info("hidden")
        log.warning("shown")
        assert root_handler.stream.getvalue() == "WARNING|shown\n"

    def test_verbose_enables_debug(self, root_handler):
        """--verbose wins over the configured level."""
        configure_logging(LoggingConfig(level="ERROR"), verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_format_from_config_file(self, history_file, tmp_path, root_handler):
        """The CLI applies the logging section of the config file."""
        config = tmp_path / "roundsight.yaml"
        config.write_text("logging:\n  format: '%(name)s: %(message)s'\n")
        result = runner.invoke(
            app, ["--config", str(config), "stats", str(history_file), "-p", "p1"]
        )
        assert result.exit_code == 0
        logging.getLogger("roundsight.engine").warning("done")
        assert root_handler.stream.getvalue().endswith("roundsight.engine: done\n")
