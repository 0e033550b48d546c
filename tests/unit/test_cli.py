"""
Unit tests for the command-line entry point wiring.

The full command is exercised by the smoke tests; here `start_shell` is run
in-process with the reader, console and backend replaced.

Run: pytest tests/unit/test_cli.py -v
"""

import io
import sys
from pathlib import Path

import pytest
from loguru import logger

from cadence import cli
from cadence.config import Settings
from cadence.errors import FatalIoError
from cadence.repl import StreamReader


@pytest.fixture
def settings(tmp_path):
    return Settings(
        show_banner=False,
        mantra_enabled=False,
        history_file=tmp_path / "history",
        scheduler_backend=None,
    )


@pytest.fixture
def wire(monkeypatch, console, backend):
    """Route the shell to the in-memory backend and a scripted stdin."""

    def _wire(stdin_text):
        monkeypatch.setattr(cli, "console", console)
        monkeypatch.setattr(cli, "load_backend", lambda path: backend)
        monkeypatch.setattr(cli, "create_line_reader", lambda history_file: StreamReader(io.StringIO(stdin_text)))

    return _wire


@pytest.fixture
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestStartShell:
    def test_runs_until_end_of_input(self, wire, settings, output):
        wire("")
        assert cli.start_shell(settings) == 0
        assert "Error" not in output.getvalue()

    def test_opens_library_on_startup(self, wire, settings, output, backend):
        wire("next\n")
        assert cli.start_shell(settings, Path("lib")) == 0
        assert backend.opened == [Path("lib")]
        assert "Exercise ID: music::scales::c_major" in output.getvalue()

    def test_bad_startup_library_keeps_running(self, wire, settings, output):
        wire("mantra-count\n")
        assert cli.start_shell(settings, Path("my courses")) == 0
        text = output.getvalue()
        assert "cannot open course library at my courses" in text
        assert "Mantra count: 0" in text

    def test_banner(self, wire, settings, output):
        wire("")
        cli.start_shell(settings.model_copy(update={"show_banner": True}))
        assert "Cadence" in output.getvalue()

    def test_backend_load_failure(self, monkeypatch, console, output, settings):
        monkeypatch.setattr(cli, "console", console)
        status = cli.start_shell(settings.model_copy(update={"scheduler_backend": "not-a-path"}))
        assert status == 1
        assert "Cannot load scheduler backend" in output.getvalue()

    def test_reader_failure(self, monkeypatch, console, output, settings, backend):
        def fail(history_file):
            raise FatalIoError("standard input is not available")

        monkeypatch.setattr(cli, "console", console)
        monkeypatch.setattr(cli, "load_backend", lambda path: backend)
        monkeypatch.setattr(cli, "create_line_reader", fail)
        assert cli.start_shell(settings) == 1
        assert "standard input is not available" in output.getvalue()

    def test_history_disabled(self, monkeypatch, console, settings, backend):
        seen = []
        monkeypatch.setattr(cli, "console", console)
        monkeypatch.setattr(cli, "load_backend", lambda path: backend)
        monkeypatch.setattr(
            cli,
            "create_line_reader",
            lambda history_file: seen.append(history_file) or StreamReader(io.StringIO("")),
        )
        cli.start_shell(settings.model_copy(update={"history_enabled": False}))
        cli.start_shell(settings)
        assert seen == [None, settings.history_file]

    def test_mantra_counter_runs_during_session(self, wire, settings, output):
        wire("mantra-count\n")
        fast = settings.model_copy(update={"mantra_enabled": True, "mantra_interval_seconds": 0.001})
        assert cli.start_shell(fast) == 0
        assert "Mantra count:" in output.getvalue()


class TestConfigureLogging:
    def test_file_sink_records_debug(self, tmp_path, restore_logger):
        log_file = tmp_path / "cadence.log"
        cli.configure_logging("ERROR", str(log_file))
        logger.debug("opened library")
        logger.remove()
        assert "opened library" in log_file.read_text(encoding="utf-8")

    def test_rejects_unknown_level(self, restore_logger):
        with pytest.raises(ValueError):
            cli.configure_logging("LOUD")
