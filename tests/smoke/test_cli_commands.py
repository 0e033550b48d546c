"""
Smoke Tests for the cadence command.

These tests start the real command in a subprocess and pipe a script into
standard input. They don't validate correctness deeply - just that a
session runs end to end and exits with the right status.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent
SMOKE_DIR = Path(__file__).parent

MEMORY_BACKEND = "memory_backend:MemoryBackend"


def run_cadence(*args: str, stdin: str = "", timeout: int = 30) -> tuple[int, str, str]:
    """
    Run `python -m cadence` with a piped script and return exit code, stdout, stderr.

    Args:
        args: Command-line arguments
        stdin: Lines fed to the shell
        timeout: Maximum time to wait
    """
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(PROJECT_ROOT), str(SMOKE_DIR), env.get("PYTHONPATH", "")])
    env["CADENCE_MANTRA_ENABLED"] = "false"
    env["CADENCE_HISTORY_ENABLED"] = "false"
    env.pop("CADENCE_SCHEDULER_BACKEND", None)

    result = subprocess.run(
        [sys.executable, "-m", "cadence", *args],
        input=stdin,
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=timeout,
    )
    return result.returncode, result.stdout, result.stderr


class TestCLIHelp:
    """Test that help works."""

    def test_main_help(self):
        """--help should display the options and exit 0."""
        code, stdout, stderr = run_cadence("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "--library" in stdout
        assert "--backend" in stdout

    def test_help_inside_shell(self):
        code, stdout, stderr = run_cadence("--quiet", stdin="help\n")

        assert code == 0, stderr
        for name in ("open", "next", "score", "filter", "quit"):
            assert name in stdout


class TestSession:
    """Scripted sessions against the in-memory backend."""

    def test_end_of_input_exits_cleanly(self):
        code, stdout, stderr = run_cadence("--quiet", stdin="")

        assert code == 0, stderr
        assert "Error" not in stdout

    def test_banner_is_shown(self):
        code, stdout, _ = run_cadence(stdin="")

        assert code == 0
        assert "Cadence" in stdout

    def test_practice_session(self):
        script = "\n".join(
            [
                "# warm-up",
                "open ./music",
                "next",
                "score 4",
                "answer",
                "next",
                "quit",
            ]
        )
        code, stdout, stderr = run_cadence("--quiet", "--backend", MEMORY_BACKEND, stdin=script)

        assert code == 0, stderr
        assert "Successfully opened course library at ./music" in stdout
        assert "Exercise ID: music::scales::c_major" in stdout
        assert "Answer:" in stdout
        assert "[backend] score 4 for music::scales::c_major" in stdout
        assert "Exercise ID: music::scales::g_major" in stdout
        assert "Goodbye!" in stdout

    def test_library_option(self):
        code, stdout, stderr = run_cadence(
            "--quiet", "--backend", MEMORY_BACKEND, "--library", "music", stdin="current\nnext\n"
        )

        assert code == 0, stderr
        assert "Successfully opened course library at music" in stdout
        assert "Error: there is no current exercise" in stdout
        assert "Exercise ID: music::scales::c_major" in stdout

    def test_staged_score_submitted_at_end_of_input(self):
        code, stdout, _ = run_cadence(
            "--quiet", "--backend", MEMORY_BACKEND, stdin="open music\nnext\nscore 2\n"
        )

        assert code == 0
        assert "[backend] score 2 for music::scales::c_major" in stdout

    def test_errors_keep_the_shell_running(self):
        code, stdout, _ = run_cadence(
            "--quiet", "--backend", MEMORY_BACKEND, stdin="frobnicate\nnext\nmantra-count\n"
        )

        assert code == 0
        assert "No such command" in stdout
        assert "no course library is open" in stdout
        assert "Mantra count: 0" in stdout

    def test_no_backend_installed(self):
        code, stdout, _ = run_cadence("--quiet", stdin="open music\n")

        assert code == 0
        assert "cannot open course library" in stdout


class TestStartupFailures:
    def test_bad_backend_path(self):
        code, stdout, _ = run_cadence("--quiet", "--backend", "nowhere_to_be_found:Backend")

        assert code == 1
        assert "Cannot load scheduler backend" in stdout

    def test_bad_log_level(self):
        code, stdout, _ = run_cadence("--quiet", "--log-level", "loud")

        assert code == 1
        assert "Invalid configuration" in stdout
