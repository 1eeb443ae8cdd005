"""Tests for the Directus process launcher."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from keystone.config import Settings
from keystone.launcher import build_command, launch


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, port=8055, directus_root=str(tmp_path), node_binary="/usr/bin/node")


class TestBuildCommand:
    """Tests for the child argv."""

    def test_node_mode(self, settings, tmp_path):
        assert build_command(settings) == [
            "/usr/bin/node",
            str(Path(tmp_path) / "node_modules" / "directus" / "cli.js"),
            "start",
        ]

    def test_bin_mode(self, settings, tmp_path):
        settings.launcher_mode = "bin"
        assert build_command(settings) == [str(Path(tmp_path) / "node_modules" / ".bin" / "directus"), "start"]

    def test_unknown_mode(self, settings):
        settings.launcher_mode = "docker"
        with pytest.raises(ValueError, match="docker"):
            build_command(settings)


class TestLaunch:
    """Tests for running the child process."""

    def test_returns_child_exit_code(self, settings):
        process = MagicMock()
        process.wait.return_value = 3

        with patch("keystone.launcher.subprocess.Popen", return_value=process) as popen:
            assert launch(settings) == 3

        args, kwargs = popen.call_args
        assert args[0] == build_command(settings)
        assert kwargs["env"]["PORT"] == "8055"
        assert kwargs["env"]["HOST"] == "0.0.0.0"
        # stdio is inherited: no pipes are requested
        assert "stdout" not in kwargs
        assert "stderr" not in kwargs

    def test_clean_exit(self, settings):
        process = MagicMock()
        process.wait.return_value = 0

        with patch("keystone.launcher.subprocess.Popen", return_value=process):
            assert launch(settings) == 0

    def test_spawn_failure(self, settings):
        with patch("keystone.launcher.subprocess.Popen", side_effect=FileNotFoundError("node")):
            assert launch(settings) == 1

    def test_interrupt_terminates_child(self, settings):
        process = MagicMock()
        process.wait.side_effect = [KeyboardInterrupt(), -15]

        with patch("keystone.launcher.subprocess.Popen", return_value=process):
            assert launch(settings) == -15

        process.terminate.assert_called_once()
