"""
Command line front end: argument handling, exit codes and the interactive shell
"""
import io
import logging

import pytest

from aim_trainer_ai import cli
from aim_trainer_ai.core.controller import ControllerState, ControlResult


class StubController:
    """Records the commands the shell sends"""

    def __init__(self):
        self.calls = []
        self.state = ControllerState.IDLE
        self.status = "Idle"
        self.last_session_summary = None

    @property
    def is_running(self):
        return self.state is not ControllerState.IDLE

    def session_snapshot(self):
        return None

    def process(self, path, game=None):
        self.calls.append(("process", path, game))
        return ControlResult(True, "Processed")

    def start(self, game):
        self.calls.append(("start", game))
        self.state = ControllerState.SCANNING
        return ControlResult(True, "Monitoring started")

    def stop(self):
        self.calls.append(("stop",))
        self.state = ControllerState.IDLE
        return ControlResult(True, "Stopped")


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield
    # main() installs handlers on the package logger; don't leak them into other tests
    package_logger = logging.getLogger("aim_trainer_ai")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_process_missing_video_fails(tmp_path, capsys):
    code = cli.main(["--output", str(tmp_path / "out"), "process", str(tmp_path / "valorant.mp4")])
    assert code == 1
    assert "Invalid video path" in capsys.readouterr().err


def test_start_rejects_unsupported_game():
    with pytest.raises(SystemExit):
        cli.main(["start", "minecraft"])


def test_build_config_applies_overrides(tmp_path):
    args = cli.build_parser().parse_args(["--assets", "a", "--output", "o", "-v", "shell"])
    cfg = cli.build_config(args)
    assert (cfg.ASSETS_PATH, cfg.DATA_SAVE_PATH, cfg.DETAILED_LOGGING) == ("a", "o", True)


def test_report_exit_codes(capsys):
    assert cli.report(ControlResult(True, "fine")) == 0
    assert cli.report(ControlResult(False, "broken")) == 1
    captured = capsys.readouterr()
    assert "fine" in captured.out
    assert "ERROR: broken" in captured.err


def test_shell_dispatches_commands(capsys):
    controller = StubController()
    commands = io.StringIO('process "my clips/valorant 1.mp4"\nprocess clip.mp4 cs2\nstart valorant\nstatus\nstop\nexit\n')

    assert cli.run_shell(controller, stdin=commands) == 0

    assert controller.calls == [
        ("process", "my clips/valorant 1.mp4", None),
        ("process", "clip.mp4", "cs2"),
        ("start", "valorant"),
        ("stop",),
    ]
    assert "State:  scanning" in capsys.readouterr().out


def test_shell_stops_running_session_on_exit():
    controller = StubController()
    cli.run_shell(controller, stdin=io.StringIO("start cs2\n"))
    assert controller.calls[-1] == ("stop",)


def test_shell_unknown_command(capsys):
    cli.run_shell(StubController(), stdin=io.StringIO("jump\nexit\n"))
    assert "Unknown command: jump" in capsys.readouterr().out
