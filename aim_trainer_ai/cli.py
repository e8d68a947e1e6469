"""
Command line front end for the monitoring controller
process a recording, monitor a game live, or drive both from an interactive shell
"""
import sys
import shlex
import logging
import argparse
from dataclasses import replace
from typing import List, Optional

from aim_trainer_ai import __version__
from aim_trainer_ai.config import Config, config
from aim_trainer_ai.config.games import SUPPORTED_GAMES
from aim_trainer_ai.core.controller import ControlResult, MonitoringController
from aim_trainer_ai.learning.training_sink import JsonSampleExporter
from aim_trainer_ai.utils.logger import setup_logger
from aim_trainer_ai.utils.process_utils import running_process_names
from aim_trainer_ai.utils.time_utils import format_duration

logger = logging.getLogger(__name__)

SHELL_HELP = """Commands:
  process <video> [game]   label a recorded video
  start <game>             monitor a game live (valorant, fortnite, cs2)
  stop                     stop the running session
  status                   show controller state
  exit                     stop and quit"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aim-trainer-ai",
        description="Label FPS gameplay frames (crosshair position, hits) for aim training",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--assets", type=str, help="Template root folder (assets/<game>/<category>)")
    parser.add_argument("--output", type=str, help="Directory for exported training samples")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    process_parser = subparsers.add_parser("process", help="Label a recorded video")
    process_parser.add_argument("video", type=str, help="Path to the recording")
    process_parser.add_argument("--game", type=str, help="Game key (detected from the file name by default)")

    start_parser = subparsers.add_parser("start", help="Monitor a game live until Ctrl+C")
    start_parser.add_argument("game", type=str, choices=sorted(SUPPORTED_GAMES), help="Game to monitor")

    subparsers.add_parser("shell", help="Interactive command loop")
    return parser


def build_config(args: argparse.Namespace) -> Config:
    overrides = {}
    if args.assets:
        overrides["ASSETS_PATH"] = args.assets
    if args.output:
        overrides["DATA_SAVE_PATH"] = args.output
    if args.verbose:
        overrides["DETAILED_LOGGING"] = True
    return replace(config, **overrides) if overrides else config


def report(result: ControlResult) -> int:
    if result.success:
        print(result.message)
        return 0
    print(f"ERROR: {result.message}", file=sys.stderr)
    return 1


def print_status(controller: MonitoringController):
    print(f"State:  {controller.state.value}")
    print(f"Status: {controller.status}")

    snapshot = controller.session_snapshot()
    if snapshot is not None:
        print(f"Session: {snapshot.game} - {snapshot.frames_analyzed} frames, "
              f"{snapshot.hits} hits, {snapshot.capture_timeouts} capture timeouts, "
              f"{format_duration(snapshot.duration)}")
    elif controller.last_session_summary is not None:
        last = controller.last_session_summary
        print(f"Last session: {last.game} ({last.outcome}) - {last.frames_analyzed} frames, "
              f"{last.hits} hits in {format_duration(last.duration)}")

    running = {name.lower() for name in running_process_names()}
    games = [game for game, exe in SUPPORTED_GAMES.items() if exe.lower() in running]
    print(f"Games running: {', '.join(games) if games else 'none'}")


def run_live(controller: MonitoringController, game: str) -> int:
    """Monitor until Ctrl+C or until the session ends on its own"""
    result = controller.start(game)
    if not result.success:
        return report(result)
    print(result.message)
    print("Press Ctrl+C to stop")

    try:
        while not controller.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        print("\nStopping...")
        return report(controller.stop())

    summary = controller.last_session_summary
    if summary is not None and summary.outcome == "failed":
        print(f"ERROR: {controller.status}", file=sys.stderr)
        return 1
    return 0


def run_shell(controller: MonitoringController, stdin=None) -> int:
    """
    Interactive command loop

    Args:
        controller: Controller the commands are sent to
        stdin: Line source (defaults to sys.stdin)

    Returns:
        Exit code
    """
    stdin = stdin or sys.stdin
    print("Aim Trainer AI console. Type 'help' for commands.")

    while True:
        print("> ", end="", flush=True)
        line = stdin.readline()
        if not line:
            break
        try:
            parts = shlex.split(line)
        except ValueError as e:
            print(f"ERROR: {e}")
            continue
        if not parts:
            continue

        command, args = parts[0].lower(), parts[1:]
        if command in ("exit", "quit"):
            break
        elif command == "help":
            print(SHELL_HELP)
        elif command == "process" and args:
            report(controller.process(args[0], args[1] if len(args) > 1 else None))
        elif command == "start" and args:
            report(controller.start(args[0]))
        elif command == "stop":
            report(controller.stop())
        elif command == "status":
            print_status(controller)
        else:
            print(f"Unknown command: {line.strip()}")
            print(SHELL_HELP)

    if controller.is_running:
        controller.stop()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    cfg = build_config(args)
    setup_logger("aim_trainer_ai", cfg)

    controller = MonitoringController(
        trainer=JsonSampleExporter(cfg.DATA_SAVE_PATH),
        cfg=cfg,
    )
    logger.debug(f"Assets: {controller.assets_root}, output: {cfg.DATA_SAVE_PATH}")

    if args.command == "process":
        return report(controller.process(args.video, args.game))
    if args.command == "start":
        return run_live(controller, args.game)
    return run_shell(controller)


if __name__ == "__main__":
    sys.exit(main())
