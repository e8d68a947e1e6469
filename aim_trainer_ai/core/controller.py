"""
Monitoring Controller: the Idle / Scanning / Analyzing state machine
File mode runs synchronously on the caller's thread, live mode on one daemon worker
"""
import os
import time
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from aim_trainer_ai.config import Config, config as default_config
from aim_trainer_ai.config.games import (
    asset_folder,
    detect_game_from_path,
    process_name_for,
    resolve_game,
)
from aim_trainer_ai.core.exceptions import (
    AimTrainerError,
    CaptureTimeout,
    InvalidInputError,
)
from aim_trainer_ai.core.session import Session, SessionMode, SessionSummary
from aim_trainer_ai.learning.training_sink import JsonSampleExporter, Trainer
from aim_trainer_ai.perception.frame_source import (
    CaptureTarget,
    FrameSource,
    create_source,
)
from aim_trainer_ai.perception.template_matcher import TemplateMatcher
from aim_trainer_ai.utils.process_utils import is_process_running
from aim_trainer_ai.utils.time_utils import FPSCounter, format_duration

logger = logging.getLogger(__name__)

# Executable name -> is it running
ProcessProbe = Callable[[str], bool]
# Video path or capture target -> unopened frame source
SourceFactory = Callable[[Union[str, CaptureTarget]], FrameSource]

END_OF_STREAM = "end_of_stream"
CANCELLED = "cancelled"
TARGET_LOST = "target_lost"
FAILED = "failed"


class ControllerState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ANALYZING = "analyzing"


@dataclass(frozen=True)
class ControlResult:
    """Outcome of a control request"""
    success: bool
    message: str

    def __bool__(self) -> bool:
        return self.success


class MonitoringController:
    """
    Owns at most one session at a time.

    process() labels a recorded video and returns once it is done.
    start() spawns a worker that waits for the game process (Scanning), captures
    and labels the screen while it runs (Analyzing) and goes back to Scanning
    when it exits. stop() cancels either and waits for resources to be released.
    """

    def __init__(
        self,
        trainer: Optional[Trainer] = None,
        process_probe: Optional[ProcessProbe] = None,
        source_factory: Optional[SourceFactory] = None,
        capture_target: Optional[CaptureTarget] = None,
        assets_root: Optional[str] = None,
        cfg: Optional[Config] = None
    ):
        self.config = cfg or default_config
        self.trainer = trainer or JsonSampleExporter(self.config.DATA_SAVE_PATH)
        self.process_probe = process_probe or is_process_running
        self.source_factory = source_factory or create_source
        self.capture_target = capture_target or CaptureTarget(
            monitor=self.config.CAPTURE_MONITOR,
            backend=self.config.CAPTURE_BACKEND,
            interval=self.config.CAPTURE_INTERVAL,
        )
        self.assets_root = assets_root if assets_root is not None else self.config.ASSETS_PATH

        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._state = ControllerState.IDLE
        self._status = "Idle"
        self._session: Optional[Session] = None
        self._last_summary: Optional[SessionSummary] = None

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def status(self) -> str:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._state is not ControllerState.IDLE

    @property
    def last_session_summary(self) -> Optional[SessionSummary]:
        return self._last_summary

    def session_snapshot(self) -> Optional[SessionSummary]:
        """Summary of the running session so far, None when idle"""
        session = self._session
        return session.summary() if session is not None else None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the controller is Idle

        Returns:
            True if Idle was reached within timeout
        """
        return self._idle.wait(timeout)

    # ------------------------------------------------------------------
    # Control requests
    # ------------------------------------------------------------------

    def process(self, video_path: str, game: Optional[str] = None) -> ControlResult:
        """
        Label every frame of a recorded video and hand the samples to the trainer

        Args:
            video_path: Path to the recording
            game: Game key; detected from the path when omitted

        Returns:
            ControlResult, failure on invalid input, busy controller or decode failure
        """
        try:
            if not video_path or not os.path.isfile(video_path):
                raise InvalidInputError(f"Invalid video path: {video_path}")
            game = resolve_game(game) if game else detect_game_from_path(video_path)
            folder = asset_folder(game, self.assets_root)
        except InvalidInputError as e:
            logger.error(str(e))
            return ControlResult(False, str(e))

        session = self._begin(SessionMode.FILE, game, video_path)
        if session is None:
            return self._busy()
        session.owner = threading.current_thread()

        try:
            matcher = self._load_templates(folder)
            self._set_state(session, ControllerState.ANALYZING,
                            f"Processing {os.path.basename(video_path)} ({game})")
            outcome = self._analyze(session, self.source_factory(video_path), matcher)
        except AimTrainerError as e:
            session.error_handler.record_error(e, "file")
            return self._fail(session, e)
        except Exception as e:
            logger.error(f"Unexpected error while processing {video_path}: {e}", exc_info=True)
            return self._fail(session, e)

        session.hand_off()
        summary = self._finish(session, outcome)
        if outcome == CANCELLED:
            return ControlResult(True, f"Processing cancelled after {summary.frames_analyzed} frames")
        return ControlResult(
            True,
            f"Processed {summary.frames_analyzed} frames, {summary.hits} hits "
            f"in {format_duration(summary.duration)}"
        )

    def start(self, game: str) -> ControlResult:
        """
        Start monitoring for a game process in the background

        Returns:
            ControlResult, failure on unsupported game or when already running
        """
        try:
            game = resolve_game(game)
        except InvalidInputError as e:
            logger.error(str(e))
            return ControlResult(False, str(e))

        process_name = process_name_for(game)
        session = self._begin(SessionMode.LIVE, game, process_name)
        if session is None:
            return self._busy()

        thread = threading.Thread(
            target=self._monitor_loop,
            args=(session,),
            name=f"monitor-{game}",
            daemon=True,
        )
        session.thread = thread
        session.owner = thread
        thread.start()
        logger.info(f"Monitoring started for {game} ({process_name})")
        return ControlResult(True, f"Monitoring started for {game}")

    def stop(self) -> ControlResult:
        """
        Cancel the running session and wait until its resources are released.
        Stopping an idle controller is a no-op.
        """
        with self._lock:
            session = self._session
        if session is None:
            return ControlResult(True, "Not running")

        logger.info("Stop requested")
        session.cancel()

        # A trainer callback may call stop() from inside the session
        if session.owner is threading.current_thread():
            return ControlResult(True, "Stop requested")

        if not self._idle.wait(self.config.STOP_JOIN_TIMEOUT):
            logger.warning(f"Session did not stop within {self.config.STOP_JOIN_TIMEOUT}s")
            return ControlResult(False, "Stop requested but the session is still releasing resources")

        if session.thread is not None:
            session.thread.join(timeout=self.config.STOP_JOIN_TIMEOUT)
        return ControlResult(True, "Stopped")

    # ------------------------------------------------------------------
    # Session bookkeeping
    # ------------------------------------------------------------------

    def _busy(self) -> ControlResult:
        message = f"A session is already running ({self._state.value})"
        logger.warning(message)
        return ControlResult(False, message)

    def _fail(self, session: Session, error: Exception) -> ControlResult:
        # Frames labelled before the failure are still valid samples
        session.hand_off()
        message = f"Processing failed: {error}"
        self._finish(session, FAILED, message)
        return ControlResult(False, message)

    def _begin(self, mode: SessionMode, game: str, target: str) -> Optional[Session]:
        with self._lock:
            if self._state is not ControllerState.IDLE:
                return None
            session = Session(mode, game, target, self.trainer, self.config)
            self._session = session
            self._idle.clear()
            if mode is SessionMode.LIVE:
                self._state = ControllerState.SCANNING
                self._status = f"Scanning for {target}..."
            else:
                self._state = ControllerState.ANALYZING
                self._status = f"Processing {os.path.basename(target)}"
        return session

    def _set_state(self, session: Session, state: ControllerState, status: str):
        with self._lock:
            if self._session is not session:
                return
            if state is not self._state:
                logger.info(f"State: {self._state.value} -> {state.value}")
            self._state = state
            self._status = status

    def _set_status(self, session: Session, status: str):
        with self._lock:
            if self._session is session:
                self._status = status

    def _finish(self, session: Session, outcome: str, status: Optional[str] = None) -> SessionSummary:
        session.finish(outcome)
        summary = session.summary()
        with self._lock:
            if self._session is session:
                self._session = None
                self._last_summary = summary
                if self._state is not ControllerState.IDLE:
                    logger.info(f"State: {self._state.value} -> idle")
                self._state = ControllerState.IDLE
                self._status = status or f"Idle (last session: {outcome})"
                self._idle.set()
        logger.info(
            f"Session finished ({outcome}): {summary.frames_analyzed} frames, "
            f"{summary.samples} samples, {summary.hits} hits, "
            f"{summary.capture_timeouts} capture timeouts, {format_duration(summary.duration)}"
        )
        if session.handoff_failures:
            logger.warning(f"{session.handoff_failures} sample batches were rejected by the trainer")
        errors = session.error_handler.get_error_stats()
        if errors['total_errors']:
            logger.debug(f"Session error stats: {errors}")
        return summary

    def _load_templates(self, folder: str) -> TemplateMatcher:
        if not os.path.isdir(folder):
            logger.warning(f"Asset folder not found: {folder} - every detection will be negative")
        return TemplateMatcher.load(folder, threshold=self.config.TEMPLATE_MATCH_THRESHOLD)

    # ------------------------------------------------------------------
    # Analysis loops
    # ------------------------------------------------------------------

    def _analyze(self, session: Session, source: FrameSource, matcher: TemplateMatcher,
                 process_name: Optional[str] = None) -> str:
        """
        Feed frames from source through a fresh analyzer until it ends

        Args:
            session: Running session
            source: Unopened frame source, released on every exit path
            matcher: Templates for the session's game
            process_name: Live mode only - analysis ends when this process exits

        Returns:
            END_OF_STREAM, CANCELLED or TARGET_LOST
        """
        analyzer = session.begin_analysis(matcher)
        live = process_name is not None
        fps = FPSCounter(window_size=30)
        next_probe = time.monotonic() + self.config.SCAN_INTERVAL

        with source:
            total = getattr(source, "frame_count", 0) if not live else 0
            step = max(1, total * self.config.PROGRESS_LOG_PERCENT // 100) if total else 0

            while True:
                if session.cancelled:
                    return CANCELLED

                if live and time.monotonic() >= next_probe:
                    next_probe = time.monotonic() + self.config.SCAN_INTERVAL
                    if not self.process_probe(process_name):
                        return TARGET_LOST

                try:
                    frame = source.next_frame()
                except CaptureTimeout as e:
                    session.error_handler.record_error(e, "capture")
                    stall = session.error_handler.stall_message()
                    if stall:
                        self._set_status(session, stall)
                    continue

                if frame is None:
                    return END_OF_STREAM

                if session.error_handler.capture_stalled:
                    self._set_status(session, f"Analyzing {session.target}")
                session.error_handler.record_success()

                try:
                    sample = analyzer.analyze(frame)
                except Exception as e:
                    # one bad frame is skipped; a burst of them ends the session
                    if session.error_handler.record_error(e, f"analysis of frame {frame.index}"):
                        raise
                    continue

                session.sink.append(sample)
                fps.tick()

                if step and analyzer.frames_analyzed % step == 0:
                    percent = min(100, analyzer.frames_analyzed * 100 // total)
                    logger.info(f"Progress: {percent}% ({analyzer.frames_analyzed}/{total} frames)")
                    self._set_status(session, f"Processing {os.path.basename(session.target)}: {percent}%")

                if live and session.sink.pending >= self.config.LIVE_HANDOFF_BATCH_SIZE:
                    current_fps = fps.get_fps()
                    if current_fps:
                        logger.debug(f"Live analysis at {current_fps:.1f} FPS")
                    session.hand_off()

    def _monitor_loop(self, session: Session):
        """Worker body for live mode. Nothing raised here may escape the thread."""
        process_name = session.target
        folder = asset_folder(session.game, self.assets_root)
        outcome = CANCELLED
        status = None

        try:
            while not session.cancelled:
                if not self.process_probe(process_name):
                    self._set_state(session, ControllerState.SCANNING, f"Scanning for {process_name}...")
                    session.cancel_event.wait(self.config.SCAN_INTERVAL)
                    continue
                if not os.path.isdir(folder):
                    self._set_state(session, ControllerState.SCANNING,
                                    f"{process_name} running but no assets in {folder}")
                    logger.debug(f"Waiting for asset folder {folder}")
                    session.cancel_event.wait(self.config.SCAN_INTERVAL)
                    continue

                logger.info(f"Detected {process_name}, starting analysis")
                matcher = self._load_templates(folder)
                self._set_state(session, ControllerState.ANALYZING, f"Analyzing {process_name}")
                try:
                    reason = self._analyze(session, self.source_factory(self.capture_target),
                                           matcher, process_name=process_name)
                finally:
                    session.hand_off()

                if reason == TARGET_LOST:
                    logger.info(f"{process_name} exited, resuming scan")
        except AimTrainerError as e:
            session.error_handler.record_error(e, "live")
            outcome = FAILED
            status = f"Monitoring stopped: {e}"
        except Exception as e:
            logger.error(f"Monitoring worker crashed: {e}", exc_info=True)
            outcome = FAILED
            status = f"Monitoring stopped: {e}"
        finally:
            self._finish(session, outcome, status)
