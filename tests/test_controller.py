"""
Monitoring controller: file sessions, live scanning/analyzing, stop and rejection rules
"""
import os
import threading

import pytest

from aim_trainer_ai.core.controller import ControllerState, ControlResult, MonitoringController
from aim_trainer_ai.core.exceptions import CaptureTimeout, FrameDecodeError, ResourceAcquisitionError
from aim_trainer_ai.perception.frame_source import CaptureTarget
from aim_trainer_ai.perception.template_matcher import CROSSHAIRS

from conftest import FakeProbe, FakeSource, RecordingTrainer, make_frame, wait_for, write_template


@pytest.fixture
def assets(fast_config, crosshair_template):
    for game in ("valorant", "cs2"):
        write_template(os.path.join(fast_config.ASSETS_PATH, game), CROSSHAIRS, "reticle.png", crosshair_template)
    return fast_config.ASSETS_PATH


@pytest.fixture
def video_path(tmp_path):
    path = tmp_path / "valorant_round1.mp4"
    path.write_bytes(b"")
    return str(path)


class SourceFactory:
    """Hands out pre-built sources and remembers what it was asked for"""

    def __init__(self, make_source):
        self.make_source = make_source
        self.targets = []
        self.sources = []

    def __call__(self, target):
        self.targets.append(target)
        source = self.make_source()
        self.sources.append(source)
        return source


def make_controller(config, trainer=None, probe=None, factory=None):
    return MonitoringController(
        trainer=trainer or RecordingTrainer(),
        process_probe=probe or FakeProbe(),
        source_factory=factory,
        cfg=config,
    )


def live_frames(crosshair_template, count=4):
    return [make_frame([(crosshair_template, (40 + i, 60))], seed=i) for i in range(count)]


# ----------------------------------------------------------------------
# File mode
# ----------------------------------------------------------------------

def test_process_labels_every_frame(fast_config, assets, video_path, crosshair_template):
    positions = [(10, 10), (30, 40), (200, 100)]
    images = [make_frame([(crosshair_template, p)], seed=i) for i, p in enumerate(positions)]
    factory = SourceFactory(lambda: FakeSource(images))
    trainer = RecordingTrainer()
    controller = make_controller(fast_config, trainer=trainer, factory=factory)

    result = controller.process(video_path)

    assert result.success
    assert controller.state is ControllerState.IDLE
    assert factory.targets == [video_path]
    assert factory.sources[0].released
    assert len(trainer.batches) == 1
    assert [(s.crosshair_x, s.crosshair_y) for s in trainer.samples] == positions

    summary = controller.last_session_summary
    assert summary.frames_analyzed == 3
    assert summary.samples == 3
    assert summary.game == "valorant"
    assert summary.outcome == "end_of_stream"


def test_process_missing_file(fast_config, tmp_path):
    factory = SourceFactory(lambda: FakeSource([]))
    controller = make_controller(fast_config, factory=factory)

    result = controller.process(str(tmp_path / "valorant_missing.mp4"))

    assert not result.success
    assert "Invalid video path" in result.message
    assert factory.targets == []
    assert controller.state is ControllerState.IDLE


def test_process_unsupported_game(fast_config, tmp_path):
    path = tmp_path / "minecraft.mp4"
    path.write_bytes(b"")
    factory = SourceFactory(lambda: FakeSource([]))
    controller = make_controller(fast_config, factory=factory)

    result = controller.process(str(path))

    assert not result.success
    assert "Unsupported game" in result.message
    assert factory.targets == []


def test_process_explicit_game_overrides_file_name(fast_config, assets, tmp_path):
    path = tmp_path / "recording.mp4"
    path.write_bytes(b"")
    controller = make_controller(fast_config, factory=SourceFactory(lambda: FakeSource([make_frame()])))

    result = controller.process(str(path), game="CS2.exe")

    assert result.success
    assert controller.last_session_summary.game == "cs2"


def test_process_without_assets_labels_nothing(fast_config, video_path):
    trainer = RecordingTrainer()
    controller = make_controller(fast_config, trainer=trainer,
                                 factory=SourceFactory(lambda: FakeSource([make_frame(), make_frame()])))

    result = controller.process(video_path)

    assert result.success
    assert len(trainer.samples) == 2
    assert not any(s.has_crosshair or s.hit for s in trainer.samples)


def test_process_decode_failure_ends_session(fast_config, assets, video_path):
    images = [make_frame(), FrameDecodeError("corrupt packet")]
    factory = SourceFactory(lambda: FakeSource(images))
    trainer = RecordingTrainer()
    controller = make_controller(fast_config, trainer=trainer, factory=factory)

    result = controller.process(video_path)

    assert not result.success
    assert "corrupt packet" in result.message
    assert factory.sources[0].released
    assert controller.state is ControllerState.IDLE
    assert controller.last_session_summary.outcome == "failed"
    assert len(trainer.samples) == 1


def test_process_acquisition_failure(fast_config, assets, video_path):
    factory = SourceFactory(lambda: FakeSource([], open_error=ResourceAcquisitionError("no decoder")))
    controller = make_controller(fast_config, factory=factory)

    result = controller.process(video_path)

    assert not result.success
    assert controller.state is ControllerState.IDLE


def test_trainer_failure_does_not_fail_processing(fast_config, assets, video_path):
    def broken_trainer(samples):
        raise RuntimeError("disk full")

    controller = MonitoringController(
        trainer=broken_trainer,
        process_probe=FakeProbe(),
        source_factory=SourceFactory(lambda: FakeSource([make_frame()])),
        cfg=fast_config,
    )
    assert controller.process(video_path).success


def test_stop_cancels_file_session_from_another_thread(fast_config, assets, video_path):
    factory = SourceFactory(lambda: FakeSource([make_frame()], loop=True, delay=0.005))
    controller = make_controller(fast_config, factory=factory)
    results = []

    worker = threading.Thread(target=lambda: results.append(controller.process(video_path)))
    worker.start()
    assert wait_for(lambda: controller.state is ControllerState.ANALYZING)

    stop_result = controller.stop()
    worker.join(timeout=3.0)

    assert stop_result.success
    assert results[0].success
    assert "cancelled" in results[0].message
    assert factory.sources[0].released
    assert controller.state is ControllerState.IDLE


# ----------------------------------------------------------------------
# Live mode
# ----------------------------------------------------------------------

def test_stop_while_idle_is_noop(fast_config):
    controller = make_controller(fast_config)
    result = controller.stop()
    assert isinstance(result, ControlResult)
    assert result.success
    assert controller.state is ControllerState.IDLE


def test_start_rejects_unknown_game(fast_config):
    controller = make_controller(fast_config)
    result = controller.start("minecraft")
    assert not result.success
    assert controller.state is ControllerState.IDLE


def test_scanning_until_process_appears(fast_config, assets, crosshair_template):
    probe = FakeProbe(running=False)
    factory = SourceFactory(lambda: FakeSource(live_frames(crosshair_template), loop=True, delay=0.002))
    trainer = RecordingTrainer()
    controller = make_controller(fast_config, trainer=trainer, probe=probe, factory=factory)

    assert controller.start("valorant").success
    try:
        assert wait_for(lambda: len(probe.calls) >= 2)
        assert controller.state is ControllerState.SCANNING
        assert factory.targets == []
        assert set(probe.calls) == {"VALORANT.exe"}

        probe.running = True
        assert wait_for(lambda: controller.state is ControllerState.ANALYZING)
        assert wait_for(lambda: len(trainer.samples) >= 10)
        assert isinstance(factory.targets[0], CaptureTarget)
    finally:
        stop_result = controller.stop()

    assert stop_result.success
    assert controller.state is ControllerState.IDLE
    assert all(source.released for source in factory.sources)

    frames = [s.frame_index for s in trainer.samples]
    assert frames == sorted(frames)
    assert all(s.has_crosshair for s in trainer.samples)
    assert controller.last_session_summary.samples == len(trainer.samples)


def test_start_while_running_is_rejected(fast_config, assets):
    probe = FakeProbe(running=False)
    controller = make_controller(fast_config, probe=probe)

    assert controller.start("valorant").success
    try:
        second = controller.start("cs2")
        assert not second.success
        assert "already running" in second.message
        assert controller.is_running
        assert wait_for(lambda: len(probe.calls) >= 2)
        assert set(probe.calls) == {"VALORANT.exe"}
    finally:
        controller.stop()


def test_process_rejected_while_monitoring(fast_config, assets, video_path):
    controller = make_controller(fast_config, probe=FakeProbe(running=False))
    assert controller.start("valorant").success
    try:
        result = controller.process(video_path)
        assert not result.success
        assert controller.state is ControllerState.SCANNING
    finally:
        controller.stop()


def test_process_exit_returns_to_scanning(fast_config, assets, crosshair_template):
    probe = FakeProbe(running=True)
    factory = SourceFactory(lambda: FakeSource(live_frames(crosshair_template), loop=True, delay=0.002))
    trainer = RecordingTrainer()
    controller = make_controller(fast_config, trainer=trainer, probe=probe, factory=factory)

    assert controller.start("valorant").success
    try:
        assert wait_for(lambda: controller.state is ControllerState.ANALYZING)
        assert wait_for(lambda: len(trainer.samples) > 0)

        probe.running = False
        assert wait_for(lambda: controller.state is ControllerState.SCANNING)
        assert factory.sources[0].released

        probe.running = True
        assert wait_for(lambda: len(factory.sources) == 2)
        assert wait_for(lambda: controller.state is ControllerState.ANALYZING)
    finally:
        controller.stop()

    assert controller.state is ControllerState.IDLE


def test_live_waits_for_asset_folder(fast_config, crosshair_template):
    probe = FakeProbe(running=True)
    factory = SourceFactory(lambda: FakeSource(live_frames(crosshair_template), loop=True))
    controller = make_controller(fast_config, probe=probe, factory=factory)

    assert controller.start("fortnite").success
    try:
        assert wait_for(lambda: len(probe.calls) >= 3)
        assert controller.state is ControllerState.SCANNING
        assert factory.targets == []
        assert "no assets" in controller.status
    finally:
        controller.stop()


def test_capture_timeouts_are_recoverable(fast_config, assets, crosshair_template):
    images = [CaptureTimeout("slow")] * 4 + live_frames(crosshair_template, count=2)
    factory = SourceFactory(lambda: FakeSource(images, loop=True, delay=0.002))
    trainer = RecordingTrainer()
    controller = make_controller(fast_config, trainer=trainer, probe=FakeProbe(running=True), factory=factory)

    assert controller.start("valorant").success
    try:
        assert wait_for(lambda: len(trainer.samples) >= 5)
        snapshot = controller.session_snapshot()
        assert snapshot.capture_timeouts >= 4
        assert controller.state is ControllerState.ANALYZING
    finally:
        controller.stop()


def test_acquisition_failure_ends_live_session(fast_config, assets):
    factory = SourceFactory(lambda: FakeSource([], open_error=ResourceAcquisitionError("no capture device")))
    controller = make_controller(fast_config, probe=FakeProbe(running=True), factory=factory)

    assert controller.start("valorant").success
    assert controller.wait(timeout=3.0)

    assert controller.state is ControllerState.IDLE
    assert controller.last_session_summary.outcome == "failed"
    assert "no capture device" in controller.status


def test_stop_from_trainer_callback_does_not_deadlock(fast_config, assets, crosshair_template):
    holder = {}

    def stopping_trainer(samples):
        holder["result"] = holder["controller"].stop()

    factory = SourceFactory(lambda: FakeSource(live_frames(crosshair_template), loop=True))
    controller = MonitoringController(
        trainer=stopping_trainer,
        process_probe=FakeProbe(running=True),
        source_factory=factory,
        cfg=fast_config,
    )
    holder["controller"] = controller

    assert controller.start("valorant").success
    assert controller.wait(timeout=3.0)
    assert holder["result"].success
    assert controller.state is ControllerState.IDLE
