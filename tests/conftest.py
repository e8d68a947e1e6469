"""
Shared fixtures: synthetic frames, templates, fake frame sources and process probes
"""
import os
import time
import threading

import cv2
import numpy as np
import pytest

from aim_trainer_ai.config import Config
from aim_trainer_ai.perception.frame_source import Frame, FrameSource

FRAME_WIDTH = 320
FRAME_HEIGHT = 240
TEMPLATE_SIZE = 16


def make_template(seed: int, size: int = TEMPLATE_SIZE) -> np.ndarray:
    """Textured gray template; flat patches don't correlate meaningfully"""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(size, size), dtype=np.uint8)


def make_frame(placements=(), seed: int = 0, width: int = FRAME_WIDTH,
               height: int = FRAME_HEIGHT, color: bool = True) -> np.ndarray:
    """
    Low-contrast noise background with templates pasted at top-left positions

    Args:
        placements: iterable of (template, (x, y))
        seed: background noise seed
    """
    rng = np.random.default_rng(1000 + seed)
    gray = rng.integers(100, 140, size=(height, width), dtype=np.uint8)
    for template, (x, y) in placements:
        h, w = template.shape[:2]
        gray[y:y + h, x:x + w] = template
    if color:
        return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
    return gray


def write_template(folder, category: str, name: str, template: np.ndarray) -> str:
    path = os.path.join(str(folder), *category.split("/"))
    os.makedirs(path, exist_ok=True)
    filepath = os.path.join(path, name)
    assert cv2.imwrite(filepath, template)
    return filepath


class FakeSource(FrameSource):
    """
    In-memory frame source.
    Finite when built from a list of images; loop=True repeats them forever
    (live capture). Entries that are exceptions are raised from next_frame().
    """

    def __init__(self, images, loop: bool = False, delay: float = 0.0, open_error: Exception = None):
        self.images = list(images)
        self.loop = loop
        self.delay = delay
        self.open_error = open_error
        self.opened = False
        self.released = False
        self.open_count = 0
        self._position = 0
        self._index = 0

    @property
    def is_open(self) -> bool:
        return self.opened and not self.released

    def open(self) -> "FakeSource":
        if self.open_error is not None:
            raise self.open_error
        self.opened = True
        self.released = False
        self.open_count += 1
        return self

    def next_frame(self):
        if self.delay:
            time.sleep(self.delay)
        if self._position >= len(self.images):
            if not self.loop or not self.images:
                return None
            self._position = 0
        item = self.images[self._position]
        self._position += 1
        if isinstance(item, Exception):
            raise item
        frame = Frame(image=item, index=self._index, timestamp=self._index / 30.0)
        self._index += 1
        return frame

    def release(self) -> None:
        self.released = True


class FakeProbe:
    """Process probe whose answer the test flips"""

    def __init__(self, running: bool = False):
        self.running = running
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, process_name: str) -> bool:
        with self._lock:
            self.calls.append(process_name)
        return self.running


class RecordingTrainer:
    """Trainer that keeps every batch it is handed"""

    def __init__(self):
        self.batches = []
        self._lock = threading.Lock()

    def __call__(self, samples):
        with self._lock:
            self.batches.append(list(samples))

    @property
    def samples(self):
        with self._lock:
            return [s for batch in self.batches for s in batch]


def wait_for(predicate, timeout: float = 3.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def fast_config(tmp_path):
    return Config(
        ASSETS_PATH=str(tmp_path / "assets"),
        SCAN_INTERVAL=0.02,
        CAPTURE_INTERVAL=0.01,
        LIVE_HANDOFF_BATCH_SIZE=5,
        STOP_JOIN_TIMEOUT=3.0,
        CAPTURE_TIMEOUT_WARN_STREAK=3,
        DATA_SAVE_PATH=str(tmp_path / "data"),
        LOG_PATH=str(tmp_path / "logs"),
    )


@pytest.fixture
def crosshair_template():
    return make_template(seed=1)


@pytest.fixture
def hit_marker_template():
    return make_template(seed=2)


@pytest.fixture
def outline_template():
    return make_template(seed=3)
