"""
Frame Sources: recorded video files and live screen capture
One contract for both - next_frame() returns a Frame, or None at end of stream
"""
import os
import time
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import cv2
import numpy as np
import mss
import mss.exception

from aim_trainer_ai.config import config
from aim_trainer_ai.core.exceptions import (
    CaptureTimeout,
    FrameDecodeError,
    InvalidInputError,
    ResourceAcquisitionError,
)
from aim_trainer_ai.utils.time_utils import CadenceTimer

logger = logging.getLogger(__name__)

try:
    import dxcam
    DXCAM_AVAILABLE = True
except ImportError:
    logger.debug("DXCam not available, live capture will use mss")
    DXCAM_AVAILABLE = False


@dataclass
class Frame:
    """A single decoded or captured image plus its position in the stream"""
    image: np.ndarray
    index: int
    timestamp: float

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def channels(self) -> int:
        return 1 if self.image.ndim == 2 else int(self.image.shape[2])


@dataclass(frozen=True)
class CaptureTarget:
    """Live capture handle description: which monitor/region, which backend, what cadence"""
    monitor: int = 1
    region: Optional[Tuple[int, int, int, int]] = None  # (left, top, width, height)
    backend: str = "auto"
    interval: float = 0.03

    @classmethod
    def from_config(cls) -> "CaptureTarget":
        return cls(
            monitor=config.CAPTURE_MONITOR,
            backend=config.CAPTURE_BACKEND,
            interval=config.CAPTURE_INTERVAL,
        )


class FrameSource(ABC):
    """
    Base class for everything that produces frames.
    Use as a context manager so the underlying handle is released on every exit path.
    """

    @abstractmethod
    def open(self) -> "FrameSource":
        """Acquire the decoder/capture handle"""

    @abstractmethod
    def next_frame(self) -> Optional[Frame]:
        """Next frame in sequence, or None at end of stream"""

    @abstractmethod
    def release(self) -> None:
        """Release the handle. Safe to call more than once."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    def __iter__(self) -> Iterator[Frame]:
        while True:
            frame = self.next_frame()
            if frame is None:
                return
            yield frame


class VideoFileSource(FrameSource):
    """Decodes a recorded video with cv2.VideoCapture, frames indexed from 0"""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        self.capture: Optional[cv2.VideoCapture] = None
        self.frame_count = 0
        self.fps = 0.0
        self._next_index = 0
        self._exhausted = False

    @property
    def is_open(self) -> bool:
        return self.capture is not None

    def open(self) -> "VideoFileSource":
        if self.capture is not None:
            return self

        if not os.path.isfile(self.path):
            raise InvalidInputError(f"Invalid video path: {self.path}")

        capture = cv2.VideoCapture(self.path)
        if not capture.isOpened():
            capture.release()
            raise ResourceAcquisitionError(f"Could not open video decoder for {self.path}")

        self.capture = capture
        self.frame_count = max(0, int(capture.get(cv2.CAP_PROP_FRAME_COUNT)))
        self.fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
        self._next_index = 0
        self._exhausted = False
        logger.info(f"Opened {os.path.basename(self.path)}: {self.frame_count} frames @ {self.fps:.1f} FPS")
        return self

    def next_frame(self) -> Optional[Frame]:
        if self._exhausted:
            return None
        if self.capture is None:
            raise ResourceAcquisitionError("Video source is not open")

        try:
            ok, image = self.capture.read()
        except cv2.error as e:
            self.release()
            raise FrameDecodeError(f"Decode failed at frame {self._next_index} of {self.path}: {e}") from e

        if not ok or image is None or image.size == 0:
            logger.debug(f"End of stream after {self._next_index} frames")
            self._exhausted = True
            self.release()
            return None

        timestamp = self.capture.get(cv2.CAP_PROP_POS_MSEC) / 1000.0
        frame = Frame(image=image, index=self._next_index, timestamp=timestamp)
        self._next_index += 1
        return frame

    def release(self) -> None:
        if self.capture is not None:
            self.capture.release()
            self.capture = None
            logger.debug(f"Released decoder for {self.path}")


class ScreenCaptureSource(FrameSource):
    """
    Live capture of the display at a fixed cadence.
    Uses DXCam (desktop duplication) when available, otherwise mss.
    """

    POLL_SLEEP = 0.002

    def __init__(self, target: Optional[CaptureTarget] = None):
        self.target = target or CaptureTarget.from_config()
        self.backend: Optional[str] = None
        self.camera = None
        self.sct = None
        self.region = None
        self.cadence = CadenceTimer(self.target.interval)
        self._next_index = 0
        self._start_time = 0.0

    @property
    def is_open(self) -> bool:
        return self.camera is not None or self.sct is not None

    def _choose_backend(self) -> str:
        wanted = self.target.backend
        if wanted == "dxcam" and not DXCAM_AVAILABLE:
            raise ResourceAcquisitionError("DXCam backend requested but dxcam is not installed")
        if wanted == "auto":
            return "dxcam" if DXCAM_AVAILABLE else "mss"
        return wanted

    def open(self) -> "ScreenCaptureSource":
        if self.is_open:
            return self

        backend = self._choose_backend()
        try:
            if backend == "dxcam":
                self._init_dxcam()
            else:
                self._init_mss()
        except ResourceAcquisitionError:
            self.release()
            raise
        except Exception as e:
            # Partially acquired handles must not leak
            self.release()
            raise ResourceAcquisitionError(f"{backend} initialization failed: {e}") from e

        self.backend = backend
        self.cadence.reset()
        self._next_index = 0
        self._start_time = time.monotonic()
        logger.info(f"Screen capture opened ({backend}, every {self.target.interval * 1000:.0f} ms)")
        return self

    def _init_dxcam(self):
        """Initialize DXCam for high-speed capture"""
        self.camera = dxcam.create(output_idx=max(0, self.target.monitor - 1), output_color="BGR")
        if self.camera is None:
            raise ResourceAcquisitionError("dxcam.create returned no camera")
        if self.target.region:
            left, top, width, height = self.target.region
            self.region = (left, top, left + width, top + height)

    def _init_mss(self):
        """Portable capture through mss"""
        self.sct = mss.mss()
        monitors = self.sct.monitors
        if self.target.monitor >= len(monitors):
            raise ResourceAcquisitionError(
                f"Monitor {self.target.monitor} not found ({len(monitors) - 1} available)"
            )
        if self.target.region:
            left, top, width, height = self.target.region
            self.region = {"left": left, "top": top, "width": width, "height": height}
        else:
            monitor = monitors[self.target.monitor]
            self.region = {
                "left": monitor["left"],
                "top": monitor["top"],
                "width": monitor["width"],
                "height": monitor["height"],
            }

    def _grab(self) -> Optional[np.ndarray]:
        if self.camera is not None:
            # None means no new frame since the last grab
            return self.camera.grab(region=self.region)

        try:
            shot = self.sct.grab(self.region)
        except mss.exception.ScreenShotError as e:
            logger.debug(f"mss grab failed: {e}")
            return None
        return cv2.cvtColor(np.asarray(shot), cv2.COLOR_BGRA2BGR)

    def next_frame(self) -> Optional[Frame]:
        """
        Grab a frame for the pending capture tick.
        Polls until a frame arrives, then holds it until the tick is due.

        Raises:
            CaptureTimeout: no frame arrived before the tick, so a call
                blocks for at most one capture interval
        """
        if not self.is_open:
            raise ResourceAcquisitionError("Screen capture is not open")

        now = time.monotonic()
        due = self.cadence.next_tick
        if due is None or due <= now:
            # first frame, or the caller is behind schedule
            due, deadline = now, now + self.target.interval
        else:
            deadline = due

        while True:
            image = self._grab()
            if image is not None:
                break
            if time.monotonic() >= deadline:
                self.cadence.tick()
                raise CaptureTimeout(f"No frame within {self.target.interval * 1000:.0f} ms")
            time.sleep(self.POLL_SLEEP)

        wait = due - time.monotonic()
        if wait > 0:
            time.sleep(wait)
        self.cadence.tick()

        frame = Frame(image=image, index=self._next_index, timestamp=time.monotonic() - self._start_time)
        self._next_index += 1
        return frame

    def release(self) -> None:
        if self.camera is not None:
            camera, self.camera = self.camera, None
            # older dxcam versions have no release() and free on garbage collection
            release = getattr(camera, "release", None)
            if release is not None:
                release()
            logger.debug("Released DXCam handle")
        if self.sct is not None:
            sct, self.sct = self.sct, None
            sct.close()
            logger.debug("Released mss handle")
        self.region = None


def create_source(target: Union[str, Path, CaptureTarget]) -> FrameSource:
    """
    Build the frame source for a target

    Args:
        target: video file path, or CaptureTarget for live capture

    Returns:
        Unopened FrameSource; entering it as a context manager acquires the handle
    """
    if isinstance(target, CaptureTarget):
        return ScreenCaptureSource(target)
    if isinstance(target, (str, Path)):
        return VideoFileSource(target)
    raise InvalidInputError(f"Unsupported frame source target: {target!r}")
