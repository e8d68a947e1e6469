"""
Position History: sliding window of detected crosshair positions
"""
from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

Position = Tuple[float, float]


@dataclass(frozen=True)
class PositionSample:
    frame_index: int
    position: Position


class PositionHistory:
    """
    Time-ordered crosshair positions.
    After prune(i, W) every stored sample has frame_index >= i - W, so memory
    is bounded by the window no matter how long the stream runs.
    """

    def __init__(self):
        self._samples = deque()

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[PositionSample]:
        return iter(tuple(self._samples))

    @property
    def latest(self) -> Optional[PositionSample]:
        return self._samples[-1] if self._samples else None

    def record(self, frame_index: int, position: Position) -> PositionSample:
        """
        Append a crosshair position

        Raises:
            ValueError: frame_index is older than the newest stored sample
        """
        if self._samples and frame_index < self._samples[-1].frame_index:
            raise ValueError(
                f"Frame {frame_index} recorded after frame {self._samples[-1].frame_index}"
            )
        sample = PositionSample(frame_index=frame_index, position=position)
        self._samples.append(sample)
        return sample

    def prune(self, current_index: int, window: int) -> int:
        """
        Drop samples with frame_index < current_index - window

        Returns:
            Number of samples removed
        """
        if window < 0:
            raise ValueError(f"window must be >= 0, got {window}")
        oldest_allowed = current_index - window
        removed = 0
        while self._samples and self._samples[0].frame_index < oldest_allowed:
            self._samples.popleft()
            removed += 1
        return removed

    def query(self, current_index: int, window: int) -> List[Position]:
        """
        Positions recorded within [current_index - window, current_index], oldest first
        """
        if window < 0:
            raise ValueError(f"window must be >= 0, got {window}")
        oldest_allowed = current_index - window
        return [
            s.position for s in self._samples
            if oldest_allowed <= s.frame_index <= current_index
        ]
