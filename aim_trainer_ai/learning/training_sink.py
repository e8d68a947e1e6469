"""
Training Samples: per-frame labels handed to the external trainer
"""
import logging
import threading
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from aim_trainer_ai.config import config
from aim_trainer_ai.utils.file_utils import get_timestamped_filename, load_json, save_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainingSample:
    """
    One labelled frame. crosshair_x/crosshair_y are None when no reticle was
    detected on the frame (never 0, which is a real coordinate).
    enemy_detected is only evaluated on frames with a hit marker; on any
    other frame it is False whether or not an outline is on screen.
    """
    frame_index: int
    timestamp: float
    crosshair_x: Optional[int]
    crosshair_y: Optional[int]
    hit: bool
    enemy_detected: bool = False

    @property
    def has_crosshair(self) -> bool:
        return self.crosshair_x is not None

    def to_dict(self) -> Dict:
        return asdict(self)


# Anything that accepts a batch of samples: a model trainer, an exporter, a queue
Trainer = Callable[[Sequence[TrainingSample]], None]


class TrainingSampleSink:
    """
    Append-only, session-scoped collection of samples.
    drain() hands over everything appended since the previous drain, which is
    how live sessions feed the trainer incrementally.
    """

    def __init__(self):
        self._samples: List[TrainingSample] = []
        self._handed_off = 0
        self._hits = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, sample: TrainingSample):
        with self._lock:
            self._samples.append(sample)
            if sample.hit:
                self._hits += 1

    @property
    def samples(self) -> Tuple[TrainingSample, ...]:
        with self._lock:
            return tuple(self._samples)

    @property
    def total(self) -> int:
        return len(self._samples)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def pending(self) -> int:
        return len(self._samples) - self._handed_off

    def drain(self) -> Tuple[TrainingSample, ...]:
        """Samples not yet handed off, in frame order"""
        with self._lock:
            batch = tuple(self._samples[self._handed_off:])
            self._handed_off = len(self._samples)
        return batch


class JsonSampleExporter:
    """
    Default trainer adapter: writes each hand-off batch to a timestamped JSON file
    """

    def __init__(self, output_dir: Optional[str] = None, prefix: str = "training_samples"):
        self.output_dir = output_dir or config.DATA_SAVE_PATH
        self.prefix = prefix
        self.files_written: List[str] = []

    def __call__(self, samples: Sequence[TrainingSample]) -> None:
        if not samples:
            return

        filepath = get_timestamped_filename(self.prefix, "json", self.output_dir)
        payload = {
            'count': len(samples),
            'hits': sum(1 for s in samples if s.hit),
            'samples': [s.to_dict() for s in samples],
        }
        if save_json(payload, filepath):
            self.files_written.append(filepath)
            logger.info(f"Exported {len(samples)} training samples to {filepath}")
        else:
            logger.error(f"Could not export {len(samples)} training samples")


def load_samples(filepath: str) -> List[TrainingSample]:
    """
    Read back a batch written by JsonSampleExporter

    Returns:
        Samples in frame order, empty if the file is missing or malformed
    """
    payload = load_json(filepath, default={})
    samples = []
    for entry in payload.get('samples', []) if isinstance(payload, dict) else []:
        try:
            samples.append(TrainingSample(**entry))
        except TypeError as e:
            logger.warning(f"Skipping malformed sample in {filepath}: {e}")
    return samples
