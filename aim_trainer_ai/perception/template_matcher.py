"""
Template Matching: per-category reference images scored against frames
with normalized cross-correlation (cv2.TM_CCOEFF_NORMED)
"""
import os
import math
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import ClassVar, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from aim_trainer_ai.config import config
from aim_trainer_ai.utils.file_utils import list_files

logger = logging.getLogger(__name__)

CROSSHAIRS = "crosshairs"
HIT_MARKERS = "hit_markers"
HIT_VFX = "hit_vfx"
BULLET_TRACES = "bullet_traces"

# Color-blind variants of the enemy outline, checked in this order
ENEMY_OUTLINE_CATEGORIES: Tuple[str, ...] = (
    "enemy_outlines/default",
    "enemy_outlines/tritanopia",
    "enemy_outlines/deuteranopia",
    "enemy_outlines/protanopia",
)

CATEGORIES: Tuple[str, ...] = (CROSSHAIRS, HIT_MARKERS, HIT_VFX, BULLET_TRACES) + ENEMY_OUTLINE_CATEGORIES

# TM_CCOEFF_NORMED tops out at 1.0; float error can leave an exact match just under it
PERFECT_SCORE = 1.0 - 1e-6

Position = Tuple[int, int]


@dataclass(frozen=True)
class Found:
    """A category matched the frame; position is the top-left of the best match"""
    position: Position
    score: float
    found: ClassVar[bool] = True


@dataclass(frozen=True)
class NotFound:
    """No reference in the category scored above the threshold"""
    score: float = float("-inf")
    found: ClassVar[bool] = False

    @property
    def position(self) -> None:
        return None


DetectionResult = Union[Found, NotFound]
NOT_FOUND = NotFound()


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert a BGR/BGRA/gray frame to single-channel gray"""
    if image.ndim == 2:
        return image
    channels = image.shape[2]
    if channels == 1:
        return image[:, :, 0]
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


class TemplateMatcher:
    """
    Holds the TemplateSet of one game and scores frames against it.
    The set is immutable once loaded; a category without references never matches.
    """

    def __init__(
        self,
        templates: Mapping[str, Sequence[np.ndarray]],
        threshold: Optional[float] = None
    ):
        """
        Args:
            templates: category -> ordered reference images (gray or color)
            threshold: correlation a match must exceed (defaults to config)
        """
        self.threshold = config.TEMPLATE_MATCH_THRESHOLD if threshold is None else threshold
        frozen: Dict[str, Tuple[np.ndarray, ...]] = {}
        for category, images in templates.items():
            refs = []
            for image in images:
                gray = np.ascontiguousarray(to_grayscale(np.asarray(image)))
                gray.setflags(write=False)
                refs.append(gray)
            frozen[category] = tuple(refs)
        self._templates = MappingProxyType(frozen)

    @classmethod
    def load(cls, asset_folder: str, threshold: Optional[float] = None,
             categories: Iterable[str] = CATEGORIES) -> "TemplateMatcher":
        """
        Load reference images from asset_folder/<category>/*

        Args:
            asset_folder: Game asset folder (e.g. assets/valorant)
            threshold: Optional threshold override
            categories: Categories to look for

        Returns:
            TemplateMatcher for the folder. Missing categories are simply absent.
        """
        templates: Dict[str, list] = {}
        for category in categories:
            category_path = os.path.join(asset_folder, *category.split("/"))
            if not os.path.isdir(category_path):
                logger.debug(f"No '{category}' templates in {asset_folder}")
                continue

            images = []
            for path in list_files(category_path):
                image = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
                if image is None or image.size == 0:
                    logger.warning(f"Skipping unreadable template image: {path}")
                    continue
                images.append(image)
            templates[category] = images

        matcher = cls(templates, threshold=threshold)
        loaded = ", ".join(f"{c}={len(v)}" for c, v in matcher._templates.items()) or "none"
        logger.info(f"Loaded templates from {asset_folder}: {loaded}")
        return matcher

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self._templates.keys())

    def templates(self, category: str) -> Tuple[np.ndarray, ...]:
        return self._templates.get(category, ())

    def has_category(self, category: str) -> bool:
        return bool(self._templates.get(category))

    def passes(self, score: float) -> bool:
        """
        A score must exceed the threshold. A perfect correlation passes any
        threshold, including 1.0.
        """
        return score > self.threshold or score >= PERFECT_SCORE

    def match(self, frame: np.ndarray, category: str) -> DetectionResult:
        """
        Best match of any reference of a category against a frame

        Args:
            frame: Frame image (gray, BGR or BGRA)
            category: Category name

        Returns:
            Found(position, score) if the best score passes the threshold, else NotFound
        """
        references = self._templates.get(category)
        if not references:
            return NOT_FOUND

        gray = to_grayscale(frame)
        frame_h, frame_w = gray.shape[:2]

        best_score = float("-inf")
        best_position: Optional[Position] = None
        for template in references:
            tpl_h, tpl_w = template.shape[:2]
            if tpl_h > frame_h or tpl_w > frame_w:
                continue

            result = cv2.matchTemplate(gray, template, cv2.TM_CCOEFF_NORMED)
            _, max_val, _, max_loc = cv2.minMaxLoc(result)
            if not math.isfinite(max_val):
                continue

            # strictly greater: first reference wins ties
            if max_val > best_score:
                best_score = float(max_val)
                best_position = (int(max_loc[0]), int(max_loc[1]))

        if best_position is not None and self.passes(best_score):
            return Found(position=best_position, score=best_score)
        return NotFound(score=best_score)

    def match_any(self, frame: np.ndarray, categories: Iterable[str]) -> DetectionResult:
        """
        Logical OR over categories, stopping at the first match

        Returns:
            First Found, or NotFound carrying the best score seen
        """
        best = NOT_FOUND
        for category in categories:
            result = self.match(frame, category)
            if result.found:
                return result
            if result.score > best.score:
                best = result
        return best
