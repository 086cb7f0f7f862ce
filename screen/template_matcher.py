"""
Template matching for locating the caption box on screen

The search is confined to a fixed region of the screenshot. Candidate offsets
are visited on a coarse stride; each is first checked at five template sample
points and only survivors get the full per-pixel comparison. The coarse scan
stops as soon as a match is good enough, then a single-pixel scan around the
coarse best recovers the precision the stride gave away.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np

from .image import SearchRegion, crop_region, image_size
from .pixel_diff import count_differing_pixels

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocatorSettings:
    """Tuning knobs for the caption box search"""
    stride: int = 2  # Coarse step in pixels
    early_exit_confidence: Optional[float] = 0.98  # None scans every candidate
    min_confidence: float = 0.90  # Below this the result is NotFound
    quick_reject_tolerance: Optional[int] = 50  # Per-channel, 0-255; None disables
    pixel_threshold: float = 0.1  # Per-pixel matching threshold, 0-1
    include_aa: bool = False  # Count anti-aliased pixels as differences
    refine: bool = True
    workers: int = 1  # Threads for the coarse scan

    def __post_init__(self):
        errors = []

        if self.stride < 1:
            errors.append(f"stride must be at least 1, got {self.stride}")
        if self.early_exit_confidence is not None and not 0.0 <= self.early_exit_confidence <= 1.0:
            errors.append("early_exit_confidence must be between 0 and 1")
        if not 0.0 <= self.min_confidence <= 1.0:
            errors.append("min_confidence must be between 0 and 1")
        if self.quick_reject_tolerance is not None and not 0 <= self.quick_reject_tolerance <= 255:
            errors.append("quick_reject_tolerance must be between 0 and 255")
        if not 0.0 <= self.pixel_threshold <= 1.0:
            errors.append("pixel_threshold must be between 0 and 1")
        if self.workers < 1:
            errors.append(f"workers must be at least 1, got {self.workers}")

        if errors:
            raise ValueError("; ".join(errors))

    @classmethod
    def exhaustive(cls, **overrides) -> 'LocatorSettings':
        """Settings that score every offset with no shortcuts"""
        values = dict(stride=1, early_exit_confidence=None, quick_reject_tolerance=None)
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class Found:
    """Caption box located; x, y are the template centre in screen pixels"""
    x: int
    y: int
    confidence: float
    local_x: int = 0  # Top-left corner inside the search region
    local_y: int = 0
    score: int = 0  # Number of differing pixels

    def __bool__(self) -> bool:
        return True

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def logical_point(self, scale: float = 1.0) -> Tuple[int, int]:
        """Convert physical screenshot pixels to logical (pointer) coordinates"""
        return (int(self.x / scale), int(self.y / scale))


@dataclass(frozen=True)
class NotFound:
    """No acceptable match; confidence is the best one seen"""
    confidence: float = 0.0
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return False


LocateResult = Union[Found, NotFound]


@dataclass(frozen=True)
class _Candidate:
    x: int
    y: int
    score: int


class CaptionLocator:
    """
    Finds a template inside a fixed region of a screenshot

    The locator holds no state between calls apart from the read-only
    template, so several instances with different templates or regions can
    be used side by side.
    """

    def __init__(
        self,
        template: np.ndarray,
        region: SearchRegion,
        settings: Optional[LocatorSettings] = None,
        debug_path: Optional[str] = None
    ):
        if template.ndim != 3 or template.shape[2] != 4:
            raise ValueError(f"Template must be an RGBA image, got shape {template.shape}")

        if template.flags.writeable:
            template = np.array(template, dtype=np.uint8)
            template.setflags(write=False)

        self.template = template
        self.region = region
        self.settings = settings or LocatorSettings()
        self.debug_path = debug_path

        self.template_width, self.template_height = image_size(template)
        self._area = self.template_width * self.template_height

        w, h = self.template_width, self.template_height
        self._sample_points = [
            (0, 0), (w - 1, 0), (0, h - 1), (w - 1, h - 1), (w // 2, h // 2)
        ]

    def confidence(self, score: int) -> float:
        """Convert a differing-pixel count into a 0-1 confidence"""
        return 1.0 - score / self._area

    def locate(self, screen: np.ndarray) -> LocateResult:
        """
        Search the configured region of a screenshot for the template

        Args:
            screen: Full screen RGBA array

        Raises:
            RegionOutOfBoundsError: the region does not fit the screenshot
        """
        crop = crop_region(screen, self.region)

        coarse = self._coarse_search(crop)
        if coarse is None:
            logger.warning("Caption box not found (no candidate passed quick rejection)")
            self._save_debug(crop, None, False)
            return NotFound()

        best = self._refine(crop, coarse) if self.settings.refine else coarse
        confidence = self.confidence(best.score)
        logger.info("Best match confidence: %.2f%%", confidence * 100)
        logger.info("Best match at relative position: (%d, %d)", best.x, best.y)

        accepted = confidence >= self.settings.min_confidence
        self._save_debug(crop, best, accepted)

        if not accepted:
            logger.warning("Caption box not found (low confidence)")
            return NotFound(confidence=confidence)

        screen_x = self.region.x + best.x + self.template_width // 2
        screen_y = self.region.y + best.y + self.template_height // 2
        logger.info("Caption box found at screen coordinates: (%d, %d)", screen_x, screen_y)

        return Found(
            x=screen_x,
            y=screen_y,
            confidence=confidence,
            local_x=best.x,
            local_y=best.y,
            score=best.score
        )

    # ================== Search Steps ==================

    def _max_offset(self, crop: np.ndarray) -> Tuple[int, int]:
        crop_w, crop_h = image_size(crop)
        return crop_w - self.template_width, crop_h - self.template_height

    def _score(self, crop: np.ndarray, x: int, y: int) -> int:
        patch = crop[y:y + self.template_height, x:x + self.template_width]
        return count_differing_pixels(
            self.template, patch, self.settings.pixel_threshold, self.settings.include_aa
        )

    def _quick_filter(
        self,
        crop: np.ndarray,
        max_x: int,
        max_y: int
    ) -> np.ndarray:
        """
        Check the five template sample points for every coarse offset at once

        Returns:
            Boolean grid indexed [row, column] over the strided offsets
        """
        stride = self.settings.stride
        rows = max_y // stride + 1
        cols = max_x // stride + 1
        passed = np.ones((rows, cols), dtype=bool)

        tolerance = self.settings.quick_reject_tolerance
        if tolerance is None:
            return passed

        for px, py in self._sample_points:
            expected = self.template[py, px, :3].astype(np.int16)
            samples = crop[py:py + max_y + 1:stride, px:px + max_x + 1:stride, :3]
            close = np.abs(samples.astype(np.int16) - expected) <= tolerance
            passed &= close.all(axis=-1)

        return passed

    def _coarse_search(self, crop: np.ndarray) -> Optional[_Candidate]:
        max_x, max_y = self._max_offset(crop)
        if max_x < 0 or max_y < 0:
            logger.warning(
                "Template (%dx%d) is larger than the search region (%dx%d)",
                self.template_width, self.template_height,
                self.region.width, self.region.height
            )
            return None

        stride = self.settings.stride
        passed = self._quick_filter(crop, max_x, max_y)
        # argwhere yields row-major order, which the tie-break relies on
        offsets = [(int(col) * stride, int(row) * stride) for row, col in np.argwhere(passed)]
        logger.debug(
            "%d of %d coarse candidates passed quick rejection", len(offsets), passed.size
        )
        if not offsets:
            return None

        workers = min(self.settings.workers, len(offsets))
        if workers <= 1:
            best, _ = self._scan(crop, offsets)
            return best

        chunk_size = math.ceil(len(offsets) / workers)
        chunks = [offsets[i:i + chunk_size] for i in range(0, len(offsets), chunk_size)]
        with ThreadPoolExecutor(max_workers=len(chunks)) as pool:
            partials = list(pool.map(lambda chunk: self._scan(crop, chunk), chunks))
        return self._merge(partials)

    def _scan(
        self,
        crop: np.ndarray,
        offsets: List[Tuple[int, int]]
    ) -> Tuple[Optional[_Candidate], bool]:
        """
        Score offsets in order, keeping the first lowest score

        Returns:
            (best candidate, whether the scan stopped early)
        """
        early_exit = self.settings.early_exit_confidence
        best = None

        for x, y in offsets:
            score = self._score(crop, x, y)
            if best is None or score < best.score:
                best = _Candidate(x, y, score)
                if early_exit is not None and self.confidence(score) >= early_exit:
                    return best, True

        return best, False

    @staticmethod
    def _merge(partials: List[Tuple[Optional[_Candidate], bool]]) -> Optional[_Candidate]:
        """Combine chunk results so the outcome equals one sequential scan"""
        best = None
        for candidate, stopped_early in partials:
            if stopped_early:
                return candidate
            if candidate is not None and (best is None or candidate.score < best.score):
                best = candidate
        return best

    def _refine(self, crop: np.ndarray, coarse: _Candidate) -> _Candidate:
        """Score every offset within one stride of the coarse best"""
        max_x, max_y = self._max_offset(crop)
        radius = self.settings.stride
        best = coarse

        for y in range(max(0, coarse.y - radius), min(max_y, coarse.y + radius) + 1):
            for x in range(max(0, coarse.x - radius), min(max_x, coarse.x + radius) + 1):
                if x == coarse.x and y == coarse.y:
                    continue
                score = self._score(crop, x, y)
                if score < best.score:
                    best = _Candidate(x, y, score)

        if best is not coarse:
            logger.debug(
                "Refined match from (%d, %d) to (%d, %d)", coarse.x, coarse.y, best.x, best.y
            )
        return best

    def _save_debug(self, crop: np.ndarray, best: Optional[_Candidate], accepted: bool):
        if not self.debug_path:
            return
        location = (best.x, best.y) if best is not None else None
        save_debug_crop(
            self.debug_path,
            crop,
            location,
            (self.template_width, self.template_height),
            accepted
        )


# ================== Debug Output ==================

def draw_match(
    crop: np.ndarray,
    location: Optional[Tuple[int, int]],
    size: Tuple[int, int],
    accepted: bool
) -> np.ndarray:
    """Return a BGR copy of the search region with the candidate outlined"""
    canvas = cv2.cvtColor(crop, cv2.COLOR_RGBA2BGR)
    if location is not None:
        x, y = location
        w, h = size
        color = (0, 200, 0) if accepted else (0, 0, 255)
        cv2.rectangle(canvas, (x, y), (x + w - 1, y + h - 1), color, 1)
    return canvas


def save_debug_crop(
    path: str,
    crop: np.ndarray,
    location: Optional[Tuple[int, int]],
    size: Tuple[int, int],
    accepted: bool
) -> bool:
    """
    Write the search region to disk for inspection

    Failures are logged and reported through the return value only.
    """
    try:
        canvas = draw_match(crop, location, size, accepted)
        written = cv2.imwrite(str(path), canvas)
    except cv2.error as e:
        logger.warning("Could not write debug image to %s: %s", path, e)
        return False

    if not written:
        logger.warning("Could not write debug image to %s", path)
    return bool(written)
