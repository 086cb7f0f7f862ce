"""
Caption finder: capture the screen and locate the caption box in one call
"""
import logging
import time
from typing import Optional

from .capture import ScreenCapture
from .errors import ScreenCaptureError
from .template_matcher import CaptionLocator, LocateResult, NotFound

logger = logging.getLogger(__name__)


class CaptionFinder:
    """
    Ties a screen capture source to a caption locator

    Capture failures are reported as NotFound with the error attached, so a
    caller can simply retry. A region that does not fit the screen is a
    configuration problem and is raised.
    """

    def __init__(
        self,
        locator: CaptionLocator,
        capture: Optional[ScreenCapture] = None,
        monitor: int = 1
    ):
        self.locator = locator
        self.capture = capture or ScreenCapture()
        self.monitor = monitor

    def find(self) -> LocateResult:
        """Take a fresh screenshot and search it for the caption box"""
        started = time.perf_counter()

        try:
            screen = self.capture.capture_full_screen(monitor=self.monitor)
        except ScreenCaptureError as e:
            logger.error("Error finding caption box: %s", e)
            return NotFound(error=str(e))

        result = self.locator.locate(screen)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("Caption search took %.1f ms", elapsed_ms)
        return result
