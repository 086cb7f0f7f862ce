"""
Screen capture module for grabbing screenshots to search
"""
import logging
from typing import Tuple

import mss
import mss.exception
import numpy as np
from PIL import Image

from .errors import ScreenCaptureError

logger = logging.getLogger(__name__)


def _bgra_to_rgba(img: np.ndarray) -> np.ndarray:
    """Reorder mss BGRA pixels into an opaque RGBA array"""
    rgba = img[:, :, [2, 1, 0, 3]].copy()
    # mss does not fill the alpha channel on every backend
    rgba[:, :, 3] = 255
    return rgba


class ScreenCapture:
    """Handles screen capture"""

    def capture_full_screen(self, monitor: int = 1) -> np.ndarray:
        """
        Capture full screen

        Args:
            monitor: Monitor index (1 = first monitor)

        Returns:
            RGBA numpy array

        Raises:
            ScreenCaptureError: the screenshot could not be taken
        """
        try:
            with mss.mss() as sct:
                # Get monitor info (handle case where monitor index out of range)
                if monitor >= len(sct.monitors):
                    logger.warning("Monitor %d not available, using primary monitor", monitor)
                    monitor = 1

                screenshot = sct.grab(sct.monitors[monitor])
                img = np.array(screenshot)
        except mss.exception.ScreenShotError as e:
            raise ScreenCaptureError(f"Screen capture failed: {e}", e) from e

        logger.debug("Captured monitor %d at %dx%d", monitor, img.shape[1], img.shape[0])
        return _bgra_to_rgba(img)

    def capture_region(
        self,
        left: int,
        top: int,
        width: int,
        height: int
    ) -> np.ndarray:
        """
        Capture a specific region of the screen

        Returns:
            RGBA numpy array
        """
        region = {
            'left': int(left),
            'top': int(top),
            'width': int(width),
            'height': int(height)
        }

        try:
            with mss.mss() as sct:
                img = np.array(sct.grab(region))
        except mss.exception.ScreenShotError as e:
            raise ScreenCaptureError(f"Region capture failed: {e}", e) from e

        return _bgra_to_rgba(img)

    @staticmethod
    def get_screen_size(monitor: int = 1) -> Tuple[int, int]:
        """Get monitor size in physical pixels"""
        try:
            with mss.mss() as sct:
                if monitor >= len(sct.monitors):
                    monitor = 1
                mon = sct.monitors[monitor]
                return mon['width'], mon['height']
        except mss.exception.ScreenShotError as e:
            raise ScreenCaptureError(f"Could not query screen size: {e}", e) from e

    @staticmethod
    def save_image(img_array: np.ndarray, filepath: str):
        """Save an RGBA array to file"""
        Image.fromarray(img_array).save(filepath)
