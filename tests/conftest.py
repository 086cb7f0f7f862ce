"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from screen.image import SearchRegion  # noqa: E402

BLOCK_COLOR = (200, 60, 60)
BACKGROUND_COLOR = (30, 30, 30)


def solid_image(width, height, color, alpha=255):
    """Create an RGBA image filled with one colour."""
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :, :3] = color
    image[:, :, 3] = alpha
    return image


def paste(screen, image, x, y):
    """Copy an image into the screen with its top-left corner at (x, y)."""
    h, w = image.shape[:2]
    screen[y:y + h, x:x + w] = image
    return screen


@pytest.fixture
def region():
    """Search region used by the caption box scenarios."""
    return SearchRegion(x=1520, y=720, width=300, height=150)


@pytest.fixture
def block_template():
    """40x30 solid block template."""
    return solid_image(40, 30, BLOCK_COLOR)


@pytest.fixture
def blank_screen():
    """2560x1440 screen filled with the background colour."""
    return solid_image(2560, 1440, BACKGROUND_COLOR)
