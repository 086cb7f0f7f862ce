"""
Image helpers: template loading and search region cropping

Images are RGBA numpy arrays of shape (height, width, 4), dtype uint8.
"""
import os
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image

from .errors import RegionOutOfBoundsError, TemplateDecodeError, TemplateMissingError


@dataclass(frozen=True)
class SearchRegion:
    """Rectangle in full-screen pixel coordinates"""
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Search region must have a positive size, got {self.width}x{self.height}"
            )

    @property
    def rect(self) -> Tuple[int, int, int, int]:
        """Get (left, top, right, bottom) rectangle"""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def fits(self, screen_width: int, screen_height: int) -> bool:
        """Check the region lies fully inside a screen of the given size"""
        left, top, right, bottom = self.rect
        return left >= 0 and top >= 0 and right <= screen_width and bottom <= screen_height


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Get (width, height) of an image array"""
    return image.shape[1], image.shape[0]


def load_template(path: str) -> np.ndarray:
    """
    Load a template image as a read-only RGBA array

    Raises:
        TemplateMissingError: the file does not exist
        TemplateDecodeError: the file is not a decodable image
    """
    path = str(path)
    if not os.path.exists(path):
        raise TemplateMissingError(path)

    try:
        with Image.open(path) as img:
            template = np.array(img.convert("RGBA"), dtype=np.uint8)
    except OSError as e:
        # PIL.UnidentifiedImageError and truncated files are both OSError
        raise TemplateDecodeError(path, e) from e

    template.setflags(write=False)
    return template


def crop_region(screen: np.ndarray, region: SearchRegion) -> np.ndarray:
    """
    Copy the search region out of a full screen image

    Raises:
        RegionOutOfBoundsError: the region does not fit inside the screen
    """
    width, height = image_size(screen)
    if not region.fits(width, height):
        raise RegionOutOfBoundsError(region, (width, height))

    left, top, right, bottom = region.rect
    return screen[top:bottom, left:right, :4].copy()
