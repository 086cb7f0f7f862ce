"""
Error types for caption box detection
"""
from typing import Optional, Tuple


class CaptionFinderError(Exception):
    """
    Base exception for caption finder errors

    Attributes:
        message: The error message
        source: Optional underlying exception that caused this error
    """

    def __init__(self, message: str, source: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        return self.message

    def is_fatal(self) -> bool:
        """Whether the caller should give up instead of retrying"""
        return True


class TemplateMissingError(CaptionFinderError):
    """Template image file does not exist"""

    def __init__(self, path: str):
        super().__init__(f"Template image not found at {path}")
        self.path = path


class TemplateDecodeError(CaptionFinderError):
    """Template file exists but is not a readable image"""

    def __init__(self, path: str, source: Optional[Exception] = None):
        super().__init__(f"Template image could not be decoded: {path}", source)
        self.path = path


class RegionOutOfBoundsError(CaptionFinderError):
    """Search region does not fit inside the screen image"""

    def __init__(self, region, screen_size: Tuple[int, int]):
        width, height = screen_size
        super().__init__(
            f"Search area {region} exceeds screen bounds ({width}x{height})"
        )
        self.region = region
        self.screen_size = screen_size


class ScreenCaptureError(CaptionFinderError):
    """Screen could not be captured"""

    def is_fatal(self) -> bool:
        return False
