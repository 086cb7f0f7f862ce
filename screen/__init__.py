"""
Screen capture and caption box recognition module
"""
from .capture import ScreenCapture
from .errors import (
    CaptionFinderError,
    RegionOutOfBoundsError,
    ScreenCaptureError,
    TemplateDecodeError,
    TemplateMissingError,
)
from .finder import CaptionFinder
from .image import SearchRegion, crop_region, load_template
from .template_matcher import CaptionLocator, Found, LocatorSettings, NotFound

__all__ = [
    'ScreenCapture', 'CaptionFinder', 'CaptionLocator', 'LocatorSettings',
    'SearchRegion', 'Found', 'NotFound', 'load_template', 'crop_region',
    'CaptionFinderError', 'TemplateMissingError', 'TemplateDecodeError',
    'RegionOutOfBoundsError', 'ScreenCaptureError',
]
