"""
Configuration management for Photo Caption Helper
"""
import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, asdict, fields
from typing import Optional

from screen.image import SearchRegion
from screen.template_matcher import LocatorSettings

logger = logging.getLogger(__name__)


def _has_type(value, default) -> bool:
    """Check a loaded value against the type of its default"""
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if isinstance(default, float):
        return isinstance(value, (int, float))
    return isinstance(value, type(default))


@dataclass
class Config:
    """Application configuration"""
    # Template
    template_path: str = ""  # Empty means caption_template.png in the config directory
    monitor: int = 1

    # Area where the caption box may appear, in physical screen pixels
    search_x: int = 1520
    search_y: int = 720
    search_width: int = 300
    search_height: int = 200

    # Search tuning
    stride: int = 2
    early_exit_confidence: Optional[float] = 0.98
    min_confidence: float = 0.90
    quick_reject_tolerance: Optional[int] = 50
    pixel_threshold: float = 0.1
    include_aa: bool = False
    refine: bool = True
    workers: int = 1

    # Screenshot pixels per pointer pixel (2 on Retina displays)
    display_scale: float = 1.0

    # Paths
    debug_crop_path: str = ""
    log_path: str = ""

    _OPTIONAL = ("early_exit_confidence", "quick_reject_tolerance")

    @classmethod
    def get_config_dir(cls) -> Path:
        """Get the configuration directory"""
        # Use AppData on Windows, otherwise use home directory
        if os.name == 'nt':
            app_data = os.environ.get('APPDATA', '')
            config_dir = Path(app_data) / 'PhotoCaptioner'
        else:
            config_dir = Path.home() / '.photo_captioner'

        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the configuration file path"""
        return cls.get_config_dir() / 'config.json'

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'Config':
        """Load configuration from file, falling back to defaults"""
        config_path = Path(path) if path else cls.get_config_path()

        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                known = {f.name for f in fields(cls)}
                return cls(**{k: v for k, v in data.items() if k in known})
            except (ValueError, OSError, TypeError, AttributeError) as e:
                logger.warning("Ignoring unreadable config %s: %s", config_path, e)

        return cls()

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to file"""
        config_path = Path(path) if path else self.get_config_path()

        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2, ensure_ascii=False)

    def resolve_template_path(self) -> Path:
        if self.template_path:
            return Path(self.template_path).expanduser()
        return self.get_config_dir() / 'caption_template.png'

    def search_region(self) -> SearchRegion:
        return SearchRegion(
            x=self.search_x,
            y=self.search_y,
            width=self.search_width,
            height=self.search_height
        )

    def locator_settings(self) -> LocatorSettings:
        return LocatorSettings(
            stride=self.stride,
            early_exit_confidence=self.early_exit_confidence,
            min_confidence=self.min_confidence,
            quick_reject_tolerance=self.quick_reject_tolerance,
            pixel_threshold=self.pixel_threshold,
            include_aa=self.include_aa,
            refine=self.refine,
            workers=self.workers
        )

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration, returns (is_valid, error_messages)"""
        errors = []

        for field in fields(self):
            value = getattr(self, field.name)
            if value is None and field.name in self._OPTIONAL:
                continue
            if not _has_type(value, field.default):
                errors.append(f"{field.name} has the wrong type: {value!r}")

        if errors:
            return False, errors

        if self.search_x < 0 or self.search_y < 0:
            errors.append("Search area origin must be non-negative")

        if self.search_width <= 0 or self.search_height <= 0:
            errors.append("Search area width and height must be positive")

        if self.monitor < 0:
            errors.append("Monitor index must be non-negative")

        if self.display_scale <= 0:
            errors.append("Display scale must be positive")

        try:
            self.locator_settings()
        except ValueError as e:
            errors.append(str(e))

        return len(errors) == 0, errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def save_config(path: Optional[Path] = None) -> None:
    """Save the global configuration"""
    global _config
    if _config is not None:
        _config.save(path)
