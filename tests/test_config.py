"""
Tests for configuration module.
"""

import json

import config as config_module
from config import Config, get_config, save_config
from screen.image import SearchRegion
from screen.template_matcher import LocatorSettings


class TestConfig:
    """Tests for Config."""

    def test_default_values(self):
        """Default configuration values."""
        config = Config()

        assert config.monitor == 1
        assert config.search_region() == SearchRegion(x=1520, y=720, width=300, height=200)
        assert config.locator_settings() == LocatorSettings()
        assert config.display_scale == 1.0
        assert config.debug_crop_path == ""

    def test_save_and_load(self, tmp_path):
        """Saved configuration loads back unchanged."""
        path = tmp_path / "config.json"
        config = Config(search_x=100, stride=3, early_exit_confidence=None, workers=2)

        config.save(path)
        loaded = Config.load(path)

        assert loaded == config
        assert loaded.locator_settings().early_exit_confidence is None

    def test_missing_file_gives_defaults(self, tmp_path):
        """A missing file loads the defaults."""
        assert Config.load(tmp_path / "absent.json") == Config()

    def test_malformed_file_gives_defaults(self, tmp_path):
        """Invalid JSON falls back to the defaults."""
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")

        assert Config.load(path) == Config()

    def test_unknown_keys_ignored(self, tmp_path):
        """Keys the config does not know are skipped."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"stride": 4, "obsolete": True}), encoding="utf-8")

        assert Config.load(path).stride == 4

    def test_validate_ok(self):
        """Defaults are valid."""
        assert Config().validate() == (True, [])

    def test_validate_errors(self):
        """Bad values are reported."""
        config = Config(search_x=-5, search_width=0, stride=0, display_scale=0)

        is_valid, errors = config.validate()

        assert not is_valid
        assert len(errors) == 4

    def test_template_path(self, tmp_path):
        """An explicit template path is used as given."""
        template = tmp_path / "caption.png"

        assert Config(template_path=str(template)).resolve_template_path() == template

    def test_non_utf8_file_gives_defaults(self, tmp_path):
        """A file that is not UTF-8 falls back to the defaults."""
        path = tmp_path / "config.json"
        path.write_bytes(b'{"template_path": "\xff"}')

        assert Config.load(path) == Config()

    def test_non_object_file_gives_defaults(self, tmp_path):
        """A JSON value other than an object falls back to the defaults."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")

        assert Config.load(path) == Config()

    def test_validate_wrong_types(self):
        """Values of the wrong type are reported instead of raising."""
        config = Config(stride="2", refine=1, min_confidence=None)

        is_valid, errors = config.validate()

        assert not is_valid
        assert len(errors) == 3
        assert "stride" in errors[0]

    def test_validate_accepts_whole_numbers_for_floats(self):
        """An integer is a valid value for a float setting."""
        config = Config(display_scale=2, min_confidence=1, early_exit_confidence=None)

        assert config.validate() == (True, [])


class TestGlobalConfig:
    """Tests for the global configuration helpers."""

    def test_get_config_is_cached(self, monkeypatch):
        """get_config returns the same instance each time."""
        monkeypatch.setattr(config_module, "_config", Config(stride=5))

        assert get_config() is get_config()
        assert get_config().stride == 5

    def test_save_config(self, tmp_path, monkeypatch):
        """save_config writes the global configuration."""
        monkeypatch.setattr(config_module, "_config", Config(search_x=40, workers=3))
        path = tmp_path / "config.json"

        save_config(path)

        assert Config.load(path) == Config(search_x=40, workers=3)

    def test_save_config_without_instance(self, tmp_path, monkeypatch):
        """Nothing is written before the configuration is loaded."""
        monkeypatch.setattr(config_module, "_config", None)
        path = tmp_path / "config.json"

        save_config(path)

        assert not path.exists()
