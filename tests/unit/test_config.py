"""Unit tests for RollscribeConfig."""

import pytest
from pathlib import Path

from rollscribe.config import DEFAULT_LANGUAGES, RollscribeConfig
from rollscribe.exceptions import ConfigurationError


FULL_CONFIG = """
recognition:
  default_language: en-US
  languages: [en-US, ja-JP]
  silence_timeout_seconds: 2.5
  separator: "\\n"
google_cloud:
  credentials_path: credentials/key.json
logging:
  level: DEBUG
  file_path: logs/app.log
"""


@pytest.mark.unit
class TestRollscribeConfig:
    """Test cases for RollscribeConfig."""

    def test_loads_values(self, config_file):
        config = RollscribeConfig(str(config_file(FULL_CONFIG)))

        assert config.get('recognition.default_language') == "en-US"
        assert config.get_languages() == ["en-US", "ja-JP"]
        assert config.get_default_language() == "en-US"
        assert config.get_silence_timeout() == 2.5
        assert config.get('recognition.separator') == "\n"

    def test_relative_paths_resolved_against_config_dir(self, config_file, tmp_path):
        config = RollscribeConfig(str(config_file(FULL_CONFIG)))

        assert config.get('logging.file_path') == str(tmp_path / "logs" / "app.log")
        assert config.get_google_credentials_path() == str((tmp_path / "credentials" / "key.json").absolute())

    def test_defaults_when_recognition_section_missing(self, config_file):
        config = RollscribeConfig(str(config_file("audio:\n  sample_rate: 16000\n")))

        assert config.get_languages() == DEFAULT_LANGUAGES
        assert config.get_default_language() == "ja-JP"
        assert config.get_silence_timeout() == 1.3
        assert config.get_google_credentials_path() is None
        assert config.get('recognition.partial_results', True) is True

    def test_get_and_set_dotted_keys(self, config_file):
        config = RollscribeConfig(str(config_file(FULL_CONFIG)))

        config.set('audio.chunk_size', 2048)

        assert config.get('audio.chunk_size') == 2048
        assert config.get('audio.missing', 'fallback') == 'fallback'
        assert config.get('recognition.default_language.deeper') is None

    @pytest.mark.parametrize("timeout", [0, -1.0])
    def test_non_positive_silence_timeout_rejected(self, config_file, timeout):
        config = RollscribeConfig(str(config_file(f"recognition:\n  silence_timeout_seconds: {timeout}\n")))

        with pytest.raises(ConfigurationError):
            config.get_silence_timeout()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RollscribeConfig(str(tmp_path / "absent.yaml"))

    @pytest.mark.parametrize("text", ["", "- just\n- a list\n", "recognition: [unclosed\n"])
    def test_invalid_content_rejected(self, config_file, text):
        with pytest.raises(ConfigurationError):
            RollscribeConfig(str(config_file(text)))

    def test_finds_config_in_parent_directory(self, config_file, tmp_path, monkeypatch):
        path = config_file(FULL_CONFIG)
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        config = RollscribeConfig()

        assert Path(config.config_file) == path
