"""Simple YAML configuration loader for rollscribe."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "rollscribe.yaml"
DEFAULT_LANGUAGES = ["ja-JP", "en-US", "fr-FR", "es-ES"]
DEFAULT_SILENCE_TIMEOUT_SECONDS = 1.3


class RollscribeConfig:
    """rollscribe configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, looks for rollscribe.yaml
                        in the current directory and its parents.
        """
        self.config_file = Path(config_path) if config_path else self._find_config_file()

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    @staticmethod
    def _find_config_file() -> Path:
        """Search the working directory and its parents for the default config file."""
        cwd = Path.cwd()
        for directory in [cwd, *cwd.parents]:
            candidate = directory / DEFAULT_CONFIG_FILENAME
            if candidate.exists():
                return candidate
        return cwd / DEFAULT_CONFIG_FILENAME

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        if not config:
            raise ConfigurationError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ConfigurationError("Configuration root must be a mapping")

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve Google credentials path
        if 'google_cloud' in config and config['google_cloud'].get('credentials_path'):
            creds_path = config['google_cloud']['credentials_path']
            if not os.path.isabs(creds_path):
                config['google_cloud']['credentials_path'] = str(config_dir / creds_path)

        # Resolve log file path
        if 'logging' in config and config['logging'].get('file_path'):
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'recognition.default_language').

        Args:
            key_path: Dot-separated key path (e.g., 'google_cloud.credentials_path')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'recognition.default_language')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_google_credentials_path(self) -> Optional[str]:
        """Get Google credentials path, or None when not configured."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            return None
        return str(Path(creds_path).absolute())

    def get_languages(self) -> List[str]:
        """Get the locale tags offered by the language picker."""
        languages = self.get('recognition.languages') or DEFAULT_LANGUAGES
        return [str(language) for language in languages]

    def get_default_language(self) -> str:
        """Get the language selected at startup."""
        return self.get('recognition.default_language', self.get_languages()[0])

    def get_silence_timeout(self) -> float:
        """Get the silence interval that triggers a session restart."""
        timeout = float(self.get('recognition.silence_timeout_seconds', DEFAULT_SILENCE_TIMEOUT_SECONDS))
        if timeout <= 0:
            raise ConfigurationError(f"recognition.silence_timeout_seconds must be positive, got {timeout}")
        return timeout
