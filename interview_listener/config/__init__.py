"""Simple YAML configuration loader for Interview Listener."""

import copy
import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from ..models.session import Provider

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.DEEPSEEK: "DEEPSEEK_API_KEY",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "provider": "openai",
    "providers": {
        "openai": {},
        "deepseek": {},
    },
    "audio": {
        "monitor": False,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/interview_listener.log",
        "console_output": True,
    },
}


class InterviewListenerConfig:
    """Interview Listener configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and paths resolve against the working directory.
        """
        if config_path is None:
            self.config_file = None
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            self._resolve_paths(self.config, Path.cwd())
            logger.info("No configuration file given, using defaults")
            return

        self.config_file = Path(config_path)
        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        merged = self._merge(copy.deepcopy(DEFAULT_CONFIG), config)
        self._resolve_paths(merged, self.config_file.parent)

        logger.info("Configuration loaded successfully")
        return merged

    @classmethod
    def _merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._merge(base[key], value)
            else:
                base[key] = value
        return base

    def _resolve_paths(self, config: Dict[str, Any], config_dir: Path) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        if 'logging' in config and 'file_path' in config['logging']:
            log_path = config['logging']['file_path']
            if not os.path.isabs(log_path):
                config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'logging.level').

        Args:
            key_path: Dot-separated key path (e.g., 'providers.openai.api_key')
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
            key_path: Dot-separated path to config value (e.g., 'audio.monitor')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set")

    def get_provider(self) -> Provider:
        """Get the configured realtime provider."""
        return Provider.from_name(str(self.get('provider', 'openai')))

    def get_api_key(self, provider: Optional[Provider] = None) -> str:
        """Get the API key for a provider - CRASHES if not found.

        Looks at ``providers.<name>.api_key`` first, then the provider's
        environment variable.
        """
        provider = provider or self.get_provider()
        api_key = self.get(f'providers.{provider.value}.api_key') or os.environ.get(API_KEY_ENV_VARS[provider])
        if not api_key:
            raise ValueError(
                f"No API key configured for {provider.value}: set providers.{provider.value}.api_key "
                f"or the {API_KEY_ENV_VARS[provider]} environment variable")
        return api_key

    def get_provider_settings(self, provider: Optional[Provider] = None) -> Dict[str, Optional[str]]:
        """Get endpoint overrides for a provider (None means use the built-in URL)."""
        provider = provider or self.get_provider()
        return {
            "session_url": self.get(f'providers.{provider.value}.session_url'),
            "websocket_url": self.get(f'providers.{provider.value}.websocket_url'),
        }
