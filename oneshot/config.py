"""
load the config from config.yaml and .env
"""

import os
import yaml
from dataclasses import dataclass
from dotenv import load_dotenv
from pathlib import Path
from typing import Dict, Any

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_HTTP_VERSION = "HTTP/1.1"


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    # Environment variable mapping
    ENV_MAPPINGS = {
        'ONESHOT_TIMEOUT_MS': ('client', 'timeout_ms'),
        'ONESHOT_HTTP_VERSION': ('client', 'http_version'),
        'ONESHOT_ACCUMULATE_CHUNKS': ('client', 'accumulate_chunks'),
        'ONESHOT_USER_AGENT': ('transport', 'user_agent'),
        'ONESHOT_CONNECT_TIMEOUT': ('transport', 'connect_timeout'),
        'ONESHOT_CHUNK_SIZE': ('transport', 'chunk_size'),
        'LOG_LEVEL': ('logging', 'level'),
        'LOG_FORMAT': ('logging', 'format'),
    }

    def __init__(self, config_path: str = None, env_file: str = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to config.yaml file. If None, looks for config.yaml
                        in the same directory as this module.
            env_file: Optional .env file loaded before environment overrides
                      are applied. Variables already set in the process win.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        if env_file is not None:
            load_dotenv(env_file)

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        for env_var, config_path in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Navigate to the nested config location
                current = config
                for key in config_path[:-1]:
                    if not isinstance(current.get(key), dict):
                        current[key] = {}
                    current = current[key]

                current[config_path[-1]] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str):
        """Convert environment variable string to appropriate Python type."""
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, *keys, default=None):
        """Get configuration value using dot notation.

        Args:
            *keys: Configuration keys (e.g., 'client', 'timeout_ms')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def client(self) -> Dict[str, Any]:
        """Get request/response handling configuration."""
        return self.get('client', default={})

    @property
    def transport(self) -> Dict[str, Any]:
        """Get HTTP transport configuration."""
        return self.get('transport', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging', default={})


@dataclass(frozen=True)
class ClientSettings:
    """Typed view of the ``client`` section used while assembling a response."""
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    http_version: str = DEFAULT_HTTP_VERSION
    accumulate_chunks: bool = True

    @property
    def timeout(self) -> float:
        """Per-wait timeout in seconds."""
        return self.timeout_ms / 1000.0

    @classmethod
    def from_config(cls, config: Config) -> "ClientSettings":
        section = config.client
        timeout_ms = int(section.get('timeout_ms', DEFAULT_TIMEOUT_MS))
        if timeout_ms <= 0:
            raise ValueError(f"client.timeout_ms must be positive, got {timeout_ms}")
        return cls(
            timeout_ms=timeout_ms,
            http_version=str(section.get('http_version', DEFAULT_HTTP_VERSION)),
            accumulate_chunks=bool(section.get('accumulate_chunks', True)),
        )


# Global configuration instance
config = Config()
