"""Configuration manager for loading .pacer.yml and resolving the retry policy"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from pacer.domain.config import RetryPolicy
from pacer.infrastructure.config.resolver import ConfigResolver

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".pacer.yml"


class ConfigManager:
    """Manages configuration from .pacer.yml and environment variables

    Configuration priority, lowest first:
    1. Built-in defaults (defined in the resolver)
    2. .pacer.yml file (searched from current directory upwards)
    3. Environment variables (PACER_HTTP_*)
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize config manager

        Args:
            config_path: Path to .pacer.yml (searches from current dir if None)
            environ: Environment variables (default: os.environ)
        """
        # Convert to Path if string
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        self.environ = os.environ if environ is None else environ
        self.values: Dict[str, Any] = self._load_values()

    def _find_config_file(self) -> Optional[Path]:
        """Find .pacer.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_values(self) -> Dict[str, Any]:
        """Load the config file as a flat mapping of dotted keys

        Returns:
            Mapping like {"http.maxRetries": 3}
        """
        if not self.config_path or not self.config_path.exists():
            return {}
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            logger.info("Using default configuration")
            return {}
        if not isinstance(file_config, dict):
            logger.warning(f"Ignoring {self.config_path}: top level must be a mapping")
            return {}
        logger.info(f"Loaded configuration from {self.config_path}")
        return self._flatten(file_config)

    def _flatten(self, config: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        """Flatten nested sections into dotted keys

        Args:
            config: Nested configuration
            prefix: Key prefix of the enclosing section

        Returns:
            Flat configuration
        """
        result: Dict[str, Any] = {}
        for key, value in config.items():
            dotted = f"{prefix}{key}"
            if isinstance(value, dict):
                result.update(self._flatten(value, prefix=f"{dotted}."))
            else:
                result[dotted] = value
        return result

    def get_retry_policy(self) -> RetryPolicy:
        """Resolve the retry policy

        Returns:
            Immutable retry policy

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        return ConfigResolver(self.environ, self.values).resolve()

    def get(self, key: str, default: Any = None) -> Any:
        """Get a raw configuration value by dotted key (case-insensitive)

        Args:
            key: Configuration key (e.g., "http.maxRetries")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        wanted = key.lower()
        for k, value in self.values.items():
            if k.lower() == wanted:
                return value
        return default
