"""Drive configuration loading and validation.

This module handles the settings of a drive: the anchor root path, the
keep-alive period of the batch cache and the snapshot served by the
in-memory backend. Settings come from a YAML file, from the environment (a
.env file is honoured through python-dotenv), or both, with environment
values taking precedence.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from .batch_cache import DEFAULT_KEEP_ALIVE
from .errors import ConfigError
from .path_utils import normalize_path

logger = logging.getLogger(__name__)

ENV_ROOT = 'SITE_DRIVE_ROOT'
ENV_KEEP_ALIVE = 'SITE_DRIVE_KEEP_ALIVE'
ENV_SNAPSHOT = 'SITE_DRIVE_SNAPSHOT'


@dataclass
class DriveConfig:
    """Settings of one drive.

    Attributes:
        root: Path of the site, container group or list the drive starts at
        keep_alive: Keep-alive period of the batch cache in seconds
        snapshot_path: YAML snapshot served by the in-memory backend
        description: Free text shown by the command line
    """
    root: str = ""
    keep_alive: float = DEFAULT_KEEP_ALIVE
    snapshot_path: Optional[str] = None
    description: str = ""

    def merged(self, **overrides: Any) -> "DriveConfig":
        """Return a copy with the given settings replaced; None values are ignored."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        config = replace(self, **changes)
        ConfigLoader.validate(config)
        return config


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        root: "Team/Lists"
        keep_alive: 2.0
        snapshot_path: "./repository.yaml"
        description: "Team site"
    """

    KNOWN_FIELDS = {'root', 'keep_alive', 'snapshot_path', 'description'}

    @classmethod
    def load(cls, config_path: str) -> DriveConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            DriveConfig with parsed settings

        Raises:
            ConfigError: If the file cannot be read or its content is invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {config_path}")
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}")

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return DriveConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, config: DriveConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            ConfigError: If the file cannot be written
        """
        config_dict: Dict[str, Any] = {
            'root': config.root,
            'keep_alive': config.keep_alive,
        }
        if config.snapshot_path:
            config_dict['snapshot_path'] = config.snapshot_path
        if config.description:
            config_dict['description'] = config.description

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        try:
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except OSError as e:
            raise ConfigError(f"Cannot write {config_path}: {e}")

    @classmethod
    def from_env(cls, base: Optional[DriveConfig] = None) -> DriveConfig:
        """Apply environment settings on top of a configuration.

        Loads a .env file from the working directory first, without
        overriding variables which are already set.

        Args:
            base: Configuration to start from; defaults when None

        Raises:
            ConfigError: If an environment value is invalid
        """
        load_dotenv(find_dotenv(usecwd=True))
        config = base if base is not None else DriveConfig()

        keep_alive = os.getenv(ENV_KEEP_ALIVE)
        if keep_alive:
            try:
                keep_alive_value: Optional[float] = float(keep_alive)
            except ValueError:
                raise ConfigError(f"'{keep_alive}' is not a number", ENV_KEEP_ALIVE)
        else:
            keep_alive_value = None

        root = os.getenv(ENV_ROOT)
        return config.merged(
            root=normalize_path(root) if root is not None else None,
            keep_alive=keep_alive_value,
            snapshot_path=os.getenv(ENV_SNAPSHOT) or None,
        )

    @classmethod
    def validate(cls, config: DriveConfig) -> None:
        """Check the value ranges of a configuration.

        Raises:
            ConfigError: If a value is out of range
        """
        if isinstance(config.keep_alive, bool) or not isinstance(config.keep_alive, (int, float)):
            raise ConfigError("must be a number of seconds", 'keep_alive')
        if config.keep_alive <= 0:
            raise ConfigError(f"must be positive, got {config.keep_alive}", 'keep_alive')
        if not isinstance(config.root, str):
            raise ConfigError("must be a string", 'root')

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> DriveConfig:
        unknown = set(config_dict) - cls.KNOWN_FIELDS
        if unknown:
            logger.warning(f"Ignoring unknown configuration fields: {', '.join(sorted(unknown))}")

        root = config_dict.get('root') or ""
        if not isinstance(root, str):
            raise ConfigError(f"must be a string, got {type(root).__name__}", 'root')

        snapshot_path = config_dict.get('snapshot_path')
        if snapshot_path is not None and not isinstance(snapshot_path, str):
            raise ConfigError(
                f"must be a string, got {type(snapshot_path).__name__}", 'snapshot_path'
            )

        description = config_dict.get('description') or ""
        if not isinstance(description, str):
            raise ConfigError(
                f"must be a string, got {type(description).__name__}", 'description'
            )

        config = DriveConfig(
            root=normalize_path(root),
            keep_alive=config_dict.get('keep_alive', DEFAULT_KEEP_ALIVE),
            snapshot_path=snapshot_path,
            description=description,
        )
        cls.validate(config)
        return config
