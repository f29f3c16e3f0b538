"""
Installer configuration record.

Settings live in ``.package-installer.yaml`` in the working directory, so each
project keeps its own answer to the one-time "contribute new packages"
question. Resolution order for tunables:

1. Command-line flags (applied by the CLI)
2. Environment variables (PKGINSTALLER_*)
3. The YAML file
4. Defaults
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from pkginstaller.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".package-installer.yaml"

ENV_THRESHOLD = "PKGINSTALLER_THRESHOLD"
ENV_MAX_RETRIES = "PKGINSTALLER_MAX_RETRIES"
ENV_INSTALL_TIMEOUT = "PKGINSTALLER_INSTALL_TIMEOUT"


@dataclass
class InstallerConfig:
    """Complete installer configuration"""

    will_contribute: bool | None = None
    similarity_threshold: float = 0.4
    max_retry_hops: int = 1
    install_timeout: int = 300
    verify_timeout: int = 60
    install_command: list[str] = field(default_factory=lambda: ["npm", "install", "{name}"])
    verify_command: list[str] = field(
        default_factory=lambda: ["npm", "list", "{name}", "--depth=0"]
    )
    update_requirements: bool = True
    requirements_file: str = "requirements.txt"
    catalog_file: str = "exists.txt"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstallerConfig":
        """Create a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")
        config = cls(**{key: value for key, value in data.items() if key in known})
        config.validate()
        return config

    def validate(self) -> None:
        """
        Raises:
            ConfigError: If a value is out of range
        """
        if not 0.0 <= float(self.similarity_threshold) < 1.0:
            raise ConfigError(
                f"similarity_threshold must be in [0, 1), got {self.similarity_threshold}"
            )
        if int(self.max_retry_hops) < 0:
            raise ConfigError(f"max_retry_hops must be non-negative, got {self.max_retry_hops}")
        if int(self.install_timeout) <= 0 or int(self.verify_timeout) <= 0:
            raise ConfigError("Timeouts must be positive")
        if self.will_contribute not in (None, True, False):
            raise ConfigError(f"will_contribute must be a boolean, got {self.will_contribute!r}")
        for name in ("install_command", "verify_command"):
            command = getattr(self, name)
            if not isinstance(command, list) or not command:
                raise ConfigError(f"{name} must be a non-empty list")


def apply_env_overrides(config: InstallerConfig) -> InstallerConfig:
    """Override tunables from PKGINSTALLER_* environment variables."""
    try:
        if os.getenv(ENV_THRESHOLD):
            config.similarity_threshold = float(os.environ[ENV_THRESHOLD])
        if os.getenv(ENV_MAX_RETRIES):
            config.max_retry_hops = int(os.environ[ENV_MAX_RETRIES])
        if os.getenv(ENV_INSTALL_TIMEOUT):
            config.install_timeout = int(os.environ[ENV_INSTALL_TIMEOUT])
    except ValueError as e:
        raise ConfigError(f"Invalid environment override: {e}") from e
    config.validate()
    return config


class ConfigManager:
    """
    Loads and persists the installer configuration.

    The configuration is loaded once per run. ``remember_contribution`` is the
    only write path used during installs; save failures are logged and the
    question is simply asked again on the next run.
    """

    def __init__(self, config_path: Path | str | None = None):
        self.config_path = Path(config_path) if config_path else Path.cwd() / DEFAULT_CONFIG_FILE
        self._config: InstallerConfig | None = None
        # Values as read from the file, before environment and CLI overrides
        self._stored: InstallerConfig | None = None

    @property
    def config(self) -> InstallerConfig:
        if self._config is None:
            self.load()
        return self._config

    def load(self) -> InstallerConfig:
        """Load the configuration, falling back to defaults on any error."""
        data: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
                if not isinstance(data, dict):
                    raise ConfigError("Top-level YAML value must be a mapping")
            except (OSError, yaml.YAMLError, ConfigError) as e:
                logger.warning(f"Could not read config {self.config_path}: {e}. Using defaults.")
                data = {}

        try:
            config = InstallerConfig.from_dict(data)
        except (ConfigError, TypeError, ValueError) as e:
            logger.warning(f"Invalid config {self.config_path}: {e}. Using defaults.")
            config = InstallerConfig()

        self._stored = config
        try:
            self._config = apply_env_overrides(replace(config))
        except ConfigError as e:
            logger.warning(f"{e}. Ignoring environment overrides.")
            self._config = replace(config)
        return self._config

    def save(self) -> bool:
        """
        Write the configuration to disk.

        Returns:
            True if the file was written
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.dump(
                    self._stored_config().to_dict(),
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                )
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not save config {self.config_path}: {e}")
            return False
        return True

    def _stored_config(self) -> InstallerConfig:
        if self._stored is None:
            self.load()
        return self._stored

    def remember_contribution(self, answer: bool) -> bool:
        """Cache the contribution answer and persist it."""
        self.config.will_contribute = answer
        self._stored_config().will_contribute = answer
        return self.save()

    def reset_contribution(self) -> bool:
        self.config.will_contribute = None
        self._stored_config().will_contribute = None
        return self.save()
