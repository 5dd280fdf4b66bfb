"""
Merge Configuration

Loads output settings for the merged mod from a YAML file, then applies
environment variable overrides. Command-line flags override both.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from dommerger.core.result import MergeError

logger = logging.getLogger(__name__)


class ConfigError(MergeError):
    """Configuration file unreadable or invalid."""


# Default configuration file locations (checked in order)
CONFIG_SEARCH_PATHS = [
    Path.home() / ".dommerger" / "config.yaml",
]

DEFAULT_MOD_NAME = "Merged_Mod"

MOD_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_CONFIG = {
    "mod_name": DEFAULT_MOD_NAME,
    "display_name": "Merged Mod",
    "description": "A merged mod combining multiple mods",
    "version": "1.0",
    "icon": None,
    "output_dir": str(Path.home() / ".dominions6" / "mods"),
    "log_level": "INFO",
    "parse_workers": 4,
}


def sanitize_mod_name(name: str) -> str:
    """Turn a display name into a technical mod name ([A-Za-z0-9_-])."""
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", name.strip())
    cleaned = re.sub(r"_+", "_", cleaned).strip("_")
    return cleaned or DEFAULT_MOD_NAME


class MergeConfig:
    """Configuration for one merge run."""

    def __init__(self, config_path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        # Load from file if found
        self._load_config(config_path)

        # Override with environment variables
        self._apply_env_overrides()

        if overrides:
            self._config.update({k: v for k, v in overrides.items() if v is not None})

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file."""
        if explicit_path is not None:
            explicit_path = Path(explicit_path)
            if not explicit_path.exists():
                raise ConfigError(f"Config file not found: {explicit_path}")
            self._read(explicit_path)
            return

        for config_path in CONFIG_SEARCH_PATHS:
            if config_path.exists():
                try:
                    self._read(config_path)
                except ConfigError as e:
                    logger.warning("Ignoring config %s: %s", config_path, e)
                    continue
                return

    def _read(self, config_path: Path) -> None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {config_path}: {e}") from e
        if not isinstance(user_config, dict):
            raise ConfigError(f"Config {config_path} must be a mapping")
        self._config.update(user_config)
        self._config_path = config_path
        logger.debug("Loaded config from %s", config_path)

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        env_mappings = {
            "DOMMERGER_OUTPUT_DIR": "output_dir",
            "DOMMERGER_MOD_NAME": "mod_name",
            "DOMMERGER_LOG_LEVEL": "log_level",
        }

        for env_var, config_key in env_mappings.items():
            if env_var in os.environ:
                self._config[config_key] = os.environ[env_var]

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def mod_name(self) -> str:
        """Technical name: output folder and .dm file name."""
        return str(self._config["mod_name"])

    @property
    def display_name(self) -> str:
        """Name shown in game (#modname)."""
        return str(self._config["display_name"])

    @property
    def description(self) -> str:
        return str(self._config["description"] or "")

    @property
    def version(self) -> str:
        return str(self._config["version"])

    @property
    def icon(self) -> Optional[Path]:
        icon = self._config.get("icon")
        return Path(icon).expanduser() if icon else None

    @property
    def output_dir(self) -> Path:
        return Path(self._config["output_dir"]).expanduser()

    @property
    def output_path(self) -> Path:
        """<output_dir>/<mod_name>/<mod_name>.dm"""
        return self.output_dir / self.mod_name / f"{self.mod_name}.dm"

    @property
    def log_level(self) -> str:
        return str(self._config.get("log_level", "INFO")).upper()

    @property
    def parse_workers(self) -> int:
        return int(self._config.get("parse_workers", 4))

    def validate(self) -> List[str]:
        """Human-readable problems; empty when the config is usable."""
        errors = []
        if not MOD_NAME_PATTERN.match(self.mod_name):
            errors.append(
                f"Mod name '{self.mod_name}' may only contain letters, numbers, "
                f"underscores and hyphens"
            )
        if not self.display_name.strip():
            errors.append("Display name cannot be empty")
        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log level '{self.log_level}'")
        try:
            if self.parse_workers < 1:
                errors.append("parse_workers must be at least 1")
        except (TypeError, ValueError):
            errors.append("parse_workers must be an integer")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "mod_name": self.mod_name,
            "display_name": self.display_name,
            "description": self.description,
            "version": self.version,
            "icon": str(self.icon) if self.icon else None,
            "output_dir": str(self.output_dir),
            "log_level": self.log_level,
            "parse_workers": self._config.get("parse_workers"),
            "config_file": str(self._config_path) if self._config_path else None,
        }


def write_default_config(path: Optional[Path] = None) -> Path:
    """
    Write a default configuration file.

    Returns the path where config was written.
    """
    if path is None:
        path = CONFIG_SEARCH_PATHS[0]

    path.parent.mkdir(parents=True, exist_ok=True)
    output_dir = DEFAULT_CONFIG["output_dir"]

    config_content = f"""# Dominions Mod Merger Configuration
#
# Any setting can also be given on the command line.
# Environment overrides: DOMMERGER_OUTPUT_DIR, DOMMERGER_MOD_NAME, DOMMERGER_LOG_LEVEL

# Technical name (letters, numbers, _ and -); used for the folder and .dm file
mod_name: "{DEFAULT_MOD_NAME}"

# Name shown in game
display_name: "Merged Mod"

description: "A merged mod combining multiple mods"
version: "1.0"

# icon: "~/mods/banner.tga"

# Where <mod_name>/<mod_name>.dm is written
output_dir: '{output_dir}'

log_level: INFO
parse_workers: 4
"""

    path.write_text(config_content, encoding="utf-8")
    return path
