"""Configuration loading and validation."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigError
from ..utils.atomic_io import atomic_write_model
from ..utils.durations import parse_duration

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = parse_duration("14d")
DEFAULT_BASE_DIR = "~/ai-scratch/gh"
DEFAULT_HOME = "~/.config/spoon"
DEFAULT_PURGE_THRESHOLD = 10
DEFAULT_LAUNCH_ALIASES = {
    "claude": "claude",
    "opencode": "opencode",
    "amp": "amp",
}

CONFIG_FILENAME = "config.json"
HISTORY_FILENAME = "history.jsonl"


class SpoonSettings(BaseSettings):
    """Process-level settings, read from SPOON_* environment variables."""
    model_config = SettingsConfigDict(env_prefix="SPOON_")

    home: Path = Field(default=Path(DEFAULT_HOME))
    log_level: str = "WARNING"

    @field_validator("home")
    @classmethod
    def expand_home(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @property
    def config_path(self) -> Path:
        return self.home / CONFIG_FILENAME

    @property
    def history_path(self) -> Path:
        return self.home / HISTORY_FILENAME


class LaunchAlias(BaseModel):
    """A named launch command."""
    command: str
    description: Optional[str] = None


def _normalize_launch_aliases(raw: Any) -> Dict[str, Dict[str, Any]]:
    """Turn bare-string and object aliases into one record shape.

    Entries that are neither a non-empty string nor an object with a string
    ``command`` are dropped with a warning.
    """
    if not isinstance(raw, dict):
        logger.warning(f"Config 'launch' must be an object, got {type(raw).__name__}; using defaults")
        return {name: {"command": cmd} for name, cmd in DEFAULT_LAUNCH_ALIASES.items()}

    normalized: Dict[str, Dict[str, Any]] = {}
    for name, value in raw.items():
        if isinstance(value, LaunchAlias):
            normalized[name] = value.model_dump()
        elif isinstance(value, str) and value.strip():
            normalized[name] = {"command": value.strip()}
        elif (
            isinstance(value, dict)
            and isinstance(value.get("command"), str)
            and value["command"].strip()
        ):
            description = value.get("description")
            normalized[name] = {
                "command": value["command"].strip(),
                "description": description if isinstance(description, str) else None,
            }
        else:
            logger.warning(f"Ignoring malformed launch alias '{name}': {value!r}")
    return normalized


class SpoonConfig(BaseModel):
    """User configuration stored in ``<home>/config.json`` (camelCase keys)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    launch: Dict[str, LaunchAlias] = Field(default_factory=lambda: {
        name: LaunchAlias(command=cmd) for name, cmd in DEFAULT_LAUNCH_ALIASES.items()
    })
    default_launch: str = "claude"
    ttl_ms: int = DEFAULT_TTL_MS
    base_dir: Path = Field(default=Path(DEFAULT_BASE_DIR))

    # Automatic purge only scans once this many repos are cached
    purge_threshold: int = DEFAULT_PURGE_THRESHOLD

    host: str = "github.com"
    shallow_clone: bool = False

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_provider(cls, data: Any) -> Any:
        # Older config files stored the default launcher as "provider"
        if isinstance(data, dict) and "provider" in data and "defaultLaunch" not in data:
            data = dict(data)
            data["defaultLaunch"] = data.pop("provider")
        return data

    @field_validator("launch", mode="before")
    @classmethod
    def normalize_launch(cls, v: Any) -> Dict[str, Dict[str, Any]]:
        return _normalize_launch_aliases(v)

    @field_validator("ttl_ms", mode="before")
    @classmethod
    def parse_ttl(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_validator("ttl_ms", "purge_threshold")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"must be >= 0, got {v}")
        return v

    @field_validator("base_dir")
    @classmethod
    def expand_base_dir(cls, v: Path) -> Path:
        return Path(v).expanduser()

    def resolve_launch(self, alias: Optional[str] = None, override: Optional[str] = None) -> str:
        """
        Pick the command to launch in the checkout.

        Args:
            alias: Launch alias name (defaults to ``default_launch``)
            override: Literal command that bypasses the aliases

        Returns:
            Shell command string

        Raises:
            ConfigError: If the alias is not configured
        """
        if override:
            return override
        name = alias or self.default_launch
        entry = self.launch.get(name)
        if entry is None:
            available = ", ".join(sorted(self.launch)) or "none"
            raise ConfigError(f"Unknown launch alias '{name}'. Available: {available}.")
        return entry.command


def _read_config_file(config_path: Path) -> SpoonConfig:
    """Parse a config file, raising ConfigError for anything unusable."""
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Config file unreadable: {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a JSON object: {config_path}")

    try:
        return SpoonConfig.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e


def load_config(config_path: Path) -> SpoonConfig:
    """Load configuration, falling back to defaults when missing or invalid."""
    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}. Using default configuration.")
        return SpoonConfig()

    try:
        return _read_config_file(config_path)
    except ConfigError as e:
        logger.warning(f"{e}. Using default configuration.")
        return SpoonConfig()


def save_config(config: SpoonConfig, config_path: Path) -> None:
    """Write configuration atomically, creating the home directory if needed."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write_model(config_path, config)
