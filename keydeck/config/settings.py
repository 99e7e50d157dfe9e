"""Parser settings for keydeck.

Settings come from several sources, highest precedence first:

1. Environment variables (``KEYDECK_MAX_NESTING_DEPTH=3``)
2. A YAML config file (explicit path, ``./keydeck.yaml`` or the XDG
   config directory)
3. Default values
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from keydeck.core.errors import ConfigError


logger = logging.getLogger(__name__)

ENV_PREFIX = "KEYDECK_"

#: Limit on both inheritance hops and panel-embedding depth.
DEFAULT_MAX_DEPTH = 5


class ParserSettings(BaseSettings):
    """Tunable knobs of the layout parser.

    The defaults reproduce the documented behavior; changing the depth
    limits is mainly useful for tests and for hosts with unusually deep
    layout libraries.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override constructor arguments (file data)."""
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)

    max_inheritance_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=0,
        description="Maximum number of `inherits` hops from the root layout",
    )
    max_nesting_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=0,
        description="Maximum panel-embedding depth through panel references",
    )
    max_relative_width: float = Field(
        default=10.0,
        gt=0,
        description="Relative widths above this are flagged as unusually large",
    )
    max_relative_height: float = Field(
        default=5.0,
        gt=0,
        description="Relative heights above this are flagged as unusually large",
    )
    warn_missing_metadata: bool = Field(
        default=True, description="Warn when description or author is missing"
    )
    warn_unknown_fields: bool = Field(
        default=True, description="Warn about JSON fields the parser does not know"
    )
    strict: bool = Field(
        default=False, description="Treat every warning as a fatal validation issue"
    )
    log_level: str = Field(default="WARNING", description="Default CLI log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v

    def get_log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        return int(getattr(logging, self.log_level, logging.WARNING))


def _default_config_paths() -> list[Path]:
    paths = [Path.cwd() / "keydeck.yaml", Path.cwd() / ".keydeck.yml"]

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    config_root = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
    paths.extend(
        [config_root / "keydeck" / "config.yaml", config_root / "keydeck" / "config.yml"]
    )
    return paths


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"Config file {path} does not contain a mapping")

    # Settings may live at the top level or under a `parser:` section
    section = content.get("parser", content)
    if not isinstance(section, dict):
        raise ConfigError(f"'parser' section in {path} must be a mapping")
    return section


def load_settings(config_file: str | Path | None = None) -> ParserSettings:
    """Load parser settings from an optional YAML file plus the environment.

    Args:
        config_file: Explicit config file; when omitted the default search
            paths are tried and the first existing file is used

    Returns:
        Validated settings

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid
    """
    file_data: dict[str, Any] = {}

    if config_file is not None:
        path = Path(config_file).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        file_data = _read_config_file(path)
        logger.debug("Loaded keydeck settings from %s", path)
    else:
        for candidate in _default_config_paths():
            if candidate.is_file():
                file_data = _read_config_file(candidate)
                logger.debug("Loaded keydeck settings from %s", candidate)
                break
        else:
            logger.debug("No keydeck config file found, using defaults")

    try:
        return ParserSettings(**file_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid keydeck settings: {e}") from e


__all__ = ["DEFAULT_MAX_DEPTH", "ENV_PREFIX", "ParserSettings", "load_settings"]
