"""
Configuration management for LocalCosmos.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, List
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'localcosmos.services.cosmosdb.executor': 'DEBUG'}"
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v


class QueryConfig(BaseModel):
    """Query engine configuration."""
    implicit_aliases: List[str] = Field(
        default_factory=lambda: ["c", "r"],
        description="Leading path segments always treated as the collection alias"
    )
    equality_tolerance: float = Field(
        default=1e-6,
        ge=0.0,
        description="Absolute tolerance for numeric equality"
    )
    default_max_item_count: int = Field(
        default=100,
        gt=0,
        description="Page size when a query does not specify one"
    )


class LocalCosmosConfig(BaseModel):
    """Main LocalCosmos configuration schema."""

    version: str = Field(default="0.1.0", description="Configuration version")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    query: QueryConfig = Field(default_factory=QueryConfig)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        for part in parts:
            if not part.isdigit():
                raise ValueError("Version components must be numeric")
        return v

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages LocalCosmos configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. Explicit overrides (CLI arguments)
    2. Environment variables (LOCALCOSMOS_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[LocalCosmosConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> LocalCosmosConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated LocalCosmosConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.debug("Loading LocalCosmos configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.info(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            self._config = LocalCosmosConfig(**config_dict)
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        if log_level := os.getenv("LOCALCOSMOS_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_format := os.getenv("LOCALCOSMOS_LOG_FORMAT"):
            config.setdefault("logging", {})["format"] = log_format.lower()
        if log_file := os.getenv("LOCALCOSMOS_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        if aliases := os.getenv("LOCALCOSMOS_IMPLICIT_ALIASES"):
            config.setdefault("query", {})["implicit_aliases"] = [
                alias.strip() for alias in aliases.split(",") if alias.strip()
            ]
        if tolerance := os.getenv("LOCALCOSMOS_EQUALITY_TOLERANCE"):
            config.setdefault("query", {})["equality_tolerance"] = float(tolerance)
        if page_size := os.getenv("LOCALCOSMOS_MAX_ITEM_COUNT"):
            config.setdefault("query", {})["default_max_item_count"] = int(page_size)

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        if not self._config:
            return
        logger.debug(f"Active configuration: {json.dumps(self._config.model_dump(), indent=2)}")

    def get_config(self) -> LocalCosmosConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> LocalCosmosConfig:
        """Reload configuration from the same file and environment."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
