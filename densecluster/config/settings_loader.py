"""
settings_loader.py

Configuration management for densecluster.
Loads and validates settings from YAML configuration with environment variable substitution.

Features:
- YAML configuration loading with validation
- Environment variable substitution (${VAR_NAME} syntax)
- Singleton pattern for global settings access
- Type-safe configuration with Pydantic models
- Default values when no configuration file is present
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from densecluster.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models (Pydantic)
# =============================================================================

class ServiceSettings(BaseModel):
    """General service settings."""
    name: str = Field(default="densecluster", description="Service name")
    version: str = Field(default="1.0.0", description="Service version")
    environment: str = Field(default="production", description="Environment (development, staging, production)")


class DBSCANSettings(BaseModel):
    """DBSCAN clustering algorithm settings."""
    min_density: int = Field(default=4, description="Minimum neighbor count (self included) for a core point")
    epsilon: float = Field(default=0.5, ge=0.0, description="Neighborhood radius")
    metric: str = Field(default="euclidean", description="Distance metric")
    neighbor_query: str = Field(default="linear", description="Neighbor query implementation")
    random_state: Optional[int] = Field(default=None, description="Seed for seed-point selection (null = unseeded)")

    @field_validator("metric", "neighbor_query")
    @classmethod
    def lowercase_name(cls, v: str) -> str:
        return v.lower()


class ClusteringAlgorithmsSettings(BaseModel):
    """Algorithm-specific settings."""
    dbscan: DBSCANSettings = Field(default_factory=DBSCANSettings)


class ClusteringSettings(BaseModel):
    """Main clustering configuration."""
    default_algorithm: str = Field(default="dbscan", description="Default clustering algorithm")
    algorithms: ClusteringAlgorithmsSettings = Field(default_factory=ClusteringAlgorithmsSettings)


class FileLoggingSettings(BaseModel):
    """File logging configuration."""
    enabled: bool = Field(default=False, description="Enable file logging")
    path: str = Field(default="logs/densecluster.log", description="Log file path")
    max_size_mb: int = Field(default=100, ge=1, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, description="Number of backup files")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="console", description="Log format (json or console)")
    file: FileLoggingSettings = Field(default_factory=FileLoggingSettings)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in {"json", "console"}:
            raise ValueError(f"Unknown log format: {v}")
        return v


class Settings(BaseModel):
    """Root configuration model."""
    service: ServiceSettings = Field(default_factory=ServiceSettings)
    clustering: ClusteringSettings = Field(default_factory=ClusteringSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# =============================================================================
# Configuration Manager (Singleton)
# =============================================================================

class ConfigManager:
    """
    Singleton configuration manager that loads and caches settings.

    Features:
    - Loads YAML configuration from file
    - Substitutes environment variables using ${VAR_NAME} syntax
    - Validates configuration using Pydantic models
    - Provides global access to settings
    """

    _instance: Optional['ConfigManager'] = None
    _settings: Optional[Settings] = None

    def __new__(cls):
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    @classmethod
    def load_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to configuration file. If None, searches the
                default locations and falls back to built-in defaults.

        Returns:
            Settings object with validated configuration

        Raises:
            ConfigurationError: If an explicit file is missing or the configuration is invalid
        """
        if cls._settings is not None:
            return cls._settings

        if config_path is None:
            possible_paths = [
                Path(os.getenv("DENSECLUSTER_CONFIG", "config/settings.yaml")),
                Path("config/settings.yaml"),
            ]

            config_path_obj = next((path for path in possible_paths if path.exists()), None)
            if config_path_obj is None:
                logger.warning(
                    f"Config file not found in any of: {[str(p) for p in possible_paths]}. Using defaults."
                )
                cls._settings = Settings()
                return cls._settings
        else:
            config_path_obj = Path(config_path)
            if not config_path_obj.exists():
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    details={"path": str(config_path)},
                )

        logger.info(f"Loading configuration from: {config_path_obj}")

        try:
            with open(config_path_obj, 'r') as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to load YAML configuration: {e}")
            raise ConfigurationError(f"Invalid YAML configuration: {e}") from e

        config_dict = cls._substitute_env_vars(raw_config)

        try:
            cls._settings = Settings(**config_dict)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"errors": e.errors(include_url=False)},
            ) from e

        logger.info("Configuration loaded and validated successfully")
        return cls._settings

    @classmethod
    def get_settings(cls) -> Settings:
        """
        Get cached settings. Loads from default path if not already loaded.

        Returns:
            Settings object
        """
        if cls._settings is None:
            cls.load_config()
        return cls._settings

    @classmethod
    def _substitute_env_vars(cls, config: Any) -> Any:
        """
        Recursively substitute environment variables in configuration.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.

        Args:
            config: Configuration dictionary or value

        Returns:
            Configuration with substituted values
        """
        if isinstance(config, dict):
            return {k: cls._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [cls._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            # Match ${VAR_NAME} or ${VAR_NAME:default}
            pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

            def replace_var(match):
                var_name = match.group(1)
                default_value = match.group(2) if match.group(2) is not None else ""
                return os.getenv(var_name, default_value)

            return re.sub(pattern, replace_var, config)
        else:
            return config

    @classmethod
    def reload_config(cls, config_path: Optional[str] = None) -> Settings:
        """
        Reload configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            Reloaded Settings object
        """
        cls._settings = None
        return cls.load_config(config_path)

    @classmethod
    def reset(cls) -> None:
        """Drop cached settings."""
        cls._settings = None


# =============================================================================
# Convenience Functions
# =============================================================================

def get_settings() -> Settings:
    """
    Get application settings (convenience function).

    Returns:
        Settings object
    """
    return ConfigManager.get_settings()
