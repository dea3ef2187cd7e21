"""Configuration Management for the voice agent

Handles loading and validation of application configuration. Supports
hierarchical YAML files with environment-specific overrides and
``VOICEAGENT_<SECTION>_<KEY>`` environment variables.
"""

import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError, validator, SecretStr

from .error_handler import ConfigurationError


class ProcessingConfig(BaseModel):
    """Configuration for fast-path parsing and routing."""
    acceptance_threshold: float = Field(default=0.88, ge=0.0, le=1.0)
    start_tolerance_minutes: int = Field(default=5, ge=0, le=120)
    default_language: str = Field(default="lv")
    max_split_gap_words: int = Field(default=5, ge=1, le=20)
    long_reminder_words: int = Field(default=10, ge=3, le=100)


class TeacherConfig(BaseModel):
    """Configuration for the escalation resolver."""
    enabled: bool = Field(default=True)
    base_url: str = Field(default="https://api.openai.com/v1")
    model: str = Field(default="gpt-4o-mini")
    api_key: Optional[SecretStr] = None
    timeout: float = Field(default=8.0, gt=0.0, le=120.0)
    max_workers: int = Field(default=4, ge=1, le=64)

    @validator('model')
    def validate_model(cls, v):
        """Validate model name format"""
        if not v or len(v) < 3:
            raise ValueError("Model name must be at least 3 characters")
        return v

    @validator('base_url')
    def validate_base_url(cls, v):
        """Validate endpoint scheme"""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Teacher base_url must be an http(s) URL")
        return v.rstrip('/')


class GoldLogConfig(BaseModel):
    """Configuration for the gold log audit database."""
    enabled: bool = Field(default=True)
    db_path: str = Field(default="data/gold_log.db")
    async_writes: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_dir: str = Field(default="logs")
    file_logging: bool = Field(default=True)


class LanguageConfig(BaseModel):
    """Per-language time zone assignment."""
    timezones: Dict[str, str] = Field(default_factory=lambda: {
        "lv": "Europe/Riga",
        "et": "Europe/Tallinn",
    })
    fallback_timezone: str = Field(default="Europe/Riga")

    @validator('timezones')
    def validate_timezones(cls, v):
        """Reject empty language codes"""
        for code in v:
            if not code or len(code) > 8:
                raise ValueError(f"Invalid language code: {code!r}")
        return v


class AppConfig(BaseModel):
    """Main application configuration."""
    app_name: str = Field(default="voiceagent")
    version: str = Field(default="1.0.0")
    environment: str = Field(default="development", pattern="^(development|staging|production|testing)$")
    debug_mode: bool = Field(default=False)

    # Component configurations
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    teacher: TeacherConfig = Field(default_factory=TeacherConfig)
    gold_log: GoldLogConfig = Field(default_factory=GoldLogConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    languages: LanguageConfig = Field(default_factory=LanguageConfig)

    class Config:
        validate_assignment = True


class ConfigManager:
    """Manages application configuration loading and validation."""

    ENV_PREFIX = "VOICEAGENT_"
    SECTIONS = ("processing", "teacher", "gold_log", "logging", "languages")

    def __init__(self, config_path: Optional[Path] = None, environment: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to configuration directory
            environment: Environment name (development, staging, production)
        """
        self.config_base_path = config_path or self._get_default_config_path()
        self.environment = environment or os.getenv('VOICEAGENT_ENV', 'development')
        self._config: Optional[AppConfig] = None
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

        # Configuration file paths
        self.config_files = self._get_config_files()

    def _get_default_config_path(self) -> Path:
        """Get the default configuration directory."""
        # Looking for config in order of precedence
        config_locations = [
            Path("config"),
            Path.home() / ".voiceagent",
            Path("/etc/voiceagent"),
        ]

        for location in config_locations:
            if location.exists() and location.is_dir():
                return location

        # If no config exists, use the project default
        return Path("config")

    def _get_config_files(self) -> Dict[str, Path]:
        """Get configuration file paths for hierarchical loading."""
        base_dir = self.config_base_path

        return {
            'default': base_dir / 'default_config.yaml',
            'environment': base_dir / f'{self.environment}.yaml',
            'local': base_dir / 'local.yaml'  # For development overrides
        }

    @property
    def config(self) -> AppConfig:
        return self.load_config()

    def load_config(self) -> AppConfig:
        """Load and validate configuration with hierarchical overrides.

        Returns:
            Validated application configuration

        Raises:
            ConfigurationError: If a file cannot be parsed or validation fails
        """
        with self._lock:
            if self._config:
                return self._config

            config_data: Dict[str, Any] = {}

            # Load configurations in order of precedence
            for config_type, config_file in self.config_files.items():
                if config_file.exists():
                    self.logger.info(f"Loading {config_type} config from {config_file}")
                    file_data = self._load_yaml_file(config_file)
                    self._deep_merge(config_data, file_data)

            # Apply environment variable overrides
            env_overrides = self._get_env_overrides()
            if env_overrides:
                self.logger.info(f"Applying environment overrides: {sorted(env_overrides.keys())}")
                self._deep_merge(config_data, env_overrides)

            # The conventional OpenAI variable is honoured when no explicit key is set
            teacher_data = config_data.setdefault('teacher', {})
            if not teacher_data.get('api_key') and os.getenv('OPENAI_API_KEY'):
                teacher_data['api_key'] = os.getenv('OPENAI_API_KEY')

            try:
                self._config = AppConfig(**config_data)
            except ValidationError as e:
                self.logger.error(f"Configuration validation failed: {e}")
                raise ConfigurationError(f"Invalid configuration: {e}") from e

            return self._config

    def reload_config(self) -> AppConfig:
        """Drop the cached configuration and load it again."""
        with self._lock:
            self._config = None
        return self.load_config()

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file.

        Returns:
            Configuration dictionary
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            self.logger.error(f"Failed to parse YAML file {file_path}: {e}")
            raise ConfigurationError(f"Invalid YAML in {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {file_path} must be a mapping")
        return data

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Get configuration overrides from environment variables.

        Environment variables follow pattern: VOICEAGENT_<SECTION>_<KEY>
        Example: VOICEAGENT_TEACHER_BASE_URL -> teacher.base_url
        """
        overrides: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX) or key == 'VOICEAGENT_ENV':
                continue

            name = key[len(self.ENV_PREFIX):].lower()
            section = next(
                (s for s in self.SECTIONS if name.startswith(f"{s}_")),
                None
            )
            if section is None:
                overrides[name] = self._convert_env_value(value)
            else:
                field_name = name[len(section) + 1:]
                overrides.setdefault(section, {})[field_name] = self._convert_env_value(value)

        return overrides

    def _convert_env_value(self, value: str) -> Union[str, int, float, bool, List[str]]:
        """Convert environment variable string to appropriate type."""
        # Boolean conversion
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        # Numeric conversion
        try:
            if '.' in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        # List conversion (comma-separated)
        if ',' in value:
            return [v.strip() for v in value.split(',')]

        return value

    def _deep_merge(self, base_dict: Dict[str, Any], update_dict: Dict[str, Any]):
        """Recursively merge nested dictionaries."""
        for key, value in update_dict.items():
            if isinstance(value, dict) and key in base_dict and isinstance(base_dict[key], dict):
                self._deep_merge(base_dict[key], value)
            else:
                base_dict[key] = value
