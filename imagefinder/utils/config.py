"""
Configuration management for the image finder crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional, Type
from dataclasses import dataclass, field, fields

from ..exceptions import ConfigError


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    max_depth: int = 2
    max_workers: int = 10
    crawl_timeout: float = 30.0
    politeness_delay: float = 0.1
    request_timeout: float = 10.0
    user_agent: str = "Mozilla/5.0"
    max_pages: Optional[int] = None


@dataclass
class ServerConfig:
    """Configuration for the HTTP request boundary."""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/imagefinder.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = True


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls: Type, name: str, data: Optional[Dict[str, Any]]):
    """Build a config section, rejecting keys the dataclass doesn't define."""
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}")

    return section_cls(**data)


def _check_types(section, name: str, expected: Dict[str, Any]):
    """Raise ConfigError for values whose YAML type doesn't match the field."""
    for key, types in expected.items():
        value = getattr(section, key)
        # bool is an int subclass, but "max_depth: true" is still a mistake
        if isinstance(value, bool) or not isinstance(value, types):
            raise ConfigError(f"{name}.{key} has invalid value {value!r}")


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self, required: bool = True) -> Config:
        """
        Load configuration from YAML file.

        Args:
            required: Raise if the file doesn't exist; otherwise fall back to defaults

        Returns:
            Validated Config instance
        """
        if not self.config_path.exists():
            if required:
                raise ConfigError(f"Configuration file not found: {self.config_path}")
            config_data = {}
        else:
            with open(self.config_path, 'r') as file:
                try:
                    config_data = yaml.safe_load(file) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        self._config = self.from_dict(config_data)
        return self._config

    def from_dict(self, config_data: Dict[str, Any]) -> Config:
        """Build and validate a Config from already-parsed data."""
        if not isinstance(config_data, dict):
            raise ConfigError("Configuration root must be a mapping")

        sections = {
            'crawler': CrawlerConfig,
            'server': ServerConfig,
            'logging': LoggingConfig,
            'monitoring': MonitoringConfig,
        }
        unknown = set(config_data) - set(sections)
        if unknown:
            raise ConfigError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

        self._config = Config(**{
            name: _build_section(section_cls, name, config_data.get(name))
            for name, section_cls in sections.items()
        })

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ConfigError("Configuration not loaded")

        crawler = self._config.crawler
        _check_types(crawler, 'crawler', {
            'max_depth': int,
            'max_workers': int,
            'crawl_timeout': (int, float),
            'politeness_delay': (int, float),
            'request_timeout': (int, float),
            'user_agent': str,
        })
        if crawler.max_pages is not None:
            _check_types(crawler, 'crawler', {'max_pages': int})
        _check_types(self._config.server, 'server', {'host': str, 'port': int})

        if crawler.max_depth < 0:
            raise ConfigError("max_depth must be non-negative")

        if crawler.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")

        if crawler.crawl_timeout <= 0:
            raise ConfigError("crawl_timeout must be positive")

        if crawler.politeness_delay < 0:
            raise ConfigError("politeness_delay must be non-negative")

        if crawler.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

        if crawler.max_pages is not None and crawler.max_pages < 1:
            raise ConfigError("max_pages must be at least 1 when set")

        logging.getLogger(__name__).debug("Configuration validation passed")


def load_config(config_path: str = "config.yaml", required: bool = True) -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config(required=required)
