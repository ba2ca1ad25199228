"""
Configuration management for the validation engine.

Configuration documents are validated with the engine itself before
they are merged: each known section is a composite type whose fields
carry validation functions bound with the Throw policy.
"""
import os
import json
import logging
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from copy import deepcopy
from utils.logging_config import get_logger, LoggerFactory
from utils.exceptions import ConfigurationError, ValidationEngineError
from utils.error_handlers import describe_error
from validation.types import UNDEFINED, CompositeType, InputField
from validation.scalars import String, Boolean
from validation.functions import value_validator, with_properties
from validation.registry import BindingRegistry, Policy, DEFAULT_POLICY
from validation.engine import ValueValidator

logger = get_logger(__name__)

ENV_PREFIX = "VALIDATION_"
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

EngineSection = CompositeType('EngineConfig', [
    InputField('default_policy', String, DEFAULT_POLICY.value),
])

LoggingSection = CompositeType('LoggingConfig', [
    InputField('log_level', String, 'WARNING'),
    InputField('log_dir', String, 'logs'),
    InputField('enable_file', Boolean, False),
    InputField('enable_structured', Boolean, False),
])


def _normalize_policy(value: Any) -> Any:
    if value is None or value is UNDEFINED:
        return value
    return Policy.parse(value).value


def _normalize_log_level(value: Any) -> Any:
    if value is None or value is UNDEFINED:
        return value
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError(
            f"Unknown log level: {value}",
            details={'allowed': list(LOG_LEVELS)}
        )
    return level


def _normalize_log_dir(value: Any) -> Any:
    if value is None or value is UNDEFINED or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigurationError(
        f"log_dir must be a path string, got {type(value).__name__}",
        details={'actual_type': type(value).__name__}
    )


def bind_builtin_sections(registry: BindingRegistry) -> Dict[str, CompositeType]:
    """Bind the validations of the built-in sections into `registry`."""
    registry.bind(
        EngineSection,
        EngineSection.field('default_policy'),
        with_properties(value_validator(_normalize_policy), 'policy'),
        Policy.THROW
    )
    registry.bind(
        LoggingSection,
        LoggingSection.field('log_level'),
        with_properties(value_validator(_normalize_log_level), 'logLevel', allowed=list(LOG_LEVELS)),
        Policy.THROW
    )
    registry.bind(
        LoggingSection,
        LoggingSection.field('log_dir'),
        with_properties(value_validator(_normalize_log_dir), 'logDir'),
        Policy.THROW
    )
    for name in ('enable_file', 'enable_structured'):
        registry.bind(LoggingSection, LoggingSection.field(name), None, Policy.THROW)
    return {'engine': EngineSection, 'logging': LoggingSection}


class Config:
    """Configuration container with dot notation access."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = data or {}

    def __getattr__(self, key: str) -> Any:
        """Get a section or value as an attribute."""
        if key.startswith('_'):
            return object.__getattribute__(self, key)

        if key not in self._data:
            raise AttributeError(f"Config has no attribute '{key}'")

        value = self._data[key]
        if isinstance(value, dict):
            return Config(value)
        return value

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any):
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return self.get(key, UNDEFINED) is not UNDEFINED

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted key, e.g. `engine.default_policy`."""
        try:
            value = self._data
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """Set a value by dotted key, creating intermediate sections."""
        keys = key.split('.')
        data = self._data
        for k in keys[:-1]:
            if not isinstance(data.get(k), dict):
                data[k] = {}
            data = data[k]
        data[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        return deepcopy(self._data)

    def update(self, other: Dict[str, Any]):
        """Deep-merge `other` into this configuration."""
        self._deep_update(self._data, other)

    @staticmethod
    def _deep_update(base: Dict, update: Dict):
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                Config._deep_update(base[key], value)
            else:
                base[key] = deepcopy(value)


class ConfigManager:
    """
    Centralized configuration with file, environment and dictionary sources.

    Every source is validated section by section before being merged;
    an invalid document raises `ConfigurationError` and leaves the
    current configuration untouched.
    """

    def __init__(self):
        self._config = Config()
        self.registry = BindingRegistry()
        self.validator = ValueValidator(self.registry, Policy.THROW)
        self._sections: Dict[str, CompositeType] = bind_builtin_sections(self.registry)
        self.logger = get_logger(self.__class__.__name__)

    def register_section(self, name: str, section: CompositeType):
        """
        Validate the `name` section of every loaded document as `section`.

        Validations for its fields are bound through `self.registry`.
        """
        self._sections[name] = section
        self.logger.debug(f"Registered configuration section: {name}")

    def validate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Return `data` with every known section validated."""
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration must be a mapping, got {type(data).__name__}",
                details={'actual_type': type(data).__name__}
            )

        validated = data
        for name, section in self._sections.items():
            if name not in data:
                continue
            try:
                value, _ = self.validator.validate(data[name], section, policy=Policy.THROW, name=name)
            except ValidationEngineError as e:
                raise ConfigurationError(
                    f"Invalid configuration at {'.'.join(getattr(e, 'path', None) or [name])}: {e.message}",
                    details={'section': name, 'error': describe_error(e)}
                ) from e
            if value is not data[name]:
                if validated is data:
                    validated = dict(data)
                validated[name] = value
        return validated

    def load_from_file(self, filepath: str, validate: bool = True):
        """
        Load configuration from a YAML or JSON file.

        Args:
            filepath: Path to configuration file
            validate: Whether to validate the known sections
        """
        path = Path(filepath)

        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {filepath}",
                details={'filepath': str(path)}
            )

        if path.suffix not in ('.yaml', '.yml', '.json'):
            raise ConfigurationError(
                f"Unsupported file format: {path.suffix}",
                details={'filepath': str(path)}
            )

        try:
            with open(path, 'r') as f:
                if path.suffix == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load configuration from {filepath}: {e}",
                details={'filepath': str(path), 'error': str(e)}
            )

        self.load_from_dict(data if data is not None else {}, validate=validate)
        self.logger.info(f"Loaded configuration from {filepath}")

    def load_from_env(self, prefix: str = ENV_PREFIX, environ: Optional[Dict[str, str]] = None):
        """
        Load configuration from environment variables.

        `VALIDATION_ENGINE_DEFAULT_POLICY=THROW` sets
        `engine.default_policy`; the first underscore after the prefix
        separates the section from the key. Values are parsed as JSON
        when possible.
        """
        environ = os.environ if environ is None else environ
        env_config = Config()
        count = 0

        for key, value in environ.items():
            if not key.startswith(prefix):
                continue
            config_key = key[len(prefix):].lower()
            if not config_key:
                continue

            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            env_config.set(config_key.replace('_', '.', 1), parsed_value)
            count += 1

        self.load_from_dict(env_config.to_dict(), validate=True)
        self.logger.info(f"Loaded {count} configuration values from environment")

    def load_from_dict(self, data: Dict[str, Any], validate: bool = True):
        """Validate (unless disabled) and merge a configuration dictionary."""
        if validate:
            data = self.validate(data)
        elif not isinstance(data, dict):
            raise ConfigurationError(f"Configuration must be a mapping, got {type(data).__name__}")
        self._config.update(data)
        self.logger.debug(f"Merged configuration sections: {list(data.keys())}")

    def save_to_file(self, filepath: str, format: str = 'yaml'):
        """
        Save configuration to file.

        Args:
            filepath: Path to save configuration
            format: File format ('yaml' or 'json')
        """
        if format not in ('yaml', 'json'):
            raise ConfigurationError(f"Unsupported format: {format}")

        path = Path(filepath)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w') as f:
                if format == 'yaml':
                    yaml.safe_dump(self._config.to_dict(), f, default_flow_style=False)
                else:
                    json.dump(self._config.to_dict(), f, indent=2)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to save configuration to {filepath}: {e}",
                details={'filepath': str(path), 'error': str(e)}
            )

        self.logger.info(f"Saved configuration to {filepath}")

    def configure_logging(self):
        """Apply the `logging` section to the engine's loggers."""
        LoggerFactory.configure_from(self._config)
        level = logging.getLevelName(logging.getLogger('validation').level)
        self.logger.info(f"Configured logging at level {level}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def set(self, key: str, value: Any, validate: bool = True):
        """Set a value by dotted key, validating its section first."""
        if validate:
            candidate = Config(self._config.to_dict())
            candidate.set(key, value)
            section = key.split('.', 1)[0]
            self.validate({section: candidate.get(section)})
        self._config.set(key, value)
        self.logger.debug(f"Set config: {key} = {value}")

    def get_config(self) -> Config:
        return self._config

    def merge_configs(self, *configs: Dict[str, Any]):
        """Validate and merge several configuration dictionaries in order."""
        for config in configs:
            self.load_from_dict(config)
        self.logger.info(f"Merged {len(configs)} configurations")

    def clear(self):
        self._config = Config()
        self.logger.info("Cleared all configuration")


class ConfigBuilder:
    """Builder for constructing configurations."""

    def __init__(self):
        self._config = {}
        self.logger = get_logger(self.__class__.__name__)

    def set_engine_config(self, default_policy: str = DEFAULT_POLICY.value):
        """Set the policy used for root entries without one."""
        self._config['engine'] = {
            'default_policy': default_policy
        }
        return self

    def set_logging_config(
        self,
        log_dir: str = 'logs',
        log_level: str = 'WARNING',
        enable_file: bool = False,
        enable_structured: bool = False
    ):
        """Set logging configuration."""
        self._config['logging'] = {
            'log_dir': log_dir,
            'log_level': log_level,
            'enable_file': enable_file,
            'enable_structured': enable_structured
        }
        return self

    def add_custom(self, key: str, value: Any):
        """Add custom configuration."""
        self._config[key] = value
        return self

    def build(self) -> Dict[str, Any]:
        """Build and return the configuration."""
        self.logger.debug("Built configuration")
        return deepcopy(self._config)


# Global configuration manager instance
_global_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _global_config_manager
    if _global_config_manager is None:
        _global_config_manager = ConfigManager()
    return _global_config_manager


def load_config(filepath: str):
    """Load configuration from file into global manager."""
    manager = get_config_manager()
    manager.load_from_file(filepath)


def get_config(key: str, default: Any = None) -> Any:
    """Get configuration value from global manager."""
    manager = get_config_manager()
    return manager.get(key, default)


def set_config(key: str, value: Any):
    """Set configuration value in global manager."""
    manager = get_config_manager()
    manager.set(key, value)
