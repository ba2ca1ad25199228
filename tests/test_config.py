"""Tests for configuration management."""
import json
import logging
import tempfile
from pathlib import Path
import pytest
import yaml
from config import (
    Config, ConfigManager, ConfigBuilder, ConfigPresets,
    get_config_manager, get_config, set_config
)
from validation import CompositeType, InputField, Int, Policy, ValueValidator
from utils.exceptions import ConfigurationError, ValidationError
from utils.logging_config import LoggerFactory


class TestConfig:
    """Tests for the configuration container."""

    def test_dot_access(self):
        """Sections and values are reachable by attribute and dotted key."""
        config = Config({'engine': {'default_policy': 'THROW'}})
        assert config.engine.default_policy == 'THROW'
        assert config.get('engine.default_policy') == 'THROW'
        assert config.get('engine.missing', 'x') == 'x'
        assert 'engine.default_policy' in config
        with pytest.raises(AttributeError):
            config.logging

    def test_set_creates_sections(self):
        """Dotted set creates intermediate sections."""
        config = Config()
        config.set('logging.log_level', 'DEBUG')
        assert config.to_dict() == {'logging': {'log_level': 'DEBUG'}}

    def test_deep_update(self):
        """Updates merge nested sections."""
        config = Config({'logging': {'log_level': 'INFO', 'log_dir': 'logs'}})
        config.update({'logging': {'log_level': 'DEBUG'}})
        assert config.to_dict() == {'logging': {'log_level': 'DEBUG', 'log_dir': 'logs'}}


class TestConfigManager:
    """Tests for loading and validating configuration."""

    def setup_method(self):
        self.manager = ConfigManager()
        self.tmpdir = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)

    def teardown_method(self):
        self.tmpdir.cleanup()

    def test_policy_normalized(self):
        """Policies are validated and normalized to upper case."""
        self.manager.load_from_dict({'engine': {'default_policy': 'throw'}})
        assert self.manager.get('engine.default_policy') == 'THROW'

    def test_invalid_policy(self):
        """An unknown policy is rejected with its location."""
        with pytest.raises(ConfigurationError, match='engine.default_policy'):
            self.manager.load_from_dict({'engine': {'default_policy': 'ignore'}})
        assert self.manager.get('engine') is None

    def test_invalid_logging_values(self):
        """Log levels and flags are checked."""
        with pytest.raises(ConfigurationError, match='logging.log_level'):
            self.manager.load_from_dict({'logging': {'log_level': 'verbose'}})
        with pytest.raises(ConfigurationError, match='logging.enable_file'):
            self.manager.load_from_dict({'logging': {'enable_file': 'yes'}})

    def test_section_must_be_mapping(self):
        """Known sections must be mappings."""
        with pytest.raises(ConfigurationError):
            self.manager.load_from_dict({'engine': 'THROW'})
        with pytest.raises(ConfigurationError):
            self.manager.load_from_dict(['engine'])

    def test_unknown_sections_pass_through(self):
        """Sections without a type are merged unchecked."""
        self.manager.load_from_dict({'custom': {'anything': [1, 2]}})
        assert self.manager.get('custom.anything') == [1, 2]

    def test_validation_can_be_disabled(self):
        """Unvalidated loads merge as given."""
        self.manager.load_from_dict({'engine': {'default_policy': 'ignore'}}, validate=False)
        assert self.manager.get('engine.default_policy') == 'ignore'

    def test_register_section(self):
        """Custom sections are validated through the manager's registry."""
        depth = InputField('max_depth', Int)
        limits = CompositeType('LimitsConfig', [depth])

        def positive(value, *rest):
            if value is not None and value < 0:
                raise ValidationError('must be positive')
            return value

        self.manager.registry.bind(limits, depth, positive, Policy.THROW)
        self.manager.register_section('limits', limits)

        self.manager.load_from_dict({'limits': {'max_depth': 3}})
        assert self.manager.get('limits.max_depth') == 3
        with pytest.raises(ConfigurationError, match='must be positive'):
            self.manager.load_from_dict({'limits': {'max_depth': -1}})

    def test_load_yaml(self):
        """YAML files are loaded and validated."""
        path = self.tmp_path / 'engine.yaml'
        path.write_text(yaml.safe_dump({'engine': {'default_policy': 'resolver'}}))
        self.manager.load_from_file(str(path))
        assert self.manager.get('engine.default_policy') == 'RESOLVER'

    def test_load_json(self):
        """JSON files are loaded and validated."""
        path = self.tmp_path / 'engine.json'
        path.write_text(json.dumps({'logging': {'log_level': 'info'}}))
        self.manager.load_from_file(str(path))
        assert self.manager.get('logging.log_level') == 'INFO'

    def test_empty_yaml(self):
        """An empty document loads nothing."""
        path = self.tmp_path / 'empty.yml'
        path.write_text('')
        self.manager.load_from_file(str(path))
        assert self.manager.get_config().to_dict() == {}

    def test_file_errors(self):
        """Missing, unsupported and malformed files raise configuration errors."""
        with pytest.raises(ConfigurationError):
            self.manager.load_from_file(str(self.tmp_path / 'missing.yaml'))

        ini = self.tmp_path / 'engine.ini'
        ini.write_text('[engine]')
        with pytest.raises(ConfigurationError):
            self.manager.load_from_file(str(ini))

        broken = self.tmp_path / 'broken.json'
        broken.write_text('{not json')
        with pytest.raises(ConfigurationError):
            self.manager.load_from_file(str(broken))

    def test_load_from_env(self):
        """Prefixed variables map to section keys."""
        environ = {
            'VALIDATION_ENGINE_DEFAULT_POLICY': 'throw',
            'VALIDATION_LOGGING_ENABLE_FILE': 'false',
            'VALIDATION_LOGGING_LOG_DIR': '/tmp/validation',
            'OTHER_SETTING': '1',
        }
        self.manager.load_from_env(environ=environ)
        assert self.manager.get('engine.default_policy') == 'THROW'
        assert self.manager.get('logging.enable_file') is False
        assert self.manager.get('logging.log_dir') == '/tmp/validation'
        assert self.manager.get('other') is None

    def test_numeric_log_dir_from_env(self):
        """A numeric directory name from the environment stays a path string."""
        self.manager.load_from_env(environ={'VALIDATION_LOGGING_LOG_DIR': '123'})
        assert self.manager.get('logging.log_dir') == '123'

    def test_invalid_log_dir(self):
        """Non-path log directories are rejected."""
        with pytest.raises(ConfigurationError, match='log_dir'):
            self.manager.load_from_dict({'logging': {'log_dir': ['logs']}})
        with pytest.raises(ConfigurationError, match='log_dir'):
            self.manager.load_from_dict({'logging': {'log_dir': True}})
        assert self.manager.get('logging') is None

    def test_invalid_env(self):
        """Environment values are validated like files."""
        with pytest.raises(ConfigurationError):
            self.manager.load_from_env(environ={'VALIDATION_ENGINE_DEFAULT_POLICY': 'ignore'})

    def test_save_and_reload(self):
        """Saved configuration loads back unchanged."""
        self.manager.load_from_dict(ConfigPresets.strict())
        for name, fmt in (('saved.yaml', 'yaml'), ('saved.json', 'json')):
            path = self.tmp_path / 'out' / name
            self.manager.save_to_file(str(path), format=fmt)
            reloaded = ConfigManager()
            reloaded.load_from_file(str(path))
            assert reloaded.get_config().to_dict() == self.manager.get_config().to_dict()

    def test_save_unsupported_format(self):
        """Only YAML and JSON are written."""
        with pytest.raises(ConfigurationError):
            self.manager.save_to_file(str(self.tmp_path / 'out.toml'), format='toml')

    def test_set_validates(self):
        """Setting a known key validates its section."""
        self.manager.set('engine.default_policy', 'THROW')
        assert self.manager.get('engine.default_policy') == 'THROW'
        with pytest.raises(ConfigurationError):
            self.manager.set('engine.default_policy', 'ignore')
        assert self.manager.get('engine.default_policy') == 'THROW'
        self.manager.set('custom.value', 1)
        assert self.manager.get('custom.value') == 1

    def test_merge_and_clear(self):
        """Merges apply in order; clear empties the configuration."""
        self.manager.merge_configs(ConfigPresets.lenient(), {'engine': {'default_policy': 'THROW'}})
        assert self.manager.get('engine.default_policy') == 'THROW'
        assert self.manager.get('logging.log_level') == 'WARNING'
        self.manager.clear()
        assert self.manager.get('engine') is None

    def test_validator_from_config(self):
        """Validators read the default policy from configuration."""
        self.manager.load_from_dict(ConfigPresets.strict())
        validator = ValueValidator.from_config(self.manager.get_config())
        assert validator.default_policy is Policy.THROW

    def test_configure_logging(self):
        """The logging section configures the engine's loggers."""
        self.manager.load_from_dict(ConfigPresets.debug())
        try:
            self.manager.configure_logging()
            assert logging.getLogger('validation').level == logging.DEBUG
        finally:
            LoggerFactory.configure(force=True)
        assert logging.getLogger('validation').level == logging.WARNING


class TestConfigBuilder:
    """Tests for the configuration builder."""

    def test_build(self):
        """Built configurations validate."""
        config = (
            ConfigBuilder()
            .set_engine_config('throw')
            .set_logging_config(log_level='debug', enable_structured=True)
            .add_custom('service', {'name': 'api'})
            .build()
        )
        manager = ConfigManager()
        manager.load_from_dict(config)
        assert manager.get('engine.default_policy') == 'THROW'
        assert manager.get('logging.log_level') == 'DEBUG'
        assert manager.get('service.name') == 'api'


class TestConfigPresets:
    """Tests for the shipped presets."""

    @pytest.mark.parametrize('preset', [ConfigPresets.lenient, ConfigPresets.strict, ConfigPresets.debug])
    def test_presets_validate(self, preset):
        """Every preset is a valid configuration."""
        manager = ConfigManager()
        manager.load_from_dict(preset())
        assert manager.get('engine.default_policy') in ('RESOLVER', 'THROW')


class TestGlobalConfig:
    """Tests for the module-level helpers."""

    def test_get_and_set(self):
        """The global manager is shared."""
        assert get_config_manager() is get_config_manager()
        set_config('custom.global_value', 7)
        assert get_config('custom.global_value') == 7
        get_config_manager().clear()
