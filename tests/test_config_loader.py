"""Tests for configuration loading, validation and CLI merging."""

import argparse

import pytest

from confluence_exporter.config_loader import ConfigLoader, get_nested


def make_args(**overrides):
    values = {
        'config': None,
        'input_dir': None,
        'output_dir': None,
        'attachment_path': None,
        'no_front_matter': False,
        'log_file': None,
        'verbose': 0,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestLoad:
    """Test YAML loading and environment substitution."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(str(tmp_path / 'missing.yaml'))

    def test_env_var_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv('STORAGE_DIR', str(tmp_path))
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(
            'export:\n'
            '  input_directory: ${STORAGE_DIR}\n'
            '  input_extensions:\n'
            '    - .xml\n',
            encoding='utf-8'
        )

        config = ConfigLoader.load(str(config_file))

        assert config['export']['input_directory'] == str(tmp_path)
        assert config['export']['input_extensions'] == ['.xml']

    def test_unset_env_var_is_left_in_place(self, tmp_path, monkeypatch):
        monkeypatch.delenv('UNSET_STORAGE_DIR', raising=False)
        config_file = tmp_path / 'config.yaml'
        config_file.write_text('export:\n  input_directory: ${UNSET_STORAGE_DIR}\n', encoding='utf-8')

        config = ConfigLoader.load(str(config_file))

        assert config['export']['input_directory'] == '${UNSET_STORAGE_DIR}'
        with pytest.raises(ValueError, match='unsubstituted'):
            ConfigLoader.validate(config)

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / 'config.yaml'
        config_file.write_text('', encoding='utf-8')
        assert ConfigLoader.load(str(config_file)) == {}

    def test_non_mapping_file(self, tmp_path):
        config_file = tmp_path / 'config.yaml'
        config_file.write_text('- just\n- a list\n', encoding='utf-8')
        with pytest.raises(ValueError):
            ConfigLoader.load(str(config_file))


class TestValidate:
    """Test configuration validation."""

    def test_minimal_config(self, tmp_path):
        ConfigLoader.validate({'export': {'input_directory': str(tmp_path)}})

    def test_missing_input_directory(self):
        with pytest.raises(ValueError, match='export.input_directory'):
            ConfigLoader.validate({})

    def test_input_directory_must_exist(self, tmp_path):
        with pytest.raises(ValueError, match='not a valid directory'):
            ConfigLoader.validate({'export': {'input_directory': str(tmp_path / 'nope')}})

    def test_output_directory_must_not_be_a_file(self, tmp_path):
        output_file = tmp_path / 'out.md'
        output_file.write_text('x', encoding='utf-8')
        config = {'export': {'input_directory': str(tmp_path), 'output_directory': str(output_file)}}
        with pytest.raises(ValueError, match='output_directory'):
            ConfigLoader.validate(config)

    def test_front_matter_flag_must_be_boolean(self, tmp_path):
        config = {'export': {'input_directory': str(tmp_path), 'include_front_matter': 'yes'}}
        with pytest.raises(ValueError, match='include_front_matter'):
            ConfigLoader.validate(config)

    def test_extensions_need_leading_dot(self, tmp_path):
        config = {'export': {'input_directory': str(tmp_path), 'input_extensions': ['xml']}}
        with pytest.raises(ValueError, match='input_extensions'):
            ConfigLoader.validate(config)

    def test_attachment_path_must_be_string(self, tmp_path):
        config = {'export': {'input_directory': str(tmp_path)}, 'converter': {'attachment_path': 3}}
        with pytest.raises(ValueError, match='attachment_path'):
            ConfigLoader.validate(config)

    def test_invalid_log_level(self, tmp_path):
        config = {'export': {'input_directory': str(tmp_path)}, 'logging': {'level': 'LOUD'}}
        with pytest.raises(ValueError, match='logging.level'):
            ConfigLoader.validate(config)


class TestMergeWithArgs:
    """Test CLI argument precedence."""

    def test_cli_overrides_config(self):
        config = {'export': {'input_directory': 'from-file', 'output_directory': 'out-file'}}
        args = make_args(input_dir='from-cli', no_front_matter=True, attachment_path='files', verbose=2)

        merged = ConfigLoader.merge_with_args(config, args)

        assert merged['export']['input_directory'] == 'from-cli'
        assert merged['export']['output_directory'] == 'out-file'
        assert merged['export']['include_front_matter'] is False
        assert merged['converter']['attachment_path'] == 'files'
        assert merged['logging']['level'] == 'DEBUG'

    def test_original_config_is_not_mutated(self):
        config = {'export': {'input_directory': 'from-file'}}
        ConfigLoader.merge_with_args(config, make_args(input_dir='from-cli', verbose=1))
        assert config == {'export': {'input_directory': 'from-file'}}

    def test_defaults_leave_config_alone(self):
        config = {'export': {'include_front_matter': True}, 'logging': {'level': 'ERROR'}}
        merged = ConfigLoader.merge_with_args(config, make_args())
        assert merged['export']['include_front_matter'] is True
        assert merged['logging']['level'] == 'ERROR'


class TestGetNested:
    def test_existing_path(self):
        assert get_nested({'a': {'b': {'c': 1}}}, 'a.b.c') == 1

    def test_missing_path_returns_default(self):
        assert get_nested({'a': {'b': 1}}, 'a.x', 'fallback') == 'fallback'
        assert get_nested({'a': 1}, 'a.b') is None
