"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict

import yaml

DEFAULT_INPUT_EXTENSIONS = ['.xml', '.html', '.xhtml']
DEFAULT_OUTPUT_DIRECTORY = './confluence-export'


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'export.input_directory')
        input_dir = get_nested(config, 'export.input_directory')
        if not os.path.isdir(input_dir):
            raise ValueError(f"export.input_directory '{input_dir}' is not a valid directory")

        output_dir = get_nested(config, 'export.output_directory', DEFAULT_OUTPUT_DIRECTORY)
        if not isinstance(output_dir, str) or not output_dir:
            raise ValueError("export.output_directory must be a non-empty string")
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        include_front_matter = get_nested(config, 'export.include_front_matter', True)
        if not isinstance(include_front_matter, bool):
            raise ValueError("export.include_front_matter must be a boolean")

        extensions = get_nested(config, 'export.input_extensions', DEFAULT_INPUT_EXTENSIONS)
        if not isinstance(extensions, list) or not extensions:
            raise ValueError("export.input_extensions must be a non-empty list")
        for extension in extensions:
            if not isinstance(extension, str) or not extension.startswith('.'):
                raise ValueError(
                    f"export.input_extensions entries must start with '.': {extension!r}"
                )

        attachment_path = get_nested(config, 'converter.attachment_path', '')
        if not isinstance(attachment_path, str):
            raise ValueError("converter.attachment_path must be a string")

        default_language = get_nested(config, 'converter.code_language_default', '')
        if not isinstance(default_language, str):
            raise ValueError("converter.code_language_default must be a string")

        level = get_nested(config, 'logging.level')
        if level is not None:
            allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
            if not isinstance(level, str) or level.upper() not in allowed_levels:
                raise ValueError(
                    f"logging.level must be one of: {sorted(allowed_levels)}"
                )

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        # Ensure nested dictionaries exist
        for section in ('export', 'converter', 'logging'):
            if not isinstance(merged.get(section), dict):
                merged[section] = {}

        if getattr(args, 'input_dir', None):
            merged['export']['input_directory'] = args.input_dir

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'no_front_matter', False):
            merged['export']['include_front_matter'] = False

        if getattr(args, 'attachment_path', None):
            merged['converter']['attachment_path'] = args.attachment_path

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        verbose = getattr(args, 'verbose', 0) or 0
        if verbose >= 2:
            merged['logging']['level'] = 'DEBUG'
        elif verbose == 1:
            merged['logging']['level'] = 'INFO'

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        # Check for unsubstituted environment variables
        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "export.output_directory")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'get_nested', 'DEFAULT_INPUT_EXTENSIONS', 'DEFAULT_OUTPUT_DIRECTORY']
