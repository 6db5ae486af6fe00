"""
Configuration management for the CHIP-8 emulator.

This module loads, validates and provides access to emulator settings.
Values are layered: built-in defaults, then the selected machine preset,
then an optional JSON or YAML file, then explicit overrides (for example
from the command line).
"""

import os
import json
import logging
import copy
from typing import Dict, Any, Optional, List

import yaml

from ..constants import SPRITE_EDGE_MODES, JUMP_OFFSET_MODES, LOG_LEVELS
from ..system_configs import SYSTEM_CONFIGS
from ..common.exceptions import ConfigurationError

logger = logging.getLogger("Chip8Emulator.ConfigManager")

# Top-level keys whose values must be nested mappings
MAPPING_SECTIONS = ["quirks", "timers", "execution", "random", "logging"]

class ConfigManager:
    """
    Configuration management for the CHIP-8 emulator.

    Supports JSON and YAML files, dotted key paths ('quirks.sprite_edge')
    and validation of every known setting.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (None for default values)
        """
        self.defaults = {
            "system": "chip8",
            "quirks": {
                "sprite_edge": "clip",
                "jump_offset": "standard",
            },
            "timers": {
                "tick_on_step": True,
            },
            "execution": {
                "steps_per_frame": 10,
            },
            "random": {
                "seed": None,
            },
            "logging": {
                "level": "INFO",
                "file": None,
            },
        }

        # Current configuration (copy of defaults initially)
        self.config = copy.deepcopy(self.defaults)

        # Set of keys that have been modified from defaults
        self.modified_keys = set()

        if config_path:
            self.load_config(config_path)

        logger.debug("ConfigManager initialized")

    def load_config(self, config_path: str) -> None:
        """
        Load configuration from file.

        Args:
            config_path: Path to a .json, .yaml or .yml file

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        _, ext = os.path.splitext(config_path)
        ext = ext.lower()

        try:
            with open(config_path, 'r') as f:
                if ext == '.json':
                    user_config = json.load(f)
                elif ext in ['.yaml', '.yml']:
                    user_config = yaml.safe_load(f) or {}
                else:
                    raise ConfigurationError(f"Unsupported configuration format: {ext}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e

        self.load_from_dict(user_config)
        logger.info(f"Configuration loaded from {config_path}")

    def load_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """
        Merge a configuration dictionary over the current values.

        Raises:
            ConfigurationError: If validation fails
        """
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a mapping")

        validation_errors = self.validate_config(config_dict)
        if validation_errors:
            for error in validation_errors:
                logger.error(f"Configuration validation error: {error}")
            raise ConfigurationError("; ".join(validation_errors))

        self._merge_config(config_dict)
        logger.debug("Configuration loaded from dictionary")

    def _merge_config(self, user_config: Dict[str, Any], path: str = "", target: Optional[Dict[str, Any]] = None) -> None:
        """
        Merge user configuration into the current values, tracking modified keys.

        Args:
            user_config: User configuration dictionary
            path: Current key path for tracking (internal use)
            target: Dictionary being merged into (internal use)
        """
        if target is None:
            target = self.config

        for key, value in user_config.items():
            current_path = f"{path}.{key}" if path else key

            if isinstance(value, dict) and isinstance(target.get(key), dict):
                self._merge_config(value, current_path, target[key])
            else:
                target[key] = value
                self.modified_keys.add(current_path)

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if "system" in config and (not isinstance(config["system"], str) or config["system"] not in SYSTEM_CONFIGS):
            valid_systems = ", ".join(SYSTEM_CONFIGS.keys())
            errors.append(f"Invalid system type: {config['system']}. Valid options: {valid_systems}")

        sections = {}
        for name in MAPPING_SECTIONS:
            section = config.get(name, {})
            if not isinstance(section, dict):
                errors.append(f"{name} must be a mapping")
                section = {}
            sections[name] = section

        quirks = sections["quirks"]
        if "sprite_edge" in quirks and quirks["sprite_edge"] not in SPRITE_EDGE_MODES:
            errors.append(f"Invalid quirks.sprite_edge: {quirks['sprite_edge']}. "
                          f"Valid options: {', '.join(SPRITE_EDGE_MODES)}")
        if "jump_offset" in quirks and quirks["jump_offset"] not in JUMP_OFFSET_MODES:
            errors.append(f"Invalid quirks.jump_offset: {quirks['jump_offset']}. "
                          f"Valid options: {', '.join(JUMP_OFFSET_MODES)}")

        timers = sections["timers"]
        if "tick_on_step" in timers and not isinstance(timers["tick_on_step"], bool):
            errors.append(f"Invalid timers.tick_on_step: {timers['tick_on_step']}. Must be a boolean")

        execution = sections["execution"]
        if "steps_per_frame" in execution:
            steps = execution["steps_per_frame"]
            if isinstance(steps, bool) or not isinstance(steps, int) or steps < 1:
                errors.append(f"Invalid execution.steps_per_frame: {steps}. Must be a positive integer")

        seed = sections["random"].get("seed")
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int) or seed < 0):
            errors.append(f"Invalid random.seed: {seed}. Must be a non-negative integer or null")

        log_config = sections["logging"]
        if "level" in log_config and log_config["level"] not in LOG_LEVELS:
            errors.append(f"Invalid logging.level: {log_config['level']}. Valid options: {', '.join(LOG_LEVELS)}")

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'quirks.sprite_edge')
            default: Default value if key not found

        Returns:
            Configuration value or default if not found
        """
        value = self.config
        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by key path.

        The value is validated before it is stored.

        Raises:
            ConfigurationError: If the value is invalid for the key
        """
        keys = key.split('.')

        candidate = value
        for k in reversed(keys):
            candidate = {k: candidate}
        validation_errors = self.validate_config(candidate)
        if validation_errors:
            raise ConfigurationError("; ".join(validation_errors))

        config = self.config
        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

        self.modified_keys.add(key)
        logger.debug(f"Configuration updated: {key} = {value}")

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset configuration to defaults.

        Args:
            key: Key path to reset (None for all)
        """
        if key is None:
            self.config = copy.deepcopy(self.defaults)
            self.modified_keys.clear()
            logger.info("Configuration reset to defaults")
            return

        keys = key.split('.')
        default_value = self.defaults
        for k in keys:
            if not isinstance(default_value, dict) or k not in default_value:
                default_value = None
                break
            default_value = default_value[k]

        config = self.config
        for k in keys[:-1]:
            if k not in config:
                return
            config = config[k]
        config[keys[-1]] = copy.deepcopy(default_value)

        self.modified_keys = {
            k for k in self.modified_keys if k != key and not k.startswith(key + ".")
        }
        logger.info(f"Configuration key reset to default: {key}")

    def save_config(self, config_path: str, format: str = 'json') -> None:
        """
        Save current configuration to file.

        Args:
            config_path: Path to output file
            format: Output format ('json' or 'yaml')
        """
        directory = os.path.dirname(config_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        if format.lower() == 'json':
            with open(config_path, 'w') as f:
                json.dump(self.config, f, indent=2)
        elif format.lower() in ['yaml', 'yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(self.config, f, default_flow_style=False)
        else:
            raise ConfigurationError(f"Unsupported configuration format: {format}")

        logger.info(f"Configuration saved to {config_path}")

    def get_modified_config(self) -> Dict[str, Any]:
        """
        Get a dictionary containing only modified configuration values.

        Returns:
            Dictionary with modified values
        """
        modified_config = {}

        for key in self.modified_keys:
            current = modified_config
            keys = key.split('.')
            for k in keys[:-1]:
                current = current.setdefault(k, {})
            current[keys[-1]] = copy.deepcopy(self.get(key))

        return modified_config

    def get_system_config(self) -> Dict[str, Any]:
        """
        Get the selected machine preset.

        Returns:
            System configuration dictionary
        """
        return SYSTEM_CONFIGS[self.get("system", "chip8")]

    def build_machine_config(self) -> Dict[str, Any]:
        """
        Build the configuration consumed by Chip8System.

        Preset values apply unless the key was explicitly set.

        Returns:
            Machine configuration dictionary
        """
        preset = self.get_system_config()

        def pick(key: str, preset_value: Any) -> Any:
            return self.get(key) if key in self.modified_keys else preset_value

        return {
            "system": self.get("system"),
            "sprite_edge": pick("quirks.sprite_edge", preset["quirks"]["sprite_edge"]),
            "jump_offset": pick("quirks.jump_offset", preset["quirks"]["jump_offset"]),
            "steps_per_frame": pick("execution.steps_per_frame", preset["steps_per_frame"]),
            "tick_on_step": self.get("timers.tick_on_step"),
            "rng_seed": self.get("random.seed"),
        }

    def as_dict(self) -> Dict[str, Any]:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)
