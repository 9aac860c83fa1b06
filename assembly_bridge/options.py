#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: options.py

Description:
------------
Classes for handling generator options in the assembly_bridge package.
"""

import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from loguru import logger

from .core import CollisionPolicy, ProviderKind
from .exceptions import ConfigError
from .identifiers import GLOBAL_NAMESPACE

PathLike = Union[str, Path]


@dataclass
class GeneratorOptions:
    """Data class for storing generator options."""

    # Output options
    manifest_filename: str = "config.toml"
    bridge_filename: str = "handler.js"

    # Naming options
    global_namespace: str = GLOBAL_NAMESPACE
    raw_suffix: str = "_raw"
    collision_policy: str = CollisionPolicy.IGNORE.value

    # Bridge module options
    bridge_package: str = "edge-js"
    generator_name: str = "assembly-bridge"

    # Introspection options
    provider: str = ProviderKind.AUTO.value

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check option values, raising ConfigError on the first bad one."""
        try:
            CollisionPolicy.from_string(self.collision_policy)
            ProviderKind.from_string(self.provider)
        except ValueError as e:
            raise ConfigError(str(e), original_error=e) from e

        for name in ("manifest_filename", "bridge_filename"):
            value = getattr(self, name)
            if not value or Path(value).name != value:
                raise ConfigError(
                    f"{name} must be a plain file name, got {value!r}",
                    invalid_option=name,
                )
        if self.manifest_filename == self.bridge_filename:
            raise ConfigError("manifest_filename and bridge_filename must differ")
        if not self.global_namespace:
            raise ConfigError("global_namespace must not be empty")

    @property
    def collision(self) -> CollisionPolicy:
        return CollisionPolicy.from_string(self.collision_policy)

    @property
    def provider_kind(self) -> ProviderKind:
        return ProviderKind.from_string(self.provider)

    def to_dict(self) -> Dict[str, Any]:
        """Convert options to dictionary."""
        return asdict(self)

    def merged(self, **overrides: Any) -> "GeneratorOptions":
        """Return a copy with every non-None override applied."""
        values = self.to_dict()
        values.update({k: v for k, v in overrides.items() if v is not None and k in values})
        return GeneratorOptions(**values)

    @classmethod
    def from_dict(cls, options_dict: Dict[str, Any]) -> "GeneratorOptions":
        """Create GeneratorOptions from dictionary."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options_dict) - known)
        if unknown:
            logger.warning(f"Ignoring unknown options: {', '.join(unknown)}")
        return cls(**{k: v for k, v in options_dict.items() if k in known})

    @classmethod
    def from_json(cls, json_file: PathLike) -> "GeneratorOptions":
        """Load options from JSON file."""
        try:
            with open(json_file, "r", encoding="utf-8") as f:
                options_dict = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load options from JSON file: {e}")
            raise ConfigError(
                f"Failed to load options from {json_file}: {e}",
                config_path=Path(json_file),
                original_error=e,
            ) from e
        return cls._from_loaded(options_dict, json_file)

    @classmethod
    def from_yaml(cls, yaml_file: PathLike) -> "GeneratorOptions":
        """Load options from YAML file."""
        try:
            with open(yaml_file, "r", encoding="utf-8") as f:
                options_dict = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load options from YAML file: {e}")
            raise ConfigError(
                f"Failed to load options from {yaml_file}: {e}",
                config_path=Path(yaml_file),
                original_error=e,
            ) from e
        return cls._from_loaded(options_dict or {}, yaml_file)

    @classmethod
    def from_file(cls, config_file: PathLike) -> "GeneratorOptions":
        """Load options from a JSON or YAML file, chosen by suffix."""
        if Path(config_file).suffix.lower() in (".yml", ".yaml"):
            return cls.from_yaml(config_file)
        return cls.from_json(config_file)

    @classmethod
    def _from_loaded(cls, options_dict: Any, source: PathLike) -> "GeneratorOptions":
        if not isinstance(options_dict, dict):
            raise ConfigError(
                f"Options file must contain a mapping, got {type(options_dict).__name__}",
                config_path=Path(source),
            )
        return cls.from_dict(options_dict)
