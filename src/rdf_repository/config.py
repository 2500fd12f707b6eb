"""
Repository configuration.

Provides:
- A serializable configuration object
- Configuration validation
- JSON load/save of config.json in a repository directory
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from rdf_repository.errors import ConfigurationError
from rdf_repository.storage.backend import available_backends

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"

# Keys taken by Repository.__init__ itself
RESERVED_OPTIONS = frozenset({"uri", "title", "backend", "configure"})


@dataclass
class RepositoryConfig:
    """
    Configuration for a repository.

    `options` holds keys the core does not interpret; they are handed to the
    repository unchanged for backend or subclass use.
    """
    uri: Optional[str] = None
    title: Optional[str] = None
    backend: str = "memory"
    backend_options: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "title": self.title,
            "backend": self.backend,
            "backend_options": self.backend_options,
            "options": self.options,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryConfig":
        return cls(
            uri=data.get("uri"),
            title=data.get("title"),
            backend=data.get("backend", "memory"),
            backend_options=data.get("backend_options", {}),
            options=data.get("options", {}),
        )

    def save(self, path: Path) -> Path:
        """Save configuration to config.json in a directory."""
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        config_file = path / CONFIG_FILENAME
        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved repository configuration to {config_file}")
        return config_file

    @classmethod
    def load(cls, path: Path) -> "RepositoryConfig":
        """Load configuration from a directory; defaults if no file exists."""
        config_file = Path(path) / CONFIG_FILENAME
        if not config_file.exists():
            return cls()
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid configuration file {config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration in {config_file} must be a JSON object")
        return cls.from_dict(data)


class ConfigValidator:
    """Validates repository configuration."""

    @staticmethod
    def validate(config: RepositoryConfig) -> List[str]:
        """
        Validate configuration.

        Returns list of error messages (empty if valid).
        """
        errors = []

        if config.uri is not None and not isinstance(config.uri, str):
            errors.append("uri must be a string")
        if config.title is not None and not isinstance(config.title, str):
            errors.append("title must be a string")

        if config.backend not in available_backends():
            errors.append(
                f"Unknown backend: {config.backend} (available: {available_backends()})"
            )

        if not isinstance(config.backend_options, dict):
            errors.append("backend_options must be a mapping")
        if not isinstance(config.options, dict):
            errors.append("options must be a mapping")
        else:
            reserved = RESERVED_OPTIONS & set(config.options)
            if reserved:
                errors.append(
                    f"options cannot contain reserved keys: {sorted(reserved)}"
                )

        return errors

    @staticmethod
    def validate_or_raise(config: RepositoryConfig) -> None:
        """Validate configuration, raising on errors."""
        errors = ConfigValidator.validate(config)
        if errors:
            raise ConfigurationError("; ".join(errors))


def create_default_config(uri: Optional[str] = None, title: Optional[str] = None) -> RepositoryConfig:
    """Create a default in-memory repository configuration."""
    return RepositoryConfig(uri=uri, title=title)
