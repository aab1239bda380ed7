"""
Configuration management for dep-notation.

Provides configurable settings for notation parsing, bucket naming and
logging, loaded from a project or user config file and environment overrides.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
import yaml
from rich.console import Console

console = Console(stderr=True)

TEST_FIXTURES_CAPABILITY_APPENDIX = "-test-fixtures"


@dataclass
class NotationConfig:
    """Which notation forms the dependency factory accepts."""

    test_fixtures_suffix: str = TEST_FIXTURES_CAPABILITY_APPENDIX
    allow_string_notation: bool = True
    allow_map_notation: bool = True


@dataclass
class BucketConfig:
    """Names of the four buckets every component owns."""

    implementation: str = "implementation"
    compile_only: str = "compileOnly"
    runtime_only: str = "runtimeOnly"
    annotation_processor: str = "annotationProcessor"

    def names(self) -> List[str]:
        return [
            self.implementation,
            self.compile_only,
            self.runtime_only,
            self.annotation_processor,
        ]


@dataclass
class LoggingConfig:
    """Logging and error handling configuration."""

    log_level: str = "WARNING"


@dataclass
class ComprehensiveConfig:
    """Main configuration containing all subsections."""

    notation: NotationConfig = field(default_factory=NotationConfig)
    buckets: BucketConfig = field(default_factory=BucketConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
_global_config: Optional[ComprehensiveConfig] = None

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    if not config.notation.test_fixtures_suffix:
        errors.append("notation.test_fixtures_suffix must not be empty")
    if ":" in config.notation.test_fixtures_suffix:
        errors.append("notation.test_fixtures_suffix must not contain ':'")

    names = config.buckets.names()
    if any(not name for name in names):
        errors.append("buckets names must not be empty")
    if len(set(names)) != len(names):
        errors.append("buckets names must be distinct")

    if config.logging.log_level.upper() not in _VALID_LOG_LEVELS:
        errors.append(
            f"logging.log_level must be one of {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a JSON, YAML or TOML file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            suffix = config_path.suffix.lower()
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            elif suffix == ".toml":
                return toml.load(f)
            elif suffix == ".json":
                return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"⚠️  Error loading config from {config_path}: {e}", style="yellow", markup=False)

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".dep-notation.json",
        Path.cwd() / ".dep-notation.toml",
        Path.cwd() / ".dep-notation.yaml",
        Path.cwd() / ".dep-notation.yml",
        Path.home() / ".config" / "dep-notation" / "config.json",
        Path.home() / ".config" / "dep-notation" / "config.toml",
        Path.home() / ".config" / "dep-notation" / "config.yaml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Load environment variable overrides."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    if suffix := os.environ.get("DEP_NOTATION_TEST_FIXTURES_SUFFIX"):
        config.notation.test_fixtures_suffix = suffix
    config.notation.allow_string_notation = get_env_bool(
        "DEP_NOTATION_ALLOW_STRING_NOTATION", config.notation.allow_string_notation
    )
    config.notation.allow_map_notation = get_env_bool(
        "DEP_NOTATION_ALLOW_MAP_NOTATION", config.notation.allow_map_notation
    )

    if log_level := os.environ.get("DEP_NOTATION_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def apply_config_data(config: ComprehensiveConfig, file_config: Dict[str, Any]) -> None:
    """Apply every known section of a loaded config mapping."""
    for section_name in ("notation", "buckets", "logging"):
        if section_name in file_config:
            apply_config_section(
                getattr(config, section_name), file_config[section_name], section_name
            )


def load_config() -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    config = ComprehensiveConfig()

    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if file_config:
            apply_config_data(config, file_config)

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        config = ComprehensiveConfig()

    _global_config = config
    return config


def get_config() -> ComprehensiveConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample configuration with every default spelled out."""
    return json.dumps(asdict(ComprehensiveConfig()), indent=2)
