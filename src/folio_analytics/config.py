"""
Configuration loading and management for the portfolio analytics engine.

This module handles loading the engine configuration from YAML files,
resolving the configuration path from the environment or a .env file,
and validation of configuration parameters.
"""

import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import dotenv_values

from folio_analytics.models import EngineConfig


# Default paths for configuration files
PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
DEFAULT_CONFIG_FILE = PROJECT_ROOT / "config" / "engine.yaml"

CONFIG_ENV_VAR = "FOLIO_ANALYTICS_CONFIG"

STATISTICS_PROVIDERS = ("historical", "synthetic")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def resolve_config_path(
    explicit_path: str | Path | None = None,
    env_file: str | Path | None = None,
) -> Optional[Path]:
    """
    Resolve which configuration file to load.

    Sources are checked in this order (first match wins):
    1. explicit_path argument
    2. FOLIO_ANALYTICS_CONFIG environment variable
    3. FOLIO_ANALYTICS_CONFIG in the .env file
    4. config/engine.yaml in the project root, if it exists

    Returns:
        Path to the configuration file, or None to use defaults
    """
    if explicit_path:
        return Path(explicit_path)

    if os.environ.get(CONFIG_ENV_VAR):
        return Path(os.environ[CONFIG_ENV_VAR])

    env_path = Path(env_file) if env_file else DEFAULT_ENV_FILE
    if env_path.exists():
        env_values = dotenv_values(env_path)
        if env_values.get(CONFIG_ENV_VAR):
            return Path(str(env_values[CONFIG_ENV_VAR]))

    if DEFAULT_CONFIG_FILE.exists():
        return DEFAULT_CONFIG_FILE

    return None


def load_engine_config(config_path: str | Path | None = None) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file (None for defaults)

    Returns:
        EngineConfig object with validated settings

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    if config_path is None:
        return EngineConfig()

    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        return EngineConfig()
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    return _parse_engine_config(raw_config)


def _parse_engine_config(raw: dict[str, Any]) -> EngineConfig:
    """
    Parse and validate raw configuration dictionary into EngineConfig.

    Missing keys take the EngineConfig defaults.

    Raises:
        ConfigurationError: If a field is unknown or out of range
    """
    defaults = EngineConfig()
    known = set(asdict(defaults))
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration fields: {', '.join(unknown)}")

    def number(name: str, **bounds) -> float:
        return _parse_float(raw.get(name, getattr(defaults, name)), name, **bounds)

    def integer(name: str, **bounds) -> int:
        return _parse_int(raw.get(name, getattr(defaults, name)), name, **bounds)

    concentration_threshold = number("concentration_threshold", min_val=0, max_val=100)
    high_concentration_threshold = number("high_concentration_threshold", min_val=0, max_val=100)
    if high_concentration_threshold < concentration_threshold:
        raise ConfigurationError(
            "high_concentration_threshold must be >= concentration_threshold"
        )

    statistics_provider = str(raw.get("statistics_provider", defaults.statistics_provider)).strip().lower()
    if statistics_provider not in STATISTICS_PROVIDERS:
        raise ConfigurationError(
            f"statistics_provider must be one of {', '.join(STATISTICS_PROVIDERS)}, "
            f"got {statistics_provider}"
        )

    synthetic_seed = raw.get("synthetic_seed", defaults.synthetic_seed)
    if synthetic_seed is not None:
        synthetic_seed = _parse_int(synthetic_seed, "synthetic_seed")

    return EngineConfig(
        risk_free_rate=number("risk_free_rate", min_val=0, max_val=1),
        periods_per_year=integer("periods_per_year", min_val=1),
        default_expected_return=number("default_expected_return", min_val=-1, max_val=1),
        default_volatility=number("default_volatility", min_val=0, max_val=5),
        var_confidence=number("var_confidence", min_val=0.5, max_val=0.999),
        long_term_days=integer("long_term_days", min_val=1),
        concentration_threshold=concentration_threshold,
        high_concentration_threshold=high_concentration_threshold,
        target_sector_weight=number("target_sector_weight", min_val=0, max_val=100),
        position_alert_threshold=number("position_alert_threshold", min_val=0, max_val=100),
        diversification_volatility_factor=number("diversification_volatility_factor", min_val=0, max_val=2),
        diversification_return_factor=number("diversification_return_factor", min_val=0, max_val=2),
        min_beta_observations=integer("min_beta_observations", min_val=2),
        statistics_provider=statistics_provider,
        synthetic_seed=synthetic_seed,
        quote_cache_ttl=integer("quote_cache_ttl", min_val=0),
    )


def _parse_float(
    value: Any,
    field_name: str,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """
    Parse a float value with optional range validation.

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid numeric value for {field_name}: {value}")
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid numeric value for {field_name}: {value}")

    if min_val is not None and parsed < min_val:
        raise ConfigurationError(f"{field_name} must be >= {min_val}, got {parsed}")

    if max_val is not None and parsed > max_val:
        raise ConfigurationError(f"{field_name} must be <= {max_val}, got {parsed}")

    return parsed


def _parse_int(
    value: Any,
    field_name: str,
    min_val: int | None = None,
) -> int:
    """Parse an integer value with an optional lower bound."""
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid integer value for {field_name}: {value}")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid integer value for {field_name}: {value}")

    if isinstance(value, float) and value != parsed:
        raise ConfigurationError(f"Invalid integer value for {field_name}: {value}")

    if min_val is not None and parsed < min_val:
        raise ConfigurationError(f"{field_name} must be >= {min_val}, got {parsed}")

    return parsed


def write_config(config: EngineConfig, output_path: str | Path) -> None:
    """
    Write an EngineConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        yaml.dump(asdict(config), f, default_flow_style=False, sort_keys=False)
