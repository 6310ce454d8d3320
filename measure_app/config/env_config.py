"""Environment variable configuration.

Values come from a ``.env`` file (if present) and the process environment,
the latter taking priority. Every value is validated; an invalid one raises
:class:`EnvironmentConfigError` naming the variable.
"""
import os
import logging
from typing import Optional, Dict, Union
from pathlib import Path
from dataclasses import dataclass
from ..core.exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "MEASURE_"


@dataclass(frozen=True)
class EnvironmentConfig:
    """Immutable environment configuration object."""

    preferred_model: Optional[str] = None
    reference_object: Optional[str] = None
    default_pixels_per_cm: Optional[float] = None
    detection_confidence_threshold: Optional[float] = None
    results_export_dir: Optional[str] = None
    debug_logging: bool = False

    def overrides(self) -> Dict[str, Union[str, float, bool]]:
        """Configuration keys explicitly set through the environment."""
        values = {
            "preferred_model": self.preferred_model,
            "reference_object": self.reference_object,
            "default_pixels_per_cm": self.default_pixels_per_cm,
            "detection_confidence_threshold": self.detection_confidence_threshold,
            "results_export_dir": self.results_export_dir,
        }
        result = {k: v for k, v in values.items() if v is not None}
        if self.debug_logging:
            result["debug"] = True
            result["log_level"] = "DEBUG"
        return result


class EnvironmentConfigError(ConfigError):
    """Raised when an environment variable holds an invalid value."""
    pass


class EnvironmentValidator:
    """Validates environment variable values."""

    TRUE_VALUES = {'1', 'true', 'yes', 'on'}
    FALSE_VALUES = {'0', 'false', 'no', 'off', ''}

    @classmethod
    def validate_numeric_range(cls, value: Union[str, int, float],
                               min_val: Optional[Union[int, float]] = None,
                               max_val: Optional[Union[int, float]] = None,
                               value_type: type = int) -> Union[int, float]:
        """Validate numeric value within specified range.

        Raises:
            EnvironmentConfigError: If validation fails
        """
        try:
            numeric_value = value_type(value)
        except (ValueError, TypeError):
            raise EnvironmentConfigError(f"Invalid {value_type.__name__} value: {value}")

        if min_val is not None and numeric_value < min_val:
            raise EnvironmentConfigError(f"Value {numeric_value} below minimum {min_val}")

        if max_val is not None and numeric_value > max_val:
            raise EnvironmentConfigError(f"Value {numeric_value} above maximum {max_val}")

        return numeric_value

    @classmethod
    def validate_bool(cls, value: str) -> bool:
        lowered = value.strip().lower()
        if lowered in cls.TRUE_VALUES:
            return True
        if lowered in cls.FALSE_VALUES:
            return False
        raise EnvironmentConfigError(f"Invalid boolean value: {value}")


def load_env_file(env_path: Optional[str] = None) -> Dict[str, str]:
    """Load KEY=VALUE pairs from a .env file.

    Args:
        env_path: Path to .env file. Defaults to .env in current directory.

    Returns:
        dict: Loaded environment variables (empty if the file is missing)
    """
    if env_path is None:
        env_path = ".env"

    env_vars = {}
    env_file_path = Path(env_path)

    if not env_file_path.exists():
        logger.debug(f"Environment file {env_path} not found, using system environment only")
        return env_vars

    with open(env_file_path, 'r', encoding='utf-8') as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith('#'):
                continue

            if '=' in line:
                key, value = line.split('=', 1)
                key = key.strip()
                value = value.strip()

                # Remove quotes if present
                if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                    value = value[1:-1]

                env_vars[key] = value
            else:
                logger.warning(f"Invalid line format in {env_path}:{line_num}: {line}")

    logger.info(f"Loaded {len(env_vars)} variables from {env_path}")
    return env_vars


def get_env_var(key: str, default: Optional[str] = None,
                env_vars: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Get environment variable; the process environment wins over the .env file."""
    value = os.getenv(key)
    if value is None and env_vars:
        value = env_vars.get(key)
    return value if value is not None else default


def load_environment_config(env_file_path: Optional[str] = None) -> EnvironmentConfig:
    """Load and validate environment configuration.

    Raises:
        EnvironmentConfigError: If a variable holds an invalid value
    """
    env_vars = load_env_file(env_file_path)

    def var(name: str) -> Optional[str]:
        value = get_env_var(ENV_PREFIX + name, env_vars=env_vars)
        if value is not None and not value.strip():
            return None
        return value

    def checked(name, convert):
        raw = var(name)
        if raw is None:
            return None
        try:
            return convert(raw)
        except EnvironmentConfigError as e:
            raise EnvironmentConfigError(f"{ENV_PREFIX}{name}: {e}") from None

    config = EnvironmentConfig(
        preferred_model=var("MODEL"),
        reference_object=var("REFERENCE_OBJECT"),
        default_pixels_per_cm=checked(
            "DEFAULT_PPCM",
            lambda v: EnvironmentValidator.validate_numeric_range(v, 0.001, 100000.0, float)),
        detection_confidence_threshold=checked(
            "CONFIDENCE",
            lambda v: EnvironmentValidator.validate_numeric_range(v, 0.0, 1.0, float)),
        results_export_dir=var("RESULTS_DIR"),
        debug_logging=bool(checked("DEBUG", EnvironmentValidator.validate_bool)),
    )
    if config.overrides():
        logger.debug(f"Environment overrides: {sorted(config.overrides())}")
    return config


__all__ = [
    "EnvironmentConfig",
    "EnvironmentConfigError",
    "EnvironmentValidator",
    "load_env_file",
    "get_env_var",
    "load_environment_config",
]
