"""Configuration dataclass and loading utilities.

Provides a strongly-typed configuration object that is injected into
services instead of relying on a global module-level dictionary. Values are
layered: defaults, then ``config.json``, then environment variables.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import copy, json, os, logging
from .defaults import DEFAULT_CONFIG
from .env_config import load_environment_config, EnvironmentConfigError, EnvironmentValidator

logger = logging.getLogger(__name__)

# key -> (min, max), inclusive
NUMERIC_RANGES = {
    'default_pixels_per_cm': (0.001, 100000.0),
    'detection_confidence_threshold': (0.0, 1.0),
    'detection_iou_threshold': (0.0, 1.0),
    'max_inference_size': (32, 4096),
}

VALID_MATCH_MODES = ('exact', 'substring')
VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
BOOL_KEYS = ('use_metric', 'debug', 'log_to_file', 'structured_logging')


@dataclass(slots=True)
class Config:
    # Calibration settings
    reference_object: str = DEFAULT_CONFIG["reference_object"]
    default_pixels_per_cm: float = DEFAULT_CONFIG["default_pixels_per_cm"]
    match_mode: str = DEFAULT_CONFIG["match_mode"]
    reference_synonyms: Dict[str, List[str]] = field(default_factory=dict)

    # Detection settings
    preferred_model: str = DEFAULT_CONFIG["preferred_model"]
    detection_confidence_threshold: float = DEFAULT_CONFIG["detection_confidence_threshold"]
    detection_iou_threshold: float = DEFAULT_CONFIG["detection_iou_threshold"]
    max_inference_size: int = DEFAULT_CONFIG["max_inference_size"]

    # Display and export
    use_metric: bool = DEFAULT_CONFIG["use_metric"]
    results_export_dir: str = DEFAULT_CONFIG["results_export_dir"]

    # Debug and logging
    debug: bool = DEFAULT_CONFIG["debug"]
    log_level: str = DEFAULT_CONFIG["log_level"]
    log_dir: str = DEFAULT_CONFIG["log_dir"]
    log_to_file: bool = DEFAULT_CONFIG["log_to_file"]
    structured_logging: bool = DEFAULT_CONFIG["structured_logging"]

    # Arbitrary extra values retained for forward compatibility
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        # merge extra keys at top-level for saving
        extra = d.pop("extra", {})
        d.update(extra)
        return d

    def get(self, key: str, default: Any = None) -> Any:
        if key in Config.__dataclass_fields__ and key != "extra":
            return getattr(self, key)
        return self.extra.get(key, default)


def load_config(path: str = "config.json", env_file: Optional[str] = None) -> Config:
    """Load configuration from a JSON file with environment overrides.

    A missing, unreadable or malformed file falls back to defaults with a
    logged message. Out-of-range values are replaced by their defaults.

    Args:
        path: Path to config.json file
        env_file: Path to .env file (optional)

    Returns:
        Config: Loaded and validated configuration
    """
    data: Dict[str, Any] = {}

    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded_data = json.load(f)
            if loaded_data is None:
                logger.warning(f"Configuration file '{path}' is empty, using defaults")
            elif not isinstance(loaded_data, dict):
                logger.error(f"Configuration file '{path}' does not contain a JSON object, using defaults")
            else:
                data = loaded_data
                logger.info(f"Loaded configuration from '{path}'")
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON configuration file '{path}': {e}. Using defaults.")
        except PermissionError:
            logger.error(f"Permission denied reading configuration file '{path}'. Using defaults.")
    else:
        logger.info(f"Configuration file '{path}' does not exist. Using defaults.")

    merged = {**copy.deepcopy(DEFAULT_CONFIG), **data}

    try:
        env_config = load_environment_config(env_file)
        merged.update(env_config.overrides())
    except EnvironmentConfigError as e:
        logger.warning(f"Ignoring environment configuration: {e}")

    merged = _sanitize_config_values(merged)

    known = {k for k in Config.__dataclass_fields__ if k != "extra"}
    extra = {k: v for k, v in merged.items() if k not in known}
    if extra:
        logger.info(f"Found extra configuration keys: {list(extra.keys())}")

    return Config(**{k: merged[k] for k in known if k in merged}, extra=extra)


def save_config(cfg: Config, path: str = "config.json") -> None:
    """Save configuration to a JSON file.

    Raises:
        OSError: If the file cannot be written
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cfg.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"Configuration saved to '{path}'")


def _sanitize_config_values(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Replace invalid values with their defaults.

    Args:
        config_dict: Configuration dictionary to sanitize

    Returns:
        dict: Sanitized configuration dictionary
    """
    sanitized = config_dict.copy()

    for key, (min_val, max_val) in NUMERIC_RANGES.items():
        value = sanitized.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.warning(f"Value {key}={value!r} is not numeric, using default")
            sanitized[key] = DEFAULT_CONFIG[key]
        elif not (min_val <= value <= max_val):
            logger.warning(f"Value {key}={value} out of range [{min_val}, {max_val}], using default")
            sanitized[key] = DEFAULT_CONFIG[key]

    for key in BOOL_KEYS:
        value = sanitized.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, str):
            try:
                sanitized[key] = EnvironmentValidator.validate_bool(value)
                continue
            except EnvironmentConfigError:
                pass
        logger.warning(f"Value {key}={value!r} is not a boolean, using default")
        sanitized[key] = DEFAULT_CONFIG[key]

    if sanitized.get('match_mode') not in VALID_MATCH_MODES:
        logger.warning(f"Unknown match_mode {sanitized.get('match_mode')!r}, using default")
        sanitized['match_mode'] = DEFAULT_CONFIG['match_mode']

    level = str(sanitized.get('log_level', '')).upper()
    sanitized['log_level'] = level if level in VALID_LOG_LEVELS else DEFAULT_CONFIG['log_level']
    if sanitized.get('debug'):
        sanitized['log_level'] = 'DEBUG'

    synonyms = sanitized.get('reference_synonyms')
    if not isinstance(synonyms, dict) or not all(
            isinstance(v, list) and all(isinstance(s, str) for s in v) for v in synonyms.values()):
        logger.warning("reference_synonyms must map reference ids to lists of labels, using default")
        sanitized['reference_synonyms'] = {}

    for key in ('reference_object', 'preferred_model', 'results_export_dir', 'log_dir'):
        value = sanitized.get(key)
        if not isinstance(value, str) or not value.strip():
            logger.warning(f"Setting '{key}' must be a non-empty string, using default")
            sanitized[key] = DEFAULT_CONFIG[key]
        else:
            sanitized[key] = value.strip()

    return sanitized
