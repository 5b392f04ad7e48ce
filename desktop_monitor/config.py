from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from desktop_monitor.parsing.line_classifier import DEFAULT_MAX_LINE_LENGTH

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


@dataclass
class HelperConfig:
    """Helper executable location and arguments."""

    path: str | None = None
    args: list[str] = field(default_factory=list)


@dataclass
class ClassifierConfig:
    """Line classifier limits."""

    max_line_length: int | None = DEFAULT_MAX_LINE_LENGTH


@dataclass
class DebugConfig:
    """Debug mode settings."""

    enabled: bool = False
    trace: bool = False
    verbose: bool = False


@dataclass
class AppConfig:
    """Top-level application configuration aggregating all subsections."""

    helper: HelperConfig = field(default_factory=HelperConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)


def load_config(path: str | None) -> AppConfig:
    """Load and validate application configuration from a YAML file.

    Every section is optional; missing or null sections take their
    defaults. Passing None skips the file entirely.

    Args:
        path: Filesystem path to the YAML configuration file, or None.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        ConfigError: If the file does not exist, is not a mapping, or
            holds invalid values (non-list helper.args, non-positive
            classifier.max_line_length).
    """
    if path is None:
        return AppConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(raw).__name__}")

    # `or {}` fallback handles YAML null values for optional sections
    helper_raw = raw.get("helper", {}) or {}
    classifier_raw = raw.get("classifier", {}) or {}
    debug_raw = raw.get("debug", {}) or {}

    args = helper_raw.get("args", []) or []
    if not isinstance(args, list):
        raise ConfigError("helper.args must be a list")

    max_line_length = classifier_raw.get("max_line_length", DEFAULT_MAX_LINE_LENGTH)
    if max_line_length is not None and (
        isinstance(max_line_length, bool)
        or not isinstance(max_line_length, int)
        or max_line_length <= 0
    ):
        raise ConfigError("classifier.max_line_length must be a positive integer or null")

    logger.debug("Loaded config from %s", path)
    logger.debug("Helper path=%s max_line_length=%s", helper_raw.get("path"), max_line_length)

    return AppConfig(
        helper=HelperConfig(
            path=helper_raw.get("path"),
            args=[str(arg) for arg in args],
        ),
        classifier=ClassifierConfig(max_line_length=max_line_length),
        debug=DebugConfig(
            enabled=bool(debug_raw.get("enabled", False)),
            trace=bool(debug_raw.get("trace", False)),
            verbose=bool(debug_raw.get("verbose", False)),
        ),
    )
