"""Configuration loading utilities."""

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from jarvis.config.schema import JarvisConfig


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".jarvis" / "config.json"


def load_config(config_path: Path | None = None) -> JarvisConfig:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object. Environment variables (``JARVIS_*``)
        still apply on top of defaults when no file is read.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return JarvisConfig.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to load config from {}: {}", path, e)
            logger.warning("Using default configuration.")

    return JarvisConfig()
