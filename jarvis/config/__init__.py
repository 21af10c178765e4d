"""Configuration module for jarvis."""

from jarvis.config.loader import load_config
from jarvis.config.schema import JarvisConfig

__all__ = ["JarvisConfig", "load_config"]
