"""Embargo.toml loading and resolution."""

from .embargo_config import EmbargoConfig, load_config, load_user_config, resolve

__all__ = ["EmbargoConfig", "load_config", "load_user_config", "resolve"]
