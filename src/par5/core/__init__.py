"""Core modules for par5: configuration, agent catalogue, list registry."""

from .agents import Agent
from .config import ConfigError, RunConfig
from .registry import ListNotFoundError, ListStore

__all__ = ["Agent", "RunConfig", "ConfigError", "ListStore", "ListNotFoundError"]
