"""Core shared infrastructure for govaudit.

This package contains foundational utilities:
    - config: Application configuration management
    - console: Rich console output and logging
    - registry: CLI command discovery
    - result: Error handling patterns
"""

from __future__ import annotations

from . import config, console

__all__ = ["config", "console"]
