"""govaudit - governance setup checks and standards audits for project trees.

This package provides the core functionality for the `govaudit` command-line
tool: a rule-based compliance auditor plus two preset rule sets (governance
setup check and standards audit).

Exports:
    __version__: Package version string.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.3.0"
