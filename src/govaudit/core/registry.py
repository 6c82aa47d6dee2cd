from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class CommandSpec:
    name: str
    handler: Callable[..., None]


# module name -> {cli command name: handler attribute}
_FUNCTION_COMMANDS: dict[str, dict[str, str]] = {
    "audit": {"audit": "standards_audit", "check": "governance_check"},
    "rules": {"rules": "list_rules"},
}


def _import_module(module_name: str) -> object | None:
    try:
        return importlib.import_module(module_name)
    except ImportError as exc:
        logger.error("Failed to import command module %s: %s", module_name, exc)
        return None


def _build_function_commands(module_name: str, module: object) -> list[CommandSpec]:
    specs: list[CommandSpec] = []
    mapping = _FUNCTION_COMMANDS.get(module_name, {})
    for cmd_name, attr in mapping.items():
        handler = getattr(module, attr, None)
        if callable(handler):
            specs.append(CommandSpec(name=cmd_name, handler=handler))
        else:
            logger.error("Command %s.%s not found or not callable", module_name, attr)
    return specs


def discover_commands(
    package_path: Path, package: str = "govaudit.commands"
) -> list[CommandSpec]:
    """
    Discover the command callables exposed by modules in ``package_path``.

    Only modules listed in _FUNCTION_COMMANDS contribute commands; any other
    module is skipped with a debug message.

    Returns:
        Command specs in module name order.
    """
    function_commands: list[CommandSpec] = []

    for file in sorted(package_path.glob("*.py")):
        if file.name.startswith("_"):
            continue
        module_name = file.stem
        if module_name not in _FUNCTION_COMMANDS:
            logger.debug("Skipping %s: no commands registered for it", module_name)
            continue
        module = _import_module(f"{package}.{module_name}")
        if module is not None:
            function_commands.extend(_build_function_commands(module_name, module))

    return function_commands
