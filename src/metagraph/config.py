"""
Framework configuration for the meta-graph engine.

Holds the few pluggable behaviours the engine consults at runtime:
- root_name: name used for the root segment of textual meta paths
- path_separator: separator between segments of textual meta paths
- container_factory: creates containers during lazy materialization on commit
- state_predicate: default filter for state entries kept by the serializer

SCOPING PATTERN:
- set_config() replaces the process-wide configuration (startup)
- config_context() overrides fields for the current context only (tests, tools)
"""

import contextvars
import dataclasses
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def default_state_predicate(key: str, value: Any) -> bool:
    """Keep only boolean, number and string state values.

    Composite and function-valued state is typically derived, cyclic or
    non-portable, so it is dropped from serializations.
    """
    return isinstance(value, (bool, int, float, str))


@dataclass(frozen=True)
class MetaGraphConfig:
    """Immutable engine configuration."""
    root_name: str = "Meta"
    path_separator: str = "."
    container_factory: Callable[[], Any] = dict
    state_predicate: Callable[[str, Any], bool] = default_state_predicate


_DEFAULT_CONFIG = MetaGraphConfig()

# Process-wide configuration (set once at startup)
_global_config: MetaGraphConfig = _DEFAULT_CONFIG

# Context-scoped override, takes precedence over the process-wide configuration
_context_config: contextvars.ContextVar[Optional[MetaGraphConfig]] = contextvars.ContextVar(
    'metagraph_config', default=None
)


def get_config() -> MetaGraphConfig:
    """Get the effective configuration for the current context."""
    scoped = _context_config.get()
    return scoped if scoped is not None else _global_config


def set_config(config: MetaGraphConfig) -> None:
    """Replace the process-wide configuration.

    Args:
        config: The new configuration
    """
    global _global_config
    _global_config = config
    logger.debug(f"Set metagraph config: {config}")


def reset_config() -> None:
    """Restore the process-wide configuration to its defaults."""
    set_config(_DEFAULT_CONFIG)


@contextmanager
def config_context(**overrides):
    """Override configuration fields within a context scope.

    Usage:
        with config_context(root_name="Form"):
            meta_path(node)  # "Form.address.street"
    """
    scoped = dataclasses.replace(get_config(), **overrides)
    token = _context_config.set(scoped)
    try:
        yield scoped
    finally:
        _context_config.reset(token)
