"""
Setup hook registry.

Extensions register setup hooks to initialise per-node state. A hook receives
each newly constructed meta node and may return a partial state mapping that
is merged into node.state. Hooks run in registration order, so a later hook
observes the state contributed by earlier ones.

Hooks fire once per node construction and never on rebase. Each hook must
check the specification terms it cares about before acting, since no hook may
assume a particular set of other hooks is installed.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from metagraph.errors import SetupHookError

if TYPE_CHECKING:
    from metagraph.meta import MetaNode

logger = logging.getLogger(__name__)

SetupHook = Callable[['MetaNode'], Optional[Dict[str, Any]]]


class SetupRegistry:
    """Ordered collection of setup hooks.

    Append-only after startup in practice. Not thread-safe (graphs are built
    on a single thread with a run-to-completion model).
    """

    def __init__(self, hooks: Optional[List[SetupHook]] = None):
        self._hooks: List[SetupHook] = []
        for hook in hooks or []:
            self.register(hook)

    def register(self, hook: SetupHook) -> SetupHook:
        """Append a hook. Registering the same hook twice is a no-op.

        Returns the hook so this can be used as a decorator.
        """
        if hook not in self._hooks:
            self._hooks.append(hook)
            logger.debug(f"Registered setup hook: {getattr(hook, '__qualname__', hook)}")
        return hook

    def unregister(self, hook: SetupHook) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)
            logger.debug(f"Unregistered setup hook: {getattr(hook, '__qualname__', hook)}")

    @property
    def hooks(self) -> List[SetupHook]:
        """Registered hooks in registration order (copy)."""
        return list(self._hooks)

    def clear(self) -> None:
        self._hooks.clear()

    def run(self, node: 'MetaNode') -> None:
        """Run every hook against a node, merging returned state in order.

        Raises:
            SetupHookError: If a hook raises. The original error is chained.
        """
        for hook in self._hooks:
            try:
                contribution = hook(node)
            except Exception as e:
                from metagraph.meta import meta_path
                raise SetupHookError(hook, meta_path(node)) from e
            if contribution:
                node.state.update(contribution)

    def __len__(self) -> int:
        return len(self._hooks)

    def __contains__(self, hook: object) -> bool:
        return hook in self._hooks

    def __repr__(self) -> str:
        return f"SetupRegistry(hooks={len(self._hooks)})"


# Process-wide registry used when no explicit registry is passed to build()
default_registry = SetupRegistry()


def register_setup(hook: SetupHook) -> SetupHook:
    """Register a hook with the process-wide registry.

    Called by extension modules at import time, before any graph is built.
    Usable as a decorator.
    """
    return default_registry.register(hook)
