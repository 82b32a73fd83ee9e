"""
Error hierarchy for the meta-graph engine.

Every failure the engine raises is structural or a programming error.
Nothing here is retried: callers surface these to their own users.
"""


class MetaGraphError(Exception):
    """Base class for all meta-graph errors."""


class InvalidOperand(MetaGraphError, TypeError):
    """Raised when a meta node is requested for a primitive value.

    Only object-shaped and collection-shaped values carry a backlink.
    """

    def __init__(self, value):
        self.value = value
        super().__init__(f"Attempt to obtain meta from primitive value: {value!r}")


class InvalidSpecification(MetaGraphError, ValueError):
    """Raised when a specification node declares both `fields` and `items`."""


class MalformedSerialization(MetaGraphError, ValueError):
    """Raised when serialized text cannot be decoded into a meta graph."""


class SetupHookError(MetaGraphError):
    """Raised when a registered setup hook fails during node construction."""

    def __init__(self, hook, node_path: str):
        self.hook = hook
        self.node_path = node_path
        hook_name = getattr(hook, '__qualname__', repr(hook))
        super().__init__(f"Setup hook {hook_name} failed for node {node_path}")
