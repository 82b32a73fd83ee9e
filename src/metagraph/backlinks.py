"""
BacklinkRegistry: identity-keyed association from data values to meta nodes.

A data value that has passed through the graph builder can reach its meta
node without the value holding a reference to it:

    id(value) -> node

The registry holds its nodes strongly, and each node holds its value, so a
graph stays reachable from its data for as long as the graph lives even when
the caller keeps only the data. An entry disappears when the node is rebased
onto another value, when its subtree leaves the graph, or when the graph is
disposed (see metagraph.meta.dispose()). While an entry exists its value is
kept alive, so its id() cannot be recycled; lookups still verify that the
node represents the exact value asked about.
"""

import logging
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from metagraph.meta import MetaNode

logger = logging.getLogger(__name__)


class BacklinkRegistry:
    """Process-wide side map from value identity to meta node.

    Thread safety: Not thread-safe (graph mutation is single-threaded).
    Exactly one writer at a time: the graph builder / rebase path.
    """
    _links: Dict[int, 'MetaNode'] = {}

    @classmethod
    def attach(cls, value: Any, node: 'MetaNode') -> None:
        """Associate a value with the node that represents it.

        The latest node built for a value wins when the same object appears at
        several positions of a data graph.
        """
        key = id(value)
        current = cls._links.get(key)
        if current is node:
            return
        if current is not None and current._value is value:
            logger.warning(f"Backlink moved: value id={key} was owned by {current!r}, now {node!r}")
        cls._links[key] = node

    @classmethod
    def release(cls, value: Any, node: 'MetaNode') -> None:
        """Drop the association if it is still held by this node."""
        key = id(value)
        if cls._links.get(key) is node:
            del cls._links[key]

    @classmethod
    def lookup(cls, value: Any) -> Optional['MetaNode']:
        """Return the meta node previously attached to value, or None."""
        node = cls._links.get(id(value))
        if node is None or node._value is not value:
            return None
        return node

    @classmethod
    def count(cls) -> int:
        return len(cls._links)

    @classmethod
    def clear(cls) -> None:
        cls._links.clear()
        logger.debug("Cleared all backlinks")
