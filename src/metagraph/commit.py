"""
Commit synchronizer: folds node-local values back into the canonical data.

Walks a meta subtree and writes each populated leaf into its parent's
container. A branch whose descendants are all None stays None, while a branch
with at least one populated descendant materializes its containers up the
chain, stopping at the first ancestor whose container already holds it.

Committing twice with no intervening change produces identical containers.
"""

import logging

from metagraph.backlinks import BacklinkRegistry
from metagraph.config import get_config
from metagraph.meta import MetaArray, MetaNode, meta_path
from metagraph.spec import field_keys
from metagraph.values import get_field, is_collection_value, is_primitive_value, set_field

logger = logging.getLogger(__name__)


def commit(node: MetaNode) -> None:
    """Recursively fold the current values of a subtree into its containers."""
    if isinstance(node, MetaArray):
        _commit_sequence(node)
        return

    for key in field_keys(node.spec):
        child = node.child(key)
        if child is not None:
            commit(child)

    if is_primitive_value(node._value):
        _write_to_parent(node)


def _commit_sequence(node: MetaArray) -> None:
    sequence = node._value
    if not is_collection_value(sequence):
        sequence = []
        node._value = sequence
        BacklinkRegistry.attach(sequence, node)
        logger.debug(f"Commit: created collection for {meta_path(node)}")

    for item in node:
        commit(item)
    # Replace previous contents with (maybe the same) current item values
    sequence[:] = [item._value for item in node]

    if len(node) or _holds_slot(node):
        _write_to_parent(node)


def _holds_slot(node: MetaNode) -> bool:
    """True when the parent already has a container to write into."""
    return node.parent is not None and node.parent._value is not None


def _write_to_parent(child: MetaNode) -> None:
    """Write a value into its parent's container, materializing as needed."""
    if child.index is not None:
        sequence = child.container._value if child.container is not None else None
        if is_collection_value(sequence) and child.index < len(sequence):
            sequence[child.index] = child._value
        return

    parent, key = child.parent, child.key
    if parent is None or key is None:
        return

    container = parent._value
    if container is None:
        container = get_config().container_factory()
        parent._value = container
        BacklinkRegistry.attach(container, parent)
        logger.debug(f"Commit: materialized container for {meta_path(parent)}")

    if get_field(container, key) is not child._value:
        set_field(container, key, child._value)

    # Walk upward only while an ancestor does not yet hold this container
    grandparent = parent.parent
    if parent.index is not None or (grandparent is not None and get_field(grandparent._value, parent.key) is not container):
        _write_to_parent(parent)
