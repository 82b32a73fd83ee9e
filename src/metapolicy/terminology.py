"""
Terminology policy: human-facing names for nodes.

Specification terms (each a string or a meta function returning one):
- label: primary identifying label
- help_text: additional descriptive text
- symbol: symbolic indicator such as an icon class
"""

from typing import Optional

from metagraph import MetaNode

LABEL_SEPARATOR = " > "


def label_or_key(node: MetaNode) -> Optional[str]:
    """Return the node's label, or its key if it has none."""
    label = node.term('label')
    return label if label is not None else node.key


def label_path(from_node: Optional[MetaNode], to_node: MetaNode) -> str:
    """Return the labels from just below from_node down to to_node.

    E.g. "Address > Street". Ancestors without a label or key are skipped.
    """
    labels = [label_or_key(to_node) or '']
    node = to_node
    while node.parent is not None and node.parent is not from_node:
        node = node.parent
        label = label_or_key(node)
        if label:
            labels.insert(0, label)
    return LABEL_SEPARATOR.join(labels)
