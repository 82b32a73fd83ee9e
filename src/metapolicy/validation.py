"""
Validation policy.

Specification terms:
- validator: function of the node returning True (valid), False (error
  without a message) or an error message string
- mandatory / disabled / hidden: a bool, or a meta function of (value, node)
  returning one

State contributed:
- validated: the node has been visited for validation
- error: False, True (unspecified error) or the error message
- all_errors: nodes in error within the subtree (set by validate_all)
- mandatory / disabled / hidden: current flag values

The error state is not computed at construction, so a field that starts out
invalid is not reported until it is validated.
"""

import logging
import weakref
from typing import Any, Dict, List, Optional

from metagraph import MetaArray, MetaNode, field_keys, register_setup

logger = logging.getLogger(__name__)

FLAG_TERMS = ('hidden', 'disabled', 'mandatory')

# Nodes whose flags are computed by meta functions, refreshed after validation
_dynamic_flag_nodes: Dict[str, 'weakref.WeakSet[MetaNode]'] = {
    term: weakref.WeakSet() for term in FLAG_TERMS
}


@register_setup
def validation_setup(node: MetaNode) -> Dict[str, Any]:
    """Initialise validation state for nodes whose spec uses validation terms."""
    state: Dict[str, Any] = {}
    if node.spec.has_term('validator'):
        state.update(error=False, validated=False)

    for term in FLAG_TERMS:
        term_value = node.raw(term)
        if callable(term_value):
            _dynamic_flag_nodes[term].add(node)
        elif isinstance(term_value, bool):
            state[term] = term_value

    # The root is set up last, once every descendant is registered
    if node.parent is None and node.index is None:
        refresh_flags()
    return state


def refresh_flags() -> None:
    """Recompute every dynamic hidden/disabled/mandatory flag."""
    for term, nodes in _dynamic_flag_nodes.items():
        for node in list(nodes):
            flag_fn = node.raw(term)
            if callable(flag_fn):
                node.state[term] = flag_fn(node.value, node)


def validate(node: Optional[MetaNode] = None) -> None:
    """Validate a single node (not recursive) and refresh dynamic flags.

    Sets state['validated'] and sets state['error'] from the validator result.
    """
    if node is not None:
        node.state['validated'] = True
        validator = node.raw('validator')
        if callable(validator):
            result = validator(node)
            if result is False:
                node.state['error'] = True
            elif isinstance(result, str):
                node.state['error'] = result
            else:
                node.state['error'] = False
            if node.state['error'] is not False:
                logger.debug(f"Validation error at {node!r}: {node.state['error']!r}")
    refresh_flags()


def validate_all(node: MetaNode, revalidate: bool = False) -> List[MetaNode]:
    """Validate a subtree and return the nodes left in error.

    Collection nodes are walked through: only their items are validated.

    Args:
        node: Subtree root
        revalidate: If True, only nodes that were validated before are validated again

    Returns:
        Nodes in an error state, in depth-first order. Also stored as
        state['all_errors'] on the subtree root.
    """
    errors: List[MetaNode] = []
    if isinstance(node, MetaArray):
        for item in node:
            errors.extend(validate_all(item, revalidate))
        node.state['all_errors'] = errors
        return errors

    if not revalidate or node.state.get('validated'):
        validate(node)
    if node.state.get('error'):
        errors.append(node)

    for key in field_keys(node.spec):
        child = node.child(key)
        if isinstance(child, MetaArray):
            for item in child:
                errors.extend(validate_all(item, revalidate))
        elif child is not None:
            errors.extend(validate_all(child, revalidate))

    node.state['all_errors'] = errors
    return errors
