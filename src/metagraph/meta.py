"""
Meta nodes and the graph builder.

A meta graph mirrors a data value node-for-node. Each node carries:
- spec: the specification node that produced it
- parent / key: its position (absent at the root)
- index / container: its slot when it is an item of a collection node
- state: open map of extension-contributed runtime fields
- value: the data value it represents

Object and scalar positions are Meta nodes, collection positions are MetaArray
nodes (a list of item nodes that is also an addressable node). Items of a
collection share the parent and key of the collection itself.

Data values reach their node through BacklinkRegistry (see meta_of()), so no
reference from data to meta is ever stored on the data.

Construction and rebase share one path, build(). Passing a template node
rebuilds that node in place: its identity and state survive, children are
reused by key (object shape) or position (collection shape), and setup hooks
do not fire again.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from metagraph.backlinks import BacklinkRegistry
from metagraph.config import get_config
from metagraph.errors import InvalidOperand
from metagraph.setup_registry import SetupRegistry, default_registry
from metagraph.spec import MetaSpec, field_keys
from metagraph.values import (
    get_field,
    has_field,
    is_collection_value,
    is_object_value,
    set_field,
)

logger = logging.getLogger(__name__)

# Sentinel: rebase() without a value re-derives from the node's current value
_UNSET = object()

MetaFn = Callable[[Any, 'MetaNode'], Any]


class MetaNode:
    """State and accessors shared by Meta and MetaArray."""

    def _init_node(self) -> None:
        self.spec: MetaSpec = MetaSpec()
        self.parent: Optional['Meta'] = None
        self.key: Optional[str] = None
        self.index: Optional[int] = None
        self.container: Optional['MetaArray'] = None
        self.state: Dict[str, Any] = {}
        self._value: Any = None
        self._registry: SetupRegistry = default_registry

    @property
    def value(self) -> Any:
        """The data value this node represents."""
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        # Writes rebuild the subtree rather than poking the field
        rebase(self, value)

    def stage(self, value: Any) -> None:
        """Set the node-local value without rebasing.

        Staged values stay local to the node until commit() folds them into
        the parent's container. Meant for leaf edits made by collaborators.
        """
        previous = self._value
        if previous is not value and is_object_value(previous):
            BacklinkRegistry.release(previous, self)
        self._value = value
        if is_object_value(value):
            BacklinkRegistry.attach(value, self)

    @property
    def registry(self) -> SetupRegistry:
        """The setup registry that built this node."""
        return self._registry

    @property
    def is_item(self) -> bool:
        return self.index is not None

    @property
    def root(self) -> 'MetaNode':
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def path(self) -> Tuple[Union[str, int], ...]:
        """Keys and item indices from the root down to this node."""
        segments: List[Union[str, int]] = []
        node: Optional[MetaNode] = self
        while node is not None:
            if node.index is not None:
                segments.append(node.index)
            if node.key is not None:
                segments.append(node.key)
            node = node.parent
        return tuple(reversed(segments))

    def term(self, name: str, default: Any = None) -> Any:
        """Resolve a spec term that is either a plain value or a meta function."""
        if not self.spec.has_term(name):
            return default
        return get_spec_value(name)(self)

    def raw(self, name: str, default: Any = None) -> Any:
        """Get a spec term without calling it."""
        return self.spec.term(name, default)

    @property
    def calcs(self) -> Dict[str, Any]:
        """Calculated field values, recomputed on every access."""
        return {name: fn(self._value, self) for name, fn in self.spec.calcs.items()}

    def calc(self, name: str) -> Any:
        return self.spec.calcs[name](self._value, self)


class Meta(MetaNode):
    """Meta node for an object-shaped or scalar value.

    Structural children are reachable as node[key], node.child(key) or as
    attributes (node.street). Children whose key clashes with a node
    attribute (value, state, spec, ...) are only reachable by key.
    """

    def __init__(self):
        self._children: Dict[str, MetaNode] = {}
        self._init_node()

    @property
    def children(self) -> Mapping[str, MetaNode]:
        """Read-only view of structural children by key."""
        return MappingProxyType(self._children)

    def child(self, key: str) -> Optional[MetaNode]:
        return self._children.get(key)

    def __getitem__(self, key: str) -> MetaNode:
        return self._children[key]

    def __contains__(self, key: object) -> bool:
        return key in self._children

    def __getattr__(self, name: str) -> MetaNode:
        if name.startswith('_'):
            raise AttributeError(name)
        children = self.__dict__.get('_children')
        if children is not None and name in children:
            return children[name]
        raise AttributeError(f"{type(self).__name__} has no field '{name}'")

    def __str__(self) -> str:
        value = self._value
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if is_object_value(value):
            return meta_path(self)
        return str(value)

    def __repr__(self) -> str:
        return f"<Meta {meta_path(self)} value={self._value!r}>"


class MetaArray(MetaNode, list):
    """Meta node for a collection: a list of item nodes plus node state.

    Compares and hashes by identity like every other node.
    """

    def __init__(self):
        list.__init__(self)
        self._init_node()

    __hash__ = object.__hash__

    def __eq__(self, other: object) -> bool:
        return self is other

    def __ne__(self, other: object) -> bool:
        return self is not other

    def __str__(self) -> str:
        return meta_path(self)

    def __repr__(self) -> str:
        return f"<MetaArray {meta_path(self)} items={len(self)}>"


# ==================== GRAPH BUILDER ====================

def build(
    spec: MetaSpec,
    value: Any,
    parent: Optional[Meta] = None,
    key: Optional[str] = None,
    template: Optional[MetaNode] = None,
    *,
    registry: Optional[SetupRegistry] = None,
    index: Optional[int] = None,
    container: Optional[MetaArray] = None,
) -> MetaNode:
    """Build a meta node for value, or rebuild template in place.

    Args:
        spec: Specification for this position
        value: Data value for this position
        parent: Owning meta node (absent at the root)
        key: Structural field name within parent
        template: Existing node to rebuild in place (rebase path)
        registry: Setup hooks to run on new nodes (defaults to the template's,
                  the parent's, or the process-wide registry)
        index: Position when building an item of a collection node
        container: The collection node owning the item

    Returns:
        The built node. This is template itself unless the shape changed
        between object and collection, in which case a fresh node replaces it.
    """
    sequence = spec.items is not None or is_collection_value(value)

    node = template
    if node is not None and isinstance(node, MetaArray) != sequence:
        logger.debug(f"Shape change at {meta_path(node)}: replacing node")
        _detach(node)
        node = None
    fresh = node is None
    if node is None:
        node = MetaArray() if sequence else Meta()

    if registry is None:
        registry = _inherited_registry(template, container, parent)

    previous = None if fresh else node._value
    node.spec = spec
    node.parent = parent
    node.key = key
    node.index = index
    node.container = container
    node._value = value
    node._registry = registry

    if previous is not value and is_object_value(previous):
        BacklinkRegistry.release(previous, node)
    if is_object_value(value):
        BacklinkRegistry.attach(value, node)

    _attach_to_parent(node)

    if sequence:
        _build_items(node, spec, value, fresh)
    else:
        _build_fields(node, spec, value)

    if fresh:
        registry.run(node)

    if parent is None and index is None:
        action = "Built" if fresh else "Rebuilt"
        logger.debug(f"{action} meta graph: root={type(node).__name__} spec={spec!r}")
    return node


def _inherited_registry(
    template: Optional[MetaNode], container: Optional[MetaArray], parent: Optional[Meta]
) -> SetupRegistry:
    for source in (template, container, parent):
        if source is not None:
            return source._registry
    return default_registry


def _attach_to_parent(node: MetaNode) -> None:
    """Point the parent's slot and the parent's value at this node and its value."""
    value = node._value
    if node.index is not None:
        # Items live in the collection's list, not in a field of the parent
        sequence = node.container._value if node.container is not None else None
        if is_collection_value(sequence) and node.index < len(sequence) and sequence[node.index] is not value:
            sequence[node.index] = value
        return

    parent, key = node.parent, node.key
    if parent is None or key is None:
        return
    parent._children[key] = node

    parent_value = parent._value
    if not is_object_value(parent_value) or is_collection_value(parent_value):
        return
    if value is None and not has_field(parent_value, key):
        return  # absent stays absent
    if get_field(parent_value, key) is not value:
        set_field(parent_value, key, value)


def _build_fields(node: Meta, spec: MetaSpec, value: Any) -> None:
    previous = node._children
    node._children = {}
    for field_key in field_keys(spec):
        # Reuse the existing child at this key so its identity survives
        build(
            spec.fields[field_key],
            get_field(value, field_key),
            node,
            field_key,
            previous.get(field_key),
            registry=node._registry,
        )
    for dropped_key in previous.keys() - node._children.keys():
        logger.debug(f"Dropped field '{dropped_key}' from {meta_path(node)}")
        _detach(previous[dropped_key])


def _build_items(node: MetaArray, spec: MetaSpec, value: Any, fresh: bool) -> None:
    previous = [] if fresh else list(node)
    del node[:]
    item_spec = spec.items if spec.items is not None else MetaSpec()
    for position, item_value in enumerate(value if is_collection_value(value) else []):
        template = previous[position] if position < len(previous) else None
        item = build(
            item_spec,
            item_value,
            node.parent,
            node.key,
            template,
            registry=node._registry,
            index=position,
            container=node,
        )
        list.append(node, item)
    for stale in previous[len(node):]:
        _detach(stale)


def _detach(node: MetaNode) -> None:
    """Release the backlinks held by a subtree that leaves the graph."""
    if is_object_value(node._value):
        BacklinkRegistry.release(node._value, node)
    if isinstance(node, MetaArray):
        for item in node:
            _detach(item)
    else:
        for child in node._children.values():
            _detach(child)


# ==================== REBASE / APPLY SPEC ====================

def rebase(node: MetaNode, value: Any = _UNSET) -> MetaNode:
    """Replace a node's underlying value, reusing the node as template.

    Without a value, the node is refreshed from its own current value, which
    reconciles the subtree with any external mutation of the data.
    State survives and setup hooks do not fire again.

    Returns:
        The rebased node (a new node if the shape changed).
    """
    target = node._value if value is _UNSET else value
    logger.debug(f"Rebase {meta_path(node)}")
    return build(
        node.spec,
        target,
        node.parent,
        node.key,
        node,
        registry=node._registry,
        index=node.index,
        container=node.container,
    )


def apply_spec(node: MetaNode, spec: MetaSpec) -> MetaNode:
    """Apply a new specification to an existing subtree.

    Existing nodes are reused by key or position, nodes are built for keys the
    new specification adds and dropped for keys it removes. Setup hooks run
    again on every reused node (children first) so policies see the new terms.

    Returns:
        The node carrying the new specification (a new node if the shape changed).
    """
    sequence = spec.items is not None or is_collection_value(node._value)
    if isinstance(node, MetaArray) != sequence:
        return build(
            spec, node._value, node.parent, node.key, node,
            registry=node._registry, index=node.index, container=node.container,
        )

    node.spec = spec
    if isinstance(node, MetaArray):
        item_spec = spec.items if spec.items is not None else MetaSpec()
        for position, item in enumerate(list(node)):
            list.__setitem__(node, position, apply_spec(item, item_spec))
    else:
        previous = node._children
        node._children = {}
        for field_key in field_keys(spec):
            child = previous.get(field_key)
            if child is None:
                build(
                    spec.fields[field_key], get_field(node._value, field_key), node, field_key,
                    registry=node._registry,
                )
            else:
                node._children[field_key] = child
                apply_spec(child, spec.fields[field_key])
        for dropped_key in previous.keys() - node._children.keys():
            _detach(previous[dropped_key])

    node._registry.run(node)
    return node


def dispose(node: MetaNode) -> None:
    """Tear down a graph (or subtree) so its values no longer reach it.

    Graphs stay reachable from their data until disposed; meta_of() returns
    None for every value of the subtree afterwards.
    """
    _detach(node)
    logger.debug(f"Disposed {meta_path(node)}")


# ==================== LOOKUP AND HELPERS ====================

def meta_of(value: Any) -> Optional[MetaNode]:
    """Return the meta node previously built for an object or collection value.

    Nodes are returned as-is. Values never passed through the builder give None.

    Raises:
        InvalidOperand: If value is a primitive.
    """
    if isinstance(value, MetaNode):
        return value
    if not is_object_value(value):
        raise InvalidOperand(value)
    return BacklinkRegistry.lookup(value)


def parent_value(value: Any) -> Any:
    """Return the parent's data value for a node or an object value."""
    node = meta_of(value)
    if node is None or node.parent is None:
        return None
    return node.parent._value


def is_meta_array(node: MetaNode) -> bool:
    return isinstance(node, MetaArray)


def is_meta_fn(value: Any) -> bool:
    return callable(value)


def meta_call(fn: MetaFn) -> Callable[[Any], Any]:
    """Adapt a meta function to accept either a node or an object value."""
    def call(on: Any) -> Any:
        node = meta_of(on)
        if node is None:
            raise LookupError(f"No meta node attached to value: {on!r}")
        return fn(node._value, node)
    return call


def get_spec_value(name: str) -> Callable[[MetaNode], Any]:
    """Return a resolver for a term that is a plain value or a meta function."""
    def resolve(node: MetaNode) -> Any:
        spec_value = node.spec.term(name)
        if is_meta_fn(spec_value):
            return spec_value(node._value, node)
        return spec_value
    return resolve


def meta_path(node: MetaNode, root_name: Optional[str] = None) -> str:
    """Dotted path of a node from the root, e.g. 'Meta.addresses.0.street'."""
    config = get_config()
    root = root_name if root_name is not None else config.root_name
    return config.path_separator.join([root] + [str(segment) for segment in node.path])
