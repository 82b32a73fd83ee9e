"""
Serialization of meta graphs together with their meta-state.

For plain persistence it is usually simpler to serialize the underlying data
with json.dumps(node.value). This codec is intended for logging, monitoring,
testing and automation, where node state matters too.

Meta graphs are cyclic (a node references its parent which references the
node as a child) and data values may be shared between positions. Every node,
dict and list is therefore stored once in a flat object table and referenced
by position:

    {
        "format": "metagraph/1",
        "root": {"$ref": 0},
        "objects": [
            {"type": "meta", "key": "name", "index": null,
             "parent": {"$ref": 1}, "container": null,
             "value": "Ada", "state": {"validated": true}, "children": {}},
            ...
        ]
    }

Dataclass values are stored as field maps and decode as dicts.

Inline values are always primitives, so a mapping in a value position is
always a reference. Specifications are not serialized (they commonly contain
functions); decode() reattaches one through the rebase path when given.
"""

import json
import logging
from dataclasses import fields, is_dataclass
from typing import Any, Callable, Dict, List, Optional

from metagraph.backlinks import BacklinkRegistry
from metagraph.config import get_config
from metagraph.errors import MalformedSerialization
from metagraph.meta import Meta, MetaArray, MetaNode, build
from metagraph.spec import MetaSpec
from metagraph.values import is_object_value

logger = logging.getLogger(__name__)

FORMAT = "metagraph/1"

StatePredicate = Callable[[str, Any], bool]

_REF = '$ref'


def encode(node: MetaNode, state_predicate: Optional[StatePredicate] = None) -> str:
    """Serialize a meta graph including the state entries passing the predicate.

    Args:
        node: Node the serialization is rooted at (its whole graph is reachable)
        state_predicate: Filter (key, value) -> bool for state entries.
                         Defaults to the configured predicate, which keeps
                         boolean, number and string values.

    Raises:
        TypeError: If a data value is not a dict, list, dataclass instance or
                   JSON primitive.
    """
    predicate = state_predicate or get_config().state_predicate
    encoder = _GraphEncoder(predicate)
    root = encoder.ref(node)
    logger.debug(f"Encoded meta graph: {len(encoder.objects)} objects")
    return json.dumps({'format': FORMAT, 'root': root, 'objects': encoder.objects})


def decode(text: str, spec: Optional[MetaSpec] = None) -> MetaNode:
    """Deserialize text produced by encode() into a meta graph.

    Args:
        text: Serialized graph
        spec: Optional specification to attach to the decoded root. It is
              applied through the rebase path with the decoded node as template,
              so decoded state survives and setup hooks do not fire.

    Raises:
        MalformedSerialization: If the text is not a valid serialization.
    """
    try:
        document = json.loads(text)
        node = _GraphDecoder(document).root
    except MalformedSerialization:
        raise
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        raise MalformedSerialization(f"Cannot decode meta graph: {e}") from e

    if spec is not None:
        node = build(
            spec, node.value, node.parent, node.key, node,
            registry=node.registry, index=node.index, container=node.container,
        )
    return node


class _GraphEncoder:
    """Flattens a graph into a positional object table."""

    def __init__(self, predicate: StatePredicate):
        self._predicate = predicate
        self._positions: Dict[int, int] = {}
        # Keeps every visited object alive so id() stays unique during the walk
        self._visited: List[Any] = []
        self.objects: List[Optional[Dict[str, Any]]] = []

    def ref(self, obj: Any) -> Dict[str, int]:
        position = self._positions.get(id(obj))
        if position is None:
            position = len(self.objects)
            self._positions[id(obj)] = position
            self._visited.append(obj)
            self.objects.append(None)  # reserve before recursing so cycles resolve
            self.objects[position] = self._record(obj)
        return {_REF: position}

    def value(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, MetaNode) or is_object_value(value):
            return self.ref(value)
        raise TypeError(f"Cannot serialize value of type {type(value).__name__}")

    def _record(self, obj: Any) -> Dict[str, Any]:
        if isinstance(obj, MetaArray):
            record = self._node_record(obj, 'array')
            record['items'] = [self.ref(item) for item in obj]
            return record
        if isinstance(obj, Meta):
            record = self._node_record(obj, 'meta')
            record['children'] = {key: self.ref(child) for key, child in obj.children.items()}
            return record
        if isinstance(obj, dict):
            for key in obj:
                if not isinstance(key, str):
                    raise TypeError(f"Cannot serialize dict key of type {type(key).__name__}")
            return {'type': 'dict', 'entries': {key: self.value(v) for key, v in obj.items()}}
        if is_dataclass(obj):
            return {'type': 'dict', 'entries': {f.name: self.value(getattr(obj, f.name)) for f in fields(obj)}}
        return {'type': 'list', 'entries': [self.value(v) for v in obj]}

    def _node_record(self, node: MetaNode, kind: str) -> Dict[str, Any]:
        return {
            'type': kind,
            'key': node.key,
            'index': node.index,
            'parent': self.value(node.parent),
            'container': self.value(node.container),
            'value': self.value(node.value),
            'state': {
                key: self.value(v)
                for key, v in node.state.items()
                if self._predicate(key, v)
            },
        }


class _GraphDecoder:
    """Rebuilds a graph from a positional object table, preserving identity."""

    _FACTORIES = {'meta': Meta, 'array': MetaArray, 'dict': dict, 'list': list}

    def __init__(self, document: Any):
        if not isinstance(document, dict) or document.get('format') != FORMAT:
            raise MalformedSerialization(f"Not a {FORMAT} serialization")
        records = document['objects']
        if not isinstance(records, list):
            raise MalformedSerialization("'objects' must be a list")

        # Allocate every object first so references can point forwards
        self._objects: List[Any] = [self._FACTORIES[record['type']]() for record in records]
        for obj, record in zip(self._objects, records):
            self._fill(obj, record)

        nodes = [obj for obj in self._objects if isinstance(obj, MetaNode)]
        skeletons: Dict[int, Optional[MetaSpec]] = {}
        for node in nodes:
            node.spec = self._skeleton(node, skeletons)
            if is_object_value(node.value):
                BacklinkRegistry.attach(node.value, node)

        self.root = self._deref(document['root'])
        if not isinstance(self.root, MetaNode):
            raise MalformedSerialization("Root reference is not a meta node")

    def _deref(self, ref: Any) -> Any:
        if not isinstance(ref, dict) or list(ref) != [_REF]:
            raise MalformedSerialization(f"Invalid reference: {ref!r}")
        position = ref[_REF]
        if not isinstance(position, int) or isinstance(position, bool) or not 0 <= position < len(self._objects):
            raise MalformedSerialization(f"Reference out of range: {position!r}")
        return self._objects[position]

    def _value(self, encoded: Any) -> Any:
        if isinstance(encoded, dict):
            return self._deref(encoded)
        if isinstance(encoded, list):
            raise MalformedSerialization("Inline lists are not valid values")
        return encoded

    def _node(self, encoded: Any, expected: type, required: bool = False) -> Any:
        node = self._value(encoded)
        if node is None and required:
            raise MalformedSerialization(f"Missing {expected.__name__} reference")
        if node is not None and not isinstance(node, expected):
            raise MalformedSerialization(f"Expected {expected.__name__} reference, got {type(node).__name__}")
        return node

    def _fill(self, obj: Any, record: Dict[str, Any]) -> None:
        if isinstance(obj, MetaNode):
            obj.key = record['key']
            obj.index = record['index']
            obj.parent = self._node(record['parent'], Meta)
            obj.container = self._node(record['container'], MetaArray)
            obj._value = self._value(record['value'])
            obj.state.update({key: self._value(v) for key, v in record['state'].items()})
            if isinstance(obj, MetaArray):
                list.extend(obj, [self._node(ref, MetaNode, required=True) for ref in record['items']])
            else:
                obj._children = {key: self._node(ref, MetaNode, required=True) for key, ref in record['children'].items()}
        elif isinstance(obj, dict):
            obj.update({key: self._value(v) for key, v in record['entries'].items()})
        else:
            obj.extend(self._value(v) for v in record['entries'])

    def _skeleton(self, node: MetaNode, skeletons: Dict[int, Optional[MetaSpec]]) -> MetaSpec:
        """Structural-only specification (fields/items) mirroring the decoded shape."""
        if id(node) in skeletons:
            spec = skeletons[id(node)]
            if spec is None:
                raise MalformedSerialization("Cyclic child reference")
            return spec
        skeletons[id(node)] = None  # in progress
        if isinstance(node, MetaArray):
            item_spec = self._skeleton(node[0], skeletons) if len(node) else MetaSpec()
            spec = MetaSpec(items=item_spec)
        elif node.children:
            spec = MetaSpec(fields={key: self._skeleton(child, skeletons) for key, child in node.children.items()})
        else:
            spec = MetaSpec()
        skeletons[id(node)] = spec
        return spec
