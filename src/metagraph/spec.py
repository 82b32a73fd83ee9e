"""
Specification model: the declarative tree describing a data shape.

A specification node describes one position in the data:
- fields: named sub-specifications (object shape)
- items: item template specification (collection shape)
- calcs: calculated field functions of (value, node)
- terms: arbitrary extension terms, opaque to the engine

Extensions own disjoint sets of term names and must check for their own
terms before acting on a node.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

from metagraph.errors import InvalidSpecification

# Names that never count as structural fields
RESERVED_FIELD_NAMES = frozenset({'__typename'})

_STRUCTURAL_KEYS = ('fields', 'items', 'calcs')


class MetaSpec:
    """Specification node with an open map of extension terms."""

    def __init__(
        self,
        fields: Optional[Dict[str, 'MetaSpec']] = None,
        items: Optional['MetaSpec'] = None,
        calcs: Optional[Dict[str, Callable]] = None,
        **terms: Any,
    ):
        if fields is not None and items is not None:
            raise InvalidSpecification("A specification may declare fields or items, not both")
        self.fields = fields
        self.items = items
        self.calcs: Dict[str, Callable] = dict(calcs or {})
        self.terms: Dict[str, Any] = terms

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MetaSpec':
        """Build a specification tree from nested plain mappings.

        Keys 'fields', 'items' and 'calcs' are structural, every other key is a term.
        """
        fields = data.get('fields')
        items = data.get('items')
        terms = {k: v for k, v in data.items() if k not in _STRUCTURAL_KEYS}
        return cls(
            fields={k: cls._coerce(v) for k, v in fields.items()} if fields is not None else None,
            items=cls._coerce(items) if items is not None else None,
            calcs=data.get('calcs'),
            **terms,
        )

    @classmethod
    def _coerce(cls, value: Any) -> 'MetaSpec':
        return value if isinstance(value, MetaSpec) else cls.from_dict(value)

    def term(self, name: str, default: Any = None) -> Any:
        """Get a raw extension term."""
        return self.terms.get(name, default)

    def has_term(self, name: str) -> bool:
        return name in self.terms

    def with_terms(self, **terms: Any) -> 'MetaSpec':
        """Return a shallow copy with additional or replaced terms."""
        return MetaSpec(
            fields=self.fields,
            items=self.items,
            calcs=self.calcs,
            **{**self.terms, **terms},
        )

    def __repr__(self) -> str:
        shape = 'items' if self.items is not None else f"fields={field_keys(self)}"
        terms = f", terms={sorted(self.terms)}" if self.terms else ''
        return f"MetaSpec({shape}{terms})"


def field_keys(spec: Optional[MetaSpec]) -> List[str]:
    """Return the ordered structural field names of a specification.

    Reserved names are excluded. A missing specification has no fields.
    """
    if spec is None or not spec.fields:
        return []
    return [key for key in spec.fields if key not in RESERVED_FIELD_NAMES]
