"""
Meta-graph engine: a parallel graph of runtime nodes mirroring nested data.

Given a nested data value and a declarative specification tree, the engine
builds a "meta" graph that mirrors the data node-for-node. Each node carries
per-node runtime state, its data value, its specification and links to its
parent and children.

Key Features:
- Graph construction from (specification, value) pairs
- Rebase: replace a subtree's data while preserving node identity and state
- Commit: fold node-local edits back into the canonical data tree
- Setup hooks: extensions initialise per-node state without the engine knowing them
- Serialization of cyclic meta graphs together with their state

Quick Start:
    >>> from metagraph import MetaSpec, build, commit, meta_of
    >>>
    >>> spec = MetaSpec(fields={
    ...     "name": MetaSpec(label="Name"),
    ...     "address": MetaSpec(fields={"street": MetaSpec()}),
    ... })
    >>> data = {"name": "Ada", "address": None}
    >>> root = build(spec, data)
    >>> meta_of(data) is root
    True
    >>> root.name.value = "Grace"     # rebases the leaf, updates data["name"]
    >>> root.address.street.stage("Main St")
    >>> commit(root)                  # materializes data["address"]
    >>> data
    {'name': 'Grace', 'address': {'street': 'Main St'}}

Modules:
    - spec: Specification model and key introspection
    - setup_registry: Setup hook registry
    - backlinks: Value-to-node association
    - meta: Meta nodes, graph builder, rebase and apply-spec
    - commit: Commit synchronizer
    - serialization: Meta graph serialization codec
    - config: Framework configuration
    - errors: Error hierarchy
"""

# Errors
from metagraph.errors import (
    MetaGraphError,
    InvalidOperand,
    InvalidSpecification,
    MalformedSerialization,
    SetupHookError,
)

# Configuration
from metagraph.config import (
    MetaGraphConfig,
    get_config,
    set_config,
    reset_config,
    config_context,
    default_state_predicate,
)

# Specification
from metagraph.spec import MetaSpec, field_keys, RESERVED_FIELD_NAMES

# Setup hooks
from metagraph.setup_registry import SetupRegistry, default_registry, register_setup

# Backlinks
from metagraph.backlinks import BacklinkRegistry

# Graph
from metagraph.meta import (
    MetaNode,
    Meta,
    MetaArray,
    build,
    rebase,
    apply_spec,
    dispose,
    meta_of,
    parent_value,
    is_meta_array,
    is_meta_fn,
    meta_call,
    get_spec_value,
    meta_path,
)

# Commit
from metagraph.commit import commit

# Serialization
from metagraph.serialization import encode, decode

__all__ = [
    # Errors
    'MetaGraphError',
    'InvalidOperand',
    'InvalidSpecification',
    'MalformedSerialization',
    'SetupHookError',
    # Configuration
    'MetaGraphConfig',
    'get_config',
    'set_config',
    'reset_config',
    'config_context',
    'default_state_predicate',
    # Specification
    'MetaSpec',
    'field_keys',
    'RESERVED_FIELD_NAMES',
    # Setup hooks
    'SetupRegistry',
    'default_registry',
    'register_setup',
    # Backlinks
    'BacklinkRegistry',
    # Graph
    'MetaNode',
    'Meta',
    'MetaArray',
    'build',
    'rebase',
    'apply_spec',
    'dispose',
    'meta_of',
    'parent_value',
    'is_meta_array',
    'is_meta_fn',
    'meta_call',
    'get_spec_value',
    'meta_path',
    # Commit
    'commit',
    # Serialization
    'encode',
    'decode',
]

__version__ = '1.0.0'
