"""
Cooperative policies built on the meta-graph engine.

Each policy owns a disjoint set of specification terms and state keys, and
checks for its own terms before acting on a node. Importing a policy module
registers its setup hook with the process-wide registry, so import policies
before building any graph.

Modules:
    - validation: validator / mandatory / disabled / hidden terms
    - terminology: label / help_text / symbol terms and label paths
    - application: init / review terms and graph start-up
"""

from metapolicy.validation import validate, validate_all, refresh_flags, validation_setup
from metapolicy.terminology import label_or_key, label_path
from metapolicy.application import start, start_async, meta_proc

__all__ = [
    # Validation
    'validate',
    'validate_all',
    'refresh_flags',
    'validation_setup',
    # Terminology
    'label_or_key',
    'label_path',
    # Application
    'start',
    'start_async',
    'meta_proc',
]
