"""Pytest configuration and shared fixtures."""
import pytest

from metagraph import BacklinkRegistry, MetaSpec, SetupRegistry, default_registry
import metagraph.config as config_module


@pytest.fixture(autouse=True)
def restore_process_state():
    """Snapshot and restore process-wide hooks and configuration around each test.

    Graphs stay reachable from their data until disposed, so backlinks are
    cleared as well.
    """
    # Store original values
    original_hooks = default_registry.hooks
    original_config = config_module._global_config

    yield

    # Restore original values after test
    default_registry.clear()
    for hook in original_hooks:
        default_registry.register(hook)
    config_module._global_config = original_config
    BacklinkRegistry.clear()


@pytest.fixture
def registry():
    """Provide an isolated setup registry."""
    return SetupRegistry()


@pytest.fixture
def person_spec():
    """Provide a specification for a person with a nested address and tags."""
    return MetaSpec(
        label="Person",
        fields={
            "name": MetaSpec(label="Name"),
            "age": MetaSpec(),
            "address": MetaSpec(
                label="Address",
                fields={
                    "street": MetaSpec(label="Street"),
                    "city": MetaSpec(),
                },
            ),
            "tags": MetaSpec(items=MetaSpec()),
        },
    )


@pytest.fixture
def person():
    """Provide person data matching person_spec."""
    return {
        "name": "Ada",
        "age": 36,
        "address": {"street": "1 Analytical Way", "city": "London"},
        "tags": ["math", "engines"],
    }
