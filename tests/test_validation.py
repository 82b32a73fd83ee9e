"""Tests for the validation policy."""
import pytest

from metagraph import MetaSpec, build, default_registry
from metapolicy import refresh_flags, validate, validate_all, validation_setup


def _required_name(node):
    return bool(node.value) or "Name is required"


def _non_negative(node):
    return node.value is None or node.value >= 0


@pytest.fixture
def form_spec():
    return MetaSpec(fields={
        "name": MetaSpec(validator=_required_name, mandatory=True),
        "age": MetaSpec(validator=_non_negative),
        "nickname": MetaSpec(hidden=lambda value, node: value is None),
        "notes": MetaSpec(items=MetaSpec(disabled=True)),
    })


class TestValidationSetup:
    """Test state initialised at construction."""

    def test_registered_on_import(self):
        assert validation_setup in default_registry

    def test_validator_nodes_start_unvalidated(self, form_spec):
        root = build(form_spec, {"name": ""})

        assert root.name.state == {"error": False, "validated": False, "mandatory": True}
        assert root.age.state == {"error": False, "validated": False}

    def test_nodes_without_terms_untouched(self, form_spec):
        root = build(form_spec, {})
        assert root.state == {}

    def test_static_flags_on_items(self, form_spec):
        root = build(form_spec, {"notes": ["a", "b"]})
        assert [item.state["disabled"] for item in root.notes] == [True, True]

    def test_dynamic_flag_computed_at_construction(self, form_spec):
        root = build(form_spec, {"name": "Ada"})
        assert root.nickname.state["hidden"] is True


class TestValidate:
    """Test single-node validation."""

    def test_message_result(self, form_spec):
        root = build(form_spec, {"name": ""})

        validate(root.name)

        assert root.name.state["validated"] is True
        assert root.name.state["error"] == "Name is required"

    def test_false_result(self, form_spec):
        root = build(form_spec, {"age": -1})
        validate(root.age)
        assert root.age.state["error"] is True

    def test_true_result_clears_error(self, form_spec):
        root = build(form_spec, {"age": -1})
        validate(root.age)

        root.age.value = 3
        validate(root.age)

        assert root.age.state["error"] is False

    def test_node_without_validator(self, form_spec):
        root = build(form_spec, {})
        validate(root.nickname)

        assert root.nickname.state["validated"] is True
        assert "error" not in root.nickname.state

    def test_refreshes_dynamic_flags(self, form_spec):
        root = build(form_spec, {"name": "Ada"})
        root.nickname.stage("Addy")

        validate()

        assert root.nickname.state["hidden"] is False

    def test_refresh_flags_directly(self, form_spec):
        root = build(form_spec, {"name": "Ada", "nickname": "Addy"})
        assert root.nickname.state["hidden"] is False

        root.nickname.value = None
        refresh_flags()

        assert root.nickname.state["hidden"] is True


class TestValidateAll:
    """Test subtree validation."""

    def test_collects_errors_in_order(self, form_spec):
        root = build(form_spec, {"name": "", "age": -1})

        errors = validate_all(root)

        assert errors == [root.name, root.age]
        assert root.state["all_errors"] == errors
        assert root.name.state["all_errors"] == [root.name]

    def test_valid_subtree(self, form_spec):
        root = build(form_spec, {"name": "Ada", "age": 36})

        assert validate_all(root) == []
        assert root.name.state["validated"] is True

    def test_revalidate_only_visited_nodes(self, form_spec):
        root = build(form_spec, {"name": "", "age": -1})
        validate(root.age)

        errors = validate_all(root, revalidate=True)

        assert errors == [root.age]
        assert root.name.state["validated"] is False
        assert root.name.state["error"] is False

    def test_items_validated(self):
        spec = MetaSpec(items=MetaSpec(validator=_non_negative))
        node = build(spec, [1, -2, 3])

        assert validate_all(node) == [node[1]]

    def test_collection_node_walked_through(self):
        """Only the items of a collection are validated, never the collection."""
        collection_checks = []

        def check_collection(node):
            collection_checks.append(node)
            return False

        spec = MetaSpec(fields={
            "scores": MetaSpec(items=MetaSpec(validator=_non_negative), validator=check_collection),
        })
        root = build(spec, {"scores": [1, -1]})

        errors = validate_all(root)

        assert errors == [root.scores[1]]
        assert collection_checks == []
        assert root.scores.state["validated"] is False
