"""Tests for the terminology policy."""
from metagraph import MetaSpec, build
from metapolicy import label_or_key, label_path


class TestLabelOrKey:
    """Test label resolution."""

    def test_label_term(self, person_spec, person):
        root = build(person_spec, person)

        assert label_or_key(root) == "Person"
        assert label_or_key(root.name) == "Name"

    def test_falls_back_to_key(self, person_spec, person):
        root = build(person_spec, person)
        assert label_or_key(root.age) == "age"

    def test_root_without_label(self):
        assert label_or_key(build(MetaSpec(), {})) is None

    def test_label_function(self):
        spec = MetaSpec(fields={"code": MetaSpec(label=lambda value, node: value.upper())})
        root = build(spec, {"code": "gb"})
        assert label_or_key(root.code) == "GB"

    def test_other_terms_resolve(self):
        spec = MetaSpec(fields={"email": MetaSpec(help_text="Work address", symbol="bi-envelope")})
        root = build(spec, {})

        assert root.email.term("help_text") == "Work address"
        assert root.email.term("symbol") == "bi-envelope"


class TestLabelPath:
    """Test label paths between nodes."""

    def test_below_from_node(self, person_spec, person):
        root = build(person_spec, person)
        assert label_path(root, root.address.street) == "Address > Street"

    def test_from_root(self, person_spec, person):
        root = build(person_spec, person)
        assert label_path(None, root.address.city) == "Person > Address > city"

    def test_unlabelled_root_skipped(self):
        spec = MetaSpec(fields={"address": MetaSpec(fields={"street": MetaSpec(label="Street")})})
        root = build(spec, {})
        assert label_path(None, root.address.street) == "address > Street"

    def test_item_uses_collection_key(self, person_spec, person):
        root = build(person_spec, person)
        assert label_path(root, root.tags[1]) == "tags"
