"""Tests for the commit synchronizer."""
import copy
from collections import OrderedDict

from metagraph import MetaSpec, build, commit, config_context, meta_of


def _three_levels():
    return MetaSpec(fields={
        "outer": MetaSpec(fields={
            "middle": MetaSpec(fields={
                "leaf": MetaSpec(),
            }),
        }),
    })


class TestCommit:
    """Test folding node-local values into the canonical data."""

    def test_staged_leaf_written(self, person_spec, person):
        root = build(person_spec, person)
        root.name.stage("Grace")
        root.address.city.stage("Paris")

        commit(root)

        assert person["name"] == "Grace"
        assert person["address"]["city"] == "Paris"

    def test_idempotent(self, person_spec, person):
        root = build(person_spec, person)
        root.age.stage(37)
        root.tags[1].stage("looms")

        commit(root)
        snapshot1 = copy.deepcopy(root.value)
        commit(root)
        snapshot2 = copy.deepcopy(root.value)

        assert snapshot1 == snapshot2
        assert snapshot1["age"] == 37
        assert snapshot1["tags"] == ["math", "looms"]

    def test_none_leaf_stays_absent(self, person_spec):
        data = {"name": "Ada"}
        root = build(person_spec, data)

        commit(root)

        assert data["name"] == "Ada"
        assert "age" not in data
        assert "address" not in data

    def test_commit_subtree_only(self, person_spec, person):
        root = build(person_spec, person)
        root.name.stage("Grace")
        root.address.street.stage("Elsewhere")

        commit(root.address)

        assert person["address"]["street"] == "Elsewhere"
        assert person["name"] == "Ada"


class TestLazyMaterialization:
    """Test that containers appear only for populated branches."""

    def test_populated_leaf_materializes_every_level(self):
        data = {}
        root = build(_three_levels(), data)
        root.outer.middle.leaf.stage("deep")

        commit(root)

        assert data == {"outer": {"middle": {"leaf": "deep"}}}
        assert meta_of(data["outer"]) is root.outer
        assert root.outer.middle.value is data["outer"]["middle"]

    def test_none_leaf_creates_no_containers(self):
        data = {}
        root = build(_three_levels(), data)

        commit(root)

        assert data == {}
        assert root.outer.value is None
        assert root.outer.middle.value is None

    def test_stops_at_existing_container(self):
        middle = {}
        data = {"outer": {"middle": middle}}
        root = build(_three_levels(), data)
        outer = data["outer"]
        root.outer.middle.leaf.stage(1)

        commit(root.outer.middle.leaf)

        assert data["outer"] is outer
        assert data["outer"]["middle"] is middle
        assert middle == {"leaf": 1}

    def test_leaf_commit_walks_upward(self):
        """Committing a single leaf materializes its ancestors too."""
        data = {}
        root = build(_three_levels(), data)
        root.outer.middle.leaf.stage(False)

        commit(root.outer.middle.leaf)

        assert data == {"outer": {"middle": {"leaf": False}}}

    def test_container_factory_from_config(self):
        data = {}
        root = build(_three_levels(), data)
        root.outer.middle.leaf.stage("x")

        with config_context(container_factory=OrderedDict):
            commit(root)

        assert isinstance(data["outer"], OrderedDict)
        assert isinstance(data["outer"]["middle"], OrderedDict)


class TestCommitCollections:
    """Test committing collection nodes."""

    def test_rebuilds_list_in_order(self, person_spec, person):
        root = build(person_spec, person)
        tags = person["tags"]
        root.tags[0].stage("algebra")

        commit(root.tags)

        assert person["tags"] is tags
        assert tags == ["algebra", "engines"]

    def test_absent_collection_created_in_existing_container(self, person_spec):
        data = {"name": "Ada"}
        root = build(person_spec, data)

        commit(root)

        assert data["tags"] == []
        assert meta_of(data["tags"]) is root.tags

    def test_object_items_materialize(self):
        spec = MetaSpec(fields={
            "lines": MetaSpec(items=MetaSpec(fields={"qty": MetaSpec()})),
        })
        data = {"lines": [None, {"qty": 1}]}
        root = build(spec, data)
        root.lines[0].qty.stage(5)
        root.lines[1].qty.stage(2)

        commit(root)

        assert data["lines"] == [{"qty": 5}, {"qty": 2}]
        assert meta_of(data["lines"][0]) is root.lines[0]
