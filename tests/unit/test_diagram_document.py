"""Tests for the pure document operations (no database)."""
import pytest

from classboard.services import diagram_document as document
from classboard.exceptions import (
    ClassAlreadyExistsException,
    ClassNotFoundException,
    AttributeNotFoundException,
    RelationAlreadyExistsException,
    RelationNotFoundException,
    InvalidDiagramContentException,
    ErrorCode,
)


@pytest.fixture
def content():
    return {
        "elements": {
            "A": {"name": "A", "position": {"x": 0, "y": 0}, "attributes": []},
            "B": {"name": "B", "position": {"x": 10, "y": 0}, "attributes": []},
            "C": {"name": "C", "position": {"x": 20, "y": 0}, "attributes": []},
        },
        "relations": {
            "R1": {"from": "A", "to": "B", "type": "association"},
            "R2": {"from": "C", "to": "A", "type": "inheritance"},
            "R3": {"from": "B", "to": "C", "type": "composition"},
        },
    }


class TestElements:
    def test_update_element_creates_missing_maps_and_element(self):
        content = {}
        document.update_element(content, "e1", {"name": "Note"})
        assert content == {"elements": {"e1": {"name": "Note"}}}

    def test_update_element_merges_shallowly(self, content):
        document.update_element(content, "A", {"name": "Renamed", "color": "red"})
        assert content["elements"]["A"] == {
            "name": "Renamed",
            "position": {"x": 0, "y": 0},
            "attributes": [],
            "color": "red",
        }

    def test_move_element_only_replaces_position(self, content):
        document.move_element(content, "B", {"x": 5, "y": 5})
        assert content["elements"]["B"]["position"] == {"x": 5, "y": 5}
        assert content["elements"]["B"]["name"] == "B"


class TestClasses:
    def test_add_class_defaults_attributes(self):
        content = {}
        document.add_class(content, "c1", {"name": "Car", "position": {"x": 0, "y": 0}})
        assert content["elements"]["c1"] == {
            "name": "Car",
            "position": {"x": 0, "y": 0},
            "attributes": [],
        }

    def test_add_class_rejects_duplicate_id(self, content):
        with pytest.raises(ClassAlreadyExistsException) as exc_info:
            document.add_class(content, "A", {"name": "Other", "position": {"x": 1, "y": 1}})
        assert exc_info.value.status_code == 409
        assert exc_info.value.code == ErrorCode.CLASS_ALREADY_EXISTS
        assert content["elements"]["A"]["name"] == "A"

    def test_remove_class_cascades_relations(self, content):
        removed = document.remove_class(content, "A")

        assert sorted(removed) == ["R1", "R2"]
        assert set(content["elements"]) == {"B", "C"}
        assert set(content["relations"]) == {"R3"}

    def test_remove_missing_class(self, content):
        with pytest.raises(ClassNotFoundException):
            document.remove_class(content, "missing")

    def test_remove_class_without_relations_map(self):
        content = {"elements": {"A": {"name": "A", "attributes": []}}}
        assert document.remove_class(content, "A") == []
        assert content["elements"] == {}


class TestAttributes:
    def test_add_attribute_to_missing_class(self):
        with pytest.raises(ClassNotFoundException):
            document.add_attribute({}, "nope", {"name": "x", "type": "int"})

    def test_add_attribute_creates_list(self):
        content = {"elements": {"A": {"name": "A"}}}
        document.add_attribute(content, "A", {"name": "speed", "type": "number"})
        assert content["elements"]["A"]["attributes"] == [{"name": "speed", "type": "number"}]

    def test_update_attribute_merges(self, content):
        document.add_attribute(content, "A", {"name": "speed", "type": "number"})
        document.update_attribute(content, "A", 0, {"type": "float"})
        assert content["elements"]["A"]["attributes"] == [{"name": "speed", "type": "float"}]

    @pytest.mark.parametrize("index", [1, -1, 5])
    def test_update_attribute_index_out_of_range(self, content, index):
        document.add_attribute(content, "A", {"name": "speed", "type": "number"})
        with pytest.raises(AttributeNotFoundException):
            document.update_attribute(content, "A", index, {"type": "float"})

    def test_update_attribute_missing_class(self):
        with pytest.raises(AttributeNotFoundException):
            document.update_attribute({}, "A", 0, {"type": "float"})

    def test_remove_attribute_shifts_indices(self, content):
        for name in ("a0", "a1", "a2"):
            document.add_attribute(content, "A", {"name": name, "type": "int"})

        document.remove_attribute(content, "A", 0)
        assert [a["name"] for a in content["elements"]["A"]["attributes"]] == ["a1", "a2"]

        document.remove_attribute(content, "A", 0)
        assert [a["name"] for a in content["elements"]["A"]["attributes"]] == ["a2"]

    def test_remove_attribute_out_of_range(self, content):
        with pytest.raises(AttributeNotFoundException):
            document.remove_attribute(content, "A", 0)


class TestRelations:
    def test_add_relation_does_not_check_endpoints(self):
        content = {}
        document.add_relation(content, "r1", {"from": "ghost", "to": "other", "type": "dependency"})
        assert content["relations"]["r1"]["from"] == "ghost"

    def test_add_relation_rejects_duplicate(self, content):
        with pytest.raises(RelationAlreadyExistsException) as exc_info:
            document.add_relation(content, "R1", {"from": "A", "to": "C", "type": "association"})
        assert exc_info.value.status_code == 409

    def test_update_relation(self, content):
        document.update_relation(content, "R1", {"type": "aggregation"})
        assert content["relations"]["R1"] == {"from": "A", "to": "B", "type": "aggregation"}

    def test_update_and_remove_missing_relation(self, content):
        with pytest.raises(RelationNotFoundException):
            document.update_relation(content, "R9", {"type": "aggregation"})
        with pytest.raises(RelationNotFoundException):
            document.remove_relation({}, "R1")

    def test_remove_relation(self, content):
        document.remove_relation(content, "R3")
        assert set(content["relations"]) == {"R1", "R2"}


class TestValidateContent:
    def test_accepts_empty_and_full_documents(self, content):
        assert document.validate_content({}) == {}
        assert document.validate_content(content) is content

    @pytest.mark.parametrize("bad", [
        [],
        {"elements": []},
        {"relations": {"r1": "A->B"}},
        {"elements": {"A": {"attributes": "speed"}}},
        {"elements": {"A": {"attributes": ["speed"]}}},
        {"elements": {"A": {"attributes": [{"name": "speed", "type": "number"}, None]}}},
    ])
    def test_rejects_malformed_documents(self, bad):
        with pytest.raises(InvalidDiagramContentException):
            document.validate_content(bad)
