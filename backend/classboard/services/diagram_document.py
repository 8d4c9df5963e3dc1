"""
Diagram document operations.

A diagram document is a plain dict:

    {
        "elements": {element_id: {"name", "position": {"x", "y"}, "attributes": [{"name", "type"}]}},
        "relations": {relation_id: {"from", "to", "type"}},
    }

Both maps are created lazily on first write. The functions below mutate the
document in place and raise AppException subclasses on missing or duplicate ids.
"""
from typing import Any

from classboard.exceptions import (
    InvalidDiagramContentException,
    ClassNotFoundException,
    ClassAlreadyExistsException,
    AttributeNotFoundException,
    RelationNotFoundException,
    RelationAlreadyExistsException,
)

ELEMENTS = "elements"
RELATIONS = "relations"


def validate_content(content: Any) -> dict[str, Any]:
    """Check the document shape and return it unchanged."""
    if not isinstance(content, dict):
        raise InvalidDiagramContentException("content must be an object")
    for key in (ELEMENTS, RELATIONS):
        section = content.get(key)
        if section is None:
            continue
        if not isinstance(section, dict):
            raise InvalidDiagramContentException(f"'{key}' must be an object keyed by id")
        for item_id, item in section.items():
            if not isinstance(item, dict):
                raise InvalidDiagramContentException(f"'{key}.{item_id}' must be an object")
    for element_id, element in (content.get(ELEMENTS) or {}).items():
        attributes = element.get("attributes")
        if attributes is None:
            continue
        if not isinstance(attributes, list):
            raise InvalidDiagramContentException(f"'elements.{element_id}.attributes' must be a list")
        for index, attribute in enumerate(attributes):
            if not isinstance(attribute, dict):
                raise InvalidDiagramContentException(
                    f"'elements.{element_id}.attributes[{index}]' must be an object"
                )
    return content


def _elements(content: dict[str, Any]) -> dict[str, Any]:
    if content.get(ELEMENTS) is None:
        content[ELEMENTS] = {}
    return content[ELEMENTS]


def _relations(content: dict[str, Any]) -> dict[str, Any]:
    if content.get(RELATIONS) is None:
        content[RELATIONS] = {}
    return content[RELATIONS]


def _get_class(content: dict[str, Any], class_id: str) -> dict[str, Any] | None:
    return (content.get(ELEMENTS) or {}).get(class_id)


# ==================== Elements ====================

def update_element(content: dict[str, Any], element_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge fields into the element, creating it if absent."""
    elements = _elements(content)
    elements[element_id] = {**elements.get(element_id, {}), **fields}
    return elements[element_id]


def move_element(content: dict[str, Any], element_id: str, position: dict[str, Any]) -> dict[str, Any]:
    return update_element(content, element_id, {"position": position})


def add_class(content: dict[str, Any], class_id: str, class_data: dict[str, Any]) -> dict[str, Any]:
    elements = _elements(content)
    if class_id in elements:
        raise ClassAlreadyExistsException(class_id)
    elements[class_id] = {**class_data, "attributes": class_data.get("attributes") or []}
    return elements[class_id]


def remove_class(content: dict[str, Any], class_id: str) -> list[str]:
    """
    Delete the class and every relation starting or ending at it.

    Returns:
        Ids of the relations removed along with the class
    """
    if _get_class(content, class_id) is None:
        raise ClassNotFoundException(class_id)

    relations = content.get(RELATIONS) or {}
    removed = [
        rel_id for rel_id, rel in relations.items()
        if rel.get("from") == class_id or rel.get("to") == class_id
    ]
    for rel_id in removed:
        del relations[rel_id]

    del content[ELEMENTS][class_id]
    return removed


# ==================== Attributes ====================

def add_attribute(content: dict[str, Any], class_id: str, attribute: dict[str, Any]) -> list[dict[str, Any]]:
    class_elem = _get_class(content, class_id)
    if class_elem is None:
        raise ClassNotFoundException(class_id)
    if class_elem.get("attributes") is None:
        class_elem["attributes"] = []
    class_elem["attributes"].append(attribute)
    return class_elem["attributes"]


def _get_attributes(content: dict[str, Any], class_id: str, index: int) -> list[dict[str, Any]]:
    class_elem = _get_class(content, class_id)
    attributes = (class_elem or {}).get("attributes") or []
    if not 0 <= index < len(attributes):
        raise AttributeNotFoundException(class_id, index)
    return attributes


def update_attribute(
    content: dict[str, Any], class_id: str, index: int, fields: dict[str, Any]
) -> dict[str, Any]:
    attributes = _get_attributes(content, class_id, index)
    attributes[index] = {**attributes[index], **fields}
    return attributes[index]


def remove_attribute(content: dict[str, Any], class_id: str, index: int) -> dict[str, Any]:
    """Remove the attribute at index; later attributes shift down by one."""
    attributes = _get_attributes(content, class_id, index)
    return attributes.pop(index)


# ==================== Relations ====================

def add_relation(content: dict[str, Any], relation_id: str, relation: dict[str, Any]) -> dict[str, Any]:
    # Endpoints are not checked against existing elements
    relations = _relations(content)
    if relation_id in relations:
        raise RelationAlreadyExistsException(relation_id)
    relations[relation_id] = dict(relation)
    return relations[relation_id]


def update_relation(content: dict[str, Any], relation_id: str, fields: dict[str, Any]) -> dict[str, Any]:
    relations = content.get(RELATIONS) or {}
    if relation_id not in relations:
        raise RelationNotFoundException(relation_id)
    relations[relation_id] = {**relations[relation_id], **fields}
    return relations[relation_id]


def remove_relation(content: dict[str, Any], relation_id: str) -> dict[str, Any]:
    relations = content.get(RELATIONS) or {}
    if relation_id not in relations:
        raise RelationNotFoundException(relation_id)
    return relations.pop(relation_id)
