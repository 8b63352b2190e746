"""
Project objects to plain documents (dicts) and back using sealed mappings.

This is the in-memory half of serialization: it decides which keys a document
has and what goes under them. Encoding the dict to BSON bytes and storing it
belong to the driver.

Notes:
- Members are emitted in mapping order.
- An auto-id member whose value is missing gets a generated bson.ObjectId
  (or uuid4 for UUID identifiers), written back onto the object.
- References are stored as {"$id": <id>, "$ref": <collection>} and loaded as
  stub objects carrying only their id.
- Values whose class is mapped (registered, or a mongoengine document) are
  projected recursively as embedded documents.
"""
import uuid
from typing import Any, Dict, Optional

import bson

from docmap.data.entities import EntityDescriptor
from docmap.data.errors import MappingError
from docmap.data.members import MemberDescriptor
from docmap.services.discovery import MongoEngineDiscovery


def _is_mapped_type(mapper, value_type) -> bool:
    return value_type in mapper.registry or MongoEngineDiscovery.is_document(value_type)


"""Generate a new identifier value for `data_type`, or None if the driver must supply it."""
def new_id(data_type) -> Optional[Any]:
    if data_type is uuid.UUID:
        return uuid.uuid4()
    if data_type in (bson.ObjectId, object):
        return bson.ObjectId()
    if data_type is str:
        return str(bson.ObjectId())
    # Integer sequences need the collection's state; the driver assigns them.
    return None


"""
Build the document for `obj` from the sealed mapping of its class.

Parameters:
    mapper: The DocumentMapper holding the mapping.
    obj: The object to project.

Returns:
    A dict keyed by document field names, in mapping order.
"""
def to_document(mapper, obj) -> Dict[str, Any]:
    entity = mapper.entity_for(type(obj))
    document = {}

    for member in entity:
        value = member.getter(obj)

        if member.is_id and value is None and member.auto_id:
            value = new_id(member.data_type)
            if value is not None and member.setter is not None:
                member.setter(obj, value)

        if member.reference is not None:
            value = _reference_value(mapper, member, value)
        else:
            value = _embedded_value(mapper, value)

        document[member.field_name] = value

    return document


"""
Create an instance of `for_type` and fill it from `document`.

Members without a setter (virtual indexes, read-only properties) and keys
absent from the document are skipped. `for_type` must be constructible
without arguments.
"""
def from_document(mapper, for_type: type, document: Dict[str, Any]):
    entity = mapper.entity_for(for_type)
    obj = for_type()

    for member in entity:
        if member.setter is None or member.field_name not in document:
            continue

        value = document[member.field_name]
        if member.reference is not None:
            value = _load_reference(mapper, member, value)
        elif isinstance(value, dict) and _is_mapped_type(mapper, member.data_type):
            value = from_document(mapper, member.data_type, value)
        elif isinstance(value, list) and member.item_type is not None \
                and _is_mapped_type(mapper, member.item_type):
            value = [from_document(mapper, member.item_type, v) if isinstance(v, dict) else v
                     for v in value]

        member.setter(obj, value)

    return obj


def _id_member(mapper, target_type: type) -> MemberDescriptor:
    entity: EntityDescriptor = mapper.entity_for(target_type)
    member = entity.id_member
    if member is None:
        raise MappingError(f"{target_type.__name__} has no identifier member to reference")
    return member


def _reference_value(mapper, member: MemberDescriptor, value):
    if value is None:
        return None

    ref = member.reference
    id_member = _id_member(mapper, ref.target_type)

    def as_ref(item):
        return {'$id': id_member.getter(item), '$ref': ref.collection}

    if ref.is_list:
        return [as_ref(item) for item in value]
    return as_ref(value)


def _load_reference(mapper, member: MemberDescriptor, value):
    if value is None:
        return None

    ref = member.reference
    id_member = _id_member(mapper, ref.target_type)

    def as_stub(raw):
        stub = ref.target_type()
        id_member.setter(stub, raw['$id'] if isinstance(raw, dict) else raw)
        return stub

    if ref.is_list:
        return [as_stub(raw) for raw in value]
    return as_stub(value)


def _embedded_value(mapper, value):
    if isinstance(value, (list, tuple, set)):
        return [_embedded_value(mapper, v) for v in value]
    if isinstance(value, dict):
        return {k: _embedded_value(mapper, v) for k, v in value.items()}
    if value is not None and _is_mapped_type(mapper, type(value)):
        return to_document(mapper, value)
    return value
