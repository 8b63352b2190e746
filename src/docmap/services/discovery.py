"""
Discovery strategies: find the mappable attributes of a class.

A strategy only describes attributes (as PropertyHandle records); turning a
handle into a MemberDescriptor is the mapper's job. Strategies are injected
into DocumentMapper, so another policy (naming conventions, custom markers)
can replace the default without touching the builder.

Two strategies ship with the package:
- AttributeDiscovery: plain classes and dataclasses, from type hints and properties.
- MongoEngineDiscovery: mongoengine Document / EmbeddedDocument classes, from
  their declared fields; plain classes fall back to AttributeDiscovery.
"""
import abc
import datetime
import decimal
import types
import typing
import uuid
from typing import List, NamedTuple, Optional

import bson
import mongoengine
from mongoengine.base import BaseDocument


"""
Description of one attribute found on a class.

Fields:
    name: Attribute name on the class.
    data_type: Declared value type (object when unknown).
    item_type: Element type for list-like attributes.
    writable: False for read-only properties.
    field_name: Explicit document key declared on the class (e.g. mongoengine db_field).
    unique: Uniqueness declared on the class.
    is_identifier: The class declares this attribute as its identifier.
    reference: Class of the documents this attribute refers to.
"""
class PropertyHandle(NamedTuple):
    name: str
    data_type: type = object
    item_type: Optional[type] = None
    writable: bool = True
    field_name: Optional[str] = None
    unique: bool = False
    is_identifier: bool = False
    reference: Optional[type] = None


class DiscoveryStrategy(abc.ABC):
    """Base class for discovery policies."""

    @abc.abstractmethod
    def members_of(self, for_type: type) -> List[PropertyHandle]:
        raise NotImplementedError()

    """Describe attribute `name` of `for_type`, even when members_of() would not list it."""
    def handle_of(self, for_type: type, name: str) -> PropertyHandle:
        for handle in self.members_of(for_type):
            if handle.name == name:
                return handle
        return PropertyHandle(name)


_LIST_TYPES = (list, tuple, set, frozenset)
_UNION_TYPES = (typing.Union, getattr(types, 'UnionType', typing.Union))


def _split_hint(hint):
    """Return (data_type, item_type) for a type hint."""
    origin = typing.get_origin(hint)
    args = [a for a in typing.get_args(hint) if a is not type(None)]

    # Optional[X] / X | None
    if origin in _UNION_TYPES:
        if len(args) == 1:
            return _split_hint(args[0])
        return object, None

    if origin in _LIST_TYPES:
        item = args[0] if args else object
        return origin, (item if isinstance(item, type) else object)

    if origin is not None:
        return (origin if isinstance(origin, type) else object), None

    if hint in _LIST_TYPES:
        return hint, object

    return (hint if isinstance(hint, type) else object), None


class AttributeDiscovery(DiscoveryStrategy):
    """
    Discover attributes from class annotations and properties.

    Annotated attributes come first (base classes before subclasses, in
    declaration order), then properties. ClassVar annotations are skipped, as
    are names starting with an underscore unless include_non_public is set.
    """

    def __init__(self, include_non_public: bool = False):
        self.include_non_public = include_non_public

    def members_of(self, for_type: type) -> List[PropertyHandle]:
        handles = []
        seen = set()

        for name, hint in self._annotations(for_type).items():
            if not self._accepts(name) or typing.get_origin(hint) is typing.ClassVar:
                continue
            data_type, item_type = _split_hint(hint)
            handles.append(PropertyHandle(
                name, data_type, item_type,
                is_identifier=self.is_identifier_name(for_type, name)))
            seen.add(name)

        for klass in reversed(for_type.__mro__):
            for name, attr in vars(klass).items():
                if name in seen or not isinstance(attr, property) or not self._accepts(name):
                    continue
                hints = self._return_hints(attr.fget)
                data_type, item_type = _split_hint(hints.get('return', object))
                handles.append(PropertyHandle(
                    name, data_type, item_type,
                    writable=attr.fset is not None,
                    is_identifier=self.is_identifier_name(for_type, name)))
                seen.add(name)

        return handles

    """Naming convention for identifiers: id, _id or <classname>_id."""
    @staticmethod
    def is_identifier_name(for_type: type, name: str) -> bool:
        return name in ('id', '_id', f'{for_type.__name__.lower()}_id')

    def _accepts(self, name: str) -> bool:
        return self.include_non_public or not name.startswith('_') or name == '_id'

    @staticmethod
    def _return_hints(getter) -> dict:
        if getter is None:
            return {}
        try:
            return typing.get_type_hints(getter)
        except (NameError, TypeError):
            return {}

    @staticmethod
    def _annotations(for_type: type) -> dict:
        try:
            return typing.get_type_hints(for_type)
        except (NameError, TypeError):
            # Unresolvable forward references: keep names, drop the types.
            merged = {}
            for klass in reversed(for_type.__mro__):
                for name in vars(klass).get('__annotations__', {}):
                    merged[name] = object
            return merged


# Order matters: subclasses (EmailField, EmbeddedDocumentListField, ...) are
# matched through their mongoengine base classes.
_MONGO_FIELD_TYPES = (
    (mongoengine.StringField, str),
    (mongoengine.BooleanField, bool),
    (mongoengine.IntField, int),
    (mongoengine.LongField, int),
    (mongoengine.FloatField, float),
    (mongoengine.DecimalField, decimal.Decimal),
    (mongoengine.DateTimeField, datetime.datetime),
    (mongoengine.DateField, datetime.date),
    (mongoengine.ObjectIdField, bson.ObjectId),
    (mongoengine.UUIDField, uuid.UUID),
    (mongoengine.DictField, dict),
    (mongoengine.MapField, dict),
)


class MongoEngineDiscovery(AttributeDiscovery):
    """
    Discover the declared fields of mongoengine documents.

    Field order follows mongoengine (the implicit `id` of a top-level Document
    first). `db_field` becomes the document key, `unique=True` requests a
    unique index, and ReferenceField targets become cross-collection references.
    """

    def members_of(self, for_type: type) -> List[PropertyHandle]:
        if not self.is_document(for_type):
            return super().members_of(for_type)

        return [
            self._field_handle(for_type, name)
            for name in for_type._fields_ordered
            if self._accepts(name)
        ]

    def handle_of(self, for_type: type, name: str) -> PropertyHandle:
        if self.is_document(for_type) and name in for_type._fields:
            return self._field_handle(for_type, name)
        return super().handle_of(for_type, name)

    @staticmethod
    def is_document(for_type) -> bool:
        return isinstance(for_type, type) and issubclass(for_type, BaseDocument)

    def _field_handle(self, for_type: type, name: str) -> PropertyHandle:
        field = for_type._fields[name]
        meta = getattr(for_type, '_meta', None) or {}

        item_type = None
        reference = None
        if isinstance(field, mongoengine.ListField):
            item_type = self._python_type(field.field)
            data_type = list
            if isinstance(field.field, mongoengine.ReferenceField):
                reference = item_type
        else:
            data_type = self._python_type(field)
            if isinstance(field, mongoengine.ReferenceField):
                reference = data_type

        return PropertyHandle(
            name,
            data_type,
            item_type,
            field_name=field.db_field,
            unique=bool(field.unique),
            is_identifier=bool(field.primary_key) or meta.get('id_field') == name,
            reference=reference,
        )

    @staticmethod
    def _python_type(field) -> type:
        if field is None:
            return object
        if isinstance(field, (mongoengine.ReferenceField, mongoengine.EmbeddedDocumentField)):
            return field.document_type
        if isinstance(field, mongoengine.ListField):
            return list
        for field_class, python_type in _MONGO_FIELD_TYPES:
            if isinstance(field, field_class):
                return python_type
        return object
