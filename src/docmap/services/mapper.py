"""
DocumentMapper: owns the entity registry and the collaborators the builder
delegates to.

- auto_map_entity(): seeds an entity from the discovery strategy.
- map_member(): builds a MemberDescriptor for one attribute.
- register_db_ref(): turns a member into a cross-collection reference.
- resolve_collection_name(): collection naming convention for a class.

Configure a mapper per class with entity(), then read sealed descriptors with
entity_for().
"""
import logging
import operator
import uuid
from typing import Callable, Optional, Union

import bson

from docmap.data.entities import EntityDescriptor
from docmap.data.errors import ArgumentError, MappingError
from docmap.data.members import ID_FIELD, DbRef, MemberDescriptor
from docmap.services.builder import EntityBuilder
from docmap.services.discovery import DiscoveryStrategy, MongoEngineDiscovery, PropertyHandle
from docmap.services.registry import EntityRegistry

logger = logging.getLogger(__name__)

# Identifier types the store can generate values for.
AUTO_ID_TYPES = (bson.ObjectId, uuid.UUID, int)


def _attribute_setter(name: str):
    def setter(obj, value):
        setattr(obj, name, value)
    return setter


"""
Default collection naming: the collection declared in a mongoengine-style
`meta = {'collection': ...}`, otherwise the class name.
"""
def default_collection_name(for_type: type) -> str:
    get_collection_name = getattr(for_type, '_get_collection_name', None)
    if callable(get_collection_name) and get_collection_name():
        return get_collection_name()

    meta = getattr(for_type, 'meta', None)
    if isinstance(meta, dict) and meta.get('collection'):
        return meta['collection']

    return for_type.__name__


class DocumentMapper:

    def __init__(self,
                 discovery: Optional[DiscoveryStrategy] = None,
                 resolve_field_name: Optional[Callable[[str], str]] = None,
                 resolve_collection_name: Optional[Callable[[type], str]] = None):
        self.discovery = discovery or MongoEngineDiscovery()
        self.registry = EntityRegistry()
        self._resolve_field_name = resolve_field_name or (lambda name: name)
        self._resolve_collection_name = resolve_collection_name or default_collection_name

    """Start (or continue) configuring the mapping of `for_type`."""
    def entity(self, for_type: type):
        return EntityBuilder(self, for_type)

    def get_entity_mapper(self, for_type: type, create_if_missing: bool = False) -> Optional[EntityDescriptor]:
        return self.registry.get(for_type, create_if_missing)

    """
    Return the sealed descriptor for `for_type`.

    A class that was never configured is auto-mapped and sealed on first use.

    Raises:
        MappingError: The class is still being configured (its descriptor is a draft).
    """
    def entity_for(self, for_type: type) -> EntityDescriptor:
        entity = self.registry.get(for_type)
        if entity is None:
            entity = self.registry.get(for_type, create_if_missing=True)
            self.auto_map_entity(entity, for_type)
            entity.seal()
            logger.debug("Auto-mapped and sealed %s", for_type.__name__)
        elif not entity.sealed:
            raise MappingError(
                f"Mapping for {for_type.__name__} is still being configured; call build() first.")
        return entity

    """
    Add every attribute found by the discovery strategy to `entity`.

    Additive: attributes already mapped, and attributes whose document key is
    already taken, are left alone.
    """
    def auto_map_entity(self, entity: EntityDescriptor, for_type: type):
        for handle in self.discovery.members_of(for_type):
            if entity.get_member(handle.name) is not None:
                continue

            member = self.map_member(entity, for_type, handle, handle.is_identifier)
            if entity.find_field(member.field_name) is not None:
                logger.debug("Skipping %s.%s: field '%s' already mapped",
                             for_type.__name__, handle.name, member.field_name)
                continue

            if handle.reference is not None:
                self.register_db_ref(member, self.resolve_collection_name(handle.reference))
            entity.add(member)

    """
    Build a MemberDescriptor for one attribute of `for_type`.

    Parameters:
        entity: The entity the member is built for.
        for_type: The mapped class.
        handle: A PropertyHandle or an attribute name (looked up through the discovery strategy).
        is_identifier: Map the attribute as the document identifier (`_id`).

    The member is returned unattached; the caller decides whether to add it.
    """
    def map_member(self, entity: EntityDescriptor, for_type: type,
                   handle: Union[PropertyHandle, str], is_identifier: bool) -> MemberDescriptor:
        if isinstance(handle, str):
            handle = self.discovery.handle_of(for_type, handle)

        if is_identifier:
            field_name = ID_FIELD
        else:
            field_name = handle.field_name or self._resolve_field_name(handle.name)
        if not field_name or not field_name.strip():
            raise ArgumentError(f"Empty field name for {for_type.__name__}.{handle.name}")

        member = MemberDescriptor(
            field_name=field_name,
            member_name=handle.name,
            getter=operator.attrgetter(handle.name),
            setter=_attribute_setter(handle.name) if handle.writable else None,
            data_type=handle.data_type,
            item_type=handle.item_type,
            is_unique=handle.unique,
            auto_id=is_identifier and self.supports_auto_id(handle.data_type),
        )
        logger.debug("Mapped %s.%s -> '%s'", for_type.__name__, handle.name, field_name)
        return member

    """Mark `member` as a reference to documents stored in `collection`."""
    def register_db_ref(self, member: MemberDescriptor, collection: str):
        member.reference = DbRef(
            collection=collection,
            target_type=member.item_type if member.is_list else member.data_type,
            is_list=member.is_list,
        )
        logger.debug("Member '%s' references collection '%s'", member.member_name, collection)

    def resolve_collection_name(self, for_type: type) -> str:
        return self._resolve_collection_name(for_type)

    """Field name used for `member_name` when nothing else is configured."""
    def resolve_field_name(self, member_name: str) -> str:
        return self._resolve_field_name(member_name)

    @staticmethod
    def supports_auto_id(data_type) -> bool:
        return isinstance(data_type, type) and data_type is not bool and issubclass(data_type, AUTO_ID_TYPES)
