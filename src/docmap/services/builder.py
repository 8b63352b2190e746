"""
Fluent builder used to describe how one class maps to documents.

Typical use at start-up:

    mapper.entity(Owner) \\
        .auto_map() \\
        .id(lambda x: x.id) \\
        .field(lambda x: x.name, 'full_name') \\
        .index(lambda x: x.email, unique=True) \\
        .db_ref(lambda x: x.snakes, 'snakes') \\
        .build()

Property references are lambdas (`lambda x: x.email`) or attribute names
(`'email'`). Every call validates immediately and returns the builder; a
property that is not mapped yet is included on the fly. build() seals the
entity, after which any further call raises SealedEntityError.
"""
import logging

from docmap.data.entities import EntityDescriptor
from docmap.data.errors import ArgumentError, DuplicateMemberError
from docmap.data.members import ID_FIELD, MemberDescriptor
from docmap.services import resolver

logger = logging.getLogger(__name__)


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


class EntityBuilder:

    def __init__(self, mapper, for_type: type):
        self._mapper = mapper
        self._type = for_type
        self._entity = mapper.get_entity_mapper(for_type, True)

    @property
    def entity(self) -> EntityDescriptor:
        return self._entity

    """Map every attribute the mapper's discovery strategy finds (additive)."""
    def auto_map(self):
        self._entity.ensure_draft()
        self._mapper.auto_map_entity(self._entity, self._type)
        return self

    """
    Include a property in the mapping.

    Raises:
        DuplicateMemberError: The property, or another one with the same
            document key, is already mapped.
    """
    def include(self, prop):
        self._entity.ensure_draft()
        name = resolver.member_name_of(prop)

        if self._entity.get_member(name) is not None:
            raise DuplicateMemberError(f"Attempted to map duplicate member: {name}")

        member = self._mapper.map_member(self._entity, self._type, name, False)
        self._entity.add(member)
        return self

    """Leave a property out of the document."""
    def ignore(self, prop):
        return self._get_property(prop, self._entity.remove)

    """Store a property under a custom document key."""
    def field(self, prop, name: str):
        if _is_blank(name):
            raise ArgumentError(f"field name must be a non-empty string, got {name!r}")

        def rename(member: MemberDescriptor):
            self._claim_field(member, name)
            member.field_name = name

        return self._get_property(prop, rename)

    """
    Use a property as the document identifier (`_id`).

    A member already holding `_id` is moved back to its regular document key
    (the key its class declares, else the mapper's naming convention) and
    loses auto_id. DuplicateMemberError is raised when that key is taken or
    is `_id` itself.
    """
    def id(self, prop, auto_id: bool = True):
        def make_id(member: MemberDescriptor):
            current = self._entity.find_field(ID_FIELD)
            if current is not None and current is not member:
                demoted = self._regular_field_name(current)
                self._claim_field(current, demoted)
                current.field_name = demoted
                current.auto_id = False
                logger.debug("%s: '%s' is no longer the identifier",
                             self._type.__name__, current.member_name)
            member.field_name = ID_FIELD
            member.auto_id = auto_id

        return self._get_property(prop, make_id)

    """
    Request an index. Three forms:

        index(lambda x: x.email, unique=True)       index on a property
        index('name_upper', getter, unique=False)   index on a computed (virtual) value
        index('email', True)                        index on an already mapped document key
    """
    def index(self, target, getter=None, unique: bool = False):
        if isinstance(getter, bool):
            getter, unique = None, getter

        if not isinstance(target, str):
            return self._get_property(target, lambda member: setattr(member, 'is_unique', unique))

        if getter is not None:
            return self._virtual_index(target, getter, unique)

        return self._field_index(target, unique)

    """
    Mark a property as a reference to documents in another collection.

    Without `collection`, the collection name is derived from the property's
    declared type (its element type for lists).
    """
    def db_ref(self, prop, collection: str = None):
        if collection is not None and _is_blank(collection):
            raise ArgumentError("collection must not be empty")

        def register(member: MemberDescriptor):
            target = collection
            if target is None:
                target_type = member.item_type if member.is_list else member.data_type
                target = self._mapper.resolve_collection_name(target_type)
            self._mapper.register_db_ref(member, target)

        return self._get_property(prop, register)

    """Seal the entity and return it. Calling build() twice returns the same descriptor."""
    def build(self) -> EntityDescriptor:
        if not self._entity.sealed:
            self._entity.seal()
            logger.debug("Sealed mapping for %s (%d members)", self._type.__name__, len(self._entity))
        return self._entity

    def _virtual_index(self, index_name: str, getter, unique: bool):
        if _is_blank(index_name):
            raise ArgumentError("index name must not be empty")
        if not callable(getter):
            raise ArgumentError(f"getter for index '{index_name}' must be callable")

        self._entity.add(MemberDescriptor(
            field_name=index_name,
            member_name=index_name,
            getter=getter,
            setter=None,
            data_type=object,
            is_unique=unique,
        ))
        return self

    def _field_index(self, field_name: str, unique: bool):
        if _is_blank(field_name):
            raise ArgumentError("field name must not be empty")

        member = self._entity.find_field(field_name)
        if member is None:
            raise ArgumentError(f"field '{field_name}' not found in {self._type.__name__} mapping")

        member.is_unique = unique
        return self

    def _regular_field_name(self, member: MemberDescriptor) -> str:
        # mongoengine declares db_field='_id' for its implicit id; skip it.
        declared = self._mapper.discovery.handle_of(self._type, member.member_name).field_name
        if declared and declared != ID_FIELD:
            return declared

        field_name = self._mapper.resolve_field_name(member.member_name)
        if field_name == ID_FIELD:
            raise DuplicateMemberError(
                f"Member '{member.member_name}' can only be stored as '{ID_FIELD}'; "
                f"ignore it before choosing another identifier")
        return field_name

    def _claim_field(self, member: MemberDescriptor, field_name: str):
        owner = self._entity.find_field(field_name)
        if owner is not None and owner is not member:
            raise DuplicateMemberError(
                f"Field '{field_name}' is already mapped to member '{owner.member_name}'")

    """Resolve `prop` (including it when not mapped yet) and apply `action` to its member."""
    def _get_property(self, prop, action):
        if prop is None:
            raise ArgumentError("property must not be None")
        self._entity.ensure_draft()

        member = resolver.resolve(self._entity, prop)
        if member is None:
            self.include(prop)
            member = resolver.resolve(self._entity, prop)

        action(member)
        return self
