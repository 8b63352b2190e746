"""
docmap - describe how Python classes map to documents of a schemaless store.

    from docmap import DocumentMapper

    mapper = DocumentMapper()
    mapper.entity(Owner).auto_map().index(lambda x: x.email, unique=True).build()
"""
from docmap.data.entities import EntityDescriptor
from docmap.data.errors import (
    ArgumentError,
    DuplicateMemberError,
    IllegalExpressionError,
    MappingError,
    SealedEntityError,
)
from docmap.data.members import ID_FIELD, DbRef, MemberDescriptor
from docmap.services.builder import EntityBuilder
from docmap.services.discovery import (
    AttributeDiscovery,
    DiscoveryStrategy,
    MongoEngineDiscovery,
    PropertyHandle,
)
from docmap.services.mapper import DocumentMapper
from docmap.services.registry import EntityRegistry

__all__ = [
    "ArgumentError",
    "AttributeDiscovery",
    "DbRef",
    "DiscoveryStrategy",
    "DocumentMapper",
    "DuplicateMemberError",
    "EntityBuilder",
    "EntityDescriptor",
    "EntityRegistry",
    "ID_FIELD",
    "IllegalExpressionError",
    "MappingError",
    "MemberDescriptor",
    "MongoEngineDiscovery",
    "PropertyHandle",
    "SealedEntityError",
]
