"""
Tests for the fluent EntityBuilder.

These tests cover:
- include / ignore / field / id / index / db_ref contracts
- Error conditions (duplicates, blank names, illegal expressions)
- Sealing through build()
- The end-to-end chain on a two-property class
"""

import pytest

from docmap.data.errors import (
    ArgumentError,
    DuplicateMemberError,
    IllegalExpressionError,
    SealedEntityError,
)
from docmap.services.builder import EntityBuilder
from docmap.services import resolver

from sample_models import Cage, Customer, Legacy, Order, Owner, Person, Product, Snake


# =============================================================================
# Construction and chaining
# =============================================================================

class TestBuilderBasics:

    def test_binds_to_registered_entity(self, mapper):
        builder = mapper.entity(Person)

        assert isinstance(builder, EntityBuilder)
        assert builder.entity is mapper.get_entity_mapper(Person)

    def test_two_builders_share_the_entity(self, mapper):
        mapper.entity(Person).include(lambda x: x.name)
        mapper.entity(Person).include(lambda x: x.id)

        assert len(mapper.get_entity_mapper(Person)) == 2

    def test_every_operation_returns_builder(self, mapper):
        builder = mapper.entity(Product)

        assert builder.auto_map() is builder
        assert builder.field(lambda x: x.title, 'name') is builder
        assert builder.id(lambda x: x.code) is builder
        assert builder.index(lambda x: x.title) is builder
        assert builder.index('price', True) is builder
        assert builder.index('title_upper', lambda p: p.title.upper()) is builder
        assert builder.ignore(lambda x: x.labels) is builder


# =============================================================================
# include / ignore
# =============================================================================

class TestIncludeIgnore:

    def test_include_appends_non_identifier(self, mapper):
        entity = mapper.entity(Person).include(lambda x: x.id).entity

        member = entity.get_member('id')
        assert member.field_name == 'id'
        assert member.auto_id is False

    def test_include_twice_fails(self, mapper):
        builder = mapper.entity(Person).include(lambda x: x.name)

        with pytest.raises(DuplicateMemberError):
            builder.include(lambda x: x.name)

    def test_include_after_auto_map_fails(self, mapper):
        builder = mapper.entity(Person).auto_map()

        with pytest.raises(DuplicateMemberError):
            builder.include('name')

    def test_include_colliding_field_name_fails(self, mapper):
        builder = mapper.entity(Person).include(lambda x: x.id).field(lambda x: x.id, 'name')

        with pytest.raises(DuplicateMemberError):
            builder.include(lambda x: x.name)

    def test_include_illegal_expression(self, mapper):
        with pytest.raises(IllegalExpressionError):
            mapper.entity(Customer).include(lambda x: x.address.city)

    def test_ignore_removes_member(self, mapper):
        builder = mapper.entity(Person).auto_map().ignore(lambda x: x.name)

        assert resolver.resolve(builder.entity, lambda x: x.name) is None
        assert [m.member_name for m in builder.entity] == ['id']

    def test_ignore_unmapped_property(self, mapper):
        """Ignoring a property never mapped leaves the entity empty."""
        builder = mapper.entity(Person).ignore(lambda x: x.name)

        assert len(builder.entity) == 0

    def test_property_none_rejected(self, mapper):
        with pytest.raises(ArgumentError):
            mapper.entity(Person).ignore(None)


# =============================================================================
# field / id
# =============================================================================

class TestFieldAndId:

    def test_field_renames_only_the_key(self, mapper):
        builder = mapper.entity(Person).auto_map()
        member = builder.entity.get_member('name')
        getter, setter = member.getter, member.setter

        builder.field(lambda x: x.name, 'x')

        assert member.field_name == 'x'
        assert member.member_name == 'name'
        assert member.getter is getter
        assert member.setter is setter

    def test_field_auto_includes(self, mapper):
        entity = mapper.entity(Person).field('name', 'full_name').entity

        assert [m.field_name for m in entity] == ['full_name']

    @pytest.mark.parametrize('name', ['', '   ', None])
    def test_field_blank_name(self, mapper, name):
        with pytest.raises(ArgumentError):
            mapper.entity(Person).field(lambda x: x.name, name)

    def test_field_onto_taken_name(self, mapper):
        builder = mapper.entity(Person).auto_map()

        with pytest.raises(DuplicateMemberError):
            builder.field(lambda x: x.name, '_id')

    def test_id_defaults(self, mapper):
        member = mapper.entity(Product).id(lambda x: x.code).entity.get_member('code')

        assert member.field_name == '_id'
        assert member.auto_id is True

    def test_id_without_auto_id(self, mapper):
        member = mapper.entity(Product).id(lambda x: x.code, auto_id=False).entity.get_member('code')

        assert member.auto_id is False

    def test_id_twice_on_same_member(self, mapper):
        entity = mapper.entity(Person).id(lambda x: x.id).id(lambda x: x.id, False).entity

        assert [(m.field_name, m.auto_id) for m in entity] == [('_id', False)]

    def test_id_moves_identifier(self, mapper):
        """The previous _id holder is demoted to its regular key."""
        entity = mapper.entity(Person).auto_map().id(lambda x: x.name).entity

        assert entity.get_member('id').field_name == 'id'
        assert entity.get_member('id').auto_id is False
        assert entity.id_member is entity.get_member('name')
        assert len([m for m in entity if m.is_id]) == 1

    def test_id_move_blocked_by_taken_key(self, mapper):
        builder = mapper.entity(Person).auto_map().field(lambda x: x.name, 'id')

        with pytest.raises(DuplicateMemberError):
            builder.id(lambda x: x.name)

    def test_id_move_from_attribute_named_id_fails(self, plain_mapper):
        """An attribute literally named _id has no other key to fall back to."""
        builder = plain_mapper.entity(Legacy).auto_map()

        with pytest.raises(DuplicateMemberError):
            builder.id(lambda x: x.key)

        assert [m.field_name for m in builder.entity] == ['_id', 'key']

    def test_id_move_from_virtual_index_named_id_fails(self, mapper):
        builder = mapper.entity(Person).index('_id', lambda p: p.id)

        with pytest.raises(DuplicateMemberError):
            builder.id(lambda x: x.name)

        assert len([m for m in builder.entity if m.field_name == '_id']) == 1

    def test_id_move_restores_declared_db_field(self, mapper):
        entity = mapper.entity(Owner) \
            .auto_map() \
            .id(lambda x: x.email) \
            .id(lambda x: x.name) \
            .entity

        assert entity.get_member('email').field_name == 'mail'
        assert entity.get_member('id').field_name == 'id'
        assert entity.get_member('name').field_name == '_id'
        assert len([m for m in entity if m.is_id]) == 1

    @pytest.mark.parametrize('name', [5, b'name', ['name']])
    def test_field_name_must_be_str(self, mapper, name):
        with pytest.raises(ArgumentError):
            mapper.entity(Person).field(lambda x: x.name, name)


# =============================================================================
# index
# =============================================================================

class TestIndex:

    def test_index_property(self, mapper):
        entity = mapper.entity(Person).index(lambda x: x.name, True).entity

        assert entity.get_member('name').is_unique is True

    def test_index_property_default_not_unique(self, mapper):
        entity = mapper.entity(Person).index(lambda x: x.name, True).index(lambda x: x.name).entity

        assert entity.get_member('name').is_unique is False

    def test_virtual_index(self, mapper):
        entity = mapper.entity(Person).index('name_upper', lambda p: p.name.upper(), True).entity

        member = entity.find_field('name_upper')
        assert member.member_name == 'name_upper'
        assert member.setter is None
        assert member.is_virtual is True
        assert member.is_unique is True
        assert member.getter(Person(name='ada')) == 'ADA'

    def test_virtual_index_blank_name(self, mapper):
        with pytest.raises(ArgumentError):
            mapper.entity(Person).index('', lambda p: p.name, False)

    def test_virtual_index_blank_name_with_bad_getter(self, mapper):
        with pytest.raises(ArgumentError):
            mapper.entity(Person).index('', 'not callable', False)

    def test_virtual_index_name_taken(self, mapper):
        builder = mapper.entity(Person).auto_map()

        with pytest.raises(DuplicateMemberError):
            builder.index('name', lambda p: p.name)

    def test_index_existing_field(self, mapper):
        entity = mapper.entity(Person).auto_map().field(lambda x: x.name, 'n').index('n', True).entity

        assert entity.find_field('n').is_unique is True

    def test_index_missing_field(self, mapper):
        with pytest.raises(ArgumentError):
            mapper.entity(Person).auto_map().index('missing', True)

    def test_index_blank_field(self, mapper):
        with pytest.raises(ArgumentError):
            mapper.entity(Person).auto_map().index('  ', unique=True)


# =============================================================================
# db_ref
# =============================================================================

class TestDbRef:

    def test_explicit_collection(self, mapper):
        member = mapper.entity(Order).db_ref(lambda x: x.customer, 'custom').entity.get_member('customer')

        assert member.reference.collection == 'custom'

    def test_collection_from_declared_type(self, mapper):
        member = mapper.entity(Order).db_ref(lambda x: x.customer).entity.get_member('customer')

        assert member.reference.collection == 'customers'
        assert member.reference.target_type is Customer

    def test_collection_from_list_item_type(self, mapper):
        member = mapper.entity(Order).db_ref(lambda x: x.lines).entity.get_member('lines')

        assert member.reference.collection == 'Person'
        assert member.reference.is_list is True

    def test_mongoengine_reference_override(self, mapper):
        member = mapper.entity(Cage).auto_map().db_ref(lambda x: x.owner, 'people').entity.get_member('owner')

        assert member.reference.collection == 'people'
        assert member.reference.target_type is Owner

    def test_blank_collection(self, mapper):
        with pytest.raises(ArgumentError):
            mapper.entity(Order).db_ref(lambda x: x.customer, ' ')

    def test_collection_must_be_str(self, mapper):
        with pytest.raises(ArgumentError):
            mapper.entity(Order).db_ref(lambda x: x.customer, 5)


# =============================================================================
# build
# =============================================================================

class TestBuild:

    def test_build_seals(self, mapper):
        builder = mapper.entity(Person).auto_map()
        entity = builder.build()

        assert entity.sealed is True
        assert builder.build() is entity

    @pytest.mark.parametrize('operation', [
        lambda b: b.auto_map(),
        lambda b: b.include(lambda x: x.name),
        lambda b: b.ignore(lambda x: x.name),
        lambda b: b.field(lambda x: x.name, 'n'),
        lambda b: b.id(lambda x: x.name),
        lambda b: b.index(lambda x: x.name, True),
        lambda b: b.index('upper', lambda p: p.name.upper()),
        lambda b: b.index('name', True),
        lambda b: b.db_ref(lambda x: x.name, 'names'),
    ])
    def test_operations_after_build_fail(self, mapper, operation):
        builder = mapper.entity(Person)
        builder.include(lambda x: x.name).build()

        with pytest.raises(SealedEntityError):
            operation(builder)

    def test_new_builder_on_sealed_entity_fails(self, mapper):
        mapper.entity(Person).auto_map().build()

        with pytest.raises(SealedEntityError):
            mapper.entity(Person).field(lambda x: x.name, 'n')


# =============================================================================
# End-to-end
# =============================================================================

class TestEndToEnd:

    def test_id_name_chain(self, plain_mapper):
        entity = plain_mapper.entity(Person) \
            .auto_map() \
            .id(lambda x: x.id) \
            .field(lambda x: x.name, 'full_name') \
            .index(lambda x: x.name, True) \
            .build()

        assert [(m.field_name, m.member_name) for m in entity] == [('_id', 'id'), ('full_name', 'name')]
        assert entity.members[0].auto_id is True
        assert entity.members[0].is_unique is False
        assert entity.members[1].is_unique is True
        assert entity.members[1].auto_id is False

    def test_mongoengine_chain(self, mapper):
        entity = mapper.entity(Owner) \
            .auto_map() \
            .ignore(lambda x: x.cage_ids) \
            .field(lambda x: x.email, 'email') \
            .index('email', True) \
            .build()

        assert [m.field_name for m in entity] == ['_id', 'registered_date', 'name', 'email', 'snakes']
        assert entity.get_member('snakes').reference.target_type is Snake
        assert entity.find_field('email').is_unique is True
