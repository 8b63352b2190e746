"""
Entity descriptors: the ordered set of members describing one mapped class.

Member order is registration order; serializers emit document fields in that
order. Document keys are pairwise distinct within one entity.
"""
from typing import Iterator, List, Optional, Tuple

from docmap.data.errors import DuplicateMemberError, SealedEntityError
from docmap.data.members import ID_FIELD, MemberDescriptor


class EntityDescriptor:
    """
    Per-class mapping metadata.

    The descriptor is a draft until seal() is called. Drafts are mutated by
    the entity builder; sealed descriptors reject any change and are safe to
    share between readers.
    """

    def __init__(self, for_type: type):
        self.for_type = for_type
        self._members: List[MemberDescriptor] = []
        self._sealed = False

    def __repr__(self):
        state = 'sealed' if self._sealed else 'draft'
        return f'<EntityDescriptor {self.for_type.__name__} ({state}, {len(self._members)} members)>'

    def __iter__(self) -> Iterator[MemberDescriptor]:
        return iter(tuple(self._members))

    def __len__(self):
        return len(self._members)

    @property
    def members(self) -> Tuple[MemberDescriptor, ...]:
        return tuple(self._members)

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def id_member(self) -> Optional[MemberDescriptor]:
        return self.find_field(ID_FIELD)

    """Return the member built from the attribute `member_name`, or None."""
    def get_member(self, member_name: str) -> Optional[MemberDescriptor]:
        return next((m for m in self._members if m.member_name == member_name), None)

    """Return the member stored under the document key `field_name`, or None."""
    def find_field(self, field_name: str) -> Optional[MemberDescriptor]:
        return next((m for m in self._members if m.field_name == field_name), None)

    def add(self, member: MemberDescriptor) -> MemberDescriptor:
        self.ensure_draft()
        if self.find_field(member.field_name) is not None:
            raise DuplicateMemberError(
                f"Attempted to map duplicate member: {member.field_name}")
        self._members.append(member)
        return member

    def remove(self, member: MemberDescriptor):
        self.ensure_draft()
        self._members.remove(member)

    """
    Freeze the descriptor and all of its members.

    Calling seal() on an already sealed descriptor is a no-op.
    """
    def seal(self):
        for member in self._members:
            member.seal()
        self._sealed = True

    def ensure_draft(self):
        if self._sealed:
            raise SealedEntityError(
                f"Mapping for {self.for_type.__name__} is sealed and can no longer change.")
