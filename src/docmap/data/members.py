"""
Member descriptors: how one attribute of a class is stored in a document.

A MemberDescriptor is created by discovery or by an explicit include, mutated
by the entity builder while the mapping is a draft, and frozen by seal() once
the entity is built. After that it is a read-only snapshot shared by every
consumer of the mapping.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from docmap.data.errors import SealedEntityError

# Document key reserved for the identifier of a document.
ID_FIELD = '_id'

"""
Target of a cross-collection reference.

Fields:
    collection: Name of the collection holding the referenced documents.
    target_type: Class of the referenced documents (used to build stubs on load).
    is_list: True when the member holds a list of references.
"""
@dataclass(frozen=True)
class DbRef:
    collection: str
    target_type: Optional[type] = None
    is_list: bool = False


"""
Mapping record for a single document field.

Fields:
    field_name: Document key (must be unique within the owning entity).
    member_name: Name of the attribute this member was built from.
    getter: Reads the value from an instance.
    setter: Writes a value back onto an instance; None for virtual or read-only members.
    data_type: Declared value type (object when nothing was declared).
    item_type: Element type when the member is list-like, otherwise None.
    is_unique: Whether a unique index is requested for the field.
    auto_id: Whether a missing identifier value is generated by the store.
    reference: DbRef when the field refers to documents in another collection.
"""
@dataclass(eq=False)
class MemberDescriptor:
    field_name: str
    member_name: str
    getter: Callable[[Any], Any]
    setter: Optional[Callable[[Any, Any], None]] = None
    data_type: type = object
    item_type: Optional[type] = None
    is_unique: bool = False
    auto_id: bool = False
    reference: Optional[DbRef] = None
    _sealed: bool = field(default=False, init=False, repr=False)

    def __setattr__(self, name, value):
        # _sealed is absent while __init__ is still running.
        if self.__dict__.get('_sealed', False):
            raise SealedEntityError(
                f"Member '{self.member_name}' is sealed; cannot set '{name}'.")
        object.__setattr__(self, name, value)

    @property
    def is_id(self) -> bool:
        return self.field_name == ID_FIELD

    @property
    def is_virtual(self) -> bool:
        return self.setter is None

    @property
    def is_list(self) -> bool:
        return self.item_type is not None

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self):
        object.__setattr__(self, '_sealed', True)
