"""
Registry of entity descriptors, one per mapped class.

Descriptors are created lazily on first request and live for the lifetime of
the registry; nothing is ever unregistered.
"""
from typing import Dict, Iterator, Optional

from docmap.data.entities import EntityDescriptor


class EntityRegistry:

    def __init__(self):
        self._entities: Dict[type, EntityDescriptor] = {}

    def __contains__(self, for_type):
        return for_type in self._entities

    def __iter__(self) -> Iterator[type]:
        return iter(list(self._entities))

    def __len__(self):
        return len(self._entities)

    """
    Return the descriptor registered for `for_type`.

    Parameters:
        for_type: The mapped class.
        create_if_missing: When True, an empty draft descriptor is created and
            registered if none exists yet.

    Returns:
        The EntityDescriptor, or None when missing and not created.
    """
    def get(self, for_type: type, create_if_missing: bool = False) -> Optional[EntityDescriptor]:
        if not isinstance(for_type, type):
            raise TypeError(f'Expected a class, got {for_type!r}')

        entity = self._entities.get(for_type)
        if entity is None and create_if_missing:
            entity = EntityDescriptor(for_type)
            self._entities[for_type] = entity

        return entity
