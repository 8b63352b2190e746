import docmap.infrastructure.state as state # Process-wide holder for the active mapper.
from docmap.services.mapper import DocumentMapper

"""
Create the process-wide DocumentMapper and register it in infrastructure.state.

Call this once during application start-up, then describe mappings through
state.get_mapper().entity(SomeClass) before the first document is read or
written.

Parameters (all optional, passed through to DocumentMapper):
    discovery: DiscoveryStrategy used by auto_map() (default: MongoEngineDiscovery).
    resolve_field_name: Callable turning an attribute name into a document key.
    resolve_collection_name: Callable turning a class into a collection name.

Returns:
    The new active mapper. Calling global_init() again replaces it.
"""
def global_init(**options) -> DocumentMapper:
    state.active_mapper = DocumentMapper(**options)
    return state.active_mapper
