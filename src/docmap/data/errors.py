"""
Exceptions raised while describing how a class maps to documents.

All of them are configuration errors: they surface immediately from the call
that caused them so the mapping declaration can be fixed.
"""


class MappingError(Exception):
    """Base class for every mapping configuration error."""


"""Raised when a property reference is not a single, direct attribute access (e.g. `lambda x: x.a.b`)."""
class IllegalExpressionError(MappingError):
    pass


"""Raised when two members of one entity would share the same document key."""
class DuplicateMemberError(MappingError):
    pass


"""Raised for blank names, missing fields and other invalid arguments."""
class ArgumentError(MappingError, ValueError):
    pass


"""Raised when a sealed (already built) entity or member is modified."""
class SealedEntityError(MappingError):
    pass
