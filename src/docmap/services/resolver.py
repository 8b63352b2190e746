"""
Property resolution: turn a property reference into a member name.

A property reference is either an attribute name ("email") or a one-argument
callable performing a single attribute access on its argument
(lambda x: x.email). Callables are evaluated against a recording proxy, so the
class itself is never instantiated. Anything else (nested access, arithmetic,
calls, constants) is rejected with IllegalExpressionError.
"""
import inspect
from typing import Optional

from docmap.data.entities import EntityDescriptor
from docmap.data.errors import IllegalExpressionError
from docmap.data.members import MemberDescriptor


"""
Stand-in for the lambda argument; remembers the chain of attribute names read from it.

Every non-dunder name is recorded, including names the recorder itself uses,
so the class exposes no public members. Read the chain with _path_of().
"""
class _AttributeRecorder:
    __slots__ = ('__path',)

    def __init__(self, path):
        object.__setattr__(self, '_AttributeRecorder__path', tuple(path))

    def __getattribute__(self, name):
        if name.startswith('__') and name.endswith('__'):
            return object.__getattribute__(self, name)
        return _AttributeRecorder(_path_of(self) + (name,))

    def __setattr__(self, name, value):
        raise TypeError('Property expressions cannot assign attributes')


def _path_of(recorder: _AttributeRecorder) -> tuple:
    return object.__getattribute__(recorder, '_AttributeRecorder__path')


def _parameter_name(expression) -> str:
    try:
        params = list(inspect.signature(expression).parameters)
    except (TypeError, ValueError):
        return 'x'
    return params[0] if params else 'x'


def _describe(expression) -> str:
    try:
        return inspect.getsource(expression).strip()
    except (OSError, TypeError):
        return getattr(expression, '__qualname__', repr(expression))


"""
Return the attribute name referenced by `expression`.

Raises:
    IllegalExpressionError: The expression is not a single, direct attribute
        access on the argument. The message names the offending path.
"""
def member_name_of(expression) -> str:
    if isinstance(expression, str):
        name = expression.strip()
        if not name.isidentifier():
            raise IllegalExpressionError(f"Illegal property name: {expression!r}")
        return name

    if not callable(expression):
        raise IllegalExpressionError(f"Illegal expression: {expression!r}")

    root = _AttributeRecorder([_parameter_name(expression)])
    try:
        result = expression(root)
    except Exception as exc:
        raise IllegalExpressionError(f"Illegal expression: {_describe(expression)}") from exc

    if not isinstance(result, _AttributeRecorder):
        raise IllegalExpressionError(f"Illegal expression: {_describe(expression)}")

    # Exactly the argument plus one attribute: x.name
    path = _path_of(result)
    if len(path) != 2:
        raise IllegalExpressionError(f"Illegal expression: {'.'.join(path)}")

    return path[1]


"""Return the member of `entity` referenced by `expression`, or None if it is not mapped yet."""
def resolve(entity: EntityDescriptor, expression) -> Optional[MemberDescriptor]:
    return entity.get_member(member_name_of(expression))
