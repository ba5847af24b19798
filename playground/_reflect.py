# playground: a structured concurrent feature tour on `trio`.
# Copyright 2018-eternity Tyler Goodlet.

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.


'''
Reflection over annotations ("metadata") attached to classes,
functions, methods, fields and module level variables.

Metadata is attached with,

- the `@annotate(meta, ...)` decorator on classes, functions and
  methods,
- `typing.Annotated[T, meta, ...]` on class fields and module
  variables.

and read back through "mirrors" returned by `reflect()`.

'''
from __future__ import annotations
from dataclasses import (
    dataclass,
    field,
    replace,
)
import inspect
from types import ModuleType
from typing import (
    Annotated,
    Any,
    Callable,
    get_args,
    get_origin,
    get_type_hints,
)


def annotate(*metadata: Any) -> Callable:
    '''
    Attach `metadata` objects to the decorated class or function;
    stacked decorators keep source order.

    '''
    def decorator(obj: Any) -> Any:
        obj.__metadata__ = (
            tuple(metadata)
            +
            _own_metadata(obj)
        )
        return obj

    return decorator


def _own_metadata(obj: Any) -> tuple:
    if isinstance(obj, type):
        # never inherit a parent class's metadata
        return vars(obj).get('__metadata__', ())

    return getattr(obj, '__metadata__', ())


def _hint_metadata(hint: Any) -> tuple:
    if get_origin(hint) is Annotated:
        return hint.__metadata__

    return ()


def _hint_type(hint: Any) -> Any:
    if get_origin(hint) is Annotated:
        return get_args(hint)[0]

    return hint


@dataclass(frozen=True)
class InstanceMirror:
    '''
    A mirror reflecting some object (the "reflectee").

    '''
    reflectee: Any

    @property
    def type(self) -> ClassMirror:
        return reflect_class(type(self.reflectee))

    def invoke(self, name: str, *args, **kwargs) -> InstanceMirror:
        return reflect(
            getattr(self.reflectee, name)(*args, **kwargs)
        )

    def get_field(self, name: str) -> InstanceMirror:
        return reflect(getattr(self.reflectee, name))

    def set_field(self, name: str, value: Any) -> None:
        setattr(self.reflectee, name, value)


@dataclass(frozen=True)
class DeclarationMirror:
    '''
    A named declaration: a method, property, field or variable.

    '''
    name: str
    kind: str
    metadata: list[InstanceMirror] = field(default_factory=list)
    type: Any = None

    @property
    def simple_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class FunctionMirror(DeclarationMirror):
    '''
    A function or method declaration.

    '''
    reflectee: Callable|None = None
    parameters: list[inspect.Parameter] = field(default_factory=list)
    return_type: Any = None


@dataclass(frozen=True)
class ClassMirror(DeclarationMirror):
    '''
    A class declaration: its own metadata and the declarations (in
    definition order) made in its body.

    '''
    reflected_type: type|None = None
    declarations: dict[str, DeclarationMirror] = field(default_factory=dict)


@dataclass(frozen=True)
class ModuleMirror(DeclarationMirror):
    reflectee: ModuleType|None = None
    declarations: dict[str, DeclarationMirror] = field(default_factory=dict)


def _mirrors(metadata: tuple) -> list[InstanceMirror]:
    return [InstanceMirror(meta) for meta in metadata]


def reflect_function(
    func: Callable,
    kind: str = 'function',
) -> FunctionMirror:
    try:
        sig = inspect.signature(func)
        params: list[inspect.Parameter] = list(sig.parameters.values())
        ret: Any = sig.return_annotation
    except (TypeError, ValueError):
        # builtins without introspectable signatures
        params, ret = [], inspect.Signature.empty

    return FunctionMirror(
        name=getattr(func, '__name__', repr(func)),
        kind=kind,
        metadata=_mirrors(_own_metadata(func)),
        reflectee=func,
        parameters=params,
        return_type=ret,
    )


def _resolved_hints(obj: Any) -> dict[str, Any]:
    try:
        return get_type_hints(obj, include_extras=True)
    except (NameError, TypeError):
        # unresolvable forward refs; fall back to the raw values
        return inspect.get_annotations(obj)


def _field_mirrors(obj: Any, kind: str) -> dict[str, DeclarationMirror]:
    own: dict[str, Any] = inspect.get_annotations(obj)
    hints: dict[str, Any] = _resolved_hints(obj)
    decls: dict[str, DeclarationMirror] = {}
    for name in own:
        hint: Any = hints.get(name, own[name])
        decls[name] = DeclarationMirror(
            name=name,
            kind=kind,
            metadata=_mirrors(_hint_metadata(hint)),
            type=_hint_type(hint),
        )

    return decls


def _member_mirror(name: str, member: Any) -> DeclarationMirror|None:
    match member:
        case staticmethod() | classmethod():
            func_mirror: FunctionMirror = reflect_function(
                member.__func__,
                kind='method',
            )
            if member.__dict__ is getattr(member.__func__, '__dict__', None):
                # wrapper shares the function's `__dict__`
                return func_mirror

            # `@annotate()` applied on top of the wrapper
            return replace(
                func_mirror,
                metadata=(
                    _mirrors(_own_metadata(member))
                    +
                    func_mirror.metadata
                ),
            )

        case property():
            return DeclarationMirror(
                name=name,
                kind='property',
                metadata=_mirrors(_own_metadata(member.fget)),
            )

        case type():
            return reflect_class(member)

    if inspect.isfunction(member):
        return reflect_function(member, kind='method')

    return None


def reflect_class(cls: type) -> ClassMirror:
    '''
    Build a mirror of `cls`: its own `@annotate()` metadata plus
    the methods, properties and (annotated) fields declared in its
    body; inherited declarations are not included.

    '''
    decls: dict[str, DeclarationMirror] = _field_mirrors(cls, 'field')
    for name, member in vars(cls).items():
        if (
            name.startswith('__')
            and
            name != '__call__'
        ):
            continue

        if mirror := _member_mirror(name, member):
            decls[name] = mirror

    return ClassMirror(
        name=cls.__name__,
        kind='class',
        metadata=_mirrors(_own_metadata(cls)),
        type=cls,
        reflected_type=cls,
        declarations=decls,
    )


def reflect_module(mod: ModuleType) -> ModuleMirror:
    '''
    Mirror the module level (annotated) variables, functions and
    classes defined in `mod`.

    '''
    decls: dict[str, DeclarationMirror] = _field_mirrors(mod, 'variable')
    for name, member in vars(mod).items():
        if (
            name.startswith('_')
            or
            getattr(member, '__module__', None) != mod.__name__
        ):
            continue

        if inspect.isfunction(member):
            decls[name] = reflect_function(member)

        elif isinstance(member, type):
            decls[name] = reflect_class(member)

    return ModuleMirror(
        name=mod.__name__,
        kind='module',
        reflectee=mod,
        declarations=decls,
    )


def reflect(obj: Any) -> InstanceMirror|FunctionMirror|ModuleMirror:
    '''
    Reflect on `obj`: functions (and methods) give
    a `FunctionMirror`, modules a `ModuleMirror`, anything else an
    `InstanceMirror` whose `.type` mirrors its class.

    '''
    if isinstance(obj, ModuleType):
        return reflect_module(obj)

    if inspect.isroutine(obj):
        return reflect_function(obj)

    return InstanceMirror(obj)
