'''
Bond vs. object immutability.

- a `Final` attribute is an immutable *bond* (it can only be set
  once) to a possibly mutable object,
- `const()` builds an immutable *object*; equal constants are the
  same (identical) object.

'''
import random
from typing import ClassVar

from playground import (
    ConstStruct,
    Final,
    UnsupportedOperation,
    const,
)


class Log:
    '''
    A log file: its path and mode bonds are final but the mode
    mapping itself stays mutable.

    '''
    path = Final()
    mode = Final()

    def __init__(self, path: str) -> None:
        self.path = path
        self.mode = {'read': False, 'write': True}

    def set_read(self, mode: bool = True) -> None:
        self.mode['read'] = mode

    def set_write(self, mode: bool = True) -> None:
        self.mode['write'] = mode


class Metadata(ConstStruct):
    TAG: ClassVar[str] = 'metadata'
    on_error: str

    def __str__(self) -> str:
        return self.on_error


def main():
    secure = random.SystemRandom()

    # plain bonds
    a: dict[int, int] = {}
    b = a
    assert b is a

    # a const object can be bound to a (re-bindable) name
    map_to_const_object = const({})
    try:
        map_to_const_object['a'] = 1
    except UnsupportedOperation as err:
        print(f'You cannot do that! Unsupported operation: {err}')

    map_to_const_object = {'a': 10, 'b': 20}

    # immutable bond *and* object
    v1 = const({'a': 1, 'b': 2})
    try:
        v1['d'] = 3
    except UnsupportedOperation as err:
        print(f'You cannot do that! Unsupported operation: {err}')

    # equal constants are canonicalized to a single object
    v1 = const({})
    v2 = const({})
    print(f'v1 is v2 ? {v1 is v2}')
    print(f'const({{}}) is v1 ? {const({}) is v1}')
    assert v1 is v2

    # "const constructors"
    meta1 = Metadata.const('logoutAndClose')
    meta2 = Metadata('logoutAndClose')
    meta3 = Metadata.const('logoutAndClose')
    print(f'meta1 is meta2 ? {meta1 is meta2}')
    print(f'meta1 is meta3 ? {meta1 is meta3}')
    assert meta1 is not meta2
    assert meta1 is meta3

    # even a "non-const" instance is immutable
    try:
        meta2.on_error = 'other'
    except AttributeError as err:
        print(f'You cannot do that! {err}')

    # arguments which are not constant expressions
    try:
        Metadata.const(bytearray(b'logoutAndClose'))
    except UnsupportedOperation as err:
        print(f'Not a const: {err}')

    print(Metadata(f'logoutAndClose{secure.randrange(100)}'))
    print(f'The TAG class constant is {Metadata.TAG!r}')

    # a final bond is set at runtime
    log = Log('/path/to/log')
    print(
        f'The value of the runtime immutable bond <path> is {log.path}.'
    )
    try:
        log.path = '/some/other/path'
    except UnsupportedOperation as err:
        print(f'You cannot do that! {err}')

    # but the bound object stays mutable
    log.set_read()
    log.mode['append'] = False
    print(f'mode = {log.mode}')
    assert log.mode == {'read': True, 'write': True, 'append': False}

    # final + const
    log2 = Log(path='/path/to/log')
    assert log2.path == log.path
    frozen = const({'a': 1})
    try:
        frozen['a'] = 2
    except UnsupportedOperation as err:
        print(f'You cannot do that! Unsupported operation: {err}')


if __name__ == '__main__':
    main()
