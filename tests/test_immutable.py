'''
Final (bind-once) attributes vs. canonicalized deep constants.

'''
import pytest
from playground import (
    ConstStruct,
    Final,
    ImmutableMap,
    UnsupportedOperation,
    const,
    is_const,
)


class Point(ConstStruct):
    x: int
    y: int


class Tagged(ConstStruct):
    tags: tuple


class Log:
    level = Final()
    messages = Final()

    def __init__(self, level: str) -> None:
        self.level = level
        self.messages = []


def test_final_binds_once():
    log = Log('info')
    with pytest.raises(UnsupportedOperation) as excinfo:
        log.level = 'debug'
    assert 'can only be set once' in str(excinfo.value)
    assert log.level == 'info'

    with pytest.raises(UnsupportedOperation):
        del log.level

    # the bond is final, the bound object is not
    log.messages.append('hello')
    assert log.messages == ['hello']

    # each instance gets its own bond
    assert Log('error').level == 'error'


def test_final_unset_is_attribute_error():

    class Lazy:
        value = Final()

    with pytest.raises(AttributeError):
        Lazy().value

    assert isinstance(Lazy.value, Final)


def test_const_is_canonical():
    assert const({'a': [1, 2]}) is const({'a': [1, 2]})
    assert const([]) is const(())
    assert const('text') is const('text')
    assert is_const(const({'k': 'v'}))
    assert not is_const({'k': 'v'})

    # equal but differently typed values stay distinct constants
    assert const((1,)) is not const((True,))
    assert const((1,)) is not const((1.0,))


def test_const_freezes_deeply():
    frozen = const({'list': [1, {'nested': {2, 3}}]})
    assert isinstance(frozen, ImmutableMap)
    inner = frozen['list']
    assert inner[0] == 1
    assert isinstance(inner, tuple)
    assert inner[1]['nested'] == frozenset({2, 3})

    with pytest.raises(UnsupportedOperation):
        frozen['list'] = ()

    assert hash(frozen) == hash(const({'list': [1, {'nested': {2, 3}}]}))


def test_const_rejects_unhashable():
    with pytest.raises(UnsupportedOperation) as excinfo:
        const(bytearray(b'data'))
    assert 'Not a constant expression' in str(excinfo.value)
    assert not is_const(bytearray())


@pytest.mark.parametrize(
    'mutate, msg',
    [
        (lambda m: m.__setitem__('a', 2), 'Cannot set value'),
        (lambda m: m.update(b=1), 'Cannot set value'),
        (lambda m: m.setdefault('b'), 'Cannot set value'),
        (lambda m: m.__delitem__('a'), 'Cannot remove'),
        (lambda m: m.pop('a'), 'Cannot remove'),
        (lambda m: m.popitem(), 'Cannot remove'),
        (lambda m: m.clear(), 'Cannot clear'),
        (lambda m: setattr(m, 'x', 1), 'Cannot set value'),
    ],
)
def test_immutable_map_rejects_mutation(mutate, msg):
    imap = ImmutableMap(a=1)
    with pytest.raises(UnsupportedOperation) as excinfo:
        mutate(imap)
    assert msg in str(excinfo.value)
    assert imap == {'a': 1}

    # still a `TypeError` for code which doesn't know our types
    assert isinstance(excinfo.value, TypeError)


def test_immutable_map_hash_ignores_order():
    a = ImmutableMap({'x': 1, 'y': 2})
    b = ImmutableMap({'y': 2, 'x': 1})
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1


def test_const_struct():
    p = Point.const(1, 2)
    assert p is Point.const(x=1, y=2)
    assert Point(1, 2) is not p
    assert Point(1, 2) == p

    with pytest.raises(AttributeError):
        p.x = 3

    tagged = Tagged.const(['a', 'b'])
    assert tagged.tags == ('a', 'b')
    assert tagged is Tagged.const(('a', 'b'))

    with pytest.raises(UnsupportedOperation):
        Tagged.const(bytearray(b'ab'))
