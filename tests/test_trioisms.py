'''
Our exception-group collapsing around `trio`'s strict nurseries.

'''
import pytest
import trio
from playground.trionics import (
    collapse_eg,
    collapse_exception_group,
)


async def fail(exc: BaseException):
    # no checkpoint such that sibling tasks can fail together
    raise exc


def test_lone_error_is_collapsed():

    async def main():
        async with (
            collapse_eg(),
            trio.open_nursery() as tn,
        ):
            tn.start_soon(fail, NameError('doggy'))

    with pytest.raises(NameError) as excinfo:
        trio.run(main)

    # no "during handling of" the group noise
    assert excinfo.value.__suppress_context__


def test_multiple_errors_stay_grouped():

    async def main():
        async with (
            collapse_eg(),
            trio.open_nursery() as tn,
        ):
            tn.start_soon(fail, NameError('doggy'))
            tn.start_soon(fail, KeyError('kitty'))

    with pytest.raises(BaseExceptionGroup) as excinfo:
        trio.run(main)

    assert {
        type(exc) for exc in excinfo.value.exceptions
    } == {NameError, KeyError}


def test_nested_groups():
    inner = ExceptionGroup('inner', [ValueError('lone')])
    assert type(collapse_exception_group(inner)) is ValueError
    assert type(collapse_exception_group(
        ExceptionGroup('outer', [inner])
    )) is ValueError

    # only the nested single-member group is collapsed
    mixed = ExceptionGroup('outer', [inner, KeyError('k')])
    collapsed = collapse_exception_group(mixed)
    assert collapsed is not mixed
    assert [type(exc) for exc in collapsed.exceptions] == [
        ValueError,
        KeyError,
    ]

    flat = ExceptionGroup('flat', [ValueError(), KeyError()])
    assert collapse_exception_group(flat) is flat


def test_cause_is_kept():

    async def chained():
        try:
            raise KeyError('root cause')
        except KeyError as err:
            raise ValueError('wrapper') from err

    async def main():
        async with (
            collapse_eg(),
            trio.open_nursery() as tn,
        ):
            tn.start_soon(chained)

    with pytest.raises(ValueError) as excinfo:
        trio.run(main)

    assert isinstance(excinfo.value.__cause__, KeyError)
