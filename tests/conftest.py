"""
Top level of the testing suites!

"""
from __future__ import annotations
import pytest
import playground
from playground._testing import (
    examples_dir as examples_dir,
    playground_test as playground_test,
)

pytest_plugins = ['pytester']


def pytest_addoption(
    parser: pytest.Parser,
):
    parser.addoption(
        "--ll",
        action="store",
        dest='loglevel',
        default='ERROR', help="logging level to set when testing"
    )


@pytest.fixture(scope='session', autouse=True)
def loglevel(request):
    orig = playground.log._default_loglevel
    level = playground.log._default_loglevel = request.config.option.loglevel
    playground.log.get_console_log(level)
    yield level
    playground.log._default_loglevel = orig


@pytest.fixture(autouse=True)
def reset_runtime_vars():
    '''
    Each test opens (and tears down) its own root runtime; make sure
    no per-process runtime state leaks between tests.

    '''
    from playground import _state
    orig: dict = dict(_state._runtime_vars)
    yield
    _state._runtime_vars.clear()
    _state._runtime_vars.update(orig)
