'''
Let's make sure them demos work yah?

'''
from contextlib import contextmanager
import subprocess
import sys

import pytest
from playground._testing import (
    examples_dir,
)


@pytest.fixture
def run_example_in_subproc(
    testdir,
):

    @contextmanager
    def run(script_code: str):
        script_file = testdir.makefile('.py', script_code)

        # XXX: BE FOREVER WARNED: if you enable lots of playground
        # logging in the subprocess it may cause infinite blocking on
        # the pipes due to backpressure!!!
        proc = testdir.popen(
            [
                sys.executable,
                str(script_file),
            ],
            # the default closes our end of stdin which breaks
            # `.communicate()`
            stdin=subprocess.DEVNULL,
        )
        yield proc
        proc.wait()
        assert proc.returncode == 0

    yield run


@pytest.mark.parametrize(
    'example_script',
    sorted(
        path for path in examples_dir().glob('*.py')
        if not path.name.startswith('_')
    ),
    ids=lambda path: path.name,
)
def test_example(run_example_in_subproc, example_script):
    '''
    Run each script from this repo's `examples/` dir as a user would
    after copy-pasting it into their editor; its inline assertions
    must hold and it must print something.

    '''
    code: str = example_script.read_text()
    with run_example_in_subproc(code) as proc:
        out, err = proc.communicate()

        # if we get some gnarly output let's aggregate and raise
        if err:
            errmsg: str = err.decode()
            last_line: str = errmsg.splitlines()[-1]
            if 'Error' in last_line:
                raise Exception(errmsg)

        assert out
        assert proc.returncode == 0


def test_failing_script_is_caught(run_example_in_subproc):
    with pytest.raises(AssertionError):
        with run_example_in_subproc('assert 1 == 2\n') as proc:
            _, err = proc.communicate()

    assert proc.returncode != 0
    assert b'AssertionError' in err
