'''
`playground.log`-wrapping unit tests.

'''
import logging

from colorlog.escape_codes import escape_codes
import playground
from playground import log as pglog
from playground._testing import playground_test


def test_root_pkg_not_duplicated_in_logger_name():
    '''
    When both `_root_name` and `name` are passed and they have
    a common `<root_name>.< >` prefix, ensure that it is not
    duplicated in the child's `StackLevelAdapter.name: str`.

    '''
    project_name: str = 'pylib'
    pkg_path: str = 'pylib.subpkg.mod'

    proj_log = pglog.get_logger(_root_name=project_name)
    sublog = pglog.get_logger(
        _root_name=project_name,
        name=pkg_path,
    )

    assert proj_log is not sublog
    assert sublog.name == 'pylib.subpkg'
    assert sublog.name.count(proj_log.name) == 1
    assert 'mod' not in sublog.name


def test_flat_modules_share_the_root_logger():
    root = pglog.get_logger('playground')
    assert pglog.get_logger('playground._streaming').logger is root.logger
    assert pglog.get_logger('playground.ipc._chan').name == 'playground.ipc'


def test_custom_levels(caplog):
    log = pglog.get_logger('playground._log_test')
    for name, level in pglog.CUSTOM_LEVELS.items():
        assert logging.getLevelName(level) == name

    with caplog.at_level(pglog.CUSTOM_LEVELS['TRANSPORT'], logger='playground'):
        assert log.at_least_level('transport')
        log.transport('on the wire')
        log.runtime('runtime stuff')
        log.cancel('cancelling')
        log.error('oh no')

    records = [
        (rec.levelname, rec.getMessage())
        for rec in caplog.records
    ]
    assert records == [
        ('TRANSPORT', 'on the wire'),
        ('RUNTIME', 'runtime stuff'),
        ('CANCEL', 'cancelling'),
        ('ERROR', 'oh no'),
    ]

    # the caller's file, not ours, is reported
    assert {rec.filename for rec in caplog.records} == {'test_log_sys.py'}

    with caplog.at_level(logging.ERROR, logger='playground'):
        assert not log.at_least_level('runtime')
        assert pglog.at_least_level(log, logging.ERROR)


def test_console_log_installs_one_handler():
    logger = logging.getLogger('snakelib')
    log = pglog.get_console_log('info', logger=logger)
    assert log.logger is logger
    assert logger.level == logging.INFO

    pglog.get_console_log('debug', logger=log)
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1

    # no level means no (re)configuration
    assert pglog.get_console_log(logger=logger).logger is logger
    assert logger.level == logging.DEBUG


def test_colorize():
    assert pglog.colorize('hi', 'red') == (
        f"{escape_codes['red']}hi{escape_codes['reset']}"
    )
    assert pglog.colorize('hi').startswith(escape_codes['light_green'])


def test_context_info_outside_runtime():
    info = pglog.IsolateContextInfo()
    assert info['isolate_name'] == 'no isolate_name context'
    assert info['task'] == 'no task context'
    assert len(info) == len(list(info))


@playground_test
async def test_context_info_in_runtime():
    info = pglog.IsolateContextInfo()
    assert info['isolate_name'] == playground.current_isolate().name
    assert info['task'].startswith('test_context_info_in_runtime')
