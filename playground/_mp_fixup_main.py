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
Helpers pulled mostly from `multiprocessing.spawn` to "fix up" the
`__main__` module in child isolates.

A demo script defines its isolate entrypoints and message types in
its own `__main__`; the child re-runs that script (minus its
`if __name__ == '__main__':` block) as `__mp_main__` and aliases it
as `__main__` such that `"__main__:<qualname>"` refs resolve.

'''
import os
import platform
import runpy
import sys
import types


ORIGINAL_DIR = os.path.abspath(os.getcwd())


def figure_out_main() -> dict[str, str]:
    '''
    Taken from `multiprocessing.spawn.get_preparation_data()`.

    Retrieve the parent isolate's `__main__` module data.

    '''
    d: dict[str, str] = {}
    main_module = sys.modules['__main__']
    main_mod_name = getattr(main_module.__spec__, 'name', None)
    if main_mod_name is not None:
        d['init_main_from_name'] = main_mod_name

    elif platform.system() != 'Windows':
        main_path = getattr(main_module, '__file__', None)
        if main_path is not None:
            if not os.path.isabs(main_path):
                main_path = os.path.join(ORIGINAL_DIR, main_path)
            d['init_main_from_path'] = os.path.normpath(main_path)

    return d


def fixup_main(parent_main: dict[str, str]) -> None:
    '''
    Apply the parent's `__main__` data (from `figure_out_main()`) in
    this (child) process.

    '''
    if mod_name := parent_main.get('init_main_from_name'):
        _fixup_main_from_name(mod_name)

    elif main_path := parent_main.get('init_main_from_path'):
        _fixup_main_from_path(main_path)


def _alias_main(main_content: dict) -> None:
    main_module = types.ModuleType('__mp_main__')
    main_module.__dict__.update(main_content)
    sys.modules['__main__'] = sys.modules['__mp_main__'] = main_module


def _fixup_main_from_name(mod_name: str) -> None:
    # `__main__.py` files for packages, directories, zip archives,
    # etc. run their "main only" code unconditionally so we don't
    # even try to populate anything in `__main__`.
    current_main = sys.modules['__main__']
    if (
        mod_name == '__main__'
        or
        mod_name.endswith('.__main__')
    ):
        return

    if getattr(current_main.__spec__, 'name', None) == mod_name:
        return

    _alias_main(
        runpy.run_module(
            mod_name,
            run_name='__mp_main__',
            alter_sys=True,
        )
    )


def _fixup_main_from_path(main_path: str) -> None:
    current_main = sys.modules['__main__']

    # the ipython launch script historically had no
    # `if __name__ == '__main__'` guard,
    # https://github.com/ipython/ipython/issues/4698
    main_name = os.path.splitext(os.path.basename(main_path))[0]
    if main_name == 'ipython':
        return

    if getattr(current_main, '__file__', None) == main_path:
        return

    _alias_main(
        runpy.run_path(
            main_path,
            run_name='__mp_main__',
        )
    )
