#!/usr/bin/env python
#
# playground: a structured concurrent feature tour on `trio`.
#
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

from setuptools import setup

with open('README.rst', encoding='utf-8') as f:
    readme = f.read()


setup(
    name="trio-playground",
    version='0.1.0a1dev0',  # alpha zone
    description=(
        'futures, streams, controllers, transformers and '
        'message-passing isolates on `trio`'
    ),
    long_description=readme,
    license='AGPLv3',
    author='Tyler Goodlet',
    maintainer='Tyler Goodlet',
    maintainer_email='goodboy_foss@protonmail.com',
    platforms=['linux'],
    packages=[
        'playground',
        'playground.ipc',  # tcp msg transport
        'playground.trionics',  # trio extensions
        'playground.msg',  # lowlevel data types
        'playground._testing',  # internal cross-subsys suite utils
    ],
    install_requires=[

        # trio related
        # `trio.TaskStatus` is public as of 0.24
        'trio >= 0.24',

        # tooling
        'tricycle',
        'colorlog',

        # IPC serialization
        'msgspec',

        # pip ref docs on these specs:
        # https://pip.pypa.io/en/stable/reference/requirement-specifiers/#examples
        # and pep:
        # https://peps.python.org/pep-0440/#version-specifiers

    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-trio',
        ],
    },
    python_requires=">=3.11",
    keywords=[
        'trio',
        'async',
        'concurrency',
        'structured concurrency',
        'streams',
        'futures',
        'message passing',
        'multiprocessing'
    ],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Operating System :: POSIX :: Linux",
        "Framework :: Trio",
        "License :: OSI Approved :: GNU Affero General Public License v3 or later (AGPLv3+)",
        "Programming Language :: Python :: Implementation :: CPython",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.11",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
    ],
)
