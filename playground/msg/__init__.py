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
Built-in inter-isolate messaging: the wire msg spec and its codec.

'''
from . import (
    pretty_struct as pretty_struct,
    types as types,
)
from ._codec import (
    encode as encode,
    decode as decode,
    encode_pld as encode_pld,
    decode_pld as decode_pld,
    func_ref as func_ref,
    resolve_ref as resolve_ref,
    type_ref as type_ref,
)
from .types import (
    Msg as Msg,
    Hello as Hello,
    Start as Start,
    Deliver as Deliver,
    Done as Done,
    Error as Error,
    MsgType as MsgType,
)
