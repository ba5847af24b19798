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


"""
playground: a structured concurrent feature tour on ``trio``.

"""

from ._state import (
    current_isolate as current_isolate,
    current_nursery as current_nursery,
    is_root_process as is_root_process,
)
from ._exceptions import (
    MsgTypeError as MsgTypeError,
    NoRuntime as NoRuntime,
    RemoteIsolateError as RemoteIsolateError,
    StateError as StateError,
    TransportClosed as TransportClosed,
    UnsupportedOperation as UnsupportedOperation,
)
from ._futures import (
    Future as Future,
    future as future,
    wait_all as wait_all,
    for_each as for_each,
    do_while as do_while,
)
from ._streaming import (
    Stream as Stream,
    StreamSubscription as StreamSubscription,
    stream as stream,
)
from ._controller import (
    StreamController as StreamController,
    BroadcastStreamController as BroadcastStreamController,
)
from ._transform import (
    StreamTransformer as StreamTransformer,
    EventSink as EventSink,
    TypeCaster as TypeCaster,
    Caster as Caster,
    CasterTransformer as CasterTransformer,
    Utf8Decoder as Utf8Decoder,
    LineSplitter as LineSplitter,
)
from ._container import (
    StreamContainerCreator as StreamContainerCreator,
)
from ._isolate import (
    Isolate as Isolate,
    IsolateHandle as IsolateHandle,
    IsolateNursery as IsolateNursery,
    open_isolate_nursery as open_isolate_nursery,
)
from ._ports import (
    ReceivePort as ReceivePort,
    SendPort as SendPort,
)
from ._immutable import (
    ConstStruct as ConstStruct,
    Final as Final,
    ImmutableMap as ImmutableMap,
    const as const,
    is_const as is_const,
)
from ._reflect import (
    annotate as annotate,
    reflect as reflect,
    reflect_class as reflect_class,
    reflect_module as reflect_module,
    InstanceMirror as InstanceMirror,
    ClassMirror as ClassMirror,
    DeclarationMirror as DeclarationMirror,
    FunctionMirror as FunctionMirror,
    ModuleMirror as ModuleMirror,
)
from ._files import (
    IOSink as IOSink,
    open_read as open_read,
    open_write as open_write,
    read_as_lines as read_as_lines,
    read_as_string as read_as_string,
    read_as_string_sync as read_as_string_sync,
)
from . import msg as msg
from ._root import (
    open_root as open_root,
    run as run,
)
