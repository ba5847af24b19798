'''
Attach metadata to classes, methods, fields, functions and module
variables then read it back through reflection "mirrors".

'''
import sys
from typing import Annotated

from playground import (
    ConstStruct,
    annotate,
    reflect,
)


class OnFailure(ConstStruct):
    criticality_level: int
    handler_name: str


class Log(ConstStruct):
    destination: str


class Doc(ConstStruct):
    path: str


@annotate(OnFailure.const(0, 'onFatalHandler'))
class ClassProcessor:
    status: Annotated[bool, Doc.const('/var/doc/ClassProcessor')]

    @annotate(Log.const('/var/log/ClassProcessor'))
    def __call__(self, value: int) -> bool:
        return value > 0


data: Annotated[int, Doc.const('/var/doc/data')] = 10


def main():
    processor_class = ClassProcessor()

    # class metadata
    instance_mirror = reflect(processor_class)
    class_mirror = instance_mirror.type
    print(class_mirror.metadata)
    metadata: OnFailure = class_mirror.metadata[0].reflectee
    print(f'Critical level: {metadata.criticality_level}')
    print(f'Handler name: {metadata.handler_name}')
    assert metadata is OnFailure.const(0, 'onFatalHandler')

    # method metadata
    method_mirror = class_mirror.declarations['__call__']
    log: Log = method_mirror.metadata[0].reflectee
    print(f'Log file is {log.destination}')

    # field metadata
    variable_mirror = class_mirror.declarations['status']
    doc: Doc = variable_mirror.metadata[0].reflectee
    print(f'Doc file is {doc.path}')
    assert variable_mirror.type is bool

    # function metadata
    @annotate(OnFailure.const(0, 'onFatalHandler'))
    def processor_instance(value: int) -> None:
        if value > 0:
            print("That's OK.")
        else:
            print('A fatal error occurred !')

    function_mirror = reflect(processor_instance)
    print(function_mirror.metadata)
    print([param.name for param in function_mirror.parameters])
    processor_instance(1)

    # module variable metadata
    instance_mirror = reflect(data)
    print(instance_mirror.reflectee)
    print(instance_mirror.type.declarations)

    module_mirror = reflect(sys.modules[__name__])
    data_mirror = module_mirror.declarations['data']
    print(data_mirror.metadata)
    doc = data_mirror.metadata[0].reflectee
    print(f'Doc file is {doc.path}')
    assert doc.path == '/var/doc/data'


if __name__ == '__main__':
    main()
