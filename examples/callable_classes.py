'''
Classes which emulate functions (via `__call__`) and runtime type
checks of "dynamic" values.

'''
from playground import TypeCaster


class MyClassFunction:
    '''
    Emulates a function taking two ints and returning an int.

    '''
    def __call__(self, a: int, b: int) -> int:
        return a + b


class MyCasterFunction(TypeCaster[int, str]):

    def __call__(self, value: int) -> str:
        return f'<{value}>'


def is_list_of(value, kind: type) -> bool:
    return (
        isinstance(value, list)
        and
        all(isinstance(item, kind) for item in value)
    )


def main():
    f1 = MyClassFunction()
    print(f1(10, 20))
    f2: TypeCaster = MyCasterFunction()
    print(f2(10))
    assert f2(10) == '<10>'

    a = [1, 'a']
    print(f'Is the variable "a" a list ? {"yes" if isinstance(a, list) else "no"}')
    print(f'Is the variable "a" a list of int ? {"yes" if is_list_of(a, int) else "no"}')

    d = [1, 2]
    print(f'Is the variable "d" a list ? {"yes" if isinstance(d, list) else "no"}')
    print(f'Is the variable "d" a list of int ? {"yes" if is_list_of(d, int) else "no"}')
    assert is_list_of(d, int)
    assert not is_list_of(a, int)


if __name__ == '__main__':
    main()
