'''
The different kinds of function parameters: mandatory and optional
positionals, keyword-only parameters with and without defaults.

'''


def mandatory_named_identity(first_name: str, last_name: str) -> str:
    return f'His name is {first_name} {last_name}.'


def mandatory_and_optional_named_identity(
    first_name: str,
    last_name: str = 'Daniels',
    age: int|None = None,
) -> str:
    return f'His name is {first_name} {last_name} and his age is {age}.'


def format_identity(
    *,
    first_name: str|None = None,
    last_name: str|None = None,
) -> str:
    return f'His name is {first_name} {last_name}.'


def format_default_identity(
    *,
    first_name: str = 'Jack',
    last_name: str|None = None,
) -> str:
    return f'His name is {first_name} {last_name}.'


def main():
    print(mandatory_named_identity('Jack', 'Daniels'))
    print(mandatory_and_optional_named_identity('Jack'))
    print(mandatory_and_optional_named_identity('Jack', 'Daniels', 30))
    print(format_identity(last_name='Daniels', first_name='Jack'))
    print(format_identity(last_name='Daniels'))
    print(format_default_identity(last_name='Daniels'))

    assert (
        mandatory_and_optional_named_identity('Jack')
        == 'His name is Jack Daniels and his age is None.'
    )
    assert format_default_identity(last_name='Daniels') == (
        'His name is Jack Daniels.'
    )

    # keyword-only params can not be passed positionally
    try:
        format_identity('Jack', 'Daniels')
    except TypeError as err:
        print(f'You cannot do that! {err}')


if __name__ == '__main__':
    main()
