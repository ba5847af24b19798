'''
String interpolation evaluates expressions; anything which is not an
expression has to be wrapped in a function called in place.

'''
import random


def main():
    secure = random.SystemRandom()

    print(f'The boolean value is {"true" if secure.choice([True, False]) else "false"}')

    def pick() -> str:
        if secure.choice([True, False]):
            return 'true'
        else:
            return 'false'

    print(f'The boolean value is {pick()}')

    print(f'''\
This is a multiline string that interpolates the result of an anonymous function.
{(lambda value: f"Random value: {value}")(secure.randrange(100))}
''')


if __name__ == '__main__':
    main()
